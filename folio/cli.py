"""Command-line interface for Folio.

This module defines the CLI commands using Click framework.

Commands:
- build: Build the site into the output directory.
- check: Load, render and assemble without writing output.
- list: Print the documents in the site index.
- post: Create a new post interactively.
"""

from __future__ import annotations

import logging.config
from datetime import datetime, timezone
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .errors import BuildError, DuplicateSlugError


def configure_logging(verbose: bool = False) -> None:
    """Configure console logging for CLI runs."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"format": "%(levelname)s %(name)s: %(message)s"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "console",
                },
            },
            "root": {"level": "DEBUG" if verbose else "INFO", "handlers": ["console"]},
        }
    )


def _relative(path: Path | str, project_root: Path) -> str:
    try:
        return str(Path(path).resolve().relative_to(project_root.resolve()))
    except ValueError:
        return str(path)


def _report_fatal(exc: Exception, project_root: Path) -> None:
    """Print a fatal pipeline error and exit with status 1."""
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    if isinstance(exc, DuplicateSlugError):
        click.echo(click.style(f"  Slug: {exc.slug}", fg="yellow"), err=True)
        for source in exc.sources:
            click.echo(click.style(f"  File: {_relative(source, project_root)}", fg="yellow"), err=True)
        click.echo(click.style("  Error: duplicate slug", fg="white"), err=True)
    elif isinstance(exc, BuildError):
        click.echo(
            click.style(f"  File: {_relative(exc.source_path, project_root)}", fg="yellow"),
            err=True,
        )
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
    else:
        click.echo(click.style(f"  Error: {exc}", fg="white"), err=True)
    raise SystemExit(1)


def _report_failures(failures, project_root: Path) -> None:
    for failure in failures:
        click.echo(
            click.style(f"  {_relative(failure.path, project_root)}: ", fg="yellow")
            + failure.error.message,
            err=True,
        )


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Folio static site content pipeline."""
    configure_logging(verbose)


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--workers", type=int, default=None, help="Worker pool size (overrides folio.yaml)")
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (overrides folio.yaml)",
)
@click.option("--strict", is_flag=True, help="Exit non-zero if any post fails")
def build(drafts: bool, workers: int | None, output: Path | None, strict: bool):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import build_site

    try:
        result = build_site(
            project_root,
            include_drafts=drafts or None,
            output_dir=output,
            workers=workers,
        )
    except (BuildError, DuplicateSlugError, FileNotFoundError) as exc:
        _report_fatal(exc, project_root)
        return
    except KeyboardInterrupt:
        click.echo(click.style("Build interrupted", fg="yellow", bold=True), err=True)
        raise SystemExit(130)

    if result.failures:
        click.echo(
            click.style(f"Skipped {len(result.failures)} post(s):", fg="yellow", bold=True),
            err=True,
        )
        _report_failures(result.failures, project_root)
    click.echo(f"Built {len(result.documents)} documents into {result.output_dir}")
    if strict and result.failures:
        raise SystemExit(1)


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
def check(drafts: bool):
    """Load, render and assemble the site without writing output."""
    project_root = Path.cwd()
    from .build import check_site

    try:
        result = check_site(project_root, include_drafts=drafts or None)
    except (DuplicateSlugError, FileNotFoundError) as exc:
        _report_fatal(exc, project_root)
        return

    if result.failures:
        click.echo(click.style(f"{len(result.failures)} problem(s) found:", fg="red", bold=True), err=True)
        _report_failures(result.failures, project_root)
        raise SystemExit(1)
    click.echo(click.style(f"OK: {len(result.documents)} documents", fg="green"))


@cli.command(name="list")
@click.option("--drafts", is_flag=True, help="Include draft content")
def list_documents(drafts: bool):
    """Print date, slug, route and title of each indexed document."""
    project_root = Path.cwd()
    from .build import check_site

    try:
        result = check_site(project_root, include_drafts=drafts or None)
    except (DuplicateSlugError, FileNotFoundError) as exc:
        _report_fatal(exc, project_root)
        return

    site = result.site
    for document in result.documents:
        marker = click.style(" [draft]", fg="yellow") if document.draft else ""
        click.echo(
            f"{document.date:%Y-%m-%d}  {document.slug}  {site.url_for(document.slug)}  "
            f"{document.title}{marker}"
        )


@cli.command()
def post():
    """Create a new post interactively."""
    project_root = Path.cwd()
    from .build import load_config
    from .content import ContentLoader, derive_slug
    from .utils import slugify

    config = load_config(project_root)
    content_dir = project_root / str(config["content_dir"])
    if not content_dir.is_dir():
        raise click.ClickException(
            f"No {config['content_dir']}/ directory found. Run this command from a Folio project root."
        )

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    slug = slugify(title)
    if not slug:
        raise click.ClickException(f"Cannot derive a slug from title '{title}'")

    categories = questionary.text(
        "Categories (comma separated):",
        default="",
        style=_questionary_style(),
    ).ask()
    if categories is None:
        raise click.Abort()

    draft = questionary.confirm("Draft?", default=True, style=_questionary_style()).ask()
    if draft is None:
        raise click.Abort()

    loader = ContentLoader(content_dir)
    for existing in loader.iter_files():
        if derive_slug(existing, content_dir) == slug:
            raise click.ClickException(
                f"A post with slug '{slug}' already exists: {_relative(existing, project_root)}"
            )

    frontmatter = {
        "title": title,
        "date": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "categories": [c.strip() for c in categories.split(",") if c.strip()],
        "draft": bool(draft),
    }
    target_path = content_dir / f"{slug}.md"
    header = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    target_path.write_text(f"---\n{header}---\n\n", encoding="utf-8")
    click.echo(f"Created {_relative(target_path, project_root)}")


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
