"""Site building for Folio.

This module runs the whole pipeline: it loads configuration, loads and
renders every content unit in a bounded worker pool, assembles the site,
and writes the output directory.

Each content unit is one task. Tasks share nothing mutable; the only
synchronization point is the join that collects their results before
assembly. A unit that fails with a ContentError is logged, recorded as a
UnitFailure and left out; duplicate slugs stop the run.

Key functions:
- load_config: Loads site configuration from folio.yaml.
- render_units: Loads and renders content files concurrently.
- build_site: Main function to build the entire site.
- check_site: Runs the pipeline without writing output.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateError, TemplateSyntaxError

from .content import ContentLoader, UnitFailure
from .errors import BuildError, ContentError
from .feeds import FeedRegistry, create_default_feed_registry
from .renderers import RenderedDocument, Renderer
from .site import Site, SiteAssembler
from .templates import TemplateEngine
from .utils import ensure_clean_dir

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "folio.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "content_dir": "content",
    "output_dir": "output",
    "layouts_dir": "layouts",
    "permalink": "/{slug}/",
    "title": "Folio",
    "url": "",
    "root_url": "",
    "workers": 4,
    "include_drafts": False,
}

# href/src/action values that start with a single slash
_ROOTED_URL_ATTR_RE = re.compile(r'\b(href|src|action)=(["\'])(/(?!/)[^"\']*)\2')


@dataclass
class BuildResult:
    """Result of a build (or check) run.

    Attributes:
        site: Assembled site, or None if the run was aborted.
        failures: Units skipped because of per-unit errors.
        output_dir: Where output was written, or None if nothing was.
        config: Effective configuration.
        aborted: True if the abort signal stopped the run.
        written: Files written, relative to output_dir.
    """

    site: Site | None
    failures: list[UnitFailure] = field(default_factory=list)
    output_dir: Path | None = None
    config: dict[str, Any] = field(default_factory=dict)
    aborted: bool = False
    written: list[Path] = field(default_factory=list)

    @property
    def documents(self) -> Sequence[RenderedDocument]:
        return self.site.index if self.site is not None else []

    @property
    def ok(self) -> bool:
        return not self.failures and not self.aborted


def load_config(project_root: Path) -> dict[str, Any]:
    """Load site configuration from folio.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Configuration with defaults applied.
    """
    config_path = project_root / CONFIG_FILENAME
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                config.update(loaded)
    return config


def _worker_count(value: Any) -> int:
    try:
        return max(1, int(value))
    except (TypeError, ValueError):
        return int(DEFAULT_CONFIG["workers"])


def _process_unit(
    loader: ContentLoader,
    renderer: Renderer,
    path: Path,
    abort: threading.Event,
) -> RenderedDocument | None:
    if abort.is_set():
        return None
    try:
        unit = loader.load_unit(path)
        return renderer.render(unit)
    except (KeyboardInterrupt, SystemExit):
        abort.set()
        raise


def render_units(
    paths: Sequence[Path],
    loader: ContentLoader,
    renderer: Renderer,
    workers: int = 4,
    abort: threading.Event | None = None,
) -> tuple[list[RenderedDocument], list[UnitFailure], bool]:
    """Load and render content files in a bounded thread pool.

    Results are collected in input order, so the outcome does not depend
    on scheduling. An interrupt (KeyboardInterrupt or SystemExit) sets the
    abort signal, cancels queued units and is re-raised once the units
    already running have finished.

    Args:
        paths: Content files, one task each.
        loader: Content loader.
        renderer: Renderer shared by all tasks.
        workers: Maximum number of concurrent tasks.
        abort: Optional signal; once set, no new units start and pending
            results are discarded.

    Returns:
        Tuple of (documents, failures, aborted).
    """
    if abort is None:
        abort = threading.Event()
    documents: list[RenderedDocument] = []
    failures: list[UnitFailure] = []
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="folio") as executor:
        futures: list[Future] = [
            executor.submit(_process_unit, loader, renderer, path, abort) for path in paths
        ]
        try:
            for path, future in zip(paths, futures):
                if abort.is_set():
                    break
                try:
                    document = future.result()
                except ContentError as exc:
                    logger.warning("Skipping %s: %s", path, exc.message)
                    failures.append(UnitFailure(path, exc))
                    continue
                if document is not None:
                    documents.append(document)
        except BaseException:
            abort.set()
            raise
        finally:
            if abort.is_set():
                for pending in futures:
                    pending.cancel()
    if abort.is_set():
        logger.warning("Build aborted; discarding remaining units")
        return [], failures, True
    return documents, failures, False


def absolutize_urls(html: str, root_url: str) -> str:
    """Prefix root-relative href, src and action values with root_url.

    Relative paths, anchors, full and protocol-relative URLs and other
    schemes do not start with a single slash and are left alone.
    """
    if not root_url:
        return html
    base = root_url.rstrip("/")
    return _ROOTED_URL_ATTR_RE.sub(
        lambda m: f"{m.group(1)}={m.group(2)}{base}{m.group(3)}{m.group(2)}", html
    )


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    error_msg = str(exc)
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TemplateNotFound":
        return f"Layout not found: {error_msg}"
    return f"{error_type}: {error_msg}"


class SiteWriter:
    """Writes an assembled site to the output directory.

    Only the writer touches the output directory, and only after every
    render task has finished.

    Attributes:
        output_dir: Target directory (wiped before writing).
        engine: Template engine for HTML pages.
        data: Site configuration.
        root_url: When set, root-relative URLs are made absolute.
        feeds: Feed generators to run after the pages.
    """

    def __init__(
        self,
        output_dir: Path,
        engine: TemplateEngine,
        data: dict[str, Any],
        root_url: str = "",
        feeds: FeedRegistry | None = None,
    ):
        self.output_dir = output_dir
        self.engine = engine
        self.data = data
        self.root_url = root_url
        self.feeds = feeds or create_default_feed_registry()

    def write(self, site: Site) -> list[Path]:
        """Write every page, the JSON index and the feeds.

        Returns:
            Written files relative to the output directory.

        Raises:
            BuildError: If a layout fails to render.
        """
        ensure_clean_dir(self.output_dir)
        written: list[Path] = []

        home = self._render(
            Path(self.engine.layouts_dir or "."),
            lambda: self.engine.render_listing("index", site),
        )
        written.append(self._write_page("/", home))

        for path, route in site.routes.items():
            document = route.document
            rendered = self._render(
                document.source.path,
                lambda document=document: self.engine.render_document(document, site),
            )
            written.append(self._write_page(path, rendered))

        categories = site.categories
        for name, path in site.category_routes().items():
            rendered = self._render(
                Path(self.engine.layouts_dir or "."),
                lambda name=name: self.engine.render_listing(
                    "category",
                    site,
                    documents=categories[name],
                    title=f"Category: {name}",
                    category=name,
                ),
            )
            written.append(self._write_page(path, rendered))

        written.append(self._write_index_json(site))
        for filename in self.feeds.generate_all(self.output_dir, site, self.data):
            written.append(Path(filename))
        logger.info("Wrote %d files to %s", len(written), self.output_dir)
        return written

    def _render(self, source_path: Path, render) -> str:
        try:
            rendered = render()
        except TemplateSyntaxError as exc:
            raise BuildError(
                Path(exc.filename or source_path),
                f"Template syntax error on line {exc.lineno}: {exc.message}",
                exc,
            ) from exc
        except TemplateError as exc:
            raise BuildError(source_path, _format_error_message(exc), exc) from exc
        if self.root_url:
            rendered = absolutize_urls(rendered, self.root_url)
        return rendered

    def _write_page(self, url_path: str, rendered: str) -> Path:
        target_dir = self.output_dir / url_path.strip("/")
        target_dir.mkdir(parents=True, exist_ok=True)
        html_path = target_dir / "index.html"
        html_path.write_text(rendered, encoding="utf-8")
        return html_path.relative_to(self.output_dir)

    def _write_index_json(self, site: Site) -> Path:
        payload = {
            "title": self.data.get("title", ""),
            "url": self.data.get("url", ""),
            "documents": [
                {
                    "slug": document.slug,
                    "url": site.url_for(document.slug),
                    "title": document.title,
                    "date": document.date.isoformat(),
                    "categories": list(document.categories),
                    "image": document.image,
                    "excerpt": document.excerpt,
                    "draft": document.draft,
                }
                for document in site.index
            ],
        }
        target = self.output_dir / "index.json"
        target.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )
        return Path("index.json")


def build_site(
    project_root: Path,
    include_drafts: bool | None = None,
    output_dir: Path | None = None,
    workers: int | None = None,
    abort: threading.Event | None = None,
    write: bool = True,
    root_url: str | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Index drafts too; defaults to the config value.
        output_dir: Write here instead of the configured output_dir.
        workers: Worker pool size; defaults to the config value.
        abort: Optional signal that stops the run early.
        write: Set to False to load, render and assemble only.
        root_url: Base URL used to absolutize links; overrides config.

    Returns:
        BuildResult with the site and any per-unit failures.

    Raises:
        FileNotFoundError: If the content directory is missing.
        DuplicateSlugError: If two units share a slug.
        BuildError: If a layout fails to render.
    """
    config = load_config(project_root)
    if include_drafts is None:
        include_drafts = bool(config.get("include_drafts"))
    if root_url is not None:
        config["root_url"] = root_url
    pool_size = _worker_count(workers if workers is not None else config.get("workers"))

    content_dir = project_root / str(config["content_dir"])
    if not content_dir.is_dir():
        raise FileNotFoundError(f"Expected content directory at {content_dir}")

    loader = ContentLoader(content_dir)
    renderer = Renderer()
    paths = loader.iter_files()
    logger.info("Found %d content units in %s", len(paths), content_dir)

    documents, failures, aborted = render_units(paths, loader, renderer, pool_size, abort)
    if aborted:
        return BuildResult(site=None, failures=failures, config=config, aborted=True)

    assembler = SiteAssembler(include_drafts=include_drafts, permalink=str(config["permalink"]))
    site = assembler.assemble(documents)
    result = BuildResult(site=site, failures=failures, config=config)
    if not write:
        return result

    target = output_dir or (project_root / str(config["output_dir"]))
    engine = TemplateEngine(
        project_root / str(config["layouts_dir"]), config, root_url=str(config.get("root_url") or "")
    )
    writer = SiteWriter(target, engine, config, root_url=str(config.get("root_url") or ""))
    result.written = writer.write(site)
    result.output_dir = target
    return result


def check_site(
    project_root: Path,
    include_drafts: bool | None = None,
    workers: int | None = None,
) -> BuildResult:
    """Load, render and assemble the site without writing anything."""
    return build_site(project_root, include_drafts=include_drafts, workers=workers, write=False)
