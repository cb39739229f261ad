"""Template rendering engine for Folio.

This module uses Jinja2 to turn rendered documents and listings into full
HTML pages. Layouts are looked up first in the project's layouts directory
and then in the built-in layouts shipped with the package, so a project
only needs to override the layouts it wants to change.

Key class:
- TemplateEngine: Renders documents and listings with their layouts.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from markupsafe import Markup

from .renderers import Heading, RenderedDocument
from .site import Site

BUILTIN_LAYOUTS_DIR = Path(__file__).parent / "templates"

__all__ = ["BUILTIN_LAYOUTS_DIR", "TemplateEngine", "render_toc"]


def render_toc(headings: Iterable[Heading]) -> Markup:
    """Render headings as a nested ``<ul>`` table of contents.

    Args:
        headings: Headings in document order.

    Returns:
        Markup-safe HTML, or empty Markup if there are no headings.
    """
    html_parts: list[str] = []
    level_stack: list[int] = []

    for heading in headings:
        level = heading.level

        # Close nested lists if going to a shallower level
        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")

        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        elif not level_stack or level > level_stack[-1]:  # pragma: no branch
            html_parts.append("<ul>")
            level_stack.append(level)

        html_parts.append(
            f'<li><a href="#{Markup.escape(heading.id)}">{Markup.escape(heading.text)}</a>'
        )

    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")

    return Markup("".join(html_parts))


def format_date(value: datetime, fmt: str = "%B %d, %Y") -> str:
    return value.strftime(fmt)


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        layouts_dir: Project layouts directory (may not exist).
        data: Site configuration exposed to templates as ``site``.
        root_url: Base URL prefixed by ``url_for``.
        env: Jinja2 environment.
    """

    def __init__(
        self,
        layouts_dir: Path | None,
        data: dict[str, Any],
        root_url: str | None = None,
    ):
        self.layouts_dir = layouts_dir
        self.data = data
        self.root_url = (root_url or data.get("root_url") or "").rstrip("/")
        search_path = []
        if layouts_dir is not None and layouts_dir.is_dir():
            search_path.append(layouts_dir)
        search_path.append(BUILTIN_LAYOUTS_DIR)
        self.env = Environment(
            loader=FileSystemLoader(search_path),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            keep_trailing_newline=True,
        )
        self._install_globals()

    def _install_globals(self) -> None:
        self.env.globals["site"] = self.data
        self.env.globals["url_for"] = self._url_for
        self.env.globals["render_toc"] = render_toc
        self.env.globals["pygments_css"] = self._pygments_css
        self.env.filters["date"] = format_date

    @staticmethod
    def _pygments_css() -> Markup:
        from pygments.formatters import HtmlFormatter

        return Markup(HtmlFormatter().get_style_defs(".highlight"))

    def _url_for(self, path: str) -> str:
        """Prefix a root-relative path with root_url.

        Relative paths such as ``./cover.png``, full URLs and
        protocol-relative ``//`` URLs are returned as written.
        """
        if self.root_url and path.startswith("/") and not path.startswith("//"):
            return f"{self.root_url}{path}"
        return path

    def _resolve_layout_template(self, layout: str):
        candidates = [f"{layout}.html.jinja", f"{layout}.jinja", f"{layout}.html"]
        for name in candidates:
            try:
                return self.env.get_template(name)
            except TemplateNotFound:
                continue
        raise TemplateNotFound(layout)

    def _base_context(self, site: Site) -> dict[str, Any]:
        return {
            "index": site.index,
            "categories": site.categories,
            "category_urls": site.category_routes(),
            "site_url_for": site.url_for,
        }

    def render_document(self, document: RenderedDocument, site: Site) -> str:
        """Render a document with the ``post`` layout.

        Args:
            document: Document to render.
            site: Assembled site, for navigation.

        Returns:
            Full HTML page.
        """
        newer, older = site.neighbours(document.slug)
        context = self._base_context(site)
        context.update(
            page=document,
            content=Markup(document.html),
            toc=document.toc,
            url=site.url_for(document.slug),
            newer=newer,
            older=older,
        )
        layout = str(document.source.metadata.extra.get("layout") or "post")
        return self._resolve_layout_template(layout).render(**context)

    def render_listing(self, layout: str, site: Site, **context: Any) -> str:
        """Render a listing page (``index`` or ``category``).

        Args:
            layout: Layout name.
            site: Assembled site.
            **context: Extra template variables (e.g. ``documents``, ``title``).

        Returns:
            Full HTML page.
        """
        full_context = self._base_context(site)
        full_context.setdefault("documents", site.index)
        full_context.update(context)
        return self._resolve_layout_template(layout).render(**full_context)
