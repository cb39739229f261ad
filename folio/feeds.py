"""Feed generation for Folio.

This module generates sitemap.xml and an RSS feed from an assembled site.
Generators are registered in a FeedRegistry so new formats can be added
without touching the build.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml files.
    RSSGenerator: Generates RSS 2.0 feed files.
    FeedRegistry: Registry for managing feed generators.

Functions:
    create_default_feed_registry: Create a registry with default generators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

from markupsafe import escape

if TYPE_CHECKING:
    from .site import Site

RFC822_FORMAT = "%a, %d %b %Y %H:%M:%S +0000"


class FeedGenerator(ABC):
    """Abstract base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def generate(self, site: Site, data: dict[str, Any]) -> str | None:
        """Generate feed content.

        Args:
            site: Assembled site.
            data: Site configuration containing ``url`` and ``title``.

        Returns:
            Feed content, or None if the feed cannot be generated
            (no base URL configured).
        """
        ...

    def write(self, output_dir: Path, site: Site, data: dict[str, Any]) -> bool:
        """Generate and write the feed.

        Returns:
            True if the feed was written, False if skipped.
        """
        content = self.generate(site, data)
        if content is None:
            return False
        (output_dir / self.filename).write_text(content, encoding="utf-8")
        return True


def _base_url(data: dict[str, Any]) -> str:
    return str(data.get("url") or "").rstrip("/")


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml listing the home page, posts and categories."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, site: Site, data: dict[str, Any]) -> str | None:
        base_url = _base_url(data)
        if not base_url:
            return None

        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        if site.index:
            newest = site.index[0].date.strftime("%Y-%m-%d")
            lines.append(
                f"  <url><loc>{escape(base_url)}/</loc><lastmod>{newest}</lastmod></url>"
            )
        for path, route in site.routes.items():
            lastmod = route.document.date.strftime("%Y-%m-%d")
            loc = escape(f"{base_url}{path}")
            lines.append(f"  <url><loc>{loc}</loc><lastmod>{lastmod}</lastmod></url>")
        for path in site.category_routes().values():
            lines.append(f"  <url><loc>{escape(base_url + path)}</loc></url>")
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed, newest first.

    ``lastBuildDate`` is the newest document date, so rebuilding unchanged
    content produces an identical feed.
    """

    def __init__(self, limit: int | None = 20):
        self.limit = limit

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(self, site: Site, data: dict[str, Any]) -> str | None:
        base_url = _base_url(data)
        if not base_url:
            return None
        title = escape(str(data.get("title") or "Folio"))

        documents = list(site.index)
        if self.limit is not None:
            documents = documents[: self.limit]
        items = []
        for document in documents:
            link = escape(f"{base_url}{site.url_for(document.slug)}")
            description = escape(document.excerpt or document.title)
            categories = "".join(
                f"<category>{escape(name)}</category>" for name in document.categories
            )
            items.append(
                f"<item><title>{escape(document.title)}</title><link>{link}</link>"
                f'<guid isPermaLink="true">{link}</guid>'
                f"<description>{description}</description>{categories}"
                f"<pubDate>{document.date.strftime(RFC822_FORMAT)}</pubDate></item>"
            )

        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{title}</title>",
            f"<link>{escape(base_url)}/</link>",
            f"<description>{title}</description>",
        ]
        if documents:
            rss.append(
                f"<lastBuildDate>{documents[0].date.strftime(RFC822_FORMAT)}</lastBuildDate>"
            )
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss) + "\n"


class FeedRegistry:
    """Registry for managing feed generators."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(self, output_dir: Path, site: Site, data: dict[str, Any]) -> list[str]:
        """Generate all registered feeds.

        Returns:
            Filenames that were written.
        """
        generated = []
        for generator in self._generators:
            if generator.write(output_dir, site, data):
                generated.append(generator.filename)
        return generated


def create_default_feed_registry() -> FeedRegistry:
    """Create a registry with the sitemap and RSS generators."""
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator())
    return registry
