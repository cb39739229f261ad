"""Site assembly for Folio.

The SiteAssembler takes rendered documents and produces a Site: the
published index (newest first), a route for every indexed document, and
category listings. It is the single point where the per-document results of
the pipeline come together.

Slugs must be unique across every input document, drafts included. A
duplicate makes routing ambiguous and stops the whole run with
DuplicateSlugError.

Whether drafts are indexed is an explicit constructor argument; there is
no global draft switch.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from .collections import CategoryIndex, SiteIndex
from .errors import DuplicateSlugError
from .renderers import RenderedDocument

logger = logging.getLogger(__name__)

DEFAULT_PERMALINK = "/{slug}/"
CATEGORY_PERMALINK = "/categories/{slug}/"


def route_path(slug: str, permalink: str = DEFAULT_PERMALINK) -> str:
    """Build the route path for a slug.

    Examples:
        >>> route_path("vault-plugin")
        '/vault-plugin/'
        >>> route_path("vault-plugin", "blog/{slug}")
        '/blog/vault-plugin/'
    """
    path = permalink.replace("{slug}", slug)
    path = re.sub(r"/{2,}", "/", f"/{path.strip('/')}/")
    return path


@dataclass(frozen=True)
class Route:
    path: str
    document: RenderedDocument


@dataclass
class Site:
    """An assembled site.

    Attributes:
        index: Indexed documents, newest first.
        routes: Route path -> Route, in index order.
        include_drafts: Whether drafts were indexed.
    """

    index: SiteIndex
    routes: dict[str, Route]
    include_drafts: bool = False
    _by_slug: dict[str, Route] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self._by_slug = {route.document.slug: route for route in self.routes.values()}

    def __len__(self) -> int:
        return len(self.index)

    def route_for(self, slug: str) -> Route | None:
        return self._by_slug.get(slug)

    def url_for(self, slug: str) -> str | None:
        route = self.route_for(slug)
        return route.path if route else None

    def neighbours(
        self, slug: str
    ) -> tuple[RenderedDocument | None, RenderedDocument | None]:
        """Return the (newer, older) documents around ``slug`` in the index."""
        slugs = self.index.slugs
        if slug not in slugs:
            return None, None
        position = slugs.index(slug)
        newer = self.index[position - 1] if position > 0 else None
        older = self.index[position + 1] if position + 1 < len(slugs) else None
        return newer, older

    @property
    def categories(self) -> CategoryIndex:
        return self.index.categories()

    def category_routes(self) -> dict[str, str]:
        """Map each category name to its listing path.

        Names that slugify identically get numeric suffixes in name order.
        """
        categories = self.categories
        paths: dict[str, str] = {}
        taken: set[str] = set()
        for name in categories:
            base = categories.slug_for(name)
            candidate = base
            counter = 2
            while candidate in taken:
                candidate = f"{base}-{counter}"
                counter += 1
            taken.add(candidate)
            paths[name] = route_path(candidate, CATEGORY_PERMALINK)
        return paths


class SiteAssembler:
    """Builds a Site from rendered documents.

    Attributes:
        include_drafts: Index draft documents too (preview builds).
        permalink: Route pattern; must contain ``{slug}``.
    """

    def __init__(self, include_drafts: bool = False, permalink: str = DEFAULT_PERMALINK):
        if "{slug}" not in permalink:
            raise ValueError(f"permalink pattern must contain '{{slug}}': {permalink!r}")
        self.include_drafts = include_drafts
        self.permalink = permalink

    def check_unique_slugs(self, documents: Iterable[RenderedDocument]) -> None:
        """Raise DuplicateSlugError if any slug is used more than once."""
        seen: dict[str, list[str]] = {}
        for document in documents:
            seen.setdefault(document.slug, []).append(document.source.source)
        for slug in sorted(seen):
            if len(seen[slug]) > 1:
                raise DuplicateSlugError(slug, seen[slug])

    def assemble(self, documents: Iterable[RenderedDocument]) -> Site:
        """Assemble the site.

        Args:
            documents: Rendered documents, in any order.

        Returns:
            Site with its index and routes.

        Raises:
            DuplicateSlugError: If two documents share a slug.
        """
        documents = list(documents)
        self.check_unique_slugs(documents)
        if self.include_drafts:
            selected = documents
        else:
            selected = [d for d in documents if not d.draft]
        index = SiteIndex(selected)
        routes: dict[str, Route] = {}
        for document in index:
            path = route_path(document.slug, self.permalink)
            routes[path] = Route(path, document)
        logger.info(
            "Assembled %d of %d documents (%d drafts %s)",
            len(index),
            len(documents),
            sum(1 for d in documents if d.draft),
            "included" if self.include_drafts else "excluded",
        )
        return Site(index=index, routes=routes, include_drafts=self.include_drafts)
