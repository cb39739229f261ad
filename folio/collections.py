from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence

from .renderers import RenderedDocument
from .utils import slugify


def index_sort_key(document: RenderedDocument):
    """Sort key for newest-first ordering with slug ascending as tie-breaker."""
    return (-document.date.timestamp(), document.slug)


class SiteIndex(Sequence[RenderedDocument]):
    """Ordered, read-only list of rendered documents.

    Documents are kept sorted by date (newest first), ties broken by slug
    in ascending order, whatever order they were passed in.
    """

    def __init__(self, documents: Iterable[RenderedDocument]):
        self._documents = tuple(sorted(documents, key=index_sort_key))

    def __iter__(self) -> Iterator[RenderedDocument]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return SiteIndex(self._documents[item])
        return self._documents[item]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SiteIndex):
            return self._documents == other._documents
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    @property
    def slugs(self) -> list[str]:
        return [d.slug for d in self._documents]

    def find(self, slug: str) -> RenderedDocument | None:
        for document in self._documents:
            if document.slug == slug:
                return document
        return None

    def with_category(self, name: str) -> SiteIndex:
        return SiteIndex(d for d in self._documents if name in d.categories)

    def published(self) -> SiteIndex:
        return SiteIndex(d for d in self._documents if not d.draft)

    def drafts(self) -> SiteIndex:
        return SiteIndex(d for d in self._documents if d.draft)

    def latest(self, count: int = 5) -> SiteIndex:
        return SiteIndex(self._documents[:count])

    def categories(self) -> CategoryIndex:
        grouped: dict[str, list[RenderedDocument]] = {}
        for document in self._documents:
            for name in document.categories:
                grouped.setdefault(name, []).append(document)
        return CategoryIndex(grouped)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"SiteIndex({len(self._documents)} documents)"


class CategoryIndex(Mapping[str, SiteIndex]):
    """Mapping of category name to SiteIndex, ordered by name."""

    def __init__(self, mapping: Mapping[str, Iterable[RenderedDocument]]):
        self._mapping = {
            name: SiteIndex(mapping[name])
            for name in sorted(mapping, key=lambda n: (n.lower(), n))
        }

    def __getitem__(self, key: str) -> SiteIndex:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def slug_for(self, name: str) -> str:
        return slugify(name) or "category"

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"CategoryIndex({len(self._mapping)} categories)"
