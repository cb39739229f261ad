from datetime import datetime, timezone
from pathlib import Path

from folio.collections import CategoryIndex, SiteIndex
from folio.content import ContentUnit
from folio.extractors import Metadata
from folio.renderers import Renderer


def make_document(slug, day, draft=False, categories=()):
    metadata = Metadata(
        title=slug.title(),
        date=datetime(2024, 1, day, tzinfo=timezone.utc),
        categories=tuple(categories),
        draft=draft,
    )
    unit = ContentUnit(slug=slug, metadata=metadata, body="Text.\n", path=Path(f"{slug}.md"))
    return Renderer().render(unit)


def test_site_index_sorts_newest_first_with_slug_tiebreak():
    docs = [
        make_document("b", 1),
        make_document("c", 3),
        make_document("a", 1),
        make_document("d", 2),
    ]
    index = SiteIndex(docs)
    assert index.slugs == ["c", "d", "a", "b"]
    assert index == SiteIndex(reversed(docs))
    assert index[0].slug == "c"
    assert isinstance(index[:2], SiteIndex)
    assert index.latest(2).slugs == ["c", "d"]
    assert index.find("a").slug == "a"
    assert index.find("missing") is None


def test_site_index_filters():
    index = SiteIndex(
        [
            make_document("one", 1, categories=["python"]),
            make_document("two", 2, draft=True, categories=["python", "vault"]),
            make_document("three", 3, categories=["vault"]),
        ]
    )
    assert index.published().slugs == ["three", "one"]
    assert index.drafts().slugs == ["two"]
    assert index.with_category("python").slugs == ["two", "one"]
    assert index.with_category("missing").slugs == []


def test_category_index_is_name_ordered():
    index = SiteIndex(
        [
            make_document("one", 1, categories=["vault", "Go"]),
            make_document("two", 2, categories=["python", "vault"]),
        ]
    )
    categories = index.categories()
    assert isinstance(categories, CategoryIndex)
    assert list(categories) == ["Go", "python", "vault"]
    assert categories["vault"].slugs == ["two", "one"]
    assert len(categories) == 3
    assert categories.slug_for("Machine Learning") == "machine-learning"
    assert categories.slug_for("+++") == "category"
