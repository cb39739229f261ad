from datetime import datetime, timezone
from pathlib import Path

import pytest

from folio.content import ContentUnit
from folio.errors import DuplicateSlugError
from folio.extractors import Metadata
from folio.renderers import Renderer
from folio.site import SiteAssembler, route_path


def make_document(slug, day, draft=False, categories=(), path=None):
    metadata = Metadata(
        title=slug.title(),
        date=datetime(2024, 1, day, tzinfo=timezone.utc),
        categories=tuple(categories),
        draft=draft,
    )
    unit = ContentUnit(
        slug=slug,
        metadata=metadata,
        body="Text.\n",
        path=Path(path or f"content/{slug}.md"),
    )
    return Renderer().render(unit)


def test_route_path():
    assert route_path("vault-plugin") == "/vault-plugin/"
    assert route_path("vault-plugin", "blog/{slug}") == "/blog/vault-plugin/"
    assert route_path("x", "/posts//{slug}/") == "/posts/x/"


def test_assemble_excludes_drafts_by_default():
    documents = [
        make_document("old", 1),
        make_document("wip", 3, draft=True),
        make_document("new", 2),
    ]
    site = SiteAssembler().assemble(documents)
    assert len(site) == 2
    assert site.index.slugs == ["new", "old"]
    assert list(site.routes) == ["/new/", "/old/"]
    assert site.url_for("wip") is None
    assert all(not document.draft for document in site.index)

    preview = SiteAssembler(include_drafts=True).assemble(documents)
    assert preview.index.slugs == ["wip", "new", "old"]
    assert preview.url_for("wip") == "/wip/"
    assert preview.include_drafts is True


def test_assemble_output_does_not_depend_on_input_order():
    documents = [make_document(f"post-{day}", day) for day in range(1, 8)]
    first = SiteAssembler().assemble(documents)
    second = SiteAssembler().assemble(reversed(documents))
    assert first.index == second.index
    assert list(first.routes) == list(second.routes)


def test_duplicate_slug_stops_assembly():
    documents = [
        make_document("hello", 1, path="content/2024-01-01-hello.md"),
        make_document("hello", 2, draft=True, path="content/drafts/hello.md"),
    ]
    with pytest.raises(DuplicateSlugError) as excinfo:
        SiteAssembler().assemble(documents)
    assert excinfo.value.slug == "hello"
    assert excinfo.value.sources == ["content/2024-01-01-hello.md", "content/drafts/hello.md"]


def test_custom_permalink_and_validation():
    site = SiteAssembler(permalink="/blog/{slug}/").assemble([make_document("a", 1)])
    assert site.url_for("a") == "/blog/a/"
    assert site.route_for("a").document.slug == "a"
    with pytest.raises(ValueError):
        SiteAssembler(permalink="/blog/")


def test_neighbours():
    site = SiteAssembler().assemble(
        [make_document("a", 1), make_document("b", 2), make_document("c", 3)]
    )
    newer, older = site.neighbours("b")
    assert (newer.slug, older.slug) == ("c", "a")
    assert site.neighbours("c")[0] is None
    assert site.neighbours("a")[1] is None
    assert site.neighbours("missing") == (None, None)


def test_category_routes_deduplicate_slugs():
    site = SiteAssembler().assemble(
        [
            make_document("a", 1, categories=["C"]),
            make_document("b", 2, categories=["C++", "Machine Learning"]),
        ]
    )
    assert site.category_routes() == {
        "C": "/categories/c/",
        "C++": "/categories/c-2/",
        "Machine Learning": "/categories/machine-learning/",
    }
    assert site.categories["C++"].slugs == ["b"]
