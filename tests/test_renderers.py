from datetime import datetime, timezone

import pytest

from folio.components import ComponentRegistry, default_component_registry
from folio.content import ContentUnit
from folio.errors import ComponentPropsError, UnknownComponentError
from folio.extractors import Metadata
from folio.nodes import element
from folio.renderers import Heading, Renderer, _generate_heading_id


def make_unit(slug="post", body="Text.\n", title="Post", description=""):
    metadata = Metadata(
        title=title,
        date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        description=description,
    )
    return ContentUnit(slug=slug, metadata=metadata, body=body)


def test_rendering_is_idempotent():
    unit = make_unit(body='# Title\n\n<Notice type="tip">\nHi **there**.\n</Notice>\n')
    renderer = Renderer()
    assert renderer.render(unit) == renderer.render(unit)
    assert renderer.render(unit) == Renderer().render(unit)


def test_document_tree_and_properties():
    unit = make_unit(slug="hello", title="Hello", description="Short")
    document = Renderer().render(unit)
    assert document.tree.tag == "article"
    assert document.tree.get("data-slug") == "hello"
    assert document.slug == "hello"
    assert document.title == "Hello"
    assert document.excerpt == "Short"
    assert document.draft is False
    assert document.categories == ()
    assert document.html == "<p>Text.</p>"


def test_components_are_resolved():
    unit = make_unit(body='<Notice type="tip">\nUse **Folio**.\n</Notice>\n')
    document = Renderer().render(unit)
    assert document.html == (
        '<aside class="notice notice-tip" data-type="tip" role="note">'
        "<p>Use <strong>Folio</strong>.</p></aside>"
    )


def test_heading_ids_and_toc():
    unit = make_unit(body="# Intro\n\nText\n\n## Intro\n\n## Setup & Config\n")
    document = Renderer().render(unit)
    assert document.toc == (
        Heading("intro", "Intro", 1),
        Heading("intro-1", "Intro", 2),
        Heading("setup-config", "Setup & Config", 2),
    )
    assert '<h1 id="intro">Intro</h1>' in document.html
    assert '<h2 id="intro-1">Intro</h2>' in document.html
    assert _generate_heading_id("!!!") == "section"


def test_heading_ids_stay_unique_when_suffix_matches_a_heading():
    document = Renderer().render(make_unit(body="## Foo\n\n## Foo\n\n## Foo 1\n"))
    assert [h.id for h in document.toc] == ["foo", "foo-1", "foo-1-1"]

    document = Renderer().render(make_unit(body="## Foo 1\n\n## Foo\n\n## Foo\n"))
    assert [h.id for h in document.toc] == ["foo-1", "foo", "foo-2"]


def test_code_blocks_are_highlighted_on_serialization():
    document = Renderer().render(make_unit(body="```python\nprint(1)\n```\n"))
    assert 'class="highlight"' in document.html
    assert '<code class="language-python">print(1)' in document.to_html(highlight=False)


def test_unknown_component_fails_the_unit():
    unit = make_unit(body='Hello\n\n<Foo bar="1" />\n')
    with pytest.raises(UnknownComponentError) as excinfo:
        Renderer().render(unit)
    assert excinfo.value.name == "Foo"
    assert excinfo.value.line == 3
    assert excinfo.value.source == "post"
    assert "Foo" in str(excinfo.value)


def test_component_prop_errors_propagate():
    with pytest.raises(ComponentPropsError):
        Renderer().render(make_unit(body='<Figure alt="no src" />\n'))


def test_custom_registry():
    class Callout:
        def render(self, props, children, source=""):
            return element("div", {"class": "callout"}, children)

    registry = ComponentRegistry()
    registry.register("Callout", Callout())
    document = Renderer(registry).render(make_unit(body="<Callout>\nHi\n</Callout>\n"))
    assert document.html == '<div class="callout"><p>Hi</p></div>'

    with pytest.raises(UnknownComponentError):
        Renderer(registry).render(make_unit(body='<Notice type="tip">\nx\n</Notice>\n'))
    assert len(default_component_registry()) == 4
