from datetime import datetime, timezone
from pathlib import Path

import pytest
from jinja2 import TemplateNotFound

from folio.content import ContentUnit
from folio.extractors import Metadata
from folio.protocols import TemplateRenderer
from folio.renderers import Heading, Renderer
from folio.site import SiteAssembler
from folio.templates import TemplateEngine, render_toc


def make_site(title="Hello", extra=None, body="Text.\n", image=None):
    metadata = Metadata(
        title=title,
        date=datetime(2024, 1, 2, tzinfo=timezone.utc),
        categories=("python",),
        image=image,
        extra=extra or {},
    )
    unit = ContentUnit(slug="hello", metadata=metadata, body=body, path=Path("hello.md"))
    document = Renderer().render(unit)
    return document, SiteAssembler().assemble([document])


def test_render_toc_nests_levels():
    toc = render_toc([Heading("a", "A", 1), Heading("b", "B", 2), Heading("c", "<C>", 1)])
    assert str(toc) == (
        '<ul><li><a href="#a">A</a><ul><li><a href="#b">B</a></li></ul></li>'
        '<li><a href="#c">&lt;C&gt;</a></li></ul>'
    )
    assert render_toc([]) == ""


def test_render_document_with_builtin_layout(tmp_path):
    document, site = make_site(title="Tom & Jerry", body="# Intro\n\nText.\n")
    engine = TemplateEngine(tmp_path / "layouts", {"title": "My Blog"})
    assert isinstance(engine, TemplateRenderer)
    html = engine.render_document(document, site)
    assert "<title>Tom &amp; Jerry | My Blog</title>" in html
    assert '<h1 id="intro">Intro</h1>' in html
    assert '<a href="#intro">Intro</a>' in html
    assert '<a href="/categories/python/">python</a>' in html
    assert '<time datetime="2024-01-02T00:00:00+00:00">January 02, 2024</time>' in html


def test_project_layouts_override_builtins(tmp_path):
    layouts = tmp_path / "layouts"
    layouts.mkdir()
    (layouts / "post.html.jinja").write_text(
        "CUSTOM {{ page.title }} {{ content }}", encoding="utf-8"
    )
    (layouts / "wide.html.jinja").write_text("WIDE {{ page.slug }}", encoding="utf-8")
    engine = TemplateEngine(layouts, {})

    document, site = make_site()
    assert engine.render_document(document, site) == "CUSTOM Hello <p>Text.</p>"

    wide, wide_site = make_site(extra={"layout": "wide"})
    assert engine.render_document(wide, wide_site) == "WIDE hello"

    missing, missing_site = make_site(extra={"layout": "nope"})
    with pytest.raises(TemplateNotFound):
        engine.render_document(missing, missing_site)


def test_render_listing(tmp_path):
    _, site = make_site()
    engine = TemplateEngine(tmp_path, {"title": "My Blog"})
    html = engine.render_listing("index", site)
    assert "<h1>My Blog</h1>" in html
    assert '<a href="/hello/">Hello</a>' in html

    category = engine.render_listing(
        "category", site, documents=site.categories["python"], title="Category: python"
    )
    assert "<h1>Category: python</h1>" in category


def test_url_for_applies_root_url(tmp_path):
    engine = TemplateEngine(tmp_path, {})
    assert engine._url_for("/hello/") == "/hello/"
    assert engine._url_for("./cover.png") == "./cover.png"
    assert engine._url_for("https://cdn.example.com/a.js") == "https://cdn.example.com/a.js"

    rooted = TemplateEngine(tmp_path, {"root_url": "https://site.com/"})
    assert rooted._url_for("/hello/") == "https://site.com/hello/"
    override = TemplateEngine(tmp_path, {"root_url": "https://site.com"}, root_url="https://root.com")
    assert override._url_for("/hello/") == "https://root.com/hello/"
    assert override._url_for("cover.png") == "cover.png"
    assert override._url_for("//cdn.example.com/a.js") == "//cdn.example.com/a.js"


def test_relative_cover_image_is_left_as_written(tmp_path):
    document, site = make_site(image="./cover.png")
    engine = TemplateEngine(tmp_path / "layouts", {"title": "My Blog"}, root_url="https://site.com")
    html = engine.render_document(document, site)
    assert '<img class="cover" src="./cover.png" alt="">' in html
    assert '<meta property="og:image" content="./cover.png">' in html

    document, site = make_site(image="/images/cover.png")
    html = engine.render_document(document, site)
    assert 'src="https://site.com/images/cover.png"' in html
