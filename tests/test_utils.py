from pathlib import Path

from folio import utils


def test_slugify_strips_date_prefix():
    assert utils.slugify("2024-01-02-post-title") == "post-title"
    assert utils.slugify("Vault Plugin!") == "vault-plugin"
    assert utils.slugify("mixed_Case  slug") == "mixed-case-slug"
    assert utils.slugify("!!!") == ""
    assert utils.strip_date_prefix("2024-04-04-vault-plugin") == "vault-plugin"
    assert utils.strip_date_prefix("not-a-date-post") == "not-a-date-post"


def test_first_paragraph_skips_non_prose():
    text = (
        "import Notice from './Notice.astro'\n\n"
        "# Heading\n\n"
        "```python\nprint('code')\n```\n\n"
        "<Notice>Callout</Notice>\n\n"
        "First [link](https://example.com) with **bold** text.\n\n"
        "Second paragraph."
    )
    assert utils.first_paragraph(text) == "First link with bold text."
    assert utils.first_paragraph("") == ""
    assert utils.first_paragraph("# Only a heading") == ""


def test_first_paragraph_truncates():
    result = utils.first_paragraph("word " * 100, limit=20)
    assert result.endswith("…")
    assert len(result) <= 20


def test_content_file_and_hidden_path_rules():
    assert utils.is_content_file(Path("post.md"))
    assert utils.is_content_file(Path("post.MDX"))
    assert not utils.is_content_file(Path("notes.txt"))
    assert utils.is_hidden_path(Path("_drafts/post.md"))
    assert utils.is_hidden_path(Path("posts/.scratch.md"))
    assert not utils.is_hidden_path(Path("posts/post.md"))


def test_ensure_clean_dir(tmp_path):
    target = tmp_path / "build"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "old.txt").write_text("old", encoding="utf-8")
    utils.ensure_clean_dir(target)
    assert target.exists()
    assert list(target.iterdir()) == []

    missing = tmp_path / "missing-dir"
    utils.ensure_clean_dir(missing)
    assert missing.is_dir()
