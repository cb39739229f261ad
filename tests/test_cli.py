from pathlib import Path

from click.testing import CliRunner

from folio import __version__
from folio.cli import cli
from folio.content import ContentLoader


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def create_project(tmp_path: Path) -> Path:
    project = tmp_path / "blog"
    write(
        project / "content" / "2024-01-01-hello.md",
        "---\ntitle: Hello\ndate: 2024-01-01\n---\nWelcome.\n",
    )
    write(
        project / "content" / "vault-plugin.mdx",
        '---\ntitle: Vault Plugin\ndate: 2024-04-04\n---\n<Notice type="tip">\nHi\n</Notice>\n',
    )
    write(
        project / "content" / "wip.md",
        "---\ntitle: Work in progress\ndate: 2024-05-01\ndraft: true\n---\nSoon.\n",
    )
    return project


def test_cli_build(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    monkeypatch.chdir(project)
    runner = CliRunner()

    result = runner.invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Built 2 documents" in result.output
    assert (project / "output" / "vault-plugin" / "index.html").exists()

    result = runner.invoke(
        cli,
        ["-v", "build", "--drafts", "--workers", "2", "--output", "preview"],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert "Built 3 documents" in result.output
    assert (project / "preview" / "wip" / "index.html").exists()


def test_cli_build_reports_skipped_posts(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    write(
        project / "content" / "broken.md",
        "---\ntitle: Broken\ndate: 2024-06-01\n---\n<Foo />\n",
    )
    monkeypatch.chdir(project)
    runner = CliRunner()

    result = runner.invoke(cli, ["build"])
    assert result.exit_code == 0
    assert "Skipped 1 post(s)" in result.output
    assert "content/broken.md" in result.output
    assert "unknown component 'Foo'" in result.output

    result = runner.invoke(cli, ["build", "--strict"])
    assert result.exit_code == 1


def test_cli_build_fails_on_duplicate_slug(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    write(project / "content" / "hello.md", "---\ntitle: Again\ndate: 2024-02-01\n---\nx\n")
    monkeypatch.chdir(project)

    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "Slug: hello" in result.output
    assert "content/hello.md" in result.output


def test_cli_build_fails_on_template_error(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    write(project / "layouts" / "post.html.jinja", "{% if %}")
    monkeypatch.chdir(project)

    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "Template syntax error" in result.output


def test_cli_build_without_content_dir(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Expected content directory" in result.output


def test_cli_build_interrupted(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    monkeypatch.chdir(project)

    def interrupted(*args, **kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr("folio.build.build_site", interrupted)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 130
    assert "Build interrupted" in result.output
    assert not (project / "output").exists()


def test_cli_check(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    monkeypatch.chdir(project)
    runner = CliRunner()

    result = runner.invoke(cli, ["check"])
    assert result.exit_code == 0
    assert "OK: 2 documents" in result.output
    assert not (project / "output").exists()

    write(project / "content" / "bad.md", "---\ntitle: Bad\n---\nNo date\n")
    result = runner.invoke(cli, ["check"])
    assert result.exit_code == 1
    assert "1 problem(s) found" in result.output
    assert "content/bad.md" in result.output


def test_cli_list(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    monkeypatch.chdir(project)
    runner = CliRunner()

    result = runner.invoke(cli, ["list"])
    assert result.exit_code == 0
    lines = [line for line in result.output.splitlines() if "  /" in line]
    assert lines == [
        "2024-04-04  vault-plugin  /vault-plugin/  Vault Plugin",
        "2024-01-01  hello  /hello/  Hello",
    ]

    result = runner.invoke(cli, ["list", "--drafts"])
    assert "2024-05-01  wip  /wip/  Work in progress [draft]" in result.output


class FakeQuestion:
    def __init__(self, value):
        self.value = value

    def ask(self):
        return self.value


def test_cli_post_creates_post(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    monkeypatch.chdir(project)
    answers = iter(["Hello World", "python, vault"])
    monkeypatch.setattr("folio.cli.questionary.text", lambda *a, **k: FakeQuestion(next(answers)))
    monkeypatch.setattr("folio.cli.questionary.confirm", lambda *a, **k: FakeQuestion(False))

    result = CliRunner().invoke(cli, ["post"])
    assert result.exit_code == 0
    target = project / "content" / "hello-world.md"
    assert "Created content/hello-world.md" in result.output

    unit = ContentLoader(project / "content").load_unit(target)
    assert unit.slug == "hello-world"
    assert unit.title == "Hello World"
    assert unit.categories == ("python", "vault")
    assert unit.draft is False


def test_cli_post_refuses_existing_slug(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    monkeypatch.chdir(project)
    answers = iter(["Hello", ""])
    monkeypatch.setattr("folio.cli.questionary.text", lambda *a, **k: FakeQuestion(next(answers)))
    monkeypatch.setattr("folio.cli.questionary.confirm", lambda *a, **k: FakeQuestion(True))

    result = CliRunner().invoke(cli, ["post"])
    assert result.exit_code == 1
    assert "already exists" in result.output
    assert "2024-01-01-hello.md" in result.output


def test_cli_post_abort_and_missing_content_dir(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["post"])
    assert result.exit_code == 1
    assert "No content/ directory found" in result.output

    project = create_project(tmp_path)
    monkeypatch.chdir(project)
    monkeypatch.setattr("folio.cli.questionary.text", lambda *a, **k: FakeQuestion(None))
    result = CliRunner().invoke(cli, ["post"])
    assert result.exit_code == 1
    assert not (project / "content" / "none.md").exists()


def test_version_option():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert f"folio, version {__version__}" in result.output


def test_module_main_entrypoint():
    from folio.__main__ import main

    assert callable(main)


def test_main_invokes_cli(monkeypatch):
    import folio.cli as cli_mod

    called = {}
    monkeypatch.setattr(cli_mod, "cli", lambda: called.setdefault("ran", True))
    cli_mod.main()
    assert called == {"ran": True}
