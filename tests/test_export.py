"""
Static export stages (python -m htmlua inputdir outputdir)
"""

import pytest

from htmlua.__main__ import env_check, pages_collect, pages_compile, results_report
from htmlua.models import ProgramState, pipeline


@pytest.fixture
def export_site(tmp_path, monkeypatch):
    monkeypatch.setenv("HTMLUA_CONFIG", str(tmp_path / "missing.toml"))
    pages = tmp_path / "pages"
    (pages / "components").mkdir(parents=True)
    (pages / "blog").mkdir()
    (pages / "components" / "nav.html").write_text('<nav id="nav">menu</nav>')
    (pages / "index.html").write_text('<include path="nav.html" /><markdown># Home</markdown>')
    (pages / "blog" / "post.html").write_text("<p><lua>htmlua.print(1 + 1)</lua></p>")
    return tmp_path


def program_state(site, **kwargs):
    return ProgramState(
        inputdir=site / "pages",
        outputdir=site / "out",
        verbosity=0,
        componentsDir=str(site / "pages" / "components"),
        **kwargs,
    )


class TestExport:

    def test_env_check_sets_roots(self, export_site):
        state = env_check(program_state(export_site))

        assert state.envOK
        assert state.settings.paths.pages == export_site / "pages"
        assert state.settings.paths.components == export_site / "pages" / "components"
        assert (export_site / "out").is_dir()

    def test_missing_inputdir_exits(self, export_site):
        state = program_state(export_site)
        state.inputdir = export_site / "absent"

        with pytest.raises(SystemExit):
            env_check(state)

    def test_components_are_not_pages(self, export_site):
        state = pipeline(program_state(export_site), env_check, pages_collect)
        names = [p.relative_to(export_site / "pages").as_posix() for p in state.pageFiles]

        assert names == ["blog/post.html", "index.html"]

    def test_pages_written(self, export_site):
        state = pipeline(program_state(export_site), env_check, pages_collect, pages_compile)
        out = export_site / "out"

        assert state.compileResult["status"] is True
        assert state.compileResult["pages"] == 2
        assert (out / "index.html").read_text() == '<nav id="nav">menu</nav><h1>Home</h1>\n'
        assert (out / "blog" / "post.html").read_text() == "<p>2</p>"
        assert not (out / "components").exists()

    def test_failure_reported_and_others_written(self, export_site):
        (export_site / "pages" / "bad.html").write_text('<include path="absent.html" />')
        state = pipeline(program_state(export_site), env_check, pages_collect, pages_compile)

        assert state.compileResult["status"] is False
        assert state.compileResult["pages"] == 2
        assert [page for page, _ in state.compileResult["failed"]] == ["bad.html"]
        with pytest.raises(SystemExit):
            results_report(state)
