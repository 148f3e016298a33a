"""
CGI handler and development server
"""

import io
import threading
import urllib.error
import urllib.request

import pytest

from htmlua.lib.errors import (
    ComponentLoadError,
    IncludeCycleError,
    InvalidRequest,
    ScriptError,
)
from htmlua.lib.frontend import cgi_main, errorPage_render, server_create, status_forError


@pytest.fixture
def cgi_env(site, monkeypatch):
    monkeypatch.setenv("HTMLUA_CONFIG", str(site / "missing.toml"))
    monkeypatch.setenv("HTMLUA_PATHS__PAGES", str(site / "pages"))
    monkeypatch.setenv("HTMLUA_PATHS__COMPONENTS", str(site / "components"))
    (site / "pages" / "hello.html").write_text("<p>hello</p>")
    (site / "pages" / "broken.html").write_text("<lua>error('nope')</lua>")
    return site


class TestStatus:

    @pytest.mark.parametrize("error, status", [
        (ComponentLoadError("gone"), 404),
        (InvalidRequest("bad"), 404),
        (ScriptError("boom"), 500),
        (IncludeCycleError("loop"), 500),
    ])
    def test_status_for_error(self, error, status):
        assert status_forError(error)[0] == status

    def test_error_page_escapes_message(self):
        page = errorPage_render(500, "Internal Server Error", ScriptError("<script>"))

        assert "&lt;script&gt;" in page
        assert "<script>" not in page


class TestCgi:

    def test_success(self, cgi_env, monkeypatch):
        monkeypatch.setenv("PATH_INFO", "/hello.html")
        out = io.StringIO()

        assert cgi_main(out) == 0
        assert out.getvalue() == "Content-Type: text/html; charset=utf-8\n\n<p>hello</p>"

    def test_missing_page_is_404(self, cgi_env, monkeypatch):
        monkeypatch.setenv("PATH_INFO", "/nope.html")
        out = io.StringIO()

        assert cgi_main(out) == 1
        assert out.getvalue().startswith("Status: 404 Not Found\nContent-Type: text/html")

    def test_missing_path_info_is_404(self, cgi_env, monkeypatch):
        monkeypatch.delenv("PATH_INFO", raising=False)
        out = io.StringIO()

        cgi_main(out)
        assert out.getvalue().startswith("Status: 404 Not Found\n")

    def test_script_failure_is_500(self, cgi_env, monkeypatch):
        monkeypatch.setenv("PATH_INFO", "/broken.html")
        out = io.StringIO()

        assert cgi_main(out) == 1
        headers, body = out.getvalue().split("\n\n", 1)
        assert headers.startswith("Status: 500 Internal Server Error")
        assert "ScriptError" not in headers
        assert "<h1>500 Internal Server Error</h1>" in body

    def test_bad_config_is_500(self, site, monkeypatch):
        config = site / "bad.toml"
        config.write_text("[paths")
        monkeypatch.setenv("HTMLUA_CONFIG", str(config))
        monkeypatch.setenv("PATH_INFO", "/hello.html")
        out = io.StringIO()

        assert cgi_main(out) == 1
        assert out.getvalue().startswith("Status: 500 Internal Server Error\n")


class TestServer:

    def test_serves_compiled_pages(self, settings, site):
        (site / "pages" / "hello.html").write_text("<p>hello</p>")
        server = server_create(settings, verbosity=0, host="127.0.0.1", port=0)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        base = "http://127.0.0.1:%d" % server.server_address[1]
        opener = urllib.request.build_opener(urllib.request.ProxyHandler({}))
        try:
            with opener.open(base + "/hello.html?x=1") as response:
                assert response.status == 200
                assert response.headers["Content-Type"] == "text/html; charset=utf-8"
                assert response.read().decode("utf-8") == "<p>hello</p>"

            with pytest.raises(urllib.error.HTTPError) as excinfo:
                opener.open(base + "/missing.html")
            assert excinfo.value.code == 404
        finally:
            server.shutdown()
            server.server_close()
            thread.join()
