"""
Script pass and Lua sandbox tests

Each <lua> region runs in its own sandbox; output replaces the region as text.
"""

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from htmlua.config.settings import ScriptSettings
from htmlua.lib.document import document_parse
from htmlua.lib.errors import ScriptError
from htmlua.lib.passes import scripts_run
from htmlua.lib.sandbox import OutputBuffer, Sandbox, USER_AGENT, script_run


PAGE = """
<!DOCTYPE html>
<html>
<head>
    <title>Basic HTML Page</title>
</head>
<body>
    <h1>Hello World</h1>
    <p>This is a paragraph.</p>
    <span id="ta"><lua>
        htmlua.println("Test from Lua!")
    </lua></span>
    <div>
        <span id="tb"><lua>htmlua.println("test 2")</lua></span>
    </div>
</body>
</html>"""


class TestScriptPass:
    """<lua> regions in a document"""

    def test_output_replaces_region(self):
        tree = document_parse(PAGE)
        scripts_run(tree)

        assert tree.select_one("#ta").get_text() == "Test from Lua!\n"
        assert tree.select("lua") == []

    def test_regions_are_isolated(self):
        """Each region only sees its own output"""
        tree = document_parse(PAGE)
        scripts_run(tree)

        assert tree.select_one("#ta").get_text() == "Test from Lua!\n"
        assert tree.select_one("#tb").get_text() == "test 2\n"

    def test_globals_do_not_leak_between_regions(self):
        """A variable set in one region is nil in the next"""
        tree = document_parse(
            '<p id="a"><lua>shared = 42 htmlua.print(shared)</lua></p>'
            '<p id="b"><lua>htmlua.print(tostring(shared))</lua></p>'
        )
        scripts_run(tree)

        assert tree.select_one("#a").get_text() == "42"
        assert tree.select_one("#b").get_text() == "nil"

    def test_output_is_text_not_markup(self):
        """Printed tags are escaped, not parsed"""
        tree = document_parse('<div id="out"><lua>htmlua.print("<b>bold</b>")</lua></div>')
        scripts_run(tree)

        out = tree.select_one("#out")
        assert out.find("b") is None
        assert out.get_text() == "<b>bold</b>"
        assert "&lt;b&gt;" in str(tree)

    def test_tags_in_source_reach_the_script(self):
        """Markup inside a Lua string is run as written"""
        tree = document_parse(
            '<div id="out"><lua>local s = "<em>hi</em>" htmlua.print(#s)</lua></div>'
        )
        scripts_run(tree)

        assert tree.select_one("#out").get_text() == "11"

    def test_entities_in_source_are_decoded(self):
        tree = document_parse('<p id="out"><lua>if 1 &lt; 2 then htmlua.print("yes") end</lua></p>')
        scripts_run(tree)

        assert tree.select_one("#out").get_text() == "yes"

    def test_empty_region_removed(self):
        tree = document_parse('<div id="out"><lua></lua></div>')
        scripts_run(tree)

        assert tree.select("lua") == []
        assert tree.select_one("#out").get_text() == ""

    def test_error_aborts_pass(self):
        """Regions before the failure stay replaced, the failing one remains"""
        tree = document_parse(
            '<p id="ok"><lua>htmlua.print("fine")</lua></p>'
            '<p id="bad"><lua>error("boom")</lua></p>'
        )
        with pytest.raises(ScriptError, match="boom"):
            scripts_run(tree)

        assert tree.select_one("#ok").get_text() == "fine"
        assert tree.select_one("#bad lua") is not None

    def test_syntax_error(self):
        tree = document_parse("<lua>this is not lua</lua>")
        with pytest.raises(ScriptError):
            scripts_run(tree)


class TestSandbox:
    """Capabilities installed in a fresh sandbox"""

    def test_print_and_println(self):
        assert script_run('htmlua.print("a") htmlua.println("b") htmlua.print("c")') == "ab\nc"

    def test_values_rendered_like_lua(self):
        assert script_run("htmlua.print(true) htmlua.print(false) htmlua.print(7)") == "truefalse7"

    def test_python_bridge_not_exposed(self):
        assert script_run("htmlua.print(tostring(python))") == "nil"

    def test_http_can_be_disabled(self):
        assert script_run("htmlua.print(tostring(htmlua.http))", allow_http=False) == "nil"

    def test_buffer_bound_to_sandbox(self):
        """print/println write to the buffer the sandbox was built with"""
        first, second = OutputBuffer(), OutputBuffer()
        Sandbox(first).run('htmlua.print("one")')
        Sandbox(second).run('htmlua.print("two")')

        assert first.text() == "one"
        assert second.text() == "two"

    def test_decode_json(self):
        source = """
            local data = htmlua.http.decode_json('{"name": "htmlua", "tags": ["a", "b"], "n": 3}')
            htmlua.print(data.name .. " " .. data.tags[2] .. " " .. data.n)
        """
        assert script_run(source) == "htmlua b 3"


def fake_response(status=200, body=b"", headers=None):
    response = requests.Response()
    response.status_code = status
    response._content = body
    response.encoding = "utf-8"
    response.headers = CaseInsensitiveDict(headers or {})
    return response


class TestHttpLibrary:
    """htmlua.http with the network replaced by a stub"""

    @pytest.fixture
    def calls(self, monkeypatch):
        recorded = []

        def request(session, method, url, **kwargs):
            recorded.append({
                "method": method,
                "url": url,
                "kwargs": kwargs,
                "user_agent": session.headers.get("User-Agent"),
            })
            return fake_response(200, b'{"ok": true, "count": 2}', {"X-Served-By": "stub"})

        monkeypatch.setattr(requests.Session, "request", request)
        return recorded

    def test_get(self, calls):
        source = """
            local res = htmlua.http.get("http://example.test/api")
            htmlua.print(res.status .. " " .. res.headers["X-Served-By"] .. " ")
            htmlua.print(htmlua.http.decode_json(res.body).count)
        """
        assert script_run(source) == "200 stub 2"
        assert calls[0]["method"] == "GET"
        assert calls[0]["url"] == "http://example.test/api"
        assert calls[0]["kwargs"]["timeout"] == 3.0
        assert calls[0]["user_agent"] == USER_AGENT

    def test_query_form_and_json_helpers(self, calls):
        script_run("""
            htmlua.http.get_with_data("http://example.test/q", {q = "lua"})
            htmlua.http.post_with_data_form("http://example.test/f", {a = "1"})
            htmlua.http.post_with_data_json("http://example.test/j", {b = "2"})
        """)
        assert calls[0]["kwargs"]["params"] == {"q": "lua"}
        assert calls[1]["method"] == "POST"
        assert calls[1]["kwargs"]["data"] == {"a": "1"}
        assert calls[2]["kwargs"]["json"] == {"b": "2"}

    def test_request_table(self, calls):
        script_run("""
            htmlua.http.request{
                method = "put",
                url = "http://example.test/r",
                headers = {["X-Trace"] = "abc"},
                bearer_auth = {token = "secret"},
                body = "payload",
                timeout = 10,
            }
        """)
        call = calls[0]
        assert call["method"] == "PUT"
        assert call["kwargs"]["headers"]["X-Trace"] == "abc"
        assert call["kwargs"]["headers"]["Authorization"] == "Bearer secret"
        assert call["kwargs"]["data"] == "payload"
        assert call["kwargs"]["timeout"] == 10.0

    def test_request_requires_url(self, calls):
        with pytest.raises(ScriptError, match="url"):
            script_run('htmlua.http.request{method = "GET"}')

    def test_timeout_from_settings(self, calls):
        settings = ScriptSettings(http_timeout=7.5)
        tree = document_parse('<lua>htmlua.http.get("http://example.test/")</lua>')
        scripts_run(tree, settings)

        assert calls[0]["kwargs"]["timeout"] == 7.5

    def test_transport_failure_is_script_error(self, monkeypatch):
        def request(session, method, url, **kwargs):
            raise requests.ConnectionError("unreachable")

        monkeypatch.setattr(requests.Session, "request", request)
        with pytest.raises(ScriptError, match="unreachable"):
            script_run('htmlua.http.get("http://example.test/")')
