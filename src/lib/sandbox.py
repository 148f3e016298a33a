"""
Lua sandbox for <lua> regions

Every region runs in its own LuaRuntime with its own OutputBuffer. Scripts
see one global table, ``htmlua``:

    htmlua.print(text)       -- append text to the region's output
    htmlua.println(text)     -- append text and a newline
    htmlua.http.get(url)     -- HTTP helpers (see HttpLibrary)

The Python bridge that lupa normally installs (python.eval, python.builtins)
is not registered, and the ``python`` global is removed.
"""

import json
from typing import Any, Dict, List, Optional

import requests
from lupa import LuaError, LuaRuntime, lua_type

from . import __version__
from .errors import ScriptError
from .log import LOG

USER_AGENT = f"htmlua/{__version__}"
DEFAULT_HTTP_TIMEOUT = 3.0


def value_toText(value: Any) -> str:
    """Render a value received from Lua the way Lua's tostring would"""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def table_toDict(value: Any) -> Dict[str, Any]:
    """Convert a Lua table argument to a plain dict (nil → empty dict)"""
    if value is None:
        return {}
    if lua_type(value) != "table":
        raise TypeError(f"expected a table, got {lua_type(value) or type(value).__name__}")
    return {value_toText(k): table_toValue(v) for k, v in value.items()}


def table_toValue(value: Any) -> Any:
    """Recursively convert nested Lua tables; other values pass through"""
    if lua_type(value) == "table":
        return {value_toText(k): table_toValue(v) for k, v in value.items()}
    return value


class OutputBuffer:
    """
    Captured output of one <lua> region

    The bound methods print/println are what the script calls through the
    htmlua table.
    """

    def __init__(self) -> None:
        self._parts: List[str] = []

    def print(self, text: Any = "") -> None:
        self._parts.append(value_toText(text))

    def println(self, text: Any = "") -> None:
        self._parts.append(value_toText(text) + "\n")

    def text(self) -> str:
        return "".join(self._parts)


class HttpLibrary:
    """
    htmlua.http: blocking HTTP helpers for scripts

    Every function returns a table {status=, body=, headers={...}}; a
    transport failure raises a Lua error, failing the region. The requests
    session is created on first use.
    """

    def __init__(self, lua: LuaRuntime, timeout: float = DEFAULT_HTTP_TIMEOUT) -> None:
        self.lua = lua
        self.timeout = timeout
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers["User-Agent"] = USER_AGENT
        return self._session

    def response_toLua(self, response: requests.Response) -> Any:
        return self.lua.table_from(
            {
                "status": response.status_code,
                "body": response.text,
                "headers": dict(response.headers),
            },
            recursive=True,
        )

    def send(self, method: str, url: str, **kwargs: Any) -> Any:
        kwargs.setdefault("timeout", self.timeout)
        LOG(f"Script HTTP {method} {url}", level=2)
        response = self.session.request(method, value_toText(url), **kwargs)
        return self.response_toLua(response)

    def get(self, url: str) -> Any:
        return self.send("GET", url)

    def post(self, url: str) -> Any:
        return self.send("POST", url)

    def get_with_data(self, url: str, data: Any) -> Any:
        return self.send("GET", url, params=table_toDict(data))

    def post_with_data_form(self, url: str, data: Any) -> Any:
        return self.send("POST", url, data=table_toDict(data))

    def post_with_data_json(self, url: str, data: Any) -> Any:
        return self.send("POST", url, json=table_toDict(data))

    def request(self, spec: Any) -> Any:
        """
        Fully specified request:

            htmlua.http.request{
                method = "PUT", url = "https://...",
                headers = {["X-Token"] = "..."},
                basic_auth = {username = "u", password = "p"},
                bearer_auth = {token = "..."},
                body = "raw", json = {k = "v"}, timeout = 10,
            }
        """
        options = table_toDict(spec)
        for required in ("method", "url"):
            if not options.get(required):
                raise ValueError(f"http.request: missing '{required}'")

        kwargs: Dict[str, Any] = {}
        headers = {k: value_toText(v) for k, v in (options.get("headers") or {}).items()}

        basic_auth = options.get("basic_auth")
        if basic_auth:
            kwargs["auth"] = (
                value_toText(basic_auth.get("username")),
                value_toText(basic_auth.get("password", "")),
            )
        bearer_auth = options.get("bearer_auth")
        if bearer_auth:
            headers["Authorization"] = f"Bearer {value_toText(bearer_auth.get('token'))}"

        if headers:
            kwargs["headers"] = headers
        if options.get("body") is not None:
            kwargs["data"] = value_toText(options["body"])
        if options.get("json") is not None:
            kwargs["json"] = options["json"]
        if options.get("timeout") is not None:
            kwargs["timeout"] = float(options["timeout"])

        return self.send(value_toText(options["method"]).upper(), options["url"], **kwargs)

    def decode_json(self, text: str) -> Any:
        decoded = json.loads(value_toText(text))
        if isinstance(decoded, (dict, list)):
            return self.lua.table_from(decoded, recursive=True)
        return decoded

    def table(self) -> Any:
        return self.lua.table_from({
            "get": self.get,
            "post": self.post,
            "get_with_data": self.get_with_data,
            "post_with_data_form": self.post_with_data_form,
            "post_with_data_json": self.post_with_data_json,
            "request": self.request,
            "decode_json": self.decode_json,
        })


class Sandbox:
    """
    A fresh Lua interpreter with the htmlua table installed

    Attributes:
        lua: The LuaRuntime
        buffer: Output buffer the print/println capabilities write to
    """

    def __init__(
        self,
        buffer: OutputBuffer,
        allow_http: bool = True,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self.buffer = buffer
        self.lua = LuaRuntime(
            register_eval=False,
            register_builtins=False,
            unpack_returned_tuples=True,
        )
        globals_table = self.lua.globals()
        globals_table["python"] = None

        capabilities: Dict[str, Any] = {
            "print": buffer.print,
            "println": buffer.println,
        }
        if allow_http:
            capabilities["http"] = HttpLibrary(self.lua, http_timeout).table()
        globals_table["htmlua"] = self.lua.table_from(capabilities)

    def run(self, source: str) -> None:
        """
        Execute a chunk of Lua

        Raises:
            ScriptError: On a Lua error, or an exception raised by one of the
                         htmlua functions the script called
        """
        try:
            self.lua.execute(source)
        except LuaError as e:
            raise ScriptError(f"Lua error: {e}") from e
        except Exception as e:
            # lupa re-raises Python exceptions from callbacks unchanged
            raise ScriptError(f"Script failed: {e}") from e


def script_run(source: str, allow_http: bool = True, http_timeout: float = DEFAULT_HTTP_TIMEOUT) -> str:
    """
    Run source in a fresh sandbox and return what it printed

    Args:
        source: Lua code
        allow_http: Install htmlua.http
        http_timeout: Default HTTP timeout in seconds
    """
    buffer = OutputBuffer()
    Sandbox(buffer, allow_http=allow_http, http_timeout=http_timeout).run(source)
    return buffer.text()
