"""
Front ends around content_serve()

    htmlua-cgi    CGI handler: compiles PATH_INFO and writes a CGI response
    htmlua-serve  Development HTTP server bound to [server] host/port

The compiler only returns markup or raises; status codes, headers and error
pages are decided here.
"""

import html
import os
import sys
from argparse import ArgumentParser, ArgumentDefaultsHelpFormatter, Namespace
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Optional, TextIO, Tuple
from urllib.parse import unquote, urlsplit

from ..config.settings import AppSettings, settings_load
from . import __version__
from .compiler import Compiler
from .errors import ComponentLoadError, HtmluaError, InvalidRequest
from .log import LOG, state_connectToLogger

CONTENT_TYPE = "text/html; charset=utf-8"


def status_forError(error: Exception) -> Tuple[int, str]:
    """
    HTTP status for a compile failure

    Missing pages/components and bad request paths are 404s; everything
    else is a server error.
    """
    if isinstance(error, (ComponentLoadError, InvalidRequest)):
        return 404, "Not Found"
    return 500, "Internal Server Error"


def errorPage_render(status: int, reason: str, error: Exception) -> str:
    """Minimal error page; the error message is escaped"""
    return (
        "<!DOCTYPE html>\n"
        f"<html><head><title>{status} {reason}</title></head>"
        f"<body><h1>{status} {reason}</h1>"
        f"<p>{html.escape(str(error))}</p></body></html>\n"
    )


def response_build(request_path: str, compiler: Compiler) -> Tuple[int, str, str]:
    """
    Compile a request into (status, reason, body)

    Only HtmluaError is turned into an error page; anything else is a bug
    and propagates.
    """
    try:
        return 200, "OK", compiler.compile(request_path)
    except HtmluaError as e:
        status, reason = status_forError(e)
        LOG(f"{request_path}: {type(e).__name__}: {e}", level=1)
        return status, reason, errorPage_render(status, reason, e)


def cgi_main(out: Optional[TextIO] = None) -> int:
    """
    CGI entry point

    Reads PATH_INFO, writes headers, a blank line and the page to stdout.

    Returns:
        Process exit code (0 on success)
    """
    out = out or sys.stdout
    request_path = os.environ.get("PATH_INFO", "")

    try:
        settings = settings_load()
    except HtmluaError as e:
        out.write(f"Status: 500 Internal Server Error\nContent-Type: {CONTENT_TYPE}\n\n")
        out.write(errorPage_render(500, "Internal Server Error", e))
        return 1

    status, reason, body = response_build(request_path, Compiler(settings))
    if status != 200:
        out.write(f"Status: {status} {reason}\n")
    out.write(f"Content-Type: {CONTENT_TYPE}\n\n")
    out.write(body)
    return 0 if status == 200 else 1


class PageServer(ThreadingHTTPServer):
    """HTTP server carrying the compiler its handlers use"""

    def __init__(self, address: Tuple[str, int], compiler: Compiler) -> None:
        super().__init__(address, PageRequestHandler)
        self.compiler = compiler


class PageRequestHandler(BaseHTTPRequestHandler):
    """
    Serves every GET by compiling the request path

    Each request builds its own tree and sandboxes; the compiler only
    carries read-only settings, so handler threads share nothing mutable.
    """

    server_version = f"htmlua/{__version__}"

    def do_GET(self) -> None:
        request_path = unquote(urlsplit(self.path).path)
        status, reason, body = response_build(request_path, self.server.compiler)
        payload = body.encode("utf-8")

        self.send_response(status, reason)
        self.send_header("Content-Type", CONTENT_TYPE)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format: str, *args) -> None:
        LOG(f"{self.address_string()} {format % args}", level=2)


serve_parser = ArgumentParser(
    description="htmlua development server",
    formatter_class=ArgumentDefaultsHelpFormatter,
)
serve_parser.add_argument("--config", default=None, type=str, help="TOML config file")
serve_parser.add_argument("--host", default=None, type=str, help="Bind host (default: [server] host)")
serve_parser.add_argument("--port", default=None, type=int, help="Bind port (default: [server] port)")
serve_parser.add_argument(
    "-v", "--verbosity", action="count", default=1,
    help="Increase output verbosity (can be repeated: -v, -vv)",
)
serve_parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def server_create(settings: AppSettings, verbosity: int = 1,
                  host: Optional[str] = None, port: Optional[int] = None) -> PageServer:
    """Build (but don't start) a development server for settings"""
    address = (host or settings.server.host, settings.server.port if port is None else port)
    return PageServer(address, Compiler(settings, verbosity=verbosity))


def serve_main(argv: Optional[list] = None) -> int:
    """Development server entry point"""
    options: Namespace = serve_parser.parse_args(argv)
    state_connectToLogger(options)

    settings = settings_load(Path(options.config) if options.config else None)
    server = server_create(settings, options.verbosity, options.host, options.port)
    host, port = server.server_address[:2]
    LOG(f"Serving {settings.paths.pages} on http://{host}:{port}/", level=1)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        LOG("Shutting down", level=1)
    finally:
        server.server_close()
    return 0
