"""
Page compiler: request path in, finished markup out

Compiles one page through a fixed pipeline of stages sharing a PageState:

    request_check → page_load → slots_stage → markdown_stage
        → syntax_stage → scripts_stage → footnotes_stage → html_serialize

Includes resolve first so included markdown, code and script regions are
present for the later passes. Scripts run after markdown and highlighting,
so their output is never reinterpreted as markdown or code. Footnotes are
purely structural and run last.

Nothing is cached: every call re-reads the page and its components.
"""

from pathlib import Path
from typing import Optional

from ..config.settings import AppSettings, settings_load
from ..models.state import PageState, pipeline
from .document import document_load, document_serialize
from .errors import InvalidRequest
from .log import LOG, state_connectToLogger
from .passes import footnotes_generate, markdown_render, scripts_run, syntax_highlight
from .slots import slots_resolve

INDEX_PAGE = "index.html"


def pagePath_resolve(request_path: str, pages_root: Path) -> Path:
    """
    Map a request path onto a file under the pages root

    Args:
        request_path: Path from the request, must start with "/"
        pages_root: Configured pages directory

    Returns:
        Page file path (a directory maps to its index.html)

    Raises:
        InvalidRequest: If the path is not absolute (checked before any I/O)
                        or resolves outside the pages root
    """
    if not request_path.startswith("/"):
        raise InvalidRequest(f"Request path must start with '/': {request_path!r}")

    relative = request_path[1:]
    root = Path(pages_root).resolve()
    page_path = (root / relative).resolve()
    if page_path != root and root not in page_path.parents:
        raise InvalidRequest(f"Request path escapes the pages root: {request_path!r}")

    if page_path.is_dir():
        page_path = page_path / INDEX_PAGE
    return page_path


def request_check(inputstate: PageState) -> PageState:
    """Validate the request path and resolve the page file"""
    state = inputstate.copy()
    state.pagePath = pagePath_resolve(state.requestPath, state.settings.paths.pages)
    LOG(f"Compiling {state.requestPath} from {state.pagePath}", level=1)
    return state


def page_load(inputstate: PageState) -> PageState:
    """Read and parse the page"""
    state = inputstate.copy()
    state.document = document_load(state.pagePath)
    return state


def slots_stage(inputstate: PageState) -> PageState:
    """Expand includes and slots"""
    state = inputstate.copy()
    slots_resolve(
        state.document,
        state.settings.paths.components,
        max_depth=state.settings.max_include_depth,
    )
    return state


def markdown_stage(inputstate: PageState) -> PageState:
    state = inputstate.copy()
    markdown_render(state.document)
    return state


def syntax_stage(inputstate: PageState) -> PageState:
    state = inputstate.copy()
    syntax_highlight(
        state.document,
        state.settings.syntax_highlighting,
        state.settings.paths.themes,
    )
    return state


def scripts_stage(inputstate: PageState) -> PageState:
    state = inputstate.copy()
    scripts_run(state.document, state.settings.scripts)
    return state


def footnotes_stage(inputstate: PageState) -> PageState:
    state = inputstate.copy()
    footnotes_generate(state.document)
    return state


def html_serialize(inputstate: PageState) -> PageState:
    """Serialize the finished tree"""
    state = inputstate.copy()
    state.html = document_serialize(state.document)
    LOG(f"Compiled {state.requestPath}: {len(state.html)} chars", level=2)
    return state


class Compiler:
    """
    Compiles requested pages with one set of settings

    The settings are read-only; every compile() builds its own tree,
    sandboxes and highlighter, so a Compiler holds no per-request state.
    """

    def __init__(self, settings: AppSettings, verbosity: int = 0) -> None:
        """
        Args:
            settings: Loaded application settings
            verbosity: Logging verbosity level (0-3)
        """
        self.settings = settings
        self.verbosity = verbosity

    def compile(self, request_path: str) -> str:
        """
        Compile one page

        Args:
            request_path: Request path, e.g. "/blog/post.html"

        Returns:
            Serialized markup

        Raises:
            HtmluaError: Any failure in any stage aborts the compile
        """
        state = PageState(
            requestPath=request_path,
            settings=self.settings,
            verbosity=self.verbosity,
        )
        state_connectToLogger(state)

        final_state = pipeline(
            state,
            request_check,
            page_load,
            slots_stage,
            markdown_stage,
            syntax_stage,
            scripts_stage,
            footnotes_stage,
            html_serialize,
        )
        return final_state.html


def page_compile(request_path: str, settings: AppSettings, verbosity: int = 0) -> str:
    """Compile request_path with settings (see Compiler.compile)"""
    return Compiler(settings, verbosity=verbosity).compile(request_path)


def content_serve(request_path: str, settings: Optional[AppSettings] = None) -> str:
    """
    Front-end entry point

    Args:
        request_path: Request path (e.g. PATH_INFO)
        settings: Loaded settings (default: settings_load())

    Returns:
        Page markup; protocol framing is the caller's job

    Raises:
        HtmluaError: On any failure
    """
    return page_compile(request_path, settings or settings_load())
