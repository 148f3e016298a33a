"""
htmlua - page compiler

Expands <include> components and renders markdown, code and Lua regions in
HTML pages.
"""

__version__ = "0.1.0"

from .compiler import Compiler, page_compile, content_serve
from .slots import slots_resolve
from .passes import scripts_run, markdown_render, syntax_highlight, footnotes_generate
from .log import LOG, state_connectToLogger

__all__ = [
    "Compiler",
    "page_compile",
    "content_serve",
    "slots_resolve",
    "scripts_run",
    "markdown_render",
    "syntax_highlight",
    "footnotes_generate",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
