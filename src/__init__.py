"""
htmlua - HTML page compiler

Expands <include> components and renders markdown, syntax-highlighted code,
footnotes and embedded Lua in HTML pages.
"""

__version__ = "0.1.0"

from .lib import Compiler, page_compile, content_serve, LOG, state_connectToLogger

__all__ = ["Compiler", "page_compile", "content_serve", "LOG", "state_connectToLogger", "__version__"]
