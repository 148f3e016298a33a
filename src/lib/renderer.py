"""
Markdown renderer

markdown-it-py configured with every extension the compiler supports:
CommonMark plus GFM tables and strikethrough, footnotes, definition lists
and task lists. Raw HTML is passed through; page content is trusted.
"""

from typing import Optional

from markdown_it import MarkdownIt
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

EXTENSION_RULES = ["table", "strikethrough"]


def renderer_create() -> MarkdownIt:
    """
    Build a markdown renderer with all extensions enabled

    Returns:
        Configured MarkdownIt instance
    """
    return (
        MarkdownIt("commonmark", {"html": True})
        .enable(EXTENSION_RULES)
        .use(footnote_plugin)
        .use(deflist_plugin)
        .use(tasklists_plugin)
    )


def markdown_toHtml(text: str, renderer: Optional[MarkdownIt] = None) -> str:
    """
    Convert markdown text to a markup fragment

    Args:
        text: Markdown source
        renderer: Reuse an existing renderer (default: a fresh one)
    """
    return (renderer or renderer_create()).render(text)
