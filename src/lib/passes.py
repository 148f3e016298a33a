"""
Content passes

Four tree-to-tree transforms run after the slot resolver. Each one takes a
snapshot of its marker elements in document order, rewrites them, and
leaves none of its own markers behind:

    markdown_render     <markdown>         → rendered markup
    syntax_highlight    <syntaxhighlight>  → <pre class="syntax-highlight">
    scripts_run         <lua>              → text node with captured output
    footnotes_generate  <footnote>, <footnotecontainer> → numbered references
                                                          and definitions
"""

import html
import textwrap
from pathlib import Path
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from ..config.settings import ScriptSettings, SyntaxSettings
from ..models.markers import Footnote, Marker
from .document import (
    element_new,
    fragment_parse,
    markup_contents,
    node_detach,
    node_insertAfter,
    node_isAttached,
    nodes_insertBefore,
    nodes_select,
    text_contents,
    text_new,
)
from .highlighter import Highlighter
from .log import LOG
from .renderer import markdown_toHtml, renderer_create
from .sandbox import OutputBuffer, Sandbox

DEFAULT_LANG = "text"


def regions_select(tree: Tag, marker: Marker) -> List[Tag]:
    """Snapshot of every element for marker, in document order"""
    return nodes_select(tree, marker.tag)


def region_replace(region: Tag, fragment_html: str) -> None:
    """Splice the top-level nodes of a markup fragment in place of region"""
    fragment = fragment_parse(fragment_html)
    nodes_insertBefore(region, list(fragment.contents))
    node_detach(region)


def scripts_run(tree: Tag, settings: Optional[ScriptSettings] = None) -> Tag:
    """
    Execute every <lua> region and replace it with its output

    Each region gets a fresh sandbox and output buffer, so nothing a script
    defines is visible to the next one. The script source is the region's
    inner markup as written, so tags inside Lua strings survive the parser.
    Output is inserted as text (it is escaped on serialization, never
    parsed as markup).

    Args:
        tree: Document tree
        settings: Script capabilities (default: ScriptSettings())

    Returns:
        The same tree

    Raises:
        ScriptError: On the first failing region; earlier regions stay replaced
    """
    settings = settings or ScriptSettings()
    regions = regions_select(tree, Marker.LUA)
    for index, region in enumerate(regions, start=1):
        if not node_isAttached(region, tree):
            continue
        buffer = OutputBuffer()
        sandbox = Sandbox(
            buffer,
            allow_http=settings.allow_http,
            http_timeout=settings.http_timeout,
        )
        sandbox.run(markup_contents(region))
        LOG(f"Script {index}: {len(buffer.text())} chars of output", level=3)

        nodes_insertBefore(region, [text_new(buffer.text())])
        node_detach(region)

    LOG(f"Ran {len(regions)} script regions", level=2)
    return tree


def markdown_render(tree: Tag) -> Tag:
    """
    Render every <markdown> region and splice in the result

    The region's text is de-indented first so markdown written inside
    indented markup isn't taken for a code block.
    """
    regions = regions_select(tree, Marker.MARKDOWN)
    if not regions:
        return tree

    renderer = renderer_create()
    for region in regions:
        if not node_isAttached(region, tree):
            continue
        source = textwrap.dedent(text_contents(region))
        region_replace(region, markdown_toHtml(source, renderer))

    LOG(f"Rendered {len(regions)} markdown regions", level=2)
    return tree


def code_prepare(text: str) -> str:
    """De-indent a code region and drop surrounding blank lines"""
    return textwrap.dedent(text).strip("\n")


def syntax_highlight(
    tree: Tag,
    settings: Optional[SyntaxSettings] = None,
    themes_dir: Optional[Path] = None,
) -> Tag:
    """
    Replace every <syntaxhighlight> region with highlighted code

    Emits <pre class="syntax-highlight" data-lang="{lang}"><code>...</code></pre>.
    The highlighter (and with it the theme directory scan) is only set up if
    the tree has at least one region.

    Args:
        tree: Document tree
        settings: Default theme and custom theme switch
        themes_dir: Directory of custom themes

    Raises:
        HighlightError: Unknown theme or highlighter failure
    """
    regions = regions_select(tree, Marker.SYNTAX_HIGHLIGHT)
    if not regions:
        return tree

    settings = settings or SyntaxSettings()
    highlighter = Highlighter(settings, themes_dir)
    for region in regions:
        if not node_isAttached(region, tree):
            continue
        lang = region.get("lang") or DEFAULT_LANG
        theme = region.get("theme") or settings.default_theme
        highlighted = highlighter.code_highlight(code_prepare(text_contents(region)), lang, theme)

        region_replace(
            region,
            f'<pre class="syntax-highlight" data-lang="{html.escape(lang, quote=True)}">'
            f'<code>{highlighted}</code></pre>',
        )
        LOG(f"Highlighted {lang} region with theme '{theme}'", level=3)

    LOG(f"Highlighted {len(regions)} code regions", level=2)
    return tree


def footnoteReference_build(tree: BeautifulSoup, footnote: Footnote) -> Tag:
    """<a href="#ft-text-i"><sup id="ft-sup-i" title="text">i</sup></a>"""
    anchor = element_new(tree, "a", {"href": f"#{footnote.text_id}"})
    anchor.append(element_new(
        tree,
        "sup",
        {"id": footnote.sup_id, "title": footnote.text},
        str(footnote.index),
    ))
    return anchor


def footnoteDefinition_build(tree: BeautifulSoup, footnote: Footnote) -> Tag:
    """<p id="ft-text-i"><a href="#ft-sup-i">i:</a> text</p>"""
    paragraph = element_new(tree, "p", {"id": footnote.text_id})
    paragraph.append(element_new(tree, "a", {"href": f"#{footnote.sup_id}"}, f"{footnote.index}:"))
    paragraph.append(text_new(f" {footnote.text}"))
    return paragraph


def footnoteAnchor_find(marker: Tag) -> Tag:
    """Outermost <footnote> enclosing marker (marker itself if none)"""
    anchor = marker
    for parent in marker.parents:
        if parent.name == Marker.FOOTNOTE.tag:
            anchor = parent
    return anchor


def footnotes_generate(tree: BeautifulSoup) -> BeautifulSoup:
    """
    Number footnotes and collect their text before the footnote container

    Markers are numbered from 1 in document (pre-order) order. Each marker
    is followed by a superscript reference and its text becomes a definition
    paragraph before the container; then markers and container are removed.
    A footnote nested in another one gets its reference after the outermost
    marker, following the references already placed there, so it survives
    the removal of the markers.
    Without a <footnotecontainer> the tree is returned untouched.

    Returns:
        The same tree
    """
    containers = regions_select(tree, Marker.FOOTNOTE_CONTAINER)
    if not containers:
        return tree
    container = containers[0]

    markers = regions_select(tree, Marker.FOOTNOTE)
    footnotes: List[Footnote] = []
    last_reference: Dict[int, Tag] = {}
    for index, marker in enumerate(markers, start=1):
        footnote = Footnote(index=index, text=text_contents(marker))
        anchor = footnoteAnchor_find(marker)
        reference = footnoteReference_build(tree, footnote)
        node_insertAfter(last_reference.get(id(anchor), anchor), reference)
        last_reference[id(anchor)] = reference
        nodes_insertBefore(container, [footnoteDefinition_build(tree, footnote)])
        footnotes.append(footnote)
        LOG(f"Footnote {index}: {footnote.text!r}", level=3)

    # Re-query: the snapshot holds markers nested inside other markers
    for marker in regions_select(tree, Marker.FOOTNOTE):
        if node_isAttached(marker, tree):
            node_detach(marker)
    for leftover in regions_select(tree, Marker.FOOTNOTE_CONTAINER):
        node_detach(leftover)

    LOG(f"Generated {len(footnotes)} footnotes", level=2)
    return tree
