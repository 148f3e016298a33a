"""
Marker tag models

The compiler recognises a closed set of custom tags in page markup. Passes
look them up through the Marker enum instead of comparing tag strings
scattered across the codebase; any other tag is ORDINARY markup and is left
alone.
"""

from enum import Enum
from dataclasses import dataclass
from typing import FrozenSet


class Marker(Enum):
    """
    Custom tags understood by the compiler

    The value of each member is the (lower-case) tag name as it appears in
    markup.
    """
    INCLUDE = "include"                        # <include path="comp.html">
    EXPORT_ELEMENT = "exportelement"           # <exportelement class="slot">
    INCLUDE_ELEMENT = "includeelement"         # <includeelement name="slot">
    LUA = "lua"                                # <lua>htmlua.println("hi")</lua>
    MARKDOWN = "markdown"                      # <markdown># Title</markdown>
    SYNTAX_HIGHLIGHT = "syntaxhighlight"       # <syntaxhighlight lang="rs">
    FOOTNOTE = "footnote"                      # <footnote>annotation</footnote>
    FOOTNOTE_CONTAINER = "footnotecontainer"   # where definitions are placed
    ORDINARY = ""                              # anything else

    @classmethod
    def of(cls, tag_name: str) -> "Marker":
        """
        Classify a tag name

        Args:
            tag_name: Element tag name (case-insensitive)

        Returns:
            The matching Marker, or Marker.ORDINARY
        """
        if not tag_name:
            return cls.ORDINARY
        try:
            return cls(tag_name.lower())
        except ValueError:
            return cls.ORDINARY

    @property
    def tag(self) -> str:
        return self.value


# Tags that must be gone once the slot resolver has run
SLOT_MARKERS: FrozenSet[Marker] = frozenset({
    Marker.INCLUDE,
    Marker.EXPORT_ELEMENT,
    Marker.INCLUDE_ELEMENT,
})


@dataclass(frozen=True)
class Footnote:
    """
    One numbered footnote

    Attributes:
        index: 1-based position of the marker in document order
        text: Full text content of the <footnote> marker

    Example:
        Footnote(index=2, text="no").sup_id == "ft-sup-2"
    """
    index: int
    text: str

    @property
    def sup_id(self) -> str:
        """id of the superscript reference placed after the marker"""
        return f"ft-sup-{self.index}"

    @property
    def text_id(self) -> str:
        """id of the definition paragraph placed before the container"""
        return f"ft-text-{self.index}"
