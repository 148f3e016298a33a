"""
Models package for htmlua

Contains data structures and type definitions for the compilation pipeline.
"""

from .state import PageState, ProgramState, pipeline
from .markers import Marker, Footnote, SLOT_MARKERS

__all__ = [
    "PageState",
    "ProgramState",
    "pipeline",
    "Marker",
    "Footnote",
    "SLOT_MARKERS",
]
