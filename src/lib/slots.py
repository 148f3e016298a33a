"""
Slot resolver: expand <include> markers into one composed tree

A page pulls in reusable components with

    <include path="card.html">
        <exportelement class="title"><h2>Hello</h2></exportelement>
    </include>

and the component marks where caller content goes with

    <div class="card"><includeelement name="title"></includeelement></div>

Resolution is recursive: a freshly loaded component is itself resolved with
the <include> that pulled it in as the caller, so its placeholders are
filled from the caller's export regions before it is spliced into the
parent tree. When resolve() returns, no include, includeelement or
exportelement node remains.

Recursion is bounded two ways: re-entering a component file that is already
being expanded raises IncludeCycleError, and so does nesting deeper than the
configured maximum. An include is judged against the chain of the file it
was written in, so a component may appear inside its own slot
(a box in a box) without counting as a cycle.
"""

import copy
from pathlib import Path
from typing import List, Optional, Tuple

from bs4 import Tag

from ..models.markers import Marker, SLOT_MARKERS
from .document import (
    document_load,
    node_detach,
    node_isAttached,
    nodes_insertBefore,
    nodes_select,
)
from .errors import ComponentLoadError, IncludeCycleError, SlotNotFound
from .log import LOG

DEFAULT_MAX_DEPTH = 32


def classes_get(element: Tag) -> List[str]:
    """Class names of element as a list, however the parser stored them"""
    classes = element.get("class") or []
    if isinstance(classes, str):
        return classes.split()
    return list(classes)


def exportRegion_find(caller: Tag, name: str) -> Optional[Tag]:
    """
    Find the export region for a slot

    Args:
        caller: The <include> node that supplied the export regions
        name: Slot name (an <includeelement>'s name attribute)

    Returns:
        First <exportelement> under caller whose class list contains name
    """
    for region in caller.find_all(Marker.EXPORT_ELEMENT.tag):
        if name in classes_get(region):
            return region
    return None


def placeholders_fill(tree: Tag, caller: Tag, component: str = "") -> int:
    """
    Replace every <includeelement name=X> with the caller's export region X

    The region's children are copied, so one export may fill several
    placeholders. Placeholders without a name are dropped.

    Args:
        tree: Component tree being resolved
        caller: The <include> node whose children hold export regions
        component: Component path, for error messages

    Returns:
        Number of placeholders filled

    Raises:
        SlotNotFound: If a named placeholder has no matching export region
    """
    filled = 0
    for placeholder in nodes_select(tree, Marker.INCLUDE_ELEMENT.tag):
        if not node_isAttached(placeholder, tree):
            continue
        name = placeholder.get("name")
        if not name:
            continue

        region = exportRegion_find(caller, name)
        if region is None:
            raise SlotNotFound(name, component)

        nodes_insertBefore(placeholder, [copy.copy(child) for child in region.contents])
        node_detach(placeholder)
        filled += 1
        LOG(f"Filled slot '{name}'", level=3)

    # Anything left is malformed (no name attribute)
    for leftover in nodes_select(tree, Marker.INCLUDE_ELEMENT.tag):
        node_detach(leftover)
    return filled


def componentPath_resolve(components_root: Path, include_path: str) -> Path:
    """
    Resolve an include path against the components root

    Leading separators are ignored, so "/nav.html" and "nav.html" name the
    same component.

    Raises:
        ComponentLoadError: If the resolved path leaves the components root
    """
    root = Path(components_root).resolve()
    candidate = (root / include_path.lstrip("/")).resolve()
    if candidate != root and root not in candidate.parents:
        raise ComponentLoadError(
            f"Component path '{include_path}' escapes components root {root}"
        )
    return candidate


def includes_expand(
    tree: Tag,
    components_root: Path,
    chain: Tuple[Path, ...] = (),
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> None:
    """
    Replace every <include> under tree with its resolved component

    Includes written inside another include's export regions are expanded
    first, against the chain of the file they were written in. Once copied
    into a component's placeholder they hold no <include> left to judge
    against the component's own chain.

    Args:
        tree: Tree (or <include> subtree) holding the includes
        components_root: Directory include paths are relative to
        chain: Component files being expanded where tree was written
        max_depth: Maximum include nesting
    """
    # Snapshot first: expansion rewrites the tree under the iteration
    includes = nodes_select(tree, Marker.INCLUDE.tag)
    for include in includes:
        if not node_isAttached(include, tree):
            continue

        include_path = include.get("path")
        if not include_path:
            LOG("Dropping <include> without a path attribute", level=2)
            node_detach(include)
            continue

        component_path = componentPath_resolve(components_root, include_path)
        if component_path in chain:
            cycle = " -> ".join(p.name for p in chain + (component_path,))
            raise IncludeCycleError(f"Include cycle: {cycle}")
        if len(chain) >= max_depth:
            raise IncludeCycleError(
                f"Include nesting deeper than {max_depth} at '{include_path}'"
            )

        includes_expand(include, components_root, chain, max_depth)

        LOG(f"Including {include_path}", level=2)
        component = document_load(component_path)
        slots_resolve(
            component,
            components_root,
            caller=include,
            chain=chain + (component_path,),
            max_depth=max_depth,
        )

        nodes_insertBefore(include, list(component.contents))
        node_detach(include)


def slots_resolve(
    tree: Tag,
    components_root: Path,
    caller: Optional[Tag] = None,
    chain: Tuple[Path, ...] = (),
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Tag:
    """
    Expand includes and fill slots, in place

    Args:
        tree: Tree to resolve (a page, or a freshly loaded component)
        components_root: Directory include paths are relative to
        caller: The <include> node this tree is being expanded for
                (None at the top level)
        chain: Component files currently being expanded, outermost first
        max_depth: Maximum include nesting

    Returns:
        The same tree, with no include/includeelement/exportelement left

    Raises:
        ComponentLoadError: Component missing, unreadable, or outside the root
        ParseError: Component markup rejected
        SlotNotFound: Placeholder without a matching export region
        IncludeCycleError: Include cycle, or nesting deeper than max_depth
    """
    component_name = chain[-1].name if chain else ""
    if caller is not None:
        placeholders_fill(tree, caller, component_name)

    includes_expand(tree, components_root, chain, max_depth)

    if caller is None:
        strays_remove(tree)
    return tree


def strays_remove(tree: Tag) -> int:
    """
    Detach slot markers left outside any include (malformed input)

    Returns:
        Number of nodes removed
    """
    removed = 0
    for marker in SLOT_MARKERS:
        for node in nodes_select(tree, marker.tag):
            if node_isAttached(node, tree):
                LOG(f"Removing stray <{marker.tag}>", level=2)
                node_detach(node)
                removed += 1
    return removed
