"""
GraphStore - canonical node/edge collection for one SkillMap document.

The store is the single source of truth the canvas renders from. It knows
nothing about gestures: the edit controller decides what to call, the store
keeps the document consistent:

- the locked root node (ROOT_ID) is always present and never deleted
- node ids are unique and minted as the lowest free 'node-<n>'
- every edge references two canonical nodes
- at most one overlay family is live, and clearing it is idempotent

Listeners are told whether a change touched the canonical set (which must be
persisted) or only the overlays (ephemeral UI state).
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Set

from skillmap.cascade import closure_of
from skillmap.errors import NoSuchParentError
from skillmap.models import (
    CHILD_OFFSET_X,
    ROOT_ID,
    Edge,
    Node,
    NodeType,
    OverlayNode,
    Point,
    child_label,
    default_root,
    node_number,
)
from skillmap.text_fit import BALANCE_MAX_CHARS, balance_label, split_words

logger = logging.getLogger(__name__)


class GraphStore:
    """Owns canonical nodes, edges and the live overlay family."""

    def __init__(self, nodes: Optional[Iterable[Node]] = None,
                 edges: Optional[Iterable[Edge]] = None,
                 balance_chars: int = BALANCE_MAX_CHARS):
        self.balance_chars = balance_chars
        self._nodes: Dict[str, Node] = {}
        self._edges: List[Edge] = []
        self._overlays: Dict[str, OverlayNode] = {}
        self._listeners: List[Callable[[bool], None]] = []
        self._fit_scheduler: Optional[Callable[[str], None]] = None
        self._load(nodes if nodes is not None else [default_root()], edges or [])

    # --- Read access ---

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    @property
    def overlays(self) -> List[OverlayNode]:
        return list(self._overlays.values())

    def get_node(self, node_id: Optional[str]) -> Optional[Node]:
        return self._nodes.get(node_id) if node_id else None

    def has_node(self, node_id: Optional[str]) -> bool:
        return self.get_node(node_id) is not None

    def get_overlay(self, overlay_id: Optional[str]) -> Optional[OverlayNode]:
        return self._overlays.get(overlay_id) if overlay_id else None

    def closure_of(self, node_id: str) -> Set[str]:
        return closure_of(self._nodes.values(), self._edges, node_id)

    def next_node_id(self) -> str:
        """Lowest unused 'node-<n>', scanning up from 1."""
        used = {node_number(nid) for nid in self._nodes}
        n = 1
        while n in used:
            n += 1
        return f"node-{n}"

    # --- Observers ---

    def subscribe(self, listener: Callable[[bool], None]) -> None:
        """Register listener(canonical) called after every change."""
        self._listeners.append(listener)

    def set_fit_scheduler(self, scheduler: Optional[Callable[[str], None]]) -> None:
        """Callback used to request a deferred fit pass after a label change."""
        self._fit_scheduler = scheduler

    def _notify(self, canonical: bool) -> None:
        for listener in list(self._listeners):
            listener(canonical)

    # --- Canonical mutations ---

    def add_child(self, parent_id: str) -> str:
        """
        Create a 'Node <n>' topic node to the right of parent_id and link it as a child.

        Raises:
            NoSuchParentError: parent_id is not a canonical node (nothing changes)
        """
        parent = self.get_node(parent_id)
        if parent is None:
            raise NoSuchParentError(parent_id)

        node_id = self.next_node_id()
        self._nodes[node_id] = Node(id=node_id, label=child_label(node_id),
                                    position=parent.position.offset(dx=CHILD_OFFSET_X))
        self._edges.append(Edge(parent_id, node_id))
        logger.debug(f"Added {node_id} under {parent_id}")
        self._notify(True)
        return node_id

    def rename_node(self, node_id: str, raw_text: str) -> bool:
        """
        Set a node's label from user input.

        Long text is pre-wrapped with balance_label; the fit pass re-wraps it
        once the canvas has laid it out. Returns True if the label changed.
        """
        node = self.get_node(node_id)
        if node is None:
            return False

        text = (raw_text or "").strip()
        if len(text) > self.balance_chars:
            text = balance_label(text, self.balance_chars)

        if split_words(text) == split_words(node.label):
            return False

        self._nodes[node_id] = replace(node, label=text)
        self._notify(True)
        if self._fit_scheduler:
            self._fit_scheduler(node_id)
        return True

    def delete_subtree(self, node_id: str) -> Set[str]:
        """
        Remove node_id, its descendants and every edge touching them.

        The root is never removed. Returns the removed node ids.
        """
        node = self.get_node(node_id)
        if node is None or node.locked or node_id == ROOT_ID:
            return set()

        removed = self.closure_of(node_id) - {ROOT_ID}
        nodes = {nid: n for nid, n in self._nodes.items() if nid not in removed}
        edges = [e for e in self._edges if not e.touches(removed)]
        overlays = {oid: o for oid, o in self._overlays.items() if o.target_id not in removed}

        self._nodes, self._edges, self._overlays = nodes, edges, overlays
        logger.debug(f"Deleted subtree of {node_id}: {sorted(removed)}")
        self._notify(True)
        return removed

    def set_type(self, node_id: str, new_type) -> None:
        """
        Change a node's type.

        A falsy new_type rewrites the node unchanged. Raises ValueError for
        names outside NodeType.
        """
        node = self.get_node(node_id)
        if node is None:
            return
        if not new_type:
            self._nodes[node_id] = replace(node)
            return

        node_type = NodeType.parse(new_type)
        if node_type == node.type:
            return
        self._nodes[node_id] = replace(node, type=node_type)
        self._notify(True)

    def apply_fit(self, node_id: str, label: str, font_size: float, fitted: bool = True) -> None:
        """Store the outcome of a fit pass. Missing nodes are ignored."""
        node = self.get_node(node_id)
        if node is None:
            return

        changed = node.label != label or node.font_size != font_size
        self._nodes[node_id] = replace(node, label=label, font_size=font_size, fit_found=fitted)
        if changed:
            self._notify(True)

    def move_node(self, node_id: str, position: Point) -> bool:
        """Mirror a position change from the canvas. Locked nodes never move."""
        node = self.get_node(node_id)
        if node is None or node.locked or node.position == position:
            return False
        self._nodes[node_id] = replace(node, position=position)
        self._notify(True)
        return True

    def replace(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> None:
        """Swap in a whole new canonical set (import, reset). Clears overlays."""
        self._overlays = {}
        self._load(nodes, edges)
        self._notify(True)

    def _load(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> None:
        loaded: Dict[str, Node] = {}
        for node in nodes:
            if node.id in loaded:
                logger.warning(f"Ignoring duplicate node id {node.id}")
                continue
            loaded[node.id] = node

        root = loaded.get(ROOT_ID)
        if root is None:
            loaded = {ROOT_ID: default_root(), **loaded}
        elif not root.locked:
            loaded[ROOT_ID] = replace(root, locked=True)

        kept: List[Edge] = []
        for edge in edges:
            if edge.source not in loaded or edge.target not in loaded:
                logger.warning(f"Dropping edge {edge.id} with a missing endpoint")
                continue
            if edge not in kept:
                kept.append(edge)

        self._nodes, self._edges = loaded, kept

    # --- Overlay family ---

    def show_overlays(self, overlays: Iterable[OverlayNode]) -> None:
        """Replace the live overlay family with a new one."""
        self._overlays = {o.id: o for o in overlays}
        self._notify(False)

    def clear_overlays(self) -> None:
        if not self._overlays:
            return
        self._overlays = {}
        self._notify(False)
