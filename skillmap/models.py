"""
Shared data types for the SkillMap document.

Nodes and edges make up the canonical set that is persisted. Overlay nodes
are transient action buttons that are drawn like nodes but never saved.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


ROOT_ID = "node-1"
NODE_ID_PREFIX = "node-"
DEFAULT_LABEL = "new topic"
CHILD_LABEL_PREFIX = "Node "
DEFAULT_FONT_SIZE = 12

# Circle diameter used by the canvas for every real node
NODE_DIAMETER = 80

# New children are placed this far to the right of their parent
CHILD_OFFSET_X = 100


class NodeType(str, Enum):
    TOPIC = "topic"
    ASSERTION = "assertion"
    ACTIONABLE = "actionable"
    QUESTION = "question"
    BLOCKER = "blocker"

    @classmethod
    def parse(cls, value) -> "NodeType":
        """Accept a NodeType or its string value. Raises ValueError otherwise."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


# (fill, text) per node type, consulted only by the rendering side
TYPE_COLORS: Dict[NodeType, Tuple[str, str]] = {
    NodeType.TOPIC: ("#888888", "#ffffff"),
    NodeType.ASSERTION: ("#2e7d32", "#ffffff"),
    NodeType.ACTIONABLE: ("#1565c0", "#ffffff"),
    NodeType.QUESTION: ("#f9a825", "#1a1a1a"),
    NodeType.BLOCKER: ("#c62828", "#ffffff"),
}


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0

    def offset(self, dx: float = 0.0, dy: float = 0.0) -> "Point":
        return Point(self.x + dx, self.y + dy)


ROOT_POSITION = Point(400, 300)


@dataclass
class Node:
    """A real node of the map. `fit_found` is runtime-only diagnostic state."""
    id: str
    label: str = DEFAULT_LABEL
    type: NodeType = NodeType.TOPIC
    font_size: float = DEFAULT_FONT_SIZE
    position: Point = field(default_factory=Point)
    locked: bool = False
    fit_found: bool = field(default=True, compare=False)


@dataclass(frozen=True)
class Edge:
    """Directed parent -> child link."""
    source: str
    target: str

    @property
    def id(self) -> str:
        return f"edge-{self.source}-{self.target}"

    def touches(self, node_ids) -> bool:
        return self.source in node_ids or self.target in node_ids


class OverlayFamily(str, Enum):
    COLOR_PICKER = "color_picker"
    NODE_ACTIONS = "node_actions"
    BACKGROUND_ACTIONS = "background_actions"


@dataclass(frozen=True)
class OverlayNode:
    """
    Clickable action button drawn on the canvas.

    `label` is the dispatch key; `target_id` is the real node the action
    applies to, or None for background menu buttons.
    """
    id: str
    label: str
    family: OverlayFamily
    position: Point
    target_id: Optional[str] = None
    fill: str = "#424242"
    text_color: str = "#ffffff"
    width: float = 30
    height: float = 30


def default_root() -> Node:
    """The locked root node of a fresh document."""
    return Node(id=ROOT_ID, label=DEFAULT_LABEL, position=ROOT_POSITION, locked=True)


def node_number(node_id: str) -> Optional[int]:
    """Return n for ids of the form 'node-<n>', else None."""
    if not node_id.startswith(NODE_ID_PREFIX):
        return None
    suffix = node_id[len(NODE_ID_PREFIX):]
    if not suffix.isdigit():
        return None
    return int(suffix)


def child_label(node_id: str) -> str:
    """Label for a freshly added child: 'Node <n>' after its id number."""
    number = node_number(node_id)
    return f"{CHILD_LABEL_PREFIX}{number}" if number is not None else DEFAULT_LABEL
