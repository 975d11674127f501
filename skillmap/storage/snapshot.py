"""
Document snapshot format.

A snapshot is the canonical node/edge set plus the viewport. On disk (and in
the browser store) it is JSON text shaped like:

{
  "elements": [
    {"group": "nodes", "data": {"id": "node-1", "label": "new topic",
                                "type": "topic", "fontSize": 12},
     "position": {"x": 400, "y": 300}, "locked": true},
    {"group": "edges", "data": {"id": "edge-node-1-node-2",
                                "source": "node-1", "target": "node-2"}}
  ],
  "zoom": 1,
  "pan": {"x": 0, "y": 0}
}

Overlay nodes are never part of a snapshot. Parsing is lenient: missing or
malformed fields fall back to defaults, malformed element records are
skipped, and only text that is not JSON at all is rejected.
"""

import json
import logging
from dataclasses import dataclass, field
from numbers import Number
from typing import Any, Dict, List, Optional

from skillmap.errors import ImportFormatError
from skillmap.models import (
    DEFAULT_FONT_SIZE,
    DEFAULT_LABEL,
    Edge,
    Node,
    NodeType,
    Point,
    default_root,
)

logger = logging.getLogger(__name__)

DEFAULT_ZOOM = 1.0


@dataclass
class Snapshot:
    nodes: List[Node] = field(default_factory=lambda: [default_root()])
    edges: List[Edge] = field(default_factory=list)
    zoom: float = DEFAULT_ZOOM
    pan: Point = field(default_factory=Point)


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def node_to_record(node: Node) -> Dict[str, Any]:
    return {
        "group": "nodes",
        "data": {
            "id": node.id,
            "label": node.label,
            "type": node.type.value,
            "fontSize": node.font_size,
        },
        "position": {"x": node.position.x, "y": node.position.y},
        "locked": node.locked,
    }


def edge_to_record(edge: Edge) -> Dict[str, Any]:
    return {
        "group": "edges",
        "data": {"id": edge.id, "source": edge.source, "target": edge.target},
    }


def to_document(snapshot: Snapshot) -> Dict[str, Any]:
    elements = [node_to_record(n) for n in snapshot.nodes]
    elements.extend(edge_to_record(e) for e in snapshot.edges)
    return {
        "elements": elements,
        "zoom": snapshot.zoom,
        "pan": {"x": snapshot.pan.x, "y": snapshot.pan.y},
    }


def _parse_point(raw: Any, default: Point) -> Point:
    if not isinstance(raw, dict):
        return default
    x, y = raw.get("x"), raw.get("y")
    if not (_is_number(x) and _is_number(y)):
        return default
    return Point(x, y)


def record_to_node(record: Dict[str, Any]) -> Optional[Node]:
    data = record.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("id"), str) or not data["id"]:
        return None

    label = data.get("label")
    font_size = data.get("fontSize")
    try:
        node_type = NodeType.parse(data.get("type") or NodeType.TOPIC)
    except ValueError:
        logger.warning(f"Unknown node type {data.get('type')!r} on {data['id']}, using topic")
        node_type = NodeType.TOPIC

    return Node(
        id=data["id"],
        label=label if isinstance(label, str) else DEFAULT_LABEL,
        type=node_type,
        font_size=font_size if _is_number(font_size) and font_size > 0 else DEFAULT_FONT_SIZE,
        position=_parse_point(record.get("position"), Point()),
        locked=record.get("locked") is True,
    )


def record_to_edge(record: Dict[str, Any]) -> Optional[Edge]:
    data = record.get("data")
    if not isinstance(data, dict):
        return None
    source, target = data.get("source"), data.get("target")
    if not (isinstance(source, str) and isinstance(target, str)):
        return None
    return Edge(source, target)


def _is_edge_record(record: Dict[str, Any]) -> bool:
    if record.get("group") in ("nodes", "edges"):
        return record["group"] == "edges"
    data = record.get("data")
    return isinstance(data, dict) and "source" in data and "target" in data


def from_document(document: Any) -> Snapshot:
    """Build a Snapshot from a parsed document, defaulting whatever is missing."""
    if not isinstance(document, dict):
        logger.warning("Snapshot document is not an object, using defaults")
        document = {}

    zoom = document.get("zoom")
    snapshot = Snapshot(
        zoom=zoom if _is_number(zoom) and zoom > 0 else DEFAULT_ZOOM,
        pan=_parse_point(document.get("pan"), Point()),
    )

    elements = document.get("elements")
    if not isinstance(elements, list):
        return snapshot

    nodes: List[Node] = []
    edges: List[Edge] = []
    for record in elements:
        if not isinstance(record, dict):
            logger.warning(f"Skipping malformed element {record!r}")
            continue
        if _is_edge_record(record):
            parsed = record_to_edge(record)
            target = edges
        else:
            parsed = record_to_node(record)
            target = nodes
        if parsed is None:
            logger.warning(f"Skipping malformed element {record!r}")
            continue
        target.append(parsed)

    if nodes:
        snapshot.nodes = nodes
    snapshot.edges = edges
    return snapshot


def dumps(snapshot: Snapshot) -> str:
    return json.dumps(to_document(snapshot), indent=2, ensure_ascii=False)


def loads(text: str) -> Snapshot:
    """
    Parse snapshot text.

    Raises:
        ImportFormatError: text is not JSON
    """
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ImportFormatError(f"Not a SkillMap document: {e}")
    return from_document(document)
