"""
Edit Overlay - builds the transient action-button families.

Each gesture spawns one family of OverlayNode buttons placed around its
anchor. The controller hands the family to GraphStore.show_overlays and the
canvas draws it on top of the map; nothing here is ever persisted.
"""

from typing import List

from skillmap.edit.constants import (
    BACKGROUND_ACTION_LABELS,
    BUTTON_FILL,
    BUTTON_GAP,
    BUTTON_HEIGHT,
    BUTTON_MARGIN,
    BUTTON_TEXT,
    BUTTON_WIDTH,
    DELETE,
    DELETE_FILL,
    NODE_ACTION_LABELS,
    SWATCH_GAP,
    SWATCH_MARGIN,
    SWATCH_SIZE,
)
from skillmap.models import (
    NODE_DIAMETER,
    ROOT_ID,
    TYPE_COLORS,
    NodeType,
    OverlayFamily,
    OverlayNode,
    Point,
)


def centered_row(center_x: float, count: int, item_width: float, gap: float) -> List[float]:
    """x-centers of `count` items laid out in a row centered on center_x."""
    total = count * item_width + (count - 1) * gap
    start = center_x - total / 2 + item_width / 2
    return [start + i * (item_width + gap) for i in range(count)]


def _overlay_id(family: OverlayFamily, index: int) -> str:
    return f"overlay-{family.value}-{index}"


def color_picker_family(node_id: str, position: Point) -> List[OverlayNode]:
    """One swatch per node type, in a horizontal row centered above the node."""
    types = list(NodeType)
    y = position.y - NODE_DIAMETER / 2 - SWATCH_MARGIN
    xs = centered_row(position.x, len(types), SWATCH_SIZE, SWATCH_GAP)
    family = OverlayFamily.COLOR_PICKER
    return [
        OverlayNode(
            id=_overlay_id(family, i),
            label=node_type.value,
            family=family,
            position=Point(x, y),
            target_id=node_id,
            fill=TYPE_COLORS[node_type][0],
            text_color=TYPE_COLORS[node_type][1],
            width=SWATCH_SIZE,
            height=SWATCH_SIZE,
        )
        for i, (node_type, x) in enumerate(zip(types, xs))
    ]


def node_actions_family(node_id: str, position: Point) -> List[OverlayNode]:
    """Rename / Add New / Delete below the node. The root gets no Delete."""
    labels = [label for label in NODE_ACTION_LABELS if not (label == DELETE and node_id == ROOT_ID)]
    y = position.y + NODE_DIAMETER / 2 + BUTTON_MARGIN
    xs = centered_row(position.x, len(labels), BUTTON_WIDTH, BUTTON_GAP)
    family = OverlayFamily.NODE_ACTIONS
    return [
        OverlayNode(
            id=_overlay_id(family, i),
            label=label,
            family=family,
            position=Point(x, y),
            target_id=node_id,
            fill=DELETE_FILL if label == DELETE else BUTTON_FILL,
            text_color=BUTTON_TEXT,
            width=BUTTON_WIDTH,
            height=BUTTON_HEIGHT,
        )
        for i, (label, x) in enumerate(zip(labels, xs))
    ]


def background_actions_family(point: Point) -> List[OverlayNode]:
    """Fit View / Reset / Export / Import stacked downwards from the tap point."""
    family = OverlayFamily.BACKGROUND_ACTIONS
    return [
        OverlayNode(
            id=_overlay_id(family, i),
            label=label,
            family=family,
            position=point.offset(dy=i * (BUTTON_HEIGHT + BUTTON_GAP)),
            fill=BUTTON_FILL,
            text_color=BUTTON_TEXT,
            width=BUTTON_WIDTH,
            height=BUTTON_HEIGHT,
        )
        for i, label in enumerate(BACKGROUND_ACTION_LABELS)
    ]
