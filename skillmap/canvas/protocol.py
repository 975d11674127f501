"""
CanvasRenderer Protocol Definition.

The core never draws anything. It talks to the rendering collaborator through
this interface: read and write node data, measure labels, enumerate
descendants, wait for a render, and manage the viewport.
EChartCanvas (NiceGUI + ECharts) is the implementation used by the app.
"""

from typing import Callable, List, Protocol, Tuple, runtime_checkable

from skillmap.models import Point


@runtime_checkable
class CanvasRenderer(Protocol):
    """Operations the core consumes from the rendering collaborator."""

    # --- Lookup ---

    def has_node(self, node_id: str) -> bool:
        """Return True if the canvas currently shows a node with this id."""
        ...

    def node_position(self, node_id: str) -> Point:
        """Model-space position of a node."""
        ...

    def rendered_position(self, node_id: str) -> Point:
        """Screen-space position of a node under the cached zoom and pan."""
        ...

    def descendants(self, node_id: str) -> List[str]:
        """Ids of nodes reachable forward from node_id (node_id excluded)."""
        ...

    # --- Label data and measurement ---

    def set_label(self, node_id: str, label: str) -> None:
        ...

    def set_font_size(self, node_id: str, font_size: float) -> None:
        ...

    def remeasure(self, node_id: str) -> None:
        """Synchronously re-layout the node's label after a data change."""
        ...

    def label_bbox(self, node_id: str) -> Tuple[float, float]:
        """(width, height) of the rendered label."""
        ...

    def node_bbox(self, node_id: str) -> Tuple[float, float]:
        """(width, height) of the rendered node body."""
        ...

    # --- Render cycle ---

    def on_next_render(self, callback: Callable[[], None]) -> None:
        """Call callback once, after the next render has completed."""
        ...

    # --- Viewport ---

    @property
    def viewport(self) -> Tuple[float, Point]:
        """(zoom, pan)"""
        ...

    def set_viewport(self, zoom: float, pan: Point) -> None:
        ...

    def fit_view(self) -> None:
        """Zoom and pan so every node is visible."""
        ...

    def screen_to_model(self, x: float, y: float) -> Point:
        ...

    def lock_node(self, node_id: str, locked: bool = True) -> None:
        """Prevent user-driven movement of a node."""
        ...
