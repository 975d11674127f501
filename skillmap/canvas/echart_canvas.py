"""
EChartCanvas - NiceGUI/ECharts implementation of the CanvasRenderer protocol.

The canvas keeps a Python-side mirror of every drawn node (label, font size,
position, measured label box). Label measurement happens on that mirror with
TextMetrics, which uses the same line height the chart is given, so the
fitting search never has to round-trip to the browser.

render() pushes the store's state into the ui.echart element and then runs
the one-shot "render completed" callbacks registered with on_next_render().
Without a chart element (tests, headless use) everything except the push
still works.

Two views of the viewport are kept apart:
- (zoom, pan) is the cached screen transform that is persisted and used
  whenever the browser cannot be asked;
- the chart view (zoom, center) is ECharts' own roam state, read back after a
  roam and pushed unchanged on the next render. ECharts fits the data bounds
  into the container, so model coordinates are only mapped to pixels by the
  chart itself (to_screen / to_model).
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set, Tuple

from skillmap.canvas.chart_builder import LINE_HEIGHT_RATIO, build_echart_options
from skillmap.cascade import closure_of
from skillmap.models import NODE_DIAMETER, Edge, Node, Point

logger = logging.getLogger(__name__)

MIN_ZOOM = 0.5
MAX_ZOOM = 2.0

# Padding around the node bounds used by fit_view
FIT_PADDING = 40


@dataclass
class TextMetrics:
    """Deterministic label metrics: advance and line height scale with font size."""
    char_width_ratio: float = 0.6
    line_height_ratio: float = LINE_HEIGHT_RATIO

    def measure(self, text: str, font_size: float) -> Tuple[float, float]:
        lines = (text or "").split("\n")
        longest = max(len(line) for line in lines)
        return (longest * font_size * self.char_width_ratio,
                len(lines) * font_size * self.line_height_ratio)


@dataclass
class _NodeView:
    label: str
    font_size: float
    position: Point
    locked: bool
    label_box: Tuple[float, float] = (0.0, 0.0)


class EChartCanvas:
    """Rendering collaborator backed by a NiceGUI ui.echart element."""

    def __init__(self, chart=None, metrics: Optional[TextMetrics] = None,
                 width: float = 1280, height: float = 720):
        """
        Args:
            chart: ui.echart element, or None for a headless canvas
            metrics: Label metrics (defaults to TextMetrics())
            width: Canvas width in pixels for the cached transform
            height: Canvas height in pixels for the cached transform
        """
        self.chart = chart
        self.metrics = metrics or TextMetrics()
        self.width = width
        self.height = height
        self._views: Dict[str, _NodeView] = {}
        self._nodes: List[Node] = []
        self._edges: List[Edge] = []
        self._locked: Set[str] = set()
        self._pending_renders: List[Callable[[], None]] = []
        self._viewport_listeners: List[Callable[[float, Point], None]] = []
        self._zoom = 1.0
        self._pan = Point(0, 0)
        self._chart_view: Optional[Tuple[float, Optional[Tuple[float, float]]]] = None

    # --- Render cycle ---

    def render(self, store, selected_id: Optional[str] = None) -> None:
        """Mirror the store into the chart, then fire pending render callbacks."""
        self._sync(store.nodes, store.edges)

        if self.chart is not None:
            options = build_echart_options(
                store.nodes, store.edges, store.overlays,
                selected_id=selected_id, locked_ids=self._locked,
            )
            zoom, center = self.chart_view
            series = options['series'][0]
            series['zoom'] = zoom
            series['center'] = list(center) if center else None
            self.chart.options.clear()
            self.chart.options.update(options)
            self.chart.update()

        callbacks, self._pending_renders = self._pending_renders, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Deferred render callback failed")

    def on_next_render(self, callback: Callable[[], None]) -> None:
        self._pending_renders.append(callback)

    def _sync(self, nodes: List[Node], edges: List[Edge]) -> None:
        # locks on nodes that no longer exist must not carry over to a reused id
        self._locked &= {node.id for node in nodes}
        views = {}
        for node in nodes:
            view = _NodeView(node.label, node.font_size, node.position,
                             node.locked or node.id in self._locked)
            view.label_box = self.metrics.measure(view.label, view.font_size)
            views[node.id] = view
        self._views = views
        self._nodes = list(nodes)
        self._edges = list(edges)

    # --- Lookup ---

    def has_node(self, node_id: str) -> bool:
        return node_id in self._views

    def node_position(self, node_id: str) -> Point:
        return self._views[node_id].position

    def rendered_position(self, node_id: str) -> Point:
        """Screen position from the cached transform; to_screen asks the chart."""
        return self._cached_to_screen(self._views[node_id].position)

    def descendants(self, node_id: str) -> List[str]:
        return sorted(closure_of(self._nodes, self._edges, node_id) - {node_id})

    # --- Label data and measurement ---

    def set_label(self, node_id: str, label: str) -> None:
        self._views[node_id].label = label

    def set_font_size(self, node_id: str, font_size: float) -> None:
        self._views[node_id].font_size = font_size

    def remeasure(self, node_id: str) -> None:
        view = self._views[node_id]
        view.label_box = self.metrics.measure(view.label, view.font_size)

    def label_bbox(self, node_id: str) -> Tuple[float, float]:
        return self._views[node_id].label_box

    def node_bbox(self, node_id: str) -> Tuple[float, float]:
        if node_id not in self._views:
            raise KeyError(node_id)
        return (NODE_DIAMETER, NODE_DIAMETER)

    # --- Locking ---

    def lock_node(self, node_id: str, locked: bool = True) -> None:
        """Keep a node from being dragged, across renders, until unlocked."""
        if locked:
            self._locked.add(node_id)
        else:
            self._locked.discard(node_id)
        view = self._views.get(node_id)
        if view is not None:
            node = next((n for n in self._nodes if n.id == node_id), None)
            view.locked = locked or bool(node and node.locked)

    def is_locked(self, node_id: str) -> bool:
        view = self._views.get(node_id)
        return view.locked if view else node_id in self._locked

    @property
    def locked_ids(self) -> Set[str]:
        return {node_id for node_id, view in self._views.items() if view.locked}

    # --- Viewport ---

    @property
    def viewport(self) -> Tuple[float, Point]:
        return self._zoom, self._pan

    @property
    def chart_view(self) -> Tuple[float, Optional[Tuple[float, float]]]:
        """(zoom, center) to hand to ECharts; (1, None) lets it fit the data."""
        return self._chart_view or (1.0, None)

    def set_chart_view(self, zoom: float, center=None) -> None:
        """Record ECharts' own roam state so the next render does not undo it."""
        if center is not None:
            center = (float(center[0]), float(center[1]))
        self._chart_view = (zoom or 1.0, center)

    def subscribe_viewport(self, listener: Callable[[float, Point], None]) -> None:
        self._viewport_listeners.append(listener)

    def set_viewport(self, zoom: float, pan: Point) -> None:
        """Jump to a viewport (reset, import, fit). The chart refits its data."""
        self._chart_view = None
        self._update_viewport(zoom, pan)

    def _update_viewport(self, zoom: float, pan: Point) -> None:
        zoom = min(MAX_ZOOM, max(MIN_ZOOM, zoom))
        if (zoom, pan) == (self._zoom, self._pan):
            return
        self._zoom, self._pan = zoom, pan
        for listener in list(self._viewport_listeners):
            listener(zoom, pan)

    def apply_roam(self, zoom_factor: float = 1.0, dx: float = 0.0, dy: float = 0.0,
                   origin: Optional[Point] = None) -> None:
        """Fold an ECharts graphroam event (zoom around origin, or drag by dx/dy) into the viewport."""
        zoom = min(MAX_ZOOM, max(MIN_ZOOM, self._zoom * (zoom_factor or 1.0)))
        factor = zoom / self._zoom
        ox, oy = (origin.x, origin.y) if origin else (self.width / 2, self.height / 2)
        pan = Point(ox - (ox - self._pan.x) * factor + dx, oy - (oy - self._pan.y) * factor + dy)
        self._update_viewport(zoom, pan)

    async def refresh_chart_view(self) -> None:
        """Read zoom and center back from ECharts after the user roamed."""
        if self.chart is None:
            return
        try:
            options = await self.chart.run_chart_method('getOption')
            series = options['series'][0]
        except Exception as e:
            logger.debug(f"Could not read roam state from chart: {e}")
            return
        self.set_chart_view(series.get('zoom') or 1.0, series.get('center'))

    def screen_to_model(self, x: float, y: float) -> Point:
        return Point((x - self._pan.x) / self._zoom, (y - self._pan.y) / self._zoom)

    def _cached_to_screen(self, point: Point) -> Point:
        return Point(point.x * self._zoom + self._pan.x, point.y * self._zoom + self._pan.y)

    async def to_screen(self, point: Point) -> Point:
        """Pixel position of a model point as ECharts draws it."""
        if self.chart is not None:
            try:
                pixel = await self.chart.run_chart_method(
                    'convertToPixel', {'seriesIndex': 0}, [point.x, point.y])
                return Point(pixel[0], pixel[1])
            except Exception as e:
                logger.debug(f"convertToPixel failed ({e}), using cached viewport")
        return self._cached_to_screen(point)

    async def to_model(self, x: float, y: float) -> Point:
        """Model point under a pixel position, as ECharts maps it."""
        if self.chart is not None:
            try:
                converted = await self.chart.run_chart_method(
                    'convertFromPixel', {'seriesIndex': 0}, [x, y])
                return Point(converted[0], converted[1])
            except Exception as e:
                logger.debug(f"convertFromPixel failed ({e}), using cached viewport")
        return self.screen_to_model(x, y)

    def fit_view(self) -> None:
        if not self._views:
            return
        half = NODE_DIAMETER / 2
        xs = [v.position.x for v in self._views.values()]
        ys = [v.position.y for v in self._views.values()]
        min_x, max_x = min(xs) - half - FIT_PADDING, max(xs) + half + FIT_PADDING
        min_y, max_y = min(ys) - half - FIT_PADDING, max(ys) + half + FIT_PADDING

        zoom = min(self.width / (max_x - min_x), self.height / (max_y - min_y))
        zoom = min(MAX_ZOOM, max(MIN_ZOOM, zoom))
        cx, cy = (min_x + max_x) / 2, (min_y + max_y) / 2
        self.set_viewport(zoom, Point(self.width / 2 - cx * zoom, self.height / 2 - cy * zoom))
