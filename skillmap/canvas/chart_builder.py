"""
ECharts options builder for the SkillMap canvas.

Converts the canonical nodes/edges plus the live overlay family into a single
ECharts 'graph' series with preset positions. Node colors come from the static
TYPE_COLORS table; overlays are drawn as small buttons on top of the map.
"""

from typing import Any, Collection, Dict, Iterable, List, Optional, Tuple

from skillmap.models import NODE_DIAMETER, TYPE_COLORS, Edge, Node, OverlayNode, Point


# Event keys we request from ECharts click events
REQUESTED_EVENT_KEYS = ['componentType', 'name', 'dataType', 'value']

# Stored in each data item's 'value' so click payloads say what was hit
ELEMENT_NODE = 'node'
ELEMENT_OVERLAY = 'overlay'

# Text metrics shared with EChartCanvas so measured and drawn labels agree
LINE_HEIGHT_RATIO = 1.2

BACKGROUND_COLOR = '#1e1e1e'
EDGE_COLOR = '#cccccc'
SELECTED_BORDER_COLOR = '#ff0000'


def node_to_echart_node(node: Node, selected: bool = False, locked: bool = False) -> Dict[str, Any]:
    fill, text = TYPE_COLORS[node.type]
    return {
        'id': node.id,
        'name': node.id,
        'value': ELEMENT_NODE,
        'x': node.position.x,
        'y': node.position.y,
        'symbol': 'circle',
        'symbolSize': NODE_DIAMETER,
        'draggable': not (node.locked or locked),
        'itemStyle': {
            'color': fill,
            'borderColor': SELECTED_BORDER_COLOR if selected else fill,
            'borderWidth': 4 if selected else 0,
        },
        'label': {
            'show': True,
            'position': 'inside',
            'formatter': node.label,
            'fontSize': node.font_size,
            'lineHeight': round(node.font_size * LINE_HEIGHT_RATIO, 2),
            'color': text,
        },
        'tooltip': {'show': False},
    }


def overlay_to_echart_node(overlay: OverlayNode) -> Dict[str, Any]:
    is_swatch = overlay.width == overlay.height
    return {
        'id': overlay.id,
        'name': overlay.id,
        'value': ELEMENT_OVERLAY,
        'x': overlay.position.x,
        'y': overlay.position.y,
        'symbol': 'circle' if is_swatch else 'roundRect',
        'symbolSize': overlay.width if is_swatch else [overlay.width, overlay.height],
        'draggable': False,
        'itemStyle': {
            'color': overlay.fill,
            'borderColor': '#ffffff',
            'borderWidth': 1,
        },
        'label': {
            'show': not is_swatch,
            'position': 'inside',
            'formatter': overlay.label,
            'fontSize': 11,
            'color': overlay.text_color,
        },
        'tooltip': {'show': is_swatch, 'formatter': overlay.label},
    }


def build_echart_options(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    overlays: Iterable[OverlayNode] = (),
    zoom: float = 1.0,
    selected_id: Optional[str] = None,
    locked_ids: Collection[str] = (),
) -> Dict[str, Any]:
    """
    Build ECharts options for the whole document.

    Args:
        nodes: Canonical nodes
        edges: Canonical parent -> child edges
        overlays: Live overlay family (drawn after nodes so they sit on top)
        zoom: Current zoom factor
        selected_id: Node drawn with the selection border
        locked_ids: Extra node ids drawn as not draggable

    Returns:
        ECharts options dict ready for ui.echart()
    """
    node_list = list(nodes)
    known = {n.id for n in node_list}

    data = [node_to_echart_node(n, selected=(n.id == selected_id), locked=(n.id in locked_ids))
            for n in node_list]
    data.extend(overlay_to_echart_node(o) for o in overlays)

    links = []
    for e in edges:
        if e.source not in known or e.target not in known:
            continue
        links.append({
            'source': e.source,
            'target': e.target,
            'symbol': ['none', 'arrow'],
            'symbolSize': [0, 10],
            'lineStyle': {'color': EDGE_COLOR, 'width': 2, 'curveness': 0.1},
        })

    return {
        'backgroundColor': BACKGROUND_COLOR,
        'tooltip': {},
        'animation': False,
        'series': [{
            'type': 'graph',
            'layout': 'none',
            'roam': True,
            'zoom': zoom,
            'scaleLimit': {'min': 0.5, 'max': 2},
            'data': data,
            'links': links,
        }],
    }


def normalize_click_payload(raw_payload: Any) -> Dict[str, Any]:
    """Normalize NiceGUI chart click payloads into a dictionary for easier parsing."""
    if isinstance(raw_payload, dict):
        return raw_payload
    if isinstance(raw_payload, (list, tuple)):
        return {
            REQUESTED_EVENT_KEYS[i]: raw_payload[i]
            for i in range(min(len(raw_payload), len(REQUESTED_EVENT_KEYS)))
        }
    if isinstance(raw_payload, str):
        return {'name': raw_payload}
    return {}


def resolve_element_from_payload(payload: Dict[str, Any], store) -> Optional[Tuple[str, str]]:
    """
    Return (ELEMENT_NODE | ELEMENT_OVERLAY, id) for a click on a data item.

    Edge clicks, non-series clicks and ids the store no longer knows give None.
    """
    if not isinstance(payload, dict):
        return None
    if payload.get('componentType') != 'series' or payload.get('dataType') == 'edge':
        return None

    element_id = payload.get('name')
    if not element_id:
        return None

    if store.get_overlay(element_id) is not None:
        return ELEMENT_OVERLAY, element_id
    if store.has_node(element_id):
        return ELEMENT_NODE, element_id
    return None


def dragged_positions(data: Iterable[Dict[str, Any]],
                      locked_ids: Collection[str] = ()) -> List[Tuple[str, Point]]:
    """(node id, position) for every real, unlocked node in a getOption data list."""
    positions = []
    for item in data:
        if item.get('value') != ELEMENT_NODE or item.get('name') in locked_ids:
            continue
        if item.get('x') is None or item.get('y') is None:
            continue
        positions.append((item['name'], Point(item['x'], item['y'])))
    return positions


def is_ghost_click(dom_click_at: float, element_click_at: float, window: float) -> bool:
    """
    True if a DOM click belongs to a chart:click on a data item.

    The two events for one click can arrive in either order; both are matched
    as long as they are less than `window` seconds apart.
    """
    return abs(dom_click_at - element_click_at) < window
