"""
Rendering collaborator for SkillMap.

- CanvasRenderer: protocol the core depends on
- EChartCanvas: NiceGUI/ECharts implementation
- build_echart_options: document -> ECharts option dict
"""

from skillmap.canvas.protocol import CanvasRenderer
from skillmap.canvas.chart_builder import (
    build_echart_options,
    normalize_click_payload,
    resolve_element_from_payload,
    REQUESTED_EVENT_KEYS,
)
from skillmap.canvas.echart_canvas import EChartCanvas, TextMetrics

__all__ = [
    'CanvasRenderer',
    'EChartCanvas',
    'TextMetrics',
    'build_echart_options',
    'normalize_click_payload',
    'resolve_element_from_payload',
    'REQUESTED_EVENT_KEYS',
]
