"""
Click-driven editing system for the SkillMap canvas.

This package provides the gesture layer:
- InteractionController: gesture state machine and action dispatch
- overlay: action-button families (color picker, node actions, background menu)
- setup_edit_handlers: NiceGUI event wiring for app.py

Usage:
    from skillmap.edit import InteractionController, TapEvent, TapTarget
    from skillmap.edit.handlers import setup_edit_handlers
"""

from skillmap.edit.constants import (
    DOUBLE_CLICK_WINDOW_MS,
    NODE_ACTION_LABELS,
    BACKGROUND_ACTION_LABELS,
)
from skillmap.edit.controller import (
    InteractionController,
    InteractionMode,
    InteractionState,
    TapEvent,
    TapTarget,
)
from skillmap.edit.overlay import (
    color_picker_family,
    node_actions_family,
    background_actions_family,
)

__all__ = [
    'InteractionController',
    'InteractionMode',
    'InteractionState',
    'TapEvent',
    'TapTarget',
    'color_picker_family',
    'node_actions_family',
    'background_actions_family',
    'DOUBLE_CLICK_WINDOW_MS',
    'NODE_ACTION_LABELS',
    'BACKGROUND_ACTION_LABELS',
]
