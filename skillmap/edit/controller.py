"""
Interaction Controller - gesture state machine for click-only editing.

Raw taps from the canvas come in tagged with what was hit (background, a real
node, or an overlay button) and a monotonic timestamp. The controller turns
them into gestures and drives the GraphStore:

- single tap on a node      -> color picker (one swatch per node type)
- double tap on a node      -> Rename / Add New / Delete buttons
- double tap on background  -> Fit View / Reset / Export / Import
- tap on an overlay button  -> run its action, close the family
- single tap on background  -> clear overlays and selection

Renaming is driven by the text field (commit on Enter or blur, cancel on
Escape), not by canvas taps.

Label changes need one render before they can be measured, so fit passes are
registered with the canvas as "after the next render" callbacks and re-check
that their node still exists when they finally run.
"""

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from skillmap.canvas.protocol import CanvasRenderer
from skillmap.edit.constants import (
    ADD_NEW,
    DELETE,
    DOUBLE_CLICK_WINDOW_MS,
    EXPORT,
    FIT_VIEW,
    IMPORT,
    RENAME,
    RESET,
)
from skillmap.edit.overlay import (
    background_actions_family,
    color_picker_family,
    node_actions_family,
)
from skillmap.errors import NoSelectionError, SkillMapError
from skillmap.graph_store import GraphStore
from skillmap.models import OverlayFamily, OverlayNode, Point, default_root
from skillmap.text_fit import MAX_FONT_SIZE, MIN_FONT_SIZE, fit_node, split_words

logger = logging.getLogger(__name__)


def now_ms() -> float:
    """Monotonic clock in milliseconds for tap timestamps."""
    return time.monotonic() * 1000


class InteractionMode(str, Enum):
    IDLE = "idle"
    OVERLAY_OPEN = "overlay_open"
    RENAMING = "renaming"


class TapTarget(str, Enum):
    BACKGROUND = "background"
    NODE = "node"
    OVERLAY = "overlay"


@dataclass(frozen=True)
class TapEvent:
    """
    One tap reported by the canvas.

    element_id is the real node or overlay id (None for background taps);
    position is the tap point in model coordinates.
    """
    target: TapTarget
    timestamp: float
    element_id: Optional[str] = None
    position: Optional[Point] = None


@dataclass(frozen=True)
class LastTap:
    node_id: str
    timestamp: float


@dataclass(frozen=True)
class InteractionState:
    """Immutable snapshot of the gesture state machine."""
    mode: InteractionMode = InteractionMode.IDLE
    family: Optional[OverlayFamily] = None
    anchor_id: Optional[str] = None
    anchor_point: Optional[Point] = None
    selected_id: Optional[str] = None
    rename_text: str = ""
    rename_position: Optional[Point] = None
    last_tap: Optional[LastTap] = None
    last_background_tap: Optional[float] = None


class InteractionController:
    """Classifies taps and dispatches them to the GraphStore and canvas."""

    def __init__(self, store: GraphStore, renderer: CanvasRenderer,
                 notify: Optional[Callable[[str], None]] = None,
                 on_export: Optional[Callable[[], None]] = None,
                 on_import: Optional[Callable[[], None]] = None,
                 double_click_ms: float = DOUBLE_CLICK_WINDOW_MS,
                 min_font: float = MIN_FONT_SIZE,
                 max_font: float = MAX_FONT_SIZE):
        """
        Args:
            store: Document store to mutate
            renderer: Rendering collaborator, wired once here
            notify: Shows a blocking user-visible notice
            on_export: Called for the background 'Export' button
            on_import: Called for the background 'Import' button
            double_click_ms: Window for double-click detection
            min_font: Smallest font size the fitter may choose
            max_font: Largest font size the fitter may choose
        """
        self.store = store
        self.renderer = renderer
        self.notify = notify
        self.on_export = on_export
        self.on_import = on_import
        self.double_click_ms = double_click_ms
        self.min_font = min_font
        self.max_font = max_font
        self._state = InteractionState()
        self._on_state_change: Optional[Callable[[InteractionState], None]] = None
        store.set_fit_scheduler(self.schedule_fit)

    @property
    def state(self) -> InteractionState:
        return self._state

    def set_on_state_change(self, callback: Callable[[InteractionState], None]):
        self._on_state_change = callback

    def _set_state(self, state: InteractionState) -> InteractionState:
        self._state = state
        if self._on_state_change:
            self._on_state_change(state)
        return state

    def _notify_user(self, message: str) -> None:
        if self.notify:
            self.notify(message)
        else:
            logger.warning(message)

    def _within_window(self, previous: float, current: float) -> bool:
        return 0 <= current - previous < self.double_click_ms

    def _node_position(self, node_id: str) -> Point:
        if self.renderer.has_node(node_id):
            return self.renderer.node_position(node_id)
        return self.store.get_node(node_id).position

    # --- Taps ---

    def handle_tap(self, event: TapEvent) -> InteractionState:
        if self._state.mode == InteractionMode.RENAMING:
            logger.debug(f"Ignoring {event.target.value} tap while renaming")
            return self._state

        if event.target == TapTarget.OVERLAY:
            return self._handle_overlay_tap(event)
        if event.target == TapTarget.NODE:
            return self._handle_node_tap(event)
        return self._handle_background_tap(event)

    def _handle_node_tap(self, event: TapEvent) -> InteractionState:
        node_id = event.element_id
        if not self.store.has_node(node_id):
            logger.debug(f"Tap on unknown node {node_id}")
            return self._state

        self.store.clear_overlays()
        position = self._node_position(node_id)
        last = self._state.last_tap

        if last and last.node_id == node_id and self._within_window(last.timestamp, event.timestamp):
            logger.debug(f"Double-click on {node_id}")
            family = OverlayFamily.NODE_ACTIONS
            overlays = node_actions_family(node_id, position)
            last_tap = None
        else:
            logger.debug(f"Single click on {node_id}")
            family = OverlayFamily.COLOR_PICKER
            overlays = color_picker_family(node_id, position)
            last_tap = LastTap(node_id, event.timestamp)

        self.store.show_overlays(overlays)
        return self._set_state(InteractionState(
            mode=InteractionMode.OVERLAY_OPEN, family=family, anchor_id=node_id,
            selected_id=node_id, last_tap=last_tap,
        ))

    def _handle_background_tap(self, event: TapEvent) -> InteractionState:
        self.store.clear_overlays()
        last = self._state.last_background_tap

        if last is not None and self._within_window(last, event.timestamp):
            point = event.position or Point()
            logger.debug(f"Background double-click at ({point.x:.0f}, {point.y:.0f})")
            self.store.show_overlays(background_actions_family(point))
            return self._set_state(InteractionState(
                mode=InteractionMode.OVERLAY_OPEN, family=OverlayFamily.BACKGROUND_ACTIONS,
                anchor_point=point,
            ))

        return self._set_state(InteractionState(last_background_tap=event.timestamp))

    def _handle_overlay_tap(self, event: TapEvent) -> InteractionState:
        overlay = self.store.get_overlay(event.element_id)
        self.store.clear_overlays()
        self._set_state(InteractionState(selected_id=self._state.selected_id))
        if overlay is None:
            logger.debug(f"Tap on stale overlay {event.element_id}")
            return self._state

        try:
            self._dispatch(overlay)
        except SkillMapError as e:
            self._notify_user(str(e))
        return self._state

    def _dispatch(self, overlay: OverlayNode) -> None:
        label, target = overlay.label, overlay.target_id

        if label == FIT_VIEW:
            self.renderer.fit_view()
        elif label == RESET:
            self.reset_document()
        elif label == EXPORT:
            if self.on_export:
                self.on_export()
        elif label == IMPORT:
            if self.on_import:
                self.on_import()
        elif not target:
            raise NoSelectionError(label)
        elif label == DELETE:
            self.store.delete_subtree(target)
            self._set_state(InteractionState())
        elif label == RENAME:
            self.begin_rename(target)
        elif label == ADD_NEW:
            new_id = self.store.add_child(target)
            self.schedule_fit(new_id)
        else:
            self.store.set_type(target, label)

    def reset_document(self) -> None:
        """Replace the document with a lone root node and reset the viewport."""
        logger.info("Resetting document to the default graph")
        self.store.replace([default_root()], [])
        self.renderer.set_viewport(1.0, Point(0, 0))
        self._set_state(InteractionState())

    # --- Renaming ---

    def begin_rename(self, node_id: str) -> InteractionState:
        node = self.store.get_node(node_id)
        if node is None:
            raise NoSelectionError(RENAME)

        if self.renderer.has_node(node_id):
            position = self.renderer.rendered_position(node_id)
        else:
            position = node.position
        return self._set_state(InteractionState(
            mode=InteractionMode.RENAMING, anchor_id=node_id, selected_id=node_id,
            rename_text=" ".join(split_words(node.label)), rename_position=position,
        ))

    def update_rename_text(self, text: str) -> None:
        if self._state.mode == InteractionMode.RENAMING:
            self._state = replace(self._state, rename_text=text or "")

    def commit_rename(self, text: Optional[str] = None) -> bool:
        """
        Store the pending text as the node's label. Returns True if it changed.

        No-op outside RENAMING, so a blur right after Enter is harmless.
        """
        if self._state.mode != InteractionMode.RENAMING:
            return False

        node_id = self._state.anchor_id
        pending = self._state.rename_text if text is None else text
        self._set_state(InteractionState(selected_id=node_id))
        self.store.clear_overlays()
        # rename_node trims, balance-wraps long text and schedules the fit pass
        return self.store.rename_node(node_id, pending.strip())

    def cancel_rename(self) -> None:
        if self._state.mode != InteractionMode.RENAMING:
            return
        self._set_state(InteractionState(selected_id=self._state.anchor_id))
        self.store.clear_overlays()

    # --- Deferred fit passes ---

    def schedule_fit(self, node_id: str) -> None:
        """Run a fit pass for node_id once the canvas has rendered again."""
        self.renderer.on_next_render(lambda: self.run_fit_pass(node_id))

    def run_fit_pass(self, node_id: str) -> None:
        try:
            fit_node(self.store, self.renderer, node_id,
                     min_font=self.min_font, max_font=self.max_font)
        except Exception:
            logger.exception(f"Fit pass for {node_id} failed")
