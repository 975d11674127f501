"""
Edit Handlers - NiceGUI event wiring for the SkillMap canvas.

Translates ui.echart events into TapEvents for the InteractionController,
owns the floating rename field, the import/export UI and the blocking
notices, and keeps the canvas and the browser store in step with the
GraphStore.
"""

import asyncio
import logging
import time
from typing import Any, Dict

from nicegui import ui

from skillmap.canvas.chart_builder import (
    ELEMENT_OVERLAY,
    REQUESTED_EVENT_KEYS,
    dragged_positions,
    is_ghost_click,
    normalize_click_payload,
    resolve_element_from_payload,
)
from skillmap.canvas.echart_canvas import EChartCanvas
from skillmap.edit.controller import (
    InteractionController,
    InteractionMode,
    InteractionState,
    TapEvent,
    TapTarget,
    now_ms,
)
from skillmap.errors import ImportFormatError
from skillmap.graph_store import GraphStore
from skillmap.models import Point
from skillmap.storage.persistence import EXPORT_FILENAME, PersistenceAdapter

logger = logging.getLogger(__name__)

# A DOM click this close (either side) to an element click belongs to that element
GHOST_CLICK_SECONDS = 0.1

RENAME_FIELD_WIDTH = 220


def show_notice(message: str) -> None:
    """Blocking notice: a modal the user has to dismiss."""
    with ui.dialog() as dialog, ui.card().classes('w-80'):
        ui.label(message).classes('text-base')
        with ui.row().classes('w-full justify-end'):
            ui.button('OK', on_click=dialog.close).props('color=primary')
    dialog.open()


def setup_edit_handlers(
    store: GraphStore,
    canvas: EChartCanvas,
    controller: InteractionController,
    persistence: PersistenceAdapter,
) -> Dict[str, Any]:
    """
    Wire chart, store, controller and persistence together.

    Args:
        store: Document store (render source of truth)
        canvas: Rendering collaborator holding the ui.echart element
        controller: Gesture state machine
        persistence: Browser store adapter

    Returns:
        Dict with handler functions for binding to UI events
    """
    chart = canvas.chart
    state = {'render_pending': False, 'last_element_click': 0.0}

    # --- Rendering ---

    def render_now():
        state['render_pending'] = False
        canvas.render(store, selected_id=controller.state.selected_id)

    def request_render():
        """Coalesce changes into one render after the current event handler returns."""
        if state['render_pending']:
            return
        state['render_pending'] = True
        ui.timer(0, render_now, once=True)

    def on_store_change(canonical: bool):
        if canonical:
            persistence.save_state(store, canvas)
        request_render()

    store.subscribe(on_store_change)
    canvas.subscribe_viewport(lambda zoom, pan: persistence.save_state(store, canvas))

    # --- Rename field ---

    rename_input = ui.input().props('dense outlined bg-color=white').classes('absolute z-10')
    rename_input.set_visibility(False)

    async def show_rename_input(edit_state: InteractionState):
        """Place the field over the anchor where ECharts actually draws it."""
        pos = edit_state.rename_position or Point()
        if canvas.has_node(edit_state.anchor_id):
            pos = await canvas.to_screen(canvas.node_position(edit_state.anchor_id))
        if controller.state.mode != InteractionMode.RENAMING:
            return
        rename_input.style(
            f'left: {pos.x - RENAME_FIELD_WIDTH / 2}px; top: {pos.y - 20}px; '
            f'width: {RENAME_FIELD_WIDTH}px'
        )
        rename_input.set_visibility(True)
        rename_input.run_method('focus')

    def on_state_change(edit_state: InteractionState):
        if edit_state.mode == InteractionMode.RENAMING:
            rename_input.value = edit_state.rename_text
            ui.timer(0, lambda: show_rename_input(edit_state), once=True)
        else:
            rename_input.set_visibility(False)
        request_render()

    controller.set_on_state_change(on_state_change)

    def commit_rename():
        controller.commit_rename(rename_input.value or '')

    rename_input.on('keydown.enter', commit_rename)
    rename_input.on('keydown.escape', controller.cancel_rename)
    rename_input.on('blur', commit_rename)
    rename_input.on_value_change(lambda e: controller.update_rename_text(e.value))

    # --- Export / import ---

    def export_document():
        snapshot = persistence.capture(store, canvas)
        ui.download(persistence.export_bytes(snapshot), EXPORT_FILENAME)

    def import_document():
        with ui.dialog() as dialog, ui.card().classes('w-96'):
            ui.label('Import Map').classes('text-lg font-bold')

            def on_upload(e):
                try:
                    snapshot = persistence.import_bytes(e.content.read())
                except ImportFormatError as err:
                    dialog.close()
                    show_notice(str(err))
                    return
                PersistenceAdapter.apply(snapshot, store, canvas)
                dialog.close()
                ui.notify(f'Imported {e.name}', type='positive', position='bottom', timeout=1000)

            ui.upload(on_upload=on_upload, auto_upload=True).props('accept=.json').classes('w-full')
            with ui.row().classes('w-full justify-end'):
                ui.button('Cancel', on_click=dialog.close).props('flat')
        dialog.open()

    controller.notify = show_notice
    controller.on_export = export_document
    controller.on_import = import_document

    # --- Chart events ---

    def handle_chart_click(event):
        """Clicks on data items: real nodes and overlay buttons."""
        raw = event.args if hasattr(event, 'args') else event
        payload = normalize_click_payload(raw)
        resolved = resolve_element_from_payload(payload, store)
        if not resolved:
            return

        kind, element_id = resolved
        state['last_element_click'] = time.time()
        target = TapTarget.OVERLAY if kind == ELEMENT_OVERLAY else TapTarget.NODE
        controller.handle_tap(TapEvent(target, now_ms(), element_id))

    async def handle_background_click(event):
        """DOM clicks on the chart element; only those not claimed by a data item count."""
        timestamp, clicked_at = now_ms(), time.time()
        # Wait out the window so a chart:click that trails its DOM click is seen.
        # One arriving later than GHOST_CLICK_SECONDS still counts as a background
        # tap first; its overlay is then gone and the element click is ignored.
        await asyncio.sleep(GHOST_CLICK_SECONDS)
        if is_ghost_click(clicked_at, state['last_element_click'], GHOST_CLICK_SECONDS):
            return

        raw = event.args if hasattr(event, 'args') else event
        if not isinstance(raw, dict):
            return
        point = await canvas.to_model(raw.get('offsetX', 0), raw.get('offsetY', 0))
        controller.handle_tap(TapEvent(TapTarget.BACKGROUND, timestamp, position=point))

    async def handle_roam(event):
        """Fold pan/zoom into the canvas viewport (persisted via its listener)."""
        raw = event.args if hasattr(event, 'args') else {}
        if not isinstance(raw, dict):
            return
        origin = None
        if raw.get('originX') is not None and raw.get('originY') is not None:
            origin = Point(raw['originX'], raw['originY'])
        canvas.apply_roam(
            zoom_factor=raw.get('zoom') or 1.0,
            dx=raw.get('dx') or 0.0,
            dy=raw.get('dy') or 0.0,
            origin=origin,
        )
        await canvas.refresh_chart_view()

    async def sync_positions(event=None):
        """Mirror dragged node positions back into the store."""
        try:
            options = await chart.run_chart_method('getOption')
            data = options['series'][0]['data']
        except Exception as e:
            logger.debug(f"Could not read node positions from chart: {e}")
            return
        for node_id, position in dragged_positions(data, canvas.locked_ids):
            store.move_node(node_id, position)

    if chart is not None:
        chart.on('chart:click', handle_chart_click, REQUESTED_EVENT_KEYS)
        chart.on('click', handle_background_click, ['offsetX', 'offsetY'])
        chart.on('chart:graphroam', handle_roam, ['zoom', 'dx', 'dy', 'originX', 'originY'])
        chart.on('chart:mouseup', sync_positions, REQUESTED_EVENT_KEYS)

    return {
        'handle_chart_click': handle_chart_click,
        'handle_background_click': handle_background_click,
        'handle_roam': handle_roam,
        'sync_positions': sync_positions,
        'export_document': export_document,
        'import_document': import_document,
        'request_render': request_render,
        'render_now': render_now,
    }
