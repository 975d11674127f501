"""
Main NiceGUI application for SkillMap.

Loads the document from the browser store, renders it full-screen with
ui.echart, and hands every click to the InteractionController. There is no
toolbar: single-click a node to recolor it, double-click a node for
Rename / Add New / Delete, double-click the background for
Fit View / Reset / Export / Import.
"""

import logging
import sys

from dotenv import load_dotenv
from nicegui import app, ui

load_dotenv()

from skillmap.canvas import EChartCanvas, build_echart_options
from skillmap.config import get_editor_settings
from skillmap.edit import InteractionController
from skillmap.edit.handlers import setup_edit_handlers
from skillmap.graph_store import GraphStore
from skillmap.models import ROOT_ID
from skillmap.storage import PersistenceAdapter

settings = get_editor_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger('skillmap')


@ui.page('/')
def main_page():
    persistence = PersistenceAdapter(app.storage.user, key=settings.storage_key)
    snapshot = persistence.load()
    store = GraphStore(snapshot.nodes, snapshot.edges, balance_chars=settings.balance_chars)

    ui.query('body').style('margin: 0; overflow: hidden; background: #1e1e1e')
    ui.label('Knowledge and Skill Map').classes(
        'fixed top-2 left-4 z-10 text-lg font-bold text-gray-200 pointer-events-none'
    )

    chart = ui.echart(build_echart_options(store.nodes, store.edges))
    chart.style('width: 100vw; height: 100vh; position: absolute; top: 0; left: 0; z-index: 0;')

    canvas = EChartCanvas(chart)
    canvas.set_viewport(snapshot.zoom, snapshot.pan)

    controller = InteractionController(
        store, canvas,
        double_click_ms=settings.double_click_ms,
        min_font=settings.min_font,
        max_font=settings.max_font,
    )
    handlers = setup_edit_handlers(store, canvas, controller, persistence)

    handlers['render_now']()
    canvas.lock_node(ROOT_ID)
    logger.info(f"Loaded map with {len(store.nodes)} nodes")


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='SkillMap',
        port=settings.port,
        reload=not getattr(sys, 'frozen', False),
        storage_secret=settings.storage_secret,
    )
