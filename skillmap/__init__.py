"""
SkillMap - click-driven knowledge and skill map editor.

Core pieces:
- graph_store: canonical node/edge collection and overlay family
- cascade: subtree closure used by delete
- text_fit: label/font-size fitting for circular nodes
- edit: gesture state machine and NiceGUI wiring
- canvas: ECharts rendering collaborator
- storage: snapshot persistence and file import/export
"""

__version__ = "0.1.0"
