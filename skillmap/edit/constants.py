"""
Shared constants for the click-driven editing system.
"""

# Two taps on the same target closer than this are a double-click
DOUBLE_CLICK_WINDOW_MS = 300

# Color picker: one round swatch per node type, in a row above the node
SWATCH_SIZE = 30
SWATCH_GAP = 10
SWATCH_MARGIN = 30  # between the node's top edge and the swatch centers

# Action buttons (node actions and background menu)
BUTTON_WIDTH = 80
BUTTON_HEIGHT = 28
BUTTON_GAP = 8
BUTTON_MARGIN = 30  # between the node's bottom edge and the button centers
BUTTON_FILL = '#424242'
BUTTON_TEXT = '#ffffff'
DELETE_FILL = '#b71c1c'

# Overlay labels are the dispatch keys
RENAME = 'Rename'
ADD_NEW = 'Add New'
DELETE = 'Delete'
FIT_VIEW = 'Fit View'
RESET = 'Reset'
EXPORT = 'Export'
IMPORT = 'Import'

NODE_ACTION_LABELS = (RENAME, ADD_NEW, DELETE)
BACKGROUND_ACTION_LABELS = (FIT_VIEW, RESET, EXPORT, IMPORT)
