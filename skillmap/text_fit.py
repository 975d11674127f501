"""
Label fitting for circular nodes.

The canvas can only tell us how big a label is after it has laid it out, so
fitting is a search: try a font size and a line wrapping, ask the renderer to
measure it, keep going until the label fits inside the node.

Search order (largest font wins):
  for font_size in max_font .. min_font (descending):
      for line_count in 1 .. word_count (ascending):
          wrap ceil(word_count / line_count) words per line
          accept if width <= target and height <= target
When nothing fits, the label is stored unwrapped at min_font.

The accepted size is used as-is (no damping factor), so repeated runs with the
same measurements reproduce the same result.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from skillmap.canvas.protocol import CanvasRenderer
    from skillmap.graph_store import GraphStore

logger = logging.getLogger(__name__)

LINE_BREAK = "\n"

MIN_FONT_SIZE = 6
MAX_FONT_SIZE = 100

# Long rename commits are pre-wrapped to lines of at most this many characters
BALANCE_MAX_CHARS = 20

# measure(label, font_size) -> (width, height) of the rendered label
Measure = Callable[[str, float], Tuple[float, float]]


@dataclass(frozen=True)
class FitResult:
    label: str
    font_size: float
    line_count: int
    fitted: bool


def normalize_label(label: str) -> str:
    """Replace embedded line breaks with spaces."""
    return (label or "").replace("\r\n", " ").replace("\r", " ").replace(LINE_BREAK, " ")


def split_words(label: str) -> List[str]:
    return normalize_label(label).split()


def wrap_words(words: List[str], line_count: int) -> str:
    """Put ceil(len(words) / line_count) words on each line, left to right."""
    if not words:
        return ""
    per_line = math.ceil(len(words) / line_count)
    lines = [" ".join(words[i:i + per_line]) for i in range(0, len(words), per_line)]
    return LINE_BREAK.join(lines)


def balance_label(text: str, max_chars: int = BALANCE_MAX_CHARS) -> str:
    """
    Greedily pack words into lines of at most max_chars characters.

    A word longer than max_chars gets a line of its own.
    """
    lines: List[str] = []
    current = ""
    for word in split_words(text):
        if not current:
            current = word
        elif len(current) + 1 + len(word) <= max_chars:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return LINE_BREAK.join(lines)


def fit_label(label: str, target_size: float, measure: Measure,
              min_font: float = MIN_FONT_SIZE, max_font: float = MAX_FONT_SIZE,
              step: float = 1) -> FitResult:
    """
    Find the largest font size and the fewest lines that fit target_size.

    Args:
        label: Label text; existing line breaks are discarded before wrapping
        target_size: Inscribed diameter of the node (min of its width/height)
        measure: Callback returning the rendered (width, height) of a label
        min_font: Smallest font size tried (inclusive)
        max_font: Largest font size tried (inclusive)
        step: Decrement between font sizes

    Returns:
        FitResult; fitted is False when even min_font did not fit
    """
    words = split_words(label)

    font_size = max_font
    while font_size >= min_font:
        for line_count in range(1, len(words) + 1):
            candidate = wrap_words(words, line_count)
            width, height = measure(candidate, font_size)
            if width <= target_size and height <= target_size:
                return FitResult(candidate, font_size, candidate.count(LINE_BREAK) + 1, True)
        font_size -= step

    fallback = " ".join(words)
    logger.info(f"No fit found for label {fallback!r} in {target_size}px, using font size {min_font}")
    return FitResult(fallback, min_font, 1, False)


def renderer_measure(renderer: "CanvasRenderer", node_id: str) -> Measure:
    """Measure labels by writing them into the rendered node and reading back its box."""
    def measure(candidate: str, font_size: float) -> Tuple[float, float]:
        renderer.set_label(node_id, candidate)
        renderer.set_font_size(node_id, font_size)
        renderer.remeasure(node_id)
        return renderer.label_bbox(node_id)
    return measure


def fit_node(store: "GraphStore", renderer: "CanvasRenderer", node_id: str,
             min_font: float = MIN_FONT_SIZE, max_font: float = MAX_FONT_SIZE) -> Optional[FitResult]:
    """
    Run one fit pass for node_id and store the result.

    Returns None without touching anything if the node is gone (a deferred
    pass can outlive its node).
    """
    node = store.get_node(node_id)
    if node is None or not renderer.has_node(node_id):
        logger.debug(f"Skipping fit pass for missing node {node_id}")
        return None

    width, height = renderer.node_bbox(node_id)
    result = fit_label(node.label, min(width, height), renderer_measure(renderer, node_id),
                       min_font=min_font, max_font=max_font)
    # The search leaves the last candidate on the canvas; put the winner back
    renderer.set_label(node_id, result.label)
    renderer.set_font_size(node_id, result.font_size)
    renderer.remeasure(node_id)
    store.apply_fit(node_id, result.label, result.font_size, result.fitted)
    return result
