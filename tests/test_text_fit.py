"""
Tests for label fitting.

Most tests use a simple integer-friendly metric: each character is half the
font size wide and each line is one font size tall.
"""

import pytest

from skillmap.canvas import EChartCanvas
from skillmap.graph_store import GraphStore
from skillmap.models import ROOT_ID
from skillmap.text_fit import (
    balance_label,
    fit_label,
    fit_node,
    normalize_label,
    split_words,
    wrap_words,
)


def half_width_measure(text, font_size):
    lines = text.split("\n")
    return max(len(line) for line in lines) * font_size * 0.5, len(lines) * font_size


class RecordingMeasure:
    def __init__(self, measure=half_width_measure):
        self.measure = measure
        self.calls = []

    def __call__(self, text, font_size):
        self.calls.append((text, font_size))
        return self.measure(text, font_size)


class TestLabelHelpers:

    def test_normalize_label_replaces_breaks(self):
        assert normalize_label("machine\nlearning\r\nbasics") == "machine learning basics"

    def test_split_words_ignores_extra_whitespace(self):
        assert split_words("  a \n b   c ") == ["a", "b", "c"]

    def test_wrap_words_uses_ceiling_per_line(self):
        words = ["a", "b", "c", "d", "e"]
        assert wrap_words(words, 2) == "a b c\nd e"
        assert wrap_words(words, 5) == "a\nb\nc\nd\ne"

    def test_wrap_words_can_produce_fewer_lines_than_requested(self):
        # 4 words over 3 lines -> 2 per line -> only 2 lines
        assert wrap_words(["a", "b", "c", "d"], 3) == "a b\nc d"

    def test_balance_label_packs_greedily(self):
        text = "the quick brown fox jumps over the lazy dog"
        assert balance_label(text, 20) == "the quick brown fox\njumps over the lazy\ndog"

    def test_balance_label_long_word_gets_own_line(self):
        text = "supercalifragilisticexpialidocious is long"
        assert balance_label(text, 20) == "supercalifragilisticexpialidocious\nis long"

    def test_balance_label_is_stable_on_its_own_output(self):
        once = balance_label("graph theory for beginners and experts alike", 20)
        assert balance_label(once, 20) == once


class TestFitLabel:

    def test_four_word_label_in_80px_box(self):
        result = fit_label("machine learning fundamentals overview", 80, half_width_measure,
                           min_font=6, max_font=100)
        assert result.fitted
        assert result.font_size == 13
        assert result.label == "machine\nlearning\nfundamentals\noverview"
        assert result.line_count == 4
        width, height = half_width_measure(result.label, result.font_size)
        assert width <= 80 and height <= 80

    def test_result_is_the_largest_fitting_font(self):
        label = "machine learning fundamentals overview"
        result = fit_label(label, 80, half_width_measure)
        words = split_words(label)
        bigger = result.font_size + 1
        for line_count in range(1, len(words) + 1):
            width, height = half_width_measure(wrap_words(words, line_count), bigger)
            assert width > 80 or height > 80

    def test_fewest_lines_win_at_a_given_size(self):
        measure = RecordingMeasure()
        result = fit_label("tiny map", 1000, measure)
        assert result.label == "tiny map"
        assert result.line_count == 1
        assert measure.calls == [("tiny map", 100)]

    def test_line_counts_ascend_within_a_font_size(self):
        measure = RecordingMeasure()
        fit_label("alpha beta gamma", 40, measure, min_font=6, max_font=6)
        assert [text for text, _ in measure.calls] == ["alpha beta gamma", "alpha beta\ngamma"]

    def test_existing_breaks_are_discarded(self):
        result = fit_label("tiny\nmap", 1000, half_width_measure)
        assert result.label == "tiny map"

    def test_single_long_word_falls_back_and_terminates(self):
        measure = RecordingMeasure()
        result = fit_label("a" * 50, 10, measure, min_font=6, max_font=100)
        assert not result.fitted
        assert result.font_size == 6
        assert result.label == "a" * 50
        # one line count per font size, 100 down to 6
        assert len(measure.calls) == 95

    def test_fallback_keeps_words_unwrapped(self):
        result = fit_label("far\ntoo many words", 1, half_width_measure)
        assert not result.fitted
        assert result.label == "far too many words"

    def test_empty_label_falls_back_to_min_font(self):
        result = fit_label("", 80, half_width_measure, min_font=6)
        assert not result.fitted
        assert result.font_size == 6
        assert result.label == ""

    def test_repeated_runs_are_deterministic(self):
        label = "a label that needs a couple of lines"
        first = fit_label(label, 80, half_width_measure)
        second = fit_label(label, 80, half_width_measure)
        assert first == second

    @pytest.mark.parametrize("label", [
        "machine learning fundamentals overview",
        "short",
        "one two three four five six seven",
    ])
    def test_shrinking_box_never_grows_font(self, label):
        sizes = [fit_label(label, target, half_width_measure).font_size
                 for target in (160, 120, 80, 60, 40, 20)]
        assert sizes == sorted(sizes, reverse=True)


class TestFitNode:

    @pytest.fixture
    def store(self):
        return GraphStore()

    @pytest.fixture
    def canvas(self, store):
        canvas = EChartCanvas()
        canvas.render(store)
        return canvas

    def test_fit_node_stores_result(self, store, canvas):
        result = fit_node(store, canvas, ROOT_ID)
        assert result.fitted
        root = store.get_node(ROOT_ID)
        assert root.font_size == 26
        assert root.label == "new\ntopic"
        assert canvas.label_bbox(ROOT_ID) == canvas.metrics.measure("new\ntopic", 26)

    def test_fit_node_missing_node_is_noop(self, store, canvas):
        assert fit_node(store, canvas, "node-42") is None
        assert store.get_node(ROOT_ID).font_size == 12

    def test_fit_node_respects_font_bounds(self, store, canvas):
        result = fit_node(store, canvas, ROOT_ID, min_font=6, max_font=10)
        assert result.font_size == 10
        assert result.label == "new topic"
