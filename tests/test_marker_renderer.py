"""Tests for quickmarks.modules.bookmarks.renderer."""

import pytest

from quickmarks.modules.bookmarks.registry import Bookmark, BookmarkRegistry, Position
from quickmarks.modules.bookmarks.renderer import (
    HighlightSpan,
    LabelSpan,
    MarkerRenderer,
    MarkerStyle,
    RenderedMarkerSet,
)


def _table(**slots):
    return {int(k[1:]): v for k, v in slots.items()}


class TestRefresh:
    def test_single_bookmark(self):
        renderer = MarkerRenderer()
        markers = renderer.refresh("fileA", {1: Bookmark("fileA", Position(5, 7))})
        assert markers.highlights == (
            HighlightSpan(1, Position(5, 0), Position(6, 0), "Bookmark 1"),
        )
        assert markers.labels == (
            LabelSpan(1, Position(5, 0), "[1]", "rgba(178, 34, 34, 1)",
                      "bold", "0 0 0 5px"),
        )

    def test_filters_other_documents(self):
        table = _table(
            s1=Bookmark("fileA", Position(1)),
            s2=Bookmark("fileB", Position(2)),
            s3=Bookmark("fileA", Position(3)),
        )
        markers = MarkerRenderer().refresh("fileA", table)
        assert markers.slots == [1, 3]
        assert markers.lines() == {1: 1, 3: 3}
        assert [label.text for label in markers.labels] == ["[1]", "[3]"]

    def test_no_match_is_empty(self):
        markers = MarkerRenderer().refresh("fileC", {1: Bookmark("fileA", Position(1))})
        assert not markers
        assert markers == RenderedMarkerSet("fileC")

    def test_accepts_registry_and_pairs(self):
        registry = BookmarkRegistry()
        registry.set(4, "fileA", Position(8))
        renderer = MarkerRenderer()
        from_registry = renderer.refresh("fileA", registry)
        from_pairs = renderer.refresh("fileA", registry.items())
        assert from_registry == from_pairs
        assert from_registry.slots == [4]

    def test_empty_slots_skipped(self):
        markers = MarkerRenderer().refresh("fileA", {1: None, 2: Bookmark("fileA", Position(0))})
        assert markers.slots == [2]

    def test_same_line_two_slots(self):
        table = {2: Bookmark("fileA", Position(4)), 7: Bookmark("fileA", Position(4, 9))}
        markers = MarkerRenderer().refresh("fileA", table)
        assert [h.hover for h in markers.highlights] == ["Bookmark 2", "Bookmark 7"]

    def test_custom_style(self):
        style = MarkerStyle(label_color="green", label_format="#{slot}",
                            hover_format="Mark {slot}")
        markers = MarkerRenderer(style).refresh("fileA", {9: Bookmark("fileA", Position(0))})
        assert markers.labels[0].text == "#9"
        assert markers.labels[0].color == "green"
        assert markers.highlights[0].hover == "Mark 9"


class TestStyleFromConfig:
    def test_unset_keys_keep_defaults(self):
        class Cfg:
            def get(self, key, default=None):
                return {"label_color": "red"}.get(key, default)

        style = MarkerStyle.from_config(Cfg())
        assert style.label_color == "red"
        assert style.highlight_color == MarkerStyle().highlight_color

    @pytest.mark.parametrize("template", ["[{n}]", "{", "{0}", "{slot.real.x}", 7])
    def test_unusable_template_falls_back(self, template):
        class Cfg:
            def get(self, key, default=None):
                return {"label_format": template,
                        "hover_format": "Mark {slot}"}.get(key, default)

        style = MarkerStyle.from_config(Cfg())
        assert style.label_format == "[{slot}]"
        assert style.hover_format == "Mark {slot}"

        markers = MarkerRenderer(style).refresh("fileA", {2: Bookmark("fileA", Position(0))})
        assert markers.labels[0].text == "[2]"


class TestRender:
    def test_render_applies_batch(self):
        renderer = MarkerRenderer()
        applied = []
        renderer.render("fileA", {1: Bookmark("fileA", Position(2))}, applied.append)
        assert len(applied) == 1
        assert applied[0].slots == [1]

    def test_unchanged_batch_not_reapplied(self):
        renderer = MarkerRenderer()
        applied = []
        table = {1: Bookmark("fileA", Position(2))}
        renderer.render("fileA", table, applied.append)
        renderer.render("fileA", table, applied.append)
        assert len(applied) == 1

    def test_invalidate_forces_reapply(self):
        renderer = MarkerRenderer()
        applied = []
        table = {1: Bookmark("fileA", Position(2))}
        renderer.render("fileA", table, applied.append)
        assert renderer.applied("fileA") is applied[0]
        renderer.invalidate("fileA")
        assert renderer.applied("fileA") is None
        renderer.render("fileA", table, applied.append)
        assert len(applied) == 2

    def test_clear_on_empty(self):
        renderer = MarkerRenderer()
        applied = []
        renderer.render("fileA", {1: Bookmark("fileA", Position(2))}, applied.append)
        renderer.render("fileA", {}, applied.append)
        assert applied[-1] == RenderedMarkerSet("fileA")
        assert not applied[-1]

    def test_style_change_reapplies(self):
        renderer = MarkerRenderer()
        applied = []
        table = {1: Bookmark("fileA", Position(2))}
        renderer.render("fileA", table, applied.append)
        renderer.reset(MarkerStyle(label_color="blue"))
        renderer.render("fileA", table, applied.append)
        assert applied[-1].labels[0].color == "blue"
