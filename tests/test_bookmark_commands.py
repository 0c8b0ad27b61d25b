"""Tests for quickmarks.modules.bookmarks.commands."""

import pytest

from fakes import FakeDocumentService
from quickmarks.modules.bookmarks.commands import BookmarkCommands, parse_action
from quickmarks.modules.bookmarks.registry import (
    Bookmark,
    BookmarkRegistry,
    InvalidSlotError,
    Position,
    ToggleResult,
)


@pytest.fixture
def doc_svc():
    return FakeDocumentService()


@pytest.fixture
def registry():
    return BookmarkRegistry()


@pytest.fixture
def commands(registry, doc_svc):
    return BookmarkCommands(registry, doc_svc)


class TestParseAction:
    def test_toggle_and_goto(self):
        assert parse_action("toggle_3") == ("toggle", 3)
        assert parse_action("goto_9") == ("goto", 9)

    @pytest.mark.parametrize("action", ["", None, "toggle", "goto_x", "delete_1",
                                        "toggle_3_extra"])
    def test_not_a_slot_action(self, action):
        assert parse_action(action) is None

    def test_out_of_range_still_parses(self):
        assert parse_action("toggle_10") == ("toggle", 10)


class TestToggleBookmark:
    def test_toggles_at_cursor(self, commands, registry, doc_svc):
        doc_svc.add("fileA", cursor=Position(5, 3))
        assert commands.toggle_bookmark(1) is ToggleResult.ADDED
        assert registry.get(1) == Bookmark("fileA", Position(5, 3))

    def test_toggle_twice_removes(self, commands, registry, doc_svc):
        doc_svc.add("fileA", cursor=Position(5, 3))
        commands.toggle_bookmark(1)
        doc_svc.active.cursor = Position(5, 0)
        assert commands.toggle_bookmark(1) is ToggleResult.REMOVED
        assert registry.get(1) is None

    def test_no_active_document_is_noop(self, commands, registry):
        assert commands.toggle_bookmark(1) is None
        assert len(registry) == 0

    def test_no_cursor_is_noop(self, commands, registry, doc_svc):
        doc_svc.add("fileA", cursor=None)
        assert commands.toggle_bookmark(2) is None
        assert len(registry) == 0

    def test_invalid_slot_raises(self, commands, doc_svc):
        doc_svc.add("fileA", cursor=Position(0))
        with pytest.raises(InvalidSlotError):
            commands.toggle_bookmark(0)


class TestGoToBookmark:
    def test_empty_slot_shows_notice(self, commands, doc_svc):
        assert commands.go_to_bookmark(4) is None
        assert doc_svc.infos == ["Bookmark 4 not found."]
        assert doc_svc.opened == []
        assert doc_svc.selections == []

    def test_reveals_location(self, commands, registry, doc_svc):
        doc_svc.add("fileB", cursor=Position(0), activate=False)
        doc_svc.add("fileA", cursor=Position(1))
        registry.set(2, "fileB", Position(12, 4))

        assert commands.go_to_bookmark(2) == Bookmark("fileB", Position(12, 4))
        assert doc_svc.opened == ["fileB"]
        assert doc_svc.active.document_id == "fileB"
        assert doc_svc.selections == [("fileB", Position(12, 4))]

    def test_opens_closed_document(self, commands, registry, doc_svc):
        registry.set(3, "file:///closed.odt", Position(2))
        commands.go_to_bookmark(3)
        assert doc_svc.opened == ["file:///closed.odt"]
        assert doc_svc.selections == [("file:///closed.odt", Position(2))]

    def test_open_failure_is_reported(self, commands, registry, doc_svc):
        registry.set(5, "file:///gone.odt", Position(2))
        doc_svc.unopenable.add("file:///gone.odt")

        assert commands.go_to_bookmark(5) is None
        assert doc_svc.errors == [
            "Bookmark 5: cannot open file:///gone.odt (file not found)"]
        assert doc_svc.selections == []
        # The bookmark survives a failed open
        assert registry.get(5) is not None

    def test_invalid_slot_raises(self, commands):
        with pytest.raises(InvalidSlotError):
            commands.go_to_bookmark(10)


class TestRun:
    def test_run_toggle(self, commands, registry, doc_svc):
        doc_svc.add("fileA", cursor=Position(7))
        assert commands.run("toggle_6") is True
        assert registry.get(6) == Bookmark("fileA", Position(7))

    def test_run_goto(self, commands, doc_svc):
        assert commands.run("goto_1") is True
        assert doc_svc.infos == ["Bookmark 1 not found."]

    def test_run_unknown(self, commands):
        assert commands.run("about") is False

    def test_run_invalid_slot_is_swallowed(self, commands, registry, doc_svc):
        doc_svc.add("fileA", cursor=Position(7))
        assert commands.run("toggle_10") is True
        assert len(registry) == 0
