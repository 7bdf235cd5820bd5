from __future__ import annotations

from collections.abc import Generator
from unittest.mock import patch

import pytest
from rich.console import Console

from models import Correction, DiffKind, ReconciliationResult
from processing.diff_engine import diff
from ui.rich_display import RichDisplayManager


@pytest.fixture(autouse=True)
def _reset_shared_console() -> Generator[None, None, None]:
    original = RichDisplayManager._shared_console
    RichDisplayManager._shared_console = None
    yield
    RichDisplayManager._shared_console = original


def _recording_manager() -> RichDisplayManager:
    return RichDisplayManager(console=Console(record=True, width=120, color_system=None))


class TestGetSharedConsole:
    def test_returns_console_instance(self) -> None:
        console = RichDisplayManager.get_shared_console()
        assert isinstance(console, Console)

    def test_returns_same_instance_on_second_call(self) -> None:
        first = RichDisplayManager.get_shared_console()
        second = RichDisplayManager.get_shared_console()
        assert first is second


class TestShowProgress:
    @patch("config.ENABLE_RICH_PROGRESS", False)
    def test_noop_when_disabled(self) -> None:
        manager = _recording_manager()
        manager.show_progress(1, 4)
        assert manager.console.export_text() == ""

    @patch("config.ENABLE_RICH_PROGRESS", True)
    def test_section_counter(self) -> None:
        manager = _recording_manager()
        manager.show_progress(2, 4)
        assert "Checking grammar (2/4)..." in manager.console.export_text()

    @patch("config.ENABLE_RICH_PROGRESS", True)
    def test_single_response_has_no_counter(self) -> None:
        manager = _recording_manager()
        manager.show_progress(1, 1)
        text = manager.console.export_text()
        assert "Checking grammar..." in text
        assert "(1/1)" not in text


class TestShowResult:
    def test_corrections_table_and_section_note(self) -> None:
        manager = _recording_manager()
        result = ReconciliationResult(
            corrections=[Correction(issue="teh", location="Section 1: line 1", correction="the")],
            corrected_text="x",
            summary="Checked 2 sections of the note",
            chunked=True,
            chunk_count=2,
            failed_chunks=[1],
            original_text="y",
        )

        manager.show_result(result)
        text = manager.console.export_text()

        assert "Checked 2 sections of the note" in text
        assert "Section 1: line 1" in text
        assert "multiple sections" in text
        assert "Sections that could not be checked: 2" in text

    def test_bracketed_text_is_shown_literally(self) -> None:
        manager = _recording_manager()
        result = ReconciliationResult(
            corrections=[Correction(issue="see [/docs] folder", location="[bold]line 2", correction="Use [/b] here")],
            corrected_text="x",
            summary="Fixed [/b] tags",
            original_text="y",
        )

        manager.show_result(result)
        text = manager.console.export_text()

        assert "Fixed [/b] tags" in text
        assert "see [/docs] folder" in text
        assert "[bold]line 2" in text
        assert "Use [/b] here" in text

    def test_clean_result(self) -> None:
        manager = _recording_manager()
        manager.show_result(ReconciliationResult(corrected_text="ok", summary="Fine", original_text="ok"))
        assert "No corrections needed" in manager.console.export_text()


class TestDiffRendering:
    def test_changed_line_renders_removed_and_added_rows(self) -> None:
        [line] = diff("Hello teh world.", "Hello the world.")
        assert line.kind is DiffKind.CHANGED

        rows = RichDisplayManager.diff_line_texts(line)

        assert [row.plain for row in rows] == ["- Hello teh world.", "+ Hello the world."]
        assert any(span.style and "strike" in str(span.style) for span in rows[0].spans)

    def test_show_diff_prefixes(self) -> None:
        manager = _recording_manager()
        manager.show_diff(diff("same\nabc", "same\nxyz"))

        text = manager.console.export_text()
        assert "  same" in text
        assert "- abc" in text
        assert "+ xyz" in text

    def test_plain_diff_is_unstyled_and_literal(self) -> None:
        manager = _recording_manager()
        manager.show_plain_diff(diff("keep [/x]\nabc", "keep [/x]\nxyz"))

        assert manager.console.export_text().splitlines() == ["  keep [/x]", "- abc", "+ xyz"]
