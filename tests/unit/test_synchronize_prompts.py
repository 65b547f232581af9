"""Unit tests for the Typer-backed prompter."""

from unittest.mock import patch

import pytest
import typer

from bug_sync_manager.exceptions import UserCancelledError
from bug_sync_manager.synchronize.prompts import TyperPrompter


class TestTyperPrompterSelect:
    """Tests for TyperPrompter.select."""

    def test_returns_zero_based_index(self) -> None:
        with patch("typer.prompt", return_value=2):
            assert TyperPrompter().select("Pick", ["a", "b", "c"]) == 1

    def test_zero_cancels(self) -> None:
        with patch("typer.prompt", return_value=0), pytest.raises(UserCancelledError):
            TyperPrompter().select("Pick", ["a"])

    def test_out_of_range_asks_again(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("typer.prompt", side_effect=[7, -1, 1]) as prompt:
            assert TyperPrompter().select("Pick", ["a"]) == 0
        assert prompt.call_count == 3
        assert "Enter a number between 0 and 1" in capsys.readouterr().err

    def test_abort_cancels(self) -> None:
        with patch("typer.prompt", side_effect=typer.Abort()), pytest.raises(UserCancelledError):
            TyperPrompter().select("Pick", ["a"])

    def test_no_options_cancels(self) -> None:
        with pytest.raises(UserCancelledError):
            TyperPrompter().select("Pick", [])


def test_text_revalidates_until_valid() -> None:
    """Test that invalid text is asked for again."""
    with patch("typer.prompt", side_effect=["x", "  valid title  "]) as prompt:
        value = TyperPrompter().text("Title", validate=lambda v: None if len(v) >= 3 else "too short")
    assert value == "valid title"
    assert prompt.call_count == 2


def test_multiline_stops_after_two_empty_lines() -> None:
    """Test that two consecutive empty lines end multiline input."""
    with patch("typer.prompt", side_effect=["first", "", "second", "", ""]):
        assert TyperPrompter().multiline("Description") == "first\n\nsecond"


def test_confirm_abort_cancels() -> None:
    """Test that aborting a confirmation raises UserCancelledError."""
    with patch("typer.confirm", side_effect=typer.Abort()), pytest.raises(UserCancelledError):
        TyperPrompter().confirm("Sure?")
