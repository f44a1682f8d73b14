import pytest
from unittest.mock import patch
from cloudctx.utils.state_file import StateFile


def test_read_missing(tmp_path):
    """Test that a missing state file reads as no selection."""
    assert StateFile(tmp_path, "aws").read() is None


def test_write_then_read(tmp_path):
    """Test that the stored name round-trips and creates the directory."""
    state = StateFile(tmp_path / "cloudctx", "aws")

    state.write("dev:admin")

    assert state.path == tmp_path / "cloudctx" / "aws_current"
    assert state.read() == "dev:admin"


def test_read_strips_whitespace(tmp_path):
    """Test that surrounding whitespace is ignored."""
    (tmp_path / "azure_current").write_text("  Production \n")

    assert StateFile(tmp_path, "azure").read() == "Production"


def test_empty_file_is_no_selection(tmp_path):
    """Test that an empty state file reads as no selection."""
    (tmp_path / "aws_current").write_text("\n")

    assert StateFile(tmp_path, "aws").read() is None


def test_write_overwrites(tmp_path):
    """Test that each write replaces the previous value."""
    state = StateFile(tmp_path, "aws")

    state.write("first")
    state.write("second")

    assert state.read() == "second"


def test_write_best_effort(tmp_path):
    """Test that write failures are reported, not raised."""
    state = StateFile(tmp_path, "aws")

    with patch("pathlib.Path.write_text", side_effect=OSError("disk full")):
        assert state.write_best_effort("dev") is False

    assert state.write_best_effort("dev") is True
