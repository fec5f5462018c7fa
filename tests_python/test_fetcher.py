"""Tests for downloading and unpacking the packaging tool."""

from __future__ import annotations

import shutil
from pathlib import Path

import httpx
import pytest

from intunewin_action import ToolFetchError, fetch_tool
from intunewin_action.fetcher import ARCHIVE_NAME, EXTRACT_DIR_NAME, find_executable
from intunewin_test_helpers import FakeDownloader, make_zip

TOOL_URL = "https://example.invalid/tool.zip"


@pytest.fixture
def scratch(tmp_path: Path) -> Path:
    """Return the scratch directory used for downloads."""
    return tmp_path / "scratch"


def assert_scratch_clean(scratch: Path) -> None:
    """Fail when the downloaded archive or extraction tree remains."""
    assert not (scratch / ARCHIVE_NAME).exists(), "Archive should be deleted"
    assert not (scratch / EXTRACT_DIR_NAME).exists(), "Extraction dir should be deleted"


def test_fetch_tool_moves_nested_executable(scratch: Path, tmp_path: Path) -> None:
    """The executable is found at any depth and moved to the destination."""

    payload = make_zip(
        {
            "microsoft-Win32-Content-Prep-Tool-abc123/README.md": b"readme",
            "microsoft-Win32-Content-Prep-Tool-abc123/bin/IntuneWinAppUtil.exe": b"MZ",
        }
    )
    downloader = FakeDownloader(payload)
    destination = tmp_path / "action" / "IntuneWinAppUtil.exe"

    result = fetch_tool(
        TOOL_URL,
        "IntuneWinAppUtil.exe",
        destination,
        scratch_dir=scratch,
        downloader=downloader,
    )

    assert result == destination
    assert destination.read_bytes() == b"MZ"
    assert downloader.urls == [TOOL_URL], "The archive should be downloaded once"
    assert_scratch_clean(scratch)


def test_fetch_tool_replaces_existing_destination(scratch: Path, tmp_path: Path) -> None:
    """A previously fetched executable is overwritten."""

    destination = tmp_path / "IntuneWinAppUtil.exe"
    destination.write_bytes(b"old")
    downloader = FakeDownloader(make_zip({"x/IntuneWinAppUtil.exe": b"new"}))

    fetch_tool(
        TOOL_URL,
        "IntuneWinAppUtil.exe",
        destination,
        scratch_dir=scratch,
        downloader=downloader,
    )

    assert destination.read_bytes() == b"new"


def test_fetch_tool_reports_missing_executable(scratch: Path, tmp_path: Path) -> None:
    """An archive without the executable is fatal."""

    downloader = FakeDownloader(make_zip({"x/README.md": b"readme"}))

    with pytest.raises(ToolFetchError, match="could not be found"):
        fetch_tool(
            TOOL_URL,
            "IntuneWinAppUtil.exe",
            tmp_path / "IntuneWinAppUtil.exe",
            scratch_dir=scratch,
            downloader=downloader,
        )

    assert_scratch_clean(scratch)
    assert not (tmp_path / "IntuneWinAppUtil.exe").exists()


def test_fetch_tool_reports_corrupt_archive(scratch: Path, tmp_path: Path) -> None:
    """A download that is not a zip archive is fatal."""

    downloader = FakeDownloader(b"<html>rate limited</html>")

    with pytest.raises(ToolFetchError, match="Failed to extract"):
        fetch_tool(
            TOOL_URL,
            "IntuneWinAppUtil.exe",
            tmp_path / "IntuneWinAppUtil.exe",
            scratch_dir=scratch,
            downloader=downloader,
        )

    assert_scratch_clean(scratch)


def test_fetch_tool_reports_download_failure(scratch: Path, tmp_path: Path) -> None:
    """Transport errors are wrapped with the URL for context."""

    downloader = FakeDownloader(error=httpx.ConnectError("connection refused"))

    with pytest.raises(ToolFetchError, match="Failed to download") as exc:
        fetch_tool(
            TOOL_URL,
            "IntuneWinAppUtil.exe",
            tmp_path / "IntuneWinAppUtil.exe",
            scratch_dir=scratch,
            downloader=downloader,
        )

    assert isinstance(exc.value.__cause__, httpx.ConnectError)
    assert TOOL_URL in str(exc.value)
    assert_scratch_clean(scratch)


def test_fetch_tool_reports_move_failure(
    scratch: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A destination that cannot be written is a fetch failure."""

    def _deny(*_args: object, **_kwargs: object) -> None:
        raise PermissionError("access denied")

    monkeypatch.setattr(shutil, "move", _deny)
    downloader = FakeDownloader(make_zip({"x/IntuneWinAppUtil.exe": b"MZ"}))

    with pytest.raises(ToolFetchError, match="Failed to move IntuneWinAppUtil.exe"):
        fetch_tool(
            TOOL_URL,
            "IntuneWinAppUtil.exe",
            tmp_path / "IntuneWinAppUtil.exe",
            scratch_dir=scratch,
            downloader=downloader,
        )

    assert_scratch_clean(scratch)


def test_find_executable_prefers_first_sorted_match(tmp_path: Path) -> None:
    """Multiple matches resolve deterministically."""

    for relative in ("b/tool.exe", "a/deep/er/tool.exe", "a/other.exe"):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"x")

    assert find_executable(tmp_path, "tool.exe") == tmp_path / "a/deep/er/tool.exe"
    assert find_executable(tmp_path, "missing.exe") is None
