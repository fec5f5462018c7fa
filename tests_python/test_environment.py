"""Tests for environment helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from intunewin_action import IntuneWinError, require_env_path
from intunewin_action.environment import action_root, relative_to_workspace


def test_require_env_path_returns_path(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set variables are returned as paths."""

    monkeypatch.setenv("INTUNEWIN_TEST_PATH", "/tmp/output")

    assert require_env_path("INTUNEWIN_TEST_PATH") == Path("/tmp/output")


@pytest.mark.parametrize("value", [None, ""])
def test_require_env_path_rejects_missing(
    monkeypatch: pytest.MonkeyPatch, value: str | None
) -> None:
    """Unset or empty variables raise a descriptive error."""

    if value is None:
        monkeypatch.delenv("INTUNEWIN_TEST_PATH", raising=False)
    else:
        monkeypatch.setenv("INTUNEWIN_TEST_PATH", value)

    with pytest.raises(IntuneWinError, match="'INTUNEWIN_TEST_PATH' is not set"):
        require_env_path("INTUNEWIN_TEST_PATH")


def test_action_root_falls_back_to_cwd(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Without ``GITHUB_ACTION_PATH`` the working directory is used."""

    monkeypatch.chdir(tmp_path)

    assert action_root({}).resolve() == tmp_path.resolve()


def test_relative_to_workspace_inside(workspace: Path) -> None:
    """Paths inside the workspace are reported relative to it."""

    target = workspace / "dist" / "Viewer.intunewin"

    assert relative_to_workspace(target) == "dist/Viewer.intunewin"


def test_relative_to_workspace_outside(workspace: Path, tmp_path: Path) -> None:
    """Paths outside the workspace stay absolute."""

    target = tmp_path / "elsewhere" / "Viewer.intunewin"

    assert relative_to_workspace(target) == target.resolve().as_posix()
