"""Shared fixtures for the IntuneWin action test suite."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an isolated workspace and set ``GITHUB_WORKSPACE`` accordingly."""
    root = tmp_path / "workspace"
    root.mkdir()
    monkeypatch.setenv("GITHUB_WORKSPACE", str(root))
    return root


@pytest.fixture
def action_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``GITHUB_ACTION_PATH`` at an empty action checkout."""
    root = tmp_path / "action"
    root.mkdir()
    monkeypatch.setenv("GITHUB_ACTION_PATH", str(root))
    return root


@pytest.fixture
def github_output(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Provide a ``GITHUB_OUTPUT`` file inside the workspace."""
    path = workspace / "outputs.txt"
    monkeypatch.setenv("GITHUB_OUTPUT", str(path))
    return path


@pytest.fixture
def deployment_dir(tmp_path: Path) -> Path:
    """Create a rendered deployment directory holding ``Install.ps1``."""
    root = tmp_path / "Deployment"
    root.mkdir()
    (root / "Install.ps1").write_text("Add-AppxPackage App.msix\n", encoding="utf-8")
    (root / "Uninstall.ps1").write_text("Remove-AppxPackage\n", encoding="utf-8")
    return root
