"""Environment helpers shared by the action entry points."""

from __future__ import annotations

import os
import typing as typ
from pathlib import Path

from .errors import IntuneWinError

__all__ = ["action_root", "relative_to_workspace", "require_env_path"]


def require_env_path(name: str) -> Path:
    """Return ``Path`` value for ``name`` or raise :class:`IntuneWinError`.

    Parameters
    ----------
    name:
        Name of the environment variable to fetch.

    Raises
    ------
    IntuneWinError
        Raised when the environment variable is unset or empty.
    """
    value = os.environ.get(name)
    if not value:
        message = f"Environment variable '{name}' is not set."
        raise IntuneWinError(message)
    return Path(value)


def action_root(environ: typ.Mapping[str, str] | None = None) -> Path:
    """Return the directory holding ``action.yml`` and its templates."""
    env = os.environ if environ is None else environ
    return Path(env.get("GITHUB_ACTION_PATH") or Path.cwd())


def relative_to_workspace(
    path: Path, environ: typ.Mapping[str, str] | None = None
) -> str:
    """Render ``path`` relative to ``GITHUB_WORKSPACE`` when it lies inside it.

    Examples
    --------
    >>> relative_to_workspace(
    ...     Path("/work/dist/app.intunewin"), {"GITHUB_WORKSPACE": "/work"}
    ... )
    'dist/app.intunewin'
    >>> relative_to_workspace(Path("/tmp/app.intunewin"), {})
    '/tmp/app.intunewin'
    """
    env = os.environ if environ is None else environ
    resolved = path.resolve()
    if workspace := env.get("GITHUB_WORKSPACE"):
        workspace_root = Path(workspace).resolve()
        if resolved.is_relative_to(workspace_root):
            return resolved.relative_to(workspace_root).as_posix()
    return resolved.as_posix()
