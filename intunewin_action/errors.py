"""Exception types shared by the IntuneWin packaging helpers."""

from __future__ import annotations

__all__ = [
    "IntuneWinError",
    "PackageQueryError",
    "PackageRemovalError",
    "PackagingError",
    "ToolFetchError",
]


class IntuneWinError(RuntimeError):
    """Raised when an action step cannot continue."""


class PackagingError(IntuneWinError):
    """Raised when the packaging pipeline fails to produce its artefacts."""


class ToolFetchError(IntuneWinError):
    """Raised when the packaging tool cannot be downloaded or located."""


class _PackageManagerError(IntuneWinError):
    """Failure reported by the OS package manager."""

    def __init__(self, message: str, *, code: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.code = code
        self.output = output


class PackageQueryError(_PackageManagerError):
    """Raised when the installed package registry cannot be queried."""


class PackageRemovalError(_PackageManagerError):
    """Raised when removing an installed package fails."""
