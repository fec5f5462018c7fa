"""Narrow command runner interface used for external process invocation.

The packaging pipeline and the package remover never spawn processes
directly; they hand an argument vector to a :class:`CommandRunner`. The
default implementation uses :mod:`plumbum` and tests substitute fakes.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from plumbum import local
from plumbum.commands import CommandNotFound

from .errors import IntuneWinError

__all__ = ["CommandResult", "CommandRunner", "PlumbumRunner"]


@dataclasses.dataclass(frozen=True, slots=True)
class CommandResult:
    """Exit status and combined output of a finished command."""

    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        """Return ``True`` when the command exited with status zero."""
        return self.returncode == 0


class CommandRunner(typ.Protocol):
    """Run an argument vector to completion and capture its output."""

    def run(self, argv: typ.Sequence[str]) -> CommandResult:
        """Execute ``argv`` and return its :class:`CommandResult`."""
        ...


class PlumbumRunner:
    """Run commands through :data:`plumbum.local`.

    Non-zero exit codes are returned rather than raised so callers decide
    which statuses are fatal. Standard output and standard error are joined
    into a single text blob for diagnostics.
    """

    def run(self, argv: typ.Sequence[str]) -> CommandResult:
        """Execute ``argv`` and return its exit status and output.

        Raises
        ------
        IntuneWinError
            If the program cannot be found or started.
        """
        if not argv:
            message = "Cannot run an empty command"
            raise IntuneWinError(message)
        program, *args = argv
        try:
            command = local[program]
            retcode, stdout, stderr = command[tuple(args)].run(retcode=None)
        except CommandNotFound as exc:
            message = f"Command not found: {program}"
            raise IntuneWinError(message) from exc
        except OSError as exc:
            message = f"Failed to start {program}: {exc}"
            raise IntuneWinError(message) from exc
        output = "\n".join(part.rstrip("\n") for part in (stdout, stderr) if part)
        return CommandResult(int(retcode), output)
