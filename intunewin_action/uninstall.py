"""Remove an installed MSIX package through the Appx PowerShell cmdlets."""

from __future__ import annotations

import enum
import typing as typ

from .errors import PackageQueryError, PackageRemovalError

if typ.TYPE_CHECKING:
    from .commands import CommandRunner

__all__ = [
    "RemovalOutcome",
    "exit_code_for",
    "query_installed_packages",
    "remove_package",
]

POWERSHELL = ("powershell", "-NoProfile", "-NonInteractive", "-Command")


class RemovalOutcome(enum.Enum):
    """Successful results of :func:`remove_package`."""

    NOT_INSTALLED = "not-installed"
    REMOVED = "removed"


def _quote(value: str) -> str:
    """Return ``value`` as a PowerShell single-quoted literal.

    Examples
    --------
    >>> _quote("O'Brien.App")
    "'O''Brien.App'"
    """
    return "'" + value.replace("'", "''") + "'"


def _powershell(script: str) -> list[str]:
    return [*POWERSHELL, script]


def query_installed_packages(package_name: str, runner: CommandRunner) -> list[str]:
    """Return the full names of installed packages matching ``package_name``.

    Only packages installed for the current user are listed; packages that
    are merely staged on the machine are not.

    Raises
    ------
    PackageQueryError
        If PowerShell reports a failure while querying the registry.
    """
    script = (
        f"Get-AppxPackage -Name {_quote(package_name)} -PackageTypeFilter Main"
        " -ErrorAction Stop | ForEach-Object { $_.PackageFullName }"
    )
    result = runner.run(_powershell(script))
    if not result.ok:
        message = (
            f"Failed to query installed packages for '{package_name}' "
            f"(exit {result.returncode}): {result.output.strip()}"
        )
        raise PackageQueryError(message, code=result.returncode, output=result.output)
    return [line.strip() for line in result.output.splitlines() if line.strip()]


def remove_package(package_name: str, runner: CommandRunner) -> RemovalOutcome:
    """Remove ``package_name`` when it is installed.

    Parameters
    ----------
    package_name : str
        Package family name, for example ``"Contoso.PackagedApp"``.
    runner : CommandRunner
        Runner used for both the registry query and the removal.

    Returns
    -------
    RemovalOutcome
        ``NOT_INSTALLED`` when nothing matched (no removal is attempted),
        ``REMOVED`` after a successful removal.

    Raises
    ------
    PackageQueryError
        If the registry query fails.
    PackageRemovalError
        If the removal fails. ``code`` carries the ``HResult`` reported by
        the cmdlet, which becomes the PowerShell exit status.
    """
    installed = query_installed_packages(package_name, runner)
    if not installed:
        print(f"Package '{package_name}' is not installed; nothing to remove.")
        return RemovalOutcome.NOT_INSTALLED

    full_name = installed[0]
    print(f"Removing package '{full_name}'")
    script = (
        f"try {{ Remove-AppxPackage -Package {_quote(full_name)} -ErrorAction Stop }}"
        " catch { [Console]::Error.WriteLine($_.Exception.Message);"
        " exit $_.Exception.HResult }"
    )
    result = runner.run(_powershell(script))
    if not result.ok:
        message = (
            f"Failed to remove package '{full_name}' "
            f"(error {result.returncode:#x}): {result.output.strip()}"
        )
        raise PackageRemovalError(message, code=result.returncode, output=result.output)

    print(f"Removed package '{full_name}'")
    return RemovalOutcome.REMOVED


def exit_code_for(error: PackageQueryError | PackageRemovalError) -> int:
    """Return the process exit code for a package manager ``error``.

    The OS code is folded into the signed 32-bit range used by Windows
    ``HResult`` values. Errors without a usable code map to ``1``.

    Examples
    --------
    >>> exit_code_for(PackageRemovalError("boom", code=0x80073CF1))
    -2147009295
    >>> exit_code_for(PackageRemovalError("boom"))
    1
    """
    if error.code is None:
        return 1
    folded = ((error.code + 2**31) % 2**32) - 2**31
    return folded or 1
