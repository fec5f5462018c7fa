"""Tests for the package remover."""

from __future__ import annotations

import pytest

from intunewin_action import (
    PackageQueryError,
    PackageRemovalError,
    RemovalOutcome,
    exit_code_for,
    remove_package,
)
from intunewin_action.commands import CommandResult
from intunewin_test_helpers import FakeRunner

FULL_NAME = "Contoso.PackagedApp_1.2.3.0_x64__8wekyb3d8bbwe"


def test_absent_package_is_success_without_removal() -> None:
    """Nothing is removed when the query finds no package."""

    runner = FakeRunner([CommandResult(0, "")])

    outcome = remove_package("Contoso.PackagedApp", runner)

    assert outcome is RemovalOutcome.NOT_INSTALLED
    assert len(runner.calls) == 1, "Only the registry query should run"
    assert "Get-AppxPackage -Name 'Contoso.PackagedApp'" in runner.calls[0][-1]


def test_present_package_is_removed_once() -> None:
    """An installed package is removed with its full name exactly once."""

    runner = FakeRunner([CommandResult(0, f"{FULL_NAME}\r\n"), CommandResult(0, "")])

    outcome = remove_package("Contoso.PackagedApp", runner)

    assert outcome is RemovalOutcome.REMOVED
    assert len(runner.calls) == 2
    removal = runner.calls[1]
    assert removal[0] == "powershell"
    assert f"Remove-AppxPackage -Package '{FULL_NAME}'" in removal[-1]


def test_removal_failure_carries_os_code() -> None:
    """A failed removal raises with the code reported by PowerShell."""

    runner = FakeRunner(
        [
            CommandResult(0, FULL_NAME),
            CommandResult(-2147009295, "Deployment failed with HRESULT: 0x80073CF1"),
        ]
    )

    with pytest.raises(PackageRemovalError) as exc:
        remove_package("Contoso.PackagedApp", runner)

    assert exc.value.code == -2147009295
    assert "0x80073CF1" in exc.value.output
    assert exit_code_for(exc.value) == -2147009295


def test_query_failure_is_propagated() -> None:
    """Registry query failures are not swallowed."""

    runner = FakeRunner([CommandResult(1, "AppX Deployment Service is not running")])

    with pytest.raises(PackageQueryError, match="not running") as exc:
        remove_package("Contoso.PackagedApp", runner)

    assert exc.value.code == 1
    assert len(runner.calls) == 1, "No removal is attempted after a failed query"


def test_package_names_are_quoted() -> None:
    """Single quotes in names are escaped for PowerShell."""

    runner = FakeRunner([CommandResult(0, "")])

    remove_package("O'Brien.App", runner)

    assert "-Name 'O''Brien.App'" in runner.calls[0][-1]


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        (None, 1),
        (0, 1),
        (5, 5),
        (2147958001, -2147009295),
        (-2147009295, -2147009295),
        (2**32 + 7, 7),
    ],
)
def test_exit_code_for_folds_codes(code: int | None, expected: int) -> None:
    """OS codes fold into the 32-bit range; missing codes map to 1."""

    assert exit_code_for(PackageRemovalError("failed", code=code)) == expected
