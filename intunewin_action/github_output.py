"""Helpers for writing GitHub Actions outputs."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

__all__ = ["append_github_path", "escape_output_value", "write_github_output"]


def escape_output_value(value: Path | str) -> str:
    """Escape workflow output values per GitHub recommendations.

    Examples
    --------
    >>> escape_output_value("50%\\ndone")
    '50%25%0Adone'
    """
    text = value.as_posix() if isinstance(value, Path) else str(value)
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def write_github_output(file: Path, values: Mapping[str, Path | str]) -> None:
    """Append ``values`` to the GitHub Actions output ``file``.

    Parameters
    ----------
    file : Path
        Target ``GITHUB_OUTPUT`` file that receives the exported values.
    values : Mapping[str, Path | str]
        Mapping of output names to values, written as ``key=value`` lines in
        insertion order.

    Examples
    --------
    >>> github_output = Path("/tmp/github_output")  # doctest: +SKIP
    >>> write_github_output(github_output, {"name": "value"})  # doctest: +SKIP
    >>> "name=value" in github_output.read_text()  # doctest: +SKIP
    True
    """

    file.parent.mkdir(parents=True, exist_ok=True)
    with file.open("a", encoding="utf-8") as handle:
        for key, value in values.items():
            handle.write(f"{key}={escape_output_value(value)}\n")


def append_github_path(file: Path, directory: Path) -> None:
    """Append ``directory`` to the ``GITHUB_PATH`` file for later steps."""

    file.parent.mkdir(parents=True, exist_ok=True)
    with file.open("a", encoding="utf-8") as handle:
        handle.write(f"{directory}\n")
