"""Shared fakes and helpers for the IntuneWin action test suites."""

from __future__ import annotations

import io
import typing as typ
import zipfile
from pathlib import Path

from intunewin_action.commands import CommandResult

__all__ = [
    "FakeDownloader",
    "FakeRunner",
    "decode_output_file",
    "fake_packaging_tool",
    "make_zip",
    "write_input_package",
]


class FakeRunner:
    """Record argument vectors and replay scripted results.

    Parameters
    ----------
    results:
        Results returned in order; once exhausted every call succeeds with no
        output.
    on_run:
        Optional side effect executed before a result is returned.
    """

    def __init__(
        self,
        results: typ.Iterable[CommandResult] = (),
        on_run: typ.Callable[[list[str]], None] | None = None,
    ) -> None:
        self.calls: list[list[str]] = []
        self._results = list(results)
        self._on_run = on_run

    def run(self, argv: typ.Sequence[str]) -> CommandResult:
        call = list(argv)
        self.calls.append(call)
        if self._on_run is not None:
            self._on_run(call)
        if self._results:
            return self._results.pop(0)
        return CommandResult(0, "")


def fake_packaging_tool(
    output_name: str = "Install.intunewin",
    observed: list[Path] | None = None,
) -> typ.Callable[[list[str]], None]:
    """Return a side effect that mimics ``IntuneWinAppUtil.exe``.

    The fake writes ``output_name`` into the ``-o`` folder. When ``observed``
    is given it receives every file below the ``-c`` folder, relative to it.
    """

    def _run(argv: list[str]) -> None:
        source = Path(argv[argv.index("-c") + 1])
        if observed is not None:
            observed.extend(
                path.relative_to(source) for path in source.rglob("*") if path.is_file()
            )
        output_dir = Path(argv[argv.index("-o") + 1])
        (output_dir / output_name).write_bytes(b"intunewin-payload")

    return _run


def make_zip(entries: typ.Mapping[str, bytes]) -> bytes:
    """Return zip archive bytes containing ``entries``."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return buffer.getvalue()


class FakeDownloader:
    """Write canned bytes instead of downloading, or raise ``error``."""

    def __init__(self, payload: bytes = b"", error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error
        self.urls: list[str] = []

    def download(self, url: str, destination: Path) -> None:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        destination.write_bytes(self.payload)


def write_input_package(root: Path, name: str = "Viewer.msix") -> Path:
    """Create ``root/name`` with a couple of sibling files and return it."""
    root.mkdir(parents=True, exist_ok=True)
    package = root / name
    package.write_bytes(b"msix-bytes")
    (root / "notes.txt").write_text("release notes", encoding="utf-8")
    assets = root / "assets"
    assets.mkdir(exist_ok=True)
    (assets / "logo.png").write_bytes(b"png")
    return package


def decode_output_file(path: Path) -> dict[str, str]:
    """Parse ``key=value`` records written with ``write_github_output``.

    Parameters
    ----------
    path : Path
        Path to the output file containing GitHub workflow output records.

    Returns
    -------
    dict[str, str]
        Mapping of output keys to their decoded string values.
    """

    values: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key] = (
            value.replace("%0A", "\n").replace("%0D", "\r").replace("%25", "%")
        )
    return values
