"""Download the Win32 Content Prep Tool and place its executable on disk."""

from __future__ import annotations

import shutil
import typing as typ
import zipfile
from pathlib import Path

import httpx

from .errors import ToolFetchError

__all__ = ["Downloader", "HttpxDownloader", "fetch_tool", "find_executable"]

ARCHIVE_NAME = "IntuneWinAppUtil_master.zip"
EXTRACT_DIR_NAME = "extracted_tool"


class Downloader(typ.Protocol):
    """Fetch ``url`` and write the response body to ``destination``."""

    def download(self, url: str, destination: Path) -> None:
        """Download ``url`` into ``destination``."""
        ...


class HttpxDownloader:
    """Stream downloads to disk with :mod:`httpx`.

    Redirects are followed because GitHub serves zipballs from a redirect
    target. No timeout is applied.
    """

    def download(self, url: str, destination: Path) -> None:
        """Download ``url`` into ``destination``.

        Raises
        ------
        httpx.HTTPError
            If the request fails or returns an error status.
        """
        with (
            httpx.stream("GET", url, follow_redirects=True, timeout=None) as response,
            destination.open("wb") as handle,
        ):
            response.raise_for_status()
            for chunk in response.iter_bytes():
                handle.write(chunk)


def find_executable(root: Path, name: str) -> Path | None:
    """Return the first file called ``name`` below ``root``.

    The search descends to any depth; matches are ordered by path so the
    choice is stable between runs.
    """
    matches = sorted(path for path in root.rglob(name) if path.is_file())
    return matches[0] if matches else None


def fetch_tool(
    url: str,
    executable_name: str,
    destination: Path,
    *,
    scratch_dir: Path,
    downloader: Downloader | None = None,
) -> Path:
    """Download ``url``, extract it and move ``executable_name`` to ``destination``.

    Parameters
    ----------
    url : str
        Location of the zip archive containing the tool.
    executable_name : str
        File name searched for inside the extracted archive.
    destination : Path
        Final path of the executable. An existing file is replaced.
    scratch_dir : Path
        Directory receiving the downloaded archive and the extraction tree.
        Both are removed before returning, whatever the outcome.
    downloader : Downloader | None
        Transport used for the download. Defaults to :class:`HttpxDownloader`.

    Returns
    -------
    Path
        ``destination``, now holding the executable.

    Raises
    ------
    ToolFetchError
        If the download, extraction or final move fails, or the archive does
        not contain ``executable_name``.
    """
    transport = downloader or HttpxDownloader()
    archive_path = scratch_dir / ARCHIVE_NAME
    extract_dir = scratch_dir / EXTRACT_DIR_NAME

    try:
        print(f"Downloading packaging tool from {url}")
        try:
            scratch_dir.mkdir(parents=True, exist_ok=True)
            transport.download(url, archive_path)
        except (httpx.HTTPError, OSError) as exc:
            message = f"Failed to download {url}: {exc}"
            raise ToolFetchError(message) from exc
        print(f"Downloaded '{archive_path.name}'")

        try:
            if extract_dir.exists():
                shutil.rmtree(extract_dir)
            extract_dir.mkdir(parents=True)
            with zipfile.ZipFile(archive_path) as archive:
                archive.extractall(extract_dir)
        except (zipfile.BadZipFile, OSError) as exc:
            message = f"Failed to extract {archive_path.name}: {exc}"
            raise ToolFetchError(message) from exc
        print("Extraction complete.")

        found = find_executable(extract_dir, executable_name)
        if found is None:
            message = f"{executable_name} could not be found within the extracted archive"
            raise ToolFetchError(message)

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if destination.exists():
                destination.unlink()
            shutil.move(found, destination)
        except OSError as exc:
            message = f"Failed to move {executable_name} to {destination}: {exc}"
            raise ToolFetchError(message) from exc
        print(f"Moved {executable_name} to '{destination}'")
        return destination
    finally:
        archive_path.unlink(missing_ok=True)
        shutil.rmtree(extract_dir, ignore_errors=True)
