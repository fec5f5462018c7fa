"""Stage an application and build its ``.intunewin`` archive.

The pipeline copies the input package and its siblings into a fresh staging
directory, adds the rendered deployment scripts, runs the Win32 Content Prep
Tool over the result and relocates the produced archive next to a zip of the
staged sources. The staging directory is removed on every exit path.
"""

from __future__ import annotations

import dataclasses
import re
import shutil
import tempfile
import typing as typ
import uuid
from pathlib import Path

from .config import ActionSettings
from .errors import PackagingError

if typ.TYPE_CHECKING:
    from .commands import CommandRunner

__all__ = [
    "INTUNEWIN_SUFFIX",
    "SOURCE_ZIP_SUFFIX",
    "PackageResult",
    "artifact_paths",
    "build_intunewin",
    "new_staging_root",
]

INTUNEWIN_SUFFIX = ".intunewin"
SOURCE_ZIP_SUFFIX = "_source.zip"
STAGING_PREFIX = "intunewin-"

_STAGING_NAME = re.compile(rf"{re.escape(STAGING_PREFIX)}[0-9a-f]{{32}}")


@dataclasses.dataclass(frozen=True, slots=True)
class PackageResult:
    """Artefacts produced by :func:`build_intunewin`."""

    intunewin_path: Path
    source_zip_path: Path


def new_staging_root(base_dir: Path | None = None) -> Path:
    """Return a staging path that no other run will use.

    The directory is not created.
    """
    base = base_dir or Path(tempfile.gettempdir())
    return base / f"{STAGING_PREFIX}{uuid.uuid4().hex}"


def artifact_paths(input_file: Path, output_dir: Path) -> tuple[Path, Path]:
    """Return the ``.intunewin`` and source zip paths for ``input_file``.

    Examples
    --------
    >>> artifact_paths(Path("in/Viewer.msix"), Path("out"))
    (PosixPath('out/Viewer.intunewin'), PosixPath('out/Viewer_source.zip'))
    """
    stem = input_file.stem
    return (
        output_dir / f"{stem}{INTUNEWIN_SUFFIX}",
        output_dir / f"{stem}{SOURCE_ZIP_SUFFIX}",
    )


def _is_pipeline_output(path: Path) -> bool:
    return path.name.endswith((INTUNEWIN_SUFFIX, SOURCE_ZIP_SUFFIX))


def _stageable_siblings(input_file: Path, staging_root: Path) -> list[Path]:
    """Return the siblings of ``input_file`` that belong in the payload.

    The input itself, earlier artefacts, staging directories of any run and
    directories that contain ``staging_root`` are left out.
    """
    resolved_input = input_file.resolve()
    resolved_root = staging_root.resolve()
    siblings = []
    for sibling in sorted(input_file.parent.iterdir()):
        resolved = sibling.resolve()
        if (
            resolved == resolved_input
            or _is_pipeline_output(sibling)
            or (sibling.is_dir() and _STAGING_NAME.fullmatch(sibling.name))
            or resolved_root.is_relative_to(resolved)
        ):
            continue
        siblings.append(sibling)
    return siblings


def _stage_application(
    input_file: Path, staging_root: Path, app_dir_name: str, canonical_stem: str
) -> None:
    """Copy ``input_file`` and its siblings into ``staging_root/app_dir_name``."""

    siblings = _stageable_siblings(input_file, staging_root)
    app_dir = staging_root / app_dir_name
    app_dir.mkdir(parents=True)
    canonical = app_dir / f"{canonical_stem}{input_file.suffix}"
    shutil.copy2(input_file, canonical)
    print(f"Staged '{input_file.name}' -> '{canonical.name}'")

    for sibling in siblings:
        target = app_dir / sibling.name
        if sibling.is_dir():
            shutil.copytree(sibling, target, dirs_exist_ok=True)
        else:
            shutil.copy2(sibling, target)
        print(f"Staged '{sibling.name}'")


def _stage_deployment(deployment_dir: Path, staging_root: Path, setup_script: str) -> str:
    """Copy ``deployment_dir`` into ``staging_root``; return the setup path."""

    if not deployment_dir.is_dir():
        message = f"Deployment scripts directory not found at {deployment_dir}"
        raise PackagingError(message)
    shutil.copytree(deployment_dir, staging_root / deployment_dir.name)

    setup_relative = f"{deployment_dir.name}/{setup_script}"
    if not (staging_root / setup_relative).is_file():
        message = f"Setup script '{setup_script}' missing from {deployment_dir}"
        raise PackagingError(message)
    return setup_relative


def _run_packaging_tool(
    tool: str, staging_root: Path, setup_relative: str, runner: CommandRunner
) -> str:
    argv = [
        tool,
        "-c",
        str(staging_root),
        "-s",
        setup_relative,
        "-o",
        str(staging_root),
        "-q",
    ]
    print(f"Running {' '.join(argv)}")
    result = runner.run(argv)
    if result.output:
        print(result.output)
    return f"exit {result.returncode}: {result.output.strip() or '<no output>'}"


def build_intunewin(
    input_file: Path,
    *,
    deployment_dir: Path,
    tool: str,
    runner: CommandRunner,
    settings: ActionSettings | None = None,
    output_dir: Path | None = None,
    staging_base: Path | None = None,
) -> PackageResult:
    """Package ``input_file`` into ``<stem>.intunewin`` and ``<stem>_source.zip``.

    Parameters
    ----------
    input_file : Path
        Application package to wrap, for example ``dist/Viewer.msix``.
    deployment_dir : Path
        Directory of rendered deployment scripts copied into the staging
        root. It must contain ``settings.setup_script``.
    tool : str
        Packaging executable name or path.
    runner : CommandRunner
        Runner used to invoke ``tool``.
    settings : ActionSettings | None
        Staging names; defaults to :class:`ActionSettings`.
    output_dir : Path | None
        Directory receiving both artefacts. Defaults to the directory of
        ``input_file``. Stale artefacts with the same names are overwritten.
    staging_base : Path | None
        Parent of the per-run staging directory. Defaults to the system
        temporary directory.

    Returns
    -------
    PackageResult
        Locations of the ``.intunewin`` file and the source zip.

    Raises
    ------
    PackagingError
        If ``input_file`` or the deployment scripts are missing, copying or
        writing files fails, or the tool does not produce its archive. The
        message carries the tool output.
    """
    cfg = settings or ActionSettings()
    if not input_file.is_file():
        message = f"Input package not found at {input_file}"
        raise PackagingError(message)

    destination_dir = output_dir or input_file.parent
    intunewin_path, source_zip_path = artifact_paths(input_file, destination_dir)
    staging_root = new_staging_root(staging_base)

    try:
        try:
            staging_root.mkdir(parents=True)
            print(f"Staging into '{staging_root}'")
            _stage_application(
                input_file,
                staging_root,
                cfg.application_dir_name,
                cfg.canonical_stem,
            )
            setup_relative = _stage_deployment(
                deployment_dir, staging_root, cfg.setup_script
            )
        except OSError as exc:
            message = f"Failed to stage '{input_file.name}': {exc}"
            raise PackagingError(message) from exc

        tool_report = _run_packaging_tool(tool, staging_root, setup_relative, runner)
        produced = staging_root / cfg.expected_output_name
        if not produced.is_file():
            message = (
                f"Packaging tool did not produce {cfg.expected_output_name} "
                f"({tool_report})"
            )
            raise PackagingError(message)

        try:
            destination_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(produced, intunewin_path)
            print(f"Moved '{produced.name}' -> '{intunewin_path}'")

            source_zip_path.unlink(missing_ok=True)
            archive = shutil.make_archive(
                str(source_zip_path.with_suffix("")), "zip", root_dir=staging_root
            )
        except OSError as exc:
            message = f"Failed to write artefacts to {destination_dir}: {exc}"
            raise PackagingError(message) from exc
        print(f"Wrote source archive '{archive}'")
    finally:
        shutil.rmtree(staging_root, ignore_errors=True)

    for path in (intunewin_path, source_zip_path):
        if not path.is_file():
            message = f"Expected artefact missing after packaging: {path}"
            raise PackagingError(message)

    return PackageResult(intunewin_path, source_zip_path)
