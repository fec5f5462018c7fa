"""Command-line entry points for the IntuneWin packaging action.

Examples
--------
Run the steps locally after exporting the variables GitHub Actions would
provide::

    export GITHUB_WORKSPACE="$(pwd)"
    export GITHUB_OUTPUT="$(mktemp)"
    intunewin-render --f:APP_VERSION=1.2.3 --f:MSIX_FILE_NAME=Viewer.msix
    intunewin-fetch
    intunewin-package dist/Viewer.msix
"""

from __future__ import annotations

import argparse
import os
import sys
import typing as typ
from pathlib import Path

from cyclopts import App, Parameter

from .commands import PlumbumRunner
from .config import ActionSettings, load_settings
from .environment import action_root, relative_to_workspace, require_env_path
from .errors import IntuneWinError, PackageQueryError, PackageRemovalError
from .fetcher import fetch_tool
from .github_output import append_github_path, write_github_output
from .packager import build_intunewin
from .templates import parse_variable_args, render_templates
from .uninstall import exit_code_for, remove_package

__all__ = [
    "fetch",
    "fetch_app",
    "package",
    "package_app",
    "render_main",
    "uninstall",
    "uninstall_app",
]

ConfigOption = typ.Annotated[Path | None, Parameter(env_var="INTUNEWIN_CONFIG")]


def _parse_render_args(
    argv: typ.Sequence[str] | None,
) -> tuple[argparse.Namespace, list[str]]:
    parser = argparse.ArgumentParser(
        prog="intunewin-render",
        description="Render deployment-script templates.",
        epilog="Template variables are passed as --f:KEY=VALUE.",
        allow_abbrev=False,
    )
    parser.add_argument("--templates-dir", type=Path, help="Template directory")
    parser.add_argument("--output-dir", type=Path, help="Rendered script directory")
    parser.add_argument(
        "--config",
        type=Path,
        default=os.environ.get("INTUNEWIN_CONFIG") or None,
        help="TOML settings file",
    )
    return parser.parse_known_args(argv)


def _staging_variables(
    settings: ActionSettings, variables: typ.Mapping[str, str]
) -> dict[str, str]:
    """Return the payload names the deployment scripts refer to.

    The staged package keeps the extension of ``MSIX_FILE_NAME`` so bundles
    and ``.appx`` files resolve to the file the packager actually stages.
    """
    suffix = Path(variables.get("MSIX_FILE_NAME", "")).suffix or ".msix"
    return {
        "APPLICATION_DIR_NAME": settings.application_dir_name,
        "STAGED_PACKAGE_NAME": f"{settings.canonical_stem}{suffix}",
        "PACKAGE_NAME": settings.package_name,
    }


def render_main(argv: typ.Sequence[str] | None = None) -> int:
    """Render the deployment templates and return the process exit code.

    Templates that fail to render are reported as warnings and do not change
    the exit code; only unusable settings do. ``APPLICATION_DIR_NAME``,
    ``STAGED_PACKAGE_NAME`` and ``PACKAGE_NAME`` are derived from the settings
    unless passed explicitly.
    """
    args, tokens = _parse_render_args(argv)
    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, IntuneWinError) as exc:
        print(f"::error title=Configuration Error::{exc}", file=sys.stderr)
        return 1

    parsed = parse_variable_args(tokens)
    variables = {**_staging_variables(settings, parsed), **parsed}
    report = render_templates(
        args.templates_dir or settings.templates_dir,
        args.output_dir or settings.deployment_dir,
        variables,
        suffix=settings.template_suffix,
    )
    print(
        f"Rendered {len(report.rendered)} template(s)"
        f" with {len(report.failures)} failure(s).",
        file=sys.stderr,
    )
    return 0


fetch_app = App(name="intunewin-fetch", help="Download the Win32 Content Prep Tool.")


@fetch_app.default
def fetch(
    *,
    url: str | None = None,
    destination: Path | None = None,
    config: ConfigOption = None,
) -> None:
    """Download the packaging tool and expose it to later workflow steps.

    Parameters
    ----------
    url:
        Zip archive to download. Defaults to the configured tool URL.
    destination:
        Final executable path. Defaults to the action directory.
    config:
        Optional TOML settings file.
    """
    try:
        settings = load_settings(config)
        target = destination or action_root() / settings.tool_name
        fetch_tool(
            url or settings.tool_url,
            settings.tool_name,
            target,
            scratch_dir=target.parent,
        )
    except (FileNotFoundError, IntuneWinError) as exc:
        print(f"::error title=Tool Download Failure::{exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if github_path := os.environ.get("GITHUB_PATH"):
        append_github_path(Path(github_path), target.parent.resolve())


def _default_tool(settings: ActionSettings) -> str:
    """Prefer the fetched executable in the action directory over ``PATH``."""
    local_tool = action_root() / settings.tool_name
    return str(local_tool) if local_tool.is_file() else settings.tool_name


package_app = App(name="intunewin-package", help="Build an .intunewin archive.")


@package_app.default
def package(
    msix_file: Path,
    *,
    output_dir: Path | None = None,
    tool: str | None = None,
    deployment_dir: Path | None = None,
    config: ConfigOption = None,
) -> None:
    """Package ``msix_file`` and record the artefact paths in ``GITHUB_OUTPUT``.

    Parameters
    ----------
    msix_file:
        Application package to wrap.
    output_dir:
        Directory for the artefacts. Defaults to the package's directory.
    tool:
        Packaging executable. Defaults to the fetched tool.
    deployment_dir:
        Rendered deployment scripts. Defaults to the configured directory.
    config:
        Optional TOML settings file.
    """
    try:
        github_output = require_env_path("GITHUB_OUTPUT")
        settings = load_settings(config)
        result = build_intunewin(
            msix_file,
            deployment_dir=deployment_dir or settings.deployment_dir,
            tool=tool or _default_tool(settings),
            runner=PlumbumRunner(),
            settings=settings,
            output_dir=output_dir,
        )
    except (FileNotFoundError, IntuneWinError) as exc:
        print(f"::error title=Packaging Failure::{exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    write_github_output(
        github_output,
        {
            "intunewin_path": relative_to_workspace(result.intunewin_path),
            "intunewin_source_zip": relative_to_workspace(result.source_zip_path),
        },
    )
    print(f"Created '{result.intunewin_path.name}'.", file=sys.stderr)


uninstall_app = App(name="intunewin-uninstall", help="Remove the packaged app.")


@uninstall_app.default
def uninstall(
    *,
    package_name: typ.Annotated[
        str | None, Parameter(env_var="INTUNEWIN_PACKAGE_NAME")
    ] = None,
    config: ConfigOption = None,
) -> None:
    """Remove the configured package if it is installed.

    The exit code mirrors the OS error code reported by a failed removal.
    """
    try:
        settings = load_settings(config)
        remove_package(package_name or settings.package_name, PlumbumRunner())
    except (PackageQueryError, PackageRemovalError) as exc:
        print(f"::error title=Uninstall Failure::{exc}", file=sys.stderr)
        raise SystemExit(exit_code_for(exc)) from exc
    except (FileNotFoundError, IntuneWinError) as exc:
        print(f"::error title=Uninstall Failure::{exc}", file=sys.stderr)
        raise SystemExit(1) from exc
