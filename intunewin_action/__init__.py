"""Public interface for the IntuneWin packaging helpers."""

from .commands import CommandResult, CommandRunner, PlumbumRunner
from .config import ActionSettings, load_settings
from .environment import require_env_path
from .errors import (
    IntuneWinError,
    PackageQueryError,
    PackageRemovalError,
    PackagingError,
    ToolFetchError,
)
from .fetcher import fetch_tool
from .packager import PackageResult, build_intunewin
from .templates import RenderReport, parse_variable_args, render_templates
from .uninstall import RemovalOutcome, exit_code_for, remove_package

__all__ = [
    "ActionSettings",
    "build_intunewin",
    "CommandResult",
    "CommandRunner",
    "exit_code_for",
    "fetch_tool",
    "IntuneWinError",
    "load_settings",
    "PackageQueryError",
    "PackageRemovalError",
    "PackageResult",
    "PackagingError",
    "parse_variable_args",
    "PlumbumRunner",
    "RemovalOutcome",
    "remove_package",
    "render_templates",
    "RenderReport",
    "require_env_path",
    "ToolFetchError",
]
