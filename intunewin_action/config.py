"""Settings model and loader for the IntuneWin packaging action.

Every field of :class:`ActionSettings` has a default so the action works
without a settings file. Projects that need different names or a pinned
tool release can provide a TOML document with an ``[intunewin]`` table.

Usage
-----
Load the settings shipped next to ``action.yml``::

    from pathlib import Path
    from intunewin_action.config import load_settings

    settings = load_settings(Path("intunewin.toml"))
    print(f"Setup script: {settings.setup_script}")
"""

from __future__ import annotations

import dataclasses
import os
import typing as typ
from pathlib import Path

import tomllib

from .environment import action_root
from .errors import IntuneWinError

__all__ = [
    "DEFAULT_PACKAGE_NAME",
    "DEFAULT_TOOL_NAME",
    "DEFAULT_TOOL_URL",
    "ActionSettings",
    "load_settings",
]

DEFAULT_TOOL_URL = (
    "https://github.com/microsoft/Microsoft-Win32-Content-Prep-Tool/zipball/master"
)
DEFAULT_TOOL_NAME = "IntuneWinAppUtil.exe"
DEFAULT_PACKAGE_NAME = "Contoso.PackagedApp"
DEFAULT_TEMPLATE_SUFFIX = ".j2"

_PATH_FIELDS = frozenset({"templates_dir", "deployment_dir"})


@dataclasses.dataclass(frozen=True, slots=True)
class ActionSettings:
    """Resolved settings shared by the action entry points.

    Attributes
    ----------
    tool_url : str
        Location of the zip archive that contains the packaging tool.
    tool_name : str
        File name of the packaging executable inside that archive.
    package_name : str
        Package family name removed by ``intunewin-uninstall``.
    template_suffix : str
        Suffix identifying template files; stripped from rendered names.
    templates_dir : Path
        Directory scanned for templates.
    deployment_dir : Path
        Directory receiving the rendered deployment scripts. It is copied
        into the staging area verbatim.
    application_dir_name : str
        Staging subdirectory holding the application payload.
    canonical_stem : str
        Name given to the input package inside the staging area.
    setup_script : str
        Install script, relative to ``deployment_dir``, passed as the setup
        file. The tool names its output after this script's stem.
    """

    tool_url: str = DEFAULT_TOOL_URL
    tool_name: str = DEFAULT_TOOL_NAME
    package_name: str = DEFAULT_PACKAGE_NAME
    template_suffix: str = DEFAULT_TEMPLATE_SUFFIX
    templates_dir: Path = Path("templates")
    deployment_dir: Path = Path("Deployment")
    application_dir_name: str = "Application"
    canonical_stem: str = "App"
    setup_script: str = "Install.ps1"

    @property
    def expected_output_name(self) -> str:
        """Return the file name the packaging tool writes.

        Examples
        --------
        >>> ActionSettings().expected_output_name
        'Install.intunewin'
        """
        return f"{Path(self.setup_script).stem}.intunewin"


def load_settings(
    config_file: Path | None = None,
    environ: typ.Mapping[str, str] | None = None,
) -> ActionSettings:
    """Return :class:`ActionSettings` merged from defaults and ``config_file``.

    Parameters
    ----------
    config_file:
        Optional TOML document. Keys of its ``[intunewin]`` table override the
        matching :class:`ActionSettings` fields.
    environ:
        Environment used to locate the action root. Defaults to
        :data:`os.environ`.

    Returns
    -------
    ActionSettings
        Settings with directory fields resolved against the action root.

    Raises
    ------
    FileNotFoundError
        If ``config_file`` is given but does not exist.
    IntuneWinError
        When the document contains unknown keys or values of the wrong type.
    """
    env = os.environ if environ is None else environ
    overrides: dict[str, typ.Any] = {}

    if config_file is not None:
        if not config_file.is_file():
            message = f"Configuration file not found at {config_file}"
            raise FileNotFoundError(message)
        with config_file.open("rb") as handle:
            try:
                data = tomllib.load(handle)
            except tomllib.TOMLDecodeError as exc:
                message = f"Invalid TOML in {config_file}: {exc}"
                raise IntuneWinError(message) from exc
        overrides.update(_validate_table(data.get("intunewin", {}), config_file))

    root = action_root(env)
    defaults = {field.name: field.default for field in dataclasses.fields(ActionSettings)}
    for name in _PATH_FIELDS:
        path = Path(overrides.get(name, defaults[name]))
        overrides[name] = path if path.is_absolute() else root / path

    return ActionSettings(**overrides)


def _validate_table(table: object, config_file: Path) -> dict[str, typ.Any]:
    if not isinstance(table, dict):
        message = f"[intunewin] in {config_file} must be a table"
        raise IntuneWinError(message)

    known = {field.name for field in dataclasses.fields(ActionSettings)}
    if unknown := sorted(table.keys() - known):
        message = f"Unknown settings in {config_file}: {', '.join(unknown)}"
        raise IntuneWinError(message)

    for key, value in table.items():
        if not isinstance(value, str) or not value:
            message = f"Setting '{key}' in {config_file} must be a non-empty string"
            raise IntuneWinError(message)
    return dict(table)
