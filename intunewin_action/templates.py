"""Render deployment-script templates with caller-supplied variables.

Templates are plain files ending in the configured suffix (``.j2`` by
default). Rendering is delegated to Jinja2; placeholders the caller did not
supply render as empty strings instead of failing the run.
"""

from __future__ import annotations

import dataclasses
import re
import sys
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateError, Undefined

__all__ = [
    "VARIABLE_PREFIX",
    "RenderReport",
    "parse_variable_args",
    "render_templates",
]

VARIABLE_PREFIX = "--f:"

_KEY_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclasses.dataclass(slots=True)
class RenderReport:
    """Outcome of :func:`render_templates`.

    Attributes
    ----------
    rendered:
        Paths of the files written to the output directory.
    failures:
        Mapping of template names to the error that stopped their rendering.
    """

    rendered: list[Path] = dataclasses.field(default_factory=list)
    failures: dict[str, str] = dataclasses.field(default_factory=dict)


def parse_variable_args(tokens: typ.Iterable[str]) -> dict[str, str]:
    """Return the ``--f:KEY=VALUE`` assignments found in ``tokens``.

    Malformed tokens are reported as workflow warnings and skipped. Later
    assignments to the same key replace earlier ones.

    Examples
    --------
    >>> parse_variable_args(["--f:APP_VERSION=1.2.3", "--f:QUERY=a=b"])
    {'APP_VERSION': '1.2.3', 'QUERY': 'a=b'}
    """
    variables: dict[str, str] = {}
    for token in tokens:
        body = token.removeprefix(VARIABLE_PREFIX)
        key, sep, value = body.partition("=")
        if body == token or not sep or not _KEY_PATTERN.fullmatch(key):
            print(
                "::warning title=Ignored Argument::"
                f"Expected {VARIABLE_PREFIX}KEY=VALUE, got {token!r}",
                file=sys.stderr,
            )
            continue
        variables[key] = value
    return variables


def render_templates(
    templates_dir: Path,
    output_dir: Path,
    variables: typ.Mapping[str, str],
    *,
    suffix: str = ".j2",
) -> RenderReport:
    """Render every ``suffix`` file in ``templates_dir`` into ``output_dir``.

    Parameters
    ----------
    templates_dir : Path
        Directory scanned (non-recursively) for templates. A missing
        directory yields an empty report.
    output_dir : Path
        Destination for rendered files; created when templates exist.
    variables : Mapping[str, str]
        Values substituted for the template placeholders.
    suffix : str
        Template suffix stripped from each output file name.

    Returns
    -------
    RenderReport
        Rendered paths and per-template failures. A template that fails to
        render never stops the rest of the batch.
    """

    report = RenderReport()
    if not templates_dir.is_dir():
        print(f"No templates directory at '{templates_dir}'; nothing to render.")
        return report

    templates = sorted(
        path
        for path in templates_dir.iterdir()
        if path.is_file() and path.name.endswith(suffix) and path.name != suffix
    )
    if not templates:
        print(f"No '*{suffix}' templates found in '{templates_dir}'.")
        return report

    env = Environment(
        loader=FileSystemLoader(templates_dir),
        undefined=Undefined,
        keep_trailing_newline=True,
        autoescape=False,
    )
    output_dir.mkdir(parents=True, exist_ok=True)

    for template_path in templates:
        destination = output_dir / template_path.name.removesuffix(suffix)
        try:
            text = env.get_template(template_path.name).render(variables)
            destination.write_text(text, encoding="utf-8")
        except (TemplateError, UnicodeDecodeError, OSError) as exc:
            report.failures[template_path.name] = str(exc)
            print(
                "::warning title=Template Failure::"
                f"Failed to render '{template_path.name}': {exc}",
                file=sys.stderr,
            )
            continue
        print(f"Rendered '{template_path.name}' -> '{destination}'")
        report.rendered.append(destination)

    return report
