"""CLI entry point for license-auditor."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, cast

import click
from rich.console import Console
from rich.markup import escape

from license_auditor import __version__
from license_auditor.audit import audit_licenses
from license_auditor.config import load_config
from license_auditor.constants import EXIT_ERROR, EXIT_ISSUES, EXIT_SUCCESS
from license_auditor.exceptions import LicenseAuditorError
from license_auditor.logs import configure_logging
from license_auditor.models.config import Ecosystem
from license_auditor.output.terminal import TerminalFormatter

# Report goes to stdout; errors and logs go to stderr
_console = Console()
_error_console = Console(stderr=True)


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """License Auditor - Check dependency licenses against a policy.

    Audits the licenses of a Node and/or Python project's dependencies
    against a whitelist and blacklist.

    \b
    Examples:
        license-auditor audit
        license-auditor audit --production
        license-auditor audit --ecosystem python --requirements requirements.txt
        license-auditor audit --default-config --strict
    """
    pass


@main.command()
@click.option(
    "--cwd",
    "project_dir",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="Project root to audit (default: current directory).",
)
@click.option(
    "--production",
    is_flag=True,
    default=False,
    help="Skip development dependencies.",
)
@click.option(
    "--filter-regex",
    default=None,
    help="Exclude packages whose name@version matches this regex.",
)
@click.option(
    "--ecosystem",
    type=click.Choice(["auto", "node", "python", "both"], case_sensitive=False),
    default=None,
    help="Ecosystem to audit (default: from config, else auto-detect).",
)
@click.option(
    "--python",
    "python_path",
    default=None,
    help="Python interpreter used to inspect the installed environment.",
)
@click.option(
    "--requirements",
    "requirements",
    multiple=True,
    help="Requirements file to audit (repeatable).",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to configuration file.",
)
@click.option(
    "--default-config",
    is_flag=True,
    default=False,
    help="Use the built-in policy instead of a configuration file.",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help=(
        "Also fail on dependency resolution warnings and on unknown, "
        "not found and unverified licenses."
    ),
)
@click.option(
    "--bail",
    type=click.IntRange(min=0),
    default=None,
    help="Number of blacklisted packages tolerated before failing (default: 0).",
)
@click.option(
    "--verbose",
    "-v",
    "verbose_flag",
    is_flag=True,
    default=False,
    help="Show license sources, whitelisted packages and debug logs.",
)
def audit(
    project_dir: str,
    production: bool,
    filter_regex: Optional[str],
    ecosystem: Optional[str],
    python_path: Optional[str],
    requirements: tuple[str, ...],
    config_path: Optional[str],
    default_config: bool,
    strict: bool,
    bail: Optional[int],
    verbose_flag: bool,
) -> None:
    """Audit dependency licenses of a project.

    \b
    Exit codes:
        0  no issues
        1  more blacklisted packages than --bail allows (or, with --strict,
           a resolution warning or any unresolved package)
        2  the audit failed
    """
    configure_logging(verbose_flag)
    cwd = Path(project_dir).resolve()

    try:
        config = load_config(cwd, config_path, use_default=default_config)
        result = audit_licenses(
            cwd,
            config,
            production=production,
            filter_regex=filter_regex,
            ecosystem=cast(Optional[Ecosystem], ecosystem.lower() if ecosystem else None),
            python=python_path,
            requirements=list(requirements) or None,
        )
    except LicenseAuditorError as e:
        _display_error(e)
        sys.exit(EXIT_ERROR)

    TerminalFormatter(
        console=_console, verbose=verbose_flag, strict=strict, bail=bail
    ).format_audit_result(result)

    if result.has_issues(strict=strict, bail=bail):
        sys.exit(EXIT_ISSUES)
    sys.exit(EXIT_SUCCESS)


def _display_error(error: LicenseAuditorError) -> None:
    """Print a fatal audit error as ``Error: <Type>: <message>`` on stderr."""
    _error_console.print(
        f"[red bold]Error: {type(error).__name__}: {escape(str(error))}[/red bold]"
    )


if __name__ == "__main__":
    main()
