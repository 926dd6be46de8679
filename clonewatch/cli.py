"""CLI interface for clonewatch using Click."""

import logging
import sys
from pathlib import Path

import click

from clonewatch import __version__
from clonewatch.cancel import ScanCancelled
from clonewatch.config import (
    OUTPUT_FORMATS,
    ConfigFileError,
    build_config,
    load_file_config,
)
from clonewatch.pipeline import scan_and_report

_TUPLE_OPTIONS = {
    "exclude": "exclude_patterns",
    "include": "include_patterns",
    "languages": "languages",
}


def _collect_explicit_args(ctx: click.Context, **kwargs: object) -> dict[str, object]:
    """Return only the kwargs whose values were explicitly set on the command line."""
    explicit: dict[str, object] = {}
    for param_name, value in kwargs.items():
        source = ctx.get_parameter_source(param_name)
        if source is click.core.ParameterSource.COMMANDLINE:
            if param_name in _TUPLE_OPTIONS:
                explicit[_TUPLE_OPTIONS[param_name]] = tuple(value)
            else:
                explicit[param_name] = value
    return explicit


def _configure_logging(verbosity: int) -> None:
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


@click.command()
@click.version_option(version=__version__, prog_name="clonewatch")
@click.argument(
    "path",
    default=".",
    type=click.Path(exists=True, file_okay=False),
)
@click.option(
    "--exclude",
    multiple=True,
    help="Glob patterns to exclude, added to the defaults (repeatable).",
)
@click.option(
    "--include",
    multiple=True,
    help="Only scan files matching these globs (repeatable).",
)
@click.option(
    "--languages",
    multiple=True,
    help="Restrict to specific languages (repeatable).",
)
@click.option(
    "--min-confidence",
    type=click.FloatRange(0.0, 1.0),
    default=0.0,
    show_default=True,
    help="Drop findings below this confidence.",
)
@click.option(
    "--max-findings",
    type=click.IntRange(min=1),
    default=200,
    show_default=True,
    help="Maximum number of findings to report.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default="human",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Threads used to read and hash files.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0.0),
    default=0.0,
    show_default=True,
    help="Abort the scan after this many seconds (0 = no limit).",
)
@click.option("-v", "--verbose", count=True, help="Log progress (-v) or debug detail (-vv).")
@click.pass_context
def main(
    ctx,
    path,
    exclude,
    include,
    languages,
    min_confidence,
    max_findings,
    output_format,
    workers,
    timeout,
    verbose,
):
    """Detect duplicated and near-duplicated code blocks in a repository.

    PATH is the repository root to scan; it defaults to the current
    directory. Settings under [tool.clonewatch] in PATH/pyproject.toml are
    applied first and command-line options override them.
    """
    _configure_logging(verbose)

    cli_overrides = _collect_explicit_args(
        ctx,
        exclude=exclude,
        include=include,
        languages=languages,
        min_confidence=min_confidence,
        max_findings=max_findings,
        output_format=output_format,
        workers=workers,
        timeout=timeout,
    )

    try:
        file_config = load_file_config(Path(path) / "pyproject.toml")
    except ConfigFileError as exc:
        raise click.ClickException(str(exc)) from None

    config = build_config(cli_overrides, file_config)

    try:
        result = scan_and_report(config, path, out=sys.stdout)
    except ScanCancelled as exc:
        raise click.ClickException(str(exc)) from None
    raise SystemExit(1 if result.findings else 0)
