"""
DexDeps CLI -- DEX Dependency Extractor
========================================

Click-based command-line interface.  Lists every class, field and method
referenced by the DEX images of an APK/JAR/AAR archive or a raw DEX file,
tagged internal or external.

Usage::

    # Everything
    dexdeps app-release.apk

    # Only what the app pulls in from outside
    dexdeps app-release.apk --scope external

    # Machine-readable
    dexdeps classes.dex --json
    dexdeps app-release.apk --output refs.json
    dexdeps app-release.apk --output refs.graphml

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import json
import sys
import traceback
from pathlib import Path

import click
from rich.markup import escape

from shared.config import DepsConfig
from shared.console import DepsConsole
from shared.logger import DepsLogger

from dexdeps import __version__
from dexdeps.core.engine import DepsEngine
from dexdeps.core.errors import DexError
from dexdeps.core.models import ReferenceScope
from dexdeps.output.console import DepsConsoleOutput
from dexdeps.output.report import DepsReportGenerator


@click.command("dexdeps")
@click.version_option(__version__, prog_name="dexdeps")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--scope", "-s",
    type=click.Choice([s.value for s in ReferenceScope], case_sensitive=False),
    default=None,
    help="Which classes to list.  Default: [scan] scope from config (all).",
)
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write a report (.json, .graphml, anything else: text).",
)
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Print the result as JSON to stdout.",
)
@click.option(
    "--members/--no-members",
    default=None,
    help="Show fields and methods of each class.",
)
@click.option(
    "--fail-fast",
    is_flag=True,
    default=False,
    help="Abort on the first malformed DEX image.",
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="TOML configuration file.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
def dexdeps_cli(
    path: str,
    scope: str | None,
    output_path: str | None,
    json_output: bool,
    members: bool | None,
    fail_fast: bool,
    config_path: str | None,
    verbose: bool,
) -> None:
    """List the class, field and method references of a DEX image.

    PATH is a raw .dex file or an APK/JAR/AAR archive containing
    classes.dex, classes2.dex, ...

    Examples:

    \b
        dexdeps app-debug.apk --scope external --no-members
        dexdeps classes.dex --output refs.json
    """
    console = DepsConsole()
    try:
        config = DepsConfig.load(config_path)
    except Exception as exc:
        if not json_output:
            console.warning(escape(f"Could not load configuration ({exc}), using defaults."))
        config = DepsConfig()
    settings = config.global_settings

    if fail_fast:
        config.scan.fail_fast = True
    show_members = config.scan.show_members if members is None else members

    log_level = "DEBUG" if verbose or settings.debug else settings.log_level
    # module loggers (dexdeps.tables, dexdeps.container) propagate here
    logger = DepsLogger(
        "dexdeps",
        log_level=log_level,
        log_file=settings.log_file,
        json_logs=settings.log_json,
    )

    engine = DepsEngine(config=config, logger=logger)
    try:
        result = engine.scan(path, scope=scope)
    except KeyboardInterrupt:
        console.warning("Scan interrupted by user.")
        sys.exit(130)
    except DexError as exc:
        console.error(escape(f"{exc.kind}: {exc}"))
        sys.exit(1)
    except Exception as exc:
        console.error(escape(f"Scan failed: {exc}"))
        if verbose:
            traceback.print_exc()
        sys.exit(1)

    if json_output:
        report = DepsReportGenerator().build_json(result)
        click.echo(json.dumps(report, indent=2, ensure_ascii=False))
    else:
        DepsConsoleOutput(console=console).display(result, show_members=show_members)
        if result.failed and not result.all_failed:
            console.warning(
                f"{len(result.failed)} of {len(result.results)} DEX image(s) could not be decoded."
            )

    if output_path:
        report_gen = DepsReportGenerator()
        suffix = Path(output_path).suffix.lower()
        if suffix == ".json":
            written = report_gen.generate_json(result, output_path)
        elif suffix == ".graphml":
            written = report_gen.generate_graphml(result, output_path)
        else:
            written = report_gen.generate_text(result, output_path, show_members=show_members)
        if not json_output:
            console.success(escape(f"Report saved: {written}"))

    if result.all_failed:
        sys.exit(1)


def main() -> None:
    """Entry point for the ``dexdeps`` console script."""
    dexdeps_cli()


if __name__ == "__main__":
    main()
