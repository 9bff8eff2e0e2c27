"""
logmetrics CLI

Synthesize metric filter declarations into templates and compare them with what
is deployed.
"""

import importlib
import inspect
import json
import logging
import os
import sys
from typing import NoReturn
from typing import Optional

import boto3
import botocore.exceptions
import typer
from typing_extensions import Annotated

import logmetrics.version
from logmetrics.core.construct import App
from logmetrics.core.synth import synthesize
from logmetrics.core.synth import write_templates
from logmetrics.errors import AppLoadError
from logmetrics.errors import ValidationError
from logmetrics.intel.cloudwatch import detect_drift
from logmetrics.logs.units import UNIT_LABELS
from logmetrics.settings import DEFAULT_OUTDIR
from logmetrics.settings import get_setting
from logmetrics.util import STATUS_FAILURE
from logmetrics.util import STATUS_KEYBOARD_INTERRUPT

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Declare CloudWatch Logs metric filters as code",
    no_args_is_help=True,
)


def load_app(entrypoint: str) -> App:
    """
    Resolve `module:callable` into an App.

    The callable either returns an App or accepts a freshly created App and
    populates it.
    """
    module_name, _, attr = entrypoint.partition(":")
    if not module_name or not attr:
        raise AppLoadError(
            f"Invalid app entrypoint '{entrypoint}', expected 'module:callable'"
        )

    # Allow apps defined next to where the command is run.
    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise AppLoadError(f"Unable to import '{module_name}': {e}") from e

    builder = getattr(module, attr, None)
    if builder is None or not callable(builder):
        raise AppLoadError(f"'{attr}' is not a callable in module '{module_name}'")

    if len(inspect.signature(builder).parameters) >= 1:
        declared = App()
        result = builder(declared)
        if result is None:
            result = declared
    else:
        result = builder()

    if not isinstance(result, App):
        raise AppLoadError(
            f"'{entrypoint}' returned {type(result).__name__}, expected an App"
        )
    return result


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(logmetrics.version.get_version_string())
        raise typer.Exit(0)


@app.callback()  # type: ignore[misc]
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Restrict logging to warnings and errors."),
    ] = False,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            help="Show the version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    if verbose:
        logging.getLogger("logmetrics").setLevel(logging.DEBUG)
    elif quiet:
        logging.getLogger("logmetrics").setLevel(logging.WARNING)
    else:
        logging.getLogger("logmetrics").setLevel(logging.INFO)


def _fail(message: str) -> NoReturn:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(STATUS_FAILURE)


@app.command(name="synth")  # type: ignore[misc]
def synth_cmd(
    entrypoint: Annotated[
        str,
        typer.Argument(help="App entrypoint as 'module:callable'"),
    ],
    outdir: Annotated[
        Optional[str],
        typer.Option(help="Directory to write templates to"),
    ] = None,
    stdout: Annotated[
        bool,
        typer.Option("--stdout", help="Print templates instead of writing files"),
    ] = False,
) -> None:
    """
    Synthesize every stack of an app into a template.

    \b
    Examples:
        logmetrics synth myapp.monitoring:build
        logmetrics synth myapp.monitoring:build --outdir build/templates
        logmetrics synth myapp.monitoring:build --stdout
    """
    try:
        declared = load_app(entrypoint)
        if stdout:
            typer.echo(json.dumps(synthesize(declared), indent=2))
            return
        paths = write_templates(declared, outdir or get_setting("synth", "outdir", DEFAULT_OUTDIR))
    except (AppLoadError, ValidationError) as e:
        _fail(str(e))

    for path in paths:
        typer.echo(path)


@app.command(name="diff")  # type: ignore[misc]
def diff_cmd(
    entrypoint: Annotated[
        str,
        typer.Argument(help="App entrypoint as 'module:callable'"),
    ],
    region: Annotated[
        Optional[str],
        typer.Option(help="AWS region to compare against"),
    ] = None,
    profile: Annotated[
        Optional[str],
        typer.Option(help="AWS profile to use"),
    ] = None,
) -> None:
    """
    Compare declared metric filters with those deployed in an AWS region.

    Exits with status 1 when any declared filter is missing or differs.

    \b
    Examples:
        logmetrics diff myapp.monitoring:build --region eu-west-1
    """
    region = region or get_setting("aws", "region")
    profile = profile or get_setting("aws", "profile")

    try:
        declared = load_app(entrypoint)
        templates = synthesize(declared)
    except (AppLoadError, ValidationError) as e:
        _fail(str(e))

    try:
        boto3_session = boto3.Session(profile_name=profile, region_name=region)
        region = region or boto3_session.region_name
        if not region:
            _fail("No AWS region configured. Pass --region or set LOGMETRICS_AWS__REGION.")
        drifted = []
        for stack_name, template in templates.items():
            for drift in detect_drift(boto3_session, region, template):
                drifted.append(drift)
                typer.secho(f"[{stack_name}] {drift.describe()}", fg=typer.colors.YELLOW)
    except (botocore.exceptions.BotoCoreError, botocore.exceptions.ClientError) as e:
        _fail(str(e))
    except KeyboardInterrupt:
        raise typer.Exit(STATUS_KEYBOARD_INTERRUPT)

    if drifted:
        raise typer.Exit(STATUS_FAILURE)
    typer.secho("No drift detected.", fg=typer.colors.GREEN)


@app.command(name="units")  # type: ignore[misc]
def units_cmd() -> None:
    """List the units a metric filter accepts."""
    for label in UNIT_LABELS:
        typer.echo(label)


def main() -> None:
    """Entrypoint for the logmetrics CLI."""
    logging.basicConfig(level=logging.INFO)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    app()


if __name__ == "__main__":
    main()
