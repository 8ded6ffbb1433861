# src/rowstream/cli.py
"""rowstream Command Line Interface.

Entry point for the rowstream CLI tool.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from rowstream import __version__
from rowstream.contracts import (
    ConfigError,
    DecodeError,
    ResumeMarkerNotFoundError,
    SourceError,
    SourceFormat,
)
from rowstream.core.canonical import row_fingerprint
from rowstream.core.config import RowStreamSettings, SourceSettings, load_settings
from rowstream.engine.pipeline import PausableRowPipeline
from rowstream.plugins.manager import DecoderManager
from rowstream.plugins.processors import CallbackRowProcessor
from rowstream.plugins.sources import open_byte_source

__all__ = ["app"]

app = typer.Typer(
    name="rowstream",
    help="rowstream: resumable ingestion of CSV and JSON-lines row streams.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"rowstream version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from a .env file.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """rowstream: resumable ingestion of CSV and JSON-lines row streams."""
    from rowstream.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")
    ctx.obj = {"verbose": verbose, "json_logs": json_logs}

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _resolve_settings(
    location: str | None,
    settings: str | None,
    source_format: SourceFormat | None,
    pause_every: int | None,
) -> RowStreamSettings:
    """Merge the settings file (if any) with command-line overrides."""
    if settings is not None:
        settings_path = Path(settings).expanduser()
        try:
            config = load_settings(settings_path)
        except (YamlParserError, YamlScannerError) as e:
            typer.echo(f"YAML syntax error in {settings}: {e.problem}", err=True)
            raise typer.Exit(1) from None
        except FileNotFoundError:
            typer.echo(f"Error: Settings file not found: {settings}", err=True)
            raise typer.Exit(1) from None
        base: dict[str, Any] = config.model_dump()
    else:
        if location is None:
            typer.echo("Error: LOCATION is required when --settings is not given.", err=True)
            raise typer.Exit(1)
        base = {"source": {"location": location}}

    if location is not None:
        base["source"]["location"] = location
    if source_format is not None:
        base["source"]["format"] = source_format
    if pause_every is not None:
        base["pause_every"] = pause_every
    return RowStreamSettings(**base)


def _print_config_errors(error: ValidationError) -> None:
    typer.echo("Configuration errors:", err=True)
    for item in error.errors():
        loc = ".".join(str(x) for x in item["loc"])
        typer.echo(f"  - {loc}: {item['msg']}", err=True)


def _build_pipeline(source: SourceSettings, processor: CallbackRowProcessor) -> PausableRowPipeline:
    manager = DecoderManager()
    manager.register_builtin_plugins()
    decoder = manager.create_decoder(str(source.resolved_format), source.options)
    byte_source = open_byte_source(source.location, chunk_size=source.chunk_size, timeout=source.timeout_seconds)
    return PausableRowPipeline(byte_source, decoder, processor)


@app.command()
def ingest(
    ctx: typer.Context,
    location: str | None = typer.Argument(
        None,
        help="Local file path or http(s) URL. Overrides source.location from --settings.",
    ),
    source_format: SourceFormat | None = typer.Option(
        None,
        "--format",
        "-f",
        help="Wire format; detected from the location suffix when omitted.",
    ),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    pause_every: int | None = typer.Option(
        None,
        "--pause-every",
        "-p",
        help="Report a resume marker after every N rows (0 never pauses).",
    ),
    marker: str | None = typer.Option(
        None,
        "--marker",
        "-m",
        help="Resume after the row with this marker from an earlier run.",
    ),
    max_steps: int | None = typer.Option(
        None,
        "--max-steps",
        min=1,
        help="Stop after this many pause points, as a bounded job slice would.",
    ),
) -> None:
    """Stream rows from a source and write them to stdout as JSON lines.

    Each pause point prints its marker to stderr. Pass the last marker back
    with --marker to continue a stopped run after that row.
    """
    try:
        config = _resolve_settings(location, settings, source_format, pause_every)
    except ValidationError as e:
        _print_config_errors(e)
        raise typer.Exit(1) from None

    if settings is not None:
        from rowstream.core.logging import configure_from_settings

        flags = ctx.obj or {}
        configure_from_settings(
            config.logging,
            json_output=flags.get("json_logs", False),
            verbose=flags.get("verbose", False),
        )

    def emit(row: dict[str, Any]) -> None:
        typer.echo(json.dumps(row, ensure_ascii=False, default=str))

    processor = CallbackRowProcessor(emit, pause_every=config.pause_every)

    try:
        pipeline = _build_pipeline(config.source, processor)
        steps = 1
        last = pipeline.fastforward(marker) if marker is not None else pipeline.process_some()
        while not pipeline.is_finished:
            typer.echo(f"marker: {last}", err=True)
            if max_steps is not None and steps >= max_steps:
                typer.echo(
                    f"Stopped after {steps} step(s), {pipeline.rows_processed} rows. Resume with --marker {last}",
                    err=True,
                )
                return
            last = pipeline.process_some()
            steps += 1
    except ResumeMarkerNotFoundError as e:
        typer.echo(f"Resume failed: {e}", err=True)
        raise typer.Exit(1) from None
    except (ConfigError, DecodeError, SourceError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"Finished: {pipeline.rows_processed} rows", err=True)


@app.command()
def fingerprint(
    row_json: str = typer.Argument(..., help="Row as a JSON object, e.g. '{\"id\": 1}'."),
) -> None:
    """Print the resume marker a row would produce."""
    try:
        row = json.loads(row_json)
    except json.JSONDecodeError as e:
        typer.echo(f"Error: invalid JSON: {e}", err=True)
        raise typer.Exit(1) from None
    if not isinstance(row, dict):
        typer.echo("Error: a row must be a JSON object", err=True)
        raise typer.Exit(1)
    try:
        typer.echo(row_fingerprint(row))
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
