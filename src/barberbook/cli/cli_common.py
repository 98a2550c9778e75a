"""Common CLI utilities: JSON output, stable exit codes and command logging."""

import functools
import json
import traceback
import uuid
from datetime import datetime
from enum import IntEnum
from typing import Any

import click

from ..config.settings import ConfigError
from ..core.time import parse_utc_iso8601
from ..observability.loguru_config import get_logger
from ..storage.snapshot import SnapshotError

logger = get_logger("cli")


class ExitCode(IntEnum):
    """Stable exit codes for CLI commands."""

    SUCCESS = 0  # Successful execution
    VALIDATION_ERROR = 2  # Snapshot missing, unparseable or invalid
    CONFIG_ERROR = 6  # Configuration error
    UNKNOWN_ERROR = 7  # Unknown/unexpected error


class CLIContext:
    """Context for CLI execution with JSON output and trace ID."""

    def __init__(
        self,
        json_output: bool = False,
        trace_id: str | None = None,
        verbose: bool = False,
    ):
        """Initialize CLI context.

        Args:
            json_output: Enable JSON output mode
            trace_id: Trace ID for correlation
            verbose: Verbose output
        """
        self.json_output = json_output
        self.trace_id = trace_id or f"trace-{uuid.uuid4().hex[:12]}"
        self.verbose = verbose

    def output(
        self,
        data: Any,
        status: str = "success",
        error: str | None = None,
        meta: dict[str, Any] | None = None,
        lines: list[str] | None = None,
    ) -> None:
        """Output result in appropriate format.

        Args:
            data: Result data
            status: Status ("success", "error")
            error: Error message if status is error
            meta: Additional metadata
            lines: Pre-rendered human-readable lines (ignored in JSON mode)
        """
        if self.json_output:
            # JSON mode: print only JSON, no logs
            result: dict[str, Any] = {"status": status, "trace_id": self.trace_id}

            if error:
                result["error"] = error
            else:
                result["data"] = data

            if meta:
                result["meta"] = meta

            click.echo(json.dumps(result, ensure_ascii=False, indent=2))
            return

        if status == "error":
            click.echo(f"❌ {error}")
            for detail in (meta or {}).get("errors", []):
                click.echo(f"  - {detail}")
        elif lines is not None:
            for line in lines:
                click.echo(line)
        elif isinstance(data, dict):
            for key, value in data.items():
                click.echo(f"{key}: {value}")
        else:
            click.echo(data)

    def log_command(self, cmd: str, args: dict[str, Any], result: dict[str, Any]) -> None:
        """Record command execution in the cli log."""
        logger.info("Command finished", command=cmd, args=args, trace_id=self.trace_id, **result)


def parse_now(_ctx: click.Context, _param: click.Parameter, value: str | None) -> datetime | None:
    """Click callback turning ``--now`` into a UTC instant."""
    if value is None:
        return None
    try:
        return parse_utc_iso8601(value)
    except ValueError as exc:
        raise click.BadParameter(f"expected ISO-8601 instant, got {value!r}") from exc


def cli_command(func):
    """Decorator to add common CLI options to commands.

    Adds:
    - --json: JSON output mode
    - --trace-id: Trace ID for correlation
    - --verbose: Verbose output

    The wrapped command returns an exit code; a non-zero code ends the
    click invocation with that status.
    """

    @click.option("--json", "json_output", is_flag=True, help="Output as JSON (machine-readable)")
    @click.option("--trace-id", type=str, help="Trace ID for correlation")
    @click.option("--verbose", "-v", is_flag=True, help="Verbose output")
    @functools.wraps(func)
    def wrapper(
        json_output: bool,
        trace_id: str | None,
        verbose: bool,
        *args: Any,
        **kwargs: Any,
    ) -> int:
        ctx = CLIContext(json_output=json_output, trace_id=trace_id, verbose=verbose)

        exit_code = func(ctx, *args, **kwargs)
        if exit_code:
            click.get_current_context().exit(exit_code)
        return exit_code

    return wrapper


def handle_cli_error(ctx: CLIContext, exc: Exception, cmd: str, args: dict[str, Any]) -> int:
    """Handle CLI error and return appropriate exit code.

    Args:
        ctx: CLI context
        exc: Exception to handle
        cmd: Command name
        args: Command arguments

    Returns:
        Appropriate exit code
    """
    meta: dict[str, Any] = {}

    if isinstance(exc, SnapshotError):
        exit_code = ExitCode.VALIDATION_ERROR
        if exc.errors:
            meta["errors"] = exc.errors
    elif isinstance(exc, ConfigError):
        exit_code = ExitCode.CONFIG_ERROR
    else:
        exit_code = ExitCode.UNKNOWN_ERROR

    error_msg = str(exc)
    meta["exit_code"] = int(exit_code)

    result = {
        "status": "error",
        "error": error_msg,
        "error_type": type(exc).__name__,
        "exit_code": int(exit_code),
    }

    if ctx.verbose:
        result["traceback"] = traceback.format_exc()

    ctx.log_command(cmd, args, result)

    ctx.output(None, status="error", error=error_msg, meta=meta)

    if ctx.verbose and not ctx.json_output:
        click.echo("\nTraceback:", err=True)
        click.echo(traceback.format_exc(), err=True)

    return int(exit_code)


def handle_cli_success(
    ctx: CLIContext,
    data: Any,
    cmd: str,
    args: dict[str, Any],
    lines: list[str] | None = None,
) -> int:
    """Handle CLI success and return success code.

    Args:
        ctx: CLI context
        data: Success data
        cmd: Command name
        args: Command arguments
        lines: Human-readable rendering of ``data``

    Returns:
        Success exit code (0)
    """
    ctx.log_command(cmd, args, {"status": "success", "exit_code": 0})

    ctx.output(data, status="success", lines=lines)

    return int(ExitCode.SUCCESS)
