"""Loguru configuration for barberbook.

Provides:
- Colored console output
- Structured JSONL files per component when a log directory is set
- Context manager and decorator for timing report runs
"""

from __future__ import annotations

import functools
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = [
    "COMPONENTS",
    "configure_loguru",
    "get_logger",
    "log_timing",
    "timing_context",
]

F = TypeVar("F", bound=Callable[..., Any])

COMPONENTS = ("calendar", "aggregator", "pipeline", "storage", "cli")


def configure_loguru(
    *,
    log_dir: Path | None = None,
    level: str = "INFO",
    rotation: str = "10 MB",
    retention: str = "30 days",
    compression: str = "zip",
    enable_console: bool = True,
) -> None:
    """Configure loguru sinks.

    Parameters
    ----------
    log_dir
        Directory for JSONL log files (None: console only)
    level
        Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    rotation
        Log rotation policy (e.g., "10 MB", "1 day")
    retention
        Log retention policy (e.g., "30 days")
    compression
        Compression for rotated logs (zip, gz, bz2, xz)
    enable_console
        Enable console output on stderr

    Example
    -------
    >>> from barberbook.observability.loguru_config import configure_loguru
    >>> configure_loguru(log_dir=Path("logs"), level="INFO")
    """
    logger.remove()
    logger.configure(extra={"component": "barberbook"})

    if enable_console:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<level>{message}</level>",
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=False,
        )

    if log_dir is None:
        return

    log_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_dir / "barberbook.jsonl",
        format="{message}",
        level=level,
        rotation=rotation,
        retention=retention,
        compression=compression,
        serialize=True,
        backtrace=True,
        diagnose=False,
    )

    logger.add(
        log_dir / "timing.jsonl",
        format="{message}",
        level="DEBUG",
        rotation=rotation,
        retention=retention,
        compression=compression,
        serialize=True,
        filter=lambda record: record["extra"].get("timing", False),
    )

    for component in COMPONENTS:
        logger.add(
            log_dir / f"{component}.jsonl",
            format="{message}",
            level=level,
            rotation=rotation,
            retention=retention,
            compression=compression,
            serialize=True,
            filter=lambda record, comp=component: record["extra"].get("component") == comp,
        )

    logger.bind(component="barberbook").info("Loguru configured", log_dir=str(log_dir), level=level)


def get_logger(component: str = "barberbook") -> Any:
    """Get logger bound to a component (calendar, aggregator, pipeline, storage, cli)."""
    return logger.bind(component=component)


@contextmanager
def timing_context(
    operation: str,
    *,
    component: str = "barberbook",
    trace_id: str | None = None,
    **metadata: Any,
) -> Generator[dict[str, Any], None, None]:
    """Time an operation and log its duration.

    Parameters
    ----------
    operation
        Name of the operation being timed
    component
        Component name for filtering logs
    trace_id
        Trace ID for correlation
    **metadata
        Additional metadata to log

    Yields
    ------
    dict
        Context dictionary; ``duration_ms`` is set on exit

    Example
    -------
    >>> with timing_context("store_totals", component="pipeline") as ctx:
    ...     result = compute()
    ...     ctx["bills"] = len(result)
    """
    start_ns = time.perf_counter_ns()
    context: dict[str, Any] = {"operation": operation, "component": component, "trace_id": trace_id, **metadata}

    bound = logger.bind(component=component, timing=True, operation=operation, trace_id=trace_id)
    bound.debug(f"START: {operation}", phase="start", **metadata)

    try:
        yield context
    finally:
        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        context["duration_ms"] = duration_ms
        bound.debug(
            f"END: {operation}",
            phase="end",
            duration_ms=duration_ms,
            **{k: v for k, v in context.items() if k not in ("operation", "component", "trace_id", "duration_ms")},
        )


def log_timing(component: str = "barberbook") -> Callable[[F], F]:
    """Decorator timing every call of the wrapped function.

    Example
    -------
    >>> @log_timing(component="pipeline")
    ... def build_report(snapshot):
    ...     ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            trace_id = kwargs.get("trace_id") or (
                args[0].trace_id if args and hasattr(args[0], "trace_id") else None
            )
            with timing_context(f"{func.__module__}.{func.__name__}", component=component, trace_id=trace_id):
                return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator
