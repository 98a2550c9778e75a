"""Report commands: business periods, dashboard, date ranges, cashier profits, week statement and pocket balances."""

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

import click

from ..config.settings import Settings, load_settings
from ..observability.loguru_config import configure_loguru
from ..pipelines.report_pipeline import ReportPipeline, ReportPipelineResult
from ..rollups.time_windows import CivilDate
from ..storage.snapshot import load_snapshot
from .cli_common import CLIContext, cli_command, handle_cli_error, handle_cli_success, parse_now

Renderer = Callable[[dict[str, Any]], list[str] | None]


def snapshot_option(func):
    return click.option(
        "--snapshot",
        "snapshot_path",
        required=True,
        type=click.Path(dir_okay=False, path_type=Path),
        help="YAML/JSON snapshot of bills, lines, items, pocket expenses and profiles",
    )(func)


def period_options(func):
    func = click.option("--tz", type=str, help="IANA timezone (default: BARBERBOOK_TIMEZONE or Africa/Cairo)")(func)
    func = click.option("--now", callback=parse_now, help="Evaluate at this ISO-8601 instant instead of the clock")(func)
    return func


def load_cli_settings(tz: str | None) -> Settings:
    """Settings from .env and environment, with ``--tz`` applied."""
    settings = load_settings()
    if tz:
        settings = replace(settings, timezone=tz)
    return settings


def configure_cli_logging(ctx: CLIContext, settings: Settings) -> None:
    configure_loguru(
        log_dir=settings.log_dir,
        level="DEBUG" if ctx.verbose else settings.log_level,
        enable_console=settings.log_console and ctx.verbose and not ctx.json_output,
    )


def run_report(
    ctx: CLIContext,
    cmd: str,
    args: dict[str, Any],
    tz: str | None,
    build: Callable[[ReportPipeline], ReportPipelineResult],
    render: Renderer,
) -> int:
    """Load settings, run one pipeline report and print it."""
    try:
        settings = load_cli_settings(tz)
        configure_cli_logging(ctx, settings)

        result = build(ReportPipeline(settings, trace_id=ctx.trace_id))
        if not result.success:
            raise RuntimeError("; ".join(result.errors))

        return handle_cli_success(ctx, result.data, cmd, args, lines=render(result.data))

    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


def _fmt(value: float) -> str:
    return f"{value:,.2f}"


def render_dashboard(data: dict[str, Any]) -> list[str]:
    lines = [f"Week {data['week_label']} ({data['timezone']})"]
    for name, row in data["windows"].items():
        lines.append(
            f"  {name:<6} gross {_fmt(row['gross'])} | pocket {_fmt(row['pocket'])} | "
            f"after pocket {_fmt(row['gross_after_pocket'])} | net {_fmt(row['share_net'])} | bills {row['bills']}"
        )
    if data.get("sold_out"):
        lines.append("Sold out: " + ", ".join(item["name"] for item in data["sold_out"]))
    return lines


def render_range(data: dict[str, Any]) -> list[str]:
    return [
        f"Range {data['first']} to {data['last']} ({data['timezone']})",
        f"  bills {data['bills']} | gross {_fmt(data['gross'])} | pocket {_fmt(data['pocket'])} | "
        f"after pocket {_fmt(data['gross_after_pocket'])}",
    ]


def render_cashiers(data: dict[str, Any]) -> list[str]:
    if not data["cashiers"]:
        return ["No cashiers"]
    lines = [f"Week {data['week_label']}"]
    for row in data["cashiers"]:
        lines.append(
            f"  {row['name']}: today {_fmt(row['today_gross'])}/{_fmt(row['today_net'])} | "
            f"week {_fmt(row['week_gross'])}/{_fmt(row['week_net'])} | "
            f"month {_fmt(row['month_gross'])}/{_fmt(row['month_net'])}"
        )
    return lines


def render_week(data: dict[str, Any]) -> list[str]:
    return [
        f"{data['name']} - week {data['week_label']}",
        f"  gross      {_fmt(data['gross'])}",
        f"  cost       {_fmt(data['cost'])}",
        f"  base net   {_fmt(data['base_net'])}",
        f"  share      {data['share_label']}",
        f"  share net  {_fmt(data['share_net'])}",
        f"  pocket     {_fmt(data['pocket'])}",
        f"  final net  {_fmt(data['final_net'])}",
    ]


def render_pocket(data: dict[str, Any]) -> list[str]:
    lines = [f"Week {data['week_label']}"]
    for row in data["actors"]:
        lines.append(
            f"  {row['name']} ({row['role']}): net {_fmt(row['share_net'])} | "
            f"pocket {_fmt(row['pocket'])} | balance {_fmt(row['balance'])}"
        )
    return lines


def render_expense_check(data: dict[str, Any]) -> list[str]:
    if data["allowed"]:
        return [f"✅ Allowed: {_fmt(data['amount'])} ({data['reason'] or 'no reason'})"]
    return [f"⛔ Rejected: {data['error']} (week net {_fmt(data['week_net'])})"]


@click.command("boundaries")
@period_options
@cli_command
def boundaries_command(ctx: CLIContext, now: datetime | None, tz: str | None) -> int:
    """Show the current business day, week, month and year in UTC."""
    args = {"now": now.isoformat() if now else None, "tz": tz}
    return run_report(ctx, "boundaries", args, tz, lambda pipeline: pipeline.boundaries(now), lambda data: None)


@click.command("dashboard")
@snapshot_option
@period_options
@cli_command
def dashboard_command(ctx: CLIContext, snapshot_path: Path, now: datetime | None, tz: str | None) -> int:
    """Store totals per window: gross, pocket expenses and what is left."""
    args = {"snapshot": str(snapshot_path), "now": now.isoformat() if now else None, "tz": tz}
    return run_report(
        ctx,
        "dashboard",
        args,
        tz,
        lambda pipeline: pipeline.store_totals(load_snapshot(snapshot_path), now),
        render_dashboard,
    )


@click.command("range")
@click.option(
    "--preset",
    type=click.Choice(["today", "week", "month", "year"]),
    help="Calendar preset around --now (week runs Monday to Sunday)",
)
@click.option("--from", "date_from", type=click.DateTime(formats=["%Y-%m-%d"]), help="First civil date")
@click.option("--to", "date_to", type=click.DateTime(formats=["%Y-%m-%d"]), help="Last civil date (inclusive)")
@snapshot_option
@period_options
@cli_command
def range_command(
    ctx: CLIContext,
    preset: str | None,
    date_from: datetime | None,
    date_to: datetime | None,
    snapshot_path: Path,
    now: datetime | None,
    tz: str | None,
) -> int:
    """Gross sales and pocket expenses over a preset or custom date range."""
    if preset and (date_from or date_to):
        raise click.UsageError("Use either --preset or --from/--to, not both")
    if not preset and not (date_from and date_to):
        raise click.UsageError("Give --preset or both --from and --to")
    if date_from and date_to and date_to < date_from:
        raise click.BadParameter("must not be before --from", param_hint="--to")

    args = {
        "preset": preset,
        "from": date_from.date().isoformat() if date_from else None,
        "to": date_to.date().isoformat() if date_to else None,
        "snapshot": str(snapshot_path),
        "now": now.isoformat() if now else None,
        "tz": tz,
    }

    def build(pipeline: ReportPipeline) -> ReportPipelineResult:
        if preset:
            first, last = pipeline.preset_range(preset, now)  # type: ignore[arg-type]
        else:
            first = CivilDate.from_date(date_from.date())  # type: ignore[union-attr]
            last = CivilDate.from_date(date_to.date())  # type: ignore[union-attr]
        return pipeline.range_totals(load_snapshot(snapshot_path), first, last)

    return run_report(ctx, "range", args, tz, build, render_range)


@click.command("cashiers")
@snapshot_option
@period_options
@cli_command
def cashiers_command(ctx: CLIContext, snapshot_path: Path, now: datetime | None, tz: str | None) -> int:
    """Gross and net per cashier for today, this week and this month."""
    args = {"snapshot": str(snapshot_path), "now": now.isoformat() if now else None, "tz": tz}
    return run_report(
        ctx,
        "cashiers",
        args,
        tz,
        lambda pipeline: pipeline.cashier_profits(load_snapshot(snapshot_path), now),
        render_cashiers,
    )


@click.command("week")
@click.option("--actor", required=True, help="Profile id of the cashier or admin")
@snapshot_option
@period_options
@cli_command
def week_command(
    ctx: CLIContext, actor: str, snapshot_path: Path, now: datetime | None, tz: str | None
) -> int:
    """Business-week statement for one actor."""
    args = {"actor": actor, "snapshot": str(snapshot_path), "now": now.isoformat() if now else None, "tz": tz}
    return run_report(
        ctx,
        "week",
        args,
        tz,
        lambda pipeline: pipeline.week_statement(load_snapshot(snapshot_path), actor, now),
        render_week,
    )


@click.command("pocket")
@snapshot_option
@period_options
@cli_command
def pocket_command(ctx: CLIContext, snapshot_path: Path, now: datetime | None, tz: str | None) -> int:
    """Week net, pocket expenses and balance per actor."""
    args = {"snapshot": str(snapshot_path), "now": now.isoformat() if now else None, "tz": tz}
    return run_report(
        ctx,
        "pocket",
        args,
        tz,
        lambda pipeline: pipeline.pocket_balances(load_snapshot(snapshot_path), now),
        render_pocket,
    )


@click.command("expense-check")
@click.option("--actor", required=True, help="Profile id taking the expense")
@click.option("--amount", required=True, type=str, help="Requested amount")
@click.option("--reason", default="", help="Reason for the expense")
@snapshot_option
@period_options
@cli_command
def expense_check_command(
    ctx: CLIContext,
    actor: str,
    amount: str,
    reason: str,
    snapshot_path: Path,
    now: datetime | None,
    tz: str | None,
) -> int:
    """Check whether a pocket expense fits in the actor's week balance."""
    args = {
        "actor": actor,
        "amount": amount,
        "reason": reason,
        "snapshot": str(snapshot_path),
        "now": now.isoformat() if now else None,
        "tz": tz,
    }
    return run_report(
        ctx,
        "expense-check",
        args,
        tz,
        lambda pipeline: pipeline.pocket_expense_check(load_snapshot(snapshot_path), actor, amount, reason, now),
        render_expense_check,
    )
