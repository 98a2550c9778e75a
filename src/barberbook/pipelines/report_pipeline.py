"""Report pipeline - thin orchestration over the calendar and aggregator.

Each report resolves the period boundaries for ``now``, folds the snapshot
through ``aggregate`` and shapes the totals for one screen of the shop:

- ``boundaries``: the current business periods
- ``store_totals``: admin dashboard, gross and pocket expenses per window
  plus the sold-out items
- ``range_totals``: gross and pocket expenses over civil dates
- ``cashier_profits``: per-cashier gross and net for today/week/month
- ``week_statement``: one cashier's business week
- ``pocket_balances``: what each actor may still take this week

No business rule lives here; the pipeline only wires settings, snapshot
and clock together, times the run and reports the outcome.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..config.settings import Settings
from ..core.money import round_half_up, to_amount
from ..core.time import format_utc_iso8601, get_current_utc
from ..observability.loguru_config import get_logger, timing_context
from ..rollups.aggregator import (
    AggregationResult,
    WindowTotals,
    aggregate,
    effective_share_percent,
    is_record_in_window,
)
from ..rollups.billing import check_pocket_expense, share_range, share_range_label, sold_out_items
from ..rollups.records import CASHIER_ROLE, Bill
from ..rollups.time_windows import (
    WINDOW_NAMES,
    CivilDate,
    PeriodBoundaries,
    ReportPreset,
    TimeWindowBounds,
    civil_datetime_of,
    civil_day_span,
    current_period_boundaries,
    is_within_operating_hours,
    report_date_range,
)
from ..storage.snapshot import Snapshot

__all__ = [
    "ReportPipeline",
    "ReportPipelineResult",
    "create_report_pipeline",
]

CASHIER_WINDOWS = ("today", "week", "month")


@dataclass
class ReportPipelineResult:
    """Result of one report run."""

    success: bool
    report_type: str
    trace_id: str
    generated_at: datetime
    duration_ms: float
    data: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "report_type": self.report_type,
            "trace_id": self.trace_id,
            "generated_at": format_utc_iso8601(self.generated_at),
            "duration_ms": self.duration_ms,
            "data": self.data,
            "errors": self.errors,
        }


def _money(value: float) -> float:
    return round_half_up(value, 2)


def _civil_label(instant: datetime, timezone_str: str) -> str:
    local = civil_datetime_of(instant, timezone_str)
    return f"{local.date.isoformat()} {local.hour:02d}:{local.minute:02d}"


class ReportPipeline:
    """Builds the shop reports from a record snapshot.

    Example:
        >>> from barberbook.config import Settings
        >>> from barberbook.storage import load_snapshot
        >>> pipeline = ReportPipeline(Settings(cashier_share_pct=35))
        >>> result = pipeline.store_totals(load_snapshot("snapshot.yaml"))
        >>> result.data["windows"]["today"]["gross"]
    """

    def __init__(self, settings: Settings, *, trace_id: str | None = None) -> None:
        """Initialize report pipeline.

        Parameters
        ----------
        settings
            Timezone, share percentage, default role and unattributed policy
        trace_id
            Trace ID for correlation (generated when omitted)
        """
        self.settings = settings
        self.trace_id = trace_id or f"trace-{uuid.uuid4().hex[:12]}"
        self.logger = get_logger("pipeline")

    def _share_pct(self, snapshot: Snapshot) -> float:
        if snapshot.cashier_share_pct is not None:
            return snapshot.cashier_share_pct
        return self.settings.cashier_share_pct

    def _boundaries(self, now: datetime | None) -> PeriodBoundaries:
        return current_period_boundaries(now or get_current_utc(), self.settings.timezone)

    def _aggregate(
        self,
        snapshot: Snapshot,
        boundaries: PeriodBoundaries,
        *,
        windows: tuple[str, ...] = WINDOW_NAMES,
        group_by_actor: bool = False,
        actors: list[str] | None = None,
    ) -> AggregationResult:
        return aggregate(
            snapshot.bills,
            snapshot.bill_lines,
            snapshot.item_costs,
            boundaries,
            windows=windows,
            group_by_actor=group_by_actor,
            configured_share_pct=self._share_pct(snapshot),
            roles=snapshot.roles,
            default_role=self.settings.default_role,
            expenses=snapshot.pocket_expenses,
            actors=actors,
            unattributed_policy=self.settings.unattributed_policy,  # type: ignore[arg-type]
        )

    def _week_label(self, boundaries: PeriodBoundaries) -> str:
        return (
            f"{_civil_label(boundaries.start_of_week, self.settings.timezone)} - "
            f"{_civil_label(boundaries.end_of_week, self.settings.timezone)}"
        )

    def _run(self, report_type: str, build: Callable[[], dict[str, Any]]) -> ReportPipelineResult:
        """Time ``build`` and wrap its output in a result."""
        self.logger.info("Building report", report_type=report_type, trace_id=self.trace_id)

        data: dict[str, Any] = {}
        errors: list[str] = []
        with timing_context(report_type, component="pipeline", trace_id=self.trace_id) as ctx:
            try:
                data = build()
            except ValueError as exc:
                errors.append(str(exc))
                self.logger.error("Report failed", report_type=report_type, trace_id=self.trace_id, error=str(exc))

        return ReportPipelineResult(
            success=not errors,
            report_type=report_type,
            trace_id=self.trace_id,
            generated_at=get_current_utc(),
            duration_ms=ctx["duration_ms"],
            data=data,
            errors=errors,
        )

    def boundaries(self, now: datetime | None = None) -> ReportPipelineResult:
        """Current business day, week, month and year boundaries, and whether the shop is open."""

        def build() -> dict[str, Any]:
            bounds = self._boundaries(now)
            data = bounds.to_dict()
            data["week_label"] = self._week_label(bounds)
            data["open"] = is_within_operating_hours(bounds.now, self.settings.timezone)
            return data

        return self._run("boundaries", build)

    def store_totals(self, snapshot: Snapshot, now: datetime | None = None) -> ReportPipelineResult:
        """Admin dashboard totals.

        For every window: gross sales, pocket expenses, gross left after
        pocket expenses, cost of goods and the share-adjusted net. Active
        items with no stock left are listed under ``sold_out``.
        """

        def build() -> dict[str, Any]:
            bounds = self._boundaries(now)
            result = self._aggregate(snapshot, bounds)
            return {
                "timezone": self.settings.timezone,
                "week_label": self._week_label(bounds),
                "windows": {name: self._window_row(totals) for name, totals in result.windows.items()},
                "sold_out": [
                    {"id": item.id, "name": item.name or item.id, "stock_qty": item.stock_qty}
                    for item in sold_out_items(snapshot.items)
                ],
            }

        return self._run("store_totals", build)

    def preset_range(self, preset: ReportPreset, now: datetime | None = None) -> tuple[CivilDate, CivilDate]:
        """First and last civil dates of a report preset at ``now``."""
        return report_date_range(preset, now or get_current_utc(), self.settings.timezone)

    def range_totals(self, snapshot: Snapshot, first: CivilDate, last: CivilDate) -> ReportPipelineResult:
        """Gross sales and pocket expenses over whole civil dates.

        The range runs from civil midnight of ``first`` to civil midnight
        after ``last``. Records without an actor follow the unattributed
        policy.

        Parameters
        ----------
        snapshot
            Records to total
        first, last
            Inclusive civil dates

        Returns
        -------
        ReportPipelineResult
            Failed when ``last`` is before ``first``
        """

        def build() -> dict[str, Any]:
            if last.to_date() < first.to_date():
                raise ValueError(f"Range ends before it starts: {first.isoformat()} > {last.isoformat()}")

            window = civil_day_span(first, last, self.settings.timezone)
            keep_unattributed = self.settings.unattributed_policy == "count"

            gross = pocket = 0.0
            bills = expenses = 0
            for bill in snapshot.bills:
                if bill.actor_id is None and not keep_unattributed:
                    continue
                if is_record_in_window(bill, window):
                    gross += to_amount(bill.total)
                    bills += 1
            for expense in snapshot.pocket_expenses:
                if expense.user_id is None and not keep_unattributed:
                    continue
                if is_record_in_window(expense, window):
                    pocket += to_amount(expense.amount)
                    expenses += 1

            return {
                "timezone": self.settings.timezone,
                "first": first.isoformat(),
                "last": last.isoformat(),
                "start_utc": format_utc_iso8601(window.start),
                "end_utc": format_utc_iso8601(window.end) if window.end else None,
                "gross": _money(gross),
                "pocket": _money(pocket),
                "gross_after_pocket": _money(gross - pocket),
                "bills": bills,
                "expenses": expenses,
            }

        return self._run("range_totals", build)

    @staticmethod
    def _window_row(totals: WindowTotals) -> dict[str, Any]:
        return {
            "start_utc": format_utc_iso8601(totals.window.start),
            "end_utc": format_utc_iso8601(totals.window.end) if totals.window.end else None,
            "gross": _money(totals.gross_total),
            "pocket": _money(totals.expense_total),
            "gross_after_pocket": _money(totals.gross_after_expenses_total),
            "cost": _money(totals.cost_total),
            "net": _money(totals.net_total),
            "share_net": _money(totals.share_adjusted_net_total),
            "bills": totals.bill_count,
        }

    def cashier_profits(self, snapshot: Snapshot, now: datetime | None = None) -> ReportPipelineResult:
        """Gross and net per cashier for today, the week and the month.

        Only profiles with the cashier role are listed; a cashier without
        sales gets a row of zeros.
        """

        def build() -> dict[str, Any]:
            bounds = self._boundaries(now)
            cashiers = [profile for profile in snapshot.profiles if profile.role == CASHIER_ROLE]
            result = self._aggregate(
                snapshot,
                bounds,
                windows=CASHIER_WINDOWS,
                group_by_actor=True,
                actors=[profile.id for profile in cashiers],
            )

            rows = []
            for profile in cashiers:
                row: dict[str, Any] = {"id": profile.id, "name": profile.display_name}
                for name in CASHIER_WINDOWS:
                    totals = result.for_actor(profile.id, name)
                    row[f"{name}_gross"] = _money(totals.gross_total) if totals else 0.0
                    row[f"{name}_net"] = _money(totals.net_total) if totals else 0.0
                rows.append(row)

            return {"week_label": self._week_label(bounds), "cashiers": rows}

        return self._run("cashier_profits", build)

    def _week_share_percentages(
        self, snapshot: Snapshot, actor_id: str, window: TimeWindowBounds
    ) -> list[float]:
        share_pct = self._share_pct(snapshot)
        roles = snapshot.roles
        percentages = []
        for bill in snapshot.bills:
            if bill.actor_id != actor_id or bill.created_at is None or not window.contains(bill.created_at):
                continue
            role = bill.actor_role or roles.get(actor_id) or self.settings.default_role
            percentages.append(effective_share_percent(bill, role, share_pct))
        return percentages

    def week_statement(
        self, snapshot: Snapshot, actor_id: str, now: datetime | None = None
    ) -> ReportPipelineResult:
        """One actor's business week.

        Gross, cost, base net (gross minus cost), share net, pocket
        expenses and the final net left after them, plus the range of
        share percentages applied to the week's bills.
        """

        def build() -> dict[str, Any]:
            bounds = self._boundaries(now)
            result = self._aggregate(snapshot, bounds, windows=("week",), group_by_actor=True, actors=[actor_id])
            totals = result.for_actor(actor_id, "week")
            if totals is None:  # pragma: no cover - actor bucket is always seeded
                totals = WindowTotals(bounds.window("week"))

            percentages = self._week_share_percentages(snapshot, actor_id, bounds.window("week"))
            if percentages:
                low, high = share_range(percentages)
                label = share_range_label(percentages)
            else:
                low = high = effective_share_percent(
                    Bill(id="", total=0.0, created_at=None, actor_id=actor_id),
                    snapshot.roles.get(actor_id) or self.settings.default_role,
                    self._share_pct(snapshot),
                )
                label = share_range_label([low])

            profile = snapshot.profile(actor_id)
            return {
                "actor_id": actor_id,
                "name": profile.display_name if profile else actor_id,
                "week_label": self._week_label(bounds),
                "gross": _money(totals.gross_total),
                "cost": _money(totals.cost_total),
                "base_net": _money(totals.net_total),
                "share_net": _money(totals.share_adjusted_net_total),
                "pocket": _money(totals.expense_total),
                "final_net": _money(totals.expense_adjusted_net_total),
                "bills": totals.bill_count,
                "share_min": low,
                "share_max": high,
                "share_label": label,
            }

        return self._run("week_statement", build)

    def _week_balances(self, snapshot: Snapshot, bounds: PeriodBoundaries) -> dict[str, WindowTotals]:
        result = self._aggregate(snapshot, bounds, windows=("week",), group_by_actor=True)
        balances = {actor: buckets["week"] for actor, buckets in (result.by_actor or {}).items()}
        for profile in snapshot.profiles:
            balances.setdefault(profile.id, WindowTotals(bounds.window("week")))
        return balances

    def pocket_balances(self, snapshot: Snapshot, now: datetime | None = None) -> ReportPipelineResult:
        """Week share net, pocket expenses and remaining balance per actor."""

        def build() -> dict[str, Any]:
            bounds = self._boundaries(now)
            rows = []
            for actor_id, totals in sorted(self._week_balances(snapshot, bounds).items()):
                profile = snapshot.profile(actor_id)
                rows.append(
                    {
                        "id": actor_id,
                        "name": profile.display_name if profile else actor_id,
                        "role": profile.role if profile else self.settings.default_role,
                        "share_net": _money(totals.share_adjusted_net_total),
                        "pocket": _money(totals.expense_total),
                        "balance": _money(totals.expense_adjusted_net_total),
                    }
                )
            return {"week_label": self._week_label(bounds), "actors": rows}

        return self._run("pocket_balances", build)

    def pocket_expense_check(
        self,
        snapshot: Snapshot,
        actor_id: str | None,
        amount: Any,
        reason: str = "",
        now: datetime | None = None,
    ) -> ReportPipelineResult:
        """Validate a pocket expense against the actor's week balance.

        The result succeeds either way; ``data["allowed"]`` carries the
        decision and ``data["error"]`` the rejection code.
        """

        def build() -> dict[str, Any]:
            bounds = self._boundaries(now)
            totals = self._week_balances(snapshot, bounds).get(actor_id or "")
            balance = totals.expense_adjusted_net_total if totals else 0.0
            profile = snapshot.profile(actor_id) if actor_id else None
            decision = check_pocket_expense(actor_id, amount, balance, bool(profile and profile.is_admin), reason)
            return {
                "actor_id": actor_id,
                "week_net": _money(balance),
                "allowed": decision.allowed,
                "amount": decision.amount,
                "reason": decision.reason,
                "error": decision.error,
            }

        return self._run("pocket_expense_check", build)


def create_report_pipeline(settings: Settings | None = None, **kwargs: Any) -> ReportPipeline:
    """Factory function to create a report pipeline.

    Parameters
    ----------
    settings
        Settings (defaults when omitted)
    **kwargs
        Passed to ``ReportPipeline``

    Returns
    -------
    ReportPipeline
        Configured pipeline instance
    """
    return ReportPipeline(settings or Settings(), **kwargs)
