"""Windowed revenue, cost and profit-share aggregation.

Folds a snapshot of bills, bill lines and pocket expenses into per-window
totals (today/week/month/year), optionally bucketed per actor. Every call
recomputes from scratch; nothing is cached between calls and the input
records are never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Literal, TypeVar

from ..core.money import clamp_percent, to_amount
from ..observability.loguru_config import get_logger
from .records import ADMIN_ROLE, CASHIER_ROLE, LINE_TYPE_ITEM, Bill, BillLine, PocketExpense
from .time_windows import WINDOW_NAMES, PeriodBoundaries, TimeWindowBounds

__all__ = [
    "UNATTRIBUTED_POLICIES",
    "AggregationResult",
    "UnattributedPolicy",
    "WindowTotals",
    "aggregate",
    "apply_expense_deductions",
    "cost_of_bill",
    "cost_of_bill_line",
    "cost_per_bill",
    "effective_share_percent",
    "is_record_in_window",
    "net_of_bill",
    "pocket_totals_by_actor",
    "share_adjusted_net_of_bill",
]

logger = get_logger("aggregator")

UnattributedPolicy = Literal["count", "drop"]
UNATTRIBUTED_POLICIES: tuple[UnattributedPolicy, ...] = ("count", "drop")

R = TypeVar("R", Bill, BillLine, PocketExpense)


def _coerce(values: Iterable[Any] | None, record_type: type[R]) -> list[R]:
    records: list[R] = []
    for value in values or ():
        if isinstance(value, Mapping):
            records.append(record_type.from_mapping(value))
        else:
            records.append(value)
    return records


def cost_of_bill_line(line: BillLine, item_costs: Mapping[str, Any]) -> float:
    """Cost of goods for one bill line.

    Item lines cost ``qty`` times the cost price stored on the line when
    it is positive, otherwise the catalog cost for ``ref_id``. Service
    lines cost nothing.

    Parameters
    ----------
    line
        Bill line
    item_costs
        Catalog cost price by item id

    Returns
    -------
    float
        Line cost (0.0 for services)
    """
    if line.line_type != LINE_TYPE_ITEM:
        return 0.0

    stored = to_amount(line.cost_price)
    if stored > 0:
        unit_cost = stored
    elif line.ref_id is not None:
        unit_cost = to_amount(item_costs.get(line.ref_id))
    else:
        unit_cost = 0.0

    return to_amount(line.qty) * unit_cost


def cost_of_bill(bill: Bill, lines: Iterable[BillLine], item_costs: Mapping[str, Any]) -> float:
    """Sum of line costs for the lines belonging to ``bill``."""
    return sum(
        (cost_of_bill_line(line, item_costs) for line in _coerce(lines, BillLine) if line.bill_id == bill.id),
        0.0,
    )


def cost_per_bill(lines: Iterable[BillLine], item_costs: Mapping[str, Any]) -> dict[str, float]:
    """Cost of goods per bill id in a single pass over all lines."""
    costs: dict[str, float] = {}
    for line in _coerce(lines, BillLine):
        cost = cost_of_bill_line(line, item_costs)
        if cost:
            costs[line.bill_id] = costs.get(line.bill_id, 0.0) + cost
    return costs


def effective_share_percent(bill: Bill, actor_role: str | None, configured_cashier_share_pct: Any) -> float:
    """Share of net profit credited to the selling actor.

    The percentage stamped on the bill wins when positive, so historical
    bills keep the rate that applied at sale time. Otherwise admins get
    100 and everyone else gets the currently configured cashier share.

    Returns
    -------
    float
        Percentage in [0, 100], rounded to 2 decimals
    """
    stored = to_amount(bill.share_pct)
    if stored > 0:
        return clamp_percent(stored)
    if actor_role == ADMIN_ROLE:
        return 100.0
    return clamp_percent(configured_cashier_share_pct)


def net_of_bill(bill: Bill, cost: Any) -> float:
    return to_amount(bill.total) - to_amount(cost)


def share_adjusted_net_of_bill(bill: Bill, cost: Any, share_pct: Any) -> float:
    return net_of_bill(bill, cost) * clamp_percent(share_pct) / 100


def is_record_in_window(record: Bill | PocketExpense, window: TimeWindowBounds) -> bool:
    """Check whether a record's ``created_at`` falls inside a window.

    Records without a usable timestamp belong to no window.
    """
    created_at: datetime | None = getattr(record, "created_at", None)
    if created_at is None:
        return False
    return window.contains(created_at)


def pocket_totals_by_actor(expenses: Iterable[PocketExpense], window: TimeWindowBounds) -> dict[str, float]:
    """Pocket expense sum per actor for expenses inside ``window``."""
    totals: dict[str, float] = {}
    for expense in _coerce(expenses, PocketExpense):
        if expense.user_id is None or not is_record_in_window(expense, window):
            continue
        totals[expense.user_id] = totals.get(expense.user_id, 0.0) + to_amount(expense.amount)
    return totals


def apply_expense_deductions(
    net_by_actor: Mapping[str, float],
    expenses: Iterable[PocketExpense],
    window: TimeWindowBounds,
) -> dict[str, float]:
    """Subtract each actor's own in-window pocket expenses from their net.

    Actors that only have expenses appear with a negative balance. The
    input mapping is left untouched.

    Parameters
    ----------
    net_by_actor
        Share-adjusted net per actor
    expenses
        Pocket expense records (any window; filtered here)
    window
        Window the net was computed for

    Returns
    -------
    dict[str, float]
        Expense-adjusted net per actor
    """
    adjusted = {actor: to_amount(net) for actor, net in net_by_actor.items()}
    for actor, amount in pocket_totals_by_actor(expenses, window).items():
        adjusted[actor] = adjusted.get(actor, 0.0) - amount
    return adjusted


class WindowTotals:
    """Running totals for one window.

    Attributes
    ----------
    window : TimeWindowBounds
        Window the totals cover
    gross_total : float
        Sum of bill totals
    cost_total : float
        Sum of cost of goods
    net_total : float
        Gross minus cost
    share_adjusted_net_total : float
        Net credited to actors after their share percentage
    expense_total : float
        Pocket expenses taken in the window
    bill_count : int
        Number of bills folded in
    expense_count : int
        Number of pocket expenses folded in
    """

    def __init__(self, window: TimeWindowBounds) -> None:
        self.window = window
        self.gross_total = 0.0
        self.cost_total = 0.0
        self.net_total = 0.0
        self.share_adjusted_net_total = 0.0
        self.expense_total = 0.0
        self.bill_count = 0
        self.expense_count = 0

    @property
    def expense_adjusted_net_total(self) -> float:
        return self.share_adjusted_net_total - self.expense_total

    @property
    def gross_after_expenses_total(self) -> float:
        return self.gross_total - self.expense_total

    def add_bill(self, gross: float, cost: float, share_adjusted_net: float) -> None:
        """Fold one bill into the totals."""
        self.gross_total += gross
        self.cost_total += cost
        self.net_total += gross - cost
        self.share_adjusted_net_total += share_adjusted_net
        self.bill_count += 1

    def add_expense(self, amount: float) -> None:
        """Fold one pocket expense into the totals."""
        self.expense_total += amount
        self.expense_count += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "window": self.window.to_dict(),
            "gross_total": self.gross_total,
            "cost_total": self.cost_total,
            "net_total": self.net_total,
            "share_adjusted_net_total": self.share_adjusted_net_total,
            "expense_total": self.expense_total,
            "expense_adjusted_net_total": self.expense_adjusted_net_total,
            "gross_after_expenses_total": self.gross_after_expenses_total,
            "bill_count": self.bill_count,
            "expense_count": self.expense_count,
        }


class AggregationResult:
    """Totals per window, and per actor when grouping was requested."""

    def __init__(
        self,
        boundaries: PeriodBoundaries,
        windows: dict[str, WindowTotals],
        by_actor: dict[str, dict[str, WindowTotals]] | None = None,
    ) -> None:
        self.boundaries = boundaries
        self.windows = windows
        self.by_actor = by_actor

    def total(self, window: str) -> WindowTotals:
        return self.windows[window]

    def for_actor(self, actor_id: str, window: str) -> WindowTotals | None:
        if self.by_actor is None or actor_id not in self.by_actor:
            return None
        return self.by_actor[actor_id][window]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "boundaries": self.boundaries.to_dict(),
            "windows": {name: totals.to_dict() for name, totals in self.windows.items()},
        }
        if self.by_actor is not None:
            data["by_actor"] = {
                actor: {name: totals.to_dict() for name, totals in buckets.items()}
                for actor, buckets in self.by_actor.items()
            }
        return data


def aggregate(
    bills: Iterable[Bill],
    lines: Iterable[BillLine],
    item_costs: Mapping[str, Any],
    boundaries: PeriodBoundaries,
    *,
    windows: Iterable[str] = WINDOW_NAMES,
    group_by_actor: bool = False,
    configured_share_pct: Any = 0.0,
    roles: Mapping[str, str] | None = None,
    default_role: str = CASHIER_ROLE,
    expenses: Iterable[PocketExpense] = (),
    actors: Iterable[str] | None = None,
    unattributed_policy: UnattributedPolicy = "count",
) -> AggregationResult:
    """Aggregate a record snapshot into windowed totals.

    Parameters
    ----------
    bills, lines, expenses
        Record snapshots (typed records or raw row mappings)
    item_costs
        Catalog cost price by item id
    boundaries
        Boundaries from ``current_period_boundaries``
    windows
        Window names to compute
    group_by_actor
        Also bucket totals per actor id
    configured_share_pct
        Current cashier share setting (fallback for unstamped bills)
    roles
        Role per actor id; embedded bill roles take precedence
    default_role
        Role assumed when neither the bill nor ``roles`` knows it
    actors
        When given, grouped output holds exactly these actors
    unattributed_policy
        "count" keeps bills without an actor in the ungrouped totals,
        "drop" leaves them out. Grouped output never has them.

    Returns
    -------
    AggregationResult
        Fresh totals

    Raises
    ------
    ValueError
        If a window name or the policy is unknown
    """
    if unattributed_policy not in UNATTRIBUTED_POLICIES:
        raise ValueError(f"Unknown unattributed policy: {unattributed_policy}")

    bounds = boundaries.windows(tuple(windows))
    role_lookup = roles or {}
    bill_records = _coerce(bills, Bill)
    expense_records = _coerce(expenses, PocketExpense)
    bill_costs = cost_per_bill(lines, item_costs)

    totals = {name: WindowTotals(bound) for name, bound in bounds.items()}

    grouped: dict[str, dict[str, WindowTotals]] | None = None
    allowed: set[str] | None = None
    if group_by_actor:
        grouped = {}
        if actors is not None:
            allowed = set()
            for actor_id in actors:
                allowed.add(actor_id)
                grouped[actor_id] = {name: WindowTotals(bound) for name, bound in bounds.items()}

    def bucket_for(actor_id: str | None) -> dict[str, WindowTotals] | None:
        if grouped is None or actor_id is None:
            return None
        if allowed is not None and actor_id not in allowed:
            return None
        if actor_id not in grouped:
            grouped[actor_id] = {name: WindowTotals(bound) for name, bound in bounds.items()}
        return grouped[actor_id]

    for bill in bill_records:
        if bill.created_at is None:
            continue

        cost = bill_costs.get(bill.id, 0.0)
        role = bill.actor_role or role_lookup.get(bill.actor_id or "") or default_role
        share_pct = effective_share_percent(bill, role, configured_share_pct)
        gross = to_amount(bill.total)
        share_net = share_adjusted_net_of_bill(bill, cost, share_pct)
        count_in_totals = bill.actor_id is not None or unattributed_policy == "count"

        for name, bound in bounds.items():
            if not is_record_in_window(bill, bound):
                continue
            if count_in_totals:
                totals[name].add_bill(gross, cost, share_net)
            bucket = bucket_for(bill.actor_id)
            if bucket is not None:
                bucket[name].add_bill(gross, cost, share_net)

    for expense in expense_records:
        if expense.created_at is None:
            continue

        amount = to_amount(expense.amount)
        count_in_totals = expense.user_id is not None or unattributed_policy == "count"

        for name, bound in bounds.items():
            if not is_record_in_window(expense, bound):
                continue
            if count_in_totals:
                totals[name].add_expense(amount)
            bucket = bucket_for(expense.user_id)
            if bucket is not None:
                bucket[name].add_expense(amount)

    logger.debug(
        "Aggregated snapshot",
        bills=len(bill_records),
        expenses=len(expense_records),
        windows=list(bounds),
        actors=len(grouped) if grouped is not None else None,
    )

    return AggregationResult(boundaries, totals, grouped)
