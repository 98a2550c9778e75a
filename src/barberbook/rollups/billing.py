"""Sale-time and payout-time rules.

Pure helpers behind the cashier screen (composing a bill before it is
saved) and the pocket expense screen (deciding whether an expense may be
recorded against an actor's weekly share).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..core.money import clamp_percent, to_amount
from .records import ADMIN_ROLE, LINE_TYPE_ITEM, Item

__all__ = [
    "ADMIN_OVERRIDE_REASON",
    "BillDraft",
    "PocketExpenseDecision",
    "check_pocket_expense",
    "clamp_discount",
    "compose_bill",
    "find_insufficient_stock",
    "line_total",
    "normalize_qty",
    "share_range",
    "share_range_label",
    "sold_out_items",
]

ADMIN_OVERRIDE_REASON = "shop goods or other matters"

ERROR_MISSING_USER = "missing_user"
ERROR_INVALID_AMOUNT = "invalid_amount"
ERROR_EXCEEDS_WEEK_NET = "exceeds_week_net"


def normalize_qty(qty: Any) -> float:
    """Quantities that are missing, zero or negative become 1."""
    value = to_amount(qty)
    return value if value > 0 else 1.0


def line_total(qty: Any, unit_price: Any) -> float:
    return normalize_qty(qty) * to_amount(unit_price)


def clamp_discount(discount: Any, subtotal: Any) -> float:
    """Discount limited to ``[0, subtotal]``."""
    return max(0.0, min(to_amount(discount), to_amount(subtotal)))


@dataclass(frozen=True)
class BillDraft:
    """Totals of a bill about to be saved."""

    subtotal: float
    discount: float
    total: float
    share_pct: float

    def to_dict(self) -> dict[str, float]:
        return {
            "subtotal": self.subtotal,
            "discount": self.discount,
            "total": self.total,
            "share_pct": self.share_pct,
        }


def compose_bill(
    lines: Iterable[Mapping[str, Any]],
    discount: Any,
    actor_role: str | None,
    configured_share_pct: Any,
) -> BillDraft:
    """Compute the totals and the share percentage to stamp on a new bill.

    Parameters
    ----------
    lines
        Draft lines with ``qty`` and ``unit_price``
    discount
        Requested discount (clamped to the subtotal)
    actor_role
        Role of the cashier ringing up the sale
    configured_share_pct
        Current cashier share setting

    Returns
    -------
    BillDraft
        Subtotal, effective discount, total and share percentage
    """
    subtotal = sum((line_total(line.get("qty"), line.get("unit_price")) for line in lines), 0.0)
    effective_discount = clamp_discount(discount, subtotal)
    share_pct = 100.0 if actor_role == ADMIN_ROLE else clamp_percent(configured_share_pct)
    return BillDraft(
        subtotal=subtotal,
        discount=effective_discount,
        total=subtotal - effective_discount,
        share_pct=share_pct,
    )


def find_insufficient_stock(
    lines: Iterable[Mapping[str, Any]],
    stock_by_item: Mapping[str, Any],
) -> list[str]:
    """Item ids whose requested quantity exceeds available stock."""
    short: list[str] = []
    for line in lines:
        line_type = line.get("line_type") or line.get("type")
        if line_type != LINE_TYPE_ITEM:
            continue
        ref_id = str(line.get("ref_id"))
        if to_amount(stock_by_item.get(ref_id)) < normalize_qty(line.get("qty")):
            short.append(ref_id)
    return short


def sold_out_items(items: Iterable[Item]) -> list[Item]:
    """Active items with no stock left, ordered by name."""
    return sorted((item for item in items if item.is_sold_out), key=lambda item: (item.name, item.id))


def share_range(percentages: Iterable[Any]) -> tuple[float, float]:
    """Lowest and highest share percentage, (0, 0) when empty."""
    values = [to_amount(value) for value in percentages]
    if not values:
        return 0.0, 0.0
    return min(values), max(values)


def _format_pct(value: float) -> str:
    return f"{value:g}%"


def share_range_label(percentages: Iterable[Any]) -> str:
    """Label such as "35%" or "35% - 40%"."""
    low, high = share_range(percentages)
    if low == high:
        return _format_pct(low)
    return f"{_format_pct(low)} - {_format_pct(high)}"


@dataclass(frozen=True)
class PocketExpenseDecision:
    """Outcome of validating a pocket expense before it is recorded.

    Attributes
    ----------
    allowed : bool
        Whether the expense may be saved
    amount : float
        Coerced amount
    reason : str
        Reason to store (replaced for admin overdrafts)
    error : str | None
        Machine-readable rejection code
    """

    allowed: bool
    amount: float
    reason: str
    error: str | None = None


def check_pocket_expense(
    user_id: str | None,
    amount: Any,
    week_net: Any,
    is_admin_target: bool,
    reason: str = "",
) -> PocketExpenseDecision:
    """Decide whether a pocket expense may be taken against this week's net.

    Cashiers may not take more than their expense-adjusted week net.
    Admins may; their expense is then recorded as shop goods.

    Parameters
    ----------
    user_id
        Actor taking the expense
    amount
        Requested amount
    week_net
        Actor's current expense-adjusted net for the business week
    is_admin_target
        Whether the actor is an admin
    reason
        Reason entered by the operator

    Returns
    -------
    PocketExpenseDecision
        Decision with the reason to persist
    """
    value = to_amount(amount)

    if not user_id:
        return PocketExpenseDecision(False, value, reason, ERROR_MISSING_USER)
    if value <= 0:
        return PocketExpenseDecision(False, value, reason, ERROR_INVALID_AMOUNT)

    exceeds = value > to_amount(week_net)
    if exceeds and not is_admin_target:
        return PocketExpenseDecision(False, value, reason, ERROR_EXCEEDS_WEEK_NET)
    if exceeds:
        return PocketExpenseDecision(True, value, ADMIN_OVERRIDE_REASON)

    return PocketExpenseDecision(True, value, reason)
