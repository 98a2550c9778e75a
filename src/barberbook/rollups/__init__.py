"""Business calendar and financial period aggregation."""

from .aggregator import (
    UNATTRIBUTED_POLICIES,
    AggregationResult,
    UnattributedPolicy,
    WindowTotals,
    aggregate,
    apply_expense_deductions,
    cost_of_bill,
    cost_of_bill_line,
    cost_per_bill,
    effective_share_percent,
    is_record_in_window,
    net_of_bill,
    pocket_totals_by_actor,
    share_adjusted_net_of_bill,
)
from .billing import (
    BillDraft,
    PocketExpenseDecision,
    check_pocket_expense,
    clamp_discount,
    compose_bill,
    find_insufficient_stock,
    share_range,
    share_range_label,
    sold_out_items,
)
from .records import ADMIN_ROLE, CASHIER_ROLE, Bill, BillLine, Item, PocketExpense, Profile
from .time_windows import (
    CAIRO_TIMEZONE,
    WINDOW_NAMES,
    CivilDate,
    CivilDateTime,
    PeriodBoundaries,
    TimeWindowBounds,
    business_day_range,
    civil_date_of,
    civil_datetime_of,
    civil_day_span,
    civil_instant,
    civil_weekday_of,
    current_period_boundaries,
    is_within_operating_hours,
    report_date_range,
    timezone_offset_minutes,
)

__all__ = [
    # Time windows
    "CAIRO_TIMEZONE",
    "WINDOW_NAMES",
    "CivilDate",
    "CivilDateTime",
    "PeriodBoundaries",
    "TimeWindowBounds",
    "business_day_range",
    "civil_date_of",
    "civil_datetime_of",
    "civil_day_span",
    "civil_instant",
    "civil_weekday_of",
    "current_period_boundaries",
    "is_within_operating_hours",
    "report_date_range",
    "timezone_offset_minutes",
    # Records
    "ADMIN_ROLE",
    "CASHIER_ROLE",
    "Bill",
    "BillLine",
    "Item",
    "PocketExpense",
    "Profile",
    # Aggregation
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
    # Billing
    "BillDraft",
    "PocketExpenseDecision",
    "check_pocket_expense",
    "clamp_discount",
    "compose_bill",
    "find_insufficient_stock",
    "share_range",
    "share_range_label",
    "sold_out_items",
]
