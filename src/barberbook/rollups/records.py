"""Read-only financial record snapshots.

Records are owned by the backend; these types only wrap rows that were
already fetched. ``from_mapping`` coerces every numeric field with
``to_amount`` so a malformed row can never poison a total.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, Mapping

from ..core.money import to_amount
from ..core.time import to_instant

__all__ = [
    "ADMIN_ROLE",
    "CASHIER_ROLE",
    "LINE_TYPE_ITEM",
    "LINE_TYPE_SERVICE",
    "Bill",
    "BillLine",
    "Item",
    "LineType",
    "PocketExpense",
    "Profile",
]

ADMIN_ROLE = "admin"
CASHIER_ROLE = "cashier"

LINE_TYPE_ITEM = "item"
LINE_TYPE_SERVICE = "service"

LineType = Literal["item", "service"]


def _optional_id(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _embedded_profile(row: Mapping[str, Any]) -> Mapping[str, Any]:
    profile = row.get("profiles")
    return profile if isinstance(profile, Mapping) else {}


@dataclass(frozen=True)
class Bill:
    """Completed sale.

    Attributes
    ----------
    id : str
        Bill identifier
    total : float
        Amount charged after discount
    created_at : datetime | None
        Creation instant in UTC (None when missing or unparseable)
    actor_id : str | None
        Profile that rang up the sale
    share_pct : float | None
        Share percentage stamped at sale time, if any
    discount : float
        Discount granted on the bill
    actor_role : str | None
        Role embedded in the row, when the backend joined the profile
    """

    id: str
    total: float
    created_at: datetime | None
    actor_id: str | None = None
    share_pct: float | None = None
    discount: float = 0.0
    actor_role: str | None = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> Bill:
        profile = _embedded_profile(row)
        raw_share = row.get("share_pct")
        return cls(
            id=str(row.get("id", "")),
            total=to_amount(row.get("total")),
            created_at=to_instant(row.get("created_at")),
            actor_id=_optional_id(row.get("created_by") or row.get("actor_id") or profile.get("id")),
            share_pct=None if raw_share is None else to_amount(raw_share),
            discount=to_amount(row.get("discount")),
            actor_role=_optional_id(profile.get("role")),
        )


@dataclass(frozen=True)
class BillLine:
    """Single item or service on a bill."""

    id: str
    bill_id: str
    ref_id: str | None
    line_type: str
    qty: float
    unit_price: float
    total: float
    cost_price: float | None = None
    name: str = ""

    @property
    def is_item(self) -> bool:
        return self.line_type == LINE_TYPE_ITEM

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> BillLine:
        raw_cost = row.get("cost_price")
        return cls(
            id=str(row.get("id", "")),
            bill_id=str(row.get("bill_id", "")),
            ref_id=_optional_id(row.get("ref_id")),
            line_type=str(row.get("line_type") or row.get("type") or ""),
            qty=to_amount(row.get("qty")),
            unit_price=to_amount(row.get("unit_price")),
            total=to_amount(row.get("total")),
            cost_price=None if raw_cost is None else to_amount(raw_cost),
            name=str(row.get("name") or ""),
        )


@dataclass(frozen=True)
class PocketExpense:
    """Cash taken by an actor against their share of profit."""

    id: str
    user_id: str | None
    amount: float
    created_at: datetime | None
    reason: str = ""
    note: str | None = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> PocketExpense:
        profile = _embedded_profile(row)
        return cls(
            id=str(row.get("id", "")),
            user_id=_optional_id(row.get("user_id") or profile.get("id")),
            amount=to_amount(row.get("amount")),
            created_at=to_instant(row.get("created_at")),
            reason=str(row.get("reason") or ""),
            note=row.get("note"),
        )


@dataclass(frozen=True)
class Profile:
    """Staff member (cashier or admin)."""

    id: str
    username: str = ""
    full_name: str = ""
    role: str = CASHIER_ROLE

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or self.id

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> Profile:
        return cls(
            id=str(row.get("id", "")),
            username=str(row.get("username") or ""),
            full_name=str(row.get("full_name") or ""),
            role=str(row.get("role") or CASHIER_ROLE),
        )


@dataclass(frozen=True)
class Item:
    """Catalog product sold over the counter.

    Rows without ``active`` are treated as active; only an explicit
    ``false`` retires an item.
    """

    id: str
    name: str = ""
    cost_price: float = 0.0
    stock_qty: float = 0.0
    active: bool = True

    @property
    def is_sold_out(self) -> bool:
        return self.active and self.stock_qty <= 0

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> Item:
        return cls(
            id=str(row.get("id", "")),
            name=str(row.get("name") or ""),
            cost_price=to_amount(row.get("cost_price")),
            stock_qty=to_amount(row.get("stock_qty")),
            active=row.get("active") is not False,
        )
