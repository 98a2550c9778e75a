"""Record snapshots exported from the backend.

A snapshot is a YAML or JSON document holding the rows the reports are
computed from::

    bills: [{id, total, share_pct, created_at, created_by, ...}]
    bill_lines: [{id, bill_id, ref_id, line_type, qty, cost_price, ...}]
    items: [{id, name, cost_price, stock_qty, active}]
    pocket_expenses: [{id, user_id, amount, created_at}]
    profiles: [{id, username, full_name, role}]
    settings: {cashier_share_pct: 35}

The document is validated structurally; row contents are coerced later by
the record types, so a bad amount never rejects a snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema  # type: ignore[import-untyped]
import yaml

from ..core.money import to_amount
from ..observability.loguru_config import get_logger, log_timing
from ..rollups.records import Bill, BillLine, Item, PocketExpense, Profile

__all__ = [
    "SNAPSHOT_SCHEMA",
    "Snapshot",
    "SnapshotError",
    "load_snapshot",
    "validate_snapshot",
]

logger = get_logger("storage")

_ROW = {"type": "object", "required": ["id"], "properties": {"id": {"type": ["string", "integer"]}}}

SNAPSHOT_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "bills": {"type": "array", "items": _ROW},
        "bill_lines": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["bill_id"],
                "properties": {"bill_id": {"type": ["string", "integer"]}},
            },
        },
        "items": {"type": "array", "items": _ROW},
        "pocket_expenses": {"type": "array", "items": _ROW},
        "profiles": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id"],
                "properties": {
                    "id": {"type": ["string", "integer"]},
                    "role": {"type": ["string", "null"]},
                },
            },
        },
        "settings": {
            "type": "object",
            "properties": {"cashier_share_pct": {"type": ["number", "string", "null"]}},
        },
    },
}

_validator = jsonschema.Draft7Validator(SNAPSHOT_SCHEMA)


class SnapshotError(Exception):
    """Raised when a snapshot cannot be read or fails validation."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


def validate_snapshot(data: Any) -> list[str]:
    """Validate a snapshot document, returning every error found."""
    errors = []
    for error in _validator.iter_errors(data):
        error_path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        errors.append(f"[{error_path}] {error.message}")
    return errors


@dataclass
class Snapshot:
    """Typed records of one snapshot document."""

    bills: list[Bill] = field(default_factory=list)
    bill_lines: list[BillLine] = field(default_factory=list)
    pocket_expenses: list[PocketExpense] = field(default_factory=list)
    profiles: list[Profile] = field(default_factory=list)
    items: list[Item] = field(default_factory=list)
    item_costs: dict[str, float] = field(default_factory=dict)
    cashier_share_pct: float | None = None

    @property
    def roles(self) -> dict[str, str]:
        return {profile.id: profile.role for profile in self.profiles}

    def profile(self, actor_id: str) -> Profile | None:
        for profile in self.profiles:
            if profile.id == actor_id:
                return profile
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snapshot:
        """Build a snapshot from an already validated document."""
        items = [Item.from_mapping(row) for row in data.get("items") or []]
        settings = data.get("settings") or {}
        raw_share = settings.get("cashier_share_pct")
        return cls(
            bills=[Bill.from_mapping(row) for row in data.get("bills") or []],
            bill_lines=[BillLine.from_mapping(row) for row in data.get("bill_lines") or []],
            pocket_expenses=[PocketExpense.from_mapping(row) for row in data.get("pocket_expenses") or []],
            profiles=[Profile.from_mapping(row) for row in data.get("profiles") or []],
            items=items,
            item_costs={item.id: item.cost_price for item in items},
            cashier_share_pct=None if raw_share is None else to_amount(raw_share),
        )


@log_timing(component="storage")
def load_snapshot(path: Path | str) -> Snapshot:
    """Read and validate a snapshot file.

    Parameters
    ----------
    path
        YAML or JSON file

    Returns
    -------
    Snapshot
        Typed snapshot

    Raises
    ------
    SnapshotError
        If the file is missing, unparseable or structurally invalid
    """
    path = Path(path)

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise SnapshotError(f"Snapshot not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise SnapshotError(f"Cannot parse snapshot {path}: {exc}") from exc

    if data is None:
        data = {}

    errors = validate_snapshot(data)
    if errors:
        logger.warning("Snapshot rejected", path=str(path), errors=errors)
        raise SnapshotError(f"Invalid snapshot {path}", errors)

    snapshot = Snapshot.from_dict(data)
    logger.debug(
        "Snapshot loaded",
        path=str(path),
        bills=len(snapshot.bills),
        bill_lines=len(snapshot.bill_lines),
        pocket_expenses=len(snapshot.pocket_expenses),
    )
    return snapshot
