"""Shared shop snapshot for integration tests.

Evaluated at Wednesday Jan 8, 2025, 14:00 Cairo (12:00 UTC):

- business day: Jan 8 12:00 to Jan 9 06:00 Cairo
- business week: Mon Jan 6 12:00 to Mon Jan 13 06:00 Cairo
"""

from pathlib import Path

import pytest
import yaml

SHOP = {
    "settings": {"cashier_share_pct": 40},
    "profiles": [
        {"id": "u1", "username": "omar", "full_name": "Omar", "role": "cashier"},
        {"id": "u2", "username": "karim", "role": "cashier"},
        {"id": "boss", "username": "hassan", "full_name": "Hassan", "role": "admin"},
    ],
    "items": [
        {"id": "gel", "name": "Hair gel", "cost_price": 5, "stock_qty": 10},
        {"id": "wax", "name": "Wax", "cost_price": 8, "stock_qty": 0},
        {"id": "pomade", "name": "Old pomade", "cost_price": 3, "stock_qty": 0, "active": False},
    ],
    "bills": [
        # Monday 13:00, this week
        {"id": "b1", "total": 100, "created_at": "2025-01-06T11:00:00Z", "created_by": "u1"},
        # Today 15:00, stamped at 50%
        {"id": "b2", "total": 60, "share_pct": 50, "created_at": "2025-01-08T13:00:00Z", "created_by": "u1"},
        # Today 16:00, admin sale
        {"id": "b3", "total": 80, "created_at": "2025-01-08T14:00:00Z", "created_by": "boss"},
        # Sunday 23:00, previous week but this month
        {"id": "b4", "total": 200, "created_at": "2025-01-05T21:00:00Z", "created_by": "u2"},
        # Tuesday 12:00, nobody recorded
        {"id": "b5", "total": 30, "created_at": "2025-01-07T10:00:00Z", "created_by": None},
    ],
    "bill_lines": [
        {"id": "l1", "bill_id": "b1", "ref_id": "cut", "line_type": "service", "qty": 1, "unit_price": 100, "total": 100},
        {"id": "l2", "bill_id": "b2", "ref_id": "gel", "line_type": "item", "qty": 2, "unit_price": 30, "total": 60,
         "cost_price": 0},
    ],
    "pocket_expenses": [
        {"id": "e1", "user_id": "u1", "amount": 20, "created_at": "2025-01-08T13:30:00Z", "reason": "lunch"},
        {"id": "e2", "user_id": "boss", "amount": 500, "created_at": "2025-01-07T12:00:00Z", "reason": "supplies"},
        {"id": "e3", "user_id": "u2", "amount": 10, "created_at": "2025-01-04T10:00:00Z"},
    ],
}


@pytest.fixture
def shop_snapshot_path(tmp_path: Path) -> Path:
    path = tmp_path / "shop.yaml"
    path.write_text(yaml.safe_dump(SHOP, sort_keys=False), encoding="utf-8")
    return path
