# koodi_api/seed.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from .db import Store
from .models import OrderIn, UserIn

logger = logging.getLogger(__name__)

SEED_USERS: List[Dict[str, Any]] = [
    {"name": "John Doe", "email": "john@example.com", "phone": "+256771234567", "password": "password123"},
    {"name": "Jane Smith", "email": "jane@example.com", "phone": "+256782345678", "password": "password123"},
]

SEED_ORDERS: List[Dict[str, Any]] = [
    {
        "customerName": "John Doe",
        "customerPhone": "+256771234567",
        "items": [{"name": "Beef Luwombo", "quantity": 2, "price": 35000}],
        "total": 70000,
        "status": "delivered",
    },
    {
        "customerName": "Jane Smith",
        "customerPhone": "+256782345678",
        "items": [{"name": "Grilled Fish", "quantity": 1, "price": 38000}],
        "total": 38000,
        "status": "preparing",
    },
]


def seed_database(store: Store) -> Dict[str, int]:
    """
    Wipe users and orders, then insert the fixed sample set.
    Destructive: meant for development databases only.
    """
    store.users.delete_many({})
    store.orders.delete_many({})

    users = store.users.insert_many([UserIn(**u).to_document() for u in SEED_USERS])
    orders = store.orders.insert_many([OrderIn(**o).to_document() for o in SEED_ORDERS])

    counts = {"users": len(users.inserted_ids), "orders": len(orders.inserted_ids)}
    logger.info("Seeded %(users)d users and %(orders)d orders", counts)
    return counts
