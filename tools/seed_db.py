from __future__ import annotations

from koodi_api.config import get_settings
from koodi_api.db import Store
from koodi_api.seed import seed_database

# Seeds whatever MONGODB_URI / MONGODB_DB point at (.env is honoured).
# Wipes users and orders first: never point this at production.


def main() -> None:
    settings = get_settings()
    store = Store.connect(settings)
    try:
        if not store.ping():
            raise SystemExit(f"Cannot reach MongoDB at {settings.mongodb_uri}")

        store.ensure_indexes()
        counts = seed_database(store)
        print(f"OK  {store.database.name}: {counts['users']} users, {counts['orders']} orders")
    finally:
        store.close()


if __name__ == "__main__":
    main()
