# koodi_api/db.py
from __future__ import annotations

import logging
from typing import Optional

import pymongo
from fastapi import Request
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from .config import DEFAULT_DB_NAME, Settings

logger = logging.getLogger(__name__)

# Only string values take part in uniqueness: users posted with a missing or
# null email/phone never collide with each other.
_STRING_ONLY = {"$type": "string"}


class Store:
    """
    Owned handle on the MongoDB database backing the API.

    Built once per process (see main.lifespan) or handed to create_app()
    directly. Path operations reach it through Depends(get_store).
    """

    def __init__(
        self,
        database: Database,
        client: Optional[MongoClient] = None,
        ping_timeout_ms: int = 1000,
    ):
        self.database = database
        self.client = client
        self.ping_timeout_ms = ping_timeout_ms
        self._indexed = False

    @classmethod
    def connect(cls, settings: Settings) -> "Store":
        logger.info("Connecting to MongoDB...")
        client: MongoClient = MongoClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        )
        if settings.mongodb_db:
            database = client[settings.mongodb_db]
        else:
            database = client.get_default_database(default=DEFAULT_DB_NAME)
        return cls(database, client=client, ping_timeout_ms=settings.mongodb_ping_timeout_ms)

    @property
    def users(self) -> Collection:
        return self.database["users"]

    @property
    def orders(self) -> Collection:
        return self.database["orders"]

    def ping(self) -> bool:
        try:
            # health checks must answer fast even while the server is unreachable
            with pymongo.timeout(self.ping_timeout_ms / 1000):
                self.database.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False

    def ensure_indexes(self) -> bool:
        """
        Create the unique user indexes. Returns True once they exist; later
        calls are then no-ops. A failed build is logged and retried on the
        next call, it never blocks inserts.
        """
        if self._indexed:
            return True
        try:
            self.users.create_index(
                [("email", ASCENDING)],
                unique=True,
                partialFilterExpression={"email": _STRING_ONLY},
                name="email_unique",
            )
            self.users.create_index(
                [("phone", ASCENDING)],
                unique=True,
                partialFilterExpression={"phone": _STRING_ONLY},
                name="phone_unique",
            )
            self.orders.create_index([("orderTime", ASCENDING)], name="order_time")
        except PyMongoError as e:
            logger.error("Could not create indexes: %s", e)
            return False
        self._indexed = True
        return True

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None


def get_store(request: Request) -> Store:
    return request.app.state.store
