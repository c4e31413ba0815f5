# koodi_api/models.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from bson import ObjectId
from bson.errors import InvalidId
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict

DEFAULT_ORDER_STATUS = "placed"  # placed | preparing | delivered | ... (open-ended)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -------------------
# Incoming bodies
# -------------------
# Every field is optional: bodies are cast to the declared fields (unknown
# keys dropped, numeric strings coerced to numbers and numbers to text) but
# nothing is required.
class UserIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    password: str | None = None  # stored as given

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(exclude_none=True)
        doc["joinDate"] = utcnow()
        return doc


class OrderItem(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str | None = None
    quantity: int | float | None = None
    price: int | float | None = None


class OrderIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    customerName: str | None = None
    customerPhone: str | None = None
    items: List[OrderItem] = []
    total: int | float | None = None
    status: str | None = None
    orderTime: datetime | None = None

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(exclude_none=True)
        doc.setdefault("status", DEFAULT_ORDER_STATUS)
        doc.setdefault("orderTime", utcnow())
        doc["items"] = [item.model_dump(exclude_none=True) for item in self.items]
        return doc


class StatusIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    status: str | None = None


# -------------------
# Outgoing documents
# -------------------
def _iso(dt: datetime) -> str:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat(timespec="milliseconds") + "Z"


def render(doc: Mapping[str, Any] | None) -> Any:
    """Make a stored document JSON-safe: ObjectId -> hex, datetime -> ISO UTC."""
    return jsonable_encoder(doc, custom_encoder={ObjectId: str, datetime: _iso})


def parse_object_id(raw: str) -> ObjectId | None:
    try:
        return ObjectId(raw)
    except (InvalidId, TypeError):
        return None
