# koodi_api/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .db import Store, get_store
from .models import OrderIn, StatusIn, UserIn, parse_object_id, render
from .seed import seed_database

logger = logging.getLogger(__name__)

SERVICE_MESSAGE = "Koodi Foods API is running!"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

router = APIRouter()


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# -------------------
# Health
# -------------------
@router.get("/")
def root(store: Store = Depends(get_store)):
    return {
        "message": SERVICE_MESSAGE,
        "database": "Connected" if store.ping() else "Disconnected",
    }


# -------------------
# Users (admin panel lists, mobile app registers)
# -------------------
@router.get("/api/users")
def list_users(store: Store = Depends(get_store)) -> List[Dict[str, Any]]:
    return render(list(store.users.find({}, {"password": 0})))


@router.post("/api/users", status_code=201)
def create_user(payload: UserIn | None = None, store: Store = Depends(get_store)):
    payload = payload or UserIn()

    # email/phone uniqueness lives in the unique indexes, not a pre-check;
    # a failed index build is logged by the store and the insert goes ahead
    store.ensure_indexes()
    try:
        result = store.users.insert_one(payload.to_document())
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="User already exists")

    user = store.users.find_one({"_id": result.inserted_id}, {"password": 0})
    return render(user)


# -------------------
# Orders
# -------------------
@router.get("/api/orders")
def list_orders(store: Store = Depends(get_store)) -> List[Dict[str, Any]]:
    cursor = store.orders.find().sort([("orderTime", DESCENDING), ("_id", DESCENDING)])
    return render(list(cursor))


@router.post("/api/orders", status_code=201)
def create_order(payload: OrderIn | None = None, store: Store = Depends(get_store)):
    payload = payload or OrderIn()
    result = store.orders.insert_one(payload.to_document())
    return render(store.orders.find_one({"_id": result.inserted_id}))


@router.put("/api/orders/{order_id}/status")
def update_order_status(
    order_id: str,
    payload: StatusIn | None = None,
    store: Store = Depends(get_store),
):
    oid = parse_object_id(order_id)
    if oid is None:
        raise HTTPException(status_code=404, detail="Order not found")

    status = payload.status if payload else None
    if status is None:
        order = store.orders.find_one({"_id": oid})
    else:
        order = store.orders.find_one_and_update(
            {"_id": oid},
            {"$set": {"status": status}},
            return_document=ReturnDocument.AFTER,
        )

    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return render(order)


# -------------------
# Dev seed data (destructive)
# -------------------
@router.get("/api/seed-data")
def seed_data(
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    if not settings.seed_enabled:
        raise HTTPException(status_code=404, detail="Not Found")

    seed_database(store)
    return {"message": "Test data added successfully!"}


# -------------------
# Errors -> {"error": "..."}
# -------------------
def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Validation failed: " + "; ".join(parts)


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse({"error": _validation_message(exc)}, status_code=500)


async def _server_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse({"error": str(exc)}, status_code=500)


async def _catch_unhandled(request: Request, call_next):
    # runs inside CORSMiddleware, so these 500s still carry CORS headers
    try:
        return await call_next(request)
    except Exception as exc:
        return await _server_error(request, exc)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(PyMongoError, _server_error)
    app.middleware("http")(_catch_unhandled)


# -------------------
# App factory
# -------------------
def create_app(settings: Settings | None = None, store: Store | None = None) -> FastAPI:
    """
    Build the API. If *store* is given the app uses it as-is and never
    closes it; otherwise a Store is opened from *settings* for the app's
    lifetime.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if app.state.store is None:
            owned = app.state.store = Store.connect(settings)

        if app.state.store.ping():
            logger.info("Connected to MongoDB (%s)", app.state.store.database.name)
            app.state.store.ensure_indexes()
        else:
            logger.error("MongoDB connection error; serving with database Disconnected")

        yield

        if owned is not None:
            owned.close()
            app.state.store = None

    app = FastAPI(title="Koodi Foods API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    # error handlers first: each add_middleware wraps the ones before it
    install_error_handlers(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    logging.basicConfig(format=LOG_FORMAT, level=settings.log_level)

    logger.info("Server running on http://localhost:%d", settings.port)
    logger.info("Admin panel and mobile app can connect to this API")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
