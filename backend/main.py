from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

import psycopg
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.requests import Request

from .db import get_conn
from .models import HealthOut
from .routes.admin import router as admin_router
from .routes.banners import router as banners_router
from .routes.bulk_orders import router as bulk_orders_router
from .routes.bulk_products import router as bulk_products_router
from .routes.bulk_wholesale import router as bulk_wholesale_router
from .routes.cod_orders import router as cod_orders_router
from .routes.delivery import router as delivery_router
from .routes.inventory import router as inventory_router
from .routes.location import router as location_router
from .routes.orders import router as orders_router
from .routes.product_warehouse import router as product_warehouse_router
from .routes.products import router as products_router
from .routes.stock import router as stock_router
from .routes.variants import router as variants_router
from .routes.warehouses import router as warehouses_router
from .routes.zones import router as zones_router


_PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_PROJECT_ROOT / ".env")

app = FastAPI(title="BigandBest API")

_log = logging.getLogger("bigandbest")
if not _log.handlers:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
    response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    _log.info("rid=%s method=%s path=%s status=%s", rid, request.method, request.url.path, response.status_code)
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products_router)
app.include_router(product_warehouse_router)
app.include_router(warehouses_router)
app.include_router(variants_router)
app.include_router(bulk_products_router)
app.include_router(bulk_wholesale_router)
app.include_router(bulk_orders_router)
app.include_router(orders_router)
app.include_router(cod_orders_router)
app.include_router(stock_router)
app.include_router(inventory_router)
app.include_router(banners_router)
app.include_router(location_router)
app.include_router(zones_router)
app.include_router(delivery_router)
app.include_router(admin_router)


@app.get("/")
def home():
    return {"status": "ok", "message": "BigandBest API is running. Open /docs for the API reference."}


@app.get("/api/health", response_model=HealthOut)
def health() -> HealthOut:
    database = "connected"
    try:
        with get_conn() as conn:
            conn.execute("SELECT 1;")
    except psycopg.Error:
        _log.warning("health check: database unavailable")
        database = "unavailable"
    return HealthOut(status="ok", database=database, timestamp=datetime.now(timezone.utc))


@app.get("/__routes")
def list_routes():
    out = []
    for r in app.routes:
        if isinstance(r, APIRoute):
            out.append({"path": r.path, "methods": sorted(r.methods or []), "name": r.name})
    return sorted(out, key=lambda x: x["path"])
