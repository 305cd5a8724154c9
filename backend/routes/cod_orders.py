from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query
from psycopg.rows import dict_row

from ..db import db_errors, get_conn, page_window, pagination
from ..models import CodOrderIn, CodOrderListOut, CodOrderOut, CodStatsOut, CodStatusIn, MessageOut
from ..security import require_admin


router = APIRouter(prefix="/api/cod-orders", tags=["cod_orders"])

_log = logging.getLogger("bigandbest.cod_orders")

COD_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")

_COD_COLUMNS = """
    id, user_id, product_id, user_name, product_name, product_total_price, user_address,
    user_location, quantity, status, created_at, updated_at
"""


def cod_max_amount() -> float:
    try:
        return float(os.getenv("COD_MAX_AMOUNT", "1000"))
    except ValueError:
        return 1000.0


def _order_out(r: Dict[str, Any]) -> CodOrderOut:
    return CodOrderOut(**{k: r[k] for k in CodOrderOut.model_fields if k in r})


def _list(where_sql: str, params: List[Any], page: int, limit: int) -> CodOrderListOut:
    lim, offset = page_window(page, limit)
    with db_errors("COD order"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(f"SELECT COUNT(*) AS n FROM bigandbest.cod_orders {where_sql};", params)
                total = int(cur.fetchone()["n"])
                cur.execute(
                    f"""
                    SELECT {_COD_COLUMNS}
                    FROM bigandbest.cod_orders
                    {where_sql}
                    ORDER BY created_at DESC, id DESC
                    LIMIT %s OFFSET %s;
                    """,
                    params + [lim, offset],
                )
                rows = cur.fetchall()
    return CodOrderListOut(orders=[_order_out(r) for r in rows], pagination=pagination(page, limit, total))


@router.post("/create", response_model=CodOrderOut, status_code=201)
def create_cod_order(req: CodOrderIn):
    limit = cod_max_amount()
    if req.product_total_price >= limit:
        raise HTTPException(status_code=400, detail=f"COD is only available for orders below ₹{limit:g}")

    with db_errors("COD order"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO bigandbest.cod_orders (
                        user_id, product_id, user_name, product_name, product_total_price,
                        user_address, user_location, quantity, status
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, 'pending')
                    RETURNING {_COD_COLUMNS};
                    """,
                    (
                        req.user_id,
                        req.product_id,
                        req.user_name.strip(),
                        req.product_name.strip(),
                        req.product_total_price,
                        req.user_address.strip(),
                        req.user_location,
                        req.quantity,
                    ),
                )
                row = cur.fetchone()
            conn.commit()

    _log.info("cod order created id=%s user=%s amount=%s", row["id"], req.user_id, req.product_total_price)
    return _order_out(row)


@router.get("/all", response_model=CodOrderListOut, dependencies=[Depends(require_admin)])
def list_cod_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=200),
    status: str | None = Query(None),
):
    if status and status not in COD_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status. Allowed: {list(COD_STATUSES)}")
    if status:
        return _list("WHERE status = %s", [status], page, limit)
    return _list("", [], page, limit)


@router.get("/stats", response_model=CodStatsOut, dependencies=[Depends(require_admin)])
def cod_stats():
    with db_errors("COD order"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT status, COUNT(*) AS n, COALESCE(SUM(product_total_price), 0) AS amount
                    FROM bigandbest.cod_orders
                    GROUP BY status;
                    """
                )
                rows = cur.fetchall()

    counts = {s: 0 for s in COD_STATUSES}
    total_amount = 0.0
    for r in rows:
        counts[str(r["status"])] = int(r["n"])
        total_amount += float(r["amount"])

    return CodStatsOut(total_orders=sum(counts.values()), total_amount=round(total_amount, 2), **counts)


@router.get("/user/{user_id}", response_model=CodOrderListOut)
def user_cod_orders(user_id: str, page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=200)):
    return _list("WHERE user_id = %s", [user_id], page, limit)


@router.get("/{order_id}", response_model=CodOrderOut)
def get_cod_order(order_id: int):
    with db_errors("COD order"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(f"SELECT {_COD_COLUMNS} FROM bigandbest.cod_orders WHERE id = %s;", (order_id,))
                row = cur.fetchone()

    if row is None:
        raise HTTPException(status_code=404, detail="COD order not found")
    return _order_out(row)


@router.put("/status/{order_id}", response_model=CodOrderOut, dependencies=[Depends(require_admin)])
def update_cod_status(order_id: int, req: CodStatusIn):
    status = req.status.strip().lower()
    if status not in COD_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status. Allowed: {list(COD_STATUSES)}")

    with db_errors("COD order"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE bigandbest.cod_orders
                    SET status = %s, updated_at = NOW()
                    WHERE id = %s
                    RETURNING {_COD_COLUMNS};
                    """,
                    (status, order_id),
                )
                row = cur.fetchone()
                if row is None:
                    raise HTTPException(status_code=404, detail="COD order not found")
            conn.commit()

    _log.info("cod order status id=%s status=%s", order_id, status)
    return _order_out(row)


@router.delete("/{order_id}", response_model=MessageOut, dependencies=[Depends(require_admin)])
def delete_cod_order(order_id: int):
    with db_errors("COD order"):
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM bigandbest.cod_orders WHERE id = %s RETURNING id;", (order_id,))
                if cur.fetchone() is None:
                    raise HTTPException(status_code=404, detail="COD order not found")
            conn.commit()

    return MessageOut(message="COD order deleted successfully")
