from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from psycopg.rows import dict_row

from ..db import db_errors, get_conn
from ..models import BulkStockIn, BulkStockOut, ProductStockOut, StockReduceIn, StockReduceOut, StockUpdateIn
from ..security import require_admin


router = APIRouter(prefix="/api/stock", tags=["stock"])

_log = logging.getLogger("bigandbest.stock")


def _stock_out(r: Dict[str, Any]) -> ProductStockOut:
    return ProductStockOut(
        product_id=int(r["id"]),
        name=r["name"],
        stock_quantity=int(r["stock_quantity"]),
        in_stock=bool(r["in_stock"]),
    )


@router.get("/{product_id}", response_model=ProductStockOut)
def get_product_stock(product_id: int):
    with db_errors("Stock"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT id, name, stock_quantity, in_stock FROM bigandbest.products WHERE id = %s;",
                    (product_id,),
                )
                row = cur.fetchone()

    if row is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return _stock_out(row)


@router.put("/{product_id}", response_model=ProductStockOut, dependencies=[Depends(require_admin)])
def update_product_stock(product_id: int, req: StockUpdateIn):
    in_stock = req.in_stock if req.in_stock is not None else req.stock_quantity > 0

    with db_errors("Stock"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    UPDATE bigandbest.products
                    SET stock_quantity = %s, in_stock = %s, updated_at = NOW()
                    WHERE id = %s AND active
                    RETURNING id, name, stock_quantity, in_stock;
                    """,
                    (req.stock_quantity, in_stock, product_id),
                )
                row = cur.fetchone()
                if row is None:
                    raise HTTPException(status_code=404, detail="Product not found or inactive")
            conn.commit()

    _log.info("stock set product=%s qty=%s in_stock=%s", product_id, req.stock_quantity, in_stock)
    return _stock_out(row)


@router.post("/bulk-update", response_model=BulkStockOut, dependencies=[Depends(require_admin)])
def bulk_update_stock(req: BulkStockIn):
    results: List[Dict[str, Any]] = []
    errors: List[Dict[str, Any]] = []

    with db_errors("Stock"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                for u in req.updates:
                    if u.stock_quantity < 0:
                        errors.append({"product_id": u.product_id, "error": "Stock quantity cannot be negative"})
                        continue
                    cur.execute(
                        """
                        UPDATE bigandbest.products
                        SET stock_quantity = %s, in_stock = %s, updated_at = NOW()
                        WHERE id = %s AND active
                        RETURNING id, name, stock_quantity, in_stock;
                        """,
                        (u.stock_quantity, u.stock_quantity > 0, u.product_id),
                    )
                    row = cur.fetchone()
                    if row is None:
                        errors.append({"product_id": u.product_id, "error": "Product not found or inactive"})
                    else:
                        results.append(_stock_out(row).model_dump(exclude={"success"}))
            conn.commit()

    _log.info("bulk stock update ok=%s failed=%s", len(results), len(errors))
    return BulkStockOut(
        success=True,
        results=results,
        errors=errors,
        summary={"total": len(req.updates), "successful": len(results), "failed": len(errors)},
    )


@router.post("/{product_id}/reduce", response_model=StockReduceOut, dependencies=[Depends(require_admin)])
def reduce_stock(product_id: int, req: StockReduceIn):
    with db_errors("Stock"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT stock_quantity FROM bigandbest.products WHERE id = %s AND active FOR UPDATE;",
                    (product_id,),
                )
                row = cur.fetchone()
                if row is None:
                    raise HTTPException(status_code=404, detail="Product not found or inactive")

                previous = int(row["stock_quantity"] or 0)
                new_stock = max(0, previous - req.quantity)
                cur.execute(
                    """
                    UPDATE bigandbest.products
                    SET stock_quantity = %s, in_stock = %s, updated_at = NOW()
                    WHERE id = %s;
                    """,
                    (new_stock, new_stock > 0, product_id),
                )
            conn.commit()

    _log.info("stock reduced product=%s order=%s %s -> %s", product_id, req.order_id, previous, new_stock)
    return StockReduceOut(
        product_id=product_id,
        order_id=req.order_id,
        reduction={
            "previous_stock": previous,
            "reduced_by": req.quantity,
            "new_stock": new_stock,
        },
    )
