from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from psycopg.rows import dict_row

from ..db import db_errors, get_conn
from ..delivery import check_product_delivery, validate_pincode
from ..models import AvailabilityOut, InventoryRowOut, InventoryUpsertIn, PincodeProductOut, PincodeProductsOut
from ..security import require_admin


router = APIRouter(prefix="/api/inventory", tags=["inventory"])

_log = logging.getLogger("bigandbest.inventory")

DEFAULT_DELIVERY_TIME = "1-2 days"

_INVENTORY_COLUMNS = """
    i.id, i.warehouse_id, i.product_id, i.variant_id, p.name AS product_name,
    i.stock_quantity, i.reserved_quantity, i.available_quantity, i.last_updated
"""


def group_inventory(rows: List[Dict[str, Any]]) -> List[PincodeProductOut]:
    """Collapse per-warehouse inventory rows into one entry per product/variant.

    Rows must arrive in warehouse priority order; the first row of a group sets
    the delivery time.
    """
    grouped: Dict[Tuple[int, Any], Dict[str, Any]] = {}
    for r in rows:
        key = (int(r["product_id"]), r["variant_id"])
        g = grouped.get(key)
        if g is None:
            grouped[key] = {
                "product_id": int(r["product_id"]),
                "variant_id": r["variant_id"],
                "name": r["name"],
                "price": float(r["price"]),
                "image": r["image"],
                "variant_name": r["variant_name"],
                "variant_price": float(r["variant_price"]) if r["variant_price"] is not None else None,
                "total_stock": int(r["available_quantity"]),
                "delivery_time": r["delivery_time"] or DEFAULT_DELIVERY_TIME,
                "warehouse_ids": [int(r["warehouse_id"])],
            }
            continue
        g["total_stock"] += int(r["available_quantity"])
        if int(r["warehouse_id"]) not in g["warehouse_ids"]:
            g["warehouse_ids"].append(int(r["warehouse_id"]))
    return [PincodeProductOut(**g) for g in grouped.values()]


@router.get("/pincode/{pincode}/products", response_model=PincodeProductsOut)
def products_by_pincode(
    pincode: str,
    category: str | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
):
    pincode = validate_pincode(pincode)

    sql = """
        SELECT i.product_id, i.variant_id, i.warehouse_id, i.available_quantity,
               p.name, p.price, p.image,
               v.variant_name, v.price AS variant_price,
               m.delivery_time, m.priority
        FROM bigandbest.pincode_warehouse_mapping m
        JOIN bigandbest.warehouses w ON w.id = m.warehouse_id AND w.is_active
        JOIN bigandbest.warehouse_inventory i ON i.warehouse_id = m.warehouse_id
        JOIN bigandbest.products p ON p.id = i.product_id AND p.active
        LEFT JOIN bigandbest.product_variants v ON v.id = i.variant_id
        WHERE m.pincode = %s AND m.is_active AND i.available_quantity > 0
    """
    params: List[Any] = [pincode]
    if category:
        sql += " AND p.category = %s"
        params.append(category)
    sql += " ORDER BY m.priority ASC, i.product_id, i.variant_id NULLS FIRST LIMIT %s;"
    params.append(limit)

    with db_errors("Inventory"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT 1 FROM bigandbest.pincode_warehouse_mapping WHERE pincode = %s AND is_active LIMIT 1;",
                    (pincode,),
                )
                if cur.fetchone() is None:
                    raise HTTPException(status_code=404, detail="No delivery available for this pincode")
                cur.execute(sql, params)
                rows = cur.fetchall()

    products = group_inventory(rows)
    return PincodeProductsOut(pincode=pincode, total=len(products), products=products)


@router.get("/pincode/{pincode}/product/{product_id}", response_model=AvailabilityOut)
def product_availability(pincode: str, product_id: int, quantity: int = Query(1, ge=1)):
    pincode = validate_pincode(pincode)

    with db_errors("Inventory"):
        with get_conn() as conn:
            result = check_product_delivery(conn, product_id, pincode, quantity)

    return AvailabilityOut(
        pincode=pincode,
        product_id=product_id,
        is_available=result.deliverable,
        available_quantity=result.available_quantity,
        delivery_time="2-3 business days" if result.deliverable else None,
        source_warehouse=result.source_warehouse,
        message=result.message or result.error,
    )


@router.put("", response_model=InventoryRowOut, dependencies=[Depends(require_admin)])
def upsert_inventory(req: InventoryUpsertIn):
    if req.reserved_quantity > req.stock_quantity:
        raise HTTPException(status_code=400, detail="reserved_quantity cannot exceed stock_quantity")

    with db_errors("Inventory"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    INSERT INTO bigandbest.warehouse_inventory (
                        warehouse_id, product_id, variant_id, stock_quantity, reserved_quantity, last_updated
                    )
                    VALUES (%s, %s, %s, %s, %s, NOW())
                    ON CONFLICT (warehouse_id, product_id, variant_id) DO UPDATE SET
                        stock_quantity = EXCLUDED.stock_quantity,
                        reserved_quantity = EXCLUDED.reserved_quantity,
                        last_updated = NOW()
                    RETURNING id;
                    """,
                    (req.warehouse_id, req.product_id, req.variant_id, req.stock_quantity, req.reserved_quantity),
                )
                inv_id = cur.fetchone()["id"]
                cur.execute(
                    f"""
                    SELECT {_INVENTORY_COLUMNS}
                    FROM bigandbest.warehouse_inventory i
                    JOIN bigandbest.products p ON p.id = i.product_id
                    WHERE i.id = %s;
                    """,
                    (inv_id,),
                )
                row = cur.fetchone()
            conn.commit()

    _log.info(
        "inventory upsert warehouse=%s product=%s variant=%s qty=%s",
        req.warehouse_id,
        req.product_id,
        req.variant_id,
        req.stock_quantity,
    )
    return InventoryRowOut(**row)


@router.get("/warehouse/{warehouse_id}", response_model=List[InventoryRowOut], dependencies=[Depends(require_admin)])
def warehouse_inventory(warehouse_id: int):
    with db_errors("Inventory"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_INVENTORY_COLUMNS}
                    FROM bigandbest.warehouse_inventory i
                    JOIN bigandbest.products p ON p.id = i.product_id
                    WHERE i.warehouse_id = %s
                    ORDER BY i.last_updated DESC, i.id DESC;
                    """,
                    (warehouse_id,),
                )
                rows = cur.fetchall()

    return [InventoryRowOut(**r) for r in rows]
