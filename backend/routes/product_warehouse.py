from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from psycopg.rows import dict_row

from ..db import db_errors, get_conn
from ..models import (
    BulkMapIn,
    BulkMapOut,
    MessageOut,
    ProductForWarehouseOut,
    ProductWarehouseMapIn,
    WarehouseForProductOut,
)
from ..security import require_admin


router = APIRouter(prefix="/api/product-warehouse", tags=["product_warehouse"])


@router.post("/map", response_model=MessageOut, status_code=201, dependencies=[Depends(require_admin)])
def map_product_to_warehouse(req: ProductWarehouseMapIn):
    with db_errors("Mapping"):
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "INSERT INTO bigandbest.product_warehouse (product_id, warehouse_id) VALUES (%s, %s);",
                    (req.product_id, req.warehouse_id),
                )
            conn.commit()
    return MessageOut(message="Product mapped to warehouse successfully.")


@router.post("/remove", response_model=MessageOut, dependencies=[Depends(require_admin)])
def remove_product_from_warehouse(req: ProductWarehouseMapIn):
    with db_errors("Mapping"):
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM bigandbest.product_warehouse WHERE product_id = %s AND warehouse_id = %s;",
                    (req.product_id, req.warehouse_id),
                )
                removed = cur.rowcount
            conn.commit()

    if not removed:
        raise HTTPException(status_code=404, detail="Mapping not found.")
    return MessageOut(message="Mapping removed successfully.")


@router.get("/product/{product_id}/warehouses", response_model=List[WarehouseForProductOut])
def warehouses_for_product(product_id: int):
    with db_errors("Mapping"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT w.id, w.name, w.type, w.location, w.is_active
                    FROM bigandbest.product_warehouse pw
                    JOIN bigandbest.warehouses w ON w.id = pw.warehouse_id
                    WHERE pw.product_id = %s
                    ORDER BY w.id;
                    """,
                    (product_id,),
                )
                rows = cur.fetchall()

    return [
        WarehouseForProductOut(
            id=int(r["id"]),
            name=r["name"],
            type=r["type"],
            location=r["location"],
            pincode=r["location"],
            is_active=bool(r["is_active"]),
        )
        for r in rows
    ]


@router.get("/warehouse/{warehouse_id}/products", response_model=List[ProductForWarehouseOut])
def products_for_warehouse(warehouse_id: int):
    with db_errors("Mapping"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT p.id, p.name, p.price, p.active
                    FROM bigandbest.product_warehouse pw
                    JOIN bigandbest.products p ON p.id = pw.product_id
                    WHERE pw.warehouse_id = %s
                    ORDER BY p.id;
                    """,
                    (warehouse_id,),
                )
                rows = cur.fetchall()

    return [ProductForWarehouseOut(id=int(r["id"]), name=r["name"], price=float(r["price"]), active=bool(r["active"])) for r in rows]


@router.post("/bulk-map", response_model=BulkMapOut, status_code=201, dependencies=[Depends(require_admin)])
def bulk_map_by_names(req: BulkMapIn):
    names = [n.strip() for n in req.product_names if n and n.strip()]
    if not names:
        raise HTTPException(status_code=400, detail="product_names must contain at least one name")

    with db_errors("Mapping"):
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT id FROM bigandbest.warehouses WHERE name = %s;", (req.warehouse_name.strip(),))
                row = cur.fetchone()
                if row is None:
                    raise HTTPException(status_code=404, detail="Warehouse not found.")
                warehouse_id = int(row[0])

                cur.execute("SELECT id, name FROM bigandbest.products WHERE name = ANY(%s);", (names,))
                products = cur.fetchall()
                if not products:
                    raise HTTPException(status_code=404, detail="No matching products found.")

                cur.executemany(
                    """
                    INSERT INTO bigandbest.product_warehouse (product_id, warehouse_id)
                    VALUES (%s, %s)
                    ON CONFLICT DO NOTHING;
                    """,
                    [(int(p[0]), warehouse_id) for p in products],
                )
            conn.commit()

    found = {str(p[1]) for p in products}
    return BulkMapOut(
        message=f'Mapped {len(products)} products to warehouse "{req.warehouse_name.strip()}".',
        mapped_count=len(products),
        not_found=[n for n in names if n not in found],
    )
