from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from psycopg.rows import dict_row

from ..db import db_errors, get_conn
from ..delivery import NATIONWIDE, ZONAL, apply_stock_movement
from ..models import (
    DistributeIn,
    DistributeOut,
    DistributionResultOut,
    ProductCreateIn,
    ProductCreateOut,
    ProductDetailOut,
    ProductOut,
    StockSummaryOut,
    WarehouseAllocationOut,
    WarehouseStockOut,
)
from ..security import require_admin


router = APIRouter(prefix="/api/products", tags=["products"])

_log = logging.getLogger("bigandbest.products")

_MAPPING_TYPES = {"nationwide", "zonal", "custom", "central"}

_PRODUCT_COLUMNS = """
    id, name, description, price, old_price, discount, rating, review_count, image, images, video,
    category, brand_name, specifications, featured, popular, active, in_stock, stock_quantity,
    uom, uom_value, uom_unit, shipping_amount, delivery_type, allowed_zone_ids, created_at
"""


def _weight(r: Dict[str, Any]) -> str:
    if r.get("uom"):
        return str(r["uom"])
    value = r.get("uom_value")
    value = 1 if value is None else float(value)
    value_s = str(int(value)) if float(value).is_integer() else str(value)
    return f"{value_s} {r.get('uom_unit') or 'kg'}"


def _product_out(r: Dict[str, Any]) -> ProductOut:
    stock = int(r.get("stock_quantity") or 0)
    return ProductOut(
        id=int(r["id"]),
        name=str(r["name"]),
        description=r.get("description"),
        price=float(r["price"]),
        old_price=float(r["old_price"]) if r.get("old_price") is not None else None,
        rating=float(r["rating"]) if r.get("rating") else 4.0,
        reviews=int(r.get("review_count") or 0),
        discount=float(r.get("discount") or 0),
        image=r.get("image"),
        images=list(r.get("images") or []),
        in_stock=stock > 0,
        stock=stock,
        popular=bool(r.get("popular")),
        featured=bool(r.get("featured")),
        category=r.get("category"),
        weight=_weight(r),
        brand=r.get("brand_name") or "BigandBest",
        shipping_amount=float(r.get("shipping_amount") or 0),
        delivery_type=str(r.get("delivery_type") or NATIONWIDE),
        created_at=r.get("created_at"),
    )


def _product_detail_out(r: Dict[str, Any]) -> ProductDetailOut:
    base = _product_out(r)
    return ProductDetailOut(
        **base.model_dump(),
        video=r.get("video"),
        specifications=r.get("specifications"),
        allowed_zone_ids=[int(z) for z in (r.get("allowed_zone_ids") or [])],
    )


def _ensure_stock_row(cur, product_id: int, warehouse_id: int, minimum_threshold: int = 10, cost_per_unit: Optional[float] = None) -> bool:
    cur.execute(
        """
        INSERT INTO bigandbest.product_warehouse_stock
            (product_id, warehouse_id, stock_quantity, reserved_quantity, minimum_threshold, cost_per_unit, is_active)
        VALUES (%s, %s, 0, 0, %s, %s, TRUE)
        ON CONFLICT (product_id, warehouse_id) DO NOTHING
        RETURNING id;
        """,
        (product_id, warehouse_id, minimum_threshold, cost_per_unit),
    )
    return cur.fetchone() is not None


def _distribute(conn, product_id: int, quantity: int, specific: Optional[List[int]], force: bool) -> List[DistributionResultOut]:
    sql = """
        SELECT w.id, w.name, s.id AS stock_id
        FROM bigandbest.warehouses w
        LEFT JOIN bigandbest.product_warehouse_stock s
          ON s.warehouse_id = w.id AND s.product_id = %s
        WHERE w.type = 'zonal' AND w.is_active
    """
    params: List[Any] = [product_id]
    if specific:
        sql += " AND w.id = ANY(%s::bigint[])"
        params.append(list(specific))
    sql += " ORDER BY w.id;"

    with conn.cursor(row_factory=dict_row) as cur:
        cur.execute(sql, params)
        targets = cur.fetchall()
        if not targets:
            raise HTTPException(status_code=400, detail="No zonal warehouses found for distribution")

        results: List[DistributionResultOut] = []
        for w in targets:
            wid = int(w["id"])
            if w["stock_id"] is not None and not force:
                results.append(DistributionResultOut(warehouse_id=wid, warehouse_name=w["name"], action="skipped", quantity=0))
                continue

            action = "updated" if w["stock_id"] is not None else "created"
            if action == "created":
                _ensure_stock_row(cur, product_id, wid)
            apply_stock_movement(
                conn,
                product_id=product_id,
                warehouse_id=wid,
                movement_type="inbound",
                quantity=quantity,
                reference_type="zone_distribution",
                reason=f"Distributed {quantity} units to zonal warehouse",
            )
            results.append(DistributionResultOut(warehouse_id=wid, warehouse_name=w["name"], action=action, quantity=quantity))
    return results


@router.get("", response_model=List[ProductOut])
def list_products(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    category: str | None = Query(None, max_length=100),
):
    sql = f"SELECT {_PRODUCT_COLUMNS} FROM bigandbest.products WHERE active"
    params: List[Any] = []
    if category:
        sql += " AND category = %s"
        params.append(category)
    sql += " ORDER BY created_at DESC, id DESC LIMIT %s OFFSET %s;"
    params.extend([limit, offset])

    with db_errors("Product"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()

    return [_product_out(r) for r in rows]


@router.get("/{product_id}", response_model=ProductDetailOut)
def get_product(product_id: int):
    with db_errors("Product"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_PRODUCT_COLUMNS} FROM bigandbest.products WHERE id = %s AND active;",
                    (product_id,),
                )
                row = cur.fetchone()

    if row is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return _product_detail_out(row)


@router.post("", response_model=ProductCreateOut, status_code=201, dependencies=[Depends(require_admin)])
def create_product(req: ProductCreateIn):
    mapping = req.warehouse_mapping_type.strip().lower()
    if mapping not in _MAPPING_TYPES:
        raise HTTPException(status_code=400, detail=f"Invalid warehouse_mapping_type. Allowed: {sorted(_MAPPING_TYPES)}")
    delivery_type = req.delivery_type.strip().lower()
    if delivery_type not in (NATIONWIDE, ZONAL):
        raise HTTPException(status_code=400, detail="delivery_type must be 'nationwide' or 'zonal'")
    if delivery_type == ZONAL and not req.allowed_zone_ids:
        raise HTTPException(status_code=400, detail="Zonal products need at least one allowed zone")

    allocations: Dict[int, Tuple[Dict[str, Any], int]] = {}

    with db_errors("Product"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO bigandbest.products (
                        name, description, price, old_price, discount, category, category_id, subcategory_id,
                        group_id, brand_name, image, images, uom, uom_value, uom_unit, shipping_amount,
                        specifications, delivery_type, allowed_zone_ids, warehouse_mapping_type,
                        fallback_warehouses, enable_fallback, warehouse_notes, stock_quantity, in_stock, active
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s::jsonb, %s, %s::bigint[],
                            %s, %s::bigint[], %s, %s, %s, %s, TRUE)
                    RETURNING {_PRODUCT_COLUMNS};
                    """,
                    (
                        req.name.strip(),
                        req.description,
                        req.price,
                        req.old_price,
                        req.discount,
                        req.category,
                        req.category_id,
                        req.subcategory_id,
                        req.group_id,
                        req.brand_name,
                        req.image,
                        list(req.images),
                        req.uom,
                        req.uom_value,
                        req.uom_unit,
                        req.shipping_amount,
                        json.dumps(req.specifications) if req.specifications is not None else None,
                        delivery_type,
                        list(req.allowed_zone_ids),
                        mapping,
                        list(req.fallback_warehouses),
                        req.enable_fallback,
                        req.warehouse_notes,
                        req.initial_stock,
                        req.initial_stock > 0,
                    ),
                )
                product = cur.fetchone()
                product_id = int(product["id"])

                if mapping == "nationwide":
                    cur.execute(
                        "SELECT id, name, type FROM bigandbest.warehouses WHERE type = 'zonal' AND is_active ORDER BY id;"
                    )
                    zonal = cur.fetchall()
                    per_zone = req.initial_stock // len(zonal) if zonal else 0
                    for w in zonal:
                        allocations[int(w["id"])] = (w, per_zone)

                if req.assigned_warehouse_ids:
                    cur.execute(
                        """
                        SELECT id, name, type FROM bigandbest.warehouses
                        WHERE id = ANY(%s::bigint[]) AND is_active
                        ORDER BY id;
                        """,
                        (list(req.assigned_warehouse_ids),),
                    )
                    for w in cur.fetchall():
                        qty = req.zone_distribution_quantity if w["type"] == "zonal" else req.initial_stock
                        allocations.setdefault(int(w["id"]), (w, qty))
                elif mapping == "central":
                    cur.execute(
                        "SELECT id, name, type FROM bigandbest.warehouses WHERE type = 'central' AND is_active ORDER BY id LIMIT 1;"
                    )
                    central = cur.fetchone()
                    if central is None:
                        raise HTTPException(status_code=400, detail="No active central warehouse found")
                    allocations[int(central["id"])] = (central, req.initial_stock)

                for wid, (w, qty) in allocations.items():
                    _ensure_stock_row(cur, product_id, wid, req.minimum_threshold, req.cost_per_unit)
                    if qty > 0:
                        apply_stock_movement(
                            conn,
                            product_id=product_id,
                            warehouse_id=wid,
                            movement_type="inbound",
                            quantity=qty,
                            reference_type="product_creation",
                            reference_id=str(product_id),
                            reason="Initial stock allocation",
                        )

                cur.execute(
                    "UPDATE bigandbest.products SET primary_warehouses = %s::bigint[] WHERE id = %s;",
                    (list(allocations), product_id),
                )

            if mapping == "central" and req.auto_distribute_to_zones:
                _distribute(conn, product_id, req.zone_distribution_quantity or 50, None, False)

            conn.commit()

    _log.info("product created id=%s mapping=%s warehouses=%s", product_id, mapping, len(allocations))

    assignments = [
        WarehouseAllocationOut(warehouse_id=wid, warehouse_name=str(w["name"]), warehouse_type=str(w["type"]), stock_quantity=qty)
        for wid, (w, qty) in allocations.items()
    ]
    return ProductCreateOut(
        message="Product created successfully with warehouse assignments",
        product=_product_detail_out(product),
        warehouse_assignments=assignments,
        total_warehouses=len(assignments),
    )


@router.get("/{product_id}/stock-summary", response_model=StockSummaryOut)
def product_stock_summary(product_id: int):
    with db_errors("Stock"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT id, name, delivery_type FROM bigandbest.products WHERE id = %s;", (product_id,))
                product = cur.fetchone()
                if product is None:
                    raise HTTPException(status_code=404, detail="Product not found")

                cur.execute(
                    """
                    SELECT w.id AS warehouse_id, w.name AS warehouse_name, w.type AS warehouse_type,
                           s.stock_quantity, s.reserved_quantity, s.minimum_threshold, s.is_active,
                           s.last_restocked_at
                    FROM bigandbest.product_warehouse_stock s
                    JOIN bigandbest.warehouses w ON w.id = s.warehouse_id
                    WHERE s.product_id = %s AND s.is_active
                    ORDER BY w.type, w.id;
                    """,
                    (product_id,),
                )
                rows = cur.fetchall()

    stocks: List[WarehouseStockOut] = []
    for r in rows:
        stock = int(r["stock_quantity"] or 0)
        reserved = int(r["reserved_quantity"] or 0)
        threshold = int(r["minimum_threshold"] or 0)
        stocks.append(
            WarehouseStockOut(
                warehouse_id=int(r["warehouse_id"]),
                warehouse_name=str(r["warehouse_name"]),
                warehouse_type=str(r["warehouse_type"]),
                stock_quantity=stock,
                reserved_quantity=reserved,
                available_quantity=stock - reserved,
                minimum_threshold=threshold,
                is_low_stock=stock <= threshold,
                is_active=bool(r["is_active"]),
                last_restocked_at=r["last_restocked_at"],
            )
        )

    return StockSummaryOut(
        product_id=product_id,
        product_name=str(product["name"]),
        delivery_type=str(product["delivery_type"]),
        total_stock=sum(s.stock_quantity for s in stocks),
        total_reserved=sum(s.reserved_quantity for s in stocks),
        total_available=sum(s.available_quantity for s in stocks),
        warehouse_count=len(stocks),
        low_stock_warehouses=sum(1 for s in stocks if s.is_low_stock),
        central=[s for s in stocks if s.warehouse_type == "central"],
        zonal=[s for s in stocks if s.warehouse_type == "zonal"],
    )


@router.post("/{product_id}/distribute", response_model=DistributeOut, dependencies=[Depends(require_admin)])
def distribute_product(product_id: int, req: DistributeIn):
    with db_errors("Stock"):
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 FROM bigandbest.products WHERE id = %s;", (product_id,))
                if cur.fetchone() is None:
                    raise HTTPException(status_code=404, detail="Product not found")
            results = _distribute(conn, product_id, req.quantity_per_zone, req.specific_zones, req.force_distribution)
            conn.commit()

    summary = {action: sum(1 for r in results if r.action == action) for action in ("created", "updated", "skipped")}
    _log.info("product distributed id=%s %s", product_id, summary)
    return DistributeOut(
        message=f"Product distributed to {summary['created'] + summary['updated']} zones",
        product_id=product_id,
        results=results,
        summary=summary,
    )
