from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query
from psycopg.rows import dict_row

from ..db import db_errors, get_conn
from ..models import BulkProductOut, BulkSettingsIn, BulkSettingsOut, VariantBulkOut
from ..security import require_admin
from .variants import variant_out


router = APIRouter(prefix="/api/bulk-products", tags=["bulk_products"])

_SETTINGS_COLUMNS = """
    id, product_id, variant_id, min_quantity, max_quantity, bulk_price, discount_percentage,
    is_bulk_enabled, is_variant_bulk, tier_name
"""


def _settings_out(r: Dict[str, Any]) -> BulkSettingsOut:
    return BulkSettingsOut(**{k: r[k] for k in BulkSettingsOut.model_fields if k in r})


@router.get("/products", response_model=List[BulkProductOut])
def bulk_products():
    with db_errors("Bulk settings"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT id, name, price, image FROM bigandbest.products WHERE active ORDER BY id;")
                products = cur.fetchall()
                cur.execute(f"SELECT {_SETTINGS_COLUMNS} FROM bigandbest.bulk_product_settings ORDER BY product_id, id;")
                settings = cur.fetchall()
                cur.execute(
                    """
                    SELECT id, product_id, variant_name, variant_value, price, mrp, stock_quantity, sku, weight,
                           dimensions, is_active, created_at, updated_at
                    FROM bigandbest.product_variants
                    WHERE is_active
                    ORDER BY product_id, price;
                    """
                )
                variants = cur.fetchall()

    settings_by: Dict[int, List[BulkSettingsOut]] = {}
    for s in settings:
        settings_by.setdefault(int(s["product_id"]), []).append(_settings_out(s))
    variants_by: Dict[int, list] = {}
    for v in variants:
        variants_by.setdefault(int(v["product_id"]), []).append(variant_out(v))

    return [
        BulkProductOut(
            id=int(p["id"]),
            name=p["name"],
            price=float(p["price"]),
            image=p["image"],
            bulk_settings=settings_by.get(int(p["id"]), []),
            variants=variants_by.get(int(p["id"]), []),
        )
        for p in products
    ]


@router.get("/product/{product_id}", response_model=List[BulkSettingsOut])
def product_bulk_settings(product_id: int, variant_id: int | None = Query(None)):
    sql = f"SELECT {_SETTINGS_COLUMNS} FROM bigandbest.bulk_product_settings WHERE product_id = %s"
    params: List[Any] = [product_id]
    if variant_id is not None:
        sql += " AND variant_id = %s"
        params.append(variant_id)
    else:
        sql += " AND variant_id IS NULL"
    sql += " ORDER BY min_quantity;"

    with db_errors("Bulk settings"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
    return [_settings_out(r) for r in rows]


@router.get("/variant/{variant_id}", response_model=VariantBulkOut)
def variant_bulk_settings(variant_id: int):
    with db_errors("Bulk settings"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_SETTINGS_COLUMNS}
                    FROM bigandbest.bulk_product_settings
                    WHERE variant_id = %s
                    ORDER BY min_quantity;
                    """,
                    (variant_id,),
                )
                rows = cur.fetchall()

    settings = [_settings_out(r) for r in rows]
    return VariantBulkOut(
        variant_id=variant_id,
        has_bulk_pricing=any(s.is_bulk_enabled for s in settings),
        settings=settings,
    )


@router.put("/settings/{product_id}", response_model=BulkSettingsOut, dependencies=[Depends(require_admin)])
def upsert_bulk_settings(product_id: int, req: BulkSettingsIn):
    if req.max_quantity is not None and req.max_quantity < req.min_quantity:
        raise HTTPException(status_code=400, detail="max_quantity must be greater than or equal to min_quantity")

    with db_errors("Bulk settings"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT 1 FROM bigandbest.products WHERE id = %s;", (product_id,))
                if cur.fetchone() is None:
                    raise HTTPException(status_code=404, detail="Product not found")

                cur.execute(
                    f"""
                    INSERT INTO bigandbest.bulk_product_settings (
                        product_id, variant_id, min_quantity, max_quantity, bulk_price, discount_percentage,
                        is_bulk_enabled, is_variant_bulk, tier_name
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (product_id, variant_id) DO UPDATE SET
                        min_quantity = EXCLUDED.min_quantity,
                        max_quantity = EXCLUDED.max_quantity,
                        bulk_price = EXCLUDED.bulk_price,
                        discount_percentage = EXCLUDED.discount_percentage,
                        is_bulk_enabled = EXCLUDED.is_bulk_enabled,
                        is_variant_bulk = EXCLUDED.is_variant_bulk,
                        tier_name = EXCLUDED.tier_name,
                        updated_at = NOW()
                    RETURNING {_SETTINGS_COLUMNS};
                    """,
                    (
                        product_id,
                        req.variant_id,
                        req.min_quantity,
                        req.max_quantity,
                        req.bulk_price,
                        req.discount_percentage,
                        req.is_bulk_enabled,
                        req.variant_id is not None,
                        req.tier_name,
                    ),
                )
                row = cur.fetchone()
            conn.commit()

    return _settings_out(row)
