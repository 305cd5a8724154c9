from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query
from psycopg.rows import dict_row

from ..db import db_errors, get_conn
from ..models import ProductTiersOut, QuoteOut, TierOut, TiersOut, TiersSaveIn
from ..pricing import normalise_tiers, quote
from ..security import require_admin


router = APIRouter(prefix="/api/bulk-wholesale", tags=["bulk_wholesale"])

_log = logging.getLogger("bigandbest.bulk_wholesale")

_TIER_COLUMNS = """
    id, product_id, tier_name, min_quantity, max_quantity, bulk_price, discount_percentage,
    sort_order, is_bulk_enabled
"""


def _tier_out(r: Dict[str, Any]) -> TierOut:
    return TierOut(**{k: r[k] for k in TierOut.model_fields if k in r})


def _enabled_tiers(cur, product_id: int) -> List[TierOut]:
    cur.execute(
        f"""
        SELECT {_TIER_COLUMNS}
        FROM bigandbest.bulk_wholesale_settings
        WHERE product_id = %s AND is_bulk_enabled
        ORDER BY sort_order;
        """,
        (product_id,),
    )
    return [_tier_out(r) for r in cur.fetchall()]


@router.get("/products/all", response_model=List[ProductTiersOut])
def products_with_tiers():
    with db_errors("Wholesale tiers"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT id, name, price, image FROM bigandbest.products WHERE active ORDER BY id;")
                products = cur.fetchall()
                cur.execute(
                    f"""
                    SELECT {_TIER_COLUMNS}
                    FROM bigandbest.bulk_wholesale_settings
                    WHERE is_bulk_enabled
                    ORDER BY product_id, sort_order;
                    """
                )
                tiers = cur.fetchall()

    by_product: Dict[int, List[TierOut]] = {}
    for t in tiers:
        by_product.setdefault(int(t["product_id"]), []).append(_tier_out(t))

    return [
        ProductTiersOut(
            id=int(p["id"]),
            name=p["name"],
            price=float(p["price"]),
            image=p["image"],
            tiers=by_product.get(int(p["id"]), []),
        )
        for p in products
    ]


@router.post("/save", response_model=TiersOut, dependencies=[Depends(require_admin)])
def save_tiers(req: TiersSaveIn):
    tiers = normalise_tiers(req.product_id, req.tiers)

    with db_errors("Wholesale tiers"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT 1 FROM bigandbest.products WHERE id = %s;", (req.product_id,))
                if cur.fetchone() is None:
                    raise HTTPException(status_code=404, detail="Product not found")

                cur.execute("DELETE FROM bigandbest.bulk_wholesale_settings WHERE product_id = %s;", (req.product_id,))
                saved: List[TierOut] = []
                for t in tiers:
                    cur.execute(
                        f"""
                        INSERT INTO bigandbest.bulk_wholesale_settings (
                            product_id, tier_name, min_quantity, max_quantity, bulk_price,
                            discount_percentage, sort_order, is_bulk_enabled
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                        RETURNING {_TIER_COLUMNS};
                        """,
                        (
                            t.product_id,
                            t.tier_name,
                            t.min_quantity,
                            t.max_quantity,
                            t.bulk_price,
                            t.discount_percentage,
                            t.sort_order,
                            t.is_bulk_enabled,
                        ),
                    )
                    saved.append(_tier_out(cur.fetchone()))
            conn.commit()

    _log.info("wholesale tiers saved product=%s tiers=%s", req.product_id, len(saved))
    return TiersOut(
        product_id=req.product_id,
        has_bulk_pricing=any(t.is_bulk_enabled for t in saved),
        total_tiers=len(saved),
        tiers=saved,
        message="Bulk pricing tiers saved. Product pricing was not changed.",
    )


@router.get("/{product_id}/price", response_model=QuoteOut)
def quote_price(product_id: int, quantity: int = Query(..., ge=1)):
    with db_errors("Wholesale tiers"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT price FROM bigandbest.products WHERE id = %s AND active;", (product_id,))
                product = cur.fetchone()
                if product is None:
                    raise HTTPException(status_code=404, detail="Product not found")
                tiers = _enabled_tiers(cur, product_id)

    return quote(product_id, float(product["price"]), tiers, quantity)


@router.get("/{product_id}", response_model=TiersOut)
def product_tiers(product_id: int):
    with db_errors("Wholesale tiers"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                tiers = _enabled_tiers(cur, product_id)

    return TiersOut(
        product_id=product_id,
        has_bulk_pricing=bool(tiers),
        total_tiers=len(tiers),
        tiers=tiers,
        message=None if tiers else "No bulk pricing configured for this product",
    )
