from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from psycopg.rows import dict_row

from ..db import db_errors, get_conn
from ..models import MessageOut, ProductWithVariantsOut, VariantIn, VariantOut, VariantUpdateIn
from ..security import require_admin


router = APIRouter(prefix="/api/product-variants", tags=["variants"])

_log = logging.getLogger("bigandbest.variants")

_VARIANT_COLUMNS = """
    id, product_id, variant_name, variant_value, price, mrp, stock_quantity, sku, weight,
    dimensions, is_active, created_at, updated_at
"""


def variant_out(r: Dict[str, Any]) -> VariantOut:
    return VariantOut(**{k: r[k] for k in VariantOut.model_fields if k in r})


def _ensure_product(cur, product_id: int) -> None:
    cur.execute("SELECT 1 FROM bigandbest.products WHERE id = %s;", (product_id,))
    if cur.fetchone() is None:
        raise HTTPException(status_code=404, detail="Product not found")


@router.get("/products-with-variants", response_model=List[ProductWithVariantsOut])
def products_with_variants():
    with db_errors("Variant"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT id, name, price, image FROM bigandbest.products WHERE active ORDER BY id;")
                products = cur.fetchall()
                cur.execute(
                    f"""
                    SELECT {_VARIANT_COLUMNS}
                    FROM bigandbest.product_variants
                    WHERE is_active
                    ORDER BY product_id, price ASC;
                    """
                )
                variants = cur.fetchall()

    by_product: Dict[int, List[VariantOut]] = {}
    for v in variants:
        by_product.setdefault(int(v["product_id"]), []).append(variant_out(v))

    return [
        ProductWithVariantsOut(
            id=int(p["id"]),
            name=p["name"],
            price=float(p["price"]),
            image=p["image"],
            variants=by_product.get(int(p["id"]), []),
        )
        for p in products
    ]


@router.get("/product/{product_id}/variants", response_model=List[VariantOut])
def product_variants(product_id: int):
    with db_errors("Variant"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_VARIANT_COLUMNS}
                    FROM bigandbest.product_variants
                    WHERE product_id = %s AND is_active
                    ORDER BY price ASC;
                    """,
                    (product_id,),
                )
                rows = cur.fetchall()
    return [variant_out(r) for r in rows]


@router.post(
    "/product/{product_id}/variants",
    response_model=VariantOut,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def add_variant(product_id: int, req: VariantIn):
    with db_errors("Variant"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                _ensure_product(cur, product_id)
                cur.execute(
                    f"""
                    INSERT INTO bigandbest.product_variants (
                        product_id, variant_name, variant_value, price, mrp, stock_quantity,
                        sku, weight, dimensions, is_active
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING {_VARIANT_COLUMNS};
                    """,
                    (
                        product_id,
                        req.variant_name.strip(),
                        req.variant_value.strip(),
                        req.price,
                        req.mrp,
                        req.stock_quantity,
                        req.sku,
                        req.weight,
                        req.dimensions,
                        req.is_active,
                    ),
                )
                row = cur.fetchone()
            conn.commit()

    _log.info("variant added product=%s variant=%s", product_id, row["id"])
    return variant_out(row)


@router.put("/variant/{variant_id}", response_model=VariantOut, dependencies=[Depends(require_admin)])
def update_variant(variant_id: int, req: VariantUpdateIn):
    # product_id and parent product price fields are dropped by VariantUpdateIn
    changes = {k: v for k, v in req.model_dump(exclude_unset=True).items() if v is not None or k in ("sku", "dimensions", "mrp", "weight")}
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    assignments = ", ".join(f"{col} = %s" for col in changes)
    with db_errors("Variant"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE bigandbest.product_variants
                    SET {assignments}, updated_at = NOW()
                    WHERE id = %s
                    RETURNING {_VARIANT_COLUMNS};
                    """,
                    list(changes.values()) + [variant_id],
                )
                row = cur.fetchone()
                if row is None:
                    raise HTTPException(status_code=404, detail="Variant not found")
            conn.commit()

    return variant_out(row)


@router.delete("/variant/{variant_id}", response_model=MessageOut, dependencies=[Depends(require_admin)])
def delete_variant(variant_id: int):
    with db_errors("Variant"):
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE bigandbest.product_variants
                    SET is_active = FALSE, updated_at = NOW()
                    WHERE id = %s
                    RETURNING id;
                    """,
                    (variant_id,),
                )
                if cur.fetchone() is None:
                    raise HTTPException(status_code=404, detail="Variant not found")
            conn.commit()

    return MessageOut(message="Variant deleted successfully")
