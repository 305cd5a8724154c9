from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from psycopg.rows import dict_row

from ..db import db_errors, get_conn
from ..models import BannerIn, BannerOut, BannerUpdateIn, MessageOut
from ..security import require_admin


router = APIRouter(prefix="/api/promo-banners", tags=["promo_banners"])

_BANNER_COLUMNS = """
    id, title, subtitle, description, image_url, link, button_text, bg_color, accent_color, icon,
    display_order, active, created_at, updated_at
"""


def _banner_out(r: Dict[str, Any]) -> BannerOut:
    return BannerOut(**{k: r[k] for k in BannerOut.model_fields if k in r})


@router.get("", response_model=List[BannerOut])
def active_banners():
    with db_errors("Promo banner"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_BANNER_COLUMNS}
                    FROM bigandbest.promo_banners
                    WHERE active
                    ORDER BY display_order ASC, id ASC;
                    """
                )
                rows = cur.fetchall()
    return [_banner_out(r) for r in rows]


@router.post("", response_model=BannerOut, status_code=201, dependencies=[Depends(require_admin)])
def add_banner(req: BannerIn):
    data = req.model_dump()
    columns = list(data)

    with db_errors("Promo banner"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO bigandbest.promo_banners ({", ".join(columns)})
                    VALUES ({", ".join(["%s"] * len(columns))})
                    RETURNING {_BANNER_COLUMNS};
                    """,
                    [data[c] for c in columns],
                )
                row = cur.fetchone()
            conn.commit()
    return _banner_out(row)


@router.put("/{banner_id}", response_model=BannerOut, dependencies=[Depends(require_admin)])
def update_banner(banner_id: int, req: BannerUpdateIn):
    data = req.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="Nothing to update")

    assignments = ", ".join(f"{k} = %s" for k in data)
    with db_errors("Promo banner"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE bigandbest.promo_banners
                    SET {assignments}, updated_at = NOW()
                    WHERE id = %s
                    RETURNING {_BANNER_COLUMNS};
                    """,
                    list(data.values()) + [banner_id],
                )
                row = cur.fetchone()
                if row is None:
                    raise HTTPException(status_code=404, detail="Banner not found")
            conn.commit()
    return _banner_out(row)


@router.delete("/{banner_id}", response_model=MessageOut, dependencies=[Depends(require_admin)])
def delete_banner(banner_id: int):
    with db_errors("Promo banner"):
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM bigandbest.promo_banners WHERE id = %s RETURNING id;", (banner_id,))
                if cur.fetchone() is None:
                    raise HTTPException(status_code=404, detail="Banner not found")
            conn.commit()
    return MessageOut(message="Banner deleted successfully")


@router.patch("/{banner_id}/toggle", response_model=BannerOut, dependencies=[Depends(require_admin)])
def toggle_banner(banner_id: int):
    with db_errors("Promo banner"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE bigandbest.promo_banners
                    SET active = NOT active, updated_at = NOW()
                    WHERE id = %s
                    RETURNING {_BANNER_COLUMNS};
                    """,
                    (banner_id,),
                )
                row = cur.fetchone()
                if row is None:
                    raise HTTPException(status_code=404, detail="Banner not found")
            conn.commit()
    return _banner_out(row)
