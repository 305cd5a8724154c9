from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from psycopg.rows import dict_row

from ..db import db_errors, get_conn, page_window, pagination
from ..models import (
    EnquiryIn,
    EnquiryListOut,
    EnquiryOut,
    EnquiryUpdateIn,
    PartyAddressIn,
    WholesaleItemOut,
    WholesaleOrderIn,
    WholesaleOrderListOut,
    WholesaleOrderOut,
    WholesaleOrderUpdateIn,
)
from ..security import require_admin


router = APIRouter(prefix="/api/bulk-orders", tags=["bulk_orders"])

_log = logging.getLogger("bigandbest.bulk_orders")

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ENQUIRY_STATUSES = ("Pending", "In Progress", "Quoted", "Approved", "Rejected", "Completed")
ORDER_STATUSES = ("pending", "confirmed", "processing", "shipped", "delivered", "cancelled")
PAYMENT_STATUSES = ("PAYMENT_PENDING", "PAYMENT_SUCCESS", "PAYMENT_FAILED", "REFUNDED")

_ADDRESS_FIELDS = ("first_name", "last_name", "full_address", "apartment", "city", "state", "zip_code", "country")

_ENQUIRY_COLUMNS = """
    id, company_name, contact_person, email, phone, product_name, quantity, description, expected_price,
    delivery_timeline, gst_number, address, variant_id, variant_details, status, admin_notes,
    created_at, last_updated
"""


def _validate_email(email: str) -> str:
    e = (email or "").strip().lower()
    if not _EMAIL_RE.match(e):
        raise HTTPException(status_code=400, detail="Invalid email")
    return e


def _enquiry_out(r: Dict[str, Any]) -> EnquiryOut:
    return EnquiryOut(**{k: r[k] for k in EnquiryOut.model_fields if k in r})


def _flatten_address(prefix: str, address: Optional[PartyAddressIn]) -> Dict[str, Optional[str]]:
    data = address.model_dump() if address is not None else {}
    return {f"{prefix}_{f}": data.get(f) for f in _ADDRESS_FIELDS}


def _wholesale_out(r: Dict[str, Any], items: List[Dict[str, Any]]) -> WholesaleOrderOut:
    return WholesaleOrderOut(
        id=int(r["id"]),
        user_id=r["user_id"],
        total_price=float(r["total_price"]),
        email=r["email"],
        contact=r["contact"],
        company_name=r["company_name"],
        gst_number=r["gst_number"],
        notes=r["notes"],
        payment_status=r["payment_status"],
        order_status=r["order_status"],
        shipping_address={f: r.get(f"shipping_{f}") for f in _ADDRESS_FIELDS},
        billing_address={f: r.get(f"billing_{f}") for f in _ADDRESS_FIELDS},
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        items=[WholesaleItemOut(**{k: i[k] for k in WholesaleItemOut.model_fields if k in i}) for i in items],
    )


@router.post("/enquiry", response_model=EnquiryOut, status_code=201)
def create_enquiry(req: EnquiryIn):
    email = _validate_email(req.email)

    with db_errors("Enquiry"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO bigandbest.bulk_order_enquiries (
                        company_name, contact_person, email, phone, product_name, quantity, description,
                        expected_price, delivery_timeline, gst_number, address, variant_id, variant_details, status
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s::jsonb, 'Pending')
                    RETURNING {_ENQUIRY_COLUMNS};
                    """,
                    (
                        req.company_name.strip(),
                        req.contact_person.strip(),
                        email,
                        req.phone.strip(),
                        req.product_name.strip(),
                        req.quantity,
                        req.description,
                        req.expected_price,
                        req.delivery_timeline,
                        req.gst_number,
                        req.address,
                        req.variant_id,
                        json.dumps(req.variant_details) if req.variant_details is not None else None,
                    ),
                )
                row = cur.fetchone()
            conn.commit()

    _log.info("bulk enquiry created id=%s company=%s qty=%s", row["id"], row["company_name"], row["quantity"])
    return _enquiry_out(row)


@router.get("/enquiries", response_model=EnquiryListOut, dependencies=[Depends(require_admin)])
def list_enquiries(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=200),
    status: str | None = Query(None),
):
    if status and status not in ENQUIRY_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status. Allowed: {list(ENQUIRY_STATUSES)}")

    where_sql = "WHERE status = %s" if status else ""
    params: List[Any] = [status] if status else []
    lim, offset = page_window(page, limit)

    with db_errors("Enquiry"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(f"SELECT COUNT(*) AS n FROM bigandbest.bulk_order_enquiries {where_sql};", params)
                total = int(cur.fetchone()["n"])
                cur.execute(
                    f"""
                    SELECT {_ENQUIRY_COLUMNS}
                    FROM bigandbest.bulk_order_enquiries
                    {where_sql}
                    ORDER BY created_at DESC, id DESC
                    LIMIT %s OFFSET %s;
                    """,
                    params + [lim, offset],
                )
                rows = cur.fetchall()

    return EnquiryListOut(enquiries=[_enquiry_out(r) for r in rows], pagination=pagination(page, limit, total))


@router.put("/enquiry/{enquiry_id}", response_model=EnquiryOut, dependencies=[Depends(require_admin)])
def update_enquiry(enquiry_id: int, req: EnquiryUpdateIn):
    if req.status is None and req.admin_notes is None:
        raise HTTPException(status_code=400, detail="Nothing to update")
    if req.status is not None and req.status not in ENQUIRY_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status. Allowed: {list(ENQUIRY_STATUSES)}")

    with db_errors("Enquiry"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE bigandbest.bulk_order_enquiries
                    SET status = COALESCE(%s, status),
                        admin_notes = COALESCE(%s, admin_notes),
                        last_updated = NOW()
                    WHERE id = %s
                    RETURNING {_ENQUIRY_COLUMNS};
                    """,
                    (req.status, req.admin_notes, enquiry_id),
                )
                row = cur.fetchone()
                if row is None:
                    raise HTTPException(status_code=404, detail="Enquiry not found")
            conn.commit()

    return _enquiry_out(row)


@router.post("/wholesale", response_model=WholesaleOrderOut, status_code=201)
def create_wholesale_order(req: WholesaleOrderIn):
    email = _validate_email(req.email)
    address_cols = {**_flatten_address("shipping", req.shipping_address), **_flatten_address("billing", req.billing_address)}

    columns = ["user_id", "total_price", "email", "contact", "company_name", "gst_number", "notes"] + list(address_cols)
    values = [req.user_id, req.total_price, email, req.contact.strip(), req.company_name, req.gst_number, req.notes]
    values += list(address_cols.values())
    placeholders = ", ".join(["%s"] * len(columns))

    with db_errors("Wholesale order"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO bigandbest.wholesale_bulk_orders ({", ".join(columns)})
                    VALUES ({placeholders})
                    RETURNING *;
                    """,
                    values,
                )
                order = cur.fetchone()
                order_id = int(order["id"])

                items: List[Dict[str, Any]] = []
                for it in req.items:
                    cur.execute(
                        """
                        INSERT INTO bigandbest.wholesale_bulk_order_items (
                            order_id, product_id, variant_id, quantity, price, product_name, variant_name
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s)
                        RETURNING *;
                        """,
                        (order_id, it.product_id, it.variant_id, it.quantity, it.price, it.product_name, it.variant_name),
                    )
                    items.append(cur.fetchone())

                if req.user_id:
                    cur.execute("DELETE FROM bigandbest.cart_items WHERE user_id = %s;", (req.user_id,))
            conn.commit()

    _log.info("wholesale order created id=%s items=%s total=%s", order_id, len(items), req.total_price)
    return _wholesale_out(order, items)


@router.get("/wholesale", response_model=WholesaleOrderListOut, dependencies=[Depends(require_admin)])
def list_wholesale_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=200),
    status: str | None = Query(None),
):
    if status and status not in ORDER_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status. Allowed: {list(ORDER_STATUSES)}")

    where_sql = "WHERE NOT is_deleted" + (" AND order_status = %s" if status else "")
    params: List[Any] = [status] if status else []
    lim, offset = page_window(page, limit)

    with db_errors("Wholesale order"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(f"SELECT COUNT(*) AS n FROM bigandbest.wholesale_bulk_orders {where_sql};", params)
                total = int(cur.fetchone()["n"])
                cur.execute(
                    f"""
                    SELECT * FROM bigandbest.wholesale_bulk_orders
                    {where_sql}
                    ORDER BY created_at DESC, id DESC
                    LIMIT %s OFFSET %s;
                    """,
                    params + [lim, offset],
                )
                orders = cur.fetchall()

                items_by: Dict[int, List[Dict[str, Any]]] = {}
                if orders:
                    cur.execute(
                        """
                        SELECT * FROM bigandbest.wholesale_bulk_order_items
                        WHERE order_id = ANY(%s::bigint[])
                        ORDER BY id;
                        """,
                        ([int(o["id"]) for o in orders],),
                    )
                    for i in cur.fetchall():
                        items_by.setdefault(int(i["order_id"]), []).append(i)

    return WholesaleOrderListOut(
        orders=[_wholesale_out(o, items_by.get(int(o["id"]), [])) for o in orders],
        pagination=pagination(page, limit, total),
    )


@router.put("/wholesale/{order_id}", response_model=WholesaleOrderOut, dependencies=[Depends(require_admin)])
def update_wholesale_order(order_id: int, req: WholesaleOrderUpdateIn):
    if req.order_status is None and req.payment_status is None:
        raise HTTPException(status_code=400, detail="Nothing to update")
    if req.order_status is not None and req.order_status not in ORDER_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid order_status. Allowed: {list(ORDER_STATUSES)}")
    if req.payment_status is not None and req.payment_status not in PAYMENT_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid payment_status. Allowed: {list(PAYMENT_STATUSES)}")

    with db_errors("Wholesale order"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    UPDATE bigandbest.wholesale_bulk_orders
                    SET order_status = COALESCE(%s, order_status),
                        payment_status = COALESCE(%s, payment_status),
                        updated_at = NOW()
                    WHERE id = %s AND NOT is_deleted
                    RETURNING *;
                    """,
                    (req.order_status, req.payment_status, order_id),
                )
                order = cur.fetchone()
                if order is None:
                    raise HTTPException(status_code=404, detail="Order not found")
                cur.execute(
                    "SELECT * FROM bigandbest.wholesale_bulk_order_items WHERE order_id = %s ORDER BY id;",
                    (order_id,),
                )
                items = cur.fetchall()
            conn.commit()

    return _wholesale_out(order, items)
