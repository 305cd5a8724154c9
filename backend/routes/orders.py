from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException

from ..db import db_errors, get_conn
from ..delivery import validate_cart, validate_pincode
from ..models import CartItemIn, CartValidationOut, DetailedAddressIn, OrderCreateIn, OrderCreateOut


router = APIRouter(prefix="/api/orders", tags=["orders"])

_log = logging.getLogger("bigandbest.orders")


def compose_address(addr: Optional[DetailedAddressIn]) -> str:
    if addr is None:
        return ""
    street = (
        f"{addr.house_number} {addr.street_address}"
        if addr.house_number and addr.street_address
        else addr.street_address
    )
    parts = [
        street,
        addr.suite_unit_floor,
        addr.locality,
        addr.area,
        addr.city,
        addr.state,
        addr.postal_code,
        addr.country or "India",
        f"Near {addr.landmark}" if addr.landmark else None,
    ]
    return ", ".join(p.strip() for p in parts if p and p.strip())


@router.post("/create-with-bulk", response_model=OrderCreateOut, status_code=201)
def create_order_with_bulk_support(req: OrderCreateIn):
    has_bulk = any(it.is_bulk_order for it in req.items)
    pincode = validate_pincode(req.delivery_pincode) if req.delivery_pincode else None

    addr = req.detailed_address
    gps = req.gps_location
    address = compose_address(addr) or (req.address or "").strip()
    if not address:
        raise HTTPException(status_code=400, detail="Delivery address is required")

    delivery: CartValidationOut | None = None
    with db_errors("Order"):
        with get_conn() as conn:
            if pincode:
                delivery = validate_cart(
                    conn,
                    [CartItemIn(product_id=it.product_id, quantity=it.quantity) for it in req.items],
                    pincode,
                )
                if req.strict_delivery and delivery.unavailable_items:
                    raise HTTPException(
                        status_code=400,
                        detail={
                            "error": "Some items cannot be delivered to your location",
                            "delivery_results": delivery.model_dump(),
                        },
                    )

            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO bigandbest.orders (
                        user_id, subtotal, shipping, total, address, payment_method, status,
                        is_bulk_order, bulk_order_type, requires_approval,
                        razorpay_order_id, razorpay_payment_id, razorpay_signature,
                        gst_number, company_name, delivery_pincode,
                        shipping_house_number, shipping_street_address, shipping_suite_unit_floor,
                        shipping_locality, shipping_area, shipping_city, shipping_state,
                        shipping_postal_code, shipping_country, shipping_landmark,
                        shipping_latitude, shipping_longitude, shipping_gps_address
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, 'pending', %s, %s, %s, %s, %s, %s, %s, %s, %s,
                            %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING id;
                    """,
                    (
                        req.user_id,
                        req.subtotal,
                        req.shipping,
                        req.total,
                        address,
                        "bulk_order" if has_bulk else req.payment_method,
                        has_bulk,
                        "integrated" if has_bulk else None,
                        has_bulk,
                        None if has_bulk else req.razorpay_order_id,
                        None if has_bulk else req.razorpay_payment_id,
                        None if has_bulk else req.razorpay_signature,
                        req.gst_number,
                        req.company_name,
                        pincode,
                        addr.house_number if addr else None,
                        addr.street_address if addr else None,
                        addr.suite_unit_floor if addr else None,
                        addr.locality if addr else None,
                        addr.area if addr else None,
                        addr.city if addr else None,
                        addr.state if addr else None,
                        addr.postal_code if addr else None,
                        (addr.country or "India") if addr else "India",
                        addr.landmark if addr else None,
                        gps.latitude if gps else None,
                        gps.longitude if gps else None,
                        gps.formatted_address if gps else None,
                    ),
                )
                order_id = int(cur.fetchone()[0])

                cur.executemany(
                    """
                    INSERT INTO bigandbest.order_items (
                        order_id, product_id, variant_id, quantity, price, original_price, is_bulk_order, bulk_range
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s);
                    """,
                    [
                        (
                            order_id,
                            it.product_id,
                            it.variant_id,
                            it.quantity,
                            it.price,
                            it.original_price,
                            it.is_bulk_order,
                            it.bulk_range,
                        )
                        for it in req.items
                    ],
                )
                cur.execute("DELETE FROM bigandbest.cart_items WHERE user_id = %s;", (req.user_id,))
            conn.commit()

    _log.info("order created id=%s bulk=%s items=%s total=%s", order_id, has_bulk, len(req.items), req.total)
    return OrderCreateOut(
        message=(
            "Bulk order created successfully. Our team will contact you soon."
            if has_bulk
            else "Order placed successfully"
        ),
        order_id=order_id,
        is_bulk_order=has_bulk,
        status="pending",
        delivery_validation=delivery,
    )
