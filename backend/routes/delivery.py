from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from ..db import db_errors, get_conn
from ..delivery import (
    check_multiple_products,
    check_product_delivery,
    confirm_stock_deduction,
    product_delivery,
    release_reservation,
    reserve_stock,
    validate_cart,
    validate_pincode,
)
from ..models import (
    CartValidationIn,
    CartValidationOut,
    DeliveryCheckIn,
    DeliveryCheckOut,
    MultiDeliveryCheckIn,
    MultiDeliveryCheckOut,
    ProductDeliveryOut,
    StockOperationOut,
    StockReservationIn,
)
from ..security import require_admin


router = APIRouter(prefix="/api/delivery", tags=["delivery"])


@router.post("/check", response_model=DeliveryCheckOut)
def check_delivery(req: DeliveryCheckIn):
    validate_pincode(req.pincode)
    with db_errors("Delivery"):
        with get_conn() as conn:
            return check_product_delivery(conn, req.product_id, req.pincode, req.quantity)


@router.post("/check-multiple", response_model=MultiDeliveryCheckOut)
def check_delivery_multiple(req: MultiDeliveryCheckIn):
    validate_pincode(req.pincode)
    with db_errors("Delivery"):
        with get_conn() as conn:
            return check_multiple_products(conn, req.items, req.pincode)


@router.get("/product", response_model=ProductDeliveryOut)
def check_product_zones(product_id: int = Query(...), pincode: str = Query(...)):
    validate_pincode(pincode)
    with db_errors("Delivery"):
        with get_conn() as conn:
            return product_delivery(conn, product_id, pincode)


@router.post("/validate-cart", response_model=CartValidationOut)
def validate_cart_delivery(req: CartValidationIn):
    validate_pincode(req.delivery_pincode)
    with db_errors("Delivery"):
        with get_conn() as conn:
            result = validate_cart(conn, req.cart_items, req.delivery_pincode)

    if req.strict_delivery and result.unavailable_items:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Some items cannot be delivered to your location",
                "delivery_results": result.model_dump(),
            },
        )
    return result


@router.post("/reserve", response_model=StockOperationOut, dependencies=[Depends(require_admin)])
def reserve(req: StockReservationIn):
    with db_errors("Stock"):
        with get_conn() as conn:
            movements = reserve_stock(conn, req.product_id, req.warehouse_id, req.quantity, req.order_id)
            conn.commit()

    return StockOperationOut(
        message=f"Reserved {req.quantity} units for order {req.order_id}",
        product_id=req.product_id,
        warehouse_id=req.warehouse_id,
        order_id=req.order_id,
        movements=movements,
    )


@router.post("/confirm", response_model=StockOperationOut, dependencies=[Depends(require_admin)])
def confirm(req: StockReservationIn):
    with db_errors("Stock"):
        with get_conn() as conn:
            movements = confirm_stock_deduction(conn, req.product_id, req.warehouse_id, req.quantity, req.order_id)
            conn.commit()

    return StockOperationOut(
        message=f"Deducted {req.quantity} units for order {req.order_id}",
        product_id=req.product_id,
        warehouse_id=req.warehouse_id,
        order_id=req.order_id,
        movements=movements,
    )


@router.post("/release", response_model=StockOperationOut, dependencies=[Depends(require_admin)])
def release(req: StockReservationIn):
    with db_errors("Stock"):
        with get_conn() as conn:
            movements = release_reservation(conn, req.product_id, req.warehouse_id, req.quantity, req.order_id)
            conn.commit()

    return StockOperationOut(
        message=f"Released {req.quantity} units for order {req.order_id}",
        product_id=req.product_id,
        warehouse_id=req.warehouse_id,
        order_id=req.order_id,
        movements=movements,
    )
