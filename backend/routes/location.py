from __future__ import annotations

from fastapi import APIRouter, HTTPException
from psycopg.rows import dict_row

from ..db import db_errors, get_conn
from ..delivery import fetch_pincode_zones, validate_pincode
from ..models import PincodeDetailsOut, ShippingIn, ShippingOut, TaxIn, TaxOut


router = APIRouter(prefix="/api/location", tags=["location"])


def shipping_charge(rate: float, threshold: float | None, order_value: float) -> tuple[float, bool]:
    free = threshold is not None and order_value >= threshold
    return (0.0 if free else round(rate, 2)), free


@router.get("/pincode/{pincode}", response_model=PincodeDetailsOut)
def pincode_details(pincode: str):
    pincode = validate_pincode(pincode)

    with db_errors("Location"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                zones = fetch_pincode_zones(cur, pincode)

    if not zones:
        raise HTTPException(status_code=404, detail="Delivery not available in this area")

    # first active zone wins when a pincode sits in several
    z = zones[0]
    return PincodeDetailsOut(pincode=pincode, city=z["city"], state=z["state"], zone_name=z["zone_name"])


@router.post("/shipping", response_model=ShippingOut)
def calculate_shipping(req: ShippingIn):
    pincode = validate_pincode(req.pincode)

    with db_errors("Location"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT rate, free_shipping_threshold
                    FROM bigandbest.shipping_rates
                    WHERE pincode = %s AND is_active AND min_weight <= %s AND max_weight >= %s
                    ORDER BY min_weight DESC, id
                    LIMIT 1;
                    """,
                    (pincode, req.weight, req.weight),
                )
                row = cur.fetchone()

    if row is None:
        raise HTTPException(status_code=404, detail="Shipping not available for this pincode")

    threshold = float(row["free_shipping_threshold"]) if row["free_shipping_threshold"] is not None else None
    charge, free = shipping_charge(float(row["rate"]), threshold, req.order_value)
    return ShippingOut(
        pincode=pincode,
        weight=req.weight,
        order_value=req.order_value,
        shipping_charge=charge,
        free_shipping=free,
        free_shipping_threshold=threshold,
    )


@router.post("/tax", response_model=TaxOut)
def calculate_tax(req: TaxIn):
    state = req.state.strip()

    with db_errors("Location"):
        with get_conn() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT gst_rate, cgst_rate, sgst_rate, igst_rate
                    FROM bigandbest.tax_rates
                    WHERE lower(state) = lower(%s) AND is_active;
                    """,
                    (state,),
                )
                row = cur.fetchone()

    if row is None:
        raise HTTPException(status_code=404, detail="Tax rate not found for this state")

    gst = float(row["gst_rate"])
    tax_amount = round(req.amount * gst / 100, 2)
    return TaxOut(
        state=state,
        amount=req.amount,
        gst_rate=gst,
        cgst_rate=float(row["cgst_rate"]),
        sgst_rate=float(row["sgst_rate"]),
        igst_rate=float(row["igst_rate"]),
        tax_amount=tax_amount,
        total_amount=round(req.amount + tax_amount, 2),
    )
