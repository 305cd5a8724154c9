from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from fastapi import HTTPException
from psycopg.rows import dict_row

from .models import (
    CartItemIn,
    CartItemResult,
    CartValidationOut,
    DeliveryCheckOut,
    DeliveryInfo,
    DeliveryItemIn,
    MultiDeliveryCheckOut,
    PincodeZoneOut,
    ProductDeliveryOut,
    ProductInfo,
    StockMovementOut,
    WarehouseRef,
)


_log = logging.getLogger("bigandbest.delivery")

_PINCODE_RE = re.compile(r"^[0-9]{6}$")

NATIONWIDE = "nationwide"
ZONAL = "zonal"


def validate_pincode(pincode: Any) -> str:
    p = str(pincode or "").strip()
    if not _PINCODE_RE.match(p):
        raise HTTPException(status_code=400, detail="Invalid pincode format. Pincode must be 6 digits")
    return p


def is_valid_pincode(pincode: Any) -> bool:
    return bool(_PINCODE_RE.match(str(pincode or "").strip()))


@dataclass(frozen=True)
class StockCandidate:
    warehouse_id: int
    warehouse_name: str
    warehouse_type: str
    stock_quantity: int
    reserved_quantity: int
    zone_id: Optional[int] = None

    @property
    def available(self) -> int:
        return self.stock_quantity - self.reserved_quantity


@dataclass(frozen=True)
class StockDecision:
    available: bool
    message: str
    warehouse: Optional[StockCandidate] = None
    fallback_used: bool = False
    fallback_reason: Optional[str] = None
    reason: Optional[str] = None


def zone_allows(delivery_type: str, allowed_zone_ids: Optional[Iterable[int]], zone_id: int) -> bool:
    """Nationwide products ship to every zone; zonal ones only to their listed zones."""
    if delivery_type == NATIONWIDE:
        return True
    return int(zone_id) in {int(z) for z in (allowed_zone_ids or [])}


def pick_warehouse(candidates: Sequence[StockCandidate], quantity: int) -> Optional[StockCandidate]:
    usable = [c for c in candidates if c.available >= quantity]
    if not usable:
        return None
    # most available stock first, lowest id on ties
    return max(usable, key=lambda c: (c.available, -c.warehouse_id))


def decide_stock(
    delivery_type: str,
    zonal: Sequence[StockCandidate],
    central: Sequence[StockCandidate],
    quantity: int,
) -> StockDecision:
    local = pick_warehouse(zonal, quantity)

    if delivery_type == ZONAL:
        if local is not None:
            return StockDecision(available=True, message="Available from zonal warehouse", warehouse=local)
        return StockDecision(
            available=False,
            message="Product not available in your area",
            reason="zonal_out_of_stock",
        )

    if local is not None:
        return StockDecision(available=True, message="Available from local warehouse", warehouse=local)

    fallback = pick_warehouse(central, quantity)
    if fallback is not None:
        return StockDecision(
            available=True,
            message="Available from central warehouse",
            warehouse=fallback,
            fallback_used=True,
            fallback_reason="local_warehouse_out_of_stock",
        )

    return StockDecision(available=False, message="Out of stock", reason="insufficient_stock")


_PRODUCT_SQL = """
    SELECT id, name, delivery_type, allowed_zone_ids, active
    FROM bigandbest.products
    WHERE id = %s;
"""

_PINCODE_ZONES_SQL = """
    SELECT z.id AS zone_id, z.name AS zone_name, z.display_name, z.is_nationwide,
           zp.city, zp.state
    FROM bigandbest.zone_pincodes zp
    JOIN bigandbest.delivery_zones z ON z.id = zp.zone_id
    WHERE zp.pincode = %s
      AND zp.is_active
      AND z.is_active
    ORDER BY z.id;
"""

_ZONAL_STOCK_SQL = """
    SELECT w.id AS warehouse_id, w.name AS warehouse_name, w.type AS warehouse_type,
           s.stock_quantity, s.reserved_quantity, wz.zone_id
    FROM bigandbest.product_warehouse_stock s
    JOIN bigandbest.warehouses w ON w.id = s.warehouse_id
    JOIN bigandbest.warehouse_zones wz ON wz.warehouse_id = w.id
    WHERE s.product_id = %s
      AND wz.zone_id = ANY(%s::bigint[])
      AND w.type = 'zonal'
      AND w.is_active
      AND wz.is_active
      AND s.is_active
    ORDER BY wz.priority, w.id;
"""

_CENTRAL_STOCK_SQL = """
    SELECT w.id AS warehouse_id, w.name AS warehouse_name, w.type AS warehouse_type,
           s.stock_quantity, s.reserved_quantity
    FROM bigandbest.product_warehouse_stock s
    JOIN bigandbest.warehouses w ON w.id = s.warehouse_id
    WHERE s.product_id = %s
      AND w.type = 'central'
      AND w.is_active
      AND s.is_active
    ORDER BY w.id;
"""

_MOVEMENT_SQL = """
    SELECT out_stock, out_reserved, out_movement_id
    FROM bigandbest.update_stock_with_movement(
        %s::bigint, %s::bigint, %s::text, %s::int, %s::text, %s::text, %s::text, %s::text
    );
"""


def fetch_pincode_zones(cur, pincode: str) -> List[Dict[str, Any]]:
    cur.execute(_PINCODE_ZONES_SQL, (pincode,))
    return list(cur.fetchall())


def _candidates(rows: Iterable[Dict[str, Any]]) -> List[StockCandidate]:
    return [
        StockCandidate(
            warehouse_id=int(r["warehouse_id"]),
            warehouse_name=str(r["warehouse_name"]),
            warehouse_type=str(r["warehouse_type"]),
            stock_quantity=int(r["stock_quantity"] or 0),
            reserved_quantity=int(r["reserved_quantity"] or 0),
            zone_id=int(r["zone_id"]) if r.get("zone_id") is not None else None,
        )
        for r in rows
    ]


def _zone_out(z: Dict[str, Any]) -> PincodeZoneOut:
    return PincodeZoneOut(
        zone_id=int(z["zone_id"]),
        zone_name=str(z["zone_name"]),
        display_name=str(z["display_name"] or z["zone_name"]),
        is_nationwide=bool(z["is_nationwide"]),
        city=z.get("city"),
        state=z.get("state"),
    )


def zones_for_pincode(conn, pincode: str) -> List[PincodeZoneOut]:
    pincode = validate_pincode(pincode)
    with conn.cursor(row_factory=dict_row) as cur:
        return [_zone_out(z) for z in fetch_pincode_zones(cur, pincode)]


def check_product_delivery(conn, product_id: int, pincode: str, quantity: int = 1) -> DeliveryCheckOut:
    """Resolve whether `quantity` units of a product can ship to `pincode` and from where."""
    pincode = validate_pincode(pincode)
    if int(quantity) < 1:
        raise HTTPException(status_code=400, detail="Quantity must be a positive integer")

    with conn.cursor(row_factory=dict_row) as cur:
        cur.execute(_PRODUCT_SQL, (product_id,))
        product = cur.fetchone()
        if product is None:
            return DeliveryCheckOut(
                success=False,
                deliverable=False,
                product_id=product_id,
                requested_quantity=quantity,
                error="Product not found",
                message="Product not found",
            )

        delivery_type = str(product["delivery_type"] or NATIONWIDE)
        product_info = ProductInfo(id=int(product["id"]), name=str(product["name"]), delivery_type=delivery_type)

        if not product["active"]:
            return DeliveryCheckOut(
                success=True,
                deliverable=False,
                product_id=product_id,
                requested_quantity=quantity,
                message="Product is inactive",
                reason="product_inactive",
                product_info=product_info,
            )

        zones = fetch_pincode_zones(cur, pincode)
        if not zones:
            return DeliveryCheckOut(
                success=False,
                deliverable=False,
                product_id=product_id,
                requested_quantity=quantity,
                error="Pincode not serviceable",
                message="This pincode is not in our delivery network",
                product_info=product_info,
            )

        eligible = [z for z in zones if zone_allows(delivery_type, product["allowed_zone_ids"], z["zone_id"])]
        if not eligible:
            first = zones[0]
            return DeliveryCheckOut(
                success=True,
                deliverable=False,
                product_id=product_id,
                requested_quantity=quantity,
                message="Product not available in your area",
                reason="zone_restriction",
                product_info=product_info,
                delivery_info=DeliveryInfo(zone_id=int(first["zone_id"]), zone_name=str(first["zone_name"]), pincode=pincode),
            )

        cur.execute(_ZONAL_STOCK_SQL, (product_id, [int(z["zone_id"]) for z in eligible]))
        zonal = _candidates(cur.fetchall())
        central: List[StockCandidate] = []
        if delivery_type == NATIONWIDE:
            cur.execute(_CENTRAL_STOCK_SQL, (product_id,))
            central = _candidates(cur.fetchall())

    decision = decide_stock(delivery_type, zonal, central, quantity)

    zone = eligible[0]
    if decision.warehouse is not None and decision.warehouse.zone_id is not None:
        zone = next((z for z in eligible if int(z["zone_id"]) == decision.warehouse.zone_id), zone)

    out = DeliveryCheckOut(
        success=True,
        deliverable=decision.available,
        product_id=product_id,
        requested_quantity=quantity,
        message=decision.message,
        reason=decision.reason,
        fallback_used=decision.fallback_used,
        fallback_reason=decision.fallback_reason,
        product_info=product_info,
        delivery_info=DeliveryInfo(zone_id=int(zone["zone_id"]), zone_name=str(zone["zone_name"]), pincode=pincode),
    )
    if decision.warehouse is not None:
        out.source_warehouse = WarehouseRef(
            id=decision.warehouse.warehouse_id,
            name=decision.warehouse.warehouse_name,
            type=decision.warehouse.warehouse_type,
        )
        out.available_quantity = decision.warehouse.available
    return out


def check_multiple_products(conn, items: Sequence[DeliveryItemIn], pincode: str) -> MultiDeliveryCheckOut:
    pincode = validate_pincode(pincode)
    results = [check_product_delivery(conn, it.product_id, pincode, it.quantity) for it in items]
    unavailable = [r for r in results if not r.deliverable]
    return MultiDeliveryCheckOut(
        all_deliverable=not unavailable,
        products=results,
        unavailable_products=unavailable,
        summary={
            "total_products": len(results),
            "deliverable_count": len(results) - len(unavailable),
            "unavailable_count": len(unavailable),
        },
    )


def product_delivery(conn, product_id: int, pincode: str) -> ProductDeliveryOut:
    pincode = validate_pincode(pincode)
    with conn.cursor(row_factory=dict_row) as cur:
        cur.execute(_PRODUCT_SQL, (product_id,))
        product = cur.fetchone()
        if product is None:
            raise HTTPException(status_code=404, detail="Product not found")
        zones = fetch_pincode_zones(cur, pincode)

    delivery_type = str(product["delivery_type"] or NATIONWIDE)
    eligible = [z for z in zones if zone_allows(delivery_type, product["allowed_zone_ids"], z["zone_id"])]
    return ProductDeliveryOut(
        product_id=product_id,
        pincode=pincode,
        can_deliver=bool(eligible) and bool(product["active"]),
        delivery_type=delivery_type,
        available_zones=[_zone_out(z) for z in eligible],
    )


def validate_cart(conn, cart_items: Sequence[CartItemIn], delivery_pincode: str) -> CartValidationOut:
    """Zone eligibility for every cart line; stock is resolved later, per line, at reservation."""
    pincode = validate_pincode(delivery_pincode)
    available: List[CartItemResult] = []
    unavailable: List[CartItemResult] = []

    with conn.cursor(row_factory=dict_row) as cur:
        zones = fetch_pincode_zones(cur, pincode)
        for item in cart_items:
            pid = item.product_id if item.product_id is not None else item.id
            if pid is None:
                unavailable.append(
                    CartItemResult(name=item.name, quantity=item.quantity, deliverable=False, reason="Invalid product ID")
                )
                continue

            cur.execute(_PRODUCT_SQL, (pid,))
            product = cur.fetchone()
            if product is None:
                unavailable.append(
                    CartItemResult(
                        product_id=pid, name=item.name, quantity=item.quantity, deliverable=False, reason="Product not found"
                    )
                )
                continue

            delivery_type = str(product["delivery_type"] or NATIONWIDE)
            result = CartItemResult(
                product_id=pid,
                name=str(product["name"]),
                quantity=item.quantity,
                delivery_type=delivery_type,
                deliverable=False,
            )
            if not product["active"]:
                result.reason = "Product is inactive"
                unavailable.append(result)
                continue

            if any(zone_allows(delivery_type, product["allowed_zone_ids"], z["zone_id"]) for z in zones):
                result.deliverable = True
                available.append(result)
            else:
                result.reason = "Not available in your area" if delivery_type == ZONAL else "Delivery not available"
                unavailable.append(result)

    return CartValidationOut(
        delivery_pincode=pincode,
        available_items=available,
        unavailable_items=unavailable,
        delivery_summary={
            "total_items": len(cart_items),
            "deliverable_items": len(available),
            "non_deliverable_items": len(unavailable),
            "all_deliverable": not unavailable,
            "zones": [_zone_out(z).model_dump() for z in zones],
        },
    )


def apply_stock_movement(
    conn,
    *,
    product_id: int,
    warehouse_id: int,
    movement_type: str,
    quantity: int,
    reference_type: Optional[str] = None,
    reference_id: Optional[str] = None,
    reason: Optional[str] = None,
    performed_by: Optional[str] = None,
) -> StockMovementOut:
    """Run one movement through `update_stock_with_movement`; the caller commits."""
    with conn.cursor() as cur:
        cur.execute(
            _MOVEMENT_SQL,
            (product_id, warehouse_id, movement_type, quantity, reference_type, reference_id, reason, performed_by),
        )
        row = cur.fetchone()
    return StockMovementOut(
        movement_id=int(row[2]),
        movement_type=movement_type,
        quantity=quantity,
        stock_quantity=int(row[0]),
        reserved_quantity=int(row[1]),
    )


def reserve_stock(conn, product_id: int, warehouse_id: int, quantity: int, order_id: str) -> List[StockMovementOut]:
    m = apply_stock_movement(
        conn,
        product_id=product_id,
        warehouse_id=warehouse_id,
        movement_type="reservation",
        quantity=quantity,
        reference_type="order",
        reference_id=order_id,
        reason=f"Stock reserved for order {order_id}",
    )
    _log.info("reserved product=%s warehouse=%s qty=%s order=%s", product_id, warehouse_id, quantity, order_id)
    return [m]


def confirm_stock_deduction(conn, product_id: int, warehouse_id: int, quantity: int, order_id: str) -> List[StockMovementOut]:
    released = apply_stock_movement(
        conn,
        product_id=product_id,
        warehouse_id=warehouse_id,
        movement_type="release",
        quantity=quantity,
        reference_type="order",
        reference_id=order_id,
        reason=f"Reservation released for order {order_id}",
    )
    shipped = apply_stock_movement(
        conn,
        product_id=product_id,
        warehouse_id=warehouse_id,
        movement_type="outbound",
        quantity=quantity,
        reference_type="order",
        reference_id=order_id,
        reason=f"Stock deducted for order {order_id}",
    )
    _log.info("deducted product=%s warehouse=%s qty=%s order=%s", product_id, warehouse_id, quantity, order_id)
    return [released, shipped]


def release_reservation(conn, product_id: int, warehouse_id: int, quantity: int, order_id: str) -> List[StockMovementOut]:
    m = apply_stock_movement(
        conn,
        product_id=product_id,
        warehouse_id=warehouse_id,
        movement_type="release",
        quantity=quantity,
        reference_type="order",
        reference_id=order_id,
        reason=f"Reservation cancelled for order {order_id}",
    )
    _log.info("released product=%s warehouse=%s qty=%s order=%s", product_id, warehouse_id, quantity, order_id)
    return [m]
