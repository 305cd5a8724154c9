from __future__ import annotations

from typing import List, Optional, Sequence

from fastapi import HTTPException

from .models import QuoteOut, TierIn, TierOut


def normalise_tiers(product_id: int, tiers: Sequence[TierIn]) -> List[TierOut]:
    """Assign default names and list-order sort keys to submitted wholesale tiers."""
    out: List[TierOut] = []
    for i, t in enumerate(tiers, start=1):
        if t.max_quantity is not None and t.max_quantity < t.min_quantity:
            raise HTTPException(
                status_code=400,
                detail=f"Tier {i}: max_quantity must be greater than or equal to min_quantity",
            )
        out.append(
            TierOut(
                product_id=product_id,
                tier_name=(t.tier_name or "").strip() or f"Tier {i}",
                min_quantity=t.min_quantity,
                max_quantity=t.max_quantity,
                bulk_price=t.bulk_price,
                discount_percentage=t.discount_percentage,
                sort_order=i,
                is_bulk_enabled=t.is_bulk_enabled,
            )
        )
    return out


def resolve_tier(tiers: Sequence[TierOut], quantity: int) -> Optional[TierOut]:
    applicable = [
        t
        for t in tiers
        if t.is_bulk_enabled
        and t.min_quantity <= quantity
        and (t.max_quantity is None or quantity <= t.max_quantity)
    ]
    if not applicable:
        return None
    return max(applicable, key=lambda t: (t.min_quantity, -t.sort_order))


def quote(product_id: int, base_price: float, tiers: Sequence[TierOut], quantity: int) -> QuoteOut:
    if quantity < 1:
        raise HTTPException(status_code=400, detail="Quantity must be a positive integer")

    tier = resolve_tier(tiers, quantity)
    unit_price = float(tier.bulk_price) if tier is not None else float(base_price)
    return QuoteOut(
        product_id=product_id,
        quantity=quantity,
        unit_price=unit_price,
        total_price=round(unit_price * quantity, 2),
        is_bulk_price=tier is not None,
        tier=tier,
    )
