import pytest
from fastapi import HTTPException

from backend.models import TierIn
from backend.pricing import normalise_tiers, quote, resolve_tier


def _tiers():
    return normalise_tiers(
        7,
        [
            TierIn(min_quantity=10, max_quantity=49, bulk_price=90),
            TierIn(tier_name="Wholesale", min_quantity=50, bulk_price=80),
            TierIn(tier_name="  ", min_quantity=100, max_quantity=199, bulk_price=70, is_bulk_enabled=False),
        ],
    )


def test_normalise_assigns_names_and_sort_order():
    tiers = _tiers()

    assert [t.tier_name for t in tiers] == ["Tier 1", "Wholesale", "Tier 3"]
    assert [t.sort_order for t in tiers] == [1, 2, 3]
    assert all(t.product_id == 7 for t in tiers)


def test_normalise_rejects_inverted_range():
    with pytest.raises(HTTPException) as exc:
        normalise_tiers(1, [TierIn(min_quantity=20, max_quantity=5, bulk_price=1)])
    assert exc.value.status_code == 400
    assert "Tier 1" in exc.value.detail


def test_resolve_tier_picks_highest_applicable_minimum():
    tiers = _tiers()

    assert resolve_tier(tiers, 5) is None
    assert resolve_tier(tiers, 10).tier_name == "Tier 1"
    assert resolve_tier(tiers, 49).tier_name == "Tier 1"
    assert resolve_tier(tiers, 50).tier_name == "Wholesale"
    # disabled tier is ignored
    assert resolve_tier(tiers, 150).tier_name == "Wholesale"


def test_quote_uses_tier_price():
    q = quote(7, 100.0, _tiers(), 60)

    assert q.is_bulk_price
    assert q.unit_price == 80.0
    assert q.total_price == 4800.0
    assert q.tier.tier_name == "Wholesale"


def test_quote_falls_back_to_product_price():
    q = quote(7, 99.99, _tiers(), 3)

    assert not q.is_bulk_price
    assert q.tier is None
    assert q.total_price == pytest.approx(299.97)


def test_quote_rejects_non_positive_quantity():
    with pytest.raises(HTTPException):
        quote(7, 10.0, [], 0)
