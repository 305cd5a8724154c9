import pytest
from fastapi import HTTPException

from backend.delivery import (
    StockCandidate,
    decide_stock,
    is_valid_pincode,
    pick_warehouse,
    validate_pincode,
    zone_allows,
)


def _wh(wid: int, stock: int, reserved: int = 0, wtype: str = "zonal", zone_id=None) -> StockCandidate:
    return StockCandidate(
        warehouse_id=wid,
        warehouse_name=f"WH-{wid}",
        warehouse_type=wtype,
        stock_quantity=stock,
        reserved_quantity=reserved,
        zone_id=zone_id,
    )


@pytest.mark.parametrize("pincode", ["110001", " 560001 ", 400001])
def test_validate_pincode_accepts_six_digits(pincode):
    assert validate_pincode(pincode) == str(pincode).strip()


@pytest.mark.parametrize("pincode", ["", None, "11001", "1100011", "11000a", "110 01"])
def test_validate_pincode_rejects_bad_input(pincode):
    with pytest.raises(HTTPException) as exc:
        validate_pincode(pincode)
    assert exc.value.status_code == 400
    assert not is_valid_pincode(pincode)


def test_zone_allows_nationwide_everywhere():
    assert zone_allows("nationwide", [], 7)
    assert zone_allows("nationwide", None, 7)


def test_zone_allows_zonal_only_listed_zones():
    assert zone_allows("zonal", [1, 3], 3)
    assert not zone_allows("zonal", [1, 3], 2)
    assert not zone_allows("zonal", None, 1)


def test_available_subtracts_reserved():
    assert _wh(1, 10, 4).available == 6


def test_pick_warehouse_prefers_most_available_then_lowest_id():
    chosen = pick_warehouse([_wh(3, 20), _wh(1, 50, 30), _wh(2, 20)], 5)
    assert chosen is not None
    assert chosen.warehouse_id == 2


def test_pick_warehouse_none_when_short():
    assert pick_warehouse([_wh(1, 5, 3)], 3) is None
    assert pick_warehouse([], 1) is None


def test_nationwide_uses_local_warehouse_first():
    d = decide_stock("nationwide", [_wh(2, 10, zone_id=1)], [_wh(9, 100, wtype="central")], 4)
    assert d.available
    assert d.message == "Available from local warehouse"
    assert d.warehouse.warehouse_id == 2
    assert not d.fallback_used
    assert d.fallback_reason is None


def test_nationwide_falls_back_to_central():
    d = decide_stock("nationwide", [_wh(2, 10, 8, zone_id=1)], [_wh(9, 100, wtype="central")], 4)
    assert d.available
    assert d.message == "Available from central warehouse"
    assert d.warehouse.warehouse_id == 9
    assert d.fallback_used
    assert d.fallback_reason == "local_warehouse_out_of_stock"


def test_nationwide_out_of_stock_everywhere():
    d = decide_stock("nationwide", [_wh(2, 1)], [_wh(9, 2, wtype="central")], 3)
    assert not d.available
    assert d.reason == "insufficient_stock"
    assert d.message == "Out of stock"
    assert d.warehouse is None


def test_zonal_never_falls_back():
    d = decide_stock("zonal", [_wh(2, 1, zone_id=1)], [_wh(9, 100, wtype="central")], 2)
    assert not d.available
    assert d.reason == "zonal_out_of_stock"
    assert not d.fallback_used


def test_zonal_available_from_zonal_warehouse():
    d = decide_stock("zonal", [_wh(2, 5, zone_id=1)], [], 5)
    assert d.available
    assert d.message == "Available from zonal warehouse"
    assert d.warehouse.warehouse_id == 2
