import os
import random
import uuid

import psycopg
import pytest
from fastapi.testclient import TestClient

from backend.db import _dsn
from backend.main import app


ADMIN = {"X-Admin-Key": os.getenv("ADMIN_KEY", "admin")}


def _db_ready() -> bool:
    try:
        with psycopg.connect(_dsn(), connect_timeout=2) as conn:
            row = conn.execute("SELECT to_regclass('bigandbest.products')", prepare=False).fetchone()
        return row is not None and row[0] is not None
    except psycopg.OperationalError:
        return False


@pytest.fixture(scope="session")
def client():
    if not _db_ready():
        pytest.skip(
            "PostgreSQL not reachable or schema missing; set DATABASE_URL (or PG*) and run "
            "python3 -m src.run_sql --sql sql/00_schema.sql"
        )

    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="session")
def setup(client: TestClient):
    """A fresh zone with one pincode, a zonal hub serving it, a central warehouse and a product stocked in both."""
    tag = uuid.uuid4().hex[:8]
    pincode = "9" + "".join(random.choice("0123456789") for _ in range(5))
    zone_name = f"ItZone{tag}"

    r = client.post("/api/zones", headers=ADMIN, json={"name": zone_name, "display_name": f"It Zone {tag}"})
    assert r.status_code in (200, 201), r.text
    zone_id = r.json()["id"]

    csv = f"zone_name,pincode,city,state\n{zone_name},{pincode},Testpur,Teststate\n".encode()
    r = client.post("/api/zones/upload", headers=ADMIN, files={"file": ("zones.csv", csv, "text/csv")})
    assert r.status_code == 200, r.text
    assert r.json()["results"]["zones_updated"] == 1
    assert r.json()["results"]["pincodes_created"] == 1

    r = client.post("/api/warehouses", headers=ADMIN, json={"name": f"It Central {tag}", "type": "central"})
    assert r.status_code == 201, r.text
    central_id = r.json()["id"]

    r = client.post("/api/warehouses", headers=ADMIN, json={"name": f"It Hub {tag}", "type": "zonal"})
    assert r.status_code == 201, r.text
    hub_id = r.json()["id"]

    r = client.post(f"/api/warehouses/{hub_id}/zones", headers=ADMIN, json={"zone_id": zone_id})
    assert r.status_code == 200, r.text

    r = client.post(
        "/api/products",
        headers=ADMIN,
        json={
            "name": f"It Product {tag}",
            "price": 100,
            "category_id": 1,
            "delivery_type": "nationwide",
            "warehouse_mapping_type": "custom",
            "assigned_warehouse_ids": [hub_id, central_id],
            "initial_stock": 20,
            "zone_distribution_quantity": 5,
        },
    )
    assert r.status_code == 201, r.text
    product_id = r.json()["product"]["id"]
    stocked = {a["warehouse_id"]: a["stock_quantity"] for a in r.json()["warehouse_assignments"]}
    assert stocked == {hub_id: 5, central_id: 20}

    return {
        "tag": tag,
        "pincode": pincode,
        "zone_id": zone_id,
        "central_id": central_id,
        "hub_id": hub_id,
        "product_id": product_id,
    }


def _fetch_one(sql: str, params=()):
    with psycopg.connect(_dsn()) as conn:
        return conn.execute(sql, params, prepare=False).fetchone()


def _execute(sql: str, params=()) -> None:
    with psycopg.connect(_dsn()) as conn:
        conn.execute(sql, params, prepare=False)
        conn.commit()


def _new_product(client: TestClient, name: str, **fields) -> dict:
    body = {"name": name, "price": 100, "category_id": 1, "delivery_type": "nationwide"}
    body.update(fields)
    r = client.post("/api/products", headers=ADMIN, json=body)
    assert r.status_code == 201, r.text
    return r.json()


def _check(client: TestClient, product_id: int, pincode: str, quantity: int):
    r = client.post("/api/delivery/check", json={"product_id": product_id, "pincode": pincode, "quantity": quantity})
    assert r.status_code == 200, r.text
    return r.json()


def test_health(client: TestClient):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["database"] == "connected"


def test_products_returns_list(client: TestClient):
    r = client.get("/api/products?limit=3&offset=0")
    assert r.status_code == 200
    data = r.json()
    assert isinstance(data, list)
    assert len(data) <= 3


def test_zone_detail_lists_uploaded_pincode(client: TestClient, setup):
    r = client.get(f"/api/zones/{setup['zone_id']}")
    assert r.status_code == 200
    assert [p["pincode"] for p in r.json()["pincodes"]] == [setup["pincode"]]


def test_unknown_pincode_is_not_serviceable(client: TestClient, setup):
    data = _check(client, setup["product_id"], "000000", 1)
    assert data["success"] is False
    assert data["deliverable"] is False
    assert data["error"] == "Pincode not serviceable"


def test_missing_product(client: TestClient, setup):
    data = _check(client, 2**62, setup["pincode"], 1)
    assert data["success"] is False
    assert data["error"] == "Product not found"


def test_delivery_resolution_and_stock_movements(client: TestClient, setup):
    pid, pincode, hub_id = setup["product_id"], setup["pincode"], setup["hub_id"]

    data = _check(client, pid, pincode, 3)
    assert data["deliverable"] is True
    assert data["source_warehouse"]["id"] == hub_id
    assert data["fallback_used"] is False
    assert data["delivery_info"]["zone_id"] == setup["zone_id"]

    data = _check(client, pid, pincode, 10)
    assert data["deliverable"] is True
    assert data["source_warehouse"]["id"] == setup["central_id"]
    assert data["fallback_used"] is True
    assert data["fallback_reason"] == "local_warehouse_out_of_stock"

    data = _check(client, pid, pincode, 500)
    assert data["deliverable"] is False
    assert data["reason"] == "insufficient_stock"

    order = f"it-{setup['tag']}"
    body = {"product_id": pid, "warehouse_id": hub_id, "quantity": 4, "order_id": order}
    r = client.post("/api/delivery/reserve", headers=ADMIN, json=body)
    assert r.status_code == 200, r.text
    assert r.json()["movements"][0]["reserved_quantity"] == 4

    # only one unit left at the hub, so three units now come from central
    data = _check(client, pid, pincode, 3)
    assert data["source_warehouse"]["id"] == setup["central_id"]

    r = client.post("/api/delivery/reserve", headers=ADMIN, json={**body, "quantity": 2})
    assert r.status_code == 409

    r = client.post("/api/delivery/confirm", headers=ADMIN, json=body)
    assert r.status_code == 200, r.text
    last = r.json()["movements"][-1]
    assert last["movement_type"] == "outbound"
    assert last["stock_quantity"] == 1
    assert last["reserved_quantity"] == 0

    r = client.get(f"/api/products/{pid}/stock-summary")
    assert r.status_code == 200
    summary = r.json()
    assert summary["total_stock"] == 21
    assert summary["total_reserved"] == 0


def test_zonal_product_is_restricted(client: TestClient, setup):
    r = client.post(
        "/api/products",
        headers=ADMIN,
        json={
            "name": f"It Zonal {setup['tag']}",
            "price": 10,
            "category_id": 1,
            "delivery_type": "zonal",
            "allowed_zone_ids": [setup["zone_id"] + 100000],
            "warehouse_mapping_type": "zonal",
            "assigned_warehouse_ids": [setup["hub_id"]],
            "zone_distribution_quantity": 5,
        },
    )
    assert r.status_code == 201, r.text
    data = _check(client, r.json()["product"]["id"], setup["pincode"], 1)
    assert data["success"] is True
    assert data["deliverable"] is False
    assert data["reason"] == "zone_restriction"


def test_wholesale_tiers_and_quote(client: TestClient, setup):
    pid = setup["product_id"]
    r = client.post(
        "/api/bulk-wholesale/save",
        headers=ADMIN,
        json={
            "product_id": pid,
            "tiers": [
                {"min_quantity": 10, "max_quantity": 49, "bulk_price": 90},
                {"min_quantity": 50, "bulk_price": 80},
            ],
        },
    )
    assert r.status_code == 200, r.text
    assert r.json()["total_tiers"] == 2

    r = client.get(f"/api/bulk-wholesale/{pid}/price?quantity=60")
    assert r.status_code == 200
    assert r.json()["unit_price"] == 80
    assert r.json()["total_price"] == 4800

    r = client.get(f"/api/products/{pid}")
    assert r.json()["price"] == 100


def test_cod_order_lifecycle(client: TestClient, setup):
    r = client.post(
        "/api/cod-orders/create",
        json={
            "user_id": f"u-{setup['tag']}",
            "product_id": setup["product_id"],
            "user_name": "Tester",
            "product_name": "It Product",
            "product_total_price": 250,
            "user_address": "1 Test Lane",
        },
    )
    assert r.status_code == 201, r.text
    oid = r.json()["id"]
    assert r.json()["status"] == "pending"

    r = client.put(f"/api/cod-orders/status/{oid}", headers=ADMIN, json={"status": "bogus"})
    assert r.status_code == 400

    r = client.put(f"/api/cod-orders/status/{oid}", headers=ADMIN, json={"status": "shipped"})
    assert r.status_code == 200
    assert r.json()["status"] == "shipped"

    r = client.get(f"/api/cod-orders/user/u-{setup['tag']}")
    assert [o["id"] for o in r.json()["orders"]] == [oid]

    assert client.delete(f"/api/cod-orders/{oid}", headers=ADMIN).status_code == 200
    assert client.get(f"/api/cod-orders/{oid}").status_code == 404


def test_order_with_bulk_items(client: TestClient, setup):
    r = client.post(
        "/api/orders/create-with-bulk",
        json={
            "user_id": f"u-{setup['tag']}",
            "items": [{"product_id": setup["product_id"], "quantity": 2, "price": 90, "is_bulk_order": True}],
            "subtotal": 180,
            "total": 180,
            "detailed_address": {"street_address": "1 Test Lane", "city": "Testpur", "postal_code": setup["pincode"]},
            "delivery_pincode": setup["pincode"],
            "strict_delivery": True,
            "razorpay_order_id": "rzp_should_not_be_kept",
        },
    )
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["is_bulk_order"] is True
    assert data["message"] == "Bulk order created successfully. Our team will contact you soon."
    assert data["delivery_validation"]["delivery_summary"]["all_deliverable"] is True


def test_zone_in_use_cannot_be_deleted(client: TestClient, setup):
    r = client.post(
        "/api/products",
        headers=ADMIN,
        json={
            "name": f"It Pinned {setup['tag']}",
            "price": 10,
            "category_id": 1,
            "delivery_type": "zonal",
            "allowed_zone_ids": [setup["zone_id"]],
            "warehouse_mapping_type": "zonal",
        },
    )
    assert r.status_code == 201, r.text

    r = client.delete(f"/api/zones/{setup['zone_id']}", headers=ADMIN)
    assert r.status_code == 400


def test_stock_summary_ignores_inactive_stock_rows(client: TestClient, setup):
    created = _new_product(
        client,
        f"It Shelved {setup['tag']}",
        warehouse_mapping_type="custom",
        assigned_warehouse_ids=[setup["hub_id"], setup["central_id"]],
        initial_stock=20,
        zone_distribution_quantity=40,
    )
    pid = created["product"]["id"]
    _execute(
        "UPDATE bigandbest.product_warehouse_stock SET is_active = FALSE WHERE product_id = %s AND warehouse_id = %s;",
        (pid, setup["hub_id"]),
    )

    summary = client.get(f"/api/products/{pid}/stock-summary").json()
    assert summary["total_stock"] == 20
    assert summary["total_available"] == 20
    assert summary["warehouse_count"] == 1
    assert summary["zonal"] == []
    assert [s["warehouse_id"] for s in summary["central"]] == [setup["central_id"]]

    data = _check(client, pid, setup["pincode"], 1)
    assert data["source_warehouse"]["id"] == setup["central_id"]


def test_nationwide_product_splits_initial_stock_across_zonal_warehouses(client: TestClient, setup):
    created = _new_product(client, f"It Everywhere {setup['tag']}", warehouse_mapping_type="nationwide", initial_stock=7)

    assignments = created["warehouse_assignments"]
    assert assignments
    assert {a["warehouse_type"] for a in assignments} == {"zonal"}
    assert setup["hub_id"] in {a["warehouse_id"] for a in assignments}
    assert {a["stock_quantity"] for a in assignments} == {7 // len(assignments)}


def test_variant_update_and_soft_delete(client: TestClient, setup):
    pid = setup["product_id"]
    r = client.post(
        f"/api/product-variants/product/{pid}/variants",
        headers=ADMIN,
        json={"variant_name": "Pack", "variant_value": "5kg", "price": 450},
    )
    assert r.status_code == 201, r.text
    vid = r.json()["id"]

    r = client.put(
        f"/api/product-variants/variant/{vid}",
        headers=ADMIN,
        json={"product_id": 2**62, "old_price": 1, "price": 430, "variant_value": "5 kg"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["product_id"] == pid
    assert r.json()["price"] == 430
    assert r.json()["variant_value"] == "5 kg"
    assert client.get(f"/api/products/{pid}").json()["price"] == 100

    assert client.put(f"/api/product-variants/variant/{vid}", headers=ADMIN, json={"product_id": 5}).status_code == 400

    assert client.delete(f"/api/product-variants/variant/{vid}", headers=ADMIN).status_code == 200
    listed = client.get(f"/api/product-variants/product/{pid}/variants").json()
    assert vid not in [v["id"] for v in listed]
    assert _fetch_one("SELECT is_active FROM bigandbest.product_variants WHERE id = %s;", (vid,)) == (False,)


def test_stock_reduce_floors_at_zero(client: TestClient, setup):
    pid = _new_product(client, f"It Counter {setup['tag']}")["product"]["id"]

    r = client.put(f"/api/stock/{pid}", headers=ADMIN, json={"stock_quantity": 3})
    assert r.status_code == 200, r.text
    assert r.json()["in_stock"] is True

    r = client.post(f"/api/stock/{pid}/reduce", headers=ADMIN, json={"quantity": 5, "order_id": "ord-1"})
    assert r.status_code == 200, r.text
    assert r.json()["reduction"] == {"previous_stock": 3, "reduced_by": 5, "new_stock": 0}

    r = client.get(f"/api/stock/{pid}")
    assert r.json()["stock_quantity"] == 0
    assert r.json()["in_stock"] is False


def test_bulk_stock_update_reports_row_errors(client: TestClient, setup):
    pid = _new_product(client, f"It Bulk Counter {setup['tag']}")["product"]["id"]

    r = client.post(
        "/api/stock/bulk-update",
        headers=ADMIN,
        json={
            "updates": [
                {"product_id": pid, "stock_quantity": 7},
                {"product_id": pid, "stock_quantity": -1},
                {"product_id": 2**62, "stock_quantity": 1},
            ]
        },
    )
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["summary"] == {"total": 3, "successful": 1, "failed": 2}
    assert data["results"][0]["stock_quantity"] == 7
    assert data["errors"] == [
        {"product_id": pid, "error": "Stock quantity cannot be negative"},
        {"product_id": 2**62, "error": "Product not found or inactive"},
    ]
    assert client.get(f"/api/stock/{pid}").json()["stock_quantity"] == 7


def test_banner_toggle_flips_active(client: TestClient, setup):
    r = client.post("/api/promo-banners", headers=ADMIN, json={"title": f"It Sale {setup['tag']}"})
    assert r.status_code == 201, r.text
    bid = r.json()["id"]
    assert r.json()["active"] is True

    r = client.patch(f"/api/promo-banners/{bid}/toggle", headers=ADMIN)
    assert r.json()["active"] is False
    assert bid not in [b["id"] for b in client.get("/api/promo-banners").json()]

    r = client.patch(f"/api/promo-banners/{bid}/toggle", headers=ADMIN)
    assert r.json()["active"] is True
    assert bid in [b["id"] for b in client.get("/api/promo-banners").json()]

    assert client.delete(f"/api/promo-banners/{bid}", headers=ADMIN).status_code == 200


def test_bulk_map_by_names(client: TestClient, setup):
    hub = f"It Hub {setup['tag']}"
    product = f"It Product {setup['tag']}"
    missing = f"It Missing {setup['tag']}"

    r = client.post(
        "/api/product-warehouse/bulk-map",
        headers=ADMIN,
        json={"warehouse_name": f"No Such Hub {setup['tag']}", "product_names": [product]},
    )
    assert r.status_code == 404

    r = client.post("/api/product-warehouse/bulk-map", headers=ADMIN, json={"warehouse_name": hub, "product_names": [missing]})
    assert r.status_code == 404

    r = client.post(
        "/api/product-warehouse/bulk-map",
        headers=ADMIN,
        json={"warehouse_name": hub, "product_names": [product, missing]},
    )
    assert r.status_code == 201, r.text
    assert r.json()["mapped_count"] == 1
    assert r.json()["not_found"] == [missing]

    r = client.get(f"/api/product-warehouse/product/{setup['product_id']}/warehouses")
    assert setup["hub_id"] in [w["id"] for w in r.json()]


def test_order_keeps_gps_location_and_original_price(client: TestClient, setup):
    r = client.post(
        "/api/orders/create-with-bulk",
        json={
            "user_id": f"u-gps-{setup['tag']}",
            "items": [{"product_id": setup["product_id"], "quantity": 1, "price": 90, "original_price": 100}],
            "subtotal": 90,
            "total": 90,
            "address": "1 Test Lane, Testpur",
            "gps_location": {"latitude": 28.6139, "longitude": 77.209, "formatted_address": "Connaught Place"},
        },
    )
    assert r.status_code == 201, r.text
    oid = r.json()["order_id"]
    assert r.json()["message"] == "Order placed successfully"

    row = _fetch_one(
        "SELECT shipping_latitude, shipping_longitude, shipping_gps_address FROM bigandbest.orders WHERE id = %s;",
        (oid,),
    )
    assert row == (28.6139, 77.209, "Connaught Place")
    row = _fetch_one("SELECT original_price FROM bigandbest.order_items WHERE order_id = %s;", (oid,))
    assert float(row[0]) == 100


def test_upload_leaves_zone_state_alone(client: TestClient, setup):
    dormant = f"ItDormant{setup['tag']}"
    fresh = f"ItFresh{setup['tag']}"
    pincode = "8" + "".join(random.choice("0123456789") for _ in range(5))

    r = client.post("/api/zones", headers=ADMIN, json={"name": dormant, "display_name": "Dormant"})
    assert r.status_code in (200, 201), r.text
    dormant_id = r.json()["id"]
    r = client.put(f"/api/zones/{dormant_id}", headers=ADMIN, json={"is_active": False})
    assert r.status_code == 200, r.text

    csv = f"{dormant},{pincode},,\n{fresh},{pincode},,\n".encode()
    r = client.post("/api/zones/upload", headers=ADMIN, files={"file": ("zones.csv", csv, "text/csv")})
    assert r.status_code == 200, r.text
    assert r.json()["results"]["zones_updated"] == 1
    assert r.json()["results"]["zones_created"] == 1

    assert client.get(f"/api/zones/{dormant_id}").json()["zone"]["is_active"] is False

    zones = client.get("/api/zones", params={"search": fresh}).json()["zones"]
    assert [z["name"] for z in zones] == [fresh]
    assert zones[0]["display_name"] == f"It Fresh{setup['tag']}"
    assert zones[0]["description"].startswith("Zone created from Excel upload on")
