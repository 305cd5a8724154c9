"""Request handling that completes before any database access."""

import pytest
from fastapi.testclient import TestClient

from backend.main import app
from backend.models import DetailedAddressIn
from backend.routes.orders import compose_address


ADMIN = {"X-Admin-Key": "test-admin-key"}


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setenv("ADMIN_KEY", "test-admin-key")
    monkeypatch.setenv("ADMIN_USER", "ops")
    monkeypatch.setenv("ADMIN_PASSWORD", "s3cret")
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.delenv("COD_MAX_AMOUNT", raising=False)
    monkeypatch.delenv("UPLOAD_MAX_BYTES", raising=False)
    with TestClient(app) as c:
        yield c


def test_root_and_route_listing(client: TestClient):
    assert client.get("/").json()["status"] == "ok"

    paths = {r["path"] for r in client.get("/__routes").json()}
    for p in (
        "/api/products",
        "/api/zones/upload",
        "/api/delivery/check",
        "/api/bulk-wholesale/{product_id}/price",
        "/api/cod-orders/create",
        "/api/orders/create-with-bulk",
        "/api/promo-banners/{banner_id}/toggle",
        "/api/location/tax",
    ):
        assert p in paths


def test_request_id_is_echoed(client: TestClient):
    r = client.get("/", headers={"X-Request-ID": "abc123"})
    assert r.headers["X-Request-ID"] == "abc123"


def test_health_reports_database_state(client: TestClient):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["database"] in ("connected", "unavailable")


def test_sample_excel_download(client: TestClient):
    r = client.get("/api/zones/sample-excel")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/vnd.openxmlformats")
    assert "zone_pincodes_sample.xlsx" in r.headers["content-disposition"]
    assert r.content[:2] == b"PK"


@pytest.mark.parametrize(
    "method,url,body",
    [
        ("post", "/api/delivery/check", {"product_id": 1, "pincode": "12345"}),
        ("post", "/api/delivery/check-multiple", {"pincode": "abcdef", "items": [{"product_id": 1}]}),
        ("get", "/api/delivery/product?product_id=1&pincode=1", None),
        ("post", "/api/delivery/validate-cart", {"delivery_pincode": "1100011", "cart_items": [{"product_id": 1}]}),
        ("post", "/api/zones/validate-pincode", {"pincode": "11 001"}),
        ("get", "/api/inventory/pincode/abc/products", None),
        ("get", "/api/inventory/pincode/12/product/1", None),
        ("get", "/api/location/pincode/12345", None),
        ("post", "/api/location/shipping", {"pincode": "x", "weight": 1}),
    ],
)
def test_bad_pincode_is_rejected(client: TestClient, method, url, body):
    r = getattr(client, method)(url, json=body) if body is not None else getattr(client, method)(url)
    assert r.status_code == 400
    assert "6 digits" in r.json()["detail"]


def test_cod_limit(client: TestClient):
    r = client.post(
        "/api/cod-orders/create",
        json={
            "user_id": "u-1",
            "product_id": 3,
            "user_name": "Asha",
            "product_name": "Rice 25kg",
            "product_total_price": 1500,
            "user_address": "12 MG Road",
        },
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "COD is only available for orders below ₹1000"


def test_cod_limit_exactly_at_threshold(client: TestClient, monkeypatch):
    monkeypatch.setenv("COD_MAX_AMOUNT", "500")
    r = client.post(
        "/api/cod-orders/create",
        json={
            "user_id": "u-1",
            "product_id": 3,
            "user_name": "Asha",
            "product_name": "Rice 5kg",
            "product_total_price": 500,
            "user_address": "12 MG Road",
        },
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "COD is only available for orders below ₹500"


@pytest.mark.parametrize(
    "method,url,body",
    [
        ("post", "/api/delivery/reserve", {"product_id": 1, "warehouse_id": 1, "quantity": 1, "order_id": "o1"}),
        ("put", "/api/stock/1", {"stock_quantity": 5}),
        ("get", "/api/cod-orders/all", None),
        ("post", "/api/bulk-wholesale/save", {"product_id": 1, "tiers": []}),
        ("patch", "/api/promo-banners/1/toggle", None),
    ],
)
def test_admin_endpoints_require_credentials(client: TestClient, method, url, body):
    kwargs = {"json": body} if body is not None else {}
    r = getattr(client, method)(url, **kwargs)
    assert r.status_code == 403

    r = getattr(client, method)(url, headers={"X-Admin-Key": "wrong"}, **kwargs)
    assert r.status_code == 403


def test_upload_requires_admin(client: TestClient):
    r = client.post("/api/zones/upload", files={"file": ("zones.csv", b"DelhiZone,110001,,\n", "text/csv")})
    assert r.status_code == 403


def test_upload_rejects_wrong_file_type(client: TestClient):
    r = client.post("/api/zones/upload", headers=ADMIN, files={"file": ("zones.txt", b"hello", "text/plain")})
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["error"] == "File validation failed"
    assert "Invalid file type" in detail["details"][0]


def test_upload_reports_row_errors(client: TestClient):
    content = b"zone_name,pincode,city,state\nDelhiZone,110001,Delhi,Delhi\nDelhiZone,1101,Delhi,Delhi\n"
    r = client.post("/api/zones/upload", headers=ADMIN, files={"file": ("zones.csv", content, "text/csv")})
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["error"] == "File contains errors"
    assert detail["details"][0]["row"] == 3
    assert detail["summary"] == {"total_rows": 2, "valid_rows": 1, "error_rows": 1}


def test_upload_rejects_reserved_zone_names(client: TestClient):
    r = client.post(
        "/api/zones/upload",
        headers=ADMIN,
        files={"file": ("zones.csv", b"nationwide,110001,Delhi,Delhi\n", "text/csv")},
    )
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "Invalid zone names"


def test_admin_login(client: TestClient):
    assert client.post("/api/admin/login", json={"username": "ops", "password": "nope"}).status_code == 401

    r = client.post("/api/admin/login", json={"username": "ops", "password": "s3cret"})
    assert r.status_code == 200
    data = r.json()
    assert data["admin_key"] == "test-admin-key"
    assert data["access_token"] is None


def test_admin_bearer_token(client: TestClient, monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "unit-test-secret-with-enough-length-0123456789")
    r = client.post("/api/admin/login", json={"username": "ops", "password": "s3cret"})
    token = r.json()["access_token"]
    assert token
    assert r.json()["token_type"] == "bearer"

    r = client.post(
        "/api/zones/upload",
        headers={"Authorization": f"Bearer {token}"},
        files={"file": ("zones.txt", b"hello", "text/plain")},
    )
    assert r.status_code == 400

    r = client.post(
        "/api/zones/upload",
        headers={"Authorization": "Bearer not-a-token"},
        files={"file": ("zones.txt", b"hello", "text/plain")},
    )
    assert r.status_code == 401


def test_order_with_bad_pincode(client: TestClient):
    r = client.post(
        "/api/orders/create-with-bulk",
        json={
            "user_id": "u-1",
            "items": [{"product_id": 1, "quantity": 2, "price": 50}],
            "subtotal": 100,
            "total": 100,
            "address": "12 MG Road",
            "delivery_pincode": "12ab56",
        },
    )
    assert r.status_code == 400


def test_order_requires_address(client: TestClient):
    r = client.post(
        "/api/orders/create-with-bulk",
        json={"user_id": "u-1", "items": [{"product_id": 1, "quantity": 1, "price": 50}], "subtotal": 50, "total": 50},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Delivery address is required"


def test_compose_address():
    addr = DetailedAddressIn(
        house_number="12",
        street_address="MG Road",
        locality="Indiranagar",
        city="Bangalore",
        state="Karnataka",
        postal_code="560038",
        landmark="Metro station",
    )
    assert compose_address(addr) == "12 MG Road, Indiranagar, Bangalore, Karnataka, 560038, India, Near Metro station"
    assert compose_address(DetailedAddressIn(street_address="Main St", country="")) == "Main St, India"
    assert compose_address(None) == ""
