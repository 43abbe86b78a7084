# HTTP API tests
#
# Covers:
# - Supabase JWT auth, profile auto-provisioning, role gates
# - stock management endpoints (products, variants)
# - recording sales, low stock alert hand-off, role-scoped history
# - admin dashboard aggregates

import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.routers import sales as sales_router
from tests.conftest import FailingItemRepository, auth_headers, make_token, stock_of

API = "/api/v1"


def record(client, profile, *lines):
    return client.post(
        f"{API}/sales",
        json={
            "items": [
                {"variant_id": str(v.id), "quantity": q, "price_at_sale": str(v.price)}
                for v, q in lines
            ]
        },
        headers=auth_headers(profile),
    )


class TestAuth:
    def test_health_check_is_public(self, client):
        assert client.get("/").json()["status"] == "ok"

    def test_missing_token(self, client):
        response = client.get(f"{API}/users/me")
        assert response.status_code == 401

    def test_expired_token(self, client, staff):
        token = make_token(staff.id, staff.email, expires_in=-60)
        response = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_first_request_provisions_a_staff_profile(self, client):
        user_id = uuid.uuid4()
        token = make_token(user_id, "new.hire@example.com")

        response = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == str(user_id)
        assert body["role"] == "staff"
        assert body["phone_number"] is None

    def test_staff_cannot_reach_admin_routes(self, client, staff):
        for path in ("/products", "/variants/low-stock", "/admin/dashboard", "/users"):
            response = client.get(f"{API}{path}", headers=auth_headers(staff))
            assert response.status_code == 403, path


class TestUsers:
    def test_update_own_phone_number(self, client, staff):
        response = client.patch(
            f"{API}/users/me",
            json={"phone_number": "+1 (555) 000-0009"},
            headers=auth_headers(staff),
        )
        assert response.status_code == 200
        assert response.json()["phone_number"] == "+15550000009"

        cleared = client.patch(
            f"{API}/users/me",
            json={"phone_number": ""},
            headers=auth_headers(staff),
        )
        assert cleared.json()["phone_number"] is None

    def test_invalid_phone_number(self, client, staff):
        response = client.patch(
            f"{API}/users/me",
            json={"phone_number": "call me"},
            headers=auth_headers(staff),
        )
        assert response.status_code == 422

    def test_admin_promotes_staff(self, client, admin, staff):
        response = client.patch(
            f"{API}/users/{staff.id}/role",
            json={"role": "admin"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert response.json()["role"] == "admin"

        listing = client.get(f"{API}/users", headers=auth_headers(admin)).json()
        assert {p["id"] for p in listing} == {str(admin.id), str(staff.id)}

    def test_unknown_user(self, client, admin):
        response = client.get(f"{API}/users/{uuid.uuid4()}", headers=auth_headers(admin))
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "not_found"


class TestStockManagement:
    def test_create_product_generates_sku(self, client, admin):
        response = client.post(
            f"{API}/products",
            json={
                "name": "Tennis Bracelet",
                "category": "bracelet",
                "variant_name": "White gold",
                "price": "1200.00",
                "stock_quantity": 3,
                "low_stock_threshold": 1,
            },
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Tennis Bracelet"
        assert len(body["product_variants"]) == 1
        variant = body["product_variants"][0]
        assert variant["sku"].startswith("BRA-")
        assert Decimal(variant["price"]) == Decimal("1200.00")

    def test_duplicate_sku_is_rejected(self, client, admin, make_variant):
        existing = make_variant()

        response = client.post(
            f"{API}/variants",
            json={
                "product_id": str(existing.product_id),
                "variant_name": "Rose gold",
                "sku": existing.sku,
                "price": "99.00",
            },
            headers=auth_headers(admin),
        )

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "conflict"

    def test_unknown_category_is_rejected(self, client, admin):
        response = client.post(
            f"{API}/products",
            json={"name": "Brooch", "category": "brooch", "variant_name": "x", "price": "1.00"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 422

    def test_list_products_with_variants(self, client, admin, make_variant):
        ring = make_variant(product_name="Band")
        client.post(
            f"{API}/variants",
            json={
                "product_id": str(ring.product_id),
                "variant_name": "Size 54",
                "price": "150.00",
                "stock_quantity": 4,
            },
            headers=auth_headers(admin),
        )

        products = client.get(f"{API}/products", headers=auth_headers(admin)).json()

        assert len(products) == 1
        assert len(products[0]["product_variants"]) == 2
        assert products[0]["product_variants"][1]["sku"].startswith("RIN-")

    def test_update_variant_stock(self, client, session, admin, make_variant):
        ring = make_variant(stock=1)

        response = client.patch(
            f"{API}/variants/{ring.id}",
            json={"stock_quantity": 25, "low_stock_threshold": 3},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["stock_quantity"] == 25
        assert stock_of(session, ring.id) == 25

    def test_delete_variant(self, client, admin, staff, make_variant):
        sold = make_variant(stock=10)
        unsold_id = make_variant(stock=10).id
        assert record(client, staff, (sold, 1)).status_code == 201

        blocked = client.delete(f"{API}/variants/{sold.id}", headers=auth_headers(admin))
        assert blocked.status_code == 409

        deleted = client.delete(f"{API}/variants/{unsold_id}", headers=auth_headers(admin))
        assert deleted.status_code == 204

        missing = client.delete(f"{API}/variants/{unsold_id}", headers=auth_headers(admin))
        assert missing.status_code == 404

    def test_available_and_low_stock_views(self, client, admin, staff, make_variant):
        make_variant(stock=0, threshold=2, product_name="Anklet")
        make_variant(stock=1, threshold=2, product_name="Brooch")
        make_variant(stock=30, threshold=2, product_name="Cuff")

        available = client.get(f"{API}/variants/available", headers=auth_headers(staff)).json()
        assert [v["product_name"] for v in available] == ["Brooch", "Cuff"]

        low = client.get(f"{API}/variants/low-stock", headers=auth_headers(admin)).json()
        assert [(v["product_name"], v["stock_quantity"]) for v in low] == [("Anklet", 0), ("Brooch", 1)]


class TestSales:
    def test_record_sale(self, client, session, staff, make_variant):
        ring = make_variant(stock=10, threshold=5, price="250.00")

        response = record(client, staff, (ring, 6))

        assert response.status_code == 201
        body = response.json()
        assert body["user_id"] == str(staff.id)
        assert Decimal(body["total_amount"]) == Decimal("1500.00")
        assert body["items"][0]["quantity_sold"] == 6
        assert stock_of(session, ring.id) == 4

    def test_empty_cart(self, client, staff):
        response = client.post(f"{API}/sales", json={"items": []}, headers=auth_headers(staff))

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "validation"

    def test_zero_quantity_is_rejected(self, client, staff, make_variant):
        ring = make_variant()
        response = record(client, staff, (ring, 0))
        assert response.status_code == 422

    def test_insufficient_stock(self, client, session, staff, make_variant):
        ring = make_variant(stock=4)

        response = record(client, staff, (ring, 6))

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "insufficient_stock"
        assert detail["available"] == 4
        assert detail["requested"] == 6
        assert stock_of(session, ring.id) == 4

    def test_history_is_scoped_by_role(self, client, admin, make_profile, make_variant):
        ring = make_variant(stock=20, threshold=0, price="10.00")
        alice = make_profile("staff")
        bob = make_profile("staff")

        alice_sale = record(client, alice, (ring, 1)).json()
        record(client, bob, (ring, 2))
        record(client, bob, (ring, 3))

        mine = client.get(f"{API}/sales", headers=auth_headers(alice)).json()
        assert [s["id"] for s in mine] == [alice_sale["id"]]
        assert mine[0]["items"][0]["product_name"] == "Solitaire Ring"

        everything = client.get(f"{API}/sales", headers=auth_headers(admin)).json()
        assert len(everything) == 3

        limited = client.get(f"{API}/sales?limit=2", headers=auth_headers(admin)).json()
        assert len(limited) == 2

        other = client.get(f"{API}/sales/{alice_sale['id']}", headers=auth_headers(bob))
        assert other.status_code == 404

        bob_summary = client.get(f"{API}/sales/summary", headers=auth_headers(bob)).json()
        assert bob_summary["total_sales"] == 2
        assert Decimal(bob_summary["total_revenue"]) == Decimal("50.00")


@pytest.fixture
def alerts(monkeypatch):
    """Low stock events handed to the notifier by POST /sales."""
    received = []
    monkeypatch.setattr(sales_router.notifier, "alert_low_stock", received.append)
    return received


class TestLowStockAlerts:
    def test_crossing_sale_hands_one_event_to_the_notifier(self, client, staff, alerts, make_variant):
        ring = make_variant(stock=10, threshold=5)

        response = record(client, staff, (ring, 6))

        assert response.status_code == 201
        assert len(alerts) == 1
        assert alerts[0].variant_id == ring.id
        assert alerts[0].previous_stock == 10
        assert alerts[0].remaining_stock == 4

    def test_sale_above_threshold_sends_nothing(self, client, staff, alerts, make_variant):
        ring = make_variant(stock=10, threshold=5)

        assert record(client, staff, (ring, 2)).status_code == 201
        assert alerts == []

    def test_alert_survives_a_later_line_failure(self, client, session, staff, alerts, make_variant, monkeypatch):
        """
        SCENARIO: first line crosses the threshold, second item insert fails
        EXPECTED: 500 persistence error, first decrement stays committed and
        its alert is still handed to the notifier
        """
        ring = make_variant(stock=10, threshold=5)
        chain = make_variant(stock=10, threshold=5)
        monkeypatch.setattr(sales_router.service, "sale_repo", FailingItemRepository(fail_on=2))

        response = record(client, staff, (ring, 6), (chain, 1))

        assert response.status_code == 500
        assert response.json()["detail"]["code"] == "persistence"
        assert stock_of(session, ring.id) == 4
        assert stock_of(session, chain.id) == 10
        assert [e.variant_id for e in alerts] == [ring.id]


class TestDashboard:
    def test_dashboard_aggregates(self, client, admin, staff, make_variant):
        ring = make_variant(stock=10, threshold=5, price="100.00", product_name="Ring")
        watch = make_variant(stock=10, threshold=2, price="400.00", product_name="Watch", category="watch")

        record(client, staff, (ring, 6), (watch, 1))
        record(client, admin, (ring, 1))

        body = client.get(f"{API}/admin/dashboard", headers=auth_headers(admin)).json()

        stats = body["stats"]
        assert Decimal(stats["total_revenue"]) == Decimal("1100.00")
        assert stats["total_sales"] == 2
        assert stats["total_items_sold"] == 8
        assert stats["low_stock_count"] == 1

        best = body["best_selling"]
        assert [(b["product_name"], b["total_sold"]) for b in best] == [("Ring", 7), ("Watch", 1)]
        assert Decimal(best[0]["total_revenue"]) == Decimal("700.00")

        assert [a["product_name"] for a in body["low_stock_alerts"]] == ["Ring"]
        assert body["low_stock_alerts"][0]["stock_quantity"] == 3

    def test_daily_and_monthly_analytics(self, client, admin, staff, make_variant):
        ring = make_variant(stock=10, threshold=0, price="100.00")
        record(client, staff, (ring, 1))
        record(client, staff, (ring, 2))

        now = datetime.now(timezone.utc)

        daily = client.get(f"{API}/admin/dashboard/analytics", headers=auth_headers(admin)).json()
        assert len(daily) == 1
        assert daily[0]["period"] == now.strftime("%Y-%m-%d")
        assert daily[0]["number_of_sales"] == 2
        assert daily[0]["total_items_sold"] == 3
        assert Decimal(daily[0]["average_sale_amount"]) == Decimal("150.00")

        monthly = client.get(
            f"{API}/admin/dashboard/analytics?range=monthly&periods=3",
            headers=auth_headers(admin),
        ).json()
        assert [m["period"] for m in monthly] == [now.strftime("%Y-%m")]
        assert Decimal(monthly[0]["total_revenue"]) == Decimal("300.00")
