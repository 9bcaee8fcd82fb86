"""Tests for the /api/orders HTTP boundary."""

import pytest


def create(client, payload, headers=None, **overrides):
    response = client.post("/api/orders", json=payload(**overrides), headers=headers or {})
    assert response.status_code == 201, response.get_json()
    return response.get_json()["data"]


class TestEnvelope:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"

    def test_success_envelope(self, client, payload):
        response = client.post("/api/orders", json=payload())
        body = response.get_json()
        assert response.status_code == 201
        assert body["success"] is True
        assert body["message"]
        assert body["timestamp"].endswith("Z")
        assert body["data"]["orderStatus"] == "PENDING"
        assert "adminNotes" not in body["data"]

    def test_error_envelope(self, client, payload):
        response = client.post("/api/orders", json=payload(customerEmail=""))
        body = response.get_json()
        assert response.status_code == 400
        assert body["success"] is False
        assert body["errors"] == ["customerEmail"]

    def test_oversized_total_is_bad_request(self, client, payload):
        response = client.post("/api/orders", json=payload(total="1e30"))
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.get_json()["success"] is False


class TestCreateAndTrack:
    def test_guest_checkout_and_tracking(self, client, payload, sink):
        order = create(client, payload)
        assert order["userId"] is None
        assert sink.kinds() == ["orderConfirmation"]

        response = client.get(f"/api/orders/{order['orderNumber']}")
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["id"] == order["id"]
        assert data["user"] is None

    def test_track_unknown_number(self, client):
        response = client.get("/api/orders/ORD-0-NOPE00")
        assert response.status_code == 404

    def test_user_checkout(self, client, payload, user, user_headers):
        order = create(client, payload, headers=user_headers)
        assert order["userId"] == user.id

        data = client.get(f"/api/orders/{order['orderNumber']}").get_json()["data"]
        assert data["user"] == {"id": user.id, "email": user.email, "name": user.name}

    def test_invalid_token_on_checkout(self, client, payload):
        response = client.post("/api/orders", json=payload(), headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    def test_notification_failure_still_creates(self, client, payload, sink):
        sink.fail = True
        order = create(client, payload)
        assert client.get(f"/api/orders/{order['orderNumber']}").status_code == 200


class TestUserOrders:
    def test_lists_only_own_orders(self, client, payload, user_headers):
        mine = create(client, payload, headers=user_headers)
        create(client, payload)
        response = client.get("/api/orders/user/orders", headers=user_headers)
        assert response.status_code == 200
        assert [o["id"] for o in response.get_json()["data"]] == [mine["id"]]

    def test_requires_user_token(self, client, admin_headers):
        assert client.get("/api/orders/user/orders").status_code == 401
        assert client.get("/api/orders/user/orders", headers=admin_headers).status_code == 403


class TestAdminList:
    def test_auth(self, client, user_headers):
        assert client.get("/api/orders").status_code == 401
        assert client.get("/api/orders", headers=user_headers).status_code == 403

    def test_filters(self, client, payload, admin_headers):
        create(client, payload)
        create(client, payload, customerName="John Smith", customerEmail="john@shop.ng")
        response = client.get("/api/orders?search=JANE", headers=admin_headers)
        assert [o["customerName"] for o in response.get_json()["data"]] == ["Jane Doe"]

    def test_invalid_status_filter(self, client, admin_headers):
        response = client.get("/api/orders?status=pending", headers=admin_headers)
        assert response.status_code == 400

    def test_pagination(self, client, payload, admin_headers):
        for _ in range(3):
            create(client, payload)
        body = client.get("/api/orders?page=2&per_page=2", headers=admin_headers).get_json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {"page": 2, "per_page": 2, "pages": 2, "total": 3}

    def test_get_by_id(self, client, payload, admin_headers):
        order = create(client, payload)
        response = client.get(f"/api/orders/{order['id']}/admin", headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()["data"]["adminNotes"] is None
        assert client.get("/api/orders/missing/admin", headers=admin_headers).status_code == 404


class TestAdminMutations:
    @pytest.fixture
    def order(self, client, payload):
        return create(client, payload)

    def test_update_status(self, client, order, admin_headers):
        response = client.patch(f"/api/orders/{order['id']}/status", json={"orderStatus": "SHIPPED"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()["data"]["orderStatus"] == "SHIPPED"

    @pytest.mark.parametrize("body", [{"orderStatus": "SHIPPING"}, {"orderStatus": ""}, {"orderStatus": "pending"}])
    def test_invalid_status(self, client, order, admin_headers, body):
        response = client.patch(f"/api/orders/{order['id']}/status", json=body, headers=admin_headers)
        assert response.status_code == 400

    def test_status_body_required(self, client, order, admin_headers):
        response = client.patch(f"/api/orders/{order['id']}/status", json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_payment_status(self, client, order, admin_headers):
        response = client.patch(
            f"/api/orders/{order['id']}/payment-status", json={"paymentStatus": "COMPLETED"}, headers=admin_headers
        )
        assert response.get_json()["data"]["paymentStatus"] == "COMPLETED"
        bad = client.patch(
            f"/api/orders/{order['id']}/payment-status", json={"paymentStatus": "PAID"}, headers=admin_headers
        )
        assert bad.status_code == 400

    def test_tracking(self, client, order, admin_headers, sink):
        response = client.patch(
            f"/api/orders/{order['id']}/tracking",
            json={"trackingNumber": "TRK1", "carrier": "DHL"},
            headers=admin_headers,
        )
        data = response.get_json()["data"]
        assert response.status_code == 200
        assert (data["trackingNumber"], data["carrier"], data["estimatedDeliveryDate"]) == ("TRK1", "DHL", None)
        assert sink.kinds() == ["orderConfirmation", "orderShipped"]

    def test_tracking_errors(self, client, order, admin_headers):
        url = f"/api/orders/{order['id']}/tracking"
        missing = client.patch(url, json={"trackingNumber": "", "carrier": "DHL"}, headers=admin_headers)
        bad_date = client.patch(
            url, json={"trackingNumber": "T", "carrier": "DHL", "estimatedDeliveryDate": "soon"}, headers=admin_headers
        )
        assert missing.status_code == 400
        assert missing.get_json()["errors"] == ["trackingNumber"]
        assert bad_date.status_code == 400

    def test_deliver(self, client, order, admin_headers):
        data = client.patch(f"/api/orders/{order['id']}/deliver", headers=admin_headers).get_json()["data"]
        assert data["orderStatus"] == "DELIVERED"
        assert data["deliveredAt"] >= data["createdAt"]

    def test_cancel_refunds_unpaid_order(self, client, order, admin_headers):
        data = client.patch(f"/api/orders/{order['id']}/cancel", headers=admin_headers).get_json()["data"]
        assert (data["orderStatus"], data["paymentStatus"]) == ("CANCELLED", "REFUNDED")

    def test_notes(self, client, order, admin_headers):
        url = f"/api/orders/{order['id']}/notes"
        assert client.patch(url, json={"notes": ""}, headers=admin_headers).status_code == 400
        data = client.patch(url, json={"notes": "VIP"}, headers=admin_headers).get_json()["data"]
        assert data["adminNotes"] == "VIP"

        tracked = client.get(f"/api/orders/{order['orderNumber']}").get_json()["data"]
        assert "adminNotes" not in tracked

    def test_unknown_order(self, client, admin_headers):
        response = client.patch("/api/orders/missing/cancel", headers=admin_headers)
        assert response.status_code == 404

    def test_requires_admin(self, client, order, user_headers):
        response = client.patch(f"/api/orders/{order['id']}/cancel", headers=user_headers)
        assert response.status_code == 403
