"""
HTTP contract of the bartender cart endpoints.
"""

import pytest

from festgo.services import stock_service


# =============================================================================
# CART INPUT
# =============================================================================


class TestCartInput:
    def test_input_adds_product(self, client, event, stocked_bar, products, bartender_headers):
        resp = client.post(
            "/bartender/input",
            json={"input": "CCC3", "eventId": event.id},
            headers=bartender_headers,
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["product"]["code"] == "CCC"
        assert body["product"]["quantity"] == 3
        assert body["product"]["price"] == 10.0
        assert body["cartSummary"]["totalItems"] == 1
        assert body["cartSummary"]["totalQuantity"] == 3
        assert body["cartSummary"]["subtotal"] == 30.0
        assert body["cartSummary"]["total"] == 36.3

    def test_input_errors_use_one_shape(self, client, event, stocked_bar, products, bartender_headers):
        cases = [
            ({"input": "12X", "eventId": event.id}, 400, "invalid_format"),
            ({"input": "ZZ", "eventId": event.id}, 404, "not_found"),
            ({"input": "CCC"}, 400, "validation_error"),
            ({"input": "AG21", "eventId": event.id}, 400, "insufficient_stock"),
        ]
        for payload, status, kind in cases:
            resp = client.post("/bartender/input", json=payload, headers=bartender_headers)
            assert resp.status_code == status, payload
            body = resp.get_json()
            assert body["error"] == kind
            assert body["message"]
            assert isinstance(body["details"], dict)


# =============================================================================
# CART READ / EDIT
# =============================================================================


class TestCartEditing:
    def test_get_cart(self, client, event, stocked_bar, products, bartender_headers):
        resp = client.get("/bartender/cart", headers=bartender_headers)
        assert resp.status_code == 404

        client.post("/bartender/input", json={"input": "2CE", "eventId": event.id}, headers=bartender_headers)
        resp = client.get("/bartender/cart", headers=bartender_headers)

        assert resp.status_code == 200
        cart = resp.get_json()
        assert cart["bartenderId"] == "bt-1"
        assert cart["bartenderName"] == "Juan"
        assert cart["eventId"] == event.id
        assert cart["items"][0]["productCode"] == "CE"
        assert cart["items"][0]["quantity"] == 2

    def test_remove_item_and_clear(self, client, event, stocked_bar, products, bartender_headers):
        client.post("/bartender/input", json={"input": "CCC", "eventId": event.id}, headers=bartender_headers)
        client.post("/bartender/input", json={"input": "CE", "eventId": event.id}, headers=bartender_headers)

        resp = client.delete(
            "/bartender/cart/item",
            json={"productId": products["CCC"].id},
            headers=bartender_headers,
        )
        assert resp.status_code == 200
        assert [i["productCode"] for i in resp.get_json()["cartSummary"]["items"]] == ["CE"]

        resp = client.delete(
            "/bartender/cart/item",
            json={"productId": products["CCC"].id},
            headers=bartender_headers,
        )
        assert resp.status_code == 404

        for _ in range(2):
            resp = client.delete("/bartender/cart", headers=bartender_headers)
            assert resp.status_code == 200
            assert resp.get_json()["cartSummary"]["totalItems"] == 0

    def test_clear_without_cart_succeeds(self, client, db_session, bartender_headers):
        resp = client.delete("/bartender/cart", headers=bartender_headers)
        assert resp.status_code == 200
        assert resp.get_json()["cartSummary"]["items"] == []


# =============================================================================
# CONFIRM
# =============================================================================


class TestConfirm:
    def test_confirm_happy_path(self, client, event, stocked_bar, products, bartender_headers):
        client.post("/bartender/input", json={"input": "CCC3", "eventId": event.id}, headers=bartender_headers)

        resp = client.post(
            "/bartender/cart/confirm",
            json={"barId": stocked_bar.id, "paymentMethod": "cash", "customerName": "Mesa 1"},
            headers=bartender_headers,
        )

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["success"] is True
        assert body["ticketId"]
        assert body["ticketNumber"].startswith("T-")
        assert body["ticket"]["total"] == 36.3
        assert body["ticket"]["customerName"] == "Mesa 1"
        assert body["printFormat"]["totals"]["total"] == 36.3
        assert body["printFormat"]["payment"]["changeAmount"] == 0.0
        assert stock_service.get_quantity(stocked_bar.id, products["CCC"].id) == 97

        cart = client.get("/bartender/cart", headers=bartender_headers).get_json()
        assert cart["items"] == []

    def test_confirm_failures(self, client, event, stocked_bar, second_bar, products, bartender_headers):
        resp = client.post("/bartender/cart/confirm", json={"barId": stocked_bar.id}, headers=bartender_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "empty_cart"

        client.post("/bartender/input", json={"input": "CCC3", "eventId": event.id}, headers=bartender_headers)
        resp = client.post("/bartender/cart/confirm", json={"barId": second_bar.id}, headers=bartender_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "insufficient_stock"

        resp = client.post(
            "/bartender/cart/confirm",
            json={"barId": stocked_bar.id, "paymentMethod": "bitcoin"},
            headers=bartender_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"

        cart = client.get("/bartender/cart", headers=bartender_headers).get_json()
        assert cart["items"][0]["quantity"] == 3

    @pytest.mark.parametrize(
        "extra",
        [
            {"paymentMethod": 5},
            {"paymentMethod": ["cash"]},
            {"customerName": {"x": 1}},
            {"customerName": "x" * 256},
            {"notes": {"x": 1}},
            {"notes": [1, 2]},
        ],
    )
    def test_malformed_optional_fields_are_rejected(self, client, event, stocked_bar, products, bartender_headers, extra):
        client.post("/bartender/input", json={"input": "CCC3", "eventId": event.id}, headers=bartender_headers)

        resp = client.post(
            "/bartender/cart/confirm",
            json={"barId": stocked_bar.id, **extra},
            headers=bartender_headers,
        )

        assert resp.status_code == 400, resp.get_json()
        assert resp.get_json()["error"] == "validation_error"
        assert stock_service.get_quantity(stocked_bar.id, products["CCC"].id) == 100
        cart = client.get("/bartender/cart", headers=bartender_headers).get_json()
        assert cart["items"][0]["quantity"] == 3

    def test_customer_name_at_max_length_is_accepted(self, client, event, stocked_bar, products, bartender_headers):
        client.post("/bartender/input", json={"input": "CE", "eventId": event.id}, headers=bartender_headers)

        resp = client.post(
            "/bartender/cart/confirm",
            json={"barId": stocked_bar.id, "customerName": "x" * 255, "notes": "  sin hielo  "},
            headers=bartender_headers,
        )

        assert resp.status_code == 201
        assert len(resp.get_json()["ticket"]["customerName"]) == 255
        assert resp.get_json()["ticket"]["notes"] == "sin hielo"
