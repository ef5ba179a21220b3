"""Payments and order settlement"""

import pytest

from conftest import API


@pytest.fixture
def order(customer, product, make_order):
    return make_order(customer["id"], product_id=product["id"], base_price=100000)


def _pay(client, headers, order, amount, **extra):
    payload = {"order_id": order["id"], "amount": amount}
    payload.update(extra)
    return client.post(f"{API}/payments/", json=payload, headers=headers)


def _order(client, headers, order):
    return client.get(f"{API}/sales-orders/{order['id']}", headers=headers).json()


class TestRecordPayment:

    def test_defaults_to_pending_and_customer_payer(self, client, sales_headers, order, customer):
        response = _pay(client, sales_headers, order, 1000)
        assert response.status_code == 201
        payment = response.json()
        assert payment["status"] == "PENDING"
        assert payment["payer_id"] == customer["id"]
        assert payment["payment_method"] == "CASH"
        assert _order(client, sales_headers, order)["paid_amount"] == 0

    def test_amount_over_remaining_is_400(self, client, sales_headers, order):
        assert order["total_price"] == 110000.0
        assert _pay(client, sales_headers, order, 110000.01).status_code == 400
        assert _pay(client, sales_headers, order, 60000, status="COMPLETED").status_code == 201
        assert _pay(client, sales_headers, order, 50000.01).status_code == 400

    def test_invalid_method_is_400(self, client, sales_headers, order):
        assert _pay(client, sales_headers, order, 100, payment_method="BARTER").status_code == 400

    def test_cancelled_order_cannot_be_paid(self, client, sales_headers, order):
        client.post(f"{API}/sales-orders/{order['id']}/cancel", headers=sales_headers)
        assert _pay(client, sales_headers, order, 100).status_code == 400


class TestSettlement:

    def test_full_completed_payment_marks_order_paid(self, client, sales_headers, order):
        _pay(client, sales_headers, order, 110000, status="COMPLETED")
        fetched = _order(client, sales_headers, order)
        assert fetched["status"] == "PAID"
        assert fetched["is_paid"] is True
        assert fetched["remaining_amount"] == 0

        total = client.get(f"{API}/payments/order/{order['id']}/total", headers=sales_headers).json()
        assert total == {
            "order_id": order["id"],
            "total_price": 110000.0,
            "total_paid": 110000.0,
            "remaining_amount": 0.0,
        }

    def test_confirm_settles_order(self, client, sales_headers, order):
        deposit = _pay(client, sales_headers, order, 10000, status="COMPLETED", payment_type="DEPOSIT").json()
        rest = _pay(client, sales_headers, order, 100000).json()
        assert _order(client, sales_headers, order)["status"] == "PENDING"

        response = client.post(f"{API}/payments/{rest['id']}/confirm", headers=sales_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "COMPLETED"
        assert _order(client, sales_headers, order)["status"] == "PAID"

        again = client.post(f"{API}/payments/{deposit['id']}/confirm", headers=sales_headers)
        assert again.status_code == 400

    def test_refund_reverts_order(self, client, sales_headers, order):
        payment = _pay(client, sales_headers, order, 110000, status="COMPLETED").json()
        response = client.post(
            f"{API}/payments/{payment['id']}/refund",
            json={"reason": "customer changed mind"},
            headers=sales_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "REFUNDED"
        assert "customer changed mind" in response.json()["notes"]
        assert _order(client, sales_headers, order)["status"] == "PENDING"
        assert client.post(f"{API}/payments/{payment['id']}/refund", headers=sales_headers).status_code == 400

    def test_partial_refund_leaves_order_confirmed(self, client, sales_headers, order):
        first = _pay(client, sales_headers, order, 60000, status="COMPLETED").json()
        _pay(client, sales_headers, order, 50000, status="COMPLETED")
        assert _order(client, sales_headers, order)["status"] == "PAID"
        client.post(f"{API}/payments/{first['id']}/refund", headers=sales_headers)
        fetched = _order(client, sales_headers, order)
        assert fetched["status"] == "CONFIRMED"
        assert fetched["paid_amount"] == 50000.0

    def test_pending_payment_cannot_be_refunded(self, client, sales_headers, order):
        payment = _pay(client, sales_headers, order, 500).json()
        assert client.post(f"{API}/payments/{payment['id']}/refund", headers=sales_headers).status_code == 400


class TestPaymentRecords:

    def test_completed_payment_cannot_be_deleted(self, client, sales_headers, order):
        payment = _pay(client, sales_headers, order, 500, status="COMPLETED").json()
        assert client.delete(f"{API}/payments/{payment['id']}", headers=sales_headers).status_code == 400

    def test_delete_pending_payment(self, client, sales_headers, order):
        payment = _pay(client, sales_headers, order, 500).json()
        assert client.delete(f"{API}/payments/{payment['id']}", headers=sales_headers).status_code == 200
        assert client.get(f"{API}/payments/{payment['id']}", headers=sales_headers).status_code == 404

    def test_order_with_payments_cannot_be_deleted(self, client, sales_headers, order):
        _pay(client, sales_headers, order, 500)
        assert client.delete(f"{API}/sales-orders/{order['id']}", headers=sales_headers).status_code == 400

    def test_lookup_by_reference_and_order(self, client, sales_headers, order):
        payment = _pay(client, sales_headers, order, 700, reference_number=f"REF-{order['id']}").json()
        by_reference = client.get(f"{API}/payments/reference/REF-{order['id']}", headers=sales_headers)
        assert by_reference.json()["id"] == payment["id"]
        by_order = client.get(f"{API}/payments/order/{order['id']}", headers=sales_headers).json()
        assert [p["id"] for p in by_order] == [payment["id"]]

    def test_statistics(self, client, sales_headers, order):
        _pay(client, sales_headers, order, 300, status="COMPLETED", payment_method="BANK_TRANSFER")
        stats = client.get(f"{API}/payments/statistics", headers=sales_headers).json()
        assert stats["completed_payments"] >= 1
        assert stats["by_method"]["BANK_TRANSFER"] >= 300

    def test_customer_role_is_403(self, client, customer_role_headers):
        assert client.get(f"{API}/payments/", headers=customer_role_headers).status_code == 403
