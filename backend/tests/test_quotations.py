"""Quotation lifecycle"""

import re
from datetime import date, timedelta

import pytest

from conftest import API
from evm_dealer.services import quotation_service


@pytest.fixture
def make_quotation(client, sales_headers, customer, product):
    def _make(**overrides):
        payload = {
            "product_id": product["id"],
            "customer_id": customer["id"],
            "registration_fee": 20000,
        }
        payload.update(overrides)
        response = client.post(f"{API}/quotations/", json=payload, headers=sales_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


def _post(client, headers, quotation, action):
    return client.post(f"{API}/quotations/{quotation['id']}/{action}", headers=headers)


class TestCreateQuotation:

    def test_defaults_and_pricing(self, make_quotation, product, dealer, sales_person):
        quotation = make_quotation()
        assert re.fullmatch(rf"QT-{date.today().year}-\d{{5}}", quotation["quotation_number"])
        assert quotation["status"] == "DRAFT"
        assert quotation["base_price"] == product["msrp"]
        assert quotation["vat"] == 100000.0
        assert quotation["total_price"] == 1120000.0
        assert quotation["valid_until"] == (date.today() + timedelta(days=30)).isoformat()
        assert quotation["dealer_id"] == dealer["id"]
        assert quotation["sales_person_id"] == sales_person[0]["id"]

    def test_promotions_reduce_total(self, make_quotation, make_promotion):
        percentage = make_promotion(discount_type="PERCENTAGE", discount_value=10)
        fixed = make_promotion(discount_type="FIXED", discount_value=5000)
        quotation = make_quotation(base_price=500000, registration_fee=0,
                                   promotion_ids=[percentage["id"], fixed["id"]])
        assert quotation["discount_amount"] == 55000.0
        assert quotation["total_price"] == 500000 + 50000 - 55000
        applied = {p["promotion_id"]: p["applied_amount"] for p in quotation["promotions"]}
        assert applied == {percentage["id"]: 50000.0, fixed["id"]: 5000.0}

    def test_unknown_customer_is_404(self, client, sales_headers, product):
        payload = {"product_id": product["id"], "customer_id": 999999}
        assert client.post(f"{API}/quotations/", json=payload, headers=sales_headers).status_code == 404

    def test_unknown_promotion_is_404(self, client, sales_headers, product, customer):
        payload = {"product_id": product["id"], "customer_id": customer["id"], "promotion_ids": [999999]}
        assert client.post(f"{API}/quotations/", json=payload, headers=sales_headers).status_code == 404

    def test_user_without_dealer_needs_explicit_dealer(self, client, product, customer, make_user, dealer):
        _, headers = make_user("SALES_MANAGER", dealer_id=None)
        payload = {"product_id": product["id"], "customer_id": customer["id"]}
        assert client.post(f"{API}/quotations/", json=payload, headers=headers).status_code == 400
        payload["dealer_id"] = dealer["id"]
        assert client.post(f"{API}/quotations/", json=payload, headers=headers).status_code == 201

    def test_numbers_are_unique(self, make_quotation):
        first = make_quotation()
        second = make_quotation()
        assert first["quotation_number"] != second["quotation_number"]


class TestQuotationTransitions:

    def test_draft_can_be_updated(self, client, sales_headers, make_quotation):
        quotation = make_quotation()
        response = client.put(
            f"{API}/quotations/{quotation['id']}",
            json={"base_price": 800000, "registration_fee": 0},
            headers=sales_headers
        )
        assert response.status_code == 200
        assert response.json()["total_price"] == 880000.0

    def test_sent_quotation_is_frozen(self, client, sales_headers, make_quotation):
        quotation = make_quotation()
        assert _post(client, sales_headers, quotation, "send").json()["status"] == "SENT"
        update = client.put(f"{API}/quotations/{quotation['id']}", json={"notes": "x"}, headers=sales_headers)
        assert update.status_code == 400
        assert client.delete(f"{API}/quotations/{quotation['id']}", headers=sales_headers).status_code == 400
        assert _post(client, sales_headers, quotation, "send").status_code == 400

    def test_accept_requires_sent(self, client, sales_headers, make_quotation):
        quotation = make_quotation()
        assert _post(client, sales_headers, quotation, "accept").status_code == 400

    def test_reject(self, client, sales_headers, make_quotation):
        quotation = make_quotation()
        _post(client, sales_headers, quotation, "send")
        assert _post(client, sales_headers, quotation, "reject").json()["status"] == "REJECTED"
        assert _post(client, sales_headers, quotation, "reject").status_code == 400

    def test_expired_quotation_cannot_be_accepted(self, client, sales_headers, make_quotation):
        today = date.today()
        quotation = make_quotation(
            quotation_date=(today - timedelta(days=40)).isoformat(),
            valid_until=(today - timedelta(days=10)).isoformat()
        )
        assert quotation["is_expired"] is True
        _post(client, sales_headers, quotation, "send")
        assert _post(client, sales_headers, quotation, "accept").status_code == 400

        response = client.post(f"{API}/quotations/expire", headers=sales_headers)
        assert response.status_code == 200
        fetched = client.get(f"{API}/quotations/{quotation['id']}", headers=sales_headers).json()
        assert fetched["status"] == "EXPIRED"
        expired_ids = [q["id"] for q in client.get(f"{API}/quotations/expired", headers=sales_headers).json()]
        assert quotation["id"] in expired_ids

    def test_valid_until_before_date_is_400(self, client, sales_headers, product, customer):
        today = date.today()
        payload = {
            "product_id": product["id"],
            "customer_id": customer["id"],
            "quotation_date": today.isoformat(),
            "valid_until": (today - timedelta(days=1)).isoformat(),
        }
        assert client.post(f"{API}/quotations/", json=payload, headers=sales_headers).status_code == 400

    def test_delete_draft(self, client, sales_headers, make_quotation):
        quotation = make_quotation()
        assert client.delete(f"{API}/quotations/{quotation['id']}", headers=sales_headers).status_code == 200
        assert client.get(f"{API}/quotations/{quotation['id']}", headers=sales_headers).status_code == 404


class TestConvertToOrder:

    def test_convert_accepted_quotation(self, client, sales_headers, make_quotation, make_promotion):
        promotion = make_promotion(discount_type="FIXED", discount_value=10000)
        quotation = make_quotation(promotion_ids=[promotion["id"]])
        _post(client, sales_headers, quotation, "send")
        assert _post(client, sales_headers, quotation, "accept").json()["can_convert_to_order"] is True

        response = _post(client, sales_headers, quotation, "convert")
        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "PENDING"
        assert order["vehicle_id"] is None
        assert order["product_id"] == quotation["product_id"]
        assert order["total_price"] == quotation["total_price"]
        assert [p["promotion_id"] for p in order["promotions"]] == [promotion["id"]]

        converted = client.get(f"{API}/quotations/{quotation['id']}", headers=sales_headers).json()
        assert converted["status"] == "CONVERTED"
        assert converted["sales_order_id"] == order["id"]
        assert _post(client, sales_headers, quotation, "convert").status_code == 400

    def test_draft_cannot_be_converted(self, client, sales_headers, make_quotation):
        quotation = make_quotation()
        assert _post(client, sales_headers, quotation, "convert").status_code == 400


class TestQuotationQueries:

    def test_by_number_and_customer(self, client, sales_headers, make_quotation, customer):
        quotation = make_quotation()
        by_number = client.get(f"{API}/quotations/number/{quotation['quotation_number']}", headers=sales_headers)
        assert by_number.json()["id"] == quotation["id"]
        by_customer = client.get(f"{API}/quotations/customer/{customer['id']}", headers=sales_headers).json()
        assert [q["id"] for q in by_customer] == [quotation["id"]]

    def test_filter_by_status(self, client, sales_headers, make_quotation, customer):
        draft = make_quotation()
        sent = make_quotation()
        _post(client, sales_headers, sent, "send")
        response = client.get(
            f"{API}/quotations/",
            params={"customer_id": customer["id"], "status": "SENT"},
            headers=sales_headers
        )
        ids = [q["id"] for q in response.json()["data"]]
        assert sent["id"] in ids
        assert draft["id"] not in ids

    def test_scheduled_expiry_job(self, client, admin_headers, sales_headers, make_quotation):
        today = date.today()
        quotation = make_quotation(
            quotation_date=(today - timedelta(days=40)).isoformat(),
            valid_until=(today - timedelta(days=1)).isoformat()
        )
        _post(client, sales_headers, quotation, "send")
        response = client.post(f"{API}/system/scheduler/expire-quotations", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["expired"] >= 1
        fetched = client.get(f"{API}/quotations/{quotation['id']}", headers=sales_headers).json()
        assert fetched["status"] == "EXPIRED"

    def test_manual_expiry_reports_failures(self, client, admin_headers, monkeypatch):
        async def broken(db, today=None):
            raise RuntimeError("database is locked")

        monkeypatch.setattr(quotation_service, "auto_expire", broken)
        with pytest.raises(RuntimeError):
            client.post(f"{API}/system/scheduler/expire-quotations", headers=admin_headers)
