"""Promotions and price calculation"""

from datetime import date, timedelta
from decimal import Decimal

from conftest import API
from evm_dealer.models.promotion import Promotion
from evm_dealer.services import pricing, promotion_service


def _promotion(discount_type, value, start=None, end=None):
    today = date.today()
    return Promotion(
        id=1,
        promotion_code="TEST",
        promotion_name="Test",
        discount_type=discount_type,
        discount_value=Decimal(str(value)),
        start_date=start or today,
        end_date=end or today + timedelta(days=10),
    )


class TestPricing:

    def test_vat_and_total(self):
        breakdown = pricing.calculate(Decimal("1000000"), Decimal("20000"))
        assert breakdown.vat == Decimal("100000.00")
        assert breakdown.discount_amount == Decimal("0.00")
        assert breakdown.total_price == Decimal("1120000.00")

    def test_percentage_and_fixed_discounts_stack(self):
        promotions = [_promotion("PERCENTAGE", 5), _promotion("FIXED", 15000)]
        breakdown = pricing.calculate(Decimal("1000000"), 0, promotions)
        assert [amount for _, amount in breakdown.applied] == [Decimal("50000.00"), Decimal("15000.00")]
        assert breakdown.discount_amount == Decimal("65000.00")
        assert breakdown.total_price == Decimal("1035000.00")

    def test_rounding_is_half_up(self):
        breakdown = pricing.calculate(Decimal("0.05"), 0, [_promotion("PERCENTAGE", 50)])
        assert breakdown.vat == Decimal("0.01")
        assert breakdown.discount_amount == Decimal("0.03")


class TestPromotionDerivedValues:

    def test_status_follows_dates(self):
        today = date.today()
        upcoming = _promotion("FIXED", 1, today + timedelta(days=1), today + timedelta(days=5))
        expired = _promotion("FIXED", 1, today - timedelta(days=5), today - timedelta(days=1))
        assert promotion_service.promotion_status(upcoming) == "UPCOMING"
        assert promotion_service.promotion_status(expired) == "EXPIRED"
        assert promotion_service.promotion_status(_promotion("FIXED", 1)) == "ACTIVE"

    def test_progress_percentage(self):
        start = date(2024, 1, 1)
        promotion = _promotion("FIXED", 1, start, start + timedelta(days=10))
        assert promotion_service.progress_percentage(promotion, today=start + timedelta(days=5)) == 50
        assert promotion_service.progress_percentage(promotion, today=start - timedelta(days=1)) == 0
        one_day = _promotion("FIXED", 1, start, start)
        assert promotion_service.progress_percentage(one_day, today=start) == 100

    def test_discount_display(self):
        assert promotion_service.discount_display(_promotion("PERCENTAGE", 10)) == "10%"
        assert promotion_service.discount_display(_promotion("FIXED", 15000)) == "15,000.00"


class TestPromotionApi:

    def test_create_reports_status(self, make_promotion):
        promotion = make_promotion()
        assert promotion["status"] == "ACTIVE"
        assert promotion["days_remaining"] == 25
        assert promotion["total_usages"] == 0

    def test_end_before_start_is_400(self, client, admin_headers):
        today = date.today()
        payload = {
            "promotion_code": "BADDATES",
            "promotion_name": "Bad dates",
            "discount_type": "FIXED",
            "discount_value": 100,
            "start_date": today.isoformat(),
            "end_date": (today - timedelta(days=1)).isoformat(),
        }
        assert client.post(f"{API}/promotions/", json=payload, headers=admin_headers).status_code == 400

    def test_percentage_over_100_is_400(self, client, admin_headers):
        today = date.today()
        payload = {
            "promotion_code": "TOOMUCH",
            "promotion_name": "Too much",
            "discount_type": "PERCENTAGE",
            "discount_value": 150,
            "start_date": today.isoformat(),
            "end_date": today.isoformat(),
        }
        assert client.post(f"{API}/promotions/", json=payload, headers=admin_headers).status_code == 400

    def test_duplicate_code_is_400(self, client, admin_headers, make_promotion):
        promotion = make_promotion()
        today = date.today()
        payload = {
            "promotion_code": promotion["promotion_code"],
            "promotion_name": "Copy",
            "discount_type": "FIXED",
            "discount_value": 1,
            "start_date": today.isoformat(),
            "end_date": today.isoformat(),
        }
        assert client.post(f"{API}/promotions/", json=payload, headers=admin_headers).status_code == 400

    def test_update_to_taken_code_is_400(self, client, admin_headers, make_promotion):
        first = make_promotion()
        second = make_promotion()
        payload = {
            field: second[field]
            for field in ("promotion_name", "discount_type", "discount_value", "start_date", "end_date")
        }
        url = f"{API}/promotions/{second['id']}"
        taken = client.put(url, json={**payload, "promotion_code": first["promotion_code"]}, headers=admin_headers)
        assert taken.status_code == 400
        same = client.put(url, json={**payload, "promotion_code": second["promotion_code"]}, headers=admin_headers)
        assert same.status_code == 200

    def test_sales_person_cannot_create(self, client, sales_headers):
        today = date.today()
        payload = {
            "promotion_code": "NOPE",
            "promotion_name": "Nope",
            "discount_type": "FIXED",
            "discount_value": 1,
            "start_date": today.isoformat(),
            "end_date": today.isoformat(),
        }
        assert client.post(f"{API}/promotions/", json=payload, headers=sales_headers).status_code == 403

    def test_used_promotion_cannot_be_deleted(self, client, admin_headers, customer, product, make_promotion, make_order):
        promotion = make_promotion()
        make_order(customer["id"], product_id=product["id"], promotion_ids=[promotion["id"]])
        fetched = client.get(f"{API}/promotions/{promotion['id']}", headers=admin_headers).json()
        assert fetched["total_usages"] == 1
        assert client.delete(f"{API}/promotions/{promotion['id']}", headers=admin_headers).status_code == 400

    def test_delete_unused_promotion(self, client, admin_headers, make_promotion):
        promotion = make_promotion()
        assert client.delete(f"{API}/promotions/{promotion['id']}", headers=admin_headers).status_code == 200

    def test_active_list_excludes_upcoming(self, client, admin_headers, make_promotion):
        today = date.today()
        active = make_promotion()
        upcoming = make_promotion(
            start_date=(today + timedelta(days=3)).isoformat(),
            end_date=(today + timedelta(days=9)).isoformat()
        )
        ids = [p["id"] for p in client.get(f"{API}/promotions/active", headers=admin_headers).json()]
        assert active["id"] in ids
        assert upcoming["id"] not in ids
