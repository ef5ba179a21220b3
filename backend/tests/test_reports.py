"""Sales, inventory, dealer performance and revenue reports"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import API
from evm_dealer.services import report_service


@pytest.fixture
def report_dealer(make_dealer):
    return make_dealer()


@pytest.fixture
def order_on(customer, product, report_dealer, make_order):
    """Order for the report dealer on a given day, priced base_price + 10% VAT"""
    def _make(day, base_price=100000, **overrides):
        return make_order(
            customer["id"],
            product_id=product["id"],
            dealer_id=report_dealer["id"],
            base_price=base_price,
            order_date=f"{day}T10:00:00",
            **overrides
        )
    return _make


class TestReportHelpers:

    def test_months_ago_clamps_day(self):
        assert report_service.months_ago(date(2024, 3, 31), 1) == date(2024, 2, 29)
        assert report_service.months_ago(date(2024, 1, 15), 3) == date(2023, 10, 15)

    def test_previous_period_has_equal_length(self):
        assert report_service.previous_period(date(2024, 5, 1), date(2024, 5, 31)) == (
            date(2024, 3, 31), date(2024, 4, 30)
        )

    def test_month_keys_cross_year(self):
        assert report_service.month_keys(date(2023, 11, 5), date(2024, 2, 1)) == [
            "2023-11", "2023-12", "2024-01", "2024-02"
        ]

    def test_report_window_defaults(self):
        assert report_service.report_window(None, date(2024, 5, 31), 3) == (date(2024, 2, 29), date(2024, 5, 31))

    def test_performance_levels(self):
        assert report_service.performance_level(Decimal("100")) == "EXCELLENT"
        assert report_service.performance_level(Decimal("80")) == "GOOD"
        assert report_service.performance_level(Decimal("79.99")) == "AVERAGE"
        assert report_service.performance_level(Decimal("10")) == "POOR"


class TestReportWindow:

    @pytest.mark.parametrize("path", ["sales", "revenue", "dealer-performance"])
    def test_reversed_range_is_400(self, client, brand_manager_headers, path):
        params = {"from_date": "2024-05-31", "to_date": "2024-04-20"}
        response = client.get(f"{API}/reports/{path}", params=params, headers=brand_manager_headers)
        assert response.status_code == 400

    def test_reversed_range_for_one_dealer_is_400(self, client, brand_manager_headers, report_dealer):
        response = client.get(
            f"{API}/reports/dealer-performance/{report_dealer['id']}",
            params={"from_date": date.today().isoformat(), "to_date": "2000-01-01"},
            headers=brand_manager_headers
        )
        assert response.status_code == 400


class TestSalesReport:

    def test_totals_and_growth(self, client, brand_manager_headers, sales_headers, report_dealer, product, order_on):
        order_on("2022-05-10")
        order_on("2022-05-20")
        cancelled = order_on("2022-05-21")
        client.post(f"{API}/sales-orders/{cancelled['id']}/cancel", headers=sales_headers)
        order_on("2022-04-15")

        response = client.get(
            f"{API}/reports/sales",
            params={"from_date": "2022-05-01", "to_date": "2022-05-31", "dealer_id": report_dealer["id"]},
            headers=brand_manager_headers
        )
        assert response.status_code == 200
        report = response.json()
        assert report["total_revenue"] == 220000.0
        assert report["total_orders"] == 2
        assert report["average_order_value"] == 110000.0
        assert report["previous_period_revenue"] == 110000.0
        assert report["growth_rate"] == 100.0
        assert [d["date"] for d in report["sales_by_day"]] == ["2022-05-10", "2022-05-20"]
        assert report["top_dealers"] == [
            {"id": report_dealer["id"], "name": report_dealer["dealer_name"], "total_sales": 220000.0, "order_count": 2}
        ]
        assert report["top_products"][0]["product_id"] == product["id"]
        assert report["top_products"][0]["units_sold"] == 2

    def test_empty_period(self, client, brand_manager_headers, report_dealer):
        report = client.get(
            f"{API}/reports/sales",
            params={"from_date": "2001-01-01", "to_date": "2001-01-31", "dealer_id": report_dealer["id"]},
            headers=brand_manager_headers
        ).json()
        assert report["total_revenue"] == 0
        assert report["average_order_value"] == 0
        assert report["growth_rate"] == 0
        assert report["sales_by_day"] == []

    def test_sales_person_is_403(self, client, sales_headers):
        assert client.get(f"{API}/reports/sales", headers=sales_headers).status_code == 403


class TestInventoryReport:

    def test_alerts(self, client, brand_manager_headers, warehouse_headers, report_dealer, make_product):
        for total in (0, 3, 10):
            payload = {
                "product_id": make_product()["id"],
                "dealer_id": report_dealer["id"],
                "total_quantity": total,
                "reserved_quantity": 0,
                "available_quantity": total,
                "in_transit_quantity": 0,
            }
            assert client.post(f"{API}/inventory/", json=payload, headers=warehouse_headers).status_code == 201

        report = client.get(
            f"{API}/reports/inventory", params={"dealer_id": report_dealer["id"]}, headers=brand_manager_headers
        ).json()
        assert report["total_products"] == 3
        assert report["total_stock"] == 13
        assert report["low_stock_count"] == 1
        assert report["out_of_stock_count"] == 1
        assert sorted(d["stock_status"] for d in report["inventory_details"]) == [
            "IN_STOCK", "LOW_STOCK", "OUT_OF_STOCK"
        ]
        assert sorted(a["alert_type"] for a in report["alerts"]) == ["LOW_STOCK", "OUT_OF_STOCK"]
        assert all(a["min_stock_level"] == 5 for a in report["alerts"])

        strict = client.get(
            f"{API}/reports/inventory",
            params={"dealer_id": report_dealer["id"], "threshold": 2},
            headers=brand_manager_headers
        ).json()
        assert strict["low_stock_count"] == 0


class TestDealerPerformance:

    def test_against_contract_target(self, client, admin_headers, brand_manager_headers, brand,
                                      report_dealer, product, order_on):
        contract = {
            "brand_id": brand["id"],
            "dealer_id": report_dealer["id"],
            "start_date": "2022-01-01",
            "end_date": "2022-12-31",
            "commission_rate": 3,
            "sales_target": 1000000,
        }
        assert client.post(f"{API}/contracts/", json=contract, headers=admin_headers).status_code == 201
        order_on("2022-01-15", base_price=500000)
        order_on("2022-02-15", base_price=300000)

        response = client.get(
            f"{API}/reports/dealer-performance/{report_dealer['id']}",
            params={"from_date": "2022-01-01", "to_date": "2022-03-31"},
            headers=brand_manager_headers
        )
        assert response.status_code == 200
        report = response.json()
        assert report["total_revenue"] == 880000.0
        assert report["total_orders"] == 2
        assert report["sales_target"] == 1000000.0
        assert report["achievement_rate"] == 88.0
        assert report["performance_level"] == "GOOD"
        assert report["commission_rate"] == 3.0
        months = {m["month"]: m for m in report["monthly_performance"]}
        assert list(months) == ["2022-01", "2022-02", "2022-03"]
        assert months["2022-01"]["revenue"] == 550000.0
        assert months["2022-03"]["order_count"] == 0
        assert months["2022-03"]["target"] == 333333.33
        assert report["product_breakdown"] == [
            {
                "product_id": product["id"],
                "product_name": product["product_name"],
                "units_sold": 2,
                "revenue": 880000.0,
                "percentage": 100.0,
            }
        ]

    def test_without_contract(self, client, brand_manager_headers, report_dealer):
        report = client.get(
            f"{API}/reports/dealer-performance/{report_dealer['id']}", headers=brand_manager_headers
        ).json()
        assert report["sales_target"] == 0
        assert report["achievement_rate"] == 0
        assert report["performance_level"] == "POOR"
        assert len(report["monthly_performance"]) == 4

    def test_all_dealers_sorted_by_revenue(self, client, brand_manager_headers):
        reports = client.get(f"{API}/reports/dealer-performance", headers=brand_manager_headers).json()
        revenues = [r["total_revenue"] for r in reports]
        assert revenues == sorted(revenues, reverse=True)

    def test_unknown_dealer_is_404(self, client, brand_manager_headers):
        response = client.get(f"{API}/reports/dealer-performance/999999", headers=brand_manager_headers)
        assert response.status_code == 404


class TestRevenueAndDashboard:

    def test_revenue_splits_paid_and_pending(self, client, brand_manager_headers, sales_headers,
                                             report_dealer, order_on):
        order = order_on("2022-07-10")
        payment = {"order_id": order["id"], "amount": 50000, "status": "COMPLETED"}
        assert client.post(f"{API}/payments/", json=payment, headers=sales_headers).status_code == 201

        report = client.get(
            f"{API}/reports/revenue",
            params={"from_date": "2022-07-01", "to_date": "2022-07-31", "dealer_id": report_dealer["id"]},
            headers=brand_manager_headers
        ).json()
        assert report["total_revenue"] == 110000.0
        assert report["total_paid"] == 50000.0
        assert report["total_pending"] == 60000.0

    def test_dashboard(self, client, brand_manager_headers, customer, product, make_order):
        make_order(customer["id"], product_id=product["id"])
        response = client.get(f"{API}/reports/dashboard", headers=brand_manager_headers)
        assert response.status_code == 200
        summary = response.json()
        assert summary["current_date"] == date.today().isoformat()
        assert summary["total_orders"] >= 1
        assert summary["total_pending_payment"] >= 1100000.0
        assert len(summary["top_products"]) <= 5
        assert len(summary["recent_alerts"]) <= 10
