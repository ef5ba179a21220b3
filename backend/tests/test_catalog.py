"""Brands, dealers, contracts, products, vehicles and customers"""

from datetime import date, timedelta

from conftest import API, unique


class TestBrands:

    def test_duplicate_brand_name_is_400(self, client, admin_headers, brand):
        response = client.post(f"{API}/brands/", json={"brand_name": brand["brand_name"]}, headers=admin_headers)
        assert response.status_code == 400

    def test_brand_with_dealers_cannot_be_deleted(self, client, admin_headers, brand, dealer):
        response = client.delete(f"{API}/brands/{brand['id']}", headers=admin_headers)
        assert response.status_code == 400

    def test_missing_brand_is_404(self, client, admin_headers):
        response = client.get(f"{API}/brands/999999", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Brand not found with id: 999999"

    def test_dealer_lists_by_brand(self, client, admin_headers, brand, dealer):
        response = client.get(f"{API}/dealers/brand/{brand['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert dealer["id"] in [d["id"] for d in response.json()]

    def test_dealer_delete_blocked_by_references(self, client, admin_headers, sales_headers, make_dealer, make_user,
                                                 product, make_vehicle, customer):
        with_user = make_dealer()
        make_user("DEALER_STAFF", dealer_id=with_user["id"])
        with_vehicle = make_dealer()
        make_vehicle(product["id"], dealer_id=with_vehicle["id"])
        with_appointment = make_dealer()
        appointment = {
            "appointment_time": (date.today() + timedelta(days=2)).isoformat() + "T10:00:00",
            "customer_id": customer["id"],
            "product_id": product["id"],
            "dealer_id": with_appointment["id"],
        }
        assert client.post(f"{API}/appointments/", json=appointment, headers=sales_headers).status_code == 201

        for blocked, label in ((with_user, "users"), (with_vehicle, "vehicles"), (with_appointment, "appointments")):
            response = client.delete(f"{API}/dealers/{blocked['id']}", headers=admin_headers)
            assert response.status_code == 400
            assert label in response.json()["detail"]

    def test_delete_unused_dealer(self, client, admin_headers, make_dealer):
        dealer = make_dealer()
        assert client.delete(f"{API}/dealers/{dealer['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"{API}/dealers/{dealer['id']}", headers=admin_headers).status_code == 404


class TestContracts:

    def _contract(self, brand, dealer, start, end, target=1000000):
        return {
            "brand_id": brand["id"],
            "dealer_id": dealer["id"],
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "commission_rate": 5,
            "sales_target": target,
        }

    def test_active_contract_and_overlap(self, client, admin_headers, brand, make_dealer):
        dealer = make_dealer()
        today = date.today()
        payload = self._contract(brand, dealer, today - timedelta(days=10), today + timedelta(days=80))
        response = client.post(f"{API}/contracts/", json=payload, headers=admin_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "ACTIVE"
        assert body["days_remaining"] == 80

        overlapping = self._contract(brand, dealer, today + timedelta(days=30), today + timedelta(days=120))
        assert client.post(f"{API}/contracts/", json=overlapping, headers=admin_headers).status_code == 400

        current = client.get(f"{API}/contracts/dealer/{dealer['id']}/current", headers=admin_headers)
        assert current.status_code == 200
        assert current.json()["id"] == body["id"]

    def test_end_before_start_is_400(self, client, admin_headers, brand, make_dealer):
        dealer = make_dealer()
        today = date.today()
        payload = self._contract(brand, dealer, today, today - timedelta(days=1))
        assert client.post(f"{API}/contracts/", json=payload, headers=admin_headers).status_code == 400

    def test_expiring_window(self, client, admin_headers, brand, make_dealer):
        today = date.today()
        soon = client.post(
            f"{API}/contracts/",
            json=self._contract(brand, make_dealer(), today - timedelta(days=300), today + timedelta(days=10)),
            headers=admin_headers
        ).json()
        later = client.post(
            f"{API}/contracts/",
            json=self._contract(brand, make_dealer(), today, today + timedelta(days=100)),
            headers=admin_headers
        ).json()

        expiring = client.get(f"{API}/contracts/expiring", params={"days": 30}, headers=admin_headers).json()
        ids = [c["id"] for c in expiring]
        assert soon["id"] in ids
        assert later["id"] not in ids
        wide = client.get(f"{API}/contracts/expiring", params={"days": 120}, headers=admin_headers).json()
        assert later["id"] in [c["id"] for c in wide]


class TestProducts:

    def test_create_with_specs_and_variants(self, client, admin_headers, product):
        assert product["technical_specs"]["battery_capacity"] == "60 kWh"
        assert product["variants"][0]["color"] == "White"
        assert product["total_variant_quantity"] == 3

    def test_duplicate_variant_color_is_400(self, client, admin_headers, product):
        response = client.post(
            f"{API}/products/{product['id']}/variants",
            json={"color": "White"},
            headers=admin_headers
        )
        assert response.status_code == 400

    def test_add_and_remove_feature(self, client, admin_headers, product):
        response = client.post(
            f"{API}/products/{product['id']}/features",
            json={"feature_name": "Autopilot"},
            headers=admin_headers
        )
        assert response.status_code == 201
        feature = response.json()["features"][0]
        response = client.delete(f"{API}/products/{product['id']}/features/{feature['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["features"] == []

    def test_deactivated_product_leaves_catalog(self, client, admin_headers, product):
        response = client.patch(f"{API}/products/{product['id']}/deactivate", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        catalog = client.get(f"{API}/products/catalog", headers=admin_headers).json()
        assert product["id"] not in [p["id"] for p in catalog]

    def test_delete_blocked_by_vehicle(self, client, admin_headers, product, make_vehicle):
        make_vehicle(product["id"])
        response = client.delete(f"{API}/products/{product['id']}", headers=admin_headers)
        assert response.status_code == 400

    def test_delete_unused_product(self, client, admin_headers, product):
        assert client.delete(f"{API}/products/{product['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"{API}/products/{product['id']}", headers=admin_headers).status_code == 404

    def test_compare_two_products(self, client, admin_headers, make_product):
        first = make_product(msrp=900000, technical_specs={"product_range": "300 km"})
        second = make_product(msrp=1200000, technical_specs={"product_range": "500 km"})
        response = client.get(
            f"{API}/products/compare",
            params=[("ids", first["id"]), ("ids", second["id"])],
            headers=admin_headers
        )
        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["cheapest"]["product_id"] == first["id"]
        assert summary["best_range"]["product_id"] == second["id"]

    def test_compare_rejects_bad_selection(self, client, admin_headers, product):
        single = client.get(f"{API}/products/compare", params=[("ids", product["id"])], headers=admin_headers)
        assert single.status_code == 400
        duplicate = client.get(
            f"{API}/products/compare",
            params=[("ids", product["id"]), ("ids", product["id"])],
            headers=admin_headers
        )
        assert duplicate.status_code == 400
        missing = client.get(
            f"{API}/products/compare",
            params=[("ids", product["id"]), ("ids", 999999)],
            headers=admin_headers
        )
        assert missing.status_code == 400

    def test_filter_by_price(self, client, admin_headers, make_product):
        cheap = make_product(msrp=123456)
        response = client.get(
            f"{API}/products/",
            params={"min_price": 123000, "max_price": 124000},
            headers=admin_headers
        )
        assert response.status_code == 200
        assert cheap["id"] in [p["id"] for p in response.json()["data"]]


class TestVehicles:

    def test_defaults_to_available(self, product, make_vehicle):
        assert make_vehicle(product["id"])["status"] == "AVAILABLE"

    def test_duplicate_vin_is_400(self, client, admin_headers, product, make_vehicle):
        vehicle = make_vehicle(product["id"])
        response = client.post(
            f"{API}/vehicles/",
            json={"id": unique("VH-"), "vin": vehicle["vin"], "product_id": product["id"]},
            headers=admin_headers
        )
        assert response.status_code == 400

    def test_invalid_status_is_400(self, client, admin_headers, product):
        response = client.post(
            f"{API}/vehicles/",
            json={"id": unique("VH-"), "vin": unique("VIN").upper(), "product_id": product["id"], "status": "FLYING"},
            headers=admin_headers
        )
        assert response.status_code == 400

    def test_get_by_vin(self, client, admin_headers, product, make_vehicle):
        vehicle = make_vehicle(product["id"])
        response = client.get(f"{API}/vehicles/vin/{vehicle['vin']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["id"] == vehicle["id"]

    def test_delete_blocked_by_order(self, client, admin_headers, product, make_vehicle, customer, make_order):
        vehicle = make_vehicle(product["id"])
        make_order(customer["id"], vehicle_id=vehicle["id"])
        assert client.delete(f"{API}/vehicles/{vehicle['id']}", headers=admin_headers).status_code == 400


class TestCustomers:

    def test_duplicate_phone_is_400(self, client, admin_headers, customer):
        response = client.post(
            f"{API}/customers/",
            json={"full_name": "Someone Else", "phone_number": customer["phone_number"]},
            headers=admin_headers
        )
        assert response.status_code == 400

    def test_lookup_by_phone(self, client, sales_headers, customer):
        response = client.get(f"{API}/customers/phone/{customer['phone_number']}", headers=sales_headers)
        assert response.status_code == 200
        assert response.json()["id"] == customer["id"]

    def test_customer_with_orders_cannot_be_deleted(self, client, admin_headers, customer, product, make_order):
        make_order(customer["id"], product_id=product["id"])
        assert client.delete(f"{API}/customers/{customer['id']}", headers=admin_headers).status_code == 400

    def test_delete_customer(self, client, admin_headers, make_customer):
        customer = make_customer()
        assert client.delete(f"{API}/customers/{customer['id']}", headers=admin_headers).status_code == 200
