"""Sales orders and vehicle assignment"""

from conftest import API


def _vehicle(client, headers, vehicle_id):
    return client.get(f"{API}/vehicles/{vehicle_id}", headers=headers).json()


class TestCreateOrder:

    def test_order_with_vehicle_reserves_it(self, client, sales_headers, customer, product, make_vehicle, make_order):
        vehicle = make_vehicle(product["id"])
        order = make_order(customer["id"], vehicle_id=vehicle["id"])
        assert order["status"] == "PENDING"
        assert order["product_id"] == product["id"]
        assert order["total_price"] == 1100000.0
        assert order["paid_amount"] == 0
        assert order["remaining_amount"] == order["total_price"]
        assert order["is_paid"] is False
        assert order["can_cancel"] is True
        assert order["days_from_order"] == 0
        assert _vehicle(client, sales_headers, vehicle["id"])["status"] == "RESERVED"

    def test_vehicle_in_another_order_is_400(self, client, sales_headers, customer, product, make_vehicle, make_order):
        vehicle = make_vehicle(product["id"])
        make_order(customer["id"], vehicle_id=vehicle["id"])
        response = client.post(
            f"{API}/sales-orders/",
            json={"customer_id": customer["id"], "vehicle_id": vehicle["id"]},
            headers=sales_headers
        )
        assert response.status_code == 400

    def test_sold_vehicle_is_400(self, client, sales_headers, customer, product, make_vehicle):
        vehicle = make_vehicle(product["id"], status="SOLD")
        response = client.post(
            f"{API}/sales-orders/",
            json={"customer_id": customer["id"], "vehicle_id": vehicle["id"]},
            headers=sales_headers
        )
        assert response.status_code == 400

    def test_vehicle_or_product_required(self, client, sales_headers, customer):
        response = client.post(f"{API}/sales-orders/", json={"customer_id": customer["id"]}, headers=sales_headers)
        assert response.status_code == 400

    def test_unknown_vehicle_is_404(self, client, sales_headers, customer):
        response = client.post(
            f"{API}/sales-orders/",
            json={"customer_id": customer["id"], "vehicle_id": "NO-SUCH-CAR"},
            headers=sales_headers
        )
        assert response.status_code == 404


class TestOrderStatus:

    def test_cancel_releases_vehicle(self, client, sales_headers, customer, product, make_vehicle, make_order):
        vehicle = make_vehicle(product["id"])
        order = make_order(customer["id"], vehicle_id=vehicle["id"])
        response = client.post(f"{API}/sales-orders/{order['id']}/cancel", headers=sales_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        assert response.json()["can_cancel"] is False
        assert _vehicle(client, sales_headers, vehicle["id"])["status"] == "AVAILABLE"
        assert client.post(f"{API}/sales-orders/{order['id']}/cancel", headers=sales_headers).status_code == 400

    def test_complete_marks_vehicle_sold(self, client, sales_headers, customer, product, make_vehicle, make_order):
        vehicle = make_vehicle(product["id"])
        order = make_order(customer["id"], vehicle_id=vehicle["id"])
        url = f"{API}/sales-orders/{order['id']}/status"
        assert client.patch(url, json={"status": "DELIVERED"}, headers=sales_headers).status_code == 200
        response = client.patch(url, json={"status": "COMPLETED"}, headers=sales_headers)
        assert response.json()["status"] == "COMPLETED"
        assert _vehicle(client, sales_headers, vehicle["id"])["status"] == "SOLD"
        update = client.put(f"{API}/sales-orders/{order['id']}", json={"notes": "late"}, headers=sales_headers)
        assert update.status_code == 400

    def test_delivery_needs_vehicle(self, client, sales_headers, customer, product, make_order):
        order = make_order(customer["id"], product_id=product["id"])
        response = client.patch(
            f"{API}/sales-orders/{order['id']}/status", json={"status": "DELIVERED"}, headers=sales_headers
        )
        assert response.status_code == 400

    def test_invalid_status_is_400(self, client, sales_headers, customer, product, make_order):
        order = make_order(customer["id"], product_id=product["id"])
        response = client.patch(
            f"{API}/sales-orders/{order['id']}/status", json={"status": "LOST"}, headers=sales_headers
        )
        assert response.status_code == 400

    def test_delete_releases_vehicle(self, client, sales_headers, customer, product, make_vehicle, make_order):
        vehicle = make_vehicle(product["id"])
        order = make_order(customer["id"], vehicle_id=vehicle["id"])
        assert client.delete(f"{API}/sales-orders/{order['id']}", headers=sales_headers).status_code == 200
        assert _vehicle(client, sales_headers, vehicle["id"])["status"] == "AVAILABLE"


class TestVehicleAssignment:

    def test_assign_and_unassign(self, client, sales_headers, customer, product, make_vehicle, make_order):
        order = make_order(customer["id"], product_id=product["id"])
        vehicle = make_vehicle(product["id"])
        response = client.post(
            f"{API}/sales-orders/{order['id']}/assign-vehicle",
            json={"vehicle_id": vehicle["id"]},
            headers=sales_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"
        assert response.json()["vehicle_id"] == vehicle["id"]
        assert _vehicle(client, sales_headers, vehicle["id"])["status"] == "RESERVED"

        response = client.post(f"{API}/sales-orders/{order['id']}/unassign-vehicle", headers=sales_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "PENDING"
        assert response.json()["vehicle_id"] is None
        assert _vehicle(client, sales_headers, vehicle["id"])["status"] == "AVAILABLE"

    def test_unassign_without_vehicle_is_400(self, client, sales_headers, customer, product, make_order):
        order = make_order(customer["id"], product_id=product["id"])
        assert client.post(f"{API}/sales-orders/{order['id']}/unassign-vehicle", headers=sales_headers).status_code == 400

    def test_reserved_vehicle_cannot_be_assigned(self, client, sales_headers, customer, product, make_vehicle, make_order):
        order = make_order(customer["id"], product_id=product["id"])
        vehicle = make_vehicle(product["id"], status="RESERVED")
        response = client.post(
            f"{API}/sales-orders/{order['id']}/assign-vehicle",
            json={"vehicle_id": vehicle["id"]},
            headers=sales_headers
        )
        assert response.status_code == 400

    def test_vehicle_must_match_quotation_model(self, client, sales_headers, customer, make_product, make_vehicle):
        quoted = make_product()
        other = make_product()
        quotation = client.post(
            f"{API}/quotations/",
            json={"product_id": quoted["id"], "customer_id": customer["id"]},
            headers=sales_headers
        ).json()
        for action in ("send", "accept"):
            client.post(f"{API}/quotations/{quotation['id']}/{action}", headers=sales_headers)
        order = client.post(f"{API}/quotations/{quotation['id']}/convert", headers=sales_headers).json()

        wrong = make_vehicle(other["id"])
        response = client.post(
            f"{API}/sales-orders/{order['id']}/assign-vehicle",
            json={"vehicle_id": wrong["id"]},
            headers=sales_headers
        )
        assert response.status_code == 400

        right = make_vehicle(quoted["id"])
        response = client.post(
            f"{API}/sales-orders/{order['id']}/assign-vehicle",
            json={"vehicle_id": right["id"]},
            headers=sales_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"


class TestOrderQueries:

    def test_lists(self, client, sales_headers, sales_person, customer, product, make_order):
        order = make_order(customer["id"], product_id=product["id"])
        by_customer = client.get(f"{API}/sales-orders/customer/{customer['id']}", headers=sales_headers).json()
        assert [o["id"] for o in by_customer] == [order["id"]]

        user_id = sales_person[0]["id"]
        mine = client.get(f"{API}/sales-orders/sales-person/{user_id}", headers=sales_headers).json()
        assert order["id"] in [o["id"] for o in mine]

        recent = client.get(f"{API}/sales-orders/recent", headers=sales_headers).json()
        assert order["id"] in [o["id"] for o in recent]

        pending = client.get(f"{API}/sales-orders/pending", headers=sales_headers).json()
        assert order["id"] in [o["id"] for o in pending]

    def test_monthly_sales(self, client, sales_headers, customer, product, make_order):
        order = make_order(customer["id"], product_id=product["id"], order_date="2023-03-15T10:00:00")
        response = client.get(
            f"{API}/sales-orders/monthly", params={"year": 2023, "month": 3}, headers=sales_headers
        )
        assert order["id"] in [o["id"] for o in response.json()]
        bad = client.get(f"{API}/sales-orders/monthly", params={"year": 2023, "month": 13}, headers=sales_headers)
        assert bad.status_code in (400, 422)

    def test_paged_filter(self, client, sales_headers, customer, product, make_order):
        make_order(customer["id"], product_id=product["id"])
        make_order(customer["id"], product_id=product["id"])
        response = client.get(
            f"{API}/sales-orders/",
            params={"customer_id": customer["id"], "size": 1, "page": 1},
            headers=sales_headers
        ).json()
        assert response["total"] == 2
        assert response["total_pages"] == 2
        assert len(response["data"]) == 1
        assert response["page"] == 1
