"""Inventory bookkeeping"""

import pytest

from conftest import API


@pytest.fixture
def make_inventory(client, warehouse_headers):
    def _make(product_id, dealer_id=None, total=10, reserved=0, available=None, in_transit=0):
        available = total - reserved - in_transit if available is None else available
        payload = {
            "product_id": product_id,
            "dealer_id": dealer_id,
            "total_quantity": total,
            "reserved_quantity": reserved,
            "available_quantity": available,
            "in_transit_quantity": in_transit,
            "location": "Main yard",
        }
        response = client.post(f"{API}/inventory/", json=payload, headers=warehouse_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


class TestInventoryRecords:

    def test_brand_warehouse_row(self, product, make_inventory):
        inventory = make_inventory(product["id"], total=8, reserved=2)
        assert inventory["is_brand_warehouse"] is True
        assert inventory["available_quantity"] == 6
        assert inventory["stock_percentage"] == 75.0
        assert inventory["is_low_stock"] is False

    def test_unbalanced_quantities_are_400(self, client, warehouse_headers, product):
        payload = {
            "product_id": product["id"],
            "total_quantity": 10,
            "reserved_quantity": 1,
            "available_quantity": 5,
            "in_transit_quantity": 0,
        }
        assert client.post(f"{API}/inventory/", json=payload, headers=warehouse_headers).status_code == 400

    def test_one_row_per_product_and_location(self, client, warehouse_headers, product, dealer, make_inventory):
        make_inventory(product["id"], dealer_id=dealer["id"])
        payload = {"product_id": product["id"], "dealer_id": dealer["id"]}
        assert client.post(f"{API}/inventory/", json=payload, headers=warehouse_headers).status_code == 400

    def test_update_keeps_balance(self, client, warehouse_headers, product, make_inventory):
        inventory = make_inventory(product["id"])
        bad = {"total_quantity": 5, "reserved_quantity": 0, "available_quantity": 4, "in_transit_quantity": 0}
        assert client.put(f"{API}/inventory/{inventory['id']}", json=bad, headers=warehouse_headers).status_code == 400
        good = {"total_quantity": 5, "reserved_quantity": 1, "available_quantity": 4, "in_transit_quantity": 0}
        response = client.put(f"{API}/inventory/{inventory['id']}", json=good, headers=warehouse_headers)
        assert response.status_code == 200
        assert response.json()["is_low_stock"] is True

    def test_delete_requires_empty_stock(self, client, warehouse_headers, product, make_inventory):
        inventory = make_inventory(product["id"], total=1)
        assert client.delete(f"{API}/inventory/{inventory['id']}", headers=warehouse_headers).status_code == 400
        client.patch(f"{API}/inventory/{inventory['id']}/adjust", json={"quantity": -1}, headers=warehouse_headers)
        assert client.delete(f"{API}/inventory/{inventory['id']}", headers=warehouse_headers).status_code == 200


class TestStockMovements:

    def test_adjust(self, client, warehouse_headers, product, make_inventory):
        inventory = make_inventory(product["id"], total=3)
        url = f"{API}/inventory/{inventory['id']}/adjust"
        response = client.patch(url, json={"quantity": 4, "reason": "delivery"}, headers=warehouse_headers)
        assert response.status_code == 200
        assert response.json()["total_quantity"] == 7
        assert response.json()["available_quantity"] == 7
        assert client.patch(url, json={"quantity": -8}, headers=warehouse_headers).status_code == 400

    def test_reserve_and_release(self, client, warehouse_headers, product, make_inventory):
        inventory = make_inventory(product["id"], total=5)
        base = f"{API}/inventory/{inventory['id']}"
        response = client.patch(f"{base}/reserve", json={"quantity": 2}, headers=warehouse_headers)
        assert response.status_code == 200
        assert (response.json()["available_quantity"], response.json()["reserved_quantity"]) == (3, 2)

        assert client.patch(f"{base}/reserve", json={"quantity": 4}, headers=warehouse_headers).status_code == 400
        assert client.patch(f"{base}/release", json={"quantity": 3}, headers=warehouse_headers).status_code == 400

        response = client.patch(f"{base}/release", json={"quantity": 2}, headers=warehouse_headers)
        assert (response.json()["available_quantity"], response.json()["reserved_quantity"]) == (5, 0)

    def test_transfer_to_dealer(self, client, warehouse_headers, product, make_dealer, make_inventory):
        destination = make_dealer()
        source = make_inventory(product["id"], total=10)
        payload = {"from_inventory_id": source["id"], "to_dealer_id": destination["id"], "quantity": 4}
        response = client.post(f"{API}/inventory/transfer", json=payload, headers=warehouse_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["total_quantity"] == 6
        assert body["available_quantity"] == 6
        assert body["in_transit_quantity"] == 4

        rows = client.get(f"{API}/inventory/dealer/{destination['id']}", headers=warehouse_headers).json()
        assert len(rows) == 1
        assert rows[0]["in_transit_quantity"] == 4
        assert rows[0]["total_quantity"] == 0

    def test_transfer_more_than_available_is_400(self, client, warehouse_headers, product, make_dealer, make_inventory):
        source = make_inventory(product["id"], total=2)
        payload = {"from_inventory_id": source["id"], "to_dealer_id": make_dealer()["id"], "quantity": 3}
        assert client.post(f"{API}/inventory/transfer", json=payload, headers=warehouse_headers).status_code == 400


class TestInventoryQueries:

    def test_low_stock_threshold(self, client, warehouse_headers, product, make_inventory):
        inventory = make_inventory(product["id"], total=3)
        default = client.get(f"{API}/inventory/low-stock", headers=warehouse_headers).json()
        assert inventory["id"] in [row["id"] for row in default]
        strict = client.get(f"{API}/inventory/low-stock", params={"threshold": 2}, headers=warehouse_headers).json()
        assert inventory["id"] not in [row["id"] for row in strict]

    def test_list_filters_by_product(self, client, sales_headers, product, dealer, make_inventory):
        make_inventory(product["id"])
        make_inventory(product["id"], dealer_id=dealer["id"])
        response = client.get(f"{API}/inventory/", params={"product_id": product["id"]}, headers=sales_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 2
        warehouse = client.get(
            f"{API}/inventory/",
            params={"product_id": product["id"], "is_brand_warehouse": True},
            headers=sales_headers
        ).json()
        assert warehouse["total"] == 1

    def test_list_filters_by_location_and_availability(self, client, sales_headers, product, dealer, make_inventory):
        warehouse = make_inventory(product["id"], total=10)
        showroom = make_inventory(product["id"], dealer_id=dealer["id"], total=2)

        def ids(**params):
            params["product_id"] = product["id"]
            body = client.get(f"{API}/inventory/", params=params, headers=sales_headers).json()
            return [row["id"] for row in body["data"]]

        assert ids(is_brand_warehouse=True) == [warehouse["id"]]
        assert ids(is_brand_warehouse=False) == [showroom["id"]]
        assert ids(min_available=5) == [warehouse["id"]]
        assert ids(max_available=3) == [showroom["id"]]
        assert ids(min_available=3, max_available=9) == []

    def test_statistics(self, client, warehouse_headers):
        response = client.get(f"{API}/inventory/statistics", headers=warehouse_headers)
        assert response.status_code == 200
        assert set(response.json()) >= {"total_records", "total_available", "low_stock_count"}
