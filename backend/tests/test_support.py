"""Support tickets and showroom appointments"""

from datetime import datetime, timedelta

import pytest

from conftest import API


@pytest.fixture
def make_ticket(client, support_headers, customer):
    def _make(**overrides):
        payload = {"title": "Charging port rattles", "customer_id": customer["id"]}
        payload.update(overrides)
        response = client.post(f"{API}/support-tickets/", json=payload, headers=support_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def staff(make_user):
    return make_user("SALES_PERSON")[0]


@pytest.fixture
def make_appointment(client, sales_headers, customer, product, dealer):
    def _make(when, **overrides):
        payload = {
            "appointment_time": when.isoformat(),
            "customer_id": customer["id"],
            "product_id": product["id"],
            "dealer_id": dealer["id"],
        }
        payload.update(overrides)
        return client.post(f"{API}/appointments/", json=payload, headers=sales_headers)
    return _make


def _ticket_url(ticket, action=""):
    return f"{API}/support-tickets/{ticket['id']}" + (f"/{action}" if action else "")


class TestTickets:

    def test_lifecycle(self, client, support_headers, make_ticket, staff):
        ticket = make_ticket()
        assert ticket["status"] == "OPEN"
        assert ticket["closed_at"] is None

        assigned = client.post(_ticket_url(ticket, "assign"), json={"user_id": staff["id"]}, headers=support_headers)
        assert assigned.json()["status"] == "IN_PROGRESS"
        assert assigned.json()["assigned_user_id"] == staff["id"]

        closed = client.post(_ticket_url(ticket, "close"), headers=support_headers)
        assert closed.json()["status"] == "CLOSED"
        assert closed.json()["closed_at"] is not None
        assert client.post(_ticket_url(ticket, "close"), headers=support_headers).status_code == 400
        assert client.put(_ticket_url(ticket), json={"title": "x"}, headers=support_headers).status_code == 400

        reopened = client.post(_ticket_url(ticket, "reopen"), headers=support_headers)
        assert reopened.json()["status"] == "OPEN"
        assert reopened.json()["closed_at"] is None

    def test_reopen_requires_closed(self, client, support_headers, make_ticket):
        ticket = make_ticket()
        assert client.post(_ticket_url(ticket, "reopen"), headers=support_headers).status_code == 400

    def test_status_change(self, client, support_headers, make_ticket):
        ticket = make_ticket()
        resolved = client.patch(_ticket_url(ticket, "status"), json={"status": "resolved"}, headers=support_headers)
        assert resolved.json()["status"] == "RESOLVED"
        assert resolved.json()["closed_at"] is not None
        bad = client.patch(_ticket_url(ticket, "status"), json={"status": "LOST"}, headers=support_headers)
        assert bad.status_code == 400

    def test_links_are_checked(self, client, support_headers, customer):
        payload = {"title": "Noise", "customer_id": customer["id"], "vehicle_id": "NO-SUCH-CAR"}
        assert client.post(f"{API}/support-tickets/", json=payload, headers=support_headers).status_code == 404

    def test_ticket_blocks_order_delete(self, client, sales_headers, make_ticket, customer, product, make_order):
        order = make_order(customer["id"], product_id=product["id"])
        make_ticket(sales_order_id=order["id"])
        assert client.delete(f"{API}/sales-orders/{order['id']}", headers=sales_headers).status_code == 400

    def test_lists(self, client, support_headers, make_ticket, customer):
        first = make_ticket()
        second = make_ticket(title="Seat heater")
        by_customer = client.get(f"{API}/support-tickets/customer/{customer['id']}", headers=support_headers).json()
        assert {t["id"] for t in by_customer} == {first["id"], second["id"]}
        open_ids = [t["id"] for t in client.get(f"{API}/support-tickets/open", headers=support_headers).json()]
        assert first["id"] in open_ids
        found = client.get(
            f"{API}/support-tickets/",
            params={"customer_id": customer["id"], "keyword": "heater"},
            headers=support_headers
        ).json()
        assert [t["id"] for t in found["data"]] == [second["id"]]

    def test_statistics(self, client, support_headers, make_ticket):
        make_ticket()
        stats = client.get(f"{API}/support-tickets/statistics", headers=support_headers).json()
        assert stats["total"] >= stats["open"] >= 1

    def test_warehouse_staff_is_403(self, client, warehouse_headers):
        assert client.get(f"{API}/support-tickets/", headers=warehouse_headers).status_code == 403


class TestAppointments:

    def test_schedule(self, make_appointment, staff):
        when = datetime.now().replace(microsecond=0) + timedelta(days=2)
        response = make_appointment(when, staff_user_id=staff["id"])
        assert response.status_code == 201
        assert response.json()["status"] == "SCHEDULED"
        assert response.json()["staff_user_id"] == staff["id"]

    def test_staff_conflict_within_half_hour(self, client, sales_headers, make_appointment, staff):
        when = datetime.now().replace(microsecond=0) + timedelta(days=3)
        first = make_appointment(when, staff_user_id=staff["id"]).json()

        clash = make_appointment(when + timedelta(minutes=20), staff_user_id=staff["id"])
        assert clash.status_code == 400
        assert clash.json()["detail"] == "Staff is not available at this time"
        assert make_appointment(when + timedelta(minutes=30), staff_user_id=staff["id"]).status_code == 201

        client.post(f"{API}/appointments/{first['id']}/cancel", headers=sales_headers)
        assert make_appointment(when - timedelta(minutes=10), staff_user_id=staff["id"]).status_code == 201

    def test_reschedule_checks_staff(self, client, sales_headers, make_appointment, staff):
        when = datetime.now().replace(microsecond=0) + timedelta(days=4)
        make_appointment(when, staff_user_id=staff["id"])
        other = make_appointment(when + timedelta(hours=2), staff_user_id=staff["id"]).json()
        response = client.put(
            f"{API}/appointments/{other['id']}",
            json={"appointment_time": (when + timedelta(minutes=5)).isoformat()},
            headers=sales_headers
        )
        assert response.status_code == 400
        response = client.put(
            f"{API}/appointments/{other['id']}",
            json={"appointment_time": (when + timedelta(hours=3)).isoformat()},
            headers=sales_headers
        )
        assert response.status_code == 200

    def test_cancel_twice_is_400(self, client, sales_headers, make_appointment):
        appointment = make_appointment(datetime.now() + timedelta(days=1)).json()
        url = f"{API}/appointments/{appointment['id']}/cancel"
        assert client.post(url, headers=sales_headers).json()["status"] == "CANCELLED"
        assert client.post(url, headers=sales_headers).status_code == 400

    def test_invalid_status_is_400(self, client, sales_headers, make_appointment):
        appointment = make_appointment(datetime.now() + timedelta(days=1)).json()
        response = client.patch(
            f"{API}/appointments/{appointment['id']}/status", json={"status": "LATE"}, headers=sales_headers
        )
        assert response.status_code == 400

    def test_upcoming_and_by_customer(self, client, sales_headers, make_appointment, customer):
        appointment = make_appointment(datetime.now() + timedelta(days=5)).json()
        upcoming = client.get(f"{API}/appointments/upcoming", headers=sales_headers).json()
        assert appointment["id"] in [a["id"] for a in upcoming]
        by_customer = client.get(f"{API}/appointments/customer/{customer['id']}", headers=sales_headers).json()
        assert [a["id"] for a in by_customer] == [appointment["id"]]
