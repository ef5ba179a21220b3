"""Login, token handling and role checks"""

from conftest import API, PASSWORD, bearer, unique
from evm_dealer.core.config import settings


class TestLogin:

    def test_login_returns_token_and_user(self, client):
        response = client.post(
            f"{API}/auth/login",
            json={"username": settings.FIRST_ADMIN_USERNAME, "password": settings.FIRST_ADMIN_PASSWORD}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["access_token"]
        assert body["user"]["role_name"] == "ADMIN"

    def test_form_login(self, client):
        response = client.post(
            f"{API}/auth/login/form",
            data={"username": settings.FIRST_ADMIN_USERNAME, "password": settings.FIRST_ADMIN_PASSWORD}
        )
        assert response.status_code == 200

    def test_wrong_password_is_401(self, client):
        response = client.post(
            f"{API}/auth/login",
            json={"username": settings.FIRST_ADMIN_USERNAME, "password": "not-the-password"}
        )
        assert response.status_code == 401

    def test_me(self, client, sales_person):
        user, headers = sales_person
        response = client.get(f"{API}/auth/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["username"] == user["username"]

    def test_missing_token_is_401(self, client):
        assert client.get(f"{API}/auth/me").status_code == 401

    def test_garbage_token_is_401(self, client):
        response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
        assert response.status_code == 401

    def test_deactivated_user_cannot_login(self, client, admin_headers, make_user):
        user, _ = make_user("DEALER_STAFF")
        response = client.patch(f"{API}/users/{user['id']}/deactivate", headers=admin_headers)
        assert response.status_code == 200
        response = client.post(f"{API}/auth/login", json={"username": user["username"], "password": PASSWORD})
        assert response.status_code == 401


class TestSignUp:

    def test_admin_can_sign_up_users(self, client, admin_headers, dealer):
        username = unique("staff_")
        response = client.post(
            f"{API}/auth/sign-up",
            json={"username": username, "password": PASSWORD, "role_name": "DEALER_STAFF", "dealer_id": dealer["id"]},
            headers=admin_headers
        )
        assert response.status_code == 201
        assert bearer(client, username, PASSWORD)

    def test_non_admin_cannot_sign_up(self, client, sales_headers):
        response = client.post(
            f"{API}/auth/sign-up",
            json={"username": unique("x_"), "password": PASSWORD, "role_name": "SALES_PERSON"},
            headers=sales_headers
        )
        assert response.status_code == 403

    def test_unknown_role_is_400(self, client, admin_headers):
        response = client.post(
            f"{API}/auth/sign-up",
            json={"username": unique("x_"), "password": PASSWORD, "role_name": "PILOT"},
            headers=admin_headers
        )
        assert response.status_code == 400

    def test_duplicate_username_is_400(self, client, admin_headers, sales_person):
        user, _ = sales_person
        response = client.post(
            f"{API}/auth/sign-up",
            json={"username": user["username"], "password": PASSWORD, "role_name": "SALES_PERSON"},
            headers=admin_headers
        )
        assert response.status_code == 400


class TestUserAccounts:

    def test_activation_state_changes_once(self, client, admin_headers, make_user):
        user, _ = make_user("DEALER_STAFF")
        url = f"{API}/users/{user['id']}"
        assert client.patch(f"{url}/activate", headers=admin_headers).status_code == 400
        assert client.patch(f"{url}/deactivate", headers=admin_headers).json()["is_active"] is False
        assert client.patch(f"{url}/deactivate", headers=admin_headers).status_code == 400
        assert client.patch(f"{url}/activate", headers=admin_headers).json()["is_active"] is True

    def test_reset_password(self, client, admin_headers, make_user):
        user, _ = make_user("DEALER_STAFF")
        url = f"{API}/users/{user['id']}/reset-password"
        short = client.patch(url, json={"new_password": "abc"}, headers=admin_headers)
        assert short.status_code == 400
        assert short.json()["detail"] == "Password must be at least 6 characters"
        assert client.patch(url, json={"new_password": "fresh-pass"}, headers=admin_headers).status_code == 200
        assert bearer(client, user["username"], "fresh-pass")

    def test_change_own_password(self, client, make_user):
        user, headers = make_user("SALES_PERSON")
        url = f"{API}/users/me/change-password"
        wrong = client.post(url, json={"old_password": "not-mine", "new_password": "another1"}, headers=headers)
        assert wrong.status_code == 400
        assert wrong.json()["detail"] == "Current password is incorrect"
        ok = client.post(url, json={"old_password": PASSWORD, "new_password": "another1"}, headers=headers)
        assert ok.status_code == 200
        assert bearer(client, user["username"], "another1")


class TestRoleChecks:

    def test_customer_role_cannot_touch_sales(self, client, customer_role_headers):
        assert client.get(f"{API}/quotations/", headers=customer_role_headers).status_code == 403
        assert client.get(f"{API}/sales-orders/", headers=customer_role_headers).status_code == 403
        assert client.get(f"{API}/payments/", headers=customer_role_headers).status_code == 403

    def test_any_user_reads_catalog(self, client, customer_role_headers):
        assert client.get(f"{API}/brands/", headers=customer_role_headers).status_code == 200
        assert client.get(f"{API}/products/", headers=customer_role_headers).status_code == 200
        assert client.get(f"{API}/promotions/", headers=customer_role_headers).status_code == 200

    def test_catalog_writes_need_brand_manager(self, client, sales_headers, brand_manager_headers):
        payload = {"brand_name": unique("Brand ")}
        assert client.post(f"{API}/brands/", json=payload, headers=sales_headers).status_code == 403
        assert client.post(f"{API}/brands/", json=payload, headers=brand_manager_headers).status_code == 201

    def test_warehouse_reads_inventory_but_not_orders(self, client, warehouse_headers):
        assert client.get(f"{API}/inventory/", headers=warehouse_headers).status_code == 200
        assert client.get(f"{API}/sales-orders/", headers=warehouse_headers).status_code == 403

    def test_sales_person_cannot_write_inventory(self, client, sales_headers):
        assert client.get(f"{API}/inventory/", headers=sales_headers).status_code == 200
        assert client.post(f"{API}/inventory/", json={"product_id": 1}, headers=sales_headers).status_code == 403

    def test_reports_limited_to_managers(self, client, sales_headers, dealer_manager_headers):
        assert client.get(f"{API}/reports/sales", headers=sales_headers).status_code == 403
        assert client.get(f"{API}/reports/sales", headers=dealer_manager_headers).status_code == 200

    def test_user_list_needs_manager(self, client, sales_headers, dealer_manager_headers):
        assert client.get(f"{API}/users/", headers=sales_headers).status_code == 403
        assert client.get(f"{API}/users/", headers=dealer_manager_headers).status_code == 200

    def test_system_endpoints_are_admin_only(self, client, admin_headers, brand_manager_headers):
        assert client.get(f"{API}/system/scheduler", headers=brand_manager_headers).status_code == 403
        response = client.get(f"{API}/system/scheduler", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["scheduler"]["running"] is False


def test_root_and_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").status_code == 200
