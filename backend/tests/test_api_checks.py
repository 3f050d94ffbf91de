"""
HTTP tests for the check endpoints, including the end-to-end
open / order / void / pay / close walk-throughs.
"""

import pytest

from rest_api.models import Check


def _open(client, headers, **body):
    body.setdefault("num_guests", 2)
    response = client.post("/api/checks", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _send(client, headers, check_id, item_ids):
    response = client.post(
        "/api/orders",
        json={"check_id": check_id, "items": [{"item_id": i} for i in item_ids]},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCheckEndpoints:

    def test_requires_token(self, client):
        assert client.get("/api/checks").status_code == 401
        assert client.post("/api/checks", json={"table_num": 1, "num_guests": 1}).status_code == 401

    def test_bad_token(self, client):
        response = client.get("/api/checks", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_open_check_is_owned_by_caller(self, client, server, server_headers):
        data = _open(client, server_headers, table_num=5)

        assert data["user_id"] == server.id
        assert data["status"] == "OPEN"
        assert data["subtotal_cents"] == 0

    def test_open_check_without_table_or_customer(self, client, server_headers):
        response = client.post("/api/checks", json={"num_guests": 2}, headers=server_headers)
        assert response.status_code == 400

    def test_schema_errors_are_422(self, client, server_headers):
        response = client.post(
            "/api/checks", json={"table_num": 1, "num_guests": 0}, headers=server_headers
        )
        assert response.status_code == 422

    def test_get_missing_check(self, client, server_headers):
        assert client.get("/api/checks/9999", headers=server_headers).status_code == 404

    def test_list_filters(self, client, server_headers, manager_headers):
        mine = _open(client, server_headers, table_num=5)
        _open(client, manager_headers, customer="Dana")

        response = client.get("/api/checks", params={"table_num": 5}, headers=manager_headers)

        assert [c["id"] for c in response.json()] == [mine["id"]]

    def test_patch_unknown_key_is_rejected(self, client, server_headers):
        check = _open(client, server_headers, table_num=5)

        response = client.patch(
            f"/api/checks/{check['id']}", json={"total_cents": 0}, headers=server_headers
        )

        assert response.status_code == 422

    def test_patch_by_owner(self, client, server_headers):
        check = _open(client, server_headers, table_num=5)

        response = client.patch(
            f"/api/checks/{check['id']}", json={"customer": "Window seat"}, headers=server_headers
        )

        assert response.status_code == 200
        assert response.json()["customer"] == "Window seat"

    def test_other_server_cannot_patch(self, client, server_headers, other_server_headers):
        check = _open(client, server_headers, table_num=5)

        response = client.patch(
            f"/api/checks/{check['id']}", json={"num_guests": 4}, headers=other_server_headers
        )

        assert response.status_code == 403

    def test_discount_needs_manager(self, client, server_headers, manager_headers, catalog):
        check = _open(client, server_headers, table_num=5)
        body = {"discount_id": catalog["ten_off"].id}

        denied = client.patch(f"/api/checks/{check['id']}", json=body, headers=server_headers)
        allowed = client.patch(f"/api/checks/{check['id']}", json=body, headers=manager_headers)

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert allowed.json()["discount_id"] == catalog["ten_off"].id

    def test_print(self, client, server_headers):
        check = _open(client, server_headers, table_num=5)

        response = client.post(f"/api/checks/{check['id']}/print", headers=server_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "PRINTED"

    def test_void_needs_manager_and_is_idempotent(self, client, server_headers, manager_headers):
        check = _open(client, server_headers, table_num=5)
        url = f"/api/checks/{check['id']}/void"

        assert client.post(url, headers=server_headers).status_code == 403

        first = client.post(url, headers=manager_headers)
        second = client.post(url, headers=manager_headers)
        assert first.status_code == second.status_code == 200
        assert second.json()["is_void"] is True
        assert second.json()["status"] == "VOID"

    def test_no_delete_route(self, client, server_headers):
        check = _open(client, server_headers, table_num=5)
        response = client.delete(f"/api/checks/{check['id']}", headers=server_headers)
        assert response.status_code == 405


class TestCheckScenarios:
    """Open, order, void, pay and close through the API."""

    @pytest.fixture
    def scenario_a(self, client, server_headers, catalog):
        check = _open(client, server_headers, table_num=5)
        order = _send(client, server_headers, check["id"], [catalog["wings"].id, catalog["burger"].id])
        return check, order

    def test_scenario_a_subtotal(self, client, server_headers, scenario_a):
        check, _ = scenario_a

        data = client.get(f"/api/checks/{check['id']}", headers=server_headers).json()

        assert data["subtotal_cents"] == 2500

    def test_scenario_b_void_item(self, client, server_headers, manager_headers, scenario_a):
        check, _ = scenario_a
        items = client.get(
            "/api/ordered-items", params={"check_id": check["id"]}, headers=server_headers
        ).json()
        wings = next(i for i in items if i["price_cents"] == 1000)

        response = client.patch(
            f"/api/ordered-items/{wings['id']}", json={"is_void": True}, headers=manager_headers
        )

        assert response.status_code == 200
        data = client.get(f"/api/checks/{check['id']}", headers=server_headers).json()
        assert data["subtotal_cents"] == 1500

    def test_scenario_c_pay_and_close(self, client, server_headers, manager_headers, scenario_a):
        check, _ = scenario_a
        items = client.get(
            "/api/ordered-items", params={"check_id": check["id"]}, headers=server_headers
        ).json()
        wings = next(i for i in items if i["price_cents"] == 1000)
        client.patch(f"/api/ordered-items/{wings['id']}", json={"is_void": True}, headers=manager_headers)

        paid = client.post(
            "/api/payments",
            json={"check_id": check["id"], "type": "Cash", "subtotal_cents": 1500},
            headers=server_headers,
        )
        closed = client.post(f"/api/checks/{check['id']}/close", headers=server_headers)

        assert paid.status_code == 201
        assert closed.status_code == 200
        assert closed.json()["closed_at"] is not None
        assert closed.json()["status"] == "CLOSED"

    def test_scenario_d_unpaid_close_fails(self, client, db_session, server_headers, scenario_a):
        check, _ = scenario_a

        response = client.post(f"/api/checks/{check['id']}/close", headers=server_headers)

        assert response.status_code == 400
        db_session.expire_all()
        assert db_session.get(Check, check["id"]).closed_at is None

    def test_close_twice_conflicts(self, client, server_headers):
        check = _open(client, server_headers, table_num=5)
        url = f"/api/checks/{check['id']}/close"

        assert client.post(url, headers=server_headers).status_code == 200
        assert client.post(url, headers=server_headers).status_code == 409

    def test_close_before_open_is_rejected(self, client, server_headers):
        check = _open(client, server_headers, table_num=5)

        response = client.post(
            f"/api/checks/{check['id']}/close",
            json={"closed_at": "2000-01-01T00:00:00Z"},
            headers=server_headers,
        )

        assert response.status_code == 400
