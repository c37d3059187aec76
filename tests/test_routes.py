"""
HTTP tests for the intake, order, settings, batch and stats endpoints.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app import db
from app.models import Batch, Order, OrderStatus, UserRole
from app.utils import isoformat, utcnow


def _lost_connection(*args, **kwargs):
    raise OperationalError("SELECT", {}, Exception("connection lost"))


@pytest.fixture
def admin_headers(seed_user):
    return seed_user("admin@example.org", role=UserRole.ADMIN)[1]


@pytest.fixture
def requester(seed_user):
    return seed_user("rita@example.org")


@pytest.fixture
def requester_headers(requester):
    return requester[1]


@pytest.fixture
def open_form(api_client, admin_headers):
    """Open the form manually and return the new batch id."""
    response = api_client.post("/settings/override", json={"state": "open"}, headers=admin_headers)
    assert response.status_code == 200
    return response.get_json()["new_batch_id"]


class TestPublicEndpoints:

    def test_closed_on_fresh_install(self, api_client):
        response = api_client.get("/intake/availability")
        assert response.status_code == 200
        assert response.get_json() == {"is_open": False, "reason": None, "at": None, "message": None}

    def test_settings_snapshot(self, api_client, open_form):
        body = api_client.get("/intake/settings").get_json()
        assert body["settings"]["manual_override"] == "open"
        assert body["settings"]["current_batch_id"] == open_form
        assert body["availability"]["is_open"] is True
        assert "server_time" in body

    def test_catalog(self, api_client):
        body = api_client.get("/catalog/").get_json()
        assert "rice" in body["sections"]["pantry"]
        assert body["fresh_sections"] == ["freshRefrigerated", "frozen"]


class TestSubmission:

    def test_requires_authentication(self, api_client, open_form, order_payload):
        response = api_client.post("/orders/submit", json=order_payload)
        assert response.status_code == 401
        assert response.get_json()["error"] == "unauthorized"

    def test_rejects_forged_token(self, api_client, open_form, order_payload):
        response = api_client.post(
            "/orders/submit", json=order_payload, headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    def test_closed_form_rejects_submission(self, api_client, requester_headers, order_payload):
        response = api_client.post("/orders/submit", json=order_payload, headers=requester_headers)
        assert response.status_code == 403
        assert response.get_json()["error"] == "intake_closed"

    def test_submit_then_duplicate(self, api_app, api_client, requester, open_form, order_payload):
        user_id, headers = requester

        check = api_client.get("/orders/check", headers=headers).get_json()
        assert check == {"has_ordered": False, "batch_id": open_form}

        response = api_client.post("/orders/submit", json=order_payload, headers=headers)
        assert response.status_code == 201
        assert response.get_json()["batch_id"] == open_form

        check = api_client.get(f"/orders/check?batchId={open_form}", headers=headers).get_json()
        assert check["has_ordered"] is True

        again = api_client.post("/orders/submit", json=order_payload, headers=headers)
        assert again.status_code == 409
        assert again.get_json()["error"] == "duplicate_submission"

        with api_app.app_context():
            assert Order.query.filter_by(user_id=user_id, batch_id=open_form).count() == 1

    def test_ignores_client_supplied_identity(self, api_app, api_client, requester, seed_user, open_form, order_payload):
        user_id, headers = requester
        other_id, _ = seed_user("oscar@example.org")
        order_payload.update(user_id=other_id, batch_id="BATCH_other")

        response = api_client.post("/orders/submit", json=order_payload, headers=headers)
        assert response.status_code == 201

        with api_app.app_context():
            order = db.session.get(Order, response.get_json()["id"])
            assert order.user_id == user_id
            assert order.batch_id == open_form

    def test_validation_error(self, api_client, requester_headers, open_form, order_payload):
        order_payload["confirmed_pickup"] = False
        response = api_client.post("/orders/submit", json=order_payload, headers=requester_headers)
        assert response.status_code == 422
        assert response.get_json()["details"]["field"] == "confirmed_pickup"

    def test_malformed_items_field(self, api_client, requester_headers, open_form, order_payload):
        order_payload["items"] = ["rice"]
        response = api_client.post("/orders/submit", json=order_payload, headers=requester_headers)
        assert response.status_code == 422
        assert response.get_json()["details"]["field"] == "items"

    def test_check_reports_store_outage(self, api_client, requester_headers, open_form, monkeypatch):
        monkeypatch.setattr(db.session, "query", _lost_connection)
        response = api_client.get(f"/orders/check?batchId={open_form}", headers=requester_headers)
        monkeypatch.undo()

        assert response.status_code == 503
        assert response.get_json()["error"] == "store_unavailable"

    def test_new_batch_allows_new_order(self, api_client, admin_headers, requester_headers, open_form, order_payload):
        assert api_client.post("/orders/submit", json=order_payload, headers=requester_headers).status_code == 201

        api_client.post("/settings/override", json={"state": "closed"}, headers=admin_headers)
        reopened = api_client.post("/settings/override", json={"state": "open"}, headers=admin_headers).get_json()
        assert reopened["new_batch_id"] != open_form

        assert api_client.post("/orders/submit", json=order_payload, headers=requester_headers).status_code == 201

    def test_check_without_batch(self, api_client, requester_headers):
        body = api_client.get("/orders/check", headers=requester_headers).get_json()
        assert body == {"has_ordered": False, "batch_id": None}

    def test_mine(self, api_client, requester_headers, open_form, order_payload):
        api_client.post("/orders/submit", json=order_payload, headers=requester_headers)
        orders = api_client.get("/orders/mine", headers=requester_headers).get_json()["orders"]
        assert len(orders) == 1
        assert orders[0]["fresh_goods_items"] == ["eggs", "iceCream"]


class TestSettings:

    def test_requester_is_forbidden(self, api_client, requester_headers):
        assert api_client.get("/settings/", headers=requester_headers).status_code == 403
        response = api_client.post("/settings/override", json={"state": "open"}, headers=requester_headers)
        assert response.status_code == 403

    def test_anonymous_is_unauthorized(self, api_client):
        assert api_client.get("/settings/").status_code == 401

    def test_schedule_save_opens_form_and_starts_batch(self, api_app, api_client, admin_headers):
        now = utcnow()
        payload = {
            "manual_override": "follow_schedule",
            "scheduled_open": isoformat(now - timedelta(days=1)),
            "scheduled_close": isoformat(now + timedelta(days=6)),
            "next_pickup_date": (now + timedelta(days=8)).date().isoformat(),
        }

        body = api_client.post("/settings/", json=payload, headers=admin_headers).get_json()
        assert body["new_batch_id"] is not None
        assert body["warnings"] == []
        assert body["availability"]["is_open"] is True
        assert body["availability"]["reason"] == "closes_at"

        again = api_client.post("/settings/", json=payload, headers=admin_headers).get_json()
        assert again["new_batch_id"] is None

        with api_app.app_context():
            assert Batch.query.count() == 1

        current = api_client.get("/settings/", headers=admin_headers).get_json()
        assert current["current_batch"]["id"] == body["new_batch_id"]
        assert current["current_batch"]["origin"] == "SCHEDULED"

    def test_form_fields_are_accepted(self, api_client, admin_headers):
        response = api_client.post("/settings/", data={"next_pickup_date": "2024-03-20"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()["settings"]["next_pickup_date"] == "2024-03-20"

    def test_partial_schedule_rejected(self, api_client, admin_headers):
        response = api_client.post(
            "/settings/", json={"scheduled_open": "2024-03-10T09:00:00Z"}, headers=admin_headers
        )
        assert response.status_code == 422
        assert response.get_json()["error"] == "configuration_error"

    def test_empty_save_rejected(self, api_client, admin_headers):
        response = api_client.post("/settings/", json={}, headers=admin_headers)
        assert response.status_code == 422

    def test_bad_override_state(self, api_client, admin_headers):
        response = api_client.post("/settings/override", json={"state": "sometimes"}, headers=admin_headers)
        assert response.status_code == 422


class TestAdminOrders:

    @pytest.fixture
    def order_id(self, api_client, requester_headers, open_form, order_payload):
        return api_client.post("/orders/submit", json=order_payload, headers=requester_headers).get_json()["id"]

    def test_list_by_batch(self, api_client, admin_headers, open_form, order_id):
        body = api_client.get(f"/orders/?batch={open_form}", headers=admin_headers).get_json()
        assert [o["id"] for o in body["orders"]] == [order_id]

        assert api_client.get("/orders/?batch=legacy", headers=admin_headers).get_json()["orders"] == []

    def test_requester_cannot_list(self, api_client, requester_headers, order_id):
        assert api_client.get("/orders/", headers=requester_headers).status_code == 403

    def test_status_round_trip(self, api_client, admin_headers, order_id):
        done = api_client.post(f"/orders/{order_id}/status", json={"status": "COMPLETED"}, headers=admin_headers)
        assert done.get_json()["status"] == OrderStatus.COMPLETED

        back = api_client.post(f"/orders/{order_id}/status", json={"status": "PENDING"}, headers=admin_headers)
        assert back.get_json()["status"] == OrderStatus.PENDING

    def test_bad_status(self, api_client, admin_headers, order_id):
        response = api_client.post(f"/orders/{order_id}/status", json={"status": "DONE"}, headers=admin_headers)
        assert response.status_code == 422

    def test_missing_order(self, api_client, admin_headers):
        response = api_client.post("/orders/999/status", json={"status": "COMPLETED"}, headers=admin_headers)
        assert response.status_code == 404

    def test_packing(self, api_client, admin_headers, order_id):
        response = api_client.post(
            f"/orders/{order_id}/packing",
            json={"stage": "dry_goods", "status": "PACKED"},
            headers=admin_headers,
        )
        assert response.get_json()["packing_status"] == {"dry_goods": "PACKED", "fresh_goods": "PENDING"}


class TestBatchesAndStats:

    def test_batches(self, api_client, admin_headers, requester_headers, open_form, order_payload):
        api_client.post("/orders/submit", json=order_payload, headers=requester_headers)

        body = api_client.get("/batches/", headers=admin_headers).get_json()
        assert body["current_batch_id"] == open_form
        assert body["batches"][0]["order_count"] == 1
        assert body["legacy_order_count"] == 0

        current = api_client.get("/batches/current", headers=admin_headers).get_json()
        assert current["batch"]["id"] == open_form

        assert api_client.get(f"/batches/{open_form}", headers=admin_headers).status_code == 200
        assert api_client.get("/batches/BATCH_missing", headers=admin_headers).status_code == 404

    def test_stats(self, api_client, admin_headers, requester_headers, open_form, order_payload):
        api_client.post("/orders/submit", json=order_payload, headers=requester_headers)

        body = api_client.get(f"/stats/?batch={open_form}", headers=admin_headers).get_json()
        assert body["orders"]["total"] == 1
        assert body["orders"]["by_status"] == {"PENDING": 1, "COMPLETED": 0}
        assert sum(week["count"] for week in body["weekly_trend"]) == 1
        assert body["registrations"]["total"] == 1

    def test_stats_requires_admin(self, api_client, requester_headers):
        assert api_client.get("/stats/", headers=requester_headers).status_code == 403

    def test_stats_reports_store_outage(self, api_client, admin_headers, monkeypatch):
        monkeypatch.setattr(db.session, "query", _lost_connection)
        response = api_client.get("/stats/", headers=admin_headers)
        monkeypatch.undo()

        assert response.status_code == 503
        assert response.get_json()["error"] == "store_unavailable"

    def test_export_filename_uses_utc_date(self, api_client, admin_headers, monkeypatch):
        monkeypatch.setattr("app.routes.stats.utcnow", lambda: datetime(2024, 3, 20, 23, 30))
        response = api_client.get("/stats/export-orders.csv", headers=admin_headers)
        assert 'filename="orders-all-2024-03-20.csv"' in response.headers["Content-Disposition"]

    def test_export_csv(self, api_client, admin_headers, requester_headers, open_form, order_payload):
        api_client.post("/orders/submit", json=order_payload, headers=requester_headers)

        response = api_client.get(f"/stats/export-orders.csv?batch={open_form}", headers=admin_headers)
        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        lines = response.get_data(as_text=True).splitlines()
        assert lines[0].startswith("order_id,batch_id,name,email")
        assert "rita@example.org" in lines[1]
        assert "diapers 4" in lines[1]
