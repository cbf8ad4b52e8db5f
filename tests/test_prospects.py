"""Tests for the prospects blueprint and prospect_service.

Covers:
- Sales users are scoped to their own prospects
- Creation notifies every admin in the same transaction + sends email
- Filters (owner, status, created_at range)
- Partial updates, reassignment rules, admin-only delete
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from salestrack.extensions import db
from salestrack.models.follow_up import FollowUp
from salestrack.models.notification import Notification
from salestrack.models.prospect import Prospect

from conftest import make_user


def _prospect_payload(**overrides):
    payload = {
        "name": "CV Sejahtera",
        "phone": "0821000000",
        "address": "Jl. Sudirman 10",
        "need": "Mobile app",
    }
    payload.update(overrides)
    return payload


def _add_prospect(sales_id, name, status="awaiting_follow_up", created_at=None):
    prospect = Prospect(
        name=name,
        phone="0800",
        address="Somewhere",
        need="Something",
        status=status,
        sales_id=sales_id,
    )
    if created_at is not None:
        prospect.created_at = created_at
    db.session.add(prospect)
    db.session.commit()
    return prospect.id


class TestList:
    def test_admin_sees_all(self, client, seed_data, login_admin):
        _add_prospect(seed_data["other_sales_id"], "Budi's Lead")
        login_admin()
        resp = client.get("/prospects")
        assert resp.status_code == 200
        assert {p["name"] for p in resp.get_json()} == {"Toko Maju", "Budi's Lead"}

    def test_admin_filters_by_sales(self, client, seed_data, login_admin):
        _add_prospect(seed_data["other_sales_id"], "Budi's Lead")
        login_admin()
        resp = client.get(f"/prospects?salesId={seed_data['other_sales_id']}")
        assert [p["name"] for p in resp.get_json()] == ["Budi's Lead"]

    def test_sales_only_sees_own(self, client, seed_data, login_sales):
        _add_prospect(seed_data["other_sales_id"], "Budi's Lead")
        login_sales()
        # salesId for someone else is ignored for sales callers
        resp = client.get(f"/prospects?salesId={seed_data['other_sales_id']}")
        assert [p["name"] for p in resp.get_json()] == ["Toko Maju"]

    def test_filter_by_status(self, client, seed_data, login_admin):
        _add_prospect(seed_data["sales_id"], "Closed Lead", status="closed")
        login_admin()
        resp = client.get("/prospects?status=closed")
        assert [p["name"] for p in resp.get_json()] == ["Closed Lead"]

    def test_invalid_status_filter(self, client, seed_data, login_admin):
        login_admin()
        resp = client.get("/prospects?status=lost")
        assert resp.status_code == 400

    def test_date_range_includes_whole_end_day(self, client, seed_data, login_admin):
        now = datetime.now(timezone.utc)
        _add_prospect(seed_data["sales_id"], "Old Lead", created_at=now - timedelta(days=40))
        login_admin()

        today = now.date().isoformat()
        start = (now - timedelta(days=7)).date().isoformat()
        resp = client.get(f"/prospects?startDate={start}&endDate={today}")
        assert [p["name"] for p in resp.get_json()] == ["Toko Maju"]

    def test_offset_start_with_date_only_end(self, client, seed_data, login_admin):
        login_admin()
        now = datetime.now(timezone.utc)
        start = (now - timedelta(days=7)).strftime("%Y-%m-%dT%H:%M:%SZ")
        end = now.date().isoformat()
        resp = client.get(f"/prospects?startDate={start}&endDate={end}")
        assert resp.status_code == 200
        assert [p["name"] for p in resp.get_json()] == ["Toko Maju"]

    def test_offset_start_with_naive_end(self, client, seed_data, login_admin):
        login_admin()
        resp = client.get(
            "/prospects",
            query_string={
                "startDate": "2026-10-01T00:00:00+07:00",
                "endDate": "2026-10-20T00:00",
            },
        )
        assert resp.status_code == 200

    def test_start_after_end_rejected(self, client, seed_data, login_admin):
        login_admin()
        resp = client.get("/prospects?startDate=2026-02-01&endDate=2026-01-01")
        assert resp.status_code == 400
        assert "startDate" in resp.get_json()["message"]

    def test_invalid_date_rejected(self, client, seed_data, login_admin):
        login_admin()
        resp = client.get("/prospects?startDate=yesterday")
        assert resp.status_code == 400

    def test_with_sales(self, client, seed_data, login_admin):
        login_admin()
        resp = client.get("/prospects/with-sales")
        assert resp.status_code == 200
        row = resp.get_json()[0]
        assert row["name"] == "Toko Maju"
        assert row["sales"]["full_name"] == "Sari Sales"
        assert row["sales"]["email"] == "sari@salestrack.local"

    def test_with_sales_scoped_for_sales(self, client, seed_data, login_other_sales):
        login_other_sales()
        resp = client.get("/prospects/with-sales")
        assert resp.get_json() == []


class TestDetail:
    def test_detail_includes_follow_ups(self, client, seed_data, follow_up, login_admin):
        login_admin()
        resp = client.get(f"/prospects/{seed_data['prospect_id']}")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["sales"]["id"] == seed_data["sales_id"]
        assert [f["id"] for f in data["follow_ups"]] == [follow_up]

    def test_owner_can_view(self, client, seed_data, login_sales):
        login_sales()
        resp = client.get(f"/prospects/{seed_data['prospect_id']}")
        assert resp.status_code == 200

    def test_other_sales_forbidden(self, client, seed_data, login_other_sales):
        login_other_sales()
        resp = client.get(f"/prospects/{seed_data['prospect_id']}")
        assert resp.status_code == 403

    def test_not_found(self, client, seed_data, login_admin):
        login_admin()
        resp = client.get("/prospects/nope")
        assert resp.status_code == 404
        assert resp.get_json()["message"] == "Prospect not found."


class TestCreate:
    @patch("salestrack.blueprints.prospects.send_new_prospect_email")
    def test_sales_creates_prospect(self, mock_email, client, seed_data, login_sales):
        login_sales()
        resp = client.post("/prospects", json=_prospect_payload())
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["sales_id"] == seed_data["sales_id"]
        assert data["status"] == "awaiting_follow_up"

        mock_email.assert_called_once()
        prospect, sales_profile, admin_emails = mock_email.call_args.args
        assert prospect.id == data["id"]
        assert sales_profile.id == seed_data["sales_id"]
        assert admin_emails == ["admin@salestrack.local"]

    @patch("salestrack.blueprints.prospects.send_new_prospect_email")
    def test_every_admin_is_notified(self, mock_email, client, seed_data, login_sales):
        second_admin = make_user("ops@salestrack.local", "ops12345", "Ops Admin", "admin")
        db.session.commit()
        second_admin_id = second_admin.id

        login_sales()
        resp = client.post("/prospects", json=_prospect_payload())
        prospect_id = resp.get_json()["id"]

        notifications = Notification.query.filter_by(reference_id=prospect_id).all()
        assert {n.user_id for n in notifications} == {
            seed_data["admin_id"], second_admin_id,
        }
        for n in notifications:
            assert n.type == "new_prospect"
            assert n.reference_type == "prospect"
            assert n.is_read is False
            assert "CV Sejahtera" in n.message
            assert "Sari Sales" in n.message

    @patch("salestrack.blueprints.prospects.send_new_prospect_email")
    def test_sales_cannot_create_for_others(self, mock_email, client, seed_data, login_sales):
        login_sales()
        resp = client.post(
            "/prospects",
            json=_prospect_payload(sales_id=seed_data["other_sales_id"]),
        )
        assert resp.status_code == 201
        assert resp.get_json()["sales_id"] == seed_data["sales_id"]

    @patch("salestrack.blueprints.prospects.send_new_prospect_email")
    def test_admin_creates_for_sales(self, mock_email, client, seed_data, login_admin):
        login_admin()
        resp = client.post(
            "/prospects",
            json=_prospect_payload(sales_id=seed_data["other_sales_id"]),
        )
        assert resp.status_code == 201
        assert resp.get_json()["sales_id"] == seed_data["other_sales_id"]

    @patch("salestrack.blueprints.prospects.send_new_prospect_email")
    def test_admin_cannot_own_prospect(self, mock_email, client, seed_data, login_admin):
        login_admin()
        resp = client.post(
            "/prospects",
            json=_prospect_payload(sales_id=seed_data["admin_id"]),
        )
        assert resp.status_code == 400
        assert "sales users" in resp.get_json()["message"]
        mock_email.assert_not_called()

    @patch("salestrack.blueprints.prospects.send_new_prospect_email")
    def test_missing_fields_writes_nothing(self, mock_email, client, seed_data, login_sales):
        login_sales()
        resp = client.post("/prospects", json={"name": "Half"})
        assert resp.status_code == 400
        assert "phone" in resp.get_json()["message"]
        assert Prospect.query.count() == 1
        assert Notification.query.count() == 0
        mock_email.assert_not_called()

    @patch("salestrack.blueprints.prospects.send_new_prospect_email")
    def test_invalid_status(self, mock_email, client, seed_data, login_sales):
        login_sales()
        resp = client.post("/prospects", json=_prospect_payload(status="won"))
        assert resp.status_code == 400
        assert Notification.query.count() == 0


class TestUpdate:
    def test_owner_updates_fields(self, client, seed_data, login_sales):
        login_sales()
        resp = client.put(
            f"/prospects/{seed_data['prospect_id']}",
            json={"need": "E-commerce", "status": "closed"},
        )
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["need"] == "E-commerce"
        assert data["status"] == "closed"
        assert data["name"] == "Toko Maju"

    def test_other_sales_forbidden(self, client, seed_data, login_other_sales):
        login_other_sales()
        resp = client.put(
            f"/prospects/{seed_data['prospect_id']}", json={"need": "x"}
        )
        assert resp.status_code == 403

    def test_sales_cannot_reassign(self, client, seed_data, login_sales):
        login_sales()
        resp = client.put(
            f"/prospects/{seed_data['prospect_id']}",
            json={"sales_id": seed_data["other_sales_id"]},
        )
        assert resp.status_code == 400
        assert db.session.get(Prospect, seed_data["prospect_id"]).sales_id == seed_data["sales_id"]

    def test_admin_reassigns(self, client, seed_data, login_admin):
        login_admin()
        resp = client.put(
            f"/prospects/{seed_data['prospect_id']}",
            json={"sales_id": seed_data["other_sales_id"]},
        )
        assert resp.status_code == 200
        assert resp.get_json()["sales_id"] == seed_data["other_sales_id"]

    def test_empty_name_rejected(self, client, seed_data, login_sales):
        login_sales()
        resp = client.put(f"/prospects/{seed_data['prospect_id']}", json={"name": ""})
        assert resp.status_code == 400

    def test_nothing_to_update(self, client, seed_data, login_sales):
        login_sales()
        resp = client.put(f"/prospects/{seed_data['prospect_id']}", json={})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Nothing to update."


class TestDelete:
    def test_admin_deletes_with_follow_ups(self, client, seed_data, follow_up, login_admin):
        login_admin()
        resp = client.delete(f"/prospects/{seed_data['prospect_id']}")
        assert resp.status_code == 204
        assert db.session.get(Prospect, seed_data["prospect_id"]) is None
        assert db.session.get(FollowUp, follow_up) is None

    def test_sales_cannot_delete(self, client, seed_data, login_sales):
        login_sales()
        resp = client.delete(f"/prospects/{seed_data['prospect_id']}")
        assert resp.status_code == 403
        assert db.session.get(Prospect, seed_data["prospect_id"]) is not None
