"""
tests/test_routers_announcements.py -- Tests for routers/announcements.py

Covers: recipient resolution (ANDed filters, no filters, ignored filters),
staff listing with recipient counts, the scholar feed (archived hidden),
filtering helpers and archiving.

Called by: pytest
Depends on: app/routers/announcements.py, conftest.py
"""

from app.models import AnnouncementRecipient
from app.schemas.announcements import AnnouncementCreate
from app.services import announcement_service
from conftest import make_scholar


def _create(client, filters=None, title="Welcome back"):
    resp = client.post(
        "/api/announcements",
        json={"title": title, "content": "Term starts Monday", "filters": filters or []},
    )
    assert resp.status_code == 201
    return resp.json()


def _seed(db, staff, title, filters=()):
    payload = AnnouncementCreate(
        title=title,
        content="Posted directly",
        filters=[{"filterType": t, "filterValue": v} for t, v in filters],
    )
    return announcement_service.create_announcement(db, payload, staff)


class TestCreate:
    def test_no_filters_reaches_everyone(self, staff_client, test_scholar, other_scholar):
        data = _create(staff_client)
        assert data["recipientCount"] == 2
        assert data["filters"] == []
        assert data["createdBy"] == "Amina Staff"
        assert data["archived"] is False

    def test_filters_are_anded(self, staff_client, db_session, test_scholar, other_scholar):
        make_scholar(db_session, "third@example.com", program="Economics", location="Uganda")
        data = _create(staff_client, [
            {"filterType": "program", "filterValue": "Economics"},
            {"filterType": "location", "filterValue": "Kenya"},
        ])
        assert data["recipientCount"] == 1
        recipients = db_session.query(AnnouncementRecipient).filter_by(announcement_id=data["id"]).all()
        assert [r.scholar_id for r in recipients] == [test_scholar.id]

    def test_unknown_filter_type_is_stored_but_ignored(self, staff_client, test_scholar, other_scholar):
        data = _create(staff_client, [{"filterType": "hobby", "filterValue": "chess"}])
        assert data["recipientCount"] == 2
        assert data["filters"] == [{"type": "hobby", "value": "chess"}]

    def test_invalid_status_value_is_ignored(self, staff_client, test_scholar, other_scholar):
        data = _create(staff_client, [{"filterType": "status", "filterValue": "graduated"}])
        assert data["recipientCount"] == 2

    def test_valid_status_filter_applies(self, staff_client, db_session, test_scholar):
        make_scholar(db_session, "paused@example.com", status="on_hold")
        data = _create(staff_client, [{"filterType": "status", "filterValue": "on_hold"}])
        assert data["recipientCount"] == 1

    def test_no_match_means_zero_recipients(self, staff_client, test_scholar):
        data = _create(staff_client, [{"filterType": "university", "filterValue": "Nowhere"}])
        assert data["recipientCount"] == 0

    def test_blank_title_is_422(self, staff_client):
        resp = staff_client.post("/api/announcements", json={"title": " ", "content": "x"})
        assert resp.status_code == 422

    def test_scholar_cannot_create(self, scholar_client):
        resp = scholar_client.post("/api/announcements", json={"title": "t", "content": "c"})
        assert resp.status_code == 403


class TestListing:
    def test_staff_list_has_counts(self, staff_client, test_scholar, other_scholar):
        _create(staff_client, title="First")
        _create(staff_client, [{"filterType": "program", "filterValue": "Engineering"}], title="Second")
        rows = staff_client.get("/api/announcements").json()
        assert [(r["title"], r["recipientCount"]) for r in rows] == [("Second", 1), ("First", 2)]

    def test_my_announcements_only_targeted(self, scholar_client, db_session, staff_user, test_scholar, other_scholar):
        _seed(db_session, staff_user, "Engineers", [("program", "Engineering")])
        _seed(db_session, staff_user, "Economists", [("program", "Economics")])
        rows = scholar_client.get("/api/announcements/my-announcements").json()
        assert [r["title"] for r in rows] == ["Economists"]
        assert "recipientCount" not in rows[0]

    def test_archived_hidden_from_feed(self, scholar_client, db_session, staff_user, test_scholar):
        live = _seed(db_session, staff_user, "Live")
        gone = _seed(db_session, staff_user, "Gone")
        announcement_service.archive_announcement(db_session, gone.id, staff_user)
        rows = scholar_client.get("/api/announcements/my-announcements").json()
        assert [r["id"] for r in rows] == [live.id]

    def test_archive_endpoint(self, staff_client, test_scholar):
        data = _create(staff_client)
        resp = staff_client.post(f"/api/announcements/{data['id']}/archive")
        assert resp.status_code == 200
        assert resp.json()["archived"] is True
        assert resp.json()["archivedAt"] is not None
        again = staff_client.post(f"/api/announcements/{data['id']}/archive").json()
        assert again["archivedAt"] == resp.json()["archivedAt"]
        assert len(staff_client.get("/api/announcements").json()) == 1

    def test_staff_feed_is_empty(self, staff_client, test_scholar):
        _create(staff_client)
        assert staff_client.get("/api/announcements/my-announcements").json() == []

    def test_scholar_cannot_list_all(self, scholar_client):
        assert scholar_client.get("/api/announcements").status_code == 403


class TestHelpers:
    def test_scholars_sorted_by_name(self, staff_client, test_scholar, other_scholar):
        rows = staff_client.get("/api/announcements/scholars").json()
        assert [r["name"] for r in rows] == ["Kofi Scholar", "Other Scholar"]
        assert rows[0]["program"] == "Economics"
        assert rows[1]["location"] == "Uganda"

    def test_filter_options(self, staff_client, test_scholar, other_scholar):
        data = staff_client.get("/api/announcements/filter-options").json()
        assert data == {
            "programs": ["Economics", "Engineering"],
            "years": ["2", "3"],
            "universities": ["Makerere University", "University of Nairobi"],
            "locations": ["Kenya", "Uganda"],
            "statuses": ["active"],
        }

    def test_archive_missing_is_404(self, staff_client):
        assert staff_client.post("/api/announcements/nope/archive").status_code == 404
