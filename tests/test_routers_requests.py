"""
tests/test_routers_requests.py -- Tests for routers/requests.py

Covers: scholar submission with audit trail, staff queue ordering,
pagination and filters, stats, single-request access rules and staff
review with accurate previous-status auditing.

Called by: pytest
Depends on: app/routers/requests.py, conftest.py
"""

import json
from datetime import datetime, timedelta, timezone

from app.models import RequestAuditLog, ScholarRequest


def _add_request(db, scholar, status="pending", days_ago=0, description="Need help", priority="medium",
                 type_="extenuating_circumstances"):
    req = ScholarRequest(
        scholar_id=scholar.id,
        type=type_,
        description=description,
        priority=priority,
        status=status,
        submitted_date=datetime.now(timezone.utc) - timedelta(days=days_ago),
    )
    db.add(req)
    db.commit()
    return req


class TestSubmit:
    def test_create_writes_created_audit(self, scholar_client, db_session, test_scholar, scholar_user):
        resp = scholar_client.post("/api/requests", json={
            "type": "summer_funding_request",
            "description": "Internship stipend",
            "formData": {"amount": 900, "organization": "NGO"},
            "priority": "high",
        })
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "pending"
        assert data["formData"] == {"amount": 900, "organization": "NGO"}
        assert data["scholarName"] == "Kofi Scholar"
        assert len(data["auditLogs"]) == 1
        log = data["auditLogs"][0]
        assert log["action"] == "created"
        assert log["newStatus"] == "pending"
        assert log["performedBy"] == scholar_user.id

        db_session.refresh(test_scholar)
        assert test_scholar.last_activity is not None

    def test_assigned_to_existing_user(self, scholar_client, staff_user):
        resp = scholar_client.post("/api/requests", json={
            "type": "summer_funding_report", "description": "Report attached", "assignedTo": staff_user.id,
        })
        assert resp.status_code == 201
        assert resp.json()["assignedTo"] == staff_user.id

    def test_assigned_to_unknown_user_is_400(self, scholar_client, db_session):
        resp = scholar_client.post("/api/requests", json={
            "type": "summer_funding_report", "description": "Report attached", "assignedTo": "nobody",
        })
        assert resp.status_code == 400
        assert db_session.query(ScholarRequest).count() == 0

    def test_invalid_type_is_422(self, scholar_client):
        resp = scholar_client.post("/api/requests", json={"type": "vacation", "description": "x"})
        assert resp.status_code == 422

    def test_blank_description_is_422(self, scholar_client):
        resp = scholar_client.post("/api/requests", json={"type": "summer_funding_report", "description": "  "})
        assert resp.status_code == 422

    def test_staff_cannot_submit(self, staff_client):
        resp = staff_client.post("/api/requests", json={"type": "summer_funding_report", "description": "x"})
        assert resp.status_code == 403

    def test_my_requests_newest_first(self, scholar_client, db_session, test_scholar, other_scholar):
        old = _add_request(db_session, test_scholar, days_ago=3)
        new = _add_request(db_session, test_scholar, days_ago=1)
        _add_request(db_session, other_scholar)
        ids = [r["id"] for r in scholar_client.get("/api/requests/my-requests").json()]
        assert ids == [new.id, old.id]


class TestStaffQueue:
    def test_status_rank_then_newest(self, staff_client, db_session, test_scholar):
        approved = _add_request(db_session, test_scholar, status="approved", days_ago=0)
        pending_old = _add_request(db_session, test_scholar, status="pending", days_ago=5)
        commented = _add_request(db_session, test_scholar, status="commented", days_ago=1)
        pending_new = _add_request(db_session, test_scholar, status="pending", days_ago=1)
        rejected = _add_request(db_session, test_scholar, status="rejected", days_ago=2)
        reviewed = _add_request(db_session, test_scholar, status="reviewed", days_ago=9)

        ids = [r["id"] for r in staff_client.get("/api/requests").json()["data"]]
        assert ids == [pending_new.id, pending_old.id, reviewed.id, commented.id, approved.id, rejected.id]

    def test_pagination(self, staff_client, db_session, test_scholar):
        for i in range(5):
            _add_request(db_session, test_scholar, days_ago=i)
        body = staff_client.get("/api/requests", params={"page": 2, "limit": 2}).json()
        assert len(body["data"]) == 2
        assert body["pagination"]["totalItems"] == 5
        assert body["pagination"]["totalPages"] == 3
        assert body["pagination"]["hasPrev"] is True

    def test_filters(self, staff_client, db_session, test_scholar, other_scholar):
        _add_request(db_session, test_scholar, priority="high", description="Laptop broke")
        _add_request(db_session, other_scholar, status="approved", type_="summer_funding_report")

        by_priority = staff_client.get("/api/requests", params={"priority": "high"}).json()["data"]
        assert [r["description"] for r in by_priority] == ["Laptop broke"]

        by_status = staff_client.get("/api/requests", params={"status": "approved"}).json()["data"]
        assert [r["scholarId"] for r in by_status] == [other_scholar.id]

        by_type = staff_client.get("/api/requests", params={"type": "summer_funding_report"}).json()["data"]
        assert len(by_type) == 1

        by_search = staff_client.get("/api/requests", params={"search": "OTHER SCHOLAR"}).json()["data"]
        assert [r["scholarId"] for r in by_search] == [other_scholar.id]

        by_text = staff_client.get("/api/requests", params={"search": "laptop"}).json()["data"]
        assert [r["description"] for r in by_text] == ["Laptop broke"]

    def test_bad_filter_value_is_422(self, staff_client):
        assert staff_client.get("/api/requests", params={"status": "lost"}).status_code == 422

    def test_stats(self, staff_client, db_session, test_scholar):
        for status in ("pending", "pending", "approved", "commented"):
            _add_request(db_session, test_scholar, status=status)
        assert staff_client.get("/api/requests/stats").json() == {
            "total": 4, "pending": 2, "approved": 1, "rejected": 0, "reviewed": 0, "commented": 1,
        }

    def test_scholar_cannot_see_queue(self, scholar_client):
        assert scholar_client.get("/api/requests").status_code == 403
        assert scholar_client.get("/api/requests/stats").status_code == 403


class TestSingleRequest:
    def test_owner_reads(self, scholar_client, test_request):
        data = scholar_client.get(f"/api/requests/{test_request.id}").json()
        assert data["id"] == test_request.id
        assert data["formData"] == {"amount": 1200, "currency": "USD"}

    def test_staff_reads(self, staff_client, test_request):
        assert staff_client.get(f"/api/requests/{test_request.id}").status_code == 200

    def test_other_scholar_forbidden(self, client_for, test_request, other_scholar):
        assert client_for(other_scholar.user).get(f"/api/requests/{test_request.id}").status_code == 403

    def test_missing_is_404(self, staff_client):
        assert staff_client.get("/api/requests/does-not-exist").status_code == 404


class TestReview:
    def test_review_records_previous_status(self, staff_client, db_session, staff_user, test_request):
        resp = staff_client.post(
            f"/api/requests/{test_request.id}/status", json={"status": "commented", "comment": "Need receipts"}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "commented"
        assert data["reviewedBy"] == staff_user.id
        assert data["reviewComment"] == "Need receipts"
        assert data["reviewDate"] is not None

        resp = staff_client.post(f"/api/requests/{test_request.id}/status", json={"status": "approved"})
        logs = (
            db_session.query(RequestAuditLog)
            .filter_by(request_id=test_request.id, action="status_changed")
            .order_by(RequestAuditLog.created_at)
            .all()
        )
        assert [(log.previous_status, log.new_status) for log in logs] == [
            ("pending", "commented"),
            ("commented", "approved"),
        ]
        assert json.loads(logs[0].metadata_json)["reviewedBy"] == staff_user.id
        assert resp.json()["reviewComment"] == ""

    def test_pending_is_not_a_review_status(self, staff_client, test_request):
        resp = staff_client.post(f"/api/requests/{test_request.id}/status", json={"status": "pending"})
        assert resp.status_code == 422

    def test_review_missing_is_404(self, staff_client):
        assert staff_client.post("/api/requests/nope/status", json={"status": "approved"}).status_code == 404

    def test_scholar_cannot_review(self, scholar_client, test_request):
        resp = scholar_client.post(f"/api/requests/{test_request.id}/status", json={"status": "approved"})
        assert resp.status_code == 403
