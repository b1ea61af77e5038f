"""
tests/test_routers_files.py -- Tests for routers/files.py

Covers: pre-signed upload URL issuance and validation, upload
confirmation against tasks and requests, download URL access rules and
attachment deletion. S3 is mocked via storage_service.get_s3_client.

Called by: pytest
Depends on: app/routers/files.py, app/services/storage_service.py, conftest.py
"""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from app.models import RequestAttachment, RequestAuditLog, ScholarRequest, TaskAttachment, TaskResponse


@pytest.fixture()
def s3():
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://s3.example.com/signed"
    with patch("app.services.storage_service.get_s3_client", return_value=client):
        yield client


def _attach(db, req, attachment_id="att-1", key="k/file.pdf"):
    att = RequestAttachment(
        id=attachment_id, request_id=req.id, name="file.pdf", size="100", url=key, mime_type="application/pdf"
    )
    db.add(att)
    db.commit()
    return att


class TestUploadUrl:
    def test_issues_presigned_put(self, scholar_client, test_scholar, s3):
        resp = scholar_client.post(
            "/api/files/upload-url",
            json={"fileName": "my report (final).pdf", "fileType": "application/pdf", "fileSize": 5000},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["uploadUrl"] == "https://s3.example.com/signed"
        assert data["fileKey"].startswith(f"{test_scholar.id}/requests/temp/")
        assert data["fileKey"].endswith(f"-{data['fileId']}-my_report__final_.pdf")

        args, kwargs = s3.generate_presigned_url.call_args
        assert args[0] == "put_object"
        assert kwargs["Params"]["ContentType"] == "application/pdf"
        assert kwargs["Params"]["Metadata"]["scholarId"] == test_scholar.id
        assert kwargs["ExpiresIn"] == 300

    def test_rejects_disallowed_type(self, scholar_client, s3):
        resp = scholar_client.post(
            "/api/files/upload-url", json={"fileName": "movie.mp4", "fileType": "video/mp4", "fileSize": 10}
        )
        assert resp.status_code == 400
        s3.generate_presigned_url.assert_not_called()

    def test_rejects_oversized(self, scholar_client, s3):
        resp = scholar_client.post(
            "/api/files/upload-url",
            json={"fileName": "big.pdf", "fileType": "application/pdf", "fileSize": 10 * 1024 * 1024 + 1},
        )
        assert resp.status_code == 400
        assert "10MB" in resp.json()["error"]

    def test_rejects_executable_name(self, scholar_client, s3):
        resp = scholar_client.post(
            "/api/files/upload-url", json={"fileName": "setup.exe", "fileType": "application/pdf", "fileSize": 10}
        )
        assert resp.status_code == 400

    def test_storage_failure_is_502(self, scholar_client, s3):
        s3.generate_presigned_url.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject")
        resp = scholar_client.post(
            "/api/files/upload-url", json={"fileName": "a.pdf", "fileType": "application/pdf", "fileSize": 10}
        )
        assert resp.status_code == 502

    def test_staff_cannot_upload(self, staff_client, s3):
        resp = staff_client.post(
            "/api/files/upload-url", json={"fileName": "a.pdf", "fileType": "application/pdf", "fileSize": 10}
        )
        assert resp.status_code == 403


class TestConfirm:
    def _body(self, target_id, **extra):
        return {
            "fileId": "file-123",
            "fileKey": "sch/requests/temp/1-file-123-a.pdf",
            "requestId": target_id,
            "fileName": "a.pdf",
            "fileSize": 2048,
            "mimeType": "application/pdf",
            **extra,
        }

    def test_confirm_against_request_stores_attachment(self, scholar_client, db_session, test_request):
        resp = scholar_client.post("/api/files/confirm", json=self._body(test_request.id))
        assert resp.status_code == 200
        assert resp.json() == {
            "attachmentId": "file-123",
            "fileKey": "sch/requests/temp/1-file-123-a.pdf",
            "fileName": "a.pdf",
            "fileSize": "2048",
            "mimeType": "application/pdf",
        }
        att = db_session.get(RequestAttachment, "file-123")
        assert att.request_id == test_request.id
        actions = [log.action for log in db_session.query(RequestAuditLog).filter_by(request_id=test_request.id)]
        assert actions == ["attachment_added"]

    def test_confirmed_attachment_shows_on_request(self, scholar_client, test_request):
        scholar_client.post("/api/files/confirm", json=self._body(test_request.id))
        data = scholar_client.get(f"/api/requests/{test_request.id}").json()
        assert [a["id"] for a in data["attachments"]] == ["file-123"]

    def test_repeated_confirm_is_idempotent(self, scholar_client, db_session, test_request):
        first = scholar_client.post("/api/files/confirm", json=self._body(test_request.id))
        second = scholar_client.post("/api/files/confirm", json=self._body(test_request.id))
        assert second.status_code == 200
        assert second.json() == first.json()
        assert db_session.query(RequestAttachment).count() == 1
        assert db_session.query(RequestAuditLog).filter_by(action="attachment_added").count() == 1

    def test_file_id_taken_by_other_request_is_409(self, scholar_client, db_session, test_scholar, test_request):
        other = ScholarRequest(
            scholar_id=test_scholar.id, type="summer_funding_report", description="Report",
            priority="low", status="pending",
        )
        db_session.add(other)
        db_session.commit()
        scholar_client.post("/api/files/confirm", json=self._body(test_request.id))
        resp = scholar_client.post("/api/files/confirm", json=self._body(other.id))
        assert resp.status_code == 409
        assert db_session.get(RequestAttachment, "file-123").request_id == test_request.id

    def test_confirm_against_task_only_echoes(self, scholar_client, db_session, test_task):
        resp = scholar_client.post("/api/files/confirm", json=self._body(test_task.id, fileSize="2048"))
        assert resp.status_code == 200
        assert resp.json()["attachmentId"] == "file-123"
        assert db_session.query(RequestAttachment).count() == 0
        assert db_session.query(TaskAttachment).count() == 0

    def test_unknown_target_is_404(self, scholar_client):
        assert scholar_client.post("/api/files/confirm", json=self._body("nothing")).status_code == 404

    def test_foreign_request_is_404(self, client_for, test_request, other_scholar):
        resp = client_for(other_scholar.user).post("/api/files/confirm", json=self._body(test_request.id))
        assert resp.status_code == 404


class TestDownload:
    def test_owner_gets_url(self, scholar_client, db_session, test_request, s3):
        _attach(db_session, test_request)
        resp = scholar_client.get("/api/files/download/att-1")
        assert resp.status_code == 200
        assert resp.json() == {"downloadUrl": "https://s3.example.com/signed"}
        args, kwargs = s3.generate_presigned_url.call_args
        assert args[0] == "get_object"
        assert kwargs["Params"]["Key"] == "k/file.pdf"
        assert kwargs["ExpiresIn"] == 3600

    def test_staff_gets_any(self, staff_client, db_session, test_request, s3):
        _attach(db_session, test_request)
        assert staff_client.get("/api/files/download/att-1").status_code == 200

    def test_task_attachment_download(self, scholar_client, db_session, test_task, s3):
        response = TaskResponse(task_id=test_task.id, response_text="r")
        db_session.add(response)
        db_session.flush()
        db_session.add(TaskAttachment(
            id="tatt-1", task_response_id=response.id, file_name="x.png", file_url="k/x.png",
            file_size="10", mime_type="image/png",
        ))
        db_session.commit()
        resp = scholar_client.get("/api/files/download/tatt-1")
        assert resp.status_code == 200
        assert s3.generate_presigned_url.call_args.kwargs["Params"]["Key"] == "k/x.png"

    def test_other_scholar_forbidden(self, client_for, db_session, test_request, other_scholar, s3):
        _attach(db_session, test_request)
        assert client_for(other_scholar.user).get("/api/files/download/att-1").status_code == 403

    def test_missing_is_404(self, scholar_client, s3):
        assert scholar_client.get("/api/files/download/nope").status_code == 404


class TestDelete:
    def test_owner_deletes(self, scholar_client, db_session, test_request, s3):
        _attach(db_session, test_request)
        resp = scholar_client.delete("/api/files/att-1")
        assert resp.json() == {"success": True}
        s3.delete_object.assert_called_once()
        assert s3.delete_object.call_args.kwargs["Key"] == "k/file.pdf"
        assert db_session.get(RequestAttachment, "att-1") is None

    def test_staff_cannot_delete(self, staff_client, db_session, test_request, s3):
        _attach(db_session, test_request)
        assert staff_client.delete("/api/files/att-1").status_code == 404
        s3.delete_object.assert_not_called()

    def test_other_scholar_forbidden(self, client_for, db_session, test_request, other_scholar, s3):
        _attach(db_session, test_request)
        assert client_for(other_scholar.user).delete("/api/files/att-1").status_code == 403

    def test_missing_is_404(self, scholar_client, s3):
        assert scholar_client.delete("/api/files/nope").status_code == 404
