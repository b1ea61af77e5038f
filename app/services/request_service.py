"""Request service — scholar requests, staff review and the audit trail.

Business Rules:
- Every request starts pending and writes a "created" audit entry
- Staff review sets status, reviewer, review date and comment, and writes a
  "status_changed" audit entry carrying the status the request actually had
- Staff queue order: pending, reviewed, commented, approved, rejected, then
  newest submission first
- Scholars see their own requests, newest first

Called by: routers/requests.py, routers/files.py
Depends on: models, dependencies
"""

import json

from fastapi import HTTPException
from loguru import logger
from sqlalchemy import case, desc, func, or_
from sqlalchemy.orm import Session, selectinload

from ..constants import REQUEST_STATUS_RANK
from ..database import utcnow
from ..dependencies import get_scholar_for_user, is_staff
from ..models import RequestAttachment, RequestAuditLog, Scholar, ScholarRequest, User
from ..schemas.requests import RequestCreate, RequestStatusUpdate
from ..schemas.responses import paginated
from ..utils import iso, parse_json


def attachment_to_dict(a: RequestAttachment) -> dict:
    return {
        "id": a.id,
        "name": a.name,
        "size": a.size,
        "url": a.url,
        "mimeType": a.mime_type,
        "uploadedAt": iso(a.uploaded_at),
    }


def audit_to_dict(log: RequestAuditLog) -> dict:
    return {
        "id": log.id,
        "action": log.action,
        "performedBy": log.performed_by,
        "previousStatus": log.previous_status,
        "newStatus": log.new_status,
        "comment": log.comment,
        "metadata": log.metadata_json,
        "createdAt": iso(log.created_at),
    }


def request_to_dict(r: ScholarRequest) -> dict:
    user = r.scholar.user if r.scholar else None
    return {
        "id": r.id,
        "scholarId": r.scholar_id,
        "scholarName": user.name if user else None,
        "scholarEmail": user.email if user else None,
        "type": r.type,
        "description": r.description,
        "formData": parse_json(r.form_data),
        "priority": r.priority,
        "status": r.status,
        "submittedDate": iso(r.submitted_date),
        "assignedTo": r.assigned_to,
        "reviewedBy": r.reviewed_by,
        "reviewComment": r.review_comment,
        "reviewDate": iso(r.review_date),
        "attachments": [attachment_to_dict(a) for a in r.attachments],
        "auditLogs": [audit_to_dict(log) for log in r.audit_logs],
        "createdAt": iso(r.created_at),
        "updatedAt": iso(r.updated_at),
    }


def _audit(db: Session, request_id: str, action: str, performed_by: str, **fields) -> RequestAuditLog:
    metadata = fields.pop("metadata", None)
    entry = RequestAuditLog(
        request_id=request_id,
        action=action,
        performed_by=performed_by,
        metadata_json=json.dumps(metadata, default=str) if metadata is not None else None,
        **fields,
    )
    db.add(entry)
    return entry


def _with_children(q):
    return q.options(
        selectinload(ScholarRequest.attachments),
        selectinload(ScholarRequest.audit_logs),
        selectinload(ScholarRequest.scholar).selectinload(Scholar.user),
    )


# ── Staff queue ──────────────────────────────────────────────────────


def list_requests(
    db: Session,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    type: str | None = None,
    status: str | None = None,
    priority: str | None = None,
) -> dict:
    q = db.query(ScholarRequest).join(Scholar, ScholarRequest.scholar_id == Scholar.id).join(
        User, Scholar.user_id == User.id
    )
    if search:
        pattern = f"%{search.lower()}%"
        q = q.filter(
            or_(
                func.lower(ScholarRequest.description).like(pattern),
                func.lower(User.name).like(pattern),
                func.lower(User.email).like(pattern),
            )
        )
    if type:
        q = q.filter(ScholarRequest.type == type)
    if status:
        q = q.filter(ScholarRequest.status == status)
    if priority:
        q = q.filter(ScholarRequest.priority == priority)

    total = q.count()
    rank = case(REQUEST_STATUS_RANK, value=ScholarRequest.status, else_=len(REQUEST_STATUS_RANK))
    rows = (
        _with_children(q)
        .order_by(rank, desc(ScholarRequest.submitted_date))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return paginated([request_to_dict(r) for r in rows], page, limit, total)


def request_stats(db: Session) -> dict:
    stats = {"total": 0, "pending": 0, "approved": 0, "rejected": 0, "reviewed": 0, "commented": 0}
    rows = db.query(ScholarRequest.status, func.count()).group_by(ScholarRequest.status).all()
    for status, count in rows:
        stats["total"] += count
        if status in stats:
            stats[status] = count
    return stats


# ── Scholar side ─────────────────────────────────────────────────────


def list_requests_for_scholar(db: Session, scholar: Scholar) -> list[dict]:
    rows = (
        _with_children(db.query(ScholarRequest))
        .filter(ScholarRequest.scholar_id == scholar.id)
        .order_by(desc(ScholarRequest.submitted_date))
        .all()
    )
    return [request_to_dict(r) for r in rows]


def get_request(db: Session, request_id: str, user: User) -> ScholarRequest:
    req = db.get(ScholarRequest, request_id)
    if not req:
        raise HTTPException(404, f"Request with ID {request_id} not found")
    if is_staff(user):
        return req
    scholar = get_scholar_for_user(db, user)
    if not scholar or req.scholar_id != scholar.id:
        raise HTTPException(403, "You do not have access to this request")
    return req


def create_request(db: Session, scholar: Scholar, user: User, payload: RequestCreate) -> ScholarRequest:
    if payload.assigned_to and not db.get(User, payload.assigned_to):
        raise HTTPException(400, f"Assigned user {payload.assigned_to} does not exist")
    req = ScholarRequest(
        scholar_id=scholar.id,
        type=payload.type,
        description=payload.description,
        form_data=json.dumps(payload.form_data) if payload.form_data is not None else None,
        priority=payload.priority,
        assigned_to=payload.assigned_to,
        status="pending",
    )
    db.add(req)
    db.flush()
    _audit(db, req.id, "created", user.id, new_status="pending")
    scholar.last_activity = utcnow()
    db.commit()
    db.refresh(req)
    logger.info("Request {} ({}) submitted by scholar {}", req.id, req.type, scholar.id)
    return req


# ── Review ───────────────────────────────────────────────────────────


def update_status(db: Session, request_id: str, payload: RequestStatusUpdate, reviewer: User) -> ScholarRequest:
    req = db.get(ScholarRequest, request_id)
    if not req:
        raise HTTPException(404, f"Request with ID {request_id} not found")

    previous = req.status
    now = utcnow()
    req.status = payload.status
    req.review_comment = payload.comment
    req.reviewed_by = reviewer.id
    req.review_date = now
    req.updated_at = now
    _audit(
        db,
        req.id,
        "status_changed",
        reviewer.id,
        previous_status=previous,
        new_status=payload.status,
        comment=payload.comment,
        metadata={"reviewedBy": reviewer.id, "reviewDate": now.isoformat()},
    )
    db.commit()
    db.refresh(req)
    logger.info("Request {} status {} -> {} by {}", req.id, previous, payload.status, reviewer.email)
    return req


def add_attachment(
    db: Session,
    req: ScholarRequest,
    user: User,
    attachment_id: str,
    file_key: str,
    file_name: str,
    file_size: str,
    mime_type: str,
) -> RequestAttachment:
    """Record an uploaded file on a request. Confirming the same file twice is a no-op."""
    existing = db.get(RequestAttachment, attachment_id)
    if existing:
        if existing.request_id != req.id:
            raise HTTPException(409, f"Attachment {attachment_id} already belongs to another request")
        return existing
    attachment = RequestAttachment(
        id=attachment_id,
        request_id=req.id,
        name=file_name,
        size=file_size,
        url=file_key,
        mime_type=mime_type,
    )
    db.add(attachment)
    _audit(
        db,
        req.id,
        "attachment_added",
        user.id,
        metadata={"attachmentId": attachment_id, "fileName": file_name},
    )
    db.commit()
    db.refresh(attachment)
    db.refresh(req)
    return attachment
