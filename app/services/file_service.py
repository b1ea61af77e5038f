"""File service — the three-step upload flow and attachment access.

Flow: upload-url (validate + presign PUT) → client PUTs to S3 → confirm.
Confirming against a task only echoes the metadata back (it is stored when
the task is completed); confirming against a request stores a
RequestAttachment and an audit entry.

Business Rules:
- Keys look like <scholarId>/requests/temp/<epochMillis>-<fileId>-<sanitizedName>
- Staff may download any attachment; scholars only their own
- Only the owning scholar may delete a request attachment

Called by: routers/files.py
Depends on: services/storage_service.py, services/request_service.py, utils/file_validation.py
"""

import time

from fastapi import HTTPException
from loguru import logger
from sqlalchemy.orm import Session

from ..database import utcnow
from ..dependencies import get_scholar_for_user, is_staff
from ..models import RequestAttachment, Scholar, ScholarRequest, Task, TaskAttachment, User
from ..models.base import new_id
from ..schemas.files import UploadConfirm, UploadUrlRequest
from ..utils.file_validation import sanitize_filename, validate_upload
from . import request_service, storage_service


def create_upload_url(scholar: Scholar, user: User, payload: UploadUrlRequest) -> dict:
    ok, reason = validate_upload(payload.file_name, payload.file_type, payload.file_size)
    if not ok:
        raise HTTPException(400, reason)

    file_id = new_id()
    timestamp = int(time.time() * 1000)
    file_key = f"{scholar.id}/requests/temp/{timestamp}-{file_id}-{sanitize_filename(payload.file_name)}"
    upload_url = storage_service.presigned_upload_url(
        file_key,
        payload.file_type,
        {
            "scholarId": scholar.id,
            "userId": user.id,
            "originalName": sanitize_filename(payload.file_name),
            "uploadedAt": utcnow().isoformat(),
        },
    )
    logger.info("Upload URL issued for {} ({} bytes)", file_key, payload.file_size)
    return {"uploadUrl": upload_url, "fileKey": file_key, "fileId": file_id}


def confirm_upload(db: Session, scholar: Scholar, user: User, payload: UploadConfirm) -> dict:
    file_size = str(payload.file_size)

    task = db.get(Task, payload.request_id)
    if task:
        if task.scholar_id != scholar.id:
            raise HTTPException(404, "Task not found or does not belong to this scholar")
        return {
            "attachmentId": payload.file_id,
            "fileKey": payload.file_key,
            "fileName": payload.file_name,
            "fileSize": file_size,
            "mimeType": payload.mime_type,
        }

    req = db.get(ScholarRequest, payload.request_id)
    if not req or req.scholar_id != scholar.id:
        raise HTTPException(404, "Request not found or does not belong to this scholar")

    attachment = request_service.add_attachment(
        db,
        req,
        user,
        attachment_id=payload.file_id,
        file_key=payload.file_key,
        file_name=payload.file_name,
        file_size=file_size,
        mime_type=payload.mime_type,
    )
    logger.info("Attachment {} confirmed on request {}", attachment.id, req.id)
    return {
        "attachmentId": attachment.id,
        "fileKey": attachment.url,
        "fileName": attachment.name,
        "fileSize": attachment.size,
        "mimeType": attachment.mime_type,
    }


def _require_owner(db: Session, user: User, scholar_id: str, verb: str) -> None:
    scholar = get_scholar_for_user(db, user)
    if not scholar:
        raise HTTPException(404, "Scholar not found for this user")
    if scholar.id != scholar_id:
        raise HTTPException(403, f"You do not have permission to {verb} this file")


def download_url(db: Session, user: User, attachment_id: str) -> dict:
    request_attachment = db.get(RequestAttachment, attachment_id)
    if request_attachment:
        key = request_attachment.url
        owner_id = request_attachment.request.scholar_id
    else:
        task_attachment = db.get(TaskAttachment, attachment_id)
        if not task_attachment:
            raise HTTPException(404, "Attachment not found")
        key = task_attachment.file_url
        owner_id = task_attachment.task_response.task.scholar_id

    if not is_staff(user):
        _require_owner(db, user, owner_id, "access")
    if not key:
        raise HTTPException(404, "File key not found")
    return {"downloadUrl": storage_service.presigned_download_url(key)}


def delete_attachment(db: Session, user: User, attachment_id: str) -> None:
    attachment = db.get(RequestAttachment, attachment_id)
    if not attachment:
        raise HTTPException(404, "Attachment not found")
    req = attachment.request
    _require_owner(db, user, req.scholar_id, "delete")

    storage_service.delete_object(attachment.url)
    db.delete(attachment)
    db.commit()
    db.expire(req, ["attachments"])
    logger.info("Attachment {} deleted by {}", attachment_id, user.email)
