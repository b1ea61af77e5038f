"""
routers/files.py — Pre-signed upload flow and attachment access

Business Rules:
- upload-url and confirm belong to the signed-in scholar
- Downloads: staff any attachment, scholars only their own
- Deletes: owning scholar only, request attachments only

Called by: main.py (router mount)
Depends on: dependencies, services/file_service.py
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_scholar, require_user
from ..models import Scholar, User
from ..schemas.files import UploadConfirm, UploadUrlRequest
from ..services import file_service

router = APIRouter(tags=["files"])


@router.post("/api/files/upload-url")
def get_upload_url(
    payload: UploadUrlRequest,
    scholar: Scholar = Depends(require_scholar),
    user: User = Depends(require_user),
):
    return file_service.create_upload_url(scholar, user, payload)


@router.post("/api/files/confirm")
def confirm_upload(
    payload: UploadConfirm,
    scholar: Scholar = Depends(require_scholar),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return file_service.confirm_upload(db, scholar, user, payload)


@router.get("/api/files/download/{attachment_id}")
def get_download_url(attachment_id: str, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return file_service.download_url(db, user, attachment_id)


@router.delete("/api/files/{attachment_id}")
def delete_file(attachment_id: str, user: User = Depends(require_user), db: Session = Depends(get_db)):
    file_service.delete_attachment(db, user, attachment_id)
    return {"success": True}
