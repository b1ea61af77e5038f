"""Announcements API — staff broadcasts filtered by scholar attributes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_staff, require_user
from ..models import User
from ..schemas.announcements import AnnouncementCreate
from ..services import announcement_service
from ..services.announcement_service import announcement_to_dict

router = APIRouter(tags=["announcements"])


@router.post("/api/announcements", status_code=201)
def create_announcement(
    payload: AnnouncementCreate,
    user: User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    announcement = announcement_service.create_announcement(db, payload, user)
    return announcement_to_dict(announcement, len(announcement.recipients))


@router.get("/api/announcements")
def list_announcements(user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return announcement_service.list_announcements(db)


@router.get("/api/announcements/my-announcements")
def my_announcements(user: User = Depends(require_user), db: Session = Depends(get_db)):
    return announcement_service.list_for_user(db, user)


@router.get("/api/announcements/scholars")
def scholars_for_filtering(user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return announcement_service.scholars_for_filtering(db)


@router.get("/api/announcements/filter-options")
def filter_options(user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return announcement_service.filter_options(db)


@router.post("/api/announcements/{announcement_id}/archive")
def archive_announcement(announcement_id: str, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return announcement_to_dict(announcement_service.archive_announcement(db, announcement_id, user))
