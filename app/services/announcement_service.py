"""Announcement service — audience filters and recipient resolution.

Business Rules:
- Filters are ANDed; an announcement with no filters reaches every scholar
- Unknown filter types are stored but ignored when resolving recipients
- A status filter only applies when its value is a real scholar status
- Recipients are resolved once, at creation time
- Archived announcements disappear from scholars' feeds

Called by: routers/announcements.py
Depends on: models, dependencies
"""

from fastapi import HTTPException
from loguru import logger
from sqlalchemy import desc, func
from sqlalchemy.orm import Session, selectinload

from ..constants import SCHOLAR_STATUSES
from ..database import utcnow
from ..dependencies import get_scholar_for_user
from ..models import Announcement, AnnouncementFilter, AnnouncementRecipient, Scholar, User
from ..schemas.announcements import AnnouncementCreate
from ..utils import iso

_FILTER_COLUMNS = {
    "program": Scholar.program,
    "year": Scholar.year,
    "university": Scholar.university,
    "location": Scholar.location,
    "status": Scholar.status,
}


def announcement_to_dict(a: Announcement, recipient_count: int | None = None) -> dict:
    row = {
        "id": a.id,
        "title": a.title,
        "content": a.content,
        "createdBy": a.creator.name if a.creator else None,
        "archived": a.archived,
        "archivedAt": iso(a.archived_at),
        "createdAt": iso(a.created_at),
        "updatedAt": iso(a.updated_at),
    }
    if recipient_count is not None:
        row["filters"] = [{"type": f.filter_type, "value": f.filter_value} for f in a.filters]
        row["recipientCount"] = recipient_count
    return row


def _matching_scholar_ids(db: Session, filters: list[tuple[str, str]]) -> list[str]:
    q = db.query(Scholar.id)
    for filter_type, value in filters:
        column = _FILTER_COLUMNS.get(filter_type)
        if column is None:
            continue
        if filter_type == "status" and value not in SCHOLAR_STATUSES:
            continue
        q = q.filter(column == value)
    return [sid for (sid,) in q.all()]


def create_announcement(db: Session, payload: AnnouncementCreate, created_by: User) -> Announcement:
    announcement = Announcement(title=payload.title, content=payload.content, created_by=created_by.id)
    db.add(announcement)
    db.flush()

    pairs = [(f.filter_type, f.filter_value) for f in payload.filters]
    for filter_type, value in pairs:
        db.add(AnnouncementFilter(announcement_id=announcement.id, filter_type=filter_type, filter_value=value))

    scholar_ids = _matching_scholar_ids(db, pairs)
    db.add_all(AnnouncementRecipient(announcement_id=announcement.id, scholar_id=sid) for sid in scholar_ids)
    db.commit()
    db.refresh(announcement)
    logger.info(
        "Announcement {} created by {} for {} recipients", announcement.id, created_by.email, len(scholar_ids)
    )
    return announcement


def list_announcements(db: Session) -> list[dict]:
    counts = dict(
        db.query(AnnouncementRecipient.announcement_id, func.count())
        .group_by(AnnouncementRecipient.announcement_id)
        .all()
    )
    rows = (
        db.query(Announcement)
        .options(selectinload(Announcement.filters), selectinload(Announcement.creator))
        .order_by(desc(Announcement.created_at))
        .all()
    )
    return [announcement_to_dict(a, counts.get(a.id, 0)) for a in rows]


def list_for_user(db: Session, user: User) -> list[dict]:
    scholar = get_scholar_for_user(db, user)
    if not scholar:
        return []
    rows = (
        db.query(Announcement)
        .join(AnnouncementRecipient, AnnouncementRecipient.announcement_id == Announcement.id)
        .filter(AnnouncementRecipient.scholar_id == scholar.id, Announcement.archived.is_(False))
        .order_by(desc(Announcement.created_at))
        .all()
    )
    return [announcement_to_dict(a) for a in rows]


def scholars_for_filtering(db: Session) -> list[dict]:
    rows = (
        db.query(Scholar, User)
        .join(User, Scholar.user_id == User.id)
        .order_by(User.name)
        .all()
    )
    return [
        {
            "id": s.id,
            "userId": s.user_id,
            "name": u.name,
            "email": u.email,
            "program": s.program,
            "year": s.year,
            "university": s.university,
            "location": s.location,
            "status": s.status,
        }
        for s, u in rows
    ]


def filter_options(db: Session) -> dict:
    rows = db.query(Scholar.program, Scholar.year, Scholar.university, Scholar.location, Scholar.status).all()
    return {
        "programs": sorted({r.program for r in rows if r.program}),
        "years": sorted({r.year for r in rows if r.year}),
        "universities": sorted({r.university for r in rows if r.university}),
        "locations": sorted({r.location for r in rows if r.location}),
        "statuses": sorted({r.status for r in rows if r.status}),
    }


def archive_announcement(db: Session, announcement_id: str, user: User) -> Announcement:
    announcement = db.get(Announcement, announcement_id)
    if not announcement:
        raise HTTPException(404, "Announcement not found")
    if not announcement.archived:
        announcement.archived = True
        announcement.archived_at = utcnow()
        announcement.archived_by = user.id
        db.commit()
        db.refresh(announcement)
        logger.info("Announcement {} archived by {}", announcement.id, user.email)
    return announcement
