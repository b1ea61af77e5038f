"""Scholar service — directory, profiles, stats and LDF export.

Business Rules:
- Staff create scholars directly (user without password + profile); a
  duplicate email is a conflict
- Directory rows carry goal stats {total, completed, inProgress, pending}
  and task stats {total, completed, overdue}; overdue means not completed
  and past due
- Scholar self-service edits skip empty values and never touch name,
  email or AAI scholar ID

Called by: routers/scholars.py
Depends on: models, services/goal_service.py, services/task_service.py
"""

import io
from collections import defaultdict
from datetime import datetime, timezone

from fastapi import HTTPException
from loguru import logger
from sqlalchemy import asc, desc, func, or_
from sqlalchemy.orm import Session, selectinload

from ..database import utcnow
from ..models import Document, Goal, Scholar, Task, User
from ..schemas.responses import paginated
from ..schemas.scholars import ScholarCreate, ScholarProfileUpdate, parse_date
from ..utils import iso
from .goal_service import goal_to_dict
from .task_service import response_to_dict, task_to_dict

PLACEHOLDER = "TBD"

_SORT_COLUMNS = {
    "name": User.name,
    "lastActivity": Scholar.last_activity,
    "createdAt": Scholar.created_at,
}

# Profile columns copied verbatim into the staff-create and self-edit flows
_PROFILE_TEXT_FIELDS = (
    "phone",
    "location",
    "bio",
    "date_of_birth",
    "gender",
    "nationality",
    "address_home_country",
    "passport_expiration_date",
    "visa_expiration_date",
    "emergency_contact_country_of_study",
    "emergency_contact_home_country",
    "university_id",
    "dietary_information",
    "kokorozashi",
    "long_term_career_plan",
    "post_graduation_plan",
)
_DATE_FIELDS = ("start_date", "graduation_date")


def _as_datetime(value: str) -> datetime:
    d = parse_date(value)
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def get_scholar(db: Session, scholar_id: str) -> Scholar:
    scholar = db.get(Scholar, scholar_id)
    if not scholar:
        raise HTTPException(404, f"Scholar with ID {scholar_id} not found")
    return scholar


# ── Serialization ────────────────────────────────────────────────────


def _base_dict(s: Scholar) -> dict:
    user = s.user
    return {
        "id": s.id,
        "userId": s.user_id,
        "name": user.name,
        "email": user.email,
        "image": user.image,
        "phone": s.phone,
        "program": s.program,
        "year": s.year,
        "university": s.university,
        "location": s.location,
        "bio": s.bio,
        "status": s.status,
        "startDate": iso(s.start_date),
        "lastActivity": iso(s.last_activity),
        "createdAt": iso(s.created_at),
        "updatedAt": iso(s.updated_at),
    }


def _extended_dict(s: Scholar) -> dict:
    return {
        "aaiScholarId": s.aai_scholar_id,
        "dateOfBirth": s.date_of_birth,
        "gender": s.gender,
        "nationality": s.nationality,
        "addressHomeCountry": s.address_home_country,
        "passportExpirationDate": s.passport_expiration_date,
        "visaExpirationDate": s.visa_expiration_date,
        "emergencyContactCountryOfStudy": s.emergency_contact_country_of_study,
        "emergencyContactHomeCountry": s.emergency_contact_home_country,
        "graduationDate": iso(s.graduation_date),
        "universityId": s.university_id,
        "dietaryInformation": s.dietary_information,
        "kokorozashi": s.kokorozashi,
        "longTermCareerPlan": s.long_term_career_plan,
        "postGraduationPlan": s.post_graduation_plan,
        "majorCategory": s.major_category,
        "fieldOfStudy": s.field_of_study,
    }


def document_to_dict(d: Document) -> dict:
    return {
        "id": d.id,
        "name": d.name,
        "type": d.type,
        "mimeType": d.mime_type,
        "size": d.size,
        "url": d.url,
        "uploadedBy": d.uploaded_by,
        "uploadDate": iso(d.upload_date),
        "createdAt": iso(d.created_at),
        "updatedAt": iso(d.updated_at),
    }


def _goal_stats(db: Session, scholar_ids: list[str]) -> dict[str, dict]:
    stats = {sid: {"total": 0, "completed": 0, "inProgress": 0, "pending": 0} for sid in scholar_ids}
    if not scholar_ids:
        return stats
    rows = (
        db.query(Goal.scholar_id, Goal.status, func.count())
        .filter(Goal.scholar_id.in_(scholar_ids))
        .group_by(Goal.scholar_id, Goal.status)
        .all()
    )
    keys = {"completed": "completed", "in_progress": "inProgress", "pending": "pending"}
    for scholar_id, status, count in rows:
        stats[scholar_id]["total"] += count
        if status in keys:
            stats[scholar_id][keys[status]] = count
    return stats


def _task_stats(db: Session, scholar_ids: list[str]) -> dict[str, dict]:
    stats = {sid: {"total": 0, "completed": 0, "overdue": 0} for sid in scholar_ids}
    if not scholar_ids:
        return stats
    now = utcnow()
    rows = (
        db.query(Task.scholar_id, Task.status, Task.due_date)
        .filter(Task.scholar_id.in_(scholar_ids))
        .all()
    )
    for scholar_id, status, due_date in rows:
        s = stats[scholar_id]
        s["total"] += 1
        if status == "completed":
            s["completed"] += 1
        elif due_date and due_date < now:
            s["overdue"] += 1
    return stats


def _rows_with_stats(db: Session, scholars: list[Scholar]) -> list[dict]:
    ids = [s.id for s in scholars]
    goals = _goal_stats(db, ids)
    tasks = _task_stats(db, ids)
    return [{**_base_dict(s), "goals": goals[s.id], "tasks": tasks[s.id]} for s in scholars]


def scholar_row(db: Session, scholar: Scholar) -> dict:
    return _rows_with_stats(db, [scholar])[0]


def profile_to_dict(db: Session, scholar: Scholar, include_responses: bool = False) -> dict:
    goals = (
        db.query(Goal).filter(Goal.scholar_id == scholar.id).order_by(desc(Goal.created_at)).all()
    )
    tasks = (
        db.query(Task)
        .options(selectinload(Task.response))
        .filter(Task.scholar_id == scholar.id)
        .order_by(desc(Task.created_at))
        .all()
    )
    documents = (
        db.query(Document)
        .filter(Document.scholar_id == scholar.id)
        .order_by(desc(Document.created_at))
        .all()
    )
    task_rows = []
    for t in tasks:
        row = task_to_dict(t)
        if include_responses:
            row["response"] = response_to_dict(t.response) if t.response else None
        task_rows.append(row)
    return {
        **_base_dict(scholar),
        **_extended_dict(scholar),
        "goals": [goal_to_dict(g) for g in goals],
        "tasks": task_rows,
        "documents": [document_to_dict(d) for d in documents],
    }


# ── Directory ────────────────────────────────────────────────────────


def list_scholars(
    db: Session,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    program: str | None = None,
    year: str | None = None,
    university: str | None = None,
    status: str | None = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> dict:
    q = db.query(Scholar).join(User, Scholar.user_id == User.id)
    if search:
        pattern = f"%{search.lower()}%"
        q = q.filter(
            or_(
                func.lower(User.name).like(pattern),
                func.lower(User.email).like(pattern),
                func.lower(Scholar.program).like(pattern),
                func.lower(Scholar.university).like(pattern),
            )
        )
    if program:
        q = q.filter(Scholar.program == program)
    if year:
        q = q.filter(Scholar.year == year)
    if university:
        q = q.filter(Scholar.university == university)
    if status:
        q = q.filter(Scholar.status == status)

    total = q.count()
    column = _SORT_COLUMNS.get(sort_by, Scholar.created_at)
    direction = asc if sort_order.lower() == "asc" else desc
    scholars = (
        q.options(selectinload(Scholar.user))
        .order_by(direction(column), Scholar.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return paginated(_rows_with_stats(db, scholars), page, limit, total)


def _distinct_values(db: Session, column) -> list[str]:
    rows = db.query(column).filter(column.isnot(None)).distinct().order_by(column).all()
    return [value for (value,) in rows if value]


def filter_options(db: Session) -> dict:
    return {
        "programs": _distinct_values(db, Scholar.program),
        "years": _distinct_values(db, Scholar.year),
        "universities": _distinct_values(db, Scholar.university),
    }


def scholar_stats(db: Session) -> dict:
    stats = {"total": 0, "active": 0, "inactive": 0, "onHold": 0}
    keys = {"active": "active", "inactive": "inactive", "on_hold": "onHold"}
    for status, count in db.query(Scholar.status, func.count()).group_by(Scholar.status).all():
        stats["total"] += count
        if status in keys:
            stats[keys[status]] = count
    return stats


# ── Create / update ──────────────────────────────────────────────────


def create_scholar(db: Session, payload: ScholarCreate, created_by: User) -> dict:
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(409, "A user with this email already exists")

    user = User(name=payload.name, email=payload.email, user_type="scholar", email_verified=False)
    db.add(user)
    db.flush()

    scholar = Scholar(
        user_id=user.id,
        program=payload.program or PLACEHOLDER,
        year=payload.year or PLACEHOLDER,
        university=payload.university or PLACEHOLDER,
        start_date=_as_datetime(payload.start_date) if payload.start_date else utcnow(),
        graduation_date=_as_datetime(payload.graduation_date) if payload.graduation_date else None,
        status="active",
        aai_scholar_id=payload.aai_scholar_id,
        major_category=payload.major_category,
        field_of_study=payload.field_of_study,
    )
    for field in _PROFILE_TEXT_FIELDS:
        value = getattr(payload, field)
        if value:
            setattr(scholar, field, value)
    db.add(scholar)
    db.commit()
    db.refresh(scholar)
    logger.info("Scholar {} ({}) created by {}", scholar.id, user.email, created_by.email)
    return {
        "success": True,
        "message": "Scholar created successfully",
        "scholar": scholar_row(db, scholar),
    }


def update_own_profile(db: Session, scholar: Scholar, payload: ScholarProfileUpdate) -> dict:
    updates = payload.model_dump(exclude_unset=True)
    for field, value in updates.items():
        if value is None or value == "":
            continue
        if field in _DATE_FIELDS:
            value = _as_datetime(value)
        setattr(scholar, field, value)
    now = utcnow()
    scholar.updated_at = now
    scholar.last_activity = now
    db.commit()
    db.refresh(scholar)
    logger.info("Scholar {} updated own profile ({})", scholar.id, ", ".join(sorted(updates)) or "no fields")
    return profile_to_dict(db, scholar)


# ── LDF export ───────────────────────────────────────────────────────


def export_ldf_workbook(db: Session, scholar: Scholar) -> io.BytesIO:
    """Excel workbook of a scholar's LDF goals, one row per goal."""
    from openpyxl import Workbook

    goals = (
        db.query(Goal)
        .options(selectinload(Goal.comments))
        .filter(Goal.scholar_id == scholar.id)
        .order_by(Goal.target_date)
        .all()
    )

    wb = Workbook()
    ws = wb.active
    ws.title = "LDF Goals"
    ws.append(["Scholar", scholar.user.name, "Email", scholar.user.email])
    ws.append(["University", scholar.university, "Program", scholar.program])
    ws.append([])
    headers = [
        "Title", "Category", "Description", "Status", "Progress (%)",
        "Target Date", "Completed", "Comments", "Created",
    ]
    ws.append(headers)
    counts = defaultdict(int)
    for g in goals:
        counts[g.status] += 1
        ws.append([
            g.title,
            g.category,
            g.description or "",
            g.status,
            g.progress,
            g.target_date.date().isoformat() if g.target_date else "",
            g.completed_at.date().isoformat() if g.completed_at else "",
            len(g.comments),
            g.created_at.isoformat() if g.created_at else "",
        ])
    ws.append([])
    ws.append(["Total goals", len(goals), "Completed", counts["completed"], "In progress", counts["in_progress"]])

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf
