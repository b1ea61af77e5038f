"""
routers/scholars.py — Scholar directory and profile routes

Business Rules:
- Directory, stats, filters, profiles and exports are staff-only
- my-profile routes belong to the signed-in scholar
- Scholar ids in the path must be UUIDs (422 otherwise)
- Literal routes are declared before /{scholar_id}

Called by: main.py (router mount)
Depends on: dependencies, services/scholar_service.py
"""

from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_scholar, require_staff
from ..models import Scholar, User
from ..schemas.scholars import ScholarCreate, ScholarProfileUpdate
from ..services import scholar_service

router = APIRouter(tags=["scholars"])


@router.post("/api/scholars", status_code=201)
def create_scholar(payload: ScholarCreate, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return scholar_service.create_scholar(db, payload, user)


@router.get("/api/scholars")
def list_scholars(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    program: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    university: Optional[str] = Query(None),
    status: Optional[Literal["active", "inactive", "on_hold"]] = Query(None),
    sort_by: Literal["name", "lastActivity", "createdAt"] = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="(?i)^(asc|desc)$"),
    user: User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return scholar_service.list_scholars(
        db,
        page=page,
        limit=limit,
        search=search,
        program=program,
        year=year,
        university=university,
        status=status,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/api/scholars/filters")
def get_filter_options(user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return scholar_service.filter_options(db)


@router.get("/api/scholars/stats")
def get_scholar_stats(user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return scholar_service.scholar_stats(db)


# ── Scholar self-service ─────────────────────────────────────────────


@router.get("/api/scholars/my-profile")
def get_my_profile(scholar: Scholar = Depends(require_scholar), db: Session = Depends(get_db)):
    return scholar_service.profile_to_dict(db, scholar)


@router.patch("/api/scholars/my-profile")
def update_my_profile(
    payload: ScholarProfileUpdate,
    scholar: Scholar = Depends(require_scholar),
    db: Session = Depends(get_db),
):
    return scholar_service.update_own_profile(db, scholar, payload)


# ── By id (staff) ────────────────────────────────────────────────────


@router.get("/api/scholars/{scholar_id}/profile")
def get_scholar_profile(scholar_id: UUID, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    """Full profile including task responses and their attachments."""
    scholar = scholar_service.get_scholar(db, str(scholar_id))
    return scholar_service.profile_to_dict(db, scholar, include_responses=True)


@router.get("/api/scholars/{scholar_id}/export-ldf")
def export_ldf(scholar_id: UUID, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    """Download a scholar's LDF goals as an Excel workbook."""
    scholar = scholar_service.get_scholar(db, str(scholar_id))
    buf = scholar_service.export_ldf_workbook(db, scholar)
    filename = f"ldf_{scholar.id}.xlsx"
    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/api/scholars/{scholar_id}")
def get_scholar(scholar_id: UUID, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    scholar = scholar_service.get_scholar(db, str(scholar_id))
    return scholar_service.scholar_row(db, scholar)
