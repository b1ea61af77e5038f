"""
routers/requests.py — Scholar requests and staff review

Business Rules:
- Staff see the whole queue (paginated) and its stats, and review requests
- Scholars submit requests and see their own
- A single request is visible to staff and to its owning scholar

Called by: main.py (router mount)
Depends on: dependencies, services/request_service.py
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_scholar, require_staff, require_user
from ..models import Scholar, User
from ..schemas.requests import RequestCreate, RequestStatus, RequestStatusUpdate, RequestType
from ..services import request_service
from ..services.request_service import request_to_dict

router = APIRouter(tags=["requests"])


@router.get("/api/requests")
def list_requests(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    type: Optional[RequestType] = Query(None),
    status: Optional[RequestStatus] = Query(None),
    priority: Optional[Literal["high", "medium", "low"]] = Query(None),
    user: User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return request_service.list_requests(
        db, page=page, limit=limit, search=search, type=type, status=status, priority=priority
    )


@router.get("/api/requests/stats")
def request_stats(user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return request_service.request_stats(db)


@router.get("/api/requests/my-requests")
def my_requests(scholar: Scholar = Depends(require_scholar), db: Session = Depends(get_db)):
    return request_service.list_requests_for_scholar(db, scholar)


@router.post("/api/requests", status_code=201)
def create_request(
    payload: RequestCreate,
    scholar: Scholar = Depends(require_scholar),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return request_to_dict(request_service.create_request(db, scholar, user, payload))


@router.get("/api/requests/{request_id}")
def get_request(request_id: str, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return request_to_dict(request_service.get_request(db, request_id, user))


@router.post("/api/requests/{request_id}/status")
def update_request_status(
    request_id: str,
    payload: RequestStatusUpdate,
    user: User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return request_to_dict(request_service.update_status(db, request_id, payload, user))
