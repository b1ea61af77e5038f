"""
routers/tasks.py — Task assignment, status and completion

Business Rules:
- Staff create (single or bulk), list and edit tasks
- my-tasks works for any signed-in user; non-scholars get an empty list
- Status changes are open to the owning scholar and staff
- Only the owning scholar completes a task

Called by: main.py (router mount)
Depends on: dependencies, services/task_service.py
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_scholar, require_staff, require_user
from ..models import Scholar, User
from ..schemas.tasks import TaskBulkCreate, TaskComplete, TaskCreate, TaskStatusUpdate, TaskUpdate
from ..services import task_service
from ..services.task_service import response_to_dict, task_to_dict

router = APIRouter(tags=["tasks"])


@router.post("/api/tasks", status_code=201)
def create_task(payload: TaskCreate, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return task_to_dict(task_service.create_task(db, payload, user))


@router.post("/api/tasks/bulk", status_code=201)
def create_tasks_bulk(payload: TaskBulkCreate, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    tasks = task_service.create_tasks_bulk(db, payload, user)
    return {"created": len(tasks), "tasks": [task_to_dict(t) for t in tasks]}


@router.get("/api/tasks/my-tasks")
def my_tasks(user: User = Depends(require_user), db: Session = Depends(get_db)):
    return [task_to_dict(t) for t in task_service.list_tasks_for_user(db, user)]


@router.get("/api/tasks/scholar/{scholar_id}")
def tasks_for_scholar(scholar_id: str, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return [task_to_dict(t) for t in task_service.list_tasks_for_scholar(db, scholar_id)]


@router.patch("/api/tasks/{task_id}/status")
def update_task_status(
    task_id: str,
    payload: TaskStatusUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return task_to_dict(task_service.update_status(db, task_id, payload.status, user))


@router.post("/api/tasks/{task_id}/complete")
def complete_task(
    task_id: str,
    payload: TaskComplete,
    scholar: Scholar = Depends(require_scholar),
    db: Session = Depends(get_db),
):
    return task_service.complete_task(db, task_id, scholar, payload)


@router.get("/api/tasks/{task_id}/response")
def get_task_response(task_id: str, user: User = Depends(require_user), db: Session = Depends(get_db)):
    response = task_service.get_task_response(db, task_id, user)
    return response_to_dict(response) if response else None


@router.put("/api/tasks/{task_id}")
def update_task(task_id: str, payload: TaskUpdate, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return task_to_dict(task_service.update_task(db, task_id, payload))
