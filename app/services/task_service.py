"""Task service — staff-assigned tasks and the scholar's single response.

Business Rules:
- New tasks start pending; assigned_by is the staff member creating them
- Status writes are plain enum writes; completed stamps completed_at,
  any other status clears it
- Completing a task sets status, upserts its one TaskResponse and, when
  attachments are supplied, replaces the response's attachments, all in
  one commit
- Only the owning scholar completes a task

Called by: routers/tasks.py, routers/files.py, routers/scholars.py
Depends on: models, dependencies
"""

from fastapi import HTTPException
from loguru import logger
from sqlalchemy.orm import Session

from ..database import utcnow
from ..dependencies import get_scholar_for_user, is_staff
from ..models import Scholar, Task, TaskAttachment, TaskResponse, User
from ..models.base import new_id
from ..schemas.tasks import CompletionAttachment, TaskBulkCreate, TaskComplete, TaskCreate, TaskUpdate
from ..utils import iso

DEFAULT_MIME_TYPE = "application/octet-stream"


def task_to_dict(t: Task) -> dict:
    return {
        "id": t.id,
        "title": t.title,
        "description": t.description,
        "type": t.type,
        "priority": t.priority,
        "dueDate": iso(t.due_date),
        "status": t.status,
        "scholarId": t.scholar_id,
        "assignedBy": t.assigned_by,
        "assignedByName": t.assigner.name if t.assigner else None,
        "completedAt": iso(t.completed_at),
        "createdAt": iso(t.created_at),
        "updatedAt": iso(t.updated_at),
    }


def attachment_to_dict(a: TaskAttachment) -> dict:
    return {
        "id": a.id,
        "taskResponseId": a.task_response_id,
        "fileName": a.file_name,
        "fileUrl": a.file_url,
        "fileSize": a.file_size,
        "mimeType": a.mime_type,
        "uploadedAt": iso(a.uploaded_at),
    }


def response_to_dict(r: TaskResponse) -> dict:
    return {
        "id": r.id,
        "taskId": r.task_id,
        "responseText": r.response_text,
        "submittedAt": iso(r.submitted_at),
        "updatedAt": iso(r.updated_at),
        "attachments": [attachment_to_dict(a) for a in r.attachments],
    }


def _get_task(db: Session, task_id: str) -> Task:
    task = db.get(Task, task_id)
    if not task:
        raise HTTPException(404, "Task not found")
    return task


def _require_scholar_exists(db: Session, scholar_id: str) -> None:
    if not db.get(Scholar, scholar_id):
        raise HTTPException(404, f"Scholar {scholar_id} not found")


def _apply_status(task: Task, status: str) -> None:
    task.status = status
    task.completed_at = utcnow() if status == "completed" else None
    task.updated_at = utcnow()


def _check_task_access(db: Session, task: Task, user: User) -> None:
    """Staff reach every task; scholars only their own."""
    if is_staff(user):
        return
    scholar = get_scholar_for_user(db, user)
    if not scholar or task.scholar_id != scholar.id:
        raise HTTPException(403, "You do not have access to this task")


# ── Create / list ────────────────────────────────────────────────────


def create_task(db: Session, payload: TaskCreate, assigned_by: User) -> Task:
    scholar_id = str(payload.scholar_id)
    _require_scholar_exists(db, scholar_id)
    task = Task(
        title=payload.title,
        description=payload.description,
        type=payload.type,
        priority=payload.priority,
        due_date=payload.due_date,
        scholar_id=scholar_id,
        assigned_by=assigned_by.id,
        status="pending",
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("Task {} assigned to scholar {} by {}", task.id, scholar_id, assigned_by.email)
    return task


def create_tasks_bulk(db: Session, payload: TaskBulkCreate, assigned_by: User) -> list[Task]:
    scholar_ids = list(dict.fromkeys(str(sid) for sid in payload.scholar_ids))
    for scholar_id in scholar_ids:
        _require_scholar_exists(db, scholar_id)
    tasks = [
        Task(
            title=payload.title,
            description=payload.description,
            type=payload.type,
            priority=payload.priority,
            due_date=payload.due_date,
            scholar_id=scholar_id,
            assigned_by=assigned_by.id,
            status="pending",
        )
        for scholar_id in scholar_ids
    ]
    db.add_all(tasks)
    db.commit()
    for task in tasks:
        db.refresh(task)
    logger.info("Bulk-assigned task '{}' to {} scholars", payload.title, len(tasks))
    return tasks


def list_tasks_for_scholar(db: Session, scholar_id: str) -> list[Task]:
    return db.query(Task).filter(Task.scholar_id == scholar_id).order_by(Task.due_date).all()


def list_tasks_for_user(db: Session, user: User) -> list[Task]:
    scholar = get_scholar_for_user(db, user)
    if not scholar:
        return []
    return list_tasks_for_scholar(db, scholar.id)


# ── Update ───────────────────────────────────────────────────────────


def update_status(db: Session, task_id: str, status: str, user: User) -> Task:
    task = _get_task(db, task_id)
    _check_task_access(db, task, user)
    previous = task.status
    _apply_status(task, status)
    db.commit()
    db.refresh(task)
    logger.info("Task {} status {} -> {}", task.id, previous, status)
    return task


def update_task(db: Session, task_id: str, payload: TaskUpdate) -> Task:
    task = _get_task(db, task_id)
    updates = payload.model_dump(exclude_unset=True)
    for field, value in updates.items():
        if value is None and field != "description":
            continue
        setattr(task, field, value)
    task.updated_at = utcnow()
    db.commit()
    db.refresh(task)
    return task


# ── Completion ───────────────────────────────────────────────────────


def _build_attachment(response_id: str, item: str | CompletionAttachment) -> TaskAttachment:
    if isinstance(item, str):
        # Plain storage key
        return TaskAttachment(
            id=new_id(),
            task_response_id=response_id,
            file_name=f"attachment-{item}",
            file_url=item,
            file_size="0",
            mime_type=DEFAULT_MIME_TYPE,
        )
    return TaskAttachment(
        id=item.attachment_id or new_id(),
        task_response_id=response_id,
        file_name=item.file_name or f"attachment-{item.attachment_id}",
        file_url=item.file_key or item.attachment_id or "",
        file_size=str(item.file_size) if item.file_size not in (None, "") else "0",
        mime_type=item.mime_type or DEFAULT_MIME_TYPE,
    )


def _unique_attachments(items: list) -> list:
    """Drop repeated attachmentIds, keeping the first entry for each."""
    seen = set()
    unique = []
    for item in items:
        key = None if isinstance(item, str) else item.attachment_id
        if key:
            if key in seen:
                continue
            seen.add(key)
        unique.append(item)
    return unique


def _check_attachment_ids(db: Session, items: list, response_id: str | None) -> None:
    ids = [item.attachment_id for item in items if not isinstance(item, str) and item.attachment_id]
    if not ids:
        return
    q = db.query(TaskAttachment.id).filter(TaskAttachment.id.in_(ids))
    if response_id:
        q = q.filter(TaskAttachment.task_response_id != response_id)
    taken = q.first()
    if taken:
        raise HTTPException(409, f"Attachment {taken.id} is already attached to another task response")


def complete_task(db: Session, task_id: str, scholar: Scholar, payload: TaskComplete) -> dict:
    task = _get_task(db, task_id)
    if task.scholar_id != scholar.id:
        raise HTTPException(403, "Unauthorized to complete this task")

    response = db.query(TaskResponse).filter(TaskResponse.task_id == task.id).first()
    attachments = _unique_attachments(payload.attachments or [])
    _check_attachment_ids(db, attachments, response.id if response else None)

    _apply_status(task, "completed")
    if response:
        response.response_text = payload.response_text
        response.updated_at = utcnow()
    else:
        response = TaskResponse(id=new_id(), task_id=task.id, response_text=payload.response_text)
        db.add(response)
    db.flush()

    if attachments:
        for old in list(response.attachments):
            db.delete(old)
        db.flush()
        for item in attachments:
            db.add(_build_attachment(response.id, item))

    db.commit()
    db.refresh(task)
    db.refresh(response)
    logger.info("Task {} completed by scholar {}", task.id, scholar.id)
    return {"task": task_to_dict(task), "responseId": response.id}


def get_task_response(db: Session, task_id: str, user: User) -> TaskResponse | None:
    task = _get_task(db, task_id)
    _check_task_access(db, task, user)
    return db.query(TaskResponse).filter(TaskResponse.task_id == task.id).first()
