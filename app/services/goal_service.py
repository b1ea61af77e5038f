"""Goal service — LDF goals and the comment thread on each goal.

Business Rules:
- Scholars only see and change their own goals (foreign goals look missing)
- Moving a goal to completed stamps completed_at; any other status clears it
- Comments are visible to the owning scholar and to staff
- Only a comment's author may edit or delete it

Called by: routers/goals.py, routers/scholars.py
Depends on: models, dependencies
"""

from fastapi import HTTPException
from loguru import logger
from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..database import utcnow
from ..dependencies import get_scholar_for_user, is_staff
from ..models import Goal, GoalComment, Scholar, User
from ..schemas.goals import CommentCreate, CommentUpdate, GoalCreate, GoalUpdate
from ..utils import iso

GOAL_NOT_FOUND = "Goal not found or does not belong to this scholar"


def goal_to_dict(g: Goal) -> dict:
    return {
        "id": g.id,
        "title": g.title,
        "description": g.description,
        "category": g.category,
        "targetDate": iso(g.target_date),
        "progress": g.progress,
        "status": g.status,
        "scholarId": g.scholar_id,
        "completedAt": iso(g.completed_at),
        "createdAt": iso(g.created_at),
        "updatedAt": iso(g.updated_at),
    }


def comment_to_dict(c: GoalComment) -> dict:
    author = c.author
    return {
        "id": c.id,
        "goalId": c.goal_id,
        "userId": c.user_id,
        "comment": c.comment,
        "createdAt": iso(c.created_at),
        "updatedAt": iso(c.updated_at),
        "user": {
            "name": author.name if author else None,
            "email": author.email if author else None,
            "image": author.image if author else None,
            "userType": author.user_type if author else None,
        },
    }


def _apply_status(goal: Goal, status: str) -> None:
    goal.status = status
    goal.completed_at = utcnow() if status == "completed" else None


# ── Goals ────────────────────────────────────────────────────────────


def list_goals(db: Session, scholar_id: str) -> list[Goal]:
    return (
        db.query(Goal)
        .filter(Goal.scholar_id == scholar_id)
        .order_by(desc(Goal.created_at))
        .all()
    )


def get_owned_goal(db: Session, goal_id: str, scholar: Scholar) -> Goal:
    goal = db.query(Goal).filter(Goal.id == goal_id, Goal.scholar_id == scholar.id).first()
    if not goal:
        raise HTTPException(404, GOAL_NOT_FOUND)
    return goal


def create_goal(db: Session, scholar: Scholar, payload: GoalCreate) -> Goal:
    goal = Goal(
        scholar_id=scholar.id,
        title=payload.title,
        description=payload.description,
        category=payload.category,
        target_date=payload.target_date,
        progress=payload.progress,
    )
    _apply_status(goal, payload.status)
    db.add(goal)
    db.commit()
    db.refresh(goal)
    logger.info("Goal {} created for scholar {}", goal.id, scholar.id)
    return goal


def update_goal(db: Session, goal: Goal, payload: GoalUpdate) -> Goal:
    updates = payload.model_dump(exclude_unset=True)
    status = updates.pop("status", None)
    for field, value in updates.items():
        # Non-nullable columns keep their value when null is sent
        if value is None and field != "description":
            continue
        setattr(goal, field, value)
    if status is not None:
        _apply_status(goal, status)
    goal.updated_at = utcnow()
    db.commit()
    db.refresh(goal)
    return goal


def delete_goal(db: Session, goal: Goal) -> None:
    goal_id = goal.id
    db.delete(goal)
    db.commit()
    logger.info("Goal {} deleted", goal_id)


# ── Comments ─────────────────────────────────────────────────────────


def get_accessible_goal(db: Session, goal_id: str, user: User) -> Goal:
    """Goal readable by this user: staff see every goal, scholars their own."""
    goal = db.get(Goal, goal_id)
    if not goal:
        raise HTTPException(404, "Goal not found")
    if is_staff(user):
        return goal
    scholar = get_scholar_for_user(db, user)
    if not scholar or goal.scholar_id != scholar.id:
        raise HTTPException(403, "You do not have access to this goal")
    return goal


def list_comments(db: Session, goal: Goal) -> list[GoalComment]:
    return (
        db.query(GoalComment)
        .filter(GoalComment.goal_id == goal.id)
        .order_by(GoalComment.created_at)
        .all()
    )


def add_comment(db: Session, goal: Goal, user: User, payload: CommentCreate) -> GoalComment:
    comment = GoalComment(goal_id=goal.id, user_id=user.id, comment=payload.comment)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    logger.info("Comment {} added to goal {} by {}", comment.id, goal.id, user.email)
    return comment


def _get_authored_comment(db: Session, comment_id: str, user: User, verb: str) -> GoalComment:
    comment = db.get(GoalComment, comment_id)
    if not comment:
        raise HTTPException(404, "Comment not found")
    if comment.user_id != user.id:
        raise HTTPException(403, f"You can only {verb} your own comments")
    return comment


def update_comment(db: Session, comment_id: str, user: User, payload: CommentUpdate) -> GoalComment:
    comment = _get_authored_comment(db, comment_id, user, "edit")
    comment.comment = payload.comment
    comment.updated_at = utcnow()
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, comment_id: str, user: User) -> None:
    comment = _get_authored_comment(db, comment_id, user, "delete")
    db.delete(comment)
    db.commit()
