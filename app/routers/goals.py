"""
routers/goals.py — LDF goals and goal comments

Business Rules:
- Scholars manage only their own goals; foreign goals answer 404
- Staff read any scholar's goals
- Comments are open to the owning scholar and staff; only the author
  edits or deletes a comment

Called by: main.py (router mount)
Depends on: dependencies, services/goal_service.py
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_scholar, require_staff, require_user
from ..models import Scholar, User
from ..schemas.goals import CommentCreate, CommentUpdate, GoalCreate, GoalUpdate
from ..services import goal_service
from ..services.goal_service import comment_to_dict, goal_to_dict

router = APIRouter(tags=["goals"])


@router.get("/api/goals/my-goals")
def my_goals(scholar: Scholar = Depends(require_scholar), db: Session = Depends(get_db)):
    return [goal_to_dict(g) for g in goal_service.list_goals(db, scholar.id)]


@router.post("/api/goals", status_code=201)
def create_goal(payload: GoalCreate, scholar: Scholar = Depends(require_scholar), db: Session = Depends(get_db)):
    return goal_to_dict(goal_service.create_goal(db, scholar, payload))


@router.get("/api/goals/scholar/{scholar_id}")
def goals_for_scholar(scholar_id: str, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return [goal_to_dict(g) for g in goal_service.list_goals(db, scholar_id)]


# ── Comments ─────────────────────────────────────────────────────────


@router.get("/api/goals/{goal_id}/comments")
def list_comments(goal_id: str, user: User = Depends(require_user), db: Session = Depends(get_db)):
    goal = goal_service.get_accessible_goal(db, goal_id, user)
    return [comment_to_dict(c) for c in goal_service.list_comments(db, goal)]


@router.post("/api/goals/{goal_id}/comments", status_code=201)
def add_comment(
    goal_id: str,
    payload: CommentCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    goal = goal_service.get_accessible_goal(db, goal_id, user)
    return comment_to_dict(goal_service.add_comment(db, goal, user, payload))


@router.patch("/api/goals/comments/{comment_id}")
def update_comment(
    comment_id: str,
    payload: CommentUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return comment_to_dict(goal_service.update_comment(db, comment_id, user, payload))


@router.delete("/api/goals/comments/{comment_id}")
def delete_comment(comment_id: str, user: User = Depends(require_user), db: Session = Depends(get_db)):
    goal_service.delete_comment(db, comment_id, user)
    return {"message": "Comment deleted successfully"}


# ── Single goal ──────────────────────────────────────────────────────


@router.get("/api/goals/{goal_id}")
def get_goal(goal_id: str, scholar: Scholar = Depends(require_scholar), db: Session = Depends(get_db)):
    return goal_to_dict(goal_service.get_owned_goal(db, goal_id, scholar))


@router.patch("/api/goals/{goal_id}")
def update_goal(
    goal_id: str,
    payload: GoalUpdate,
    scholar: Scholar = Depends(require_scholar),
    db: Session = Depends(get_db),
):
    goal = goal_service.get_owned_goal(db, goal_id, scholar)
    return goal_to_dict(goal_service.update_goal(db, goal, payload))


@router.delete("/api/goals/{goal_id}")
def delete_goal(goal_id: str, scholar: Scholar = Depends(require_scholar), db: Session = Depends(get_db)):
    goal = goal_service.get_owned_goal(db, goal_id, scholar)
    goal_service.delete_goal(db, goal)
    return {"message": "Goal deleted successfully"}
