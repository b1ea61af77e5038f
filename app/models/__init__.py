"""Database models — re-exports all models.

Import from here:  from app.models import User, Scholar, ...
Or from submodules: from app.models.tasks import TaskAttachment
"""

from .base import Base  # noqa: F401

# Auth & Users
from .auth import Staff, User  # noqa: F401

# Scholars
from .scholars import Document, Scholar  # noqa: F401

# LDF Goals
from .goals import Goal, GoalComment  # noqa: F401

# Tasks
from .tasks import Task, TaskAttachment, TaskResponse  # noqa: F401

# Requests / Approvals
from .requests import RequestAttachment, RequestAuditLog, ScholarRequest  # noqa: F401

# Announcements
from .announcements import Announcement, AnnouncementFilter, AnnouncementRecipient  # noqa: F401

# Invitations
from .invitations import Invitation  # noqa: F401
