"""portal baseline: every table defined in app.models

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Existing database created by create_all: `alembic stamp 001_initial`.
Empty database: `alembic upgrade head`.
"""
from typing import Sequence, Union

from alembic import op

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Build the schema on the migration connection; existing tables are skipped."""
    from app.models import Base

    Base.metadata.create_all(bind=op.get_bind(), checkfirst=True)


def downgrade() -> None:
    from app.models import Base

    Base.metadata.drop_all(bind=op.get_bind())
