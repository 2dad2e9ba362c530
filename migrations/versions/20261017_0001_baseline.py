"""Baseline schema: projects, sources, tags and the source/tag junction.

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 00:00:00
"""
from __future__ import annotations

from alembic import op

from server.texcite.core import models  # noqa: F401
from server.texcite.core.db import Base

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    Base.metadata.create_all(bind=bind)


def downgrade() -> None:
    bind = op.get_bind()
    Base.metadata.drop_all(bind=bind)
