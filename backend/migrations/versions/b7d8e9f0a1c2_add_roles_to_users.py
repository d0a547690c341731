"""add roles to users

Revision ID: b7d8e9f0a1c2
Revises: a1c2e3f4b5d6
Create Date: 2026-10-19 14:03:21.550914

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'b7d8e9f0a1c2'
down_revision: Union[str, Sequence[str], None] = 'a1c2e3f4b5d6'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add the roles list; existing members become plain users."""
    op.add_column('users', sa.Column('roles', sa.JSON(), nullable=False, server_default='["user"]'))


def downgrade() -> None:
    """Remove the roles list."""
    op.drop_column('users', 'roles')
