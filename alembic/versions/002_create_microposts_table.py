"""create microposts table

Revision ID: 002
Revises: 001
Create Date: 2025-06-17 10:05:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "microposts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.String(140), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_microposts_id", "microposts", ["id"], unique=False)
    op.create_index("ix_microposts_user_id", "microposts", ["user_id"], unique=False)
    op.create_index("ix_microposts_created_at", "microposts", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_microposts_created_at", table_name="microposts")
    op.drop_index("ix_microposts_user_id", table_name="microposts")
    op.drop_index("ix_microposts_id", table_name="microposts")
    op.drop_table("microposts")
