"""create relationships table

Revision ID: 003
Revises: 002
Create Date: 2025-06-17 10:10:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "relationships",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("follower_id", sa.Integer(), nullable=False),
        sa.Column("followed_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["follower_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["followed_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "follower_id", "followed_id", name="uq_relationships_follower_followed"
        ),
        sa.CheckConstraint(
            "follower_id <> followed_id", name="ck_relationships_no_self_follow"
        ),
    )
    op.create_index("ix_relationships_id", "relationships", ["id"], unique=False)
    op.create_index(
        "ix_relationships_follower_id", "relationships", ["follower_id"], unique=False
    )
    op.create_index(
        "ix_relationships_followed_id", "relationships", ["followed_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_relationships_followed_id", table_name="relationships")
    op.drop_index("ix_relationships_follower_id", table_name="relationships")
    op.drop_index("ix_relationships_id", table_name="relationships")
    op.drop_table("relationships")
