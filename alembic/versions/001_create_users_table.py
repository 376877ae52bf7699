"""create users table

Revision ID: 001
Revises:
Create Date: 2025-06-17 10:00:00.000000

"""

from datetime import datetime, timezone
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("remember_digest", sa.String(), nullable=True),
        sa.Column("activation_digest", sa.String(), nullable=True),
        sa.Column("activated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("activated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reset_digest", sa.String(), nullable=True),
        sa.Column("reset_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Get settings from environment (will be loaded by Alembic env.py)
    from app.core.config import settings
    from app.core.security import hash_secret, normalize_email

    now = datetime.now(timezone.utc)

    # Insert first admin user, already activated
    op.execute(
        sa.text(
            """
            INSERT INTO users (name, email, password_hash, activated, activated_at, admin, created_at)
            VALUES (:name, :email, :password_hash, :activated, :activated_at, :admin, :created_at)
            """
        ).bindparams(
            name="Admin",
            email=normalize_email(settings.first_admin_email),
            password_hash=hash_secret(settings.first_admin_password),
            activated=True,
            activated_at=now,
            admin=True,
            created_at=now,
        )
    )


def downgrade() -> None:
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
