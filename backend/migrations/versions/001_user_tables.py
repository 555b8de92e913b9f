"""Create the account tables: user, user_authentication, user_authentication_token.

Revision ID: 001_user_tables
Revises:
Create Date: 2026-10-19

user is the root table. The two authentication tables are one-to-one with
it (user_id is both primary key and foreign key) and are deleted with it.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001_user_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("user_id", sa.String(32), primary_key=True),
        sa.Column("email", sa.String(128), nullable=True),
        sa.Column(
            "email_confirmed", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("timestamp_register", sa.DateTime(), nullable=False),
        sa.Column("timestamp_active", sa.DateTime(), nullable=False),
        sa.Column("crystals", sa.Integer(), nullable=False),
        sa.Column("double_crystals", sa.DateTime(), nullable=True),
        sa.Column("experience", sa.Integer(), nullable=False),
        sa.Column("premium", sa.DateTime(), nullable=True),
    )

    # Credentials - login name is unique across users
    op.create_table(
        "user_authentication",
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("user.user_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("login_user", sa.String(32), nullable=True),
        sa.Column("password_hash", sa.String(64), nullable=True),
        sa.Column("password_salt", sa.String(16), nullable=True),
        sa.UniqueConstraint("login_user", name="uq_user_authentication_login_user"),
        sa.CheckConstraint(
            "(password_hash IS NULL AND password_salt IS NULL) OR "
            "(password_hash IS NOT NULL AND password_salt IS NOT NULL)",
            name="ck_user_authentication_hash_salt_paired",
        ),
    )

    # Remember-me token - one per user, stored as a SHA-256 hex digest
    op.create_table(
        "user_authentication_token",
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("user.user_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("timestamp_created", sa.DateTime(), nullable=False),
        sa.Column("timestamp_last_used", sa.DateTime(), nullable=False),
        sa.Column("token", sa.String(64), nullable=True),
        sa.UniqueConstraint("token", name="uq_user_authentication_token_token"),
        sa.CheckConstraint(
            "timestamp_created <= timestamp_last_used",
            name="ck_user_authentication_token_last_used_after_created",
        ),
    )


def downgrade() -> None:
    op.drop_table("user_authentication_token")
    op.drop_table("user_authentication")
    op.drop_table("user")
