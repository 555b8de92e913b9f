"""Authentication models - login credentials and remember-me tokens.

Both tables are one-to-one with user (user_id is primary key and FK) and
are removed together with their user.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fost_accounts.models.base import Base

if TYPE_CHECKING:
    from fost_accounts.models.user import User

_USER_FK = "user.user_id"


class UserAuthentication(Base):
    """Login name and salted password hash for a user.

    Attributes:
        user_id: FK to user, primary key.
        login_user: Login name (max 32 chars). Unique across users.
        password_hash: 64-char hex hash of password + salt.
        password_salt: 16-char salt. Set if and only if password_hash is set.
    """

    __tablename__ = "user_authentication"
    __table_args__ = (
        UniqueConstraint("login_user", name="uq_user_authentication_login_user"),
        CheckConstraint(
            "(password_hash IS NULL AND password_salt IS NULL) OR "
            "(password_hash IS NOT NULL AND password_salt IS NOT NULL)",
            name="ck_user_authentication_hash_salt_paired",
        ),
    )

    user_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey(_USER_FK, ondelete="CASCADE"),
        primary_key=True,
    )
    login_user: Mapped[str | None] = mapped_column(String(32), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    password_salt: Mapped[str | None] = mapped_column(String(16), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="authentication")


class UserAuthenticationToken(Base):
    """Remember-me bearer token for a user (one active token per user).

    Attributes:
        user_id: FK to user, primary key.
        timestamp_created: When the current token was issued.
        timestamp_last_used: Last successful use. Never before timestamp_created.
        token: SHA-256 hex digest of the bearer token (64 chars).
    """

    __tablename__ = "user_authentication_token"
    __table_args__ = (
        UniqueConstraint("token", name="uq_user_authentication_token_token"),
        CheckConstraint(
            "timestamp_created <= timestamp_last_used",
            name="ck_user_authentication_token_last_used_after_created",
        ),
    )

    user_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey(_USER_FK, ondelete="CASCADE"),
        primary_key=True,
    )
    timestamp_created: Mapped[datetime] = mapped_column(nullable=False)
    timestamp_last_used: Mapped[datetime] = mapped_column(nullable=False)
    token: Mapped[str | None] = mapped_column(String(64), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="authentication_token")
