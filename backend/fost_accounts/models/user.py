"""User model - account identity and progression.

Root of the account schema, no FK dependencies. Rows are created at
registration; the credential and token tables hang off user_id.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fost_accounts.models.base import Base

if TYPE_CHECKING:
    from fost_accounts.models.user_authentication import (
        UserAuthentication,
        UserAuthenticationToken,
    )

_CASCADE_ALL_DELETE_ORPHAN = "all, delete-orphan"


class User(Base):
    """Player account.

    Attributes:
        user_id: Opaque identifier (max 32 chars), primary key. Immutable.
        email: Optional email address.
        email_confirmed: Whether the email address has been confirmed.
        timestamp_register: When the account was registered.
        timestamp_active: Last time the account was seen active.
        crystals: Currency balance. Never NULL.
        double_crystals: Expiry of the double-crystals boost. NULL = none.
        experience: Experience points. Never NULL.
        premium: Expiry of premium status. NULL = none.
    """

    __tablename__ = "user"

    user_id: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
    )
    email: Mapped[str | None] = mapped_column(
        String(128),
        nullable=True,
        default=None,
    )
    email_confirmed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=false(),
        default=False,
    )
    timestamp_register: Mapped[datetime] = mapped_column(nullable=False)
    timestamp_active: Mapped[datetime] = mapped_column(nullable=False)
    crystals: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    double_crystals: Mapped[datetime | None] = mapped_column(
        nullable=True,
        default=None,
    )
    experience: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    premium: Mapped[datetime | None] = mapped_column(
        nullable=True,
        default=None,
    )

    # Relationships (one-to-one, deleted together with the user)
    authentication: Mapped["UserAuthentication | None"] = relationship(
        "UserAuthentication",
        back_populates="user",
        cascade=_CASCADE_ALL_DELETE_ORPHAN,
        passive_deletes=True,
        uselist=False,
    )
    authentication_token: Mapped["UserAuthenticationToken | None"] = relationship(
        "UserAuthenticationToken",
        back_populates="user",
        cascade=_CASCADE_ALL_DELETE_ORPHAN,
        passive_deletes=True,
        uselist=False,
    )
