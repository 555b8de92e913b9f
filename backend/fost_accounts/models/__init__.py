"""SQLAlchemy ORM models for the account schema.

All models are exported from this module for convenient imports:
    from fost_accounts.models import User, UserAuthentication, ...

- user.py: User (root, no FK dependencies)
- user_authentication.py: UserAuthentication, UserAuthenticationToken
  (one-to-one with User, cascade on delete)
"""

from fost_accounts.models.base import Base, UTCDateTime
from fost_accounts.models.user import User
from fost_accounts.models.user_authentication import (
    UserAuthentication,
    UserAuthenticationToken,
)

__all__ = [
    "Base",
    "UTCDateTime",
    "User",
    "UserAuthentication",
    "UserAuthenticationToken",
]
