"""Repository for UserAuthenticationToken operations.

One active remember-me token per user. Issuing a token replaces the
previous one (rotation); using it advances timestamp_last_used, which
never falls behind timestamp_created.
"""

from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fost_accounts.core.errors import (
    DuplicateKeyError,
    ForeignKeyViolationError,
    NotFoundError,
    ValidationError,
)
from fost_accounts.models.base import as_utc
from fost_accounts.models.user_authentication import UserAuthenticationToken
from fost_accounts.repositories.user_repository import UserRepository

_RESOURCE = "Token"

_MAX_TOKEN_LENGTH = 64

# Token values are bearer secrets; error messages carry this instead
_REDACTED = "<redacted>"


def _validate_token(token: str) -> None:
    if not token:
        raise ValidationError("token must not be empty")
    if len(token) > _MAX_TOKEN_LENGTH:
        raise ValidationError(f"token must be at most {_MAX_TOKEN_LENGTH} characters")


class TokenRepository:
    """Stateless repository for UserAuthenticationToken table operations.

    All methods are static: no instance state.
    """

    @staticmethod
    async def get_by_user_id(
        db: AsyncSession, user_id: str
    ) -> UserAuthenticationToken | None:
        """Fetch the token row of a user.

        Args:
            db: Async database session.
            user_id: Owning user identifier.

        Returns:
            UserAuthenticationToken if one was issued, None otherwise.
        """
        return await db.get(UserAuthenticationToken, user_id)

    @staticmethod
    async def find_by_token(
        db: AsyncSession, token: str
    ) -> UserAuthenticationToken | None:
        """Look up a token row by its stored value.

        Args:
            db: Async database session.
            token: Stored token value.

        Returns:
            UserAuthenticationToken if found, None otherwise.
        """
        stmt = select(UserAuthenticationToken).where(
            UserAuthenticationToken.token == token
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def issue(
        db: AsyncSession,
        user_id: str,
        *,
        token: str,
        now: datetime | None = None,
    ) -> UserAuthenticationToken:
        """Store a new token for a user, replacing any previous one.

        Both timestamps are set to ``now``.

        Args:
            db: Async database session.
            user_id: Owning user identifier.
            token: Token value to store (max 64 chars).
            now: Issue time. Defaults to the current UTC time.

        Returns:
            The stored UserAuthenticationToken.

        Raises:
            ValidationError: If the token is empty or too long.
            ForeignKeyViolationError: If the user does not exist.
            DuplicateKeyError: If another user holds the same token value.
        """
        _validate_token(token)

        if not await UserRepository.exists(db, user_id):
            raise ForeignKeyViolationError(_RESOURCE, user_id)

        holder = await TokenRepository.find_by_token(db, token)
        if holder is not None and holder.user_id != user_id:
            raise DuplicateKeyError(_RESOURCE, "token", _REDACTED)

        issued = as_utc(now) if now else datetime.now(UTC)
        row = await db.get(UserAuthenticationToken, user_id)
        if row is None:
            row = UserAuthenticationToken(user_id=user_id)
            db.add(row)
        row.token = token
        row.timestamp_created = issued
        row.timestamp_last_used = issued

        try:
            await db.flush()
        except IntegrityError as exc:
            # Token taken concurrently; the caller rolls the session back
            raise DuplicateKeyError(_RESOURCE, "token", _REDACTED) from exc
        # No server-generated fields to refresh
        return row

    @staticmethod
    async def refresh(
        db: AsyncSession,
        token: str,
        *,
        now: datetime | None = None,
    ) -> UserAuthenticationToken:
        """Validate a token and record its use.

        timestamp_last_used becomes the latest of ``now``, its current value
        and timestamp_created, so it never decreases and never precedes
        creation (clock skew between servers is absorbed).

        Args:
            db: Async database session.
            token: Stored token value.
            now: Use time. Defaults to the current UTC time.

        Returns:
            The refreshed UserAuthenticationToken (its user_id is the owner).

        Raises:
            NotFoundError: If no user holds this token.
        """
        row = await TokenRepository.find_by_token(db, token) if token else None
        if row is None:
            raise NotFoundError(_RESOURCE)

        used = as_utc(now) if now else datetime.now(UTC)
        row.timestamp_last_used = max(
            used, row.timestamp_last_used, row.timestamp_created
        )
        await db.flush()
        return row

    @staticmethod
    async def revoke(db: AsyncSession, user_id: str) -> bool:
        """Delete the token of a user.

        Args:
            db: Async database session.
            user_id: Owning user identifier.

        Returns:
            True if a token was deleted, False if the user had none.
        """
        row = await db.get(UserAuthenticationToken, user_id)
        if row is None:
            return False
        await db.delete(row)
        await db.flush()
        return True

    @staticmethod
    async def delete_unused_since(db: AsyncSession, cutoff: datetime) -> int:
        """Delete tokens not used since ``cutoff`` (periodic cleanup).

        Args:
            db: Async database session.
            cutoff: Tokens last used before this time are removed.

        Returns:
            Number of deleted rows.
        """
        stmt = delete(UserAuthenticationToken).where(
            UserAuthenticationToken.timestamp_last_used < as_utc(cutoff),
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
