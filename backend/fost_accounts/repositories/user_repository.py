"""Repository for User CRUD operations.

Provides database access for the user table. Credential and token rows
are handled by their own repositories; deleting a user removes them too.
"""

from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fost_accounts.core.errors import DuplicateKeyError, NotFoundError, ValidationError
from fost_accounts.models.base import as_utc
from fost_accounts.models.user import User

# Fields that may be updated via UserRepository.update().
# Never add 'user_id' (primary key, immutable) or 'timestamp_register'
# (set once at registration).
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "email",
        "email_confirmed",
        "timestamp_active",
        "crystals",
        "double_crystals",
        "experience",
        "premium",
    }
)

# Updatable columns declared NOT NULL
_NON_NULL_FIELDS: frozenset[str] = frozenset(
    {"email_confirmed", "timestamp_active", "crystals", "experience"}
)

_DATETIME_FIELDS: frozenset[str] = frozenset(
    {"timestamp_active", "double_crystals", "premium"}
)

_MAX_USER_ID_LENGTH = 32
_MAX_EMAIL_LENGTH = 128


def validate_user_id(user_id: str) -> None:
    """Reject identifiers that cannot be stored in user.user_id.

    Raises:
        ValidationError: If empty or longer than 32 characters.
    """
    if not user_id:
        raise ValidationError("user_id must not be empty")
    if len(user_id) > _MAX_USER_ID_LENGTH:
        raise ValidationError(
            f"user_id must be at most {_MAX_USER_ID_LENGTH} characters"
        )


def _validate_email(email: str | None) -> None:
    if email is not None and len(email) > _MAX_EMAIL_LENGTH:
        raise ValidationError(f"email must be at most {_MAX_EMAIL_LENGTH} characters")


class UserRepository:
    """Stateless repository for User table operations.

    All methods are static: no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str) -> User | None:
        """Fetch a user by primary key.

        Args:
            db: Async database session.
            user_id: User identifier.

        Returns:
            User if found, None otherwise.
        """
        return await db.get(User, user_id)

    @staticmethod
    async def get(db: AsyncSession, user_id: str) -> User:
        """Fetch a user by primary key, failing if absent.

        Args:
            db: Async database session.
            user_id: User identifier.

        Returns:
            The User.

        Raises:
            NotFoundError: If no user has this identifier.
        """
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    @staticmethod
    async def exists(db: AsyncSession, user_id: str) -> bool:
        """Check whether a user row exists for the identifier."""
        return await db.get(User, user_id) is not None

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: str,
        timestamp_register: datetime,
        timestamp_active: datetime | None = None,
        email: str | None = None,
        email_confirmed: bool = False,
        crystals: int = 0,
        double_crystals: datetime | None = None,
        experience: int = 0,
        premium: datetime | None = None,
    ) -> User:
        """Create a new user.

        Args:
            db: Async database session.
            user_id: Identifier for the new account (max 32 chars).
            timestamp_register: Registration time.
            timestamp_active: Last activity. Defaults to timestamp_register.
            email: Optional email address.
            email_confirmed: Whether the email is already confirmed.
            crystals: Starting currency balance.
            double_crystals: Double-crystals expiry, if any.
            experience: Starting experience points.
            premium: Premium expiry, if any.

        Returns:
            Created User.

        Raises:
            ValidationError: If user_id or email cannot be stored.
            DuplicateKeyError: If user_id already exists.
        """
        validate_user_id(user_id)
        _validate_email(email)

        if await db.get(User, user_id) is not None:
            raise DuplicateKeyError("User", "user_id", user_id)

        registered = as_utc(timestamp_register)
        user = User(
            user_id=user_id,
            email=email,
            email_confirmed=email_confirmed,
            timestamp_register=registered,
            timestamp_active=as_utc(timestamp_active) if timestamp_active else registered,
            crystals=crystals,
            double_crystals=as_utc(double_crystals) if double_crystals else None,
            experience=experience,
            premium=as_utc(premium) if premium else None,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as exc:
            # Concurrent insert of the same identifier won the race.
            # The failed flush leaves the session for the caller to roll back.
            raise DuplicateKeyError("User", "user_id", user_id) from exc
        await db.refresh(user)
        return user

    @staticmethod
    async def update(
        db: AsyncSession,
        user_id: str,
        /,
        **kwargs: str | datetime | bool | int | None,
    ) -> User:
        """Update mutable user fields.

        Only fields in _UPDATABLE_FIELDS are allowed.

        Args:
            db: Async database session.
            user_id: Identifier of the user to update.
            **kwargs: Field names and values to update.

        Returns:
            Updated User.

        Raises:
            ValidationError: If an unknown or immutable field name is passed,
                or None is given for a non-null column.
            NotFoundError: If the user does not exist.
        """
        unknown = set(kwargs) - _UPDATABLE_FIELDS
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValidationError(msg)

        nulls = {field for field, value in kwargs.items() if value is None}
        nulls &= _NON_NULL_FIELDS
        if nulls:
            msg = f"Fields cannot be null: {', '.join(sorted(nulls))}"
            raise ValidationError(msg)

        if "email" in kwargs:
            _validate_email(kwargs["email"])  # type: ignore[arg-type]

        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        for field, value in kwargs.items():
            if field in _DATETIME_FIELDS and value is not None:
                value = as_utc(value)  # type: ignore[arg-type]
            setattr(user, field, value)

        await db.flush()
        await db.refresh(user)
        return user

    @staticmethod
    async def touch(db: AsyncSession, user_id: str, when: datetime) -> User:
        """Record activity, never moving timestamp_active backwards.

        Args:
            db: Async database session.
            user_id: Identifier of the active user.
            when: Time of the activity.

        Returns:
            Updated User.

        Raises:
            NotFoundError: If the user does not exist.
        """
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        when = as_utc(when)
        if when > user.timestamp_active:
            user.timestamp_active = when
            await db.flush()
        return user

    @staticmethod
    async def delete(db: AsyncSession, user_id: str) -> None:
        """Delete a user together with its credential and token rows.

        Args:
            db: Async database session.
            user_id: Identifier of the user to delete.

        Raises:
            NotFoundError: If the user does not exist.
        """
        # Load both one-to-one children so the ORM cascade also evicts
        # them from the identity map, not only from the database.
        user = await db.get(
            User,
            user_id,
            options=[
                selectinload(User.authentication),
                selectinload(User.authentication_token),
            ],
            populate_existing=True,
        )
        if user is None:
            raise NotFoundError("User", user_id)

        await db.delete(user)
        await db.flush()
