"""Repository for UserAuthentication (login credentials) operations.

One credential row per user: login name plus salted password hash.
Login names are unique across users.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fost_accounts.core.errors import (
    DuplicateKeyError,
    ForeignKeyViolationError,
    NotFoundError,
    ValidationError,
)
from fost_accounts.models.user_authentication import UserAuthentication
from fost_accounts.repositories.user_repository import UserRepository

_RESOURCE = "Credentials"

_MAX_LOGIN_LENGTH = 32
_MAX_HASH_LENGTH = 64
_MAX_SALT_LENGTH = 16


def _validate_login(login_user: str) -> None:
    if not login_user:
        raise ValidationError("login_user must not be empty")
    if len(login_user) > _MAX_LOGIN_LENGTH:
        raise ValidationError(
            f"login_user must be at most {_MAX_LOGIN_LENGTH} characters"
        )


def _validate_hash_and_salt(password_hash: str, password_salt: str) -> None:
    # Hash and salt are only meaningful together
    if not password_hash or not password_salt:
        raise ValidationError("password_hash and password_salt must both be set")
    if len(password_hash) > _MAX_HASH_LENGTH:
        raise ValidationError(
            f"password_hash must be at most {_MAX_HASH_LENGTH} characters"
        )
    if len(password_salt) > _MAX_SALT_LENGTH:
        raise ValidationError(
            f"password_salt must be at most {_MAX_SALT_LENGTH} characters"
        )


class CredentialRepository:
    """Stateless repository for UserAuthentication table operations.

    All methods are static: no instance state.
    """

    @staticmethod
    async def get_by_user_id(
        db: AsyncSession, user_id: str
    ) -> UserAuthentication | None:
        """Fetch the credential row of a user.

        Args:
            db: Async database session.
            user_id: Owning user identifier.

        Returns:
            UserAuthentication if set, None otherwise.
        """
        return await db.get(UserAuthentication, user_id)

    @staticmethod
    async def find_by_login(
        db: AsyncSession, login_user: str
    ) -> UserAuthentication | None:
        """Look up credentials by login name (exact match).

        Args:
            db: Async database session.
            login_user: Login name.

        Returns:
            UserAuthentication if found, None otherwise.
        """
        stmt = select(UserAuthentication).where(
            UserAuthentication.login_user == login_user
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_login(db: AsyncSession, login_user: str) -> UserAuthentication:
        """Look up credentials by login name, failing if absent.

        Args:
            db: Async database session.
            login_user: Login name.

        Returns:
            UserAuthentication carrying user_id, password_hash and password_salt.

        Raises:
            NotFoundError: If no user has this login name.
        """
        credentials = await CredentialRepository.find_by_login(db, login_user)
        if credentials is None:
            raise NotFoundError(_RESOURCE, login_user)
        return credentials

    @staticmethod
    async def is_login_taken(db: AsyncSession, login_user: str) -> bool:
        """Check whether any user already uses this login name."""
        return await CredentialRepository.find_by_login(db, login_user) is not None

    @staticmethod
    async def set_credentials(
        db: AsyncSession,
        user_id: str,
        *,
        login_user: str,
        password_hash: str,
        password_salt: str,
    ) -> UserAuthentication:
        """Create or replace the credentials of a user.

        Args:
            db: Async database session.
            user_id: Owning user identifier.
            login_user: Login name (max 32 chars).
            password_hash: Password hash (max 64 chars).
            password_salt: Salt the hash was derived with (max 16 chars).

        Returns:
            The stored UserAuthentication.

        Raises:
            ValidationError: If a value is empty or too long.
            ForeignKeyViolationError: If the user does not exist.
            DuplicateKeyError: If another user already has this login name.
        """
        _validate_login(login_user)
        _validate_hash_and_salt(password_hash, password_salt)

        if not await UserRepository.exists(db, user_id):
            raise ForeignKeyViolationError(_RESOURCE, user_id)

        owner = await CredentialRepository.find_by_login(db, login_user)
        if owner is not None and owner.user_id != user_id:
            raise DuplicateKeyError(_RESOURCE, "login_user", login_user)

        credentials = await db.get(UserAuthentication, user_id)
        if credentials is None:
            credentials = UserAuthentication(user_id=user_id)
            db.add(credentials)
        credentials.login_user = login_user
        credentials.password_hash = password_hash
        credentials.password_salt = password_salt

        try:
            await db.flush()
        except IntegrityError as exc:
            # Only the login name can still collide after the checks above.
            # The failed flush leaves the session for the caller to roll back.
            raise DuplicateKeyError(_RESOURCE, "login_user", login_user) from exc
        return credentials

    @staticmethod
    async def update_password(
        db: AsyncSession,
        user_id: str,
        *,
        password_hash: str,
        password_salt: str,
    ) -> UserAuthentication:
        """Replace the hash/salt pair of existing credentials.

        Args:
            db: Async database session.
            user_id: Owning user identifier.
            password_hash: New password hash.
            password_salt: New salt.

        Returns:
            Updated UserAuthentication.

        Raises:
            ValidationError: If hash or salt is empty or too long.
            NotFoundError: If the user has no credentials.
        """
        _validate_hash_and_salt(password_hash, password_salt)

        credentials = await db.get(UserAuthentication, user_id)
        if credentials is None:
            raise NotFoundError(_RESOURCE, user_id)

        credentials.password_hash = password_hash
        credentials.password_salt = password_salt
        await db.flush()
        return credentials
