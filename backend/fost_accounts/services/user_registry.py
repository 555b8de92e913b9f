"""User registry service.

Account operations used by the game server's login and registration
screens, built on the user, credential and token repositories:

- validate_login_name / is_login_name_free: registration form checks
- register_user: create the account and its salted credentials
- authenticate_with_credentials: login name + password login
- authenticate_with_token: "remember me" login with a stored token
- create_authentication_token: issue (rotate) the remember-me token
- revoke_authentication_token / change_password

Functions never commit; the caller owns the transaction (see
core.database.session_scope).
"""

import enum
import re
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from fost_accounts.core.config import settings
from fost_accounts.core.errors import DuplicateKeyError, NotFoundError, ValidationError
from fost_accounts.core.passwords import (
    burn_password_check,
    generate_salt,
    generate_token,
    hash_password,
    token_digest,
    verify_password,
)
from fost_accounts.models.user import User
from fost_accounts.repositories.credential_repository import CredentialRepository
from fost_accounts.repositories.token_repository import TokenRepository
from fost_accounts.repositories.user_repository import UserRepository

logger = structlog.get_logger()

_LOGIN_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


class AuthenticationStatus(enum.Enum):
    """Outcome of a login attempt."""

    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_TOKEN = "invalid_token"


@dataclass(frozen=True)
class AuthenticationResult:
    """Result of a login attempt.

    Attributes:
        status: Outcome of the attempt.
        user_id: Authenticated user. Only set on SUCCESS.
    """

    status: AuthenticationStatus
    user_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is AuthenticationStatus.SUCCESS

    @classmethod
    def success(cls, user_id: str) -> "AuthenticationResult":
        return cls(AuthenticationStatus.SUCCESS, user_id)


INVALID_CREDENTIALS = AuthenticationResult(AuthenticationStatus.INVALID_CREDENTIALS)
INVALID_TOKEN = AuthenticationResult(AuthenticationStatus.INVALID_TOKEN)


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(UTC)


def validate_login_name(login_name: str) -> bool:
    """Check the login name format rules.

    Rules: length within settings.login_name_min_length..max_length and
    only ASCII letters, digits, '_', '-' and '.'.

    Args:
        login_name: Candidate login name.

    Returns:
        True if the name is well-formed.
    """
    if not (
        settings.login_name_min_length
        <= len(login_name)
        <= settings.login_name_max_length
    ):
        return False
    return _LOGIN_NAME_PATTERN.fullmatch(login_name) is not None


def validate_password(password: str) -> None:
    """Check the password length rules.

    Raises:
        ValidationError: If the password is too short or too long.
    """
    if len(password) < settings.password_min_length:
        raise ValidationError(
            f"Password must be at least {settings.password_min_length} characters"
        )
    if len(password) > settings.password_max_length:
        raise ValidationError(
            f"Password must be at most {settings.password_max_length} characters"
        )


async def is_login_name_free(db: AsyncSession, login_name: str) -> bool:
    """Check that a login name is well-formed and not used by anyone.

    Args:
        db: Async database session.
        login_name: Candidate login name.

    Returns:
        True if a new account could be registered under this name.
    """
    if not validate_login_name(login_name):
        return False
    return not await CredentialRepository.is_login_taken(db, login_name)


async def register_user(
    db: AsyncSession,
    login_name: str,
    password: str,
    *,
    email: str | None = None,
    now: datetime | None = None,
) -> User:
    """Register a new account with login credentials.

    Creates the user row (fresh 32-char hex identifier, zero crystals and
    experience) and its salted password credentials.

    Args:
        db: Async database session.
        login_name: Login name for the account.
        password: Plain-text password.
        email: Optional email address (unconfirmed).
        now: Registration time. Defaults to the current UTC time.

    Returns:
        The created User.

    Raises:
        ValidationError: If the login name or password breaks the rules.
        DuplicateKeyError: If the login name is already taken.
    """
    if not validate_login_name(login_name):
        raise ValidationError(
            "Login name must be "
            f"{settings.login_name_min_length}-{settings.login_name_max_length} "
            "characters of letters, digits, '_', '-' or '.'"
        )
    validate_password(password)

    if await CredentialRepository.is_login_taken(db, login_name):
        raise DuplicateKeyError("Credentials", "login_user", login_name)

    user = await UserRepository.create(
        db,
        user_id=uuid.uuid4().hex,
        timestamp_register=_now(now),
        email=email,
    )
    salt = generate_salt()
    await CredentialRepository.set_credentials(
        db,
        user.user_id,
        login_user=login_name,
        password_hash=hash_password(password, salt),
        password_salt=salt,
    )

    logger.info("user_registered", user_id=user.user_id, login_name=login_name)
    return user


async def authenticate_with_credentials(
    db: AsyncSession,
    login_name: str,
    password: str,
    *,
    now: datetime | None = None,
) -> AuthenticationResult:
    """Log in with login name and password.

    Unknown login names cost the same hashing work as a wrong password.
    On success the user's activity timestamp is advanced.

    Args:
        db: Async database session.
        login_name: Login name.
        password: Plain-text password.
        now: Login time. Defaults to the current UTC time.

    Returns:
        SUCCESS with the user_id, or INVALID_CREDENTIALS.
    """
    credentials = await CredentialRepository.find_by_login(db, login_name)
    if (
        credentials is None
        or credentials.password_hash is None
        or credentials.password_salt is None
    ):
        burn_password_check(password)
        logger.debug("login_failed", reason="unknown_login")
        return INVALID_CREDENTIALS

    if not verify_password(password, credentials.password_salt, credentials.password_hash):
        logger.debug("login_failed", reason="wrong_password", user_id=credentials.user_id)
        return INVALID_CREDENTIALS

    await UserRepository.touch(db, credentials.user_id, _now(now))
    logger.info("user_authenticated", user_id=credentials.user_id, method="credentials")
    return AuthenticationResult.success(credentials.user_id)


async def authenticate_with_token(
    db: AsyncSession,
    token: str,
    *,
    now: datetime | None = None,
) -> AuthenticationResult:
    """Log in with a remember-me token.

    Args:
        db: Async database session.
        token: Plain token previously returned by create_authentication_token.
        now: Login time. Defaults to the current UTC time.

    Returns:
        SUCCESS with the user_id (token use recorded), or INVALID_TOKEN.
    """
    if not token:
        logger.debug("login_failed", reason="empty_token")
        return INVALID_TOKEN

    at = _now(now)
    try:
        row = await TokenRepository.refresh(db, token_digest(token), now=at)
    except NotFoundError:
        logger.debug("login_failed", reason="unknown_token")
        return INVALID_TOKEN

    await UserRepository.touch(db, row.user_id, at)
    logger.info("user_authenticated", user_id=row.user_id, method="token")
    return AuthenticationResult.success(row.user_id)


async def create_authentication_token(
    db: AsyncSession,
    user_id: str,
    *,
    now: datetime | None = None,
) -> str:
    """Issue a new remember-me token, invalidating the previous one.

    Only the SHA-256 digest is stored; the plain token is returned once.

    Args:
        db: Async database session.
        user_id: User to issue the token for.
        now: Issue time. Defaults to the current UTC time.

    Returns:
        Plain token to hand to the client.

    Raises:
        ForeignKeyViolationError: If the user does not exist.
    """
    plain_token = generate_token()
    await TokenRepository.issue(
        db, user_id, token=token_digest(plain_token), now=_now(now)
    )
    logger.info("authentication_token_issued", user_id=user_id)
    return plain_token


async def revoke_authentication_token(db: AsyncSession, user_id: str) -> bool:
    """Forget the remember-me token of a user.

    Returns:
        True if a token existed.
    """
    revoked = await TokenRepository.revoke(db, user_id)
    if revoked:
        logger.info("authentication_token_revoked", user_id=user_id)
    return revoked


async def change_password(db: AsyncSession, user_id: str, password: str) -> None:
    """Replace a user's password with a freshly salted hash.

    The remember-me token is revoked so other devices must log in again.

    Args:
        db: Async database session.
        user_id: User whose password changes.
        password: New plain-text password.

    Raises:
        ValidationError: If the password breaks the length rules.
        NotFoundError: If the user has no credentials.
    """
    validate_password(password)
    salt = generate_salt()
    await CredentialRepository.update_password(
        db,
        user_id,
        password_hash=hash_password(password, salt),
        password_salt=salt,
    )
    await TokenRepository.revoke(db, user_id)
    logger.info("password_changed", user_id=user_id)
