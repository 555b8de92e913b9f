"""Tests for CredentialRepository.

Covers the login-name lookup scenario, the foreign key to user,
upsert behaviour, login name uniqueness and hash/salt pairing.
"""

from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from fost_accounts.core.errors import (
    DuplicateKeyError,
    ForeignKeyViolationError,
    NotFoundError,
    ValidationError,
)
from fost_accounts.repositories.credential_repository import CredentialRepository
from fost_accounts.repositories.user_repository import UserRepository

_LOGIN = "alice"


async def _set_alice(db: AsyncSession, user_id: str = "u1"):
    return await CredentialRepository.set_credentials(
        db,
        user_id,
        login_user=_LOGIN,
        password_hash="h",
        password_salt="s",
    )


class TestLoginScenario:
    """Register a user, attach credentials, look them up by login name."""

    async def test_lookup_by_login_returns_owner(self, db_session: AsyncSession):
        await UserRepository.create(
            db_session,
            user_id="u1",
            timestamp_register=datetime(2024, 1, 1, tzinfo=UTC),
            crystals=0,
            experience=0,
        )
        await _set_alice(db_session)

        credentials = await CredentialRepository.get_by_login(db_session, _LOGIN)
        assert credentials.user_id == "u1"
        assert credentials.password_hash == "h"
        assert credentials.password_salt == "s"


class TestSetCredentials:
    """Test CredentialRepository.set_credentials()."""

    async def test_creates_credentials(self, db_session: AsyncSession, test_user):
        credentials = await _set_alice(db_session, test_user.user_id)
        assert credentials.user_id == test_user.user_id
        assert credentials.login_user == _LOGIN

    async def test_rejects_unknown_user(self, db_session: AsyncSession):
        """Credentials for a non-existent user are a foreign key violation."""
        with pytest.raises(ForeignKeyViolationError) as exc_info:
            await _set_alice(db_session, "ghost")
        assert exc_info.value.code == "FOREIGN_KEY_VIOLATION"
        assert await CredentialRepository.find_by_login(db_session, _LOGIN) is None

    async def test_replaces_existing_credentials(
        self, db_session: AsyncSession, test_user
    ):
        """Setting credentials again updates the single row in place."""
        await _set_alice(db_session, test_user.user_id)
        updated = await CredentialRepository.set_credentials(
            db_session,
            test_user.user_id,
            login_user="alice2",
            password_hash="h2",
            password_salt="s2",
        )
        assert updated.login_user == "alice2"
        assert updated.password_hash == "h2"
        assert updated.password_salt == "s2"
        assert await CredentialRepository.find_by_login(db_session, _LOGIN) is None
        assert await CredentialRepository.get_by_user_id(
            db_session, test_user.user_id
        ) is updated

    async def test_same_user_may_keep_login(self, db_session: AsyncSession, test_user):
        await _set_alice(db_session, test_user.user_id)
        credentials = await CredentialRepository.set_credentials(
            db_session,
            test_user.user_id,
            login_user=_LOGIN,
            password_hash="h3",
            password_salt="s3",
        )
        assert credentials.password_hash == "h3"

    async def test_rejects_login_owned_by_other_user(
        self, db_session: AsyncSession, test_user, other_user
    ):
        """Login names are unique across users."""
        await _set_alice(db_session, test_user.user_id)
        with pytest.raises(DuplicateKeyError) as exc_info:
            await _set_alice(db_session, other_user.user_id)
        assert exc_info.value.code == "DUPLICATE_KEY"

    async def test_login_claimed_concurrently_leaves_rollback_to_caller(
        self,
        db_session: AsyncSession,
        test_user,
        other_user,
        monkeypatch: pytest.MonkeyPatch,
    ):
        """A login taken between the ownership check and the flush."""
        await _set_alice(db_session, test_user.user_id)

        async def no_owner(db: AsyncSession, login_user: str):
            return None

        monkeypatch.setattr(
            CredentialRepository, "find_by_login", staticmethod(no_owner)
        )

        with pytest.raises(DuplicateKeyError):
            await _set_alice(db_session, other_user.user_id)

        # Earlier work in the unit is not discarded by the store
        assert db_session.in_transaction()
        await db_session.rollback()
        assert await UserRepository.get_by_id(db_session, other_user.user_id) is None

    @pytest.mark.parametrize(
        ("password_hash", "password_salt"),
        [("h", ""), ("", "s"), ("", "")],
    )
    async def test_rejects_unpaired_hash_and_salt(
        self,
        db_session: AsyncSession,
        test_user,
        password_hash: str,
        password_salt: str,
    ):
        """A credential row needs both hash and salt."""
        with pytest.raises(ValidationError):
            await CredentialRepository.set_credentials(
                db_session,
                test_user.user_id,
                login_user=_LOGIN,
                password_hash=password_hash,
                password_salt=password_salt,
            )

    @pytest.mark.parametrize(
        ("login_user", "password_hash", "password_salt"),
        [
            ("", "h", "s"),
            ("x" * 33, "h", "s"),
            (_LOGIN, "h" * 65, "s"),
            (_LOGIN, "h", "s" * 17),
        ],
    )
    async def test_rejects_values_wider_than_columns(
        self,
        db_session: AsyncSession,
        test_user,
        login_user: str,
        password_hash: str,
        password_salt: str,
    ):
        with pytest.raises(ValidationError):
            await CredentialRepository.set_credentials(
                db_session,
                test_user.user_id,
                login_user=login_user,
                password_hash=password_hash,
                password_salt=password_salt,
            )


class TestLookup:
    """Test get_by_login(), find_by_login() and is_login_taken()."""

    async def test_get_by_login_raises_not_found(self, db_session: AsyncSession):
        with pytest.raises(NotFoundError):
            await CredentialRepository.get_by_login(db_session, "nobody")

    async def test_find_by_login_returns_none(self, db_session: AsyncSession):
        assert await CredentialRepository.find_by_login(db_session, "nobody") is None

    async def test_lookup_is_exact(self, db_session: AsyncSession, test_user):
        await _set_alice(db_session, test_user.user_id)
        assert await CredentialRepository.find_by_login(db_session, "alic") is None

    async def test_is_login_taken(self, db_session: AsyncSession, test_user):
        assert await CredentialRepository.is_login_taken(db_session, _LOGIN) is False
        await _set_alice(db_session, test_user.user_id)
        assert await CredentialRepository.is_login_taken(db_session, _LOGIN) is True

    async def test_get_by_user_id_returns_none_without_credentials(
        self, db_session: AsyncSession, test_user
    ):
        assert await CredentialRepository.get_by_user_id(
            db_session, test_user.user_id
        ) is None


class TestUpdatePassword:
    """Test CredentialRepository.update_password()."""

    async def test_replaces_hash_and_salt(self, db_session: AsyncSession, test_user):
        await _set_alice(db_session, test_user.user_id)
        credentials = await CredentialRepository.update_password(
            db_session,
            test_user.user_id,
            password_hash="new-hash",
            password_salt="new-salt",
        )
        assert credentials.login_user == _LOGIN
        assert credentials.password_hash == "new-hash"
        assert credentials.password_salt == "new-salt"

    async def test_raises_not_found_without_credentials(
        self, db_session: AsyncSession, test_user
    ):
        with pytest.raises(NotFoundError):
            await CredentialRepository.update_password(
                db_session,
                test_user.user_id,
                password_hash="h",
                password_salt="s",
            )

    async def test_rejects_missing_salt(self, db_session: AsyncSession, test_user):
        await _set_alice(db_session, test_user.user_id)
        with pytest.raises(ValidationError):
            await CredentialRepository.update_password(
                db_session,
                test_user.user_id,
                password_hash="h",
                password_salt="",
            )
