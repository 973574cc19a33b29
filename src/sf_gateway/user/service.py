"""User domain service: register, login, admin login, refresh, account admin.

Customers log in with email and password. The admin has no user record: the
admin password lives at ``admin/password`` in the store, falling back to
settings.ADMIN_PASSWORD when that path is empty.
"""

import hmac
import logging
from collections.abc import Callable

from config.settings import settings
from src.sf_common.datetime_utils import now_ms
from src.sf_common.enums import TokenRole
from src.sf_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    UsernameExistsError,
    UserNotFoundError,
)
from src.sf_gateway.auth.jwt_handler import (
    ADMIN_SUBJECT,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.sf_gateway.auth.password import hash_password, verify_legacy_password, verify_password
from src.sf_gateway.user.models import User
from src.sf_gateway.user.persistence import UserRepository
from src.sf_store.domain.repository import KeyValueStoreProtocol

logger = logging.getLogger(__name__)

ADMIN_PASSWORD_PATH = "admin/password"


class UserService:
    def __init__(self, store: KeyValueStoreProtocol, clock: Callable[[], int] = now_ms) -> None:
        self._store = store
        self._repo = UserRepository(store)
        self._clock = clock

    async def register(self, username: str, email: str, password: str) -> User:
        """Create an active customer account.

        Uniqueness is checked by scanning the collection; two registrations
        racing on the same email can both succeed.
        """
        if await self._repo.find_by_username(username) is not None:
            raise UsernameExistsError()
        if await self._repo.find_by_email(email) is not None:
            raise EmailExistsError()

        user = User(
            id=self._repo.new_id(),
            username=username,
            email=email,
            password_hash=hash_password(password),
            last_seen=self._clock(),
            is_active=True,
        )
        await self._repo.save(user)
        logger.info("User registered: %s (%s)", user.id, username)
        return user

    async def login(self, email: str, password: str) -> tuple[User, str, str]:
        """Authenticate by email; returns (user, access_token, refresh_token).

        Unknown email and wrong password raise the same InvalidCredentialsError.
        """
        user = await self._repo.find_by_email(email)
        if user is None or not self._password_matches(user, password):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        user.last_seen = self._clock()
        fields: dict[str, object] = {"lastSeen": user.last_seen}
        if user.needs_rehash:
            user.password_hash = hash_password(password)
            user.legacy_password = ""
            fields.update(passwordHash=user.password_hash, password=None)
            logger.info("Upgraded legacy password of user %s", user.id)
        await self._repo.update_fields(user.id, fields)

        return (
            user,
            create_access_token(user.id, TokenRole.USER),
            create_refresh_token(user.id, TokenRole.USER),
        )

    @staticmethod
    def _password_matches(user: User, password: str) -> bool:
        if user.password_hash:
            return verify_password(password, user.password_hash)
        return verify_legacy_password(password, user.legacy_password)

    async def admin_login(self, password: str) -> tuple[str, str]:
        stored = await self._store.get(ADMIN_PASSWORD_PATH)
        expected = stored if isinstance(stored, str) and stored else settings.ADMIN_PASSWORD
        if not hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8")):
            logger.warning("Rejected admin login attempt")
            raise InvalidCredentialsError()
        return (
            create_access_token(ADMIN_SUBJECT, TokenRole.ADMIN),
            create_refresh_token(ADMIN_SUBJECT, TokenRole.ADMIN),
        )

    async def refresh(self, refresh_token: str) -> str:
        """Validate refresh token and return a new access token with the same role.

        Refresh tokens are not rotated.
        """
        payload = decode_token(refresh_token, expected_type="refresh")
        return create_access_token(str(payload["sub"]), TokenRole(payload["role"]))

    # ------------------------------------------------------------------
    # Account administration
    # ------------------------------------------------------------------

    async def get_user(self, user_id: str) -> User:
        user = await self._repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def list_users(self) -> list[User]:
        return await self._repo.list_all()

    async def toggle_active(self, user_id: str) -> User:
        user = await self.get_user(user_id)
        user.is_active = not user.is_active
        await self._repo.update_fields(user_id, {"isActive": user.is_active})
        logger.info("User %s %s", user_id, "activated" if user.is_active else "deactivated")
        return user

    async def update_profile(
        self,
        user_id: str,
        username: str | None = None,
        profile_picture: str | None = None,
    ) -> User:
        user = await self.get_user(user_id)
        fields: dict[str, object] = {}
        if username is not None and username != user.username:
            if await self._repo.find_by_username(username) is not None:
                raise UsernameExistsError()
            user.username = username
            fields["username"] = username
        if profile_picture is not None:
            user.profile_picture = profile_picture
            fields["profilePicture"] = profile_picture
        if fields:
            await self._repo.update_fields(user_id, fields)
        return user

    async def delete_user(self, user_id: str) -> None:
        """Remove the account record only; the user's orders are left to the caller."""
        await self.get_user(user_id)
        await self._repo.delete(user_id)
        logger.info("User %s deleted", user_id)
