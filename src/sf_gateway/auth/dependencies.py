"""FastAPI dependencies: get_current_user, require_admin.

Usage in any protected router:
    from src.sf_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: Annotated[User, Depends(get_current_user)]):
        ...
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.sf_common.enums import TokenRole
from src.sf_common.errors import AccountDisabledError, AdminRequiredError, InvalidCredentialsError
from src.sf_gateway.auth.jwt_handler import decode_token
from src.sf_gateway.user.models import User
from src.sf_gateway.user.persistence import UserRepository
from src.sf_store.application.service import get_store
from src.sf_store.domain.repository import KeyValueStoreProtocol

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_token_payload(token: Annotated[str, Depends(oauth2_scheme)]) -> dict[str, str]:
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    if not payload.get("sub"):
        raise _CREDENTIALS_EXCEPTION
    return payload


async def get_current_user(
    payload: Annotated[dict[str, str], Depends(get_token_payload)],
    store: Annotated[KeyValueStoreProtocol, Depends(get_store)],
) -> User:
    """Resolve a customer access token to its User.

    Raises HTTP 401 if the token is missing, invalid, expired or not a customer token.
    Raises HTTP 403 (AccountDisabledError) if the account was deactivated.
    """
    if payload.get("role") != TokenRole.USER.value:
        raise _CREDENTIALS_EXCEPTION

    user = await UserRepository(store).get_by_id(payload["sub"])
    if user is None:
        raise _CREDENTIALS_EXCEPTION

    if not user.is_active:
        raise AccountDisabledError()

    return user


async def require_admin(
    payload: Annotated[dict[str, str], Depends(get_token_payload)],
) -> str:
    """Verify the caller holds an admin token; returns the token subject.

    Raises HTTP 403 (AdminRequiredError) for customer tokens.
    """
    if payload.get("role") != TokenRole.ADMIN.value:
        raise AdminRequiredError()
    return payload["sub"]
