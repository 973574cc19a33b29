"""JWT token creation and verification.

HS256 with one shared JWT_SECRET. Tokens carry a ``role`` claim: customer
tokens are issued by email/password login, admin tokens by the admin
password. No revocation: a disabled customer is rejected when the token is
resolved to a user record, not when it is decoded.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.sf_common.enums import TokenRole
from src.sf_common.errors import InvalidCredentialsError, InvalidRefreshTokenError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
_REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)

# Subject used for admin tokens; admins have no user record
ADMIN_SUBJECT = "admin"


def _encode(subject: str, role: TokenRole, token_type: str, lifetime: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": subject,
        "role": role.value,
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_access_token(user_id: str, role: TokenRole = TokenRole.USER) -> str:
    """Issue a short-lived access token (default: 30 min)."""
    return _encode(user_id, role, "access", _ACCESS_EXPIRE)


def create_refresh_token(user_id: str, role: TokenRole = TokenRole.USER) -> str:
    """Issue a long-lived refresh token (default: 7 days)."""
    return _encode(user_id, role, "refresh", _REFRESH_EXPIRE)


def decode_token(token: str, expected_type: str) -> dict[str, str]:
    """Decode and validate a JWT token.

    Args:
        token: Raw JWT string.
        expected_type: "access" or "refresh". Strictly enforced to prevent
                       token type confusion attacks.

    Raises:
        InvalidCredentialsError: Token invalid/expired and expected_type="access".
        InvalidRefreshTokenError: Token invalid/expired and expected_type="refresh".
    """
    payload: dict[str, str] = {}
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        _raise_auth_error(expected_type)

    if payload.get("type") != expected_type:
        _raise_auth_error(expected_type)
    if payload.get("role") not in (TokenRole.USER.value, TokenRole.ADMIN.value):
        _raise_auth_error(expected_type)

    return payload


def _raise_auth_error(expected_type: str) -> None:
    """Raise the appropriate error based on which token type was expected."""
    if expected_type == "access":
        raise InvalidCredentialsError()
    raise InvalidRefreshTokenError()
