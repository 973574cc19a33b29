"""Password hashing utilities using bcrypt.

Uses the ``bcrypt`` library directly (>=4.0); passlib is unmaintained and
incompatible with bcrypt >=4.

User records written by the first storefront version carry a plain-text
``password`` field instead of ``passwordHash``. Those are still accepted at
login (constant-time comparison) and rehashed on the first successful login.
"""

import hmac

import bcrypt

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def hash_password(plain: str) -> str:
    """Hash a plain-text password with bcrypt. Returns a utf-8 hash string."""
    hashed_bytes: bytes = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt())
    return hashed_bytes.decode("utf-8")


def is_bcrypt_hash(value: str) -> bool:
    return value.startswith(_BCRYPT_PREFIXES)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plain-text password against a bcrypt hash."""
    if not hashed or not is_bcrypt_hash(hashed):
        return False
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def verify_legacy_password(plain: str, stored: str) -> bool:
    """Compare against a legacy plain-text password without leaking timing."""
    if not stored:
        return False
    return hmac.compare_digest(plain.encode("utf-8"), stored.encode("utf-8"))
