"""
auth/tokens.py -- JWT issuance/verification and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with JWT_SECRET and carry
       the user id (sub), email, role and expiry. Verification returns None
       on any failure, including expiry -- the route layer turns that into
       a 401. There is no server-side session, so a token stays valid until
       it expires.

  Passwords: bcrypt used directly. The cost factor comes from BCRYPT_ROUNDS
       so tests can run at the minimum cost. The _DUMMY_HASH constant enables
       timing equalization in authenticate() so response time does not
       reveal whether an email is registered.

  JWT_SECRET: sourced from core.config.get_settings(). The Settings class
       validates it at startup: development generates a random key with a
       warning; every other environment refuses to start without one.

Layer rule: no imports from api/ or institutes/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from auth.errors import InvalidRequestError
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import Role, User
    from auth.store import CredentialStore

logger = logging.getLogger("examadda.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

_REQUIRED_CLAIMS = ("sub", "email", "role")

# bcrypt ignores (4.x) or rejects (5.x) anything past this many bytes.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt only accepts the first 72 bytes of a password; longer input is
    refused with InvalidRequestError rather than truncated.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise InvalidRequestError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded",
            code="password_too_long",
        )
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash, or a password bcrypt refuses to process
        return False


# Computed once at module load so the first failed login is not measurably
# slower than later ones.
_DUMMY_HASH: str = hash_password("examadda_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(
    user_id: str,
    email: str,
    role: Role | str,
    expires_delta: timedelta | None = None,
) -> str:
    """Encode a signed JWT carrying the user's identity.

    Args:
        user_id:       User primary key, stored as the subject claim.
        email:         Login email at issue time.
        role:          One of the Role values.
        expires_delta: Lifetime override. Defaults to TOKEN_EXPIRE_SECONDS.
    """
    if expires_delta is None:
        expires_delta = timedelta(seconds=_settings.token_expire_seconds)
    payload = {
        "sub": user_id,
        "email": email,
        "role": getattr(role, "value", role),
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(payload, _settings.jwt_secret, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure.

    Expired, tampered and foreign-key tokens all come back as None; jose
    checks exp during decode. A payload missing any identity claim is also
    rejected.
    """
    try:
        payload = jwt.decode(token, _settings.jwt_secret, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if any(claim not in payload for claim in _REQUIRED_CLAIMS):
        return None
    return payload


# ---------------------------------------------------------------------------
# Credential check (constant-time)
# ---------------------------------------------------------------------------


def authenticate(store: CredentialStore, email: str, password: str) -> User | None:
    """Check an email/password pair with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure. Callers must surface a
    single error for both failure causes.
    """
    user = store.find_user_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user
