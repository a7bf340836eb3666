"""
Security utilities including password hashing and JWT token generation.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from receipt_splitter.core.exceptions import AuthError, InternalError

# Use bcrypt directly instead of passlib to avoid initialization issues
# passlib has problems with bcrypt 5.0.0+ during initialization

# JWT configuration
ALGORITHM = "HS256"
HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]
BCRYPT_ROUNDS = 12
# bcrypt only hashes the first 72 bytes; longer passwords are rejected, never cut
BCRYPT_MAX_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > BCRYPT_MAX_BYTES


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    if not hashed_password or password_too_long(plain_password):
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Malformed hash in storage
        return False


def get_password_hash(password: str) -> str:
    """Generate a password hash. Raises ValueError above BCRYPT_MAX_BYTES."""
    if password_too_long(password):
        raise ValueError(f"password longer than {BCRYPT_MAX_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


class TokenService:
    """Issues and verifies HMAC-signed bearer tokens carrying ``user_id``."""

    def __init__(self, secret: str, expire_minutes: int):
        if not secret:
            raise InternalError("Server misconfigured: JWT secret missing")
        self.secret = secret
        self.expire_minutes = expire_minutes

    def issue(self, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create a new access token for ``user_id``."""
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.expire_minutes))
        to_encode = {"user_id": user_id, "iat": now, "exp": expire}
        return jwt.encode(to_encode, self.secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> str:
        """Return the ``user_id`` claim of a valid token or raise AuthError."""
        try:
            payload = jwt.decode(token, self.secret, algorithms=HMAC_ALGORITHMS)
        except JWTError:
            raise AuthError("Invalid token")

        user_id = payload.get("user_id")
        if not isinstance(user_id, str) or not user_id:
            raise AuthError("Invalid token payload")
        return user_id
