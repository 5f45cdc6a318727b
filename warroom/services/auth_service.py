"""Bearer-token handling for caller identity.

Accounts and sign-in live with the external auth provider. This service only
verifies the tokens it issues (HS256, shared secret) and reads the subject,
which is used as the opaque ``Player.user_id``.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from warroom.config import settings


def create_access_token(user_id: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {"sub": user_id, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> str | None:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    return str(user_id)
