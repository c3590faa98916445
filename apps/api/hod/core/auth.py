"""Bearer tokens for the acting account.

Accounts live with the identity provider; the API only needs a signed
subject (the user id that namespaces every record) with an expiry.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from hod.core.config import get_settings

TOKEN_TYPE = "access"


def create_access_token(user_id: str, expire_minutes: Optional[int] = None) -> str:
    s = get_settings()
    minutes = s.jwt_expire_minutes if expire_minutes is None else expire_minutes
    claims = {
        "sub": user_id,
        "typ": TOKEN_TYPE,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
    }
    return jwt.encode(claims, s.jwt_secret, algorithm=s.jwt_algorithm)


def decode_access_token(token: str) -> Optional[str]:
    """User id from a valid, unexpired access token; None for anything else."""
    s = get_settings()
    try:
        claims = jwt.decode(token, s.jwt_secret, algorithms=[s.jwt_algorithm])
    except JWTError:
        return None
    if claims.get("typ", TOKEN_TYPE) != TOKEN_TYPE:
        return None
    sub = claims.get("sub")
    return str(sub) if sub else None
