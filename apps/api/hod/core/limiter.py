"""Rate limiting for LLM-backed endpoints (every request spends model quota)."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from hod.core.auth import decode_access_token
from hod.core.config import get_settings


def bearer_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization") or ""
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_rate_limit_key(request: Request) -> str:
    """Quota is per account, so key on the token's user; anonymous callers share per IP."""
    token = bearer_token(request)
    user_id = decode_access_token(token) if token else None
    return f"user:{user_id}" if user_id else get_remote_address(request)


def ingest_rate_limit() -> str:
    return get_settings().ingest_rate_limit


limiter = Limiter(key_func=get_rate_limit_key, enabled=get_settings().rate_limit_enabled)
