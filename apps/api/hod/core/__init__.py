"""Core configuration, auth, and shared infrastructure."""

from hod.core.config import Settings, get_settings
from hod.core.constants import (
    AI_BUSY_MESSAGE,
    AI_UNAVAILABLE_MESSAGE,
    SAVE_FAILED_MESSAGE,
)
from hod.core.auth import create_access_token, decode_access_token
from hod.core.limiter import limiter

__all__ = [
    "Settings",
    "get_settings",
    "AI_BUSY_MESSAGE",
    "AI_UNAVAILABLE_MESSAGE",
    "SAVE_FAILED_MESSAGE",
    "create_access_token",
    "decode_access_token",
    "limiter",
]
