from __future__ import annotations

from signalist.auth.deps import get_current_user, require_role
from signalist.auth.jwt import create_access_token, create_refresh_token, decode_token

__all__ = [
    "get_current_user",
    "require_role",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
]
