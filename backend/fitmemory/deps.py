from typing import Optional

from fastapi import Request

from .auth import SessionInfo, decode_session_token, session_from_claims
from .config import settings


def get_optional_session(request: Request) -> Optional[SessionInfo]:
    """Current session from the access cookie, falling back to the refresh cookie."""
    for cookie_name in (settings.SESSION_COOKIE_NAME, settings.REFRESH_COOKIE_NAME):
        claims = decode_session_token(request.cookies.get(cookie_name))
        if claims is not None:
            return session_from_claims(claims)
    return None
