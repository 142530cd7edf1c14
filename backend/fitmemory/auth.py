import hashlib
import secrets
import time
from typing import Optional

from jose import jwt, JWTError
from pydantic import BaseModel

from .config import settings


class SessionInfo(BaseModel):
    id: str
    role: str = "user"


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str) -> bool:
    expected = settings.AUTH_PASSWORD_HASH.strip().lower()
    return secrets.compare_digest(hash_password(password), expected)


def create_session_token(subject: str = "user", role: str = "user", max_age_sec: Optional[int] = None) -> str:
    if max_age_sec is None:
        max_age_sec = settings.get_session_max_age_sec()
    to_encode = {"sub": subject, "role": role, "exp": time.time() + max_age_sec}
    return jwt.encode(to_encode, settings.AUTH_SESSION_SECRET, algorithm="HS256")


def decode_session_token(token: Optional[str]) -> Optional[dict]:
    if not token:
        return None
    try:
        decoded_token = jwt.decode(token, settings.AUTH_SESSION_SECRET, algorithms=["HS256"])
    except JWTError:
        return None
    exp = decoded_token.get("exp")
    if exp is None or exp < time.time():
        return None
    if not decoded_token.get("sub"):
        return None
    return decoded_token


def session_from_claims(claims: dict) -> SessionInfo:
    return SessionInfo(id=str(claims["sub"]), role=str(claims.get("role") or "user"))
