from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

NO_EXPIRY = -1


class CookieRecord(BaseModel):
    name: str
    value: str
    domain: str = ""
    path: str = "/"
    expires: float = NO_EXPIRY  # Unix seconds, or -1 for a session cookie
    http_only: bool = False
    secure: bool = False


class CookieJar(BaseModel):
    cookies: list[CookieRecord]
    saved_at: datetime


class AuthState(BaseModel):
    authenticated: bool
    cookies_exist: bool
    cookies_expired: bool
    last_login_at: datetime | None = None
