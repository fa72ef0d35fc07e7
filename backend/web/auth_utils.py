"""
Shared authentication utilities.

Why:
    Page guards and API routes both need the caller's Supabase access token.
    Browsers send it in the auth cookie written by the Supabase JS client; API
    clients send `Authorization: Bearer <token>`. Keeping one helper avoids
    drift between the two call sites.

Design:
    The helpers are framework-agnostic and pure: they accept header and cookie
    mappings and return the token (or None). Callers decide where those
    mappings come from.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

DEFAULT_ACCESS_TOKEN_COOKIE = "sb-access-token"


def access_token_cookie_name() -> str:
    return (os.getenv("AUTH_COOKIE_NAME") or DEFAULT_ACCESS_TOKEN_COOKIE).strip()


def bearer_from_header(authorization: Optional[str]) -> Optional[str]:
    """Return the token of a `Bearer` authorization header, else None."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


def access_token_from(headers: Mapping[str, str], cookies: Mapping[str, str]) -> Optional[str]:
    """Prefer an explicit bearer header; fall back to the auth cookie."""
    token = bearer_from_header(headers.get("authorization"))
    if token:
        return token
    cookie_val = (cookies.get(access_token_cookie_name()) or "").strip()
    return cookie_val or None
