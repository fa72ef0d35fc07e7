"""
Route guards for page groups (admin-only, guest-only, user-only).

Why:
    Each page group is meant for one audience. A guard inspects the signed-in
    identity and the admin registry and decides whether navigation proceeds or
    is redirected elsewhere.

Design:
    Guards are plain functions over an `Identity | None` and a gateway bound to
    that identity. They return a redirect target path, or None to allow. The
    HTTP middleware in `main.py` picks the guard for a path via `guard_for_path`.

Security:
    Lookup errors are absorbed into the less-privileged decision (fail closed)
    and never reach the visitor.
"""
from __future__ import annotations

from typing import Callable, Optional

from backend.identity_access.directory import is_admin
from backend.identity_access.domain import (
    ADMIN_LANDING_PATH,
    NON_ADMIN_LANDING_PATH,
    SIGN_IN_PATH,
    USER_LANDING_PATH,
    Identity,
)
from backend.identity_access.supabase_gateway import SupabaseGateway

Guard = Callable[[Optional[Identity], Optional[SupabaseGateway]], Optional[str]]


def _is_admin(identity: Identity, gateway: Optional[SupabaseGateway]) -> bool:
    if gateway is None:
        return False
    return is_admin(gateway, identity.id)


def admin_only(identity: Optional[Identity], gateway: Optional[SupabaseGateway]) -> Optional[str]:
    if identity is None:
        return SIGN_IN_PATH
    if not _is_admin(identity, gateway):
        return NON_ADMIN_LANDING_PATH
    return None


def guest_only(identity: Optional[Identity], gateway: Optional[SupabaseGateway]) -> Optional[str]:
    if identity is None:
        return None
    return ADMIN_LANDING_PATH if _is_admin(identity, gateway) else USER_LANDING_PATH


def user_only(identity: Optional[Identity], gateway: Optional[SupabaseGateway]) -> Optional[str]:
    if identity is None:
        return SIGN_IN_PATH
    if _is_admin(identity, gateway):
        return ADMIN_LANDING_PATH
    return None


# Route groups. Order matters: first match wins.
_GUARDED_GROUPS: tuple[tuple[tuple[str, ...], Guard], ...] = (
    (("/admin",), admin_only),
    (("/sign-in", "/sign-up"), guest_only),
    (("/dashboard", "/commissions"), user_only),
)


def _matches(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def guard_for_path(path: str) -> Optional[Guard]:
    """Return the guard protecting `path`, or None for unguarded paths."""
    for prefixes, guard in _GUARDED_GROUPS:
        if any(_matches(path, p) for p in prefixes):
            return guard
    return None


__all__ = ["Guard", "admin_only", "guest_only", "user_only", "guard_for_path"]
