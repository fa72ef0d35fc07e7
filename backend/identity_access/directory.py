"""
Directory lookups over the registry tables and the Supabase user list.

Why:
    Guards and the provisioning use case need the same small questions answered:
    "is this account an admin?" and "which account id belongs to this email?".
    This module wraps those gateway calls behind functions that return plain
    values, so callers never handle client-specific response shapes.

Security:
    - Lookups fail closed: any gateway error reads as "not admin" / "not found".
    - Log only exception classes and id tails, never emails or tokens.
"""
from __future__ import annotations

import logging
from typing import Optional

from .domain import ADMINS_TABLE, USER_PROFILES_TABLE
from .supabase_gateway import GatewayError, SupabaseGateway

logger = logging.getLogger("portal.identity_access")

# The scan covers at most SCAN_PAGE_SIZE * SCAN_MAX_PAGES accounts.
SCAN_PAGE_SIZE = 100
SCAN_MAX_PAGES = 10


def is_admin(gateway: SupabaseGateway, user_id: str) -> bool:
    """Return True when an admin record exists for `user_id`.

    Lookup errors are logged and treated as "not admin".
    """
    try:
        row = gateway.find_one(ADMINS_TABLE, column="id", value=user_id, columns="id")
    except GatewayError as exc:
        logger.warning("admin lookup failed uid_tail=%s err=%s", user_id[-6:], exc.__class__.__name__)
        return False
    return row is not None


def find_registered_account_id(gateway: SupabaseGateway, email: str) -> Optional[str]:
    """Resolve an email via the registry tables (user profiles first, then admins)."""
    for table in (USER_PROFILES_TABLE, ADMINS_TABLE):
        try:
            row = gateway.find_one(table, column="email", value=email, columns="id")
        except GatewayError as exc:
            logger.warning("registry email lookup failed table=%s err=%s", table, exc.__class__.__name__)
            continue
        if row and row.get("id"):
            return str(row["id"])
    return None


def scan_accounts_for_email(
    gateway: SupabaseGateway,
    email: str,
    *,
    per_page: int = SCAN_PAGE_SIZE,
    max_pages: int = SCAN_MAX_PAGES,
) -> Optional[str]:
    """Page over the Supabase user list looking for an exact email match.

    Behavior:
        - Pages are 1-based; at most `max_pages` pages are requested.
        - Stops early on an empty or short page (end of the list).
        - A failing page ends the scan; accounts beyond the cap are not found.
    """
    for page in range(1, max_pages + 1):
        try:
            users = gateway.list_users(page=page, per_page=per_page)
        except GatewayError as exc:
            logger.warning("user scan aborted page=%s err=%s", page, exc.__class__.__name__)
            return None
        for ident in users:
            if ident.email == email:
                return ident.id
        if len(users) < per_page:
            break
    return None


__all__ = [
    "SCAN_PAGE_SIZE",
    "SCAN_MAX_PAGES",
    "is_admin",
    "find_registered_account_id",
    "scan_accounts_for_email",
]
