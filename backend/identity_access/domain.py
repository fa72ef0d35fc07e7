"""
Identity domain constants and simple helpers.

Why:
- Centralize registry table names, the default admin role and the landing
  routes so guards, the provisioning use case and the pages cannot drift.
- Keep terms aligned with the glossary (admin record, user-profile record).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

# Registry tables. A row in ADMINS_TABLE is the only admin signal.
ADMINS_TABLE = "admins"
USER_PROFILES_TABLE = "user_profiles"
COMMISSIONS_TABLE = "commissions"

DEFAULT_ADMIN_ROLE = "global_admin"

# Navigation targets used by the route guards.
SIGN_IN_PATH = "/sign-in"
NON_ADMIN_LANDING_PATH = "/dashboard"
USER_LANDING_PATH = "/commissions"
ADMIN_LANDING_PATH = "/admin/projects/my-projects"


@dataclass(frozen=True)
class Identity:
    """Caller identity as reported by the identity service.

    Not persisted by this application; used only for authorization.
    """

    id: str
    email: Optional[str] = None

    def as_state(self) -> dict:
        """Minimal, read-only view for `request.state.user`."""
        return {"sub": self.id, "email": self.email or ""}


__all__ = [
    "ADMINS_TABLE",
    "USER_PROFILES_TABLE",
    "COMMISSIONS_TABLE",
    "DEFAULT_ADMIN_ROLE",
    "SIGN_IN_PATH",
    "NON_ADMIN_LANDING_PATH",
    "USER_LANDING_PATH",
    "ADMIN_LANDING_PATH",
    "Identity",
]
