"""
Supabase-backed gateway for identity and registry operations.

This adapter wraps a provided Supabase client and exposes the handful of calls
the portal needs. It is intentionally duck-typed to avoid a hard dependency
during testing. The client is expected to expose:

- auth.get_user(jwt) -> UserResponse | None
- auth.admin.invite_user_by_email(email) -> UserResponse
- auth.admin.list_users(page=..., per_page=...) -> list[User]
- table(name) (or from_(name)) returning a PostgREST query builder

Security:
- Gateways built with the anon key run under row-level security of the caller
  token; gateways built with the Service Role key bypass it and must stay
  server-side.
- Never log tokens or keys.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from .domain import Identity


class GatewayError(Exception):
    """Normalized failure of an identity or registry call."""

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status

    @classmethod
    def from_exception(cls, exc: BaseException) -> "GatewayError":
        # AuthApiError exposes .message/.status; postgrest APIError exposes .message/.code
        message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
        status = getattr(exc, "status", None)
        try:
            status = int(status) if status is not None else None
        except (TypeError, ValueError):
            status = None
        return cls(str(message), status=status)


def _data(res: Any) -> Any:
    """Return the payload of a PostgREST response across client versions."""
    if res is None:
        return None
    if isinstance(res, dict):
        return res.get("data")
    return getattr(res, "data", None)


def _identity_from(raw: Any) -> Optional[Identity]:
    """Build an Identity from a UserResponse, a User, or a plain dict."""
    if raw is None:
        return None
    if isinstance(raw, dict):
        user = raw.get("user", raw)
    else:
        user = getattr(raw, "user", raw)
    if user is None:
        return None
    if isinstance(user, dict):
        uid, email = user.get("id"), user.get("email")
    else:
        uid, email = getattr(user, "id", None), getattr(user, "email", None)
    if not uid:
        return None
    return Identity(id=str(uid), email=str(email) if email else None)


class SupabaseGateway:
    """Gateway over one Supabase client (anon+token or service role)."""

    def __init__(self, client: Any):
        # Duck-typed supabase client, e.g., from `supabase import create_client(...)`.
        self._client = client

    # --- Helpers -----------------------------------------------------------------

    def _table(self, name: str) -> Any:
        c = self._client
        if hasattr(c, "table"):
            return c.table(name)
        if hasattr(c, "from_"):
            return c.from_(name)
        raise RuntimeError("invalid_supabase_client")

    # --- Identity ------------------------------------------------------------------

    def get_user(self, token: str) -> Optional[Identity]:
        try:
            res = self._client.auth.get_user(token)
        except Exception as exc:
            raise GatewayError.from_exception(exc) from exc
        return _identity_from(res)

    def invite_user_by_email(self, email: str) -> Optional[Identity]:
        """Invite an email address. Returns the created identity when reported."""
        try:
            res = self._client.auth.admin.invite_user_by_email(email)
        except Exception as exc:
            raise GatewayError.from_exception(exc) from exc
        return _identity_from(res)

    def list_users(self, *, page: int, per_page: int) -> List[Identity]:
        try:
            res = self._client.auth.admin.list_users(page=page, per_page=per_page)
        except Exception as exc:
            raise GatewayError.from_exception(exc) from exc
        if isinstance(res, dict):
            raw_users = res.get("users") or []
        elif isinstance(res, (list, tuple)):
            raw_users = res
        else:
            raw_users = getattr(res, "users", None) or []
        out: List[Identity] = []
        for raw in raw_users:
            ident = _identity_from(raw)
            if ident is not None:
                out.append(ident)
        return out

    # --- Registry ------------------------------------------------------------------

    def find_one(self, table: str, *, column: str, value: str, columns: str = "id") -> Optional[Dict[str, Any]]:
        """Single-row lookup by equality filter; None when no row matches."""
        try:
            res = self._table(table).select(columns).eq(column, value).maybe_single().execute()
        except Exception as exc:
            raise GatewayError.from_exception(exc) from exc
        # Some postgrest versions return None instead of an empty response.
        data = _data(res)
        if isinstance(data, list):
            data = data[0] if data else None
        return dict(data) if isinstance(data, dict) else None

    def select_rows(
        self,
        table: str,
        *,
        column: str,
        value: str,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = True,
    ) -> List[Dict[str, Any]]:
        try:
            query = self._table(table).select(columns).eq(column, value)
            if order_by:
                query = query.order(order_by, desc=descending)
            res = query.execute()
        except Exception as exc:
            raise GatewayError.from_exception(exc) from exc
        data = _data(res) or []
        return [dict(row) for row in data if isinstance(row, dict)]

    def upsert(self, table: str, row: Dict[str, Any], *, on_conflict: str = "id") -> None:
        try:
            self._table(table).upsert(row, on_conflict=on_conflict).execute()
        except Exception as exc:
            raise GatewayError.from_exception(exc) from exc

    def delete(self, table: str, *, column: str, value: str) -> None:
        try:
            self._table(table).delete().eq(column, value).execute()
        except Exception as exc:
            raise GatewayError.from_exception(exc) from exc


__all__ = ["GatewayError", "SupabaseGateway"]
