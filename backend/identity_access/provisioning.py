"""
Admin-invite account provisioning (use case).

Why:
    Admins add people to the portal by email and decide whether the account is
    an administrator or a regular user. The use case authenticates the caller,
    checks admin privilege, resolves or invites the target account, and then
    reconciles exactly one of the two registry records for it.

Behavior:
    - Terminal at the first unrecoverable error (see `errors.py`).
    - Registry writes are not transactional: the invariant "at most one of
      admin record / user-profile record" is kept by ordering only (upsert one
      table, then delete from the other).
    - Best-effort writes never fail the request; their outcome is reported in
      `ReconcileOutcome` so callers and tests can see partial results.

Permissions:
    Caller must hold an admin record. Account creation and registry writes use
    a Service Role gateway; the privilege check uses a gateway bound to the
    caller token so row-level security applies.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.functional_validators import field_validator

from .directory import find_registered_account_id, is_admin, scan_accounts_for_email
from .domain import ADMINS_TABLE, DEFAULT_ADMIN_ROLE, USER_PROFILES_TABLE, Identity
from .errors import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    RegistryWriteError,
    UpstreamError,
    ValidationError,
)
from .supabase_gateway import GatewayError, SupabaseGateway

logger = logging.getLogger("portal.identity_access")

BEARER_PREFIX = "Bearer "


class GatewayFactory(Protocol):
    def user_gateway(self, *, url: str, anon_key: str, access_token: str) -> SupabaseGateway: ...

    def service_gateway(self, *, url: str, service_key: str) -> SupabaseGateway: ...


@dataclass(frozen=True)
class SupabaseSettings:
    url: Optional[str]
    anon_key: Optional[str]
    service_role_key: Optional[str]


class InviteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    name: Optional[str] = None
    make_admin: Optional[bool] = Field(default=None, alias="makeAdmin")

    @field_validator("name", mode="before")
    @classmethod
    def _loose_name(cls, v):
        # Empty or non-text names are stored as null; numbers keep their text.
        if isinstance(v, str):
            return v or None
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return None

    @property
    def grants_admin(self) -> bool:
        return bool(self.make_admin)

    @classmethod
    def from_body(cls, body: Any) -> "InviteRequest":
        """Validate a decoded JSON body; raises ValidationError (400)."""
        if not isinstance(body, dict) or not isinstance(body.get("email"), str) or not body.get("email"):
            raise ValidationError("Email is required")
        try:
            return cls.model_validate(body)
        except PydanticValidationError:
            raise ValidationError("Invalid request body")


@dataclass(frozen=True)
class ReconcileOutcome:
    """Two-phase result of a registry reconciliation.

    `primary_written` covers the upsert into the target table, `cleanup_done`
    the delete from the opposite table.
    """

    account_id: str
    record: str
    role: Optional[str]
    primary_written: bool
    cleanup_done: bool

    @property
    def converged(self) -> bool:
        return self.primary_written and self.cleanup_done


@dataclass(frozen=True)
class ProvisioningResult:
    account_id: Optional[str]
    invited: bool
    outcome: Optional[ReconcileOutcome]


def extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthenticationError("Unauthorized")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("Unauthorized")
    return token


def _is_already_exists(message: str) -> bool:
    lowered = (message or "").lower()
    return "already" in lowered or "exists" in lowered


class InviteUseCase:
    """Provision or demote an account on behalf of an admin caller."""

    def __init__(self, factory: GatewayFactory, settings: SupabaseSettings):
        self._factory = factory
        self._settings = settings

    # --- Caller checks -------------------------------------------------------------

    def authenticate(self, authorization: Optional[str]) -> tuple[Identity, SupabaseGateway]:
        token = extract_bearer_token(authorization)
        url, anon_key = self._settings.url, self._settings.anon_key
        if not url or not anon_key:
            raise ConfigurationError(
                "Supabase config missing. Please set SUPABASE_URL and SUPABASE_ANON_KEY environment variables."
            )
        user_gw = self._factory.user_gateway(url=url, anon_key=anon_key, access_token=token)
        try:
            caller = user_gw.get_user(token)
        except GatewayError as exc:
            logger.info("token exchange rejected err=%s", exc.__class__.__name__)
            raise AuthenticationError("Unauthorized")
        if caller is None:
            raise AuthenticationError("Unauthorized")
        return caller, user_gw

    def authorize(self, caller: Identity, user_gw: SupabaseGateway) -> None:
        if not is_admin(user_gw, caller.id):
            raise AuthorizationError("Forbidden: Admin access required")

    # --- Target account ----------------------------------------------------------------

    def _service_gateway(self) -> SupabaseGateway:
        key = self._settings.service_role_key
        if not key:
            raise ConfigurationError(
                "Supabase service config missing. Please set SUPABASE_SERVICE_ROLE_KEY environment variable."
            )
        return self._factory.service_gateway(url=str(self._settings.url), service_key=key)

    def resolve_account(self, gw: SupabaseGateway, email: str) -> tuple[Optional[str], bool]:
        """Return (account_id, invited) for `email`, inviting when unknown."""
        existing = find_registered_account_id(gw, email)
        if existing:
            return existing, False
        try:
            invited = gw.invite_user_by_email(email)
        except GatewayError as exc:
            if not _is_already_exists(exc.message):
                raise UpstreamError(exc.message, status_code=exc.status or 400)
            found = scan_accounts_for_email(gw, email)
            if found:
                return found, False
            raise UpstreamError(exc.message or "User already exists but could not be found", status_code=400)
        return (invited.id if invited else None), True

    # --- Registry reconciliation -------------------------------------------------------

    def reconcile(
        self, gw: SupabaseGateway, *, account_id: str, email: str, name: Optional[str], make_admin: bool
    ) -> ReconcileOutcome:
        uid_tail = account_id[-6:]
        if make_admin:
            role = DEFAULT_ADMIN_ROLE
            try:
                current = gw.find_one(ADMINS_TABLE, column="id", value=account_id, columns="role")
            except GatewayError:
                current = None
            if current and current.get("role"):
                role = str(current["role"])
            try:
                gw.upsert(ADMINS_TABLE, {"id": account_id, "email": email, "name": name, "role": role})
            except GatewayError as exc:
                logger.error("admin upsert failed uid_tail=%s err=%s", uid_tail, exc.__class__.__name__)
                raise RegistryWriteError("Failed to create admin")
            cleanup_done = self._best_effort_delete(gw, USER_PROFILES_TABLE, account_id)
            return ReconcileOutcome(account_id, ADMINS_TABLE, role, True, cleanup_done)

        primary_written = True
        try:
            gw.upsert(USER_PROFILES_TABLE, {"id": account_id, "email": email, "name": name})
        except GatewayError as exc:
            logger.warning("user profile upsert failed uid_tail=%s err=%s", uid_tail, exc.__class__.__name__)
            primary_written = False
        cleanup_done = self._best_effort_delete(gw, ADMINS_TABLE, account_id)
        return ReconcileOutcome(account_id, USER_PROFILES_TABLE, None, primary_written, cleanup_done)

    @staticmethod
    def _best_effort_delete(gw: SupabaseGateway, table: str, account_id: str) -> bool:
        try:
            gw.delete(table, column="id", value=account_id)
        except GatewayError as exc:
            logger.warning(
                "registry cleanup failed table=%s uid_tail=%s err=%s", table, account_id[-6:], exc.__class__.__name__
            )
            return False
        return True

    # --- Entry point ---------------------------------------------------------------------

    def execute(self, *, authorization: Optional[str], body: Any) -> ProvisioningResult:
        caller, user_gw = self.authenticate(authorization)
        self.authorize(caller, user_gw)
        req = InviteRequest.from_body(body)
        name = req.name or None
        gw = self._service_gateway()
        account_id, invited = self.resolve_account(gw, req.email)
        if not account_id:
            logger.warning("invite returned no account id; registry left unchanged")
            return ProvisioningResult(account_id=None, invited=invited, outcome=None)
        outcome = self.reconcile(gw, account_id=account_id, email=req.email, name=name, make_admin=req.grants_admin)
        logger.info(
            "account provisioned uid_tail=%s record=%s converged=%s",
            account_id[-6:],
            outcome.record,
            outcome.converged,
        )
        return ProvisioningResult(account_id=account_id, invited=invited, outcome=outcome)


__all__ = [
    "GatewayFactory",
    "SupabaseSettings",
    "InviteRequest",
    "ReconcileOutcome",
    "ProvisioningResult",
    "InviteUseCase",
    "extract_bearer_token",
]
