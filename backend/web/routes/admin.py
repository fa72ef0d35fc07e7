"""
Admin API routes: account provisioning by email.

Why:
    Admins invite people to the portal and decide whether they become
    administrators or regular users. The workflow itself lives in
    `identity_access.provisioning`; this router only adapts HTTP to the use case
    and maps its errors to JSON responses.
"""
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from backend.identity_access.errors import ProvisioningError
from backend.identity_access.provisioning import InviteUseCase
from backend.web.client_wiring import get_client_factory
from backend.web.config import resolve_supabase_settings

admin_router = APIRouter(tags=["Admin"])  # explicit path below
logger = logging.getLogger("portal.web.admin")


def _private_no_store() -> dict:
    return {"Cache-Control": "private, no-store"}


def _error_response(exc: ProvisioningError) -> JSONResponse:
    return JSONResponse(
        {"error": exc.code, "detail": exc.detail},
        status_code=exc.status_code,
        headers=_private_no_store(),
    )


async def _read_json(request: Request):
    """Decode the JSON body; malformed bodies read as None (validated later)."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


@admin_router.post("/api/admin/invite")
async def admin_invite(request: Request):
    """Invite or re-classify an account (admins only).

    Body:
        `{ "email": str, "name"?: str, "makeAdmin"?: bool }`

    Behavior:
        - 200 `{ "ok": true }` once an account id is resolved (registry cleanup
          failures are logged, not surfaced)
        - 401 missing/invalid bearer token, 403 caller is not an admin
        - 400 missing email, 500 missing Supabase configuration
        - identity-service failures forward their status and message

    Permissions:
        Caller must hold an admin record (checked with the caller's own token).
    """
    settings = resolve_supabase_settings(getattr(request.app.state, "runtime_config", None))
    use_case = InviteUseCase(get_client_factory(), settings)
    body = await _read_json(request)
    try:
        await run_in_threadpool(
            use_case.execute,
            authorization=request.headers.get("authorization"),
            body=body,
        )
    except ProvisioningError as exc:
        if exc.status_code >= 500:
            logger.error("admin invite failed: %s", exc.code)
        return _error_response(exc)
    return JSONResponse({"ok": True}, headers=_private_no_store())
