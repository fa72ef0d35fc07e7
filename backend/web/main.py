"Commission Portal"
from __future__ import annotations

from pathlib import Path
import os
import logging
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool

from backend.identity_access.domain import COMMISSIONS_TABLE, Identity
from backend.identity_access.supabase_gateway import GatewayError, SupabaseGateway
from backend.web import config as _cfg
from backend.web.auth_utils import access_token_from
from backend.web.client_wiring import user_gateway_or_none
from backend.web.components import CommissionTable, Layout
from backend.web.guards import admin_only, guard_for_path
from backend.web.i18n import active_locale, translate


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out/opt-in via PORTAL_ENABLE_DOTENV (default true
      outside pytest).
    """
    import sys
    # Under pytest, do not load .env – tests provide their own env.
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("PORTAL_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()

# --- App & Settings Setup -------------------------------------------------------

class AuthSettings:
    def __init__(self) -> None:
        self._env_override: str | None = None

    @property
    def environment(self) -> str:
        if self._env_override is not None:
            return self._env_override
        return os.getenv("PORTAL_ENV", "dev").lower()

    def override_environment(self, env: str | None) -> None:
        """Override environment for tests (e.g., "prod"), or reset with None."""
        self._env_override = env


logger = logging.getLogger("portal.web")
SETTINGS = AuthSettings()

app = FastAPI(title="Commission Portal", description="Commissions and account administration", version="0.1.0")
app.state.runtime_config = _cfg.load_runtime_config()

# --- Static Files & Routers -----------------------------------------------------

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

from backend.web.routes.admin import admin_router

app.include_router(admin_router)

# --- Guard Helpers & Middleware -------------------------------------------------


def _resolve_identity(request: Request) -> tuple[Optional[Identity], Optional[SupabaseGateway]]:
    """Exchange the caller's access token for an identity.

    Returns (None, None) for anonymous visitors, missing configuration, or a
    rejected token; guards then treat the visitor as signed out.
    """
    token = access_token_from(request.headers, request.cookies)
    if not token:
        return None, None
    settings = _cfg.resolve_supabase_settings(getattr(request.app.state, "runtime_config", None))
    gateway = user_gateway_or_none(settings, token)
    if gateway is None:
        return None, None
    try:
        identity = gateway.get_user(token)
    except GatewayError as exc:
        logger.info("Access token rejected: %s", exc.__class__.__name__)
        return None, None
    if identity is None:
        return None, None
    return identity, gateway


@app.middleware("http")
async def route_guards(request: Request, call_next):
    path = request.url.path
    guard = guard_for_path(path)
    if guard is None:
        return await call_next(request)

    identity, gateway = await run_in_threadpool(_resolve_identity, request)
    target = await run_in_threadpool(guard, identity, gateway)
    if target:
        if "HX-Request" in request.headers:
            # Security: prevent intermediaries from caching redirect decisions
            return Response(status_code=401, headers={"HX-Redirect": target, "Cache-Control": "private, no-store", "Vary": "HX-Request"})
        return RedirectResponse(url=target, status_code=302)

    # Expose minimal, read-only user context for downstream handlers.
    if identity is not None:
        user = identity.as_state()
        user["role"] = "admin" if guard is admin_only else "user"
        request.state.user = user
        request.state.gateway = gateway
    return await call_next(request)

# --- Security Headers Middleware ----------------------------------------------

@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    # The browser talks to Supabase directly (sign-in); allow its origin once.
    extra_connect = []
    try:
        pub = _cfg.resolve_supabase_url(getattr(request.app.state, "runtime_config", None)) or ""
        if pub:
            from urllib.parse import urlparse as _p
            p = _p(pub)
            if p.scheme and p.netloc:
                extra_connect.append(f"{p.scheme}://{p.netloc}")
    except ValueError:
        pass
    connect_src = "'self'" + (" " + " ".join(dict.fromkeys(extra_connect)) if extra_connect else "")

    if SETTINGS.environment == "prod":
        csp = (
            "default-src 'self'; script-src 'self'; style-src 'self'; "
            f"img-src 'self' data:; font-src 'self' data:; connect-src {connect_src};"
        )
    else:
        csp = (
            "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
            f"img-src 'self' data:; font-src 'self' data:; connect-src {connect_src};"
        )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    if SETTINGS.environment == "prod":
        response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
        response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response

# --- Pages ----------------------------------------------------------------------


def _page(request: Request, title: str, content: str) -> HTMLResponse:
    user = getattr(request.state, "user", None)
    layout = Layout(title=title, content=content, user=user, current_path=request.url.path, lang=active_locale())
    return HTMLResponse(layout.render(), headers={"Cache-Control": "private, no-store"})


@app.get("/health")
async def health():
    return JSONResponse({"status": "healthy"}, headers={"Cache-Control": "no-store"})


@app.get("/", response_class=HTMLResponse)
async def home(request: Request):
    content = """
        <h1>Commission Portal</h1>
        <p>Track commission requests and payouts for your projects.</p>
        <p><a href="/sign-in">Sign in</a></p>"""
    return _page(request, "Home", content)


@app.get("/sign-in", response_class=HTMLResponse)
async def sign_in(request: Request):
    content = """
        <h1>Sign in</h1>
        <section id="sign-in-help">
            <p>Use the link from your invitation email to sign in.</p>
            <p>Lost the email? Ask an administrator to send a new invitation.</p>
        </section>"""
    return _page(request, "Sign in", content)


@app.get("/sign-up", response_class=HTMLResponse)
async def sign_up(request: Request):
    content = """
        <h1>Accounts are invitation-only</h1>
        <p>Ask an administrator to invite your email address.</p>"""
    return _page(request, "Sign up", content)


@app.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request):
    user = getattr(request.state, "user", None) or {}
    content = f"""
        <h1>Dashboard</h1>
        <p>Signed in as {Layout.escape(user.get("email", ""))}.</p>
        <p><a href="/commissions">{Layout.escape(translate("commissions.title"))}</a></p>"""
    return _page(request, "Dashboard", content)


def _load_commissions(gateway: Optional[SupabaseGateway], user_id: str) -> list[dict]:
    if gateway is None or not user_id:
        return []
    try:
        return gateway.select_rows(
            COMMISSIONS_TABLE,
            column="user_id",
            value=user_id,
            columns="id,project_name,value,currency,status,created_at",
            order_by="created_at",
        )
    except GatewayError as exc:
        logger.warning("list commissions failed uid_tail=%s err=%s", user_id[-6:], exc.__class__.__name__)
        return []


@app.get("/commissions", response_class=HTMLResponse)
async def commissions(request: Request):
    user = getattr(request.state, "user", None) or {}
    rows = await run_in_threadpool(_load_commissions, getattr(request.state, "gateway", None), str(user.get("sub", "")))
    title = translate("commissions.title")
    content = f"""
        <h1>{Layout.escape(title)}</h1>
        {CommissionTable(rows).render()}"""
    return _page(request, title, content)


@app.get("/admin/projects/my-projects", response_class=HTMLResponse)
async def admin_my_projects(request: Request):
    content = """
        <h1>My projects</h1>
        <section aria-labelledby="invite-heading">
            <h2 id="invite-heading">Invite people</h2>
            <p>Invitations are sent through <code>POST /api/admin/invite</code>
            with an email address and whether the account becomes an administrator.</p>
        </section>"""
    return _page(request, "My projects", content)
