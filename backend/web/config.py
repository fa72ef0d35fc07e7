"""
Configuration and startup security checks for the Commission Portal.

Why: The portal talks to Supabase with two different keys (anon and Service
Role) and deployments have historically set them under several names. This
module resolves each value from a layered source, first non-empty wins, and
provides a single guard that enforces minimal production safety constraints
without burdening local development.

Permissions: The caller needs no special privileges. The functions read
environment variables; the startup guard raises `SystemExit` on fatal
misconfiguration.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from backend.identity_access.provisioning import SupabaseSettings

# Environment fallbacks, in resolution order (after the runtime config object).
URL_ENV_VARS = ("SUPABASE_URL", "PUBLIC_SUPABASE_URL")
ANON_KEY_ENV_VARS = ("SUPABASE_ANON_KEY", "PUBLIC_SUPABASE_ANON_KEY", "PUBLIC_SUPABASE_KEY")
SERVICE_KEY_ENV_VARS = ("SUPABASE_SERVICE_ROLE_KEY",)


@dataclass(frozen=True)
class PublicRuntimeConfig:
    """Values that are safe to expose to browsers."""

    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None


@dataclass(frozen=True)
class RuntimeConfig:
    """Server-side runtime configuration object (lives on `app.state`)."""

    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    public: PublicRuntimeConfig = field(default_factory=PublicRuntimeConfig)


def load_runtime_config(env: Mapping[str, str] | None = None) -> RuntimeConfig:
    """Build the runtime config from `PORTAL_`-prefixed variables."""
    env = os.environ if env is None else env
    return RuntimeConfig(
        supabase_url=env.get("PORTAL_SUPABASE_URL") or None,
        supabase_service_role_key=env.get("PORTAL_SUPABASE_SERVICE_ROLE_KEY") or None,
        public=PublicRuntimeConfig(
            supabase_url=env.get("PORTAL_PUBLIC_SUPABASE_URL") or None,
            supabase_anon_key=env.get("PORTAL_PUBLIC_SUPABASE_ANON_KEY") or None,
        ),
    )


def _first_non_empty(*candidates: Optional[str]) -> Optional[str]:
    for value in candidates:
        if value and str(value).strip():
            return str(value).strip()
    return None


def _from_env(env: Mapping[str, str], names: tuple[str, ...]) -> list[Optional[str]]:
    return [env.get(name) for name in names]


def resolve_supabase_url(runtime: RuntimeConfig | None, env: Mapping[str, str] | None = None) -> Optional[str]:
    env = os.environ if env is None else env
    runtime = runtime or RuntimeConfig()
    return _first_non_empty(runtime.supabase_url, runtime.public.supabase_url, *_from_env(env, URL_ENV_VARS))


def resolve_anon_key(runtime: RuntimeConfig | None, env: Mapping[str, str] | None = None) -> Optional[str]:
    env = os.environ if env is None else env
    runtime = runtime or RuntimeConfig()
    return _first_non_empty(runtime.public.supabase_anon_key, *_from_env(env, ANON_KEY_ENV_VARS))


def resolve_service_role_key(runtime: RuntimeConfig | None, env: Mapping[str, str] | None = None) -> Optional[str]:
    env = os.environ if env is None else env
    runtime = runtime or RuntimeConfig()
    return _first_non_empty(runtime.supabase_service_role_key, *_from_env(env, SERVICE_KEY_ENV_VARS))


def resolve_supabase_settings(runtime: RuntimeConfig | None, env: Mapping[str, str] | None = None) -> SupabaseSettings:
    """Resolve all three Supabase values at once (missing ones stay None)."""
    return SupabaseSettings(
        url=resolve_supabase_url(runtime, env),
        anon_key=resolve_anon_key(runtime, env),
        service_role_key=resolve_service_role_key(runtime, env),
    )


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - Supabase Service Role key must be set and not a known dummy placeholder.
    - Supabase anon key must be set (guards and the invite endpoint need it).
    - The Supabase URL must use https.
    """

    env = os.getenv("PORTAL_ENV", "dev")
    if not _is_prod_like(env):
        return  # dev/test remain permissive

    runtime = load_runtime_config()

    # 1) Supabase Service Role key
    srole = resolve_service_role_key(runtime) or ""
    if not srole or srole.upper() == "DUMMY_DO_NOT_USE":
        raise SystemExit(
            "Refusing to start: SUPABASE_SERVICE_ROLE_KEY is unset or a dummy placeholder in production."
        )

    # 2) Anon key
    if not resolve_anon_key(runtime):
        raise SystemExit("Refusing to start: SUPABASE_ANON_KEY is unset in production.")

    # 3) Supabase endpoint must use HTTPS in production-like environments
    url = (resolve_supabase_url(runtime) or "").lower()
    if not url:
        raise SystemExit("Refusing to start: SUPABASE_URL is unset in production.")
    if url.startswith("http://"):
        raise SystemExit("Refusing to start: SUPABASE_URL must use https in production (got http).")
