"""
Supabase configuration resolution: runtime config first, then environment
fallbacks in a fixed order; blank values are skipped.
"""
from __future__ import annotations

from backend.web.config import (
    PublicRuntimeConfig,
    RuntimeConfig,
    load_runtime_config,
    resolve_anon_key,
    resolve_service_role_key,
    resolve_supabase_settings,
    resolve_supabase_url,
)


def test_url_resolution_order():
    runtime = RuntimeConfig(supabase_url="https://server", public=PublicRuntimeConfig(supabase_url="https://public"))
    env = {"SUPABASE_URL": "https://env", "PUBLIC_SUPABASE_URL": "https://env-public"}

    assert resolve_supabase_url(runtime, env) == "https://server"
    assert resolve_supabase_url(RuntimeConfig(public=PublicRuntimeConfig(supabase_url="https://public")), env) == "https://public"
    assert resolve_supabase_url(RuntimeConfig(), env) == "https://env"
    assert resolve_supabase_url(None, {"PUBLIC_SUPABASE_URL": "https://env-public"}) == "https://env-public"
    assert resolve_supabase_url(None, {}) is None


def test_anon_key_resolution_order():
    env = {"SUPABASE_ANON_KEY": "a1", "PUBLIC_SUPABASE_ANON_KEY": "a2", "PUBLIC_SUPABASE_KEY": "a3"}
    runtime = RuntimeConfig(public=PublicRuntimeConfig(supabase_anon_key="rt"))

    assert resolve_anon_key(runtime, env) == "rt"
    assert resolve_anon_key(None, env) == "a1"
    assert resolve_anon_key(None, {"PUBLIC_SUPABASE_ANON_KEY": "a2", "PUBLIC_SUPABASE_KEY": "a3"}) == "a2"
    assert resolve_anon_key(None, {"PUBLIC_SUPABASE_KEY": "a3"}) == "a3"


def test_service_key_resolution_order():
    runtime = RuntimeConfig(supabase_service_role_key="rt-service")
    env = {"SUPABASE_SERVICE_ROLE_KEY": "env-service"}

    assert resolve_service_role_key(runtime, env) == "rt-service"
    assert resolve_service_role_key(None, env) == "env-service"
    assert resolve_service_role_key(None, {}) is None


def test_blank_values_are_skipped():
    runtime = RuntimeConfig(supabase_url="  ")
    assert resolve_supabase_url(runtime, {"SUPABASE_URL": "", "PUBLIC_SUPABASE_URL": " https://x "}) == "https://x"


def test_settings_bundle_and_runtime_loading():
    env = {
        "PORTAL_SUPABASE_URL": "https://server",
        "PORTAL_PUBLIC_SUPABASE_ANON_KEY": "anon",
        "SUPABASE_SERVICE_ROLE_KEY": "service",
    }
    runtime = load_runtime_config(env)
    assert runtime.supabase_url == "https://server"
    assert runtime.public.supabase_anon_key == "anon"
    assert runtime.supabase_service_role_key is None

    settings = resolve_supabase_settings(runtime, env)
    assert (settings.url, settings.anon_key, settings.service_role_key) == ("https://server", "anon", "service")


def test_resolution_reads_process_env_by_default(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://from-env")
    assert resolve_supabase_url(None) == "https://from-env"
