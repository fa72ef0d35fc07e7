"""
Security config guard tests.

Production/staging environments fail fast when Supabase secrets are unset,
dummy placeholders, or point to plain-http endpoints; development stays
permissive for local convenience.
"""
from __future__ import annotations

import pytest

from backend.web import config as cfg


def _prod_env(monkeypatch: pytest.MonkeyPatch, env: str = "prod") -> None:
    monkeypatch.setenv("PORTAL_ENV", env)
    monkeypatch.setenv("SUPABASE_URL", "https://ref.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-real")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-real")


@pytest.mark.parametrize("env", ["prod", "production", "stage", "staging"])
def test_prod_like_env_with_complete_config_starts(monkeypatch: pytest.MonkeyPatch, env: str):
    _prod_env(monkeypatch, env)
    cfg.ensure_secure_config_on_startup()


@pytest.mark.parametrize("key", [None, "DUMMY_DO_NOT_USE", "dummy_do_not_use"])
def test_service_role_key_guard_prod_raises(monkeypatch: pytest.MonkeyPatch, key):
    """In prod-like env, a dummy/unset service role key must abort startup."""
    _prod_env(monkeypatch)
    if key is None:
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY")
    else:
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", key)

    with pytest.raises(SystemExit):
        cfg.ensure_secure_config_on_startup()


def test_service_role_key_guard_dev_allows_dummy(monkeypatch: pytest.MonkeyPatch):
    """In dev env, a dummy service role key is tolerated for local setups."""
    monkeypatch.setenv("PORTAL_ENV", "dev")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "DUMMY_DO_NOT_USE")
    cfg.ensure_secure_config_on_startup()


def test_missing_anon_key_prod_raises(monkeypatch: pytest.MonkeyPatch):
    _prod_env(monkeypatch)
    monkeypatch.delenv("SUPABASE_ANON_KEY")
    with pytest.raises(SystemExit):
        cfg.ensure_secure_config_on_startup()


def test_plain_http_supabase_url_prod_raises(monkeypatch: pytest.MonkeyPatch):
    _prod_env(monkeypatch)
    monkeypatch.setenv("SUPABASE_URL", "http://ref.supabase.co")
    with pytest.raises(SystemExit) as ei:
        cfg.ensure_secure_config_on_startup()
    assert "https" in str(ei.value)


def test_missing_supabase_url_prod_raises(monkeypatch: pytest.MonkeyPatch):
    _prod_env(monkeypatch)
    monkeypatch.delenv("SUPABASE_URL")
    with pytest.raises(SystemExit):
        cfg.ensure_secure_config_on_startup()


def test_runtime_config_values_satisfy_guard(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PORTAL_ENV", "staging")
    monkeypatch.setenv("PORTAL_SUPABASE_URL", "https://ref.supabase.co")
    monkeypatch.setenv("PORTAL_SUPABASE_SERVICE_ROLE_KEY", "service-real")
    monkeypatch.setenv("PORTAL_PUBLIC_SUPABASE_ANON_KEY", "anon-real")
    cfg.ensure_secure_config_on_startup()
