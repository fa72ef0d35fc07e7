"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend (Trio is not a dependency) and
keep the process-wide portal state (environment, gateway factory, settings
override) from leaking between tests.
"""
import os
import sys
from pathlib import Path

import pytest

# Ensure `backend.*` and `scripts.*` are importable across tests
REPO_ROOT = Path(__file__).resolve().parents[2]
TESTS_DIR = REPO_ROOT / "backend" / "tests"
for p in (str(REPO_ROOT), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

from utils.fake_supabase import FakeBackend, FakeClientFactory  # noqa: E402

_PORTAL_ENV_VARS = (
    "PORTAL_ENV",
    "PORTAL_LOCALE",
    "AUTH_COOKIE_NAME",
    "SUPABASE_URL",
    "PUBLIC_SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "PUBLIC_SUPABASE_ANON_KEY",
    "PUBLIC_SUPABASE_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "PORTAL_SUPABASE_URL",
    "PORTAL_SUPABASE_SERVICE_ROLE_KEY",
    "PORTAL_PUBLIC_SUPABASE_URL",
    "PORTAL_PUBLIC_SUPABASE_ANON_KEY",
)

TEST_SUPABASE_URL = "https://project-ref.supabase.co"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_portal_env(monkeypatch: pytest.MonkeyPatch):
    """Start every test from a dev environment without Supabase settings.

    Why:
        A developer shell often carries real Supabase keys; tests that check
        missing-configuration paths must not pick them up.
    """
    for var in _PORTAL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_client_factory():
    """Restore the real gateway factory after tests that install a fake."""
    from backend.web import client_wiring

    original = client_wiring.get_client_factory()
    yield
    client_wiring.set_client_factory(original)


@pytest.fixture(autouse=True)
def _reset_settings_environment_override():
    """Reset main.SETTINGS.override_environment between tests.

    Why:
        Some tests force `prod` semantics via
        `main.SETTINGS.override_environment("prod")`. If a test aborts early the
        override would leak into unrelated tests.
    """
    from backend.web import main

    main.SETTINGS.override_environment(None)
    yield
    main.SETTINGS.override_environment(None)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def portal_app(monkeypatch: pytest.MonkeyPatch, fake_backend: FakeBackend):
    """The ASGI app wired to an in-memory Supabase with full configuration."""
    from backend.web import client_wiring, main
    from backend.web.config import RuntimeConfig

    monkeypatch.setenv("SUPABASE_URL", TEST_SUPABASE_URL)
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-test-key")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-test-key")
    monkeypatch.setattr(main.app.state, "runtime_config", RuntimeConfig())
    client_wiring.set_client_factory(FakeClientFactory(fake_backend))
    return main.app
