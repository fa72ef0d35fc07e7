"""
Shared helper for wiring Supabase-backed gateways.

Why:
    Guards, pages and the admin API all need a gateway, either bound to the
    caller token (anon key, row-level security applies) or to the Service Role
    key. All of them come from one module-level factory; tests install an
    in-memory factory via `set_client_factory`.

Security:
    Service Role gateways are server-side only. Neither keys nor tokens are
    logged.
"""
from __future__ import annotations

import logging
from typing import Optional

from backend.identity_access.provisioning import GatewayFactory, SupabaseSettings
from backend.identity_access.supabase_gateway import SupabaseGateway

logger = logging.getLogger("portal.web")


class SupabaseClientFactory:
    """Create gateways over real `supabase` clients."""

    def user_gateway(self, *, url: str, anon_key: str, access_token: str) -> SupabaseGateway:
        # Lazy imports keep the client library out of module import time.
        from supabase import create_client
        from supabase.lib.client_options import ClientOptions

        client = create_client(
            url,
            anon_key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )
        # Table queries run as the caller so row-level security applies.
        client.postgrest.auth(access_token)
        return SupabaseGateway(client)

    def service_gateway(self, *, url: str, service_key: str) -> SupabaseGateway:
        from supabase import create_client
        from supabase.lib.client_options import ClientOptions

        client = create_client(
            url,
            service_key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )
        return SupabaseGateway(client)


_FACTORY: GatewayFactory = SupabaseClientFactory()


def get_client_factory() -> GatewayFactory:
    return _FACTORY


def set_client_factory(factory: GatewayFactory) -> None:
    """Install a gateway factory (tests use in-memory fakes)."""
    global _FACTORY
    _FACTORY = factory


def user_gateway_or_none(settings: SupabaseSettings, access_token: str) -> Optional[SupabaseGateway]:
    """Build a caller-bound gateway, or None when public config is missing.

    Behavior:
        - Returns None when URL or anon key are not configured.
        - Returns None (and logs a warning with the exception class) when the
          client cannot be created, so page guards degrade to "anonymous".
    """
    if not settings.url or not settings.anon_key:
        return None
    try:
        return _FACTORY.user_gateway(url=settings.url, anon_key=settings.anon_key, access_token=access_token)
    except Exception as exc:
        logger.warning("Supabase client unavailable: %s", exc.__class__.__name__)
        return None


__all__ = [
    "SupabaseClientFactory",
    "get_client_factory",
    "set_client_factory",
    "user_gateway_or_none",
]
