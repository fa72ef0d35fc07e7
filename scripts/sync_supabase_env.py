#!/usr/bin/env python3
"""
Sync local Supabase keys into `.env` for the Commission Portal.

Why:
    After `supabase start` / `db reset` the anon and Service Role keys change
    and the API URL may differ. The portal needs all three (`SUPABASE_URL`,
    `SUPABASE_ANON_KEY`, `SUPABASE_SERVICE_ROLE_KEY`) to authenticate callers
    and provision invited accounts.

Behavior:
    - Runs `supabase status -o json` (fail-fast on errors).
    - Extracts API URL, ANON_KEY and SERVICE_ROLE_KEY and updates them in `.env`.
    - Verifies that the REST and Auth services are reported as running; exits
      non-zero otherwise.
    - Creates a backup `.env.bak` before each write.

Security:
    Local dev/test only. Never prints secret values.
"""
from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path
from typing import Any, NamedTuple, Optional

ENV_PATH = Path(".env")
BACKUP_PATH = Path(".env.bak")
REQUIRED_SERVICES = ("rest", "auth")


class CoreFields(NamedTuple):
    api_url: Optional[str]
    anon_key: Optional[str]
    service_role_key: Optional[str]
    services_ok: bool


def _load_supabase_status() -> dict:
    try:
        proc = subprocess.run(
            ["supabase", "status", "-o", "json"],
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise SystemExit("supabase CLI not found. Install it before running this script.") from exc
    except subprocess.CalledProcessError as exc:
        raise SystemExit(f"supabase status failed: {exc.stderr or exc.stdout}") from exc

    # The CLI may print a banner before the JSON payload.
    text = proc.stdout.strip()
    json_start = text.find("{")
    if json_start == -1:
        raise SystemExit("Unexpected supabase status output (no JSON payload found).")
    data = json.loads(text[json_start:])
    if not isinstance(data, dict):
        raise SystemExit("Unexpected supabase status JSON payload.")
    return data


def _get_ci(d: Any, *keys: str) -> Any:
    """Case-insensitive lookup of the first present key."""
    if not isinstance(d, dict):
        return None
    lowered = {str(k).lower(): v for k, v in d.items()}
    for k in keys:
        v = lowered.get(k.lower())
        if v is not None:
            return v
    return None


def _extract_core_fields(data: dict) -> CoreFields:
    """Extract API URL, both keys and the service health flag.

    Supabase CLI JSON differs by version: URL may sit at top level
    (`API_URL`) or in an `api` section.
    """
    url = _get_ci(data, "API_URL")
    if not url:
        url = _get_ci(_get_ci(data, "api"), "url")
    anon = _get_ci(data, "ANON_KEY")
    service = _get_ci(data, "SERVICE_ROLE_KEY")

    services_ok = True
    services = _get_ci(data, "services")
    if isinstance(services, dict):
        for name in REQUIRED_SERVICES:
            sec = _get_ci(services, name)
            # Unknown shapes do not fail the check.
            if isinstance(sec, dict) and str(_get_ci(sec, "status") or "").lower() != "running":
                services_ok = False

    return CoreFields(
        str(url) if url else None,
        str(anon) if anon else None,
        str(service) if service else None,
        services_ok,
    )


def _update_env(env_path: Path, key: str, value: str) -> None:
    if not env_path.exists():
        raise SystemExit(f"{env_path} does not exist.")
    lines = env_path.read_text().splitlines()
    prefix = f"{key}="
    for idx, line in enumerate(lines):
        if line.startswith(prefix):
            lines[idx] = f"{prefix}{value}"
            break
    else:
        lines.append(f"{prefix}{value}")
    shutil.copy2(env_path, env_path.with_suffix(".bak"))
    env_path.write_text("\n".join(lines) + "\n")


def main() -> None:
    fields = _extract_core_fields(_load_supabase_status())

    if not fields.service_role_key or fields.service_role_key.upper() == "DUMMY_DO_NOT_USE":
        raise SystemExit("Supabase Service Role key is missing or a dummy placeholder.")
    if not fields.anon_key:
        raise SystemExit("Supabase anon key not found in status output.")
    if not fields.api_url:
        raise SystemExit("Supabase API URL not found in status output.")
    if not fields.services_ok:
        raise SystemExit("Supabase services not healthy (rest/auth not running).")

    _update_env(ENV_PATH, "SUPABASE_URL", fields.api_url)
    _update_env(ENV_PATH, "SUPABASE_ANON_KEY", fields.anon_key)
    _update_env(ENV_PATH, "SUPABASE_SERVICE_ROLE_KEY", fields.service_role_key)
    print(f"Synced SUPABASE_URL and Supabase keys in {ENV_PATH} (backup saved to {BACKUP_PATH}).")


if __name__ == "__main__":
    main()
