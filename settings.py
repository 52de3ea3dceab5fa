# settings.py
"""
Environment-driven configuration.

A .env file in the working directory is loaded first (python-dotenv), then
values are read from the process environment. Empty strings count as unset.
CLI flags override anything returned here.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

AUTH_MODES = ("cli", "browser", "default")


class ConfigError(Exception):
    pass


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v not in ("", None) else default


def _flag(name: str) -> bool:
    return (_env(name, "") or "").strip().lower() in ("1", "true", "yes")


def get_settings(load_env_file: bool = True) -> Dict[str, Any]:
    if load_env_file:
        load_dotenv()

    auth_mode = (_env("AZTAG_AUTH", "cli") or "cli").strip().lower()
    if auth_mode not in AUTH_MODES:
        raise ConfigError(
            f"AZTAG_AUTH must be one of {', '.join(AUTH_MODES)} (got '{auth_mode}')"
        )

    return {
        "subscription": _env("AZURE_SUBSCRIPTION_ID"),
        "tenant_id": _env("AZURE_TENANT_ID"),
        "auth_mode": auth_mode,
        "access_token": _env("AZURE_ACCESS_TOKEN"),
        "resource_group": _env("AZTAG_RESOURCE_GROUP"),
        "rules_file": _env("AZTAG_RULES_FILE"),
        "debug": _flag("AZTAG_DEBUG"),
    }
