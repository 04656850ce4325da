"""Configuration helpers for feishu-docs CLI."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(os.path.expanduser("~")) / ".feishu-docs.json"
CACHE_PATH = Path(os.path.expanduser("~")) / ".feishu-docs-cache.json"
# Default OpenAPI host used when no domain is configured
DEFAULT_DOMAIN = "https://open.feishu.cn"
# Blocks per descendant write call
BATCH_SIZE = 100
# Seconds subtracted from a token's lifetime before it is treated as expired
TOKEN_SAFETY_MARGIN = 300
# Page size for block and file listings
PAGE_SIZE = 500
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_POLLS = 600


@dataclass(frozen=True)
class AppIdentity:
    """Application credentials exchanged for a tenant access token."""

    app_id: str
    app_secret: str
    domain: str = DEFAULT_DOMAIN

    @property
    def api_base(self) -> str:
        return f"{self.domain.rstrip('/')}/open-apis"


def load_config() -> Dict[str, Any]:
    """Load configuration from disk, ``.env`` and environment."""
    cfg: Dict[str, Any] = {}
    if CONFIG_PATH.exists():
        try:
            cfg = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("Ignoring unreadable config file %s", CONFIG_PATH)
            cfg = {}
    load_dotenv(find_dotenv(usecwd=True), override=False)
    if os.getenv("FEISHU_APP_ID"):
        cfg["app_id"] = os.getenv("FEISHU_APP_ID")
    if os.getenv("FEISHU_APP_SECRET"):
        cfg["app_secret"] = os.getenv("FEISHU_APP_SECRET")
    if os.getenv("FEISHU_DOMAIN"):
        cfg["domain"] = os.getenv("FEISHU_DOMAIN")
    return cfg


def save_config(app_id: str | None, app_secret: str | None, domain: str | None = None) -> Path:
    """Persist configuration to CONFIG_PATH."""
    cfg: Dict[str, Any] = {}
    if CONFIG_PATH.exists():
        try:
            cfg = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
        except ValueError:
            cfg = {}
    if app_id is not None:
        cfg["app_id"] = app_id
    if app_secret is not None:
        cfg["app_secret"] = app_secret
    if domain is not None:
        cfg["domain"] = domain.rstrip("/")
    CONFIG_PATH.write_text(json.dumps(cfg, ensure_ascii=False, indent=2), encoding="utf-8")
    return CONFIG_PATH


def get_app_identity() -> AppIdentity:
    """Return the configured app identity or raise :class:`ConfigError`.

    A ``domain`` ending in ``/open-apis`` is accepted and normalized so the
    HTTP helpers always receive the bare host.
    """
    cfg = load_config()
    missing = [key for key in ("app_id", "app_secret") if not cfg.get(key)]
    if missing:
        names = ", ".join(f"FEISHU_{key.upper()}" for key in missing)
        raise ConfigError(
            f"Missing app credentials: {names}. "
            "Run: feishu-docs auth set --app-id <id> --app-secret <secret>"
        )
    domain = (cfg.get("domain") or DEFAULT_DOMAIN).rstrip("/")
    if domain.endswith("/open-apis"):
        domain = domain[: -len("/open-apis")]
    return AppIdentity(cfg["app_id"], cfg["app_secret"], domain)


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def get_poll_settings() -> tuple[float, int | None]:
    """Return ``(poll_interval, max_polls)`` for import jobs.

    ``FEISHU_IMPORT_MAX_POLLS=0`` disables the attempt ceiling.
    """
    interval = _env_number("FEISHU_POLL_INTERVAL", DEFAULT_POLL_INTERVAL, float)
    max_polls = _env_number("FEISHU_IMPORT_MAX_POLLS", DEFAULT_MAX_POLLS, int)
    if max_polls < 0:
        raise ConfigError(f"FEISHU_IMPORT_MAX_POLLS must be 0 or positive, got {max_polls}")
    return interval, (max_polls or None)
