"""
Local development identity.

``DEV_MODE=true`` signs every request in as the development user so the
service runs without the auth proxy in front of it. The switch is refused
unless ``APP_BASE_URL`` points at a local host (or one listed in
``DEV_MODE_ALLOWED_HOSTS``), or ``ALLOW_DEV_MODE=true`` is set for a run
without a base URL.
"""
import os
from typing import FrozenSet, Optional, Tuple
from urllib.parse import urlsplit

DEV_USER_EMAIL = "dev@localhost"
DEV_USER_NAME = "Development User"

LOCAL_HOSTS: FrozenSet[str] = frozenset({"localhost", "127.0.0.1", "::1"})


def _env_true(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() == "true"


def _base_url_host() -> Optional[str]:
    raw = os.getenv("APP_BASE_URL", "").strip()
    if not raw:
        return None
    return urlsplit(raw if "://" in raw else f"//{raw}").hostname


def allowed_dev_hosts() -> FrozenSet[str]:
    extra = os.getenv("DEV_MODE_ALLOWED_HOSTS", "")
    return LOCAL_HOSTS | {host.strip().lower() for host in extra.split(",") if host.strip()}


def dev_mode_requested() -> bool:
    return _env_true("DEV_MODE")


def dev_mode_active() -> bool:
    """True when DEV_MODE is on and permitted; RuntimeError when on but not permitted."""
    if not dev_mode_requested():
        return False
    host = _base_url_host()
    if host is None:
        if not _env_true("ALLOW_DEV_MODE"):
            raise RuntimeError(
                "DEV_MODE=true requires a localhost APP_BASE_URL or ALLOW_DEV_MODE=true"
            )
        return True
    allowed = allowed_dev_hosts()
    if host not in allowed:
        raise RuntimeError(
            f"DEV_MODE=true is not permitted for APP_BASE_URL host '{host}'. Allowed hosts: {sorted(allowed)}"
        )
    return True


def dev_identity() -> Optional[Tuple[str, str]]:
    """(display name, email) of the development user while dev mode is active."""
    return (DEV_USER_NAME, DEV_USER_EMAIL) if dev_mode_active() else None
