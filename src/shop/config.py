# deployment-time configuration, read from the environment
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from shop.errors import ConfigurationError

DEFAULT_STORE_ID = "shine_husna_final"
DEFAULT_TITLE = "Shine with Husna"
DEFAULT_CURRENCY = "AFN"
DEFAULT_POLL_INTERVAL = 1.0

REQUIRED_VARS = ("STOREFRONT_DB_PATH",)


@dataclass(frozen=True)
class Config:
    """
    Connection parameters and the admin shared secret.

    Fields:
      - db_path: sqlite file shared by every client of this store
      - store_id: namespace for collection paths (stores/<store_id>/...)
      - admin_password: shared secret for the dashboard, None keeps it locked
      - auth_token: pre-shared token, None means anonymous sign-in
    """

    db_path: str
    store_id: str = DEFAULT_STORE_ID
    admin_password: Optional[str] = None
    auth_token: Optional[str] = None
    title: str = DEFAULT_TITLE
    currency: str = DEFAULT_CURRENCY
    contact_phone: str = ""
    poll_interval: float = DEFAULT_POLL_INTERVAL


def _get(environ: Mapping[str, str], key: str) -> Optional[str]:
    val = environ.get(key)
    if val is None:
        return None
    val = val.strip()
    return val or None


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Build a Config from environment variables.

    Raises ConfigurationError naming every missing or malformed variable.
    """
    if environ is None:
        environ = os.environ

    problems = [key for key in REQUIRED_VARS if _get(environ, key) is None]

    poll_interval = DEFAULT_POLL_INTERVAL
    raw_interval = _get(environ, "STOREFRONT_POLL_INTERVAL")
    if raw_interval is not None:
        try:
            poll_interval = float(raw_interval)
        except ValueError:
            problems.append("STOREFRONT_POLL_INTERVAL")
        else:
            if poll_interval <= 0:
                problems.append("STOREFRONT_POLL_INTERVAL")

    if problems:
        raise ConfigurationError(problems)

    return Config(
        db_path=_get(environ, "STOREFRONT_DB_PATH"),
        store_id=_get(environ, "STOREFRONT_STORE_ID") or DEFAULT_STORE_ID,
        admin_password=_get(environ, "STOREFRONT_ADMIN_PASSWORD"),
        auth_token=_get(environ, "STOREFRONT_AUTH_TOKEN"),
        title=_get(environ, "STOREFRONT_TITLE") or DEFAULT_TITLE,
        currency=_get(environ, "STOREFRONT_CURRENCY") or DEFAULT_CURRENCY,
        contact_phone=_get(environ, "STOREFRONT_CONTACT_PHONE") or "",
        poll_interval=poll_interval,
    )
