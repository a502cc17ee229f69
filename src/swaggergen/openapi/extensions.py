"""Vendor extension (``x-*``) merging."""

from typing import Any

import structlog

log = structlog.get_logger(__name__)

EXTENSION_PREFIX = "x-"


def merge(target: dict[str, Any] | None, extensions: dict[str, Any] | None) -> dict[str, Any]:
    """Return ``target`` updated with ``extensions``; later keys win.

    Keys without the ``x-`` prefix are not valid Swagger extensions and are
    dropped. Neither input is mutated.
    """
    merged = dict(target or {})
    for key, value in (extensions or {}).items():
        if not key.startswith(EXTENSION_PREFIX):
            log.warning("extension_key_dropped", key=key)
            continue
        merged[key] = value
    return merged
