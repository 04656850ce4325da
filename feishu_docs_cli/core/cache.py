"""Cache helpers for feishu-docs CLI.

Folder listings are stored in ``CACHE_PATH`` keyed by ``folder:<token>``
(``folder:root`` for the app's root folder).  Access tokens are never cached
on disk.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from .config import CACHE_PATH

logger = logging.getLogger(__name__)


def load_cache() -> dict:
    if CACHE_PATH.exists():
        try:
            return json.loads(CACHE_PATH.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("Ignoring unreadable cache file %s", CACHE_PATH)
            return {}
    return {}


def save_cache(cache: dict) -> None:
    try:
        CACHE_PATH.write_text(json.dumps(cache, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as e:
        logger.warning("Could not write cache file %s: %s", CACHE_PATH, e)


def folder_key(folder_token: Optional[str]) -> str:
    return f"folder:{folder_token or 'root'}"


async def list_folder(
    api: Any,
    folder_token: Optional[str],
    *,
    use_cache: bool = True,
    refresh_cache: bool = False,
) -> List[dict]:
    """Return the entries of *folder_token*, from cache unless refreshing."""
    cache = load_cache() if use_cache else {}
    key = folder_key(folder_token)
    if use_cache and not refresh_cache and key in cache:
        return cache[key]
    files = await api.list_files(folder_token)
    if use_cache:
        cache[key] = files
        save_cache(cache)
    return files


def invalidate_folder(folder_token: Optional[str]) -> None:
    """Drop the cached listing of *folder_token* after it changed."""
    cache = load_cache()
    if cache.pop(folder_key(folder_token), None) is not None:
        save_cache(cache)


def forget_file(file_token: str) -> None:
    """Remove *file_token* from every cached listing."""
    cache = load_cache()
    changed = False
    for key, entries in cache.items():
        if not key.startswith("folder:"):
            continue
        kept = [e for e in entries if e.get("token") != file_token]
        if len(kept) != len(entries):
            cache[key] = kept
            changed = True
    if changed:
        save_cache(cache)


__all__ = ["load_cache", "save_cache", "folder_key", "list_folder", "invalidate_folder", "forget_file"]
