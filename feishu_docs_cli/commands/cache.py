"""Cache management commands."""

from __future__ import annotations

from ..core import CACHE_PATH, format_rows, load_cache


def _folder_names(cache: dict) -> dict:
    """Map folder tokens to names as seen in any cached listing."""
    names = {"root": "(root)"}
    for entries in cache.values():
        for e in entries:
            if e.get("type") == "folder" and e.get("token"):
                names[e["token"]] = e.get("name") or e["token"]
    return names


def cache_info(_args):
    p = CACHE_PATH
    if not p.exists():
        print(f"No cache file at: {p}")
        return
    print(f"Cache file: {p}  ({p.stat().st_size} bytes)")
    listings = {k.split(":", 1)[1]: v for k, v in load_cache().items() if k.startswith("folder:")}
    if not listings:
        print("No cached folder listings")
        return
    names = _folder_names(listings)
    rows = [
        {
            "folder": names.get(token, "?"),
            "token": token,
            "subfolders": sum(1 for e in entries if e.get("type") == "folder"),
            "files": sum(1 for e in entries if e.get("type") != "folder"),
        }
        for token, entries in sorted(listings.items())
    ]
    format_rows(rows, ["folder", "token", "subfolders", "files"])


def cache_clear(_args):
    p = CACHE_PATH
    if p.exists():
        p.unlink()
        print(f"Removed {p}")
    else:
        print("Nothing to clear.")
