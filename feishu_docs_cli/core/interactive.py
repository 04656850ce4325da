"""Interactive helpers using InquirerPy.

Prompts only run when stdin is a terminal; callers treat a non-interactive
session the same as a declined prompt.
"""

from __future__ import annotations

import sys
from typing import Any, List, Optional, Tuple

from InquirerPy import inquirer
from InquirerPy.base.control import Choice

from .cache import list_folder
from .errors import ConfigError

USE_THIS = "__use__"
GO_UP = "__up__"


def is_interactive() -> bool:
    return sys.stdin.isatty()


async def _execute(prompt):
    """Run a prompt; ``Ctrl-C`` counts as no answer."""
    try:
        return await prompt.execute_async()
    except KeyboardInterrupt:
        print("\nCancelled by user", file=sys.stderr)
        return None


async def confirm(message: str, default: bool = False) -> bool:
    if not is_interactive():
        return False
    return bool(await _execute(inquirer.confirm(message=message, default=default)))


def _folder_choices(entries: List[dict], can_go_up: bool) -> List[Choice]:
    choices = [Choice(USE_THIS, name="[Use this folder]")]
    if can_go_up:
        choices.append(Choice(GO_UP, name=".."))
    folders = sorted(
        (e for e in entries if e.get("type") == "folder"),
        key=lambda e: (e.get("name") or "").lower(),
    )
    for f in folders:
        choices.append(Choice(f.get("token"), name=f"📁 {f.get('name') or '(untitled)'}"))
    return choices


async def pick_folder(api: Any, *, refresh_cache: bool = False) -> str:
    """Browse folders starting at the root and return the chosen token."""
    if not is_interactive():
        raise ConfigError("Folder picking needs an interactive terminal; pass --folder-token.")

    root = await api.get_root_folder()
    # Stack of (token, label) for the current path
    path: List[Tuple[str, str]] = [(root, "root")]
    while True:
        token, _ = path[-1]
        entries = await list_folder(api, token, refresh_cache=refresh_cache)
        label = " / ".join(name for _, name in path)
        answer: Optional[str] = await _execute(
            inquirer.select(
                message=f"Folder: {label}",
                choices=_folder_choices(entries, can_go_up=len(path) > 1),
            )
        )
        if answer is None:
            raise ConfigError("No folder selected.")
        if answer == USE_THIS:
            return token
        if answer == GO_UP:
            path.pop()
            continue
        name = next((e.get("name") for e in entries if e.get("token") == answer), answer)
        path.append((answer, name))


__all__ = ["confirm", "is_interactive", "pick_folder"]
