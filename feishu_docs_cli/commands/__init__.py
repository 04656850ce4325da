"""Command handlers for feishu-docs CLI."""

from .auth import cmd_auth_set, cmd_auth_token
from .cache import cache_info, cache_clear
from .documents import (
    cmd_docs_get,
    cmd_docs_get_blocks,
    cmd_docs_create,
    cmd_docs_update,
    cmd_docs_delete,
    cmd_docs_list,
)
from .import_cmd import cmd_import_file, cmd_import_status

__all__ = [
    "cmd_auth_set",
    "cmd_auth_token",
    "cache_info",
    "cache_clear",
    "cmd_docs_get",
    "cmd_docs_get_blocks",
    "cmd_docs_create",
    "cmd_docs_update",
    "cmd_docs_delete",
    "cmd_docs_list",
    "cmd_import_file",
    "cmd_import_status",
]
