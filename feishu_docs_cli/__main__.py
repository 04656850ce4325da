"""Command line entry point for feishu-docs CLI."""

from __future__ import annotations

import argparse
import asyncio
import inspect
import logging
import sys

from .core import (
    DEFAULT_DOMAIN,
    FeishuDocsError,
    PartialWriteFailure,
    PollCancelled,
    PollTimeout,
    configure_logging,
)
from .commands import (
    cmd_auth_set,
    cmd_auth_token,
    cache_info,
    cache_clear,
    cmd_docs_get,
    cmd_docs_get_blocks,
    cmd_docs_create,
    cmd_docs_update,
    cmd_docs_delete,
    cmd_docs_list,
    cmd_import_file,
    cmd_import_status,
)

logger = logging.getLogger("feishu_docs_cli")

EPILOG = """\
examples:
  feishu-docs get -d doccxxxxxxxx
  feishu-docs get -d doccxxxxxxxx -o output.md --format markdown
  feishu-docs create -f fldcxxxxxxxx -t "My document" --file content.md
  feishu-docs import-file -f ./notes.md --folder-token fldcxxxxxxxx --type docx --ext md
  feishu-docs list --folder-token fldcxxxxxxxx
  feishu-docs delete -d doccxxxxxxxx --force
  feishu-docs update -d doccxxxxxxxx --file new-content.md

configuration (~/.feishu-docs.json, environment or .env):
  FEISHU_APP_ID=cli_xxxxxxxx
  FEISHU_APP_SECRET=xxxxxxxx
  FEISHU_DOMAIN=https://open.feishu.cn

required app scopes: docx:document, drive:drive, drive:file, drive:importTask
"""


def _poll_count(value: str) -> int:
    try:
        count = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if count < 0:
        raise argparse.ArgumentTypeError("must be 0 or a positive number of polls")
    return count


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feishu-docs",
        description="Feishu document management CLI",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging (same as DEBUG=1)")
    sub = parser.add_subparsers(dest="cmd")

    # auth
    p_auth = sub.add_parser("auth", help="Authentication")
    sub_auth = p_auth.add_subparsers(dest="auth_cmd")

    p_auth_set = sub_auth.add_parser("set", help="Save app credentials to ~/.feishu-docs.json")
    p_auth_set.add_argument("--app-id", help="App ID (cli_...)")
    p_auth_set.add_argument("--app-secret", help="App secret")
    p_auth_set.add_argument("--domain", help=f"OpenAPI host (default: {DEFAULT_DOMAIN})")
    p_auth_set.set_defaults(func=cmd_auth_set)

    p_auth_token = sub_auth.add_parser("token", help="Fetch a tenant access token and show its expiry")
    p_auth_token.add_argument("--show", action="store_true", help="Print the full token")
    p_auth_token.set_defaults(func=cmd_auth_token)

    # cache utils
    p_cache = sub.add_parser("cache", help="Folder listing cache utilities")
    sub_cache = p_cache.add_subparsers(dest="cache_cmd")
    p_cache_info = sub_cache.add_parser("info", help="Show cache location and summary")
    p_cache_info.set_defaults(func=cache_info)
    p_cache_clear = sub_cache.add_parser("clear", help="Delete cache file")
    p_cache_clear.set_defaults(func=cache_clear)

    # documents
    p_get = sub.add_parser("get", help="Read a document")
    p_get.add_argument("-d", "--doc-token", required=True, help="Document token")
    p_get.add_argument("-o", "--output", help="Write to file instead of stdout")
    p_get.add_argument("--format", choices=["json", "markdown", "text"], default="json")
    p_get.set_defaults(func=cmd_docs_get)

    p_blocks = sub.add_parser("get-blocks", help="Dump a document's blocks as JSON")
    p_blocks.add_argument("-d", "--doc-token", required=True, help="Document token")
    p_blocks.add_argument("-o", "--output", help="Write to file instead of stdout")
    p_blocks.set_defaults(func=cmd_docs_get_blocks)

    p_create = sub.add_parser("create", help="Create a document")
    p_create.add_argument("-f", "--folder-token", required=True, help="Parent folder token (__pick__ to browse)")
    p_create.add_argument("-t", "--title", default="Untitled", help="Document title")
    src = p_create.add_mutually_exclusive_group()
    src.add_argument("--content", help="Inline Markdown/HTML content")
    src.add_argument("--file", help="Read content from a local file")
    p_create.add_argument("--refresh-cache", action="store_true", help="Refetch folder listings when browsing")
    p_create.set_defaults(func=cmd_docs_create)

    p_update = sub.add_parser("update", help="Replace or append document content")
    p_update.add_argument("-d", "--doc-token", required=True, help="Document token")
    src = p_update.add_mutually_exclusive_group()
    src.add_argument("--content", help="Inline Markdown/HTML content")
    src.add_argument("--file", help="Read content from a local file")
    p_update.add_argument("--append", action="store_true", help="Append instead of replacing")
    p_update.set_defaults(func=cmd_docs_update)

    p_delete = sub.add_parser("delete", help="Delete a document")
    p_delete.add_argument("-d", "--doc-token", required=True, help="Document token")
    p_delete.add_argument("--type", default="docx", help="Drive file type (default: docx)")
    p_delete.add_argument("--force", action="store_true", help="Do not ask for confirmation")
    p_delete.set_defaults(func=cmd_docs_delete)

    p_list = sub.add_parser("list", help="List folder contents")
    p_list.add_argument("--folder-token", help="Folder token (default: root)")
    p_list.add_argument("--refresh-cache", action="store_true", help="Ignore cached listing")
    p_list.add_argument("--json", action="store_true", help="Print raw JSON")
    p_list.set_defaults(func=cmd_docs_list)

    # import
    p_imp = sub.add_parser("import-file", help="Import a local file as a cloud document")
    p_imp.add_argument("-f", "--file", required=True, help="Local file path")
    p_imp.add_argument("--folder-token", required=True, help="Destination folder token (__pick__ to browse)")
    p_imp.add_argument("--type", default="docx", help="Target type: docx, sheet, bitable")
    p_imp.add_argument("--ext", help="Source extension: md, txt, docx, xlsx, csv (default: from file name)")
    p_imp.add_argument("--name", help="Name of the uploaded file and resulting document")
    p_imp.add_argument("--max-polls", type=_poll_count, help="Give up after N status polls (0 = never)")
    p_imp.add_argument("--refresh-cache", action="store_true", help="Refetch folder listings when browsing")
    p_imp.set_defaults(func=cmd_import_file)

    p_status = sub.add_parser("import-status", help="Poll a previously created import task")
    p_status.add_argument("--ticket", required=True, help="Import task ticket")
    p_status.add_argument("--max-polls", type=_poll_count, help="Give up after N status polls (0 = never)")
    p_status.set_defaults(func=cmd_import_status)

    parser.set_defaults(_groups={"auth": p_auth, "cache": p_cache})
    return parser


def _report_error(exc: FeishuDocsError) -> int:
    print(f"❌ {exc}", file=sys.stderr)
    if isinstance(exc, PartialWriteFailure):
        print(f"   {exc.committed} of {exc.total} blocks were written and kept.", file=sys.stderr)
    elif isinstance(exc, (PollTimeout, PollCancelled)):
        print(f"   Resume with: feishu-docs import-status --ticket {exc.job.ticket}", file=sys.stderr)
    logger.debug("Command failed", exc_info=exc)
    return exc.exit_code


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    if not args.cmd:
        parser.print_help()
        return 0
    group = args._groups.get(args.cmd)
    if group is not None and not getattr(args, f"{args.cmd}_cmd", None):
        group.print_help()
        return 0

    try:
        result = args.func(args)
        if inspect.iscoroutine(result):
            result = asyncio.run(result)
    except FeishuDocsError as e:
        return _report_error(e)
    except KeyboardInterrupt:
        print("\nCancelled by user", file=sys.stderr)
        return 130
    return result or 0


if __name__ == "__main__":
    sys.exit(main())
