"""Document related commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List

from ..core import (
    BatchUploader,
    ConfigError,
    confirm,
    forget_file,
    format_rows,
    invalidate_folder,
    list_folder,
    looks_like_markdown,
    open_client,
    pick_folder,
    read_content,
    render_document,
    write_output,
)

PICK = "__pick__"

TYPE_LABELS = {"docx": "📄 docx", "doc": "📄 doc", "folder": "📁 folder", "sheet": "📊 sheet"}


async def cmd_docs_get(args):
    print(f"Reading document {args.doc_token}", file=sys.stderr)
    async with open_client() as api:
        meta = await api.get_document(args.doc_token)
        content = await api.get_raw_content(args.doc_token)
    write_output(render_document(meta, content, args.format), args.output, "document")


async def cmd_docs_get_blocks(args):
    print(f"Fetching blocks of {args.doc_token}", file=sys.stderr)
    async with open_client() as api:
        items = await api.list_blocks(args.doc_token)
    text = json.dumps({"items": items}, ensure_ascii=False, indent=2)
    write_output(text, args.output, f"{len(items)} blocks")


async def _convert(api, content: str, file: str | None) -> List[dict]:
    content_type = "markdown" if looks_like_markdown(content, file) else "html"
    data = await api.convert_content(content, content_type)
    return list(data.get("blocks") or [])


async def _root_children_count(api, document_id: str) -> int:
    for block in await api.list_blocks(document_id):
        if block.get("block_id") == document_id:
            return len(block.get("children") or [])
    return 0


async def cmd_docs_create(args):
    content = read_content(args.content, args.file)
    async with open_client() as api:
        folder = args.folder_token
        if folder == PICK:
            folder = await pick_folder(api, refresh_cache=args.refresh_cache)

        print(f"Creating document: {args.title}")
        created = await api.create_document(folder, args.title)
        doc: Dict[str, Any] = created.get("document") or {}
        document_id = doc.get("document_id")
        if not document_id:
            raise ConfigError("Create response did not include a document id.")
        print(f"Created document {document_id} ({doc.get('title')})")
        invalidate_folder(folder)

        if content:
            blocks = await _convert(api, content, args.file)
            if not blocks:
                print("Nothing to add: conversion produced no blocks")
            else:
                uploader = BatchUploader(api, progress=True)
                applied = await uploader.upload_append(document_id, blocks)
                print(f"Added {applied} blocks")

    info_file = Path(f"doc-{document_id}.json")
    info_file.write_text(json.dumps(created, ensure_ascii=False, indent=2), encoding="utf-8")
    print(f"Saved document info to {info_file}")


async def cmd_docs_update(args):
    content = read_content(args.content, args.file)
    if not content:
        raise ConfigError("Provide --content or --file.")
    document_id = args.doc_token
    async with open_client() as api:
        existing = await _root_children_count(api, document_id)
        start = existing
        if not args.append and existing:
            await api.delete_children(document_id, document_id, 0, existing)
            print(f"Removed {existing} existing blocks")
            start = 0
        blocks = await _convert(api, content, args.file)
        applied = await BatchUploader(api, progress=True).upload_append(document_id, blocks, start)
    print(f"Updated document {document_id}: {applied} blocks written")


async def cmd_docs_delete(args):
    if not args.force:
        if not await confirm(f"Delete document {args.doc_token}?"):
            print("Not deleted. Re-run with --force to skip the prompt.", file=sys.stderr)
            return 1
    async with open_client() as api:
        await api.delete_file(args.doc_token, args.type)
    forget_file(args.doc_token)
    print(f"Deleted {args.doc_token}")


async def cmd_docs_list(args):
    async with open_client() as api:
        items = await list_folder(api, args.folder_token, refresh_cache=args.refresh_cache)
    rows = [
        {
            "type": TYPE_LABELS.get(it.get("type"), it.get("type") or ""),
            "name": it.get("name") or "",
            "token": it.get("token") or "",
        }
        for it in items
    ]
    if args.json:
        print(json.dumps({"total": len(items), "files": items}, ensure_ascii=False, indent=2))
    elif not rows:
        print("Folder is empty")
    else:
        format_rows(rows, ["type", "name", "token"])
