"""Utility functions for feishu-docs CLI."""

from __future__ import annotations

import json
import zlib
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ConfigError

__all__ = [
    "adler32_checksum",
    "format_rows",
    "looks_like_markdown",
    "read_content",
    "render_document",
    "write_output",
]


def adler32_checksum(content: bytes) -> str:
    """Return the Adler-32 checksum of *content* as a decimal string."""
    return str(zlib.adler32(content) & 0xFFFFFFFF)


def format_rows(rows: List[Dict[str, Any]], fields: List[str], max_width: int = 60) -> None:
    """Print *rows* as an aligned table; cells wider than *max_width* are cut."""
    if not rows:
        print("(no data)")
        return

    def cell(value: Any) -> str:
        text = str(value)
        return text if len(text) <= max_width else text[: max_width - 1] + "…"

    table = [[f.upper() for f in fields]] + [[cell(r.get(f, "")) for f in fields] for r in rows]
    widths = [max(len(line[i]) for line in table) for i in range(len(fields))]
    for n, line in enumerate(table):
        print("  ".join(text.ljust(w) for text, w in zip(line, widths)).rstrip())
        if n == 0:
            print("  ".join("-" * w for w in widths))


def read_content(content: Optional[str], file: Optional[str]) -> str:
    """Return text from ``--file`` when given, else the inline ``--content``."""
    if file:
        path = Path(file)
        if not path.is_file():
            raise ConfigError(f"File not found: {path}")
        return path.read_text(encoding="utf-8")
    return content or ""


def looks_like_markdown(content: str, file: Optional[str] = None) -> bool:
    """Guess whether *content* is Markdown rather than HTML."""
    if file and file.lower().endswith((".md", ".markdown")):
        return True
    return "#" in content or "- " in content


def render_document(meta: Dict[str, Any], content: Dict[str, Any], fmt: str) -> str:
    """Render document metadata and raw content as json, markdown or text."""
    doc = meta.get("document") or {}
    title = doc.get("title") or "(untitled)"
    body = content.get("content") or ""
    if fmt == "json":
        return json.dumps({"meta": meta, "content": content}, ensure_ascii=False, indent=2)
    if fmt == "markdown":
        return f"# {title}\n\n{body}"
    lines = [
        f"Title: {title}",
        f"Document ID: {doc.get('document_id', '')}",
        f"Revision: {doc.get('revision_id', '')}",
        "",
        "Content:",
        body or "(empty)",
    ]
    return "\n".join(lines)


def write_output(text: str, output: Optional[str], label: str) -> None:
    """Write *text* to *output* or print it with a heading."""
    if output:
        Path(output).write_text(text, encoding="utf-8")
        print(f"Wrote {label} to {output}")
    else:
        print(f"--- {label} ---")
        print(text)
