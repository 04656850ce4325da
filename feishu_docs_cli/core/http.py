"""Async HTTP helpers for the Feishu OpenAPI.

Requests go through a shared :class:`httpx.AsyncClient`.  Every response from
the OpenAPI is a JSON envelope of the form ``{"code": 0, "msg": "success",
"data": {...}}``; the helpers unwrap it and raise
:class:`~feishu_docs_cli.core.errors.TransportFailure` for HTTP errors,
network errors and non-zero ``code`` values alike.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from .errors import TransportFailure

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
UPLOAD_TIMEOUT = 120.0


async def http_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    token: str | None,
    payload: Dict[str, Any] | None = None,
    *,
    params: Mapping[str, Any] | None = None,
) -> Dict[str, Any]:
    """Perform a JSON request and return the envelope's ``data`` member.

    ``token`` may be ``None`` for the token endpoint itself, which is called
    without an ``Authorization`` header.
    """

    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    if payload is not None:
        # JSON body for POST/PATCH/DELETE requests
        headers["Content-Type"] = "application/json; charset=utf-8"
    logger.debug("%s %s", method.upper(), url)
    try:
        resp = await client.request(
            method.upper(),
            url,
            headers=headers,
            params=_clean_params(params),
            content=json.dumps(payload).encode("utf-8") if payload is not None else None,
            timeout=DEFAULT_TIMEOUT,
        )
    except httpx.HTTPError as e:
        raise TransportFailure(f"Network error: {e}") from e
    return _unwrap(resp)


async def http_multipart_post(
    client: httpx.AsyncClient,
    url: str,
    token: str,
    fields: Dict[str, object],
) -> Dict[str, Any]:
    """Send a multipart/form-data POST request.

    ``fields`` maps names to plain values or to ``(filename, content, ctype)``
    tuples for file parts.
    """

    data: Dict[str, str] = {}
    files: Dict[str, tuple] = {}
    for name, value in (fields or {}).items():
        if isinstance(value, tuple):
            files[name] = value
        else:
            data[name] = str(value)

    headers = {"Accept": "application/json", "Authorization": f"Bearer {token}"}
    logger.debug("POST %s (multipart, fields=%s)", url, sorted(data))
    try:
        resp = await client.post(url, headers=headers, data=data, files=files, timeout=UPLOAD_TIMEOUT)
    except httpx.HTTPError as e:
        raise TransportFailure(f"Network error: {e}") from e
    return _unwrap(resp)


def _clean_params(params: Mapping[str, Any] | None) -> Optional[Dict[str, Any]]:
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None}


def _unwrap(resp: httpx.Response) -> Dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        body = None

    if not isinstance(body, dict):
        text = resp.text.strip()[:200] or resp.reason_phrase
        raise TransportFailure(text, status_code=resp.status_code)

    code = body.get("code", 0)
    message = body.get("msg") or body.get("message") or resp.reason_phrase
    if resp.status_code >= 400 or code != 0:
        if resp.status_code == 401 or code in (99991663, 99991668):
            message = f"Authentication failed: {message}"
        elif resp.status_code == 403 or code == 99991672:
            message = f"Forbidden: {message} (does the app have the required scopes?)"
        raise TransportFailure(
            message,
            status_code=resp.status_code if resp.status_code >= 400 else None,
            code=code or None,
        )

    # The token endpoint returns its fields at the top level, not under data
    data = body.get("data")
    if data is None:
        return {k: v for k, v in body.items() if k not in ("code", "msg")}
    return data if isinstance(data, dict) else {"data": data}


__all__ = ["http_json", "http_multipart_post", "DEFAULT_TIMEOUT", "UPLOAD_TIMEOUT"]
