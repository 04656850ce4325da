"""Feishu OpenAPI client for documents, drive files and import tasks."""

from __future__ import annotations

import contextlib
import functools
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import httpx

from .auth import CredentialProvider, TokenCache, exchange_app_credentials
from .config import AppIdentity, PAGE_SIZE, get_app_identity
from .errors import ConfigError, TransportFailure
from .http import http_json, http_multipart_post
from .utils import adler32_checksum

logger = logging.getLogger(__name__)


class FeishuClient:
    """Thin wrapper over the docx, drive and import endpoints.

    Every call fetches the current token from ``credentials`` so a long
    running command keeps working across token refreshes.
    """

    def __init__(self, http: httpx.AsyncClient, api_base: str, credentials: CredentialProvider) -> None:
        self._http = http
        self.api_base = api_base.rstrip("/")
        self.credentials = credentials

    async def _call(
        self,
        method: str,
        path: str,
        payload: Dict[str, Any] | None = None,
        *,
        params: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        token = await self.credentials.get_token()
        return await http_json(self._http, method, f"{self.api_base}{path}", token, payload, params=params)

    async def _paginate(self, path: str, items_key: str, params: Dict[str, Any]) -> List[dict]:
        items: List[dict] = []
        page_token: Optional[str] = None
        while True:
            data = await self._call("GET", path, params={**params, "page_token": page_token})
            items.extend(data.get(items_key) or [])
            if not data.get("has_more"):
                return items
            page_token = data.get("page_token") or data.get("next_page_token")
            if not page_token:
                return items

    # --- documents ---

    async def get_document(self, document_id: str) -> Dict[str, Any]:
        return await self._call("GET", f"/docx/v1/documents/{document_id}")

    async def get_raw_content(self, document_id: str) -> Dict[str, Any]:
        return await self._call("GET", f"/docx/v1/documents/{document_id}/raw_content")

    async def list_blocks(self, document_id: str) -> List[dict]:
        return await self._paginate(
            f"/docx/v1/documents/{document_id}/blocks",
            "items",
            {"page_size": PAGE_SIZE, "document_revision_id": -1},
        )

    async def create_document(self, folder_token: str, title: str) -> Dict[str, Any]:
        return await self._call("POST", "/docx/v1/documents", {"folder_token": folder_token, "title": title})

    async def convert_content(self, content: str, content_type: str = "markdown") -> Dict[str, Any]:
        return await self._call(
            "POST",
            "/docx/v1/documents/blocks/convert",
            {"content_type": content_type, "content": content},
        )

    async def create_descendants(
        self,
        document_id: str,
        block_id: str,
        children_id: Sequence[str],
        index: int,
        descendants: Sequence[dict],
    ) -> Dict[str, Any]:
        return await self._call(
            "POST",
            f"/docx/v1/documents/{document_id}/blocks/{block_id}/descendant",
            {"children_id": list(children_id), "index": index, "descendants": list(descendants)},
            params={"document_revision_id": -1},
        )

    async def delete_children(self, document_id: str, block_id: str, start_index: int, end_index: int) -> Dict[str, Any]:
        return await self._call(
            "DELETE",
            f"/docx/v1/documents/{document_id}/blocks/{block_id}/children/batch_delete",
            {"start_index": start_index, "end_index": end_index},
            params={"document_revision_id": -1},
        )

    # --- drive ---

    async def upload_file(self, path: Path, folder_token: str, name: Optional[str] = None) -> str:
        """Upload *path* into *folder_token* and return the new file token."""
        if not path.is_file():
            raise ConfigError(f"File not found: {path}")
        content = path.read_bytes()
        fields: Dict[str, object] = {
            "file_name": name or path.name,
            "parent_type": "explorer",
            "parent_node": folder_token,
            "size": len(content),
            "checksum": adler32_checksum(content),
            "file": (name or path.name, content, "application/octet-stream"),
        }
        token = await self.credentials.get_token()
        data = await http_multipart_post(self._http, f"{self.api_base}/drive/v1/files/upload_all", token, fields)
        file_token = data.get("file_token")
        if not file_token:
            raise TransportFailure("Upload response did not include a file_token.")
        return file_token

    async def get_root_folder(self) -> str:
        data = await self._call("GET", "/drive/explorer/v2/root_folder/meta")
        token = data.get("token")
        if not token:
            raise TransportFailure("Root folder response did not include a token.")
        return token

    async def list_files(self, folder_token: Optional[str] = None) -> List[dict]:
        params: Dict[str, Any] = {"page_size": 200}
        if folder_token:
            params["folder_token"] = folder_token
        return await self._paginate("/drive/v1/files", "files", params)

    async def delete_file(self, file_token: str, file_type: str = "docx") -> Dict[str, Any]:
        return await self._call("DELETE", f"/drive/v1/files/{file_token}", params={"type": file_type})

    # --- import tasks ---

    async def create_import_task(
        self,
        file_token: str,
        file_extension: str,
        doc_type: str,
        folder_token: str,
        file_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "file_extension": file_extension,
            "file_token": file_token,
            "type": doc_type,
            "point": {"mount_type": 1, "mount_key": folder_token},
        }
        if file_name:
            payload["file_name"] = file_name
        return await self._call("POST", "/drive/v1/import_tasks", payload)

    async def get_import_task(self, ticket: str) -> Dict[str, Any]:
        data = await self._call("GET", f"/drive/v1/import_tasks/{ticket}")
        return data.get("result") or {}


@contextlib.asynccontextmanager
async def open_client(identity: Optional[AppIdentity] = None) -> AsyncIterator[FeishuClient]:
    """Yield a :class:`FeishuClient` with its own HTTP pool and token cache."""
    identity = identity or get_app_identity()
    async with httpx.AsyncClient() as http:
        cache = TokenCache(identity, functools.partial(exchange_app_credentials, http, identity.api_base))
        yield FeishuClient(http, identity.api_base, CredentialProvider(cache))


__all__ = ["FeishuClient", "open_client"]
