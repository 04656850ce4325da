"""Tenant access token cache.

One :class:`TokenCache` is created per process (see
:func:`feishu_docs_cli.core.api.open_client`) and shared by every API call.
A cached token is reused until it is within ``TOKEN_SAFETY_MARGIN`` seconds
of expiry.  At most one refresh runs at a time: callers arriving while it is
outstanding await the same task and share its token or its failure.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple

import httpx

from .config import AppIdentity, TOKEN_SAFETY_MARGIN
from .errors import AuthFailure, FeishuDocsError
from .http import http_json

logger = logging.getLogger(__name__)

TOKEN_PATH = "/auth/v3/tenant_access_token/internal"

Exchange = Callable[[str, str], Awaitable[Tuple[str, int]]]


@dataclass(frozen=True)
class Credential:
    value: str
    issued_at: float
    ttl_seconds: int

    @property
    def expires_at(self) -> float:
        return self.issued_at + self.ttl_seconds

    def is_valid(self, now: float, margin: float = TOKEN_SAFETY_MARGIN) -> bool:
        return now + margin < self.expires_at


async def exchange_app_credentials(
    client: httpx.AsyncClient, api_base: str, app_id: str, app_secret: str
) -> Tuple[str, int]:
    """Exchange app credentials for ``(tenant_access_token, expire_seconds)``."""

    try:
        data = await http_json(
            client,
            "POST",
            f"{api_base}{TOKEN_PATH}",
            None,
            {"app_id": app_id, "app_secret": app_secret},
        )
    except FeishuDocsError as e:
        raise AuthFailure(f"Failed to obtain tenant access token: {e}") from e

    token = data.get("tenant_access_token")
    expire = data.get("expire")
    if not token or not expire:
        raise AuthFailure("Incomplete token payload returned from the auth endpoint.")
    return token, int(expire)


class TokenCache:
    """Holds at most one :class:`Credential` and refreshes it on demand."""

    def __init__(
        self,
        identity: AppIdentity,
        exchange: Exchange,
        *,
        clock: Callable[[], float] = time.time,
        safety_margin: float = TOKEN_SAFETY_MARGIN,
    ) -> None:
        self._identity = identity
        self._exchange = exchange
        self._clock = clock
        self._margin = safety_margin
        self._credential: Optional[Credential] = None
        self._inflight: Optional[asyncio.Task] = None

    @property
    def credential(self) -> Optional[Credential]:
        return self._credential

    def _cached(self) -> Optional[Credential]:
        cred = self._credential
        if cred is not None and cred.is_valid(self._clock(), self._margin):
            return cred
        return None

    async def get_valid_credential(self) -> Credential:
        cred = self._cached()
        if cred is not None:
            return cred
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._run_refresh())
        # Shielded so one cancelled caller does not cancel the shared refresh
        return await asyncio.shield(self._inflight)

    async def _run_refresh(self) -> Credential:
        try:
            return await self._refresh()
        finally:
            self._inflight = None

    async def _refresh(self) -> Credential:
        issued_at = self._clock()
        logger.debug("Refreshing tenant access token for app %s", self._identity.app_id)
        try:
            token, ttl = await self._exchange(self._identity.app_id, self._identity.app_secret)
        except AuthFailure:
            raise
        except Exception as e:
            raise AuthFailure(f"Failed to obtain tenant access token: {e}") from e
        self._credential = Credential(token, issued_at, int(ttl))
        logger.info("Obtained tenant access token valid for %ss", ttl)
        return self._credential


class CredentialProvider:
    """Hands out a currently valid bearer token for API calls."""

    def __init__(self, cache: TokenCache) -> None:
        self.cache = cache

    async def get_token(self) -> str:
        return (await self.cache.get_valid_credential()).value


__all__ = [
    "Credential",
    "CredentialProvider",
    "TokenCache",
    "exchange_app_credentials",
]
