"""Authentication related commands."""

from __future__ import annotations

import time

from ..core import DEFAULT_DOMAIN, get_app_identity, open_client, save_config


def cmd_auth_set(args):
    path = save_config(args.app_id, args.app_secret, args.domain)
    print(f"Saved config to {path}")


def _mask(token: str) -> str:
    if len(token) <= 10:
        return "*" * len(token)
    return f"{token[:6]}...{token[-4:]}"


async def cmd_auth_token(args):
    identity = get_app_identity()
    async with open_client(identity) as api:
        cache = api.credentials.cache
        cred = await cache.get_valid_credential()
    remaining = int(cred.expires_at - time.time())
    print(f"App ID:     {identity.app_id}")
    print(f"Domain:     {identity.domain or DEFAULT_DOMAIN}")
    print(f"Token:      {cred.value if args.show else _mask(cred.value)}")
    print(f"Expires in: {remaining}s")
