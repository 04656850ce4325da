"""Core utilities for feishu-docs CLI."""

from .config import (
    CONFIG_PATH,
    CACHE_PATH,
    DEFAULT_DOMAIN,
    BATCH_SIZE,
    TOKEN_SAFETY_MARGIN,
    AppIdentity,
    load_config,
    save_config,
    get_app_identity,
    get_poll_settings,
)
from .errors import (
    FeishuDocsError,
    ConfigError,
    AuthFailure,
    TransportFailure,
    PartialWriteFailure,
    ImportSubmitFailure,
    PollTimeout,
    PollCancelled,
)
from .http import http_json, http_multipart_post
from .auth import Credential, CredentialProvider, TokenCache, exchange_app_credentials
from .api import FeishuClient, open_client
from .batch import BatchUploader, child_id
from .importer import ImportJob, ImportJobRunner, JobStatus
from .cache import load_cache, save_cache, list_folder, invalidate_folder, forget_file
from .interactive import confirm, pick_folder
from .logging import configure_logging
from .utils import format_rows, looks_like_markdown, read_content, render_document, write_output

__all__ = [
    "CONFIG_PATH", "CACHE_PATH", "DEFAULT_DOMAIN", "BATCH_SIZE", "TOKEN_SAFETY_MARGIN",
    "AppIdentity", "load_config", "save_config", "get_app_identity", "get_poll_settings",
    "FeishuDocsError", "ConfigError", "AuthFailure", "TransportFailure",
    "PartialWriteFailure", "ImportSubmitFailure", "PollTimeout", "PollCancelled",
    "http_json", "http_multipart_post",
    "Credential", "CredentialProvider", "TokenCache", "exchange_app_credentials",
    "FeishuClient", "open_client",
    "BatchUploader", "child_id",
    "ImportJob", "ImportJobRunner", "JobStatus",
    "load_cache", "save_cache", "list_folder", "invalidate_folder", "forget_file",
    "confirm", "pick_folder",
    "configure_logging",
    "format_rows", "looks_like_markdown", "read_content", "render_document", "write_output",
]
