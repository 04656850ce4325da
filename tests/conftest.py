import pytest

from feishu_docs_cli.core import cache as cache_mod
from feishu_docs_cli.core import config as config_mod
from feishu_docs_cli.commands import cache as cache_cmd


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config and cache files out of the real home directory."""
    cfg = tmp_path / ".feishu-docs.json"
    cache = tmp_path / ".feishu-docs-cache.json"
    monkeypatch.setattr(config_mod, "CONFIG_PATH", cfg)
    monkeypatch.setattr(cache_mod, "CACHE_PATH", cache)
    monkeypatch.setattr(cache_cmd, "CACHE_PATH", cache)
    for name in ("FEISHU_APP_ID", "FEISHU_APP_SECRET", "FEISHU_DOMAIN", "FEISHU_POLL_INTERVAL",
                 "FEISHU_IMPORT_MAX_POLLS", "DEBUG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
