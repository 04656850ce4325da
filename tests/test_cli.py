import asyncio
import contextlib
import json
import os
import signal
import subprocess
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

from feishu_docs_cli.__main__ import main
from feishu_docs_cli.commands import auth as auth_cmd
from feishu_docs_cli.commands import cache as cache_cmd
from feishu_docs_cli.commands import documents, import_cmd
from feishu_docs_cli.core import cache as cache_mod
from feishu_docs_cli.core import interactive
from feishu_docs_cli.core.auth import CredentialProvider, TokenCache
from feishu_docs_cli.core.config import AppIdentity
from feishu_docs_cli.core.errors import TransportFailure

REPO_ROOT = Path(__file__).resolve().parents[1]


def _cli(*argv, env=None):
    return subprocess.run(
        [sys.executable, "-m", "feishu_docs_cli", *argv],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
        env=env,
    )


class FakeApi:
    """Records calls made by command handlers."""

    def __init__(self):
        self.calls = []
        self.blocks = []
        self.converted = [{"block_type": 3}, {"block_type": 2}, {"block_type": 12}]
        self.files = [
            {"type": "folder", "name": "Specs", "token": "fld2"},
            {"type": "docx", "name": "Notes", "token": "dox1"},
        ]
        self.import_statuses = [1, 2, 3]

    async def get_document(self, document_id):
        self.calls.append(("get_document", document_id))
        return {"document": {"document_id": document_id, "title": "Weekly", "revision_id": 7}}

    async def get_raw_content(self, document_id):
        return {"content": "hello world"}

    async def list_blocks(self, document_id):
        self.calls.append(("list_blocks", document_id))
        return self.blocks

    async def create_document(self, folder_token, title):
        self.calls.append(("create_document", folder_token, title))
        return {"document": {"document_id": "doxNew", "title": title, "revision_id": 1}}

    async def convert_content(self, content, content_type="markdown"):
        self.calls.append(("convert", content_type))
        return {"blocks": self.converted}

    async def create_descendants(self, document_id, block_id, children_id, index, descendants):
        self.calls.append(("descendants", document_id, index, len(descendants)))
        return {}

    async def delete_children(self, document_id, block_id, start_index, end_index):
        self.calls.append(("delete_children", document_id, start_index, end_index))
        return {}

    async def delete_file(self, file_token, file_type="docx"):
        self.calls.append(("delete_file", file_token, file_type))
        return {}

    async def list_files(self, folder_token=None):
        self.calls.append(("list_files", folder_token))
        return self.files

    async def upload_file(self, path, folder_token, name=None):
        self.calls.append(("upload_file", Path(path).name, folder_token))
        return "boxcnFile"

    async def create_import_task(self, file_token, file_extension, doc_type, folder_token, file_name=None):
        self.calls.append(("create_import_task", file_token, file_extension, doc_type, folder_token, file_name))
        return {"ticket": "tk-1"}

    async def get_import_task(self, ticket):
        status = self.import_statuses.pop(0)
        result = {"job_status": status}
        if status == 3:
            result["url"] = "https://example.feishu.cn/docx/doxImported"
        elif status not in (1, 2):
            result["job_error_msg"] = "file content is empty"
        return result


@pytest.fixture
def fake_api(monkeypatch):
    api = FakeApi()

    @contextlib.asynccontextmanager
    async def fake_open_client(identity=None):
        yield api

    monkeypatch.setattr(documents, "open_client", fake_open_client)
    monkeypatch.setattr(import_cmd, "open_client", fake_open_client)
    monkeypatch.setenv("FEISHU_POLL_INTERVAL", "0")
    return api


def test_cli_help():
    result = _cli("--help")
    assert result.returncode == 0
    assert "{auth,cache,get,get-blocks,create,update,delete,list,import-file,import-status}" in result.stdout
    assert "FEISHU_APP_ID" in result.stdout


def test_auth_help():
    result = _cli("auth", "--help")
    assert result.returncode == 0
    assert "Save app credentials" in result.stdout


def test_auth_set(tmp_path):
    env = {**os.environ, "HOME": str(tmp_path)}
    result = _cli("auth", "set", "--app-id", "cli_abc", "--app-secret", "secret",
                  "--domain", "https://open.larksuite.com/", env=env)
    assert result.returncode == 0
    cfg = json.loads((tmp_path / ".feishu-docs.json").read_text())
    assert cfg == {"app_id": "cli_abc", "app_secret": "secret", "domain": "https://open.larksuite.com"}


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "feishu-docs" in capsys.readouterr().out


def test_missing_credentials_exit_code(capsys):
    assert main(["get", "-d", "doxA"]) == 2
    err = capsys.readouterr().err
    assert "FEISHU_APP_ID" in err
    assert "FEISHU_APP_SECRET" in err


def test_transport_failure_exit_code(monkeypatch, capsys):
    @contextlib.asynccontextmanager
    async def failing_client(identity=None):
        raise TransportFailure("document not found", status_code=404, code=1770002)
        yield

    monkeypatch.setattr(documents, "open_client", failing_client)
    assert main(["get", "-d", "doxA"]) == 4
    assert "document not found" in capsys.readouterr().err


def test_get_markdown_to_file(fake_api, tmp_path, capsys):
    out = tmp_path / "doc.md"
    args = SimpleNamespace(doc_token="doxA", format="markdown", output=str(out))
    asyncio.run(documents.cmd_docs_get(args))
    assert out.read_text(encoding="utf-8") == "# Weekly\n\nhello world"
    assert f"Wrote document to {out}" in capsys.readouterr().out


def test_create_with_content_appends_blocks(fake_api, tmp_path):
    args = SimpleNamespace(folder_token="fld1", title="Plan", content="# Plan\n- item", file=None,
                           refresh_cache=False)
    asyncio.run(documents.cmd_docs_create(args))

    assert ("create_document", "fld1", "Plan") in fake_api.calls
    assert ("convert", "markdown") in fake_api.calls
    assert ("descendants", "doxNew", 0, 3) in fake_api.calls
    info = json.loads((tmp_path / "doc-doxNew.json").read_text(encoding="utf-8"))
    assert info["document"]["document_id"] == "doxNew"


def test_create_html_content_uses_html_conversion(fake_api):
    args = SimpleNamespace(folder_token="fld1", title="Page", content="<p>hi</p>", file=None,
                           refresh_cache=False)
    asyncio.run(documents.cmd_docs_create(args))
    assert ("convert", "html") in fake_api.calls


def test_update_replaces_existing_children(fake_api):
    fake_api.blocks = [{"block_id": "doxA", "children": ["b1", "b2"]}, {"block_id": "b1"}, {"block_id": "b2"}]
    args = SimpleNamespace(doc_token="doxA", content="# New", file=None, append=False)
    asyncio.run(documents.cmd_docs_update(args))

    assert ("delete_children", "doxA", 0, 2) in fake_api.calls
    assert ("descendants", "doxA", 0, 3) in fake_api.calls


def test_update_append_writes_after_existing_children(fake_api):
    fake_api.blocks = [{"block_id": "doxA", "children": ["b1", "b2"]}]
    args = SimpleNamespace(doc_token="doxA", content="# More", file=None, append=True)
    asyncio.run(documents.cmd_docs_update(args))

    assert not any(c[0] == "delete_children" for c in fake_api.calls)
    assert ("descendants", "doxA", 2, 3) in fake_api.calls


def test_delete_without_force_needs_confirmation(fake_api, monkeypatch, capsys):
    monkeypatch.setattr(interactive, "is_interactive", lambda: False)
    args = SimpleNamespace(doc_token="doxA", force=False, type="docx")
    assert asyncio.run(documents.cmd_docs_delete(args)) == 1
    assert fake_api.calls == []
    assert "--force" in capsys.readouterr().err


def test_delete_with_force_forgets_cached_entry(fake_api):
    cache_mod.save_cache({"folder:root": [{"token": "doxA"}, {"token": "doxB"}]})
    args = SimpleNamespace(doc_token="doxA", force=True, type="docx")
    asyncio.run(documents.cmd_docs_delete(args))

    assert fake_api.calls == [("delete_file", "doxA", "docx")]
    assert cache_mod.load_cache() == {"folder:root": [{"token": "doxB"}]}


def test_list_uses_cache_until_refreshed(fake_api, capsys):
    args = SimpleNamespace(folder_token=None, refresh_cache=False, json=False)
    asyncio.run(documents.cmd_docs_list(args))
    asyncio.run(documents.cmd_docs_list(args))
    assert fake_api.calls == [("list_files", None)]
    out = capsys.readouterr().out
    assert "Specs" in out and "dox1" in out

    args.refresh_cache = True
    asyncio.run(documents.cmd_docs_list(args))
    assert fake_api.calls == [("list_files", None), ("list_files", None)]


def test_import_file_success(fake_api, tmp_path, capsys):
    src = tmp_path / "notes.md"
    src.write_text("# Notes\n", encoding="utf-8")
    args = SimpleNamespace(file=str(src), folder_token="fld1", type="docx", ext=None, name=None,
                           max_polls=None, refresh_cache=False)

    assert asyncio.run(import_cmd.cmd_import_file(args)) == 0

    assert ("upload_file", "notes.md", "fld1") in fake_api.calls
    assert ("create_import_task", "boxcnFile", "md", "docx", "fld1", "notes") in fake_api.calls
    out = capsys.readouterr().out
    assert "https://example.feishu.cn/docx/doxImported" in out
    assert "Status code: 3" in out


def test_import_file_job_failure_is_reported(fake_api, tmp_path, capsys):
    fake_api.import_statuses = [1, 5]
    src = tmp_path / "empty.txt"
    src.write_text("", encoding="utf-8")
    args = SimpleNamespace(file=str(src), folder_token="fld1", type="docx", ext=None, name=None,
                           max_polls=None, refresh_cache=False)

    assert asyncio.run(import_cmd.cmd_import_file(args)) == 1
    assert ("create_import_task", "boxcnFile", "txt", "docx", "fld1", "empty") in fake_api.calls
    assert "file content is empty" in capsys.readouterr().out


def test_import_status_times_out(fake_api, capsys):
    fake_api.import_statuses = [2, 2, 2]
    assert main(["import-status", "--ticket", "tk-7", "--max-polls", "2"]) == 7
    err = capsys.readouterr().err
    assert "import-status --ticket tk-7" in err


def test_import_file_missing_source(fake_api, tmp_path):
    assert main(["import-file", "-f", str(tmp_path / "nope.md"), "--folder-token", "fld1"]) == 2
    assert fake_api.calls == []


@pytest.mark.skipif(not hasattr(signal, "SIGINT") or os.name != "posix", reason="needs POSIX signals")
def test_interrupt_stops_polling_with_resume_hint(fake_api, monkeypatch, capsys):
    monkeypatch.setenv("FEISHU_POLL_INTERVAL", "5")

    async def interrupted_poll(ticket):
        os.kill(os.getpid(), signal.SIGINT)
        return {"job_status": 2}

    fake_api.get_import_task = interrupted_poll
    assert main(["import-status", "--ticket", "tk-8"]) == 130
    err = capsys.readouterr().err
    assert "stopped polling import job tk-8" in err
    assert "import-status --ticket tk-8" in err


def test_negative_max_polls_is_rejected(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["import-status", "--ticket", "tk-1", "--max-polls", "-1"])
    assert exc.value.code == 2
    assert "must be 0 or a positive number of polls" in capsys.readouterr().err


def test_auth_token_masks_value_unless_shown(monkeypatch, capsys):
    monkeypatch.setenv("FEISHU_APP_ID", "cli_abc")
    monkeypatch.setenv("FEISHU_APP_SECRET", "secret")

    async def exchange(app_id, app_secret):
        return "t-0123456789abcdef", 7200

    @contextlib.asynccontextmanager
    async def token_client(identity=None):
        cache = TokenCache(identity or AppIdentity("cli_abc", "secret"), exchange)
        yield SimpleNamespace(credentials=CredentialProvider(cache))

    monkeypatch.setattr(auth_cmd, "open_client", token_client)

    asyncio.run(auth_cmd.cmd_auth_token(SimpleNamespace(show=False)))
    out = capsys.readouterr().out
    assert "App ID:     cli_abc" in out
    assert "t-0123...cdef" in out
    assert "t-0123456789abcdef" not in out
    assert "Expires in: 7" in out

    asyncio.run(auth_cmd.cmd_auth_token(SimpleNamespace(show=True)))
    assert "t-0123456789abcdef" in capsys.readouterr().out


def test_cache_info_summarizes_folder_listings(capsys):
    cache_mod.save_cache({
        "folder:root": [
            {"type": "folder", "name": "Specs", "token": "fld2"},
            {"type": "docx", "name": "Notes", "token": "dox1"},
        ],
        "folder:fld2": [{"type": "docx", "name": "Plan", "token": "dox2"}],
    })
    cache_cmd.cache_info(SimpleNamespace())
    lines = capsys.readouterr().out.splitlines()
    assert lines[1].split() == ["FOLDER", "TOKEN", "SUBFOLDERS", "FILES"]
    assert lines[3].split() == ["Specs", "fld2", "0", "1"]
    assert lines[4].split() == ["(root)", "root", "1", "1"]
