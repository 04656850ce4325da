"""Implementation of the ``import-file`` and ``import-status`` commands."""

from __future__ import annotations

import asyncio
import contextlib
import signal
from pathlib import Path

from ..core import (
    ConfigError,
    ImportJob,
    ImportJobRunner,
    get_poll_settings,
    invalidate_folder,
    open_client,
    pick_folder,
)
from .documents import PICK


@contextlib.contextmanager
def _interrupt_event():
    """Yield an event that is set on SIGINT instead of raising KeyboardInterrupt."""
    event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, event.set)
    except (NotImplementedError, RuntimeError):  # pragma: no cover - non-Unix loops
        yield event
        return
    try:
        yield event
    finally:
        loop.remove_signal_handler(signal.SIGINT)


def _runner(api, args) -> ImportJobRunner:
    interval, max_polls = get_poll_settings()
    if getattr(args, "max_polls", None) is not None:
        max_polls = args.max_polls or None
    return ImportJobRunner(
        api,
        poll_interval=interval,
        max_attempts=max_polls,
        on_poll=lambda job: print(f"Import task {job.ticket}: {job.status.value}"),
    )


def _report(job: ImportJob) -> int:
    print(f"Status code: {job.status_code}")
    print(f"Status:      {job.status.value}")
    if job.error_message:
        print(f"Message:     {job.error_message}")
    if job.result_url:
        print(f"URL:         {job.result_url}")
    return 0 if job.succeeded else 1


async def cmd_import_file(args):
    path = Path(args.file)
    if not path.is_file():
        raise ConfigError(f"File not found: {path}")
    ext = args.ext or path.suffix.lstrip(".") or "md"
    async with open_client() as api:
        folder = args.folder_token
        if folder == PICK:
            folder = await pick_folder(api, refresh_cache=args.refresh_cache)

        print(f"Uploading {path.name} ({path.stat().st_size / 1024:.2f} KB) to folder {folder}")
        file_token = await api.upload_file(path, folder, args.name)
        print(f"Uploaded file token: {file_token}")

        runner = _runner(api, args)
        job = await runner.submit(
            file_token,
            folder_token=folder,
            doc_type=args.type,
            file_extension=ext,
            file_name=args.name or path.stem,
        )
        print(f"Import task created: {job.ticket}")
        with _interrupt_event() as cancel:
            job = await runner.poll(job, cancel)
    invalidate_folder(folder)
    return _report(job)


async def cmd_import_status(args):
    async with open_client() as api:
        runner = _runner(api, args)
        with _interrupt_event() as cancel:
            job = await runner.poll(runner.resume(args.ticket), cancel)
    return _report(job)
