"""Server-side import jobs: submit an uploaded file and poll its ticket.

Job status codes reported by ``GET /drive/v1/import_tasks/{ticket}``:

===== ==========
1     pending
2     processing
3     success
other failed
===== ==========

A failed job is returned as data; only transport problems, the attempt
ceiling and cancellation raise.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from .config import DEFAULT_MAX_POLLS, DEFAULT_POLL_INTERVAL
from .errors import FeishuDocsError, ImportSubmitFailure, PollCancelled, PollTimeout

logger = logging.getLogger(__name__)


class JobStatus(enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"

    @classmethod
    def from_code(cls, code: Any) -> "JobStatus":
        try:
            code = int(code)
        except (TypeError, ValueError):
            return cls.FAILED
        return {1: cls.PENDING, 2: cls.PROCESSING, 3: cls.SUCCESS}.get(code, cls.FAILED)

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.SUCCESS, JobStatus.FAILED)


@dataclass
class ImportJob:
    ticket: str
    status: JobStatus = JobStatus.PENDING
    status_code: Optional[int] = None
    result_url: Optional[str] = None
    error_message: Optional[str] = None
    token: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is JobStatus.SUCCESS

    def update(self, result: Dict[str, Any]) -> None:
        """Apply one status payload from the server."""
        raw = result.get("job_status")
        try:
            self.status_code = int(raw)
        except (TypeError, ValueError):
            self.status_code = None
        self.status = JobStatus.from_code(raw)
        self.result_url = result.get("url") or self.result_url
        self.error_message = result.get("job_error_msg") or self.error_message
        self.token = result.get("token") or self.token


class ImportJobRunner:
    """Drive an :class:`ImportJob` from submission to a terminal status.

    ``max_attempts`` bounds the number of status polls (``None`` polls
    forever).  ``sleep`` is injectable so tests can observe the waits.
    """

    def __init__(
        self,
        api: Any,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: Optional[int] = DEFAULT_MAX_POLLS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_poll: Optional[Callable[[ImportJob], None]] = None,
    ) -> None:
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be positive or None")
        self._api = api
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._on_poll = on_poll

    async def submit(
        self,
        file_token: str,
        *,
        folder_token: str,
        doc_type: str = "docx",
        file_extension: str = "md",
        file_name: Optional[str] = None,
    ) -> ImportJob:
        try:
            data = await self._api.create_import_task(
                file_token, file_extension, doc_type, folder_token, file_name
            )
        except FeishuDocsError as e:
            raise ImportSubmitFailure(f"Failed to create import task: {e}") from e
        ticket = data.get("ticket")
        if not ticket:
            raise ImportSubmitFailure("Import task response did not include a ticket.")
        logger.info("Created import task %s for file %s", ticket, file_token)
        return ImportJob(ticket)

    def resume(self, ticket: str) -> ImportJob:
        return ImportJob(ticket)

    async def poll(self, job: ImportJob, cancel: Optional[asyncio.Event] = None) -> ImportJob:
        attempts = 0
        while True:
            result = await self._api.get_import_task(job.ticket)
            attempts += 1
            job.update(result)
            logger.debug("Import task %s: %s (code %s)", job.ticket, job.status.value, job.status_code)
            if self._on_poll is not None:
                self._on_poll(job)
            if job.status.terminal:
                return job
            if self.max_attempts is not None and attempts >= self.max_attempts:
                raise PollTimeout(job, attempts)
            await self._wait(job, cancel)

    async def _wait(self, job: ImportJob, cancel: Optional[asyncio.Event]) -> None:
        if cancel is None:
            await self._sleep(self.poll_interval)
            return
        if cancel.is_set():
            raise PollCancelled(job)
        try:
            await asyncio.wait_for(cancel.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            return
        raise PollCancelled(job)

    async def run(
        self,
        file_token: str,
        *,
        folder_token: str,
        doc_type: str = "docx",
        file_extension: str = "md",
        file_name: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> ImportJob:
        job = await self.submit(
            file_token,
            folder_token=folder_token,
            doc_type=doc_type,
            file_extension=file_extension,
            file_name=file_name,
        )
        return await self.poll(job, cancel)


__all__ = ["ImportJob", "ImportJobRunner", "JobStatus"]
