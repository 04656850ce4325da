"""Chunked, strictly ordered block writes."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Sequence

from tqdm import tqdm

from .config import BATCH_SIZE
from .errors import FeishuDocsError, PartialWriteFailure

logger = logging.getLogger(__name__)


def child_id(document_id: str, global_index: int) -> str:
    """Return the placeholder id of the block at *global_index*.

    Only unique within one :meth:`BatchUploader.upload_append` call; the
    server assigns the durable block ids.
    """
    return f"{document_id}_child_{global_index}"


class BatchUploader:
    """Append blocks to a document in chunks of ``chunk_size``.

    Chunk ``k + 1`` is sent only after chunk ``k`` has been accepted so the
    document keeps the input order.  Chunks already written are not rolled
    back when a later one fails.
    """

    def __init__(self, api: Any, chunk_size: int = BATCH_SIZE, *, progress: bool = False) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._api = api
        self.chunk_size = chunk_size
        self.progress = progress

    def chunks(self, blocks: Sequence[Mapping[str, Any]]) -> List[Sequence[Mapping[str, Any]]]:
        return [blocks[i : i + self.chunk_size] for i in range(0, len(blocks), self.chunk_size)]

    async def upload_append(
        self,
        target_id: str,
        blocks: Sequence[Mapping[str, Any]],
        start_index: int = 0,
    ) -> int:
        """Write *blocks* under *target_id* starting at *start_index*.

        Returns the number of blocks applied.  Raises
        :class:`PartialWriteFailure` with the committed count if a chunk is
        rejected.
        """
        total = len(blocks)
        committed = 0
        with tqdm(total=total, unit="block", desc="Writing blocks", disable=not self.progress) as bar:
            for chunk in self.chunks(blocks):
                ids = [child_id(target_id, committed + offset) for offset in range(len(chunk))]
                index = start_index + committed
                logger.debug("Writing blocks %d-%d of %d at index %d", committed + 1, committed + len(chunk), total, index)
                try:
                    await self._api.create_descendants(target_id, target_id, ids, index, chunk)
                except FeishuDocsError as e:
                    raise PartialWriteFailure(committed, total, str(e)) from e
                committed += len(chunk)
                bar.update(len(chunk))
        return committed


__all__ = ["BatchUploader", "child_id"]
