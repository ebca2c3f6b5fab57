from __future__ import annotations

import logging
from collections.abc import Sequence

from src.adapters.pymupdf_adapter import PyMuPdfAdapter
from src.domain.errors import MergeSuiteError, ProcessingError
from src.domain.models import InsertionPolicy, InsertionPosition, MergeResult

LOGGER = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Failed to process PDF. Ensure files are valid and not encrypted."


def initial_insert_index(policy: InsertionPolicy, page_count: int) -> int:
    """0-based index of the first inserted page, against the original page count.

    "After page n" inserts at 0-based position n; n past the end clamps to an append.
    """
    if policy.position is InsertionPosition.BEGINNING:
        return 0
    if policy.position is InsertionPosition.END:
        return page_count
    return min(max(0, policy.page_number or 0), page_count)


class InsertionEngine:
    def __init__(self, adapter: PyMuPdfAdapter) -> None:
        self.adapter = adapter

    def merge(
        self,
        target_bytes: bytes,
        source_bytes_list: Sequence[bytes],
        policy: InsertionPolicy,
    ) -> MergeResult:
        try:
            return self._merge(target_bytes, source_bytes_list, policy)
        except MergeSuiteError:
            raise
        except Exception as exc:
            LOGGER.warning("Unexpected PDF processing failure", exc_info=True)
            raise ProcessingError(GENERIC_FAILURE_MESSAGE) from exc

    def _merge(
        self,
        target_bytes: bytes,
        source_bytes_list: Sequence[bytes],
        policy: InsertionPolicy,
    ) -> MergeResult:
        target = self.adapter.open_document(target_bytes)
        try:
            original_pages = self.adapter.page_count(target)
            # One cursor per task: sources land in list order as a single block.
            cursor = initial_insert_index(policy, original_pages)
            inserted = 0
            for source_bytes in source_bytes_list:
                source = self.adapter.open_document(source_bytes)
                try:
                    count = self.adapter.insert_document_pages(target, source, cursor)
                finally:
                    source.close()
                cursor += count
                inserted += count

            output = self.adapter.to_bytes(target)
            return MergeResult(
                output_pdf=output,
                page_count=original_pages + inserted,
                inserted_pages=inserted,
            )
        finally:
            target.close()
