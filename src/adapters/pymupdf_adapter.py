from __future__ import annotations

from typing import cast

import fitz  # type: ignore[import-untyped]

from src.domain.errors import ParsingError, ProcessingError


class PyMuPdfAdapter:
    @staticmethod
    def _optimized_bytes(document: fitz.Document) -> bytes:
        return cast(
            bytes,
            document.tobytes(
                garbage=4,
                clean=True,
                deflate=True,
                deflate_images=True,
                deflate_fonts=True,
            ),
        )

    def open_document(self, pdf_bytes: bytes) -> fitz.Document:
        try:
            document = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as exc:
            raise ParsingError("Unable to read PDF. The file may be corrupted.") from exc
        if document.needs_pass or document.is_encrypted:
            document.close()
            raise ParsingError("PDF is encrypted or password-protected.")
        return document

    @staticmethod
    def page_count(document: fitz.Document) -> int:
        return int(document.page_count)

    def insert_document_pages(
        self, target: fitz.Document, source: fitz.Document, start_at: int
    ) -> int:
        """Copy every page of ``source`` into ``target`` starting at ``start_at``.

        Pages keep their original order and land contiguously. ``source`` is not
        modified. Returns the number of pages inserted.
        """
        count = self.page_count(source)
        if count == 0:
            return 0
        # MuPDF appends when the insertion point is past the last page.
        position = start_at if start_at < self.page_count(target) else -1
        try:
            target.insert_pdf(source, from_page=0, to_page=count - 1, start_at=position)
        except Exception as exc:
            raise ProcessingError("Unable to insert source pages") from exc
        return count

    def to_bytes(self, document: fitz.Document) -> bytes:
        try:
            return self._optimized_bytes(document)
        except Exception as exc:
            raise ProcessingError("Unable to serialize merged PDF") from exc

    def get_page_count(self, pdf_bytes: bytes) -> int:
        try:
            with fitz.open(stream=pdf_bytes, filetype="pdf") as document:
                return int(document.page_count)
        except Exception as exc:
            raise ParsingError("Unable to read PDF page count") from exc

    def render_page_thumbnail(self, pdf_bytes: bytes, page_index: int, zoom: float = 0.45) -> bytes:
        try:
            with fitz.open(stream=pdf_bytes, filetype="pdf") as document:
                page = document[page_index]
                matrix = fitz.Matrix(zoom, zoom)
                pixmap = page.get_pixmap(matrix=matrix, alpha=False)
                return cast(bytes, pixmap.tobytes("png"))
        except Exception as exc:
            raise ParsingError("Unable to render page thumbnail") from exc
