from __future__ import annotations

import uuid
from pathlib import Path

from src.adapters.pymupdf_adapter import PyMuPdfAdapter
from src.domain.errors import FileIOError, ValidationError
from src.domain.models import FileAsset
from src.infrastructure.config import AppConfig


class WorkspaceService:
    def __init__(self, adapter: PyMuPdfAdapter, config: AppConfig) -> None:
        self.adapter = adapter
        self.config = config

    def _check_file(self, name: str, size_bytes: int) -> None:
        if not name.lower().endswith(".pdf"):
            raise ValidationError(f"Invalid file type for {name}. Only PDF files are allowed.")
        if size_bytes > self.config.max_pdf_size_bytes:
            raise ValidationError(f"{name} exceeds per-file limit of {self.config.max_pdf_size_mb} MB")

    def _check_batch(self, total_size: int) -> None:
        if total_size > self.config.max_batch_size_bytes:
            raise ValidationError(f"Batch size exceeds limit of {self.config.max_batch_size_mb} MB")

    def load_files(self, uploaded_files: list[tuple[str, bytes]]) -> list[FileAsset]:
        if not uploaded_files:
            return []

        self._check_batch(sum(len(content) for _, content in uploaded_files))

        assets: list[FileAsset] = []
        for name, content in uploaded_files:
            size_bytes = len(content)
            self._check_file(name, size_bytes)
            page_count = self.adapter.get_page_count(content)
            assets.append(
                FileAsset(
                    asset_id=str(uuid.uuid4()),
                    name=name,
                    size_bytes=size_bytes,
                    page_count=page_count,
                    content=content,
                )
            )
        return assets

    def load_paths(self, paths: list[Path]) -> list[FileAsset]:
        """Build path-backed assets; bytes are read again when a task runs."""
        if not paths:
            return []

        try:
            sizes = [path.stat().st_size for path in paths]
        except OSError as exc:
            raise FileIOError(f"Unable to access {exc.filename}") from exc
        self._check_batch(sum(sizes))

        assets: list[FileAsset] = []
        for path, size_bytes in zip(paths, sizes):
            self._check_file(path.name, size_bytes)
            try:
                content = path.read_bytes()
            except OSError as exc:
                raise FileIOError(f"Unable to read {path.name}") from exc
            assets.append(
                FileAsset(
                    asset_id=str(uuid.uuid4()),
                    name=path.name,
                    size_bytes=size_bytes,
                    page_count=self.adapter.get_page_count(content),
                    path=path,
                )
            )
        return assets
