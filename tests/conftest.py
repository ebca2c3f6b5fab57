from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import fitz
import pytest

from src.infrastructure.config import AppConfig


def _build_pdf(labels: list[str]) -> bytes:
    document = fitz.open()
    try:
        for label in labels:
            page = document.new_page()
            page.insert_text((72, 72), label)
        return document.tobytes(deflate=True, garbage=3)
    finally:
        document.close()


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    def _make(*labels: str) -> bytes:
        return _build_pdf(list(labels))

    return _make


@pytest.fixture
def page_labels() -> Callable[[bytes], list[str]]:
    def _labels(pdf_bytes: bytes) -> list[str]:
        with fitz.open(stream=pdf_bytes, filetype="pdf") as document:
            return [page.get_text("text").strip() for page in document]

    return _labels


@pytest.fixture
def encrypted_pdf_bytes() -> bytes:
    document = fitz.open()
    try:
        page = document.new_page()
        page.insert_text((72, 72), "secret")
        return document.tobytes(
            encryption=fitz.PDF_ENCRYPT_AES_256,
            owner_pw="owner-secret",
            user_pw="user-secret",
        )
    finally:
        document.close()


@pytest.fixture
def test_config() -> AppConfig:
    return AppConfig(
        max_pdf_size_mb=50,
        max_batch_size_mb=100,
        max_concurrent_tasks=4,
        output_name_prefix="merged_",
        gemini_api_key=None,
    )


@pytest.fixture
def real_world_fixture_paths() -> list[Path]:
    base = Path(__file__).parent / "fixtures" / "real_world"
    base.mkdir(parents=True, exist_ok=True)

    paths = [
        base / "quarterly_report_2025.pdf",
        base / "legal_disclaimer.pdf",
        base / "cover_letter.pdf",
    ]

    if all(path.exists() for path in paths):
        return paths

    docs_content = {
        paths[0]: [
            "Quarterly Report 2025",
            "Revenue summary",
            "Regional breakdown",
            "Outlook",
        ],
        paths[1]: ["Disclaimer"],
        paths[2]: ["Cover letter", "Contacts"],
    }

    for path, pages in docs_content.items():
        path.write_bytes(_build_pdf(pages))

    return paths
