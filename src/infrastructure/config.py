from __future__ import annotations

import os
from dataclasses import dataclass, field


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _get_float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _get_list_env(name: str) -> tuple[str, ...]:
    value = os.getenv(name, "")
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _get_api_key() -> str | None:
    return os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or None


@dataclass(frozen=True)
class AppConfig:
    max_pdf_size_mb: int = _get_int_env("PDF_MERGE_MAX_PDF_MB", 50)
    max_batch_size_mb: int = _get_int_env("PDF_MERGE_MAX_BATCH_MB", 100)
    max_concurrent_tasks: int = _get_int_env("PDF_MERGE_MAX_CONCURRENT_TASKS", 4)
    output_name_prefix: str = os.getenv("PDF_MERGE_OUTPUT_PREFIX", "merged_")
    gemini_api_key: str | None = field(default=_get_api_key(), repr=False)
    gemini_model: str = os.getenv("PDF_MERGE_GEMINI_MODEL", "gemini-2.5-flash")
    gemini_fallback_models: tuple[str, ...] = _get_list_env("PDF_MERGE_GEMINI_FALLBACK_MODELS")
    planner_timeout_seconds: float = _get_float_env("PDF_MERGE_PLANNER_TIMEOUT_S", 30.0)
    planner_max_retries: int = _get_int_env("PDF_MERGE_PLANNER_MAX_RETRIES", 1)
    log_level: str = os.getenv("PDF_MERGE_LOG_LEVEL", "INFO")

    @property
    def max_pdf_size_bytes(self) -> int:
        return self.max_pdf_size_mb * 1024 * 1024

    @property
    def max_batch_size_bytes(self) -> int:
        return self.max_batch_size_mb * 1024 * 1024
