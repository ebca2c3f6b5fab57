from __future__ import annotations

import io
import re
import zipfile
from collections.abc import Iterable

from src.domain.models import MergeTask, QueueRunResult, TaskStatus


class ExportService:
    @staticmethod
    def _safe_artifact_name(name: str) -> str:
        clean = name.replace("\\", "/").split("/")[-1]
        clean = re.sub(r"[^A-Za-z0-9._() -]", "_", clean).strip()
        return clean or "merged.pdf"

    @staticmethod
    def build_zip(
        tasks: Iterable[MergeTask], zip_name: str = "merged_outputs.zip"
    ) -> tuple[str, bytes]:
        buffer = io.BytesIO()
        used_names: dict[str, int] = {}
        with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
            for task in tasks:
                if task.status is not TaskStatus.COMPLETED or not task.output_pdf:
                    continue
                safe_name = ExportService._safe_artifact_name(task.output_name or "")
                stem, dot, extension = safe_name.rpartition(".")
                if not stem:
                    stem = safe_name
                    dot = ""
                    extension = ""
                sequence = used_names.get(safe_name, 0)
                used_names[safe_name] = sequence + 1
                unique_name = safe_name
                if sequence > 0:
                    unique_name = f"{stem} ({sequence + 1}){dot}{extension}"
                archive.writestr(unique_name, task.output_pdf)
        return zip_name, buffer.getvalue()

    @staticmethod
    def build_run_text_summary(result: QueueRunResult) -> tuple[str, str]:
        lines: list[str] = []
        lines.append("Merge Batch Summary")
        lines.append(f"completed={result.completed_count} error={result.error_count}")
        lines.append("")
        for item in result.items:
            lines.append(f"[{item.status.value}] {item.target_name}")
            if item.message:
                lines.append(f"- {item.message}")
            lines.append("")
        return "merge_batch_report.txt", "\n".join(lines).rstrip() + "\n"
