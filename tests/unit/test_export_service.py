import io
import zipfile

import pytest

from src.domain.models import (
    InsertionPolicy,
    MergeTask,
    QueueRunResult,
    TaskRunSummary,
    TaskStatus,
)
from src.services.export_service import ExportService


def _task(status: TaskStatus, name: str | None, output: bytes | None) -> MergeTask:
    return MergeTask(
        target_asset_id="t",
        source_asset_ids=("s",),
        policy=InsertionPolicy.end(),
        status=status,
        output_name=name,
        output_pdf=output,
    )


@pytest.mark.unit
def test_run_text_summary_contains_counts_and_items() -> None:
    result = QueueRunResult(
        items=[
            TaskRunSummary(
                task_id="1",
                target_name="a.pdf",
                status=TaskStatus.COMPLETED,
                message="merged_a.pdf",
            ),
            TaskRunSummary(
                task_id="2",
                target_name="b.pdf",
                status=TaskStatus.ERROR,
                message="Target file missing",
            ),
        ]
    )

    name, text = ExportService.build_run_text_summary(result)

    assert name.endswith(".txt")
    assert "completed=1 error=1" in text
    assert "[COMPLETED] a.pdf" in text
    assert "[ERROR] b.pdf" in text
    assert "- Target file missing" in text


@pytest.mark.unit
def test_safe_artifact_name_strips_paths() -> None:
    sanitized = ExportService._safe_artifact_name("../../unsafe\\path/evil?.pdf")
    assert "/" not in sanitized
    assert "\\" not in sanitized
    assert "?" not in sanitized


@pytest.mark.unit
def test_build_zip_skips_unfinished_and_avoids_name_collisions() -> None:
    tasks = [
        _task(TaskStatus.COMPLETED, "merged_report.pdf", b"A"),
        _task(TaskStatus.COMPLETED, "merged_report.pdf", b"B"),
        _task(TaskStatus.ERROR, "merged_other.pdf", None),
        _task(TaskStatus.PENDING, None, None),
    ]

    _, zip_bytes = ExportService.build_zip(tasks)

    with zipfile.ZipFile(io.BytesIO(zip_bytes), "r") as archive:
        names = archive.namelist()
        assert names == ["merged_report.pdf", "merged_report (2).pdf"]
        assert archive.read("merged_report (2).pdf") == b"B"
