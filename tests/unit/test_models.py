from pathlib import Path

import pytest

from src.domain.errors import InvalidTransitionError, ValidationError
from src.domain.models import (
    FileAsset,
    InsertionPolicy,
    InsertionPosition,
    MergeTask,
    QueueRunResult,
    TaskRunSummary,
    TaskStatus,
)


@pytest.mark.unit
@pytest.mark.parametrize("page_number", [0, -3, None, True])
def test_after_page_requires_positive_page_number(page_number: object) -> None:
    with pytest.raises(ValidationError):
        InsertionPolicy(InsertionPosition.AFTER_PAGE, page_number)


@pytest.mark.unit
def test_policy_descriptions() -> None:
    assert InsertionPolicy.beginning().describe() == "at beginning"
    assert InsertionPolicy.end().describe() == "at end"
    assert InsertionPolicy.after_page(4).describe() == "after page 4"


@pytest.mark.unit
def test_task_requires_sources() -> None:
    with pytest.raises(ValidationError):
        MergeTask(target_asset_id="t", source_asset_ids=(), policy=InsertionPolicy.end())


@pytest.mark.unit
def test_new_task_is_pending_with_unique_id() -> None:
    first = MergeTask(target_asset_id="t", source_asset_ids=["s"], policy=InsertionPolicy.end())
    second = MergeTask(target_asset_id="t", source_asset_ids=["s"], policy=InsertionPolicy.end())

    assert first.status is TaskStatus.PENDING
    assert first.source_asset_ids == ("s",)
    assert first.task_id != second.task_id


@pytest.mark.unit
def test_task_status_lifecycle_allows_reruns() -> None:
    task = MergeTask(target_asset_id="t", source_asset_ids=("s",), policy=InsertionPolicy.end())

    task.transition_to(TaskStatus.PROCESSING)
    task.transition_to(TaskStatus.ERROR)
    task.transition_to(TaskStatus.PROCESSING)
    task.transition_to(TaskStatus.COMPLETED)
    task.transition_to(TaskStatus.PROCESSING)

    assert task.status is TaskStatus.PROCESSING


@pytest.mark.unit
@pytest.mark.parametrize(
    ("start", "target"),
    [
        (TaskStatus.PENDING, TaskStatus.COMPLETED),
        (TaskStatus.PENDING, TaskStatus.ERROR),
        (TaskStatus.PROCESSING, TaskStatus.PROCESSING),
        (TaskStatus.COMPLETED, TaskStatus.PENDING),
        (TaskStatus.ERROR, TaskStatus.COMPLETED),
    ],
)
def test_invalid_status_transitions_raise(start: TaskStatus, target: TaskStatus) -> None:
    task = MergeTask(
        target_asset_id="t",
        source_asset_ids=("s",),
        policy=InsertionPolicy.end(),
        status=start,
    )
    with pytest.raises(InvalidTransitionError):
        task.transition_to(target)


@pytest.mark.unit
def test_file_asset_needs_exactly_one_byte_source(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        FileAsset(asset_id="1", name="a.pdf", size_bytes=0, page_count=0)
    with pytest.raises(ValidationError):
        FileAsset(
            asset_id="1",
            name="a.pdf",
            size_bytes=1,
            page_count=1,
            content=b"x",
            path=tmp_path / "a.pdf",
        )


@pytest.mark.unit
def test_queue_run_result_counts() -> None:
    result = QueueRunResult(
        items=[
            TaskRunSummary(task_id="1", target_name="a.pdf", status=TaskStatus.COMPLETED),
            TaskRunSummary(task_id="2", target_name="b.pdf", status=TaskStatus.ERROR),
            TaskRunSummary(task_id="3", target_name="c.pdf", status=TaskStatus.COMPLETED),
        ]
    )

    assert result.completed_count == 2
    assert result.error_count == 1
