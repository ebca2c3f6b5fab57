from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from src.domain.errors import InvalidTransitionError, ValidationError


class InsertionPosition(str, Enum):
    BEGINNING = "BEGINNING"
    END = "END"
    AFTER_PAGE = "AFTER_PAGE"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.ERROR)

    @property
    def is_runnable(self) -> bool:
        return self in (TaskStatus.PENDING, TaskStatus.ERROR)


_ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.PROCESSING}),
    TaskStatus.PROCESSING: frozenset({TaskStatus.COMPLETED, TaskStatus.ERROR}),
    TaskStatus.COMPLETED: frozenset({TaskStatus.PROCESSING}),
    TaskStatus.ERROR: frozenset({TaskStatus.PROCESSING}),
}


@dataclass(frozen=True)
class FileAsset:
    asset_id: str
    name: str
    size_bytes: int
    page_count: int
    content: bytes | None = None
    path: Path | None = None

    def __post_init__(self) -> None:
        if (self.content is None) == (self.path is None):
            raise ValidationError(f"{self.name} must be backed by either content or a path.")


@dataclass(frozen=True)
class InsertionPolicy:
    """Where source pages land relative to the target's original pages.

    ``page_number`` is 1-based and only meaningful for ``AFTER_PAGE``; a value
    beyond the target's page count is clamped by the engine rather than rejected.
    """

    position: InsertionPosition
    page_number: int | None = None

    def __post_init__(self) -> None:
        if self.position is InsertionPosition.AFTER_PAGE:
            if (
                isinstance(self.page_number, bool)
                or not isinstance(self.page_number, int)
                or self.page_number < 1
            ):
                raise ValidationError("Page number must be a positive integer for AFTER_PAGE.")

    @classmethod
    def beginning(cls) -> InsertionPolicy:
        return cls(InsertionPosition.BEGINNING)

    @classmethod
    def end(cls) -> InsertionPolicy:
        return cls(InsertionPosition.END)

    @classmethod
    def after_page(cls, page_number: int) -> InsertionPolicy:
        return cls(InsertionPosition.AFTER_PAGE, page_number)

    def describe(self) -> str:
        if self.position is InsertionPosition.BEGINNING:
            return "at beginning"
        if self.position is InsertionPosition.END:
            return "at end"
        return f"after page {self.page_number}"


@dataclass
class MergeTask:
    target_asset_id: str
    source_asset_ids: tuple[str, ...]
    policy: InsertionPolicy
    task_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: TaskStatus = TaskStatus.PENDING
    error_message: str | None = None
    output_pdf: bytes | None = None
    output_name: str | None = None

    def __post_init__(self) -> None:
        self.source_asset_ids = tuple(self.source_asset_ids)
        if not self.source_asset_ids:
            raise ValidationError("A task needs at least one source file.")

    def references(self, asset_id: str) -> bool:
        return asset_id == self.target_asset_id or asset_id in self.source_asset_ids

    def transition_to(self, status: TaskStatus) -> None:
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Task {self.task_id} cannot move from {self.status.value} to {status.value}"
            )
        self.status = status


@dataclass(frozen=True)
class MergeResult:
    output_pdf: bytes
    page_count: int
    inserted_pages: int


@dataclass(frozen=True)
class TaskRunSummary:
    task_id: str
    target_name: str
    status: TaskStatus
    message: str = ""


@dataclass(frozen=True)
class QueueRunResult:
    items: list[TaskRunSummary]

    @property
    def completed_count(self) -> int:
        return len([item for item in self.items if item.status == TaskStatus.COMPLETED])

    @property
    def error_count(self) -> int:
        return len([item for item in self.items if item.status == TaskStatus.ERROR])


@dataclass(frozen=True)
class PlanImportResult:
    tasks: list[MergeTask]
    proposed_count: int

    @property
    def mapped_count(self) -> int:
        return len(self.tasks)

    @property
    def dropped_count(self) -> int:
        return self.proposed_count - self.mapped_count
