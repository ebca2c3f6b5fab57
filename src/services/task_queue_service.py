from __future__ import annotations

import asyncio
import logging

from src.domain.errors import (
    FileIOError,
    MergeSuiteError,
    SourcesMissingError,
    TargetMissingError,
)
from src.domain.models import (
    FileAsset,
    MergeResult,
    MergeTask,
    QueueRunResult,
    TaskRunSummary,
    TaskStatus,
)
from src.infrastructure.config import AppConfig
from src.services.insertion_engine import InsertionEngine
from src.services.queue_state import QueueState

LOGGER = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Task cancelled"


class TaskQueueExecutor:
    """Runs merge tasks against the pool held by a ``QueueState``.

    Runs are cooperative: everything happens on the event loop thread and the
    only suspension points are buffer reads. A failed run is recorded on its
    task (status ``ERROR``, message set, prior output cleared) and never
    propagates to the caller or to other tasks of the same batch.
    """

    def __init__(self, engine: InsertionEngine, state: QueueState, config: AppConfig) -> None:
        self.engine = engine
        self.state = state
        self.config = config
        self._in_flight: set[str] = set()

    def is_running(self, task_id: str) -> bool:
        return task_id in self._in_flight

    async def run_one(self, task_id: str) -> MergeTask | None:
        task = self.state.get_task(task_id)
        if task is None:
            LOGGER.debug("Ignoring run request for unknown task %s", task_id)
            return None
        if task_id in self._in_flight or task.status is TaskStatus.PROCESSING:
            LOGGER.info("Task %s is already running; ignoring duplicate run request", task_id)
            return task

        self._in_flight.add(task_id)
        task.transition_to(TaskStatus.PROCESSING)
        task.error_message = None
        LOGGER.info("Running task %s (%d source(s))", task_id, len(task.source_asset_ids))
        try:
            target, result = await self._execute(task)
        except asyncio.CancelledError:
            self._fail(task, CANCELLED_MESSAGE)
            raise
        except MergeSuiteError as exc:
            self._fail(task, str(exc))
        except Exception as exc:
            LOGGER.exception("Unexpected failure while running task %s", task_id)
            self._fail(task, str(exc) or "Unknown error")
        else:
            task.output_pdf = result.output_pdf
            task.output_name = f"{self.config.output_name_prefix}{target.name}"
            task.transition_to(TaskStatus.COMPLETED)
            LOGGER.info(
                "Task %s completed: %d page(s) inserted, %d total",
                task_id,
                result.inserted_pages,
                result.page_count,
            )
        finally:
            self._in_flight.discard(task_id)
        return task

    async def run_all(self) -> QueueRunResult:
        selected = [task.task_id for task in self.state.tasks if task.status.is_runnable]
        if not selected:
            return QueueRunResult(items=[])

        semaphore = asyncio.Semaphore(self.config.max_concurrent_tasks)

        async def _run(task_id: str) -> None:
            async with semaphore:
                task = self.state.get_task(task_id)
                if task is None or not task.status.is_runnable:
                    LOGGER.debug("Skipping task %s settled while queued", task_id)
                    return
                await self.run_one(task_id)

        async with asyncio.TaskGroup() as group:
            for task_id in selected:
                group.create_task(_run(task_id))

        items = [summary for summary in map(self._summarize, selected) if summary is not None]
        result = QueueRunResult(items=items)
        LOGGER.info(
            "Batch finished: completed=%d error=%d",
            result.completed_count,
            result.error_count,
        )
        return result

    def run_one_sync(self, task_id: str) -> MergeTask | None:
        return asyncio.run(self.run_one(task_id))

    def run_all_sync(self) -> QueueRunResult:
        return asyncio.run(self.run_all())

    async def _execute(self, task: MergeTask) -> tuple[FileAsset, MergeResult]:
        target = self.state.get_asset(task.target_asset_id)
        if target is None:
            raise TargetMissingError("Target file missing")

        sources = [self.state.get_asset(asset_id) for asset_id in task.source_asset_ids]
        resolved = [asset for asset in sources if asset is not None]
        if len(resolved) != len(task.source_asset_ids):
            raise SourcesMissingError("Some source files missing")

        buffers = await asyncio.gather(
            self._read_bytes(target),
            *(self._read_bytes(asset) for asset in resolved),
        )
        result = self.engine.merge(buffers[0], buffers[1:], task.policy)
        return target, result

    @staticmethod
    async def _read_bytes(asset: FileAsset) -> bytes:
        if asset.content is not None:
            return asset.content
        if asset.path is None:
            raise FileIOError(f"No content available for {asset.name}")
        try:
            return await asyncio.to_thread(asset.path.read_bytes)
        except OSError as exc:
            raise FileIOError(f"Unable to read {asset.name}") from exc

    @staticmethod
    def _fail(task: MergeTask, message: str) -> None:
        task.output_pdf = None
        task.output_name = None
        task.error_message = message
        task.transition_to(TaskStatus.ERROR)
        LOGGER.warning("Task %s failed: %s", task.task_id, message)

    def _summarize(self, task_id: str) -> TaskRunSummary | None:
        task = self.state.get_task(task_id)
        if task is None:
            return None
        target = self.state.get_asset(task.target_asset_id)
        return TaskRunSummary(
            task_id=task_id,
            target_name=target.name if target is not None else task.target_asset_id,
            status=task.status,
            message=task.error_message or (task.output_name or ""),
        )
