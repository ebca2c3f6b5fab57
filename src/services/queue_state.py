from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Sequence

from src.domain.errors import ValidationError
from src.domain.models import FileAsset, InsertionPolicy, MergeTask, TaskStatus

LOGGER = logging.getLogger(__name__)


class QueueState:
    """File pool and task list for one session.

    Both collections keep insertion order. All mutation goes through the
    methods below; the executor only writes status and result fields on tasks.
    """

    def __init__(self) -> None:
        self._assets: dict[str, FileAsset] = {}
        self._tasks: dict[str, MergeTask] = {}

    @property
    def assets(self) -> list[FileAsset]:
        return list(self._assets.values())

    @property
    def tasks(self) -> list[MergeTask]:
        return list(self._tasks.values())

    @property
    def asset_names(self) -> list[str]:
        return [asset.name for asset in self._assets.values()]

    def get_asset(self, asset_id: str) -> FileAsset | None:
        return self._assets.get(asset_id)

    def get_task(self, task_id: str) -> MergeTask | None:
        return self._tasks.get(task_id)

    def find_asset_by_name(self, name: str) -> FileAsset | None:
        for asset in self._assets.values():
            if asset.name == name:
                return asset
        return None

    def add_assets(self, assets: Iterable[FileAsset]) -> None:
        for asset in assets:
            if asset.asset_id in self._assets:
                raise ValidationError(f"Asset {asset.asset_id} is already in the pool.")
            self._assets[asset.asset_id] = asset

    def replace_asset_content(self, asset_id: str, content: bytes, page_count: int) -> FileAsset:
        current = self._assets.get(asset_id)
        if current is None:
            raise ValidationError(f"Unknown asset: {asset_id}")
        replacement = dataclasses.replace(
            current,
            content=content,
            path=None,
            size_bytes=len(content),
            page_count=page_count,
        )
        self._assets[asset_id] = replacement
        return replacement

    def remove_asset(self, asset_id: str) -> list[str]:
        """Remove an asset and every task that references it. Returns removed task ids."""
        if self._assets.pop(asset_id, None) is None:
            return []
        removed = [task.task_id for task in self._tasks.values() if task.references(asset_id)]
        for task_id in removed:
            del self._tasks[task_id]
        if removed:
            LOGGER.info("Removed %d task(s) referencing deleted asset %s", len(removed), asset_id)
        return removed

    def create_task(
        self,
        target_asset_id: str,
        source_asset_ids: Sequence[str],
        policy: InsertionPolicy,
    ) -> MergeTask:
        if target_asset_id not in self._assets:
            raise ValidationError("Select a target file from the pool.")
        unknown = [item for item in source_asset_ids if item not in self._assets]
        if unknown:
            raise ValidationError("Select source files from the pool.")
        task = MergeTask(
            target_asset_id=target_asset_id,
            source_asset_ids=tuple(source_asset_ids),
            policy=policy,
        )
        self._tasks[task.task_id] = task
        return task

    def add_tasks(self, tasks: Iterable[MergeTask]) -> None:
        incoming = list(tasks)
        for task in incoming:
            if task.status is not TaskStatus.PENDING:
                raise ValidationError("Only pending tasks can be queued.")
            if task.task_id in self._tasks:
                raise ValidationError(f"Task {task.task_id} is already queued.")
        for task in incoming:
            self._tasks[task.task_id] = task

    def remove_task(self, task_id: str) -> bool:
        return self._tasks.pop(task_id, None) is not None

    def clear(self) -> None:
        self._assets.clear()
        self._tasks.clear()
