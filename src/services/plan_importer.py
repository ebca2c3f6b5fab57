from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.domain.models import FileAsset, InsertionPolicy, InsertionPosition, MergeTask
from src.domain.plan import BatchPlan, PlannedTask

LOGGER = logging.getLogger(__name__)


def _policy_for(entry: PlannedTask) -> InsertionPolicy:
    position = InsertionPosition(entry.position)
    if position is InsertionPosition.AFTER_PAGE:
        page_number = entry.page_number if entry.page_number and entry.page_number > 0 else 1
        return InsertionPolicy.after_page(page_number)
    return InsertionPolicy(position)


def _parse_entry(raw: Any) -> PlannedTask | None:
    try:
        return PlannedTask.model_validate(raw)
    except PydanticValidationError as exc:
        LOGGER.debug("Dropping malformed plan entry: %d error(s)", exc.error_count())
        return None


def import_plan(plan: BatchPlan, assets: Sequence[FileAsset]) -> list[MergeTask]:
    """Map an oracle plan onto pool identities by exact file name.

    Malformed entries, entries whose target is unknown and entries whose
    sources all fail to resolve are dropped; unknown individual source names
    are skipped.
    """
    by_name: dict[str, FileAsset] = {}
    for asset in assets:
        by_name.setdefault(asset.name, asset)

    tasks: list[MergeTask] = []
    for raw in plan.tasks:
        entry = _parse_entry(raw)
        if entry is None:
            continue
        target = by_name.get(entry.target_file_name)
        source_ids = [
            by_name[name].asset_id for name in entry.source_file_names if name in by_name
        ]
        if target is None or not source_ids:
            LOGGER.debug("Dropping unmappable plan entry for target %r", entry.target_file_name)
            continue
        tasks.append(
            MergeTask(
                target_asset_id=target.asset_id,
                source_asset_ids=tuple(source_ids),
                policy=_policy_for(entry),
            )
        )
    return tasks
