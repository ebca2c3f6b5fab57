from __future__ import annotations

import logging

from src.adapters.gemini_plan_oracle import PlanOracle
from src.domain.errors import ValidationError
from src.domain.models import PlanImportResult
from src.services.plan_importer import import_plan
from src.services.queue_state import QueueState

LOGGER = logging.getLogger(__name__)


class PlannerService:
    def __init__(self, oracle: PlanOracle, state: QueueState) -> None:
        self.oracle = oracle
        self.state = state

    def generate_tasks(self, instruction: str) -> PlanImportResult:
        if not instruction.strip():
            raise ValidationError("Describe the batch operation first.")
        if not self.state.assets:
            raise ValidationError("Please upload files to the pool first.")

        plan = self.oracle.propose(self.state.asset_names, instruction)
        tasks = import_plan(plan, self.state.assets)
        self.state.add_tasks(tasks)

        result = PlanImportResult(tasks=tasks, proposed_count=len(plan.tasks))
        LOGGER.info(
            "Planner mapped %d of %d proposed task(s)",
            result.mapped_count,
            result.proposed_count,
        )
        return result
