import io
import zipfile
from collections.abc import Callable

import pytest

from src.adapters.pymupdf_adapter import PyMuPdfAdapter
from src.domain.models import InsertionPolicy, TaskStatus
from src.domain.plan import BatchPlan
from src.infrastructure.config import AppConfig
from src.services.export_service import ExportService
from src.services.insertion_engine import InsertionEngine
from src.services.planner_service import PlannerService
from src.services.queue_state import QueueState
from src.services.task_queue_service import TaskQueueExecutor
from src.services.workspace_service import WorkspaceService


class _ScriptedOracle:
    def __init__(self, plan: BatchPlan) -> None:
        self.plan = plan

    def propose(self, file_names: list[str], instruction: str) -> BatchPlan:
        return self.plan


@pytest.mark.e2e
def test_service_level_e2e_smoke(
    make_pdf: Callable[..., bytes], page_labels: Callable[[bytes], list[str]]
) -> None:
    adapter = PyMuPdfAdapter()
    config = AppConfig(max_pdf_size_mb=50, max_batch_size_mb=100, output_name_prefix="merged_")
    state = QueueState()

    workspace = WorkspaceService(adapter, config)
    executor = TaskQueueExecutor(InsertionEngine(adapter), state, config)
    plan = BatchPlan.model_validate(
        {
            "tasks": [
                {
                    "targetFileName": "Report_A.pdf",
                    "sourceFileNames": ["disclaimer.pdf"],
                    "position": "END",
                },
                {
                    "targetFileName": "Report_B.pdf",
                    "sourceFileNames": ["disclaimer.pdf"],
                    "position": "END",
                },
                {
                    "targetFileName": "Report_C.pdf",
                    "sourceFileNames": ["disclaimer.pdf"],
                    "position": "END",
                },
            ]
        }
    )
    planner = PlannerService(_ScriptedOracle(plan), state)

    state.add_assets(
        workspace.load_files(
            [
                ("Report_A.pdf", make_pdf("a1", "a2")),
                ("Report_B.pdf", make_pdf("b1")),
                ("disclaimer.pdf", make_pdf("legal")),
            ]
        )
    )
    imported = planner.generate_tasks("Insert disclaimer.pdf at the end of every report")
    assert imported.mapped_count == 2
    assert imported.proposed_count == 3

    report_a = state.find_asset_by_name("Report_A.pdf")
    disclaimer = state.find_asset_by_name("disclaimer.pdf")
    assert report_a is not None and disclaimer is not None
    manual = state.create_task(
        report_a.asset_id, [disclaimer.asset_id], InsertionPolicy.after_page(1)
    )

    result = executor.run_all_sync()
    assert result.completed_count == 3
    assert result.error_count == 0
    assert page_labels(manual.output_pdf) == ["a1", "legal", "a2"]
    assert {task.output_name for task in state.tasks} == {
        "merged_Report_A.pdf",
        "merged_Report_B.pdf",
    }
    assert all(task.status is TaskStatus.COMPLETED for task in imported.tasks)

    _, zip_bytes = ExportService.build_zip(state.tasks)
    with zipfile.ZipFile(io.BytesIO(zip_bytes), "r") as archive:
        assert sorted(archive.namelist()) == [
            "merged_Report_A (2).pdf",
            "merged_Report_A.pdf",
            "merged_Report_B.pdf",
        ]

    removed = state.remove_asset(disclaimer.asset_id)
    assert len(removed) == 3
    assert state.tasks == []
