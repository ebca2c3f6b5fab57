from __future__ import annotations

import base64

import streamlit as st

from src.adapters.gemini_plan_oracle import GeminiPlanOracle
from src.adapters.pymupdf_adapter import PyMuPdfAdapter
from src.domain.errors import MergeSuiteError
from src.domain.models import (
    FileAsset,
    InsertionPolicy,
    InsertionPosition,
    MergeTask,
    QueueRunResult,
    TaskStatus,
)
from src.infrastructure.config import AppConfig
from src.infrastructure.logging_setup import configure_logging
from src.services.export_service import ExportService
from src.services.insertion_engine import InsertionEngine
from src.services.planner_service import PlannerService
from src.services.queue_state import QueueState
from src.services.task_queue_service import TaskQueueExecutor
from src.services.workspace_service import WorkspaceService

_POSITION_LABELS = {
    InsertionPosition.BEGINNING: "At Beginning",
    InsertionPosition.END: "At End",
    InsertionPosition.AFTER_PAGE: "After Page...",
}

_STATUS_BADGES = {
    TaskStatus.PENDING: "Pending",
    TaskStatus.PROCESSING: "Processing",
    TaskStatus.COMPLETED: "Completed",
    TaskStatus.ERROR: "Error",
}


def _init_state() -> None:
    st.session_state.setdefault("queue_state", QueueState())
    st.session_state.setdefault("thumbnail_cache", {})
    st.session_state.setdefault("pool_uploader_token", 0)
    st.session_state.setdefault("last_run_result", None)


def _init_services(
    config: AppConfig, state: QueueState
) -> tuple[WorkspaceService, TaskQueueExecutor, PlannerService, ExportService]:
    adapter = PyMuPdfAdapter()
    workspace_service = WorkspaceService(adapter, config)
    executor = TaskQueueExecutor(InsertionEngine(adapter), state, config)
    oracle = GeminiPlanOracle(
        config.gemini_api_key,
        model=config.gemini_model,
        fallback_models=config.gemini_fallback_models,
        timeout_seconds=config.planner_timeout_seconds,
        max_retries=config.planner_max_retries,
    )
    planner_service = PlannerService(oracle, state)
    return workspace_service, executor, planner_service, ExportService()


def _thumbnail_bytes(asset: FileAsset, zoom: float = 0.3) -> bytes | None:
    if asset.content is None or asset.page_count == 0:
        return None
    key = (asset.asset_id, round(zoom, 3))
    thumbnail_cache: dict[tuple[str, float], bytes] = st.session_state.thumbnail_cache
    if key not in thumbnail_cache:
        try:
            thumbnail_cache[key] = PyMuPdfAdapter().render_page_thumbnail(
                asset.content, 0, zoom=zoom
            )
        except MergeSuiteError:
            return None
    return thumbnail_cache[key]


def _thumbnail_html(image_bytes: bytes) -> str:
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return (
        "<div style='border:1px solid rgba(120,120,120,0.35);"
        " border-radius:8px;padding:4px;background:rgba(250,250,250,0.75);'>"
        f"<img src='data:image/png;base64,{encoded}' "
        "style='width:100%;height:auto;border-radius:4px;'/>"
        "</div>"
    )


def _asset_label(state: QueueState, asset_id: str) -> str:
    asset = state.get_asset(asset_id)
    return asset.name if asset is not None else "(missing file)"


def _pool_sidebar(config: AppConfig, state: QueueState, workspace_service: WorkspaceService) -> None:
    st.sidebar.header("File Pool")
    uploaded = st.sidebar.file_uploader(
        (
            "Add PDFs "
            f"(max {config.max_pdf_size_mb} MB each, "
            f"{config.max_batch_size_mb} MB total)"
        ),
        type=["pdf"],
        accept_multiple_files=True,
        key=f"pool_upload_{st.session_state.pool_uploader_token}",
    )
    if st.sidebar.button("Add to Pool", type="primary", disabled=not uploaded):
        try:
            files = [(item.name, item.getvalue()) for item in uploaded] if uploaded else []
            loaded = workspace_service.load_files(files)
            state.add_assets(loaded)
            st.session_state.pool_uploader_token += 1
            st.sidebar.success(f"Added {len(loaded)} PDF(s).")
            st.rerun()
        except MergeSuiteError as exc:
            st.sidebar.error(str(exc))

    if not state.assets:
        st.sidebar.info("No PDFs in the pool yet.")
        return

    for asset in state.assets:
        with st.sidebar.container(border=True):
            thumb_col, info_col = st.columns([1, 3])
            thumbnail = _thumbnail_bytes(asset)
            if thumbnail is not None:
                thumb_col.markdown(_thumbnail_html(thumbnail), unsafe_allow_html=True)
            info_col.markdown(f"**{asset.name}**")
            info_col.caption(
                f"{asset.page_count} page(s) · {round(asset.size_bytes / (1024 * 1024), 2)} MB"
            )
            if info_col.button("Remove", key=f"remove_asset_{asset.asset_id}"):
                removed = state.remove_asset(asset.asset_id)
                st.session_state.thumbnail_cache = {
                    key: value
                    for key, value in st.session_state.thumbnail_cache.items()
                    if key[0] != asset.asset_id
                }
                if removed:
                    st.toast(f"Removed {len(removed)} task(s) that used {asset.name}.")
                st.rerun()


def _task_builder(state: QueueState) -> None:
    st.subheader("Manual Task Builder", anchor=False)
    assets = state.assets
    if not assets:
        st.caption("Add PDFs to the pool to build tasks.")
        return

    names = {asset.asset_id: asset.name for asset in assets}
    with st.form(key="manual_task_form", clear_on_submit=True):
        target_id = st.selectbox(
            "Target PDF",
            options=list(names),
            format_func=names.__getitem__,
            index=None,
            placeholder="Select Target...",
        )
        source_ids = st.multiselect(
            "Source PDF(s), inserted in this order",
            options=list(names),
            format_func=names.__getitem__,
            placeholder="Select Source...",
        )
        position_col, page_col = st.columns(2)
        position = position_col.selectbox(
            "Position",
            options=list(_POSITION_LABELS),
            format_func=_POSITION_LABELS.__getitem__,
        )
        page_number = page_col.number_input(
            "Page Number (After Page only)", min_value=1, value=1, step=1
        )
        submit = st.form_submit_button("Add to Queue", use_container_width=True)
        if submit:
            if not target_id or not source_ids:
                st.warning("Select a target and at least one source.")
                return
            try:
                policy = (
                    InsertionPolicy.after_page(int(page_number))
                    if position is InsertionPosition.AFTER_PAGE
                    else InsertionPolicy(position)
                )
                state.create_task(target_id, source_ids, policy)
                st.rerun()
            except MergeSuiteError as exc:
                st.error(str(exc))


def _planner_panel(state: QueueState, planner_service: PlannerService) -> None:
    st.subheader("AI Batch Planner", anchor=False)
    st.caption(
        "Describe your batch operation. Example: "
        "_Insert disclaimer.pdf at the end of all files starting with 'Report'_"
    )
    with st.form(key="planner_form"):
        instruction = st.text_area(
            "Instruction",
            placeholder="Tell Gemini how to organize your PDFs...",
            height=110,
        )
        submit = st.form_submit_button("Generate Tasks", type="primary")
    if not submit:
        return
    try:
        with st.spinner("Planning..."):
            result = planner_service.generate_tasks(instruction)
    except MergeSuiteError as exc:
        st.error(f"Failed to generate plan: {exc}")
        return
    if result.mapped_count == 0:
        st.warning(
            "AI understood the request but could not map files correctly. "
            "Ensure filenames match exactly."
        )
    else:
        st.success(f"Mapped {result.mapped_count} of {result.proposed_count} task(s).")


def _render_task(task: MergeTask, state: QueueState, executor: TaskQueueExecutor) -> None:
    with st.container(border=True):
        info_col, status_col, action_col = st.columns([5, 2, 3])
        sources = ", ".join(_asset_label(state, item) for item in task.source_asset_ids)
        info_col.markdown(f"**{_asset_label(state, task.target_asset_id)}**")
        info_col.caption(f"Insert {sources} {task.policy.describe()}")
        status_col.write(_STATUS_BADGES[task.status])
        if task.status is TaskStatus.ERROR and task.error_message:
            info_col.error(task.error_message)

        if task.status is TaskStatus.COMPLETED and task.output_pdf:
            action_col.download_button(
                "Download",
                data=task.output_pdf,
                file_name=task.output_name or "merged.pdf",
                mime="application/pdf",
                key=f"download_{task.task_id}",
                use_container_width=True,
            )
        run_col, remove_col = action_col.columns(2)
        if run_col.button("Run", key=f"run_{task.task_id}", use_container_width=True):
            executor.run_one_sync(task.task_id)
            st.rerun()
        if remove_col.button("Remove", key=f"remove_task_{task.task_id}", use_container_width=True):
            state.remove_task(task.task_id)
            st.rerun()


def _render_run_result(result: QueueRunResult, export_service: ExportService) -> None:
    completed_col, error_col = st.columns(2)
    completed_col.metric("Completed", result.completed_count)
    error_col.metric("Error", result.error_count)
    report_name, report_text = export_service.build_run_text_summary(result)
    st.download_button(
        "Download Run Report",
        data=report_text,
        file_name=report_name,
        mime="text/plain",
    )


def _task_list(
    state: QueueState, executor: TaskQueueExecutor, export_service: ExportService
) -> None:
    st.subheader("Task Queue", anchor=False)
    tasks = state.tasks
    if not tasks:
        st.info("No tasks queued yet.")
        return

    runnable = [task for task in tasks if task.status.is_runnable]
    completed = [task for task in tasks if task.status is TaskStatus.COMPLETED]
    run_col, zip_col = st.columns(2)
    with run_col:
        if st.button(
            f"Run All ({len(runnable)})",
            type="primary",
            disabled=not runnable,
            use_container_width=True,
        ):
            with st.spinner("Merging..."):
                st.session_state.last_run_result = executor.run_all_sync()
            st.rerun()
    with zip_col:
        if completed:
            zip_name, zip_bytes = export_service.build_zip(completed)
            st.download_button(
                f"Download All ({len(completed)})",
                data=zip_bytes,
                file_name=zip_name,
                mime="application/zip",
                use_container_width=True,
            )

    last_result: QueueRunResult | None = st.session_state.last_run_result
    if last_result is not None and last_result.items:
        _render_run_result(last_result, export_service)

    for task in tasks:
        _render_task(task, state, executor)


def main() -> None:
    config = AppConfig()
    configure_logging(config.log_level)
    st.set_page_config(page_title="PDF Batch Insert", layout="wide")
    st.title("PDF Batch Insert", anchor=False)

    _init_state()
    state: QueueState = st.session_state.queue_state
    workspace_service, executor, planner_service, export_service = _init_services(config, state)

    _pool_sidebar(config, state, workspace_service)

    _task_list(state, executor, export_service)
    st.divider()
    builder_col, planner_col = st.columns(2)
    with builder_col:
        _task_builder(state)
    with planner_col:
        _planner_panel(state, planner_service)


if __name__ == "__main__":
    main()
