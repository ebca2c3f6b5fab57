from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


PlanPosition = Literal["BEGINNING", "END", "AFTER_PAGE"]


class PlannedTask(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_file_name: str = Field(alias="targetFileName")
    source_file_names: list[str] = Field(alias="sourceFileNames", default_factory=list)
    position: PlanPosition
    page_number: int | None = Field(alias="pageNumber", default=None)


class BatchPlan(BaseModel):
    """Oracle output. Entries are validated one at a time by the plan importer."""

    tasks: list[Any]


PLAN_RESPONSE_SCHEMA: dict[str, object] = {
    "type": "OBJECT",
    "properties": {
        "tasks": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "targetFileName": {
                        "type": "STRING",
                        "description": "Exact name of the target file",
                    },
                    "sourceFileNames": {
                        "type": "ARRAY",
                        "items": {"type": "STRING"},
                        "description": "List of exact names of source files to insert",
                    },
                    "position": {
                        "type": "STRING",
                        "enum": ["BEGINNING", "END", "AFTER_PAGE"],
                        "description": "Where to insert the source files",
                    },
                    "pageNumber": {
                        "type": "INTEGER",
                        "description": "Page number if position is AFTER_PAGE (1-based)",
                    },
                },
                "required": ["targetFileName", "sourceFileNames", "position"],
            },
        }
    },
}
