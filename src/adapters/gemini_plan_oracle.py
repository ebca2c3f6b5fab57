from __future__ import annotations

import json
import logging
import time
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from src.domain.errors import OracleError
from src.domain.plan import PLAN_RESPONSE_SCHEMA, BatchPlan

LOGGER = logging.getLogger(__name__)


class PlanOracle(Protocol):
    def propose(self, file_names: list[str], instruction: str) -> BatchPlan:
        ...


def build_plan_prompt(file_names: list[str], instruction: str) -> str:
    return (
        f"I have a list of PDF files: {json.dumps(file_names)}.\n\n"
        f'User Instruction: "{instruction.strip()}"\n\n'
        "Based on the file names and the user's instruction, create a list of merge tasks. "
        "Each task should specify one target file and one or more source files to be "
        "inserted into it. If the user implies \"all files\", exclude the source file itself "
        "from being a target if applicable.\n\n"
        "Return the response in strict JSON format matching the schema."
    )


class GeminiPlanOracle:
    name = "gemini"

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str,
        fallback_models: tuple[str, ...] = (),
        timeout_seconds: float,
        max_retries: int,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.fallback_models = fallback_models
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(0, max_retries)

    def propose(self, file_names: list[str], instruction: str) -> BatchPlan:
        if not self.api_key:
            raise OracleError("GEMINI_API_KEY not configured")

        try:
            from google import genai
            from google.genai import types
        except Exception as exc:  # pragma: no cover
            raise OracleError(f"Gemini SDK unavailable: {exc}") from exc

        # google-genai HttpOptions.timeout is interpreted in milliseconds.
        timeout_millis = max(1000, int(self.timeout_seconds * 1000))
        client = genai.Client(
            api_key=self.api_key,
            http_options=types.HttpOptions(timeout=timeout_millis),
        )
        prompt = build_plan_prompt(file_names, instruction)

        last_error: OracleError | None = None
        models_to_try = [self.model, *self.fallback_models]
        for model_name in models_to_try:
            for attempt in range(self.max_retries + 1):
                try:
                    response = client.models.generate_content(
                        model=model_name,
                        contents=prompt,
                        config=types.GenerateContentConfig(
                            temperature=0.2,
                            response_mime_type="application/json",
                            response_schema=PLAN_RESPONSE_SCHEMA,
                        ),
                    )
                    text = response.text or ""
                    if text:
                        return BatchPlan.model_validate_json(text)
                    last_error = OracleError(f"Empty Gemini response from model '{model_name}'")
                except PydanticValidationError as exc:
                    last_error = OracleError(
                        f"Unparseable plan from model '{model_name}': {exc.error_count()} error(s)"
                    )
                except Exception as exc:
                    LOGGER.warning("Gemini request failed for model %s", model_name, exc_info=True)
                    last_error = OracleError(f"Gemini request failed: {exc}")

                if attempt < self.max_retries:
                    time.sleep(0.4 * (attempt + 1))

        if last_error:
            raise OracleError(
                f"{last_error} (models tried: {', '.join(models_to_try)})"
            ) from last_error
        raise OracleError("Gemini returned no plan")
