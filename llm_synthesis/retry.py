"""Re-prompting when a model reply does not validate.

Only formatting failures are retried. Provider failures raised by the
adapter as ``LLMServiceError`` propagate on the first attempt.
"""

import logging
from typing import List, Type, TypeVar

from pydantic import BaseModel

from app.logging_utils import log_event
from llm_synthesis.adapter import BaseLLMAdapter
from llm_synthesis.validator import LLMOutputValidationError, validate_llm_output

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Correction notes quote at most this many validation errors.
_MAX_QUOTED_ERRORS = 5


class LLMRetryExhaustedError(Exception):
    """Every attempt returned output that failed validation."""

    def __init__(
        self,
        attempts: int,
        last_error: LLMOutputValidationError,
        history: List[LLMOutputValidationError],
    ) -> None:
        self.attempts = attempts
        self.last_error = last_error
        self.history = history
        super().__init__(f"No valid report after {attempts} attempt(s): {last_error}")


def correction_prompt(prompt: str, error: LLMOutputValidationError) -> str:
    """Append a note describing why the previous reply was rejected."""
    if error.stage == "json_parse":
        reason = "it was not valid JSON"
    else:
        reason = "it did not match the required structure"
    quoted = "\n".join(f"- {message}" for message in error.errors[:_MAX_QUOTED_ERRORS])
    return (
        f"{prompt}\n\n"
        f"Your previous reply could not be used because {reason}.\n"
        f"{quoted}\n"
        "Reply again with only the JSON object, no markdown and no commentary."
    )


def generate_with_retry(
    adapter: BaseLLMAdapter,
    prompt: str,
    schema: Type[ModelT],
    max_retries: int = 2,
) -> ModelT:
    """Ask ``adapter`` for a ``schema`` document, re-prompting on bad output.

    The first attempt uses ``prompt`` unchanged; each retry sends the
    original prompt plus a note about the previous failure. At most
    ``1 + max_retries`` calls are made.

    Raises:
        LLMRetryExhaustedError: when no attempt validates.
    """
    attempts = 1 + max(0, max_retries)
    failures: List[LLMOutputValidationError] = []
    current_prompt = prompt

    for attempt in range(1, attempts + 1):
        raw = adapter.generate(current_prompt)
        try:
            document = validate_llm_output(raw, schema)
        except LLMOutputValidationError as exc:
            failures.append(exc)
            log_event(
                logger,
                logging.WARNING,
                "llm_output_rejected",
                attempt=attempt,
                attempts=attempts,
                stage=exc.stage,
                errors=exc.errors[:_MAX_QUOTED_ERRORS],
            )
            current_prompt = correction_prompt(prompt, exc)
            continue

        if failures:
            log_event(logger, logging.INFO, "llm_output_recovered", attempt=attempt)
        return document

    raise LLMRetryExhaustedError(attempts=attempts, last_error=failures[-1], history=failures)
