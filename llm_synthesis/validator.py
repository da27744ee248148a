"""Turns a raw model reply into a validated report document.

Models are asked for bare JSON but regularly wrap it in a markdown fence
or put a sentence in front of it. The reply is unwrapped, the first JSON
object in it is decoded, and the object is checked against the report
model for the requested report type.
"""

import json
import re
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)
_decoder = json.JSONDecoder()


class LLMOutputValidationError(Exception):
    """A model reply that could not be turned into a report document.

    ``stage`` is ``"json_parse"`` when no JSON object could be decoded and
    ``"schema"`` when the decoded value does not fit the report model.
    """

    def __init__(self, stage: str, errors: List[str], raw_response: str) -> None:
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response
        super().__init__(f"Invalid report output ({stage}): {'; '.join(errors)}")


def _unwrap(text: str) -> str:
    stripped = text.strip()
    fenced = _FENCE.match(stripped)
    return fenced.group(1) if fenced else stripped


def _decode(text: str) -> Any:
    """Decode the whole text, or else the first JSON object embedded in it."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        first_error = exc

    start = text.find("{")
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(text, start)
            return value
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
    raise first_error


def _describe(exc: ValidationError) -> List[str]:
    described = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        described.append(f"{location}: {error['msg']}")
    return described


def validate_llm_output(raw_response: str, schema: Type[ModelT]) -> ModelT:
    """Decode ``raw_response`` and validate it as a ``schema`` document.

    Raises:
        LLMOutputValidationError: when decoding or validation fails.
    """
    if not isinstance(raw_response, str):
        raise LLMOutputValidationError(
            "json_parse", [f"expected text, got {type(raw_response).__name__}"], str(raw_response)
        )

    try:
        data = _decode(_unwrap(raw_response))
    except json.JSONDecodeError as exc:
        raise LLMOutputValidationError("json_parse", [str(exc)], raw_response) from exc

    if not isinstance(data, dict):
        raise LLMOutputValidationError(
            "schema", [f"expected a JSON object, got {type(data).__name__}"], raw_response
        )

    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise LLMOutputValidationError("schema", _describe(exc), raw_response) from exc
