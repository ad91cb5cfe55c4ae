"""
Structured Output - Turn a provider's raw text into a typed value.

A StructuredParser pairs a parse function with an optional validate
predicate. The orchestrator runs both synchronously after a successful
attempt; a raising parse or a False validate is handled exactly like a
provider failure and may trigger fallback.

Helpers:
- extract_json(): Pull a JSON document out of model text
- pydantic_parser(): Build a StructuredParser around a pydantic model
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterator, TypeVar

from pydantic import BaseModel

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class StructuredParser(Generic[T]):
    """
    Parse/validate pair applied to raw provider text.

    Attributes:
        parse: Converts raw text into a value; may raise
        validate: Optional predicate; returning False rejects the value
    """

    parse: Callable[[str], T]
    validate: Callable[[T], bool] | None = None

    def is_valid(self, value: T) -> bool:
        """Run the validate predicate, treating a missing one as accept-all."""
        if self.validate is None:
            return True
        return bool(self.validate(value))


_FENCE = re.compile(r"```([\w+-]*)[ \t]*\n?(.*?)```", re.DOTALL)


def _json_candidates(text: str) -> Iterator[str]:
    """Yield the whole text, then ```json fences, then every other fence."""
    yield text
    fences = [(m.group(1).lower(), m.group(2).strip()) for m in _FENCE.finditer(text)]
    yield from (body for tag, body in fences if tag == "json")
    yield from (body for tag, body in fences if tag != "json")


def extract_json(response_text: str) -> Any:
    """
    Parse a JSON document out of model output.

    Models asked for JSON often wrap it in prose or a markdown fence. The
    raw text is tried first, then fences tagged json, then any other fence.

    Raises:
        ValueError: Empty text, or no candidate decodes.
    """
    if not response_text or not response_text.strip():
        raise ValueError("Structured output is empty")

    for candidate in _json_candidates(response_text):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue

    raise ValueError("Structured output is not valid JSON")


def pydantic_parser(
    model_cls: type[ModelT],
    validate: Callable[[ModelT], bool] | None = None,
) -> StructuredParser[ModelT]:
    """
    Build a StructuredParser that decodes JSON into a pydantic model.

    Schema violations raise pydantic.ValidationError from parse(), which
    the orchestrator treats as an attempt failure.

    Args:
        model_cls: Pydantic model describing the expected output.
        validate: Extra predicate applied after schema validation.

    Returns:
        StructuredParser producing model_cls instances.
    """

    def parse(raw: str) -> ModelT:
        return model_cls.model_validate(extract_json(raw))

    return StructuredParser(parse=parse, validate=validate)
