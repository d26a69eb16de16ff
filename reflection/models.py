"""
Request and response values exchanged with the reflection endpoint
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from reflection.errors import MalformedRequestError, ValidationFailedError


class Tone(str, Enum):
    UPBEAT = "upbeat"
    STRESSED = "stressed"
    STEADY = "steady"


class ReflectionRequest(BaseModel):
    """Validated journal entry submitted for reflection."""

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(alias="entryId")
    goal: str = ""
    content: str

    @field_validator("goal", mode="before")
    @classmethod
    def _missing_goal_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("entry_id", "content")
    @classmethod
    def _require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("goal")
    @classmethod
    def _trim_goal(cls, value: str) -> str:
        return value.strip()


@dataclass(frozen=True)
class ReflectionResult:
    """Reflection text plus an optional suggested next step."""

    reflection: str
    action: Optional[str] = None

    def to_payload(self) -> Dict[str, str]:
        payload = {"reflection": self.reflection}
        if self.action:
            payload["action"] = self.action
        return payload


def parse_request(raw: bytes | str) -> ReflectionRequest:
    """Decode a raw request body into a ``ReflectionRequest``.

    Raises:
        MalformedRequestError: the body is not JSON, or nests too deeply to decode.
        ValidationFailedError: the JSON is not an object, or ``entryId`` /
            ``content`` are missing, not strings, or blank after trimming.
    """
    try:
        payload = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise MalformedRequestError() from exc

    if not isinstance(payload, dict):
        raise ValidationFailedError()

    try:
        return ReflectionRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailedError() from exc


__all__ = ["Tone", "ReflectionRequest", "ReflectionResult", "parse_request"]
