"""
OpenAI-backed reflection strategy with soft-failure semantics
"""

import json
import time
from typing import Any, Dict, List, Optional

import openai

from reflection.logging_utils import get_structured_logger
from reflection.models import ReflectionResult
from reflection.observability import record_external_call

logger = get_structured_logger(__name__)

MODEL = "gpt-4o-mini"
TEMPERATURE = 0.7
SYSTEM_PROMPT = (
    "You are an empathetic journaling coach. Respond with concise JSON containing "
    "`reflection` and optional `action` fields."
)
NO_GOAL_PLACEHOLDER = "(none provided)"


def build_messages(goal: str, content: str) -> List[Dict[str, str]]:
    """Build the chat messages sent to the provider for one entry."""
    user_prompt = "".join(
        [
            "Goal: ",
            goal or NO_GOAL_PLACEHOLDER,
            "\nJournal entry: ",
            content,
            '\nReturn JSON, for example {"reflection":"...","action":"..."}.',
        ]
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


class OpenAIStrategy:
    """Single-attempt OpenAI chat completion that yields ``None`` on any failure.

    The client is built with ``max_retries=0`` and a finite ``timeout`` so one
    inbound request never causes more than one outbound call and a stalled
    provider cannot hold the request open indefinitely.
    """

    name = "openai"

    def __init__(self, api_key: str, timeout: float, client: Optional[Any] = None):
        if timeout is None or timeout <= 0:
            raise ValueError("OpenAIStrategy requires a positive timeout")
        self.timeout = timeout
        self.client = client or openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )

    async def try_generate(self, goal: str, content: str) -> Optional[ReflectionResult]:
        start_time = time.perf_counter()
        try:
            completion = await self.client.chat.completions.create(
                model=MODEL,
                temperature=TEMPERATURE,
                response_format={"type": "json_object"},
                messages=build_messages(goal, content),
            )
        except openai.APIStatusError as e:
            logger.warning(
                "OpenAI request failed",
                status_code=e.status_code,
                error=e.message,
            )
            record_external_call(self.name, f"status_{e.status_code}")
            return None
        except openai.APITimeoutError as e:
            logger.warning("OpenAI request timed out", timeout=self.timeout, error=str(e))
            record_external_call(self.name, "timeout")
            return None
        except openai.OpenAIError as e:
            logger.warning("Unable to generate reflection via OpenAI", error=str(e))
            record_external_call(self.name, "transport_error")
            return None

        duration = time.perf_counter() - start_time
        message = self._message_content(completion)
        if not message:
            choices = getattr(completion, "choices", None) or []
            logger.warning(
                "OpenAI completion missing content",
                duration=round(duration, 3),
                choice_count=len(choices),
                finish_reason=getattr(choices[0], "finish_reason", None) if choices else None,
            )
            record_external_call(self.name, "missing_content")
            return None

        result = self._parse_result(message)
        if result is None:
            record_external_call(self.name, "unusable_payload")
            return None

        logger.info("OpenAI reflection generated", duration=round(duration, 3))
        record_external_call(self.name, "success")
        return result

    @staticmethod
    def _message_content(completion: Any) -> Optional[str]:
        choices = getattr(completion, "choices", None) or []
        if not choices:
            return None
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str) or not content.strip():
            return None
        return content

    @staticmethod
    def _parse_result(message: str) -> Optional[ReflectionResult]:
        try:
            parsed = json.loads(message)
        except ValueError as e:
            logger.warning("Failed to parse OpenAI completion as JSON", error=str(e))
            return None

        if not isinstance(parsed, dict):
            logger.warning("OpenAI completion was not a JSON object", payload_type=type(parsed).__name__)
            return None

        reflection = parsed.get("reflection")
        if not isinstance(reflection, str) or not reflection.strip():
            logger.warning("OpenAI completion did not include reflection", keys=sorted(parsed))
            return None

        action = parsed.get("action")
        if not isinstance(action, str) or not action.strip():
            action = None

        return ReflectionResult(
            reflection=reflection.strip(),
            action=action.strip() if action else None,
        )


__all__ = ["OpenAIStrategy", "build_messages", "MODEL"]
