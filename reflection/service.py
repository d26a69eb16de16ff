"""Reflection service: validates entries and runs the generation strategy chain"""

from typing import List, Optional, Protocol, Sequence

from config import Config
from reflection.errors import ReflectionUnavailableError
from reflection.heuristic import HeuristicStrategy
from reflection.logging_utils import get_logger
from reflection.models import ReflectionRequest, ReflectionResult, parse_request
from reflection.observability import record_strategy_served
from reflection.openai_strategy import OpenAIStrategy

logger = get_logger(__name__)


class ReflectionStrategy(Protocol):
    name: str

    async def try_generate(self, goal: str, content: str) -> Optional[ReflectionResult]:
        ...


class ReflectionService:
    """Stateless handler that tries each strategy in order until one answers.

    The chain is fixed at construction. Whether the external provider is part
    of it is decided once from configuration, never per request.
    """

    def __init__(self, strategies: Sequence[ReflectionStrategy]) -> None:
        if not strategies:
            raise ValueError("ReflectionService needs at least one strategy")
        self.strategies: List[ReflectionStrategy] = list(strategies)

    @classmethod
    def from_config(cls, config: Config) -> "ReflectionService":
        strategies: List[ReflectionStrategy] = []
        if config.external_provider_configured:
            strategies.append(
                OpenAIStrategy(
                    api_key=config.OPENAI_API_KEY,
                    timeout=config.OPENAI_TIMEOUT_SECONDS,
                )
            )
        strategies.append(HeuristicStrategy())
        return cls(strategies)

    @property
    def strategy_names(self) -> List[str]:
        return [strategy.name for strategy in self.strategies]

    async def handle(self, raw_body: bytes | str) -> ReflectionResult:
        """Validate a raw request body and generate its reflection."""
        request = parse_request(raw_body)
        return await self.generate(request)

    async def generate(self, request: ReflectionRequest) -> ReflectionResult:
        for strategy in self.strategies:
            result = await strategy.try_generate(request.goal, request.content)
            if result is None:
                logger.info(
                    f"Strategy {strategy.name} returned no result, falling back",
                    extra={"extra_data": {"entry_id": request.entry_id, "strategy": strategy.name}},
                )
                continue

            record_strategy_served(strategy.name)
            logger.info(
                f"Reflection served by {strategy.name}",
                extra={"extra_data": {"entry_id": request.entry_id, "strategy": strategy.name}},
            )
            return result

        raise ReflectionUnavailableError()


__all__ = ["ReflectionService", "ReflectionStrategy"]
