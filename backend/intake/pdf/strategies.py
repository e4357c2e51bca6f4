"""intake/pdf/strategies.py

Ordered fallback chains for PDF extraction.

Each strategy is tried in sequence and yields a result or an error; the first
result wins. The caller decides what a fully failed chain means.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Sequence, TypeVar

logger = logging.getLogger("intake.pdf.strategies")

T = TypeVar("T")


@dataclass(frozen=True)
class Strategy(Generic[T]):
    name: str
    run: Callable[[bytes], T]


@dataclass(frozen=True)
class StrategyOutcome(Generic[T]):
    name: str
    result: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None


@dataclass(frozen=True)
class ChainResult(Generic[T]):
    result: T | None
    attempts: list[StrategyOutcome[T]]

    @property
    def errors(self) -> dict[str, str]:
        return {a.name: str(a.error) for a in self.attempts if a.error is not None}


def attempt(strategy: Strategy[T], data: bytes) -> StrategyOutcome[T]:
    try:
        return StrategyOutcome(name=strategy.name, result=strategy.run(data))
    except Exception as e:  # a strategy failure only moves us to the next one
        return StrategyOutcome(name=strategy.name, error=e)


def run_chain(strategies: Sequence[Strategy[T]], data: bytes) -> ChainResult[T]:
    attempts: list[StrategyOutcome[T]] = []
    for strategy in strategies:
        outcome = attempt(strategy, data)
        attempts.append(outcome)
        if outcome.ok:
            return ChainResult(result=outcome.result, attempts=attempts)
        logger.info(
            "pdf.strategy_failed",
            extra={"strategy": strategy.name, "error": str(outcome.error)},
        )
    return ChainResult(result=None, attempts=attempts)
