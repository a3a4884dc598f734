"""Success-rate monitoring for rejection sampling."""

from typing import Any, Callable

from hypothesis import strategies as st

from .config import GenerationConfig
from .errors import GenerationError


class SuccessRateGuard:
    """Filter predicate that gives up when almost nothing passes.

    Counts every evaluation. Once more than ``min_runs`` values have been
    seen and the share of accepted ones is below ``min_success_rate``, every
    further call raises GenerationError instead of letting the consumer
    spin on a predicate that is practically unsatisfiable.
    """

    def __init__(self, predicate: Callable[[Any], bool], path: str,
                 min_success_rate: float = 0.01, min_runs: int = 1000):
        self.predicate = predicate
        self.path = path
        self.min_success_rate = min_success_rate
        self.min_runs = min_runs
        self.total = 0
        self.successful = 0

    @property
    def success_rate(self) -> float:
        return self.successful / self.total if self.total else 1.0

    def __call__(self, value: Any) -> bool:
        is_success = bool(self.predicate(value))

        self.total += 1
        if is_success:
            self.successful += 1

        if self.total > self.min_runs and self.success_rate < self.min_success_rate:
            raise GenerationError(
                "Unable to generate valid values for schema. "
                f"An override must be provided for the schema at path '{self.path or '.'}'.",
                self.path,
            )

        return is_success


def guarded(predicate: Callable[[Any], bool], path: str,
            config: GenerationConfig) -> SuccessRateGuard:
    """Build a guard using the thresholds from config."""
    return SuccessRateGuard(predicate, path, config.min_success_rate, config.min_runs)


def filter_by_schema(strategy: st.SearchStrategy, schema, path: str,
                     config: GenerationConfig) -> st.SearchStrategy:
    """Keep only values the schema itself accepts."""
    return strategy.filter(
        guarded(lambda value: schema.safe_parse(value).success, path, config)
    )
