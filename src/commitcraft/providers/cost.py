"""Token estimation and per-model cost accounting."""

import math
import threading

from commitcraft.models.llm_models import GenerationUsage, ModelConfig

CHARS_PER_TOKEN = 4.0


def estimate_tokens(text: str) -> int:
    """Rough token estimate: ceil(chars / 4)."""
    if not text:
        return 0
    return int(math.ceil(len(text) / CHARS_PER_TOKEN))


def compute_cost(config: ModelConfig, input_tokens: int, output_tokens: int) -> float:
    return (
        (input_tokens / 1000) * config.cost.input_per_1k
        + (output_tokens / 1000) * config.cost.output_per_1k
    )


class CostTracker:
    """Accumulates GenerationUsage entries across threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._usages: list[GenerationUsage] = []

    def record(self, usage: GenerationUsage) -> None:
        with self._lock:
            self._usages.append(usage)

    def usages(self) -> list[GenerationUsage]:
        with self._lock:
            return list(self._usages)

    @property
    def total_usd(self) -> float:
        with self._lock:
            return sum(usage.cost_usd for usage in self._usages)

    def by_model(self) -> dict[str, float]:
        totals: dict[str, float] = {}
        for usage in self.usages():
            totals[usage.model_id] = totals.get(usage.model_id, 0.0) + usage.cost_usd
        return totals
