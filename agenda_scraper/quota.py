from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from .config import DEFAULT_MAX_PER_CONFIG, DEFAULT_MAX_TOTAL, env_int


@dataclass(frozen=True)
class RunLimits:
    max_total: int = DEFAULT_MAX_TOTAL
    max_per_config: int = DEFAULT_MAX_PER_CONFIG

    @classmethod
    def from_env(cls) -> "RunLimits":
        return cls(
            max_total=env_int("SCRAPE_EVENTS_MAX_TOTAL", DEFAULT_MAX_TOTAL),
            max_per_config=env_int("SCRAPE_EVENTS_MAX_PER_CONFIG", DEFAULT_MAX_PER_CONFIG),
        )


class QuotaController:
    """
    Run-scoped counters for created requests.

    Nothing is remembered about URLs dropped by a cap; they are simply
    rediscovered on the next run.
    """

    def __init__(self, limits: RunLimits) -> None:
        self.limits = limits
        self.total = 0
        self.source_count = 0

    def start_source(self) -> None:
        self.source_count = 0

    @property
    def global_exhausted(self) -> bool:
        return self.total >= self.limits.max_total

    @property
    def source_exhausted(self) -> bool:
        return self.source_count >= self.limits.max_per_config

    def allows(self) -> bool:
        return not (self.global_exhausted or self.source_exhausted)

    def record_created(self) -> None:
        self.total += 1
        self.source_count += 1

    def per_source_slice(self, urls: Sequence[str]) -> List[str]:
        return list(urls[: self.limits.max_per_config])
