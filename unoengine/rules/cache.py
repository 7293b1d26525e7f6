"""
Pipeline Cache - Reuse built rule pipelines by key.

The cache:
- Uses a caller-chosen key ("default" for the standard rule set)
- Lives in memory, owned by whoever constructs it
- Is optional (a pipeline can always be rebuilt)
- Tracks hits and misses for diagnostics

Pipelines are immutable values, so a cached entry can be shared by
concurrent actions. Entries are written once per key.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterator
import logging

from .pipeline import RulePipeline, create_default_rule_pipeline

logger = logging.getLogger(__name__)

DEFAULT_PIPELINE_KEY = "default"


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class PipelineCache:
    """
    In-memory cache of rule pipelines.

    Usage:
        cache = PipelineCache()
        pipeline = cache.get_or_create("default", create_default_rule_pipeline)

        # Tests
        cache.clear()
        cache.reset_stats()
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.stats = CacheStats()
        self._pipelines: dict[str, RulePipeline] = {}

    def get(self, key: str) -> RulePipeline | None:
        pipeline = self._pipelines.get(key) if self.enabled else None
        if pipeline is None:
            self.stats.misses += 1
        else:
            self.stats.hits += 1
        return pipeline

    def put(self, key: str, pipeline: RulePipeline) -> RulePipeline:
        """Store a pipeline unless one already exists for the key."""
        if not self.enabled:
            return pipeline
        return self._pipelines.setdefault(key, pipeline)

    def get_or_create(self, key: str, factory: Callable[[], RulePipeline]) -> RulePipeline:
        pipeline = self.get(key)
        if pipeline is None:
            logger.debug("Building rule pipeline %r", key)
            pipeline = self.put(key, factory())
        return pipeline

    def get_default(self) -> RulePipeline:
        return self.get_or_create(DEFAULT_PIPELINE_KEY, create_default_rule_pipeline)

    def invalidate(self, key: str):
        self._pipelines.pop(key, None)

    def clear(self):
        self._pipelines.clear()

    def reset_stats(self):
        self.stats = CacheStats()

    def list_cached(self) -> list[str]:
        return list(self._pipelines)

    def __len__(self) -> int:
        return len(self._pipelines)

    def __iter__(self) -> Iterator[str]:
        return iter(self.list_cached())
