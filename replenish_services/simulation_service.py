"""
replenish_services.simulation_service -- Memoizing caller of the simulation engine.

Responsibility:
    Run ``simulate_replenishment`` on behalf of CLIs and UIs, reusing the
    previous result when the same inputs are simulated again.  Binds
    ``scenario_id`` and ``run_id`` into LogContext for the duration of
    each run so every engine log record carries them.

Architecture position:
    Services -- orchestration over engines + config.  The engine is a pure
    function; all caching lives here.

Invariants enforced:
    - Cache keys are the frozen, hashable ``(SimulationParams,
      EnginePolicy)`` pair; equal inputs always map to the same entry.
    - The cache never holds more than ``max_entries`` results; the least
      recently used entry is evicted first.
    - Cached results are immutable and shared, never copied.

Failure modes:
    - Propagates ScenarioConfigError from ``run_scenario_file``.

Usage:
    service = SimulationService(max_entries=32)
    result = service.run(params, scenario_id="spring_restock")
    service.cache_info()   # CacheInfo(hits=0, misses=1, size=1, max_entries=32)
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from replenish_config import load_scenario
from replenish_config.schema import ScenarioDefinition
from replenish_engines.policy import DEFAULT_POLICY, EnginePolicy
from replenish_engines.simulation import SimulationParams, SimulationResult, simulate_replenishment
from replenish_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.simulation")

_CacheKey = tuple[SimulationParams, EnginePolicy]


@dataclass(frozen=True)
class CacheInfo:
    hits: int
    misses: int
    size: int
    max_entries: int


class SimulationService:
    """
    Runs simulations with a bounded LRU memo.

    Thread-safe: the memo is guarded by a lock; the simulation itself runs
    outside it, so concurrent misses on different inputs do not serialize.
    """

    def __init__(self, max_entries: int = 64, policy: EnginePolicy | None = None):
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self._max_entries = max_entries
        self._policy = policy or DEFAULT_POLICY
        self._cache: OrderedDict[_CacheKey, SimulationResult | None] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def policy(self) -> EnginePolicy:
        return self._policy

    def run(
        self,
        params: SimulationParams,
        scenario_id: str | None = None,
        policy: EnginePolicy | None = None,
    ) -> SimulationResult | None:
        """Simulate ``params``, returning the cached result when available."""
        key = (params, policy or self._policy)
        run_id = str(uuid4())

        with LogContext.bind(scenario_id=scenario_id, run_id=run_id):
            with self._lock:
                if key in self._cache:
                    self._cache.move_to_end(key)
                    self._hits += 1
                    logger.info("simulation_cache_hit", extra={"cache_size": len(self._cache)})
                    return self._cache[key]
                self._misses += 1

            logger.info("simulation_cache_miss", extra={"cache_size": len(self._cache)})
            result = simulate_replenishment(params, key[1])

            with self._lock:
                self._cache[key] = result
                self._cache.move_to_end(key)
                while len(self._cache) > self._max_entries:
                    self._cache.popitem(last=False)
                    logger.debug("simulation_cache_evicted", extra={
                        "max_entries": self._max_entries,
                    })
            return result

    def run_scenario(
        self,
        scenario: ScenarioDefinition,
        policy: EnginePolicy | None = None,
    ) -> SimulationResult | None:
        """Simulate a loaded scenario, tagging logs with its id."""
        return self.run(scenario.params, scenario_id=scenario.scenario_id, policy=policy)

    def run_scenario_file(self, path: Path | str) -> tuple[ScenarioDefinition, SimulationResult | None]:
        """Load ``path`` and simulate it."""
        scenario = load_scenario(path)
        return scenario, self.run_scenario(scenario)

    def cache_info(self) -> CacheInfo:
        with self._lock:
            return CacheInfo(
                hits=self._hits,
                misses=self._misses,
                size=len(self._cache),
                max_entries=self._max_entries,
            )

    def clear(self) -> None:
        """Drop every cached result and reset the counters."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0
        logger.info("simulation_cache_cleared")
