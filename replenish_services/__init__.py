"""Services -- stateful callers of the pure replenishment engines."""

from replenish_services.simulation_service import CacheInfo, SimulationService

__all__ = ["CacheInfo", "SimulationService"]
