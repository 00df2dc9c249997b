"""Persistence adapters for Warsim worlds."""

from warsim.repository.json_store import JsonWorldRepository, SimulationState

__all__ = ["JsonWorldRepository", "SimulationState"]
