"""
Scenario schema -- typed result of loading a scenario file.

A scenario bundles one SimulationParams with the identity of the file it
came from.  The params themselves are the engine's frozen dataclasses;
this module only adds what the engine does not need to know about.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from replenish_engines.freight import FreightChannel, PackageSpec
from replenish_engines.simulation.params import SimulationParams


@dataclass(frozen=True)
class FreightPlan:
    """Carton spec and channel quotes a scenario derived its lanes from."""

    package: PackageSpec
    channels: tuple[FreightChannel, ...]
    currency: str
    selected: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ScenarioDefinition:
    """
    One loaded scenario.

    ``checksum`` is the SHA-256 of the canonical JSON of the raw YAML
    document, so two files with the same content share a checksum.
    """

    name: str
    params: SimulationParams
    checksum: str
    description: str = ""
    source_path: Path | None = None
    freight: FreightPlan | None = None

    @property
    def scenario_id(self) -> str:
        return self.name
