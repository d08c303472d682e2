"""
replenish_config -- public entrypoint for scenario configuration.

Responsibility:
    Provides ``load_scenario()`` and ``list_scenarios()``.  Scenario files
    are YAML documents describing one replenishment plan; they are parsed
    into the engine's frozen ``SimulationParams``.

Architecture position:
    Configuration -- sits above ``replenish_engines`` and below
    ``replenish_services`` and the CLI.  Engines MUST NEVER import from
    this package.

Failure modes:
    - ``ScenarioNotFoundError`` -- no such file.
    - ``InvalidScenarioError`` -- malformed YAML, missing key, bad value.

Audit relevance:
    Every successful ``load_scenario()`` call emits a
    ``REPLENISH_CONFIG_TRACE`` log entry with the scenario name, checksum,
    source path and batch count, tying a simulation back to the exact file
    that produced its inputs.
"""

from __future__ import annotations

import logging
from pathlib import Path

from replenish_config.loader import load_yaml_file, parse_scenario
from replenish_config.schema import FreightPlan, ScenarioDefinition

_logger = logging.getLogger("replenish_kernel.config")

# Bundled scenarios directory
DEFAULT_SCENARIO_DIR = Path(__file__).parent / "sets"


def load_scenario(path: Path | str) -> ScenarioDefinition:
    """
    Load and parse one scenario file.

    Raises:
        ScenarioNotFoundError: If the file does not exist.
        InvalidScenarioError: If the file cannot be parsed.
    """
    path = Path(path)
    data = load_yaml_file(path)
    scenario = parse_scenario(data, source=str(path))

    _logger.info(
        "REPLENISH_CONFIG_TRACE",
        extra={
            "trace_type": "REPLENISH_CONFIG_TRACE",
            "scenario_name": scenario.name,
            "checksum": scenario.checksum,
            "source_path": str(path),
            "batch_count": len(scenario.params.batches),
            "freight_derived": scenario.freight is not None,
        },
    )
    return scenario


def list_scenarios(directory: Path | str | None = None) -> list[Path]:
    """Scenario files in ``directory`` (default: bundled sets), sorted by name."""
    root = Path(directory) if directory is not None else DEFAULT_SCENARIO_DIR
    if not root.is_dir():
        return []
    return sorted(p for p in root.iterdir() if p.suffix in (".yaml", ".yml"))


__all__ = [
    "DEFAULT_SCENARIO_DIR",
    "FreightPlan",
    "ScenarioDefinition",
    "list_scenarios",
    "load_scenario",
]
