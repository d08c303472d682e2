"""
Typed exception hierarchy for the replenishment planner.

Every error has a typed class (catch by type, not by message), a ``code``
class attribute (machine-readable, API-safe), and carries its context as
attributes rather than only inside the message string.

The simulation engine itself never raises for well-typed input.  These
exceptions belong to the boundaries around it: building input records,
loading scenario files, and deriving freight prices from carton specs.

    ReplenishmentError (base)
    |
    +-- ScenarioConfigError
    |   +-- ScenarioNotFoundError
    |   +-- InvalidScenarioError
    |
    +-- UnknownShipmentTypeError
    |
    +-- FreightError
        +-- InvalidPackageSpecError

Code                      | When Raised
--------------------------|--------------------------------------------
SCENARIO_NOT_FOUND        | Scenario YAML file does not exist
INVALID_SCENARIO          | Malformed YAML, missing key, bad value
UNKNOWN_SHIPMENT_TYPE     | Batch ships on a type with no logistics lane
INVALID_PACKAGE_SPEC      | Carton with zero pieces or a zero dimension

Handling pattern::

    try:
        scenario = load_scenario(path)
    except ScenarioNotFoundError as e:
        print(f"no such scenario: {e.path}")
    except InvalidScenarioError as e:
        print(f"{e.path}: {e.field}: {e.reason}")
"""

from __future__ import annotations


class ReplenishmentError(Exception):
    """
    Base exception for all replenishment planner errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "REPLENISHMENT_ERROR"


# Scenario configuration


class ScenarioConfigError(ReplenishmentError):
    """Base exception for scenario configuration errors."""

    code: str = "SCENARIO_CONFIG_ERROR"


class ScenarioNotFoundError(ScenarioConfigError):
    """Scenario file does not exist."""

    code: str = "SCENARIO_NOT_FOUND"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Scenario file not found: {path}")


class InvalidScenarioError(ScenarioConfigError):
    """Scenario file could not be parsed into simulation inputs."""

    code: str = "INVALID_SCENARIO"

    def __init__(self, path: str, field: str, reason: str):
        self.path = path
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid scenario {path}: {field}: {reason}")


# Batch plan


class UnknownShipmentTypeError(ReplenishmentError):
    """A batch references a shipment type with no logistics lane."""

    code: str = "UNKNOWN_SHIPMENT_TYPE"

    def __init__(self, batch_id: str, shipment_type: str, available: tuple[str, ...]):
        self.batch_id = batch_id
        self.shipment_type = shipment_type
        self.available = available
        super().__init__(
            f"Batch {batch_id} ships via {shipment_type!r}, "
            f"but logistics only define {list(available)}"
        )


# Freight


class FreightError(ReplenishmentError):
    """Base exception for freight calculation errors."""

    code: str = "FREIGHT_ERROR"


class InvalidPackageSpecError(FreightError):
    """Carton specification cannot be priced."""

    code: str = "INVALID_PACKAGE_SPEC"

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Package spec {field} must be positive, got {value}")
