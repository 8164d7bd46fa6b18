"""
galaxymodel.py
==============
Immutable value types describing a painted galaxy project.

A project is the full editable map state:
  • name               – display name, also used as the scenario name on export
  • canvas             – opaque image blob (PNG/JPEG bytes) holding the painted
                         density image
  • solar_systems      – ordered tuple of SolarSystem (order = creation order)
  • nebulas            – tuple of Nebula
  • hyperlanes         – tuple of Connection, no duplicates under symmetric
                         equality
  • wormholes          – tuple of Connection, same shape as hyperlanes
  • generator_settings – GeneratorSettings used by galaxygen

Every value here is a frozen dataclass.  Editing a project always produces a new
Project (see galaxyactions.apply_actions); nothing is ever written in place.

Coordinates are canvas-space: origin top-left, x to the right, y downwards,
bounded by CANVAS_WIDTH × CANVAS_HEIGHT.
"""

from __future__ import annotations

import dataclasses
import enum
import math
from typing import Optional, Tuple


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# canvas size (the painted image and the exported map share it)
CANVAS_WIDTH = 1000
CANVAS_HEIGHT = 1000

# search for empty circles to dynamically spawn fallen empires on game start
FALLEN_EMPIRE_SPAWN_RADIUS = 50

# AI empires don't account for all spawns, so keep more spawns than max empires
SPAWNS_PER_MAX_AI_EMPIRE = 1.5

# random nebula placement
NUM_RANDOM_NEBULAS = 6
RANDOM_NEBULA_MIN_RADIUS = 40
RANDOM_NEBULA_MAX_RADIUS = 60
RANDOM_NEBULA_MIN_DISTANCE = 150


def js_round(value: float) -> int:
    """Round half up (``round(2.5) == 3``), unlike Python's banker's rounding."""
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class Coordinate:
    """A canvas-space point.  Equality and hashing are by exact value."""

    x: float
    y: float

    @property
    def key(self) -> str:
        return f"{self.x},{self.y}"

    def distance_to(self, other: Coordinate) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def to_rounded(self) -> Coordinate:
        return Coordinate(js_round(self.x), js_round(self.y))

    def to_export_coordinate(self) -> Coordinate:
        """Map to scenario space: origin at the canvas centre, x mirrored."""
        return Coordinate(
            CANVAS_WIDTH / 2 - self.x,
            self.y - CANVAS_HEIGHT / 2,
        )

    @staticmethod
    def from_export_coordinate(coordinate: Coordinate) -> Coordinate:
        return Coordinate(
            CANVAS_WIDTH / 2 - coordinate.x,
            coordinate.y + CANVAS_HEIGHT / 2,
        )


# ---------------------------------------------------------------------------
# Map entities
# ---------------------------------------------------------------------------

SolarSystemId = int


class SpawnType(str, enum.Enum):
    DISABLED = "disabled"
    ENABLED = "enabled"
    PREFERRED = "preferred"


@dataclasses.dataclass(frozen=True)
class SolarSystem:
    """A star system.  ``id`` is its identity; equality compares the full value."""

    id: SolarSystemId
    coordinate: Coordinate
    spawn_type: SpawnType = SpawnType.DISABLED

    def __post_init__(self) -> None:
        # accept plain strings (e.g. from CSV) but always store the enum
        object.__setattr__(self, "spawn_type", SpawnType(self.spawn_type))

    @property
    def is_spawn(self) -> bool:
        return self.spawn_type != SpawnType.DISABLED


@dataclasses.dataclass(frozen=True, eq=False)
class Connection:
    """Unordered pair of solar system ids, used for hyperlanes and wormholes.

    ``Connection(a, b) == Connection(b, a)`` and both hash alike.
    """

    a: SolarSystemId
    b: SolarSystemId

    def __post_init__(self) -> None:
        object.__setattr__(self, "a", int(self.a))
        object.__setattr__(self, "b", int(self.b))

    @property
    def key(self) -> Tuple[int, int]:
        return (self.a, self.b) if self.a <= self.b else (self.b, self.a)

    def touches(self, solar_system_id: SolarSystemId) -> bool:
        return solar_system_id in (self.a, self.b)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Connection):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)


@dataclasses.dataclass(frozen=True)
class Nebula:
    coordinate: Coordinate
    radius: float

    def __post_init__(self) -> None:
        if not self.radius > 0:
            raise ValueError(f"Nebula radius must be > 0, got {self.radius}")

    @property
    def key(self) -> str:
        return f"{self.coordinate.x},{self.coordinate.y},{self.radius}"


# ---------------------------------------------------------------------------
# Generator settings
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class GeneratorSettings:
    """Per-project parameters for the galaxy generator.

    ``hyperlane_connectivity`` is clamped into [0, 1]; every other numeric field
    must be non-negative.
    """

    number_of_systems: int = 600
    min_distance_between_systems: float = 10
    hyperlane_connectivity: float = 0.5
    hyperlane_max_distance: float = 100
    allow_disconnected: bool = False

    def __post_init__(self) -> None:
        if self.number_of_systems < 0:
            raise ValueError("number_of_systems must be >= 0")
        if self.min_distance_between_systems < 0:
            raise ValueError("min_distance_between_systems must be >= 0")
        if self.hyperlane_max_distance < 0:
            raise ValueError("hyperlane_max_distance must be >= 0")
        clamped = min(max(float(self.hyperlane_connectivity), 0.0), 1.0)
        object.__setattr__(self, "hyperlane_connectivity", clamped)
        object.__setattr__(self, "number_of_systems", int(self.number_of_systems))
        object.__setattr__(self, "allow_disconnected", bool(self.allow_disconnected))


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class Project:
    name: str
    canvas: bytes
    solar_systems: Tuple[SolarSystem, ...] = ()
    nebulas: Tuple[Nebula, ...] = ()
    hyperlanes: Tuple[Connection, ...] = ()
    wormholes: Tuple[Connection, ...] = ()
    generator_settings: GeneratorSettings = dataclasses.field(
        default_factory=GeneratorSettings
    )

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Project name must be non-empty")
        for field in ("solar_systems", "nebulas", "hyperlanes", "wormholes"):
            object.__setattr__(self, field, tuple(getattr(self, field)))

    def replace(self, **changes) -> Project:
        return dataclasses.replace(self, **changes)

    def get_solar_system(self, solar_system_id: SolarSystemId) -> SolarSystem:
        for solar_system in self.solar_systems:
            if solar_system.id == solar_system_id:
                return solar_system
        raise KeyError(f"no solar system with id {solar_system_id}")

    def find_solar_system(self, solar_system_id: SolarSystemId) -> Optional[SolarSystem]:
        try:
            return self.get_solar_system(solar_system_id)
        except KeyError:
            return None

    @property
    def solar_system_ids(self) -> frozenset:
        return frozenset(s.id for s in self.solar_systems)

    def live_hyperlanes(self) -> Tuple[Connection, ...]:
        """Hyperlanes whose endpoints both reference existing systems."""
        ids = self.solar_system_ids
        return tuple(c for c in self.hyperlanes if c.a in ids and c.b in ids)

    def live_wormholes(self) -> Tuple[Connection, ...]:
        ids = self.solar_system_ids
        return tuple(c for c in self.wormholes if c.a in ids and c.b in ids)

    @classmethod
    def make_empty(cls, name: str) -> Project:
        # imported here so the value types stay free of Pillow
        from galaxycanvas import make_blank_image

        return cls(name=name, canvas=make_blank_image())
