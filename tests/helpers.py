from __future__ import annotations

from galaxymodel import (
    Connection,
    Coordinate,
    GeneratorSettings,
    Project,
    SolarSystem,
    SpawnType,
)


def make_project(coords=(), hyperlanes=(), wormholes=(), nebulas=(),
                 spawn_types=None, settings=None, canvas=b"canvas", name="Test"):
    """Project with one system per coordinate, ids 0..n-1 in order."""
    spawn_types = spawn_types or {}
    systems = tuple(
        SolarSystem(i, Coordinate(x, y), spawn_types.get(i, SpawnType.DISABLED))
        for i, (x, y) in enumerate(coords)
    )
    return Project(
        name=name,
        canvas=canvas,
        solar_systems=systems,
        hyperlanes=tuple(Connection(a, b) for a, b in hyperlanes),
        wormholes=tuple(Connection(a, b) for a, b in wormholes),
        nebulas=tuple(nebulas),
        generator_settings=settings or GeneratorSettings(),
    )


def lattice_project(cols=20, rows=10, spacing=30, **kwargs):
    """cols x rows grid of systems joined to their 4-neighbours."""
    coords = [(50 + c * spacing, 50 + r * spacing)
              for r in range(rows) for c in range(cols)]
    lanes = []
    for r in range(rows):
        for c in range(cols):
            i = r * cols + c
            if c + 1 < cols:
                lanes.append((i, i + 1))
            if r + 1 < rows:
                lanes.append((i, i + cols))
    return make_project(coords, hyperlanes=lanes, **kwargs)
