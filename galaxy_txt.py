"""
galaxy_txt.py
=============
Export a Project as a static galaxy scenario text file.

Output layout:
  • header with scenario name, shared options and AI empire limits
  • size-tiered defaults (fallen empires, marauders, crisis strength)
  • one ``system = { … }`` line per solar system, in creation order
  • one ``add_hyperlane = { … }`` line per hyperlane
  • one ``nebula = { … }`` line per nebula; overlapping nebulas form a group in
    which only the largest keeps a visible name

Positions are written in export coordinates (see
``Coordinate.to_export_coordinate``).  Connections that reference deleted
systems are skipped.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set, Tuple

import numpy as np

from galaxymodel import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    FALLEN_EMPIRE_SPAWN_RADIUS,
    SPAWNS_PER_MAX_AI_EMPIRE,
    Coordinate,
    Nebula,
    Project,
    SolarSystem,
    SolarSystemId,
    SpawnType,
    js_round,
)


README_LINE = (
    "# README for what to do with this file, read the Steam Workshop page "
    "https://steamcommunity.com/sharedfiles/filedetails/?id=3532904115"
)

COMMON = """
	priority = 10
	supports_shape = elliptical
	supports_shape = ring
	supports_shape = spiral_2
	supports_shape = spiral_3
	supports_shape = spiral_4
	supports_shape = spiral_6
	supports_shape = bar
	supports_shape = starburst
	supports_shape = cartwheel
	supports_shape = spoked
	random_hyperlanes = no

	num_wormhole_pairs = { min = 0 max = 5 }
	num_wormhole_pairs_default = 1
	num_gateways = { min = 0 max = 5 }
	num_gateways_default = 1
	num_hyperlanes = { min=0.5 max= 3 }
	num_hyperlanes_default = 1
	colonizable_planet_odds = 1.0
	primitive_odds = 1.0
"""

# (min systems, fallen default, fallen max, marauder default, marauder max,
#  advanced default, crisis strength)
SIZE_TIERS = [
    (1000, 4, 6, 3, 3, 4, "1.5"),
    (800, 3, 4, 2, 3, 3, "1.25"),
    (600, 2, 3, 2, 2, 2, "1.0"),
    (400, 1, 2, 1, 2, 1, "0.75"),
    (0, 0, 1, 1, 1, 0, "0.5"),
]

WEIGHTED_MISC_SYSTEM_INITIALIZERS: List[str] = (
    ["basic_init_01"] * 20
    + ["basic_init_02"] * 20
    + ["basic_init_03"] * 10
    + ["basic_init_04"] * 10
    + ["basic_init_05"] * 6
    + ["basic_init_06"] * 4
    + ["asteroid_init_01"] * 2
    + ["binary_init_01"] * 6
    + ["binary_init_02"] * 4
    + ["trinary_init_01"] * 3
    + ["trinary_init_02"] * 3
)

DIRECTIONS = ("n", "e", "s", "w")


def size_based_settings(n_systems: int) -> str:
    for min_systems, fe_def, fe_max, mar_def, mar_max, adv_def, crisis in SIZE_TIERS:
        if n_systems >= min_systems:
            break
    return (
        f"\n\tfallen_empire_default = {fe_def}"
        f"\n\tfallen_empire_max = {fe_max}"
        f"\n\tmarauder_empire_default = {mar_def}"
        f"\n\tmarauder_empire_max = {mar_max}"
        f"\n\tadvanced_empire_default = {adv_def}"
        f"\n\tcrisis_strength = {crisis}"
        "\n\textra_crisis_strength = { 10 25 }\n"
    )


def _fmt(value: float) -> str:
    return f"{value:g}"


# ---------------------------------------------------------------------------
# Fallen empire spawn areas
# ---------------------------------------------------------------------------

def fallen_empire_origin(solar_system: SolarSystem, direction: str) -> Coordinate:
    x, y = solar_system.coordinate.x, solar_system.coordinate.y
    r = FALLEN_EMPIRE_SPAWN_RADIUS
    offsets = {"n": (0, -r), "s": (0, r), "e": (r, 0), "w": (-r, 0)}
    dx, dy = offsets[direction]
    return Coordinate(x + dx, y + dy)


def can_spawn_fallen_empire(
    origin: Coordinate,
    solar_systems,
    existing_origins: List[Coordinate],
) -> bool:
    """Empty circle of radius FALLEN_EMPIRE_SPAWN_RADIUS, clear of the canvas
    edge and of every other fallen empire area."""
    r = FALLEN_EMPIRE_SPAWN_RADIUS
    if (origin.x < r or origin.x > CANVAS_WIDTH - r
            or origin.y < r or origin.y > CANVAS_HEIGHT - r):
        return False
    return (
        all(s.coordinate.distance_to(origin) >= r for s in solar_systems)
        and all(o.distance_to(origin) >= r * 2 for o in existing_origins)
    )


def find_fallen_empire_spawns(project: Project) -> List[Tuple[SolarSystem, str]]:
    spawns: List[Tuple[SolarSystem, str]] = []
    origins: List[Coordinate] = []
    for star in project.solar_systems:
        for direction in DIRECTIONS:
            origin = fallen_empire_origin(star, direction)
            if can_spawn_fallen_empire(origin, project.solar_systems, origins):
                spawns.append((star, direction))
                origins.append(origin)
    return spawns


# ---------------------------------------------------------------------------
# Nebula grouping
# ---------------------------------------------------------------------------

def group_nebulas(nebulas) -> List[List[Nebula]]:
    """Merge overlapping nebulas into groups, each sorted largest first."""
    groups: List[List[Nebula]] = []
    for nebula in nebulas:
        overlapping = [
            group for group in groups
            if any(
                other.coordinate.distance_to(nebula.coordinate)
                < other.radius + nebula.radius
                for other in group
            )
        ]
        if not overlapping:
            groups.append([nebula])
        elif len(overlapping) == 1:
            overlapping[0].append(nebula)
        else:
            groups = [g for g in groups if not any(g is o for o in overlapping)]
            groups.append([n for g in overlapping for n in g] + [nebula])
    for group in groups:
        group.sort(key=lambda n: n.radius, reverse=True)
    return groups


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def _neighbours_of(
    hyperlanes, inner: Set[SolarSystemId], exclude: Set[SolarSystemId]
) -> Set[SolarSystemId]:
    ring: Set[SolarSystemId] = set()
    for c in hyperlanes:
        if c.a in inner and c.b not in inner and c.b not in exclude:
            ring.add(c.b)
        elif c.b in inner and c.a not in inner and c.a not in exclude:
            ring.add(c.a)
    return ring


def generate_stellaris_galaxy(
    project: Project, rng: Optional[np.random.Generator] = None
) -> str:
    """Render *project* as a static galaxy scenario."""
    if rng is None:
        rng = np.random.default_rng()

    systems = project.solar_systems
    hyperlanes = project.live_hyperlanes()
    wormholes = project.live_wormholes()

    potential_homes = [s for s in systems if s.is_spawn]
    preferred_homes = [s for s in systems if s.spawn_type == SpawnType.PREFERRED]
    home_ids = {s.id for s in potential_homes}
    preferred_index = {s.id: i for i, s in enumerate(preferred_homes)}

    max_empires = js_round(len(potential_homes) / SPAWNS_PER_MAX_AI_EMPIRE)
    default_empires = js_round(len(potential_homes) / SPAWNS_PER_MAX_AI_EMPIRE / 2)
    ai_empire_settings = (
        f"\n \tnum_empires = {{ min = 0 max = {max_empires} }}"
        "\t#limits player customization; AI empires don't account for all spawns, "
        "so we need to set the max lower than the number of spawn points"
        f"\n\tnum_empire_default = {default_empires}\n\t"
    )

    fallen_empire_spawns = find_fallen_empire_spawns(project)
    fe_directions: Dict[SolarSystemId, List[str]] = {}
    for star, direction in fallen_empire_spawns:
        fe_directions.setdefault(star.id, []).append(direction)

    one_jump = _neighbours_of(hyperlanes, home_ids, set())
    two_jumps = _neighbours_of(hyperlanes, one_jump, home_ids)

    wormhole_index: Dict[SolarSystemId, int] = {}
    for i, c in enumerate(wormholes):
        wormhole_index.setdefault(c.a, i)
        wormhole_index.setdefault(c.b, i)

    # systems within 2 jumps of a spawn get a basic initializer by chance; the
    # chance falls as the spawn clusters cover more of the map
    n_basic = len(potential_homes) + len(one_jump) + len(two_jumps)
    basic_chance = 1 - n_basic / len(systems) if systems else 0.0

    def random_basic_initializer() -> str:
        idx = int(rng.integers(0, len(WEIGHTED_MISC_SYSTEM_INITIALIZERS)))
        return WEIGHTED_MISC_SYSTEM_INITIALIZERS[idx]

    system_lines = []
    for i, star in enumerate(systems):
        pos = star.coordinate.to_export_coordinate()
        basics = (f'id = "{star.id}" position = {{ x = {_fmt(pos.x)} '
                  f'y = {_fmt(pos.y)} }}')

        initializer = ""
        spawn_weight = ""
        if star.id in home_ids:
            initializer = f"initializer = random_empire_init_0{(i % 6) + 1}"
            if star.id in preferred_index:
                params = (f"|PREFERRED|yes|RANDOM_MODULO|{len(preferred_homes)}"
                          f"|RANDOM_VALUE|{preferred_index[star.id]}|")
            else:
                params = f"|RANDOM_MODULO|10|RANDOM_VALUE|{i % 10}|"
            spawn_weight = ("spawn_weight = { base = 0 add = "
                            f"value:painted_galaxy_spawn_weight{params} }}")
        elif star.id in one_jump:
            initializer = f"initializer = {random_basic_initializer()}"
        elif star.id in two_jumps and rng.random() < basic_chance:
            initializer = f"initializer = {random_basic_initializer()}"

        effects = []
        if star.id in fe_directions:
            effects.append("set_star_flag = painted_galaxy_fe_spawn " + " ".join(
                f"set_star_flag = painted_galaxy_fe_spawn_{d}"
                for d in fe_directions[star.id]
            ))
        if star.id in wormhole_index:
            effects.append(
                f"set_star_flag = painted_galaxy_wormhole_{wormhole_index[star.id]}"
            )
        effect = f"effect = {{ {' '.join(effects)} }}" if effects else ""
        system_lines.append(
            f"\tsystem = {{ {basics} {initializer} {spawn_weight} {effect} }}"
        )

    hyperlane_lines = [
        f'\tadd_hyperlane = {{ from = "{c.a}" to = "{c.b}" }}' for c in hyperlanes
    ]

    nebula_lines = []
    for group in group_nebulas(project.nebulas):
        for j, nebula in enumerate(group):
            pos = nebula.coordinate.to_export_coordinate()
            name = 'name = " "' if j != 0 else ""
            nebula_lines.append(
                f"\tnebula = {{ {name} position = {{ x = {_fmt(pos.x)} "
                f"y = {_fmt(pos.y)} }} radius = {_fmt(nebula.radius)} }}"
            )

    return "\n\n".join([
        README_LINE,
        "static_galaxy_scenario = {",
        f'\tname="{project.name}"',
        COMMON,
        ai_empire_settings,
        size_based_settings(len(systems)),
        "\n".join(system_lines),
        "\n".join(hyperlane_lines),
        "\n".join(nebula_lines),
        "}",
    ])


def write_galaxy_txt(
    project: Project, path: str, rng: Optional[np.random.Generator] = None
) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(generate_stellaris_galaxy(project, rng))
