"""
galaxygen.py
============
Procedural generator for painted galaxy maps.

Turns a painted density image into star systems, connects them with
hyperlanes, picks home-world spawns and scatters nebulas.  Every stage reads a
Project and returns a batch of actions (see galaxyactions); nothing here ever
modifies a project directly, so each batch can be applied, undone and redone as
one unit.

Stages
------
A. System placement   weighted pixel sampling over the canvas density, with a
                      no-go disk of radius ``min_distance_between_systems``
                      around every placed system.
B. Hyperlanes         Delaunay triangulation → minimum spanning tree → pruning
                      by length and by ``hyperlane_connectivity``.
C. Spawns             contiguous window of systems, relaxed once towards the
                      non-dead-end system farthest (in jumps) from the others.
D. Nebulas            random systems as centres, candidates near a chosen
                      centre are dropped.

Randomness always comes from an explicit ``numpy.random.Generator`` so results
are reproducible for a fixed seed.

Usage (importable)
------------------
    from galaxygen import GalaxyConfig, GalaxyGenerator
    from galaxymodel import Project
    gen = GalaxyGenerator(GalaxyConfig(seed=7, out_dir=None))
    project, batches = gen.run(Project(name="demo", canvas=png_bytes))
"""

from __future__ import annotations

import dataclasses
import math
import os
import time
from collections import deque
from typing import Dict, List, Optional, Set, Tuple

import networkx as nx
import numpy as np
from scipy.spatial import Delaunay, QhullError, cKDTree

from galaxyactions import (
    Action,
    CreateHyperlaneAction,
    CreateNebulaAction,
    CreateSolarSystemAction,
    UpdateSolarSystemAction,
    apply_actions,
    delete_all_hyperlanes,
    delete_all_nebulas,
    delete_all_solar_systems,
    delete_all_wormholes,
)
from galaxy_txt import write_galaxy_txt
from galaxycanvas import convert_blob_to_image_data
from galaxyio import save_project, write_gexf
from galaxymodel import (
    NUM_RANDOM_NEBULAS,
    RANDOM_NEBULA_MAX_RADIUS,
    RANDOM_NEBULA_MIN_DISTANCE,
    RANDOM_NEBULA_MIN_RADIUS,
    SPAWNS_PER_MAX_AI_EMPIRE,
    Connection,
    Coordinate,
    Nebula,
    Project,
    SolarSystem,
    SolarSystemId,
    SpawnType,
    js_round,
)


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class GalaxyConfig:
    """Run-level parameters for ``GalaxyGenerator.run``.

    Map-shaping parameters (system count, spacing, hyperlane settings) live in
    the project's ``GeneratorSettings``; this holds what a single run needs on
    top of those.
    """

    # ---- stages ----
    generate_systems: bool = True
    generate_hyperlanes: bool = True
    generate_spawns: bool = True
    generate_nebulas: bool = True

    # ---- nebulas ----
    n_nebulas: int = NUM_RANDOM_NEBULAS
    nebula_min_radius: int = RANDOM_NEBULA_MIN_RADIUS
    nebula_max_radius: int = RANDOM_NEBULA_MAX_RADIUS
    nebula_min_distance: float = RANDOM_NEBULA_MIN_DISTANCE

    # ---- reproducibility ----
    seed: Optional[int] = None   # None = fresh OS entropy every run

    # ---- output ----
    out_dir: Optional[str] = "output"   # None = don't write anything
    write_gexf: bool = True      # hyperlane graph for Gephi
    write_txt: bool = True       # static galaxy scenario text file


# ---------------------------------------------------------------------------
# Weight grid
# ---------------------------------------------------------------------------

def pixel_weights(rgba: np.ndarray) -> np.ndarray:
    """Integer density weights 0-100 for an ``(h, w, 4)`` RGBA array.

    ``weight = round(mean(r, g, b) / 255 * alpha / 255 * 100)``; images are
    meant to be grayscale but the channels are averaged just in case.
    """
    rgba = np.asarray(rgba, dtype=np.float64)
    brightness = rgba[..., :3].sum(axis=-1) / 3.0 / 255.0
    alpha = rgba[..., 3] / 255.0
    return np.floor(brightness * alpha * 100.0 + 0.5).astype(np.int64)


def disk_offsets(radius: float) -> np.ndarray:
    """Integer ``(dx, dy)`` offsets with ``hypot(dx, dy) <= radius``, shape ``(K, 2)``."""
    r = int(math.floor(radius))
    d = np.arange(-r, r + 1)
    dx, dy = np.meshgrid(d, d)
    inside = np.hypot(dx, dy) <= radius
    return np.column_stack([dx[inside], dy[inside]])


class WeightGrid:
    """Mutable sampling arena: flat pixel weights plus per-row and grand totals.

    The grid owns a private copy of its weights.  Zeroing pixels decrements the
    row and grand totals in place, so the grid is never re-summed.
    """

    def __init__(self, weights: np.ndarray) -> None:
        weights = np.asarray(weights, dtype=np.int64)
        self.height, self.width = weights.shape
        self.weights = weights.ravel().copy()
        self.row_totals = weights.sum(axis=1)
        self.total = int(self.row_totals.sum())

    @classmethod
    def from_image_data(cls, rgba: np.ndarray) -> WeightGrid:
        return cls(pixel_weights(rgba))

    def weight_at(self, x: int, y: int) -> int:
        return int(self.weights[y * self.width + x])

    def locate(self, target: int) -> Tuple[int, int]:
        """Pixel ``(x, y)`` whose cumulative weight range contains *target*.

        *target* must lie in ``[0, total)``.  Rows are scanned by their
        totals first, then cells within the chosen row.
        """
        row_cum = np.cumsum(self.row_totals)
        y = int(np.searchsorted(row_cum, target, side="right"))
        before = int(row_cum[y] - self.row_totals[y])
        row = self.weights[y * self.width:(y + 1) * self.width]
        x = int(np.searchsorted(np.cumsum(row), target - before, side="right"))
        return x, y

    def zero_out(self, x: int, y: int, offsets: np.ndarray) -> None:
        """Zero every pixel at ``(x, y) + offsets`` that lies on the grid."""
        xs = x + offsets[:, 0]
        ys = y + offsets[:, 1]
        on_grid = (xs >= 0) & (xs < self.width) & (ys >= 0) & (ys < self.height)
        xs, ys = xs[on_grid], ys[on_grid]
        flat = ys * self.width + xs
        values = self.weights[flat]
        self.weights[flat] = 0
        np.subtract.at(self.row_totals, ys, values)
        self.total -= int(values.sum())


# ---------------------------------------------------------------------------
# Stage A: system placement
# ---------------------------------------------------------------------------

def place_solar_systems(
    grid: WeightGrid,
    number_of_systems: int,
    min_distance: float,
    rng: np.random.Generator,
) -> List[SolarSystem]:
    """Sample up to *number_of_systems* systems from *grid*, consuming it.

    Stops early (with a warning) once no weight is left.  Ids are dense and
    follow creation order.
    """
    offsets = disk_offsets(min_distance)
    placed: List[SolarSystem] = []
    for i in range(number_of_systems):
        if grid.total == 0:
            print(f"  WARNING: generated {i} solar systems; "
                  "no more valid locations.")
            break
        x, y = grid.locate(int(rng.integers(0, grid.total)))
        placed.append(SolarSystem(id=i, coordinate=Coordinate(x, y)))
        grid.zero_out(x, y, offsets)
    return placed


def generate_solar_systems(
    project: Project,
    rng: np.random.Generator,
    image_data: Optional[np.ndarray] = None,
) -> List[Action]:
    """Replace every system (and all connections) with freshly placed ones.

    *image_data* is the decoded ``(h, w, 4)`` canvas; when omitted the
    project's canvas blob is decoded here.
    """
    settings = project.generator_settings
    if image_data is None:
        image_data = convert_blob_to_image_data(project.canvas)
    grid = WeightGrid.from_image_data(image_data)

    placed = place_solar_systems(
        grid,
        settings.number_of_systems,
        settings.min_distance_between_systems,
        rng,
    )
    return [
        *delete_all_hyperlanes(project),
        *delete_all_wormholes(project),
        *delete_all_solar_systems(project),
        *(CreateSolarSystemAction(solar_system) for solar_system in placed),
    ]


# ---------------------------------------------------------------------------
# Stage B: hyperlanes
# ---------------------------------------------------------------------------

def triangulation_edges(points: np.ndarray) -> List[Tuple[int, int]]:
    """Unique undirected Delaunay edges as point-index pairs, in encounter order.

    All-collinear input has no triangles; the points are then chained in
    sorted order, which is what the degenerate triangulation amounts to.
    """
    try:
        tri = Delaunay(points)
    except QhullError:
        print("  WARNING: systems are collinear; chaining them instead of triangulating.")
        order = np.lexsort((points[:, 1], points[:, 0]))
        return [(int(a), int(b)) for a, b in zip(order[:-1], order[1:])]

    edges: List[Tuple[int, int]] = []
    seen: Set[Tuple[int, int]] = set()
    for simplex in tri.simplices:
        for i in range(3):
            a, b = int(simplex[i]), int(simplex[(i + 1) % 3])
            key = (a, b) if a < b else (b, a)
            if key not in seen:
                seen.add(key)
                edges.append(key)
    return edges


def build_triangulation_graph(solar_systems) -> nx.Graph:
    """Graph over system ids with Delaunay edges weighted by ``distance``.

    Systems sharing a coordinate collapse onto one id, so edges between them
    are dropped.
    """
    points = np.array([[s.coordinate.x, s.coordinate.y] for s in solar_systems],
                      dtype=np.float64)
    coordinate_to_id: Dict[str, SolarSystemId] = {
        s.coordinate.key: s.id for s in solar_systems
    }
    ids = [coordinate_to_id[s.coordinate.key] for s in solar_systems]

    graph = nx.Graph()
    for i, j in triangulation_edges(points):
        id_1, id_2 = ids[i], ids[j]
        if id_1 == id_2:
            continue
        distance = float(np.hypot(*(points[i] - points[j])))
        graph.add_edge(id_1, id_2, distance=distance, is_mst=False)
    return graph


def generate_hyperlanes(project: Project, rng: np.random.Generator) -> List[Action]:
    """Replace all hyperlanes with a pruned Delaunay network.

    An edge is removed when it is longer than ``hyperlane_max_distance`` and
    either off the MST or ``allow_disconnected`` is set; any other off-MST
    edge is removed with probability ``1 - hyperlane_connectivity``.
    """
    if len(project.solar_systems) < 3:
        print("  WARNING: need at least 3 solar systems for hyperlanes; none generated.")
        return []

    settings = project.generator_settings
    graph = build_triangulation_graph(project.solar_systems)

    # find minimum spanning tree
    for a, b in nx.minimum_spanning_edges(
        graph, algorithm="kruskal", weight="distance", data=False
    ):
        graph[a][b]["is_mst"] = True

    # remove links
    # - longer than max distance (MST edges too when disconnection is allowed)
    # - off-MST edges at random according to connectivity
    for a, b, data in list(graph.edges(data=True)):
        too_long = (
            data["distance"] > settings.hyperlane_max_distance
            and (not data["is_mst"] or settings.allow_disconnected)
        )
        if too_long or (
            not data["is_mst"] and rng.random() > settings.hyperlane_connectivity
        ):
            graph.remove_edge(a, b)

    create_actions: List[Action] = []
    added: Set[Connection] = set()
    for a, b in graph.edges():
        connection = Connection(a, b)
        if connection in added:
            continue
        added.add(connection)
        create_actions.append(CreateHyperlaneAction(connection))

    return [*delete_all_hyperlanes(project), *create_actions]


# ---------------------------------------------------------------------------
# Stage C: spawns
# ---------------------------------------------------------------------------

def build_hyperlane_graph(project: Project) -> nx.Graph:
    """Unweighted graph of every system and its live hyperlanes."""
    graph = nx.Graph()
    graph.add_nodes_from(s.id for s in project.solar_systems)
    graph.add_edges_from(c.key for c in project.live_hyperlanes())
    return graph


def mark_dead_ends(graph: nx.Graph) -> Set[SolarSystemId]:
    """Nodes of degree <= 1, plus the chains of degree <= 2 nodes leading to them."""
    dead_ends: Set[SolarSystemId] = set()
    for node in graph.nodes:
        if graph.degree(node) > 1:
            continue
        dead_ends.add(node)
        stack = [node]
        while stack:
            current = stack.pop()
            for neighbor in graph.neighbors(current):
                if graph.degree(neighbor) <= 2 and neighbor not in dead_ends:
                    dead_ends.add(neighbor)
                    stack.append(neighbor)
    return dead_ends


def spawn_count(n_systems: int) -> int:
    # 6 per 200 systems is the vanilla max empire count; some things spawn
    # extra empires, so keep 50 % headroom
    return js_round(n_systems / 200 * 6 * SPAWNS_PER_MAX_AI_EMPIRE)


def farthest_from_sources(
    graph: nx.Graph,
    sources,
    dead_ends: Set[SolarSystemId],
) -> Tuple[int, List[SolarSystemId]]:
    """Multi-source BFS; the largest hop distance reached by a non-dead-end
    node, and every non-dead-end node at that distance.
    """
    dist: Dict[SolarSystemId, int] = {}
    queue: deque = deque()
    for source in sources:
        dist[source] = 0
        queue.append(source)

    max_distance = 0
    farthest: List[SolarSystemId] = []
    while queue:
        node = queue.popleft()
        for neighbor in graph.neighbors(node):
            if neighbor in dist:
                continue
            dist[neighbor] = dist[node] + 1
            queue.append(neighbor)
            if neighbor in dead_ends:
                continue
            if dist[neighbor] > max_distance:
                max_distance = dist[neighbor]
                farthest = [neighbor]
            elif dist[neighbor] == max_distance:
                farthest.append(neighbor)
    return max_distance, farthest


def select_spawns(project: Project, rng: np.random.Generator) -> List[SolarSystemId]:
    """Ids of the systems chosen as spawns (before diffing against the project)."""
    graph = build_hyperlane_graph(project)
    dead_ends = mark_dead_ends(graph)

    systems = project.solar_systems
    num_spawns = spawn_count(len(systems))
    start = int(math.floor(rng.random() * (len(systems) - num_spawns)))
    spawns = [s.id for s in systems[start:start + num_spawns]]

    # move each spawn to the system farthest from all the others;
    # a single pass is good enough
    for index, spawn in enumerate(spawns):
        others = [other for other in spawns if other != spawn]
        max_distance, farthest = farthest_from_sources(graph, others, dead_ends)
        if max_distance > 0 and farthest:
            spawns[index] = farthest[int(rng.integers(0, len(farthest)))]
    return spawns


def generate_spawns(project: Project, rng: np.random.Generator) -> List[Action]:
    """Enable the selected spawns and disable every other system.

    Preferred systems are diffed like any other: this stage only ever
    produces ``ENABLED`` or ``DISABLED``.
    """
    spawns = set(select_spawns(project, rng))
    actions: List[Action] = []
    for solar_system in project.solar_systems:
        is_spawn = solar_system.id in spawns
        if is_spawn and solar_system.spawn_type != SpawnType.ENABLED:
            target = SpawnType.ENABLED
        elif not is_spawn and solar_system.spawn_type != SpawnType.DISABLED:
            target = SpawnType.DISABLED
        else:
            continue
        actions.append(UpdateSolarSystemAction(
            old_value=solar_system,
            new_value=dataclasses.replace(solar_system, spawn_type=target),
        ))
    return actions


# ---------------------------------------------------------------------------
# Stage D: nebulas
# ---------------------------------------------------------------------------

def generate_nebulas(
    project: Project,
    rng: np.random.Generator,
    count: int = NUM_RANDOM_NEBULAS,
    min_radius: int = RANDOM_NEBULA_MIN_RADIUS,
    max_radius: int = RANDOM_NEBULA_MAX_RADIUS,
    min_distance: float = RANDOM_NEBULA_MIN_DISTANCE,
) -> List[Action]:
    """Replace all nebulas with up to *count* new ones centred on systems."""
    create_actions: List[Action] = []
    candidates = list(project.solar_systems)
    for _ in range(count):
        if not candidates:
            break
        center = candidates[int(rng.integers(0, len(candidates)))].coordinate
        radius = min_radius + int(math.floor(rng.random() * (max_radius - min_radius)))
        nebula = Nebula(coordinate=center, radius=radius)
        create_actions.append(CreateNebulaAction(nebula))
        candidates = [
            s for s in candidates
            if s.coordinate.distance_to(center) >= min_distance
        ]
    return [*delete_all_nebulas(project), *create_actions]


# ---------------------------------------------------------------------------
# Standalone helpers
# ---------------------------------------------------------------------------

def compute_degree(project: Project) -> np.ndarray:
    """Per-system hyperlane degree, indexed like ``project.solar_systems``."""
    index = {s.id: i for i, s in enumerate(project.solar_systems)}
    degree = np.zeros(len(project.solar_systems), dtype=np.int64)
    pairs = [(index[c.a], index[c.b]) for c in project.live_hyperlanes()]
    if pairs:
        arr = np.array(pairs, dtype=np.int64)
        np.add.at(degree, arr[:, 0], 1)
        np.add.at(degree, arr[:, 1], 1)
    return degree


def count_components(project: Project) -> int:
    """Connected components of the hyperlane graph via union-find."""
    index = {s.id: i for i, s in enumerate(project.solar_systems)}
    parent = np.arange(len(index), dtype=np.int64)

    def find(x: int) -> int:
        while parent[x] != x:
            parent[x] = parent[parent[x]]   # path halving
            x = parent[x]
        return x

    for c in project.live_hyperlanes():
        ps, pt = find(index[c.a]), find(index[c.b])
        if ps != pt:
            parent[ps] = pt

    return len({find(i) for i in range(len(index))})


# ---------------------------------------------------------------------------
# Main generator class
# ---------------------------------------------------------------------------

class GalaxyGenerator:
    """Runs the generator stages against a project with one seeded RNG.

    Parameters
    ----------
    cfg : GalaxyConfig
        Run-level parameters.  The project's own ``generator_settings``
        shape the map.
    """

    def __init__(self, cfg: GalaxyConfig) -> None:
        self.cfg = cfg
        self._rng = np.random.default_rng(cfg.seed)

    def generate_solar_systems(
        self, project: Project, image_data: Optional[np.ndarray] = None
    ) -> List[Action]:
        return generate_solar_systems(project, self._rng, image_data)

    def generate_hyperlanes(self, project: Project) -> List[Action]:
        return generate_hyperlanes(project, self._rng)

    def generate_spawns(self, project: Project) -> List[Action]:
        return generate_spawns(project, self._rng)

    def generate_nebulas(self, project: Project) -> List[Action]:
        cfg = self.cfg
        return generate_nebulas(
            project, self._rng,
            count=cfg.n_nebulas,
            min_radius=cfg.nebula_min_radius,
            max_radius=cfg.nebula_max_radius,
            min_distance=cfg.nebula_min_distance,
        )

    # ------------------------------------------------------------------
    # Acceptance tests
    # ------------------------------------------------------------------

    def _run_checks(self, project: Project) -> None:
        """Print acceptance test results to stdout."""
        settings = project.generator_settings
        sep = "─" * 52

        print(f"\n{sep}")
        print("  ACCEPTANCE TESTS")
        print(sep)

        n = len(project.solar_systems)
        ok = n == settings.number_of_systems
        print(f"  Systems    : {n:>6,}  (target {settings.number_of_systems:,})  "
              f"{'✓' if ok else '✗ density exhausted'}")

        if n >= 2:
            xy = np.array([[s.coordinate.x, s.coordinate.y]
                           for s in project.solar_systems])
            nearest, _ = cKDTree(xy).query(xy, k=2)
            min_gap = float(nearest[:, 1].min())
            ok_gap = min_gap > settings.min_distance_between_systems - 1e-6
            print(f"  Min gap    : {min_gap:>9.4f}  > "
                  f"{settings.min_distance_between_systems}  "
                  f"{'✓' if ok_gap else '✗ FAIL'}")

        if not project.hyperlanes:
            print("  (no hyperlanes to check)")
        else:
            deg = compute_degree(project)
            print("\n  Degree distribution:")
            print(f"    min={deg.min()}  "
                  f"median={np.median(deg):.1f}  "
                  f"max={deg.max()}  "
                  f"avg={deg.mean():.3f}")
            print(f"    hyperlanes={len(project.hyperlanes):,}  "
                  f"connected components: {count_components(project):,}")

        n_spawns = sum(1 for s in project.solar_systems if s.is_spawn)
        print(f"\n  Spawns     : {n_spawns:>6,}  (target {spawn_count(n):,})")
        print(f"  Nebulas    : {len(project.nebulas):>6,}")
        print(sep + "\n")

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run(self, project: Project) -> Tuple[Project, List[List[Action]]]:
        """Execute the enabled stages in order; write outputs; return results.

        Each stage's batch is applied before the next stage reads the project.

        Returns
        -------
        project : the generated Project
        batches : one action batch per executed stage, in order
        """
        cfg = self.cfg
        t_start = time.perf_counter()
        batches: List[List[Action]] = []

        stages = [
            (cfg.generate_systems, "A", "placing solar systems", self.generate_solar_systems),
            (cfg.generate_hyperlanes, "B", "building hyperlanes", self.generate_hyperlanes),
            (cfg.generate_spawns, "C", "choosing spawns", self.generate_spawns),
            (cfg.generate_nebulas, "D", "placing nebulas", self.generate_nebulas),
        ]
        for enabled, label, title, stage in stages:
            if not enabled:
                continue
            print(f"Stage {label}: {title} …")
            t0 = time.perf_counter()
            actions = stage(project)
            project = apply_actions(project, actions)
            batches.append(actions)
            print(f"  {len(actions):,} actions in {time.perf_counter() - t0:.2f}s")

        self._run_checks(project)

        if cfg.out_dir is not None:
            os.makedirs(cfg.out_dir, exist_ok=True)
            for path in save_project(project, cfg.out_dir):
                print(f"Wrote {path}")
            if cfg.write_gexf:
                path = os.path.join(cfg.out_dir, "graph.gexf")
                write_gexf(project, path)
                print(f"  Wrote {path}")
            if cfg.write_txt:
                path = os.path.join(cfg.out_dir, "galaxy.txt")
                write_galaxy_txt(project, path, self._rng)
                print(f"  Wrote {path}")

        elapsed = time.perf_counter() - t_start
        print(f"\nTotal time: {elapsed:.2f}s")

        return project, batches


# ---------------------------------------------------------------------------
# Script entry point (uses all GalaxyConfig defaults)
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    from galaxycanvas import image_from_array

    # a soft round blob in the middle of the canvas
    yy, xx = np.mgrid[0:1000, 0:1000]
    density = np.clip(255 - np.hypot(xx - 500, yy - 500) * 0.6, 0, 255)
    canvas = image_from_array(density.astype(np.uint8))
    GalaxyGenerator(GalaxyConfig()).run(Project(name="Painted Galaxy", canvas=canvas))
