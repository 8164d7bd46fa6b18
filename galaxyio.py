"""
galaxyio.py
===========
Save and load projects as a directory of plain files.

Layout of a project directory::

    params.json      name + generator settings
    canvas.png       the painted density image (blob written as-is)
    systems.csv      id, x, y, spawn_type     (creation order)
    hyperlanes.csv   a, b
    wormholes.csv    a, b
    nebulas.csv      x, y, radius
    graph.gexf       optional hyperlane graph for Gephi (write_gexf)
"""

from __future__ import annotations

import dataclasses
import json
import os
from typing import List

import networkx as nx
import pandas as pd

from galaxymodel import (
    Connection,
    Coordinate,
    GeneratorSettings,
    Nebula,
    Project,
    SolarSystem,
)

SYSTEM_COLUMNS = ["id", "x", "y", "spawn_type"]
CONNECTION_COLUMNS = ["a", "b"]
NEBULA_COLUMNS = ["x", "y", "radius"]


# ---------------------------------------------------------------------------
# DataFrame conversion
# ---------------------------------------------------------------------------

def systems_frame(project: Project) -> pd.DataFrame:
    return pd.DataFrame(
        [(s.id, s.coordinate.x, s.coordinate.y, s.spawn_type.value)
         for s in project.solar_systems],
        columns=SYSTEM_COLUMNS,
    )


def connections_frame(connections) -> pd.DataFrame:
    return pd.DataFrame([(c.a, c.b) for c in connections], columns=CONNECTION_COLUMNS)


def nebulas_frame(project: Project) -> pd.DataFrame:
    return pd.DataFrame(
        [(n.coordinate.x, n.coordinate.y, n.radius) for n in project.nebulas],
        columns=NEBULA_COLUMNS,
    )


def _read_csv(path: str, columns: List[str]) -> pd.DataFrame:
    if not os.path.exists(path):
        return pd.DataFrame(columns=columns)
    return pd.read_csv(path)


def _number(value):
    # keep integral values as ints so reloaded projects compare equal
    value = float(value)
    return int(value) if value.is_integer() else value


# ---------------------------------------------------------------------------
# Save / load
# ---------------------------------------------------------------------------

def save_project(project: Project, out_dir: str) -> List[str]:
    """Write *project* into *out_dir*; return the paths written."""
    os.makedirs(out_dir, exist_ok=True)
    written = []

    params_path = os.path.join(out_dir, "params.json")
    params = {
        "name": project.name,
        "generator_settings": dataclasses.asdict(project.generator_settings),
    }
    with open(params_path, "w") as f:
        json.dump(params, f, indent=2)
    written.append(params_path)

    canvas_path = os.path.join(out_dir, "canvas.png")
    with open(canvas_path, "wb") as f:
        f.write(project.canvas)
    written.append(canvas_path)

    tables = [
        ("systems.csv", systems_frame(project)),
        ("hyperlanes.csv", connections_frame(project.hyperlanes)),
        ("wormholes.csv", connections_frame(project.wormholes)),
        ("nebulas.csv", nebulas_frame(project)),
    ]
    for filename, df in tables:
        path = os.path.join(out_dir, filename)
        df.to_csv(path, index=False)
        written.append(path)

    return written


def load_project(out_dir: str) -> Project:
    """Read a project written by ``save_project``."""
    params_path = os.path.join(out_dir, "params.json")
    if not os.path.exists(params_path):
        raise FileNotFoundError(
            f"params.json not found in '{out_dir}'.  "
            "Run run_generate.py first."
        )
    with open(params_path) as f:
        params = json.load(f)

    with open(os.path.join(out_dir, "canvas.png"), "rb") as f:
        canvas = f.read()

    systems = _read_csv(os.path.join(out_dir, "systems.csv"), SYSTEM_COLUMNS)
    hyperlanes = _read_csv(os.path.join(out_dir, "hyperlanes.csv"), CONNECTION_COLUMNS)
    wormholes = _read_csv(os.path.join(out_dir, "wormholes.csv"), CONNECTION_COLUMNS)
    nebulas = _read_csv(os.path.join(out_dir, "nebulas.csv"), NEBULA_COLUMNS)

    return Project(
        name=params["name"],
        canvas=canvas,
        solar_systems=tuple(
            SolarSystem(
                id=int(row.id),
                coordinate=Coordinate(_number(row.x), _number(row.y)),
                spawn_type=row.spawn_type,
            )
            for row in systems.itertuples(index=False)
        ),
        hyperlanes=tuple(
            Connection(int(row.a), int(row.b))
            for row in hyperlanes.itertuples(index=False)
        ),
        wormholes=tuple(
            Connection(int(row.a), int(row.b))
            for row in wormholes.itertuples(index=False)
        ),
        nebulas=tuple(
            Nebula(Coordinate(_number(row.x), _number(row.y)), _number(row.radius))
            for row in nebulas.itertuples(index=False)
        ),
        generator_settings=GeneratorSettings(**params.get("generator_settings", {})),
    )


# ---------------------------------------------------------------------------
# GEXF export
# ---------------------------------------------------------------------------

def write_gexf(project: Project, path: str) -> None:
    """Export the hyperlane graph as GEXF for Gephi."""
    G = nx.Graph()

    # cast to plain Python types so networkx serialises cleanly
    for s in project.solar_systems:
        G.add_node(
            int(s.id),
            x=float(s.coordinate.x),
            y=float(s.coordinate.y),
            spawn_type=s.spawn_type.value,
        )

    for c in project.live_hyperlanes():
        a, b = project.get_solar_system(c.a), project.get_solar_system(c.b)
        G.add_edge(
            int(c.a), int(c.b),
            length=float(a.coordinate.distance_to(b.coordinate)),
            kind="hyperlane",
        )

    nx.write_gexf(G, path)
