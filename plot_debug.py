"""
plot_debug.py
=============
Matplotlib sanity-check plot for a saved painted galaxy project.

Shows:
  • Canvas bounds and centre mark
  • The painted density image as a faint underlay (optional)
  • Hyperlanes (solid) and wormholes (dashed)
  • Nebulas as translucent circles
  • Systems coloured by spawn type (disabled / enabled / preferred)

Usage
-----
    # Default: use ./output/
    python plot_debug.py

    # Hide the density underlay and hyperlanes
    python plot_debug.py --no_canvas --no_edges

    # Save to PNG instead of opening an interactive window
    python plot_debug.py --save galaxy.png

    # Save as SVG (vector, scales to any size)
    python plot_debug.py --svg galaxy.svg

    # Point at a different output directory
    python plot_debug.py --out_dir my_run
"""

from __future__ import annotations

import argparse

import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
import numpy as np
from matplotlib.collections import LineCollection, PatchCollection

from galaxycanvas import convert_blob_to_image_data
from galaxyio import load_project
from galaxymodel import CANVAS_HEIGHT, CANVAS_WIDTH, Project, SpawnType


SPAWN_COLORS = {
    SpawnType.DISABLED: "#aaccff",
    SpawnType.ENABLED: "#ffcc33",
    SpawnType.PREFERRED: "#ff5533",
}

CENTER_MARK_SIZE = 10


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="plot_debug.py",
        description="Debug visualisation for the painted galaxy generator.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Output location
    p.add_argument("--out_dir",  default="output",
                   help="Directory containing the saved project.")
    p.add_argument("--save",     default=None, metavar="FILE",
                   help="Save figure to FILE (png/pdf/svg) instead of displaying.")
    p.add_argument("--svg",      nargs="?", const="galaxy.svg", default=None,
                   metavar="FILE",
                   help="Save figure as SVG (vector format).  "
                        "FILE defaults to 'galaxy.svg' when omitted.  "
                        "Overrides --save when both are given.")

    # Cosmetic toggles
    p.add_argument("--no_edges", action="store_true",
                   help="Skip drawing hyperlanes and wormholes.")
    p.add_argument("--no_canvas", action="store_true",
                   help="Skip the density image underlay.")
    p.add_argument("--no_nebulas", action="store_true",
                   help="Skip drawing nebulas.")

    # Node appearance
    p.add_argument("--node_size",  type=float, default=6.0,
                   help="Scatter marker size.")

    # Edge appearance
    p.add_argument("--edge_alpha", type=float, default=0.6,
                   help="Edge line alpha (0=invisible, 1=solid).")
    p.add_argument("--edge_color", default="#4466cc",
                   help="Hyperlane colour (any matplotlib colour string).")
    p.add_argument("--wormhole_color", default="#cc44cc",
                   help="Wormhole colour.")
    p.add_argument("--edge_width", type=float, default=0.6,
                   help="Edge line width in points.")

    return p


# ---------------------------------------------------------------------------
# Plot
# ---------------------------------------------------------------------------

def _segments(project: Project, connections) -> list:
    xy = {s.id: (s.coordinate.x, s.coordinate.y) for s in project.solar_systems}
    return [[xy[c.a], xy[c.b]] for c in connections]


def draw_galaxy(project: Project, args: argparse.Namespace) -> plt.Figure:
    """Draw *project*.

    Parameters
    ----------
    project : the project to draw
    args    : parsed argparse Namespace (appearance options)

    Returns
    -------
    matplotlib Figure
    """
    # ── Figure setup ─────────────────────────────────────────────────────
    fig, ax = plt.subplots(figsize=(10, 10))
    ax.set_aspect("equal", adjustable="datalim")

    BG = "#09090f"
    ax.set_facecolor(BG)
    fig.patch.set_facecolor(BG)

    ax.set_xlim(0, CANVAS_WIDTH)
    # canvas y grows downwards
    ax.set_ylim(CANVAS_HEIGHT, 0)
    ax.autoscale(False)

    # ── Density underlay ─────────────────────────────────────────────────
    if not getattr(args, "no_canvas", False):
        rgba = convert_blob_to_image_data(project.canvas)
        density = rgba[..., :3].mean(axis=-1) * (rgba[..., 3] / 255.0)
        ax.imshow(density, cmap="gray", alpha=0.25, vmin=0, vmax=255,
                  extent=(0, CANVAS_WIDTH, CANVAS_HEIGHT, 0), zorder=1)

    # ── Canvas bounds and centre mark ────────────────────────────────────
    ax.add_patch(mpatches.Rectangle(
        (0, 0), CANVAS_WIDTH, CANVAS_HEIGHT,
        fill=False, edgecolor="#3a3a5c", linewidth=1.0, linestyle="--", zorder=2,
    ))
    cx, cy = CANVAS_WIDTH / 2, CANVAS_HEIGHT / 2
    ax.plot([cx - CENTER_MARK_SIZE, cx + CENTER_MARK_SIZE], [cy, cy],
            color="#666677", linewidth=1.0, zorder=2)
    ax.plot([cx, cx], [cy - CENTER_MARK_SIZE, cy + CENTER_MARK_SIZE],
            color="#666677", linewidth=1.0, zorder=2)

    # ── Nebulas ───────────────────────────────────────────────────────────
    if not getattr(args, "no_nebulas", False) and project.nebulas:
        circles = [
            mpatches.Circle((n.coordinate.x, n.coordinate.y), n.radius)
            for n in project.nebulas
        ]
        ax.add_collection(PatchCollection(
            circles, facecolor="#6a3d9a", edgecolor="#9a6dca",
            alpha=0.25, zorder=3,
        ))

    # ── Edges ─────────────────────────────────────────────────────────────
    hyperlanes = project.live_hyperlanes()
    wormholes = project.live_wormholes()
    no_edges = getattr(args, "no_edges", False)
    if not no_edges:
        if hyperlanes:
            ax.add_collection(LineCollection(
                _segments(project, hyperlanes),
                colors=args.edge_color,
                linewidths=args.edge_width,
                alpha=args.edge_alpha,
                zorder=5,
            ))
        if wormholes:
            ax.add_collection(LineCollection(
                _segments(project, wormholes),
                colors=args.wormhole_color,
                linewidths=args.edge_width * 1.5,
                linestyles="dashed",
                alpha=args.edge_alpha,
                zorder=5,
            ))

    # ── Systems ───────────────────────────────────────────────────────────
    if project.solar_systems:
        xy = np.array([[s.coordinate.x, s.coordinate.y] for s in project.solar_systems])
        colors = [SPAWN_COLORS[s.spawn_type] for s in project.solar_systems]
        sizes = [args.node_size * (3 if s.is_spawn else 1) for s in project.solar_systems]
        ax.scatter(xy[:, 0], xy[:, 1], c=colors, s=sizes,
                   linewidths=0, alpha=0.9, zorder=6)

    # ── Decorations ───────────────────────────────────────────────────────
    n_spawns = sum(1 for s in project.solar_systems if s.is_spawn)
    title = (
        f"{project.name}  |  "
        f"{len(project.solar_systems):,} systems  |  {len(hyperlanes):,} hyperlanes  |  "
        f"{n_spawns:,} spawns  |  {len(project.nebulas):,} nebulas"
        + ("  (edges hidden)" if no_edges else "")
    )
    ax.set_title(title, color="white", fontsize=11, pad=10)

    for spine in ax.spines.values():
        spine.set_edgecolor("#2a2a3a")
    ax.tick_params(colors="#555566", labelsize=7)

    legend_patches = [
        mpatches.Patch(facecolor=SPAWN_COLORS[SpawnType.DISABLED], label="System"),
        mpatches.Patch(facecolor=SPAWN_COLORS[SpawnType.ENABLED], label="Spawn"),
        mpatches.Patch(facecolor=SPAWN_COLORS[SpawnType.PREFERRED],
                       label="Preferred spawn"),
        mpatches.Patch(facecolor="#6a3d9a", label="Nebula"),
    ]
    if not no_edges:
        legend_patches.append(mpatches.Patch(facecolor=args.edge_color, label="Hyperlane"))
        legend_patches.append(mpatches.Patch(facecolor=args.wormhole_color, label="Wormhole"))

    ax.legend(
        handles=legend_patches,
        loc="upper right",
        fontsize=8,
        facecolor="#111122",
        edgecolor="#333355",
        labelcolor="white",
    )

    return fig


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    parser = build_parser()
    args   = parser.parse_args()

    fig = draw_galaxy(load_project(args.out_dir), args)

    if args.svg:
        fig.savefig(args.svg, format="svg", bbox_inches="tight",
                    facecolor=fig.get_facecolor())
        print(f"Saved figure to {args.svg}")
    elif args.save:
        fig.savefig(args.save, dpi=150, bbox_inches="tight",
                    facecolor=fig.get_facecolor())
        print(f"Saved figure to {args.save}")
    else:
        plt.show()


if __name__ == "__main__":
    main()
