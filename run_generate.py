"""
run_generate.py
===============
CLI entrypoint for the painted galaxy generator.

Generates a galaxy from a painted density image (white = dense, black or
transparent = empty), or re-runs selected stages on a previously saved
project.  Unspecified map parameters fall back to the ``GeneratorSettings``
defaults (or to the saved project's settings with ``--project``).

Quick start
-----------
    python run_generate.py --image density.png

With custom parameters::

    python run_generate.py \\
        --image density.png \\
        --name "Painted Galaxy" \\
        --number_of_systems 800 \\
        --min_distance 12 \\
        --hyperlane_connectivity 0.4 \\
        --hyperlane_max_distance 80 \\
        --seed 7 \\
        --out_dir output

Re-roll only the hyperlanes and spawns of a saved project::

    python run_generate.py --project output --skip_systems --skip_nebulas

Then visualise the result::

    python plot_debug.py
"""

import argparse
import dataclasses
import json
import os
import sys

from galaxycanvas import normalize_image
from galaxygen import GalaxyConfig, GalaxyGenerator
from galaxyio import load_project
from galaxymodel import GeneratorSettings, Project


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="run_generate.py",
        description=(
            "Painted galaxy generator.\n"
            "Writes params.json, canvas.png, systems/hyperlanes/wormholes/nebulas "
            "CSVs, galaxy.txt and (optionally) graph.gexf to OUT_DIR."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # ── Input ─────────────────────────────────────────────────────────────
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument(
        "--image", type=str, default=None,
        metavar="FILE",
        help="Density image to paint the galaxy from (any format Pillow reads).",
    )
    src.add_argument(
        "--project", type=str, default=None,
        metavar="DIR",
        help="Directory of a previously saved project to regenerate.",
    )
    p.add_argument(
        "--name", type=str, default="Painted Galaxy",
        help="Project / scenario name (ignored with --project).",
    )

    # ── System placement ──────────────────────────────────────────────────
    p.add_argument(
        "--number_of_systems", type=int, default=None,
        metavar="N",
        help="Number of solar systems to place (default 600).",
    )
    p.add_argument(
        "--min_distance", type=float, default=None,
        metavar="D",
        help="Minimum distance between systems in pixels (default 10).",
    )

    # ── Hyperlanes ────────────────────────────────────────────────────────
    p.add_argument(
        "--hyperlane_connectivity", type=float, default=None,
        metavar="P",
        help=(
            "Probability [0, 1] of keeping each triangulation edge that is not "
            "needed for connectivity (default 0.5; clamped)."
        ),
    )
    p.add_argument(
        "--hyperlane_max_distance", type=float, default=None,
        metavar="L",
        help="Maximum hyperlane length in pixels (default 100).",
    )
    p.add_argument(
        "--allow_disconnected", action=argparse.BooleanOptionalAction, default=None,
        help=(
            "Let the length limit cut spanning-tree edges too "
            "(default: the project's setting, off for new projects)."
        ),
    )

    # ── Nebulas ───────────────────────────────────────────────────────────
    p.add_argument(
        "--n_nebulas", type=int, default=GalaxyConfig.n_nebulas,
        metavar="N",
        help="Number of random nebulas to attempt.",
    )
    p.add_argument(
        "--nebula_min_radius", type=int, default=GalaxyConfig.nebula_min_radius,
        metavar="R",
    )
    p.add_argument(
        "--nebula_max_radius", type=int, default=GalaxyConfig.nebula_max_radius,
        metavar="R",
    )
    p.add_argument(
        "--nebula_min_distance", type=float, default=GalaxyConfig.nebula_min_distance,
        metavar="D",
        help="Minimum centre-to-centre distance between random nebulas.",
    )

    # ── Stages ────────────────────────────────────────────────────────────
    p.add_argument("--skip_systems", action="store_true",
                   help="Keep the existing systems (needs --project).")
    p.add_argument("--skip_hyperlanes", action="store_true")
    p.add_argument("--skip_spawns", action="store_true")
    p.add_argument("--skip_nebulas", action="store_true")

    # ── Reproducibility ───────────────────────────────────────────────────
    p.add_argument(
        "--seed", type=int, default=None,
        metavar="S",
        help="Random seed for reproducible output (default: unseeded).",
    )

    # ── Output ───────────────────────────────────────────────────────────
    p.add_argument(
        "--out_dir", type=str, default="output",
        metavar="DIR",
        help="Directory to write output files (created if absent).",
    )
    p.add_argument(
        "--no_gexf", action="store_true",
        help="Skip GEXF export.",
    )
    p.add_argument(
        "--no_txt", action="store_true",
        help="Skip the galaxy.txt scenario export.",
    )

    return p


def build_project(args: argparse.Namespace) -> Project:
    """Load or create the project and fold CLI overrides into its settings."""
    if args.project is not None:
        project = load_project(args.project)
    else:
        project = Project(name=args.name, canvas=normalize_image(args.image))

    overrides = {
        "number_of_systems": args.number_of_systems,
        "min_distance_between_systems": args.min_distance,
        "hyperlane_connectivity": args.hyperlane_connectivity,
        "hyperlane_max_distance": args.hyperlane_max_distance,
        "allow_disconnected": args.allow_disconnected,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    settings = dataclasses.replace(project.generator_settings, **overrides)
    return project.replace(generator_settings=settings)


def main() -> None:
    parser = build_parser()
    args   = parser.parse_args()

    if args.skip_systems and args.project is None:
        parser.error("--skip_systems needs --project")
    if args.nebula_min_radius < 1:
        parser.error("--nebula_min_radius must be at least 1")
    if args.nebula_max_radius < args.nebula_min_radius:
        parser.error("--nebula_max_radius must not be below --nebula_min_radius")

    try:
        project = build_project(args)
    except (FileNotFoundError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)

    cfg = GalaxyConfig(
        generate_systems     = not args.skip_systems,
        generate_hyperlanes  = not args.skip_hyperlanes,
        generate_spawns      = not args.skip_spawns,
        generate_nebulas     = not args.skip_nebulas,
        n_nebulas            = args.n_nebulas,
        nebula_min_radius    = args.nebula_min_radius,
        nebula_max_radius    = args.nebula_max_radius,
        nebula_min_distance  = args.nebula_min_distance,
        seed                 = args.seed,
        out_dir              = args.out_dir,
        write_gexf           = not args.no_gexf,
        write_txt            = not args.no_txt,
    )

    # Print config so the user can confirm parameters before waiting
    print("Configuration")
    print("─" * 40)
    for field in dataclasses.fields(project.generator_settings):
        print(f"  {field.name:<30} = {getattr(project.generator_settings, field.name)}")
    for field in dataclasses.fields(cfg):
        print(f"  {field.name:<30} = {getattr(cfg, field.name)}")
    print()

    gen = GalaxyGenerator(cfg)
    gen.run(project)

    # Record the run configuration next to the project files
    run_path = os.path.join(cfg.out_dir, "run.json")
    with open(run_path, "w") as f:
        json.dump(dataclasses.asdict(cfg), f, indent=2)
    print(f"Wrote {run_path}")

    print(
        f"\nNext steps:\n"
        f"  • Debug plot : python plot_debug.py --out_dir {cfg.out_dir}\n"
        f"  • Scenario   : copy {cfg.out_dir}/galaxy.txt into the game's "
        f"map/setup_scenarios folder"
    )


if __name__ == "__main__":
    main()
