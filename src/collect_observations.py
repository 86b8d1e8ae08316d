#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Record node bipartite observations at the branching decisions of SCIP.
"""

from __future__ import annotations

from pathlib import Path

import configargparse

from data.collectors import collect_observations
from data.common import Settings


def collect() -> None:
    parser = configargparse.ArgumentParser(
        allow_abbrev=False,
        description="Collect node bipartite observations",
    )
    parser.add_argument(
        "--configs", is_config_file=True, required=False, default="config.yml"
    )

    # Data
    d = parser.add_argument_group("data")
    d.add_argument(
        "--instances",
        type=str,
        nargs="+",
        required=True,
        help="Problem files (.lp, .mps, .cip, ...)",
    )
    d.add_argument("--out_root", type=str, default="../data/observations")

    # Solver
    s = parser.add_argument_group("solver")
    s.add_argument("--seed", type=int, default=0, help="SCIP random seed shift")
    s.add_argument(
        "--disable_presolve", action="store_true", help="Turn SCIP presolving off"
    )
    s.add_argument(
        "--keep_cuts",
        action="store_true",
        help="Keep SCIP separators on (the LP structure then changes between decisions)",
    )
    s.add_argument(
        "--disable_conflicts",
        action="store_true",
        help="Turn SCIP conflict analysis off",
    )
    s.add_argument(
        "--time_limit", type=float, default=None, help="Time limit per instance (s)"
    )

    # Observation
    o = parser.add_argument_group("observation")
    o.add_argument(
        "--no_cache",
        action="store_true",
        help="Recompute static features at every decision",
    )
    o.add_argument(
        "--max_decisions",
        type=int,
        default=100,
        help="Observations recorded per instance before the solve is interrupted",
    )

    args, _ = parser.parse_known_args()

    settings = Settings(
        instances=tuple(Path(p) for p in args.instances),
        out_root=Path(args.out_root),
        use_cache=not args.no_cache,
        seed=args.seed,
        disable_presolve=args.disable_presolve,
        disable_cuts=not args.keep_cuts,
        disable_conflicts=args.disable_conflicts,
        time_limit=args.time_limit,
        max_decisions=args.max_decisions,
    )

    collect_observations(settings)


if __name__ == "__main__":
    collect()
