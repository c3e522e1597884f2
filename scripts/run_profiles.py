#!/usr/bin/env python3
"""
run_profiles.py
===============

Compute a flux-surface-average profile and the safety-factor profile for an
analytic geometry described by a YAML run config.

Responsibilities
----------------
• Read and check the run config (grid, geometry, profile levels)
• Build the grid and geometry
• Sample the averaged quantity and α = I_pol / (R |∇ψ|) on the grid
• Evaluate <f>(ψ0) and q(ψ0) on the configured levels
• Log a table (with the closed-form q for the circular geometry)
• Save a quicklook figure under out_dir/

Usage
-----
python scripts/run_profiles.py \
  --config configs/circular.yaml \
  --out-dir data/profiles/circular
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Callable, Sequence

import numpy as np
import matplotlib
matplotlib.use("Agg")  # safe for headless execution
import matplotlib.pyplot as plt

from fluxdiag.geometry.grid import build_grid
from fluxdiag.io.config import check_consistency, load_yaml, pick_meta_name, profile_levels
from fluxdiag.io.logging_utils import capture_warnings, setup_logger
from fluxdiag.numerics.ops import evaluate
from fluxdiag.physics.average import FluxSurfaceAverage, SafetyFactor
from fluxdiag.physics.geometries import build_geometry, circular_safety_factor
from fluxdiag.viz.plot_profiles import plot_flux_profiles
from fluxdiag.viz.style import apply_mpl_defaults


# ============================================================
# HELPERS
# ============================================================

def _quantity(name: str, geometry) -> Callable:
    """Callable f(R,Z) for profiles.average."""
    if name == "ones":
        return lambda R, Z: np.ones_like(R)
    if name == "psip":
        return geometry.psip
    if name == "gradpsip":
        return lambda R, Z: np.sqrt(geometry.psipR(R, Z) ** 2 + geometry.psipZ(R, Z) ** 2)
    if name == "ipol":
        return geometry.ipol
    raise ValueError(f"Unknown averaged quantity {name!r}")


def save_figure(fig: plt.Figure, out_base: Path, formats: Sequence[str], dpi: int = 160) -> None:
    out_base.parent.mkdir(parents=True, exist_ok=True)
    for fmt in formats:
        fmt = fmt.lower().lstrip(".")
        fig.savefig(out_base.with_suffix(f".{fmt}"), dpi=dpi, bbox_inches="tight")


# ============================================================
# MAIN
# ============================================================

def main() -> None:
    parser = argparse.ArgumentParser(description="Flux-surface average and q profiles from a run config.")
    parser.add_argument("--config", type=str, required=True,
                        help="Path to the run YAML (grid, geometry, profiles)")
    parser.add_argument("--out-dir", type=str, default="data/profiles",
                        help="Directory for run.log and figures")
    parser.add_argument("--formats", nargs="*", default=["png"],
                        help="Figure formats (e.g. png pdf)")
    parser.add_argument("--log-level", type=str, default="INFO",
                        help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    args = parser.parse_args()

    out_dir = Path(args.out_dir).expanduser().resolve()
    logger = setup_logger(out_dir / "run.log", level=args.log_level)
    capture_warnings(logger)
    logger.info("Running run_profiles.py")

    cfg_path = Path(args.config).expanduser().resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config YAML not found: {cfg_path}")
    cfg = load_yaml(cfg_path)
    run_name = pick_meta_name(cfg, default=cfg_path.stem)
    logger.info("Config: %s (run name: %s)", cfg_path, run_name)

    for msg in check_consistency(cfg):
        logger.warning(msg)

    # -----------------------------
    # Grid + geometry
    # -----------------------------
    grid = build_grid(cfg)
    geometry = build_geometry(cfg)
    geo_cfg = cfg["geometry"]
    gtype = str(geo_cfg.get("type", "circular")).strip().lower()
    logger.info(
        "Grid: R=[%g, %g] Z=[%g, %g] n=%d Nx=%d Ny=%d (%d nodes)",
        grid.x0, grid.x1, grid.y0, grid.y1, grid.n, grid.Nx, grid.Ny, grid.size,
    )
    logger.info("Geometry: type=%s R0=%g I0=%g", gtype, float(geo_cfg["R0"]), float(geo_cfg.get("I0", 1.0)))

    psi = evaluate(geometry.psip, grid)
    logger.info("Sampled psip range: [%g, %g]", float(np.min(psi)), float(np.max(psi)))

    # -----------------------------
    # Profiles
    # -----------------------------
    prof_cfg = cfg["profiles"]
    quantity = str(prof_cfg.get("average", "psip")).strip().lower()
    epsilon = prof_cfg.get("epsilon", None)
    epsilon = None if epsilon is None else float(epsilon)
    levels = profile_levels(cfg)

    f = evaluate(_quantity(quantity, geometry), grid)
    fsa = FluxSurfaceAverage(grid, geometry, f, epsilon=epsilon)
    qprof = SafetyFactor.from_geometry(grid, geometry, epsilon=epsilon)
    logger.info("Bandwidth: average eps=%.6g, safety factor eps=%.6g", fsa.epsilon, qprof.epsilon)

    average = fsa.profile(levels)
    q = qprof.profile(levels)

    q_ref = None
    if gtype == "circular":
        q_ref = circular_safety_factor(levels, R0=float(geo_cfg["R0"]), I0=float(geo_cfg.get("I0", 1.0)))

    logger.info("%12s %14s %14s %14s", "psi0", f"<{quantity}>", "q", "q_closed_form")
    for i, lev in enumerate(levels):
        ref = q_ref[i] if q_ref is not None else float("nan")
        logger.info("%12.6g %14.8g %14.8g %14.8g", lev, average[i], q[i], ref)

    n_bad = int(np.sum(~np.isfinite(average)) + np.sum(~np.isfinite(q)))
    if n_bad:
        logger.warning("%d profile values are NaN (levels outside the sampled flux range).", n_bad)

    # -----------------------------
    # Figure
    # -----------------------------
    apply_mpl_defaults()
    fig, _ = plot_flux_profiles(
        run_name=run_name,
        levels=levels,
        average=average,
        q=q,
        average_label=f"<{quantity}>",
        q_reference=q_ref,
    )
    save_figure(fig, out_dir / "figures" / "profiles", args.formats)
    plt.close(fig)
    logger.info("Wrote figures to %s", out_dir / "figures")

    print("\nProfiles complete.")
    print(f"  config:   {cfg_path}")
    print(f"  out_dir:  {out_dir}")
    print(f"  levels:   {levels.size} in [{levels[0]:g}, {levels[-1]:g}]")
    print("")


if __name__ == "__main__":
    main()
