"""
Application Initialization
==========================
This module builds the parameter set, constructs the Simulation and drives it
from a simple fixed-step clock.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Sets up logging.
2. Resolves the parameter set (defaults, preset, file, command-line overrides).
3. Runs the requested number of ticks, standing in for a display refresh loop.
4. Optionally hands the final frame to the VTK exporter.
"""
from __future__ import annotations

import argparse
import logging
import os
from typing import Optional, Sequence

import numpy as np

from hyperwave.config import DEFAULT_DT, DEFAULT_PRESETS_PATH, DEFAULT_TICKS
from hyperwave.logging_config import setup_logging
from hyperwave.model.io import IOManager
from hyperwave.model.params import LatticeShape, ParameterError, SceneMode, SimulationParams
from hyperwave.model.scene import Simulation

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hyperwave",
        description="Evaluate a 4D-wave or Indra's-net particle field headlessly.",
    )
    parser.add_argument("--mode", choices=[m.value for m in SceneMode], help="Scene mode.")
    parser.add_argument("--shape", choices=[s.value for s in LatticeShape], help="4D lattice shape.")
    parser.add_argument("--resolution", type=int, help="Lattice points per axis (>= 2).")
    parser.add_argument("--ticks", type=int, default=DEFAULT_TICKS, help="Number of ticks to run.")
    parser.add_argument("--dt", type=float, default=DEFAULT_DT, help="Tick delta in seconds.")
    parser.add_argument("--params", help="Parameter file (.json or .h5).")
    parser.add_argument("--preset", help=f"Preset name from {os.path.basename(DEFAULT_PRESETS_PATH)}.")
    parser.add_argument("--seed", type=int, help="Randomize both affine transforms with this seed.")
    parser.add_argument("--save-params", help="Write the resolved parameters (.json or .h5).")
    parser.add_argument("--export", help="Export the last frame as a VTK point cloud.")
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    parser.add_argument("--log-file", help="Also write the log to this file.")
    return parser


def resolve_params(args: argparse.Namespace) -> SimulationParams:
    """Defaults <- preset <- parameter file <- command-line overrides."""
    params = SimulationParams()

    if args.preset:
        presets = IOManager.load_presets()
        if args.preset not in presets:
            raise ParameterError(f"Unknown preset '{args.preset}'. Available: {sorted(presets)}")
        params = presets[args.preset]

    if args.params:
        if args.params.endswith((".h5", ".hdf5")):
            params = IOManager.load_params_h5(args.params, base=params)
        else:
            params = IOManager.load_params_json(args.params, base=params)

    overrides = {}
    if args.mode:
        overrides["mode"] = args.mode
    if args.shape:
        overrides["lattice_shape"] = args.shape
    if args.resolution is not None:
        overrides["resolution"] = args.resolution
    if overrides:
        params = SimulationParams.from_flat_dict(overrides, base=params)
    return params


def run(params: SimulationParams, ticks: int, dt: float, seed: Optional[int] = None) -> Simulation:
    """Create a Simulation and advance it `ticks` times."""
    sim = Simulation(params)
    if seed is not None:
        sim.randomize_transforms(seed)

    for _ in range(ticks):
        sim.tick(dt)

    frame = sim.frame if sim.frame is not None else sim.evaluate()
    visible = frame.visible
    mean_rgb = frame.colors[visible].mean(axis=0) if visible.any() else np.zeros(3)
    logger.info(
        f"t={sim.time:.3f}s after {ticks} ticks: {frame.visible_count}/{len(frame)} particles visible, "
        f"mean color {np.round(mean_rgb, 3).tolist()}"
    )
    return sim


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)

    try:
        params = resolve_params(args)
    except ParameterError as e:
        logger.error(f"Invalid parameters: {e}")
        return 2

    sim = run(params, args.ticks, args.dt, args.seed)

    if args.save_params:
        if args.save_params.endswith((".h5", ".hdf5")):
            IOManager.save_params_h5(sim.params, args.save_params)
        else:
            IOManager.save_params_json(sim.params, args.save_params)

    if args.export:
        IOManager.export_frame_vtk(sim.frame if sim.frame is not None else sim.evaluate(), args.export)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
