"""
Input/Output Manager
Handles saving and loading parameter sets (JSON and HDF5), bundled presets,
and exporting rendered frames as VTK point clouds.
"""
import json
import logging
import os
from importlib.metadata import version, PackageNotFoundError
from typing import Any, Dict

import h5py
import numpy as np
import pyvista as pv

from hyperwave.config import DEFAULT_PRESETS_PATH
from hyperwave.model.params import ParameterError, SimulationParams
from hyperwave.model.scene import RenderAttributes

logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("hyperwave")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"


class IOManager:

    # ---- JSON ----

    @staticmethod
    def save_params_json(params: SimulationParams, filepath: str) -> None:
        logger.info(f"Saving parameters to: {filepath}")
        payload = {"version": APP_VERSION, "parameters": params.to_flat_dict()}
        try:
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
        except OSError as e:
            logger.exception(f"Failed to save parameters: {e}")
            raise

    @staticmethod
    def load_params_json(filepath: str, base: SimulationParams | None = None) -> SimulationParams:
        """
        Load a parameter set from JSON.

        Accepts either a bare flat mapping or {"parameters": {...}}.

        Raises:
            ParameterError: If the file is not valid JSON or the data is invalid.
        """
        logger.info(f"Loading parameters from: {filepath}")
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            msg = f"File '{filepath}' is not valid JSON: {e}"
            logger.error(msg)
            raise ParameterError(msg) from e

        flat = IOManager._unwrap(data, filepath)
        try:
            return SimulationParams.from_flat_dict(flat, base=base)
        except ParameterError as e:
            logger.error(f"Rejected parameter file '{filepath}': {e}")
            raise

    @staticmethod
    def _unwrap(data: Any, source: str) -> Dict[str, Any]:
        if isinstance(data, dict) and "parameters" in data:
            data = data["parameters"]
        if not isinstance(data, dict):
            msg = f"'{source}' does not contain a parameter mapping."
            logger.error(msg)
            raise ParameterError(msg)
        return data

    # ---- HDF5 ----

    @staticmethod
    def save_params_h5(params: SimulationParams, filepath: str) -> None:
        logger.info(f"Saving parameters to: {filepath}")
        try:
            with h5py.File(filepath, "w") as f:
                f.attrs["version"] = APP_VERSION
                grp_params = f.create_group("parameters")
                for key, val in params.to_flat_dict().items():
                    grp_params.attrs[key] = val
            logger.info(f"Parameters saved to: {filepath}")
        except Exception as e:
            logger.exception(f"Failed to save parameters: {e}")
            raise

    @staticmethod
    def load_params_h5(filepath: str, base: SimulationParams | None = None) -> SimulationParams:
        logger.info(f"Loading parameters from: {filepath}")
        if not h5py.is_hdf5(filepath):
            msg = f"File '{filepath}' is not a valid HDF5 file."
            logger.error(msg)
            raise ParameterError(msg)

        with h5py.File(filepath, "r") as f:
            if "parameters" not in f:
                msg = f"File '{filepath}' has no 'parameters' group."
                logger.error(msg)
                raise ParameterError(msg)
            grp_params = f["parameters"]
            # HDF5 returns numpy scalars; from_flat_dict converts them
            try:
                loaded_values = {key: grp_params.attrs[key] for key in grp_params.attrs.keys()}
            except (OSError, TypeError) as e:
                msg = f"Unreadable parameter attributes in '{filepath}': {e}"
                logger.error(msg)
                raise ParameterError(msg) from e

        try:
            return SimulationParams.from_flat_dict(loaded_values, base=base)
        except ParameterError as e:
            logger.error(f"Rejected parameter file '{filepath}': {e}")
            raise

    # ---- Presets ----

    @staticmethod
    def load_presets(filepath: str = DEFAULT_PRESETS_PATH) -> Dict[str, SimulationParams]:
        """
        Load named parameter presets.

        The file maps preset names to (partial) flat parameter mappings.
        All presets are validated; one bad preset rejects the file.

        Raises:
            ParameterError: If the file is not valid JSON or any preset is invalid.
        """
        logger.info(f"Loading presets from: {filepath}")
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            msg = f"Preset file '{filepath}' is not valid JSON: {e}"
            logger.error(msg)
            raise ParameterError(msg) from e
        if not isinstance(data, dict):
            raise ParameterError(f"Preset file '{filepath}' must contain a mapping.")

        presets: Dict[str, SimulationParams] = {}
        for name, flat in data.items():
            try:
                presets[name] = SimulationParams.from_flat_dict(IOManager._unwrap(flat, name))
            except ParameterError as e:
                raise ParameterError(f"Preset '{name}': {e}") from e
        logger.debug(f"Loaded {len(presets)} presets.")
        return presets

    # ---- Export ----

    @staticmethod
    def export_frame_vtk(frame: RenderAttributes, filepath: str, visible_only: bool = True) -> str:
        """
        Export a frame as a VTK point cloud (.vtp / .vtk).

        Point data: "color" (RGB), "intensity", "alpha", "size", "depth" and
        "index" (lattice index of each exported point).
        """
        mask = frame.visible if visible_only else np.ones(len(frame), dtype=bool)
        indices = np.flatnonzero(mask)

        cloud = pv.PolyData(frame.positions[mask])
        cloud.point_data["color"] = frame.colors[mask]
        cloud.point_data["intensity"] = frame.intensity[mask]
        cloud.point_data["alpha"] = frame.alpha[mask]
        cloud.point_data["size"] = frame.size[mask]
        cloud.point_data["depth"] = frame.depth[mask]
        cloud.point_data["index"] = indices
        cloud.field_data["mode"] = [str(frame.mode)]

        os.makedirs(os.path.dirname(os.path.abspath(filepath)), exist_ok=True)
        cloud.save(filepath)
        logger.info(f"Exported {len(indices)} particles to: {filepath}")
        return filepath
