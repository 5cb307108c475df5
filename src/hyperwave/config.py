"""
Configuration & Path Management
===============================
This module serves as the central registry for file paths and global constants.

Why is this file needed?
------------------------
1. Abstraction: Preset files and clock defaults are looked up here, not
   hardcoded in the driver.
2. Deployment: Bundled presets are found both from a source checkout and from
   a frozen build (sys._MEIPASS).

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    DEFAULT_PRESETS_PATH (str): Absolute path to the bundled parameter presets.
    DEFAULT_DT (float): Tick delta of the ~60 fps baseline clock, in seconds.
    DEFAULT_TICKS (int): Ticks the headless driver runs when not told otherwise.
    NOISY_LIBRARIES (tuple): Third-party loggers held at WARNING by default.
"""
import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def get_resource_path(relative_path: str) -> str:
    """
    Resolve `relative_path` against the frozen bundle or the project root.
    """
    if hasattr(sys, '_MEIPASS'):
        # Frozen build: assets are unpacked next to the executable
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # Source checkout: src/hyperwave/config.py -> project root
    project_root: Path = Path(__file__).parent.parent.parent
    return os.path.join(str(project_root), relative_path)


# Global Constants
ASSETS_PATH: str = get_resource_path("assets")
DEFAULT_PRESETS_PATH: str = os.path.join(ASSETS_PATH, "presets_default.json")

DEFAULT_DT: float = 0.016
DEFAULT_TICKS: int = 60

NOISY_LIBRARIES: tuple[str, ...] = ("numba", "matplotlib", "h5py", "pyvista")

if not os.path.exists(DEFAULT_PRESETS_PATH):
    logger.warning(f"Bundled presets not found at {DEFAULT_PRESETS_PATH}")
