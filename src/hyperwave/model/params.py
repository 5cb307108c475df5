"""
Simulation Parameters (Data Model)
==================================
This module defines the parameter set read by every tick of the simulation.

Why is this file needed?
------------------------
1. State Management: It holds every scalar, flag and matrix the pipeline
   consumes in one explicit object that is passed to the components.
2. Persistence: This object is what gets serialized when a parameter set is
   exported, as a flat key-value mapping.
3. Validation: Imports are validated as a whole before anything is applied,
   so a malformed parameter set is never partially applied.

Classes:
    SceneMode, LatticeShape, BlendingMode: Enumerated options.
    SimulationParams: The main container class.
    ParameterError: Raised for invalid or malformed parameter data.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import StrEnum
import logging
import math
from typing import Any, Dict, Mapping, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

MATRIX_FIELDS = ("transform1", "transform2")


class ParameterError(ValueError):
    """Invalid configuration or malformed imported parameter data."""


class SceneMode(StrEnum):
    WAVE_4D = "4d-wave"
    INDRAS_NET = "indras-net"


class LatticeShape(StrEnum):
    HYPERCUBE = "hypercube"
    WAVE_VOLUME = "wave-volume"


class BlendingMode(StrEnum):
    NORMAL = "Normal"
    ADDITIVE = "Additive"
    SUBTRACTIVE = "Subtractive"
    MULTIPLY = "Multiply"


def _identity() -> npt.NDArray[np.float64]:
    return np.eye(4, dtype=np.float64)


@dataclass
class SimulationParams:
    """
    Parameter set consumed by the simulation.

    Styling values (particle_size, sharpness, glow_intensity, opacity,
    blend_factor, color_intensity, blending_mode, depth_write) are passed
    through to the renderer and are not used by the geometry math, except that
    particle_size, opacity and blend_factor seed the size and alpha buffers.
    """
    # Lattice
    resolution: int = 10
    mode: SceneMode = SceneMode.WAVE_4D
    lattice_shape: LatticeShape = LatticeShape.HYPERCUBE
    spread: float = 1.0

    # Rotation
    rotation_speed_xy: float = 0.5
    rotation_speed_zw: float = 0.3
    rotate_xy_enabled: bool = True
    rotate_zw_enabled: bool = True
    time_scale: float = 1.0

    # Affine transforms (4x4) and blend between them
    transform1: npt.NDArray[np.float64] = field(default_factory=_identity, compare=False)
    transform2: npt.NDArray[np.float64] = field(default_factory=_identity, compare=False)
    interpolation: float = 0.0

    # Projection & color
    projection_factor: float = 0.5
    color_animation_speed: float = 0.5
    # Final color multiplier applied by the renderer
    color_intensity: float = 1.0

    # Indra's net lighting
    reflection_strength: float = 1.0
    reflection_range: float = 5.0
    light_intensity: float = 1.0
    light_speed: float = 0.5
    view_x: float = 8.0
    view_y: float = 8.0
    view_z: float = 8.0

    # Pass-through styling
    particle_size: float = 3.0
    sharpness: float = 0.3
    glow_intensity: float = 1.0
    opacity: float = 1.0
    blend_factor: float = 1.0
    blending_mode: BlendingMode = BlendingMode.ADDITIVE
    depth_write: bool = False

    def __post_init__(self) -> None:
        for name in MATRIX_FIELDS:
            try:
                matrix = np.array(getattr(self, name), dtype=np.float64)
            except (TypeError, ValueError) as e:
                raise ParameterError(f"'{name}' is not a numeric matrix: {e}") from e
            if matrix.shape != (4, 4):
                raise ParameterError(f"'{name}' must be 4x4, got shape {matrix.shape}.")
            setattr(self, name, matrix)

    # ---- Derived values ----

    @property
    def particle_count(self) -> int:
        if self.mode == SceneMode.WAVE_4D and self.lattice_shape == LatticeShape.HYPERCUBE:
            return self.resolution ** 4
        return self.resolution ** 3

    @property
    def view_position(self) -> npt.NDArray[np.float64]:
        return np.array([self.view_x, self.view_y, self.view_z], dtype=np.float64)

    def lattice_key(self) -> tuple[SceneMode, int, LatticeShape]:
        """
        Values whose change requires a full lattice rebuild.

        Indra's net always uses the cube lattice, so its shape is reported as
        HYPERCUBE whatever `lattice_shape` holds.
        """
        if self.mode == SceneMode.INDRAS_NET:
            return self.mode, self.resolution, LatticeShape.HYPERCUBE
        return self.mode, self.resolution, self.lattice_shape

    def copy(self, **changes: Any) -> SimulationParams:
        """Return a new parameter set (matrices are copied)."""
        return replace(self, **changes)

    # ---- Validation ----

    def validate(self) -> None:
        """
        Check the whole parameter set.

        Raises:
            ParameterError: Listing every violated constraint.
        """
        errors: list[str] = []

        if isinstance(self.resolution, bool) or not isinstance(self.resolution, (int, np.integer)):
            errors.append(f"resolution must be an integer, got {self.resolution!r}")
        elif self.resolution < 2:
            errors.append(f"resolution must be >= 2, got {self.resolution}")

        for name, enum_cls in (("mode", SceneMode), ("lattice_shape", LatticeShape),
                               ("blending_mode", BlendingMode)):
            if not isinstance(getattr(self, name), enum_cls):
                errors.append(f"{name} must be one of {[e.value for e in enum_cls]}")

        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in MATRIX_FIELDS:
                if not np.all(np.isfinite(value)):
                    errors.append(f"{f.name} contains non-finite entries")
            elif isinstance(value, float) and not math.isfinite(value):
                errors.append(f"{f.name} must be finite, got {value}")

        if not 0.0 <= self.interpolation <= 1.0:
            errors.append(f"interpolation must lie in [0, 1], got {self.interpolation}")
        if self.spread <= 0.0:
            errors.append(f"spread must be > 0, got {self.spread}")
        if self.reflection_range <= 0.0:
            errors.append(f"reflection_range must be > 0, got {self.reflection_range}")
        for name in ("time_scale", "color_intensity", "reflection_strength",
                     "light_intensity", "particle_size", "glow_intensity"):
            if getattr(self, name) < 0.0:
                errors.append(f"{name} must be >= 0, got {getattr(self, name)}")
        for name in ("sharpness", "opacity", "blend_factor"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                errors.append(f"{name} must lie in [0, 1], got {getattr(self, name)}")

        if errors:
            raise ParameterError("Invalid parameter set: " + "; ".join(errors))

    # ---- Flat key-value serialization ----

    def to_flat_dict(self) -> Dict[str, Any]:
        """Serialize to a flat mapping of plain Python scalars."""
        data: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in MATRIX_FIELDS:
                for r in range(4):
                    for c in range(4):
                        data[f"{f.name}_{r}{c}"] = float(value[r, c])
            elif isinstance(value, StrEnum):
                data[f.name] = value.value
            elif isinstance(value, bool):
                data[f.name] = value
            elif isinstance(value, (int, np.integer)):
                data[f.name] = int(value)
            else:
                data[f.name] = float(value)
        return data

    @classmethod
    def from_flat_dict(cls, data: Mapping[str, Any],
                       base: SimulationParams | None = None) -> SimulationParams:
        """
        Build a validated parameter set from a flat mapping.

        Keys missing from `data` keep the value from `base` (or the defaults).
        Nothing is returned unless the whole mapping is valid.

        Raises:
            ParameterError: On unknown keys, uncoercible values or failed
                validation.
        """
        template = base if base is not None else cls()
        merged = template.to_flat_dict()

        unknown = sorted(set(data) - set(merged))
        if unknown:
            raise ParameterError(f"Unknown parameter keys: {unknown}")
        merged.update(data)

        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name in MATRIX_FIELDS:
                kwargs[f.name] = [
                    [_coerce_float(f"{f.name}_{r}{c}", merged[f"{f.name}_{r}{c}"]) for c in range(4)]
                    for r in range(4)
                ]
                continue
            default = getattr(template, f.name)
            kwargs[f.name] = _coerce(f.name, merged[f.name], default)

        params = cls(**kwargs)
        params.validate()
        return params


def _coerce(name: str, value: Any, like: Any) -> Any:
    """Coerce `value` to the type of the default value `like`."""
    value = _scalar(name, value)

    if isinstance(like, StrEnum):
        try:
            return type(like)(value)
        except ValueError as e:
            raise ParameterError(f"'{name}': unknown option {value!r}") from e
    if isinstance(like, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise ParameterError(f"'{name}': expected a boolean, got {value!r}")
    if isinstance(like, int):
        if isinstance(value, bool):
            raise ParameterError(f"'{name}': expected an integer, got {value!r}")
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError as e:
                raise ParameterError(f"'{name}': expected an integer, got {value!r}") from e
        raise ParameterError(f"'{name}': expected an integer, got {value!r}")
    return _coerce_float(name, value)


def _scalar(name: str, value: Any) -> Any:
    """Unwrap numpy scalars and bytes (e.g. read back from HDF5 attributes)."""
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        try:
            value = value.item()
        except ValueError as e:
            raise ParameterError(f"'{name}': expected a scalar, got {value!r}") from e
    if isinstance(value, bytes):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParameterError(f"'{name}': undecodable bytes {value!r}") from e
    return value


def _coerce_float(name: str, value: Any) -> float:
    value = _scalar(name, value)
    if isinstance(value, bool):
        raise ParameterError(f"'{name}': expected a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ParameterError(f"'{name}': expected a number, got {value!r}") from e
