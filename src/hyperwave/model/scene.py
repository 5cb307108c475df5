"""
Scene & Simulation Driver
=========================
This module ties the lattice, transforms, projection, color field and
reflection model into one per-tick evaluation.

Why is this file needed?
------------------------
1. Scenes: A scene is one of two frozen variants (WaveScene, IndrasNetScene)
   holding the static lattice. Mode, resolution or lattice-shape changes build
   a new scene and swap it in whole; a tick never sees a half-built lattice.
2. Clock State: The only state carried between ticks is the elapsed time and
   the accumulated rotation angles (RotationState).
3. Output: Every tick produces a RenderAttributes buffer indexed in lattice
   enumeration order.

Classes:
    RenderAttributes: Per-frame output buffers.
    RotationState: Accumulated XY/ZW rotation angles.
    WaveScene, IndrasNetScene: Scene variants.
    Simulation: The tick driver.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Optional, Union, TYPE_CHECKING

import numpy as np

from hyperwave.config import DEFAULT_DT
from hyperwave.model.color import color_points
from hyperwave.model.lattice import generate_lattice
from hyperwave.model.lighting import make_lights, reflect_points
from hyperwave.model.params import LatticeShape, ParameterError, SceneMode, SimulationParams
from hyperwave.model.projection import project_points
from hyperwave.model.transforms import random_affine, transform_points

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass
class RenderAttributes:
    """
    One frame of per-particle output.

    Row i of every buffer belongs to lattice particle i. Particles that were
    dropped for this frame have `visible` False, a zero position and zero alpha.
    """
    mode: SceneMode
    positions: npt.NDArray[np.float64]
    colors: npt.NDArray[np.float64]
    intensity: npt.NDArray[np.float64]
    alpha: npt.NDArray[np.float64]
    size: npt.NDArray[np.float64]
    depth: npt.NDArray[np.float64]
    visible: npt.NDArray[np.bool_]

    def __len__(self) -> int:
        return len(self.positions)

    @property
    def visible_count(self) -> int:
        return int(self.visible.sum())


@dataclass
class RotationState:
    """Accumulated rotation angles in radians."""
    angle_xy: float = 0.0
    angle_zw: float = 0.0

    def advance(self, delta: float, params: SimulationParams) -> None:
        """Advance each enabled angle by `delta * speed`."""
        if params.rotate_xy_enabled:
            self.angle_xy += delta * params.rotation_speed_xy
        if params.rotate_zw_enabled:
            self.angle_zw += delta * params.rotation_speed_zw

    def reset(self) -> None:
        self.angle_xy = 0.0
        self.angle_zw = 0.0


@dataclass(frozen=True)
class WaveScene:
    """4D lattice rotated, projected and colored every tick."""
    resolution: int
    shape: LatticeShape
    lattice: npt.NDArray[np.float64]

    mode = SceneMode.WAVE_4D

    def lattice_key(self) -> tuple[SceneMode, int, LatticeShape]:
        return self.mode, self.resolution, self.shape

    def evaluate(self, params: SimulationParams, time: float, rotation: RotationState) -> RenderAttributes:
        interp = float(np.clip(params.interpolation, 0.0, 1.0))
        transformed = transform_points(
            self.lattice * params.spread,
            params.transform1,
            params.transform2,
            interp,
            rotation.angle_xy,
            rotation.angle_zw,
        )
        positions, depth, visible = project_points(transformed, params.projection_factor)
        colors, intensity = color_points(transformed, time, params.color_animation_speed)

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            size = params.particle_size / np.abs(depth)
        visible &= np.isfinite(size) & np.all(np.isfinite(colors), axis=1) & np.isfinite(intensity)

        alpha = np.full(len(positions), params.opacity * params.blend_factor)
        hidden = ~visible
        if hidden.any():
            positions[hidden] = 0.0
            colors[hidden] = 0.0
            intensity[hidden] = 0.0
            size[hidden] = 0.0
            alpha[hidden] = 0.0
            depth = np.where(hidden, 0.0, depth)

        return RenderAttributes(
            mode=self.mode,
            positions=positions,
            colors=colors,
            intensity=intensity,
            alpha=alpha,
            size=size,
            depth=depth,
            visible=visible,
        )


@dataclass(frozen=True)
class IndrasNetScene:
    """Static 3D lattice of mirrored particles lit by orbiting lights."""
    resolution: int
    lattice: npt.NDArray[np.float64]

    mode = SceneMode.INDRAS_NET

    def lattice_key(self) -> tuple[SceneMode, int, LatticeShape]:
        return self.mode, self.resolution, LatticeShape.HYPERCUBE

    def evaluate(self, params: SimulationParams, time: float, rotation: RotationState) -> RenderAttributes:
        positions = self.lattice * params.spread
        lights = make_lights(time, params.light_speed)
        colors = reflect_points(
            positions,
            params.view_position,
            lights,
            params.reflection_strength,
            params.light_intensity,
            params.reflection_range,
        )
        count = len(positions)
        view_offset = params.view_position - positions
        return RenderAttributes(
            mode=self.mode,
            positions=positions,
            colors=colors,
            intensity=np.ones(count),
            alpha=np.full(count, params.opacity * params.blend_factor),
            size=np.full(count, params.particle_size),
            depth=np.linalg.norm(view_offset, axis=1),
            visible=np.ones(count, dtype=bool),
        )


Scene = Union[WaveScene, IndrasNetScene]


def build_scene(params: SimulationParams) -> Scene:
    """Generate the lattice for `params` and wrap it in the matching scene variant."""
    lattice = generate_lattice(params.mode, params.resolution, params.lattice_shape)
    if params.mode == SceneMode.INDRAS_NET:
        return IndrasNetScene(resolution=params.resolution, lattice=lattice)
    return WaveScene(resolution=params.resolution, shape=params.lattice_shape, lattice=lattice)


@dataclass
class Simulation:
    """
    Frame-driven simulation.

    An external driver calls `tick(dt)` once per frame; calls must be
    sequential. Parameter changes are applied between ticks through
    `apply_params` / `update_params`.
    """
    params: SimulationParams = field(default_factory=SimulationParams)
    time: float = 0.0
    rotation: RotationState = field(default_factory=RotationState)
    scene: Scene = field(init=False)
    frame: Optional[RenderAttributes] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.params.validate()
        self.params = self.params.copy()
        self.scene = build_scene(self.params)
        logger.info(f"Simulation started in {self.params.mode} mode with {len(self.scene.lattice)} particles.")

    @property
    def particle_count(self) -> int:
        return len(self.scene.lattice)

    def tick(self, dt: float = DEFAULT_DT) -> RenderAttributes:
        """
        Advance the clock by `dt` (scaled by `time_scale`) and evaluate one frame.
        """
        self._sync_scene()
        delta = dt * self.params.time_scale
        self.time += delta
        self.rotation.advance(delta, self.params)

        self.frame = self.scene.evaluate(self.params, self.time, self.rotation)
        dropped = len(self.frame) - self.frame.visible_count
        if dropped:
            logger.debug(f"t={self.time:.3f}s: {dropped} particles dropped this frame.")
        return self.frame

    def evaluate(self) -> RenderAttributes:
        """Evaluate the current state without advancing the clock."""
        self._sync_scene()
        self.frame = self.scene.evaluate(self.params, self.time, self.rotation)
        return self.frame

    def apply_params(self, params: SimulationParams) -> None:
        """
        Replace the parameter set.

        The new set is validated first; on failure nothing changes. If the
        mode, resolution or lattice shape changed, the scene is rebuilt and
        the last frame discarded before the swap.

        Raises:
            ParameterError: If `params` is invalid.
        """
        params.validate()
        params = params.copy()
        self._rebuild_if_needed(params)
        self.params = params

    def _sync_scene(self) -> None:
        """Rebuild the scene if `params` was edited in place since the last build."""
        if self.scene.lattice_key() != self.params.lattice_key():
            self.params.validate()
            self._rebuild_if_needed(self.params)

    def _rebuild_if_needed(self, params: SimulationParams) -> None:
        if self.scene.lattice_key() == params.lattice_key():
            return
        new_scene = build_scene(params)
        logger.info(
            f"Rebuilt scene: {params.mode}, n={params.resolution}, "
            f"{len(new_scene.lattice)} particles."
        )
        self.scene = new_scene
        self.frame = None

    def update_params(self, **changes: Any) -> None:
        """Apply a partial parameter change (see `apply_params`)."""
        try:
            candidate = self.params.copy(**changes)
        except TypeError as e:
            raise ParameterError(f"Unknown parameter in {sorted(changes)}: {e}") from e
        self.apply_params(candidate)

    def reset_rotation(self) -> None:
        self.rotation.reset()
        logger.info("Rotation angles reset.")

    def reset(self) -> None:
        """Reset the clock and rotation angles."""
        self.time = 0.0
        self.rotation.reset()
        self.frame = None
        logger.info("Simulation clock has been reset.")

    def randomize_transforms(self, seed: Optional[int] = None, scale: float = 0.5) -> None:
        """Replace both affine transforms with random ones near the identity."""
        rng = np.random.default_rng(seed)
        self.apply_params(self.params.copy(
            transform1=random_affine(rng, scale),
            transform2=random_affine(rng, scale),
        ))
        logger.info(f"Transforms randomized (seed={seed}).")
