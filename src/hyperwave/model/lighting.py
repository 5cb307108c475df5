"""
Reflection Model (Indra's Net)
==============================
Shading of mirror-like particles lit by three orbiting point lights.

Why is this file needed?
------------------------
1. Lights: Light positions follow closed-form orbits of elapsed time, so they
   never drift, however long the simulation runs.
2. Shading: Each particle is treated as a tiny mirrored sphere that reflects
   every light directly (no particle-to-particle reflection, no shadows).

Model per light:
    L    = direction from the particle to the light
    R    = reflect(-L, N)
    spec = max(R . V, 0) ** SHININESS
    att  = light_intensity / (1 + d^2 * falloff),   falloff = 1 / range^2

    rgb  = AMBIENT_TINT + reflection_strength * sum(color * spec * att)
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence, TYPE_CHECKING

import numba as nb
import numpy as np

from hyperwave.utils import normalize, normalize_rows

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

SHININESS = 32.0
AMBIENT_TINT = np.array([0.02, 0.02, 0.03])
ORBIT_RADIUS = 2.5

LIGHT_COLORS = np.array([
    [1.0, 0.35, 0.35],
    [0.35, 1.0, 0.45],
    [0.4, 0.5, 1.0],
])
# Rows are lights, columns are x, y, z
ORBIT_FREQUENCIES = np.array([
    [1.0, 0.7, 1.3],
    [0.8, 1.1, 0.6],
    [1.2, 0.9, 0.75],
])
ORBIT_PHASES = np.array([
    [0.0, np.pi / 2.0, np.pi / 4.0],
    [2.0 * np.pi / 3.0, 0.0, np.pi],
    [4.0 * np.pi / 3.0, np.pi / 3.0, np.pi / 2.0],
])


@dataclass(frozen=True)
class LightSource:
    """A point light. `intensity` multiplies the shared light intensity."""
    position: npt.NDArray[np.float64]
    color: npt.NDArray[np.float64]
    intensity: float = 1.0


# ---- numba kernels ----

@nb.vectorize(["float64(float64, float64, float64)"], cache=True)
def attenuation(dist_sq: float, intensity: float, falloff: float) -> float:
    """Inverse-square-like falloff."""
    return intensity / (1.0 + dist_sq * falloff)


@nb.vectorize(["float64(float64, float64)"], cache=True)
def specular_power(cos_angle: float, shininess: float) -> float:
    """max(cos_angle, 0) ** shininess"""
    if cos_angle <= 0.0:
        return 0.0
    return cos_angle ** shininess


# ---- Lights ----

def light_positions(time: float, speed: float, radius: float = ORBIT_RADIUS) -> npt.NDArray[np.float64]:
    """
    Closed-form light positions.

    Args:
        time: Elapsed time in seconds.
        speed: Shared orbit speed.
        radius: Orbit amplitude along each axis.

    Returns:
        (3, 3) array, one row per light.
    """
    return radius * np.sin(time * speed * ORBIT_FREQUENCIES + ORBIT_PHASES)


def make_lights(time: float, speed: float) -> list[LightSource]:
    """The three lights at `time`."""
    positions = light_positions(time, speed)
    return [
        LightSource(position=positions[i], color=LIGHT_COLORS[i])
        for i in range(len(LIGHT_COLORS))
    ]


# ---- Geometry helpers ----

def reflect_vector(incident: npt.ArrayLike, normal: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Mirror `incident` about `normal` (both (..., 3), `normal` unit length)."""
    i = np.asarray(incident, dtype=np.float64)
    n = np.asarray(normal, dtype=np.float64)
    return i - 2.0 * np.sum(n * i, axis=-1, keepdims=True) * n


def sphere_normal(view_dir: npt.ArrayLike, offset: tuple[float, float] = (0.0, 0.0)) -> npt.NDArray[np.float64]:
    """
    Normal of a particle sphere seen along `view_dir`.

    Args:
        view_dir: Unit vector from the particle towards the viewer.
        offset: Sprite offset from the centre, each component in [-0.5, 0.5].
            (0, 0) gives the normal facing the viewer.
    """
    v = normalize(view_dir)
    up_hint = np.array([0.0, 1.0, 0.0])
    if abs(np.dot(up_hint, v)) > 0.999:
        up_hint = np.array([1.0, 0.0, 0.0])
    right = normalize(np.cross(up_hint, v))
    up = np.cross(v, right)

    u, w = 2.0 * offset[0], 2.0 * offset[1]
    facing = np.sqrt(max(1.0 - u * u - w * w, 0.0))
    return normalize(u * right + w * up + facing * v)


# ---- Shading ----

def _shade(
    positions: npt.NDArray[np.float64],
    view_dirs: npt.NDArray[np.float64],
    normals: npt.NDArray[np.float64],
    lights: Sequence[LightSource],
    reflection_strength: float,
    light_intensity: float,
    reflection_range: float,
) -> npt.NDArray[np.float64]:
    falloff = 1.0 / (reflection_range * reflection_range)
    total = np.zeros_like(positions)

    for light in lights:
        to_light = np.asarray(light.position, dtype=np.float64) - positions
        dist_sq = np.sum(to_light * to_light, axis=1)
        direction = normalize_rows(to_light)

        reflected = reflect_vector(-direction, normals)
        cos_angle = np.sum(reflected * view_dirs, axis=1)

        spec = specular_power(cos_angle, SHININESS)
        att = attenuation(dist_sq, light_intensity * light.intensity, falloff)
        total += (spec * att)[:, None] * np.asarray(light.color, dtype=np.float64)

    rgb = AMBIENT_TINT + reflection_strength * total
    return np.maximum(rgb, 0.0)


def reflect(
    particle_pos: npt.ArrayLike,
    view_dir: npt.ArrayLike,
    lights: Sequence[LightSource],
    reflection_strength: float,
    light_intensity: float,
    reflection_range: float = 5.0,
    offset: tuple[float, float] = (0.0, 0.0),
) -> npt.NDArray[np.float64]:
    """
    Reflected color of a single particle.

    Args:
        particle_pos: Particle centre.
        view_dir: Unit vector from the particle towards the viewer.
        lights: The point lights.
        reflection_strength: Scale on the summed specular contributions.
        light_intensity: Shared light intensity.
        reflection_range: Distance scale of the light falloff.
        offset: Sprite offset selecting the sphere normal.

    Returns:
        Non-negative RGB; not clamped above.
    """
    pos = np.asarray(particle_pos, dtype=np.float64)[None, :]
    v = normalize(view_dir)[None, :]
    n = sphere_normal(v[0], offset)[None, :]
    return _shade(pos, v, n, lights, reflection_strength, light_intensity, reflection_range)[0]


def reflect_points(
    positions: npt.ArrayLike,
    view_position: npt.ArrayLike,
    lights: Sequence[LightSource],
    reflection_strength: float,
    light_intensity: float,
    reflection_range: float = 5.0,
) -> npt.NDArray[np.float64]:
    """
    Vectorized `reflect` over (N, 3) particle centres seen from `view_position`.

    Each particle uses its centre normal, which faces the viewer.
    """
    pos = np.asarray(positions, dtype=np.float64)
    view_dirs = normalize_rows(np.asarray(view_position, dtype=np.float64) - pos)
    return _shade(pos, view_dirs, view_dirs, lights, reflection_strength, light_intensity, reflection_range)
