"""
Color Field
===========
Deterministic trigonometric coloring of transformed 4D points.

Every channel and the intensity are of the form ``0.5 + 0.5 * sin(phase)``,
so all outputs lie in [0, 1] for finite input.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import matplotlib.pyplot as plt

if TYPE_CHECKING:
    import numpy.typing as npt
    from matplotlib.figure import Figure

SPATIAL_SCALE = 0.5
INTENSITY_SCALE = 0.3

# Channel r, g, b sample x, y and w respectively
CHANNEL_AXES = [0, 1, 3]
CHANNEL_RATES = np.array([0.5, 0.3, 0.7])
CHANNEL_OFFSETS = np.array([0.0, 2.0 * np.pi / 3.0, 4.0 * np.pi / 3.0])


def color(p: npt.ArrayLike, time: float,
          color_anim_speed: float) -> tuple[npt.NDArray[np.float64], float]:
    """
    Color and intensity of a single transformed 4D point.

    Args:
        p: Transformed 4D point.
        time: Elapsed time in seconds.
        color_anim_speed: Multiplier on `time` for the temporal phase.

    Returns:
        RGB triple and scalar intensity, all in [0, 1].
    """
    rgb, intensity = color_points(np.asarray(p, dtype=np.float64)[None, :], time, color_anim_speed)
    return rgb[0], float(intensity[0])


def color_points(
    points: npt.ArrayLike, time: float, color_anim_speed: float
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Vectorized `color` over an (N, 4) array."""
    p = np.asarray(points, dtype=np.float64)
    color_time = time * color_anim_speed

    spatial = p[:, CHANNEL_AXES] * SPATIAL_SCALE
    phase = spatial + color_time * CHANNEL_RATES + CHANNEL_OFFSETS
    rgb = 0.5 + 0.5 * np.sin(phase)

    dist = np.linalg.norm(p, axis=1)
    intensity = 0.5 + 0.5 * np.sin(dist * INTENSITY_SCALE - color_time)
    return rgb, intensity


def plot_color_field(
    point: npt.ArrayLike = (1.0, 1.0, 1.0, 1.0),
    color_anim_speed: float = 0.5,
    duration: float = 60.0,
    show: bool = True,
) -> Figure:
    """
    Plot the color channels and intensity of one point over time.

    Args:
        point: Transformed 4D point to sample.
        color_anim_speed: Color animation speed.
        duration: Time span in seconds.
        show: Call `plt.show()` before returning.
    """
    times = np.linspace(0.0, duration, 500)
    p = np.asarray(point, dtype=np.float64)
    samples = [color(p, t, color_anim_speed) for t in times]
    rgb = np.array([s[0] for s in samples])
    intensity = np.array([s[1] for s in samples])

    plt.rcParams["figure.constrained_layout.use"] = True
    fig = plt.figure(figsize=(7, 5))

    for channel, style in enumerate(("r", "g", "b")):
        plt.plot(times, rgb[:, channel], style, lw=1.5, label=style)
    plt.plot(times, intensity, 'k--', lw=1.5, label="intensity")

    plt.grid(visible=True, which='major', axis='both', linestyle='-', color='gray', lw=0.5)
    plt.minorticks_on()
    plt.grid(visible=True, which='minor', axis='both', linestyle=':', color='gray', lw=0.5)

    plt.title(f"Color field at {tuple(float(v) for v in p)}")
    plt.xlabel("Time (s)")
    plt.ylabel("Value")
    plt.ylim(-0.05, 1.05)
    plt.legend()

    if show:
        plt.show()
    return fig
