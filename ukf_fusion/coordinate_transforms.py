"""
Coordinate transformation and angle helpers for lidar/radar data.
"""
import numpy as np
from typing import Tuple, Union

ArrayLike = Union[float, np.ndarray]


def normalize_angle(angle: ArrayLike) -> ArrayLike:
    """
    Wrap an angle (or array of angles) into the interval (-pi, pi].

    Args:
        angle: Angle in radians

    Returns:
        Equivalent angle in (-pi, pi]
    """
    wrapped = np.pi - np.mod(np.pi - angle, 2.0 * np.pi)
    # mod() can round up to 2*pi for inputs just above pi
    return np.where(wrapped <= -np.pi, wrapped + 2.0 * np.pi, wrapped)


def polar_to_cartesian(range_m: float, bearing_rad: float) -> Tuple[float, float]:
    """
    Convert a radar (range, bearing) pair to Cartesian coordinates.

    Args:
        range_m: Range distance in meters
        bearing_rad: Bearing in radians, measured from the x axis towards y

    Returns:
        Tuple of (x, y) coordinates in meters
    """
    x = range_m * np.cos(bearing_rad)
    y = range_m * np.sin(bearing_rad)
    return (float(x), float(y))


def velocity_to_cartesian(speed: float, yaw: float) -> Tuple[float, float]:
    """Split a speed magnitude and heading into (vx, vy)."""
    return (float(speed * np.cos(yaw)), float(speed * np.sin(yaw)))
