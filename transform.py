from __future__ import annotations
import math
import numpy as np


def identity():
    return np.eye(4, dtype=np.float64)


def rotation_x(a: float) -> np.ndarray:
    c, s = math.cos(a), math.sin(a)
    m = identity()
    m[1, 1], m[1, 2] = c, -s
    m[2, 1], m[2, 2] = s, c
    return m


def rotation_y(a: float) -> np.ndarray:
    c, s = math.cos(a), math.sin(a)
    m = identity()
    m[0, 0], m[0, 2] = c, s
    m[2, 0], m[2, 2] = -s, c
    return m


def rotation_z(a: float) -> np.ndarray:
    c, s = math.cos(a), math.sin(a)
    m = identity()
    m[0, 0], m[0, 1] = c, -s
    m[1, 0], m[1, 1] = s, c
    return m


def euler_xyz(x: float, y: float, z: float) -> np.ndarray:
    # Intrinsic X then Y then Z: R = Rx @ Ry @ Rz
    return rotation_x(x) @ rotation_y(y) @ rotation_z(z)


def compose(position=(0.0, 0.0, 0.0), rotation=(0.0, 0.0, 0.0)) -> np.ndarray:
    m = euler_xyz(*rotation)
    m[:3, 3] = np.asarray(position, dtype=np.float64)
    return m


def inverse(m: np.ndarray) -> np.ndarray:
    """Inverse of an affine 4x4 (linear part need not be orthonormal)."""
    lin = np.asarray(m, dtype=np.float64)[:3, :3]
    t = np.asarray(m, dtype=np.float64)[:3, 3]
    inv_lin = np.linalg.inv(lin)
    out = identity()
    out[:3, :3] = inv_lin
    out[:3, 3] = -inv_lin @ t
    return out


def apply(m: np.ndarray, points) -> np.ndarray:
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    return pts @ m[:3, :3].T + m[:3, 3]
