"""
Rest-shape sampling.

The particle formation is the vertex set of a UV sphere whose width and height
segment counts both equal the detail parameter. Low detail gives a coarse
polygonal cloud, high detail an almost round one. Seam and pole vertices are
kept duplicated so every particle maps 1:1 to a tessellation vertex.
"""

from __future__ import annotations
import math
import numpy as np

from params import _pget


def clamp_detail(detail, params=None) -> int:
    lo = int(_pget(params, "min_detail", 3))
    hi = int(_pget(params, "max_detail", 16))
    return max(lo, min(hi, int(detail)))


def sphere_vertices(detail: int, radius: float = 2.5) -> np.ndarray:
    """(detail+1)^2 x 3 float32, rows from the +Y pole down to -Y."""
    seg = int(detail)
    u = np.arange(seg + 1, dtype=np.float64) / seg
    v = np.arange(seg + 1, dtype=np.float64) / seg

    phi = u * 2.0 * math.pi      # around Y
    theta = v * math.pi          # from +Y to -Y

    sin_t = np.sin(theta)[:, None]
    x = -radius * np.cos(phi)[None, :] * sin_t
    y = radius * np.cos(theta)[:, None] * np.ones_like(phi)[None, :]
    z = radius * np.sin(phi)[None, :] * sin_t

    verts = np.stack([x, y, z], axis=-1).reshape(-1, 3)
    return verts.astype(np.float32)


def sample_shape(detail, params=None):
    """
    Build (positions, rest) for a detail value.

    rest is read-only; positions is a writable copy the physics mutates.
    """
    d = clamp_detail(detail, params)
    rest = sphere_vertices(d, float(_pget(params, "shape_radius", 2.5)))
    rest.setflags(write=False)
    positions = rest.copy()
    return positions, rest
