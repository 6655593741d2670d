# physics_ti.py
# Taichi version of the per-particle loop (repulsion + elastic return).
# Same contract as physics.advance_particles: updates positions in place.
# pyright: reportInvalidTypeForm=false

import math
import numpy as np
import taichi as ti

_TAICHI_READY = False


def ensure_ti():
    global _TAICHI_READY
    if _TAICHI_READY:
        return
    try:
        ti.init(arch=ti.cuda, device_memory_fraction=0.3)
        print("✅ Taichi CUDA (particles)")
    except Exception:
        ti.init(arch=ti.cpu)
        print("⚠️ Taichi CPU fallback (particles)")
    _TAICHI_READY = True


@ti.kernel
def _advance(
    pos: ti.types.ndarray(dtype=ti.f32, ndim=2),
    rest: ti.types.ndarray(dtype=ti.f32, ndim=2),
    pts: ti.types.ndarray(dtype=ti.f32, ndim=2),
    n_pts: ti.i32,
    dt: ti.f32,
    radius: ti.f32,
    strength: ti.f32,
    blend: ti.f32,
):
    r2 = radius * radius
    for i in range(pos.shape[0]):
        p = ti.Vector([pos[i, 0], pos[i, 1], pos[i, 2]])
        push = ti.Vector([0.0, 0.0, 0.0])

        for k in range(n_pts):
            d = p - ti.Vector([pts[k, 0], pts[k, 1], pts[k, 2]])
            d2 = d.dot(d)
            if d2 < r2:
                dist = ti.sqrt(d2)
                dirn = ti.Vector([0.0, 0.0, 0.0])
                if dist > 0.0:
                    dirn = d / dist
                push += dirn * (strength * (1.0 - dist / radius) * dt)

        p += push

        o = ti.Vector([rest[i, 0], rest[i, 1], rest[i, 2]])
        p += (o - p) * blend

        for c in ti.static(range(3)):
            pos[i, c] = p[c]


class TaichiParticleKernel:
    """Callable drop-in for physics.advance_particles."""

    def __init__(self):
        ensure_ti()
        # Never hand Taichi a zero-length ndarray
        self._no_points = np.zeros((1, 3), dtype=np.float32)
        self._rest_src = None
        self._rest_buf = None

    def __call__(self, positions, rest, points, dt, radius, strength, rate):
        if len(positions) == 0:
            return
        n_pts = len(points)
        pts = np.ascontiguousarray(points, dtype=np.float32) if n_pts else self._no_points
        # Taichi wants a writable contiguous rest; copy once per detail change
        if rest is not self._rest_src:
            self._rest_buf = np.array(rest, dtype=np.float32, order="C", copy=True)
            self._rest_src = rest
        rest_buf = self._rest_buf
        blend = 1.0 - math.exp(-rate * dt)
        _advance(positions, rest_buf, pts, n_pts, dt, radius, strength, blend)
