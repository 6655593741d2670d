"""
Per-frame particle physics for the hand-reactive shape.

State:
- positions: Nx3 live particle buffer (object local space)
- rest:      Nx3 read-only rest shape, same length

Each step:
- ease rotation X toward the user target, spin Y at a constant rate
- map fingertips from detector space into local space
- push particles away from every fingertip inside the repulsion radius
- pull particles back toward rest with an exponential-decay spring
"""

from __future__ import annotations
import math
import numpy as np

import transform
from params import FINGERTIPS, _pget
from shape import clamp_detail, sample_shape


def interaction_points(hands, viewport, world_to_local=None, tips=FINGERTIPS) -> np.ndarray:
    """
    Fingertips of every hand as an Mx3 array in the object's local frame.

    Detector space is [0,1]x[0,1] with (0,0) top-left on the unmirrored camera
    image, so X is flipped. Depth is flattened onto z=0.
    """
    vw, vh = float(viewport[0]), float(viewport[1])
    pts = []
    for hand in hands or ():
        if hand is None:
            continue
        for idx in tips:
            if idx >= len(hand):
                continue
            lm = hand[idx]
            if lm is None:
                continue
            x = (1.0 - lm[0]) * vw - vw / 2.0
            y = -(lm[1] * vh - vh / 2.0)
            pts.append((x, y, 0.0))

    if not pts:
        return np.zeros((0, 3), dtype=np.float32)

    out = np.asarray(pts, dtype=np.float64)
    if world_to_local is not None:
        out = transform.apply(world_to_local, out)
    out = out.astype(np.float32)
    # Landmarks far outside the frame overflow float32; drop them
    return out[np.isfinite(out).all(axis=1)]


def repulsion_displacement(positions, points, radius, strength, dt) -> np.ndarray:
    """Summed push on each particle; zero outside the radius (boundary excluded)."""
    positions = np.asarray(positions, dtype=np.float32)
    disp = np.zeros_like(positions)
    if len(points) == 0 or len(positions) == 0:
        return disp

    # diff[i, k] = particle i - point k
    diff = positions[:, None, :] - np.asarray(points, dtype=np.float32)[None, :, :]
    d2 = np.einsum("ikc,ikc->ik", diff, diff)
    inside = d2 < radius * radius
    if not np.any(inside):
        return disp

    dist = np.sqrt(d2)
    dirn = np.zeros_like(diff)
    np.divide(diff, dist[:, :, None], out=dirn, where=(inside & (dist > 0.0))[:, :, None])

    falloff = np.where(inside, 1.0 - dist / radius, 0.0).astype(np.float32)
    disp += (dirn * falloff[:, :, None]).sum(axis=1) * np.float32(strength * dt)
    return disp


def relax_toward(positions, rest, rate, dt) -> None:
    """In-place exponential-decay pull toward rest."""
    blend = np.float32(1.0 - math.exp(-rate * dt))
    positions += (rest - positions) * blend


def advance_particles(positions, rest, points, dt, radius, strength, rate) -> None:
    positions += repulsion_displacement(positions, points, radius, strength, dt)
    relax_toward(positions, rest, rate, dt)


class ParticleShape:
    """
    Particle formation with its own rotation and world transform.

    Keeps the API small:
      shape = ParticleShape(params, detail=6)
      shape.set_rotation_target(45)
      shape.step(dt, hands, viewport)
      shape.positions / shape.rest / shape.world_matrix()
    """

    def __init__(self, params=None, detail=6, kernel=None):
        self.params = params
        self.position = np.zeros(3, dtype=np.float64)
        self.rotation = np.zeros(3, dtype=np.float64)  # x, y, z (rad)
        self.target_rotation_x = 0.0
        self.needs_update = False
        self.kernel = kernel or advance_particles

        self.detail = None
        self._buffers = None
        self.set_detail(detail)

    # ---------- buffers ----------
    @property
    def positions(self) -> np.ndarray:
        return self._buffers[0]

    @property
    def rest(self) -> np.ndarray:
        return self._buffers[1]

    @property
    def count(self) -> int:
        return len(self._buffers[0])

    def set_detail(self, detail) -> bool:
        d = clamp_detail(detail, self.params)
        if d == self.detail:
            return False
        # Swap both buffers in one assignment
        self._buffers = sample_shape(d, self.params)
        self.detail = d
        self.needs_update = True
        return True

    def reset(self) -> None:
        positions, rest = self._buffers
        positions[:] = rest
        self.needs_update = True

    # ---------- transform ----------
    def set_rotation_target(self, degrees: float) -> None:
        self.target_rotation_x = math.radians(float(degrees))

    def world_matrix(self) -> np.ndarray:
        return transform.compose(self.position, self.rotation)

    # ---------- step ----------
    def step(self, dt, hands=(), viewport=(1.0, 1.0)) -> None:
        dt = float(dt)
        if dt <= 0.0:
            return
        p = self.params
        dt = min(dt, float(_pget(p, "dt_max", 0.1)))

        # 1) Rotation: X eases toward target, Y spins
        k = float(_pget(p, "rotation_smoothing", 0.1))
        self.rotation[0] += (self.target_rotation_x - self.rotation[0]) * k
        self.rotation[1] += dt * float(_pget(p, "auto_rotate_speed", 0.1))

        # 2-3) Fingertips in local space
        world_to_local = transform.inverse(self.world_matrix())
        points = interaction_points(hands, viewport, world_to_local)

        # 4-6) Repulsion + elastic return
        positions, rest = self._buffers
        self.kernel(
            positions,
            rest,
            points,
            dt,
            float(_pget(p, "repulsion_radius", 1.5)),
            float(_pget(p, "repulsion_strength", 8.0)),
            float(_pget(p, "return_rate", 0.5)),
        )

        # 7) Upload on next render
        self.needs_update = True
