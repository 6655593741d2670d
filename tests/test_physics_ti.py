import numpy as np
import pytest

pytest.importorskip("taichi")

from params import Params
from physics import ParticleShape, advance_particles
from physics_ti import TaichiParticleKernel
from shape import sample_shape


@pytest.fixture(scope="module")
def kernel():
    return TaichiParticleKernel()


def test_matches_numpy_path(kernel):
    rng = np.random.default_rng(3)
    _, rest = sample_shape(10)
    a = (rest + rng.normal(scale=0.3, size=rest.shape)).astype(np.float32)
    b = a.copy()
    pts = rng.uniform(-2.5, 2.5, size=(6, 3)).astype(np.float32)
    pts[0] = a[5]        # degenerate: point sitting on a particle

    advance_particles(a, rest, pts, 1.0 / 60.0, 1.5, 8.0, 0.5)
    kernel(b, rest, pts, 1.0 / 60.0, 1.5, 8.0, 0.5)

    assert np.all(np.isfinite(b))
    np.testing.assert_allclose(b, a, atol=1e-5)


def test_no_points_is_pure_relax(kernel):
    _, rest = sample_shape(5)
    a = rest * 1.5
    b = a.copy()

    advance_particles(a, rest, np.zeros((0, 3), dtype=np.float32), 0.05, 1.5, 8.0, 0.5)
    kernel(b, rest, np.zeros((0, 3), dtype=np.float32), 0.05, 1.5, 8.0, 0.5)

    np.testing.assert_allclose(b, a, atol=1e-6)


def test_particle_shape_runs_on_taichi(kernel):
    shape = ParticleShape(Params(backend="taichi"), detail=6, kernel=kernel)
    ref = ParticleShape(Params(), detail=6)
    hand = [(0.4, 0.5, 0.0)] * 21

    for _ in range(30):
        shape.step(1.0 / 60.0, [hand], (11.78, 6.63))
        ref.step(1.0 / 60.0, [hand], (11.78, 6.63))

    np.testing.assert_allclose(shape.positions, ref.positions, atol=1e-4)


def test_rest_copied_once_per_shape(kernel):
    _, rest = sample_shape(6)
    a = rest * 1.2
    b = a.copy()

    kernel(b, rest, np.zeros((0, 3), dtype=np.float32), 0.05, 1.5, 8.0, 0.5)
    buf = kernel._rest_buf
    kernel(b, rest, np.zeros((0, 3), dtype=np.float32), 0.05, 1.5, 8.0, 0.5)
    assert kernel._rest_buf is buf

    advance_particles(a, rest, np.zeros((0, 3), dtype=np.float32), 0.05, 1.5, 8.0, 0.5)
    advance_particles(a, rest, np.zeros((0, 3), dtype=np.float32), 0.05, 1.5, 8.0, 0.5)
    np.testing.assert_allclose(b, a, atol=1e-6)

    _, other = sample_shape(8)
    c = other * 1.2
    kernel(c, other, np.zeros((0, 3), dtype=np.float32), 0.05, 1.5, 8.0, 0.5)
    assert kernel._rest_buf is not buf
    assert len(kernel._rest_buf) == len(other)
