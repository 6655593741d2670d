import math

import numpy as np

import transform


def test_rotation_y_quarter_turn():
    out = transform.apply(transform.rotation_y(math.pi / 2), [[1.0, 0.0, 0.0]])
    np.testing.assert_allclose(out, [[0.0, 0.0, -1.0]], atol=1e-12)


def test_rotation_x_quarter_turn():
    out = transform.apply(transform.rotation_x(math.pi / 2), [[0.0, 1.0, 0.0]])
    np.testing.assert_allclose(out, [[0.0, 0.0, 1.0]], atol=1e-12)


def test_euler_order_is_x_then_y_then_z():
    x, y, z = 0.3, -1.1, 0.7
    expected = transform.rotation_x(x) @ transform.rotation_y(y) @ transform.rotation_z(z)
    np.testing.assert_allclose(transform.euler_xyz(x, y, z), expected)


def test_inverse_undoes_compose():
    m = transform.compose((1.0, -2.0, 0.5), (0.4, 1.3, -0.2))
    np.testing.assert_allclose(transform.inverse(m) @ m, np.eye(4), atol=1e-12)

    pts = np.array([[0.1, 0.2, 0.3], [-4.0, 5.0, 6.0]])
    back = transform.apply(transform.inverse(m), transform.apply(m, pts))
    np.testing.assert_allclose(back, pts, atol=1e-12)


def test_inverse_handles_scale():
    m = np.diag([2.0, 4.0, 0.5, 1.0])
    m[:3, 3] = (1.0, 1.0, 1.0)
    np.testing.assert_allclose(transform.inverse(m) @ m, np.eye(4), atol=1e-12)
