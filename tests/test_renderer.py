import math

import numpy as np
import pytest

from params import Params
from physics import ParticleShape
from renderer import PointCloudRenderer, hex_to_bgr


def test_hex_to_bgr():
    assert hex_to_bgr("#00ffff") == (255, 255, 0)
    assert hex_to_bgr("ff3333") == (51, 51, 255)
    with pytest.raises(ValueError):
        hex_to_bgr("#fff")


def test_viewport_at_origin_plane():
    r = PointCloudRenderer(1280, 720, Params())
    w, h = r.viewport()

    assert h == pytest.approx(2 * 8.0 * math.tan(math.radians(22.5)))
    assert w == pytest.approx(h * 1280 / 720)


def test_origin_projects_to_center():
    r = PointCloudRenderer(320, 180, Params())
    px, front = r.project(np.zeros((1, 3)))
    np.testing.assert_allclose(px, [[160.0, 90.0]])
    assert front.all()


def test_render_draws_colored_cloud():
    params = Params(glow=False)
    r = PointCloudRenderer(320, 180, params)
    shape = ParticleShape(params, detail=6)
    shape.step(1.0 / 60.0)
    assert shape.needs_update

    img = r.render(shape, "#00ffff")

    assert img.shape == (180, 320, 3)
    assert img.dtype == np.uint8
    assert img[:, :, 0].max() > 0 and img[:, :, 1].max() > 0
    assert img[:, :, 2].max() == 0          # cyan has no red
    assert not shape.needs_update


def test_background_is_dimmed():
    params = Params()
    r = PointCloudRenderer(320, 180, params)
    shape = ParticleShape(params, detail=3)
    bg = np.full((90, 160, 3), 100, dtype=np.uint8)

    img = r.render(shape, "#ffffff", background=bg)

    assert img.shape == (180, 320, 3)
    np.testing.assert_array_equal(img[0, 0], [20, 20, 20])
    assert img.max() > 20


def test_loading_screen():
    r = PointCloudRenderer(320, 180, Params())
    img = np.full((180, 320, 3), 50, dtype=np.uint8)
    r.draw_loading(img)
    assert img[0, 0].tolist() == [0, 0, 0]
    assert img.max() == 255


def test_mouse_drag_orbits_view():
    import cv2

    r = PointCloudRenderer(320, 180, Params())
    np.testing.assert_allclose(r.view_matrix(), np.eye(4))

    r.on_mouse(cv2.EVENT_MOUSEMOVE, 10, 10, 0)          # no button held
    assert r.yaw == 0.0

    r.on_mouse(cv2.EVENT_LBUTTONDOWN, 100, 50, 0)
    r.on_mouse(cv2.EVENT_MOUSEMOVE, 145, 50, 0)          # a quarter of the height
    r.on_mouse(cv2.EVENT_LBUTTONUP, 145, 50, 0)
    assert r.yaw == pytest.approx(math.pi / 2)

    r.on_mouse(cv2.EVENT_MOUSEMOVE, 300, 50, 0)          # released, ignored
    assert r.yaw == pytest.approx(math.pi / 2)

    r.orbit(0, 10_000)
    assert r.pitch == pytest.approx(math.pi / 2)

    r.reset_orbit()
    np.testing.assert_allclose(r.view_matrix(), np.eye(4))


def test_orbit_changes_rendered_image_not_physics():
    params = Params(glow=False)
    r = PointCloudRenderer(320, 180, params)
    shape = ParticleShape(params, detail=6)
    shape.set_rotation_target(45)
    shape.step(1.0 / 60.0)
    before = shape.positions.copy()

    still = r.render(shape, "#ffffff")
    r.orbit(0, 40)
    turned = r.render(shape, "#ffffff")

    assert not np.array_equal(still, turned)
    np.testing.assert_array_equal(shape.positions, before)
