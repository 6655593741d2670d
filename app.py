# app.py - hand-reactive particle shape
import time
import cv2

from controls import ViewParams
from hands import HandTracker, open_camera
from landmarks import LandmarkSnapshot
from params import Params
from physics import ParticleShape
from renderer import PointCloudRenderer

WINDOW_NAME = "Particle Shape Controller"

FRAME_WIDTH = 1280
FRAME_HEIGHT = 720
CAMERA_MAX_INDEX = 6


def make_kernel(params):
    if params.backend == "taichi":
        from physics_ti import TaichiParticleKernel
        print("✅ Particle backend: taichi")
        return TaichiParticleKernel()
    print("✅ Particle backend: numpy")
    return None


def main(params=None):
    params = params or Params()
    view = ViewParams()
    snapshot = LandmarkSnapshot()

    tracker = HandTracker(
        snapshot,
        capture_factory=lambda: open_camera(CAMERA_MAX_INDEX, FRAME_WIDTH, FRAME_HEIGHT),
    )
    tracker.start()

    shape = ParticleShape(params, detail=view.detail, kernel=make_kernel(params))
    renderer = PointCloudRenderer(FRAME_WIDTH, FRAME_HEIGHT, params)

    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    cv2.setMouseCallback(WINDOW_NAME, renderer.on_mouse)

    print("\n" + "=" * 60)
    print("✨ PARTICLE SHAPE CONTROLLER")
    print("=" * 60)
    print("\n📋 CONTROLS:")
    print("   [ / ] - Sides per face (3-16)")
    print("   , / . - Rotation X-Axis")
    print("   1-6   - Color")
    print("   0     - Reset view")
    print("   Drag mouse - Orbit the view")
    print("   ESC   - Exit")
    print("\n🖐  Move your fingertips through the shape to push particles.")
    print("=" * 60 + "\n")

    prev = time.time()
    fps_smooth = 0.0

    try:
        while True:
            now = time.time()
            dt = max(1e-6, now - prev)
            prev = now
            fps = 1.0 / dt
            fps_smooth = fps if fps_smooth == 0 else 0.9 * fps_smooth + 0.1 * fps

            shape.set_detail(view.detail)
            shape.set_rotation_target(view.rotation_x)
            shape.step(dt, snapshot.latest(), renderer.viewport())

            composed = renderer.render(shape, view.color, background=tracker.latest_frame())

            if not tracker.ready.is_set():
                renderer.draw_loading(composed)
            else:
                view.draw_panel(composed)
                fps_text = f"FPS: {fps_smooth:5.1f}"
                cv2.putText(composed, fps_text, (12, 28), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 128), 2, cv2.LINE_AA)

            cv2.imshow(WINDOW_NAME, composed)

            key = cv2.waitKey(1) & 0xFF
            if key == 27:
                break
            if key != 255:
                view.handle_key(key)
                if key == ord("0"):
                    renderer.reset_orbit()
    finally:
        tracker.stop()
        cv2.destroyAllWindows()

    print("\n✅ Particle shape shutdown complete")


if __name__ == "__main__":
    main()
