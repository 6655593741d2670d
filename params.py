THUMB_TIP = 4
INDEX_TIP = 8
MIDDLE_TIP = 12
RING_TIP = 16
PINKY_TIP = 20

FINGERTIPS = (THUMB_TIP, INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP)

PALETTE = ("#00ffff", "#ff00ff", "#ffff00", "#ff3333", "#33ff33", "#ffffff")


def _pget(p, key, default=None):
    if p is None:
        return default
    if isinstance(p, dict):
        return p.get(key, default)
    return getattr(p, key, default)


class Params:
    """
    All tunable knobs live here so you don't hunt through code.
    """
    def __init__(self, **overrides):
        # Rest shape
        self.shape_radius = 2.5
        self.min_detail = 3
        self.max_detail = 16

        # Hand repulsion (world units)
        self.repulsion_radius = 1.5
        self.repulsion_strength = 8.0   # push speed at distance 0 (units / s)

        # Elastic return: 1 - exp(-rate * dt) per frame.
        # 0.5 recovers ~63% of a displacement in 2 s.
        self.return_rate = 0.5

        # Rotation
        self.rotation_smoothing = 0.1   # per-frame lerp toward the X target
        self.auto_rotate_speed = 0.1    # Y spin (rad / s)

        # Longer frames are clamped, so below 10 fps the return spring and
        # the Y spin run slower than wall-clock time
        self.dt_max = 0.1

        # Camera (viewport is measured on the z=0 plane)
        self.camera_distance = 8.0
        self.camera_fov_deg = 45.0

        # Point material
        self.point_size = 0.15
        self.opacity = 0.8
        self.background_opacity = 0.2
        self.glow = True

        # "numpy" or "taichi"
        self.backend = "numpy"

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown param: {key}")
            setattr(self, key, value)
