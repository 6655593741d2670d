from __future__ import annotations
import math
import numpy as np
import cv2

import transform
from params import _pget


def hex_to_bgr(color: str):
    c = color.lstrip("#")
    if len(c) != 6:
        raise ValueError(f"Expected #rrggbb, got {color!r}")
    r, g, b = int(c[0:2], 16), int(c[2:4], 16), int(c[4:6], 16)
    return (b, g, r)


class PointCloudRenderer:
    """Projects the particle buffer through a perspective camera and splats it additively."""

    def __init__(self, width: int = 1280, height: int = 720, params=None):
        self.width = int(width)
        self.height = int(height)
        self.params = params

        self.distance = float(_pget(params, "camera_distance", 8.0))
        self.fov = math.radians(float(_pget(params, "camera_fov_deg", 45.0)))
        self.focal = (self.height * 0.5) / math.tan(self.fov * 0.5)

        # Mouse-drag orbit around the origin; zoom and pan stay fixed
        self.yaw = 0.0
        self.pitch = 0.0
        self._drag = None

    # ---------- orbit ----------
    def view_matrix(self) -> np.ndarray:
        return transform.rotation_x(self.pitch) @ transform.rotation_y(self.yaw)

    def orbit(self, dx_px: float, dy_px: float) -> None:
        # Dragging the window height turns the view a full circle
        self.yaw += 2.0 * math.pi * dx_px / self.height
        limit = math.pi * 0.5
        self.pitch = max(-limit, min(limit, self.pitch + 2.0 * math.pi * dy_px / self.height))

    def reset_orbit(self) -> None:
        self.yaw, self.pitch = 0.0, 0.0
        self._drag = None

    def on_mouse(self, event, x, y, flags, param=None):
        if event == cv2.EVENT_LBUTTONDOWN:
            self._drag = (x, y)
        elif event == cv2.EVENT_MOUSEMOVE and self._drag is not None:
            self.orbit(x - self._drag[0], y - self._drag[1])
            self._drag = (x, y)
        elif event == cv2.EVENT_LBUTTONUP:
            self._drag = None

    def viewport(self):
        """World-unit width/height of the view plane through the origin."""
        h = 2.0 * self.distance * math.tan(self.fov * 0.5)
        return (h * self.width / float(self.height), h)

    def project(self, world_pts: np.ndarray):
        zc = self.distance - world_pts[:, 2]
        front = zc > 1e-3
        zc = np.where(front, zc, 1.0)
        sx = self.width * 0.5 + world_pts[:, 0] * self.focal / zc
        sy = self.height * 0.5 - world_pts[:, 1] * self.focal / zc
        return np.stack([sx, sy], axis=-1), front

    def _splat(self, shape) -> np.ndarray:
        """Per-pixel hit count with each point stamped as a disc."""
        acc = np.zeros((self.height, self.width), dtype=np.float32)
        if shape.count == 0:
            return acc

        world = transform.apply(self.view_matrix() @ shape.world_matrix(), shape.positions)
        px, front = self.project(world)
        ix = np.round(px[:, 0]).astype(np.int64)
        iy = np.round(px[:, 1]).astype(np.int64)
        keep = front & (ix >= 0) & (ix < self.width) & (iy >= 0) & (iy < self.height)
        np.add.at(acc, (iy[keep], ix[keep]), 1.0)

        # Size attenuation measured at the object's depth
        size = float(_pget(self.params, "point_size", 0.15))
        diameter = size * (self.height * 0.5) / self.distance
        r = max(1, int(round(diameter * 0.5)))
        disc = np.zeros((2 * r + 1, 2 * r + 1), dtype=np.float32)
        cv2.circle(disc, (r, r), r, (1.0,), -1)
        return cv2.filter2D(acc, -1, disc, borderType=cv2.BORDER_CONSTANT)

    def render(self, shape, color="#00ffff", background=None):
        if background is None:
            base = np.zeros((self.height, self.width, 3), dtype=np.float32)
        else:
            bg = cv2.resize(background, (self.width, self.height))
            bg = cv2.flip(bg, 1)  # mirror like a selfie view
            base = bg.astype(np.float32) * float(_pget(self.params, "background_opacity", 0.2))

        hits = self._splat(shape)
        opacity = float(_pget(self.params, "opacity", 0.8))
        layer = hits[:, :, None] * (np.asarray(hex_to_bgr(color), dtype=np.float32) * opacity)[None, None, :]

        if _pget(self.params, "glow", True):
            blur = cv2.GaussianBlur(layer, (0, 0), 3)
            layer = layer + blur * 0.4

        # Additive blending
        img = np.clip(base + layer, 0, 255).astype(np.uint8)
        shape.needs_update = False
        return img

    def draw_loading(self, img):
        h, w = img.shape[:2]
        cv2.rectangle(img, (0, 0), (w, h), (0, 0, 0), -1)
        text = "INITIALIZING VISION..."
        (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.9, 2)
        cv2.putText(img, text, ((w - tw) // 2, (h + th) // 2), cv2.FONT_HERSHEY_SIMPLEX, 0.9, (255, 255, 255), 2, cv2.LINE_AA)
        cv2.circle(img, (w // 2, (h - th) // 2 - 40), 20, (245, 130, 60), 2, cv2.LINE_AA)
        return img
