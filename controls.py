from __future__ import annotations
from dataclasses import dataclass
import math
import cv2

from params import PALETTE
from renderer import hex_to_bgr

DETAIL_MIN, DETAIL_MAX = 3, 16
ROTATION_STEP = 5


def _clamp(x, a, b):
    return a if x < a else b if x > b else x


def _finite(x) -> float:
    v = float(x)
    if not math.isfinite(v):
        raise ValueError(f"Expected a finite number, got {x!r}")
    return v


@dataclass
class ViewParams:
    detail: int = 6
    color_index: int = 0
    rotation_x: int = 45

    @property
    def color(self) -> str:
        return PALETTE[self.color_index]

    def set_detail(self, d):
        self.detail = int(_clamp(int(_finite(d)), DETAIL_MIN, DETAIL_MAX))

    def set_rotation(self, deg):
        self.rotation_x = int(_clamp(int(round(_finite(deg))), 0, 360))

    def set_color(self, color):
        """Palette index or a palette hex string; anything else is rejected."""
        if isinstance(color, bool):
            raise ValueError(f"Not a color: {color}")
        if isinstance(color, int):
            if not 0 <= color < len(PALETTE):
                raise ValueError(f"Color index out of range: {color}")
            self.color_index = color
            return
        c = str(color).lower()
        if c not in PALETTE:
            raise ValueError(f"Color not in palette: {color}")
        self.color_index = PALETTE.index(c)

    def reset(self):
        self.detail, self.color_index, self.rotation_x = 6, 0, 45

    def handle_key(self, key: int) -> bool:
        """
        Keys:
          [ / ]   detail -/+
          , / .   rotation X -/+ 5 deg
          1..6    palette color
          0       reset
        Returns True if the key was used.
        """
        if key is None:
            return False

        if key == ord("["):
            self.set_detail(self.detail - 1)
        elif key == ord("]"):
            self.set_detail(self.detail + 1)
        elif key == ord(","):
            self.set_rotation(self.rotation_x - ROTATION_STEP)
        elif key == ord("."):
            self.set_rotation(self.rotation_x + ROTATION_STEP)
        elif ord("1") <= key <= ord("0") + len(PALETTE):
            self.color_index = key - ord("1")
        elif key == ord("0"):
            self.reset()
        else:
            return False
        return True

    def draw_panel(self, img):
        h, w = img.shape[:2]
        x0, y0 = 16, h - 110
        cv2.rectangle(img, (x0 - 8, y0 - 28), (x0 + 330, h - 12), (40, 40, 40), -1)

        lines = [
            f"Sides per Face: {self.detail}   [ / ]",
            f"Rotation X-Axis: {self.rotation_x} deg   , / .",
        ]
        for i, text in enumerate(lines):
            cv2.putText(img, text, (x0, y0 + i * 26), cv2.FONT_HERSHEY_SIMPLEX, 0.55, (255, 200, 120), 1, cv2.LINE_AA)

        sy = y0 + 2 * 26
        for i, hx in enumerate(PALETTE):
            cx = x0 + 12 + i * 34
            cv2.circle(img, (cx, sy), 11, hex_to_bgr(hx), -1, cv2.LINE_AA)
            if i == self.color_index:
                cv2.circle(img, (cx, sy), 14, (255, 255, 255), 2, cv2.LINE_AA)
        return img
