from __future__ import annotations
import itertools
import math

LANDMARK_COUNT = 21


def _as_landmark(lm):
    """(x, y, z) floats, or None if the entry is unusable."""
    if lm is None:
        return None
    if isinstance(lm, dict):
        x, y, z = lm.get("x"), lm.get("y"), lm.get("z", 0.0)
    elif isinstance(lm, (list, tuple)):
        if len(lm) < 2:
            return None
        x, y = lm[0], lm[1]
        z = lm[2] if len(lm) > 2 else 0.0
    else:
        x, y, z = getattr(lm, "x", None), getattr(lm, "y", None), getattr(lm, "z", 0.0)

    try:
        x, y, z = float(x), float(y), float(z if z is not None else 0.0)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
        return None
    return (x, y, z)


def _as_hand(hand):
    if hand is None:
        return None
    if isinstance(hand, dict):
        hand = hand.get("landmarks", hand.get("landmark"))
    else:
        # MediaPipe NormalizedLandmarkList
        hand = getattr(hand, "landmark", hand)
    if hand is None or isinstance(hand, (str, bytes)):
        return None
    try:
        return tuple(_as_landmark(lm) for lm in hand)
    except TypeError:
        return None


def as_hands_list(result):
    """
    Normalize detector output into an immutable tuple of hands.

    Accepts {"hands": [...]}, a MediaPipe result (multi_hand_landmarks),
    or a plain list. Each hand is a tuple of (x, y, z) or None per landmark.
    """
    if result is None:
        return ()
    if isinstance(result, dict):
        result = result.get("hands")
    elif hasattr(result, "multi_hand_landmarks"):
        result = result.multi_hand_landmarks
    if not isinstance(result, (list, tuple)):
        return ()

    hands = []
    for hand in result:
        lms = _as_hand(hand)
        if lms is not None:
            hands.append(lms)
    return tuple(hands)


class LandmarkSnapshot:
    """
    Latest-wins handoff between the detector and the render loop.

    The writer swaps in a new immutable tuple; the reader picks up whatever is
    there. No queue, no waiting.
    """

    def __init__(self):
        self._hands = ()
        self._version = 0
        self._counter = itertools.count(1)

    def publish(self, result) -> int:
        hands = as_hands_list(result)
        version = next(self._counter)
        self._hands = hands
        self._version = version
        return version

    def clear(self) -> None:
        self.publish(())

    def latest(self):
        return self._hands

    @property
    def version(self) -> int:
        return self._version
