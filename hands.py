import threading

import cv2

from landmarks import as_hands_list


def open_camera(max_index=6, width=1280, height=720):
    for i in range(max_index):
        cap = cv2.VideoCapture(i)
        if cap.isOpened():
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
            ok, _ = cap.read()
            if ok:
                print(f"✅ Using camera index: {i}")
                return cap
        cap.release()
    raise RuntimeError(f"❌ No working camera found (0–{max_index-1}).")


class Hands:
    """
    MediaPipe hands wrapper.

    process(frame_bgr) returns a tuple of hands; each hand is a tuple of 21
    normalized (x, y, z) landmarks, x/y in [0,1] on the unmirrored frame.
    """

    def __init__(self, max_hands=2, det_conf=0.5, track_conf=0.5):
        import mediapipe as mp

        self.max_hands = max_hands
        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=max_hands,
            model_complexity=1,
            min_detection_confidence=float(det_conf),
            min_tracking_confidence=float(track_conf),
        )

    def process(self, frame_bgr):
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        # Fixes NORM_RECT without IMAGE_DIMENSIONS warning
        self.hands._image_width, self.hands._image_height = frame_bgr.shape[1], frame_bgr.shape[0]  # type: ignore[attr-defined]

        res = self.hands.process(frame_rgb)
        return as_hands_list(res)

    def close(self):
        self.hands.close()


class HandTracker:
    """
    Runs camera capture + hand detection on its own thread.

    Every processed frame overwrites the shared LandmarkSnapshot; the render
    loop never waits on it. If the camera or model cannot be acquired the
    tracker logs, calls on_error and stays not-ready for good.
    """

    def __init__(self, snapshot, capture_factory=None, detector_factory=None,
                 on_ready=None, on_error=None, max_hands=2):
        self.snapshot = snapshot
        self.capture_factory = capture_factory or open_camera
        self.detector_factory = detector_factory or (lambda: Hands(max_hands=max_hands))
        self.on_ready = on_ready
        self.on_error = on_error

        self.ready = threading.Event()
        self.error = None

        self._stop = threading.Event()
        self._thread = None
        self._cap = None
        self._detector = None
        self._frame = None

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._worker, name="hand-tracker", daemon=True)
        self._thread.start()

    def latest_frame(self):
        return self._frame

    def _worker(self):
        try:
            self._run()
        finally:
            self._release()

    def _run(self):
        try:
            self._cap = self.capture_factory()
            self._detector = self.detector_factory()
        except Exception as e:
            print(f"⚠️  Failed to initialize camera or hand tracker: {e}")
            self.error = e
            self._release()
            if self.on_error:
                self.on_error(e)
            return

        # stop() may have given up waiting while we were still acquiring
        if self._stop.is_set():
            return

        self.ready.set()
        print("✅ Hand tracker ready")
        if self.on_ready:
            self.on_ready()

        while not self._stop.is_set():
            ok, frame = self._cap.read()
            if not ok:
                print("⚠️  Camera stopped delivering frames")
                break
            self._frame = frame
            try:
                hands = self._detector.process(frame)
            except Exception as e:
                print(f"⚠️  Hand detection failed on a frame: {e}")
                self.snapshot.clear()
                continue
            self.snapshot.publish(hands)

    def _release(self):
        cap, self._cap = self._cap, None
        detector, self._detector = self._detector, None
        if cap is not None:
            cap.release()
        if detector is not None:
            close = getattr(detector, "close", None)
            if callable(close):
                close()

    def stop(self, timeout=2.0):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        self._release()
        self.snapshot.clear()
