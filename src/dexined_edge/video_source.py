import os

import cv2

from dexined_edge.errors import SourceOpenError


def parse_source(spec):
    """
    Camera index for ints and digit strings, path for everything else.
    ``None`` means the default camera.
    """
    if spec is None:
        return 0
    if isinstance(spec, int):
        return spec
    text = str(spec).strip()
    if text.isdigit():
        return int(text)
    return text


class VideoSource:
    """
    Camera, video file or still image read through cv2.VideoCapture.
    Frames are pulled synchronously, one per read().
    """

    def __init__(self, spec=None):
        self.source = parse_source(spec)
        if isinstance(self.source, str) and not os.path.isfile(self.source):
            raise FileNotFoundError(f"Input file not found: {self.source}")

        self.cap = cv2.VideoCapture(self.source)
        if not self.cap.isOpened():
            self.cap.release()
            raise SourceOpenError(f"Cannot open video source: {self.source}")
        if isinstance(self.source, int):
            # Reduce decoder queueing latency when backend supports it.
            self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

    def read(self):
        ret, frame = self.cap.read()
        if not ret or frame is None or frame.size == 0:
            return False, None
        return True, frame

    def release(self):
        self.cap.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
