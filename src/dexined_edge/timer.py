import time
from collections import deque

STAGES = ("decode", "infer", "pre", "run", "post", "render")


class FPSTimer:
    def __init__(self):
        self.last = time.time()
        self.frames = 0
        self.fps = 0.0

    def update(self):
        self.frames += 1
        now = time.time()
        if now - self.last >= 1.0:
            self.fps = self.frames / (now - self.last)
            self.frames = 0
            self.last = now
        return self.fps


class StageTimer:
    """
    Per-stage millisecond totals for the capture loop.

    The first ``warmup`` frames are ignored. ``report()`` formats the
    running averages as a single ``[timing]`` line, which
    ``dexined_edge.benchmark`` parses back.
    """

    def __init__(self, warmup=30, stage_timing=False):
        self.warmup = max(0, int(warmup))
        self.stage_timing = stage_timing
        self.seen = 0
        self.frames = 0
        self.totals = dict.fromkeys(STAGES, 0.0)
        self.frame_ms_sum = 0.0
        self.fps_samples = deque(maxlen=10000)

    def add(self, frame_ms, **stage_ms):
        """Record one frame. Returns False while still warming up."""
        self.seen += 1
        if self.seen <= self.warmup:
            return False

        self.frames += 1
        for name, ms in stage_ms.items():
            if name not in self.totals:
                raise KeyError(f"Unknown timing stage: {name}")
            self.totals[name] += ms
        self.frame_ms_sum += frame_ms
        if frame_ms > 0:
            self.fps_samples.append(1000.0 / frame_ms)
        return True

    def average_fps(self):
        if self.frames == 0:
            return 0.0
        avg_frame_ms = self.frame_ms_sum / self.frames
        return 1000.0 / avg_frame_ms if avg_frame_ms > 0 else 0.0

    def one_percent_low(self):
        if not self.fps_samples:
            return 0.0
        sorted_fps = sorted(self.fps_samples)
        k = max(1, int(len(sorted_fps) * 0.01))
        return sum(sorted_fps[:k]) / k

    def report(self):
        n = max(1, self.frames)
        names = STAGES if self.stage_timing else ("decode", "infer", "render")
        parts = [f"[timing] frames={self.frames}"]
        parts.extend(f"{name}={self.totals[name] / n:.2f}ms" for name in names)
        parts.append(f"fps={self.average_fps():.2f}")
        parts.append(f"fps_1p_low={self.one_percent_low():.2f}")
        return " ".join(parts)
