"""Pytest configuration and shared fixtures for dexined_edge tests."""

import numpy as np
import pytest

from dexined_edge.models.base_processor import BaseProcessor


class FakeSource:
    """Yields the given frames, then end of stream."""

    def __init__(self, frames):
        self.frames = list(frames)
        self.reads = 0
        self.released = False

    def read(self):
        self.reads += 1
        if not self.frames:
            return False, None
        return True, self.frames.pop(0)

    def release(self):
        self.released = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


class FakeDisplay:
    """Records shown images; returns scripted key codes from poll_key."""

    def __init__(self, keys=()):
        self.keys = list(keys)
        self.shown = []
        self.waited = False
        self.closed = False

    def show(self, name, image):
        self.shown.append((name, image))

    def poll_key(self, timeout_ms=1):
        return self.keys.pop(0) if self.keys else None

    def wait_any_key(self):
        self.waited = True

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class StubDetector(BaseProcessor):
    """BaseProcessor whose infer() returns canned network outputs."""

    def __init__(self, outputs_fn=None, fused_index=-1):
        super().__init__(input_size=(32, 32), fused_index=fused_index)
        self.outputs_fn = outputs_fn or _default_outputs
        self.output_names = ["out"]
        self.calls = 0

    def infer(self, tensor):
        self.calls += 1
        return self.outputs_fn(self.calls)


def _default_outputs(call):
    ramp = np.linspace(-4.0, 4.0, 16 * 16, dtype=np.float32).reshape(1, 1, 16, 16)
    return [ramp, -ramp]


def make_frame(h=24, w=40, value=128):
    return np.full((h, w, 3), value, dtype=np.uint8)


@pytest.fixture
def frame():
    return make_frame()


@pytest.fixture
def fake_source():
    return FakeSource([make_frame() for _ in range(3)])


@pytest.fixture
def fake_display():
    return FakeDisplay()


@pytest.fixture
def stub_detector():
    return StubDetector()


@pytest.fixture(scope="session")
def tiny_onnx_model(tmp_path_factory):
    """
    Three-output conv net exported with torch.onnx, shaped like DexiNed's
    [1, 1, H, W] side outputs.
    """
    torch = pytest.importorskip("torch")
    pytest.importorskip("onnx")
    nn = torch.nn

    class TinyEdgeNet(nn.Module):
        def __init__(self):
            super().__init__()
            self.side1 = nn.Conv2d(3, 1, 3, padding=1)
            self.side2 = nn.Conv2d(3, 1, 3, stride=2, padding=1)
            self.fuse = nn.Conv2d(3, 1, 1)

        def forward(self, x):
            return self.side1(x), self.side2(x), self.fuse(x)

    torch.manual_seed(0)
    model = TinyEdgeNet().eval()
    path = tmp_path_factory.mktemp("models") / "tiny_edge.onnx"
    dummy = torch.randn(1, 3, 512, 512)
    torch.onnx.export(
        model,
        (dummy,),
        str(path),
        input_names=["input"],
        output_names=["side1", "side2", "fused"],
        opset_version=17,
        dynamo=False,
    )
    return str(path)
