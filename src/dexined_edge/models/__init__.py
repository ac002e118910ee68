from dexined_edge.models.base_processor import INPUT_SIZE, MEAN_BGR, BaseProcessor, make_blob
from dexined_edge.models.dexined_onnx import PROVIDER_CHOICES, DexiNedONNX
from dexined_edge.models.dexined_opencv import DexiNedOpenCV

BACKENDS = ("onnx", "opencv")


def load_detector(model_path, backend="onnx", provider="auto", device_id=0, fused_index=-1):
    """
    Build an edge detector for ``model_path`` on the requested backend.
    Raises ModelLoadError when the model cannot be loaded.
    """
    if backend == "onnx":
        return DexiNedONNX(model_path, provider=provider, device_id=device_id, fused_index=fused_index)
    if backend == "opencv":
        return DexiNedOpenCV(model_path, fused_index=fused_index)
    raise ValueError(f"backend must be one of: {list(BACKENDS)}")


__all__ = [
    "BACKENDS",
    "INPUT_SIZE",
    "MEAN_BGR",
    "PROVIDER_CHOICES",
    "BaseProcessor",
    "DexiNedONNX",
    "DexiNedOpenCV",
    "load_detector",
    "make_blob",
]
