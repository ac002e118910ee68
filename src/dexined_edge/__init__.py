from dexined_edge.errors import (
    DexiNedError,
    EmptyOutputError,
    ModelLoadError,
    PostprocessError,
    ShapeMismatchError,
    SourceOpenError,
)
from dexined_edge.postprocess import EdgeMaps, postprocess_outputs, sigmoid

__version__ = "0.1.0"

__all__ = [
    "DexiNedError",
    "EdgeMaps",
    "EmptyOutputError",
    "ModelLoadError",
    "PostprocessError",
    "ShapeMismatchError",
    "SourceOpenError",
    "postprocess_outputs",
    "sigmoid",
]
