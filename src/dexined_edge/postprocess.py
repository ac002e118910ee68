"""
Turn raw DexiNed outputs into displayable edge maps.

The network returns one logit map per decoder stage, usually shaped
[1, 1, H, W]. Each map goes through sigmoid, min-max scaling to
[0, 255] and a bilinear resize back to the frame size. The fused map
is one selected stage (the last one by default); the averaged map is
the mean of all stages.
"""

from typing import List, NamedTuple, Sequence

import cv2
import numpy as np

from dexined_edge.errors import EmptyOutputError, ShapeMismatchError

# Same threshold OpenCV's NORM_MINMAX uses to treat a range as empty
_RANGE_EPS = np.finfo(np.float64).eps


class EdgeMaps(NamedTuple):
    fused: np.ndarray
    averaged: np.ndarray


def sigmoid(x):
    """Elementwise logistic function, computed in float32 on a copy."""
    x = np.asarray(x, dtype=np.float32)
    # exp(-x) overflows to inf for very negative x, which gives 0
    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-x))


def to_spatial(tensor):
    """
    Drop the batch and channel axes of a [1, 1, H, W] tensor.
    Anything else is taken as an already 2-D map.
    """
    t = np.asarray(tensor)
    if t.ndim == 4 and t.shape[0] == 1 and t.shape[1] == 1:
        t = t.reshape(t.shape[2], t.shape[3])

    if t.ndim != 2:
        raise ShapeMismatchError(
            f"Expected a [1, 1, H, W] or [H, W] tensor, got shape {tuple(np.shape(tensor))}"
        )
    if t.shape[0] == 0 or t.shape[1] == 0:
        raise ShapeMismatchError(
            f"Output tensor has an empty spatial dimension: {tuple(np.shape(tensor))}"
        )
    return t


def normalize_minmax(values):
    """
    Linearly map min -> 0 and max -> 255 and cast to uint8.
    A constant map has no range to stretch and comes back all zero; a
    range within float64 epsilon counts as constant, as in OpenCV NORM_MINMAX.
    """
    values = np.asarray(values, dtype=np.float32)
    lo = float(values.min())
    hi = float(values.max())
    if hi - lo <= _RANGE_EPS:
        return np.zeros(values.shape, dtype=np.uint8)
    return cv2.normalize(values, None, 0, 255, cv2.NORM_MINMAX, cv2.CV_8U)


def resize_map(edge_map, height, width):
    return cv2.resize(edge_map, (width, height), interpolation=cv2.INTER_LINEAR)


def average_maps(maps: Sequence[np.ndarray]) -> np.ndarray:
    """Mean of uint8 maps, truncated back to uint8."""
    acc = np.zeros(maps[0].shape, dtype=np.float32)
    for m in maps:
        acc += m.astype(np.float32)
    acc /= float(len(maps))
    return acc.astype(np.uint8)


def postprocess_outputs(outputs, height: int, width: int, fused_index: int = -1) -> EdgeMaps:
    """
    Convert the network's output tensors into (fused, averaged) edge maps
    of size (height, width).

    ``fused_index`` selects which stage is reported as the fused map and
    follows Python indexing, so the default picks the last output.
    """
    if height <= 0 or width <= 0:
        raise ValueError(f"Target size must be positive, got {width}x{height}")

    outputs = list(outputs)
    if not outputs:
        raise EmptyOutputError("Network returned no output tensors")

    n = len(outputs)
    if not -n <= fused_index < n:
        raise ValueError(f"fused_index {fused_index} out of range for {n} outputs")

    processed: List[np.ndarray] = []
    for tensor in outputs:
        edge = to_spatial(tensor)
        edge = sigmoid(edge)
        edge = normalize_minmax(edge)
        edge = resize_map(edge, height, width)
        processed.append(edge)

    return EdgeMaps(fused=processed[fused_index], averaged=average_maps(processed))
