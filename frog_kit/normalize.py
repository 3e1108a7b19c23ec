"""
Canonicalize raw runtime outputs into a `ChannelMatrix`.

ONNX Runtime returns `(1, C, N)` NumPy arrays, TorchScript returns tensors,
and other bindings hand back nested lists or a list of per-channel arrays.
This module is the only place that absorbs that variance: everything after it
indexes a read-only `(C, N)` float32 array.
"""

from __future__ import annotations

import numbers
from typing import Any, List, Sequence

import numpy as np

from .errors import MalformedOutputError
from .types import ChannelMatrix


def _is_sequence(obj: Any) -> bool:
    return isinstance(obj, (list, tuple, np.ndarray))


def _to_numpy_if_tensor(raw: Any) -> Any:
    # torch.Tensor and friends
    if hasattr(raw, "detach") and hasattr(raw, "cpu"):
        return raw.detach().cpu().numpy()
    return raw


def _strip_batch(raw: Any) -> Any:
    if isinstance(raw, np.ndarray):
        if raw.ndim == 3:
            if raw.shape[0] != 1:
                raise MalformedOutputError(f"Batch > 1 is not supported (got shape {raw.shape}).")
            return raw[0]
        return raw

    # [[ch0, ch1, ...]] -> [ch0, ch1, ...]
    if _is_sequence(raw) and len(raw) == 1 and _is_sequence(raw[0]) and len(raw[0]) > 0:
        if all(_is_sequence(ch) for ch in raw[0]):
            return raw[0]
    return raw


def _channel_to_floats(channel: Any, index: int) -> np.ndarray:
    channel = _to_numpy_if_tensor(channel)
    if isinstance(channel, (str, bytes)) or not _is_sequence(channel):
        raise MalformedOutputError(f"Channel {index} is not a sequence (got {type(channel).__name__}).")

    try:
        arr = np.asarray(channel)
    except ValueError as exc:
        raise MalformedOutputError(f"Channel {index} is ragged.") from exc

    if arr.dtype == object or arr.dtype.kind not in "biuf":
        if not all(isinstance(v, numbers.Real) for v in np.ravel(arr)):
            raise MalformedOutputError(f"Channel {index} contains non-numeric values.")
    if arr.dtype.kind == "b":
        raise MalformedOutputError(f"Channel {index} contains booleans, not scores.")

    # Accept (N, 1) / (1, N) columns, reject real 2-D blocks.
    if arr.ndim != 1:
        squeezed = np.squeeze(arr)
        if squeezed.ndim > 1 or (squeezed.ndim == 0 and arr.size != 1):
            raise MalformedOutputError(f"Channel {index} has shape {arr.shape}, expected a flat sequence.")
        arr = np.atleast_1d(squeezed)

    return arr.astype(np.float32)


def normalize_output(raw: Any, expected_channels: int) -> ChannelMatrix:
    """
    Validate and convert a raw model output into a `(C, N)` ChannelMatrix.

    Args:
        raw: runtime output for a single image, with or without a batch axis of 1.
        expected_channels: 4 geometry channels + one score per class.

    Raises:
        MalformedOutputError: wrong channel count, ragged channels, batch > 1,
            or non-numeric content. No partial result is returned.
    """

    raw = _to_numpy_if_tensor(raw)
    if raw is None or isinstance(raw, (str, bytes)) or not _is_sequence(raw):
        raise MalformedOutputError(f"Unexpected model output type: {type(raw).__name__}")

    body = _strip_batch(raw)

    # A 1-D object array holds one array per channel, like a list does.
    per_channel_array = isinstance(body, np.ndarray) and body.dtype == object and body.ndim == 1
    if isinstance(body, np.ndarray) and body.ndim != 2 and not per_channel_array:
        raise MalformedOutputError(f"Expected a (channels, candidates) output, got shape {body.shape}")

    num_channels = len(body)
    if num_channels != expected_channels:
        raise MalformedOutputError(f"Expected {expected_channels} channels, got {num_channels}")

    if isinstance(body, np.ndarray) and body.dtype.kind in "iuf":
        data = body.astype(np.float32)
    else:
        channels: List[np.ndarray] = [_channel_to_floats(ch, i) for i, ch in enumerate(body)]
        lengths = {ch.shape[0] for ch in channels}
        if len(lengths) > 1:
            raise MalformedOutputError(f"Channels have differing lengths: {sorted(lengths)}")
        data = np.stack(channels, axis=0) if channels else np.empty((0, 0), dtype=np.float32)

    data = np.ascontiguousarray(data, dtype=np.float32)
    data.setflags(write=False)
    return ChannelMatrix(data=data)


def expected_channels_for(labels: Sequence[str]) -> int:
    return 4 + len(labels)
