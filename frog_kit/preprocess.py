from __future__ import annotations

import numbers
from typing import Tuple

import numpy as np

from .errors import InvalidInputError


COLOR_ORDERS = ("bgr", "rgb")


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """
    Return (width, height) of an image array, validating its layout.
    """

    if image is None or not hasattr(image, "shape"):
        raise InvalidInputError("image must be a NumPy array.")
    if image.ndim not in (2, 3):
        raise InvalidInputError(f"Expected image shape (H, W) or (H, W, C), got {image.shape}")
    if image.ndim == 3 and image.shape[2] not in (1, 3, 4):
        raise InvalidInputError(f"Unsupported channel count {image.shape[2]} (expected 1, 3 or 4)")

    h, w = int(image.shape[0]), int(image.shape[1])
    if w <= 0 or h <= 0:
        raise InvalidInputError(f"Image dimensions must be positive, got {w}x{h}")
    return w, h


def _to_uint8(image: np.ndarray) -> np.ndarray:
    """
    Bring an image to 8 bits per channel.

    uint8 passes through, uint16 is scaled by 1/257 and floats must already be
    normalized to [0, 1]. Anything else is rejected rather than guessed.
    """

    if image.dtype == np.uint8:
        return image
    if image.dtype == np.uint16:
        return np.round(image.astype(np.float32) / 257.0).astype(np.uint8)
    if image.dtype.kind == "f":
        if not np.all((image >= 0.0) & (image <= 1.0)):
            raise InvalidInputError("Float images must hold values in [0, 1].")
        return np.round(image.astype(np.float32) * 255.0).astype(np.uint8)
    raise InvalidInputError(f"Unsupported image dtype {image.dtype} (expected uint8, uint16 or float in [0, 1])")


def _to_rgb(image: np.ndarray, color_order: str) -> np.ndarray:
    import cv2  # type: ignore

    image = np.ascontiguousarray(_to_uint8(image))

    if image.ndim == 2 or image.shape[2] == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.shape[2] == 4:
        code = cv2.COLOR_BGRA2RGB if color_order == "bgr" else cv2.COLOR_RGBA2RGB
        return cv2.cvtColor(image, code)
    if color_order == "bgr":
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    return image


def preprocess_image(image: np.ndarray, input_size: int = 640, color_order: str = "bgr") -> np.ndarray:
    """
    Stretch an image to `input_size` x `input_size` and flatten it channel-first.

    Aspect ratio is NOT preserved, so non-square photos are distorted before
    inference. `decode()` inverts this with independent X/Y scale factors.

    Args:
        image: (H, W), (H, W, 1), (H, W, 3) or (H, W, 4) array; uint8, uint16,
            or float normalized to [0, 1].
        input_size: model input resolution S.
        color_order: "bgr" (OpenCV) or "rgb" channel order of `image`.

    Returns:
        float32 array of length 3 * S * S: all red values, then green, then blue,
        each scaled to [0, 1].
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for preprocess_image(). Install with `pip install opencv-python`.") from e

    if color_order not in COLOR_ORDERS:
        raise InvalidInputError(f"color_order must be one of {COLOR_ORDERS}, got {color_order!r}")
    if isinstance(input_size, bool) or not isinstance(input_size, numbers.Integral) or input_size <= 0:
        raise InvalidInputError(f"input_size must be a positive integer, got {input_size!r}")
    input_size = int(input_size)

    w, h = image_size(image)
    rgb = _to_rgb(image, color_order)

    if (w, h) != (input_size, input_size):
        rgb = cv2.resize(rgb, (input_size, input_size), interpolation=cv2.INTER_LINEAR)

    # HWC -> CHW, normalize
    chw = np.transpose(rgb.astype(np.float32) / 255.0, (2, 0, 1))
    return np.ascontiguousarray(chw).reshape(-1)


def to_blob(tensor: np.ndarray, input_size: int) -> np.ndarray:
    """
    Reshape a flat (or already batched) preprocessed tensor into NCHW (1, 3, S, S).
    """

    arr = np.asarray(tensor, dtype=np.float32)
    expected = 3 * input_size * input_size
    if arr.size != expected:
        raise InvalidInputError(
            f"Preprocessed tensor has {arr.size} values, expected {expected} for input size {input_size}"
        )
    return np.ascontiguousarray(arr.reshape(1, 3, input_size, input_size))
