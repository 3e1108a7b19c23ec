from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

import numpy as np


@dataclass(frozen=True)
class Box:
    """
    Axis-aligned rectangle in pixel coordinates (corner form).
    """

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.left, self.top, self.right, self.bottom


@dataclass(frozen=True)
class Candidate:
    """
    One decoded detection before suppression, in original-image pixels.
    """

    class_index: int
    score: float
    left: float
    top: float
    right: float
    bottom: float

    @property
    def box(self) -> Box:
        return Box(self.left, self.top, self.right, self.bottom)


@dataclass(frozen=True)
class Detection:
    """
    Final, labeled detection handed to rendering and persistence collaborators.
    """

    label: str
    score: float
    box: Box
    class_index: int

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.box.as_xyxy()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "score": self.score,
            "box": {
                "left": self.box.left,
                "top": self.box.top,
                "right": self.box.right,
                "bottom": self.box.bottom,
            },
        }


@dataclass(frozen=True)
class ChannelMatrix:
    """
    Canonical `[channel, candidate]` float32 layout of one model output.

    Row 0..3 hold cx, cy, w, h in model-input space; every following row is
    one class score. The backing array is read-only.
    """

    data: np.ndarray

    @property
    def num_channels(self) -> int:
        return int(self.data.shape[0])

    @property
    def num_candidates(self) -> int:
        return int(self.data.shape[1])

    @property
    def num_classes(self) -> int:
        return self.num_channels - 4

    def __getitem__(self, channel: int) -> np.ndarray:
        return self.data[channel]
