from __future__ import annotations

from typing import List

import numpy as np

from .errors import InvalidInputError, MalformedOutputError
from .types import Candidate, ChannelMatrix


# Boxes this size or smaller (in original-image pixels) are dropped.
MIN_BOX_SIZE = 1.0


def decode(
    matrix: ChannelMatrix,
    orig_width: int,
    orig_height: int,
    input_size: int = 640,
    conf_threshold: float = 0.25,
) -> List[Candidate]:
    """
    Decode a `(4 + C, N)` channel matrix into candidates in original-image pixels.

    Layout per candidate column i:
        rows 0..3: cx, cy, w, h in model-input space [0, input_size]
        rows 4.. : one score per class; no objectness row, the best class
                   score is the detection confidence.

    Candidates are returned in ascending column order. The confidence threshold
    is inclusive and compared in float32, the precision the model emits.
    """

    if orig_width <= 0 or orig_height <= 0:
        raise InvalidInputError(f"Original image size must be positive, got {orig_width}x{orig_height}")
    if input_size <= 0:
        raise InvalidInputError(f"input_size must be positive, got {input_size}")
    if matrix.num_channels < 5:
        raise MalformedOutputError(f"Need 4 box channels and at least one class, got {matrix.num_channels} channels")
    if matrix.num_candidates == 0:
        return []

    p = matrix.data
    class_scores = p[4:, :]  # (C, N)

    # argmax returns the first maximum, so ties go to the lower class index.
    class_ids = np.argmax(class_scores, axis=0)
    scores = class_scores[class_ids, np.arange(class_scores.shape[1])]

    keep = scores >= np.float32(conf_threshold)
    if not np.any(keep):
        return []

    idx = np.nonzero(keep)[0]
    cx, cy, w_box, h_box = (p[0:4, idx]).astype(np.float64)
    class_ids = class_ids[idx]
    scores = scores[idx]

    # cxcywh -> xyxy (input space)
    left = cx - w_box / 2
    top = cy - h_box / 2
    right = left + w_box
    bottom = top + h_box

    # Undo the non-aspect-preserving stretch, one factor per axis.
    scale_x = orig_width / float(input_size)
    scale_y = orig_height / float(input_size)
    left = np.clip(left * scale_x, 0, orig_width)
    right = np.clip(right * scale_x, 0, orig_width)
    top = np.clip(top * scale_y, 0, orig_height)
    bottom = np.clip(bottom * scale_y, 0, orig_height)

    valid = ((right - left) > MIN_BOX_SIZE) & ((bottom - top) > MIN_BOX_SIZE)

    return [
        Candidate(
            class_index=int(cls_id),
            score=float(score),
            left=float(x1),
            top=float(y1),
            right=float(x2),
            bottom=float(y2),
        )
        for cls_id, score, x1, y1, x2, y2, ok in zip(class_ids, scores, left, top, right, bottom, valid)
        if ok
    ]
