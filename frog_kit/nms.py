from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np

from .errors import MalformedOutputError
from .types import Box, Candidate, Detection


def iou(a: Box, b: Box) -> float:
    """
    Intersection-over-union of two axis-aligned rectangles. A zero union gives 0.
    """

    inter_w = max(0.0, min(a.right, b.right) - max(a.left, b.left))
    inter_h = max(0.0, min(a.bottom, b.bottom) - max(a.top, b.top))
    inter = inter_w * inter_h

    area_a = max(0.0, a.width) * max(0.0, a.height)
    area_b = max(0.0, b.width) * max(0.0, b.height)
    union = area_a + area_b - inter
    if union <= 0.0:
        return 0.0
    return inter / union


def nms(boxes: np.ndarray, scores: np.ndarray, iou_threshold: float) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of boxes to keep, highest score first.

    Equal scores keep their input order, and a box is dropped only when its IoU
    with a kept box is strictly greater than `iou_threshold`.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = boxes[:, 2]
    y2 = boxes[:, 3]
    areas = np.maximum(0.0, x2 - x1) * np.maximum(0.0, y2 - y1)

    order = np.argsort(-scores, kind="stable")
    keep = []

    while order.size > 0:
        i = order[0]
        keep.append(i)

        rest = order[1:]
        xx1 = np.maximum(x1[i], x1[rest])
        yy1 = np.maximum(y1[i], y1[rest])
        xx2 = np.minimum(x2[i], x2[rest])
        yy2 = np.minimum(y2[i], y2[rest])

        inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
        union = areas[i] + areas[rest] - inter
        overlap = np.divide(inter, union, out=np.zeros_like(inter), where=union > 0)

        order = rest[overlap <= iou_threshold]

    return np.array(keep, dtype=np.int64)


def suppress(
    candidates: Sequence[Candidate],
    labels: Sequence[str],
    iou_threshold: float = 0.45,
    max_detections: Optional[int] = None,
) -> List[Detection]:
    """
    Per-class greedy NMS over decoded candidates.

    Classes never suppress each other. Output is grouped by ascending class
    index, each group in kept (descending score) order. With `max_detections`
    set, only the highest-scoring detections across all classes are returned.
    """

    by_class: Dict[int, List[int]] = {}
    for i, cand in enumerate(candidates):
        if not 0 <= cand.class_index < len(labels):
            raise MalformedOutputError(
                f"Class index {cand.class_index} is outside the label table ({len(labels)} labels)"
            )
        by_class.setdefault(cand.class_index, []).append(i)

    kept: List[Detection] = []
    for cls in sorted(by_class):
        members = [candidates[i] for i in by_class[cls]]
        boxes = np.array([[c.left, c.top, c.right, c.bottom] for c in members], dtype=np.float64)
        scores = np.array([c.score for c in members], dtype=np.float64)

        for j in nms(boxes, scores, iou_threshold):
            c = members[int(j)]
            kept.append(
                Detection(
                    label=labels[cls],
                    score=c.score,
                    box=c.box,
                    class_index=cls,
                )
            )

    if max_detections is not None and len(kept) > max_detections:
        top = sorted(range(len(kept)), key=lambda k: -kept[k].score)[:max_detections]
        kept = [kept[k] for k in top]

    return kept
