from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .preprocess import COLOR_ORDERS


@dataclass(frozen=True)
class PipelineConfig:
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    input_size: int = 640
    max_detections: Optional[int] = None
    color_order: str = "bgr"

    def __post_init__(self) -> None:
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be within [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be within [0, 1]")
        if self.input_size < 32:
            raise ValueError("input_size must be >= 32")
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError("max_detections must be >= 1 if provided")
        if self.color_order not in COLOR_ORDERS:
            raise ValueError(f"color_order must be one of {COLOR_ORDERS}")


def _optional_number(payload: Dict[str, Any], key: str, default: float) -> float:
    if key not in payload:
        return default
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _optional_int(payload: Dict[str, Any], key: str, default: Optional[int]) -> Optional[int]:
    if key not in payload or payload[key] is None:
        return default
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def load_pipeline_config(path: Path) -> PipelineConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Pipeline config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid pipeline config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Pipeline config must be a JSON object")

    allowed = {
        "conf_threshold",
        "iou_threshold",
        "input_size",
        "max_detections",
        "color_order",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown pipeline config keys: {unknown}")

    defaults = PipelineConfig()
    color_order = payload.get("color_order", defaults.color_order)
    if not isinstance(color_order, str):
        raise ValueError("color_order must be a string")

    return PipelineConfig(
        conf_threshold=_optional_number(payload, "conf_threshold", defaults.conf_threshold),
        iou_threshold=_optional_number(payload, "iou_threshold", defaults.iou_threshold),
        input_size=_optional_int(payload, "input_size", defaults.input_size),
        max_detections=_optional_int(payload, "max_detections", defaults.max_detections),
        color_order=color_order.strip().lower(),
    )
