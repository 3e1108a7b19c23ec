"""
Detection post-processing for the frog detector.

Turns a photo into labeled, de-duplicated boxes in original-image pixels:
stretch-resize preprocessing, a lock-guarded inference session, output
canonicalization, YOLO-style decoding and per-class NMS. Core pieces depend
only on NumPy; OpenCV is needed for preprocessing and onnxruntime/torch only
for their respective sessions.
"""

from .errors import FrogKitError, InferenceError, InvalidInputError, MalformedOutputError
from .types import Box, Candidate, ChannelMatrix, Detection
from .labels import FROG_LABELS, load_labels
from .preprocess import preprocess_image, to_blob
from .normalize import normalize_output
from .decode import decode
from .nms import iou, nms, suppress
from .session import (
    InferenceSession,
    OnnxRuntimeSession,
    OnnxRuntimeSessionConfig,
    TorchScriptSession,
    TorchScriptSessionConfig,
)
from .config import PipelineConfig, load_pipeline_config
from .pipeline import FrogPipeline, best_detection, infer_backend, load_pipeline, resolve_model_path
from .species import EdibilityInfo, classify_edibility

__all__ = [
    "FrogKitError",
    "InferenceError",
    "InvalidInputError",
    "MalformedOutputError",
    "Box",
    "Candidate",
    "ChannelMatrix",
    "Detection",
    "FROG_LABELS",
    "load_labels",
    "preprocess_image",
    "to_blob",
    "normalize_output",
    "decode",
    "iou",
    "nms",
    "suppress",
    "InferenceSession",
    "OnnxRuntimeSession",
    "OnnxRuntimeSessionConfig",
    "TorchScriptSession",
    "TorchScriptSessionConfig",
    "PipelineConfig",
    "load_pipeline_config",
    "FrogPipeline",
    "best_detection",
    "infer_backend",
    "load_pipeline",
    "resolve_model_path",
    "EdibilityInfo",
    "classify_edibility",
]
