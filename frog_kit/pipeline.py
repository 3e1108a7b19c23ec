from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np

from .config import PipelineConfig
from .decode import decode
from .labels import FROG_LABELS
from .nms import suppress
from .normalize import expected_channels_for, normalize_output
from .preprocess import image_size, preprocess_image
from .session import (
    InferenceSession,
    OnnxRuntimeSession,
    OnnxRuntimeSessionConfig,
    TorchScriptSession,
    TorchScriptSessionConfig,
)
from .types import Detection


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


MODEL_SUFFIXES = {".onnx": "onnxruntime", ".torchscript": "torchscript", ".ts": "torchscript", ".pt": "torchscript"}
PROJECT_MARKERS = ("pyproject.toml", ".git")


def resolve_model_path(model_path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Turn `model_path` into an absolute path to a model file.

    Absolute paths are kept. With an explicit `root`, relative paths are joined
    to it. With `root="auto"` (or None) the working directory and each of its
    parents are searched for `model_path`, so `Models/best.onnx` is found when
    running from `Scripts/` or `tests/`. If no directory holds the file, the
    path is anchored at the nearest directory carrying a project marker
    (`pyproject.toml`, `.git`), and the missing file surfaces on first run.
    """

    p = Path(model_path).expanduser()
    if p.is_absolute():
        return p
    if root not in ("auto", None):
        return (Path(root) / p).resolve()

    cwd = Path.cwd().resolve()
    search = (cwd, *cwd.parents)
    for base in search:
        if (base / p).is_file():
            return (base / p).resolve()
    anchor = next((base for base in search if any((base / m).exists() for m in PROJECT_MARKERS)), cwd)
    return (anchor / p).resolve()


def infer_backend(model_path: PathLike) -> str:
    """Backend name for a model file, from its extension."""

    suffix = Path(model_path).suffix.lower()
    try:
        return MODEL_SUFFIXES[suffix]
    except KeyError:
        raise ValueError(
            f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly."
        ) from None


class FrogPipeline:
    """
    preprocess (stretch) -> inference -> normalize -> decode -> per-class NMS.

    The session is injected and owned by the caller; `close()` (or using the
    pipeline as a context manager) releases it.
    """

    def __init__(
        self,
        session: InferenceSession,
        *,
        labels: Sequence[str] = FROG_LABELS,
        config: PipelineConfig = PipelineConfig(),
    ):
        if session.input_size != config.input_size:
            raise ValueError(
                f"Session input size {session.input_size} does not match config input size {config.input_size}"
            )
        if not labels:
            raise ValueError("labels must not be empty")
        self.session = session
        self.labels = tuple(labels)
        self.config = config

    @property
    def expected_channels(self) -> int:
        return expected_channels_for(self.labels)

    def detect(self, image: np.ndarray) -> List[Detection]:
        cfg = self.config
        orig_w, orig_h = image_size(image)

        t0 = time.perf_counter()
        tensor = preprocess_image(image, input_size=cfg.input_size, color_order=cfg.color_order)
        t1 = time.perf_counter()
        raw = self.session.run(tensor)
        t2 = time.perf_counter()

        matrix = normalize_output(raw, self.expected_channels)
        candidates = decode(
            matrix,
            orig_w,
            orig_h,
            input_size=cfg.input_size,
            conf_threshold=cfg.conf_threshold,
        )
        detections = suppress(
            candidates,
            self.labels,
            iou_threshold=cfg.iou_threshold,
            max_detections=cfg.max_detections,
        )
        t3 = time.perf_counter()

        logger.debug(
            "image=%dx%d candidates=%d kept=%d preprocess=%.1fms inference=%.1fms postprocess=%.1fms",
            orig_w,
            orig_h,
            len(candidates),
            len(detections),
            (t1 - t0) * 1000.0,
            (t2 - t1) * 1000.0,
            (t3 - t2) * 1000.0,
        )
        return detections

    def __call__(self, image: np.ndarray) -> List[Detection]:
        return self.detect(image)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "FrogPipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def best_detection(detections: Iterable[Detection]) -> Optional[Detection]:
    """
    Highest-scoring detection (first one on ties), or None when nothing was found.
    """

    best: Optional[Detection] = None
    for det in detections:
        if best is None or det.score > best.score:
            best = det
    return best


def load_pipeline(
    model_path: PathLike,
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    config: PipelineConfig = PipelineConfig(),
    labels: Sequence[str] = FROG_LABELS,
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_input_name: Optional[str] = None,
    onnx_output_name: Optional[str] = None,
    torch_device: str = "cpu",
    torch_output_index: int = 0,
) -> FrogPipeline:
    """
    Create a pipeline for a model on disk. The model itself loads on first use.

        pipe = load_pipeline("Models/best.onnx")  # found from the cwd or any parent

    Args:
        model_path: path to the model file; see `resolve_model_path` for relative paths
        backend: "onnxruntime" or "torchscript"; None infers it from the extension
        root: base directory for relative model paths ("auto" searches upward from the cwd)
    """

    resolved = resolve_model_path(model_path, root=root)
    chosen = (backend or infer_backend(resolved)).lower()
    session: InferenceSession
    if chosen == "onnxruntime":
        session = OnnxRuntimeSession(
            resolved,
            OnnxRuntimeSessionConfig(
                providers=onnx_providers,
                input_name=onnx_input_name,
                output_name=onnx_output_name,
                input_size=config.input_size,
            ),
        )
    elif chosen == "torchscript":
        session = TorchScriptSession(
            resolved,
            TorchScriptSessionConfig(
                device=torch_device,
                output_index=torch_output_index,
                input_size=config.input_size,
            ),
        )
    else:
        raise ValueError(f"Unsupported backend: {backend!r}")

    logger.info("Created %s pipeline for %s", chosen, resolved)
    return FrogPipeline(session, labels=labels, config=config)
