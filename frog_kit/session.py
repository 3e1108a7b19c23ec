"""
Inference sessions: the only stateful, shared resource in the pipeline.

A session owns one loaded model. The native handle is created on first use,
every `run` is serialized by a single lock (runtimes are not assumed to be
reentrant), and `close()` releases the handle exactly once.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Union

import numpy as np

from .errors import InferenceError, InvalidInputError
from .preprocess import to_blob


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


class InferenceSession:
    """
    Base class for lazily-loaded, lock-guarded model sessions.

    Subclasses implement `_load()` (returns the native handle), `_infer(handle, blob)`
    and optionally `_release(handle)`.
    """

    def __init__(self, input_size: int = 640):
        self.input_size = input_size
        self._lock = threading.Lock()
        self._handle: Optional[Any] = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> "InferenceSession":
        with self._lock:
            self._ensure_loaded()
        return self

    def run(self, tensor: np.ndarray) -> Any:
        """
        Run one forward pass on a preprocessed tensor (flat 3*S*S or NCHW).

        Blocks the calling thread; concurrent callers wait on the session lock.
        """

        try:
            blob = to_blob(tensor, self.input_size)
        except InvalidInputError as exc:
            raise InferenceError(str(exc)) from exc

        with self._lock:
            handle = self._ensure_loaded()
            try:
                return self._infer(handle, blob)
            except Exception as exc:
                raise InferenceError(f"Inference failed: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            handle, self._handle = self._handle, None
            if handle is not None:
                self._release(handle)
                logger.info("Released %s", type(self).__name__)

    def __enter__(self) -> "InferenceSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Subclass hooks
    # ------------------------------------------------------------------ #
    def _load(self) -> Any:
        raise NotImplementedError

    def _infer(self, handle: Any, blob: np.ndarray) -> Any:
        raise NotImplementedError

    def _release(self, handle: Any) -> None:
        pass

    def _ensure_loaded(self) -> Any:
        # Caller holds self._lock.
        if self._closed:
            raise InferenceError(f"{type(self).__name__} is closed.")
        if self._handle is None:
            try:
                self._handle = self._load()
            except InferenceError:
                raise
            except Exception as exc:
                raise InferenceError(f"Failed to load model: {exc}") from exc
        return self._handle


def _session_providers(session: Any) -> Sequence[str]:
    if session is None or not hasattr(session, "get_providers"):
        return ()
    return tuple(session.get_providers())


@dataclass(frozen=True)
class OnnxRuntimeSessionConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CPUExecutionProvider"]); None lets ORT choose
    - input_name/output_name: override auto-selected I/O names if needed
    - input_size: square model input resolution
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None
    input_size: int = 640


class OnnxRuntimeSession(InferenceSession):
    """
    ONNX Runtime session for the exported detector.

    Expects `(1, 3, S, S)` float32 input and returns the primary output, typically
    `(1, 4 + C, 8400)`. `session_factory` replaces `onnxruntime.InferenceSession`
    construction; it must return an object with `get_inputs()`, `get_outputs()`
    and `run(output_names, feeds)`.
    """

    def __init__(
        self,
        model_path: PathLike,
        cfg: OnnxRuntimeSessionConfig = OnnxRuntimeSessionConfig(),
        *,
        session_factory: Optional[Callable[[], Any]] = None,
    ):
        super().__init__(input_size=cfg.input_size)
        self.model_path = Path(model_path)
        self.cfg = cfg
        self._session_factory = session_factory
        self.input_name: Optional[str] = None
        self.output_name: Optional[str] = None

    @property
    def providers_in_use(self) -> Sequence[str]:
        """Execution providers ORT actually bound; empty until the model is loaded."""
        return _session_providers(self._handle)

    def _load(self) -> Any:
        if self._session_factory is not None:
            session = self._session_factory()
        else:
            session = self._create_ort_session()

        self.input_name = self.cfg.input_name or session.get_inputs()[0].name
        self.output_name = self.cfg.output_name or session.get_outputs()[0].name
        logger.info(
            "Loaded ONNX model %s (input=%s, output=%s, providers=%s)",
            self.model_path,
            self.input_name,
            self.output_name,
            ",".join(_session_providers(session)) or "default",
        )
        return session

    def _create_ort_session(self) -> Any:
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime`."
            ) from e

        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        sess_opts = ort.SessionOptions()
        sess_opts.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        providers = list(self.cfg.providers) if self.cfg.providers is not None else None
        return ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)

    def _infer(self, handle: Any, blob: np.ndarray) -> Any:
        outputs = handle.run([self.output_name], {self.input_name: blob})
        return outputs[0]


@dataclass(frozen=True)
class TorchScriptSessionConfig:
    """
    Configuration for TorchScript inference.

    - device: "cpu" or "cuda" (if available)
    - output_index: if the model returns multiple outputs, select this index
    """

    device: str = "cpu"
    output_index: int = 0
    input_size: int = 640


class TorchScriptSession(InferenceSession):
    """
    TorchScript session using `torch.jit.load`; returns the output as a CPU NumPy array.
    """

    def __init__(self, model_path: PathLike, cfg: TorchScriptSessionConfig = TorchScriptSessionConfig()):
        super().__init__(input_size=cfg.input_size)
        self.model_path = Path(model_path)
        self.cfg = cfg
        self._torch: Any = None

    def _load(self) -> Any:
        try:
            import torch  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("torch is required for the TorchScript backend. Install with `pip install torch`.") from e

        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        self._torch = torch
        model = torch.jit.load(str(self.model_path), map_location=torch.device(self.cfg.device))
        model.eval()
        logger.info("Loaded TorchScript model %s on %s", self.model_path, self.cfg.device)
        return model

    def _infer(self, handle: Any, blob: np.ndarray) -> Any:
        torch = self._torch
        x = torch.as_tensor(blob, device=torch.device(self.cfg.device)).float().contiguous()

        with torch.no_grad():
            y = handle(x)

        if isinstance(y, (tuple, list)):
            y = y[self.cfg.output_index]
        return y.detach().to("cpu").numpy()
