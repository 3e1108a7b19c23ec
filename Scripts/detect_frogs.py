import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

import cv2

from frog_kit import (
    FROG_LABELS,
    PipelineConfig,
    best_detection,
    classify_edibility,
    load_labels,
    load_pipeline,
    load_pipeline_config,
)


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Detect frogs in a photo and print labeled boxes.")
    parser.add_argument("--image", required=True, help="Path to an input image.")
    parser.add_argument("--model", default="Models/best.onnx", help="Path to the detector (.onnx/.torchscript).")
    parser.add_argument("--labels", default=None, help="Optional labels.txt or metadata.yaml (defaults to built-in frog labels).")
    parser.add_argument("--config", default=None, help="Optional pipeline config JSON.")
    parser.add_argument("--imgsz", type=int, default=None, help="Model input size (e.g., 640).")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS.")
    parser.add_argument("--backend", default=None, help="Force backend: onnxruntime / torchscript.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CPUExecutionProvider".',
    )
    parser.add_argument("--json", action="store_true", help="Print a JSON document instead of plain lines.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (case-insensitive).",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    cfg = load_pipeline_config(Path(args.config)) if args.config else PipelineConfig()
    overrides = {}
    if args.imgsz is not None:
        overrides["input_size"] = int(args.imgsz)
    if args.conf is not None:
        overrides["conf_threshold"] = float(args.conf)
    if args.iou is not None:
        overrides["iou_threshold"] = float(args.iou)
    if overrides:
        cfg = replace(cfg, **overrides)

    labels = load_labels(args.labels) if args.labels else FROG_LABELS

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    img = cv2.imread(args.image)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {args.image}")

    with load_pipeline(
        args.model,
        backend=args.backend,
        config=cfg,
        labels=labels,
        onnx_providers=onnx_providers,
    ) as pipeline:
        detections = pipeline(img)

    best = best_detection(detections)
    edibility = classify_edibility(best.label) if best is not None else None

    if args.json:
        doc = {
            "image": args.image,
            "detections": [det.as_dict() for det in detections],
            "best": best.as_dict() if best is not None else None,
            "edibility": edibility.description if edibility is not None else None,
        }
        print(json.dumps(doc, indent=2, ensure_ascii=False))
        return 0

    for det in detections:
        left, top, right, bottom = det.as_xyxy()
        print(f"{det.label} {det.score:.3f} {left:.1f} {top:.1f} {right:.1f} {bottom:.1f}")

    if best is None:
        print("No frog detected.")
    else:
        print(f"Best: {best.label} ({best.score:.2f}) - {edibility.description}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
