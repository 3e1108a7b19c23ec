import json
import tempfile
import unittest
from pathlib import Path

from frog_kit.config import PipelineConfig, load_pipeline_config


class TestPipelineConfig(unittest.TestCase):
    def _write_config(self, payload) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "pipeline.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def test_defaults(self) -> None:
        cfg = PipelineConfig()
        self.assertEqual(cfg.conf_threshold, 0.25)
        self.assertEqual(cfg.iou_threshold, 0.45)
        self.assertEqual(cfg.input_size, 640)
        self.assertIsNone(cfg.max_detections)
        self.assertEqual(cfg.color_order, "bgr")

    def test_load_ok(self) -> None:
        path = self._write_config(
            {
                "conf_threshold": 0.4,
                "iou_threshold": 0.5,
                "input_size": 320,
                "max_detections": 5,
                "color_order": "RGB",
            }
        )
        cfg = load_pipeline_config(path)
        self.assertIsInstance(cfg, PipelineConfig)
        self.assertEqual(cfg.conf_threshold, 0.4)
        self.assertEqual(cfg.iou_threshold, 0.5)
        self.assertEqual(cfg.input_size, 320)
        self.assertEqual(cfg.max_detections, 5)
        self.assertEqual(cfg.color_order, "rgb")

    def test_missing_keys_use_defaults(self) -> None:
        cfg = load_pipeline_config(self._write_config({"conf_threshold": 1}))
        self.assertEqual(cfg.conf_threshold, 1.0)
        self.assertEqual(cfg.input_size, 640)

    def test_unknown_keys_rejected(self) -> None:
        with self.assertRaises(ValueError):
            load_pipeline_config(self._write_config({"conf_threshold": 0.3, "extra": 1}))

    def test_wrong_types_rejected(self) -> None:
        for payload in (
            {"conf_threshold": "0.3"},
            {"iou_threshold": True},
            {"input_size": 640.5},
            {"max_detections": "5"},
            {"color_order": 3},
        ):
            with self.assertRaises(ValueError):
                load_pipeline_config(self._write_config(payload))

    def test_out_of_range_rejected(self) -> None:
        for payload in (
            {"conf_threshold": 1.5},
            {"iou_threshold": -0.1},
            {"input_size": 16},
            {"max_detections": 0},
            {"color_order": "hsv"},
        ):
            with self.assertRaises(ValueError):
                load_pipeline_config(self._write_config(payload))

    def test_invalid_json_and_missing_file(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        bad = Path(tmpdir.name) / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_pipeline_config(bad)
        with self.assertRaises(ValueError):
            load_pipeline_config(self._write_config([0.25, 0.45]))
        with self.assertRaises(FileNotFoundError):
            load_pipeline_config(Path(tmpdir.name) / "missing.json")


if __name__ == "__main__":
    unittest.main()
