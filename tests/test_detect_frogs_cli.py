import contextlib
import importlib.util
import io
import unittest
from pathlib import Path


HAS_CV2 = importlib.util.find_spec("cv2") is not None
SCRIPT = Path(__file__).resolve().parents[1] / "Scripts" / "detect_frogs.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("detect_frogs", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@unittest.skipUnless(HAS_CV2, "OpenCV (cv2) is not installed")
class TestDetectFrogsArgs(unittest.TestCase):
    def setUp(self) -> None:
        self.parser = _load_script().build_parser()

    def test_log_level_is_case_insensitive(self) -> None:
        args = self.parser.parse_args(["--image", "frog.jpg", "--log-level", "debug"])
        self.assertEqual(args.log_level, "DEBUG")

    def test_log_level_default(self) -> None:
        self.assertEqual(self.parser.parse_args(["--image", "frog.jpg"]).log_level, "WARNING")

    def test_unknown_log_level_is_a_usage_error(self) -> None:
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as ctx:
            self.parser.parse_args(["--image", "frog.jpg", "--log-level", "verbose"])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("invalid choice", stderr.getvalue())


if __name__ == "__main__":
    unittest.main()
