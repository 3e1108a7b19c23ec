import unittest

import numpy as np

from frog_kit.errors import MalformedOutputError
from frog_kit.labels import FROG_LABELS
from frog_kit.nms import iou, nms, suppress
from frog_kit.types import Box, Candidate


def _cand(cls, score, left, top, right, bottom):
    return Candidate(class_index=cls, score=score, left=left, top=top, right=right, bottom=bottom)


def _as_candidates(detections):
    return [
        Candidate(
            class_index=d.class_index,
            score=d.score,
            left=d.box.left,
            top=d.box.top,
            right=d.box.right,
            bottom=d.box.bottom,
        )
        for d in detections
    ]


class TestIou(unittest.TestCase):
    def test_identical_boxes(self) -> None:
        a = Box(10.0, 20.0, 110.0, 70.0)
        self.assertEqual(iou(a, a), 1.0)

    def test_disjoint_and_touching_boxes(self) -> None:
        a = Box(0.0, 0.0, 10.0, 10.0)
        self.assertEqual(iou(a, Box(20.0, 20.0, 30.0, 30.0)), 0.0)
        self.assertEqual(iou(a, Box(10.0, 0.0, 20.0, 10.0)), 0.0)

    def test_partial_overlap(self) -> None:
        a = Box(0.0, 0.0, 100.0, 100.0)
        b = Box(0.0, 0.0, 100.0, 60.0)
        self.assertAlmostEqual(iou(a, b), 0.6)
        self.assertAlmostEqual(iou(b, a), 0.6)

    def test_zero_union_is_zero(self) -> None:
        p = Box(5.0, 5.0, 5.0, 5.0)
        self.assertEqual(iou(p, p), 0.0)


class TestNmsKernel(unittest.TestCase):
    def test_keeps_highest_and_disjoint(self) -> None:
        boxes = np.array(
            [
                [0, 0, 100, 100],
                [0, 0, 100, 60],
                [200, 200, 300, 300],
            ],
            dtype=np.float64,
        )
        scores = np.array([0.8, 0.9, 0.5])
        keep = nms(boxes, scores, 0.45)
        self.assertEqual(keep.tolist(), [1, 2])

    def test_empty(self) -> None:
        keep = nms(np.zeros((0, 4)), np.zeros((0,)), 0.45)
        self.assertEqual(keep.size, 0)


class TestSuppress(unittest.TestCase):
    def test_same_class_overlap_keeps_best(self) -> None:
        cands = [
            _cand(0, 0.8, 0.0, 0.0, 100.0, 60.0),
            _cand(0, 0.9, 0.0, 0.0, 100.0, 100.0),
        ]
        out = suppress(cands, FROG_LABELS, iou_threshold=0.45)
        self.assertEqual(len(out), 1)
        self.assertEqual(out[0].score, 0.9)
        self.assertEqual(out[0].label, "Asian Painted Frog")
        self.assertEqual(out[0].box, Box(0.0, 0.0, 100.0, 100.0))

    def test_cross_class_overlap_is_never_suppressed(self) -> None:
        cands = [
            _cand(1, 0.9, 0.0, 0.0, 100.0, 100.0),
            _cand(4, 0.8, 0.0, 0.0, 100.0, 90.0),
        ]
        out = suppress(cands, FROG_LABELS, iou_threshold=0.45)
        self.assertEqual([d.label for d in out], ["Cane Toad", "Paddy Field Frog"])

    def test_overlap_equal_to_threshold_is_kept(self) -> None:
        cands = [
            _cand(2, 0.9, 0.0, 0.0, 100.0, 100.0),
            _cand(2, 0.7, 0.0, 0.0, 100.0, 50.0),
        ]
        out = suppress(cands, FROG_LABELS, iou_threshold=0.5)
        self.assertEqual(len(out), 2)

    def test_grouped_by_ascending_class(self) -> None:
        cands = [
            _cand(5, 0.95, 300.0, 300.0, 400.0, 400.0),
            _cand(0, 0.4, 0.0, 0.0, 50.0, 50.0),
            _cand(3, 0.6, 100.0, 100.0, 150.0, 150.0),
            _cand(0, 0.7, 200.0, 0.0, 250.0, 50.0),
        ]
        out = suppress(cands, FROG_LABELS)
        self.assertEqual([(d.class_index, d.score) for d in out], [(0, 0.7), (0, 0.4), (3, 0.6), (5, 0.95)])

    def test_equal_scores_keep_decode_order(self) -> None:
        cands = [
            _cand(1, 0.5, 0.0, 0.0, 100.0, 100.0),
            _cand(1, 0.5, 5.0, 5.0, 105.0, 105.0),
        ]
        out = suppress(cands, FROG_LABELS)
        self.assertEqual(len(out), 1)
        self.assertEqual(out[0].box.left, 0.0)

    def test_chain_is_greedy(self) -> None:
        # B overlaps A and C, but A and C do not overlap: removing B keeps C.
        cands = [
            _cand(0, 0.9, 0.0, 0.0, 100.0, 100.0),
            _cand(0, 0.8, 30.0, 0.0, 130.0, 100.0),
            _cand(0, 0.7, 60.0, 0.0, 160.0, 100.0),
        ]
        out = suppress(cands, FROG_LABELS, iou_threshold=0.45)
        self.assertEqual([d.score for d in out], [0.9, 0.7])

    def test_suppression_is_idempotent(self) -> None:
        rng = np.random.default_rng(3)
        cands = []
        for _ in range(60):
            x, y = rng.uniform(0, 500, size=2)
            w, h = rng.uniform(20, 120, size=2)
            cands.append(_cand(int(rng.integers(0, 6)), float(rng.uniform(0.25, 1.0)), x, y, x + w, y + h))

        once = suppress(cands, FROG_LABELS, iou_threshold=0.45)
        twice = suppress(_as_candidates(once), FROG_LABELS, iou_threshold=0.45)
        self.assertEqual(once, twice)

        for i, a in enumerate(once):
            for b in once[i + 1 :]:
                if a.class_index == b.class_index:
                    self.assertLessEqual(iou(a.box, b.box), 0.45)

    def test_max_detections_keeps_top_scores(self) -> None:
        cands = [
            _cand(0, 0.5, 0.0, 0.0, 10.0, 10.0),
            _cand(2, 0.9, 100.0, 100.0, 110.0, 110.0),
            _cand(4, 0.7, 200.0, 200.0, 210.0, 210.0),
        ]
        out = suppress(cands, FROG_LABELS, max_detections=2)
        self.assertEqual([d.score for d in out], [0.9, 0.7])

    def test_empty_input(self) -> None:
        self.assertEqual(suppress([], FROG_LABELS), [])

    def test_class_outside_label_table(self) -> None:
        with self.assertRaises(MalformedOutputError):
            suppress([_cand(6, 0.9, 0.0, 0.0, 10.0, 10.0)], FROG_LABELS)


if __name__ == "__main__":
    unittest.main()
