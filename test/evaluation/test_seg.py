import unittest

import numpy as np


class TestSEG(unittest.TestCase):
    shape = (32, 32)

    def _image(self, objects):
        image = np.zeros(self.shape, dtype="uint16")
        for label, bb in objects.items():
            image[bb] = label
        return image

    def test_identical(self):
        from ctceval.evaluation import compute_seg, match_frame
        gt = self._image({1: np.s_[0:8, 0:8], 2: np.s_[16:24, 16:24]})
        value, report = compute_seg([match_frame(gt, gt)])
        self.assertEqual(value, 1.0)
        self.assertEqual(len(report), 2)

    def test_partial(self):
        from ctceval.evaluation import compute_seg, match_frame
        gt = self._image({1: np.s_[0:8, 0:8], 2: np.s_[16:24, 16:24]})
        # object 1 is shifted by two pixels, object 2 is missing
        res = self._image({3: np.s_[0:8, 2:10]})
        value, report = compute_seg([match_frame(gt, res, frame=5)])
        self.assertAlmostEqual(value, 0.5 * 48. / 80.)
        self.assertEqual(report[0], "GT_label=1 T=5 J=0.600000 (RES_label=3)")
        self.assertEqual(report[1], "GT_label=2 T=5 J=0 (no matching RES label)")

    def test_merged_objects(self):
        from ctceval.evaluation import compute_seg, match_frame
        gt = self._image({1: np.s_[0:8, 0:8], 2: np.s_[0:8, 8:16]})
        res = self._image({1: np.s_[0:8, 0:16]})
        value, _ = compute_seg([match_frame(gt, res)])
        # both objects are matched to the merged object, with half of its area
        self.assertAlmostEqual(value, 0.5)

    def test_slices_and_result_labels(self):
        from ctceval.evaluation import compute_seg, match_frame
        gt = self._image({1: np.s_[0:8, 0:8]})
        res = self._image({1: np.s_[0:8, 0:8], 4: np.s_[20:28, 20:28]})
        value, report = compute_seg([match_frame(gt, res, frame=2)], slices=[7], report_result_labels=True)
        self.assertEqual(value, 1.0)
        self.assertIn("GT_label=1 T=2 Z=7 J=1.000000 (RES_label=1)", report)
        self.assertIn("RES_label=4 T=2 Z=7 matches no GT label", report)

    def test_no_ground_truth(self):
        from ctceval.evaluation import compute_seg, match_frame
        from ctceval.errors import ComputationPreconditionError
        empty = self._image({})
        with self.assertRaises(ComputationPreconditionError):
            compute_seg([match_frame(empty, empty)])


if __name__ == '__main__':
    unittest.main()
