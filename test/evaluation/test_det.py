import unittest

import numpy as np


def _image(objects, shape=(32, 32)):
    image = np.zeros(shape, dtype="uint16")
    for label, (y, x) in objects.items():
        image[y:y + 8, x:x + 8] = label
    return image


class TestDET(unittest.TestCase):
    gt_objects = {0: {1: (2, 2), 2: (20, 20)}, 1: {1: (2, 2), 2: (20, 20)}}

    def _levels(self, res_objects):
        from ctceval.evaluation.label_matching import match_frame
        return {
            frame: match_frame(_image(objects), _image(res_objects[frame]), frame)
            for frame, objects in self.gt_objects.items()
        }

    def test_identical(self):
        from ctceval.evaluation import compute_det
        value, ops = compute_det(self._levels(self.gt_objects))
        self.assertEqual(value, 1.0)
        self.assertEqual(ops.false_negative, 0)

    def test_missing_object(self):
        from ctceval.evaluation import compute_det
        res_objects = {0: {1: (2, 2), 2: (20, 20)}, 1: {1: (2, 2)}}
        value, ops = compute_det(self._levels(res_objects))
        self.assertEqual(ops.false_negative, 1)
        self.assertAlmostEqual(value, 1.0 - 10.0 / 40.0)

    def test_false_positive(self):
        from ctceval.evaluation import compute_det
        res_objects = {0: {1: (2, 2), 2: (20, 20), 3: (2, 20)}, 1: {1: (2, 2), 2: (20, 20)}}
        value, ops = compute_det(self._levels(res_objects))
        self.assertEqual(ops.false_positive, 1)
        self.assertAlmostEqual(value, 1.0 - 1.0 / 40.0)

    def test_edges_are_ignored(self):
        from ctceval.evaluation import compute_det
        # different labels, i.e. different tracks, do not change DET
        res_objects = {0: {5: (2, 2), 6: (20, 20)}, 1: {7: (2, 2), 8: (20, 20)}}
        value, _ = compute_det(self._levels(res_objects))
        self.assertEqual(value, 1.0)

    def test_empty_result(self):
        from ctceval.evaluation import compute_det
        value, ops = compute_det(self._levels({0: {}, 1: {}}))
        self.assertEqual(value, 0.0)
        self.assertEqual(ops.false_negative, 4)

    def test_no_ground_truth(self):
        from ctceval.evaluation import compute_det
        from ctceval.evaluation.label_matching import match_frame
        from ctceval.errors import ComputationPreconditionError

        levels = {0: match_frame(_image({}), _image({1: (2, 2)}), 0)}
        with self.assertRaises(ComputationPreconditionError):
            compute_det(levels)


if __name__ == '__main__':
    unittest.main()
