import unittest

import numpy as np


class TestLabelMatching(unittest.TestCase):
    shape = (32, 32)

    def _image(self, objects):
        image = np.zeros(self.shape, dtype="uint16")
        for label, bb in objects.items():
            image[bb] = label
        return image

    def test_match(self):
        from ctceval.evaluation.label_matching import match_frame, MATCH

        gt = self._image({1: np.s_[0:8, 0:8], 2: np.s_[16:24, 16:24]})
        # the labels of the result are independent of the ground-truth labels
        res = self._image({7: np.s_[0:8, 0:8], 3: np.s_[16:24, 16:22]})
        matching = match_frame(gt, res, frame=4)

        self.assertEqual(matching.gt_match, {1: 7, 2: 3})
        self.assertEqual(matching.res_match, {3: (2,), 7: (1,)})
        self.assertEqual(matching.unique_match(2), 3)
        self.assertEqual(matching.false_negatives, [])
        self.assertEqual(matching.false_positives, [])

        corrs = matching.correspondences()
        self.assertEqual(len(corrs), 2)
        self.assertTrue(all(corr.category == MATCH and corr.frame == 4 for corr in corrs))

    def test_cover_needs_majority(self):
        from ctceval.evaluation.label_matching import match_frame, covers

        self.assertTrue(covers(33, 64))
        self.assertFalse(covers(32, 64))

        gt = self._image({1: np.s_[0:8, 0:8]})
        # exactly half of the ground-truth object is not enough
        res = self._image({1: np.s_[0:8, 4:12]})
        matching = match_frame(gt, res)
        self.assertEqual(matching.false_negatives, [1])
        self.assertEqual(matching.false_positives, [1])

    def test_merge(self):
        from ctceval.evaluation.label_matching import match_frame, MERGE

        gt = self._image({1: np.s_[0:8, 0:8], 2: np.s_[0:8, 8:16], 3: np.s_[20:28, 0:8]})
        res = self._image({5: np.s_[0:8, 0:16], 6: np.s_[20:28, 0:8]})
        matching = match_frame(gt, res)

        self.assertEqual(matching.merged, {5: (1, 2)})
        self.assertEqual(matching.n_split_operations, 1)
        self.assertEqual(matching.unique_match(1), 0)
        self.assertEqual(matching.unique_match(3), 6)

        merges = [corr for corr in matching.correspondences() if corr.category == MERGE]
        self.assertEqual(len(merges), 1)
        self.assertEqual(merges[0].gt_labels, (1, 2))
        self.assertEqual(merges[0].res_labels, (5,))

    def test_split(self):
        from ctceval.evaluation.label_matching import match_frame, SPLIT, FALSE_NEGATIVE, FALSE_POSITIVE

        gt = self._image({1: np.s_[0:8, 0:16]})
        res = self._image({2: np.s_[0:8, 0:8], 3: np.s_[0:8, 8:16]})
        matching = match_frame(gt, res)

        self.assertEqual(matching.fragments(1), (2, 3))
        self.assertEqual(matching.false_negatives, [1])
        self.assertEqual(matching.false_positives, [2, 3])
        categories = [corr.category for corr in matching.correspondences()]
        self.assertEqual(categories, [SPLIT])
        self.assertNotIn(FALSE_NEGATIVE, categories)
        self.assertNotIn(FALSE_POSITIVE, categories)

    def test_false_negative_and_positive(self):
        from ctceval.evaluation.label_matching import match_frame, FALSE_NEGATIVE, FALSE_POSITIVE

        gt = self._image({1: np.s_[0:8, 0:8]})
        res = self._image({4: np.s_[20:28, 20:28]})
        matching = match_frame(gt, res)
        categories = sorted(corr.category for corr in matching.correspondences())
        self.assertEqual(categories, sorted([FALSE_NEGATIVE, FALSE_POSITIVE]))
        self.assertEqual(matching.jaccard(1), 0.0)

    def test_jaccard(self):
        from ctceval.evaluation.label_matching import match_frame

        gt = self._image({1: np.s_[0:8, 0:8]})
        res = self._image({1: np.s_[0:8, 2:10]})
        matching = match_frame(gt, res)
        self.assertAlmostEqual(matching.jaccard(1), 48. / 80.)

    def test_empty(self):
        from ctceval.evaluation.label_matching import match_frame

        gt = self._image({1: np.s_[0:8, 0:8]})
        res = self._image({})
        matching = match_frame(gt, res)
        self.assertFalse(matching.gt_empty)
        self.assertTrue(matching.res_empty)
        self.assertEqual(matching.false_negatives, [1])
        self.assertEqual(matching.matching_report(), ["T=0 GT_label=1 matches no RES label"])

    def test_shape_mismatch(self):
        from ctceval.evaluation.label_matching import match_frame
        from ctceval.errors import InputFormatError

        gt = np.zeros((16, 16), dtype="uint16")
        res = np.zeros((16, 17), dtype="uint16")
        with self.assertRaises(InputFormatError):
            match_frame(gt, res)

    def test_contingency_table(self):
        from ctceval.evaluation.util import label_overlaps

        seg_a = np.array([0, 1, 1, 2, 2, 2])
        seg_b = np.array([5, 5, 6, 6, 6, 0])
        a_sizes, b_sizes, overlaps = label_overlaps(seg_a, seg_b)
        self.assertEqual(a_sizes, {1: 2, 2: 3})
        self.assertEqual(b_sizes, {5: 2, 6: 3})
        self.assertEqual(overlaps, {(1, 5): 1, (1, 6): 1, (2, 6): 2})


if __name__ == '__main__':
    unittest.main()
