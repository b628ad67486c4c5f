import unittest
from shutil import rmtree
from unittest import mock

import numpy as np

SHAPE = (32, 32)


def _image(objects):
    image = np.zeros(SHAPE, dtype="uint16")
    for label, (y, x) in objects.items():
        image[y:y + 8, x:x + 8] = label
    return image


class TestCli(unittest.TestCase):
    tmp_dir = "./tmp"
    gt_dir = "./tmp/01_GT"
    res_dir = "./tmp/01_RES"

    def setUp(self):
        from ctceval.io import Track, write_tracking_data

        # track 1 divides into 2 and 3 after frame 1, the result misses track 3 in frame 3
        gt_objects = {
            0: {1: (2, 2)}, 1: {1: (2, 2)},
            2: {2: (2, 2), 3: (20, 20)}, 3: {2: (2, 2), 3: (20, 20)},
        }
        res_objects = dict(gt_objects)
        res_objects[3] = {2: (2, 2)}
        gt_tracks = [Track(1, 0, 0, 1), Track(2, 1, 2, 3), Track(3, 1, 2, 3)]
        res_tracks = [Track(1, 0, 0, 1), Track(2, 1, 2, 3), Track(3, 1, 2, 2)]

        write_tracking_data(
            self.gt_dir, gt_tracks, {t: _image(objs) for t, objs in gt_objects.items()}, is_ground_truth=True
        )
        write_tracking_data(self.res_dir, res_tracks, {t: _image(objs) for t, objs in res_objects.items()})

    def tearDown(self):
        try:
            rmtree(self.tmp_dir)
        except OSError:
            pass

    def test_evaluate(self):
        from ctceval.cli import evaluate
        from ctceval.evaluation import EvaluationOptions, TrackDataCache
        from ctceval.io import sequence

        options = EvaluationOptions(do_log_reports=False)
        with mock.patch.object(sequence, "read_label_image", wraps=sequence.read_label_image) as read:
            results, cache = evaluate(self.gt_dir, self.res_dir, ["TRA", "DET", "BCi"], options=options)

        self.assertEqual(list(results), ["TRA", "DET", "BC(2)"])
        # 6 objects and 5 edges in the ground-truth, one object and one edge are missing
        self.assertAlmostEqual(results["TRA"].value, 1.0 - 11.5 / 67.5)
        self.assertAlmostEqual(results["DET"].value, 1.0 - 10.0 / 60.0)
        self.assertEqual(results["BC(2)"].value, 1.0)

        # the images of the 4 frames are read once for all measures
        self.assertIsInstance(cache, TrackDataCache)
        self.assertEqual(read.call_count, 2 * 4)
        self.assertEqual(sorted(cache.levels), [0, 1, 2, 3])

    def test_evaluate_normalized_aogm(self):
        from ctceval.cli import evaluate
        from ctceval.evaluation import EvaluationOptions

        options = EvaluationOptions(do_log_reports=False)
        results, _ = evaluate(self.gt_dir, self.res_dir, ["AOGM"], options=options)
        self.assertEqual(results["AOGM"].value, 11.5)

        results, _ = evaluate(self.gt_dir, self.res_dir, ["AOGM"], normalize=True, options=options)
        self.assertAlmostEqual(results["AOGM"].value, 1.0 - 11.5 / 67.5)


if __name__ == '__main__':
    unittest.main()
