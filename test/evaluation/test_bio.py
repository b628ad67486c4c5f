import unittest

import numpy as np

SHAPE = (40, 40)
POSITIONS = {"a": (2, 2), "b": (2, 24), "c": (24, 2)}


def _image(objects):
    image = np.zeros(SHAPE, dtype="uint16")
    for label, pos in objects.items():
        y, x = POSITIONS[pos]
        image[y:y + 8, x:x + 8] = label
    return image


def _ground_truth():
    from ctceval.io import Track

    # 1 divides into 2 and 3 at frame 2, 2 divides into 4 and 5 at frame 5
    tracks = [Track(1, 0, 0, 1), Track(2, 1, 2, 4), Track(3, 1, 2, 6), Track(4, 2, 5, 6), Track(5, 2, 5, 6)]
    objects = {
        0: {1: "a"}, 1: {1: "a"},
        2: {2: "a", 3: "b"}, 3: {2: "a", 3: "b"}, 4: {2: "a", 3: "b"},
        5: {4: "a", 5: "c", 3: "b"}, 6: {4: "a", 5: "c", 3: "b"},
    }
    return tracks, objects


class TestBio(unittest.TestCase):
    def _evaluate(self, res_tracks, res_objects):
        from ctceval.evaluation.label_matching import match_frame
        from ctceval.io import tracks_to_dict

        gt_tracks, gt_objects = _ground_truth()
        levels = {
            frame: match_frame(_image(objects), _image(res_objects[frame]), frame)
            for frame, objects in gt_objects.items()
        }
        return levels, tracks_to_dict(gt_tracks), tracks_to_dict(res_tracks)

    def test_identical(self):
        from ctceval.evaluation import compute_bci, compute_cca, compute_ct, compute_tf
        levels, gt_tracks, res_tracks = self._evaluate(*_ground_truth())
        self.assertEqual(compute_ct(levels, gt_tracks, res_tracks), 1.0)
        self.assertEqual(compute_tf(levels, gt_tracks), 1.0)
        self.assertEqual(compute_bci(levels, gt_tracks, res_tracks, i=0), 1.0)
        self.assertEqual(compute_cca(gt_tracks, res_tracks), 1.0)

    def test_broken_track(self):
        from ctceval.evaluation import compute_bci, compute_ct, compute_tf
        from ctceval.evaluation.bio import track_fractions
        from ctceval.io import Track

        # track 3 is interrupted after frame 3 and continued by the new track 6
        tracks, objects = _ground_truth()
        tracks = [track for track in tracks if track.track_id != 3]
        tracks += [Track(3, 1, 2, 3), Track(6, 0, 4, 6)]
        objects = {
            frame: {(6 if label == 3 and frame >= 4 else label): pos for label, pos in objs.items()}
            for frame, objs in objects.items()
        }
        levels, gt_tracks, res_tracks = self._evaluate(tracks, objects)

        self.assertAlmostEqual(compute_ct(levels, gt_tracks, res_tracks), 2.0 * 4 / (5 + 6))
        fractions = track_fractions(levels, gt_tracks)
        self.assertAlmostEqual(fractions[3], 3. / 5.)
        self.assertAlmostEqual(compute_tf(levels, gt_tracks), (4 + 0.6) / 5)
        self.assertEqual(compute_bci(levels, gt_tracks, res_tracks), 1.0)

    def test_late_division(self):
        from ctceval.evaluation import compute_bci, compute_cca
        from ctceval.evaluation.bio import cell_cycle_lengths
        from ctceval.io import Track

        # the second division is detected one frame late
        tracks = [Track(1, 0, 0, 1), Track(2, 1, 2, 5), Track(3, 1, 2, 6), Track(4, 2, 6, 6), Track(5, 2, 6, 6)]
        _, objects = _ground_truth()
        objects = dict(objects)
        objects[5] = {2: "a", 3: "b"}
        levels, gt_tracks, res_tracks = self._evaluate(tracks, objects)

        self.assertEqual(compute_bci(levels, gt_tracks, res_tracks, i=0), 0.5)
        self.assertEqual(compute_bci(levels, gt_tracks, res_tracks, i=1), 1.0)

        self.assertEqual(cell_cycle_lengths(gt_tracks), [3])
        self.assertEqual(cell_cycle_lengths(res_tracks), [4])
        self.assertEqual(compute_cca(gt_tracks, res_tracks), 0.0)

    def test_no_division(self):
        from ctceval.evaluation import compute_bci, compute_cca
        from ctceval.errors import ComputationPreconditionError
        from ctceval.io import Track

        tracks = {1: Track(1, 0, 0, 6)}
        with self.assertRaises(ComputationPreconditionError):
            compute_cca(tracks, tracks)
        with self.assertRaises(ComputationPreconditionError):
            compute_bci({}, tracks, tracks)
        with self.assertRaises(ValueError):
            compute_bci({}, tracks, tracks, i=-1)


if __name__ == '__main__':
    unittest.main()
