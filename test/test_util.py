import time
import unittest


class TestUtil(unittest.TestCase):
    def test_parse_timepoints(self):
        from ctceval.util import parse_timepoints

        self.assertEqual(parse_timepoints("1-3,23,25"), {1, 2, 3, 23, 25})
        self.assertEqual(parse_timepoints(" 4 , 2-2 ,"), {2, 4})
        self.assertEqual(parse_timepoints(""), set())
        self.assertEqual(parse_timepoints(None), set())
        for invalid in ("a", "3-1", "1-b", "-2"):
            with self.assertRaises(ValueError):
                parse_timepoints(invalid)

    def test_format_timepoints(self):
        from ctceval.util import format_timepoints, parse_timepoints

        self.assertEqual(format_timepoints({25, 1, 2, 3, 23}), "1-3,23,25")
        self.assertEqual(format_timepoints([]), "")
        timepoints = "0-9,23,25-27"
        self.assertEqual(format_timepoints(parse_timepoints(timepoints)), timepoints)

    def test_run_per_frame(self):
        from ctceval.util import run_per_frame

        def _square(frame):
            # later frames finish first
            time.sleep(0.01 * (5 - frame))
            return frame ** 2

        self.assertEqual(run_per_frame(_square, list(range(5)), n_threads=4), [0, 1, 4, 9, 16])

        def _fail(frame):
            if frame == 3:
                raise RuntimeError("frame 3")
            return frame

        with self.assertRaises(RuntimeError):
            run_per_frame(_fail, list(range(5)), n_threads=2)


if __name__ == '__main__':
    unittest.main()
