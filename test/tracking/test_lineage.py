import unittest


class TestLineage(unittest.TestCase):
    def _tracks(self):
        from ctceval.io import Track
        return [Track(1, 0, 0, 2), Track(2, 1, 3, 4), Track(3, 1, 3, 5)]

    def _frame_labels(self):
        return {0: {1}, 1: {1}, 2: {1}, 3: {2, 3}, 4: {2, 3}, 5: {3}}

    def test_build_lineage_graph(self):
        from ctceval.tracking import build_lineage_graph, PARENTAL, TEMPORAL

        graph = build_lineage_graph(self._tracks(), self._frame_labels())
        self.assertEqual(graph.number_of_nodes(), 8)
        self.assertEqual(graph.number_of_edges(), 7)

        self.assertEqual(graph.edges[(0, 1), (1, 1)]["kind"], TEMPORAL)
        self.assertEqual(graph.edges[(2, 1), (3, 2)]["kind"], PARENTAL)
        self.assertEqual(graph.edges[(2, 1), (3, 3)]["kind"], PARENTAL)
        self.assertEqual(graph.edges[(4, 3), (5, 3)]["kind"], TEMPORAL)
        self.assertEqual(sorted(graph.successors((2, 1))), [(3, 2), (3, 3)])

    def test_gaps(self):
        from ctceval.tracking import build_lineage_graph, TEMPORAL

        # label 1 is missing in frame 1, the temporal edge spans the gap
        frame_labels = {0: {1}, 1: set(), 2: {1}, 3: {2, 3}, 4: {2, 3}, 5: {3}}
        graph = build_lineage_graph(self._tracks(), frame_labels)
        self.assertFalse(graph.has_node((1, 1)))
        self.assertEqual(graph.edges[(0, 1), (2, 1)]["kind"], TEMPORAL)

    def test_loaded_frames(self):
        from ctceval.tracking import build_lineage_graph

        # only the loaded frames become part of the graph
        frame_labels = {3: {2, 3}, 4: {2, 3}}
        graph = build_lineage_graph(self._tracks(), frame_labels)
        self.assertEqual(graph.number_of_nodes(), 4)
        self.assertEqual(graph.number_of_edges(), 2)

    def test_track_nodes(self):
        from ctceval.io import Track
        from ctceval.tracking import track_nodes

        nodes = track_nodes(Track(3, 1, 3, 5), self._frame_labels())
        self.assertEqual(nodes, [(3, 3), (4, 3), (5, 3)])

    def test_divisions(self):
        from ctceval.io import Track, tracks_to_dict
        from ctceval.tracking import divisions

        tracks = self._tracks() + [Track(4, 3, 6, 7)]
        self.assertEqual(divisions(tracks_to_dict(tracks)), [(1, (2, 3))])

    def test_parent_errors(self):
        from ctceval.errors import ParentError, DuplicateLabelError
        from ctceval.io import Track
        from ctceval.tracking import build_lineage_graph

        invalid = [
            [Track(1, 0, 0, 2), Track(2, 5, 3, 4)],
            [Track(1, 0, 0, 2), Track(2, 2, 3, 4)],
            [Track(1, 0, 0, 3), Track(2, 1, 3, 4)],
            [Track(1, 0, 2, 0)],
        ]
        for tracks in invalid:
            with self.assertRaises(ParentError):
                build_lineage_graph(tracks, {0: {1}})

        with self.assertRaises(DuplicateLabelError):
            build_lineage_graph([Track(1, 0, 0, 0), Track(1, 0, 2, 3)], {0: {1}})


if __name__ == '__main__':
    unittest.main()
