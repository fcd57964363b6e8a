import unittest

from scene_analysis.services.segment_partitioner import merge_short_segments, partition_segments


def spans(segments):
    return [(s.start_sec, s.end_sec) for s in segments]


class TestPartitionSegments(unittest.TestCase):
    def assert_gap_free(self, segments, duration: float) -> None:
        self.assertEqual(segments[0].start_sec, 0.0)
        self.assertEqual(segments[-1].end_sec, duration)
        for prev, cur in zip(segments, segments[1:]):
            self.assertEqual(cur.start_sec, prev.end_sec)
        for s in segments:
            self.assertAlmostEqual(s.duration_sec, s.end_sec - s.start_sec, places=9)
        self.assertEqual([s.id for s in segments], list(range(1, len(segments) + 1)))

    def test_short_cut_merges_into_neighbours(self) -> None:
        segments = partition_segments([0, 2, 2.1, 9, 20], duration=20.0, min_scene_duration=3.0)
        self.assertEqual(spans(segments), [(0.0, 9), (9, 20.0)])
        self.assert_gap_free(segments, 20.0)

    def test_long_segments_untouched(self) -> None:
        segments = partition_segments([0, 5, 10, 15], duration=15.0, min_scene_duration=2.0)
        self.assertEqual(spans(segments), [(0.0, 5), (5, 10), (10, 15.0)])

    def test_run_of_short_segments_extends_left_neighbour(self) -> None:
        segments = partition_segments([0, 6, 6.5, 7, 7.5, 14], duration=14.0, min_scene_duration=2.0)
        self.assertEqual(spans(segments), [(0.0, 7.5), (7.5, 14.0)])

    def test_leading_short_segment_absorbs_next(self) -> None:
        segments = partition_segments([0, 0.5, 10, 20], duration=20.0, min_scene_duration=2.0)
        self.assertEqual(spans(segments), [(0.0, 10), (10, 20.0)])
        for s in segments:
            self.assertGreaterEqual(s.duration_sec, 2.0)

    def test_trailing_short_segment_joins_previous(self) -> None:
        segments = partition_segments([0, 8, 9.5], duration=9.5, min_scene_duration=2.0)
        self.assertEqual(spans(segments), [(0.0, 9.5)])

    def test_video_shorter_than_minimum_yields_single_segment(self) -> None:
        segments = partition_segments([0, 0.4, 1.2], duration=1.2, min_scene_duration=2.0)
        self.assertEqual(len(segments), 1)
        self.assert_gap_free(segments, 1.2)

    def test_no_boundaries_yields_whole_video(self) -> None:
        segments = partition_segments([], duration=12.0, min_scene_duration=2.0)
        self.assertEqual(spans(segments), [(0.0, 12.0)])

    def test_truncated_boundaries_still_end_at_duration(self) -> None:
        # Detection output capped before reaching the end of the video.
        segments = partition_segments([0, 4, 8], duration=30.0, min_scene_duration=2.0)
        self.assertEqual(spans(segments), [(0.0, 4), (4, 30.0)])
        self.assertEqual(segments[-1].duration_sec, 26.0)

    def test_minimum_duration_holds_for_dense_cuts(self) -> None:
        boundaries = [i * 0.7 for i in range(30)] + [25.0]
        segments = partition_segments(boundaries, duration=25.0, min_scene_duration=3.0)
        self.assert_gap_free(segments, 25.0)
        for s in segments:
            self.assertGreaterEqual(s.duration_sec, 3.0)


class TestMergeShortSegments(unittest.TestCase):
    def test_empty(self) -> None:
        self.assertEqual(merge_short_segments([], 2.0), [])

    def test_all_short(self) -> None:
        self.assertEqual(merge_short_segments([(0, 1), (1, 2), (2, 2.5)], 3.0), [(0, 2.5)])


if __name__ == "__main__":
    unittest.main()
