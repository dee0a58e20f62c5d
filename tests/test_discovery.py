import unittest

from synergy_dj.discovery import DISCOVERY_LIMIT, discovery_seeds, rank_discoveries
from synergy_dj.models import EventInfo, Track


def _make_track(track_id: str, **overrides) -> Track:
    values = dict(
        title=f"Song {track_id}",
        artist_names=("Artist",),
        tempo=120.0,
        key=0,
        mode=1,
        energy=0.7,
        danceability=0.7,
        valence=0.6,
        acousticness=0.1,
        instrumentalness=0.05,
        speechiness=0.05,
        loudness=-6.0,
        popularity=40,
    )
    values.update(overrides)
    return Track(track_id=track_id, **values)


def _far_track(track_id: str, **overrides) -> Track:
    values = dict(
        tempo=200.0, key=6, mode=0, danceability=0.0, energy=0.0, valence=0.0,
        loudness=-60.0, acousticness=1.0, instrumentalness=1.0, speechiness=1.0,
    )
    values.update(overrides)
    return _make_track(track_id, **values)


class RankDiscoveriesTests(unittest.TestCase):
    def setUp(self) -> None:
        self.queue = [_make_track("q1"), _make_track("q2", tempo=124.0)]

    def test_empty_queue_gives_no_picks(self) -> None:
        self.assertEqual(rank_discoveries([], [_make_track("c1")]), [])

    def test_queue_without_features_gives_no_picks(self) -> None:
        queue = [_make_track("q1", tempo=None), _make_track("q2", energy=None)]
        self.assertEqual(rank_discoveries(queue, [_make_track("c1")]), [])

    def test_queued_tracks_are_never_recommended(self) -> None:
        picks = rank_discoveries(self.queue, [_make_track("q1"), _make_track("c1")])
        self.assertEqual([p.track.track_id for p in picks], ["c1"])

    def test_candidates_without_features_are_excluded(self) -> None:
        candidates = [_make_track("c1", valence=None), _make_track("c2", tempo=0.0), _make_track("c3")]
        picks = rank_discoveries(self.queue, candidates)
        self.assertEqual([p.track.track_id for p in picks], ["c3"])

    def test_popularity_window_is_inclusive(self) -> None:
        candidates = [
            _make_track("low", popularity=19),
            _make_track("edge-low", popularity=20),
            _make_track("edge-high", popularity=60),
            _make_track("high", popularity=61),
        ]
        picks = rank_discoveries(self.queue, candidates)
        self.assertEqual({p.track.track_id for p in picks}, {"edge-low", "edge-high"})

    def test_custom_popularity_window(self) -> None:
        picks = rank_discoveries(self.queue, [_make_track("c1", popularity=80)], popularity_window=(70, 90))
        self.assertEqual(len(picks), 1)

    def test_low_synergy_candidates_are_excluded(self) -> None:
        picks = rank_discoveries(self.queue, [_far_track("far"), _make_track("near")])
        self.assertEqual([p.track.track_id for p in picks], ["near"])

    def test_results_are_capped(self) -> None:
        candidates = [_make_track(f"c{i}") for i in range(DISCOVERY_LIMIT + 5)]
        self.assertEqual(len(rank_discoveries(self.queue, candidates)), DISCOVERY_LIMIT)
        self.assertEqual(len(rank_discoveries(self.queue, candidates, limit=3)), 3)

    def test_picks_are_sorted_by_combined_score(self) -> None:
        candidates = [_make_track("c1", tempo=150.0), _make_track("c2"), _make_track("c3", energy=0.4)]
        picks = rank_discoveries(self.queue, candidates)
        scores = [p.combined_score for p in picks]
        self.assertEqual(scores, sorted(scores, reverse=True))
        self.assertEqual(picks[0].track.track_id, "c2")

    def test_theme_words_lift_matching_titles(self) -> None:
        queue = [_make_track("q1")]
        candidates = [_make_track("plain", title="Other Song"), _make_track("sunset", title="Sunset Lover")]
        event = EventInfo(name="sunset beach party")
        picks = rank_discoveries(queue, candidates, event=event)

        self.assertEqual([p.track.track_id for p in picks], ["sunset", "plain"])
        self.assertEqual(picks[0].theme_match, 83)
        self.assertEqual(picks[1].theme_match, 50)
        self.assertEqual(picks[0].synergy_score, 100)
        self.assertEqual(picks[0].rationale, "Excellent theme fit. Musically compatible. Hidden gem")

    def test_without_event_theme_match_is_default(self) -> None:
        picks = rank_discoveries([_make_track("q1")], [_make_track("c1", popularity=55)])
        self.assertEqual(picks[0].theme_match, 70)
        self.assertEqual(picks[0].rationale, "Strong theme match. Musically compatible. Under the radar")

    def test_breakdown_is_exposed(self) -> None:
        picks = rank_discoveries([_make_track("q1")], [_make_track("c1")])
        self.assertAlmostEqual(picks[0].breakdown.cosine_similarity, 1.0)
        self.assertEqual(picks[0].breakdown.tempo_compatibility, 1.0)


class DiscoverySeedsTests(unittest.TestCase):
    def test_seeds_are_deduplicated_and_capped(self) -> None:
        queue = [_make_track(f"t{i % 7}") for i in range(10)]
        track_ids, genres = discovery_seeds(queue, ["house", "house", "", "edm", "a", "b", "c", "d"])
        self.assertEqual(track_ids, ["t0", "t1", "t2", "t3", "t4"])
        self.assertEqual(genres, ["house", "edm", "a", "b", "c"])

    def test_empty_queue(self) -> None:
        self.assertEqual(discovery_seeds([]), ([], []))


if __name__ == "__main__":
    unittest.main()
