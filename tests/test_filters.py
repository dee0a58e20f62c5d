import unittest

from synergy_dj.filters import (
    QUICK_PRESETS,
    active_filter_count,
    apply_smart_filters,
    cooldown_length,
    filter_artist_cooldown,
    filter_era,
    filter_explicit,
    filter_feature_ranges,
    filter_summary,
    get_preset,
    sort_vocal_focus,
)
from synergy_dj.models import DiscoveryPick, SmartFilterConfig, SynergyBreakdown, Track


def _make_track(track_id: str, artist: str = "Artist", **overrides) -> Track:
    values = dict(
        title=f"Song {track_id}",
        artist_names=(artist,),
        tempo=120.0,
        energy=0.5,
        danceability=0.5,
        valence=0.5,
        instrumentalness=0.2,
        release_year=2005,
    )
    values.update(overrides)
    return Track(track_id=track_id, **values)


def _ids(items) -> list[str]:
    return [getattr(item, "track", item).track_id for item in items]


class FilterConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        config = SmartFilterConfig()
        self.assertEqual(config.artist_cooldown_minutes, 30)
        self.assertEqual((config.era_min_decade, config.era_max_decade), (1960, 2020))
        self.assertEqual(active_filter_count(config), 0)
        self.assertEqual(filter_summary(config), [])

    def test_ranges_are_clamped_and_ordered(self) -> None:
        config = SmartFilterConfig(min_energy=120, max_energy=-5, era_min_decade=1995, era_max_decade=1971)
        self.assertEqual((config.min_energy, config.max_energy), (0, 100))
        self.assertEqual((config.era_min_decade, config.era_max_decade), (1970, 1990))

    def test_negative_cooldown_is_zero(self) -> None:
        self.assertEqual(SmartFilterConfig(artist_cooldown_minutes=-9).artist_cooldown_minutes, 0)


class StageTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tracks = [
            _make_track("clean"),
            _make_track("explicit", explicit=True),
            _make_track("old", release_year=1975),
        ]

    def test_disabled_config_is_identity(self) -> None:
        config = SmartFilterConfig()
        self.assertEqual(apply_smart_filters(self.tracks, [], config), self.tracks)

    def test_input_list_is_not_modified(self) -> None:
        original = list(self.tracks)
        apply_smart_filters(self.tracks, [], SmartFilterConfig(no_explicit=True, vocal_focus=True))
        self.assertEqual(self.tracks, original)

    def test_explicit_tracks_are_removed(self) -> None:
        config = SmartFilterConfig(no_explicit=True)
        self.assertEqual(_ids(filter_explicit(self.tracks, config)), ["clean", "old"])

    def test_cooldown_length(self) -> None:
        self.assertEqual(cooldown_length(9), 3)
        self.assertEqual(cooldown_length(10), 3)
        self.assertEqual(cooldown_length(2), 0)

    def test_cooldown_blocks_recent_artists_only(self) -> None:
        queue = [_make_track(f"q{i}", artist=name) for i, name in enumerate(["Old", "A", "B", "C"])]
        candidates = [
            _make_track("1", artist="Old"),
            _make_track("2", artist="A"),
            _make_track("3", artist="D"),
        ]
        config = SmartFilterConfig(prevent_artist_repetition=True, artist_cooldown_minutes=9)
        self.assertEqual(_ids(filter_artist_cooldown(candidates, queue, config)), ["1", "3"])

    def test_cooldown_compares_artist_names_exactly(self) -> None:
        queue = [_make_track("q1", artist="Daft Punk")]
        candidates = [_make_track("1", artist="Daft Punk"), _make_track("2", artist="daft punk")]
        config = SmartFilterConfig(prevent_artist_repetition=True, artist_cooldown_minutes=3)
        self.assertEqual(_ids(filter_artist_cooldown(candidates, queue, config)), ["2"])

    def test_short_cooldown_is_a_no_op(self) -> None:
        queue = [_make_track("q1", artist="A")]
        candidates = [_make_track("1", artist="A")]
        config = SmartFilterConfig(prevent_artist_repetition=True, artist_cooldown_minutes=2)
        self.assertEqual(_ids(filter_artist_cooldown(candidates, queue, config)), ["1"])

    def test_era_uses_release_decade(self) -> None:
        config = SmartFilterConfig(era_filter_enabled=True, era_min_decade=1970, era_max_decade=1980)
        tracks = [
            _make_track("seventies", release_year=1979),
            _make_track("eighties", release_year=1989),
            _make_track("nineties", release_year=1990),
        ]
        self.assertEqual(_ids(filter_era(tracks, config)), ["seventies", "eighties"])

    def test_era_treats_unknown_year_as_current(self) -> None:
        config = SmartFilterConfig(era_filter_enabled=True, era_min_decade=2020, era_max_decade=2020)
        tracks = [_make_track("unknown", release_year=None)]
        self.assertEqual(_ids(filter_era(tracks, config, current_year=2024)), ["unknown"])
        self.assertEqual(filter_era(tracks, config, current_year=2031), [])

    def test_feature_ranges_are_inclusive(self) -> None:
        config = SmartFilterConfig(min_energy=60, max_energy=80)
        tracks = [
            _make_track("low", energy=0.59),
            _make_track("edge", energy=0.6),
            _make_track("top", energy=0.8),
            _make_track("high", energy=0.81),
        ]
        self.assertEqual(_ids(filter_feature_ranges(tracks, config)), ["edge", "top"])

    def test_missing_feature_counts_as_fifty(self) -> None:
        tracks = [_make_track("unknown", valence=None)]
        self.assertEqual(len(filter_feature_ranges(tracks, SmartFilterConfig(min_valence=50))), 1)
        self.assertEqual(filter_feature_ranges(tracks, SmartFilterConfig(min_valence=51)), [])

    def test_measured_zero_is_not_missing(self) -> None:
        tracks = [_make_track("silent", energy=0.0)]
        self.assertEqual(filter_feature_ranges(tracks, SmartFilterConfig(min_energy=10)), [])

    def test_vocal_focus_is_a_stable_sort(self) -> None:
        tracks = [
            _make_track("inst", instrumentalness=0.9),
            _make_track("vocal-1", instrumentalness=0.1),
            _make_track("unknown", instrumentalness=None),
            _make_track("vocal-2", instrumentalness=0.1),
        ]
        config = SmartFilterConfig(vocal_focus=True)
        self.assertEqual(_ids(sort_vocal_focus(tracks, config)), ["vocal-1", "vocal-2", "unknown", "inst"])


class PipelineTests(unittest.TestCase):
    def test_all_stages_and_idempotence(self) -> None:
        queue = [_make_track("q1", artist="Repeat")]
        tracks = [
            _make_track("a", instrumentalness=0.7, energy=0.9),
            _make_track("explicit", explicit=True, energy=0.9),
            _make_track("repeat", artist="Repeat", energy=0.9),
            _make_track("old", release_year=1962, energy=0.9),
            _make_track("calm", energy=0.3),
            _make_track("b", instrumentalness=0.0, energy=0.85),
        ]
        config = SmartFilterConfig(
            no_explicit=True,
            prevent_artist_repetition=True,
            artist_cooldown_minutes=3,
            era_filter_enabled=True,
            era_min_decade=2000,
            era_max_decade=2010,
            min_energy=80,
            vocal_focus=True,
        )
        once = apply_smart_filters(tracks, queue, config, current_year=2024)
        self.assertEqual(_ids(once), ["b", "a"])
        self.assertEqual(apply_smart_filters(once, queue, config, current_year=2024), once)

    def test_harmonic_flow_orders_around_anchor(self) -> None:
        # A minor (8A).
        anchor = _make_track("anchor", key=9, mode=0)
        tracks = [
            _make_track("far", camelot_key="2A"),
            _make_track("boost", camelot_key="9A"),
            _make_track("relative", camelot_key="8B", explicit=True),
            _make_track("drop", camelot_key="7A"),
        ]
        config = SmartFilterConfig(no_explicit=True, harmonic_flow=True)

        once = apply_smart_filters(tracks, [], config, anchor=anchor)

        self.assertEqual(_ids(once), ["anchor", "boost", "drop"])
        self.assertEqual(apply_smart_filters(once, [], config, anchor=anchor), once)

    def test_harmonic_flow_needs_flag_and_anchor(self) -> None:
        anchor = _make_track("anchor", key=9, mode=0)
        tracks = [_make_track("far", camelot_key="2A"), _make_track("boost", camelot_key="9A")]

        self.assertEqual(apply_smart_filters(tracks, [], SmartFilterConfig(), anchor=anchor), tracks)
        self.assertEqual(apply_smart_filters(tracks, [], SmartFilterConfig(harmonic_flow=True)), tracks)
        self.assertEqual(
            _ids(apply_smart_filters(tracks, [], SmartFilterConfig(harmonic_flow=True), anchor=anchor)),
            ["anchor", "boost"],
        )

    def test_discovery_picks_are_filtered_through_their_track(self) -> None:
        breakdown = SynergyBreakdown(1.0, 1.0, 1.0, 1.0)
        picks = [
            DiscoveryPick(_make_track("ok"), 90, 70, "", 0.8, breakdown),
            DiscoveryPick(_make_track("nsfw", explicit=True), 95, 70, "", 0.9, breakdown),
        ]
        filtered = apply_smart_filters(picks, [], SmartFilterConfig(no_explicit=True))
        self.assertEqual(_ids(filtered), ["ok"])
        self.assertIsInstance(filtered[0], DiscoveryPick)


class SummaryAndPresetTests(unittest.TestCase):
    def test_summary_lists_active_filters(self) -> None:
        config = SmartFilterConfig(
            no_explicit=True,
            prevent_artist_repetition=True,
            artist_cooldown_minutes=15,
            era_filter_enabled=True,
            era_min_decade=1980,
            era_max_decade=1990,
            min_energy=75,
            vocal_focus=True,
            harmonic_flow=True,
        )
        self.assertEqual(
            filter_summary(config),
            [
                "No explicit content",
                "Artist cooldown: 15 min (5 songs)",
                "Era: 1980s-1990s",
                "Energy: 75%-100%",
                "Vocal focus",
                "Harmonic flow",
            ],
        )
        self.assertEqual(active_filter_count(config), 6)

    def test_presets(self) -> None:
        self.assertEqual(
            [p.preset_id for p in QUICK_PRESETS],
            ["family-friendly", "high-energy-throwback", "vocal-showcase", "peak-hour", "cool-down"],
        )
        throwback = get_preset("high-energy-throwback").config
        self.assertEqual(throwback.min_energy, 75)
        self.assertEqual((throwback.era_min_decade, throwback.era_max_decade), (1980, 1990))
        self.assertEqual(get_preset("cool-down").config.max_valence, 60)
        self.assertIsNone(get_preset("missing"))


if __name__ == "__main__":
    unittest.main()
