"""Smart filters applied to recommendation and discovery lists before display.

Stages run in a fixed order, each on the list left by the previous one:

1. explicit content
2. artist repetition cooldown
3. era (decade) range
4. energy / danceability / valence ranges
5. vocal focus (a stable sort, never removes tracks)
6. harmonic flow around an anchor track (only when an anchor is given)

Artist cooldown compares primary artist names exactly, as they are stored.
The harmonic stage returns plain tracks, unwrapping discovery picks.

A disabled stage returns its input untouched. Applying the pipeline twice
with the same config gives the same list as applying it once.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Sequence, TypeVar

from loguru import logger

from synergy_dj.harmonic import harmonic_flow
from synergy_dj.models import SmartFilterConfig, Track, clean_feature

T = TypeVar("T")

# Assumed average track length used to turn cooldown minutes into queue entries.
MINUTES_PER_TRACK = 3
MISSING_FEATURE_PERCENT = 50.0
MISSING_INSTRUMENTALNESS = 0.5

_RANGES = (
    ("energy", "min_energy", "max_energy"),
    ("danceability", "min_danceability", "max_danceability"),
    ("valence", "min_valence", "max_valence"),
)


def _track_of(item: object) -> Track:
    # Discovery picks wrap their track; plain tracks pass through.
    return getattr(item, "track", item)


def filter_explicit(items: Sequence[T], config: SmartFilterConfig) -> list[T]:
    if not config.no_explicit:
        return list(items)
    return [item for item in items if not _track_of(item).explicit]


def cooldown_length(cooldown_minutes: int) -> int:
    return max(0, int(cooldown_minutes) // MINUTES_PER_TRACK)


def recent_artists(queue: Sequence[Track], cooldown_minutes: int) -> set[str]:
    count = cooldown_length(cooldown_minutes)
    if count == 0:
        return set()
    return {t.artist for t in queue[-count:] if t.artist}


def filter_artist_cooldown(
    items: Sequence[T], queue: Sequence[Track], config: SmartFilterConfig
) -> list[T]:
    if not config.prevent_artist_repetition:
        return list(items)
    blocked = recent_artists(queue, config.artist_cooldown_minutes)
    if not blocked:
        return list(items)
    return [item for item in items if _track_of(item).artist not in blocked]


def filter_era(
    items: Sequence[T], config: SmartFilterConfig, current_year: int | None = None
) -> list[T]:
    if not config.era_filter_enabled:
        return list(items)
    fallback_year = current_year if current_year is not None else date.today().year

    def in_era(item: T) -> bool:
        year = _track_of(item).release_year or fallback_year
        decade = year // 10 * 10
        return config.era_min_decade <= decade <= config.era_max_decade

    return [item for item in items if in_era(item)]


def feature_percent(track: Track, feature: str) -> float:
    value = clean_feature(getattr(track, feature))
    if value is None:
        return MISSING_FEATURE_PERCENT
    return round(value * 100.0, 6)


def filter_feature_ranges(items: Sequence[T], config: SmartFilterConfig) -> list[T]:
    filtered = list(items)
    for feature, low_name, high_name in _RANGES:
        low = getattr(config, low_name)
        high = getattr(config, high_name)
        if low <= 0 and high >= 100:
            continue
        filtered = [
            item for item in filtered
            if low <= feature_percent(_track_of(item), feature) <= high
        ]
    return filtered


def instrumentalness_or_default(track: Track) -> float:
    value = clean_feature(track.instrumentalness)
    return MISSING_INSTRUMENTALNESS if value is None else value


def sort_vocal_focus(items: Sequence[T], config: SmartFilterConfig) -> list[T]:
    if not config.vocal_focus:
        return list(items)
    return sorted(items, key=lambda item: instrumentalness_or_default(_track_of(item)))


def order_harmonic_flow(
    items: Sequence[T], config: SmartFilterConfig, anchor: Track | None = None
) -> list[T] | list[Track]:
    if not config.harmonic_flow or anchor is None:
        return list(items)
    return harmonic_flow(anchor, [_track_of(item) for item in items])


def apply_smart_filters(
    items: Sequence[T],
    queue: Sequence[Track],
    config: SmartFilterConfig,
    current_year: int | None = None,
    anchor: Track | None = None,
) -> list[T] | list[Track]:
    """Run every stage in order and return a new list; ``items`` is not modified."""
    filtered = filter_explicit(items, config)
    filtered = filter_artist_cooldown(filtered, queue, config)
    filtered = filter_era(filtered, config, current_year)
    filtered = filter_feature_ranges(filtered, config)
    filtered = sort_vocal_focus(filtered, config)
    filtered = order_harmonic_flow(filtered, config, anchor)
    logger.debug(f"Smart filters kept {len(filtered)}/{len(items)} tracks")
    return filtered


def active_filter_count(config: SmartFilterConfig) -> int:
    count = sum(
        1 for flag in (
            config.no_explicit,
            config.prevent_artist_repetition,
            config.era_filter_enabled,
            config.vocal_focus,
            config.harmonic_flow,
        ) if flag
    )
    count += sum(
        1 for _, low, high in _RANGES
        if getattr(config, low) > 0 or getattr(config, high) < 100
    )
    return count


def filter_summary(config: SmartFilterConfig) -> list[str]:
    summary: list[str] = []
    if config.no_explicit:
        summary.append("No explicit content")
    if config.prevent_artist_repetition:
        songs = cooldown_length(config.artist_cooldown_minutes)
        summary.append(f"Artist cooldown: {config.artist_cooldown_minutes} min ({songs} songs)")
    if config.era_filter_enabled:
        summary.append(f"Era: {config.era_min_decade}s-{config.era_max_decade}s")
    for label, low, high in (("Energy", "min_energy", "max_energy"),
                             ("Danceability", "min_danceability", "max_danceability"),
                             ("Mood", "min_valence", "max_valence")):
        lo, hi = getattr(config, low), getattr(config, high)
        if lo > 0 or hi < 100:
            summary.append(f"{label}: {lo}%-{hi}%")
    if config.vocal_focus:
        summary.append("Vocal focus")
    if config.harmonic_flow:
        summary.append("Harmonic flow")
    return summary


@dataclass(frozen=True, slots=True)
class QuickPreset:
    preset_id: str
    name: str
    description: str
    config: SmartFilterConfig


QUICK_PRESETS: tuple[QuickPreset, ...] = (
    QuickPreset(
        "family-friendly",
        "Family Friendly",
        "No explicit content",
        SmartFilterConfig(no_explicit=True),
    ),
    QuickPreset(
        "high-energy-throwback",
        "High-Energy Throwback",
        "Intense nostalgic hits from the 80s and 90s",
        SmartFilterConfig(
            min_energy=75,
            era_filter_enabled=True,
            era_min_decade=1980,
            era_max_decade=1990,
            prevent_artist_repetition=True,
            artist_cooldown_minutes=9,
        ),
    ),
    QuickPreset(
        "vocal-showcase",
        "Vocal Showcase",
        "Powerful vocals, wide artist variety",
        SmartFilterConfig(
            vocal_focus=True,
            prevent_artist_repetition=True,
            artist_cooldown_minutes=30,
        ),
    ),
    QuickPreset(
        "peak-hour",
        "Peak Hour",
        "Maximum energy and danceability",
        SmartFilterConfig(
            min_energy=80,
            min_danceability=70,
            prevent_artist_repetition=True,
            artist_cooldown_minutes=15,
        ),
    ),
    QuickPreset(
        "cool-down",
        "Cool Down / End of Night",
        "Mellow, soulful vibes",
        SmartFilterConfig(
            max_energy=50,
            max_valence=60,
            prevent_artist_repetition=True,
            artist_cooldown_minutes=9,
        ),
    ),
)


def get_preset(preset_id: str) -> QuickPreset | None:
    return next((p for p in QUICK_PRESETS if p.preset_id == preset_id), None)
