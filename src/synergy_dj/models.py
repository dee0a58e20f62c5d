from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class Tier(str, Enum):
    PERFECT = "perfect"
    RELATIVE = "relative"
    ENERGY_BOOST = "energyBoost"
    ENERGY_DROP = "energyDrop"
    ADJACENT = "adjacent"
    COMPATIBLE = "compatible"
    DISTANT = "distant"


@dataclass(frozen=True, slots=True)
class WheelKey:
    """A point on the 24-position Camelot wheel (number 1..12, polarity A|B)."""

    number: int
    polarity: str

    @property
    def label(self) -> str:
        return f"{self.number}{self.polarity}"


@dataclass(frozen=True, slots=True)
class CompatibilityResult:
    score: float
    tier: Tier


def clean_feature(value: object) -> float | None:
    """Return ``value`` as a float, or None when it is absent or non-finite."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


@dataclass(frozen=True, slots=True)
class Track:
    track_id: str
    title: str
    artist_names: tuple[str, ...] = ()
    album: str = ""
    tempo: float | None = None
    key: int | None = None
    mode: int | None = None
    energy: float | None = None
    danceability: float | None = None
    valence: float | None = None
    acousticness: float | None = None
    instrumentalness: float | None = None
    speechiness: float | None = None
    loudness: float | None = None
    popularity: int = 0
    release_year: int | None = None
    explicit: bool = False
    duration_ms: int = 0
    # Caller-supplied Camelot label, used when no numeric key is known.
    camelot_key: str | None = None
    # Caller-supplied relevance (e.g. crowd match) used for tie-breaking.
    match_score: float | None = None
    harmonic_score: float | None = None
    harmonic_tier: Tier | None = None

    @property
    def artist(self) -> str:
        return self.artist_names[0] if self.artist_names else ""

    @property
    def has_audio_features(self) -> bool:
        tempo = clean_feature(self.tempo)
        if tempo is None or tempo <= 0:
            return False
        return all(clean_feature(getattr(self, name)) is not None for name in MOOD_FEATURES)

    @property
    def camelot(self) -> str | None:
        """Camelot label derived from key+mode; None unless both are present."""
        from synergy_dj.keys import to_wheel_position

        wheel = to_wheel_position(self.key, self.mode)
        return wheel.label if wheel else None


# Features averaged into a fingerprint besides tempo, key and mode.
MOOD_FEATURES = (
    "danceability",
    "energy",
    "valence",
    "loudness",
    "acousticness",
    "instrumentalness",
    "speechiness",
)


@dataclass(frozen=True, slots=True)
class Fingerprint:
    tempo: float
    key: int | None
    mode: int | None
    danceability: float
    energy: float
    valence: float
    loudness: float
    acousticness: float
    instrumentalness: float
    speechiness: float
    track_count: int = 1


@dataclass(frozen=True, slots=True)
class SynergyBreakdown:
    cosine_similarity: float
    tempo_compatibility: float
    key_compatibility: float
    mood_compatibility: float


@dataclass(frozen=True, slots=True)
class SynergyResult:
    score: float
    breakdown: SynergyBreakdown


@dataclass(frozen=True, slots=True)
class EventInfo:
    name: str = ""
    theme: str = ""
    description: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.theme or self.description)


@dataclass(frozen=True, slots=True)
class DiscoveryPick:
    track: Track
    synergy_score: int
    theme_match: int
    rationale: str
    combined_score: float
    breakdown: SynergyBreakdown


@dataclass(frozen=True, slots=True)
class SmartFilterConfig:
    """User-toggled filter options. Every stage is a no-op unless enabled."""

    no_explicit: bool = False
    prevent_artist_repetition: bool = False
    artist_cooldown_minutes: int = 30
    era_filter_enabled: bool = False
    era_min_decade: int = 1960
    era_max_decade: int = 2020
    min_energy: int = 0
    max_energy: int = 100
    min_danceability: int = 0
    max_danceability: int = 100
    min_valence: int = 0
    max_valence: int = 100
    vocal_focus: bool = False
    harmonic_flow: bool = False

    def __post_init__(self) -> None:
        set_ = object.__setattr__
        set_(self, "artist_cooldown_minutes", max(0, int(self.artist_cooldown_minutes)))
        for low, high in (
            ("min_energy", "max_energy"),
            ("min_danceability", "max_danceability"),
            ("min_valence", "max_valence"),
        ):
            lo = min(100, max(0, int(getattr(self, low))))
            hi = min(100, max(0, int(getattr(self, high))))
            if lo > hi:
                lo, hi = hi, lo
            set_(self, low, lo)
            set_(self, high, hi)
        min_decade = int(self.era_min_decade) // 10 * 10
        max_decade = int(self.era_max_decade) // 10 * 10
        if min_decade > max_decade:
            min_decade, max_decade = max_decade, min_decade
        set_(self, "era_min_decade", min_decade)
        set_(self, "era_max_decade", max_decade)
