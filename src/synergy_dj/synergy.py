from __future__ import annotations

import math
from typing import Iterable

from loguru import logger

from synergy_dj.keys import circular_distance
from synergy_dj.models import (
    MOOD_FEATURES,
    Fingerprint,
    SynergyBreakdown,
    SynergyResult,
    Track,
    clean_feature,
)

COSINE_WEIGHT = 0.6
TEMPO_WEIGHT = 0.2
KEY_WEIGHT = 0.1
MOOD_WEIGHT = 0.1

# (max BPM difference, compatibility), checked in order.
_TEMPO_TIERS = ((5.0, 1.0), (10.0, 0.8), (20.0, 0.6), (30.0, 0.4))
_TEMPO_FLOOR = 0.2


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def build_fingerprint(tracks: Iterable[Track]) -> Fingerprint:
    """Average the audio features of every track that has them.

    Tracks without audio features are left out of the average entirely.
    Key and mode are averaged over the tracks that carry them and are None
    when none does.

    Raises:
        ValueError: if no track has audio features.
    """
    measured = [t for t in tracks if t.has_audio_features]
    if not measured:
        raise ValueError("Cannot build a fingerprint without tracks that have audio features")

    keys = [k for k in (_pitch_class(t.key) for t in measured) if k is not None]
    modes = [m for m in (_mode(t.mode) for t in measured) if m is not None]

    averages = {
        name: _mean([clean_feature(getattr(t, name)) for t in measured])
        for name in MOOD_FEATURES
    }
    fingerprint = Fingerprint(
        tempo=_mean([clean_feature(t.tempo) for t in measured]),
        key=round_half_up(_mean(keys)) if keys else None,
        mode=round_half_up(_mean(modes)) if modes else None,
        track_count=len(measured),
        **averages,
    )
    logger.debug(
        f"Fingerprint from {len(measured)} tracks: tempo={fingerprint.tempo:.1f}, "
        f"energy={fingerprint.energy:.2f}, valence={fingerprint.valence:.2f}"
    )
    return fingerprint


def tempo_compatibility(tempo_a: float, tempo_b: float) -> float:
    diff = abs(tempo_a - tempo_b)
    for limit, score in _TEMPO_TIERS:
        if diff <= limit:
            return score
    return _TEMPO_FLOOR


def key_compatibility(key_a: int | None, key_b: int | None) -> float:
    if key_a is None or key_b is None:
        return 0.0
    return 1.0 - circular_distance(key_a, key_b) / 6.0


def mood_compatibility(energy_a: float, valence_a: float, energy_b: float, valence_b: float) -> float:
    return 1.0 - (abs(energy_a - energy_b) + abs(valence_a - valence_b)) / 2.0


def cosine_similarity(vector_a: list[float], vector_b: list[float]) -> float:
    if len(vector_a) != len(vector_b):
        raise ValueError("Vectors must have the same length")
    dot = sum(a * b for a, b in zip(vector_a, vector_b))
    magnitude_a = math.sqrt(sum(a * a for a in vector_a))
    magnitude_b = math.sqrt(sum(b * b for b in vector_b))
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0
    return dot / (magnitude_a * magnitude_b)


def feature_vector(source: Track | Fingerprint) -> list[float | None]:
    """Ten normalized dimensions; key and mode are None when unknown."""
    key = _pitch_class(source.key)
    mode = _mode(source.mode)
    return [
        clean_feature(source.tempo) / 200.0,
        key / 11.0 if key is not None else None,
        mode,
        clean_feature(source.danceability),
        clean_feature(source.energy),
        clean_feature(source.valence),
        (clean_feature(source.loudness) + 60.0) / 60.0,
        clean_feature(source.acousticness),
        clean_feature(source.instrumentalness),
        clean_feature(source.speechiness),
    ]


def _paired_vectors(a: list[float | None], b: list[float | None]) -> tuple[list[float], list[float]]:
    # Dimensions unknown on either side are dropped from both vectors.
    pairs = [(x, y) for x, y in zip(a, b) if x is not None and y is not None]
    return [x for x, _ in pairs], [y for _, y in pairs]


def score_synergy(candidate: Track, fingerprint: Fingerprint) -> SynergyResult | None:
    """Compatibility of ``candidate`` with ``fingerprint`` in [0, 1].

    Returns None when the candidate has no audio features; such tracks are
    never scored against synthetic values.
    """
    if not candidate.has_audio_features:
        return None

    vector_a, vector_b = _paired_vectors(feature_vector(candidate), feature_vector(fingerprint))
    cosine = cosine_similarity(vector_a, vector_b)
    tempo = tempo_compatibility(clean_feature(candidate.tempo), fingerprint.tempo)
    key_score = key_compatibility(_pitch_class(candidate.key), fingerprint.key)
    mood = mood_compatibility(
        clean_feature(candidate.energy),
        clean_feature(candidate.valence),
        fingerprint.energy,
        fingerprint.valence,
    )

    total = COSINE_WEIGHT * cosine + TEMPO_WEIGHT * tempo + KEY_WEIGHT * key_score + MOOD_WEIGHT * mood
    return SynergyResult(
        score=min(1.0, max(0.0, total)),
        breakdown=SynergyBreakdown(
            cosine_similarity=cosine,
            tempo_compatibility=tempo,
            key_compatibility=key_score,
            mood_compatibility=mood,
        ),
    )


def _pitch_class(value: object) -> int | None:
    number = clean_feature(value)
    if number is None or number != int(number) or not 0 <= number <= 11:
        return None
    return int(number)


def _mode(value: object) -> float | None:
    number = clean_feature(value)
    return number if number in (0.0, 1.0) else None


def synergy_explanation(track: Track, fingerprint: Fingerprint) -> str:
    parts: list[str] = []

    tempo_delta = clean_feature(track.tempo)
    if tempo_delta is not None:
        tempo_delta -= fingerprint.tempo
        if abs(tempo_delta) <= 5:
            parts.append("Perfect BPM match")
        elif abs(tempo_delta) <= 10:
            parts.append(f"Similar tempo ({tempo_delta:+.0f} BPM)")

    energy = clean_feature(track.energy)
    if energy is not None and abs(energy - fingerprint.energy) < 0.15:
        parts.append("Matching energy")

    valence = clean_feature(track.valence)
    if valence is not None and abs(valence - fingerprint.valence) < 0.15:
        parts.append("Similar mood")

    key = _pitch_class(track.key)
    if key is not None and fingerprint.key is not None and circular_distance(key, fingerprint.key) <= 1:
        parts.append("Harmonically compatible")

    return ", ".join(parts) if parts else "Musically similar"
