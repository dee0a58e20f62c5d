from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from loguru import logger

from synergy_dj.keys import compatibility_tier, track_wheel_key
from synergy_dj.models import CompatibilityResult, Tier, Track, clean_feature

MIN_HARMONIC_SCORE = 0.4


def classify_pool(anchor: Track, pool: Sequence[Track]) -> list[CompatibilityResult]:
    """Compatibility of moving from ``anchor`` to each pool track, in pool order."""
    anchor_key = track_wheel_key(anchor)
    return [compatibility_tier(anchor_key, track_wheel_key(track)) for track in pool]


def harmonic_flow(anchor: Track, pool: Sequence[Track]) -> list[Track]:
    """Order ``pool`` for a harmonic transition out of ``anchor``.

    The result starts with the anchor, followed by every pool track scoring at
    least ``MIN_HARMONIC_SCORE``, best first. Ties go to the higher
    ``match_score`` (absent or non-finite counts as 0), then to the
    earlier pool position. Returned tracks carry
    ``harmonic_score`` and ``harmonic_tier``.

    The pool comes back unchanged when the anchor has no resolvable key or
    when no track clears the threshold.
    """
    if track_wheel_key(anchor) is None:
        logger.debug(f"Anchor {anchor.track_id} has no key; harmonic flow inactive")
        return list(pool)

    ranked = []
    for index, (track, result) in enumerate(zip(pool, classify_pool(anchor, pool))):
        if track.track_id == anchor.track_id or result.score < MIN_HARMONIC_SCORE:
            continue
        ranked.append((result, clean_feature(track.match_score) or 0.0, index, track))

    if not ranked:
        logger.debug(f"No harmonic matches for anchor {anchor.track_id}; keeping pool order")
        return list(pool)

    ranked.sort(key=lambda item: (-item[0].score, -item[1], item[2]))
    matches = [
        replace(track, harmonic_score=result.score, harmonic_tier=result.tier)
        for result, _, _, track in ranked
    ]
    head = replace(anchor, harmonic_score=1.0, harmonic_tier=Tier.PERFECT)
    logger.debug(f"Harmonic flow from {anchor.track_id}: {len(matches)} matches")
    return [head, *matches]
