from __future__ import annotations

from typing import Iterable, Sequence

from loguru import logger

from synergy_dj.models import DiscoveryPick, EventInfo, SynergyBreakdown, Track
from synergy_dj.synergy import build_fingerprint, round_half_up, score_synergy
from synergy_dj.theme import MAX_SEED_GENRES, pick_rationale, theme_match

POPULARITY_WINDOW = (20, 60)
DISCOVERY_LIMIT = 15
MIN_SYNERGY = 0.5
SYNERGY_WEIGHT = 0.6
THEME_WEIGHT = 0.4
MAX_SEED_TRACKS = 5


def discovery_seeds(
    queue: Sequence[Track], genres: Iterable[str] = ()
) -> tuple[list[str], list[str]]:
    """Seed track ids and genres for the caller's recommendation fetch."""
    track_ids = list(dict.fromkeys(t.track_id for t in queue if t.track_id))
    seed_genres = list(dict.fromkeys(g for g in genres if g))
    return track_ids[:MAX_SEED_TRACKS], seed_genres[:MAX_SEED_GENRES]


def rank_discoveries(
    queue: Sequence[Track],
    candidates: Iterable[Track],
    event: EventInfo | None = None,
    popularity_window: tuple[int, int] = POPULARITY_WINDOW,
    limit: int = DISCOVERY_LIMIT,
) -> list[DiscoveryPick]:
    """Rank "hidden gem" candidates against the aggregate vibe of the queue.

    Candidates without audio features, candidates already queued, and
    candidates outside the synergy threshold or popularity window are
    dropped. Returns an empty list when no fingerprint can be formed.
    """
    if not queue:
        return []
    if not any(t.has_audio_features for t in queue):
        logger.debug("No queued track has audio features; skipping discovery")
        return []

    fingerprint = build_fingerprint(queue)
    queued_ids = {t.track_id for t in queue}
    min_popularity, max_popularity = popularity_window

    scored: list[tuple[float, Track, float, float, SynergyBreakdown]] = []
    for candidate in candidates:
        if candidate.track_id in queued_ids:
            continue
        synergy = score_synergy(candidate, fingerprint)
        if synergy is None:
            logger.debug(f"Track {candidate.track_id} has no audio features; skipping")
            continue
        if synergy.score < MIN_SYNERGY:
            continue
        if not min_popularity <= candidate.popularity <= max_popularity:
            continue
        theme = theme_match(candidate, event)
        combined = SYNERGY_WEIGHT * synergy.score + THEME_WEIGHT * (theme / 100.0)
        scored.append((combined, candidate, synergy.score, theme, synergy.breakdown))

    scored.sort(key=lambda item: item[0], reverse=True)

    picks = [
        DiscoveryPick(
            track=track,
            synergy_score=round_half_up(synergy * 100),
            theme_match=round_half_up(theme),
            rationale=pick_rationale(theme, synergy, track.popularity),
            combined_score=combined,
            breakdown=breakdown,
        )
        for combined, track, synergy, theme, breakdown in scored[: max(0, limit)]
    ]
    logger.info(
        f"Discovery: {len(picks)} picks from {len(scored)} qualifying candidates "
        f"(fingerprint of {fingerprint.track_count} tracks)"
    )
    return picks
