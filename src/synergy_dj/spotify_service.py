from __future__ import annotations

import os
import warnings
from collections import Counter
from typing import Iterable, Sequence

import spotipy
from loguru import logger
from requests.exceptions import HTTPError
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyClientCredentials

from synergy_dj.analysis import build_tracks
from synergy_dj.discovery import MAX_SEED_TRACKS, POPULARITY_WINDOW, discovery_seeds
from synergy_dj.models import EventInfo, Track
from synergy_dj.theme import MAX_SEED_GENRES, event_seed_genres


def _status(exc: HTTPError | SpotifyException) -> int | None:
    if isinstance(exc, HTTPError):
        return exc.response.status_code if exc.response is not None else None
    return exc.http_status


def _chunks(items: Sequence[str], size: int) -> Iterable[list[str]]:
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


class SpotifyService:
    # Spotify's search endpoint enforces a maximum of 20 results per page for
    # restricted app credentials.
    SEARCH_PAGE_LIMIT = 20
    AUDIO_FEATURES_BATCH = 100
    TRACKS_BATCH = 50
    ARTISTS_BATCH = 50

    def __init__(self, market: str = "US") -> None:
        self._validate_credentials()
        self.market = market
        self.client = spotipy.Spotify(auth_manager=SpotifyClientCredentials())

    @staticmethod
    def _validate_credentials() -> None:
        missing = [name for name in ("SPOTIPY_CLIENT_ID", "SPOTIPY_CLIENT_SECRET") if not os.getenv(name)]
        if missing:
            missing_list = ", ".join(missing)
            raise ValueError(
                f"Missing Spotify credentials: {missing_list}. "
                "Set them in environment variables or local .env file."
            )

    def search_tracks(self, query: str, limit: int = 20) -> list[dict]:
        tracks: list[dict] = []
        offset = 0
        while len(tracks) < limit:
            page_size = min(self.SEARCH_PAGE_LIMIT, limit - len(tracks))
            try:
                page = self.client.search(q=query, type="track", limit=page_size, offset=offset, market=self.market)
            except (HTTPError, SpotifyException) as exc:
                if _status(exc) == 400:
                    warnings.warn(
                        f"Spotify search returned 400 Bad Request (limit={page_size}, offset={offset}). "
                        "Returning tracks collected so far.",
                        RuntimeWarning,
                        stacklevel=2,
                    )
                    break
                raise
            items = page.get("tracks", {}).get("items", [])
            if not items:
                break
            tracks.extend(items)
            offset += len(items)
        return tracks[:limit]

    def get_recommendations(
        self,
        seed_tracks: Sequence[str],
        seed_genres: Sequence[str] = (),
        limit: int = 50,
        popularity_window: tuple[int, int] = POPULARITY_WINDOW,
    ) -> list[dict]:
        min_popularity, max_popularity = popularity_window
        kwargs = {
            "seed_tracks": list(seed_tracks)[: MAX_SEED_TRACKS],
            "limit": limit,
            "min_popularity": min_popularity,
            "max_popularity": max_popularity,
            "target_popularity": (min_popularity + max_popularity) // 2,
        }
        if seed_genres:
            kwargs["seed_genres"] = list(seed_genres)[: MAX_SEED_GENRES]
        try:
            result = self.client.recommendations(**kwargs)
        except (HTTPError, SpotifyException) as exc:
            warnings.warn(
                f"Spotify recommendations failed with status {_status(exc)}. "
                "No discovery candidates available.",
                RuntimeWarning,
                stacklevel=2,
            )
            return []
        return (result or {}).get("tracks") or []

    def get_audio_features(self, track_ids: Iterable[str]) -> dict[str, dict]:
        """Audio features keyed by track id; ids Spotify could not analyse are absent."""
        ids = list(dict.fromkeys(tid for tid in track_ids if tid))
        features: dict[str, dict] = {}
        for batch in _chunks(ids, self.AUDIO_FEATURES_BATCH):
            try:
                results = self.client.audio_features(batch) or []
            except (HTTPError, SpotifyException) as exc:
                if _status(exc) == 403:
                    warnings.warn(
                        "Spotify audio-features endpoint returned 403 Forbidden. "
                        "This endpoint may be restricted for your app credentials. "
                        "Tracks in this batch will be left out of scoring.",
                        RuntimeWarning,
                        stacklevel=2,
                    )
                    continue
                raise
            for track_id, result in zip(batch, results):
                if result:
                    features[track_id] = result
        logger.debug(f"Audio features for {len(features)}/{len(ids)} tracks")
        return features

    def hydrate_tracks(self, track_ids: Iterable[str]) -> list[dict]:
        ids = [tid for tid in track_ids if tid]
        hydrated: list[dict] = []
        for batch in _chunks(ids, self.TRACKS_BATCH):
            page = self.client.tracks(batch, market=self.market)
            hydrated.extend(t for t in (page or {}).get("tracks", []) if t)
        return hydrated

    def dominant_genres(self, tracks: Sequence[dict], limit: int = MAX_SEED_GENRES) -> list[str]:
        artist_ids = list(dict.fromkeys(
            a["id"] for t in tracks for a in t.get("artists", []) if a.get("id")
        ))
        counts: Counter[str] = Counter()
        for batch in _chunks(artist_ids, self.ARTISTS_BATCH):
            page = self.client.artists(batch)
            for artist in (page or {}).get("artists", []):
                if artist:
                    counts.update(artist.get("genres") or [])
        return [genre for genre, _ in counts.most_common(limit)]

    def build_discovery_inputs(
        self,
        queue_track_ids: Sequence[str],
        event: EventInfo | None = None,
        limit: int = 50,
        popularity_window: tuple[int, int] = POPULARITY_WINDOW,
    ) -> tuple[list[Track], list[Track]]:
        """Fetch everything the discovery ranking needs: (queue, candidates)."""
        queue_dicts = self.hydrate_tracks(queue_track_ids)
        genres = event_seed_genres(event) if event is not None else []
        if not genres:
            genres = self.dominant_genres(queue_dicts)

        bare_queue = build_tracks(queue_dicts, {})
        seed_ids, seed_genres = discovery_seeds(bare_queue, genres)
        if not seed_ids:
            return bare_queue, []

        candidate_dicts = self.get_recommendations(
            seed_ids, seed_genres, limit=limit, popularity_window=popularity_window
        )
        features = self.get_audio_features(
            [t["id"] for t in queue_dicts] + [t.get("id") for t in candidate_dicts]
        )
        return build_tracks(queue_dicts, features), build_tracks(candidate_dicts, features)
