from __future__ import annotations

from synergy_dj.models import MOOD_FEATURES, Track, clean_feature


def _release_year(track: dict) -> int | None:
    release_date = (track.get("album") or {}).get("release_date") or track.get("release_date") or ""
    year = release_date[:4]
    return int(year) if year.isdigit() else None


def _pitch_class(value: object) -> int | None:
    # Spotify reports an undetected key as -1.
    number = clean_feature(value)
    if number is None or number != int(number) or not 0 <= number <= 11:
        return None
    return int(number)


def _mode(value: object) -> int | None:
    number = clean_feature(value)
    if number not in (0.0, 1.0):
        return None
    return int(number)


def build_track(track: dict, audio_features: dict | None = None) -> Track:
    """Build a Track from a Spotify track object and its audio-features object.

    Missing or non-finite feature values stay None; they are never replaced
    by defaults.
    """
    audio_features = audio_features or {}

    tempo = clean_feature(audio_features.get("tempo"))
    if tempo is not None and tempo <= 0:
        tempo = None

    moods = {name: clean_feature(audio_features.get(name)) for name in MOOD_FEATURES}

    return Track(
        track_id=track["id"],
        title=track.get("name", ""),
        artist_names=tuple(a.get("name", "") for a in track.get("artists", []) if a.get("name")),
        album=(track.get("album") or {}).get("name", ""),
        tempo=tempo,
        key=_pitch_class(audio_features.get("key")),
        mode=_mode(audio_features.get("mode")),
        popularity=int(track.get("popularity") or 0),
        release_year=_release_year(track),
        explicit=bool(track.get("explicit", False)),
        duration_ms=int(track.get("duration_ms") or 0),
        **moods,
    )


def build_tracks(tracks: list[dict], features_by_id: dict[str, dict]) -> list[Track]:
    return [build_track(t, features_by_id.get(t["id"])) for t in tracks if t and t.get("id")]
