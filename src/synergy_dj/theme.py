"""Event theme heuristics: keyword overlap scoring, genre seeds and rationale text."""
from __future__ import annotations

from synergy_dj.models import EventInfo, Track

# Score used when there is no event text to compare against.
DEFAULT_THEME_MATCH = 70.0
THEME_MATCH_FLOOR = 50.0
MIN_WORD_LENGTH = 3
MAX_SEED_GENRES = 5

EVENT_TYPES = (
    "pool party", "pool", "beach", "summer", "tropical",
    "wedding", "marriage", "ceremony", "reception",
    "corporate", "business", "office", "professional",
    "birthday", "anniversary", "celebration",
    "club", "nightclub", "dance", "party",
    "festival", "concert", "live",
    "romantic", "date", "dinner",
    "fitness", "workout", "gym",
    "yoga", "meditation", "relaxation",
)

KEYWORD_GENRES: dict[str, tuple[str, ...]] = {
    "pool party": ("tropical house", "summer", "dance pop", "pool party"),
    "pool": ("tropical house", "summer", "dance pop"),
    "beach": ("tropical house", "summer", "reggae", "calypso"),
    "summer": ("summer", "dance pop", "tropical house", "pop"),
    "tropical": ("tropical house", "reggae", "calypso", "dancehall"),
    "wedding": ("wedding", "romantic", "ballad", "love songs", "r&b"),
    "marriage": ("wedding", "romantic", "ballad"),
    "ceremony": ("wedding", "classical", "romantic"),
    "reception": ("wedding", "dance pop", "party"),
    "romantic": ("romantic", "r&b", "ballad", "love songs"),
    "date": ("romantic", "r&b", "jazz", "soul"),
    "dinner": ("jazz", "soul", "romantic", "ambient"),
    "corporate": ("corporate", "background", "ambient", "instrumental"),
    "business": ("corporate", "background", "ambient"),
    "office": ("corporate", "background", "ambient", "instrumental"),
    "professional": ("corporate", "background", "ambient"),
    "club": ("house", "techno", "edm", "dance"),
    "nightclub": ("house", "techno", "edm", "dance"),
    "dance": ("dance", "house", "edm", "dance pop"),
    "party": ("party", "dance pop", "house", "edm"),
    "festival": ("edm", "house", "techno", "dance"),
    "concert": ("rock", "pop", "indie", "alternative"),
    "live": ("live", "acoustic", "folk", "indie"),
    "fitness": ("workout", "electronic", "hip hop", "edm"),
    "workout": ("workout", "electronic", "hip hop", "edm"),
    "gym": ("workout", "electronic", "hip hop", "edm"),
    "yoga": ("ambient", "meditation", "chill", "instrumental"),
    "meditation": ("ambient", "meditation", "chill", "instrumental"),
    "relaxation": ("ambient", "chill", "instrumental", "meditation"),
    "birthday": ("party", "dance pop", "pop", "celebration"),
    "anniversary": ("romantic", "ballad", "love songs", "r&b"),
    "celebration": ("party", "dance pop", "celebration", "pop"),
}


def _event_text(event: EventInfo) -> str:
    return f"{event.name} {event.theme} {event.description}".lower()


def event_words(event: EventInfo) -> list[str]:
    return [w for w in _event_text(event).split() if len(w) >= MIN_WORD_LENGTH]


def extract_event_keywords(event: EventInfo) -> list[str]:
    """Known event types found in the text, then every word, without duplicates."""
    text = _event_text(event)
    keywords = [t for t in EVENT_TYPES if t in text]
    keywords.extend(event_words(event))
    return list(dict.fromkeys(keywords))


def event_seed_genres(event: EventInfo, limit: int = MAX_SEED_GENRES) -> list[str]:
    genres: dict[str, None] = {}
    for keyword in extract_event_keywords(event):
        for genre in KEYWORD_GENRES.get(keyword, ()):
            genres.setdefault(genre, None)
    return list(genres)[:limit]


def theme_match(track: Track, event: EventInfo | None) -> float:
    """Share of event words found in the track's title/artist/album text, 50..100."""
    if event is None or event.is_empty:
        return DEFAULT_THEME_MATCH
    words = event_words(event)
    if not words:
        return DEFAULT_THEME_MATCH
    track_text = f"{track.title} {track.artist} {track.album}".lower()
    matches = sum(1 for word in words if word in track_text)
    return min(100.0, matches / len(words) * 100.0 + THEME_MATCH_FLOOR)


def pick_rationale(theme_score: float, synergy_score: float, popularity: int) -> str:
    if theme_score >= 90:
        parts = ["Perfect theme match"]
    elif theme_score >= 80:
        parts = ["Excellent theme fit"]
    else:
        parts = ["Strong theme match"]

    if synergy_score >= 0.8:
        parts.append("Musically compatible")
    elif synergy_score >= 0.6:
        parts.append("Good musical flow")

    parts.append("Hidden gem" if popularity <= 40 else "Under the radar")
    return ". ".join(parts)
