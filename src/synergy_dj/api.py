"""FastAPI web server exposing the curation engine."""
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from synergy_dj.analysis import build_tracks
from synergy_dj.config import load_settings
from synergy_dj.discovery import rank_discoveries
from synergy_dj.filters import apply_smart_filters, filter_summary, get_preset
from synergy_dj.harmonic import harmonic_flow
from synergy_dj.keys import compatibility_tier, parse_camelot
from synergy_dj.models import DiscoveryPick, EventInfo, SmartFilterConfig, Track
from synergy_dj.spotify_service import SpotifyService

app = FastAPI(title="Synergy DJ")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class TrackPayload(BaseModel):
    """Track with best-effort audio features, as supplied by the caller."""
    id: str
    title: str
    artists: list[str] = []
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
    popularity: int = Field(default=0, ge=0, le=100)
    release_year: int | None = None
    explicit: bool = False
    duration_ms: int = 0
    camelot_key: str | None = None
    match_score: float | None = None

    def to_track(self) -> Track:
        return Track(
            track_id=self.id,
            title=self.title,
            artist_names=tuple(self.artists),
            album=self.album,
            tempo=self.tempo,
            key=self.key,
            mode=self.mode,
            energy=self.energy,
            danceability=self.danceability,
            valence=self.valence,
            acousticness=self.acousticness,
            instrumentalness=self.instrumentalness,
            speechiness=self.speechiness,
            loudness=self.loudness,
            popularity=self.popularity,
            release_year=self.release_year,
            explicit=self.explicit,
            duration_ms=self.duration_ms,
            camelot_key=self.camelot_key,
            match_score=self.match_score,
        )


class EventPayload(BaseModel):
    name: str = ""
    theme: str = ""
    description: str = ""

    def to_event(self) -> EventInfo:
        return EventInfo(name=self.name, theme=self.theme, description=self.description)


class FilterPayload(BaseModel):
    no_explicit: bool = False
    prevent_artist_repetition: bool = False
    artist_cooldown_minutes: int = Field(default=30, ge=0)
    era_filter_enabled: bool = False
    era_min_decade: int = 1960
    era_max_decade: int = 2020
    min_energy: int = Field(default=0, ge=0, le=100)
    max_energy: int = Field(default=100, ge=0, le=100)
    min_danceability: int = Field(default=0, ge=0, le=100)
    max_danceability: int = Field(default=100, ge=0, le=100)
    min_valence: int = Field(default=0, ge=0, le=100)
    max_valence: int = Field(default=100, ge=0, le=100)
    vocal_focus: bool = False
    harmonic_flow: bool = False

    def to_config(self) -> SmartFilterConfig:
        return SmartFilterConfig(**self.model_dump())


class TrackOut(BaseModel):
    id: str
    title: str
    artist: str
    camelot_key: str | None = None
    popularity: int = 0
    harmonic_score: float | None = None
    harmonic_tier: str | None = None


class DiscoveryPickOut(BaseModel):
    track: TrackOut
    synergy_score: int
    theme_match: int
    rationale: str


class DiscoveryRequest(BaseModel):
    queue: list[TrackPayload]
    candidates: list[TrackPayload]
    event: EventPayload | None = None
    filters: FilterPayload | None = None
    preset: str | None = None


class SpotifyDiscoveryRequest(BaseModel):
    queue_track_ids: list[str]
    event: EventPayload | None = None
    filters: FilterPayload | None = None
    preset: str | None = None


class DiscoveryResponse(BaseModel):
    picks: list[DiscoveryPickOut]
    active_filters: list[str] = []


class HarmonicFlowRequest(BaseModel):
    anchor: TrackPayload
    pool: list[TrackPayload]


class FilterRequest(BaseModel):
    tracks: list[TrackPayload]
    queue: list[TrackPayload] = []
    anchor: TrackPayload | None = None
    filters: FilterPayload | None = None
    preset: str | None = None


class FilterResponse(BaseModel):
    tracks: list[TrackOut]
    active_filters: list[str] = []


class TrackSearchRequest(BaseModel):
    query: str
    limit: int = Field(default=20, ge=1, le=50)


class KeyCompatibilityRequest(BaseModel):
    from_key: str
    to_key: str


class KeyCompatibilityResponse(BaseModel):
    score: float
    tier: str


def get_spotify_service() -> SpotifyService:
    """Initialize the Spotify collaborator."""
    return SpotifyService(market=load_settings().market)


def _track_out(track: Track) -> TrackOut:
    return TrackOut(
        id=track.track_id,
        title=track.title,
        artist=track.artist or "Unknown",
        camelot_key=track.camelot or track.camelot_key,
        popularity=track.popularity,
        harmonic_score=track.harmonic_score,
        harmonic_tier=track.harmonic_tier.value if track.harmonic_tier else None,
    )


def _pick_out(pick: DiscoveryPick) -> DiscoveryPickOut:
    return DiscoveryPickOut(
        track=_track_out(pick.track),
        synergy_score=pick.synergy_score,
        theme_match=pick.theme_match,
        rationale=pick.rationale,
    )


def _resolve_filters(filters: FilterPayload | None, preset: str | None) -> SmartFilterConfig | None:
    if preset:
        found = get_preset(preset)
        if found is None:
            raise HTTPException(status_code=404, detail=f"Unknown filter preset '{preset}'")
        return found.config
    return filters.to_config() if filters else None


def _discovery_response(
    queue: list[Track],
    candidates: list[Track],
    event: EventPayload | None,
    config: SmartFilterConfig | None,
) -> DiscoveryResponse:
    settings = load_settings()
    picks = rank_discoveries(
        queue,
        candidates,
        event=event.to_event() if event else None,
        popularity_window=settings.popularity_window,
        limit=settings.discovery_limit,
    )
    if config is not None:
        picks = apply_smart_filters(picks, queue, config)
    return DiscoveryResponse(
        picks=[_pick_out(p) for p in picks],
        active_filters=filter_summary(config) if config else [],
    )


@app.get("/")
def index():
    return {"message": "Synergy DJ API is running. Use /api/discovery to find hidden gems."}


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/api/keys/compatibility", response_model=KeyCompatibilityResponse)
def key_compatibility(request: KeyCompatibilityRequest):
    """Classify a transition between two Camelot keys."""
    for label in (request.from_key, request.to_key):
        if parse_camelot(label) is None:
            raise HTTPException(status_code=422, detail=f"Invalid Camelot key '{label}'")
    result = compatibility_tier(request.from_key, request.to_key)
    return KeyCompatibilityResponse(score=result.score, tier=result.tier.value)


@app.post("/api/discovery", response_model=DiscoveryResponse)
def discover(request: DiscoveryRequest):
    """Rank caller-supplied candidates against the queue."""
    config = _resolve_filters(request.filters, request.preset)
    return _discovery_response(
        [t.to_track() for t in request.queue],
        [t.to_track() for t in request.candidates],
        request.event,
        config,
    )


@app.post("/api/discovery/spotify", response_model=DiscoveryResponse)
def discover_from_spotify(request: SpotifyDiscoveryRequest):
    """Fetch candidates and audio features from Spotify, then rank them."""
    try:
        config = _resolve_filters(request.filters, request.preset)
        service = get_spotify_service()
        settings = load_settings()
        queue, candidates = service.build_discovery_inputs(
            request.queue_track_ids,
            event=request.event.to_event() if request.event else None,
            limit=settings.recommendation_limit,
            popularity_window=settings.popularity_window,
        )
        if not queue:
            raise HTTPException(status_code=404, detail="None of the queued tracks were found")
        return _discovery_response(queue, candidates, request.event, config)

    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error: {str(e)}")


@app.post("/api/harmonic-flow", response_model=list[TrackOut])
def harmonic(request: HarmonicFlowRequest):
    """Order a pool for a harmonic transition out of the anchor track."""
    ordered = harmonic_flow(request.anchor.to_track(), [t.to_track() for t in request.pool])
    return [_track_out(t) for t in ordered]


@app.post("/api/filters", response_model=FilterResponse)
def smart_filters(request: FilterRequest):
    """Apply smart filters to a track list."""
    config = _resolve_filters(request.filters, request.preset) or SmartFilterConfig()
    filtered = apply_smart_filters(
        [t.to_track() for t in request.tracks],
        [t.to_track() for t in request.queue],
        config,
        anchor=request.anchor.to_track() if request.anchor else None,
    )
    return FilterResponse(tracks=[_track_out(t) for t in filtered], active_filters=filter_summary(config))


@app.post("/api/search", response_model=list[TrackOut])
def search(request: TrackSearchRequest):
    """Search the catalog for candidate tracks, with their audio features."""
    try:
        service = get_spotify_service()
        found = service.search_tracks(request.query, limit=request.limit)
        features = service.get_audio_features(t.get("id") for t in found)
        return [_track_out(t) for t in build_tracks(found, features)]

    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error: {str(e)}")
