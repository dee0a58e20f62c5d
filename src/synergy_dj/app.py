from __future__ import annotations

import argparse

from synergy_dj.config import env_int, load_local_env_file, load_settings
from synergy_dj.discovery import rank_discoveries
from synergy_dj.filters import QUICK_PRESETS, apply_smart_filters, get_preset
from synergy_dj.models import DiscoveryPick, EventInfo


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synergy DJ hidden-gem discovery")
    parser.add_argument(
        "--queue",
        nargs="+",
        required=True,
        metavar="TRACK_ID",
        help="Spotify track ids currently in the play queue, oldest first",
    )
    parser.add_argument("--event-name", default="", help="Event name used for theme matching")
    parser.add_argument("--event-theme", default="", help="Event theme used for theme matching")
    parser.add_argument("--event-description", default="", help="Event description used for theme matching")
    parser.add_argument(
        "--preset",
        choices=[p.preset_id for p in QUICK_PRESETS],
        help="Smart filter preset applied to the discovery picks",
    )
    parser.add_argument(
        "--limit",
        type=int,
        nargs="?",
        default=env_int("RECOMMENDATION_LIMIT", 50),
        const=env_int("RECOMMENDATION_LIMIT", 50),
        help="Number of recommendation candidates (defaults to RECOMMENDATION_LIMIT env or 50)",
    )
    return parser.parse_args(argv)


def event_from_args(args: argparse.Namespace) -> EventInfo | None:
    event = EventInfo(name=args.event_name, theme=args.event_theme, description=args.event_description)
    return None if event.is_empty else event


def format_pick(position: int, pick: DiscoveryPick) -> str:
    track = pick.track
    artists = ", ".join(track.artist_names) or "Unknown"
    key = track.camelot or "--"
    return (
        f"{position:>2}. {track.title} - {artists} [{key}] "
        f"synergy={pick.synergy_score} theme={pick.theme_match} pop={track.popularity}\n"
        f"    {pick.rationale}"
    )


def main(argv: list[str] | None = None) -> None:
    load_local_env_file()
    args = parse_args(argv)
    settings = load_settings()
    from synergy_dj.spotify_service import SpotifyService

    service = SpotifyService(market=settings.market)
    event = event_from_args(args)

    queue, candidates = service.build_discovery_inputs(
        args.queue, event=event, limit=args.limit, popularity_window=settings.popularity_window
    )
    if not queue:
        print("None of the queued tracks were found.")
        return

    picks = rank_discoveries(
        queue,
        candidates,
        event=event,
        popularity_window=settings.popularity_window,
        limit=settings.discovery_limit,
    )
    if args.preset:
        picks = apply_smart_filters(picks, queue, get_preset(args.preset).config)

    if not picks:
        print("No hidden gems found for this queue.")
        return

    print(f"Hidden gems for a queue of {len(queue)} tracks")
    for position, pick in enumerate(picks, start=1):
        print(format_pick(position, pick))


if __name__ == "__main__":
    main()
