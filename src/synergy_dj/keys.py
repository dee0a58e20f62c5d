"""Camelot wheel key theory.

Pitch-class/mode pairs are placed on a 24-position wheel: twelve rotational
numbers, each with a minor ("A") and a major ("B") polarity. The numeric
placement comes from a fixed lookup table rather than a formula so that the
labels stay identical to the ones already stored and displayed ("8A", "8B").
"""
from __future__ import annotations

import re

from synergy_dj.models import CompatibilityResult, Tier, WheelKey, clean_feature

# Pitch class (0 = C ... 11 = B) -> wheel number.
MAJOR_WHEEL_NUMBERS = {
    0: 8,
    1: 3,
    2: 10,
    3: 5,
    4: 12,
    5: 7,
    6: 2,
    7: 9,
    8: 4,
    9: 11,
    10: 6,
    11: 1,
}

MINOR_WHEEL_NUMBERS = {
    0: 5,
    1: 12,
    2: 7,
    3: 2,
    4: 9,
    5: 4,
    6: 11,
    7: 6,
    8: 1,
    9: 8,
    10: 3,
    11: 10,
}

MAJOR = "B"
MINOR = "A"

_CAMELOT_RE = re.compile(r"^\s*(\d{1,2})\s*([AB])\s*$", re.IGNORECASE)

# (distance, same polarity) -> (score, tier); distance-1 same-polarity pairs
# are resolved by direction in compatibility_tier.
_TIER_TABLE: dict[tuple[int, bool], tuple[float, Tier]] = {
    (0, True): (1.0, Tier.PERFECT),
    (0, False): (0.9, Tier.RELATIVE),
    (1, False): (0.65, Tier.ADJACENT),
    (2, True): (0.5, Tier.COMPATIBLE),
    (2, False): (0.4, Tier.COMPATIBLE),
}
_STEP_SCORE = 0.8
_DISTANT = CompatibilityResult(0.2, Tier.DISTANT)


def _as_int(value: object) -> int | None:
    number = clean_feature(value)
    if number is None or number != int(number):
        return None
    return int(number)


def to_wheel_position(pitch_class: object, mode: object) -> WheelKey | None:
    """Place a pitch-class/mode pair on the wheel; None means "unknown"."""
    pc = _as_int(pitch_class)
    md = _as_int(mode)
    if pc is None or md is None or not 0 <= pc <= 11 or md not in (0, 1):
        return None
    if md == 1:
        return WheelKey(MAJOR_WHEEL_NUMBERS[pc], MAJOR)
    return WheelKey(MINOR_WHEEL_NUMBERS[pc], MINOR)


def parse_camelot(label: str | None) -> WheelKey | None:
    """Parse a label such as ``"8a"`` or ``"12B"``; numbers wrap into 1..12."""
    if not label:
        return None
    match = _CAMELOT_RE.match(label)
    if not match:
        return None
    number = (int(match.group(1)) - 1) % 12 + 1
    return WheelKey(number, match.group(2).upper())


def resolve_key(key: WheelKey | str | None) -> WheelKey | None:
    if isinstance(key, WheelKey):
        return key
    if isinstance(key, str):
        return parse_camelot(key)
    return None


def circular_distance(a: int, b: int) -> int:
    """Shortest rotational distance (0..6) between two positions on a 12-step circle."""
    diff = abs(int(a) - int(b)) % 12
    return min(diff, 12 - diff)


def is_clockwise_step(a: int, b: int) -> bool:
    return (int(b) - int(a) + 12) % 12 == 1


def compatibility_tier(
    key_a: WheelKey | str | None, key_b: WheelKey | str | None
) -> CompatibilityResult:
    """Classify moving from ``key_a`` to ``key_b``.

    Not symmetric: one clockwise step is an energy boost, the reverse step is
    an energy drop. Unknown keys are always distant.
    """
    a = resolve_key(key_a)
    b = resolve_key(key_b)
    if a is None or b is None:
        return _DISTANT

    distance = circular_distance(a.number, b.number)
    same_polarity = a.polarity == b.polarity
    if distance == 1 and same_polarity:
        tier = Tier.ENERGY_BOOST if is_clockwise_step(a.number, b.number) else Tier.ENERGY_DROP
        return CompatibilityResult(_STEP_SCORE, tier)

    entry = _TIER_TABLE.get((distance, same_polarity))
    if entry is None:
        return _DISTANT
    score, tier = entry
    return CompatibilityResult(score, tier)


def track_wheel_key(track) -> WheelKey | None:
    """Wheel key of a track: numeric key+mode first, then its Camelot label."""
    wheel = to_wheel_position(track.key, track.mode)
    if wheel is not None:
        return wheel
    return parse_camelot(track.camelot_key)


def compatible_keys(key: WheelKey | str) -> dict[str, str] | None:
    wheel = resolve_key(key)
    if wheel is None:
        return None
    next_number = wheel.number % 12 + 1
    prev_number = (wheel.number - 2) % 12 + 1
    return {
        "perfect": wheel.label,
        "energy_boost": f"{next_number}{wheel.polarity}",
        "energy_drop": f"{prev_number}{wheel.polarity}",
    }


def harmonic_description(
    key: WheelKey | str, target_key: WheelKey | str
) -> tuple[str, str] | None:
    """Describe moving from ``target_key`` to ``key`` when it is a wheel neighbour."""
    wheel = resolve_key(key)
    neighbours = compatible_keys(target_key)
    if wheel is None or neighbours is None:
        return None
    if wheel.label == neighbours["perfect"]:
        return "Perfect Match", "Same key. Will mix seamlessly."
    if wheel.label == neighbours["energy_boost"]:
        return "Energy Boost", "One step up. Will raise the energy."
    if wheel.label == neighbours["energy_drop"]:
        return "Energy Drop", "One step down. Will mellow the vibe."
    return None
