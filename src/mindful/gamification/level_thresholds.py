"""Level thresholds and computation.

The tiers are contiguous and non-overlapping; the last one is unbounded,
so every non-negative point total maps to exactly one level.
"""

from __future__ import annotations

from mindful.gamification.errors import InvalidPointsError

LEVELS: list[dict] = [
    {"level": 1, "name": "Iniciante", "min_points": 0, "max_points": 99},
    {"level": 2, "name": "Explorador", "min_points": 100, "max_points": 299},
    {"level": 3, "name": "Participante", "min_points": 300, "max_points": 599},
    {"level": 4, "name": "Engajado", "min_points": 600, "max_points": 999},
    {"level": 5, "name": "Veterano", "min_points": 1000, "max_points": 1999},
    {"level": 6, "name": "Mentor", "min_points": 2000, "max_points": 3999},
    {"level": 7, "name": "Expert", "min_points": 4000, "max_points": 7999},
    {"level": 8, "name": "Mestre", "min_points": 8000, "max_points": 14999},
    {"level": 9, "name": "Lenda", "min_points": 15000, "max_points": 29999},
    {"level": 10, "name": "Iluminado", "min_points": 30000, "max_points": None},
]

MAX_LEVEL = LEVELS[-1]["level"]


def _check(total_points: int) -> None:
    if total_points < 0:
        msg = f"Point total must be non-negative, got {total_points}"
        raise InvalidPointsError(msg)


def level_for(total_points: int) -> dict:
    """Return the tier whose range contains total_points."""
    _check(total_points)
    for tier in LEVELS:
        upper = tier["max_points"]
        if total_points >= tier["min_points"] and (upper is None or total_points <= upper):
            return tier
    # Unreachable while the table stays contiguous from 0.
    return LEVELS[0]


def get_level(level: int) -> dict | None:
    """Look up a tier by its level number."""
    for tier in LEVELS:
        if tier["level"] == level:
            return tier
    return None


def _next_tier(tier: dict) -> dict | None:
    return get_level(tier["level"] + 1)


def points_to_next_level(total_points: int) -> int:
    """Points still needed for the next tier; 0 at the top tier."""
    nxt = _next_tier(level_for(total_points))
    if nxt is None:
        return 0
    return nxt["min_points"] - total_points


def progress_percent(total_points: int) -> float:
    """Progress through the current tier in [0, 100]; 100 at the top tier."""
    current = level_for(total_points)
    nxt = _next_tier(current)
    if nxt is None:
        return 100.0
    span = nxt["min_points"] - current["min_points"]
    percent = (total_points - current["min_points"]) / span * 100
    return max(0.0, min(100.0, percent))


def level_progress(total_points: int) -> dict:
    """Current tier plus progress figures, as shown on the profile page."""
    current = level_for(total_points)
    return {
        "current_level": current,
        "progress_percent": round(progress_percent(total_points)),
        "points_in_level": total_points - current["min_points"],
        "points_to_next": points_to_next_level(total_points),
    }


def will_level_up(current_points: int, additional_points: int) -> dict:
    """Predict whether adding points crosses into a higher tier."""
    old = level_for(current_points)
    new = level_for(current_points + additional_points)
    crossed = new["level"] > old["level"]
    return {
        "will_level_up": crossed,
        "new_level": new if crossed else None,
        "old_level": old,
    }
