"""
Display formatting for times, paces and stat deltas.

Usage:
    from formatting import format_time, format_pace

    format_time(1344)   # '22:24'
    format_pace(1344)   # '4:29/km'
"""

import math
from typing import Dict, Optional


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_time(seconds) -> str:
    """Finish time as m:ss, or h:mm:ss from one hour up."""
    total = _round_half_up(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_pace(seconds, distance_km: float = 5.0) -> str:
    """
    Pace per km as m:ss/km.

    Rounds the whole number of seconds per km before splitting, so 239.6 s/km
    renders as 4:00/km rather than 3:60/km.
    """
    per_km = _round_half_up(seconds / distance_km)
    minutes, secs = divmod(per_km, 60)
    return f"{minutes}:{secs:02d}/km"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_delta(current: float, previous: Optional[float]) -> Optional[Dict[str, str]]:
    """Change between two percentages, e.g. age grades, with an arrow and colour."""
    if previous is None:
        return None
    delta = current - previous
    is_positive = delta > 0
    return {
        "text": f"{'↑' if is_positive else '↓'} {'+' if is_positive else ''}{delta:.1f}%",
        "color": "green" if is_positive else "red",
    }


def gender_symbol(age_category: str) -> str:
    """♂ or ♀ from a category code such as VM40-44, SW25-29 or JM10."""
    if age_category.startswith("V") or age_category.startswith("S"):
        return "♂" if age_category[1:2] == "M" else "♀"
    return "♂" if age_category.startswith("JM") else "♀"
