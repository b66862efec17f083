"""
Run Statistics Engine
=====================
Derives the headline numbers shown on the dashboard from an athlete's
parkrun history.

Usage:
    from run_data import load_profile
    from run_stats import compute_run_stats

    profile = load_profile("data/profile.json")
    stats = compute_run_stats(profile.runs)
    print(stats.fastest_time, stats.streak.current, stats.streak.best)

Everything here is a pure function of the runs passed in (plus "now" for the
current streak). Nothing is validated: records are expected to have been
checked by run_data on the way in.

Week numbering
--------------
Consistency streaks bucket runs into "YYYY-WW" keys using the dashboard's
simplified week scheme, NOT ISO-8601:

    week = ceil((day_of_year_0 + weekday_of_jan1 + 1) / 7)   # Sunday = 0

so weeks start on Sunday, week 1 is the (possibly partial) week holding
Jan 1, and late-December dates can land in week 53. When stepping between
years, week 1 of year Y always follows week 52 of year Y-1. That makes a
streak through a week-53 date break at the year boundary; this is kept as-is
so streak values match the ones the dashboard has always shown.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from run_data import Run

RECENT_MEDIAN_WINDOW = 5
WEEKS_PER_YEAR = 52


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class Streak:
    """Consecutive weeks with at least one run."""
    current: int = 0
    best: int = 0


@dataclass(frozen=True)
class Placing:
    """Finishing position within a field."""
    position: int
    total_finishers: int


@dataclass(frozen=True)
class RunStats:
    """Dashboard summary of a run history."""
    total_runs: int
    fastest_time: float                  # seconds; inf when there are no runs
    recent_median_time: Optional[int]    # None when there are no runs
    best_age_grade: float
    best_age_grade_category: str
    best_top_percent: float              # lower is better; 100 = no data
    best_top_percent_run: Optional[Placing]
    unique_events: int
    streak: Streak

    @classmethod
    def empty(cls) -> RunStats:
        """Summary for an athlete with no runs yet."""
        return cls(
            total_runs=0,
            fastest_time=math.inf,
            recent_median_time=None,
            best_age_grade=0.0,
            best_age_grade_category="",
            best_top_percent=100.0,
            best_top_percent_run=None,
            unique_events=0,
            streak=Streak(0, 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict using the dashboard's field names."""
        placing = self.best_top_percent_run
        return {
            "totalRuns": self.total_runs,
            "fastestTime": None if math.isinf(self.fastest_time) else self.fastest_time,
            "recentMedianTime": self.recent_median_time,
            "bestAgeGrade": self.best_age_grade,
            "bestAgeGradeCategory": self.best_age_grade_category,
            "bestTopPercent": self.best_top_percent,
            "bestTopPercentRun": (
                {"position": placing.position, "totalFinishers": placing.total_finishers}
                if placing is not None else None
            ),
            "uniqueEvents": self.unique_events,
            "streak": {"current": self.streak.current, "best": self.streak.best},
        }


# =============================================================================
# ORDERING
# =============================================================================

def sort_runs_by_date_desc(runs: Iterable[Run]) -> List[Run]:
    """New list, most recent first. The input is left untouched."""
    return sorted(runs, key=lambda r: r.event_date, reverse=True)


def sort_runs_by_date(runs: Iterable[Run]) -> List[Run]:
    """New list, oldest first. The input is left untouched."""
    return sorted(runs, key=lambda r: r.event_date)


# =============================================================================
# MEDIAN
# =============================================================================

def median_of_sorted(values: List[int]) -> int:
    """
    Median of an ascending, non-empty list.

    Even-length lists average the two middle values and round half up
    (1200, 1401 -> 1301).
    """
    mid = len(values) // 2
    if len(values) % 2 == 0:
        return int(math.floor((values[mid - 1] + values[mid]) / 2 + 0.5))
    return values[mid]


def recent_median_time(runs: List[Run], window: int = RECENT_MEDIAN_WINDOW) -> int:
    """
    Median finish time of the first `window` runs.

    `runs` must already be most-recent-first and non-empty.
    """
    recent = [r.finish_time_seconds for r in runs[:min(window, len(runs))]]
    return median_of_sorted(sorted(recent))


# =============================================================================
# WEEK KEYS AND STREAKS
# =============================================================================

def week_key(when: date) -> str:
    """'YYYY-WW' bucket for a date or datetime (see module docstring)."""
    year = when.year
    jan1 = date(year, 1, 1)
    day_offset = (date(year, when.month, when.day) - jan1).days
    jan1_weekday = (jan1.weekday() + 1) % 7  # Sunday = 0
    week = math.ceil((day_offset + jan1_weekday + 1) / 7)
    return f"{year}-{week:02d}"


def _split_week_key(key: str) -> Tuple[int, int]:
    year, week = key.split("-")
    return int(year), int(week)


def next_week_key(key: str) -> str:
    year, week = _split_week_key(key)
    if week == WEEKS_PER_YEAR:
        return f"{year + 1}-01"
    return f"{year}-{week + 1:02d}"


def previous_week_key(key: str) -> str:
    year, week = _split_week_key(key)
    if week > 1:
        return f"{year}-{week - 1:02d}"
    return f"{year - 1}-{WEEKS_PER_YEAR:02d}"


def run_weeks(runs: Iterable[Run]) -> Set[str]:
    """Distinct week keys with at least one run."""
    return {week_key(r.event_date) for r in runs}


def _current_streak(weeks: Set[str], now: datetime) -> int:
    this_week = week_key(now)
    # Nothing yet this week still leaves last week's streak alive
    check_week = this_week if this_week in weeks else previous_week_key(this_week)

    current = 0
    for week in sorted(weeks, reverse=True):
        if week == check_week:
            current += 1
            check_week = previous_week_key(check_week)
        elif week < check_week:
            break
    return current


def _best_streak(weeks: Set[str]) -> int:
    best = 0
    streak = 0
    prev_week = None
    for week in sorted(weeks):
        if prev_week is not None and week == next_week_key(prev_week):
            streak += 1
        else:
            streak = 1
        best = max(best, streak)
        prev_week = week
    return best


def compute_streak(runs: Iterable[Run], now: Optional[datetime] = None) -> Streak:
    """Current (as of `now`, one week's grace) and best weekly streaks."""
    weeks = run_weeks(runs)
    if not weeks:
        return Streak(0, 0)
    if now is None:
        now = datetime.now()
    return Streak(current=_current_streak(weeks, now), best=_best_streak(weeks))


# =============================================================================
# SUMMARY
# =============================================================================

def compute_run_stats(
    runs: List[Run],
    now: Optional[datetime] = None,
    presorted: bool = False,
    window: int = RECENT_MEDIAN_WINDOW,
) -> RunStats:
    """
    Summarise a run history.

    Args:
        runs: Validated run records
        now: Reference time for the current streak (default: datetime.now())
        presorted: True when `runs` is already most-recent-first; otherwise the
            recent-median window is taken from a sorted copy
        window: Number of most recent runs in the median

    Returns:
        RunStats (RunStats.empty() for an empty history)
    """
    if not runs:
        return RunStats.empty()

    recent_first = runs if presorted else sort_runs_by_date_desc(runs)

    # Best-of values walk the input order, so ties go to the first one given.
    # Seeding from the first run means a category and placing are always reported.
    first = runs[0]
    fastest_time = first.finish_time_seconds
    best_age_grade = first.age_grade
    best_age_grade_category = first.age_category
    best_top_percent = first.top_percent
    best_placing = Placing(first.position, first.total_finishers)
    events = set()

    for run in runs:
        fastest_time = min(fastest_time, run.finish_time_seconds)
        if run.age_grade > best_age_grade:
            best_age_grade = run.age_grade
            best_age_grade_category = run.age_category
        top_percent = run.top_percent
        if top_percent < best_top_percent:
            best_top_percent = top_percent
            best_placing = Placing(run.position, run.total_finishers)
        events.add(run.event_name)

    return RunStats(
        total_runs=len(runs),
        fastest_time=fastest_time,
        recent_median_time=recent_median_time(recent_first, window),
        best_age_grade=best_age_grade,
        best_age_grade_category=best_age_grade_category,
        best_top_percent=best_top_percent,
        best_top_percent_run=best_placing,
        unique_events=len(events),
        streak=compute_streak(runs, now),
    )


def visited_countries(runs: Iterable[Run]) -> List[str]:
    """Sorted country codes of the events attended."""
    return sorted({r.country_iso for r in runs if r.country_iso})
