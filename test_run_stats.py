"""Tests for the run statistics engine."""

import math
from datetime import date, datetime
from typing import Tuple, get_type_hints

from run_stats import (
    _split_week_key,
    Placing,
    RunStats,
    Streak,
    compute_run_stats,
    compute_streak,
    median_of_sorted,
    next_week_key,
    previous_week_key,
    recent_median_time,
    sort_runs_by_date,
    sort_runs_by_date_desc,
    visited_countries,
    week_key,
)


def _on(*days):
    return [datetime(*d, 9, 0) for d in days]


# =============================================================================
# Ordering
# =============================================================================

def test_sort_desc_orders_most_recent_first(make_run):
    runs = [
        make_run(event_date=datetime(2024, 1, 1, 9)),
        make_run(event_date=datetime(2024, 6, 15, 9)),
        make_run(event_date=datetime(2024, 3, 10, 9)),
    ]

    ordered = sort_runs_by_date_desc(runs)

    assert [r.event_date.month for r in ordered] == [6, 3, 1]


def test_sort_desc_does_not_mutate_input(make_run):
    first = make_run(event_date=datetime(2024, 1, 1, 9))
    second = make_run(event_date=datetime(2024, 6, 15, 9))
    runs = [first, second]

    ordered = sort_runs_by_date_desc(runs)

    assert ordered is not runs
    assert runs[0] is first and runs[1] is second
    assert ordered[0] is second


def test_sort_ascending(make_run):
    runs = [make_run(event_date=d) for d in _on((2024, 5, 4), (2023, 12, 30), (2024, 1, 6))]
    assert [r.event_date.date() for r in sort_runs_by_date(runs)] == [
        date(2023, 12, 30), date(2024, 1, 6), date(2024, 5, 4),
    ]


# =============================================================================
# Median
# =============================================================================

def test_median_odd_takes_middle():
    assert median_of_sorted([1000, 1100, 1200, 1300, 1400]) == 1200
    assert median_of_sorted([1234]) == 1234


def test_median_even_rounds_half_up():
    assert median_of_sorted([1200, 1400]) == 1300
    assert median_of_sorted([1200, 1401]) == 1301
    assert median_of_sorted([1000, 1001, 1500, 1600]) == 1251


def test_recent_median_five_run_window(make_run):
    times = [1400, 1300, 1200, 1100, 1000]
    runs = [make_run(finish_time_seconds=t) for t in times]
    assert recent_median_time(runs) == 1200


def test_recent_median_ignores_older_runs(make_run):
    dates = _on((2024, 2, 3), (2024, 1, 27), (2024, 1, 20), (2024, 1, 13), (2024, 1, 6), (2023, 6, 1))
    times = [1400, 1300, 1200, 1100, 1000, 9999]
    runs = [make_run(event_date=d, finish_time_seconds=t) for d, t in zip(dates, times)]

    assert compute_run_stats(runs, now=datetime(2024, 2, 5)).recent_median_time == 1200


def test_recent_median_even_window(make_run):
    runs = [
        make_run(event_date=datetime(2024, 1, 13, 9), finish_time_seconds=1200),
        make_run(event_date=datetime(2024, 1, 6, 9), finish_time_seconds=1400),
    ]
    assert compute_run_stats(runs).recent_median_time == 1300


def test_unsorted_input_is_sorted_before_windowing(make_run):
    # Oldest first, with a very fast oldest run that must fall outside the window
    dates = _on((2023, 6, 1), (2024, 1, 6), (2024, 1, 13), (2024, 1, 20), (2024, 1, 27), (2024, 2, 3))
    times = [100, 1000, 1100, 1200, 1300, 1400]
    runs = [make_run(event_date=d, finish_time_seconds=t) for d, t in zip(dates, times)]

    assert compute_run_stats(runs).recent_median_time == 1200
    assert compute_run_stats(runs, presorted=True).recent_median_time == 1100


def test_custom_window(make_run):
    runs = [make_run(finish_time_seconds=t) for t in (1000, 1200, 1400)]
    assert recent_median_time(runs, window=2) == 1100


# =============================================================================
# Week keys
# =============================================================================

def test_week_key_start_of_2024():
    # 2024-01-01 is a Monday, so the first Saturday is still week 1
    assert week_key(date(2024, 1, 1)) == "2024-01"
    assert week_key(datetime(2024, 1, 6, 9)) == "2024-01"
    assert week_key(datetime(2024, 1, 7, 9)) == "2024-02"
    assert week_key(datetime(2024, 1, 13, 9)) == "2024-02"


def test_week_key_end_of_2023():
    # 2023-01-01 is a Sunday
    assert week_key(datetime(2023, 12, 30, 9)) == "2023-52"
    assert week_key(datetime(2023, 12, 31, 9)) == "2023-53"


def test_week_key_ignores_time_of_day():
    assert week_key(datetime(2024, 1, 6, 23, 59)) == week_key(date(2024, 1, 6)) == "2024-01"


def test_week_key_helpers_are_annotated():
    assert get_type_hints(week_key) == {"when": date, "return": str}
    assert get_type_hints(_split_week_key) == {"key": str, "return": Tuple[int, int]}


def test_next_and_previous_week_wrap_at_52():
    assert next_week_key("2024-09") == "2024-10"
    assert next_week_key("2023-52") == "2024-01"
    assert previous_week_key("2024-10") == "2024-09"
    assert previous_week_key("2024-01") == "2023-52"


# =============================================================================
# Streaks
# =============================================================================

def test_consecutive_weeks_best_streak(make_run):
    runs = [make_run(event_date=d) for d in _on((2024, 1, 6), (2024, 1, 13), (2024, 1, 20))]
    assert compute_streak(runs, now=datetime(2024, 6, 1)).best == 3


def test_gap_week_breaks_streak(make_run):
    runs = [make_run(event_date=d) for d in _on((2024, 1, 6), (2024, 1, 20))]
    assert compute_streak(runs, now=datetime(2024, 6, 1)).best == 1


def test_streak_across_year_boundary(make_run):
    runs = [make_run(event_date=d) for d in _on((2023, 12, 30), (2024, 1, 6))]
    assert compute_streak(runs, now=datetime(2024, 6, 1)).best == 2


def test_same_week_counts_once(make_run):
    runs = [make_run(event_date=d) for d in _on((2024, 1, 1), (2024, 1, 6))]
    assert compute_streak(runs, now=datetime(2024, 6, 1)).best == 1


def test_same_day_counts_once(make_run):
    runs = [
        make_run(event_date=datetime(2024, 1, 1, 9)),
        make_run(event_date=datetime(2024, 1, 1, 11), event_name="Other parkrun"),
    ]
    assert compute_streak(runs, now=datetime(2024, 1, 2)) == Streak(current=1, best=1)


def test_best_streak_is_longest_run_of_weeks(make_run):
    runs = [make_run(event_date=d) for d in _on(
        (2024, 1, 6), (2024, 1, 13),
        (2024, 2, 3), (2024, 2, 10), (2024, 2, 17), (2024, 2, 24),
        (2024, 4, 6),
    )]
    assert compute_streak(runs, now=datetime(2024, 6, 1)).best == 4


def test_current_streak_includes_this_week(make_run):
    runs = [make_run(event_date=d) for d in _on((2024, 1, 6), (2024, 1, 13), (2024, 1, 20))]
    assert compute_streak(runs, now=datetime(2024, 1, 20, 12)).current == 3


def test_current_streak_grace_week(make_run):
    # Monday after the third run: nothing yet this week, last week still counts
    runs = [make_run(event_date=d) for d in _on((2024, 1, 6), (2024, 1, 13), (2024, 1, 20))]
    assert compute_streak(runs, now=datetime(2024, 1, 22, 8)).current == 3


def test_current_streak_broken_after_missed_week(make_run):
    runs = [make_run(event_date=d) for d in _on((2024, 1, 6), (2024, 1, 13), (2024, 1, 20))]
    streak = compute_streak(runs, now=datetime(2024, 1, 29, 8))
    assert streak.current == 0
    assert streak.best == 3


def test_current_streak_across_year_boundary(make_run):
    runs = [make_run(event_date=d) for d in _on((2023, 12, 30), (2024, 1, 6))]
    assert compute_streak(runs, now=datetime(2024, 1, 8)).current == 2


def test_current_streak_ignores_runs_after_now(make_run):
    runs = [make_run(event_date=d) for d in _on((2024, 1, 6), (2024, 1, 13), (2024, 3, 2))]
    assert compute_streak(runs, now=datetime(2024, 1, 15)).current == 2


def test_streak_of_no_runs():
    assert compute_streak([]) == Streak(0, 0)


# =============================================================================
# Summary
# =============================================================================

def test_empty_history_returns_sentinel_summary():
    stats = compute_run_stats([])

    assert stats == RunStats.empty()
    assert stats.total_runs == 0
    assert math.isinf(stats.fastest_time) and stats.fastest_time > 0
    assert stats.recent_median_time is None
    assert stats.best_age_grade == 0
    assert stats.best_age_grade_category == ""
    assert stats.best_top_percent == 100
    assert stats.best_top_percent_run is None
    assert stats.unique_events == 0
    assert stats.streak == Streak(current=0, best=0)


def test_total_runs(make_run):
    assert compute_run_stats([make_run(), make_run(), make_run()]).total_runs == 3


def test_fastest_time(make_run):
    runs = [make_run(finish_time_seconds=t) for t in (1500, 1200, 1350)]
    assert compute_run_stats(runs).fastest_time == 1200


def test_best_age_grade_and_category(make_run):
    runs = [
        make_run(age_grade=55.5, age_category="VM35-39"),
        make_run(age_grade=72.3, age_category="VM40-44"),
        make_run(age_grade=68.1, age_category="VM40-44"),
    ]
    stats = compute_run_stats(runs)
    assert stats.best_age_grade == 72.3
    assert stats.best_age_grade_category == "VM40-44"


def test_best_age_grade_tie_keeps_first_in_input(make_run):
    runs = [
        make_run(event_date=datetime(2024, 1, 6, 9), age_grade=70.0, age_category="VM35-39"),
        make_run(event_date=datetime(2024, 6, 1, 9), age_grade=70.0, age_category="VM40-44"),
    ]
    assert compute_run_stats(runs).best_age_grade_category == "VM35-39"


def test_best_top_percent(make_run):
    runs = [
        make_run(position=50, total_finishers=200),
        make_run(position=12, total_finishers=300),
        make_run(position=5, total_finishers=50),
    ]
    stats = compute_run_stats(runs)
    assert stats.best_top_percent == 4.0
    assert stats.best_top_percent_run == Placing(position=12, total_finishers=300)


def test_best_top_percent_reported_for_last_place_only(make_run):
    stats = compute_run_stats([make_run(position=1, total_finishers=1)])
    assert stats.best_top_percent == 100
    assert stats.best_top_percent_run == Placing(1, 1)


def test_unique_events(make_run):
    runs = [make_run(event_name=n) for n in ("Brighton", "Hove Promenade", "Brighton", "Worthing")]
    assert compute_run_stats(runs).unique_events == 3


def test_summary_includes_streak(make_run):
    runs = [make_run(event_date=d) for d in _on((2024, 1, 20), (2024, 1, 13), (2024, 1, 6))]
    assert compute_run_stats(runs, now=datetime(2024, 1, 22)).streak == Streak(current=3, best=3)


def test_compute_run_stats_leaves_input_alone(make_run):
    runs = [make_run(event_date=d) for d in _on((2024, 1, 6), (2024, 3, 2), (2024, 2, 3))]
    before = list(runs)
    compute_run_stats(runs)
    assert runs == before


def test_to_dict_uses_dashboard_names(make_run):
    doc = compute_run_stats([make_run(position=3, total_finishers=60)], now=datetime(2024, 1, 1)).to_dict()

    assert doc["totalRuns"] == 1
    assert doc["fastestTime"] == 1200
    assert doc["recentMedianTime"] == 1200
    assert doc["bestTopPercent"] == 5.0
    assert doc["bestTopPercentRun"] == {"position": 3, "totalFinishers": 60}
    assert doc["streak"] == {"current": 1, "best": 1}


def test_to_dict_empty_has_null_fastest():
    doc = RunStats.empty().to_dict()
    assert doc["fastestTime"] is None
    assert doc["bestTopPercentRun"] is None


def test_visited_countries(make_run):
    runs = [make_run(country_iso=c) for c in ("GB", "IE", None, "GB", "AU")]
    assert visited_countries(runs) == ["AU", "GB", "IE"]
