"""
Chart data for the dashboard.

Each function takes the run history and returns plain lists/dicts, ready to
be dumped into the stats JSON that the charts read. Nothing in here draws.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from run_data import Run, runs_to_dataframe
from run_stats import sort_runs_by_date, week_key


def compute_all_time_pbs(runs: List[Run]) -> List[bool]:
    """
    For most-recent-first runs, flag the ones that were an all-time best
    when they were run.
    """
    flags = [False] * len(runs)
    best_time = float("inf")
    for i in range(len(runs) - 1, -1, -1):
        if runs[i].finish_time_seconds < best_time:
            best_time = runs[i].finish_time_seconds
            flags[i] = True
    return flags


def pb_progression(runs: List[Run]) -> List[Dict[str, Any]]:
    """Chronological points at which the running best improved."""
    points = []
    best_so_far = float("inf")
    for run in sort_runs_by_date(runs):
        if run.finish_time_seconds < best_so_far:
            best_so_far = run.finish_time_seconds
            points.append({
                "date": run.event_date.strftime("%Y-%m-%d"),
                "time": run.finish_time_seconds,
                "eventName": run.event_name,
            })
    return points


def monthly_summary(runs: List[Run], now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Runs per calendar month, newest month first.

    Covers every month from `now` back to the first run, zero-filled.
    """
    if now is None:
        now = datetime.now()
    end = pd.Period(now, freq="M")

    if runs:
        df = runs_to_dataframe(runs)
        months = df["event_date"].dt.to_period("M")
        counts = months.value_counts()
        start = months.min()
    else:
        counts = pd.Series(dtype="int64")
        start = end

    rows = []
    for period in pd.period_range(start=start, end=end, freq="M")[::-1]:
        rows.append({
            "year": period.year,
            "month": period.month,
            "label": period.strftime("%b %Y"),
            "count": int(counts.get(period, 0)),
        })
    return rows


def finish_time_distribution(runs: List[Run]) -> List[Dict[str, Any]]:
    """
    Box-plot figures per YYYY-MM month, oldest first.

    Quartiles are picked by floor index into the month's sorted times, not
    interpolated.
    """
    if not runs:
        return []

    df = runs_to_dataframe(runs)
    df["month"] = df["event_date"].dt.strftime("%Y-%m")

    rows = []
    for month, group in df.groupby("month"):
        times = np.sort(group["finish_time_seconds"].to_numpy())
        n = len(times)
        rows.append({
            "month": month,
            "min": int(times[0]),
            "q1": int(times[int(n * 0.25)]),
            "median": int(times[int(n * 0.5)]),
            "q3": int(times[int(n * 0.75)]),
            "max": int(times[-1]),
            "count": n,
        })
    return rows


def event_mix(runs: List[Run], limit: int = 15) -> List[Dict[str, Any]]:
    """Most-visited events with best and average time, busiest first."""
    if not runs:
        return []

    df = runs_to_dataframe(runs)
    per_event = df.groupby("event_name", sort=False)["finish_time_seconds"].agg(
        count="count", best_time="min", avg_time="mean"
    )
    # Stable sort keeps input order among equally visited events
    per_event = per_event.sort_values("count", ascending=False, kind="mergesort").head(limit)

    return [
        {
            "name": name,
            "count": int(row["count"]),
            "bestTime": int(row["best_time"]),
            "avgTime": round(float(row["avg_time"]), 1),
        }
        for name, row in per_event.iterrows()
    ]


def weekly_attendance(runs: List[Run]) -> Dict[str, int]:
    """Runs per week key, for the consistency calendar."""
    if not runs:
        return {}
    df = runs_to_dataframe(runs)
    counts = df["event_date"].map(week_key).value_counts().sort_index()
    return {key: int(n) for key, n in counts.items()}


ROLLING_WINDOW_MAX = 7

# Reference lines drawn across the age-grade chart
AGE_GRADE_BANDS = [80, 70, 60]


def rolling_average(runs: List[Run]) -> Dict[str, Any]:
    """
    Finish times, oldest first, with a trailing mean over the last few runs.

    The window is a third of the history, capped at 7 runs. The first points
    average whatever runs exist so far. With fewer than 3 runs the window is
    0 and every average is 0; the dashboard only draws the line for a window
    above 1.
    """
    ordered = sort_runs_by_date(runs)
    window = min(ROLLING_WINDOW_MAX, len(ordered) // 3)
    times = pd.Series([r.finish_time_seconds for r in ordered], dtype="float64")
    if window > 0:
        averages = times.rolling(window, min_periods=1).mean()
    else:
        averages = pd.Series(0.0, index=times.index)

    points = [
        {
            "date": run.event_date.strftime("%Y-%m-%d"),
            "time": run.finish_time_seconds,
            "average": round(float(avg), 1),
            "wasPb": run.was_pb,
        }
        for run, avg in zip(ordered, averages)
    ]
    return {"window": window, "points": points}


def age_grade_series(runs: List[Run]) -> Dict[str, Any]:
    """Age grade per run, oldest first, plus the reference bands."""
    points = [
        {
            "date": run.event_date.strftime("%Y-%m-%d"),
            "ageGrade": run.age_grade,
            "ageCategory": run.age_category,
            "eventName": run.event_name,
        }
        for run in sort_runs_by_date(runs)
    ]
    return {"bands": list(AGE_GRADE_BANDS), "points": points}
