#!/usr/bin/env python3
"""
Dashboard Stats Generator
=========================
Reads the parkrun history snapshot and writes the stats JSON that the
dashboard renders from.

Usage:
    python generate_stats.py [--snapshot FILE] [--out FILE] [--xlsx FILE] [--now YYYY-MM-DD]
                             [--athlete-id ID]

Output (JSON):
    generatedAt  - when this file was produced
    athlete      - name, club and home event from the snapshot
    stats        - headline numbers (fastest, 5-run median, streaks, ...)
    charts       - monthly counts, PB progression, finish-time spread,
                   rolling average, age grade over time, event mix,
                   weekly attendance, visited countries

With --xlsx, a workbook with a Runs sheet and a Summary sheet is written too.

Configuration:
    Defaults come from dashboard.yml via config.py.
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

import openpyxl
from openpyxl.styles import Font, PatternFill

from config import (
    ATHLETE_ID,
    EVENT_MIX_LIMIT,
    EXCEL_FILE,
    OUTPUT_FILE,
    RECENT_MEDIAN_WINDOW,
    SNAPSHOT_FILE,
)
from formatting import format_pace, format_percent, format_time
from run_charts import (
    age_grade_series,
    compute_all_time_pbs,
    event_mix,
    finish_time_distribution,
    monthly_summary,
    pb_progression,
    rolling_average,
    weekly_attendance,
)
from run_data import load_profile, runs_to_dataframe
from run_stats import compute_run_stats, sort_runs_by_date_desc, visited_countries


def build_stats_document(profile, now=None, window=RECENT_MEDIAN_WINDOW, event_limit=EVENT_MIX_LIMIT):
    """Everything the dashboard needs, as a JSON-ready dict."""
    if now is None:
        now = datetime.now()

    runs = sort_runs_by_date_desc(profile.runs)
    stats = compute_run_stats(runs, now=now, presorted=True, window=window)
    pb_flags = compute_all_time_pbs(runs)

    return {
        "generatedAt": now.strftime("%Y-%m-%dT%H:%M:%S"),
        "snapshotGeneratedAt": profile.generated_at,
        "athlete": {
            "id": profile.athlete.id,
            "fullName": profile.athlete.full_name,
            "clubName": profile.athlete.club_name,
            "homeRun": profile.athlete.home_run,
        },
        "stats": stats.to_dict(),
        "charts": {
            "monthlySummary": monthly_summary(runs, now=now),
            "pbProgression": pb_progression(runs),
            "finishTimeDistribution": finish_time_distribution(runs),
            "rollingAverage": rolling_average(runs),
            "ageGrade": age_grade_series(runs),
            "eventMix": event_mix(runs, limit=event_limit),
            "weeklyAttendance": weekly_attendance(runs),
            "visitedCountries": visited_countries(runs),
            "allTimePbCount": sum(pb_flags),
        },
    }


def print_summary(doc):
    """Human-readable summary of the stats section."""
    stats = doc["stats"]
    print(f"\nSummary for {doc['athlete']['fullName']}:")
    print(f"  Runs:            {stats['totalRuns']}")
    if stats["totalRuns"] == 0:
        print("  No runs yet.")
        return
    print(f"  Fastest:         {format_time(stats['fastestTime'])} ({format_pace(stats['fastestTime'])})")
    print(f"  Recent median:   {format_time(stats['recentMedianTime'])}")
    print(f"  Best age grade:  {format_percent(stats['bestAgeGrade'])} ({stats['bestAgeGradeCategory']})")
    placing = stats["bestTopPercentRun"]
    print(f"  Best top %:      {format_percent(stats['bestTopPercent'])} "
          f"({placing['position']}/{placing['totalFinishers']})")
    print(f"  Unique events:   {stats['uniqueEvents']}")
    print(f"  Streak (weeks):  current {stats['streak']['current']}, best {stats['streak']['best']}")


def write_stats_xlsx(path, profile, doc):
    """Workbook with every run plus the headline numbers."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    df = runs_to_dataframe(sort_runs_by_date_desc(profile.runs))
    df.to_excel(path, sheet_name="Runs", index=False, engine="openpyxl")

    wb = openpyxl.load_workbook(path)
    ws = wb["Runs"]
    headers = list(df.columns)

    summary = wb.create_sheet("Summary")
    summary.append(["stat", "value"])
    stats = doc["stats"]
    placing = stats["bestTopPercentRun"]
    for name, value in [
        ("Total runs", stats["totalRuns"]),
        ("Fastest time", format_time(stats["fastestTime"]) if stats["fastestTime"] is not None else "-"),
        ("Recent median", format_time(stats["recentMedianTime"]) if stats["recentMedianTime"] is not None else "-"),
        ("Best age grade", stats["bestAgeGrade"]),
        ("Best age grade category", stats["bestAgeGradeCategory"] or "-"),
        ("Best top %", round(stats["bestTopPercent"], 2)),
        ("Best top % placing", f"{placing['position']}/{placing['totalFinishers']}" if placing else "-"),
        ("Unique events", stats["uniqueEvents"]),
        ("Current streak (weeks)", stats["streak"]["current"]),
        ("Best streak (weeks)", stats["streak"]["best"]),
    ]:
        summary.append([name, value])

    for sheet, sheet_headers in ((ws, headers), (summary, ["stat", "value"])):
        for col_idx, _ in enumerate(sheet_headers, 1):
            cell = sheet.cell(row=1, column=col_idx)
            cell.font = Font(bold=True)
            cell.fill = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")
        for col in sheet.columns:
            max_len = max(len(str(cell.value or "")) for cell in col)
            sheet.column_dimensions[col[0].column_letter].width = min(max_len + 3, 40)

    wb.save(path)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate dashboard stats JSON from a parkrun history snapshot"
    )
    parser.add_argument(
        "--snapshot",
        default=SNAPSHOT_FILE,
        help=f"Snapshot JSON written by the download script (default: {SNAPSHOT_FILE})"
    )
    parser.add_argument(
        "--out",
        default=OUTPUT_FILE,
        help=f"Stats JSON to write (default: {OUTPUT_FILE})"
    )
    parser.add_argument(
        "--xlsx",
        default=EXCEL_FILE,
        help="Also write an Excel workbook to this path"
    )
    parser.add_argument(
        "--now",
        default=None,
        help="Reference date for streaks and monthly summary, YYYY-MM-DD (default: today)"
    )
    parser.add_argument(
        "--athlete-id",
        type=int,
        default=ATHLETE_ID,
        help="Warn if the snapshot belongs to a different athlete (default: athlete_id in dashboard.yml)"
    )

    args = parser.parse_args(argv)

    print("=" * 60)
    print("Dashboard Stats Generator")
    print("=" * 60)

    now = None
    if args.now:
        try:
            now = datetime.strptime(args.now, "%Y-%m-%d")
        except ValueError:
            print(f"ERROR: --now must be YYYY-MM-DD (got {args.now!r})")
            return 1

    print(f"Loading {args.snapshot}...")
    try:
        profile = load_profile(args.snapshot)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1
    print(f"  Loaded {len(profile.runs)} runs for {profile.athlete.full_name}")
    if args.athlete_id is not None and profile.athlete.id != args.athlete_id:
        print(f"  WARNING: snapshot is for athlete {profile.athlete.id}, expected {args.athlete_id}")
    if not profile.runs:
        print("  WARNING: snapshot has no runs; writing empty stats")

    print("Processing stats...")
    doc = build_stats_document(profile, now=now)

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(doc, f, ensure_ascii=False, indent=2)
    print(f"✓ Stats written to: {out_path}")

    if args.xlsx:
        write_stats_xlsx(args.xlsx, profile, doc)
        print(f"✓ Workbook written to: {args.xlsx}")

    print_summary(doc)
    return 0


if __name__ == "__main__":
    sys.exit(main())
