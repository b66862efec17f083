"""
Result Records and Snapshot Loader
==================================
Typed view of the parkrun history snapshot written by the download script.

The snapshot is a single JSON document (camelCase keys) holding the athlete
and every run they have completed. This module turns it into dataclasses and
rejects documents that break the record invariants, so the stats engine never
has to check them.

Usage:
    from run_data import load_profile

    profile = load_profile("data/profile.json")
    print(profile.athlete.full_name, len(profile.runs))
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

SCHEMA_VERSION = 1

# 20:00, 5:07, 1:02:33
_FINISH_TIME_RE = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")


def parse_event_date(value: Any) -> datetime:
    """
    Parse an ISO-8601 event timestamp (date and time; a bare date is rejected).

    The wall-clock fields are kept as recorded and any UTC offset is dropped,
    so every run in a snapshot compares on the same naive timeline.
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if not isinstance(value, str) or "T" not in value:
        raise ValueError(f"not an ISO-8601 datetime: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"not an ISO-8601 datetime: {value!r}") from None
    return parsed.replace(tzinfo=None)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_object(value: Any, name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"'{name}' must be an object (got {type(value).__name__})")
    return value


def _require_number(d: Dict[str, Any], key: str) -> float:
    value = d.get(key)
    if not _is_number(value):
        raise ValueError(f"'{key}' must be a number (got {value!r})")
    return float(value)


def _require_positive_int(d: Dict[str, Any], key: str) -> int:
    value = d.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"'{key}' must be a positive integer (got {value!r})")
    return value


def _require_bool(d: Dict[str, Any], key: str) -> bool:
    value = d.get(key)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false (got {value!r})")
    return value


def _require_text(d: Dict[str, Any], key: str) -> str:
    value = d.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"'{key}' must be a non-empty string (got {value!r})")
    return value


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class Weather:
    """Conditions at the event start, from the weather lookup."""
    temperature_c: float
    weather_code: int
    wind_speed_ms: float
    wind_direction_deg: float

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Weather:
        d = _require_object(d, "weather")
        try:
            return cls(
                temperature_c=_require_number(d, "temperatureC"),
                weather_code=int(_require_number(d, "weatherCode")),
                wind_speed_ms=_require_number(d, "windSpeedMs"),
                wind_direction_deg=_require_number(d, "windDirectionDeg"),
            )
        except ValueError as e:
            raise ValueError(f"weather: {e}") from None


@dataclass
class Run:
    """One completed event attendance."""
    event_name: str
    event_date: datetime
    finish_time_seconds: int
    position: int
    total_finishers: int
    age_grade: float
    age_category: str
    event_id: int = 0
    event_edition: int = 0
    finish_time: str = ""
    gender_position: int = 0
    was_pb: bool = False
    was_first_visit: bool = False
    country_iso: Optional[str] = None
    event_url: Optional[str] = None
    results_url: Optional[str] = None
    coordinates: Optional[Tuple[float, float]] = None
    weather: Optional[Weather] = None

    @property
    def top_percent(self) -> float:
        """Finish percentile; lower is better."""
        return self.position / self.total_finishers * 100

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Run:
        """Build a run from its snapshot JSON, enforcing the record invariants."""
        if not isinstance(d, dict):
            raise ValueError(f"run must be an object (got {type(d).__name__})")

        position = _require_positive_int(d, "position")
        total_finishers = _require_positive_int(d, "totalFinishers")
        if position > total_finishers:
            raise ValueError(
                f"'position' {position} is greater than 'totalFinishers' {total_finishers}"
            )

        age_grade = _require_number(d, "ageGrade")
        if not 0 <= age_grade <= 100:
            raise ValueError(f"'ageGrade' must be between 0 and 100 (got {age_grade})")

        finish_time = _require_text(d, "finishTime")
        if not _FINISH_TIME_RE.match(finish_time):
            raise ValueError(f"'finishTime' must look like mm:ss or h:mm:ss (got {finish_time!r})")

        if "eventDate" not in d:
            raise ValueError("'eventDate' is required")

        coordinates = d.get("coordinates")
        if coordinates is not None:
            if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
                raise ValueError(f"'coordinates' must be a [lat, lon] pair (got {coordinates!r})")
            if not all(_is_number(c) for c in coordinates):
                raise ValueError(f"'coordinates' must hold two numbers (got {coordinates!r})")
            coordinates = (float(coordinates[0]), float(coordinates[1]))

        weather = d.get("weather")

        return cls(
            event_name=_require_text(d, "eventName"),
            event_date=parse_event_date(d["eventDate"]),
            finish_time_seconds=_require_positive_int(d, "finishTimeSeconds"),
            position=position,
            total_finishers=total_finishers,
            age_grade=age_grade,
            age_category=_require_text(d, "ageCategory"),
            event_id=_require_positive_int(d, "eventId"),
            event_edition=_require_positive_int(d, "eventEdition"),
            finish_time=finish_time,
            gender_position=_require_positive_int(d, "genderPosition"),
            was_pb=_require_bool(d, "wasPb"),
            was_first_visit=_require_bool(d, "wasFirstVisit"),
            country_iso=_optional_str(d.get("countryISO")),
            event_url=_optional_str(d.get("eventUrl")),
            results_url=_optional_str(d.get("resultsUrl")),
            coordinates=coordinates,
            weather=Weather.from_dict(weather) if weather is not None else None,
        )


@dataclass
class Athlete:
    """The athlete the snapshot belongs to."""
    id: int
    full_name: str
    club_name: Optional[str] = None
    home_run: Optional[str] = None
    home_run_short_name: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Athlete:
        d = _require_object(d, "athlete")
        try:
            athlete_id = _require_positive_int(d, "id")
            full_name = _require_text(d, "fullName")
        except ValueError as e:
            raise ValueError(f"athlete: {e}") from None
        return cls(
            id=athlete_id,
            full_name=full_name,
            club_name=_optional_str(d.get("clubName")),
            home_run=_optional_str(d.get("homeRun")),
            home_run_short_name=_optional_str(d.get("homeRunShortName")),
        )


@dataclass
class Profile:
    """Complete snapshot: athlete plus full run history."""
    generated_at: str
    athlete: Athlete
    runs: List[Run] = field(default_factory=list)
    schema_version: int = SCHEMA_VERSION

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Profile:
        if not isinstance(d, dict):
            raise ValueError("snapshot must be a JSON object")

        version = d.get("schemaVersion")
        if version != SCHEMA_VERSION:
            raise ValueError(f"unsupported schemaVersion {version!r} (expected {SCHEMA_VERSION})")

        raw_runs = d.get("runs")
        if not isinstance(raw_runs, list):
            raise ValueError("'runs' must be a list")

        runs = []
        for i, raw in enumerate(raw_runs):
            try:
                runs.append(Run.from_dict(raw))
            except ValueError as e:
                raise ValueError(f"runs[{i}]: {e}") from None

        return cls(
            generated_at=str(d.get("generatedAt", "")),
            athlete=Athlete.from_dict(d.get("athlete")),
            runs=runs,
            schema_version=version,
        )


def load_profile(path) -> Profile:
    """
    Load and validate a snapshot file.

    Raises:
        FileNotFoundError: If the snapshot doesn't exist
        ValueError: If it is not valid JSON or breaks the schema
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from None

    return Profile.from_dict(data)


RUN_COLUMNS = [
    "event_name", "event_date", "finish_time_seconds", "position",
    "total_finishers", "top_percent", "age_grade", "age_category",
    "was_pb", "was_first_visit", "country_iso", "latitude", "longitude",
    "temperature_c", "weather_code", "wind_speed_ms", "wind_direction_deg",
    "event_url", "results_url",
]


def runs_to_dataframe(runs: List[Run]) -> pd.DataFrame:
    """One row per run, in the order given. Weather and location are empty where absent."""
    rows = []
    for r in runs:
        lat, lon = r.coordinates if r.coordinates else (None, None)
        w = r.weather
        rows.append({
            "event_name": r.event_name,
            "event_date": r.event_date,
            "finish_time_seconds": r.finish_time_seconds,
            "position": r.position,
            "total_finishers": r.total_finishers,
            "top_percent": r.top_percent,
            "age_grade": r.age_grade,
            "age_category": r.age_category,
            "was_pb": r.was_pb,
            "was_first_visit": r.was_first_visit,
            "country_iso": r.country_iso,
            "latitude": lat,
            "longitude": lon,
            "temperature_c": w.temperature_c if w else None,
            "weather_code": w.weather_code if w else None,
            "wind_speed_ms": w.wind_speed_ms if w else None,
            "wind_direction_deg": w.wind_direction_deg if w else None,
            "event_url": r.event_url,
            "results_url": r.results_url,
        })
    df = pd.DataFrame(rows, columns=RUN_COLUMNS)
    df["event_date"] = pd.to_datetime(df["event_date"])
    return df
