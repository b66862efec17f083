"""
Dashboard configuration loader.

Loads dashboard settings from dashboard.yml: which athlete the snapshot
belongs to (checked against the snapshot), where the snapshot and generated files live, and the tunables
used when summarising the run history.

Usage:
    from dashboard_config import DashboardConfig

    config = DashboardConfig.load("dashboard.yml")
    print(config.data.snapshot_path)
    print(config.stats.recent_median_window)  # 5 unless overridden
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass
class AthleteSection:
    """Whose history the dashboard shows; the snapshot is checked against it."""
    athlete_id: Optional[int] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> AthleteSection:
        # Same precedence as the download script: environment first, then YAML
        athlete_id = os.getenv("PARKRUN_ATHLETE_ID") or d.get("athlete_id")
        try:
            athlete_id = int(str(athlete_id).lstrip("aA")) if athlete_id else None
        except ValueError:
            raise ValueError(f"athlete_id must be a number like 'A123456' (got {athlete_id!r})") from None
        return cls(athlete_id=athlete_id)


@dataclass
class DataSection:
    """Input snapshot and generated output locations."""
    snapshot_path: str = "data/profile.json"
    output_path: str = "public/stats.json"
    excel_path: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> DataSection:
        excel_path = d.get("excel_path")
        return cls(
            snapshot_path=str(d.get("snapshot_path", "data/profile.json")),
            output_path=str(d.get("output_path", "public/stats.json")),
            excel_path=str(excel_path) if excel_path else None,
        )


@dataclass
class StatsSection:
    """Summary tunables."""
    recent_median_window: int = 5
    event_mix_limit: int = 15

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> StatsSection:
        section = cls(
            recent_median_window=int(d.get("recent_median_window", 5)),
            event_mix_limit=int(d.get("event_mix_limit", 15)),
        )
        if section.recent_median_window < 1:
            raise ValueError("stats.recent_median_window must be at least 1")
        if section.event_mix_limit < 1:
            raise ValueError("stats.event_mix_limit must be at least 1")
        return section


@dataclass
class DashboardConfig:
    """Complete dashboard configuration."""
    athlete: AthleteSection = field(default_factory=AthleteSection)
    data: DataSection = field(default_factory=DataSection)
    stats: StatsSection = field(default_factory=StatsSection)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> DashboardConfig:
        return cls(
            athlete=AthleteSection.from_dict(d.get("athlete") or {}),
            data=DataSection.from_dict(d.get("data") or {}),
            stats=StatsSection.from_dict(d.get("stats") or {}),
        )

    @classmethod
    def load(cls, yaml_path) -> DashboardConfig:
        """
        Load dashboard configuration from YAML file.

        Args:
            yaml_path: Path to dashboard.yml

        Returns:
            DashboardConfig instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ValueError: If YAML is invalid or a value is out of range
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Dashboard config not found: {yaml_path}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {yaml_path}: {e}") from None

        # An empty file means "all defaults"
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Invalid YAML structure in {yaml_path}")

        return cls.from_dict(data)


def load_dashboard_config(yaml_path: Optional[str] = None) -> DashboardConfig:
    """Load dashboard.yml, or return the built-in defaults when no path is given."""
    if yaml_path is None:
        return DashboardConfig()
    return DashboardConfig.load(yaml_path)


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1:
        config = DashboardConfig.load(sys.argv[1])
    elif Path("dashboard.yml").exists():
        config = DashboardConfig.load("dashboard.yml")
    else:
        print("Usage: python dashboard_config.py <path_to_dashboard.yml>")
        sys.exit(1)

    print(f"Athlete id: {config.athlete.athlete_id or '-'}")
    print(f"Snapshot: {config.data.snapshot_path}")
    print(f"Output: {config.data.output_path}")
    print(f"Excel: {config.data.excel_path or '-'}")
    print(f"Recent median window: {config.stats.recent_median_window}")
    print(f"Event mix limit: {config.stats.event_mix_limit}")
