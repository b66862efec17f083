"""
Central configuration file for the dashboard constants.

Loads the dashboard-specific values from dashboard.yml via the
dashboard_config module and falls back to built-in defaults when no YAML is
present.

All scripts should import from here to ensure consistency.
Edit dashboard.yml for per-athlete values, or edit constants below for defaults.
"""

import os
from pathlib import Path

from dashboard_config import DashboardConfig, load_dashboard_config


# =============================================================================
# DASHBOARD CONFIG LOADER
# =============================================================================

def _get_dashboard_config() -> DashboardConfig:
    """
    Load dashboard configuration from YAML or use defaults.

    Order of precedence:
    1. DASHBOARD_CONFIG_PATH environment variable
    2. ./dashboard.yml in current directory
    3. built-in defaults
    """
    yaml_path = os.getenv("DASHBOARD_CONFIG_PATH")
    if yaml_path and Path(yaml_path).exists():
        return load_dashboard_config(yaml_path)

    if Path("dashboard.yml").exists():
        return load_dashboard_config("dashboard.yml")

    return load_dashboard_config(None)


_DASHBOARD_CONFIG = _get_dashboard_config()

# =============================================================================
# ATHLETE
# =============================================================================
ATHLETE_ID = _DASHBOARD_CONFIG.athlete.athlete_id     # None = accept any snapshot

# =============================================================================
# FILES
# =============================================================================
SNAPSHOT_FILE = _DASHBOARD_CONFIG.data.snapshot_path
OUTPUT_FILE = _DASHBOARD_CONFIG.data.output_path
EXCEL_FILE = _DASHBOARD_CONFIG.data.excel_path       # None = no workbook

# =============================================================================
# STATS PARAMETERS
# =============================================================================
RECENT_MEDIAN_WINDOW = _DASHBOARD_CONFIG.stats.recent_median_window
EVENT_MIX_LIMIT = _DASHBOARD_CONFIG.stats.event_mix_limit
