from datetime import datetime

import pytest

from run_data import Run


@pytest.fixture
def make_run():
    """Factory for runs with sensible defaults; override any field by keyword."""
    def _make(**overrides):
        fields = dict(
            event_name="Test parkrun",
            event_date=datetime(2024, 1, 1, 9, 0),
            finish_time_seconds=1200,
            position=10,
            total_finishers=100,
            age_grade=65.0,
            age_category="VM35-39",
            event_id=1,
            event_edition=1,
            finish_time="20:00",
            gender_position=5,
        )
        fields.update(overrides)
        return Run(**fields)
    return _make


@pytest.fixture
def raw_run():
    """Factory for one run as it appears in the snapshot JSON."""
    def _make(**overrides):
        d = {
            "eventName": "Brighton & Hove",
            "eventId": 123,
            "eventEdition": 456,
            "eventDate": "2024-01-06T09:00:00Z",
            "finishTime": "20:00",
            "finishTimeSeconds": 1200,
            "position": 10,
            "totalFinishers": 200,
            "genderPosition": 8,
            "ageGrade": 65.2,
            "ageCategory": "VM40-44",
            "wasPb": False,
            "wasFirstVisit": True,
            "countryISO": "GB",
        }
        d.update(overrides)
        return d
    return _make


@pytest.fixture
def snapshot(raw_run):
    """Factory for a whole snapshot document around a list of raw runs."""
    def _make(runs=None, **overrides):
        d = {
            "schemaVersion": 1,
            "generatedAt": "2024-02-01T12:00:00Z",
            "athlete": {
                "id": 1234567,
                "fullName": "Sam Runner",
                "clubName": "Brighton Phoenix",
                "homeRun": "Brighton & Hove",
            },
            "runs": [raw_run()] if runs is None else runs,
        }
        d.update(overrides)
        return d
    return _make
