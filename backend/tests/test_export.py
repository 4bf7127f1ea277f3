"""
Tests for CSV export and sample payload generation.
"""

from datetime import datetime

import pandas as pd
import pytest

from tripcore.services.classifier import classify_waypoints
from tripcore.services.codec import decode_waypoints
from tripcore.services.export import EXPORT_COLUMNS, waypoints_to_csv, waypoints_to_frame, write_waypoints_csv
from tripcore.utils.sample_data import generate_test_data_set, generate_trip_records


DAY = datetime(2026, 1, 7, 8, 0, 0)


@pytest.fixture
def waypoints():
    records = generate_trip_records("VH-001", DAY, [(300, 30.0), (600, 0.0), (300, 30.0)], seed=11)
    return classify_waypoints(records)


class TestExport:
    """Tests for the waypoint table."""

    def test_frame_columns(self, waypoints):
        frame = waypoints_to_frame(waypoints)

        assert list(frame.columns) == EXPORT_COLUMNS
        assert len(frame) == len(waypoints)

    def test_motion_state_as_text(self, waypoints):
        frame = waypoints_to_frame(waypoints)
        assert set(frame["motion_state"]) == {"running", "stop"}

    def test_empty(self):
        frame = waypoints_to_frame([])
        assert frame.empty
        assert list(frame.columns) == EXPORT_COLUMNS

    def test_csv_header(self, waypoints):
        csv_text = waypoints_to_csv(waypoints)
        assert csv_text.splitlines()[0] == ",".join(EXPORT_COLUMNS)

    def test_write_csv(self, waypoints, tmp_path):
        output = write_waypoints_csv(waypoints, tmp_path / "out" / "trip.csv")

        frame = pd.read_csv(output)
        assert len(frame) == len(waypoints)
        assert frame["cumulative_distance_km"].is_monotonic_increasing


class TestSampleData:
    """Tests for the synthetic payload generator."""

    def test_segments(self):
        records = generate_trip_records("VH-001", DAY, [(300, 30.0), (120, 0.0)], sample_interval_s=30, seed=1)

        assert len(records) == 14
        assert all(r.speed > 0 for r in records[:10])
        assert all(r.speed == 0 for r in records[10:])
        assert records[1].gps_time - records[0].gps_time == 30

    def test_deterministic_with_seed(self):
        a = generate_trip_records("VH-001", DAY, [(300, 30.0)], seed=5)
        b = generate_trip_records("VH-001", DAY, [(300, 30.0)], seed=5)
        assert a == b

    def test_data_set_decodes(self, tmp_path):
        files = generate_test_data_set(tmp_path)

        assert [f.name for f in files] == ["VH-001.txt", "VH-002.txt", "VH-003.txt"]
        for path in files:
            records = decode_waypoints(path.read_text())
            assert len(records) > 0
            assert records[0].vehicle_id == path.stem
