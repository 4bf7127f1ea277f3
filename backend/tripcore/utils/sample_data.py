"""
Sample data generator for testing.

Generates realistic-looking delivery-vehicle trips (drive, park, drive)
and writes them as encoded waypoint payloads, one file per vehicle.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

import numpy as np

from tripcore.models.record import RawTelemetryRecord
from tripcore.services.codec import encode_waypoints
from tripcore.utils.dates import to_gps_seconds


def generate_trip_records(
    vehicle_id: str,
    start_time: datetime,
    segments: list[tuple[float, float]],
    sample_interval_s: int = 30,
    start_lat: float = 10.7769,  # Ho Chi Minh City area
    start_lon: float = 106.7009,
    heading_deg: float = 45.0,
    seed: Optional[int] = None,
) -> list[RawTelemetryRecord]:
    """
    Generate one vehicle's records for a sequence of drive/park segments.

    Args:
        segments: (duration_s, speed_kmh) pairs; speed 0 means parked
        sample_interval_s: Seconds between records

    Returns:
        Time-ordered records with integer-scaled units
    """
    rng = np.random.default_rng(seed)

    speeds_kmh = []
    for duration_s, speed_kmh in segments:
        n = max(int(duration_s // sample_interval_s), 1)
        if speed_kmh > 0:
            # Add some noise to make it realistic
            noisy = speed_kmh + rng.normal(0, speed_kmh * 0.1, n)
            speeds_kmh.append(np.clip(noisy, 1.0, None))
        else:
            speeds_kmh.append(np.zeros(n))
    speed = np.concatenate(speeds_kmh)
    n_samples = len(speed)

    # Distance travelled between samples, in meters
    step_m = speed / 3.6 * sample_interval_s
    travelled = np.concatenate([[0.0], np.cumsum(step_m[:-1])])

    # Approximate conversion at this latitude
    meters_per_deg_lat = 111000
    meters_per_deg_lon = 111000 * np.cos(np.radians(start_lat))
    heading_rad = np.radians(heading_deg)

    lat = start_lat + travelled * np.cos(heading_rad) / meters_per_deg_lat
    lon = start_lon + travelled * np.sin(heading_rad) / meters_per_deg_lon
    mileage = np.round(travelled).astype(np.int64)

    t0 = to_gps_seconds(start_time)
    records = []
    for i in range(n_samples):
        records.append(RawTelemetryRecord(
            vehicle_id=vehicle_id,
            gps_time=t0 + i * sample_interval_s,
            x=int(round(lon[i] * 1_000_000)),
            y=int(round(lat[i] * 1_000_000)),
            altitude=12,
            speed=int(round(speed[i] * 100)),
            heading=int(heading_deg / 2),  # device reports heading / 2 in one byte
            satellites=int(rng.integers(6, 14)),
            mileage=int(mileage[i]),
            gps_mileage=int(mileage[i]),
            voltage=int(rng.normal(12600, 150)),
            battery=100,
            status=1 if speed[i] > 0 else 0,
        ))
    return records


def write_payload(output_path: Path, records: list[RawTelemetryRecord], framed: bool = True) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(encode_waypoints(records, framed=framed), encoding="utf-8")
    return output_path


def generate_test_data_set(output_folder: Path, day: Optional[datetime] = None) -> list[Path]:
    """Generate a set of payload files for a single day."""
    day = day or datetime(2026, 1, 7, 8, 0, 0)

    files = []

    # Morning run with a long delivery stop and a traffic light
    files.append(write_payload(
        output_folder / "VH-001.txt",
        generate_trip_records(
            "VH-001",
            day,
            [(900, 35.0), (90, 0.0), (600, 40.0), (1800, 0.0), (1200, 30.0)],
            seed=1,
        ),
    ))

    # Short hop with a medium idle
    files.append(write_payload(
        output_folder / "VH-002.txt",
        generate_trip_records(
            "VH-002",
            day,
            [(600, 25.0), (240, 0.0), (600, 25.0)],
            sample_interval_s=20,
            start_lat=21.0285,
            start_lon=105.8542,
            seed=2,
        ),
    ))

    # Parked all day
    files.append(write_payload(
        output_folder / "VH-003.txt",
        generate_trip_records("VH-003", day, [(3600, 0.0)], sample_interval_s=60, seed=3),
    ))

    return files


if __name__ == "__main__":
    # Generate test data when run directly
    output = Path("./data/payloads")
    files = generate_test_data_set(output)
    print(f"Generated {len(files)} payload files in {output}")
    for f in files:
        print(f"  - {f.name}")
