#!/usr/bin/env python3
"""
Decode a captured waypoint payload and print its trip statistics.

Usage:
    python decode_payload.py PAYLOAD_FILE [--vehicle-id ID] [--csv OUT.csv]

Examples:
    python decode_payload.py data/payloads/VH-001.txt
    python decode_payload.py capture.txt --csv capture.csv
"""

import argparse
import sys
from pathlib import Path

# Add tripcore to path
sys.path.insert(0, str(Path(__file__).parent))

from tripcore.errors import CorruptPayload
from tripcore.services.export import write_waypoints_csv
from tripcore.services.history import VehicleHistoryService
from tripcore.services.sources import StaticWaypointSource
from tripcore.utils.dates import format_timestamp


def main():
    parser = argparse.ArgumentParser(description="Decode a compressed waypoint payload")
    parser.add_argument("payload_file", help="File holding the outer base64 payload")
    parser.add_argument("--vehicle-id", default=None, help="Vehicle id for the report (default: file name)")
    parser.add_argument("--csv", default=None, help="Write the classified waypoints to this CSV file")

    args = parser.parse_args()

    payload_path = Path(args.payload_file)
    if not payload_path.is_file():
        print(f"Error: payload file not found: {payload_path}")
        return 1

    vehicle_id = args.vehicle_id or payload_path.stem
    service = VehicleHistoryService(StaticWaypointSource())

    try:
        history = service.analyze_payload(vehicle_id, payload_path.read_text(encoding="utf-8"))
    except CorruptPayload as e:
        print(f"Error: {e}")
        return 2

    stats = history.statistics
    print(f"Vehicle: {history.vehicle_id}")
    print("=" * 40)
    print(f"Status:          {stats.status.value}")
    print(f"Window:          {format_timestamp(history.start_time)} -> {format_timestamp(history.end_time)}")
    print(f"Waypoints:       {stats.total_waypoints} ({stats.moving_waypoints} moving)")
    print(f"Distance:        {stats.total_distance_km:.3f} km")
    print(f"Running time:    {stats.running_time}")
    print(f"Idle time:       {stats.idle_time}")
    print(f"Stop time:       {stats.stop_time} ({stats.stop_count} stops)")
    print(f"Average speed:   {stats.average_speed_kmh:.2f} km/h")
    print(f"Highest speed:   {stats.max_speed_kmh:.2f} km/h")

    if args.csv:
        output = write_waypoints_csv(history.waypoints, Path(args.csv))
        print(f"\nWrote {len(history.waypoints)} waypoints to {output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
