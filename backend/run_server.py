#!/usr/bin/env python3
"""
Launch script for Vehicle Trip Analytics Backend.

Usage:
    python run_server.py [data_folder] [--port PORT] [--host HOST] [--api-url URL]

Examples:
    python run_server.py                          # Use default ./data/payloads folder
    python run_server.py /path/to/payloads        # Use custom folder
    python run_server.py --api-url https://host/api/waypoints   # Fetch from upstream
"""

import argparse
import os
import sys
from pathlib import Path

# Add tripcore to path
sys.path.insert(0, str(Path(__file__).parent))

from tripcore.config import API_TOKEN_ENV, DATA_FOLDER_ENV, WAYPOINT_API_URL_ENV


def main():
    parser = argparse.ArgumentParser(description="Vehicle Trip Analytics Backend Server")
    parser.add_argument(
        "data_folder",
        nargs="?",
        default="./data/payloads",
        help="Path to folder containing <vehicle_id>.txt payload files (default: ./data/payloads)"
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Upstream waypoint API base URL; overrides the data folder"
    )
    parser.add_argument(
        "--token",
        default=None,
        help="Bearer token for the upstream waypoint API"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8000,
        help="Port to run server on (default: 8000)"
    )
    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for all interfaces)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Run in debug mode"
    )

    args = parser.parse_args()

    data_folder = Path(args.data_folder)

    print("Vehicle Trip Analytics Backend")
    print("=" * 40)
    if args.api_url:
        print(f"Waypoint API: {args.api_url}")
    else:
        print(f"Data folder: {data_folder.absolute()}")
    print(f"Server: http://{args.host}:{args.port}")
    print("=" * 40)

    # Configure sources for FastAPI lifespan
    if args.api_url:
        os.environ[WAYPOINT_API_URL_ENV] = args.api_url
        if args.token:
            os.environ[API_TOKEN_ENV] = args.token
    else:
        if not data_folder.exists():
            print(f"\nWarning: Data folder does not exist: {data_folder}")
            print("Generate sample payloads with: python -m tripcore.utils.sample_data")
        os.environ[DATA_FOLDER_ENV] = str(data_folder)

    print("\nAPI Endpoints:")
    print("  GET  /                                     - Health check")
    print("  GET  /health                               - Detailed health")
    print("  GET  /vehicles/{id}/history                - History for a time window")
    print("  GET  /vehicles/{id}/history/last-hours     - History for the last N hours")
    print("  GET  /vehicles/{id}/history/date/{date}    - History for a day (dd-mm-YYYY)")
    print("  GET  /vehicles/{id}/history/export         - History as CSV")
    print("  GET  /vehicles/{id}/trip-summary           - Moving-only trip summary")
    print("  GET  /plates/{plate}/history               - History by license plate")
    print("  POST /decode                               - Decode a raw payload")
    print("\nStarting server...")

    import uvicorn

    uvicorn.run(
        "tripcore.main:app",
        host=args.host,
        port=args.port,
        reload=args.debug,
        log_level="info",
    )


if __name__ == "__main__":
    main()
