"""
Waypoint payload sources and vehicle registries.

The pipeline only needs the compressed payload for a vehicle and window;
where it comes from is pluggable. The HTTP source talks to the upstream
tracking API, the directory source reads payload files for local runs.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import quote

import requests

from tripcore.errors import WaypointSourceError
from tripcore.utils.dates import ISO_PATH_FORMAT


logger = logging.getLogger(__name__)


class WaypointSource(Protocol):
    """Fetches the compressed waypoint payload for a vehicle and time window."""

    def fetch_payload(self, vehicle_id: str, start_time: datetime, end_time: datetime) -> Optional[str]:
        ...


class VehicleRegistry(Protocol):
    """Resolves a license plate or display name to a vehicle id."""

    def resolve_plate(self, plate: str) -> Optional[str]:
        ...


class HttpWaypointSource:
    """
    Upstream waypoint API client.

    GET {base_url}/{vehicle_id}/{start}/{end} returns JSON with the payload
    at data.compressedWaypoints.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout_s: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_s = timeout_s
        self._session = session or requests.Session()

    def build_url(self, vehicle_id: str, start_time: datetime, end_time: datetime) -> str:
        start = quote(start_time.strftime(ISO_PATH_FORMAT), safe="")
        end = quote(end_time.strftime(ISO_PATH_FORMAT), safe="")
        return f"{self.base_url}/{quote(vehicle_id, safe='')}/{start}/{end}"

    def fetch_payload(self, vehicle_id: str, start_time: datetime, end_time: datetime) -> Optional[str]:
        url = self.build_url(vehicle_id, start_time, end_time)
        headers = {"Accept": "*/*"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            resp = self._session.get(url, headers=headers, timeout=self.timeout_s)
            resp.raise_for_status()
            body = resp.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Waypoint request failed for vehicle {vehicle_id}: {e}")
            raise WaypointSourceError(f"Waypoint service request failed: {e}") from e
        except ValueError as e:
            raise WaypointSourceError(f"Waypoint service returned invalid JSON: {e}") from e

        try:
            return body["data"]["compressedWaypoints"]
        except (KeyError, TypeError) as e:
            raise WaypointSourceError("Waypoint service response has no data.compressedWaypoints") from e


class StaticWaypointSource:
    """In-memory payloads keyed by vehicle id. The window is ignored."""

    def __init__(self, payloads: Optional[dict[str, str]] = None):
        self._payloads: dict[str, str] = dict(payloads or {})

    def add(self, vehicle_id: str, payload: str) -> None:
        self._payloads[vehicle_id] = payload

    def fetch_payload(self, vehicle_id: str, start_time: datetime, end_time: datetime) -> Optional[str]:
        return self._payloads.get(vehicle_id)


class DirectoryWaypointSource:
    """
    Reads ``<vehicle_id>.txt`` payload files from a folder.

    The whole file is one outer-encoded payload; the time window is applied
    after decoding.
    """

    def __init__(self, data_folder: Path):
        self.data_folder = data_folder

    def payload_path(self, vehicle_id: str) -> Path:
        return self.data_folder / f"{Path(vehicle_id).name}.txt"

    def list_vehicles(self) -> list[str]:
        if not self.data_folder.exists():
            logger.warning(f"Data folder does not exist: {self.data_folder}")
            return []
        return sorted(p.stem for p in self.data_folder.glob("*.txt") if p.is_file())

    def fetch_payload(self, vehicle_id: str, start_time: datetime, end_time: datetime) -> Optional[str]:
        path = self.payload_path(vehicle_id)
        if not path.is_file():
            logger.info(f"No payload file for vehicle {vehicle_id} in {self.data_folder}")
            return None
        return path.read_text(encoding="utf-8")


class StaticVehicleRegistry:
    """Plate lookup backed by a dict; matching ignores case and spaces."""

    def __init__(self, plates: Optional[dict[str, str]] = None):
        self._plates = {self._normalize(k): v for k, v in (plates or {}).items()}

    @classmethod
    def from_json_file(cls, path: Path) -> "StaticVehicleRegistry":
        """Load a {plate: vehicle_id} JSON object."""
        with open(path, encoding="utf-8") as f:
            plates = json.load(f)
        if not isinstance(plates, dict):
            raise ValueError(f"Plates file must hold a JSON object: {path}")
        logger.info(f"Loaded {len(plates)} plates from {path}")
        return cls({str(k): str(v) for k, v in plates.items()})

    @staticmethod
    def _normalize(plate: str) -> str:
        return "".join(plate.split()).upper()

    def resolve_plate(self, plate: str) -> Optional[str]:
        return self._plates.get(self._normalize(plate))
