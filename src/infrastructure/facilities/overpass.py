import logging
import time
from typing import Callable, List, Optional

import requests

from src.application.ports import FacilitySearchPort
from src.domain.models import MedicalFacility
from src.infrastructure.config import Settings


logger = logging.getLogger(__name__)


FACILITY_TYPES = ("hospital", "clinic", "pharmacy")
RETRYABLE_STATUSES = {502, 503, 504}
REQUEST_TIMEOUT = 30
BACKOFF_STEP = 0.5
USER_AGENT = "SymptomIntake/1.0"


class FacilitySearchError(RuntimeError):
    """Every Overpass mirror failed."""


def validate_coordinates(latitude: float, longitude: float) -> None:
    for value in (latitude, longitude):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("Invalid coordinates. Latitude and longitude must be numbers.")
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        raise ValueError(
            "Invalid coordinates. Latitude must be between -90 and 90, longitude between -180 and 180."
        )


def build_query(latitude: float, longitude: float, radius_meters: int) -> str:
    # Nodes only; ways/relations make the mirrors time out
    around = f"(around:{radius_meters},{latitude},{longitude})"
    nodes = "\n".join(f'  node["amenity"="{kind}"]{around};' for kind in FACILITY_TYPES)
    return f"[out:json][timeout:30];\n(\n{nodes}\n);\nout;"


def parse_facilities(data: dict) -> List[MedicalFacility]:
    facilities: List[MedicalFacility] = []
    seen = set()

    for element in data.get("elements") or []:
        center = element.get("center") or {}
        lat = element.get("lat")
        if lat is None:
            lat = center.get("lat")
        lng = element.get("lon")
        if lng is None:
            lng = center.get("lon")
        # 0.0 is a real coordinate
        if lat is None or lng is None or element.get("id") is None:
            continue

        tags = element.get("tags") or {}
        amenity = tags.get("amenity")
        if amenity not in FACILITY_TYPES:
            continue

        name = tags.get("name") or tags.get("name:en") or tags.get("name:hi") or tags.get("name:mr") or "Unnamed Facility"

        # Same name within roughly 100m is the same place
        key = (name, round(lat * 1000), round(lng * 1000))
        if key in seen:
            continue
        seen.add(key)

        facilities.append(MedicalFacility(id=element["id"], name=name, lat=lat, lng=lng, type=amenity))

    return facilities


class OverpassFacilitySearchAdapter(FacilitySearchPort):
    def __init__(
        self,
        settings: Settings | None = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or Settings()
        self.urls = self.settings.overpass_urls
        self.session = session or requests.Session()
        self._sleep = sleep

    def search_facilities(self, latitude: float, longitude: float, radius_meters: int = 5000) -> List[MedicalFacility]:
        validate_coordinates(latitude, longitude)
        query = build_query(latitude, longitude, radius_meters)

        last_error: Exception | None = None
        for attempt, url in enumerate(self.urls):
            if attempt > 0:
                self._sleep(BACKOFF_STEP * attempt)
            try:
                resp = self.session.post(
                    url,
                    data={"data": query},
                    headers={"User-Agent": USER_AGENT},
                    timeout=REQUEST_TIMEOUT,
                )
                if resp.status_code in RETRYABLE_STATUSES:
                    last_error = FacilitySearchError(f"Overpass API unavailable ({resp.status_code})")
                    logger.warning("Overpass mirror %s unavailable (%s), trying next", url, resp.status_code)
                    continue
                resp.raise_for_status()
                data = resp.json()
            except (requests.RequestException, ValueError) as e:
                logger.warning("Failed to fetch from %s: %s", url, e)
                last_error = e
                continue

            facilities = parse_facilities(data)
            logger.info("Found %d facilities via %s", len(facilities), url)
            return facilities

        if last_error is None:
            return []
        logger.error("All Overpass API attempts failed: %s", last_error)
        raise FacilitySearchError(
            "Unable to fetch medical facilities. The Overpass API may be temporarily unavailable."
        ) from last_error
