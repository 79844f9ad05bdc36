from typing import List

from src.application.ports import FacilitySearchPort
from src.domain.models import MedicalFacility


class MockFacilitySearchAdapter(FacilitySearchPort):
    def search_facilities(self, latitude: float, longitude: float, radius_meters: int = 5000) -> List[MedicalFacility]:
        kinds = ("hospital", "clinic", "pharmacy")
        sample = [
            MedicalFacility(
                id=i + 1,
                name=f"Example {kinds[i % 3].title()} {i + 1}",
                lat=latitude + 0.002 * (i + 1),
                lng=longitude - 0.002 * (i + 1),
                type=kinds[i % 3],
            )
            for i in range(5)
        ]
        return sample
