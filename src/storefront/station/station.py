"""Station aggregate: a node in the delivery network.

Stations are registered once and only read afterwards: the routing planner
picks them by type and city when a journey is planned.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.station.events import StationRegistered


class StationType(Enum):
    FULFILLMENT_CENTER = "fulfillment_center"
    REGIONAL_HUB = "regional_hub"
    LOCAL_STATION = "local_station"


@storefront.aggregate
class Station:
    name = String(required=True, max_length=200)
    address = String(required=True, max_length=500)
    city = String(required=True, max_length=100)  # stored lower-cased
    state = String(max_length=100)
    zip_code = String(max_length=20)
    station_type = String(required=True, choices=StationType)
    latitude = Float(required=True)
    longitude = Float(required=True)
    capacity = Integer(default=1000, min_value=0)
    current_load = Integer(default=0, min_value=0)
    operating_hours = String(max_length=50, default="24/7")
    created_at = DateTime()

    @classmethod
    def register(
        cls,
        name: str,
        address: str,
        city: str,
        station_type: str,
        latitude: float,
        longitude: float,
        state: str | None = None,
        zip_code: str | None = None,
        capacity: int | None = None,
        operating_hours: str | None = None,
    ):
        now = datetime.now(UTC)
        station = cls(
            name=name,
            address=address,
            city=normalize_city(city),
            state=state,
            zip_code=zip_code,
            station_type=station_type,
            latitude=latitude,
            longitude=longitude,
            capacity=1000 if capacity is None else capacity,
            current_load=0,
            operating_hours=operating_hours or "24/7",
            created_at=now,
        )
        station.raise_(
            StationRegistered(
                station_id=str(station.id),
                name=name,
                city=station.city,
                station_type=station_type,
                registered_at=now,
            )
        )
        return station

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "station_type": self.station_type,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "capacity": self.capacity,
            "current_load": self.current_load,
            "operating_hours": self.operating_hours,
        }


def normalize_city(city: str | None) -> str:
    return (city or "").strip().lower()


def stations_of_type(station_type: StationType, city: str | None = None) -> list:
    """Registered stations of a type, optionally restricted to a city, oldest first."""
    filters = {"station_type": station_type.value}
    if city is not None:
        filters["city"] = normalize_city(city)
    query = current_domain.repository_for(Station)._dao.query.filter(**filters).order_by("created_at")
    return query.limit(None).all().items
