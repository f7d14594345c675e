"""Great-circle distance and naive fixed-speed ETA."""

import math
from datetime import UTC, datetime, timedelta

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def estimate_arrival(distance_km: float, speed_kmh: float, now: datetime | None = None) -> datetime:
    if speed_kmh <= 0:
        raise ValueError("speed_kmh must be positive")
    return (now or datetime.now(UTC)) + timedelta(hours=distance_km / speed_kmh)
