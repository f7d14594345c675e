"""Delivery routing planner: lays out a journey across the station network.

Pure functions: stations and the schedule come in, stage dicts come out.
Station lookup and persistence live in ``routing``.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from storefront.order.order import StageName, StageStatus
from storefront.settings import Settings, get_settings


@dataclass(frozen=True)
class JourneySchedule:
    """Cumulative offsets, in hours from planning time, for each stage's estimate."""

    fulfillment_processing: float = 2
    regional_transit: float = 8
    local_station_arrival: float = 12
    agent_assignment: float = 14
    out_for_delivery: float = 16

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "JourneySchedule":
        settings = settings or get_settings()
        return cls(
            fulfillment_processing=settings.fulfillment_processing_hours,
            regional_transit=settings.regional_transit_hours,
            local_station_arrival=settings.local_station_hours,
            agent_assignment=settings.agent_assignment_hours,
            out_for_delivery=settings.out_for_delivery_hours,
        )

    def offset(self, stage: StageName) -> timedelta:
        return timedelta(hours=getattr(self, stage.value))


def build_journey(
    fulfillment_center,
    local_station,
    destination_address: str,
    regional_hub=None,
    schedule: JourneySchedule | None = None,
    now: datetime | None = None,
) -> list[dict]:
    """Stages in travel order; the first starts immediately, the rest are pending.

    ``fulfillment_center``, ``local_station`` and ``regional_hub`` are Station
    aggregates (or anything with ``name``, ``address`` and ``city``).
    """
    schedule = schedule or JourneySchedule.from_settings()
    now = now or datetime.now(UTC)

    def stage(name: StageName, location: str, address: str, description: str) -> dict:
        first = name == StageName.FULFILLMENT_PROCESSING
        return {
            "name": name.value,
            "location": location,
            "address": address,
            "status": StageStatus.IN_PROGRESS.value if first else StageStatus.PENDING.value,
            "started_at": now if first else None,
            "estimated_time": now + schedule.offset(name),
            "description": description,
        }

    stages = [
        stage(
            StageName.FULFILLMENT_PROCESSING,
            fulfillment_center.name,
            fulfillment_center.address,
            "Order being processed at fulfillment center",
        )
    ]
    if regional_hub is not None:
        stages.append(
            stage(
                StageName.REGIONAL_TRANSIT,
                regional_hub.name,
                regional_hub.address,
                f"In transit to regional hub in {regional_hub.city}",
            )
        )
    stages.append(
        stage(
            StageName.LOCAL_STATION_ARRIVAL,
            local_station.name,
            local_station.address,
            f"Arrived at local delivery station in {local_station.city}",
        )
    )
    stages.append(
        stage(
            StageName.AGENT_ASSIGNMENT,
            local_station.name,
            local_station.address,
            "Waiting for delivery agent assignment",
        )
    )
    stages.append(
        stage(
            StageName.OUT_FOR_DELIVERY,
            "Customer Address",
            destination_address,
            "Out for delivery to customer",
        )
    )
    return stages
