"""Journey planning: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.delivery.planner import JourneySchedule, build_journey
from storefront.domain import storefront
from storefront.errors import NoFulfillmentCenter, NoLocalStation, NotReady
from storefront.order.order import Order, OrderStatus, stage_to_dict
from storefront.station.station import StationType, stations_of_type

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlanJourney:
    """Route a newly placed order through the station network."""

    order_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class PlanJourneyHandler:
    @handle(PlanJourney)
    def plan_journey(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if OrderStatus(order.status) != OrderStatus.ORDER_PLACED:
            raise NotReady({"status": ["Order not ready for processing"]})
        order.assert_routable()

        city = order.shipping_address.city
        centers = stations_of_type(StationType.FULFILLMENT_CENTER)
        if not centers:
            raise NoFulfillmentCenter("No fulfillment center available")
        hubs = stations_of_type(StationType.REGIONAL_HUB, city)
        locals_ = stations_of_type(StationType.LOCAL_STATION, city)
        if not locals_:
            raise NoLocalStation(f"No local delivery station found in {city.strip().lower()}")

        center, local_station = centers[0], locals_[0]
        hub = hubs[0] if hubs else None
        stages = build_journey(
            fulfillment_center=center,
            local_station=local_station,
            destination_address=order.shipping_address.address,
            regional_hub=hub,
            schedule=JourneySchedule.from_settings(),
        )
        order.begin_journey(
            stages,
            {
                "fulfillment_center_id": str(center.id),
                "regional_hub_id": str(hub.id) if hub else None,
                "local_station_id": str(local_station.id),
            },
        )
        repo.add(order)

        logger.info(
            "Delivery journey planned",
            order_id=str(order.id),
            stage_count=len(stages),
            via_regional_hub=hub is not None,
        )
        return {
            "journey": [stage_to_dict(s) for s in order.stages],
            "estimated_delivery": order.estimated_delivery,
        }
