"""Order tracking view: journey, stations, agent and a live ETA."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.agent.agent import DeliveryAgent
from storefront.delivery.geo import estimate_arrival, haversine_km
from storefront.order.order import ACTIVE_DELIVERY_STATUSES, Order, OrderStatus, customer_facing_status, stage_to_dict
from storefront.settings import get_settings
from storefront.station.station import Station


def _station(station_id) -> dict | None:
    if not station_id:
        return None
    try:
        return current_domain.repository_for(Station).get(station_id).to_dict()
    except ObjectNotFoundError:
        return None


def track_order(order_id) -> dict:
    order = current_domain.repository_for(Order).get(order_id)
    view = {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "status": order.status,
        "display_status": customer_facing_status(order.status),
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "delivery_journey": [stage_to_dict(s) for s in order.stages] or None,
        "current_stage": order.current_stage or 0,
        "agent": None,
        "estimated_arrival": None,
        "distance_remaining_km": None,
        "stations": None,
    }

    if order.agent_id:
        try:
            agent = current_domain.repository_for(DeliveryAgent).get(order.agent_id)
        except ObjectNotFoundError:
            agent = None
        if agent is not None:
            details = agent.to_dict()
            view["agent"] = {
                "name": details["name"],
                "phone": details["phone"],
                "vehicle_type": details["vehicle_type"],
                "current_location": details["current_location"],
            }
            address = order.shipping_address
            fix = agent.current_location
            if (
                OrderStatus(order.status) in ACTIVE_DELIVERY_STATUSES
                and fix is not None
                and address is not None
                and address.has_coordinates()
            ):
                distance = haversine_km(fix.latitude, fix.longitude, address.latitude, address.longitude)
                view["distance_remaining_km"] = round(distance, 3)
                view["estimated_arrival"] = estimate_arrival(distance, get_settings().agent_average_speed_kmh)

    if order.assigned_stations:
        stations = order.assigned_stations
        view["stations"] = {
            "fulfillment_center": _station(stations.fulfillment_center_id),
            "regional_hub": _station(stations.regional_hub_id),
            "local_station": _station(stations.local_station_id),
        }
    return view
