"""Agent roster queries."""

from protean.utils.globals import current_domain

from storefront.agent.agent import AgentStatus, DeliveryAgent


def available_agents_at(station_id) -> list:
    """Available agents bound to the station that have reported a location, in registration order."""
    agents = (
        current_domain.repository_for(DeliveryAgent)
        ._dao.query.filter(status=AgentStatus.AVAILABLE.value, assigned_station_id=str(station_id))
        .order_by("created_at")
        .limit(None)
        .all()
        .items
    )
    return [a for a in agents if a.current_location is not None]


def all_agents() -> list:
    return current_domain.repository_for(DeliveryAgent)._dao.query.order_by("created_at").limit(None).all().items
