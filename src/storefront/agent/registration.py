"""Agent registration and availability: commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from storefront.agent.agent import DeliveryAgent
from storefront.domain import storefront
from storefront.station.station import Station


@storefront.command(part_of="DeliveryAgent")
class RegisterAgent:
    name = String(required=True, max_length=200)
    phone = String(required=True, max_length=30)
    vehicle_type = String(required=True, max_length=50)
    license_number = String(max_length=50)
    assigned_station_id = Identifier()


@storefront.command(part_of="DeliveryAgent")
class ChangeAgentAvailability:
    agent_id = Identifier(required=True)
    online = Boolean(required=True)


@storefront.command_handler(part_of=DeliveryAgent)
class AgentRegistrationHandler:
    @handle(RegisterAgent)
    def register_agent(self, command):
        if command.assigned_station_id:
            try:
                current_domain.repository_for(Station).get(command.assigned_station_id)
            except ObjectNotFoundError:
                raise ValidationError({"assigned_station_id": ["Invalid station ID"]})

        agent = DeliveryAgent.register(
            name=command.name,
            phone=command.phone,
            vehicle_type=command.vehicle_type,
            license_number=command.license_number,
            assigned_station_id=command.assigned_station_id,
        )
        current_domain.repository_for(DeliveryAgent).add(agent)
        return str(agent.id)

    @handle(ChangeAgentAvailability)
    def change_availability(self, command):
        repo = current_domain.repository_for(DeliveryAgent)
        agent = repo.get(command.agent_id)
        agent.change_availability(online=command.online)
        repo.add(agent)
        return agent.status
