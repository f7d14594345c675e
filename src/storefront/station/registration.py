"""Station registration: command and handler."""

from protean import handle
from protean.fields import Float, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.station.station import Station


@storefront.command(part_of="Station")
class RegisterStation:
    name = String(required=True, max_length=200)
    address = String(required=True, max_length=500)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    station_type = String(required=True, max_length=50)
    latitude = Float(required=True)
    longitude = Float(required=True)
    capacity = Integer(min_value=0)
    operating_hours = String(max_length=50)


@storefront.command_handler(part_of=Station)
class RegisterStationHandler:
    @handle(RegisterStation)
    def register_station(self, command):
        station = Station.register(
            name=command.name,
            address=command.address,
            city=command.city,
            state=command.state,
            zip_code=command.zip_code,
            station_type=command.station_type,
            latitude=command.latitude,
            longitude=command.longitude,
            capacity=command.capacity,
            operating_hours=command.operating_hours,
        )
        current_domain.repository_for(Station).add(station)
        return str(station.id)
