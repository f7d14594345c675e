"""Station domain events."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Station")
class StationRegistered:
    """A delivery station joined the network."""

    __version__ = 1

    station_id = Identifier(required=True)
    name = String(required=True)
    city = String(required=True)
    station_type = String(required=True)
    registered_at = DateTime(required=True)
