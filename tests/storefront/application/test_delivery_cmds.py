"""Application tests for routing, stage advancement, agent assignment and hand-off."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from storefront.agent.agent import DeliveryAgent
from storefront.agent.location import UpdateAgentLocation
from storefront.agent.registration import ChangeAgentAvailability, RegisterAgent
from storefront.agent.roster import available_agents_at
from storefront.agent.selection import set_selection_policy
from storefront.agent.selection.port import AgentSelectionPolicy
from storefront.delivery.assignment import AssignAgent
from storefront.delivery.handover import CompleteDelivery, PickUpOrder, StartDelivery
from storefront.delivery.routing import PlanJourney
from storefront.delivery.stages import AdvanceStage
from storefront.delivery.tracking import track_order
from storefront.errors import (
    AlreadyFinal,
    AssignmentNotFound,
    MissingCity,
    NoAvailableAgent,
    NoFulfillmentCenter,
    NoLocalStation,
    NotReady,
)
from storefront.order.order import Order
from storefront.order.placement import PlaceOrder
from storefront.order.status import UpdateOrderStatus
from storefront.product.management import AddProduct
from storefront.product.product import Product
from storefront.station.registration import RegisterStation

ADDRESS = {
    "full_name": "Ada Lovelace",
    "address": "12 Analytical Way",
    "city": "Austin",
    "latitude": 30.2672,
    "longitude": -97.7431,
}


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _station(station_type, city="Austin", name=None):
    return _process(
        RegisterStation(
            name=name or f"{city} {station_type}",
            address=f"1 {station_type} Rd",
            city=city,
            station_type=station_type,
            latitude=30.3,
            longitude=-97.7,
        )
    )


def _network(with_hub=True):
    stations = {
        "fulfillment_center": _station("fulfillment_center", city="Dallas"),
        "local_station": _station("local_station"),
    }
    if with_hub:
        stations["regional_hub"] = _station("regional_hub")
    return stations


def _agent(station_id, name="Sam Rider", located=True):
    agent_id = _process(
        RegisterAgent(name=name, phone="555-0100", vehicle_type="bike", assigned_station_id=station_id)
    )
    if located:
        _process(UpdateAgentLocation(agent_id=agent_id, latitude=30.30, longitude=-97.70))
    return agent_id


def _placed_order(address=ADDRESS, customer_id="cust-001"):
    product_id = _process(AddProduct(name="Desk Lamp", price=24.5, stock=10))
    result = _process(
        PlaceOrder(
            customer_id=customer_id,
            items=json.dumps([{"product_id": product_id, "quantity": 1}]),
            shipping_address=json.dumps(address),
            payment_method="card",
        )
    )
    return result["id"]


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _waiting_order(with_hub=True):
    stations = _network(with_hub=with_hub)
    order_id = _placed_order()
    _process(PlanJourney(order_id=order_id))
    while _order(order_id).status != "waiting_for_agent":
        _process(AdvanceStage(order_id=order_id))
    return order_id, stations


class TestPlanJourney:
    def test_five_stages_through_regional_hub(self):
        _network()
        order_id = _placed_order()

        result = _process(PlanJourney(order_id=order_id))

        assert [s["name"] for s in result["journey"]] == [
            "fulfillment_processing",
            "regional_transit",
            "local_station_arrival",
            "agent_assignment",
            "out_for_delivery",
        ]
        assert result["estimated_delivery"] == result["journey"][-1]["estimated_time"]
        assert _order(order_id).status == "fulfillment_processing"

    def test_four_stages_without_hub(self):
        _network(with_hub=False)
        order_id = _placed_order()
        result = _process(PlanJourney(order_id=order_id))
        assert len(result["journey"]) == 4
        assert _order(order_id).assigned_stations.regional_hub_id is None

    def test_picks_the_oldest_matching_station(self):
        first = _station("fulfillment_center", city="Dallas", name="First FC")
        _station("fulfillment_center", city="Houston", name="Second FC")
        _station("local_station")
        order_id = _placed_order()
        _process(PlanJourney(order_id=order_id))
        assert str(_order(order_id).assigned_stations.fulfillment_center_id) == first

    def test_city_match_ignores_case(self):
        _station("fulfillment_center", city="Dallas")
        local = _station("local_station", city="  AUSTIN ")
        order_id = _placed_order()
        _process(PlanJourney(order_id=order_id))
        assert str(_order(order_id).assigned_stations.local_station_id) == local

    def test_no_fulfillment_center(self):
        _station("local_station")
        order_id = _placed_order()
        with pytest.raises(NoFulfillmentCenter):
            _process(PlanJourney(order_id=order_id))
        assert _order(order_id).status == "order_placed"

    def test_no_local_station_in_city(self):
        _station("fulfillment_center", city="Dallas")
        _station("local_station", city="Houston")
        order_id = _placed_order()
        with pytest.raises(NoLocalStation) as exc:
            _process(PlanJourney(order_id=order_id))
        assert "austin" in str(exc.value)
        assert _order(order_id).stages == []

    def test_order_without_city(self):
        _network()
        order_id = _placed_order(address={"full_name": "Ada Lovelace", "address": "12 Analytical Way"})
        with pytest.raises(MissingCity):
            _process(PlanJourney(order_id=order_id))

    def test_already_routed_order(self):
        _network()
        order_id = _placed_order()
        _process(PlanJourney(order_id=order_id))
        with pytest.raises(NotReady):
            _process(PlanJourney(order_id=order_id))

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            _process(PlanJourney(order_id="no-such-order"))


class TestAdvanceStage:
    def test_reports_new_stage(self):
        _network()
        order_id = _placed_order()
        _process(PlanJourney(order_id=order_id))

        result = _process(AdvanceStage(order_id=order_id))

        assert result["current_stage_index"] == 1
        assert result["current_stage"]["name"] == "regional_transit"
        assert result["order_status"] == "regional_transit"

    def test_terminal_stage(self):
        _network()
        order_id = _placed_order()
        _process(PlanJourney(order_id=order_id))
        for _ in range(4):
            _process(AdvanceStage(order_id=order_id))
        with pytest.raises(AlreadyFinal):
            _process(AdvanceStage(order_id=order_id))
        assert _order(order_id).current_stage == 4

    def test_unplanned_order(self):
        order_id = _placed_order()
        with pytest.raises(ObjectNotFoundError):
            _process(AdvanceStage(order_id=order_id))

    def test_advancing_past_agent_assignment_without_an_agent(self):
        order_id, stations = _waiting_order()
        _agent(stations["local_station"])

        result = _process(AdvanceStage(order_id=order_id))

        assert result["order_status"] == "out_for_delivery"
        assert _order(order_id).agent_id is None
        with pytest.raises(NotReady):
            _process(AssignAgent(order_id=order_id))
        with pytest.raises(AlreadyFinal):
            _process(AdvanceStage(order_id=order_id))
        assert _process(UpdateOrderStatus(order_id=order_id, status="delivered")) == "delivered"


class TestAssignAgent:
    def test_dispatches_first_available_agent(self):
        order_id, stations = _waiting_order()
        first = _agent(stations["local_station"], name="First Rider")
        _agent(stations["local_station"], name="Second Rider")

        result = _process(AssignAgent(order_id=order_id))

        assert result == {"id": first, "name": "First Rider", "phone": "555-0100"}
        order = _order(order_id)
        assert order.status == "agent_assigned"
        assert str(order.agent_id) == first
        agent = current_domain.repository_for(DeliveryAgent).get(first)
        assert agent.status == "busy"
        assert str(agent.current_order_id) == order_id

    def test_agents_without_location_are_skipped(self):
        order_id, stations = _waiting_order()
        _agent(stations["local_station"], name="Silent Rider", located=False)
        located = _agent(stations["local_station"], name="Located Rider")
        assert _process(AssignAgent(order_id=order_id))["id"] == located

    def test_offline_agents_are_skipped(self):
        order_id, stations = _waiting_order()
        agent_id = _agent(stations["local_station"])
        _process(ChangeAgentAvailability(agent_id=agent_id, online=False))
        with pytest.raises(NoAvailableAgent):
            _process(AssignAgent(order_id=order_id))

    def test_busy_agent_is_not_assigned_twice(self):
        first_order, stations = _waiting_order()
        _agent(stations["local_station"])
        _process(AssignAgent(order_id=first_order))

        second_order = _placed_order(customer_id="cust-002")
        _process(PlanJourney(order_id=second_order))
        while _order(second_order).status != "waiting_for_agent":
            _process(AdvanceStage(order_id=second_order))

        with pytest.raises(NoAvailableAgent):
            _process(AssignAgent(order_id=second_order))
        assert _order(second_order).agent_id is None

    def test_agents_at_other_stations_are_ignored(self):
        order_id, _ = _waiting_order()
        elsewhere = _station("local_station", city="Houston")
        _agent(elsewhere)
        with pytest.raises(NoAvailableAgent):
            _process(AssignAgent(order_id=order_id))

    def test_order_not_waiting(self):
        stations = _network()
        _agent(stations["local_station"])
        order_id = _placed_order()
        _process(PlanJourney(order_id=order_id))
        with pytest.raises(NotReady):
            _process(AssignAgent(order_id=order_id))

    def test_custom_selection_policy(self):
        class LastRegistered(AgentSelectionPolicy):
            name = "last_registered"

            def select(self, candidates, order):
                return candidates[-1]

        order_id, stations = _waiting_order()
        _agent(stations["local_station"], name="First Rider")
        last = _agent(stations["local_station"], name="Last Rider")
        set_selection_policy(LastRegistered())

        assert _process(AssignAgent(order_id=order_id))["id"] == last

    def test_stage_advancement_refused_after_assignment(self):
        order_id, stations = _waiting_order()
        _agent(stations["local_station"])
        _process(AssignAgent(order_id=order_id))
        with pytest.raises(NotReady):
            _process(AdvanceStage(order_id=order_id))


class TestHandover:
    def _assigned(self):
        order_id, stations = _waiting_order()
        agent_id = _agent(stations["local_station"])
        _process(AssignAgent(order_id=order_id))
        return order_id, agent_id

    def test_round_trip_frees_the_agent(self):
        order_id, agent_id = self._assigned()

        assert _process(PickUpOrder(order_id=order_id, agent_id=agent_id)) == "picked_up"
        assert _process(StartDelivery(order_id=order_id, agent_id=agent_id)) == "on_the_way"
        assert (
            _process(CompleteDelivery(order_id=order_id, agent_id=agent_id, delivery_proof="photo.jpg")) == "delivered"
        )

        order = _order(order_id)
        assert order.delivery_proof == "photo.jpg"
        assert all(s.status == "completed" for s in order.stages)
        agent = current_domain.repository_for(DeliveryAgent).get(agent_id)
        assert agent.status == "available"
        assert agent.current_order_id is None
        assert agent.total_deliveries == 1

    def test_freed_agent_can_take_the_next_order(self):
        order_id, agent_id = self._assigned()
        for step in (PickUpOrder, StartDelivery, CompleteDelivery):
            _process(step(order_id=order_id, agent_id=agent_id))

        station_id = str(_order(order_id).assigned_stations.local_station_id)
        assert [str(a.id) for a in available_agents_at(station_id)] == [agent_id]

    def test_wrong_agent(self):
        order_id, _ = self._assigned()
        with pytest.raises(AssignmentNotFound):
            _process(PickUpOrder(order_id=order_id, agent_id="someone-else"))
        assert _order(order_id).status == "agent_assigned"

    def test_out_of_order_step(self):
        order_id, agent_id = self._assigned()
        with pytest.raises(AssignmentNotFound):
            _process(CompleteDelivery(order_id=order_id, agent_id=agent_id))
        agent = current_domain.repository_for(DeliveryAgent).get(agent_id)
        assert agent.status == "busy"

    def test_busy_agent_cannot_go_offline(self):
        _, agent_id = self._assigned()
        with pytest.raises(ValidationError):
            _process(ChangeAgentAvailability(agent_id=agent_id, online=False))


class TestLocationTracking:
    def test_location_update_refreshes_order_tracking(self):
        order_id, stations = _waiting_order()
        agent_id = _agent(stations["local_station"])
        _process(AssignAgent(order_id=order_id))

        _process(UpdateAgentLocation(agent_id=agent_id, latitude=30.2672, longitude=-97.7531))

        tracking = _order(order_id).tracking
        assert tracking.agent_longitude == -97.7531
        assert tracking.distance_remaining_km == pytest.approx(0.96, abs=0.01)
        assert tracking.estimated_arrival > tracking.last_update

    def test_location_update_without_order_changes_only_the_agent(self):
        stations = _network()
        agent_id = _agent(stations["local_station"])
        _process(UpdateAgentLocation(agent_id=agent_id, latitude=31.0, longitude=-97.0))
        agent = current_domain.repository_for(DeliveryAgent).get(agent_id)
        assert agent.current_location.latitude == 31.0

    def test_unknown_agent(self):
        with pytest.raises(ObjectNotFoundError):
            _process(UpdateAgentLocation(agent_id="ghost", latitude=31.0, longitude=-97.0))


class TestTrackOrder:
    def test_placed_order_has_no_journey(self):
        order_id = _placed_order()
        view = track_order(order_id)
        assert view["status"] == "order_placed"
        assert view["delivery_journey"] is None
        assert view["agent"] is None
        assert view["stations"] is None

    def test_in_flight_order_shows_agent_and_eta(self):
        order_id, stations = _waiting_order()
        _agent(stations["local_station"])
        _process(AssignAgent(order_id=order_id))

        view = track_order(order_id)

        assert view["display_status"] == "shipped"
        assert view["agent"]["name"] == "Sam Rider"
        assert view["distance_remaining_km"] > 0
        assert view["estimated_arrival"] is not None
        assert view["stations"]["local_station"]["id"] == stations["local_station"]
        assert view["stations"]["regional_hub"]["station_type"] == "regional_hub"

    def test_no_eta_without_destination_coordinates(self):
        stations = _network()
        address = {k: v for k, v in ADDRESS.items() if k not in ("latitude", "longitude")}
        order_id = _placed_order(address=address)
        _process(PlanJourney(order_id=order_id))
        while _order(order_id).status != "waiting_for_agent":
            _process(AdvanceStage(order_id=order_id))
        _agent(stations["local_station"])
        _process(AssignAgent(order_id=order_id))

        view = track_order(order_id)
        assert view["agent"] is not None
        assert view["estimated_arrival"] is None


class TestAdminStatusUpdate:
    def test_cancel_does_not_restock(self):
        order_id = _placed_order()
        product_id = str(_order(order_id).ordered_items[0].product_id)
        assert _process(UpdateOrderStatus(order_id=order_id, status="cancelled")) == "cancelled"
        assert _order(order_id).history[-1].description == "Order has been cancelled"
        assert current_domain.repository_for(Product).get(product_id).stock == 9

    def _picked_up(self):
        order_id, stations = _waiting_order()
        agent_id = _agent(stations["local_station"])
        _process(AssignAgent(order_id=order_id))
        _process(PickUpOrder(order_id=order_id, agent_id=agent_id))
        return order_id, agent_id, stations["local_station"]

    def test_cancelling_a_carried_order_frees_the_agent(self):
        order_id, agent_id, station_id = self._picked_up()

        assert _process(UpdateOrderStatus(order_id=order_id, status="cancelled")) == "cancelled"

        agent = current_domain.repository_for(DeliveryAgent).get(agent_id)
        assert agent.status == "available"
        assert agent.current_order_id is None
        assert agent.total_deliveries == 0
        assert [str(a.id) for a in available_agents_at(station_id)] == [agent_id]

    def test_marking_a_carried_order_delivered_frees_the_agent_without_counting(self):
        order_id, agent_id, _ = self._picked_up()

        _process(UpdateOrderStatus(order_id=order_id, status="delivered"))

        agent = current_domain.repository_for(DeliveryAgent).get(agent_id)
        assert agent.status == "available"
        assert agent.total_deliveries == 0
        with pytest.raises(AssignmentNotFound):
            _process(StartDelivery(order_id=order_id, agent_id=agent_id))

    def test_override_before_assignment_leaves_agents_alone(self):
        order_id, stations = _waiting_order()
        agent_id = _agent(stations["local_station"])

        _process(UpdateOrderStatus(order_id=order_id, status="shipped"))

        agent = current_domain.repository_for(DeliveryAgent).get(agent_id)
        assert agent.status == "available"
        assert agent.current_order_id is None
