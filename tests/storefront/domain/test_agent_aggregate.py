"""Tests for the DeliveryAgent aggregate's state machine."""

import pytest
from protean.exceptions import ValidationError
from storefront.agent.agent import AgentStatus, DeliveryAgent
from storefront.agent.events import AgentDispatched, AgentLocationReported, AgentReleased


def _make_agent():
    agent = DeliveryAgent.register(name="Sam Rider", phone="555-0100", vehicle_type="bike", assigned_station_id="ls-1")
    agent._events.clear()
    return agent


class TestRegister:
    def test_defaults(self):
        agent = DeliveryAgent.register(name="Sam Rider", phone="555-0100", vehicle_type="scooter")
        assert agent.status == AgentStatus.AVAILABLE.value
        assert agent.total_deliveries == 0
        assert agent.rating == 5.0
        assert agent.current_location is None


class TestReportLocation:
    def test_stores_fix_and_last_seen(self):
        agent = _make_agent()
        agent.report_location(30.27, -97.74)
        assert agent.current_location.latitude == 30.27
        assert agent.current_location.recorded_at is not None
        assert agent.last_seen is not None

    def test_raises_location_reported(self):
        agent = _make_agent()
        agent.report_location(30.27, -97.74)
        assert isinstance(agent._events[0], AgentLocationReported)

    def test_out_of_range_latitude(self):
        agent = _make_agent()
        with pytest.raises(ValidationError):
            agent.report_location(95.0, -97.74)


class TestDispatchAndRelease:
    def test_dispatch_makes_agent_busy(self):
        agent = _make_agent()
        agent.dispatch("order-1")
        assert agent.status == AgentStatus.BUSY.value
        assert str(agent.current_order_id) == "order-1"
        assert isinstance(agent._events[0], AgentDispatched)

    def test_busy_agent_cannot_be_dispatched(self):
        agent = _make_agent()
        agent.dispatch("order-1")
        with pytest.raises(ValidationError):
            agent.dispatch("order-2")
        assert str(agent.current_order_id) == "order-1"

    def test_offline_agent_cannot_be_dispatched(self):
        agent = _make_agent()
        agent.change_availability(False)
        with pytest.raises(ValidationError):
            agent.dispatch("order-1")

    def test_release_frees_agent_and_counts_delivery(self):
        agent = _make_agent()
        agent.dispatch("order-1")
        agent.release()
        assert agent.status == AgentStatus.AVAILABLE.value
        assert agent.current_order_id is None
        assert agent.total_deliveries == 1
        assert isinstance(agent._events[-1], AgentReleased)

    def test_release_without_order(self):
        agent = _make_agent()
        with pytest.raises(ValidationError):
            agent.release()


class TestChangeAvailability:
    def test_go_offline_and_back(self):
        agent = _make_agent()
        agent.change_availability(False)
        assert agent.status == AgentStatus.OFFLINE.value
        agent.change_availability(True)
        assert agent.status == AgentStatus.AVAILABLE.value

    def test_same_status_raises_no_event(self):
        agent = _make_agent()
        agent.change_availability(True)
        assert agent._events == []

    def test_busy_agent_cannot_change(self):
        agent = _make_agent()
        agent.dispatch("order-1")
        with pytest.raises(ValidationError):
            agent.change_availability(False)
        assert agent.status == AgentStatus.BUSY.value


class TestToDict:
    def test_includes_location(self):
        agent = _make_agent()
        agent.report_location(30.27, -97.74)
        data = agent.to_dict()
        assert data["current_location"]["longitude"] == -97.74
        assert data["assigned_station_id"] == "ls-1"
