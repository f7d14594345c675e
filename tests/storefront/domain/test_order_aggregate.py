"""Tests for Order placement, totals, history and status updates."""

import pytest
from protean.exceptions import ValidationError
from storefront.errors import InvalidStatus
from storefront.order.events import OrderPlaced, OrderStatusChanged
from storefront.order.order import Order, OrderStatus, customer_facing_status, order_number_for

ADDRESS = {"full_name": "Ada Lovelace", "address": "12 Analytical Way", "city": "Austin", "zip_code": "73301"}


def _lines():
    return [
        {"product_id": "prod-001", "name": "Desk Lamp", "price": 24.5, "quantity": 2},
        {"product_id": "prod-002", "name": "Notebook", "price": 3.15, "quantity": 3, "image": "nb.png"},
    ]


def _make_order(**overrides):
    kwargs = {
        "customer_id": "cust-001",
        "lines": _lines(),
        "shipping_address": ADDRESS,
        "payment_method": "card",
        "customer_name": "Ada Lovelace",
        "customer_email": "ada@example.com",
    }
    kwargs.update(overrides)
    return Order.place(**kwargs)


class TestPlaceOrder:
    def test_new_order_is_order_placed(self):
        order = _make_order()
        assert order.status == OrderStatus.ORDER_PLACED.value

    def test_line_totals_and_order_total(self):
        order = _make_order()
        items = order.ordered_items
        assert [i.line_total for i in items] == [49.0, 9.45]
        assert order.total_amount == 58.45

    def test_items_keep_line_order(self):
        order = _make_order()
        assert [str(i.product_id) for i in order.ordered_items] == ["prod-001", "prod-002"]

    def test_history_starts_with_placement(self):
        order = _make_order()
        assert len(order.history) == 1
        assert order.history[0].status == "order_placed"
        assert order.history[0].description == "Order placed successfully, processing at fulfillment center"

    def test_shipping_address_is_kept(self):
        order = _make_order()
        assert order.shipping_address.city == "Austin"
        assert not order.shipping_address.has_coordinates()

    def test_raises_order_placed(self):
        order = _make_order()
        placed = [e for e in order._events if isinstance(e, OrderPlaced)]
        assert len(placed) == 1
        assert placed[0].item_count == 2
        assert placed[0].total_amount == 58.45

    def test_no_journey_yet(self):
        order = _make_order()
        assert order.stages == []
        assert order.estimated_delivery is None


class TestPlacementValidation:
    def test_empty_lines(self):
        with pytest.raises(ValidationError) as exc:
            _make_order(lines=[])
        assert exc.value.messages["items"] == ["Cart is empty"]

    def test_missing_address(self):
        with pytest.raises(ValidationError) as exc:
            _make_order(shipping_address={})
        assert exc.value.messages["shipping_address"] == ["Shipping address is required"]

    def test_address_without_street(self):
        with pytest.raises(ValidationError):
            _make_order(shipping_address={"full_name": "Ada Lovelace", "city": "Austin"})

    def test_missing_payment_method(self):
        with pytest.raises(ValidationError) as exc:
            _make_order(payment_method="")
        assert exc.value.messages["payment_method"] == ["Payment method is required"]


class TestOrderNumber:
    def test_last_eight_characters_uppercased(self):
        assert order_number_for("0f3c9a7e-1b2d-4c5e-9f8a-7b6c5d4e3f2a") == "5D4E3F2A"

    def test_order_number_tracks_id(self):
        order = _make_order()
        assert order.order_number == str(order.id)[-8:].upper()


class TestUpdateStatus:
    def test_sets_coarse_status(self):
        order = _make_order()
        order.update_status("shipped")
        assert order.status == "shipped"

    def test_appends_history_with_default_description(self):
        order = _make_order()
        order.update_status("shipped")
        assert order.history[-1].status == "shipped"
        assert order.history[-1].description == "Your package is on its way"

    def test_custom_description(self):
        order = _make_order()
        order.update_status("cancelled", "Customer changed their mind")
        assert order.history[-1].description == "Customer changed their mind"

    def test_raises_status_changed(self):
        order = _make_order()
        order._events.clear()
        order.update_status("delivered")
        event = order._events[0]
        assert isinstance(event, OrderStatusChanged)
        assert event.previous_status == "order_placed"
        assert event.new_status == "delivered"

    def test_fine_grained_status_is_rejected(self):
        order = _make_order()
        with pytest.raises(InvalidStatus):
            order.update_status("picked_up")
        assert order.status == "order_placed"
        assert len(order.history) == 1

    def test_unknown_status_is_rejected(self):
        order = _make_order()
        with pytest.raises(InvalidStatus):
            order.update_status("lost")


class TestCustomerFacingStatus:
    @pytest.mark.parametrize(
        "status, expected",
        [
            ("order_placed", "order_placed"),
            ("fulfillment_processing", "order_placed"),
            ("regional_transit", "shipped"),
            ("local_station", "shipped"),
            ("waiting_for_agent", "shipped"),
            ("agent_assigned", "shipped"),
            ("picked_up", "out_for_delivery"),
            ("on_the_way", "out_for_delivery"),
            ("delivered", "delivered"),
            ("cancelled", "cancelled"),
        ],
    )
    def test_collapses_onto_coarse_set(self, status, expected):
        assert customer_facing_status(status) == expected


class TestToDict:
    def test_serializes_items_and_display_status(self):
        data = _make_order().to_dict()
        assert data["display_status"] == "order_placed"
        assert len(data["items"]) == 2
        assert data["shipping_address"]["city"] == "Austin"
        assert data["delivery_journey"] == []
        assert data["agent"] is None
        assert data["status_history"][0]["status"] == "order_placed"
