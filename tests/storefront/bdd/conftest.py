"""Shared BDD fixtures and step definitions for the storefront."""

import json

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then
from storefront.order.order import Order
from storefront.order.placement import PlaceOrder
from storefront.product.management import AddProduct
from storefront.product.product import Product

ADDRESS = {
    "full_name": "Ada Lovelace",
    "address": "12 Analytical Way",
    "latitude": 30.2672,
    "longitude": -97.7431,
}


def process(command):
    return current_domain.process(command, asynchronous=False)


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer_id():
    return "cust-001"


@pytest.fixture()
def catalogue():
    """Product name → product id, filled by the Given steps."""
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:f} with {stock:d} in stock'))
def _(catalogue, name, price, stock):
    catalogue[name] = process(AddProduct(name=name, price=price, stock=stock))


@given(parsers.cfparse('an order for {quantity:d} "{name}" shipped to "{city}"'), target_fixture="order_id")
def _(catalogue, customer_id, quantity, name, city):
    result = process(
        PlaceOrder(
            customer_id=customer_id,
            items=json.dumps([{"product_id": catalogue[name], "quantity": quantity}]),
            shipping_address=json.dumps({**ADDRESS, "city": city}),
            payment_method="card",
        )
    )
    return result["id"]


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.cfparse("the order total is {total:f}"))
def _(order_id, total):
    assert current_domain.repository_for(Order).get(order_id).total_amount == pytest.approx(total)


@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def _(catalogue, name, stock):
    assert current_domain.repository_for(Product).get(catalogue[name]).stock == stock
