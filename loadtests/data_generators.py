"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the storefront's validation rules
and match the field names expected by the API's Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()

# Cities the delivery scenarios register a full station network for
CITIES = ["Austin", "Denver", "Portland", "Raleigh"]

ADMIN_HEADERS = {"X-User-Id": "loadtest-admin", "X-User-Role": "admin"}


def customer_headers() -> dict:
    """A fresh customer principal, as the upstream gateway would resolve it."""
    return {
        "X-User-Id": f"cust-lt-{uuid.uuid4().hex[:8]}",
        "X-User-Name": fake.name()[:200],
        "X-User-Email": fake.email(),
    }


def agent_headers(agent_id: str) -> dict:
    return {"X-Agent-Id": agent_id}


# ---------- Catalogue ----------


def product_data(stock: int | None = None) -> dict:
    """Generate an AddProductRequest payload."""
    return {
        "name": fake.catch_phrase()[:200],
        "description": fake.paragraph(nb_sentences=2),
        "price": round(random.uniform(2.0, 250.0), 2),
        "stock": random.randint(20, 200) if stock is None else stock,
        "image": f"https://cdn.example.com/{uuid.uuid4().hex[:10]}.jpg",
        "category": random.choice(["kitchen", "office", "garden", "outdoor", "toys"]),
    }


# ---------- Orders ----------


def shipping_address(city: str | None = None) -> dict:
    """Generate a ShippingAddressRequest payload with coordinates near the city."""
    return {
        "full_name": fake.name()[:200],
        "address": fake.street_address()[:500],
        "city": city or random.choice(CITIES),
        "state": fake.state_abbr(),
        "zip_code": fake.zipcode()[:20],
        "latitude": float(fake.latitude()),
        "longitude": float(fake.longitude()),
    }


def place_order_data(product_ids: list[str], city: str | None = None, max_quantity: int = 3) -> dict:
    """Generate a PlaceOrderRequest payload for one or more products."""
    return {
        "items": [{"product_id": pid, "quantity": random.randint(1, max_quantity)} for pid in product_ids],
        "shipping_address": shipping_address(city),
        "payment_method": random.choice(["card", "upi", "cod"]),
    }


# ---------- Delivery network ----------


def station_data(station_type: str, city: str) -> dict:
    """Generate a RegisterStationRequest payload."""
    return {
        "name": f"{city} {station_type.replace('_', ' ').title()} {uuid.uuid4().hex[:4]}",
        "address": fake.street_address()[:500],
        "city": city,
        "state": fake.state_abbr(),
        "zip_code": fake.zipcode()[:20],
        "station_type": station_type,
        "latitude": float(fake.latitude()),
        "longitude": float(fake.longitude()),
    }


def agent_data(station_id: str) -> dict:
    """Generate a RegisterAgentRequest payload bound to a local station."""
    return {
        "name": fake.name()[:200],
        "phone": fake.numerify("+1-###-###-####"),
        "vehicle_type": random.choice(["bike", "scooter", "car", "van"]),
        "license_number": f"DL-{uuid.uuid4().hex[:8].upper()}",
        "assigned_station_id": station_id,
    }


def location_data() -> dict:
    """Generate an AgentLocationRequest payload."""
    return {"latitude": float(fake.latitude()), "longitude": float(fake.longitude())}
