"""Pydantic API schemas for the storefront.

These are the external API contracts, separate from domain commands.
Fields the domain validates itself (cart contents, shipping address, payment
method) are optional here so that missing values surface as domain
validation errors rather than schema errors.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class AddProductRequest(BaseModel):
    name: str
    price: float = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    description: str | None = None
    image: str | None = None
    category: str | None = None


class UpdateProductRequest(BaseModel):
    name: str | None = None
    price: float | None = Field(default=None, ge=0)
    description: str | None = None
    image: str | None = None
    category: str | None = None


class ReceiveStockRequest(BaseModel):
    quantity: int = Field(ge=1)


class CartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)


class WishlistItemRequest(BaseModel):
    product_id: str


class OrderItemRequest(BaseModel):
    product_id: str
    quantity: int = 1


class ShippingAddressRequest(BaseModel):
    full_name: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class PlaceOrderRequest(BaseModel):
    items: list[OrderItemRequest] = []
    shipping_address: ShippingAddressRequest | None = None
    payment_method: str | None = None


class RequestReturnRequest(BaseModel):
    product_id: str


class UpdateOrderStatusRequest(BaseModel):
    status: str
    description: str | None = None


class RegisterStationRequest(BaseModel):
    name: str
    address: str
    city: str
    station_type: str
    latitude: float
    longitude: float
    state: str | None = None
    zip_code: str | None = None
    capacity: int | None = None
    operating_hours: str | None = None


class RegisterAgentRequest(BaseModel):
    name: str
    phone: str
    vehicle_type: str
    license_number: str | None = None
    assigned_station_id: str | None = None


class AgentLocationRequest(BaseModel):
    latitude: float
    longitude: float
    timestamp: datetime | None = None


class AgentAvailabilityRequest(BaseModel):
    online: bool


class CompleteDeliveryRequest(BaseModel):
    delivery_proof: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class ProductIdResponse(BaseModel):
    product_id: str


class ProductResponse(BaseModel):
    id: str
    name: str
    price: float
    stock: int
    description: str | None = None
    image: str | None = None
    category: str | None = None


class StockResponse(BaseModel):
    product_id: str
    stock: int


class ProductUpdateResponse(BaseModel):
    product_id: str
    changed: list[str]


class WishlistResponse(BaseModel):
    items: list[ProductResponse]


class CartLineResponse(BaseModel):
    product_id: str
    name: str
    price: float
    image: str | None = None
    stock: int
    quantity: int
    line_total: float


class CartResponse(BaseModel):
    customer_id: str
    items: list[CartLineResponse]
    total: float


class OrderSummaryResponse(BaseModel):
    id: str
    order_number: str
    total_amount: float
    status: str


class ReturnOutcomeResponse(BaseModel):
    product_id: str
    product_name: str
    quantity_restored: int
    refund_amount: float
    restocked: bool


class ReconcileResponse(BaseModel):
    restocked: int
    failed: int


class StationIdResponse(BaseModel):
    station_id: str


class AgentIdResponse(BaseModel):
    agent_id: str


class AgentAssignmentResponse(BaseModel):
    id: str
    name: str
    phone: str


class JourneyResponse(BaseModel):
    journey: list[dict]
    estimated_delivery: datetime


class AdvanceStageResponse(BaseModel):
    current_stage: dict
    current_stage_index: int
    order_status: str


class DashboardResponse(BaseModel):
    total_products: int
    total_orders: int
    total_customers: int
    total_revenue: float


class RevenuePoint(BaseModel):
    date: str
    revenue: float


class RevenueResponse(BaseModel):
    period: str
    data: list[RevenuePoint]


class StatusResponse(BaseModel):
    status: str
