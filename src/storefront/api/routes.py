"""FastAPI routes for the storefront.

Routes translate HTTP requests into domain commands and queries. Every
command is processed synchronously, so the response reflects the committed
state.
"""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.agent.location import UpdateAgentLocation
from storefront.agent.registration import ChangeAgentAvailability, RegisterAgent
from storefront.agent.roster import all_agents
from storefront.analytics.dashboard import dashboard, revenue_by_day
from storefront.api.principal import Principal, current_agent_id, current_principal, require_admin
from storefront.api.schemas import (
    AddProductRequest,
    AdvanceStageResponse,
    AgentAssignmentResponse,
    AgentAvailabilityRequest,
    AgentIdResponse,
    AgentLocationRequest,
    CartItemRequest,
    CartResponse,
    CompleteDeliveryRequest,
    DashboardResponse,
    JourneyResponse,
    OrderSummaryResponse,
    PlaceOrderRequest,
    ProductIdResponse,
    ProductResponse,
    ProductUpdateResponse,
    ReceiveStockRequest,
    ReconcileResponse,
    RegisterAgentRequest,
    RegisterStationRequest,
    RequestReturnRequest,
    ReturnOutcomeResponse,
    RevenueResponse,
    StationIdResponse,
    StatusResponse,
    StockResponse,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
    UpdateProductRequest,
    WishlistItemRequest,
    WishlistResponse,
)
from storefront.cart.contents import cart_contents
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from storefront.delivery.assignment import AssignAgent
from storefront.delivery.handover import CompleteDelivery, PickUpOrder, StartDelivery
from storefront.delivery.routing import PlanJourney
from storefront.delivery.stages import AdvanceStage
from storefront.delivery.tracking import track_order
from storefront.order.placement import PlaceOrder
from storefront.order.queries import all_orders, order_for_customer, orders_for_customer
from storefront.order.returns import RequestReturn, approve_return, reconcile_restocks
from storefront.order.status import UpdateOrderStatus
from storefront.product.management import AddProduct, ReceiveStock, RemoveProduct, UpdateProduct
from storefront.product.product import Product
from storefront.station.registration import RegisterStation
from storefront.station.station import Station
from storefront.wishlist.management import RemoveFromWishlist, SaveToWishlist, wishlist_products


def _product_response(product) -> ProductResponse:
    return ProductResponse(
        id=str(product.id),
        name=product.name,
        price=product.price,
        stock=product.stock,
        description=product.description,
        image=product.image,
        category=product.category,
    )


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def add_product(body: AddProductRequest, _: Principal = Depends(require_admin)) -> ProductIdResponse:
    """Add a product to the catalogue with its opening stock."""
    command = AddProduct(**body.model_dump())
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.get("", response_model=list[ProductResponse])
async def list_products() -> list[ProductResponse]:
    products = current_domain.repository_for(Product)._dao.query.order_by("created_at").limit(None).all().items
    return [_product_response(p) for p in products]


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    return _product_response(current_domain.repository_for(Product).get(product_id))


@product_router.put("/{product_id}", response_model=ProductUpdateResponse)
async def update_product(
    product_id: str, body: UpdateProductRequest, _: Principal = Depends(require_admin)
) -> ProductUpdateResponse:
    """Edit catalogue details. Orders already placed keep their price."""
    command = UpdateProduct(product_id=product_id, **body.model_dump(exclude_none=True))
    changed = current_domain.process(command, asynchronous=False)
    return ProductUpdateResponse(product_id=product_id, changed=changed)


@product_router.delete("/{product_id}", response_model=StatusResponse)
async def remove_product(product_id: str, _: Principal = Depends(require_admin)) -> StatusResponse:
    current_domain.process(RemoveProduct(product_id=product_id), asynchronous=False)
    return StatusResponse(status="product_removed")


@product_router.post("/{product_id}/stock", response_model=StockResponse)
async def receive_stock(
    product_id: str, body: ReceiveStockRequest, _: Principal = Depends(require_admin)
) -> StockResponse:
    """Book received units into stock."""
    command = ReceiveStock(product_id=product_id, quantity=body.quantity)
    stock = current_domain.process(command, asynchronous=False)
    return StockResponse(product_id=product_id, stock=stock)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    return CartResponse(**cart_contents(principal.id))


@cart_router.post("/items", response_model=CartResponse)
async def add_to_cart(body: CartItemRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    command = AddToCart(customer_id=principal.id, product_id=body.product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return CartResponse(**cart_contents(principal.id))


@cart_router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str, body: UpdateCartItemRequest, principal: Principal = Depends(current_principal)
) -> CartResponse:
    command = UpdateCartQuantity(customer_id=principal.id, product_id=product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return CartResponse(**cart_contents(principal.id))


@cart_router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_from_cart(product_id: str, principal: Principal = Depends(current_principal)) -> CartResponse:
    command = RemoveFromCart(customer_id=principal.id, product_id=product_id)
    current_domain.process(command, asynchronous=False)
    return CartResponse(**cart_contents(principal.id))


@cart_router.delete("", response_model=StatusResponse)
async def clear_cart(principal: Principal = Depends(current_principal)) -> StatusResponse:
    current_domain.process(ClearCart(customer_id=principal.id), asynchronous=False)
    return StatusResponse(status="cart_cleared")


# ---------------------------------------------------------------------------
# Wishlist Router
# ---------------------------------------------------------------------------
wishlist_router = APIRouter(prefix="/wishlist", tags=["wishlist"])


def _wishlist_response(customer_id) -> WishlistResponse:
    return WishlistResponse(items=[_product_response(p) for p in wishlist_products(customer_id)])


@wishlist_router.get("", response_model=WishlistResponse)
async def get_wishlist(principal: Principal = Depends(current_principal)) -> WishlistResponse:
    return _wishlist_response(principal.id)


@wishlist_router.post("", response_model=WishlistResponse)
async def save_to_wishlist(
    body: WishlistItemRequest, principal: Principal = Depends(current_principal)
) -> WishlistResponse:
    command = SaveToWishlist(customer_id=principal.id, product_id=body.product_id)
    current_domain.process(command, asynchronous=False)
    return _wishlist_response(principal.id)


@wishlist_router.delete("/{product_id}", response_model=WishlistResponse)
async def remove_from_wishlist(product_id: str, principal: Principal = Depends(current_principal)) -> WishlistResponse:
    command = RemoveFromWishlist(customer_id=principal.id, product_id=product_id)
    current_domain.process(command, asynchronous=False)
    return _wishlist_response(principal.id)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderSummaryResponse)
async def place_order(body: PlaceOrderRequest, principal: Principal = Depends(current_principal)) -> OrderSummaryResponse:
    """Place an order; stock is reserved and the cart is cleared."""
    command = PlaceOrder(
        customer_id=principal.id,
        customer_name=principal.name,
        customer_email=principal.email,
        items=json.dumps([item.model_dump() for item in body.items]),
        shipping_address=json.dumps(body.shipping_address.model_dump()) if body.shipping_address else None,
        payment_method=body.payment_method,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderSummaryResponse(**result)


@order_router.get("")
async def my_orders(principal: Principal = Depends(current_principal)) -> list[dict]:
    return [o.to_dict() for o in orders_for_customer(principal.id)]


@order_router.get("/{order_id}")
async def my_order(order_id: str, principal: Principal = Depends(current_principal)) -> dict:
    return order_for_customer(order_id, principal.id).to_dict()


@order_router.post("/{order_id}/returns", status_code=201, response_model=StatusResponse)
async def request_return(
    order_id: str, body: RequestReturnRequest, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    command = RequestReturn(order_id=order_id, product_id=body.product_id, customer_id=principal.id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="return_requested")


# ---------------------------------------------------------------------------
# Delivery Router
# ---------------------------------------------------------------------------
delivery_router = APIRouter(prefix="/delivery", tags=["delivery"])


@delivery_router.post("/stations", status_code=201, response_model=StationIdResponse)
async def register_station(body: RegisterStationRequest, _: Principal = Depends(require_admin)) -> StationIdResponse:
    result = current_domain.process(RegisterStation(**body.model_dump()), asynchronous=False)
    return StationIdResponse(station_id=result)


@delivery_router.get("/stations")
async def list_stations() -> list[dict]:
    stations = current_domain.repository_for(Station)._dao.query.order_by("created_at").limit(None).all().items
    return [s.to_dict() for s in stations]


@delivery_router.post("/orders/{order_id}/plan", response_model=JourneyResponse)
async def plan_journey(order_id: str, _: Principal = Depends(require_admin)) -> JourneyResponse:
    """Route the order from the fulfillment center to the customer's local station."""
    result = current_domain.process(PlanJourney(order_id=order_id), asynchronous=False)
    return JourneyResponse(**result)


@delivery_router.put("/orders/{order_id}/advance", response_model=AdvanceStageResponse)
async def advance_stage(order_id: str, _: Principal = Depends(require_admin)) -> AdvanceStageResponse:
    result = current_domain.process(AdvanceStage(order_id=order_id), asynchronous=False)
    return AdvanceStageResponse(**result)


@delivery_router.post("/orders/{order_id}/assign-agent", response_model=AgentAssignmentResponse)
async def assign_agent(order_id: str, _: Principal = Depends(require_admin)) -> AgentAssignmentResponse:
    result = current_domain.process(AssignAgent(order_id=order_id), asynchronous=False)
    return AgentAssignmentResponse(**result)


@delivery_router.get("/track/{order_id}")
async def track(order_id: str) -> dict:
    return track_order(order_id)


@delivery_router.post("/agents", status_code=201, response_model=AgentIdResponse)
async def register_agent(body: RegisterAgentRequest) -> AgentIdResponse:
    result = current_domain.process(RegisterAgent(**body.model_dump()), asynchronous=False)
    return AgentIdResponse(agent_id=result)


@delivery_router.get("/agents")
async def list_agents(_: Principal = Depends(require_admin)) -> list[dict]:
    return [a.to_dict() for a in all_agents()]


@delivery_router.put("/agents/location", response_model=StatusResponse)
async def update_agent_location(body: AgentLocationRequest, agent_id: str = Depends(current_agent_id)) -> StatusResponse:
    command = UpdateAgentLocation(
        agent_id=agent_id,
        latitude=body.latitude,
        longitude=body.longitude,
        recorded_at=body.timestamp,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="location_updated")


@delivery_router.put("/agents/availability", response_model=StatusResponse)
async def change_availability(
    body: AgentAvailabilityRequest, agent_id: str = Depends(current_agent_id)
) -> StatusResponse:
    command = ChangeAgentAvailability(agent_id=agent_id, online=body.online)
    result = current_domain.process(command, asynchronous=False)
    return StatusResponse(status=result)


@delivery_router.put("/orders/{order_id}/pickup", response_model=StatusResponse)
async def pick_up(order_id: str, agent_id: str = Depends(current_agent_id)) -> StatusResponse:
    result = current_domain.process(PickUpOrder(order_id=order_id, agent_id=agent_id), asynchronous=False)
    return StatusResponse(status=result)


@delivery_router.put("/orders/{order_id}/start", response_model=StatusResponse)
async def start_delivery(order_id: str, agent_id: str = Depends(current_agent_id)) -> StatusResponse:
    result = current_domain.process(StartDelivery(order_id=order_id, agent_id=agent_id), asynchronous=False)
    return StatusResponse(status=result)


@delivery_router.put("/orders/{order_id}/complete", response_model=StatusResponse)
async def complete_delivery(
    order_id: str, body: CompleteDeliveryRequest, agent_id: str = Depends(current_agent_id)
) -> StatusResponse:
    command = CompleteDelivery(order_id=order_id, agent_id=agent_id, delivery_proof=body.delivery_proof)
    result = current_domain.process(command, asynchronous=False)
    return StatusResponse(status=result)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@admin_router.get("/orders")
async def list_all_orders() -> list[dict]:
    return [o.to_dict() for o in all_orders()]


@admin_router.put("/orders/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> StatusResponse:
    command = UpdateOrderStatus(order_id=order_id, status=body.status, description=body.description)
    result = current_domain.process(command, asynchronous=False)
    return StatusResponse(status=result)


@admin_router.put("/orders/{order_id}/returns/{product_id}/approve", response_model=ReturnOutcomeResponse)
async def approve_order_return(order_id: str, product_id: str) -> ReturnOutcomeResponse:
    """Approve a return: the item leaves the order, the total drops, stock is restored."""
    return ReturnOutcomeResponse(**approve_return(order_id, product_id))


@admin_router.post("/returns/reconcile", response_model=ReconcileResponse)
async def reconcile_returns() -> ReconcileResponse:
    """Re-run restocks that failed after their return was approved."""
    return ReconcileResponse(**reconcile_restocks())


@admin_router.get("/analytics", response_model=DashboardResponse)
async def analytics() -> DashboardResponse:
    return DashboardResponse(**dashboard())


@admin_router.get("/analytics/revenue", response_model=RevenueResponse)
async def revenue(period: str = "month") -> RevenueResponse:
    return RevenueResponse(period=period, data=revenue_by_day(period))
