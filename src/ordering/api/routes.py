"""FastAPI routes for the Ordering domain: the buyer's cart and orders."""

from fastapi import APIRouter, Depends

from ordering.api.schemas import (
    AddCartItemRequest,
    CartItemResponse,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    ClearCartResponse,
    OrderListResponse,
    OrderResponse,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
)
from ordering.cart.items import CartService
from ordering.order.workflow import OrderWorkflow
from shared.api import get_session
from shared.session import Session
from shared.store import get_store


def get_cart_service() -> CartService:
    return CartService(get_store())


def get_order_workflow() -> OrderWorkflow:
    return OrderWorkflow(get_store())


def _cart_response(cart: CartService, session: Session) -> CartResponse:
    items = cart.list_items(session)
    return CartResponse(
        items=[CartItemResponse.model_validate(item) for item in items],
        total_amount=cart.total_amount(items),
        total_items=cart.total_items(items),
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(
    session: Session = Depends(get_session),
    cart: CartService = Depends(get_cart_service),
) -> CartResponse:
    return _cart_response(cart, session)


@cart_router.post("/items", status_code=201, response_model=CartResponse)
async def add_cart_item(
    body: AddCartItemRequest,
    session: Session = Depends(get_session),
    cart: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart.add_item(session, body.product_id, body.quantity)
    return _cart_response(cart, session)


@cart_router.put("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: str,
    body: UpdateCartItemRequest,
    session: Session = Depends(get_session),
    cart: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart.update_quantity(session, item_id, body.quantity)
    return _cart_response(cart, session)


@cart_router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(
    item_id: str,
    session: Session = Depends(get_session),
    cart: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart.remove_item(session, item_id)
    return _cart_response(cart, session)


@cart_router.delete("", response_model=ClearCartResponse)
async def clear_cart(
    session: Session = Depends(get_session),
    cart: CartService = Depends(get_cart_service),
) -> ClearCartResponse:
    return ClearCartResponse(removed=cart.clear(session))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=CheckoutResponse)
async def checkout(
    body: CheckoutRequest,
    session: Session = Depends(get_session),
    workflow: OrderWorkflow = Depends(get_order_workflow),
) -> CheckoutResponse:
    """Convert the buyer's cart into one order per seller."""
    orders = workflow.create_orders(session, body.shipping_address, notes=body.notes)
    return CheckoutResponse(orders=[OrderResponse.model_validate(order) for order in orders])


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    status: str | None = None,
    role: str | None = None,
    session: Session = Depends(get_session),
    workflow: OrderWorkflow = Depends(get_order_workflow),
) -> OrderListResponse:
    listing = workflow.list_orders(session, status=status, role=role)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in listing.orders],
        warnings=listing.warnings,
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    session: Session = Depends(get_session),
    workflow: OrderWorkflow = Depends(get_order_workflow),
) -> OrderResponse:
    session.require_user()
    return OrderResponse.model_validate(workflow.get_order(order_id))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    session: Session = Depends(get_session),
    workflow: OrderWorkflow = Depends(get_order_workflow),
) -> OrderResponse:
    order = workflow.update_order_status(session, order_id, body.status)
    return OrderResponse.model_validate(order)
