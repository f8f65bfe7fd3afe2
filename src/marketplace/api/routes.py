"""FastAPI routes for the order workflow.

Every route resolves the caller from its bearer token; the role decides
which endpoints it may use and, for cancellations, how much it cancels.
"""

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError
from protean.integrations.fastapi import register_exception_handlers
from protean.utils.globals import current_domain

from marketplace.api.auth import current_actor, require_role
from marketplace.api.schemas import (
    ActionRequest,
    CancelItemRequest,
    CancelOrderRequest,
    ConfirmDepotRequest,
    OrderEnvelope,
    OrderListEnvelope,
    PlaceOrderRequest,
    order_response,
)
from marketplace.order.access import ensure_can_view
from marketplace.order.acceptance import AcceptLot
from marketplace.order.cancellation import CancelItem, CancelOrder
from marketplace.order.creation import PlaceOrder
from marketplace.order.delivery import StartDirectDelivery
from marketplace.order.depot import ConfirmDepotReceipt, MarkDepotDropOff
from marketplace.order.enums import ActorRole
from marketplace.order.errors import ConflictError, OrderingError, OrderValidationError
from marketplace.order.order import Order
from marketplace.order.receipt import ConfirmReceipt

CLIENT = ActorRole.CLIENT.value
VENDOR = ActorRole.VENDOR.value
ADMIN = ActorRole.ADMIN.value

order_router = APIRouter(prefix="/commandes", tags=["orders"])


def _version(body: ActionRequest | None) -> int | None:
    return body.expected_version if body is not None else None


def _order_envelope(order_id: str) -> OrderEnvelope:
    order = current_domain.repository_for(Order).get_for_update(order_id)
    return OrderEnvelope(data=order_response(order))


# ---------------------------------------------------------------------------
# Checkout and queries
# ---------------------------------------------------------------------------
@order_router.post("", status_code=201, response_model=OrderEnvelope)
async def place_order(body: PlaceOrderRequest, actor: dict = Depends(require_role(CLIENT))) -> OrderEnvelope:
    """Check the caller's cart out into a new order."""
    command = PlaceOrder(
        client_id=actor["user_id"],
        delivery_mode=body.delivery_mode,
        delivery_address=body.delivery_address,
        payment_method=body.payment_method,
        note=body.note,
        requested_at=body.requested_at,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id)


@order_router.get("/my", response_model=OrderListEnvelope)
async def my_orders(actor: dict = Depends(require_role(CLIENT))) -> OrderListEnvelope:
    orders = current_domain.repository_for(Order).for_client(actor["user_id"])
    return OrderListEnvelope(data=[order_response(o) for o in orders])


@order_router.get("/boutique/all", response_model=OrderListEnvelope)
async def vendor_orders(actor: dict = Depends(require_role(VENDOR))) -> OrderListEnvelope:
    orders = current_domain.repository_for(Order).for_vendor(actor["vendor_id"])
    return OrderListEnvelope(data=[order_response(o) for o in orders])


@order_router.get("/admin/all", response_model=OrderListEnvelope)
async def all_orders(actor: dict = Depends(require_role(ADMIN))) -> OrderListEnvelope:
    orders = current_domain.repository_for(Order).list_all()
    return OrderListEnvelope(data=[order_response(o) for o in orders])


@order_router.get("/{order_id}", response_model=OrderEnvelope)
async def get_order(order_id: str, actor: dict = Depends(current_actor)) -> OrderEnvelope:
    order = current_domain.repository_for(Order).get_for_update(order_id)
    ensure_can_view(order, actor)
    return OrderEnvelope(data=order_response(order))


# ---------------------------------------------------------------------------
# Vendor transitions
# ---------------------------------------------------------------------------
@order_router.post("/boutique/accept/{order_id}", response_model=OrderEnvelope)
async def accept_lot(
    order_id: str,
    body: ActionRequest | None = None,
    actor: dict = Depends(require_role(VENDOR)),
) -> OrderEnvelope:
    command = AcceptLot(
        order_id=order_id,
        vendor_id=actor["vendor_id"],
        actor_id=actor["user_id"],
        expected_version=_version(body),
    )
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id)


@order_router.post("/boutique/start-delivery/{order_id}", response_model=OrderEnvelope)
async def start_direct_delivery(
    order_id: str,
    body: ActionRequest | None = None,
    actor: dict = Depends(require_role(VENDOR)),
) -> OrderEnvelope:
    command = StartDirectDelivery(
        order_id=order_id,
        vendor_id=actor["vendor_id"],
        actor_id=actor["user_id"],
        expected_version=_version(body),
    )
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id)


@order_router.post("/boutique/mark-depot/{order_id}", response_model=OrderEnvelope)
async def mark_depot_drop_off(
    order_id: str,
    body: ActionRequest | None = None,
    actor: dict = Depends(require_role(VENDOR)),
) -> OrderEnvelope:
    command = MarkDepotDropOff(
        order_id=order_id,
        vendor_id=actor["vendor_id"],
        actor_id=actor["user_id"],
        expected_version=_version(body),
    )
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id)


# ---------------------------------------------------------------------------
# Admin transitions
# ---------------------------------------------------------------------------
@order_router.post("/admin/confirm-depot/{order_id}", response_model=OrderEnvelope)
async def confirm_depot_receipt(
    order_id: str,
    body: ConfirmDepotRequest,
    actor: dict = Depends(require_role(ADMIN)),
) -> OrderEnvelope:
    command = ConfirmDepotReceipt(
        order_id=order_id,
        vendor_id=body.vendor_id,
        admin_id=actor["user_id"],
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id)


# ---------------------------------------------------------------------------
# Cancellation and receipt (any role)
# ---------------------------------------------------------------------------
@order_router.post("/cancel/{order_id}", response_model=OrderEnvelope)
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest,
    actor: dict = Depends(current_actor),
) -> OrderEnvelope:
    """Cancel the order (admin, client) or the caller's lot (vendor)."""
    command = CancelOrder(
        order_id=order_id,
        actor_id=actor["user_id"],
        actor_role=actor["role"],
        vendor_id=actor.get("vendor_id"),
        reason=body.reason,
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id)


@order_router.post("/cancel-item/{order_id}/{product_id}", response_model=OrderEnvelope)
async def cancel_item(
    order_id: str,
    product_id: str,
    body: CancelItemRequest,
    actor: dict = Depends(require_role(CLIENT, VENDOR)),
) -> OrderEnvelope:
    """Withdraw one product; vendors always act on their own lot."""
    vendor_id = actor["vendor_id"] if actor["role"] == VENDOR else body.vendor_id
    if not vendor_id:
        raise OrderValidationError("boutiqueId is required")

    command = CancelItem(
        order_id=order_id,
        vendor_id=vendor_id,
        product_id=product_id,
        actor_id=actor["user_id"],
        actor_role=actor["role"],
        reason=body.reason,
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id)


@order_router.post("/confirm-receipt/{order_id}", response_model=OrderEnvelope)
async def confirm_receipt(
    order_id: str,
    body: ActionRequest | None = None,
    actor: dict = Depends(current_actor),
) -> OrderEnvelope:
    command = ConfirmReceipt(
        order_id=order_id,
        actor_id=actor["user_id"],
        actor_role=actor["role"],
        vendor_id=actor.get("vendor_id"),
        expected_version=_version(body),
    )
    current_domain.process(command, asynchronous=False)
    return _order_envelope(order_id)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
async def ordering_error_handler(request: Request, exc: OrderingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def stale_write_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    """A concurrent request saved the order first; the caller should reload and retry."""
    error = ConflictError(f"The order was changed by another request, retry ({exc})")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def install_error_handlers(app: FastAPI) -> None:
    """Map framework and order workflow errors to HTTP responses."""
    register_exception_handlers(app)
    app.add_exception_handler(OrderingError, ordering_error_handler)
    app.add_exception_handler(ExpectedVersionError, stale_write_handler)
