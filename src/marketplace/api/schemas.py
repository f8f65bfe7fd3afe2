"""Pydantic API schemas for the order endpoints.

Request bodies keep the field names existing clients send
(``typedelivery``, ``boutiqueId`` ...); Python-side names are accepted too.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from marketplace.order.enums import LEGACY_DELIVERY_MODES, LEGACY_PAYMENT_METHODS
from marketplace.order.order import Order


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    delivery_mode: str = Field(alias="typedelivery")
    delivery_address: str | None = Field(default=None, alias="adresseLivraison")
    payment_method: str | None = Field(default=None, alias="paiementMethode")
    note: str | None = None
    requested_at: datetime | None = Field(default=None, alias="dateDeliveryOrAbleCollect")

    @field_validator("delivery_mode")
    @classmethod
    def map_legacy_delivery_mode(cls, value: str) -> str:
        return LEGACY_DELIVERY_MODES.get(value, value)

    @field_validator("payment_method")
    @classmethod
    def map_legacy_payment_method(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return LEGACY_PAYMENT_METHODS.get(value, value)


class ActionRequest(BaseModel):
    expected_version: int | None = None


class ConfirmDepotRequest(ActionRequest):
    model_config = ConfigDict(populate_by_name=True)

    vendor_id: str = Field(alias="boutiqueId")


class CancelOrderRequest(ActionRequest):
    reason: str = Field(min_length=1)


class CancelItemRequest(ActionRequest):
    model_config = ConfigDict(populate_by_name=True)

    vendor_id: str | None = Field(default=None, alias="boutiqueId")
    reason: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    item_id: str
    product_id: str
    variation_id: str | None = None
    price_id: str | None = None
    product_name: str | None = None
    product_image: str | None = None
    quantity: int
    unit_price: float
    subtotal: float
    status: str


class DepotResponse(BaseModel):
    done: bool = False
    dropped_off_at: datetime | None = None
    confirmed_by: str | None = None
    confirmed_at: datetime | None = None


class VendorLotResponse(BaseModel):
    vendor_id: str
    vendor_name: str | None = None
    accepted: bool
    accepted_at: datetime | None = None
    status: str
    depot: DepotResponse
    items: list[OrderItemResponse]


class DeliveryFeeResponse(BaseModel):
    fee_type: str
    value: float
    amount: float


class PaymentResponse(BaseModel):
    method: str
    status: str
    paid_amount: float
    paid_at: datetime | None = None


class ValidationResponse(BaseModel):
    validated: bool = False
    validated_by: str | None = None
    validated_at: datetime | None = None


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    client_id: str
    delivery_mode: str
    delivery_address: str | None = None
    requested_at: datetime | None = None
    status: str
    base_total: float
    delivery_fee: DeliveryFeeResponse
    total: float
    payment: PaymentResponse
    lots: list[VendorLotResponse]
    notes: str | None = None
    collection_validation: ValidationResponse | None = None
    delivery_validation: ValidationResponse | None = None
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderEnvelope(BaseModel):
    data: OrderResponse


class OrderListEnvelope(BaseModel):
    data: list[OrderResponse]


def _str_or_none(value) -> str | None:
    return str(value) if value is not None else None


def _validation(block) -> ValidationResponse | None:
    if block is None:
        return None
    return ValidationResponse(
        validated=bool(block.validated),
        validated_by=_str_or_none(block.validated_by),
        validated_at=block.validated_at,
    )


def order_response(order: Order) -> OrderResponse:
    """Build the API view of an order, nesting items under their vendor's lot."""
    lots = []
    for lot in order.lots:
        items = [
            OrderItemResponse(
                item_id=str(item.id),
                product_id=str(item.product_id),
                variation_id=_str_or_none(item.variation_id),
                price_id=_str_or_none(item.price_id),
                product_name=item.product_name,
                product_image=item.product_image,
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
                status=item.status,
            )
            for item in order.items_for(lot.vendor_id)
        ]
        depot = lot.depot
        lots.append(
            VendorLotResponse(
                vendor_id=str(lot.vendor_id),
                vendor_name=lot.vendor_name,
                accepted=bool(lot.accepted),
                accepted_at=lot.accepted_at,
                status=lot.status,
                depot=DepotResponse(
                    done=bool(depot.done) if depot else False,
                    dropped_off_at=depot.dropped_off_at if depot else None,
                    confirmed_by=_str_or_none(depot.confirmed_by) if depot else None,
                    confirmed_at=depot.confirmed_at if depot else None,
                ),
                items=items,
            )
        )

    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        client_id=str(order.client_id),
        delivery_mode=order.delivery_mode,
        delivery_address=order.delivery_address,
        requested_at=order.requested_at,
        status=order.status,
        base_total=order.base_total,
        delivery_fee=DeliveryFeeResponse(
            fee_type=order.delivery_fee.fee_type,
            value=order.delivery_fee.value,
            amount=order.delivery_fee.amount,
        ),
        total=order.total,
        payment=PaymentResponse(
            method=order.payment.method,
            status=order.payment.status,
            paid_amount=order.payment.paid_amount or 0.0,
            paid_at=order.payment.paid_at,
        ),
        lots=lots,
        notes=order.notes,
        collection_validation=_validation(order.collection_validation),
        delivery_validation=_validation(order.delivery_validation),
        version=order.version,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )
