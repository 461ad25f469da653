from datetime import datetime
from pydantic import BaseModel, ConfigDict


class CreateOrderRequest(BaseModel):
    # Opaque payment source from the client-side checkout widget.
    # Any amount the client sends alongside it is ignored.
    token: str


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    image: str | None = None
    large_image: str | None = None
    price: int
    quantity: int


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    total: int
    charge: str
    user_id: int
    created_at: datetime | None = None
    items: list[OrderItemResponse]


class CheckoutAttemptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    status: str
    amount: int
    currency: str
    charge_id: str | None = None
    settled_amount: int | None = None
    order_id: int | None = None
    error: str | None = None
