from fastapi import APIRouter, Request
from starlette import status
from schemas.order_schemas import CreateOrderRequest, OrderResponse, CheckoutAttemptResponse
from utils.deps import db_dependency, identity_dependency, checkout_service_dependency
from middleware.rate_limiter import limiter


router = APIRouter(
    prefix="/orders",
    tags=["orders"]
)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def create_order(request: Request, body: CreateOrderRequest, identity: identity_dependency,
                 db: db_dependency, checkout: checkout_service_dependency):
    """
    Charge the caller's cart and turn it into an order.

    The amount is computed from the stored item prices; the body only
    carries the payment source.
    """
    return checkout.create_order(identity, body.token, db)


@router.get("", response_model=list[OrderResponse])
def list_orders(identity: identity_dependency, db: db_dependency, checkout: checkout_service_dependency):
    return checkout.list_orders(identity, db)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, identity: identity_dependency, db: db_dependency,
              checkout: checkout_service_dependency):
    return checkout.get_order(identity, order_id, db)


@router.post("/attempts/{attempt_id}/reconcile", response_model=CheckoutAttemptResponse)
def reconcile_attempt(attempt_id: int, identity: identity_dependency, db: db_dependency,
                      checkout: checkout_service_dependency):
    return checkout.reconcile(identity, attempt_id, db)
