from fastapi import APIRouter, Request
from starlette import status
from schemas.cart_schemas import AddToCartRequest, CartItemResponse
from utils.deps import db_dependency, identity_dependency, cart_service_dependency
from middleware.rate_limiter import limiter


router = APIRouter(
    prefix="/cart",
    tags=["cart"]
)


@router.get("", response_model=list[CartItemResponse])
def get_cart(identity: identity_dependency, db: db_dependency, cart: cart_service_dependency):
    return cart.get_cart(identity, db)


@router.post("/items", response_model=CartItemResponse, status_code=status.HTTP_200_OK)
@limiter.limit("60/minute")
def add_to_cart(request: Request, body: AddToCartRequest, identity: identity_dependency,
                db: db_dependency, cart: cart_service_dependency):
    return cart.add_to_cart(identity, body.item_id, db)


@router.delete("/items/{cart_item_id}")
@limiter.limit("60/minute")
def remove_from_cart(request: Request, cart_item_id: int, identity: identity_dependency,
                     db: db_dependency, cart: cart_service_dependency):
    cart.remove_from_cart(identity, cart_item_id, db)
    return {"id": cart_item_id, "message": "Item removed from cart"}
