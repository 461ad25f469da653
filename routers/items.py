from fastapi import APIRouter, Request
from starlette import status
from schemas.item_schemas import CreateItemRequest, UpdateItemRequest, ItemResponse
from utils.deps import db_dependency, identity_dependency, item_service_dependency
from middleware.rate_limiter import limiter


router = APIRouter(
    prefix="/items",
    tags=["items"]
)


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
def create_item(request: Request, body: CreateItemRequest, identity: identity_dependency,
                db: db_dependency, items: item_service_dependency):
    return items.create_item(identity, body, db)


@router.get("", response_model=list[ItemResponse])
def list_items(db: db_dependency, items: item_service_dependency, skip: int = 0, limit: int = 50):
    return items.list_items(db, skip=skip, limit=limit)


@router.get("/{item_id}", response_model=ItemResponse)
def get_item(item_id: int, db: db_dependency, items: item_service_dependency):
    return items.get_item(item_id, db)


@router.patch("/{item_id}", response_model=ItemResponse)
@limiter.limit("20/minute")
def update_item(request: Request, item_id: int, body: UpdateItemRequest, identity: identity_dependency,
                db: db_dependency, items: item_service_dependency):
    return items.update_item(identity, item_id, body, db)


@router.delete("/{item_id}")
@limiter.limit("20/minute")
def delete_item(request: Request, item_id: int, identity: identity_dependency,
                db: db_dependency, items: item_service_dependency):
    items.delete_item(identity, item_id, db)
    return {"id": item_id, "message": "Item deleted"}
