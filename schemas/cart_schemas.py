from pydantic import BaseModel, ConfigDict
from schemas.item_schemas import ItemResponse


class AddToCartRequest(BaseModel):
    item_id: int


class CartItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    quantity: int
    item: ItemResponse
