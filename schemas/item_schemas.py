from pydantic import BaseModel, ConfigDict, Field


class CreateItemRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str
    image: str | None = None
    large_image: str | None = None
    price: int = Field(ge=0, description="Price in cents")


class ItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    image: str | None = None
    large_image: str | None = None
    price: int
    user_id: int


class UpdateItemRequest(BaseModel):
    # Only the fields sent are changed; null leaves a field as it is
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    image: str | None = None
    large_image: str | None = None
    price: int | None = Field(default=None, ge=0, description="Price in cents")
