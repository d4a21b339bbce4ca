from pydantic import BaseModel, field_validator
from typing import Optional, List


class FavoriteRow(BaseModel):
    user_id: str
    property_id: str
    created_at: str


class FavoriteProperty(BaseModel):
    id: str
    title: str = ""
    description: Optional[str] = None
    price: float = 0
    currency: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    area_sqm: Optional[float] = None
    property_type: Optional[str] = None
    status: str = "available"
    cover_image: Optional[str] = None
    created_at: str = ""

    @field_validator("id", "title", "created_at", mode="before")
    @classmethod
    def _to_str(cls, value):
        return "" if value is None else str(value)

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, value):
        return 0 if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        return "available" if value is None else str(value)


class FavoritePropertyRow(FavoriteRow):
    property: FavoriteProperty


class FavoriteIdsResponse(BaseModel):
    property_ids: List[str]


class IsFavoriteResponse(BaseModel):
    property_id: str
    is_favorite: bool


class ToggleFavoriteRequest(BaseModel):
    next: bool


class MembershipChangeResponse(BaseModel):
    property_id: str
    next: bool
