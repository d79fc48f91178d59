from decimal import Decimal
from pydantic import BaseModel, Field
from common.models.rooms import Category


class RoomRequest(BaseModel):
    room_id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)
    category: Category
    capacity: int = Field(ge=1)
    price_per_night: Decimal = Field(ge=0, decimal_places=2)
    available: bool = True


class MonthQuery(BaseModel):
    year: int = Field(ge=2000, le=2100)
    month: int = Field(ge=1, le=12)
