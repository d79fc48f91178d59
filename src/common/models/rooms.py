from enum import Enum
from decimal import Decimal
from dataclasses import dataclass


class Category(str, Enum):
    DELUXE = "DELUXE"
    SUITE = "SUITE"
    STANDARD = "STANDARD"


@dataclass
class Room:
    room_id: str
    name: str
    category: Category
    capacity: int
    price_per_night: Decimal
    available: bool = True
    booking_version: int = 0
