from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


@dataclass
class Booking:
    booking_id: str
    room_id: str
    checkin: datetime
    checkout: datetime
    guests: int
    total_price: Decimal
    user_id: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING

    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    special_requests: str = ""

    booked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_guest_booking(self) -> bool:
        return self.user_id is None
