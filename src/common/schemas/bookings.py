from datetime import datetime, timedelta
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, model_validator
from common.utils.constants import MAX_STAY
from common.utils.datetime_normaliser import ensure_valid_range, utc_now


class BookingRequest(BaseModel):
    room_id: str = Field(min_length=1)
    checkin: datetime
    checkout: datetime
    guests: int = Field(ge=1)

    guest_name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[str] = Field(default=None, min_length=7, max_length=20)
    special_requests: str = Field(default="", max_length=1000)

    @model_validator(mode="after")
    def validate_and_normalize(self):
        checkin_utc, checkout_utc = ensure_valid_range(self.checkin, self.checkout)

        if checkin_utc <= utc_now():
            raise ValueError("checkin must be in the future")

        max_stay = timedelta(days=MAX_STAY)
        if checkout_utc - checkin_utc > max_stay:
            raise ValueError(f"Maximum stay is {MAX_STAY} days")

        self.checkin = checkin_utc
        self.checkout = checkout_utc

        return self

    def has_guest_details(self) -> bool:
        return bool(self.guest_name and self.guest_email and self.guest_phone)
