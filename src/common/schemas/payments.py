from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field
from common.models.payments import PaymentMethod


class PaymentRequest(BaseModel):
    booking_id: str = Field(min_length=1)
    amount: Decimal = Field(gt=0, decimal_places=2)
    method: PaymentMethod
    card_last4: Optional[str] = Field(default=None, pattern=r"^\d{4}$")
