from botocore.exceptions import ClientError
import logging
from decimal import Decimal
from typing import Optional
from common.models.payments import Payment, PaymentMethod, PaymentStatus
from common.utils.datetime_normaliser import from_iso_string, to_iso_string

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
else:
    Table = object


logger = logging.getLogger(__name__)


def payment_item(payment: Payment) -> dict:
    """The stored form of a payment. One item per booking."""
    item = {
        "pk": f"PAYMENT#{payment.booking_id}",
        "sk": "DETAILS",
        "payment_id": payment.payment_id,
        "amount": Decimal(str(payment.amount)),
        "method": payment.method.value,
        "payment_status": payment.status.value,
        "created_at": to_iso_string(payment.created_at),
    }
    if payment.card_last4:
        item["card_last4"] = payment.card_last4
    return item


class PaymentRepository:
    def __init__(self, table: Table):
        self.table = table

    def get_payment_by_booking(self, booking_id: str) -> Optional[Payment]:
        try:
            response = self.table.get_item(
                Key={"pk": f"PAYMENT#{booking_id}", "sk": "DETAILS"}
            )
        except ClientError as err:
            logger.error(f"Error retrieving payment for booking {booking_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return Payment(
            payment_id=item["payment_id"],
            booking_id=booking_id,
            amount=Decimal(str(item["amount"])),
            method=PaymentMethod(item["method"]),
            status=PaymentStatus(item["payment_status"]),
            card_last4=item.get("card_last4"),
            created_at=from_iso_string(item["created_at"]),
        )
