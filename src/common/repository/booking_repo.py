from botocore.exceptions import ClientError
import logging
from typing import Optional, List
from boto3.dynamodb.conditions import Attr, Key
from common.models.bookings import Booking, BookingStatus
from common.models.payments import Payment
from common.repository.payment_repo import payment_item
from common.utils.custom_exceptions import (
    BookingStatusConflict,
    PaymentAlreadyExists,
    RoomBookingConflict,
)
from common.utils.datetime_normaliser import from_iso_string, to_iso_string
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
    from types_boto3_dynamodb import DynamoDBClient
else:
    Table = object
    DynamoDBClient = object


logger = logging.getLogger(__name__)


class BookingRepository:
    def __init__(self, table: Table, client: DynamoDBClient = None):
        self.table = table
        self.client = client if client else table.meta.client

    @staticmethod
    def _keys(booking: Booking) -> List[dict]:
        keys = [{"pk": f"BOOKING#{booking.booking_id}", "sk": "DETAILS"}]
        if booking.user_id:
            keys.append(
                {"pk": f"USER#{booking.user_id}", "sk": f"BOOKING#{booking.booking_id}"}
            )
        keys.append(
            {
                "pk": f"ROOM#{booking.room_id}",
                "sk": f"CHECKIN#{to_iso_string(booking.checkin)}#BOOKING#{booking.booking_id}",
            }
        )
        return keys

    @staticmethod
    def _to_item(booking: Booking) -> dict:
        item = {
            "booking_id": booking.booking_id,
            "room_id": booking.room_id,
            "check_in": to_iso_string(booking.checkin),
            "check_out": to_iso_string(booking.checkout),
            "guests": booking.guests,
            "total_price": Decimal(str(booking.total_price)),
            "booking_status": booking.status.value,
            "special_requests": booking.special_requests,
            "booked_at": to_iso_string(booking.booked_at),
        }
        optional = {
            "user_id": booking.user_id,
            "guest_name": booking.guest_name,
            "guest_email": booking.guest_email,
            "guest_phone": booking.guest_phone,
        }
        item.update({k: v for k, v in optional.items() if v is not None})
        return item

    @staticmethod
    def _to_booking(item: dict) -> Booking:
        return Booking(
            booking_id=item["booking_id"],
            room_id=item["room_id"],
            user_id=item.get("user_id"),
            checkin=from_iso_string(item["check_in"]),
            checkout=from_iso_string(item["check_out"]),
            guests=int(item["guests"]),
            total_price=Decimal(str(item["total_price"])),
            status=BookingStatus(item["booking_status"]),
            guest_name=item.get("guest_name"),
            guest_email=item.get("guest_email"),
            guest_phone=item.get("guest_phone"),
            special_requests=item.get("special_requests", ""),
            booked_at=from_iso_string(item["booked_at"]),
        )

    def _room_version_update(self, room_id: str, seen: int) -> dict:
        if seen:
            condition = "#version = :seen"
        else:
            condition = "attribute_exists(pk) AND (attribute_not_exists(#version) OR #version = :seen)"
        return {
            "Update": {
                "Key": {"pk": f"ROOM#{room_id}", "sk": "DETAILS"},
                "TableName": self.table.name,
                "UpdateExpression": "SET #version = :next",
                "ExpressionAttributeNames": {"#version": "booking_version"},
                "ExpressionAttributeValues": {":seen": seen, ":next": seen + 1},
                "ConditionExpression": condition,
            }
        }

    def add_booking(self, booking: Booking, room_version: int):
        """Store the booking only if no other booking was added to the room
        since ``room_version`` was read."""
        attributes = self._to_item(booking)
        transact_items = [self._room_version_update(booking.room_id, room_version)]
        for key in self._keys(booking):
            transact_items.append(
                {
                    "Put": {
                        "TableName": self.table.name,
                        "Item": {**key, **attributes},
                        "ConditionExpression": "attribute_not_exists(sk)",
                    }
                }
            )

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as err:
            if err.response.get("Error", {}).get("Code") == "TransactionCanceledException":
                logger.warning(
                    f"Room {booking.room_id} changed since version {room_version}, "
                    f"rejecting booking {booking.booking_id}"
                )
                raise RoomBookingConflict(
                    f"room {booking.room_id} was booked concurrently, check availability again"
                ) from err
            logger.error(f"Error creating booking {booking.booking_id}: {err}")
            raise
        logger.info(f"Booking {booking.booking_id} stored for room {booking.room_id}")

    def get_booking_by_id(self, booking_id: str) -> Optional[Booking]:
        try:
            response = self.table.get_item(
                Key={"pk": f"BOOKING#{booking_id}", "sk": "DETAILS"}
            )
        except ClientError as err:
            logger.error(f"Error retrieving booking {booking_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return self._to_booking(item)

    def _query_all(self, key_condition) -> List[dict]:
        query_kwargs = {"KeyConditionExpression": key_condition}
        items = []
        while True:
            resp = self.table.query(**query_kwargs)
            items.extend(resp.get("Items", []))
            if "LastEvaluatedKey" not in resp:
                return items
            query_kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]

    def get_room_bookings(self, room_id: str) -> List[Booking]:
        try:
            items = self._query_all(
                Key("pk").eq(f"ROOM#{room_id}") & Key("sk").begins_with("CHECKIN#")
            )
        except ClientError as err:
            logger.error(f"Error retrieving bookings for room {room_id}: {err}")
            raise
        return [self._to_booking(item) for item in items]

    def get_user_bookings(self, user_id: str) -> List[Booking]:
        try:
            items = self._query_all(
                Key("pk").eq(f"USER#{user_id}") & Key("sk").begins_with("BOOKING#")
            )
        except ClientError as err:
            logger.error(f"Error retrieving user {user_id} bookings: {err}")
            raise
        return [self._to_booking(item) for item in items]

    def list_bookings(self) -> List[Booking]:
        scan_kwargs = {
            "FilterExpression": Attr("pk").begins_with("BOOKING#") & Attr("sk").eq("DETAILS")
        }
        bookings = []
        try:
            while True:
                resp = self.table.scan(**scan_kwargs)
                bookings.extend(self._to_booking(item) for item in resp.get("Items", []))
                if "LastEvaluatedKey" not in resp:
                    break
                scan_kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]
        except ClientError as err:
            logger.error(f"Error listing bookings: {err}")
            raise
        return bookings

    def _status_updates(
        self, booking: Booking, status: BookingStatus, expected: BookingStatus
    ) -> List[dict]:
        return [
            {
                "Update": {
                    "Key": key,
                    "TableName": self.table.name,
                    "UpdateExpression": "SET #booking_status = :new_value",
                    "ExpressionAttributeNames": {
                        "#booking_status": "booking_status",
                    },
                    "ExpressionAttributeValues": {
                        ":new_value": status.value,
                        ":expected": expected.value,
                    },
                    "ConditionExpression": "#booking_status = :expected",
                }
            }
            for key in self._keys(booking)
        ]

    def update_booking_status(
        self, booking: Booking, status: BookingStatus, expected: BookingStatus
    ):
        """Write ``status`` on every copy of the booking, only if it still is ``expected``."""
        transact_items = self._status_updates(booking, status, expected)

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as err:
            if err.response.get("Error", {}).get("Code") == "TransactionCanceledException":
                logger.warning(
                    f"Booking {booking.booking_id} is no longer {expected.value}, "
                    f"refusing to set {status.value}"
                )
                raise BookingStatusConflict(
                    f"booking {booking.booking_id} was modified concurrently"
                ) from err
            logger.error(f"Error updating booking {booking.booking_id} status: {err}")
            raise

    def confirm_with_payment(self, booking: Booking, payment: Payment):
        """Store the payment and mark the booking confirmed in one transaction.

        Either both writes land or neither does, so a failed confirmation
        leaves no payment behind and can be retried.
        """
        transact_items = [
            {
                "Put": {
                    "TableName": self.table.name,
                    "Item": payment_item(payment),
                    "ConditionExpression": "attribute_not_exists(pk)",
                }
            }
        ]
        transact_items.extend(
            self._status_updates(booking, BookingStatus.CONFIRMED, BookingStatus.PENDING)
        )

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as err:
            if err.response.get("Error", {}).get("Code") != "TransactionCanceledException":
                logger.error(f"Error confirming booking {booking.booking_id}: {err}")
                raise
            reasons = err.response.get("CancellationReasons", [])
            if reasons and reasons[0].get("Code") == "ConditionalCheckFailed":
                logger.warning(f"Booking {booking.booking_id} already has a payment")
                raise PaymentAlreadyExists(
                    f"booking {booking.booking_id} already has a payment"
                ) from err
            logger.warning(f"Booking {booking.booking_id} is no longer pending, payment not stored")
            raise BookingStatusConflict(
                f"booking {booking.booking_id} was modified concurrently"
            ) from err
        logger.info(f"Payment {payment.payment_id} stored, booking {booking.booking_id} confirmed")
