import unittest
from unittest.mock import MagicMock
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from botocore.exceptions import ClientError

from common.repository.booking_repo import BookingRepository
from common.models.bookings import Booking, BookingStatus
from common.models.payments import Payment, PaymentMethod, PaymentStatus
from common.utils.custom_exceptions import (
    BookingStatusConflict,
    PaymentAlreadyExists,
    RoomBookingConflict,
)


class TestBookingRepository(unittest.TestCase):

    def setUp(self):
        self.table = MagicMock()
        self.table.name = "hotel"
        self.client = MagicMock()

        self.table.meta.client = self.client
        self.repo = BookingRepository(self.table, self.client)

        now = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)

        self.booking = Booking(
            booking_id="b1",
            user_id="u1",
            room_id="r1",
            status=BookingStatus.PENDING,
            checkin=now + timedelta(days=1),
            checkout=now + timedelta(days=2),
            guests=2,
            total_price=Decimal("113.00"),
            booked_at=now,
        )

    def _item(self, **overrides):
        item = {
            "booking_id": "b1",
            "room_id": "r1",
            "user_id": "u1",
            "booking_status": "CONFIRMED",
            "check_in": "2024-06-02T12:00:00+00:00",
            "check_out": "2024-06-03T12:00:00+00:00",
            "guests": Decimal("2"),
            "total_price": Decimal("113.00"),
            "special_requests": "",
            "booked_at": "2024-06-01T12:00:00+00:00",
        }
        item.update(overrides)
        return item

    def test_client_defaults_to_table_client(self):
        repo = BookingRepository(self.table)

        self.assertIs(repo.client, self.client)

    def test_add_booking_success(self):
        self.repo.add_booking(self.booking, room_version=3)

        self.client.transact_write_items.assert_called_once()
        _, kwargs = self.client.transact_write_items.call_args

        items = kwargs["TransactItems"]
        self.assertEqual(len(items), 4)

        booking_put = items[1]["Put"]["Item"]
        user_put = items[2]["Put"]["Item"]
        room_put = items[3]["Put"]["Item"]

        self.assertEqual(booking_put["pk"], "BOOKING#b1")
        self.assertEqual(booking_put["sk"], "DETAILS")
        self.assertEqual(booking_put["booking_status"], "PENDING")
        self.assertEqual(booking_put["total_price"], Decimal("113.00"))
        self.assertNotIn("guest_email", booking_put)

        self.assertEqual(user_put["pk"], "USER#u1")
        self.assertEqual(user_put["sk"], "BOOKING#b1")

        self.assertEqual(room_put["pk"], "ROOM#r1")
        self.assertEqual(room_put["sk"], "CHECKIN#2024-06-02T12:00:00+00:00#BOOKING#b1")
        self.assertEqual(items[1]["Put"]["TableName"], "hotel")

    def test_add_booking_bumps_room_version(self):
        self.repo.add_booking(self.booking, room_version=3)

        _, kwargs = self.client.transact_write_items.call_args
        update = kwargs["TransactItems"][0]["Update"]

        self.assertEqual(update["Key"], {"pk": "ROOM#r1", "sk": "DETAILS"})
        self.assertEqual(update["TableName"], "hotel")
        self.assertEqual(update["UpdateExpression"], "SET #version = :next")
        self.assertEqual(update["ExpressionAttributeNames"], {"#version": "booking_version"})
        self.assertEqual(update["ConditionExpression"], "#version = :seen")
        self.assertEqual(update["ExpressionAttributeValues"], {":seen": 3, ":next": 4})

    def test_add_first_booking_accepts_missing_room_version(self):
        self.repo.add_booking(self.booking, room_version=0)

        _, kwargs = self.client.transact_write_items.call_args
        update = kwargs["TransactItems"][0]["Update"]

        self.assertEqual(
            update["ConditionExpression"],
            "attribute_exists(pk) AND (attribute_not_exists(#version) OR #version = :seen)",
        )
        self.assertEqual(update["ExpressionAttributeValues"], {":seen": 0, ":next": 1})

    def test_add_booking_concurrent_insert_conflicts(self):
        self.client.transact_write_items.side_effect = ClientError(
            error_response={
                "Error": {"Code": "TransactionCanceledException"},
                "CancellationReasons": [{"Code": "ConditionalCheckFailed"}, {"Code": "None"}],
            },
            operation_name="TransactWriteItems"
        )

        with self.assertRaises(RoomBookingConflict):
            self.repo.add_booking(self.booking, room_version=3)

    def test_add_guest_booking_skips_user_index(self):
        self.booking.user_id = None
        self.booking.guest_email = "guest@example.com"

        self.repo.add_booking(self.booking, room_version=0)

        _, kwargs = self.client.transact_write_items.call_args
        items = kwargs["TransactItems"]
        self.assertEqual(len(items), 3)
        self.assertEqual(items[1]["Put"]["Item"]["guest_email"], "guest@example.com")
        self.assertNotIn("user_id", items[1]["Put"]["Item"])

    def test_add_booking_client_error(self):
        self.client.transact_write_items.side_effect = ClientError(
            error_response={"Error": {"Message": "Write failed"}},
            operation_name="TransactWriteItems"
        )

        with self.assertRaises(ClientError):
            self.repo.add_booking(self.booking, room_version=0)

    def test_get_booking_by_id_success(self):
        self.table.get_item.return_value = {"Item": self._item()}

        booking = self.repo.get_booking_by_id("b1")

        self.table.get_item.assert_called_once_with(Key={"pk": "BOOKING#b1", "sk": "DETAILS"})
        self.assertEqual(booking.booking_id, "b1")
        self.assertEqual(booking.status, BookingStatus.CONFIRMED)
        self.assertEqual(booking.guests, 2)
        self.assertEqual(booking.checkin, datetime(2024, 6, 2, 12, tzinfo=timezone.utc))

    def test_get_booking_by_id_missing(self):
        self.table.get_item.return_value = {}

        self.assertIsNone(self.repo.get_booking_by_id("b1"))

    def test_get_room_bookings_paginates(self):
        self.table.query.side_effect = [
            {"Items": [self._item()], "LastEvaluatedKey": {"pk": "x"}},
            {"Items": [self._item(booking_id="b2", booking_status="CANCELLED")]},
        ]

        bookings = self.repo.get_room_bookings("r1")

        self.assertEqual(self.table.query.call_count, 2)
        _, second_kwargs = self.table.query.call_args
        self.assertEqual(second_kwargs["ExclusiveStartKey"], {"pk": "x"})
        self.assertEqual([b.booking_id for b in bookings], ["b1", "b2"])
        self.assertEqual(bookings[1].status, BookingStatus.CANCELLED)

    def test_get_user_bookings_empty(self):
        self.table.query.return_value = {"Items": []}

        self.assertEqual(self.repo.get_user_bookings("u1"), [])

    def test_get_user_bookings_client_error(self):
        self.table.query.side_effect = ClientError(
            error_response={"Error": {"Message": "Query failed"}},
            operation_name="Query"
        )

        with self.assertRaises(ClientError):
            self.repo.get_user_bookings("u1")

    def test_update_booking_status_guards_expected(self):
        self.repo.update_booking_status(
            self.booking, BookingStatus.CONFIRMED, expected=BookingStatus.PENDING
        )

        _, kwargs = self.client.transact_write_items.call_args
        items = kwargs["TransactItems"]
        self.assertEqual(len(items), 3)
        for entry in items:
            update = entry["Update"]
            self.assertEqual(update["ConditionExpression"], "#booking_status = :expected")
            self.assertEqual(update["ExpressionAttributeValues"][":new_value"], "CONFIRMED")
            self.assertEqual(update["ExpressionAttributeValues"][":expected"], "PENDING")

    def test_update_booking_status_conflict(self):
        self.client.transact_write_items.side_effect = ClientError(
            error_response={"Error": {"Code": "TransactionCanceledException"}},
            operation_name="TransactWriteItems"
        )

        with self.assertRaises(BookingStatusConflict):
            self.repo.update_booking_status(
                self.booking, BookingStatus.CANCELLED, expected=BookingStatus.PENDING
            )

    def test_update_booking_status_other_error(self):
        self.client.transact_write_items.side_effect = ClientError(
            error_response={"Error": {"Code": "InternalServerError"}},
            operation_name="TransactWriteItems"
        )

        with self.assertRaises(ClientError):
            self.repo.update_booking_status(
                self.booking, BookingStatus.CANCELLED, expected=BookingStatus.PENDING
            )

    def _payment(self):
        return Payment(
            payment_id="p1",
            booking_id="b1",
            amount=Decimal("113.00"),
            method=PaymentMethod.CARD,
            status=PaymentStatus.COMPLETED,
            created_at=datetime(2024, 6, 1, 13, tzinfo=timezone.utc),
        )

    def test_confirm_with_payment_single_transaction(self):
        self.repo.confirm_with_payment(self.booking, self._payment())

        self.client.transact_write_items.assert_called_once()
        _, kwargs = self.client.transact_write_items.call_args
        items = kwargs["TransactItems"]
        self.assertEqual(len(items), 4)

        payment_put = items[0]["Put"]
        self.assertEqual(payment_put["Item"]["pk"], "PAYMENT#b1")
        self.assertEqual(payment_put["Item"]["payment_status"], "COMPLETED")
        self.assertEqual(payment_put["ConditionExpression"], "attribute_not_exists(pk)")

        for entry in items[1:]:
            update = entry["Update"]
            self.assertEqual(update["ConditionExpression"], "#booking_status = :expected")
            self.assertEqual(update["ExpressionAttributeValues"][":new_value"], "CONFIRMED")
            self.assertEqual(update["ExpressionAttributeValues"][":expected"], "PENDING")
        self.table.put_item.assert_not_called()

    def test_confirm_with_payment_existing_payment(self):
        self.client.transact_write_items.side_effect = ClientError(
            error_response={
                "Error": {"Code": "TransactionCanceledException"},
                "CancellationReasons": [
                    {"Code": "ConditionalCheckFailed"},
                    {"Code": "None"},
                    {"Code": "None"},
                    {"Code": "None"},
                ],
            },
            operation_name="TransactWriteItems"
        )

        with self.assertRaises(PaymentAlreadyExists):
            self.repo.confirm_with_payment(self.booking, self._payment())

    def test_confirm_with_payment_booking_no_longer_pending(self):
        self.client.transact_write_items.side_effect = ClientError(
            error_response={
                "Error": {"Code": "TransactionCanceledException"},
                "CancellationReasons": [
                    {"Code": "None"},
                    {"Code": "ConditionalCheckFailed"},
                    {"Code": "None"},
                    {"Code": "None"},
                ],
            },
            operation_name="TransactWriteItems"
        )

        with self.assertRaises(BookingStatusConflict):
            self.repo.confirm_with_payment(self.booking, self._payment())

    def test_confirm_with_payment_other_error(self):
        self.client.transact_write_items.side_effect = ClientError(
            error_response={"Error": {"Code": "InternalServerError"}},
            operation_name="TransactWriteItems"
        )

        with self.assertRaises(ClientError):
            self.repo.confirm_with_payment(self.booking, self._payment())

    def test_list_bookings_scans_details_items(self):
        self.table.scan.side_effect = [
            {"Items": [self._item()], "LastEvaluatedKey": {"pk": "BOOKING#b1"}},
            {"Items": [self._item(booking_id="b2")]},
        ]

        bookings = self.repo.list_bookings()

        self.assertEqual(self.table.scan.call_count, 2)
        _, second_kwargs = self.table.scan.call_args
        self.assertEqual(second_kwargs["ExclusiveStartKey"], {"pk": "BOOKING#b1"})
        self.assertIn("FilterExpression", second_kwargs)
        self.assertEqual([b.booking_id for b in bookings], ["b1", "b2"])

    def test_list_bookings_client_error(self):
        self.table.scan.side_effect = ClientError(
            error_response={"Error": {"Message": "Scan failed"}},
            operation_name="Scan"
        )

        with self.assertRaises(ClientError):
            self.repo.list_bookings()


if __name__ == "__main__":
    unittest.main()
