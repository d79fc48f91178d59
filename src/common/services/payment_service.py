import logging
from typing import Optional
from uuid import uuid4

from common.models.bookings import BookingStatus
from common.models.payments import Payment, PaymentStatus
from common.models.users import Actor
from common.repository.booking_repo import BookingRepository
from common.repository.payment_repo import PaymentRepository
from common.repository.room_repo import RoomRepository
from common.schemas.payments import PaymentRequest
from common.services.booking_state import BookingStateMachine
from common.services.notification_service import NotificationService
from common.utils.custom_exceptions import (
    InvalidTransition,
    NotFoundException,
    PaymentAmountMismatch,
)

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(
        self,
        payment_repo: PaymentRepository,
        booking_repo: BookingRepository,
        room_repo: Optional[RoomRepository] = None,
        notification_service: Optional[NotificationService] = None,
        state_machine: Optional[BookingStateMachine] = None,
    ):
        self.payment_repo = payment_repo
        self.booking_repo = booking_repo
        self.room_repo = room_repo
        self.notification_service = notification_service
        self.state_machine = state_machine or BookingStateMachine()

    def process_payment(self, req: PaymentRequest, actor: Actor) -> Payment:
        booking = self.booking_repo.get_booking_by_id(req.booking_id)
        if booking is None:
            raise NotFoundException("booking", req.booking_id, 404)

        self.state_machine.authorize(actor, booking)
        if booking.status != BookingStatus.PENDING:
            raise InvalidTransition(booking.status.value, BookingStatus.CONFIRMED.value)
        if req.amount != booking.total_price:
            raise PaymentAmountMismatch(
                f"expected {booking.total_price}, received {req.amount}"
            )

        payment = Payment(
            payment_id=str(uuid4()),
            booking_id=booking.booking_id,
            amount=req.amount,
            method=req.method,
            card_last4=req.card_last4,
        )
        self._charge(payment)
        self.state_machine.confirm(booking, payment)
        try:
            self.booking_repo.confirm_with_payment(booking, payment)
        except Exception:
            booking.status = BookingStatus.PENDING
            raise
        logger.info(f"Payment {payment.payment_id} recorded for booking {booking.booking_id}")

        if self.notification_service:
            room = self.room_repo.get_room_by_id(booking.room_id) if self.room_repo else None
            self.notification_service.send_booking_confirmation(
                booking, room, recipient=booking.guest_email or actor.email
            )
        return payment

    def get_payment(self, booking_id: str, actor: Actor) -> Payment:
        booking = self.booking_repo.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("booking", booking_id, 404)
        self.state_machine.authorize(actor, booking)

        payment = self.payment_repo.get_payment_by_booking(booking_id)
        if payment is None:
            raise NotFoundException("payment", booking_id, 404)
        return payment

    def _charge(self, payment: Payment):
        # no gateway yet, every charge succeeds
        payment.status = PaymentStatus.COMPLETED
