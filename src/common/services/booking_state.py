import logging
from datetime import datetime

from common.models.bookings import Booking, BookingStatus
from common.models.payments import Payment, PaymentStatus
from common.models.users import Actor
from common.utils.constants import CANCELLATION_WINDOW
from common.utils.custom_exceptions import (
    AlreadyCancelled,
    CancellationWindowExpired,
    InvalidTransition,
    PaymentBookingMismatch,
    Unauthorized,
)
from common.utils.permissions import can_manage_booking, has_elevated_privilege

logger = logging.getLogger(__name__)

TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED, BookingStatus.COMPLETED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}


class BookingStateMachine:
    """Guards booking status changes. Mutates the booking, never storage."""

    def can_transition(self, current: BookingStatus, target: BookingStatus) -> bool:
        return target in TRANSITIONS[current]

    def authorize(self, actor: Actor, booking: Booking):
        if not can_manage_booking(actor, booking):
            logger.warning(
                f"Actor {actor.user_id or actor.email} denied access to booking {booking.booking_id}"
            )
            raise Unauthorized(f"not allowed to modify booking {booking.booking_id}")

    def confirm(self, booking: Booking, payment: Payment) -> Booking:
        if payment.booking_id != booking.booking_id:
            raise PaymentBookingMismatch(
                f"payment {payment.payment_id} does not belong to booking {booking.booking_id}"
            )
        if payment.status != PaymentStatus.COMPLETED:
            raise InvalidTransition(booking.status.value, BookingStatus.CONFIRMED.value)
        self._move(booking, BookingStatus.CONFIRMED)
        return booking

    def cancel(self, booking: Booking, actor: Actor, now: datetime) -> Booking:
        self.authorize(actor, booking)
        if booking.status == BookingStatus.CANCELLED:
            raise AlreadyCancelled(f"booking {booking.booking_id} is already cancelled")

        if not has_elevated_privilege(actor) and booking.checkin - now < CANCELLATION_WINDOW:
            hours = CANCELLATION_WINDOW.total_seconds() / 3600
            raise CancellationWindowExpired(
                f"bookings can only be cancelled at least {hours:g} hours before checkin"
            )

        self._move(booking, BookingStatus.CANCELLED)
        return booking

    def complete(self, booking: Booking, actor: Actor) -> Booking:
        if not has_elevated_privilege(actor):
            raise Unauthorized("only staff can complete a stay")
        self._move(booking, BookingStatus.COMPLETED)
        return booking

    def _move(self, booking: Booking, target: BookingStatus):
        if not self.can_transition(booking.status, target):
            raise InvalidTransition(booking.status.value, target.value)
        logger.info(f"Booking {booking.booking_id}: {booking.status.value} -> {target.value}")
        booking.status = target
