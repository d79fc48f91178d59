import logging
from datetime import datetime
from typing import Callable, List, Optional
from uuid import uuid4

from common.repository.booking_repo import BookingRepository
from common.repository.room_repo import RoomRepository
from common.models.bookings import Booking
from common.models.users import Actor
from common.schemas.bookings import BookingRequest
from common.services import availability
from common.services.booking_state import BookingStateMachine
from common.utils.custom_exceptions import (
    CapacityExceeded,
    MissingGuestDetails,
    NotFoundException,
    RoomUnavailable,
    Unauthorized,
)
from common.utils.datetime_normaliser import utc_now
from common.utils.permissions import has_elevated_privilege, is_admin

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(
        self,
        booking_repo: BookingRepository,
        room_repo: RoomRepository,
        state_machine: Optional[BookingStateMachine] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.booking_repo = booking_repo
        self.room_repo = room_repo
        self.state_machine = state_machine or BookingStateMachine()
        self.clock = clock

    def create_booking(self, req: BookingRequest, actor: Actor) -> Booking:
        if actor.is_guest and not req.has_guest_details():
            raise MissingGuestDetails(
                "guest name, email and phone are required for bookings without an account"
            )

        room = self.room_repo.get_room_by_id(req.room_id)
        if room is None:
            raise NotFoundException("room", req.room_id, 404)
        if req.guests > room.capacity:
            raise CapacityExceeded(
                f"room {room.room_id} holds at most {room.capacity} guests"
            )

        existing = self.booking_repo.get_room_bookings(room.room_id)
        if not availability.is_available(room, req.checkin, req.checkout, existing):
            conflicts = availability.find_conflicts(req.checkin, req.checkout, existing)
            logger.warning(
                f"Room {room.room_id} unavailable for {req.checkin} to {req.checkout}"
            )
            raise RoomUnavailable(
                room.room_id, [(b.checkin, b.checkout) for b in conflicts]
            )

        nights = availability.nights_between(req.checkin, req.checkout)
        booking = Booking(
            booking_id=str(uuid4()),
            room_id=room.room_id,
            user_id=actor.user_id,
            checkin=req.checkin,
            checkout=req.checkout,
            guests=req.guests,
            total_price=availability.calculate_total_price(room.price_per_night, nights),
            guest_name=req.guest_name,
            guest_email=req.guest_email,
            guest_phone=req.guest_phone,
            special_requests=req.special_requests,
        )
        self.booking_repo.add_booking(booking, room_version=room.booking_version)
        logger.info(f"Booking {booking.booking_id} created as {booking.status.value}")
        return booking

    def get_booking(self, booking_id: str, actor: Actor) -> Booking:
        booking = self._load(booking_id)
        self.state_machine.authorize(actor, booking)
        return booking

    def get_user_bookings(self, actor: Actor, user_id: Optional[str] = None) -> List[Booking]:
        target = user_id or actor.user_id
        if target is None:
            raise Unauthorized("guests have no booking history")
        if target != actor.user_id and not has_elevated_privilege(actor):
            raise Unauthorized("not allowed to view another user's bookings")
        bookings = self.booking_repo.get_user_bookings(target)
        return sorted(bookings, key=lambda b: b.booked_at, reverse=True)

    def list_all_bookings(self, actor: Actor) -> List[Booking]:
        if not is_admin(actor):
            raise Unauthorized("only admins can list every booking")
        bookings = self.booking_repo.list_bookings()
        return sorted(bookings, key=lambda b: b.booked_at, reverse=True)

    def cancel_booking(self, booking_id: str, actor: Actor) -> Booking:
        booking = self._load(booking_id)
        previous = booking.status
        self.state_machine.cancel(booking, actor, self.clock())
        self.booking_repo.update_booking_status(booking, booking.status, expected=previous)
        return booking

    def complete_booking(self, booking_id: str, actor: Actor) -> Booking:
        booking = self._load(booking_id)
        previous = booking.status
        self.state_machine.complete(booking, actor)
        self.booking_repo.update_booking_status(booking, booking.status, expected=previous)
        return booking

    def _load(self, booking_id: str) -> Booking:
        booking = self.booking_repo.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("booking", booking_id, 404)
        return booking
