import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from common.models.rooms import Room
from common.repository.booking_repo import BookingRepository
from common.repository.room_repo import RoomRepository
from common.schemas.rooms import RoomRequest, MonthQuery
from common.services import availability
from common.utils.custom_exceptions import NotFoundException
from common.utils.datetime_normaliser import ensure_valid_range

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    room_id: str
    available: bool
    conflicts: List[Tuple[datetime, datetime]] = field(default_factory=list)


class RoomService:
    def __init__(self, room_repo: RoomRepository, booking_repo: BookingRepository):
        self.room_repo = room_repo
        self.booking_repo = booking_repo

    def add_room(self, req: RoomRequest) -> Room:
        room = Room(
            room_id=req.room_id,
            name=req.name,
            category=req.category,
            capacity=req.capacity,
            price_per_night=req.price_per_night,
            available=req.available,
        )
        self.room_repo.add_room(room)
        return room

    def get_room(self, room_id: str) -> Room:
        room = self.room_repo.get_room_by_id(room_id)
        if room is None:
            raise NotFoundException("room", room_id, 404)
        return room

    def list_rooms(self, min_capacity: Optional[int] = None) -> List[Room]:
        rooms = self.room_repo.list_rooms()
        if min_capacity is not None:
            rooms = [r for r in rooms if r.capacity >= min_capacity]
        return rooms

    def set_room_availability(self, room_id: str, available: bool):
        self.room_repo.update_room_availability(room_id, available)

    def check_availability(
        self, room_id: str, checkin: datetime, checkout: datetime
    ) -> AvailabilityResult:
        checkin, checkout = ensure_valid_range(checkin, checkout)
        room = self.get_room(room_id)
        bookings = self.booking_repo.get_room_bookings(room_id)

        conflicts = availability.find_conflicts(checkin, checkout, bookings)
        return AvailabilityResult(
            room_id=room_id,
            available=availability.is_available(room, checkin, checkout, bookings),
            conflicts=[(b.checkin, b.checkout) for b in conflicts],
        )

    def find_available_rooms(
        self, checkin: datetime, checkout: datetime, guests: int = 1, rooms: int = 1
    ) -> List[Room]:
        """Rooms that can hold an even share of ``guests`` and are free for the stay.

        When several rooms are booked together the party is split across them,
        so each room only needs ``ceil(guests / rooms)`` beds.
        """
        checkin, checkout = ensure_valid_range(checkin, checkout)
        if guests < 1 or rooms < 1:
            raise ValueError("guests and rooms must be at least 1")

        min_capacity = math.ceil(guests / rooms)
        found = []
        for room in self.list_rooms(min_capacity=min_capacity):
            bookings = self.booking_repo.get_room_bookings(room.room_id)
            if availability.is_available(room, checkin, checkout, bookings):
                found.append(room)
        logger.info(
            f"{len(found)} rooms free for {guests} guests from {checkin} to {checkout}"
        )
        return found

    def get_month_availability(self, room_id: str, query: MonthQuery):
        self.get_room(room_id)
        bookings = self.booking_repo.get_room_bookings(room_id)
        return availability.month_availability(query.year, query.month, bookings)
