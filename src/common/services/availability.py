"""Room availability over half-open ``[checkin, checkout)`` stays.

Everything here is a pure function of its arguments. Callers validate the
requested range (see ``ensure_valid_range``) before asking.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from common.models.bookings import Booking, BookingStatus
from common.models.rooms import Room
from common.utils.constants import TAX_RATE

CENTS = Decimal("0.01")


@dataclass
class DayAvailability:
    day: date
    available: bool


def _active(bookings: Iterable[Booking]) -> List[Booking]:
    return [b for b in bookings if b.status != BookingStatus.CANCELLED]


def overlaps(
    checkin: datetime, checkout: datetime, other_checkin: datetime, other_checkout: datetime
) -> bool:
    return checkin < other_checkout and checkout > other_checkin


def find_conflicts(
    checkin: datetime, checkout: datetime, bookings: Iterable[Booking]
) -> List[Booking]:
    return [
        b
        for b in _active(bookings)
        if overlaps(checkin, checkout, b.checkin, b.checkout)
    ]


def is_available(
    room: Optional[Room],
    checkin: datetime,
    checkout: datetime,
    bookings: Iterable[Booking],
) -> bool:
    """Whether ``room`` is free for the whole requested stay.

    A room switched off by an administrator is never available. Cancelled
    bookings are ignored, and a stay may start on another stay's checkout.
    """
    if room is not None and not room.available:
        return False
    return not find_conflicts(checkin, checkout, bookings)


def is_booked_on(day: date, bookings: Iterable[Booking]) -> bool:
    instant = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return any(b.checkin <= instant < b.checkout for b in _active(bookings))


def month_availability(
    year: int, month: int, bookings: Iterable[Booking]
) -> List[DayAvailability]:
    active = _active(bookings)
    _, days_in_month = calendar.monthrange(year, month)
    return [
        DayAvailability(day=d, available=not is_booked_on(d, active))
        for d in (date(year, month, n) for n in range(1, days_in_month + 1))
    ]


def nights_between(checkin: datetime, checkout: datetime) -> int:
    # a partial last day is still charged as a night
    delta = checkout - checkin
    return delta.days + (1 if delta.seconds or delta.microseconds else 0)


def calculate_total_price(price_per_night: Decimal, nights: int) -> Decimal:
    subtotal = Decimal(price_per_night) * nights
    return (subtotal * (1 + TAX_RATE)).quantize(CENTS, rounding=ROUND_HALF_UP)
