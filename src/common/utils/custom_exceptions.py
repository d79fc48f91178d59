class ReservationError(Exception):
    pass


class NotFoundException(ReservationError):
    def __init__(self, resource: str, identifier: str, status_code: int):
        self.resource = resource
        self.identifier = identifier
        self.status_code = status_code

    def __str__(self):
        return f"{self.resource} '{self.identifier}' not found"


class InvalidDateRange(ReservationError, ValueError):
    pass


class Unauthorized(ReservationError):
    pass


class AlreadyCancelled(ReservationError):
    pass


class CancellationWindowExpired(ReservationError):
    pass


class InvalidTransition(ReservationError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target

    def __str__(self):
        return f"cannot move booking from {self.current} to {self.target}"


class RoomUnavailable(ReservationError):
    def __init__(self, room_id: str, conflicts=None):
        self.room_id = room_id
        self.conflicts = conflicts or []

    def __str__(self):
        return f"room '{self.room_id}' is not available for the selected dates"


class CapacityExceeded(ReservationError):
    pass


class MissingGuestDetails(ReservationError):
    pass


class BookingStatusConflict(ReservationError):
    pass


class PaymentAlreadyExists(ReservationError):
    pass


class PaymentAmountMismatch(ReservationError):
    pass


class ConfigurationError(ReservationError):
    pass


class RoomBookingConflict(ReservationError):
    pass


class PaymentBookingMismatch(ReservationError):
    pass
