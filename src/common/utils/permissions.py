from common.models.users import Actor, UserRole
from common.models.bookings import Booking

ELEVATED_ROLES = frozenset({UserRole.STAFF, UserRole.ADMIN, UserRole.SUPER_ADMIN})
ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})


def has_elevated_privilege(actor: Actor) -> bool:
    return actor.role in ELEVATED_ROLES


def is_admin(actor: Actor) -> bool:
    return actor.role in ADMIN_ROLES


def can_manage_booking(actor: Actor, booking: Booking) -> bool:
    """True if the actor owns the booking, made it as a guest, or is staff.

    Guest bookings are matched on the exact contact email.
    """
    if has_elevated_privilege(actor):
        return True
    if booking.is_guest_booking:
        return actor.email is not None and actor.email == booking.guest_email
    return actor.user_id is not None and actor.user_id == booking.user_id
