from enum import Enum
from dataclasses import dataclass
from typing import Optional


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    CUSTOMER = "CUSTOMER"


@dataclass
class Actor:
    """Whoever is acting on a booking. Guests have no user_id."""

    user_id: Optional[str] = None
    email: Optional[str] = None
    role: UserRole = UserRole.CUSTOMER

    @property
    def is_guest(self) -> bool:
        return self.user_id is None
