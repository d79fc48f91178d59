from datetime import datetime, timezone
from common.utils.custom_exceptions import InvalidDateRange


def from_iso_string(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        raise ValueError("Stored datetime must be timezone-aware")
    return dt.astimezone(timezone.utc)


def to_iso_string(dt: datetime) -> str:
    if dt.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware")
    return dt.astimezone(timezone.utc).isoformat()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_valid_range(checkin: datetime, checkout: datetime) -> tuple[datetime, datetime]:
    if checkin.tzinfo is None or checkout.tzinfo is None:
        raise InvalidDateRange("checkin and checkout must include timezone info")
    checkin_utc = checkin.astimezone(timezone.utc)
    checkout_utc = checkout.astimezone(timezone.utc)
    if checkout_utc <= checkin_utc:
        raise InvalidDateRange("checkout must be after checkin")
    return checkin_utc, checkout_utc
