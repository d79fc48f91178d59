import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from boto3 import resource

from common.repository.booking_repo import BookingRepository
from common.repository.payment_repo import PaymentRepository
from common.repository.room_repo import RoomRepository
from common.services.booking_service import BookingService
from common.services.notification_service import NotificationService
from common.services.payment_service import PaymentService
from common.services.room_service import RoomService
from common.utils.custom_exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_REGION = "ap-south-1"
DEFAULT_SENDER = "bookings@example.com"


@dataclass(frozen=True)
class Settings:
    table_name: str
    region: str = DEFAULT_REGION
    sender_email: str = DEFAULT_SENDER

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        table_name = env.get("TABLE_NAME")
        if not table_name:
            raise ConfigurationError("TABLE_NAME environment variable is not set")
        return cls(
            table_name=table_name,
            region=env.get("AWS_REGION", DEFAULT_REGION),
            sender_email=env.get("SENDER_EMAIL", DEFAULT_SENDER),
        )


@dataclass
class Services:
    rooms: RoomService
    bookings: BookingService
    payments: PaymentService


def build_services(settings: Settings) -> Services:
    dynamodb = resource("dynamodb", region_name=settings.region)
    table = dynamodb.Table(settings.table_name)

    booking_repo = BookingRepository(table)
    room_repo = RoomRepository(table)
    payment_repo = PaymentRepository(table)
    notification_service = NotificationService(settings.sender_email, settings.region)

    logger.info(f"Services wired against table {settings.table_name} in {settings.region}")
    return Services(
        rooms=RoomService(room_repo, booking_repo),
        bookings=BookingService(booking_repo, room_repo),
        payments=PaymentService(
            payment_repo,
            booking_repo,
            room_repo=room_repo,
            notification_service=notification_service,
        ),
    )
