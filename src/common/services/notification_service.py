import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

import boto3

from common.models.bookings import Booking
from common.models.rooms import Room

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, sender: str, region: str = "ap-south-1", ses_client=None):
        self.sender = sender
        self.ses = ses_client if ses_client else boto3.client("ses", region_name=region)

    def build_confirmation(self, booking: Booking, room: Optional[Room], recipient: str) -> MIMEMultipart:
        room_name = room.name if room else booking.room_id
        greeting = booking.guest_name or "guest"

        body = f"""
            Dear {greeting},

            Thank you for your reservation. Your booking has been confirmed!

            Booking ID: {booking.booking_id}
            Room: {room_name}

            Check-in: {booking.checkin.date().isoformat()}
            Check-out: {booking.checkout.date().isoformat()}
            Guests: {booking.guests}

            Total Price: ${booking.total_price:.2f}

            We look forward to welcoming you.
            """

        msg = MIMEMultipart()
        msg["From"] = self.sender
        msg["To"] = recipient
        msg["Subject"] = f"Your Booking Confirmation {booking.booking_id}"
        msg.attach(MIMEText(body, "plain"))
        return msg

    def send_booking_confirmation(
        self, booking: Booking, room: Optional[Room] = None, recipient: Optional[str] = None
    ):
        recipient = recipient or booking.guest_email
        if not recipient:
            logger.warning(f"No email address for booking {booking.booking_id}, skipping confirmation")
            return

        msg = self.build_confirmation(booking, room, recipient)
        try:
            self.ses.send_raw_email(
                Source=self.sender,
                Destinations=[recipient],
                RawMessage={"Data": msg.as_string()},
            )
        except Exception:
            logger.exception(f"Failed to send confirmation for booking {booking.booking_id}")
            raise
        logger.info(f"Confirmation for booking {booking.booking_id} sent to {recipient}")
