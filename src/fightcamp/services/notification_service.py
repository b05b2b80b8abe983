"""
Notification Service
Sends booking emails (Resend) and texts (Twilio), logging every attempt
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

import resend
from sqlalchemy.orm import Session
from twilio.rest import Client

from fightcamp.config import settings
from fightcamp.models.booking import Booking
from fightcamp.models.gym import Gym
from fightcamp.models.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)

logger = logging.getLogger(__name__)

DEFAULT_DECLINE_REASON = "Unfortunately, we cannot accommodate your request at this time."


def _format_price(amount: Optional[float], currency: Optional[str]) -> str:
    return f"{(amount or 0):.2f} {(currency or 'USD').upper()}"


def _stay(booking: Booking) -> str:
    return f"{booking.start_date.isoformat()} to {booking.end_date.isoformat()}"


class NotificationService:
    """Service for sending booking notifications (email, SMS)"""

    def __init__(self, db: Session):
        self.db = db
        self.from_email = settings.EMAIL_FROM_ADDRESS
        self.from_number = settings.TWILIO_PHONE_NUMBER
        self._twilio_client: Optional[Client] = None

    @property
    def twilio_client(self) -> Client:
        if self._twilio_client is None:
            self._twilio_client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        return self._twilio_client

    def _log(
        self,
        booking_id: Optional[UUID],
        notification_type: NotificationType,
        channel: NotificationChannel,
        recipient: str,
        message: str,
        result: Dict[str, Any],
        subject: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> None:
        notification = Notification(
            booking_id=booking_id,
            notification_type=notification_type,
            channel=channel,
            status=(NotificationStatus.SENT if result.get("success") else NotificationStatus.FAILED),
            recipient=recipient,
            subject=subject,
            message=message,
            provider=provider,
            provider_message_id=result.get("message_id"),
            sent_at=datetime.utcnow() if result.get("success") else None,
            error_message=result.get("error"),
        )
        self.db.add(notification)
        self.db.commit()

    def send_email(
        self,
        to_email: str,
        subject: str,
        html: str,
        notification_type: NotificationType,
        booking_id: Optional[UUID] = None,
    ) -> Dict[str, Any]:
        """
        Send an email via Resend

        Args:
            to_email: Recipient address
            subject: Subject line
            html: HTML body
            notification_type: What kind of booking message this is
            booking_id: Booking the message is about

        Returns:
            Result dictionary with status
        """
        if not settings.RESEND_API_KEY:
            logger.error(f"RESEND_API_KEY missing - not sending '{subject}' to {to_email}")
            result: Dict[str, Any] = {"success": False, "error": "Email service not configured", "to": to_email}
        else:
            try:
                resend.api_key = settings.RESEND_API_KEY
                response = resend.Emails.send(
                    {"from": self.from_email, "to": [to_email], "subject": subject, "html": html}
                )
                result = {
                    "success": True,
                    "message_id": response.get("id") if isinstance(response, dict) else None,
                    "to": to_email,
                }
                logger.info(f"Email '{subject}' sent to {to_email}")
            except Exception as e:
                logger.error(f"Failed to send email to {to_email}: {str(e)}")
                result = {"success": False, "error": str(e), "to": to_email}

        self._log(
            booking_id,
            notification_type,
            NotificationChannel.EMAIL,
            to_email,
            html,
            result,
            subject=subject,
            provider="resend",
        )
        return result

    def send_sms(
        self,
        to_phone: str,
        message: str,
        notification_type: NotificationType,
        booking_id: Optional[UUID] = None,
    ) -> Dict[str, Any]:
        """
        Send SMS via Twilio

        Skipped (and not logged) when Twilio is not configured; SMS is optional.
        """
        if not settings.sms_configured:
            return {"success": False, "error": "SMS not configured", "to": to_phone}

        try:
            twilio_message = self.twilio_client.messages.create(body=message, from_=self.from_number, to=to_phone)
            result = {
                "success": True,
                "message_id": twilio_message.sid,
                "status": twilio_message.status,
                "to": to_phone,
            }
        except Exception as e:
            logger.error(f"Failed to send SMS to {to_phone}: {str(e)}")
            result = {"success": False, "error": str(e), "to": to_phone}

        self._log(booking_id, notification_type, NotificationChannel.SMS, to_phone, message, result, provider="twilio")
        return result

    # Booking messages

    def send_request_received(self, booking: Booking, gym: Gym, magic_link: Optional[str] = None) -> Dict[str, Any]:
        """Tell the guest their request/payment reached the gym"""
        to_email = booking.contact_email
        if not to_email:
            return {"success": False, "error": "No guest email"}

        link = f'<p><a href="{magic_link}">View your booking</a></p>' if magic_link else ""
        html = f"""
        <h2>We received your booking request</h2>
        <p>Hi {booking.guest_name or 'there'},</p>
        <p>Your request for {gym.name} ({_stay(booking)}) is with the gym.</p>
        <p>Reference: <strong>{booking.booking_reference}</strong><br>PIN: <strong>{booking.booking_pin}</strong></p>
        {link}
        """.strip()
        return self.send_email(
            to_email,
            f"Booking Request Received - {booking.booking_reference}",
            html,
            NotificationType.REQUEST_RECEIVED,
            booking.id,
        )

    def send_new_booking_alert(self, booking: Booking, gym: Gym) -> Dict[str, Any]:
        """Alert the platform admin and the gym owner about a new booking"""
        recipients = [email for email in (settings.ADMIN_EMAIL, gym.owner.email if gym.owner else None) if email]
        if not recipients:
            return {"success": False, "error": "No admin or owner email configured"}

        html = f"""
        <h2>New booking - {booking.booking_reference}</h2>
        <p>Gym: {gym.name}<br>Dates: {_stay(booking)}<br>
        Guest: {booking.guest_name or 'Registered user'} ({booking.contact_email or 'N/A'})<br>
        Discipline: {booking.discipline} / {booking.experience_level}<br>
        Total: {_format_price(booking.total_price, gym.currency)}<br>
        Payment intent: {booking.stripe_payment_intent_id or 'N/A'}</p>
        """.strip()

        results = [
            self.send_email(
                email,
                f"New Booking Request - {booking.booking_reference}",
                html,
                NotificationType.NEW_BOOKING,
                booking.id,
            )
            for email in recipients
        ]
        return {"success": all(r.get("success") for r in results), "results": results}

    def send_request_accepted(self, booking: Booking, gym: Gym, payment_link: str) -> Dict[str, Any]:
        if booking.guest_phone:
            self.send_sms(
                booking.guest_phone,
                f"{gym.name} accepted your booking {booking.booking_reference}. Complete payment: {payment_link}",
                NotificationType.REQUEST_ACCEPTED,
                booking.id,
            )
        if not booking.guest_email:
            return {"success": False, "error": "No guest email"}

        html = f"""
        <h2>Your request was accepted</h2>
        <p>Hi {booking.guest_name or 'Guest'},</p>
        <p>{gym.name} accepted your request for {_stay(booking)}.</p>
        <p>Total: {_format_price(booking.total_price, gym.currency)}</p>
        <p><a href="{payment_link}">Complete your payment</a></p>
        """.strip()
        return self.send_email(
            booking.guest_email,
            f"Booking Request Accepted - {booking.booking_reference}",
            html,
            NotificationType.REQUEST_ACCEPTED,
            booking.id,
        )

    def send_request_declined(self, booking: Booking, gym: Gym, reason: Optional[str] = None) -> Dict[str, Any]:
        reason = reason or DEFAULT_DECLINE_REASON
        if booking.guest_phone:
            self.send_sms(
                booking.guest_phone,
                f"{gym.name} could not accept booking {booking.booking_reference}: {reason}",
                NotificationType.REQUEST_DECLINED,
                booking.id,
            )
        if not booking.guest_email:
            return {"success": False, "error": "No guest email"}

        html = f"""
        <h2>Update on your booking request</h2>
        <p>Hi {booking.guest_name or 'Guest'},</p>
        <p>{gym.name} could not accept your request ({booking.booking_reference}).</p>
        <p>{reason}</p>
        """.strip()
        return self.send_email(
            booking.guest_email,
            f"Booking Request Update - {booking.booking_reference}",
            html,
            NotificationType.REQUEST_DECLINED,
            booking.id,
        )

    def send_booking_confirmed(self, booking: Booking, gym: Gym, magic_link: Optional[str] = None) -> Dict[str, Any]:
        if not booking.guest_email:
            logger.warning(f"No guest email for booking {booking.id}, skipping confirmation email")
            return {"success": False, "error": "No guest email"}

        link = f'<p><a href="{magic_link}">Manage your booking</a></p>' if magic_link else ""
        html = f"""
        <h2>Your booking is confirmed</h2>
        <p>Hi {booking.guest_name or 'Guest'},</p>
        <p>See you at {gym.name}{', ' + gym.country if gym.country else ''} for {_stay(booking)}.</p>
        <p>Charged: {_format_price(booking.total_price, gym.currency)}</p>
        <p>Reference: <strong>{booking.booking_reference}</strong><br>PIN: <strong>{booking.booking_pin}</strong></p>
        {link}
        """.strip()
        return self.send_email(
            booking.guest_email,
            f"Booking Confirmed - {booking.booking_reference}",
            html,
            NotificationType.BOOKING_CONFIRMED,
            booking.id,
        )

    def send_booking_cancelled(self, booking: Booking, gym: Gym) -> Dict[str, Any]:
        to_email = booking.contact_email
        if not to_email:
            return {"success": False, "error": "No guest email"}

        html = f"""
        <h2>Booking cancelled</h2>
        <p>Your booking {booking.booking_reference} at {gym.name} ({_stay(booking)}) was cancelled.
        Any held payment has been released.</p>
        """.strip()
        return self.send_email(
            to_email,
            f"Booking Cancelled - {booking.booking_reference}",
            html,
            NotificationType.BOOKING_CANCELLED,
            booking.id,
        )

    def send_access_link(self, booking: Booking, gym: Optional[Gym], magic_link: str) -> Dict[str, Any]:
        """Email a recovered magic link"""
        html = f"""
        <h2>Access your booking</h2>
        <p>Hi {booking.guest_name or 'Guest'},</p>
        <p>Here is a fresh link to your booking at {gym.name if gym else 'your gym'} ({_stay(booking)}).</p>
        <p><a href="{magic_link}">Open booking {booking.booking_reference}</a></p>
        """.strip()
        return self.send_email(
            booking.guest_email,
            f"Your Booking Link - {booking.booking_reference}",
            html,
            NotificationType.ACCESS_LINK,
            booking.id,
        )
