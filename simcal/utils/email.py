import functools
import logging
import smtplib
from email.message import EmailMessage
from html import escape

from simcal.config import settings

logger = logging.getLogger(__name__)


def fire_and_forget(func):
    """
    Notifications never fail the operation that triggered them.
    Any exception is logged and the call reports False.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> bool:
        try:
            return func(*args, **kwargs)
        except Exception:
            logger.exception(f"Failed to send e-mail via {func.__name__}")
            return False
    return wrapper


def _deliver(to_email: str, subject: str, html: str) -> bool:
    if not settings.SMTP_ENABLED:
        # SMTP disabled: log instead of sending
        logger.info(f"[EMAIL] To={to_email} | Subject={subject}")
        return True

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content("This message requires an HTML capable mail client.")
    msg.add_alternative(html, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USE_TLS:
            smtp.starttls()
        if settings.SMTP_USER:
            smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        smtp.send_message(msg)
    logger.info(f"[EMAIL] Sent '{subject}' to {to_email}")
    return True


def _esc(value) -> str:
    """Escape a user-supplied value for the HTML body."""
    return escape("" if value is None else str(value))


def _booking_lines(details: dict) -> str:
    return (
        f"<li>Title: {_esc(details.get('title'))}</li>"
        f"<li>Simulator: {_esc(details.get('simulator'))}</li>"
        f"<li>Time: {_esc(details.get('startTime'))} - {_esc(details.get('endTime'))}</li>"
    )


# ─── Accounts ─────────────────────────────────────────────────────────────────
@fire_and_forget
def send_welcome_email(name: str, to_email: str, password: str) -> bool:
    html = (
        "<h2>Welcome to SimCal!</h2>"
        f"<p>Dear {_esc(name)},</p>"
        "<p>Your account has been created. Here are your login credentials:</p>"
        f"<ul><li>Email: {_esc(to_email)}</li><li>Temporary password: {_esc(password)}</li></ul>"
        "<p>Please change your password after your first login.</p>"
    )
    return _deliver(to_email, "Welcome to SimCal", html)


@fire_and_forget
def send_password_reset_email(name: str, to_email: str, reset_link: str) -> bool:
    html = (
        "<h2>Password Reset Request</h2>"
        f"<p>Hello {_esc(name)},</p>"
        f'<p>Use the link below to reset your password:</p><p><a href="{_esc(reset_link)}">Reset Password</a></p>'
        f"<p>This link will expire in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes. "
        "If you didn't request this, please ignore this email.</p>"
    )
    return _deliver(to_email, "Reset your SimCal password", html)


# ─── Bookings ─────────────────────────────────────────────────────────────────
@fire_and_forget
def send_booking_confirmation_email(name: str, to_email: str, details: dict) -> bool:
    html = (
        "<h2>Booking Confirmation</h2>"
        f"<p>Dear {_esc(name)},</p>"
        f"<p>Your simulator booking has been scheduled:</p><ul>{_booking_lines(details)}</ul>"
    )
    return _deliver(to_email, "Your Simulator Booking Details", html)


@fire_and_forget
def send_reminder_email(name: str, to_email: str, details: dict) -> bool:
    html = (
        "<h2>Session Reminder</h2>"
        f"<p>Dear {_esc(name)},</p>"
        f"<p>Your simulator session starts in {settings.REMINDER_LEAD_MINUTES} minutes:</p>"
        f"<ul>{_booking_lines(details)}</ul>"
        "<p>Please make sure to arrive on time.</p>"
    )
    return _deliver(to_email, "Your Simulator Session Starts Soon!", html)


@fire_and_forget
def send_session_started_email(name: str, to_email: str, details: dict) -> bool:
    html = (
        "<h2>Session Started</h2>"
        f"<p>Dear {_esc(name)},</p>"
        "<p>A simulator session you are participating in is now in progress:</p>"
        f"<ul>{_booking_lines(details)}</ul>"
    )
    return _deliver(to_email, "Simulator Session In Progress", html)


@fire_and_forget
def send_early_release_email(name: str, to_email: str, slot: dict) -> bool:
    html = (
        "<h2>Simulator Available</h2>"
        f"<p>Dear {_esc(name)},</p>"
        "<p>A simulator has become available earlier than scheduled:</p>"
        f"<ul><li>Simulator: {_esc(slot.get('simulator'))}</li>"
        f"<li>Available: {_esc(slot.get('availableFrom'))} - {_esc(slot.get('availableUntil'))}</li></ul>"
        f'<p><a href="{_esc(settings.FRONTEND_URL)}/book">Book Now</a></p>'
    )
    return _deliver(to_email, "Simulator Now Available", html)


# ─── Overrides ────────────────────────────────────────────────────────────────
@fire_and_forget
def send_override_request_email(name: str, to_email: str, details: dict) -> bool:
    html = (
        "<h2>Booking Override Request</h2>"
        f"<p>Dear {_esc(name)},</p>"
        f"<p>{_esc(details.get('requesterName'))} ({_esc(details.get('requesterEmail'))}) "
        "has requested to override your booking:</p>"
        f"<ul>{_booking_lines(details)}<li>Reason: {_esc(details.get('reason'))}</li></ul>"
        "<p>A manager of your department will review this request.</p>"
    )
    return _deliver(to_email, "Booking Override Request", html)


@fire_and_forget
def send_override_approved_email(to_email: str, details: dict) -> bool:
    html = (
        "<h2>Your Booking Override Request Has Been Approved</h2>"
        "<p>The following booking has been cancelled and is now available:</p>"
        f"<ul>{_booking_lines(details)}</ul>"
        "<p>You can now book this time slot.</p>"
    )
    return _deliver(to_email, "Booking Override Request Approved", html)


@fire_and_forget
def send_override_rejected_email(to_email: str, details: dict) -> bool:
    html = (
        "<h2>Your Booking Override Request Has Been Rejected</h2>"
        "<p>Your request for the following booking has been rejected:</p>"
        f"<ul>{_booking_lines(details)}</ul>"
        "<p>Please try booking a different time slot.</p>"
    )
    return _deliver(to_email, "Booking Override Request Rejected", html)
