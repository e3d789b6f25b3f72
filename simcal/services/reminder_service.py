import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from simcal.config import settings
from simcal.models.booking import Booking, BookingStatus
from simcal.models.scheduled_reminder import ScheduledReminder
from simcal.utils.email import send_reminder_email
from simcal.utils.timeutils import utcnow, as_utc, isoformat

logger = logging.getLogger(__name__)


class ReminderService:

    def schedule_for(self, db: Session, booking: Booking, now: datetime | None = None) -> ScheduledReminder | None:
        """
        (Re)schedule the session reminder of a booking.
        Pending reminders are replaced; nothing is scheduled when the fire
        time has already passed. Flushes but does NOT commit.
        """
        now = as_utc(now) or utcnow()
        for pending in [r for r in booking.reminders if not r.delivered]:
            booking.reminders.remove(pending)

        fire_at = as_utc(booking.startTime) - timedelta(minutes=settings.REMINDER_LEAD_MINUTES)
        if fire_at <= now:
            return None

        reminder = ScheduledReminder(fireAt=fire_at, delivered=False)
        booking.reminders.append(reminder)
        db.flush()
        return reminder

    def dispatch_due(self, db: Session, now: datetime | None = None) -> int:
        """
        Deliver every reminder whose fire time has come. Each reminder is
        claimed (marked delivered and committed) before anything is sent, so
        concurrent dispatchers never send it twice. Reminders of bookings that
        are no longer scheduled are retired without sending. Returns the
        number of e-mails sent.
        """
        now = as_utc(now) or utcnow()
        due_ids = [row.id for row in db.query(ScheduledReminder.id).filter(
            ScheduledReminder.delivered == False,  # noqa: E712
            ScheduledReminder.fireAt <= now,
        ).order_by(ScheduledReminder.fireAt.asc()).all()]

        sent = claimed = 0
        for reminder_id in due_ids:
            won = db.query(ScheduledReminder).filter(
                ScheduledReminder.id == reminder_id,
                ScheduledReminder.delivered == False,  # noqa: E712
            ).update({"delivered": True, "deliveredAt": now})
            db.commit()
            if not won:
                logger.debug(f"Reminder #{reminder_id} already claimed by another dispatcher")
                continue
            claimed += 1

            b = db.get(ScheduledReminder, reminder_id).booking
            if b is None or b.status != BookingStatus.SCHEDULED:
                continue
            details = {
                "title":     b.title,
                "simulator": b.simulator.value,
                "startTime": isoformat(b.startTime),
                "endTime":   isoformat(b.endTime),
            }
            recipients = {p.id: p for p in [b.creator, *b.participants]}
            for person in recipients.values():
                if send_reminder_email(person.name, person.email, details):
                    sent += 1

        if claimed:
            logger.info(f"Processed {claimed} due reminders, {sent} e-mails sent")
        return sent


reminder_service = ReminderService()
