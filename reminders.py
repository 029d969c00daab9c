"""
Fee Reminder Scheduling
Chooses reminder urgency from the day of the month and pushes bilingual
(Tamil / English) reminders to members who have not paid yet.
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from flask import current_app
from firebase_admin import messaging
from models import db, NotificationLog
from membership import local_now, current_month, find_lapsed_members
from notifications import get_push_service
import logging

logger = logging.getLogger(__name__)

# Reminder urgency tiers
TIER_NEW_MONTH = 'NEW_MONTH'
TIER_GENERIC = 'GENERIC'
TIER_OVERDUE = 'OVERDUE'

# Reminder types, recorded with every dispatch
REMINDER_TYPES = ('DAILY_MORNING', 'DAILY_EVENING', 'NEW_MONTH', 'OVERDUE', 'MANUAL', 'AUTOMATED')

TAMIL_MONTHS = [
    'ஜனவரி', 'பிப்ரவரி', 'மார்ச்', 'ஏப்ரல்', 'மே', 'ஜூன்',
    'ஜூலை', 'ஆகஸ்ட்', 'செப்டம்பர்', 'அக்டோபர்', 'நவம்பர்', 'டிசம்பர்'
]

DEFAULT_OVERDUE_DAY = 10


@dataclass(frozen=True)
class ReminderMessage:
    tier: str
    title: str
    body: str

    @property
    def is_overdue(self):
        return self.tier == TIER_OVERDUE


@dataclass
class ReminderResult:
    """Outcome of one reminder dispatch"""
    reminder_type: str
    month: str
    tier: str = None
    total_recipients: int = 0
    success_count: int = 0
    failure_count: int = 0

    def to_dict(self):
        return asdict(self)


def tamil_month(month_number):
    """Tamil name of a calendar month (1-12)"""
    return TAMIL_MONTHS[month_number - 1]


def _ordinal(n):
    suffix = 'th' if 10 <= n % 100 <= 20 else {1: 'st', 2: 'nd', 3: 'rd'}.get(n % 10, 'th')
    return f"{n}{suffix}"


def select_tier(day, overdue_day=DEFAULT_OVERDUE_DAY):
    """Urgency tier for a day of the month"""
    if day > overdue_day:
        return TIER_OVERDUE
    if day == 1:
        return TIER_NEW_MONTH
    return TIER_GENERIC


def build_reminder(now, fee=100, overdue_day=DEFAULT_OVERDUE_DAY):
    """Bilingual reminder title and body for the tier that applies on ``now``"""
    tier = select_tier(now.day, overdue_day)
    month_ta = tamil_month(now.month)
    month_en = now.strftime('%B %Y')
    by_day = _ordinal(overdue_day)

    if tier == TIER_OVERDUE:
        title = '⚠️ சந்தா செலுத்த காலதாமதம் | Overdue Notice'
        body = (f"{month_ta} மாதத்திற்கான உங்கள் ₹{fee} சந்தாவை இன்னும் செலுத்தவில்லை. "
                f"தயவுசெய்து விரைந்து செலுத்தவும்.\n\n"
                f"Your monthly fee for {month_en} is overdue. "
                f"Please pay ₹{fee} immediately to maintain your active status.")
    elif tier == TIER_NEW_MONTH:
        title = '💰 புதிய மாத சந்தா | New Month Fee'
        body = (f"{month_ta} மாதம் தொடங்கிவிட்டது! இந்த மாதத்திற்கான ₹{fee} சந்தாவை "
                f"{overdue_day}-ம் தேதிக்குள் செலுத்தவும்.\n\n"
                f"A new month has begun! Please pay your monthly fee of ₹{fee} "
                f"for {month_en} by the {by_day}.")
    else:
        title = '🔔 சந்தா நினைவூட்டல் | Fee Reminder'
        body = (f"{month_ta} மாதத்திற்கான உங்கள் ₹{fee} சந்தாவை "
                f"{overdue_day}-ம் தேதிக்குள் செலுத்த நினைவூட்டுகிறோம்.\n\n"
                f"Reminder to pay your monthly fee of ₹{fee} for {month_en} by the {by_day}.")

    return ReminderMessage(tier=tier, title=title, body=body)


def find_unpaid_members(month):
    """Members who have not paid for ``month`` and can receive a push"""
    return [member for member in find_lapsed_members(month) if member.fcm_token]


def send_fee_reminders(reminder_type, now=None, source='scheduler'):
    """Push a fee reminder to every unpaid member and log the outcome"""
    now = now or local_now()
    month = current_month(now)
    result = ReminderResult(reminder_type=reminder_type, month=month)

    unpaid_members = find_unpaid_members(month)
    if not unpaid_members:
        logger.info('No unpaid members to notify')
        return result

    message = build_reminder(
        now,
        fee=current_app.config['MONTHLY_FEE'],
        overdue_day=current_app.config['OVERDUE_DAY'],
    )
    tokens = [member.fcm_token for member in unpaid_members]
    result.tier = message.tier
    result.total_recipients = len(tokens)

    logger.info(f"Found {len(tokens)} unpaid members for {month}, sending {message.tier} reminder")

    try:
        sent = get_push_service().send_multicast(
            tokens,
            message.title,
            message.body,
            data={
                'type': 'FEE_REMINDER',
                'month': month,
                'reminderType': reminder_type,
                'isOverdue': str(message.is_overdue).lower(),
            },
            android=messaging.AndroidConfig(
                priority='high',
                notification=messaging.AndroidNotification(channel_id='fee_reminders', priority='high'),
            ),
        )
        result.success_count = sent.success_count
        result.failure_count = sent.failure_count
    except Exception as e:
        # Nothing was sent, so every recipient counts as a failure
        result.failure_count = len(tokens)
        logger.error(f"Error sending notifications: {str(e)}")

    logger.info(f"Sent {result.success_count} reminders, {result.failure_count} failed")

    # Log to the database for admin visibility
    db.session.add(NotificationLog(
        type='FEE_REMINDER',
        reminder_type=reminder_type,
        month=month,
        is_overdue=message.is_overdue,
        total_recipients=result.total_recipients,
        success_count=result.success_count,
        failure_count=result.failure_count,
        source=source,
        sent_at=datetime.utcnow(),
    ))
    db.session.commit()

    return result
