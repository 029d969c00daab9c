"""
Membership State Tracker
Keeps each member's active/inactive status in step with their last paid month
"""
from datetime import datetime
from zoneinfo import ZoneInfo
from flask import current_app
from models import db, User, Payment, ROLE_MEMBER, STATUS_ACTIVE, STATUS_INACTIVE, PAYMENT_SUCCESS
from notifications import NotificationEvents
from errors import MemberNotFound
import logging

logger = logging.getLogger(__name__)


def local_now():
    """Current time in the organization's time zone"""
    return datetime.now(ZoneInfo(current_app.config['TIMEZONE']))


def current_month(now=None):
    """Calendar month of ``now`` formatted as YYYY-MM"""
    return (now or local_now()).strftime('%Y-%m')


def on_payment_success(user_id, now=None):
    """Reactivate a member for the current month, whatever their prior status"""
    user = db.session.get(User, user_id)
    if user is None:
        raise MemberNotFound(user_id)

    month = current_month(now)
    user.status = STATUS_ACTIVE
    user.last_payment_month = month
    db.session.commit()

    logger.info(f"User {user_id} reactivated for {month}")
    return user


def record_payment(user_id, amount, status, now=None):
    """Store a payment event and apply its effect on membership status

    Only payments with status ``success`` change the member. Failed or
    pending events are kept for the record and otherwise ignored.
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise MemberNotFound(user_id)

    payment = Payment(user_id=user_id, amount=float(amount), status=status, created_at=datetime.utcnow())
    db.session.add(payment)

    if not payment.is_success:
        db.session.commit()
        logger.info(f"Payment {payment.id} from user {user_id} recorded with status {status}")
        return payment

    user.total_paid = (user.total_paid or 0.0) + payment.amount
    on_payment_success(user_id, now)

    # Notify admins about the payment
    NotificationEvents.on_payment_received(user_id, payment.amount)
    return payment


def find_lapsed_members(month):
    """Members whose last paid month is not ``month``"""
    members = User.query.filter_by(role=ROLE_MEMBER).all()
    return [member for member in members if not member.has_paid_for(month)]


def run_monthly_guard(now=None):
    """Deactivate every member who has not paid for the current month

    All status changes of one run are committed together; if the commit
    fails nothing is written.
    """
    month = current_month(now)
    deactivation_count = 0

    try:
        for member in find_lapsed_members(month):
            member.status = STATUS_INACTIVE
            deactivation_count += 1

        if deactivation_count > 0:
            db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Membership guard failed for {month}, no members changed: {str(e)}")
        raise

    logger.info(f"Auto-deactivated {deactivation_count} members for {month}")
    return deactivation_count
