"""
Push Notification System
Firebase Cloud Messaging delivery for fee reminders, payment notices and manual triggers
"""

from flask import Blueprint, request, jsonify, current_app
from flask_login import current_user
from firebase_admin import credentials, messaging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List
from models import db, User, NotificationLog, NotificationTrigger, ROLE_ADMIN
from auth import admin_required
from errors import PushNotConfigured
import firebase_admin
import json
import logging

notifications_bp = Blueprint('notifications', __name__, url_prefix='/notifications')

logger = logging.getLogger(__name__)

# FCM accepts at most 500 tokens per multicast request
MULTICAST_LIMIT = 500

CLICK_ACTION = 'FLUTTER_NOTIFICATION_CLICK'


@dataclass
class MulticastResult:
    """Aggregated outcome of one or more multicast requests"""
    success_count: int = 0
    failure_count: int = 0
    failed_tokens: List[str] = field(default_factory=list)


def _chunks(items, size):
    for start in range(0, len(items), size):
        yield items[start:start + size]


class PushService:
    """Service class for sending push notifications through FCM"""

    def __init__(self, client=None, service_account=None, credentials_path=None):
        self._client = client
        self.service_account = service_account
        self.credentials_path = credentials_path

    @classmethod
    def from_config(cls, config):
        return cls(
            service_account=config.get('FIREBASE_SERVICE_ACCOUNT') or None,
            credentials_path=config.get('GOOGLE_APPLICATION_CREDENTIALS') or None,
        )

    def _credential(self):
        if self.service_account:
            return credentials.Certificate(json.loads(self.service_account))
        if self.credentials_path:
            return credentials.Certificate(self.credentials_path)
        return credentials.ApplicationDefault()

    @property
    def client(self):
        """The messaging client, initializing the default Firebase app on first use"""
        if self._client is None:
            try:
                firebase_admin.get_app()
            except ValueError:
                firebase_admin.initialize_app(self._credential())
                logger.info("Firebase app initialized")
            self._client = messaging
        return self._client

    def send_multicast(self, tokens, title, body, data=None, android=None):
        """Send one notification to many devices, 500 tokens per request"""
        result = MulticastResult()
        for batch in _chunks(list(tokens), MULTICAST_LIMIT):
            message = messaging.MulticastMessage(
                tokens=batch,
                notification=messaging.Notification(title=title, body=body),
                data=_stringify(data),
                android=android,
            )
            try:
                response = self.client.send_each_for_multicast(message)
            except Exception as e:
                # Only the tokens of the rejected batch count as failed
                result.failure_count += len(batch)
                result.failed_tokens.extend(batch)
                logger.error(f"Multicast batch of {len(batch)} tokens failed: {str(e)}")
                continue
            result.success_count += response.success_count
            result.failure_count += response.failure_count
            for token, send_response in zip(batch, response.responses):
                if not send_response.success:
                    result.failed_tokens.append(token)
                    logger.warning(f"Push to token {token[:12]}... failed: {send_response.exception}")
        return result

    def send(self, token, title, body, data=None, android=None, webpush=None):
        """Send a notification to a single device and return the message id"""
        message = messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            data=_stringify(data),
            android=android,
            webpush=webpush,
        )
        return self.client.send(message)


def _stringify(data):
    # FCM data payloads only carry string values
    if not data:
        return None
    return {key: str(value) for key, value in data.items()}


def get_push_service():
    """Return the push service attached to the current app"""
    service = current_app.extensions.get('push_service')
    if service is None:
        raise PushNotConfigured("No push service attached to the application")
    return service


def init_notifications(app, push_service=None):
    """Attach a push service and register the notifications blueprint"""
    app.extensions['push_service'] = push_service or PushService.from_config(app.config)
    app.register_blueprint(notifications_bp)


class NotificationTemplates:
    """Titles and bodies for the non-reminder notifications"""

    @staticmethod
    def payment_received(member_name, amount):
        """Admin notice for a new payment"""
        title = '💵 New Payment Received'
        body = f"{member_name or 'A member'} paid ₹{_format_amount(amount)} for membership fee."
        return title, body

    @staticmethod
    def triggered(trigger_type, now):
        """Manual notification sent through a trigger"""
        title = '🔔 Important Notification'
        body = 'You have a new message from the membership office.'
        if trigger_type == 'MANUAL_REMINDER':
            month_label = now.strftime('%B %Y')
            body = (f"This is a reminder to pay your monthly fee for {month_label}. "
                    f"Please visit the dashboard.")
        return title, body


def _format_amount(amount):
    amount = float(amount)
    return f"{amount:.0f}" if amount.is_integer() else f"{amount:.2f}"


class NotificationEvents:
    """Event handlers for automatic notifications"""

    @staticmethod
    def on_payment_received(user_id, amount):
        """Notify every admin with a push token about a member's payment"""
        try:
            user = db.session.get(User, user_id)
            admin_tokens = [
                admin.fcm_token
                for admin in User.query.filter_by(role=ROLE_ADMIN).all()
                if admin.fcm_token
            ]

            if not admin_tokens:
                logger.info("No admin tokens to notify")
                return None

            title, body = NotificationTemplates.payment_received(user.name if user else None, amount)
            result = get_push_service().send_multicast(
                admin_tokens, title, body,
                data={'type': 'PAYMENT_RECEIVED', 'userId': user_id, 'amount': amount},
            )

            logger.info(f"Notified {len(admin_tokens)} admins about payment from {user_id}")
            return result

        except Exception as e:
            logger.error(f"Error notifying admins: {str(e)}")
            return None

    @staticmethod
    def on_notification_trigger(trigger, now=None):
        """Deliver a manual notification trigger to its single device"""
        from membership import local_now

        trigger.processed_at = datetime.utcnow()

        if not trigger.fcm_token:
            trigger.error = 'missing fcm token'
            db.session.commit()
            logger.error(f"No FCM token for notification trigger {trigger.id}")
            return None

        try:
            title, body = NotificationTemplates.triggered(trigger.type, now or local_now())
            data = {'click_action': CLICK_ACTION, 'type': trigger.type}
            data.update(trigger.get_extra_data())

            message_id = get_push_service().send(
                trigger.fcm_token, title, body,
                data=data,
                android=messaging.AndroidConfig(
                    notification=messaging.AndroidNotification(click_action=CLICK_ACTION),
                ),
                webpush=messaging.WebpushConfig(
                    fcm_options=messaging.WebpushFCMOptions(link=current_app.config['APP_URL']),
                ),
            )
            db.session.commit()
            logger.info(f"Notification sent to user {trigger.user_id} via trigger {trigger.id}")
            return message_id

        except Exception as e:
            trigger.error = str(e)
            db.session.commit()
            logger.error(f"Error sending triggered notification: {str(e)}")
            return None


# Notification routes
@notifications_bp.route('/send-fee-reminders', methods=['POST'])
@admin_required
def send_fee_reminders_now():
    """Manually run the fee reminder dispatch"""
    from reminders import send_fee_reminders

    payload = request.get_json(silent=True) or {}
    reminder_type = payload.get('reminderType') or 'MANUAL'

    try:
        result = send_fee_reminders(reminder_type, source='manual')
    except Exception as e:
        logger.error(f"Error sending fee reminders: {str(e)}")
        return jsonify({'success': False, 'message': f'Error sending reminders: {str(e)}'}), 500

    return jsonify({
        'success': True,
        'message': 'Fee reminders sent successfully',
        'result': result.to_dict(),
    })


@notifications_bp.route('/triggers', methods=['POST'])
@admin_required
def create_trigger():
    """Queue and deliver a notification to one member"""
    payload = request.get_json(silent=True) or {}
    user_id = payload.get('userId')

    if not isinstance(payload.get('data') or {}, dict):
        return jsonify({'success': False, 'message': 'data must be an object'}), 400

    user = db.session.get(User, user_id) if user_id is not None else None
    if user_id is not None and user is None:
        return jsonify({'success': False, 'message': 'Member not found'}), 404

    trigger = NotificationTrigger(
        user_id=user_id,
        fcm_token=payload.get('fcmToken') or (user.fcm_token if user else None),
        type=payload.get('type') or 'GENERAL',
        created_at=datetime.utcnow(),
    )
    if payload.get('data'):
        trigger.set_extra_data(payload['data'])
    db.session.add(trigger)
    db.session.commit()

    message_id = NotificationEvents.on_notification_trigger(trigger)

    return jsonify({
        'success': message_id is not None,
        'triggerId': trigger.id,
        'messageId': message_id,
        'error': trigger.error,
    }), (200 if message_id is not None else 502)


@notifications_bp.route('/log', methods=['GET'])
@admin_required
def notification_log():
    """Most recent reminder dispatches"""
    limit = min(request.args.get('limit', 20, type=int), 100)
    entries = NotificationLog.query.order_by(NotificationLog.sent_at.desc()).limit(limit).all()
    return jsonify({
        'success': True,
        'requestedBy': current_user.id,
        'entries': [entry.to_dict() for entry in entries],
    })
