"""
Database models for the Membership Fee Management System
"""
from datetime import datetime
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
import json

db = SQLAlchemy()

# Roles and membership states
ROLE_MEMBER = 'member'
ROLE_ADMIN = 'admin'

STATUS_ACTIVE = 'active'
STATUS_INACTIVE = 'inactive'

PAYMENT_SUCCESS = 'success'


class User(UserMixin, db.Model):
    """Accounts for members and admins"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    membership_id = db.Column(db.String(50), nullable=True)
    password_hash = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(20), nullable=False, default=ROLE_MEMBER)  # member or admin
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE)  # active or inactive
    last_payment_month = db.Column(db.String(7), nullable=True)  # YYYY-MM
    fcm_token = db.Column(db.String(255), nullable=True)
    total_paid = db.Column(db.Float, nullable=False, default=0.0)
    join_date = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    payments = db.relationship('Payment', backref='user', lazy=True)

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check if provided password matches hash"""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def has_paid_for(self, month):
        """True when the member's last recorded payment covers ``month``"""
        return self.last_payment_month == month

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'membershipId': self.membership_id,
            'role': self.role,
            'status': self.status,
            'lastPaymentMonth': self.last_payment_month,
            'totalPaid': self.total_paid,
            'hasPushToken': bool(self.fcm_token),
        }

    def __repr__(self):
        return f'<User {self.name} ({self.role}, {self.status})>'


class Payment(db.Model):
    """Payment events reported by the upstream payment provider"""
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    status = db.Column(db.String(20), nullable=False)  # success, failed, pending
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def is_success(self):
        return self.status == PAYMENT_SUCCESS

    def __repr__(self):
        return f'<Payment {self.amount} {self.status} by user {self.user_id}>'


class NotificationLog(db.Model):
    """One row per reminder dispatch, for admin visibility"""
    __tablename__ = 'notifications_log'

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(50), nullable=False)
    reminder_type = db.Column(db.String(50), nullable=True)
    month = db.Column(db.String(7), nullable=True)
    is_overdue = db.Column(db.Boolean, default=False)
    total_recipients = db.Column(db.Integer, nullable=False, default=0)
    success_count = db.Column(db.Integer, nullable=False, default=0)
    failure_count = db.Column(db.Integer, nullable=False, default=0)
    source = db.Column(db.String(50), nullable=True)
    sent_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'reminderType': self.reminder_type,
            'month': self.month,
            'isOverdue': self.is_overdue,
            'totalRecipients': self.total_recipients,
            'successCount': self.success_count,
            'failureCount': self.failure_count,
            'source': self.source,
            'sentAt': self.sent_at.isoformat() if self.sent_at else None,
        }

    def __repr__(self):
        return f'<NotificationLog {self.type} {self.success_count}/{self.total_recipients}>'


class NotificationTrigger(db.Model):
    """Manual notification requests aimed at a single member"""
    __tablename__ = 'notification_triggers'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    fcm_token = db.Column(db.String(255), nullable=True)
    type = db.Column(db.String(50), nullable=False, default='GENERAL')
    extra_data = db.Column(db.Text, nullable=True)  # JSON string
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    processed_at = db.Column(db.DateTime, nullable=True)
    error = db.Column(db.Text, nullable=True)

    def get_extra_data(self):
        """Get extra data as Python object"""
        return json.loads(self.extra_data) if self.extra_data else {}

    def set_extra_data(self, data_dict):
        self.extra_data = json.dumps(data_dict)

    def __repr__(self):
        return f'<NotificationTrigger {self.type} for user {self.user_id}>'
