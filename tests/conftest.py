"""
Shared fixtures: an in-memory app with a fake FCM client
"""
from datetime import datetime
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from app import create_app
from models import db, User, ROLE_ADMIN, ROLE_MEMBER, STATUS_ACTIVE
from notifications import PushService

IST = ZoneInfo('Asia/Kolkata')


def ist(year, month, day, hour=10):
    return datetime(year, month, day, hour, tzinfo=IST)


class FakeMessaging:
    """Stands in for firebase_admin.messaging in tests"""

    def __init__(self):
        self.multicasts = []
        self.messages = []
        self.failing_tokens = set()
        self.error = None
        self.failing_calls = set()
        self.calls = 0

    def send_each_for_multicast(self, message):
        self.calls += 1
        if self.error:
            raise self.error
        if self.calls in self.failing_calls:
            raise RuntimeError(f"multicast call {self.calls} rejected")
        self.multicasts.append(message)
        responses = [
            SimpleNamespace(
                success=token not in self.failing_tokens,
                exception=None if token not in self.failing_tokens else 'unregistered',
            )
            for token in message.tokens
        ]
        ok = sum(1 for r in responses if r.success)
        return SimpleNamespace(success_count=ok, failure_count=len(responses) - ok, responses=responses)

    def send(self, message):
        if self.error:
            raise self.error
        self.messages.append(message)
        return f'projects/test/messages/{len(self.messages)}'


@pytest.fixture
def fcm():
    return FakeMessaging()


@pytest.fixture
def app(fcm):
    app = create_app('testing', push_service=PushService(client=fcm))
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def _make_user(name=None, role=ROLE_MEMBER, status=STATUS_ACTIVE, last_payment_month=None,
                   fcm_token=None, password='secret123'):
        counter['n'] += 1
        user = User(
            name=name or f'Member {counter["n"]}',
            email=f'user{counter["n"]}@example.org',
            role=role,
            status=status,
            last_payment_month=last_payment_month,
            fcm_token=fcm_token,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(name='Admin', role=ROLE_ADMIN, fcm_token='admin-token')


def login(client, user, password='secret123'):
    return client.post('/auth/login', json={'email': user.email, 'password': password})


@pytest.fixture
def admin_client(client, admin):
    response = login(client, admin)
    assert response.status_code == 200
    return client
