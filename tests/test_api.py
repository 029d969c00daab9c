from membership import current_month
from models import db, User, NotificationLog, NotificationTrigger, STATUS_ACTIVE, STATUS_INACTIVE
from tests.conftest import login


def test_login_rejects_bad_password(client, admin):
    response = client.post('/auth/login', json={'email': admin.email, 'password': 'nope'})
    assert response.status_code == 401


def test_admin_routes_require_login(client):
    response = client.post('/payments', json={'userId': 1, 'amount': 100, 'status': 'success'})
    assert response.status_code == 401


def test_admin_routes_reject_members(client, make_user):
    member = make_user()
    login(client, member)

    response = client.post('/notifications/send-fee-reminders', json={})
    assert response.status_code == 403


def test_create_member(admin_client):
    response = admin_client.post('/auth/members', json={
        'email': 'New@Example.org',
        'password': 'pw123456',
        'name': 'Arun',
        'phone': '9876543210',
        'membershipId': 'M-042',
    })

    assert response.status_code == 201
    user = db.session.get(User, response.get_json()['uid'])
    assert user.email == 'new@example.org'
    assert user.status == STATUS_ACTIVE
    assert user.total_paid == 0
    assert user.last_payment_month is None
    assert user.check_password('pw123456')


def test_create_member_twice_conflicts(admin_client):
    payload = {'email': 'dup@example.org', 'password': 'pw', 'name': 'Dup'}
    admin_client.post('/auth/members', json=payload)

    response = admin_client.post('/auth/members', json=payload)
    assert response.status_code == 409


def test_create_member_requires_fields(admin_client):
    response = admin_client.post('/auth/members', json={'email': 'x@example.org'})
    assert response.status_code == 400


def test_register_push_token(client, make_user):
    member = make_user()
    login(client, member)

    response = client.put('/auth/me/push-token', json={'fcmToken': 'device-token'})

    assert response.get_json()['hasPushToken'] is True
    assert db.session.get(User, member.id).fcm_token == 'device-token'


def test_payment_reactivates_member(admin_client, make_user):
    member = make_user(status=STATUS_INACTIVE, last_payment_month='2020-01')

    response = admin_client.post('/payments', json={'userId': member.id, 'amount': 100, 'status': 'success'})

    assert response.status_code == 201
    body = response.get_json()
    assert body['memberStatus'] == STATUS_ACTIVE
    assert body['lastPaymentMonth'] == current_month()


def test_payment_validation(admin_client, make_user):
    member = make_user()

    assert admin_client.post('/payments', json={'userId': member.id}).status_code == 400
    assert admin_client.post('/payments', json={'userId': member.id, 'amount': 'x', 'status': 'success'}).status_code == 400
    assert admin_client.post('/payments', json={'userId': 404, 'amount': 1, 'status': 'success'}).status_code == 404


def test_list_members(admin_client, make_user):
    make_user(name='Paid', last_payment_month=current_month())
    make_user(name='Unpaid', status=STATUS_INACTIVE)

    members = admin_client.get('/members').get_json()['members']
    assert [(m['name'], m['paidThisMonth']) for m in members] == [('Paid', True), ('Unpaid', False)]

    inactive = admin_client.get('/members?status=inactive').get_json()['members']
    assert [m['name'] for m in inactive] == ['Unpaid']


def test_manual_fee_reminders(admin_client, fcm, make_user):
    make_user(fcm_token='t1')

    response = admin_client.post('/notifications/send-fee-reminders', json={})

    body = response.get_json()
    assert body['success'] is True
    assert body['result']['reminder_type'] == 'MANUAL'
    assert body['result']['success_count'] == 1
    assert NotificationLog.query.one().source == 'manual'


def test_notification_log(admin_client, fcm, make_user):
    make_user(fcm_token='t1')
    admin_client.post('/notifications/send-fee-reminders', json={'reminderType': 'OVERDUE'})

    entries = admin_client.get('/notifications/log').get_json()['entries']
    assert [e['reminderType'] for e in entries] == ['OVERDUE']


def test_trigger_endpoint_uses_member_token(admin_client, fcm, make_user):
    member = make_user(fcm_token='device-9')

    response = admin_client.post('/notifications/triggers', json={'userId': member.id, 'type': 'MANUAL_REMINDER'})

    assert response.status_code == 200
    assert fcm.messages[0].token == 'device-9'


def test_trigger_endpoint_without_token(admin_client, make_user):
    member = make_user(fcm_token=None)

    response = admin_client.post('/notifications/triggers', json={'userId': member.id})

    assert response.status_code == 502
    assert response.get_json()['error'] == 'missing fcm token'


def test_trigger_endpoint_unknown_member(admin_client):
    response = admin_client.post('/notifications/triggers', json={'userId': 12345})
    assert response.status_code == 404


def test_trigger_endpoint_rejects_non_object_data(admin_client, fcm, make_user):
    member = make_user(fcm_token='device-9')

    response = admin_client.post('/notifications/triggers', json={'userId': member.id, 'data': ['x']})

    assert response.status_code == 400
    assert fcm.messages == []
    assert NotificationTrigger.query.count() == 0
