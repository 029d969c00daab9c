"""
Membership Fee Management System
Main Flask application: payment intake, member overview and wiring
"""
from flask import Blueprint, request, jsonify
from database import create_app as create_database_app
from models import db, User, ROLE_MEMBER
from auth import init_auth, admin_required
from notifications import init_notifications
from membership import record_payment, current_month
from errors import MemberNotFound
from scheduler import start_scheduler
from config import configure_logging
import logging

logger = logging.getLogger(__name__)

main_bp = Blueprint('main', __name__)


def create_app(config_mode='development', push_service=None):
    """Create and configure Flask application"""
    app = create_database_app(config_mode)
    configure_logging(app.config['LOG_LEVEL'])

    init_auth(app)
    init_notifications(app, push_service)
    app.register_blueprint(main_bp)

    with app.app_context():
        db.create_all()

    start_scheduler(app)
    return app


@main_bp.route('/')
def index():
    return jsonify({'success': True, 'service': 'membership-fees'})


@main_bp.route('/payments', methods=['POST'])
@admin_required
def create_payment():
    """Record a payment event validated upstream"""
    payload = request.get_json(silent=True) or {}
    user_id = payload.get('userId')
    amount = payload.get('amount')
    status = payload.get('status')

    if user_id is None or amount is None or not status:
        return jsonify({'success': False, 'message': 'userId, amount and status are required'}), 400

    try:
        amount = float(amount)
    except (TypeError, ValueError):
        return jsonify({'success': False, 'message': 'amount must be numeric'}), 400

    try:
        payment = record_payment(user_id, amount, status)
    except MemberNotFound as e:
        return jsonify({'success': False, 'message': str(e)}), 404
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error recording payment for user {user_id}: {str(e)}")
        return jsonify({'success': False, 'message': f'Error recording payment: {str(e)}'}), 500

    member = db.session.get(User, user_id)
    return jsonify({
        'success': True,
        'paymentId': payment.id,
        'memberStatus': member.status,
        'lastPaymentMonth': member.last_payment_month,
    }), 201


@main_bp.route('/members', methods=['GET'])
@admin_required
def list_members():
    """Members with their status and whether they paid this month"""
    month = current_month()
    query = User.query.filter_by(role=ROLE_MEMBER)

    status = request.args.get('status')
    if status:
        query = query.filter_by(status=status)

    members = []
    for member in query.order_by(User.name).all():
        entry = member.to_dict()
        entry['paidThisMonth'] = member.has_paid_for(month)
        members.append(entry)

    return jsonify({'success': True, 'month': month, 'members': members})
