"""
Authentication and Member Account Management
"""
from flask import Blueprint, request, jsonify
from flask_login import LoginManager, login_user, logout_user, login_required, current_user
from datetime import datetime
from functools import wraps
from models import db, User, ROLE_MEMBER, STATUS_ACTIVE
from errors import MemberAlreadyExists
import logging

logger = logging.getLogger(__name__)

# Create authentication blueprint
auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

# Initialize Flask-Login
login_manager = LoginManager()


@login_manager.user_loader
def load_user(user_id):
    """Load user by ID for Flask-Login"""
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'success': False, 'message': 'Authentication required'}), 401


def init_auth(app):
    """Initialize authentication system with Flask app"""
    login_manager.init_app(app)
    app.register_blueprint(auth_bp)


def admin_required(f):
    """Decorator to restrict a route to authenticated admins"""
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({'success': False, 'message': 'Admin access required'}), 403
        return f(*args, **kwargs)
    return decorated_function


def create_member(email, password, name, phone=None, membership_id=None):
    """Create an active member account with no payments recorded"""
    email = (email or '').strip().lower()
    if User.query.filter_by(email=email).first():
        raise MemberAlreadyExists(email)

    user = User(
        email=email,
        name=name,
        phone=phone,
        membership_id=membership_id,
        role=ROLE_MEMBER,
        status=STATUS_ACTIVE,
        total_paid=0.0,
        join_date=datetime.utcnow(),
    )
    user.set_password(password)

    db.session.add(user)
    db.session.commit()

    logger.info(f"Successfully created new member: {user.id}")
    return user


# Authentication Routes
@auth_bp.route('/login', methods=['POST'])
def login():
    """Log in with email and password"""
    payload = request.get_json(silent=True) or {}
    email = (payload.get('email') or '').strip().lower()
    password = payload.get('password') or ''

    if not email or not password:
        return jsonify({'success': False, 'message': 'Email and password are required'}), 400

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        return jsonify({'success': False, 'message': 'Invalid email or password'}), 401

    login_user(user, remember=True)
    return jsonify({'success': True, 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@auth_bp.route('/members', methods=['POST'])
@admin_required
def create_member_route():
    """Create a new member account (admins only)"""
    payload = request.get_json(silent=True) or {}

    missing = [key for key in ('email', 'password', 'name') if not payload.get(key)]
    if missing:
        return jsonify({'success': False, 'message': f"Missing fields: {', '.join(missing)}"}), 400

    try:
        user = create_member(
            payload['email'],
            payload['password'],
            payload['name'],
            phone=payload.get('phone'),
            membership_id=payload.get('membershipId'),
        )
    except MemberAlreadyExists as e:
        return jsonify({'success': False, 'message': str(e)}), 409
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating member: {str(e)}")
        return jsonify({'success': False, 'message': str(e)}), 500

    return jsonify({'success': True, 'uid': user.id}), 201


@auth_bp.route('/me/push-token', methods=['PUT'])
@login_required
def register_push_token():
    """Store the caller's device token for push notifications"""
    payload = request.get_json(silent=True) or {}
    current_user.fcm_token = payload.get('fcmToken') or None
    db.session.commit()
    return jsonify({'success': True, 'hasPushToken': bool(current_user.fcm_token)})
