"""
Database configuration and utilities
"""
import os
from flask import Flask
from config import get_config
from models import db, User, Payment, NotificationLog, ROLE_ADMIN, ROLE_MEMBER, STATUS_ACTIVE, STATUS_INACTIVE


def create_app(config_mode='development'):
    """Create and configure Flask app"""
    app = Flask(__name__)
    app.config.from_object(get_config(config_mode))

    # Initialize database
    db.init_app(app)

    return app


def init_database(app):
    """Initialize database tables"""
    with app.app_context():
        db.create_all()
        print("Database initialized successfully!")


def check_database_status(app):
    """Print current database status"""
    with app.app_context():
        try:
            members = User.query.filter_by(role=ROLE_MEMBER)
            print("📊 Database Status:")
            print(f"   Admins: {User.query.filter_by(role=ROLE_ADMIN).count()}")
            print(f"   Members: {members.count()}")
            print(f"   Active: {members.filter_by(status=STATUS_ACTIVE).count()}")
            print(f"   Inactive: {members.filter_by(status=STATUS_INACTIVE).count()}")
            print(f"   Payments: {Payment.query.count()}")
            print(f"   Reminder dispatches: {NotificationLog.query.count()}")
            return True

        except Exception as e:
            print(f"❌ Database error: {e}")
            return False


def create_admin_user(app, email, name, password):
    """Create a new admin user"""
    with app.app_context():
        try:
            if User.query.filter_by(email=email).first():
                print(f"❌ User with email {email} already exists")
                return False

            user = User(email=email, name=name, role=ROLE_ADMIN, status=STATUS_ACTIVE)
            user.set_password(password)

            db.session.add(user)
            db.session.commit()

            print(f"✅ Created admin user: {user.name} ({user.email})")
            return True

        except Exception as e:
            print(f"❌ Failed to create user: {e}")
            db.session.rollback()
            return False


if __name__ == '__main__':
    import sys

    mode = 'production' if os.environ.get('FLASK_ENV') == 'production' else 'development'

    if len(sys.argv) > 1:
        command = sys.argv[1]

        if command == 'init':
            init_database(create_app(mode))

        elif command == 'status':
            check_database_status(create_app(mode))

        elif command == 'create-admin':
            if len(sys.argv) != 5:
                print("Usage: python database.py create-admin <email> <name> <password>")
                sys.exit(1)

            email, name, password = sys.argv[2:5]
            create_admin_user(create_app(mode), email, name, password)

        else:
            print("Available commands: init, status, create-admin")

    else:
        print("Usage: python database.py <command>")
        print("Commands:")
        print("  init          - Initialize database")
        print("  status        - Check database status")
        print("  create-admin  - Create admin user")
