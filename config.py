"""
Configuration for the Membership Fee Management backend
Values come from the environment (optionally a local .env file)
"""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(name, default='false'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'y')


def _database_url():
    database_url = os.environ.get('DATABASE_URL', 'sqlite:///membership.db')
    # Fix postgres:// to postgresql:// for SQLAlchemy
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)
    return database_url


class Config:
    """Base configuration shared by every mode"""
    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-me-in-production')
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Organization calendar and fee policy
    TIMEZONE = os.environ.get('TIMEZONE', 'Asia/Kolkata')
    MONTHLY_FEE = int(os.environ.get('MONTHLY_FEE', '100'))
    OVERDUE_DAY = int(os.environ.get('OVERDUE_DAY', '10'))

    # Background scheduler (off unless explicitly enabled)
    ENABLE_SCHEDULER = _env_flag('ENABLE_SCHEDULER')

    # Firebase Cloud Messaging credentials
    FIREBASE_SERVICE_ACCOUNT = os.environ.get('FIREBASE_SERVICE_ACCOUNT', '')
    GOOGLE_APPLICATION_CREDENTIALS = os.environ.get('GOOGLE_APPLICATION_CREDENTIALS', '')

    APP_URL = os.environ.get('APP_URL', 'https://example.org')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()


class DevelopmentConfig(Config):
    SQLALCHEMY_DATABASE_URI = 'sqlite:///membership.db'


class ProductionConfig(Config):
    pass


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    ENABLE_SCHEDULER = False
    SECRET_KEY = 'testing'


CONFIGS = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}


def get_config(config_mode='development'):
    """Return the configuration class for a mode name"""
    return CONFIGS.get(config_mode, DevelopmentConfig)


def configure_logging(level=None):
    """Configure root logging once for the process"""
    logging.basicConfig(
        level=level or Config.LOG_LEVEL,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
