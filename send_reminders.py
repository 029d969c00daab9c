#!/usr/bin/env python3
"""
One-shot fee reminder run for external cron runners (e.g. a CI schedule)

Usage: python send_reminders.py [--type AUTOMATED] [--source ci]
"""
import argparse
import logging
import os
import sys
from app import create_app
from membership import local_now
from reminders import send_fee_reminders, select_tier, REMINDER_TYPES

logger = logging.getLogger('send_reminders')


def main(argv=None, app=None):
    parser = argparse.ArgumentParser(description='Send fee reminders to unpaid members')
    parser.add_argument('--type', dest='reminder_type', default='AUTOMATED', choices=REMINDER_TYPES)
    parser.add_argument('--source', default='external_cron')
    args = parser.parse_args(argv)

    if app is None:
        app = create_app('production' if os.environ.get('FLASK_ENV') == 'production' else 'development')

    with app.app_context():
        now = local_now()
        logger.info('Starting automated fee reminder process...')
        logger.info(f"Date: {now:%Y-%m-%d}, Day: {now.day}, Tier: {select_tier(now.day, app.config['OVERDUE_DAY'])}")

        try:
            result = send_fee_reminders(args.reminder_type, now=now, source=args.source)
        except Exception as e:
            logger.error(f"CRITICAL ERROR in reminder process: {str(e)}")
            return 1

    logger.info(f"Reminder process completed: {result.success_count} sent, {result.failure_count} failed")
    return 0


if __name__ == '__main__':
    sys.exit(main())
