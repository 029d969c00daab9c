"""
Background jobs for fee reminders and the monthly membership guard
"""
from apscheduler.schedulers.background import BackgroundScheduler
from reminders import send_fee_reminders
from membership import run_monthly_guard
import logging

logger = logging.getLogger(__name__)

# Prevents the scheduler from starting more than once per process
_scheduler = None

# job id -> (cron fields, reminder type or None for the guard)
JOBS = {
    'fee_reminders_morning': ({'hour': 9, 'minute': 0}, 'DAILY_MORNING'),
    'fee_reminders_evening': ({'hour': 18, 'minute': 0}, 'DAILY_EVENING'),
    'fee_reminders_first_day': ({'day': 1, 'hour': 10, 'minute': 0}, 'NEW_MONTH'),
    'fee_reminders_overdue': ({'day': 10, 'hour': 10, 'minute': 0}, 'OVERDUE'),
    'monthly_membership_guard': ({'day': 10, 'hour': 0, 'minute': 0}, None),
}


def run_reminder_job(app, reminder_type):
    """Job wrapper: send fee reminders inside the app context"""
    with app.app_context():
        try:
            result = send_fee_reminders(reminder_type)
            logger.info(f"Reminder job {reminder_type} finished: {result.success_count}/{result.total_recipients} sent")
        except Exception as e:
            logger.error(f"Reminder job {reminder_type} failed: {str(e)}")


def run_guard_job(app):
    """Job wrapper: run the monthly membership guard inside the app context"""
    with app.app_context():
        try:
            run_monthly_guard()
        except Exception as e:
            logger.error(f"Membership guard job failed: {str(e)}")


def build_scheduler(app):
    """Create a scheduler with every membership job registered"""
    scheduler = BackgroundScheduler(timezone=app.config['TIMEZONE'])

    for job_id, (cron, reminder_type) in JOBS.items():
        if reminder_type is None:
            func, args = run_guard_job, [app]
        else:
            func, args = run_reminder_job, [app, reminder_type]

        scheduler.add_job(
            func=func,
            args=args,
            trigger='cron',
            id=job_id,
            replace_existing=True,
            max_instances=1,      # Prevent overlapping runs
            coalesce=True,        # Merge missed runs if the server was down
            **cron,
        )

    return scheduler


def start_scheduler(app):
    """Start the background scheduler once, when enabled in config"""
    global _scheduler

    if not app.config.get('ENABLE_SCHEDULER', False):
        logger.info("Scheduler disabled via config (ENABLE_SCHEDULER=False)")
        return None

    if _scheduler is not None:
        logger.info("Scheduler already running, skipping initialization")
        return _scheduler

    try:
        _scheduler = build_scheduler(app)
        _scheduler.start()
        logger.info(f"Scheduler started with {len(JOBS)} jobs in {app.config['TIMEZONE']}")
    except Exception as e:
        logger.error(f"Scheduler failed to start: {str(e)} (continuing without scheduler)")
        _scheduler = None

    return _scheduler
