from unittest import mock

import scheduler
import send_reminders
from models import NotificationLog


def test_jobs_are_registered_with_cron_triggers(app):
    sched = scheduler.build_scheduler(app)

    jobs = {job.id: job for job in sched.get_jobs()}
    assert set(jobs) == set(scheduler.JOBS)

    fields = {f.name: str(f) for f in jobs['monthly_membership_guard'].trigger.fields}
    assert (fields['day'], fields['hour'], fields['minute']) == ('10', '0', '0')

    fields = {f.name: str(f) for f in jobs['fee_reminders_evening'].trigger.fields}
    assert (fields['day'], fields['hour']) == ('*', '18')

    assert str(jobs['fee_reminders_first_day'].trigger.timezone) == 'Asia/Kolkata'


def test_scheduler_stays_off_when_disabled(app):
    assert scheduler.start_scheduler(app) is None


def test_reminder_job_runs_in_app_context(app, fcm, make_user):
    make_user(fcm_token='t1')

    scheduler.run_reminder_job(app, 'DAILY_MORNING')

    assert NotificationLog.query.one().reminder_type == 'DAILY_MORNING'


def test_guard_job_logs_failures_instead_of_raising(app):
    with mock.patch.object(scheduler, 'run_monthly_guard', side_effect=RuntimeError('boom')):
        scheduler.run_guard_job(app)


def test_send_reminders_script(app, fcm, make_user):
    make_user(fcm_token='t1')

    assert send_reminders.main(['--type', 'AUTOMATED', '--source', 'ci'], app=app) == 0
    assert NotificationLog.query.one().source == 'ci'


def test_send_reminders_script_exits_nonzero_on_error(app):
    with mock.patch.object(send_reminders, 'send_fee_reminders', side_effect=RuntimeError('db down')):
        assert send_reminders.main([], app=app) == 1
