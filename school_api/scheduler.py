import logging

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from school_api.config import settings
from school_api.db import SessionLocal
from school_api.metrics import flush_cache_metrics, run_timed_job
from school_api.services.student_fee_service import mark_overdue_fees


scheduler = BackgroundScheduler(timezone=settings.app_timezone)
logger = logging.getLogger(__name__)


def _with_db(task):
    db: Session = SessionLocal()
    try:
        return task(db)
    finally:
        db.close()


def _run_job(label: str, task):
    return run_timed_job(label, lambda: _with_db(task))


def mark_overdue_fees_job():
    return _run_job('mark_overdue_fees', lambda db: mark_overdue_fees(db))


def flush_metrics_job():
    flush_cache_metrics()


def _parse_hhmm(value: str, default_hour: int = 1, default_minute: int = 0) -> tuple[int, int]:
    try:
        hour_raw, minute_raw = (value or '').split(':', 1)
        hour = int(hour_raw)
        minute = int(minute_raw)
        if hour < 0 or hour > 23 or minute < 0 or minute > 59:
            raise ValueError
        return hour, minute
    except ValueError:
        logger.warning('invalid_schedule_time value=%s using=%02d:%02d', value, default_hour, default_minute)
        return default_hour, default_minute


def start_scheduler():
    if not settings.enable_scheduler:
        logger.info('scheduler_disabled')
        return
    hour, minute = _parse_hhmm(settings.overdue_check_time)
    scheduler.add_job(mark_overdue_fees_job, 'cron', hour=hour, minute=minute, id='mark_overdue_fees', replace_existing=True)
    scheduler.add_job(flush_metrics_job, 'interval', minutes=1, id='flush_cache_metrics', replace_existing=True)

    if not scheduler.running:
        scheduler.start()
        logger.info('scheduler_started overdue_check=%02d:%02d', hour, minute)


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
