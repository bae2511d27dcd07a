import sys

import httpx
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import text

from school_api.config import settings
from school_api.db import SessionLocal, engine
from school_api.models import FeePayment, GradeScale, StudentFeeDetail
from school_api.scheduler import scheduler, start_scheduler, stop_scheduler


EXPECTED_SCHEDULER_JOBS = {
    'mark_overdue_fees',
    'flush_cache_metrics',
}

GREEN = '\033[32m'
RED = '\033[31m'
RESET = '\033[0m'


def run_check(name, fn):
    try:
        message = fn() or ''
        suffix = f' - {message}' if message else ''
        print(f'{GREEN}PASS{RESET} {name}{suffix}')
        return True
    except Exception as exc:
        print(f'{RED}FAIL{RESET} {name} - {exc}')
        return False


def check_db_connectivity_and_write():
    with engine.begin() as conn:
        conn.execute(text('SELECT 1'))
        conn.execute(text('CREATE TABLE IF NOT EXISTS _healthcheck_probe (id INTEGER PRIMARY KEY, note TEXT)'))
        conn.execute(text("INSERT INTO _healthcheck_probe (note) VALUES ('probe')"))
        conn.execute(text('DROP TABLE IF EXISTS _healthcheck_probe'))
    return 'connect + write ok'


def check_alembic_head():
    script = ScriptDirectory.from_config(Config('alembic.ini'))
    heads = set(script.get_heads())
    if not heads:
        raise RuntimeError('No alembic heads found in repository')

    with engine.connect() as conn:
        current = MigrationContext.configure(conn).get_current_revision()

    if current is None:
        raise RuntimeError('No migration version in DB (run alembic upgrade head)')
    if current not in heads:
        raise RuntimeError(f'DB revision {current} is not at head {sorted(heads)}')
    return f'current={current}'


def check_overdue_schedule():
    if not settings.enable_scheduler:
        return 'scheduler disabled (ENABLE_SCHEDULER=false)'
    start_scheduler()
    try:
        registered = {job.id for job in scheduler.get_jobs()}
        missing = sorted(EXPECTED_SCHEDULER_JOBS - registered)
        if missing:
            raise RuntimeError(f'Missing jobs: {missing}')
        return f'jobs={sorted(registered)} overdue_check={settings.overdue_check_time}'
    finally:
        stop_scheduler()


def check_core_tables_accessible():
    db = SessionLocal()
    try:
        bands = db.query(GradeScale).filter(GradeScale.is_active.is_(True)).count()
        db.query(StudentFeeDetail).limit(1).all()
        payments = db.query(FeePayment).count()
        return f'active_grade_bands={bands} payments={payments}'
    finally:
        db.close()


def check_api_health():
    url = f"{settings.app_base_url.rstrip('/')}/health"
    res = httpx.get(url, timeout=8)
    if res.status_code != 200:
        raise RuntimeError(f'HTTP {res.status_code} from {url}')
    payload = res.json()
    if not payload.get('success'):
        raise RuntimeError(f'Health endpoint responded not ok: {payload}')
    return f"env={payload['data'].get('env')}"


def main():
    checks = [
        ('Database connectivity and write access', check_db_connectivity_and_write),
        ('Alembic migration status at head', check_alembic_head),
        ('Overdue fee schedule registered', check_overdue_schedule),
        ('Exam and fee tables accessible', check_core_tables_accessible),
        ('API health endpoint reachable', check_api_health),
    ]

    all_ok = True
    for name, fn in checks:
        all_ok = run_check(name, fn) and all_ok

    sys.exit(0 if all_ok else 1)


if __name__ == '__main__':
    main()
