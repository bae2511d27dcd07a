from fastapi.testclient import TestClient

from school_api import scheduler as scheduler_module
from school_api.config import settings
from school_api.main import app


def test_health_envelope():
    client = TestClient(app)
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json() == {
        'success': True,
        'message': 'ok',
        'data': {'app': settings.app_name, 'env': settings.app_env},
    }


def test_marks_entry_is_not_shadowed_by_exam_id_route():
    client = TestClient(app)
    response = client.post('/api/exam/marks', json={})
    assert response.status_code == 400
    fields = {row['field'] for row in response.json()['errors']}
    assert {'exam_subject_id', 'marks'} <= fields


def test_parse_hhmm_falls_back_on_bad_input():
    assert scheduler_module._parse_hhmm('02:30') == (2, 30)
    assert scheduler_module._parse_hhmm('25:00') == (1, 0)
    assert scheduler_module._parse_hhmm('') == (1, 0)


def test_scheduler_stays_off_when_disabled(monkeypatch):
    monkeypatch.setattr(settings, 'enable_scheduler', False)
    scheduler_module.start_scheduler()
    assert not scheduler_module.scheduler.running
    assert scheduler_module.scheduler.get_job('mark_overdue_fees') is None


def test_overdue_job_runs_service_with_its_own_session(monkeypatch):
    calls = []

    class FakeSession:
        closed = False

        def close(self):
            self.closed = True

    session = FakeSession()
    monkeypatch.setattr(scheduler_module, 'SessionLocal', lambda: session)
    monkeypatch.setattr(
        scheduler_module,
        'mark_overdue_fees',
        lambda db: calls.append(db) or {'details_marked': 0},
    )

    assert scheduler_module.mark_overdue_fees_job() == {'details_marked': 0}
    assert calls == [session]
    assert session.closed
