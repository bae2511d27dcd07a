import unittest

from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import NoResultFound

from school_api.core.error_handlers import register_exception_handlers
from school_api.core.errors import ConflictError, NotFoundError, ServiceError
from school_api.core.responses import success_response


class _Payload(BaseModel):
    name: str = Field(min_length=1)
    amount: float = Field(gt=0)


def _build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get('/service-error')
    def service_error():
        raise ServiceError('Marks exceed maximum')

    @app.get('/not-found')
    def not_found():
        raise NotFoundError('Exam not found')

    @app.get('/conflict')
    def conflict():
        raise ConflictError('Exam already exists')

    @app.get('/no-result')
    def no_result():
        raise NoResultFound()

    @app.get('/integrity')
    def integrity():
        raise IntegrityError('INSERT INTO exams', {}, Exception('UNIQUE constraint failed'))

    @app.get('/boom')
    def boom():
        raise RuntimeError('database went away')

    @app.post('/validate')
    def validate(payload: _Payload):
        return success_response('ok', payload.model_dump())

    return app


class ErrorEnvelopeTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(_build_app(), raise_server_exceptions=False)

    @classmethod
    def tearDownClass(cls):
        cls.client.close()

    def test_service_errors_map_to_their_status(self):
        cases = [
            ('/service-error', 400, 'Marks exceed maximum'),
            ('/not-found', 404, 'Exam not found'),
            ('/conflict', 409, 'Exam already exists'),
        ]
        for path, status, message in cases:
            with self.subTest(path=path):
                response = self.client.get(path)
                self.assertEqual(response.status_code, status)
                self.assertEqual(response.json(), {'success': False, 'message': message})

    def test_orm_errors(self):
        response = self.client.get('/no-result')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['message'], 'Item not found')

        response = self.client.get('/integrity')
        self.assertEqual(response.status_code, 409)
        self.assertFalse(response.json()['success'])

    def test_validation_errors_list_fields(self):
        response = self.client.post('/validate', json={'name': '', 'amount': -5})
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body['success'])
        self.assertEqual({row['field'] for row in body['errors']}, {'name', 'amount'})
        self.assertTrue(body['message'].startswith('name: '))

    def test_unknown_route_uses_envelope(self):
        response = self.client.get('/does-not-exist')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {'success': False, 'message': 'Not Found'})

    def test_unhandled_error_is_500(self):
        response = self.client.get('/boom')
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'success': False, 'message': 'database went away'})

    def test_success_envelope(self):
        response = self.client.post('/validate', json={'name': 'Term 1', 'amount': 10})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True, 'message': 'ok', 'data': {'name': 'Term 1', 'amount': 10.0}})


if __name__ == '__main__':
    unittest.main()
