from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import NoResultFound
from starlette.exceptions import HTTPException

from school_api.core.errors import ServiceError
from school_api.core.responses import error_response


logger = logging.getLogger(__name__)


def _field_path(loc) -> str:
    parts = [str(part) for part in loc if part not in ('body', 'query', 'path')]
    return '.'.join(parts)


def _validation_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {'field': _field_path(err.get('loc', ())), 'message': err.get('msg', 'Invalid value')}
        for err in exc.errors()
    ]


async def service_error_handler(request: Request, exc: ServiceError):
    return error_response(exc.message, exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = _validation_errors(exc)
    first = errors[0] if errors else None
    if first is None:
        message = 'Validation Error'
    elif first['field']:
        message = f"{first['field']}: {first['message']}"
    else:
        message = first['message']
    return error_response(message, 400, errors)


async def not_found_handler(request: Request, exc: NoResultFound):
    return error_response('Item not found', 404)


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning('integrity_error path=%s error=%s', request.url.path, exc.orig)
    return error_response('Duplicate or conflicting record', 409)


async def http_exception_handler(request: Request, exc: HTTPException):
    return error_response(str(exc.detail), exc.status_code)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception('unhandled_error path=%s method=%s', request.url.path, request.method)
    return error_response(str(exc) or 'Internal Server Error', 500)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(NoResultFound, not_found_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
