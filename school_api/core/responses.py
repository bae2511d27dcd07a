from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(message: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={'success': True, 'message': message, 'data': jsonable_encoder(data)},
    )


def error_response(message: str, status_code: int, errors: list[dict] | None = None) -> JSONResponse:
    content: dict[str, Any] = {'success': False, 'message': message}
    if errors is not None:
        content['errors'] = errors
    return JSONResponse(status_code=status_code, content=content)
