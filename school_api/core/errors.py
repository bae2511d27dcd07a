from __future__ import annotations


class ServiceError(ValueError):
    status_code = 400

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


def require_found(row, label: str):
    if row is None:
        raise NotFoundError(f'{label} not found')
    return row
