from __future__ import annotations


class AppError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, details: dict | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found", details: dict | None = None) -> None:
        super().__init__(code="not_found", message=message, status_code=404, details=details)


class ValidationAppError(AppError):
    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        super().__init__(code="validation_error", message=message, status_code=422, details=details)


class NoActiveRouteError(AppError):
    def __init__(self, message: str = "No route is currently chosen", details: dict | None = None) -> None:
        super().__init__(code="no_active_route", message=message, status_code=409, details=details)


class TransportError(AppError):
    def __init__(self, message: str = "Backend request failed", details: dict | None = None) -> None:
        super().__init__(code="transport_error", message=message, status_code=502, details=details)


class PersistenceError(AppError):
    def __init__(self, message: str = "Backend did not assign an identifier", details: dict | None = None) -> None:
        super().__init__(code="persistence_error", message=message, status_code=502, details=details)


class StorageUnavailableError(AppError):
    def __init__(self, message: str = "Local storage is unavailable", details: dict | None = None) -> None:
        super().__init__(code="storage_unavailable", message=message, status_code=503, details=details)
