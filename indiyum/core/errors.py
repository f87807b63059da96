"""
Error taxonomy shared by the services and the HTTP layer.

Every error carries a human message plus a stable ``reason`` string that
clients can branch on. The HTTP status lives on the class so the single
exception handler in ``main.py`` can map them.
"""


class AppError(Exception):
    status_code = 500
    default_reason = "internal_error"

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.message = message
        self.reason = reason or self.default_reason

    def to_dict(self) -> dict:
        return {"error": self.message, "reason": self.reason}


class ValidationError(AppError):
    status_code = 400
    default_reason = "invalid_request"


class AuthenticationError(AppError):
    status_code = 401
    default_reason = "unauthorized"


class NotFoundError(AppError):
    status_code = 404
    default_reason = "not_found"


class ConfigurationError(AppError):
    status_code = 500
    default_reason = "gateway_not_configured"


class UpstreamError(AppError):
    status_code = 500
    default_reason = "gateway_error"

    def __init__(self, message: str, reason: str | None = None, detail: str | None = None):
        super().__init__(message, reason)
        self.detail = detail

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.detail:
            data["detail"] = self.detail
        return data


class PersistenceWarning(AppError):
    """Store read/write failure. Logged by the store, never sent to clients."""
    default_reason = "persistence_failed"
