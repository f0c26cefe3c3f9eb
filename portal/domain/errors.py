class PortalError(Exception):
    """Базовая доменная ошибка; в HTTP-статус переводится на границе (interfaces/http/errors.py)."""

    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(PortalError):
    default_message = "Unauthorized"


class Forbidden(PortalError):
    default_message = "Forbidden"


class NotFound(PortalError):
    default_message = "Not found"


class Conflict(PortalError):
    # по сложившейся конвенции API отдаётся как 400, а не 409
    default_message = "Already exists"


class ValidationFailed(PortalError):
    default_message = "Validation failed"

    def __init__(self, details: list[dict], message: str | None = None):
        super().__init__(message)
        self.details = details
