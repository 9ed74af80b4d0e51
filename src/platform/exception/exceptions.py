class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    default_code: str = 'INTERNAL_ERROR'

    def __init__(self, message: str, status_code: int = 500, code: str | None = None) -> None:
        self.message = message
        self.status_code = status_code
        self.code = code or self.default_code
        super().__init__(message)


class DomainError(CustomBaseError):
    default_code = 'FIELD_INCORRECT'

    def __init__(self, message: str, status_code: int = 400, code: str | None = None) -> None:
        super().__init__(message, status_code, code)


class NotFoundError(CustomBaseError):
    default_code = 'NOT_FOUND'

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message, 404, code)


class ConflictError(CustomBaseError):
    default_code = 'CONFLICT'

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message, 409, code)


class ServiceUnavailableError(CustomBaseError):
    """Infrastructure is temporarily unreachable; the caller may retry later."""

    default_code = 'SERVICE_UNAVAILABLE'

    def __init__(
        self,
        message: str = 'Service is currently unavailable. Please try again later.',
        code: str | None = None,
    ) -> None:
        super().__init__(message, 503, code)
