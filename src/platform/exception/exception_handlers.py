from typing import Any, Callable, Coroutine

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.responses import Response

from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger

# Type alias for exception handlers (compatible with Starlette's expected signature)
ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]

UNAVAILABLE_DESC = 'Service is currently unavailable. Please try again later.'
RETRY_AFTER_SECONDS = 1


def error_envelope(*, code: str, desc: Any) -> dict[str, Any]:
    return {'status': 'error', 'error': {'code': code, 'desc': desc}}


async def custom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, CustomBaseError) else CustomBaseError(str(exc))
    headers = None
    if error.status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        headers = {'Retry-After': str(RETRY_AFTER_SECONDS)}
    return JSONResponse(
        status_code=error.status_code,
        content=error_envelope(code=error.code, desc=error.message),
        headers=headers,
    )


async def value_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope(code='FIELD_INCORRECT', desc=str(exc)),
    )


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, RequestValidationError) else RequestValidationError([])
    desc = '; '.join(
        f'{".".join(str(part) for part in err.get("loc", ()) if part != "body")}: {err.get("msg")}'
        for err in error.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope(code='FIELD_BADFORMAT', desc=desc),
    )


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not getattr(exc, '_has_logged', False):
        Logger.base.opt(exception=exc).error(f'💥 [HTTP] Unhandled {type(exc).__name__}')
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope(code='SERVICE_UNAVAILABLE', desc=UNAVAILABLE_DESC),
    )


# Exception handler mapping
EXCEPTION_HANDLERS: dict[type[Exception], ExceptionHandler] = {
    CustomBaseError: custom_error_handler,
    ValueError: value_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: general_500_exception_handler,  # Catch-all for unhandled exceptions
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
