from collections.abc import Awaitable
from functools import wraps
from inspect import iscoroutinefunction
from typing import TYPE_CHECKING, Any, Callable, ParamSpec, TypeVar, cast, overload


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io_config import (
    ExtraField,
    call_depth_var,
    custom_logger,
)
from src.platform.logging.loguru_io_utils import (
    build_call_target_func_path,
    extract_booking_ref,
    fetch_layer_depth,
    get_chain_start_time,
    mask_sensitive,
    normalize_args_kwargs,
    reset_call_depth,
    should_mask_keyword,
    truncate_content,
)

_F = TypeVar('_F', bound=Callable[..., Any])


class LoguruIO:
    """
    Traces a call's input, output and failure.

    Lines carry the call target and, for booking operations, the event and
    registration ids found in the call's keyword arguments. Domain errors
    (CustomBaseError) are logged without traceback: 4xx ones at warning,
    since EVENT_FULL or ALREADY_CANCELED are normal outcomes under contention,
    and 5xx ones at error. Anything else gets the full traceback.
    """

    depth = 2

    def __init__(
        self, custom_logger: 'LoguruLogger', *, reraise: bool = True, truncate_content: bool = False
    ) -> None:
        self._custom_logger = custom_logger
        self.reraise = reraise
        self.truncate_content = truncate_content
        self.call_target = ''

    def _bind(self, kwargs: dict[str, Any]) -> 'LoguruLogger':
        return self._custom_logger.bind(
            **{
                ExtraField.CALL_TARGET: self.call_target,
                ExtraField.CHAIN_START_TIME: get_chain_start_time(),
                ExtraField.BOOKING_REF: extract_booking_ref(kwargs),
            }
        )

    def log_args_kwargs_content(self, log: 'LoguruLogger', args: Any, kwargs: Any) -> None:
        if settings.DEBUG:
            log.opt(depth=self.depth).debug(
                f'{fetch_layer_depth()}args: {self.mask_sensitive(args)}, '
                f'kwargs: {self.mask_sensitive(kwargs)}'
            )

    def log_return_content(self, log: 'LoguruLogger', return_value: Any) -> None:
        if settings.DEBUG:
            log.opt(depth=self.depth).debug(
                f'{fetch_layer_depth()}return: {self.mask_sensitive(return_value)}'
            )

    def log_exception(self, log: 'LoguruLogger', e: Exception) -> None:
        # Logged once, at the innermost decorated frame
        if getattr(e, '_has_logged', False):
            return
        e._has_logged = True  # type: ignore[attr-defined]
        log = log.opt(depth=self.depth + 1)
        if not isinstance(e, CustomBaseError):
            log.exception(f'{type(e).__name__}: {e}')
        elif e.status_code < 500:
            log.warning(f'{e.code}: {e.message}')
        else:
            log.error(f'{type(e).__name__} [{e.code}]: {e.message}')

    def mask_sensitive(self, data: Any) -> Any:
        if isinstance(data, dict):
            processed_data: Any = {
                key: self.mask_sensitive(should_mask_keyword(key, value))
                for key, value in data.items()
            }
        elif isinstance(data, list | tuple):
            processed_data = type(data)(self.mask_sensitive(item) for item in data)
        else:
            processed_data = mask_sensitive(data)

        if self.truncate_content:
            return truncate_content(processed_data)
        return processed_data

    def _enter(self, func: Callable[..., Any], args: Any, kwargs: Any) -> tuple[Any, ...]:
        call_depth_var.set(call_depth_var.get() + 1)
        log = self._bind(kwargs)
        self.log_args_kwargs_content(log, args, kwargs)
        args, kwargs = normalize_args_kwargs(func, *args, **kwargs)
        return log, args, kwargs

    def __call__(self, func: _F) -> _F:
        self.call_target = build_call_target_func_path(func)

        if iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                log = self._custom_logger
                try:
                    log, args, kwargs = self._enter(func, args, kwargs)
                    return_value = await cast(Awaitable[Any], func(*args, **kwargs))
                    self.log_return_content(log, return_value)
                    return return_value
                except Exception as e:
                    self.log_exception(log, e)
                    if self.reraise:
                        raise
                    return None
                finally:
                    reset_call_depth()

            return cast(_F, async_wrapper)

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            log = self._custom_logger
            try:
                log, args, kwargs = self._enter(func, args, kwargs)
                return_value = func(*args, **kwargs)
                self.log_return_content(log, return_value)
                return return_value
            except Exception as e:
                self.log_exception(log, e)
                if self.reraise:
                    raise
                return None
            finally:
                reset_call_depth()

        return cast(_F, sync_wrapper)


_P = ParamSpec('_P')
_T = TypeVar('_T')


class Logger:
    base = custom_logger

    @overload
    @staticmethod
    def io(func: Callable[_P, _T]) -> Callable[_P, _T]: ...

    @overload
    @staticmethod
    def io(func: None = ..., *, reraise: bool = ..., truncate_content: bool = ...) -> LoguruIO: ...

    @staticmethod
    def io(
        func: Callable[_P, _T] | None = None, *, reraise: bool = True, truncate_content: bool = True
    ) -> Callable[_P, _T] | LoguruIO:
        decorator = LoguruIO(
            custom_logger=custom_logger, reraise=reraise, truncate_content=truncate_content
        )
        return decorator(func) if func else decorator
