from contextvars import ContextVar
from datetime import datetime, timezone
from enum import StrEnum
import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger as loguru_logger


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.constant.path import LOG_DIR
from src.platform.logging.service_context import get_service_context


# Constants and shared variables for LoguruIO
SENSITIVE_KEYWORDS = {
    'password',
    'smtp_password',
    'rabbitmq_url',
}
DEPTH_LINE = '│ '
MAX_CONTENT_LENGTH = 1000

chain_start_time_var: ContextVar[float] = ContextVar('first_time_var', default=0)
call_depth_var: ContextVar[int] = ContextVar('call_depth_var', default=0)


class ExtraField(StrEnum):
    SERVICE_CONTEXT = 'service_context'
    CHAIN_START_TIME = 'chain_start_time'
    CALL_TARGET = 'call_target'
    COMPONENT = 'component'
    BOOKING_REF = 'booking_ref'


class InterceptHandler(logging.Handler):
    """Route stdlib logging (uvicorn, granian, aio-pika, sqlalchemy) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        message = record.getMessage()

        # Block asyncio selector and aiormq frame chatter
        if record.levelno <= logging.DEBUG:
            if 'Using selector:' in message:
                return
            if record.name.startswith(('aiormq', 'aio_pika')):
                return

        try:
            level: str | int = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        custom_logger.opt(depth=depth, exception=record.exc_info).log(level, message)


# Log format for LoguruIO decorated functions
io_log_format = ' | '.join(
    (
        f'<c>{{extra[{ExtraField.SERVICE_CONTEXT}]}}</>',
        '<lvl>{level:<8}</>',
        f'<c>{{file}}::{{function}}:{{line}}</>=><y>{{extra[{ExtraField.CALL_TARGET}]}}</>',
        f'<m>{{extra[{ExtraField.BOOKING_REF}]}}</>',
        '{message}',
        '<lk>{elapsed}</>',
        f'<lk>{{extra[{ExtraField.CHAIN_START_TIME}]:<18}}</>',
    )
)


# Bound base logger; sinks are attached by setup_logging()
loguru_logger.remove()
custom_logger = loguru_logger.bind(
    **{
        ExtraField.SERVICE_CONTEXT: get_service_context(),
        ExtraField.CHAIN_START_TIME: '',
        ExtraField.CALL_TARGET: '',
        ExtraField.COMPONENT: '',
        ExtraField.BOOKING_REF: '',
    }
)


def setup_logging(*, debug: bool, log_dir: str | Path | None = None) -> None:
    """
    Attach stdout (and, in debug mode, a rotating file) sink and intercept stdlib logging.

    Called once by each process entry point (API lifespan, standalone consumer, test session).
    """
    loguru_logger.remove()
    min_log_level = 'DEBUG' if debug else 'INFO'

    custom_logger.add(sys.stdout, format=io_log_format, level=min_log_level, enqueue=True)

    # Production uses stdout only
    if debug:
        target_dir = Path(log_dir or os.environ.get('TEST_LOG_DIR') or LOG_DIR)
        target_dir.mkdir(parents=True, exist_ok=True)
        prefix = 'test_' if os.environ.get('TEST_LOG_DIR') else ''
        log_filename = f'{prefix}{datetime.now(timezone.utc).strftime("%Y-%m-%d_%H")}.log'
        custom_logger.add(
            str(target_dir / log_filename),
            format=io_log_format,
            rotation='1 hour',
            retention='7 days',
            compression='gz',
            enqueue=True,
            level=min_log_level,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)


def build_component_logger(*, component: str) -> 'LoguruLogger':
    """Logger handed to a collaborator through DI instead of being imported globally."""
    return custom_logger.bind(**{ExtraField.COMPONENT: component})
