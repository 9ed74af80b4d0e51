"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.platform.logging.loguru_io_config import build_component_logger
from src.platform.message_queue.rabbitmq_client import RabbitMqClient
from src.service.event_booking.app.command.expire_registration_use_case import (
    ExpireRegistrationUseCase,
)
from src.service.event_booking.app.service.attendee_notifier import AttendeeNotifier
from src.service.event_booking.driven_adapter.message_queue.expiration_scheduler_impl import (
    ExpirationSchedulerImpl,
)
from src.service.event_booking.driven_adapter.notification.log_notification_sender import (
    LogNotificationSender,
)
from src.service.event_booking.driven_adapter.notification.smtp_notification_sender import (
    SmtpNotificationSender,
)
from src.service.event_booking.driven_adapter.repo.event_repo_impl import EventRepoImpl
from src.service.event_booking.driven_adapter.repo.in_memory_store_impl import (
    InMemoryBookingState,
    InMemoryEventRepo,
    InMemoryRegistrationRepo,
)
from src.service.event_booking.driven_adapter.repo.registration_repo_impl import (
    RegistrationRepoImpl,
)
from src.service.event_booking.driving_adapter.mq_consumer.expiration_mq_consumer import (
    ExpirationMqConsumer,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Loggers handed to collaborators (no module-level logger in the booking core)
    booking_logger = providers.Singleton(build_component_logger, component='booking')
    worker_logger = providers.Singleton(build_component_logger, component='expiration_worker')
    notification_logger = providers.Singleton(build_component_logger, component='notification')

    # Infrastructure
    database = providers.Singleton(Database)
    rabbitmq_client = providers.Singleton(
        RabbitMqClient,
        url=config_service.provided.RABBITMQ_URL.get_secret_value.call(),
        exchange_name=config_service.provided.RABBITMQ_EXCHANGE,
        queue_name=config_service.provided.RABBITMQ_QUEUE,
        routing_key=config_service.provided.RABBITMQ_ROUTING_KEY,
        prefetch_count=config_service.provided.RABBITMQ_PREFETCH_COUNT,
    )

    # Stores: STORAGE_BACKEND=sql (default) or memory
    in_memory_state = providers.Singleton(InMemoryBookingState)
    event_repo = providers.Selector(
        config_service.provided.STORAGE_BACKEND,
        sql=providers.Singleton(EventRepoImpl, session_factory=database.provided.session),
        memory=providers.Singleton(InMemoryEventRepo, state=in_memory_state),
    )
    registration_repo = providers.Selector(
        config_service.provided.STORAGE_BACKEND,
        sql=providers.Singleton(RegistrationRepoImpl, session_factory=database.provided.session),
        memory=providers.Singleton(InMemoryRegistrationRepo, state=in_memory_state),
    )

    # Outbound ports
    expiration_scheduler = providers.Singleton(
        ExpirationSchedulerImpl, rabbitmq_client=rabbitmq_client
    )
    notification_sender = providers.Selector(
        config_service.provided.NOTIFICATION_BACKEND,
        log=providers.Singleton(LogNotificationSender, logger=notification_logger),
        smtp=providers.Singleton(
            SmtpNotificationSender,
            host=config_service.provided.SMTP_HOST,
            port=config_service.provided.SMTP_PORT,
            username=config_service.provided.SMTP_USERNAME,
            password=config_service.provided.SMTP_PASSWORD.get_secret_value.call(),
            sender=config_service.provided.SMTP_SENDER,
            use_tls=config_service.provided.SMTP_USE_TLS,
            timeout=config_service.provided.SMTP_TIMEOUT,
            logger=notification_logger,
        ),
    )
    attendee_notifier = providers.Singleton(
        AttendeeNotifier,
        notification_sender=notification_sender,
        event_repo=event_repo,
        logger=notification_logger,
    )

    # Expiration worker (not request-scoped, so built here instead of via depends())
    expire_registration_use_case = providers.Singleton(
        ExpireRegistrationUseCase,
        registration_repo=registration_repo,
        attendee_notifier=attendee_notifier,
        logger=worker_logger,
    )
    expiration_consumer = providers.Singleton(
        ExpirationMqConsumer,
        rabbitmq_client=rabbitmq_client,
        expire_registration_use_case=expire_registration_use_case,
        logger=worker_logger,
        max_concurrency=config_service.provided.EXPIRATION_WORKER_MAX_CONCURRENCY,
    )


container = Container()


def setup() -> None:
    container.config_service()


def cleanup() -> None:
    container.reset_singletons()
