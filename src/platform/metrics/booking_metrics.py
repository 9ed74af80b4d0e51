from prometheus_client import Counter, Histogram


class BookingMetrics:
    """
    Event Booking Core Metrics Collector

    Tracks admission outcomes under contention, the expiration worker's
    per-message outcomes and notification delivery failures.
    """

    def __init__(self):
        # ========== Admission Metrics ==========
        self.booking_admissions = Counter(
            'booking_admissions_total',
            'Booking admission attempts',
            ['result'],  # result: admitted or lowercased error code (event_full, ...)
        )

        self.booking_admission_duration = Histogram(
            'booking_admission_duration_seconds',
            'Admission transaction duration',
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
        )

        self.registration_confirmations = Counter(
            'registration_confirmations_total',
            'Confirmation attempts',
            ['result'],  # result: confirmed/already_confirmed/already_canceled/lost_to_<status>
        )

        # ========== Expiration Worker Metrics ==========
        self.expiration_messages = Counter(
            'expiration_messages_total',
            'Expiration instructions handled by the worker',
            ['outcome'],  # outcome: canceled/noop/decode_error/not_found/requeued/settle_failed
        )

        self.expiration_schedule_failures = Counter(
            'expiration_schedule_failures_total',
            'Delayed expiration instructions that could not be published',
        )

        # ========== Notification Metrics ==========
        self.notification_failures = Counter(
            'notification_failures_total',
            'Notifications that failed to send',
            ['status'],  # status: pending/confirmed/canceled
        )

    # ========== Helper Methods ==========

    def record_admission(self, *, result: str, duration: float) -> None:
        self.booking_admissions.labels(result=result).inc()
        self.booking_admission_duration.observe(duration)

    def record_confirmation(self, *, result: str) -> None:
        self.registration_confirmations.labels(result=result).inc()

    def record_expiration(self, *, outcome: str) -> None:
        self.expiration_messages.labels(outcome=outcome).inc()

    def record_schedule_failure(self) -> None:
        self.expiration_schedule_failures.inc()

    def record_notification_failure(self, *, status: str) -> None:
        self.notification_failures.labels(status=status).inc()


# Global metrics instance (prometheus registry is process-wide)
metrics = BookingMetrics()
