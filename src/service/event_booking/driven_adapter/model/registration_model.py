from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base
from src.service.event_booking.driven_adapter.model.event_model import ID_TYPE, utcnow


class RegistrationModel(Base):
    __tablename__ = 'registrations'
    __table_args__ = (
        Index('ix_registrations_event_id_status', 'event_id', 'status'),
        Index('ix_registrations_event_id_email', 'event_id', 'email'),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'canceled')", name='ck_registrations_status'
        ),
    )

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey('events.id', ondelete='RESTRICT'), nullable=False
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default='pending', nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )
