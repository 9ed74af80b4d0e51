from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base


# SQLite only autoincrements INTEGER PRIMARY KEY
ID_TYPE = BigInteger().with_variant(Integer(), 'sqlite')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventModel(Base):
    __tablename__ = 'events'
    __table_args__ = (
        CheckConstraint('capacity > 0', name='ck_events_capacity_positive'),
        CheckConstraint('payment_timeout_minutes >= 1', name='ck_events_payment_timeout_positive'),
    )

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default='')
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_timeout_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
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
