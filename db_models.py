"""
SQLAlchemy models for anomaly notifications raised by reference scans.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from sqlalchemy import JSON, Boolean, DateTime, Float, Index, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class AnomalyNotification(Base):
    __tablename__ = "anomaly_notifications"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    vehicle_id: Mapped[str] = mapped_column(String(128), nullable=False)
    vehicle_class: Mapped[str] = mapped_column(String(16), nullable=False)
    region: Mapped[str | None] = mapped_column(String(128), nullable=True)
    year: Mapped[str] = mapped_column(String(8), nullable=False)
    actual_index: Mapped[float] = mapped_column(Float, nullable=False)
    reference_index: Mapped[float] = mapped_column(Float, nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_anomaly_notifications_read_created", "read", "created_at"),
        Index("ix_anomaly_notifications_vehicle", "vehicle_id", "year"),
    )
