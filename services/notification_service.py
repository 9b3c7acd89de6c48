"""
Notification persistence for anomaly events raised by reference scans.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy import func, select

from database import get_db_session, is_initialized
from db_models import AnomalyNotification
from engine.anomaly.scoring import AnomalyEvent
from engine.regression.model import RegressionModel

log = logging.getLogger(__name__)

ANOMALY_SEVERITY = "high"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class NotificationView:
    id: str
    title: str
    message: str
    vehicle_id: str
    vehicle_class: str
    region: Optional[str]
    year: str
    actual_index: float
    reference_index: float
    severity: str
    read: bool
    created_at: datetime
    details: Optional[Dict[str, Any]] = None


def _to_view(row: AnomalyNotification) -> NotificationView:
    return NotificationView(
        id=row.id,
        title=row.title,
        message=row.message,
        vehicle_id=row.vehicle_id,
        vehicle_class=row.vehicle_class,
        region=row.region,
        year=row.year,
        actual_index=row.actual_index,
        reference_index=row.reference_index,
        severity=row.severity,
        read=row.read,
        created_at=row.created_at,
        details=row.details,
    )


def _message(event: AnomalyEvent) -> str:
    return (
        f"Vehicle {event.observation_id} ({event.vehicle_class.value}) in {event.year}: "
        f"index {event.actual_index:.2f} L/100km.t exceeds reference {event.reference_index:.2f} L/100km.t"
    )


def _require_database() -> None:
    if not is_initialized():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Notification store is not configured")


class NotificationService:
    async def record_events(
        self,
        events: Sequence[AnomalyEvent],
        models: Optional[Sequence[Optional[RegressionModel]]] = None,
    ) -> list[NotificationView]:
        if not events:
            return []
        if not is_initialized():
            log.debug("Notification store not configured; dropping %d anomaly event(s)", len(events))
            return []
        # models are aligned with events by position
        models = list(models or [None] * len(events))
        if len(models) != len(events):
            raise ValueError(f"Expected {len(events)} model(s) for the anomaly events, got {len(models)}")
        now = _utcnow()

        def _record() -> list[NotificationView]:
            with get_db_session() as db:
                rows = []
                for event, model in zip(events, models):
                    details: Dict[str, Any] = {
                        "actual_index": event.actual_index,
                        "reference_index": event.reference_index,
                    }
                    if model is not None:
                        details["equation"] = model.equation
                        details["model_year"] = model.year
                        if model.statistics is not None:
                            details["r_squared"] = model.statistics.r_squared
                    row = AnomalyNotification(
                        title=f"Reference anomaly - {event.vehicle_class.value}",
                        message=_message(event),
                        vehicle_id=event.observation_id,
                        vehicle_class=event.vehicle_class.value,
                        region=event.region,
                        year=event.year,
                        actual_index=event.actual_index,
                        reference_index=event.reference_index,
                        severity=ANOMALY_SEVERITY,
                        read=False,
                        created_at=now,
                        details=details,
                    )
                    db.add(row)
                    rows.append(row)
                db.flush()
                return [_to_view(r) for r in rows]

        created = await asyncio.to_thread(_record)
        log.info("Recorded %d anomaly notification(s)", len(created))
        return created

    async def list_notifications(
        self,
        *,
        unread_only: bool = False,
        vehicle_id: Optional[str] = None,
    ) -> list[NotificationView]:
        _require_database()

        def _list() -> list[NotificationView]:
            with get_db_session() as db:
                stmt = select(AnomalyNotification)
                if unread_only:
                    stmt = stmt.where(AnomalyNotification.read.is_(False))
                if vehicle_id:
                    stmt = stmt.where(AnomalyNotification.vehicle_id == vehicle_id)
                stmt = stmt.order_by(AnomalyNotification.created_at.desc(), AnomalyNotification.id.desc())
                return [_to_view(row) for row in db.scalars(stmt).all()]

        return await asyncio.to_thread(_list)

    async def unread_count(self) -> int:
        _require_database()

        def _count() -> int:
            with get_db_session() as db:
                stmt = select(func.count()).select_from(AnomalyNotification).where(AnomalyNotification.read.is_(False))
                return int(db.scalar(stmt) or 0)

        return await asyncio.to_thread(_count)

    async def mark_read(self, notification_id: str) -> NotificationView:
        _require_database()

        def _mark() -> NotificationView:
            with get_db_session() as db:
                row = db.get(AnomalyNotification, notification_id)
                if row is None:
                    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
                row.read = True
                return _to_view(row)

        return await asyncio.to_thread(_mark)

    async def mark_all_read(self) -> int:
        _require_database()

        def _mark_all() -> int:
            with get_db_session() as db:
                rows = db.scalars(select(AnomalyNotification).where(AnomalyNotification.read.is_(False))).all()
                for row in rows:
                    row.read = True
                return len(rows)

        return await asyncio.to_thread(_mark_all)

    async def delete(self, notification_id: str) -> None:
        _require_database()

        def _delete() -> None:
            with get_db_session() as db:
                row = db.get(AnomalyNotification, notification_id)
                if row is None:
                    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
                db.delete(row)

        await asyncio.to_thread(_delete)


notification_service = NotificationService()
