"""
Notification routes for anomaly notifications recorded by reference scans.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter

from api.responses import NotificationOut
from api.routes.exception import handle_exceptions
from services.notification_service import notification_service

router = APIRouter(tags=["Notifications"])


@router.get("/notifications", summary="List notifications, newest first")
@handle_exceptions
async def list_notifications(vehicle_id: Optional[str] = None) -> List[NotificationOut]:
    views = await notification_service.list_notifications(vehicle_id=vehicle_id)
    return [NotificationOut.model_validate(v) for v in views]


@router.get("/notifications/unread", summary="List unread notifications")
@handle_exceptions
async def list_unread() -> List[NotificationOut]:
    views = await notification_service.list_notifications(unread_only=True)
    return [NotificationOut.model_validate(v) for v in views]


@router.get("/notifications/unread/count", summary="Number of unread notifications")
@handle_exceptions
async def unread_count() -> Dict[str, int]:
    return {"count": await notification_service.unread_count()}


@router.put("/notifications/{notification_id}/read", summary="Mark one notification as read")
@handle_exceptions
async def mark_read(notification_id: str) -> NotificationOut:
    return NotificationOut.model_validate(await notification_service.mark_read(notification_id))


@router.put("/notifications/read-all", summary="Mark all notifications as read")
@handle_exceptions
async def mark_all_read() -> Dict[str, Any]:
    return {"updated": await notification_service.mark_all_read()}


@router.delete("/notifications/{notification_id}", summary="Delete a notification")
@handle_exceptions
async def delete_notification(notification_id: str) -> Dict[str, Any]:
    await notification_service.delete(notification_id)
    return {"deleted": True, "id": notification_id}
