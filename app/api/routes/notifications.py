"""
Notification Log Routes
Gateways report attempts and delivery receipts here; nothing is sent from this API.
"""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.database import Database, get_database
from app.models.notification import NotificationLog
from app.schemas.notification import NotificationCreate, NotificationStatusUpdate
from app.services.notification_service import NotificationService

router = APIRouter(tags=["notifications"])
logger = logging.getLogger(__name__)


def _log_to_dict(n: NotificationLog) -> dict:
    def _d(v) -> Optional[str]:
        return v.isoformat() if v else None

    return {
        "id": n.id,
        "channel": n.channel.value,
        "tenant_id": n.tenant_id,
        "recipient_phone": n.recipient_phone,
        "recipient_name": n.recipient_name,
        "message_type": n.message_type.value,
        "message_text": n.message_text,
        "status": n.status.value,
        "error_message": n.error_message,
        "provider_response": n.provider_response,
        "cost": float(n.cost) if n.cost is not None else None,
        "sent_at": _d(n.sent_at),
        "delivered_at": _d(n.delivered_at),
        "read_at": _d(n.read_at),
        "created_at": _d(n.created_at),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def log_notification(payload: NotificationCreate, database: Database = Depends(get_database)):
    entry = NotificationService(database).record(**payload.model_dump())
    return {"success": True, "data": _log_to_dict(entry), "message": "Notification logged"}


@router.get("/stats")
def notification_stats(
    channel: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    database: Database = Depends(get_database),
):
    stats = NotificationService(database).stats(channel=channel, start_date=start_date, end_date=end_date)
    return {"success": True, "data": stats}


@router.get("/tenant/{tenant_id}")
def tenant_notifications(
    tenant_id: int,
    limit: Optional[int] = Query(None, ge=1, le=200),
    database: Database = Depends(get_database),
):
    entries = NotificationService(database).tenant_history(tenant_id, limit=limit)
    return {"success": True, "count": len(entries), "data": [_log_to_dict(n) for n in entries]}


@router.get("/{log_id}")
def get_notification(log_id: int, database: Database = Depends(get_database)):
    return {"success": True, "data": _log_to_dict(NotificationService(database).get(log_id))}


@router.put("/{log_id}/status")
def update_notification_status(
    log_id: int,
    payload: NotificationStatusUpdate,
    database: Database = Depends(get_database),
):
    entry = NotificationService(database).update_status(log_id, payload.status, error_message=payload.error_message)
    return {"success": True, "data": _log_to_dict(entry), "message": f"Status updated to {entry.status.value}"}
