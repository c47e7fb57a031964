"""
Notification Log

Audit trail of outbound SMS / WhatsApp messages. The gateway client itself is
injected: ``dispatch`` takes any ``send(phone, text)`` callable and records
the outcome whether the gateway accepts the message or raises.

Delivery status only moves forward:
  pending -> sent -> delivered -> read
  any state before read -> failed
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, time, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func, select

from app.core.config import settings
from app.core.exceptions import NotFoundError, StateTransitionError
from app.database import Database
from app.models.notification import (
    MessageType,
    NotificationChannel,
    NotificationLog,
    NotificationStatus,
)
from app.services.validators import (
    parse_date,
    parse_enum,
    require_non_negative,
    require_text,
    to_gateway_phone,
)

logger = logging.getLogger(__name__)

DELIVERY_ORDER = [
    NotificationStatus.PENDING,
    NotificationStatus.SENT,
    NotificationStatus.DELIVERED,
    NotificationStatus.READ,
]
TERMINAL_STATUSES = {NotificationStatus.READ, NotificationStatus.FAILED}

TIMESTAMP_FIELDS = {
    NotificationStatus.SENT: "sent_at",
    NotificationStatus.DELIVERED: "delivered_at",
    NotificationStatus.READ: "read_at",
}


def can_transition(current: NotificationStatus, target: NotificationStatus) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    if target == NotificationStatus.FAILED:
        return True
    return DELIVERY_ORDER.index(target) > DELIVERY_ORDER.index(current)


def _encode_response(response: Any) -> Optional[str]:
    if response is None or isinstance(response, str):
        return response
    return json.dumps(response, default=str)


class NotificationService:
    def __init__(self, database: Database):
        self.database = database

    # ──────────────────────────── Public API ────────────────────────────

    def record(
        self,
        channel: Any,
        recipient_phone: Optional[str],
        message_text: Optional[str],
        status: Any = NotificationStatus.PENDING,
        tenant_id: Optional[int] = None,
        recipient_name: Optional[str] = None,
        message_type: Any = None,
        error_message: Optional[str] = None,
        provider_response: Any = None,
        cost: Any = None,
    ) -> NotificationLog:
        """Append one attempt to the log."""
        channel = parse_enum(NotificationChannel, channel, "channel")
        state = parse_enum(NotificationStatus, status or NotificationStatus.PENDING, "status")
        kind = parse_enum(MessageType, message_type or MessageType.GENERAL, "message_type")

        if cost is None and channel == NotificationChannel.SMS and state == NotificationStatus.SENT:
            cost = settings.SMS_COST_PER_MESSAGE

        entry = NotificationLog(
            channel=channel,
            tenant_id=tenant_id,
            recipient_phone=to_gateway_phone(recipient_phone),
            recipient_name=recipient_name,
            message_type=kind,
            message_text=require_text(message_text, "message_text"),
            status=state,
            error_message=error_message,
            provider_response=_encode_response(provider_response),
            cost=require_non_negative(cost, "cost") if cost is not None else None,
        )
        if state in TIMESTAMP_FIELDS:
            setattr(entry, TIMESTAMP_FIELDS[state], datetime.utcnow())

        with self.database.transaction() as db:
            db.add(entry)
            db.flush()
            db.refresh(entry)

        logger.info(
            f"[NOTIFICATION] {channel.value} #{entry.id} to {entry.recipient_phone} "
            f"({kind.value}) -> {state.value}"
        )
        return entry

    def dispatch(
        self,
        channel: Any,
        send: Callable[[str, str], Any],
        recipient_phone: Optional[str],
        message_text: Optional[str],
        **fields: Any,
    ) -> NotificationLog:
        """
        Send through *send* and log the attempt.

        Args:
            channel:         sms | whatsapp
            send:            gateway callable taking (phone, text); its return value is
                             stored as the provider response
            recipient_phone: any accepted phone format; gateways get 254XXXXXXXXX
            **fields:        tenant_id, recipient_name, message_type, cost

        Returns:
            The log entry, status ``sent`` or ``failed``. Gateway errors are recorded,
            never raised.
        """
        phone = to_gateway_phone(recipient_phone)
        if fields.get("cost") is not None:
            fields["cost"] = require_non_negative(fields["cost"], "cost")
        text = require_text(message_text, "message_text")
        try:
            response = send(phone, text)
        except Exception as exc:
            logger.warning(f"[NOTIFICATION] Gateway error sending to {phone}: {exc}")
            return self.record(
                channel, phone, text,
                status=NotificationStatus.FAILED,
                error_message=str(exc),
                **fields,
            )
        return self.record(
            channel, phone, text,
            status=NotificationStatus.SENT,
            provider_response=response,
            **fields,
        )

    def update_status(self, log_id: int, status: Any, error_message: Optional[str] = None) -> NotificationLog:
        """Apply a delivery receipt; backwards moves are rejected."""
        target = parse_enum(NotificationStatus, status, "status")

        with self.database.transaction() as db:
            entry = db.get(NotificationLog, log_id)
            if entry is None:
                raise NotFoundError("Notification not found")
            if not can_transition(entry.status, target):
                raise StateTransitionError(
                    f"Cannot change notification status from {entry.status.value} to {target.value}"
                )
            entry.status = target
            if target in TIMESTAMP_FIELDS:
                setattr(entry, TIMESTAMP_FIELDS[target], datetime.utcnow())
            if target == NotificationStatus.FAILED and error_message:
                entry.error_message = error_message
            db.flush()
            db.refresh(entry)

        logger.info(f"[NOTIFICATION] #{log_id} -> {target.value}")
        return entry

    def get(self, log_id: int) -> NotificationLog:
        with self.database.session() as db:
            entry = db.get(NotificationLog, log_id)
        if entry is None:
            raise NotFoundError("Notification not found")
        return entry

    def stats(self, channel: Any = None, start_date: Any = None, end_date: Any = None) -> Dict[str, Any]:
        """Message counts and cost grouped by channel, message type and status."""
        conditions = []
        if channel:
            conditions.append(NotificationLog.channel == parse_enum(NotificationChannel, channel, "channel"))
        start = parse_date(start_date, "start_date")
        end = parse_date(end_date, "end_date")
        if start is not None:
            conditions.append(NotificationLog.created_at >= datetime.combine(start, time.min))
        if end is not None:
            conditions.append(NotificationLog.created_at < datetime.combine(end + timedelta(days=1), time.min))

        with self.database.session() as db:
            rows = db.execute(
                select(
                    NotificationLog.channel,
                    NotificationLog.message_type,
                    NotificationLog.status,
                    func.count(NotificationLog.id),
                    func.coalesce(func.sum(NotificationLog.cost), 0),
                )
                .where(*conditions)
                .group_by(NotificationLog.channel, NotificationLog.message_type, NotificationLog.status)
                .order_by(NotificationLog.channel, NotificationLog.message_type, NotificationLog.status)
            ).all()

        breakdown = [
            {
                "channel": ch.value,
                "message_type": kind.value,
                "status": state.value,
                "count": count,
                "total_cost": round(float(cost or 0), 2),
            }
            for ch, kind, state, count, cost in rows
        ]
        return {
            "total_messages": sum(row["count"] for row in breakdown),
            "total_cost": round(sum(row["total_cost"] for row in breakdown), 2),
            "breakdown": breakdown,
        }

    def tenant_history(self, tenant_id: int, limit: Optional[int] = None) -> List[NotificationLog]:
        limit = limit or settings.NOTIFICATION_HISTORY_LIMIT
        with self.database.session() as db:
            return list(db.scalars(
                select(NotificationLog)
                .where(NotificationLog.tenant_id == tenant_id)
                .order_by(NotificationLog.created_at.desc(), NotificationLog.id.desc())
                .limit(limit)
            ))
