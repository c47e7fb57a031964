"""
Notification Log Model
One row per outbound SMS / WhatsApp attempt, whatever the outcome.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, Integer, DateTime, Numeric, ForeignKey, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class NotificationChannel(str, Enum):
    SMS = "sms"
    WHATSAPP = "whatsapp"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"


class MessageType(str, Enum):
    RENT_REMINDER = "rent_reminder"
    OVERDUE_NOTICE = "overdue_notice"
    PAYMENT_CONFIRMATION = "payment_confirmation"
    BALANCE_NOTIFICATION = "balance_notification"
    MAINTENANCE = "maintenance"
    WELCOME = "welcome"
    GENERAL = "general"
    CUSTOM = "custom"


class NotificationLog(Base, TimestampMixin):
    __tablename__ = "notification_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    channel: Mapped[NotificationChannel] = mapped_column(SQLEnum(NotificationChannel), nullable=False, index=True)

    # Recipient
    tenant_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("tenants.id"), nullable=True, index=True)
    recipient_phone: Mapped[str] = mapped_column(String(20), nullable=False)  # 254XXXXXXXXX
    recipient_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Message
    message_type: Mapped[MessageType] = mapped_column(SQLEnum(MessageType), default=MessageType.GENERAL, nullable=False)
    message_text: Mapped[str] = mapped_column(Text, nullable=False)

    # Outcome
    status: Mapped[NotificationStatus] = mapped_column(SQLEnum(NotificationStatus), default=NotificationStatus.PENDING, nullable=False, index=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    provider_response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON string
    cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 4), nullable=True)

    # Delivery timeline
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
