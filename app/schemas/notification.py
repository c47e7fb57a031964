"""
Notification Log Request Schemas
"""
from typing import Any, Optional
from pydantic import BaseModel


class NotificationCreate(BaseModel):
    channel: str
    recipient_phone: str
    message_text: str
    status: Optional[str] = "pending"
    tenant_id: Optional[int] = None
    recipient_name: Optional[str] = None
    message_type: Optional[str] = None
    error_message: Optional[str] = None
    provider_response: Optional[Any] = None
    cost: Optional[float] = None


class NotificationStatusUpdate(BaseModel):
    status: str
    error_message: Optional[str] = None
