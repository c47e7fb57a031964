# Import all models in correct order so foreign keys resolve on create_all
from app.models.property import Property, Unit
from app.models.tenant import Tenant, TenantStatus
from app.models.payment_plan import PaymentPlan, PlanStatus, InstallmentFrequency
from app.models.payment import Payment, PaymentStatus
from app.models.commission import AgentCommission, CommissionStatus
from app.models.utility import UtilityBill, UtilityType, UtilityPaymentStatus
from app.models.maintenance import MaintenanceRequest, MaintenanceStatus, MaintenancePriority
from app.models.notification import (
    NotificationLog, NotificationChannel, NotificationStatus, MessageType
)

__all__ = [
    "Property",
    "Unit",
    "Tenant",
    "TenantStatus",
    "PaymentPlan",
    "PlanStatus",
    "InstallmentFrequency",
    "Payment",
    "PaymentStatus",
    "AgentCommission",
    "CommissionStatus",
    "UtilityBill",
    "UtilityType",
    "UtilityPaymentStatus",
    "MaintenanceRequest",
    "MaintenanceStatus",
    "MaintenancePriority",
    "NotificationLog",
    "NotificationChannel",
    "NotificationStatus",
    "MessageType",
]
