from app.services import validators
from app.services import occupancy_service
from app.services.property_service import PropertyService
from app.services.tenant_service import TenantService
from app.services.payment_plan_service import PaymentPlanService, advance
from app.services.payment_service import PaymentService
from app.services.commission_service import CommissionService
from app.services.utility_service import UtilityService
from app.services.notification_service import NotificationService
from app.services.maintenance_service import MaintenanceService

__all__ = [
    "validators",
    "occupancy_service",
    "advance",
    "PropertyService",
    "TenantService",
    "PaymentPlanService",
    "PaymentService",
    "CommissionService",
    "UtilityService",
    "NotificationService",
    "MaintenanceService",
]
