from app.api.routes.properties import router as properties_router, units_router
from app.api.routes.tenants import router as tenants_router
from app.api.routes.payments import router as payments_router
from app.api.routes.payment_plans import router as payment_plans_router
from app.api.routes.commissions import router as commissions_router
from app.api.routes.utilities import router as utilities_router
from app.api.routes.notifications import router as notifications_router
from app.api.routes.maintenance import router as maintenance_router

__all__ = [
    "properties_router",
    "units_router",
    "tenants_router",
    "payments_router",
    "payment_plans_router",
    "commissions_router",
    "utilities_router",
    "notifications_router",
    "maintenance_router",
]
