"""API routes."""

from workforce_engine.api.routes.geofence import router as geofence_router
from workforce_engine.api.routes.health import router as health_router
from workforce_engine.api.routes.invoices import router as invoices_router
from workforce_engine.api.routes.payroll import router as payroll_router
from workforce_engine.api.routes.shifts import router as shifts_router

__all__ = [
    "geofence_router",
    "health_router",
    "invoices_router",
    "payroll_router",
    "shifts_router",
]
