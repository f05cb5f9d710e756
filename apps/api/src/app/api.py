from fastapi import APIRouter

from app.modules.applications.router import router as applications_router
from app.modules.auth import router as auth_router
from app.modules.dashboard.router import router as dashboard_router
from app.modules.files.router import router as files_router
from app.modules.notifications.router import router as notifications_router
from app.modules.payments.router import router as payments_router
from app.modules.payments.webhooks import router as webhooks_router
from app.modules.quotations.router import router as quotations_router
from app.modules.service_catalog.router import router as services_router
from app.modules.sessions import router as sessions_router
from app.modules.tracking.router import router as tracking_router
from app.modules.users.admin_router import router as admin_users_router
from app.modules.users.clients_router import router as clients_router
from app.modules.users.router import router as user_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
api_router.include_router(sessions_router, prefix="/sessions", tags=["Sessions"])

api_router.include_router(user_router, prefix="/user", tags=["User"])
api_router.include_router(admin_users_router, prefix="/users", tags=["Admin - Users"])
api_router.include_router(clients_router, prefix="/clients", tags=["Admin - Clients"])

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])
api_router.include_router(payments_router, prefix="/payments", tags=["Payments"])
api_router.include_router(webhooks_router, prefix="/webhooks", tags=["Webhooks"])
api_router.include_router(quotations_router, prefix="/quotations", tags=["Quotations"])
api_router.include_router(services_router, prefix="/services", tags=["Services"])

api_router.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(dashboard_router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(files_router, prefix="/files", tags=["Files"])
api_router.include_router(tracking_router, prefix="/track", tags=["Tracking"])
