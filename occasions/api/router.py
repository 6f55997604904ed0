from fastapi import APIRouter

from occasions.api.admin import router as admin_router
from occasions.api.cron import router as cron_router
from occasions.api.notification_templates import router as templates_router
from occasions.api.notifications import router as notifications_router

api_router = APIRouter()
api_router.include_router(admin_router)
api_router.include_router(cron_router)
api_router.include_router(templates_router)
api_router.include_router(notifications_router)
