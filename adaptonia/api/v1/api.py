from fastapi import APIRouter

from adaptonia.api.v1.endpoints import cron
from adaptonia.api.v1.endpoints import notifications
from adaptonia.api.v1.endpoints import reminders

api_router = APIRouter()

api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(reminders.router, prefix="/reminders", tags=["reminders"])
api_router.include_router(cron.router, prefix="/cron", tags=["cron"])
