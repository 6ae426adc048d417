from fastapi import APIRouter

from holiday_tracker.api.holidays import holidays_router
from holiday_tracker.api.settings import settings_router
from holiday_tracker.api.users import users_router

api_router = APIRouter()
api_router.include_router(holidays_router)
api_router.include_router(users_router)
api_router.include_router(settings_router)
