from fastapi import APIRouter

from vacation_portal.api.accounts import accounts_router
from vacation_portal.api.analytics import analytics_router
from vacation_portal.api.auth import auth_router
from vacation_portal.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(accounts_router)
api_router.include_router(requests_router)
api_router.include_router(analytics_router)
