"""API route registration."""

from fastapi import APIRouter

from billow.api.auth import router as auth_router
from billow.api.clients import router as clients_router
from billow.api.invoices import router as invoices_router
from billow.api.dashboard import router as dashboard_router
from billow.api.settings import router as settings_router
from billow.billing.api import analytics_router, router as subscription_router
from billow.config import get_settings

api_router = APIRouter(prefix=get_settings().API_PREFIX)
api_router.include_router(auth_router)
api_router.include_router(clients_router)
api_router.include_router(invoices_router)
api_router.include_router(dashboard_router)
api_router.include_router(settings_router)
api_router.include_router(subscription_router)
api_router.include_router(analytics_router)
