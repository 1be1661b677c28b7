"""V1 API router aggregation."""

from fastapi import APIRouter

from tenantplans.api.v1.employees import router as employees_router
from tenantplans.api.v1.payments import router as payments_router
from tenantplans.api.v1.plans import router as plans_router
from tenantplans.api.v1.subscriptions import router as subscriptions_router
from tenantplans.api.v1.subscriptions import staff_router as subscriptions_staff_router
from tenantplans.api.v1.tenants import router as tenants_router
from tenantplans.api.v1.webhooks import router as webhooks_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(tenants_router)
v1_router.include_router(plans_router)
v1_router.include_router(subscriptions_router)
v1_router.include_router(subscriptions_staff_router)
v1_router.include_router(employees_router)
v1_router.include_router(payments_router)
v1_router.include_router(webhooks_router)
