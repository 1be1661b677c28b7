"""Import all models so SQLModel.metadata picks them up."""

from tenantplans.models.employee import Employee, EmployeeCreate, EmployeeRead
from tenantplans.models.payment import PaymentConfirmation, PaymentStatus, PaymentTransaction
from tenantplans.models.plan import PaymentProvider, Plan, PlanCreate, PlanRead, PlanUpdate
from tenantplans.models.subscription import (
    Actor,
    ActorKind,
    ActorRead,
    Subscription,
    SubscriptionRead,
    SubscriptionStatus,
)
from tenantplans.models.tenant import Tenant, TenantRead, TenantSubscriptionStatus
from tenantplans.models.webhook import Webhook, WebhookCreate, WebhookCreated, WebhookEvent, WebhookRead

__all__ = [
    "Actor",
    "ActorKind",
    "ActorRead",
    "Employee",
    "EmployeeCreate",
    "EmployeeRead",
    "PaymentConfirmation",
    "PaymentProvider",
    "PaymentStatus",
    "PaymentTransaction",
    "Plan",
    "PlanCreate",
    "PlanRead",
    "PlanUpdate",
    "Subscription",
    "SubscriptionRead",
    "SubscriptionStatus",
    "Tenant",
    "TenantRead",
    "TenantSubscriptionStatus",
    "Webhook",
    "WebhookCreate",
    "WebhookCreated",
    "WebhookEvent",
    "WebhookRead",
]
