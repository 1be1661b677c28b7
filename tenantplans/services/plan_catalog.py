"""Plan catalog — lookup and staff maintenance of plan definitions.

The subscription lifecycle only ever reads from here; subscriptions keep
their own snapshot of a plan's terms, so edits never rewrite history.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tenantplans.core.errors import ConflictError, NotFoundError, PolicyViolationError
from tenantplans.models.plan import Plan, PlanCreate, PlanUpdate

logger = logging.getLogger(__name__)


class PlanCatalog:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, plan_id: uuid.UUID, *, active_only: bool = False) -> Plan:
        plan = await self.session.get(Plan, plan_id)
        if plan is None or (active_only and not plan.is_active):
            raise NotFoundError(f"Plan {plan_id} not found")
        return plan

    async def list_plans(self, *, include_inactive: bool = False) -> list[Plan]:
        stmt = select(Plan).order_by(Plan.price, Plan.max_entitlement)  # type: ignore[arg-type]
        if not include_inactive:
            stmt = stmt.where(Plan.is_active.is_(True))  # type: ignore[union-attr]
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, body: PlanCreate) -> Plan:
        await self._ensure_name_free(body.name)
        if body.price > 0 and body.payment_provider is None:
            raise PolicyViolationError("Paid plans require a payment provider")

        plan = Plan(**body.model_dump())
        self.session.add(plan)
        await self.session.commit()
        await self.session.refresh(plan)
        logger.info("Created plan %s (%s)", plan.id, plan.name)
        return plan

    async def update(self, plan_id: uuid.UUID, body: PlanUpdate) -> Plan:
        plan = await self.get(plan_id)
        changes = body.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] != plan.name:
            await self._ensure_name_free(changes["name"])

        price = changes.get("price", plan.price)
        provider = changes.get("payment_provider", plan.payment_provider)
        if price is not None and price > 0 and provider is None:
            raise PolicyViolationError("Paid plans require a payment provider")

        for field, value in changes.items():
            # Only description and payment_provider are nullable columns
            if value is None and field not in ("description", "payment_provider"):
                continue
            setattr(plan, field, value)
        plan.touch()
        self.session.add(plan)
        await self.session.commit()
        await self.session.refresh(plan)
        logger.info("Updated plan %s: %s", plan.id, sorted(changes))
        return plan

    async def _ensure_name_free(self, name: str) -> None:
        result = await self.session.execute(select(Plan).where(Plan.name == name))
        if result.scalar_one_or_none() is not None:
            raise ConflictError(f"Plan name '{name}' is already taken")
