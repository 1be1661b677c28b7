"""Plan-change policy — classifies a transition and decides if it is allowed.

Pure functions only: no I/O, no override flags. Trial reuse and
administrative override are handled by the subscription lifecycle.

A transition is allowed only when neither dimension regresses:
capacity (``max_entitlement``) and price are both non-decreasing. Partial
regression is blocked exactly like full regression. Every allowed
transition must also leave room for the tenant's current usage.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Any


class PlanChangeAction(StrEnum):
    NEW = "new"
    RENEW = "renew"
    UPGRADE = "upgrade"
    DOWNGRADE = "downgrade"


@dataclass(frozen=True, slots=True)
class PlanTerms:
    """The two compared dimensions of a plan, plus a name for messages."""

    name: str
    price: Decimal
    max_entitlement: int

    @classmethod
    def of_plan(cls, plan: Any) -> PlanTerms:
        return cls(name=plan.name, price=Decimal(plan.price), max_entitlement=plan.max_entitlement)

    @classmethod
    def of_subscription(cls, sub: Any) -> PlanTerms:
        """Terms a subscription was bought at (its snapshot, never the live plan)."""
        return cls(name=sub.plan_name, price=Decimal(sub.price), max_entitlement=sub.max_entitlement)

    def describe(self) -> str:
        return f"'{self.name}' ({self.max_entitlement} employees, {self.price:.2f})"


@dataclass(frozen=True, slots=True)
class PlanChangeDecision:
    allowed: bool
    action: PlanChangeAction
    reason: str


def _usage_check(
    action: PlanChangeAction, target: PlanTerms, current_usage: int, ok_reason: str
) -> PlanChangeDecision:
    if target.max_entitlement >= current_usage:
        return PlanChangeDecision(allowed=True, action=action, reason=ok_reason)
    return PlanChangeDecision(
        allowed=False,
        action=action,
        reason=(
            f"Plan {target.describe()} allows {target.max_entitlement} employees "
            f"but the tenant currently has {current_usage}; a plan for at least "
            f"{current_usage} employees is required"
        ),
    )


def decide(
    current: PlanTerms | None, current_usage: int, target: PlanTerms
) -> PlanChangeDecision:
    """Classify ``current -> target`` and decide whether it is permitted."""
    if current is None:
        return _usage_check(
            PlanChangeAction.NEW, target, current_usage, f"New subscription to {target.describe()}"
        )

    lower_entitlement = target.max_entitlement < current.max_entitlement
    lower_price = target.price < current.price

    if not lower_entitlement and not lower_price:
        if target.max_entitlement == current.max_entitlement and target.price == current.price:
            return _usage_check(
                PlanChangeAction.RENEW, target, current_usage, f"Renewal of {target.describe()}"
            )
        return _usage_check(
            PlanChangeAction.UPGRADE,
            target,
            current_usage,
            f"Upgrade from {current.describe()} to {target.describe()}",
        )

    regressions = []
    if lower_entitlement:
        regressions.append(
            f"entitlement would drop from {current.max_entitlement} to {target.max_entitlement} employees"
        )
    if lower_price:
        regressions.append(f"price would drop from {current.price:.2f} to {target.price:.2f}")
    if target.max_entitlement < current_usage:
        regressions.append(
            f"the tenant currently has {current_usage} employees, so a plan for at least "
            f"{current_usage} is required but {target.name} allows {target.max_entitlement}"
        )
    return PlanChangeDecision(
        allowed=False,
        action=PlanChangeAction.DOWNGRADE,
        reason=(
            f"Downgrade from {current.describe()} to {target.describe()} is not allowed: "
            + "; ".join(regressions)
        ),
    )
