"""Read-only registry of pricing plans."""

from collections.abc import Iterable

from ripplix.platform.billing.entities import UNLIMITED_SENTINEL
from ripplix.platform.billing.exceptions import PlanNotFoundError
from ripplix.platform.billing.plans.models import Limited, Plan, PlanLimits, Unlimited


class PlanCatalog:
    """
    In-memory view over the plan table.

    Lookups only return active plans. Nothing here touches the database;
    build one with :meth:`PlanRepository.load_catalog`.
    """

    def __init__(self, plans: Iterable[Plan]) -> None:
        self._by_id: dict[int, Plan] = {}
        self._by_slug: dict[str, Plan] = {}
        for plan in plans:
            self._by_id[plan.id] = plan
            self._by_slug[plan.slug] = plan

    def __len__(self) -> int:
        return len(self._by_id)

    def find_by_slug(self, slug: str) -> Plan | None:
        plan = self._by_slug.get(slug)
        if plan is None or not plan.is_active:
            return None
        return plan

    def get_by_slug(self, slug: str) -> Plan:
        plan = self.find_by_slug(slug)
        if plan is None:
            raise PlanNotFoundError(f"Plan '{slug}' not found", slug=slug)
        return plan

    def find_by_id(self, plan_id: int | None) -> Plan | None:
        if plan_id is None:
            return None
        plan = self._by_id.get(plan_id)
        if plan is None or not plan.is_active:
            return None
        return plan

    def active_plans(self) -> list[Plan]:
        """Active plans in display order."""
        return sorted(
            (plan for plan in self._by_id.values() if plan.is_active),
            key=lambda plan: (plan.sort_order, plan.price),
        )

    def upgrade_suggestions(self, plan: Plan, limit: int = 2) -> list[Plan]:
        """Cheapest active plans priced above ``plan``."""
        pricier = [candidate for candidate in self.active_plans() if candidate.price > plan.price]
        return pricier[:limit]

    @staticmethod
    def limits_for(plan: Plan) -> PlanLimits:
        return plan.limits

    @staticmethod
    def is_unlimited(capacity: Limited | Unlimited | int) -> bool:
        """True for ``Unlimited`` or a raw stored value at the sentinel."""
        if isinstance(capacity, int):
            return capacity >= UNLIMITED_SENTINEL
        return isinstance(capacity, Unlimited)
