"""Subscription plans and a static account directory."""

from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from marker_import.core.logging import get_logger
from marker_import.models.records import AccountLimits

logger = get_logger(__name__)


class Plan(BaseModel):
    """A subscription plan, reduced to what an import run needs."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    max_markers_per_map: Optional[int] = Field(default=None, ge=0)
    geocoding: bool = False

    def limits(self) -> AccountLimits:
        return AccountLimits(
            max_markers_per_map=self.max_markers_per_map,
            geocoding_allowed=self.geocoding,
        )


PLANS: dict[str, Plan] = {
    "freemium": Plan(id="freemium", name="Freemium", max_markers_per_map=50),
    "starter": Plan(id="starter", name="Starter", max_markers_per_map=500, geocoding=True),
    "professional": Plan(
        id="professional", name="Professional", max_markers_per_map=1500, geocoding=True
    ),
    "enterprise": Plan(
        id="enterprise", name="Enterprise", max_markers_per_map=3000, geocoding=True
    ),
    "unlimited": Plan(id="unlimited", name="Unlimited", geocoding=True),
}


def get_plan(plan_id: str) -> Plan:
    """Look up a plan by id, case-insensitively.

    Raises:
        KeyError: If the plan does not exist
    """
    key = plan_id.strip().lower()
    if key not in PLANS:
        raise KeyError(f"Unknown plan '{plan_id}', expected one of {sorted(PLANS)}")
    return PLANS[key]


class StaticAccountDirectory:
    """Account directory backed by a fixed account-to-plan table.

    Accounts not in the table get ``default_plan``.
    """

    def __init__(
        self,
        accounts: Optional[Mapping[str, str]] = None,
        default_plan: str = "freemium",
    ) -> None:
        self.accounts = {k: get_plan(v).id for k, v in (accounts or {}).items()}
        self.default_plan = get_plan(default_plan).id

    def plan_for(self, account_id: str) -> Plan:
        return PLANS[self.accounts.get(account_id, self.default_plan)]

    async def account_limits(self, account_id: str) -> AccountLimits:
        plan = self.plan_for(account_id)
        logger.debug("account_plan_resolved", account_id=account_id, plan=plan.id)
        return plan.limits()
