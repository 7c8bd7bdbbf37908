# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Per-plan quotas. ``None`` means unlimited."""
from typing import NamedTuple, Optional


class PlanLimits(NamedTuple):
    max_services: Optional[int]
    max_members: Optional[int]
    max_incidents_per_month: Optional[int]


LIMITS_BY_PLAN = {
    "free":       PlanLimits(max_services=2, max_members=3, max_incidents_per_month=50),
    "pro":        PlanLimits(max_services=20, max_members=25, max_incidents_per_month=1000),
    "enterprise": PlanLimits(max_services=None, max_members=None, max_incidents_per_month=None),
}


def limits_for(plan: Optional[str]) -> PlanLimits:
    """Unknown or missing plans get the free tier."""
    return LIMITS_BY_PLAN.get((plan or "free").lower(), LIMITS_BY_PLAN["free"])
