# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Resolves who an automatically created incident is attributed to."""
from typing import Optional

from signal_engine.core.config import settings
from signal_engine.repositories.organization_repository import OrganizationRepository


class IdentityResolver:
    def __init__(self, org_repo: OrganizationRepository,
                 system_user_id: Optional[str] = None) -> None:
        self._orgs = org_repo
        self._system_user_id = settings.SYSTEM_USER_ID if system_user_id is None else system_user_id

    def system_user_id(self) -> Optional[str]:
        return self._system_user_id or None

    def first_active_admin(self, organization_id: str) -> Optional[str]:
        return self._orgs.first_active_admin(organization_id)

    def resolve_creator(self, organization_id: str) -> Optional[str]:
        return self.system_user_id() or self.first_active_admin(organization_id)
