# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: log ingestion entry point.
Resolves the API key to an organization and the service name to a catalog entry,
then hands the normalized event to the trigger evaluator.
"""
import hashlib
from typing import Any, Dict, Optional

from signal_engine.core.clock import Clock, parse_timestamp_ms, to_millis, utc_now
from signal_engine.core.logging import get_logger
from signal_engine.metrics import LOG_EVENTS_INGESTED
from signal_engine.models.domain import LogEvent
from signal_engine.repositories.organization_repository import OrganizationRepository
from signal_engine.repositories.service_repository import ServiceRepository
from signal_engine.services.trigger_service import IngestResult, TriggerEvaluator

logger = get_logger(__name__)

API_KEY_PREFIX = "ipk_"


def hash_api_key(raw: str) -> str:
    return hashlib.sha256(raw.encode()).hexdigest()


class LogIngestService:
    def __init__(self, org_repo: OrganizationRepository, service_repo: ServiceRepository,
                 evaluator: TriggerEvaluator, clock: Clock = utc_now) -> None:
        self._orgs = org_repo
        self._services = service_repo
        self._evaluator = evaluator
        self._clock = clock

    def authenticate(self, token: Optional[str]) -> str:
        """Return the organization id owning ``token`` or raise PermissionError."""
        if not token or not token.startswith(API_KEY_PREFIX):
            raise PermissionError("Invalid API key")
        hashed = hash_api_key(token)
        organization_id = self._orgs.find_organization_id(hashed)
        if not organization_id:
            raise PermissionError("Unauthorized")
        try:
            self._orgs.touch_api_key(hashed)
        except Exception as exc:
            logger.warning("Could not update API key last_used_at: %s", exc)
        return organization_id

    def ingest(self, organization_id: str, service_name: str, level: str, message: str,
               timestamp: Optional[str] = None,
               context: Optional[Dict[str, Any]] = None) -> IngestResult:
        service = self._services.find_by_org_and_name_or_slug(organization_id, service_name)
        if not service:
            raise KeyError(f"Service '{service_name}' not found for organization")

        now_ms = to_millis(self._clock())
        event = LogEvent(
            timestamp_ms=parse_timestamp_ms(timestamp, now_ms),
            level=level,
            message=message,
            context=context,
        )
        LOG_EVENTS_INGESTED.labels(level=level).inc()
        return self._evaluator.evaluate(organization_id, service, event)
