# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: log-driven auto-incident trigger.

Every ingested line is buffered per (organization, service). When the number
of error-level lines inside the trailing window reaches the org's threshold,
and the key is not cooling down, one incident is opened. Cap, creator and
downstream failures are soft: the caller's ingestion always succeeds.
"""
from typing import Any, Dict, NamedTuple, Optional, Tuple

from signal_engine.core.clock import Clock, from_millis, start_of_month, to_millis, utc_now
from signal_engine.core.config import settings
from signal_engine.core.logging import get_logger
from signal_engine.metrics import AUTO_INCIDENTS_CREATED, AUTO_INCIDENTS_SKIPPED
from signal_engine.models.domain import LogEvent, TriggerKey, TriggerSettings
from signal_engine.repositories.incident_repository import IncidentRepository
from signal_engine.repositories.organization_repository import OrganizationRepository
from signal_engine.services.ai_summarizer import AiSummarizer
from signal_engine.services.cooldown import CooldownGate
from signal_engine.services.identity import IdentityResolver
from signal_engine.services.log_buffer import WindowedCounterStore
from signal_engine.services.plan_limits import limits_for
from signal_engine.services.settings_cache import SettingsCache

logger = get_logger(__name__)

MSG_INGESTED = "Ingested"
MSG_DISABLED = "Ingested (auto incidents disabled)"
MSG_CAP_REACHED = "Ingested (cap reached, no incident created)"
MSG_NO_CREATOR = "Ingested (no creator available)"

RECENT_EXAMPLES = 5


class IngestResult(NamedTuple):
    message: str
    incident_id: Optional[str] = None


def build_incident_description(error_count: int, window_seconds: int,
                               recent_errors: list[LogEvent]) -> str:
    lines = "\n".join(
        f"- {from_millis(e.timestamp_ms).isoformat()} {e.message}"
        for e in recent_errors[-RECENT_EXAMPLES:]
    )
    return (
        f"Detected {error_count} error-level log events in the last {window_seconds} seconds.\n"
        f"Recent examples:\n{lines}"
    )


class TriggerEvaluator:
    """Buffers a log event and opens an incident when the error threshold is crossed."""

    def __init__(
        self,
        buffer: WindowedCounterStore,
        cooldown: CooldownGate,
        settings_cache: SettingsCache,
        incident_repo: IncidentRepository,
        org_repo: OrganizationRepository,
        identity: IdentityResolver,
        summarizer: Optional[AiSummarizer] = None,
        clock: Clock = utc_now,
        buffer_ttl_seconds: int = settings.LOG_BUFFER_TTL_SECONDS,
    ) -> None:
        self._buffer = buffer
        self._cooldown = cooldown
        self._settings = settings_cache
        self._incidents = incident_repo
        self._orgs = org_repo
        self._identity = identity
        self._summarizer = summarizer
        self._clock = clock
        self._buffer_ttl_seconds = buffer_ttl_seconds

    def evaluate(self, organization_id: str, service: Dict[str, Any], event: LogEvent) -> IngestResult:
        now = self._clock()
        now_ms = to_millis(now)
        key = TriggerKey(organization_id, service["id"])
        trigger = self._settings.get(organization_id)

        ttl_seconds = max(self._buffer_ttl_seconds, trigger.window_seconds)
        self._buffer.prune(key, now_ms, ttl_seconds * 1000)
        self._buffer.append(key, event)

        if not trigger.enabled:
            return IngestResult(MSG_DISABLED)

        window_cutoff = now_ms - trigger.window_seconds * 1000
        error_count = self._buffer.count_since(key, window_cutoff, level="error")
        cooldown_ms = trigger.cooldown_seconds * 1000

        if self._cooldown.in_cooldown(key, now_ms, cooldown_ms):
            if error_count >= trigger.error_threshold:
                AUTO_INCIDENTS_SKIPPED.labels(reason="cooldown").inc()
            return IngestResult(MSG_INGESTED)
        if error_count < trigger.error_threshold:
            return IngestResult(MSG_INGESTED)
        if not self._cooldown.try_acquire(key, now_ms, cooldown_ms):
            AUTO_INCIDENTS_SKIPPED.labels(reason="cooldown").inc()
            return IngestResult(MSG_INGESTED)

        try:
            result, creator_id = self._open_incident(key, service, trigger, now, error_count, window_cutoff)
        except Exception:
            self._cooldown.release(key, now_ms)
            AUTO_INCIDENTS_SKIPPED.labels(reason="error").inc()
            logger.exception("Auto-incident creation failed",
                             extra={"organization_id": organization_id, "service_id": service["id"]})
            return IngestResult(MSG_INGESTED)

        if result.incident_id is None:
            self._cooldown.release(key, now_ms)
            return result

        self._attach_summary(key, service, trigger, result.incident_id, creator_id)
        return result

    # ── Private ────────────────────────────────────────────────────────

    def _open_incident(self, key: TriggerKey, service: Dict[str, Any],
                       trigger: TriggerSettings, now, error_count: int,
                       window_cutoff: int) -> Tuple[IngestResult, Optional[str]]:
        limits = limits_for(self._orgs.get_plan(key.organization_id))
        if limits.max_incidents_per_month is not None:
            this_month = self._incidents.count_since(key.organization_id, start_of_month(now))
            if this_month >= limits.max_incidents_per_month:
                AUTO_INCIDENTS_SKIPPED.labels(reason="cap_reached").inc()
                logger.warning("Skipping auto-incident: monthly cap reached (%d this month)", this_month,
                               extra={"organization_id": key.organization_id, "service_id": key.service_id,
                                      "reason": "cap_reached"})
                return IngestResult(MSG_CAP_REACHED), None

        creator_id = self._identity.resolve_creator(key.organization_id)
        if not creator_id:
            AUTO_INCIDENTS_SKIPPED.labels(reason="no_creator").inc()
            logger.warning("No system or admin user available for auto incident",
                           extra={"organization_id": key.organization_id, "reason": "no_creator"})
            return IngestResult(MSG_NO_CREATOR), None

        recent_errors = self._buffer.recent(key, RECENT_EXAMPLES, level="error", since_ms=window_cutoff)
        incident = self._incidents.create_incident(
            organization_id=key.organization_id,
            service_id=key.service_id,
            title=f"Auto-detected errors in {service['name']}",
            description=build_incident_description(error_count, trigger.window_seconds, recent_errors),
            severity="high",
            status="investigating",
            created_by_id=creator_id,
        )
        AUTO_INCIDENTS_CREATED.inc()
        logger.info("Auto-created incident from %d error logs", error_count,
                    extra={"organization_id": key.organization_id, "service_id": key.service_id,
                           "incident_id": incident["id"]})
        return IngestResult(MSG_INGESTED, incident_id=incident["id"]), creator_id

    def _attach_summary(self, key: TriggerKey, service: Dict[str, Any],
                        trigger: TriggerSettings, incident_id: str, author_id: str) -> None:
        if not trigger.ai_summary_enabled or self._summarizer is None or not self._summarizer.available:
            return
        try:
            entries = self._buffer.recent(key, trigger.summary_line_cap)
            summary = self._summarizer.summarize(entries, service["name"])
            if summary:
                self._incidents.add_update(incident_id, author_id,
                                           f"AI log summary:\n{summary}")
        except Exception as exc:
            logger.warning("Failed to store AI log summary: %s", exc, extra={"incident_id": incident_id})
