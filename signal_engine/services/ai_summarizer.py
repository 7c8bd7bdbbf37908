# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: AI log summarizer: DeepSeek chat completions over HTTP.
Applies its own timeout; failures are logged and returned as ``None``, never raised.
"""
import json
from typing import Optional, Sequence

import httpx

from signal_engine.core.clock import from_millis
from signal_engine.core.config import settings
from signal_engine.core.logging import get_logger
from signal_engine.metrics import AI_SUMMARIES
from signal_engine.models.domain import LogEvent

logger = get_logger(__name__)

MAX_LINES = 200
MAX_CONTEXT_CHARS = 200
MAX_PROMPT_LOG_CHARS = 8000

PROMPT_TEMPLATE = """You are assisting with incident triage for service "{service}".
Given the recent log lines below, produce a concise summary with:
- What changed / main symptoms
- Likely causes or components to inspect
- 3-5 suggested next steps for engineers

Keep it under 120 words. Use bullet points for suggested steps.

Logs:
{lines}"""


def format_log_lines(entries: Sequence[LogEvent]) -> str:
    lines = []
    for entry in list(entries)[-MAX_LINES:]:
        ts = from_millis(entry.timestamp_ms).isoformat()
        ctx = ""
        if entry.context:
            ctx = f" ctx={json.dumps(entry.context, default=str)[:MAX_CONTEXT_CHARS]}"
        lines.append(f"[{ts}] [{entry.level}] {entry.message}{ctx}")
    return "\n".join(lines)[:MAX_PROMPT_LOG_CHARS]


def build_prompt(entries: Sequence[LogEvent], service_name: str) -> str:
    return PROMPT_TEMPLATE.format(service=service_name, lines=format_log_lines(entries))


class AiSummarizer:
    def __init__(self, api_key: str = settings.DEEPSEEK_API_KEY,
                 api_url: str = settings.DEEPSEEK_API_URL,
                 model: str = settings.DEEPSEEK_MODEL,
                 timeout: float = settings.AI_SUMMARY_TIMEOUT,
                 enabled: bool = settings.AI_LOG_SUMMARY_ENABLED) -> None:
        self._api_key = api_key
        self._api_url = api_url
        self._model = model
        self._timeout = timeout
        self._enabled = enabled

    @property
    def available(self) -> bool:
        return self._enabled and bool(self._api_key)

    def summarize(self, entries: Sequence[LogEvent], service_name: str) -> Optional[str]:
        if not self.available or not entries:
            return None
        try:
            with httpx.Client(timeout=self._timeout) as client:
                resp = client.post(
                    self._api_url,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    json={
                        "model": self._model,
                        "messages": [
                            {"role": "system", "content": "You are a concise SRE assistant."},
                            {"role": "user", "content": build_prompt(entries, service_name)},
                        ],
                        "max_tokens": 256,
                        "temperature": 0.2,
                    },
                )
            if resp.status_code >= 400:
                AI_SUMMARIES.labels(outcome="http_error").inc()
                logger.warning("AI summary request failed: status=%d body=%s",
                               resp.status_code, resp.text[:500])
                return None
            content = resp.json()["choices"][0]["message"]["content"]
        except Exception as exc:
            AI_SUMMARIES.labels(outcome="error").inc()
            logger.warning("AI summary request error: %s", exc)
            return None
        if not isinstance(content, str) or not content.strip():
            AI_SUMMARIES.labels(outcome="empty").inc()
            return None
        AI_SUMMARIES.labels(outcome="ok").inc()
        return content.strip()
