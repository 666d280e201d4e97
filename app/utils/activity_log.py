"""스케줄 활동 이벤트 로깅 모듈.

Schedule activity event logging.
Ships one structured event per domain action (creation, status change,
copy, template, delete, import summary) to the same Axiom dataset as the request logs.
No-op when Axiom is not configured; a logging failure never breaks a request.

Usage:
    from app.utils.activity_log import log_activity
    log_activity("schedule.status_changed", store_id=store_id, schedule_id=schedule.id, status="published")
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from axiom_py import Client as AxiomClient

from app.config import settings

_client: AxiomClient | None = None


def get_axiom_client() -> AxiomClient | None:
    """Axiom 클라이언트 싱글턴 — 미설정 시 None (Shared client, None when unconfigured)."""
    global _client
    if _client is None and settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
        _client = AxiomClient(token=settings.AXIOM_API_TOKEN)
    return _client


def _plain(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    return value


def log_activity(event: str, **fields: Any) -> None:
    """도메인 이벤트를 Axiom으로 전송합니다.

    Send one domain activity event to Axiom.

    Args:
        event: 이벤트 이름 (Dotted event name, e.g. "schedule.copied")
        **fields: 이벤트 속성 — UUID는 문자열로 변환 (Event attributes; UUIDs are stringified)
    """
    client: AxiomClient | None = get_axiom_client()
    if client is None:
        return

    log_event: dict[str, Any] = {
        "event": event,
        "_time": datetime.now(timezone.utc).isoformat(),
        **{key: _plain(value) for key, value in fields.items()},
    }
    try:
        client.ingest_events(settings.AXIOM_DATASET, [log_event])
    except Exception:
        pass  # 로깅 실패가 요청 처리에 영향주지 않도록 — Never break request on log failure
