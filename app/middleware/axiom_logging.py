"""Axiom API 요청 로깅 미들웨어.

Axiom request logging middleware.
Sends one structured event per API request: method, path, path/query
params, masked JSON body, status code, duration and error detail.
Spreadsheet uploads (multipart bodies) are never read or shipped; only
their content type is recorded.
"""

import json
import re
import time
from datetime import datetime, timezone
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings
from app.utils.activity_log import get_axiom_client

# 마스킹 대상 필드 패턴 — Keys masked in logged bodies and query params
_SENSITIVE_KEYS = re.compile(
    r"(password|secret|token|authorization|api_key|credential)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

_MAX_ERROR_LEN: int = 500


def _mask(data: Any, depth: int = 0) -> Any:
    """민감 필드 재귀 마스킹 — Mask sensitive keys, cap nesting and list length."""
    if depth > 4:
        return "..."
    if isinstance(data, dict):
        return {k: "***" if _SENSITIVE_KEYS.search(k) else _mask(v, depth + 1) for k, v in data.items()}
    if isinstance(data, list):
        # 스케줄 문서의 days 같은 큰 배열은 앞부분만 (Large arrays such as days are clipped)
        return [_mask(item, depth + 1) for item in data[:7]]
    return data


async def _read_body(request: Request) -> Any:
    content_type: str = request.headers.get("content-type", "")
    if content_type.startswith("multipart/"):
        return "(multipart upload)"
    body_bytes: bytes = await request.body()
    if not body_bytes:
        return None
    try:
        return _mask(json.loads(body_bytes))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "(non-json body)"


def _error_detail(body: bytes) -> str:
    try:
        detail: Any = json.loads(body).get("detail", "")
    except (json.JSONDecodeError, UnicodeDecodeError, AttributeError):
        detail = body.decode("utf-8", errors="replace")
    text: str = detail if isinstance(detail, str) else json.dumps(detail)[:_MAX_ERROR_LEN]
    return text[:_MAX_ERROR_LEN]


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 요청을 Axiom에 로깅하는 미들웨어.

    Pass-through when Axiom is not configured.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        client = get_axiom_client()
        if client is None or request.url.path in _SKIP_PATHS:
            return await call_next(request)

        started: float = time.perf_counter()
        request_body: Any = None
        if request.method in ("POST", "PUT", "PATCH"):
            request_body = await _read_body(request)

        status_code: int = 500
        error_detail: str | None = None
        try:
            response: Response = await call_next(request)
            status_code = response.status_code

            # 에러 응답은 body를 소비해 사유를 기록한 뒤 다시 감싼다
            # Error responses: consume the body for the reason, then re-wrap it
            if status_code >= 400:
                resp_body: bytes = b""
                async for chunk in response.body_iterator:
                    resp_body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
                error_detail = _error_detail(resp_body)
                response = Response(
                    content=resp_body,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            error_detail = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            log_event: dict[str, Any] = {
                "_time": datetime.now(timezone.utc).isoformat(),
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            }
            if request.query_params:
                log_event["query_params"] = _mask(dict(request.query_params))
            if request.path_params:
                log_event["path_params"] = dict(request.path_params)
            if request_body is not None:
                log_event["request_body"] = request_body
            if error_detail:
                log_event["error"] = error_detail

            try:
                client.ingest_events(settings.AXIOM_DATASET, [log_event])
            except Exception:
                pass  # 로깅 실패가 요청 처리에 영향주지 않도록 — Never break request on log failure

        return response
