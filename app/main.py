"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어 및 라우터 등록.

FastAPI application entry point — Middleware and router registration.
Configures request logging, CORS, health check and the admin API.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.middleware.axiom_logging import AxiomLoggingMiddleware
from app.utils.exceptions import PersistenceError, ValidationError

app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Axiom API 로깅 미들웨어 — CORS보다 먼저 등록하여 모든 요청을 캡처
# (Registered before CORS to capture all requests)
app.add_middleware(AxiomLoggingMiddleware)

# CORS 미들웨어 — Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 검증 오류를 400으로 변환합니다.

    Render request validation failures as 400 with the offending field
    named, like the ValidationError raised by services.
    """
    messages: list[str] = []
    for error in exc.errors():
        # "body", "query", "path" 접두어 제거 — drop the location prefix
        field: str = ".".join(str(part) for part in error.get("loc", ())[1:]) or "request"
        messages.append(f"{field}: {error.get('msg', 'invalid value')}")
    error: ValidationError = ValidationError("; ".join(messages) or "Invalid request")
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """커밋 중 발생한 저장소 오류를 500으로 변환 (Storage failures during commit become 500)."""
    error: PersistenceError = PersistenceError(f"Failed to persist changes: {type(exc).__name__}")
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# 라우터 등록 — Router registration
# ---------------------------------------------------------------------------
from app.api.admin import admin_router  # noqa: E402

app.include_router(admin_router, prefix="/api/v1/admin")
