"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Provides pre-configured HTTPException subclasses for the schedule error taxonomy.
Services raise these directly; FastAPI renders them as {"detail": ...}.
None of these are retried; every failure is reported in the same request.

Usage:
    from app.utils.exceptions import NotFoundError, LockedScheduleError
    raise NotFoundError("Schedule not found")
    raise LockedScheduleError()
"""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 요청한 리소스를 찾을 수 없을 때 사용.

    404 Not Found exception.
    Raised when a schedule, day index, time block, position or catalog record
    does not resolve. The detail names the identifier that failed.

    Args:
        detail: 오류 메시지 (Error message, default: "Resource not found")
    """

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class LockedScheduleError(HTTPException):
    """409 Conflict 예외 — 게시된 스케줄 구조 변경 시도 시 사용.

    409 Conflict exception.
    Raised when a structural or assignment mutation targets a published,
    non-template schedule.

    Args:
        detail: 오류 메시지 (Error message with remediation hint)
    """

    def __init__(
        self,
        detail: str = "Cannot modify a published schedule. Unpublish or copy it first.",
    ) -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class StaleScheduleError(HTTPException):
    """409 Conflict 예외 — 기대 버전과 저장된 버전이 다를 때 사용.

    409 Conflict exception.
    Raised when the caller supplied expected_version and the stored schedule
    has since been written by someone else.

    Args:
        expected: 호출자가 기대한 버전 (Version the caller read)
        actual: 현재 저장된 버전 (Version currently stored)
    """

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Schedule was modified concurrently (expected version {expected}, found {actual})",
        )


class ValidationError(HTTPException):
    """400 Bad Request 예외 — 필수 필드 누락, 잘못된 시간 형식 등.

    400 Bad Request exception.
    Raised for business-level validation failures beyond what Pydantic catches
    (week bounds, time strings, state transitions, unsupported files).

    Args:
        detail: 오류 메시지 (Error message)
        field: 문제가 된 필드 이름, 선택 (Offending field name, optional)
    """

    def __init__(self, detail: str = "Bad request", field: str | None = None) -> None:
        self.field: str | None = field
        if field:
            detail = f"{field}: {detail}"
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden 예외 — 권한 부족 시 사용.

    403 Forbidden exception.
    Raised when the caller's store does not own the record, or the caller's
    role level is insufficient.

    Args:
        detail: 오류 메시지 (Error message, default: "Insufficient permissions")
    """

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외 — 인증 실패 시 사용.

    401 Unauthorized exception.
    Raised when authentication is missing, invalid, or expired.

    Args:
        detail: 오류 메시지 (Error message, default: "Authentication required")
    """

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class PersistenceError(HTTPException):
    """500 Internal Server Error 예외 — 저장소 실패 시 사용.

    500 exception wrapping an underlying storage failure.
    Never retried automatically: mutations are not idempotent.

    Args:
        detail: 오류 메시지 (Error message)
    """

    def __init__(self, detail: str = "Failed to persist schedule") -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
