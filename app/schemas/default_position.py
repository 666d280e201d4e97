"""기본 포지션 카탈로그 요청/응답 스키마 정의.

Default position catalog request/response schemas.
A catalog entry is keyed by (weekday, labor period) within the caller's store.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.utils.taxonomy import Department, LaborPeriod


class CatalogPosition(BaseModel):
    """카탈로그 포지션 템플릿 — 이름 + 부서 (Seed position: name and department)."""

    name: str = Field(..., min_length=1)  # 포지션 이름 (Position name)
    department: Department  # 부서 — 레거시 표기 허용 (Department, legacy labels accepted)

    @field_validator("department", mode="before")
    @classmethod
    def _parse_department(cls, value: Any) -> Department:
        return Department.parse(value)


class DefaultPositionUpsert(BaseModel):
    """기본 포지션 생성/갱신 요청 스키마.

    Default positions upsert request. The (weekday, period) pair is the key:
    an existing entry for the pair is replaced, otherwise one is created.

    Attributes:
        name: 카탈로그 이름, 없으면 "요일 시간대" (Label, defaults to "<Weekday> <Period>")
        weekday: 요일 인덱스 0=일요일 (Weekday index, Sunday = 0)
        period: 시간대 이름, 대소문자 무시 (Labor period name, case-insensitive)
        positions: 시드 포지션 목록 (Seed positions in display order)
    """

    name: str | None = Field(None, min_length=1)
    weekday: int = Field(..., ge=0, le=6)
    period: LaborPeriod
    positions: list[CatalogPosition] = []

    @field_validator("period", mode="before")
    @classmethod
    def _parse_period(cls, value: Any) -> LaborPeriod:
        return LaborPeriod.parse(value)


class DefaultPositionResponse(BaseModel):
    """기본 포지션 응답 스키마 (Catalog entry response)."""

    id: str  # 카탈로그 UUID 문자열 (Catalog entry UUID as string)
    store_id: str  # 매장 UUID 문자열 (Store UUID as string)
    name: str
    weekday: int
    period: str
    positions: list[dict[str, Any]]  # [{"name", "department"}]
    created_at: datetime
    updated_at: datetime
