"""스프레드시트 임포트 서비스 — 직원 근무표 파싱 및 스케줄 반영.

Spreadsheet Import Service — Parses third-party roster exports
(employee name, weekday, shift time range, department), turns each shift
into per-labor-period availability records, and feeds them to
auto-assignment on a new or existing schedule.

Accepted layouts:
    one shift per row  — Name, Day, Shift Time, Department columns
    weekly roster      — one employee per row, one column per weekday,
                         cells like "5:00 AM - 2:00 PM Leadership | FOH"

Accepted formats:
    .xlsx — openpyxl, first worksheet, header on row 1
    .csv  — csv module, delimiter sniffed among , ; tab
    .xls  — sniffed: zip payload → openpyxl, text → csv, BIFF → rejected

Row-level problems (missing field, unknown day/department, unparsable time)
skip the row and are reported; they never abort the import.
"""

import csv
import io
import re
import zipfile
from datetime import date, timedelta
from io import BytesIO
from pathlib import Path
from typing import Any
from uuid import UUID

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.schedule import Schedule
from app.schemas.schedule import ScheduleCreate, SkippedRow, UploadedEmployee
from app.services.auto_assign_service import AssignmentOutcome, auto_assign_service
from app.services.schedule_service import schedule_service
from app.utils.activity_log import log_activity
from app.utils.exceptions import ValidationError
from app.utils.taxonomy import (
    Department,
    WEEKDAY_NAMES,
    convert_to_24_hour,
    determine_periods,
    parse_weekday,
    weekday_index,
    week_start_for,
)

# 논리 컬럼별 허용 헤더 — 앞에 있을수록 우선 (Accepted headers per logical column, first match wins)
COLUMN_ALIASES: dict[str, list[str]] = {
    "name": ["name", "employee", "employeename", "employee name"],
    "time": ["shifttime", "shift time", "time", "shift"],
    "day": ["day", "workday", "work day", "weekday"],
    "department": ["department", "dept"],
}

SAMPLE_HEADERS: list[str] = ["Name", "Day", "Shift Time", "Department"]

_OLE_MAGIC: bytes = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
_RANGE_SPLIT = re.compile(r"\s*[-–]\s*")
_SHIFT_ENTRY = re.compile(
    r"(\d{1,2}:\d{2}\s*(?:am|pm|a|p))\s*[-–]\s*(\d{1,2}:\d{2}\s*(?:am|pm|a|p))",
    re.IGNORECASE,
)


class ShiftAvailability(BaseModel):
    """가용 레코드 — 직원이 특정 요일·시간대에 근무 가능함.

    One employee available for one labor period on one weekday.
    day_index follows the Sunday = 0 weekday convention.
    """

    employee_name: str
    department: Department
    day_index: int
    period_index: int
    start_time: str
    end_time: str


class ParsedSpreadsheet(BaseModel):
    """파싱 결과 — 업로드 직원, 가용 레코드, 건너뛴 행 (Parse result)."""

    uploaded: list[UploadedEmployee] = []
    availability: list[ShiftAvailability] = []
    skipped_rows: list[SkippedRow] = []


def _normalise_header(value: Any) -> str:
    return re.sub(r"[\s_]+", " ", str(value or "")).strip().lower()


def _find_columns(headers: list[Any]) -> dict[str, int]:
    """헤더 행에서 논리 컬럼 위치를 찾습니다 (Locate logical columns by alias, first match wins)."""
    normalised: list[str] = [_normalise_header(h) for h in headers]
    compact: list[str] = [h.replace(" ", "") for h in normalised]
    columns: dict[str, int] = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in normalised:
                columns[field] = normalised.index(alias)
                break
            if alias.replace(" ", "") in compact:
                columns[field] = compact.index(alias.replace(" ", ""))
                break
    return columns


def _resolve_columns(headers: list[Any]) -> dict[str, int]:
    """세로형 표의 필수 컬럼을 모두 찾습니다.

    Locate every required column of a one-shift-per-row sheet.

    Raises:
        ValidationError: 필수 컬럼 누락 (Required column missing)
    """
    columns: dict[str, int] = _find_columns(headers)
    missing: list[str] = [field for field in COLUMN_ALIASES if field not in columns]
    if missing:
        raise ValidationError(f"Missing required columns: {', '.join(missing)}", field="file")
    return columns


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _day_of(value: Any) -> int | None:
    # openpyxl은 날짜 셀을 datetime으로 반환 — date cells come back as datetime
    if isinstance(value, date):
        return weekday_index(value)
    return parse_weekday(_cell_text(value))


def _weekday_columns(headers: list[Any], skip: int) -> dict[int, int]:
    """주간 근무표의 요일 컬럼을 찾습니다.

    Map column index → weekday for weekly roster headers such as
    "Sun, 5/18/25", "Monday" or a date cell. The first column per
    weekday wins; the name column is never a weekday column.
    """
    found: dict[int, int] = {}
    for idx, header in enumerate(headers):
        if idx == skip or header is None:
            continue
        if isinstance(header, date):
            day: int | None = weekday_index(header)
        else:
            words: list[str] = re.split(r"[\s,./]+", _normalise_header(header))
            day = parse_weekday(words[0]) if words and words[0] else None
        if day is not None and day not in found.values():
            found[idx] = day
    return found


def _roster_department(text: str) -> Department:
    # "Leadership | FOH - Shift Leader" 같은 직무 설명에서 부서 추출 — department from the role text
    lowered: str = text.lower()
    if any(word in lowered for word in ("boh", "kitchen", "back of house")):
        return Department.KITCHEN
    if "drive" in lowered:
        return Department.DRIVE_THRU
    return Department.FRONT_COUNTER


class SpreadsheetImportService:
    """스프레드시트 임포트 서비스.

    Spreadsheet parsing, sample workbook generation and the import
    orchestration that applies auto-assignment to a schedule.
    """

    # === 파일 읽기 (Reading) ===

    def _read_xlsx(self, content: bytes) -> list[tuple[Any, ...]]:
        try:
            wb = load_workbook(filename=BytesIO(content), read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError):
            raise ValidationError("Unreadable Excel workbook", field="file")
        try:
            ws = wb.active
            return [tuple(row) for row in ws.iter_rows(values_only=True)]
        finally:
            wb.close()

    def _read_csv(self, content: bytes) -> list[tuple[Any, ...]]:
        try:
            text: str = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = content.decode("latin-1")

        try:
            dialect: Any = csv.Sniffer().sniff(text[:4096], delimiters=",;\t")
        except csv.Error:
            dialect = csv.excel
        return [tuple(row) for row in csv.reader(io.StringIO(text), dialect)]

    def read_rows(self, content: bytes, filename: str) -> list[tuple[Any, ...]]:
        """파일 형식을 판별하여 모든 행을 읽습니다.

        Read every row of an uploaded spreadsheet, header included.

        Args:
            content: 파일 바이트 (File content)
            filename: 원본 파일 이름 — 확장자로 형식 판별 (Original name, extension picks the reader)

        Raises:
            ValidationError: 지원하지 않는 형식, 크기 초과, 읽기 실패
                (Unsupported type, oversized or unreadable file)
        """
        if len(content) > settings.IMPORT_MAX_BYTES:
            raise ValidationError(
                f"File exceeds the {settings.IMPORT_MAX_BYTES // (1024 * 1024)}MB upload limit",
                field="file",
            )

        extension: str = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if extension == "xlsx":
            return self._read_xlsx(content)
        if extension == "csv":
            return self._read_csv(content)
        if extension == "xls":
            # 레거시 .xls 내보내기는 대부분 xlsx 또는 구분자 텍스트 — legacy exports are usually zip or text
            if content.startswith(b"PK"):
                return self._read_xlsx(content)
            if content.startswith(_OLE_MAGIC):
                raise ValidationError(
                    "Binary .xls workbooks are not supported; save the file as .xlsx or .csv",
                    field="file",
                )
            return self._read_csv(content)
        raise ValidationError(
            f"Unsupported file type '.{extension}'; upload .xlsx, .xls or .csv",
            field="file",
        )

    # === 파싱 (Parsing) ===

    def parse_rows(self, rows: list[tuple[Any, ...]]) -> ParsedSpreadsheet:
        """행 목록을 업로드 직원과 가용 레코드로 변환합니다.

        Turn raw sheet rows into uploaded employees and availability records.
        Two layouts are recognised: one shift per row (Name, Day, Shift Time,
        Department), and the weekly roster with one employee per row and one
        column per weekday. Rows are numbered as in the sheet (header = row 1).
        Blank rows are ignored; every other unusable row is reported in
        skipped_rows.

        Raises:
            ValidationError: 헤더 없음 또는 필수 컬럼 누락 (No header or missing columns)
        """
        if not rows:
            raise ValidationError("The file is empty", field="file")

        headers: list[Any] = list(rows[0])
        found: dict[str, int] = _find_columns(headers)
        if "day" not in found or "time" not in found:
            name_column: int = found.get("name", 0)
            weekday_columns: dict[int, int] = _weekday_columns(headers, skip=name_column)
            if weekday_columns:
                return self.parse_weekly_roster(rows, name_column, weekday_columns)

        columns: dict[str, int] = _resolve_columns(headers)
        result: ParsedSpreadsheet = ParsedSpreadsheet()

        for row_num, row in enumerate(rows[1:], start=2):
            cells: list[Any] = list(row)
            if all(_cell_text(cell) == "" for cell in cells):
                continue

            def get_val(field: str) -> Any:
                idx: int = columns[field]
                return cells[idx] if idx < len(cells) else None

            name: str = _cell_text(get_val("name"))
            time_raw: str = _cell_text(get_val("time"))
            day_raw: Any = get_val("day")
            department_raw: str = _cell_text(get_val("department"))

            missing: list[str] = [
                field
                for field, value in (
                    ("name", name),
                    ("time", time_raw),
                    ("day", _cell_text(day_raw)),
                    ("department", department_raw),
                )
                if not value
            ]
            if missing:
                result.skipped_rows.append(SkippedRow(row=row_num, reason=f"Missing {', '.join(missing)}"))
                continue

            day_index: int | None = _day_of(day_raw)
            if day_index is None:
                result.skipped_rows.append(SkippedRow(row=row_num, reason=f"Unknown day '{_cell_text(day_raw)}'"))
                continue

            try:
                department: Department = Department.parse(department_raw)
            except ValueError:
                result.skipped_rows.append(SkippedRow(row=row_num, reason=f"Unknown department '{department_raw}'"))
                continue

            parts: list[str] = _RANGE_SPLIT.split(time_raw)
            times: list[str | None] = [convert_to_24_hour(p) for p in parts] if len(parts) == 2 else [None]
            if any(t is None for t in times):
                result.skipped_rows.append(SkippedRow(row=row_num, reason=f"Unparsable shift time '{time_raw}'"))
                continue
            start_time, end_time = times

            result.uploaded.append(UploadedEmployee(
                name=name,
                time=time_raw,
                day=_cell_text(day_raw),
                department=department_raw,
            ))
            for period_index in determine_periods(start_time, end_time):
                result.availability.append(ShiftAvailability(
                    employee_name=name,
                    department=department,
                    day_index=day_index,
                    period_index=period_index,
                    start_time=start_time,
                    end_time=end_time,
                ))

        return result

    def parse_weekly_roster(
        self,
        rows: list[tuple[Any, ...]],
        name_column: int,
        weekday_columns: dict[int, int],
    ) -> ParsedSpreadsheet:
        """주간 근무표(직원당 한 행, 요일별 컬럼)를 파싱합니다.

        Parse a weekly roster export: one employee per row, one column per
        weekday, each cell holding zero or more newline-separated entries
        such as "5:00 AM - 2:00 PM Leadership | FOH - Shift Leader". The
        department comes from the text after the time range (BOH/Kitchen →
        KT, Drive-Thru → DT, anything else FC). Each entry becomes one
        uploaded employee; an entry line without a time range is skipped
        and reported with its row.

        Args:
            rows: 헤더 포함 전체 행 (Every row, header included)
            name_column: 직원 이름 컬럼 위치 (Index of the name column)
            weekday_columns: 컬럼 위치 → 요일 인덱스 (Column index → weekday, Sunday = 0)
        """
        result: ParsedSpreadsheet = ParsedSpreadsheet()

        for row_num, row in enumerate(rows[1:], start=2):
            cells: list[Any] = list(row)
            if all(_cell_text(cell) == "" for cell in cells):
                continue

            name: str = _cell_text(cells[name_column]) if name_column < len(cells) else ""
            if not name:
                result.skipped_rows.append(SkippedRow(row=row_num, reason="Missing name"))
                continue

            for idx, day_index in weekday_columns.items():
                cell: str = _cell_text(cells[idx]) if idx < len(cells) else ""
                for line in (part.strip() for part in cell.splitlines()):
                    if not line:
                        continue
                    match = _SHIFT_ENTRY.search(line)
                    start_time: str | None = convert_to_24_hour(match.group(1)) if match else None
                    end_time: str | None = convert_to_24_hour(match.group(2)) if match else None
                    if start_time is None or end_time is None:
                        result.skipped_rows.append(SkippedRow(
                            row=row_num,
                            reason=f"Unparsable shift '{line}' on {WEEKDAY_NAMES[day_index]}",
                        ))
                        continue

                    department: Department = _roster_department(line[match.end():])
                    result.uploaded.append(UploadedEmployee(
                        name=name,
                        time=match.group(0),
                        day=WEEKDAY_NAMES[day_index],
                        department=department.value,
                    ))
                    for period_index in determine_periods(start_time, end_time):
                        result.availability.append(ShiftAvailability(
                            employee_name=name,
                            department=department,
                            day_index=day_index,
                            period_index=period_index,
                            start_time=start_time,
                            end_time=end_time,
                        ))

        return result

    def parse(self,content: bytes, filename: str) -> ParsedSpreadsheet:
        """파일을 읽고 파싱합니다 (Read and parse an uploaded spreadsheet)."""
        return self.parse_rows(self.read_rows(content, filename))

    # === 스케줄 반영 (Applying to a schedule) ===

    async def import_spreadsheet(
        self,
        db: AsyncSession,
        store_id: UUID,
        file_path: Path,
        filename: str,
        created_by: UUID,
        target_schedule_id: UUID | None = None,
        week_start_date: date | None = None,
        expected_version: int | None = None,
    ) -> tuple[Schedule, ParsedSpreadsheet, AssignmentOutcome]:
        """스프레드시트를 파싱하여 스케줄에 자동 배정합니다.

        Parse a spreadsheet and auto-assign its employees onto a schedule.
        Without a target a new draft schedule is created for week_start_date
        (default: the current week), seeded from the default positions.
        Successfully parsed rows replace the schedule's uploaded employees.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            store_id: 매장 UUID (Caller's store)
            file_path: 임시 저장된 업로드 파일 (Stored upload, removed by the caller)
            filename: 원본 파일 이름 (Original file name)
            created_by: 작성자 UUID (Caller's user id)
            target_schedule_id: 대상 스케줄, 선택 (Existing schedule to fill, optional)
            week_start_date: 새 스케줄 주 시작일, 선택 (Week of the new schedule, optional)
            expected_version: 낙관적 잠금 버전, 선택 (Optional stale-write check)

        Returns:
            tuple: (스케줄, 파싱 결과, 배정 결과) (Schedule, parse result, assignment outcome)

        Raises:
            ValidationError: 사용 가능한 행이 없음 (No usable rows)
            NotFoundError: 대상 스케줄 없음 (Target schedule not found)
            LockedScheduleError: 대상이 게시된 스케줄 (Target is published)
        """
        parsed: ParsedSpreadsheet = self.parse(file_path.read_bytes(), filename)
        if not parsed.uploaded:
            raise ValidationError(
                f"No usable rows found ({len(parsed.skipped_rows)} skipped)",
                field="file",
            )

        if target_schedule_id is not None:
            schedule: Schedule = await schedule_service.get_schedule(db, store_id, target_schedule_id)
            schedule_service.ensure_writable(schedule, expected_version)
        else:
            start: date = week_start_date or week_start_for(date.today(), settings.WEEK_STARTS_ON_SUNDAY)
            schedule = await schedule_service.create_schedule(
                db,
                store_id,
                ScheduleCreate(
                    name=f"Imported Setup {start.isoformat()}",
                    week_start_date=start,
                    week_end_date=start + timedelta(days=6),
                ),
                created_by,
            )

        days = schedule_service.load_document(schedule)
        outcome: AssignmentOutcome = auto_assign_service.assign(days, parsed.availability)

        schedule.uploaded_employees = [row.model_dump() for row in parsed.uploaded]
        await schedule_service.save_document(db, schedule, days)

        log_activity(
            "schedule.imported",
            store_id=store_id,
            schedule_id=schedule.id,
            filename=filename,
            imported_count=len(parsed.uploaded),
            skipped_count=len(parsed.skipped_rows),
            assigned_count=outcome.assigned_count,
            unplaced_count=len(outcome.unplaced),
        )
        return schedule, parsed, outcome

    # === 샘플 (Sample workbook) ===

    @staticmethod
    def generate_sample_excel() -> bytes:
        """임포트 양식 샘플 엑셀 파일을 생성합니다.

        Generate a sample workbook with the canonical headers and example rows.
        """
        wb = Workbook()
        ws = wb.active
        ws.title = "Roster"

        header_font = Font(bold=True, color="FFFFFF", size=11)
        header_fill = PatternFill(start_color="6C5CE7", end_color="6C5CE7", fill_type="solid")
        for col_idx, header in enumerate(SAMPLE_HEADERS, 1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")

        sample_data: list[list[str]] = [
            ["Maria Lopez", "Sunday", "5:00a - 2:00p", "FC"],
            ["James Carter", "Sunday", "10:30a - 6:00p", "DT"],
            ["Priya Shah", "Monday", "6:00a - 11:00a", "KT"],
            ["Daniel Kim", "Monday", "4:00p - 11:00p", "Front Counter"],
            ["Aisha Brown", "Tuesday", "11:00a - 7:00p", "Drive-Thru"],
            ["Tom Nguyen", "Wednesday", "5:00a - 1:30p", "Kitchen"],
            ["Sofia Rossi", "Friday", "2:00p - 10:00p", "FOH"],
            ["Ben Adams", "Saturday", "7:00a - 3:00p", "BOH"],
        ]
        for row_data in sample_data:
            ws.append(row_data)

        for col_letter, width in zip("ABCD", (22, 14, 18, 16)):
            ws.column_dimensions[col_letter].width = width

        guide = wb.create_sheet("Guide")
        guide.append(["Column", "Accepted values"])
        guide.append(["Name", "Employee display name"])
        guide.append(["Day", ", ".join(WEEKDAY_NAMES) + " (or Sun, Mon, ...)"])
        guide.append(["Shift Time", "Start - End in 12-hour form, e.g. 5:00a - 2:00p"])
        guide.append(["Department", "FC / DT / KT (also Front Counter, Drive-Thru, Kitchen, FOH, BOH)"])
        for cell in guide[1]:
            cell.font = Font(bold=True)

        buffer = BytesIO()
        wb.save(buffer)
        return buffer.getvalue()


# 싱글턴 인스턴스 — Singleton instance
spreadsheet_import_service: SpreadsheetImportService = SpreadsheetImportService()
