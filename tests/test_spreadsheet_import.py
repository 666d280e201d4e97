"""스프레드시트 임포트 파싱 유닛 테스트 (DB 없음).

Tests generate_sample_excel, header alias resolution, row skipping,
availability expansion and the xlsx / csv / xls readers.
"""

from datetime import datetime
from io import BytesIO

import pytest
from openpyxl import Workbook, load_workbook

from app.config import settings
from app.services.spreadsheet_import_service import (
    SAMPLE_HEADERS,
    SpreadsheetImportService,
)
from app.utils.exceptions import ValidationError
from app.utils.taxonomy import Department, LaborPeriod

service = SpreadsheetImportService()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_excel(rows: list[list], headers: list[str] | None = None) -> bytes:
    """Build a minimal xlsx from a list of rows."""
    wb = Workbook()
    ws = wb.active
    ws.append(headers or ["Name", "Day", "Shift Time", "Department"])
    for row in rows:
        ws.append(row)
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# 1. 행 파싱 (Row parsing)
# ---------------------------------------------------------------------------

class TestParseRows:
    """행 → 업로드 직원 + 가용 레코드."""

    def test_malformed_time_is_skipped_not_fatal(self):
        rows = [
            ("Name", "Day", "Shift Time", "Department"),
            ("Ann Lee", "Sunday", "5:00a - 9:00a", "FC"),
            ("Bob Ray", "Sunday", "abc", "FC"),
            ("Cat Wu", "Monday", "11:00a - 2:00p", "KT"),
        ]
        parsed = service.parse_rows(rows)

        assert [e.name for e in parsed.uploaded] == ["Ann Lee", "Cat Wu"]
        assert len(parsed.skipped_rows) == 1
        assert parsed.skipped_rows[0].row == 3
        assert "abc" in parsed.skipped_rows[0].reason

    def test_availability_expands_per_overlapping_period(self):
        rows = [
            ("Name", "Day", "Shift Time", "Department"),
            ("Ann Lee", "Sunday", "5:00a - 9:00a", "Front Counter"),
        ]
        parsed = service.parse_rows(rows)
        periods = [a.period_index for a in parsed.availability]

        assert periods == [LaborPeriod.OPENING.index, LaborPeriod.MORNING.index]
        assert all(a.department is Department.FRONT_COUNTER for a in parsed.availability)
        assert all(a.day_index == 0 for a in parsed.availability)
        assert parsed.availability[0].start_time == "05:00"
        assert parsed.availability[0].end_time == "09:00"

    def test_uploaded_rows_are_kept_verbatim(self):
        rows = [
            ("Employee Name", "Work Day", "Time", "Dept"),
            ("Ann Lee", "tue", "6:00a - 2:00p", "foh"),
        ]
        parsed = service.parse_rows(rows)
        row = parsed.uploaded[0]
        assert (row.name, row.day, row.time, row.department) == ("Ann Lee", "tue", "6:00a - 2:00p", "foh")

    @pytest.mark.parametrize("row, reason", [
        (("", "Sunday", "5:00a - 9:00a", "FC"), "Missing name"),
        (("Ann", "Someday", "5:00a - 9:00a", "FC"), "Unknown day"),
        (("Ann", "Sunday", "5:00a - 9:00a", "Lobby"), "Unknown department"),
        (("Ann", "Sunday", "5:00a", "FC"), "Unparsable shift time"),
    ])
    def test_skip_reasons(self, row, reason):
        parsed = service.parse_rows([("Name", "Day", "Shift Time", "Department"), row])
        assert parsed.uploaded == []
        assert parsed.skipped_rows[0].reason.startswith(reason)

    def test_blank_rows_are_ignored(self):
        rows = [
            ("Name", "Day", "Shift Time", "Department"),
            (None, None, None, None),
            ("Ann", "Sunday", "5:00a - 9:00a", "FC"),
        ]
        parsed = service.parse_rows(rows)
        assert len(parsed.uploaded) == 1
        assert parsed.skipped_rows == []

    def test_missing_column_raises(self):
        with pytest.raises(ValidationError) as exc:
            service.parse_rows([("Name", "Day", "Department"), ("Ann", "Sunday", "FC")])
        assert "time" in exc.value.detail

    def test_empty_file_raises(self):
        with pytest.raises(ValidationError):
            service.parse_rows([])


# ---------------------------------------------------------------------------
# 2. 주간 근무표 (Weekly roster layout)
# ---------------------------------------------------------------------------

class TestWeeklyRoster:
    """직원당 한 행, 요일별 컬럼."""

    HEADERS = ("Employee", "Sun, 5/18/25", "Mon, 5/19/25", "Tue, 5/20/25")

    def test_entries_become_uploaded_rows(self):
        rows = [
            self.HEADERS,
            ("Ann Lee", "5:00 AM - 9:00 AM Leadership | FOH - Shift Leader", None, ""),
            ("Bo Kim", None, "11:00 AM - 2:00 PM BOH - Team Member", None),
        ]
        parsed = service.parse_rows(rows)

        assert [(e.name, e.day, e.department) for e in parsed.uploaded] == [
            ("Ann Lee", "Sunday", "FC"),
            ("Bo Kim", "Monday", "KT"),
        ]
        assert parsed.uploaded[0].time == "5:00 AM - 9:00 AM"
        assert parsed.skipped_rows == []

        ann = [r for r in parsed.availability if r.employee_name == "Ann Lee"]
        assert [r.period_index for r in ann] == [0, 1]
        assert {(r.day_index, r.start_time, r.end_time) for r in ann} == {(0, "05:00", "09:00")}
        bo = [r for r in parsed.availability if r.employee_name == "Bo Kim"]
        assert [(r.day_index, r.department, r.period_index) for r in bo] == [
            (1, Department.KITCHEN, LaborPeriod.LUNCH.index),
        ]

    def test_several_shifts_in_one_cell(self):
        rows = [
            self.HEADERS,
            ("Ann Lee", None, None, "5:00 AM - 8:00 AM FOH\n5:00 PM - 8:00 PM Drive-Thru"),
        ]
        parsed = service.parse_rows(rows)

        assert [(e.day, e.department) for e in parsed.uploaded] == [("Tuesday", "FC"), ("Tuesday", "DT")]
        assert [(r.day_index, r.period_index) for r in parsed.availability] == [
            (2, LaborPeriod.OPENING.index),
            (2, LaborPeriod.DINNER.index),
        ]

    def test_unparsable_line_is_skipped_per_line(self):
        rows = [
            self.HEADERS,
            ("Ann Lee", "whenever\n5:00 AM - 8:00 AM FOH", None, None),
            (None, "5:00 AM - 8:00 AM FOH", None, None),
        ]
        parsed = service.parse_rows(rows)

        assert len(parsed.uploaded) == 1
        assert [(s.row, s.reason) for s in parsed.skipped_rows] == [
            (2, "Unparsable shift 'whenever' on Sunday"),
            (3, "Missing name"),
        ]

    def test_xlsx_with_date_headers(self):
        wb = Workbook()
        ws = wb.active
        ws.append(["Name", datetime(2025, 3, 2), datetime(2025, 3, 3)])
        ws.append(["Ann Lee", "", "2:00 PM - 5:00 PM Kitchen"])
        buf = BytesIO()
        wb.save(buf)

        parsed = service.parse(buf.getvalue(), "roster.xlsx")
        assert [(e.day, e.department) for e in parsed.uploaded] == [("Monday", "KT")]
        assert parsed.availability[0].period_index == LaborPeriod.AFTERNOON.index


# ---------------------------------------------------------------------------
# 3. 파일 형식 (File formats)
# ---------------------------------------------------------------------------

class TestReadFormats:
    """xlsx / csv / xls 판별."""

    def test_xlsx(self):
        content = make_excel([["Ann", "Sunday", "5:00a - 9:00a", "FC"]])
        parsed = service.parse(content, "roster.xlsx")
        assert parsed.uploaded[0].name == "Ann"

    def test_xlsx_date_cell_is_read_as_weekday(self):
        content = make_excel([["Ann", datetime(2025, 3, 4), "5:00a - 9:00a", "FC"]])
        parsed = service.parse(content, "roster.xlsx")
        assert parsed.availability[0].day_index == 2

    def test_csv_with_semicolons_and_bom(self):
        content = "\ufeffName;Day;Shift Time;Department\nAnn;Monday;4:00p - 11:00p;DT\n".encode("utf-8")
        parsed = service.parse(content, "roster.csv")
        assert parsed.uploaded[0].department == "DT"
        assert [a.period_index for a in parsed.availability] == [
            LaborPeriod.AFTERNOON.index, LaborPeriod.DINNER.index, LaborPeriod.CLOSING.index,
        ]

    def test_xls_with_text_payload_is_read_as_csv(self):
        content = b"Name,Day,Shift Time,Department\nAnn,Friday,2:00p - 10:00p,KT\n"
        parsed = service.parse(content, "export.xls")
        assert parsed.availability[0].day_index == 5

    def test_xls_with_zip_payload_is_read_as_xlsx(self):
        content = make_excel([["Ann", "Sunday", "5:00a - 9:00a", "FC"]])
        assert service.parse(content, "export.xls").uploaded[0].name == "Ann"

    def test_binary_xls_rejected(self):
        content = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 64
        with pytest.raises(ValidationError):
            service.parse(content, "legacy.xls")

    def test_unsupported_extension(self):
        with pytest.raises(ValidationError):
            service.parse(b"whatever", "roster.pdf")

    def test_size_limit(self, monkeypatch):
        monkeypatch.setattr(settings, "IMPORT_MAX_BYTES", 10)
        with pytest.raises(ValidationError):
            service.parse(b"Name,Day,Shift Time,Department\n", "roster.csv")


# ---------------------------------------------------------------------------
# 4. 샘플 (Sample workbook)
# ---------------------------------------------------------------------------

class TestGenerateSampleExcel:
    """샘플 Excel 생성 검증."""

    def test_headers_and_rows_parse_cleanly(self):
        data = SpreadsheetImportService.generate_sample_excel()
        wb = load_workbook(BytesIO(data))
        ws = wb["Roster"]
        assert [c.value for c in ws[1]] == SAMPLE_HEADERS
        assert "Guide" in wb.sheetnames

        parsed = service.parse(data, "sample.xlsx")
        assert parsed.skipped_rows == []
        assert len(parsed.uploaded) == ws.max_row - 1
