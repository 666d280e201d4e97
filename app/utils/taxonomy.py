"""근무 시간대·부서·요일 분류 및 시간 변환 유틸리티 모듈.

Labor period, department and weekday taxonomy with time helpers.
Pure lookups and conversions shared by the schedule document model,
the default position catalog, the spreadsheet importer and auto-assignment.

Labor Periods (fixed, store-wide):
    Opening 05:00–08:00, Morning 08:00–11:00, Lunch 11:00–14:00,
    Afternoon 14:00–17:00, Dinner 17:00–20:00, Closing 20:00–23:00

Weekday index convention: 0 = Sunday … 6 = Saturday.
"""

import re
from datetime import date, timedelta
from enum import Enum


class LaborPeriod(str, Enum):
    """근무 시간대 — 6개의 고정 시간대 (Six canonical labor periods, in day order)."""

    OPENING = "Opening"
    MORNING = "Morning"
    LUNCH = "Lunch"
    AFTERNOON = "Afternoon"
    DINNER = "Dinner"
    CLOSING = "Closing"

    @property
    def index(self) -> int:
        return PERIOD_ORDER.index(self)

    @property
    def start_time(self) -> str:
        return PERIOD_BOUNDS[self][0]

    @property
    def end_time(self) -> str:
        return PERIOD_BOUNDS[self][1]

    @classmethod
    def parse(cls, value: "str | LaborPeriod") -> "LaborPeriod":
        """대소문자 무시 시간대 이름 파싱 (Case-insensitive period name lookup)."""
        if isinstance(value, LaborPeriod):
            return value
        key: str = str(value).strip().lower()
        for period in cls:
            if period.value.lower() == key:
                return period
        raise ValueError(f"Unknown labor period: '{value}'")


PERIOD_ORDER: list[LaborPeriod] = list(LaborPeriod)

# 시간대 경계 — (start, end) in "HH:MM"
PERIOD_BOUNDS: dict[LaborPeriod, tuple[str, str]] = {
    LaborPeriod.OPENING: ("05:00", "08:00"),
    LaborPeriod.MORNING: ("08:00", "11:00"),
    LaborPeriod.LUNCH: ("11:00", "14:00"),
    LaborPeriod.AFTERNOON: ("14:00", "17:00"),
    LaborPeriod.DINNER: ("17:00", "20:00"),
    LaborPeriod.CLOSING: ("20:00", "23:00"),
}


class Department(str, Enum):
    """부서 — 포지션, 기본 포지션, 임포터가 공유하는 닫힌 열거형.

    Closed department vocabulary shared by positions, the default catalog
    and the importer. Legacy spellings are folded in by parse().
    """

    FRONT_COUNTER = "FC"
    DRIVE_THRU = "DT"
    KITCHEN = "KT"

    @classmethod
    def parse(cls, value: "str | Department") -> "Department":
        """레거시 표기를 포함한 부서 문자열 파싱.

        Parse a department label, accepting legacy spellings.

        Raises:
            ValueError: 알 수 없는 부서 (Unknown department label)
        """
        if isinstance(value, Department):
            return value
        key: str = re.sub(r"[\s_\-]+", " ", str(value)).strip().lower()
        department: Department | None = _DEPARTMENT_ALIASES.get(key)
        if department is None:
            raise ValueError(f"Unknown department: '{value}'")
        return department

    @property
    def label(self) -> str:
        return _DEPARTMENT_LABELS[self]


_DEPARTMENT_ALIASES: dict[str, Department] = {
    "fc": Department.FRONT_COUNTER,
    "front counter": Department.FRONT_COUNTER,
    "front": Department.FRONT_COUNTER,
    "foh": Department.FRONT_COUNTER,
    "front of house": Department.FRONT_COUNTER,
    "dt": Department.DRIVE_THRU,
    "drive thru": Department.DRIVE_THRU,
    "drive through": Department.DRIVE_THRU,
    "drivethru": Department.DRIVE_THRU,
    "kt": Department.KITCHEN,
    "kitchen": Department.KITCHEN,
    "boh": Department.KITCHEN,
    "back of house": Department.KITCHEN,
}

_DEPARTMENT_LABELS: dict[Department, str] = {
    Department.FRONT_COUNTER: "Front Counter",
    Department.DRIVE_THRU: "Drive-Thru",
    Department.KITCHEN: "Kitchen",
}


# === 요일 (Weekdays) ===

WEEKDAY_NAMES: list[str] = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def weekday_index(day: date) -> int:
    """날짜의 요일 인덱스 (0=일요일) — Sunday-based weekday index of a date."""
    return (day.weekday() + 1) % 7


def week_start_for(day: date, sunday_start: bool = True) -> date:
    """날짜가 속한 주의 시작일 (First day of the week containing the date)."""
    offset: int = weekday_index(day) if sunday_start else day.weekday()
    return day - timedelta(days=offset)


def parse_weekday(label: str) -> int | None:
    """요일 라벨을 인덱스로 변환합니다. 전체 이름 또는 3글자 약어.

    Convert a weekday label ("Monday", "mon", "TUE") to its Sunday-based index.
    Returns None when the label is not a weekday.
    """
    key: str = str(label).strip().lower()
    if len(key) < 3:
        return None
    for i, name in enumerate(WEEKDAY_NAMES):
        lowered: str = name.lower()
        if key == lowered or (len(key) >= 3 and lowered.startswith(key)):
            return i
    return None


# === 시간 변환 (Time conversion) ===

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_TWELVE_HOUR = re.compile(r"^(\d{1,2}):(\d{2})([ap])$")


def is_hhmm(value: str) -> bool:
    """24시간 "HH:MM" 형식 여부 (Whether value is a 24-hour HH:MM string)."""
    return bool(_HHMM.match(value))


def time_to_minutes(value: str) -> int:
    """ "HH:MM" → 자정 이후 분 (Minutes since midnight)."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def convert_to_24_hour(value: str) -> str | None:
    """12시간 표기("5:00a", "2:30p")를 24시간 "HH:MM"으로 변환합니다.

    Convert a 12-hour clock string to 24-hour "HH:MM".
    Stray characters (encoding artifacts, spaces, "m" of "am") are stripped
    before matching. 12a → 00, 12p stays 12, other p hours get +12.

    Returns:
        str | None: 변환 결과, 인식 불가 시 None (None when unrecognised)
    """
    cleaned: str = re.sub(r"[^0-9:ap]", "", str(value).lower())
    match = _TWELVE_HOUR.match(cleaned)
    if match is None:
        return None

    hours: int = int(match.group(1))
    minutes: int = int(match.group(2))
    meridiem: str = match.group(3)
    if not 1 <= hours <= 12 or minutes > 59:
        return None

    if meridiem == "p" and hours < 12:
        hours += 12
    elif meridiem == "a" and hours == 12:
        hours = 0
    return f"{hours:02d}:{minutes:02d}"


def overlaps(start: str, end: str, window_start: str, window_end: str) -> bool:
    """두 시간 구간이 비어있지 않게 겹치는지 판정합니다.

    True when [start, end) and [window_start, window_end) share any time.
    An end at or before its start runs past midnight.
    """
    start_minutes: int = time_to_minutes(start)
    end_minutes: int = time_to_minutes(end)
    if end_minutes <= start_minutes:
        end_minutes += 24 * 60
    window_start_minutes: int = time_to_minutes(window_start)
    window_end_minutes: int = time_to_minutes(window_end)
    return not (end_minutes <= window_start_minutes or start_minutes >= window_end_minutes)


def determine_periods(start: str, end: str) -> list[int]:
    """근무 시간과 겹치는 모든 시간대 인덱스를 반환합니다.

    Return the indices of every labor period the shift [start, end) overlaps.
    """
    return [
        period.index
        for period in PERIOD_ORDER
        if overlaps(start, end, period.start_time, period.end_time)
    ]


def overlap_minutes(start: str, end: str, window_start: str, window_end: str) -> int:
    """겹치는 분 수 (Overlap length in minutes, 0 when disjoint)."""
    start_minutes: int = time_to_minutes(start)
    end_minutes: int = time_to_minutes(end)
    if end_minutes <= start_minutes:
        end_minutes += 24 * 60
    return max(
        0,
        min(end_minutes, time_to_minutes(window_end)) - max(start_minutes, time_to_minutes(window_start)),
    )
