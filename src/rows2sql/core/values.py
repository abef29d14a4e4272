"""셀 값 분류 모듈.

외부 리더가 넘겨준 타입 없는 스칼라를 ValueKind 태그가 붙은
AnalyzedValue로 변환한다. TypeAnalyzer, ValueNormalizer, Validator가
모두 같은 패턴 집합을 공유한다.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from rows2sql.core.models import ValueKind

# 불리언 리터럴 토큰 (대소문자 무시)
BOOLEAN_TOKENS = frozenset({"true", "false", "yes", "no", "si", "sí", "1", "0"})
TRUE_TOKENS = frozenset({"true", "yes", "si", "sí", "1"})

# 숫자 리터럴 패턴 (쉼표 소수점은 미리 마침표로 치환)
INTEGER_PATTERN = re.compile(r"^-?\d+$")
DECIMAL_PATTERN = re.compile(r"^-?\d+\.\d+$")

# 날짜/일시 리터럴 패턴
ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
ISO_DATETIME_PATTERN = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[ tT](\d{2}):(\d{2})(?::(\d{2}))?"
)
SLASH_DATE_PATTERN = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
DASH_DATE_PATTERN = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")

NumericValue = Union[int, Decimal]


@dataclass(frozen=True)
class DateParts:
    """파싱된 날짜 구성 요소 (달력 검증 전)."""

    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0
    has_time: bool = False

    @classmethod
    def from_value(cls, value: Union[date, datetime]) -> "DateParts":
        """date/datetime 객체에서 구성 요소를 만든다."""
        if isinstance(value, datetime):
            return cls(
                year=value.year,
                month=value.month,
                day=value.day,
                hour=value.hour,
                minute=value.minute,
                second=value.second,
                has_time=True,
            )
        return cls(year=value.year, month=value.month, day=value.day)

    def to_datetime(self) -> datetime:
        """실제 달력으로 구성한다.

        Raises:
            ValueError: 존재하지 않는 날짜/시각인 경우 (예: 2월 30일)
        """
        return datetime(
            self.year, self.month, self.day, self.hour, self.minute, self.second
        )

    def is_valid(self) -> bool:
        """달력 왕복 구성이 가능한지 여부."""
        try:
            self.to_datetime()
        except ValueError:
            return False
        return True

    def format_date(self) -> str:
        """YYYY-MM-DD 형식."""
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    def format_datetime(self) -> str:
        """YYYY-MM-DD HH:MM:SS 형식."""
        return (
            f"{self.format_date()} "
            f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
        )


@dataclass(frozen=True)
class AnalyzedValue:
    """종류 태그가 붙은 셀 값.

    Attributes:
        kind: 값의 종류
        value: 종류에 맞게 정규화된 파이썬 값
        text: 고유성 판정과 길이 측정에 쓰는 정규화 문자열
        numeric: 숫자로도 해석 가능한 경우의 수치 ('1'/'0' 불리언 토큰 포함)
    """

    kind: ValueKind
    value: Any = None
    text: str = ""
    numeric: Optional[NumericValue] = None


NULL_VALUE = AnalyzedValue(kind=ValueKind.NULL)


def is_nullish(value: Any) -> bool:
    """빈 값 판정 (None, NaN, 공백 문자열, 'null' 문자열)."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str):
        stripped = value.strip()
        return stripped == "" or stripped.lower() == "null"
    return False


def parse_date_parts(value: Any) -> Optional[DateParts]:
    """날짜 리터럴 패턴에 맞는 값을 구성 요소로 분해한다.

    달력 유효성은 검사하지 않는다. 2021-02-30도 DateParts로 반환된다.

    Args:
        value: 문자열 또는 date/datetime 객체

    Returns:
        DateParts 또는 패턴 불일치 시 None
    """
    if isinstance(value, (date, datetime)):
        return DateParts.from_value(value)
    if value is None:
        return None

    text = str(value).strip()

    match = ISO_DATETIME_PATTERN.match(text)
    if match:
        return DateParts(
            year=int(match.group(1)),
            month=int(match.group(2)),
            day=int(match.group(3)),
            hour=int(match.group(4)),
            minute=int(match.group(5)),
            second=int(match.group(6) or 0),
            has_time=True,
        )

    match = ISO_DATE_PATTERN.match(text)
    if match:
        return DateParts(
            year=int(match.group(1)),
            month=int(match.group(2)),
            day=int(match.group(3)),
        )

    match = SLASH_DATE_PATTERN.match(text) or DASH_DATE_PATTERN.match(text)
    if match:
        # DD/MM/YYYY, DD-MM-YYYY
        return DateParts(
            year=int(match.group(3)),
            month=int(match.group(2)),
            day=int(match.group(1)),
        )

    return None


def parse_numeric(value: Any) -> Optional[NumericValue]:
    """쉼표 소수점을 허용하여 숫자로 파싱한다.

    Returns:
        정수면 int, 아니면 Decimal. 파싱 불가 시 None
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value) if value.is_integer() else Decimal(repr(value))

    text = str(value).strip().replace(",", ".", 1)
    if INTEGER_PATTERN.match(text):
        return int(text)
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    return parsed


def _analyze_text(text: str) -> AnalyzedValue:
    lower = text.lower()

    if lower in BOOLEAN_TOKENS:
        flag = 1 if lower in TRUE_TOKENS else 0
        numeric = int(lower) if lower in ("1", "0") else None
        return AnalyzedValue(ValueKind.BOOLEAN, flag, str(flag), numeric)

    candidate = text.replace(",", ".", 1)
    if INTEGER_PATTERN.match(candidate):
        number = int(candidate)
        return AnalyzedValue(ValueKind.INTEGER, number, str(number), number)
    if DECIMAL_PATTERN.match(candidate):
        number = Decimal(candidate)
        return AnalyzedValue(ValueKind.DECIMAL, number, candidate, number)

    parts = parse_date_parts(text)
    if parts is not None and _is_full_date_literal(text) and parts.is_valid():
        if parts.has_time:
            return AnalyzedValue(
                ValueKind.DATETIME, parts.to_datetime(), parts.format_datetime()
            )
        return AnalyzedValue(
            ValueKind.DATE, parts.to_datetime().date(), parts.format_date()
        )

    return AnalyzedValue(ValueKind.TEXT, text, text)


def _is_full_date_literal(text: str) -> bool:
    # 분류 단계에서는 일시 패턴 뒤에 다른 문자가 붙으면 텍스트로 본다
    match = ISO_DATETIME_PATTERN.match(text)
    if match:
        return match.end() == len(text)
    return True


def analyze_value(value: Any) -> AnalyzedValue:
    """값 하나를 우선순위 규칙에 따라 분류한다.

    불리언 토큰 → 정수 → 소수 → 날짜/일시 → 텍스트 순서로 검사한다.

    Args:
        value: 원본 셀 값

    Returns:
        AnalyzedValue
    """
    if is_nullish(value):
        return NULL_VALUE

    if isinstance(value, bool):
        flag = 1 if value else 0
        return AnalyzedValue(ValueKind.BOOLEAN, flag, str(flag))

    if isinstance(value, datetime):
        parts = DateParts.from_value(value)
        return AnalyzedValue(ValueKind.DATETIME, value, parts.format_datetime())

    if isinstance(value, date):
        parts = DateParts.from_value(value)
        return AnalyzedValue(ValueKind.DATE, value, parts.format_date())

    if isinstance(value, int):
        return AnalyzedValue(ValueKind.INTEGER, value, str(value), value)

    if isinstance(value, float):
        if not math.isfinite(value):
            return NULL_VALUE
        if value.is_integer():
            number = int(value)
            return AnalyzedValue(ValueKind.INTEGER, number, str(number), number)
        number = Decimal(repr(value))
        text = format(number, "f")
        return AnalyzedValue(ValueKind.DECIMAL, Decimal(text), text, Decimal(text))

    if isinstance(value, Decimal):
        return _analyze_text(format(value, "f"))

    return _analyze_text(str(value).strip())
