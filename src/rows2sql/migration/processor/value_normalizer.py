"""적재 시점 값 정규화기."""

import math
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from rows2sql.core.models import Column, ValueKind
from rows2sql.core.values import (
    DateParts,
    NumericValue,
    is_nullish,
    parse_date_parts,
    parse_numeric,
)

# 적재 시 참으로 취급하는 토큰
LOAD_TRUE_TOKENS = frozenset({"true", "yes", "si", "sí", "y", "1"})


class ValueNormalizer:
    """컬럼 타입에 맞게 셀 값을 변환하는 관대한 정규화기.

    잘못된 값은 예외 대신 None으로 바꾼다. 엄격한 판정은 Validator의 몫이다.
    """

    def normalize(self, value: Any, column: Column) -> Any:
        """셀 하나를 컬럼 타입에 맞게 변환.

        Args:
            value: 원본 셀 값
            column: 값이 속한 컬럼

        Returns:
            드라이버에 바인딩할 값 (None, int, Decimal, str)
        """
        if is_nullish(value):
            return None

        sql_type = column.sql_type.upper()

        # TINYINT(1)은 정수보다 먼저 불리언으로 처리
        if (
            "BOOL" in sql_type
            or "TINYINT(1)" in sql_type
            or column.inferred_kind is ValueKind.BOOLEAN
        ):
            return self._normalize_boolean(value)

        if "DATE" in sql_type:
            return self._normalize_date(value, with_time=sql_type != "DATE")

        if "INT" in sql_type or "DECIMAL" in sql_type or "FLOAT" in sql_type:
            return self._normalize_numeric(value, integer="INT" in sql_type)

        return str(value)

    def normalize_row(self, row: dict[str, Any], columns: list[Column]) -> list[Any]:
        """행을 컬럼 순서의 값 리스트로 변환."""
        return [self.normalize(row.get(column.raw_name), column) for column in columns]

    def _normalize_boolean(self, value: Any) -> int:
        if value is True:
            return 1
        return 1 if str(value).strip().lower() in LOAD_TRUE_TOKENS else 0

    def _normalize_date(self, value: Any, with_time: bool) -> Optional[str]:
        if isinstance(value, (date, datetime)):
            parts = DateParts.from_value(value)
        else:
            parts = parse_date_parts(value)
        if parts is None or not parts.is_valid():
            return None
        return parts.format_datetime() if with_time else parts.format_date()

    def _normalize_numeric(self, value: Any, integer: bool) -> Optional[NumericValue]:
        number = parse_numeric(value)
        if number is None:
            return None
        if integer and isinstance(number, Decimal) and number == number.to_integral_value():
            return int(number)
        return number


def escape_sql_value(value: Any) -> str:
    """정규화된 값을 SQL 리터럴로 변환 (INSERT 스크립트용)."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, Decimal):
        return format(value, "f") if value.is_finite() else "NULL"
    if isinstance(value, float):
        return repr(value) if math.isfinite(value) else "NULL"
    escaped = str(value).replace("\\", "\\\\").replace("'", "''")
    return f"'{escaped}'"
