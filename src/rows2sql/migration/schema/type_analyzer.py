"""타입 분석기 - 컬럼 값 통계로 SQL 타입을 추론."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from rows2sql.core.models import Column, Row, ValueKind
from rows2sql.core.naming import ensure_unique_name, sanitize_name
from rows2sql.core.values import AnalyzedValue, analyze_value

logger = logging.getLogger(__name__)

# 고유 값 추적 상한 (초과 시 고유성 판정 포기)
MAX_UNIQUE_SAMPLE = 10_000

# signed 32-bit 정수 범위
INT32_MAX = 2_147_483_647

DEFAULT_TEXT_TYPE = "VARCHAR(255)"
TEXT_LENGTH_LIMIT = 1000


@dataclass
class ColumnStats:
    """컬럼별 누적 통계."""

    raw_name: str
    name: str
    total: int = 0
    nulls: int = 0
    unique_values: set[str] = field(default_factory=set)
    unique_capped: bool = False
    max_length: int = 0
    int_count: int = 0
    decimal_count: int = 0
    bool_count: int = 0
    numeric_bool_count: int = 0
    date_count: int = 0
    datetime_count: int = 0
    text_count: int = 0
    int_min: Optional[int] = None
    int_max: Optional[int] = None
    decimal_precision: int = 0
    decimal_scale: int = 0
    integer_digits: int = 0

    @property
    def non_null(self) -> int:
        """null이 아닌 값의 수."""
        return self.total - self.nulls

    @property
    def is_unique_candidate(self) -> bool:
        """전체 스캔 기준 고유 후보 여부."""
        return (
            not self.unique_capped
            and self.nulls == 0
            and len(self.unique_values) > 0
            and len(self.unique_values) == self.non_null
        )

    def update(self, value: object) -> None:
        """값 하나를 통계에 반영한다."""
        self.total += 1
        analyzed = analyze_value(value)
        if analyzed.kind is ValueKind.NULL:
            self.nulls += 1
            return

        self._track_unique(analyzed.text)
        # 길이는 정규화 형태가 아니라 텍스트 컬럼에 그대로 적재되는 원본 문자열 기준
        self.max_length = max(self.max_length, len(str(value)))

        kind = analyzed.kind
        if kind is ValueKind.INTEGER:
            self.int_count += 1
            self._track_integer(analyzed.numeric)
        elif kind is ValueKind.DECIMAL:
            self.decimal_count += 1
            self._track_decimal(analyzed)
        elif kind is ValueKind.BOOLEAN:
            self.bool_count += 1
            if analyzed.numeric is not None:
                # '1'/'0' 토큰은 정수 컬럼의 일부일 수 있다
                self.numeric_bool_count += 1
                self._track_integer(analyzed.numeric)
        elif kind is ValueKind.DATE:
            self.date_count += 1
        elif kind is ValueKind.DATETIME:
            self.datetime_count += 1
        else:
            self.text_count += 1

    def _track_unique(self, text: str) -> None:
        if self.unique_capped:
            return
        self.unique_values.add(text)
        if len(self.unique_values) > MAX_UNIQUE_SAMPLE:
            self.unique_capped = True
            self.unique_values.clear()

    def _track_integer(self, number: int) -> None:
        self.int_min = number if self.int_min is None else min(self.int_min, number)
        self.int_max = number if self.int_max is None else max(self.int_max, number)
        self.integer_digits = max(self.integer_digits, len(str(abs(number))))

    def _track_decimal(self, analyzed: AnalyzedValue) -> None:
        unsigned = analyzed.text.lstrip("-")
        int_part, _, fraction = unsigned.partition(".")
        self.decimal_precision = max(self.decimal_precision, len(int_part) + len(fraction))
        self.decimal_scale = max(self.decimal_scale, len(fraction))
        self.integer_digits = max(self.integer_digits, len(int_part))


@dataclass
class TypeInfo:
    """최종 타입 결정 결과."""

    kind: ValueKind
    sql_type: str


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def _decimal_type(stats: ColumnStats) -> TypeInfo:
    # 정수+소수 혼합 컬럼에서도 정수부 자릿수가 잘리지 않도록 정밀도를 잡는다
    precision = max(stats.decimal_precision, stats.integer_digits + stats.decimal_scale)
    precision = _clamp(precision or stats.max_length or 10, 4, 30)
    scale = _clamp(stats.decimal_scale, 0, 14)
    return TypeInfo(ValueKind.DECIMAL, f"DECIMAL({precision},{scale})")


def finalize_type(stats: ColumnStats) -> TypeInfo:
    """누적 통계에서 컬럼 타입을 결정한다.

    우선순위: 전부 불리언 → 전부 날짜 → 전부 소수 → 전부 정수 →
    정수+소수 혼합 → 텍스트. null만 있는 컬럼은 VARCHAR(255).

    Args:
        stats: 전체 스캔이 끝난 컬럼 통계

    Returns:
        TypeInfo
    """
    non_null = stats.non_null
    if non_null == 0:
        return TypeInfo(ValueKind.TEXT, DEFAULT_TEXT_TYPE)

    if stats.bool_count == non_null:
        return TypeInfo(ValueKind.BOOLEAN, "TINYINT(1)")

    if stats.date_count + stats.datetime_count == non_null:
        if stats.datetime_count > 0:
            return TypeInfo(ValueKind.DATETIME, "DATETIME")
        return TypeInfo(ValueKind.DATE, "DATE")

    if stats.decimal_count == non_null:
        return _decimal_type(stats)

    integer_like = stats.int_count + stats.numeric_bool_count
    if integer_like == non_null:
        magnitude = max(abs(stats.int_min or 0), abs(stats.int_max or 0))
        sql_type = "BIGINT" if magnitude > INT32_MAX else "INT"
        return TypeInfo(ValueKind.INTEGER, sql_type)

    if integer_like + stats.decimal_count == non_null:
        return _decimal_type(stats)

    length = max(stats.max_length, 1)
    if length > TEXT_LENGTH_LIMIT:
        return TypeInfo(ValueKind.TEXT, "TEXT")
    return TypeInfo(ValueKind.TEXT, f"VARCHAR({length})")


class TypeAnalyzer:
    """행 전체를 스캔하여 컬럼 통계와 타입을 추론하는 분석기."""

    def discover_columns(self, rows: Iterable[Row]) -> list[str]:
        """모든 행의 키 합집합을 처음 등장한 순서대로 반환."""
        seen: dict[str, None] = {}
        for row in rows:
            for key in row or {}:
                seen.setdefault(key, None)
        return list(seen)

    def collect_stats(self, rows: list[Row]) -> list[ColumnStats]:
        """컬럼별 통계를 누적한다.

        Args:
            rows: 테이블의 모든 행

        Returns:
            원본 컬럼 순서의 ColumnStats 리스트
        """
        used_names: set[str] = set()
        stats_list = [
            ColumnStats(
                raw_name=raw_name,
                name=ensure_unique_name(sanitize_name(raw_name, "col", idx + 1), used_names),
            )
            for idx, raw_name in enumerate(self.discover_columns(rows))
        ]

        for row in rows:
            row = row or {}
            for stats in stats_list:
                stats.update(row.get(stats.raw_name))

        return stats_list

    def analyze(self, rows: list[Row]) -> list[Column]:
        """행을 분석하여 컬럼 정의 목록을 만든다.

        Args:
            rows: 테이블의 모든 행

        Returns:
            추론된 Column 리스트 (기본 키 미선정 상태)
        """
        columns = []
        for stats in self.collect_stats(rows):
            type_info = finalize_type(stats)
            columns.append(
                Column(
                    raw_name=stats.raw_name,
                    name=stats.name,
                    inferred_kind=type_info.kind,
                    sql_type=type_info.sql_type,
                    nullable=stats.nulls > 0,
                    unique=stats.is_unique_candidate,
                    max_length=stats.max_length,
                )
            )
            logger.debug(
                "컬럼 '%s' -> %s (null %d/%d)",
                stats.name,
                type_info.sql_type,
                stats.nulls,
                stats.total,
            )
        return columns
