"""데이터 검증기 - 중복, 값 오류, 참조 무결성 검사."""

import logging
import re
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from rows2sql.core.models import (
    Column,
    ForeignKeyEdge,
    InferredTable,
    Row,
    Schema,
    Severity,
    ValidationIssue,
    ValueKind,
)
from rows2sql.core.values import (
    BOOLEAN_TOKENS,
    analyze_value,
    is_nullish,
    parse_date_parts,
    parse_numeric,
)
from rows2sql.migration.reporting import write_json

logger = logging.getLogger(__name__)

INT32_MIN = -2_147_483_648
INT32_MAX = 2_147_483_647
MIN_REASONABLE_YEAR = 1900
MAX_REASONABLE_YEAR = 2100

# 음수가 나오면 의심스러운 컬럼명 키워드
NON_NEGATIVE_KEYWORDS = ("id", "age", "count", "quantity", "amount", "price", "total")

VARCHAR_PATTERN = re.compile(r"VARCHAR\((\d+)\)")
ACCEPTED_BOOLEAN_TOKENS = BOOLEAN_TOKENS | {"y", "n"}


def _value_key(value: Any) -> str:
    # 1, "1", 1.0 이 같은 키가 되도록 분류기의 정규화 문자열을 쓴다
    return analyze_value(value).text


class Validator:
    """적재 전 데이터 검증기.

    각 검사는 ValidationIssue 목록만 만들고 처리를 멈추지 않는다.
    """

    def __init__(self, check_duplicates: bool = True, check_invalid_values: bool = True) -> None:
        """검증기 초기화.

        Args:
            check_duplicates: 고유 컬럼 중복 검사 여부
            check_invalid_values: 타입/범위/형식 검사 여부
        """
        self._check_duplicates = check_duplicates
        self._check_invalid_values = check_invalid_values

    def validate(
        self, rows: list[Row], schema: Schema, table: Optional[str] = None
    ) -> list[ValidationIssue]:
        """활성화된 테이블 단위 검사를 모두 실행.

        Args:
            rows: 테이블 행
            schema: 추론된 스키마
            table: 이슈에 기록할 테이블 이름

        Returns:
            ValidationIssue 리스트
        """
        issues: list[ValidationIssue] = []
        if self._check_duplicates:
            issues.extend(self.find_duplicates(rows, schema))
        if self._check_invalid_values:
            issues.extend(self.validate_values(rows, schema))
        if table is not None:
            for issue in issues:
                issue.table = table
        return issues

    def find_duplicates(self, rows: list[Row], schema: Schema) -> list[ValidationIssue]:
        """고유/기본 키 컬럼의 중복 값을 찾는다.

        첫 등장 위치를 기억하고 이후 같은 값마다 error를 기록한다.
        """
        issues = []
        for column in schema.columns:
            if not (column.unique or column.is_primary_key) or column.auto_increment:
                continue
            seen: dict[str, int] = {}
            for index, row in enumerate(rows):
                value = (row or {}).get(column.raw_name)
                if is_nullish(value):
                    continue
                key = _value_key(value)
                if key in seen:
                    issues.append(
                        ValidationIssue(
                            type="duplicate",
                            severity=Severity.ERROR,
                            column=column.name,
                            index=index,
                            value=value,
                            message=f"고유 컬럼 '{column.name}'에 중복 값: {value}",
                            first_occurrence=seen[key],
                        )
                    )
                else:
                    seen[key] = index
        return issues

    def validate_values(self, rows: list[Row], schema: Schema) -> list[ValidationIssue]:
        """행 x 컬럼 단위로 타입/범위/형식을 검사한다."""
        issues = []
        for index, row in enumerate(rows):
            row = row or {}
            for column in schema.columns:
                if column.auto_increment:
                    continue
                value = row.get(column.raw_name)
                if is_nullish(value):
                    continue
                issues.extend(self._validate_value(value, column, index))
        return issues

    def _validate_value(self, value: Any, column: Column, index: int) -> list[ValidationIssue]:
        sql_type = column.sql_type.upper()

        if column.inferred_kind is ValueKind.BOOLEAN or "TINYINT(1)" in sql_type:
            return self._validate_boolean(value, column, index)
        if "DATE" in sql_type:
            return self._validate_date(value, column, index)
        if "INT" in sql_type or "DECIMAL" in sql_type:
            return self._validate_number(value, column, index, sql_type)

        match = VARCHAR_PATTERN.search(sql_type)
        if match:
            max_length = int(match.group(1))
            text = str(value)
            if len(text) > max_length:
                return [
                    self._issue(
                        "string_too_long",
                        Severity.ERROR,
                        column,
                        index,
                        text[:50] + "...",
                        f"'{column.name}' 텍스트 길이 초과: {len(text)} > {max_length}",
                    )
                ]
        return []

    def _validate_boolean(self, value: Any, column: Column, index: int) -> list[ValidationIssue]:
        if isinstance(value, bool) or str(value).strip().lower() in ACCEPTED_BOOLEAN_TOKENS:
            return []
        return [
            self._issue(
                "invalid_boolean",
                Severity.ERROR,
                column,
                index,
                value,
                f"'{column.name}'에 불리언으로 해석할 수 없는 값: {value}",
            )
        ]

    def _validate_date(self, value: Any, column: Column, index: int) -> list[ValidationIssue]:
        parts = parse_date_parts(value)
        if parts is None:
            return [
                self._issue(
                    "unparseable_date",
                    Severity.ERROR,
                    column,
                    index,
                    value,
                    f"'{column.name}' 날짜 형식을 인식할 수 없음: {value}",
                )
            ]

        issues = []
        if not parts.is_valid():
            issues.append(
                self._issue(
                    "invalid_date",
                    Severity.ERROR,
                    column,
                    index,
                    value,
                    f"'{column.name}'에 존재하지 않는 날짜: {value}",
                )
            )
        if not MIN_REASONABLE_YEAR <= parts.year <= MAX_REASONABLE_YEAR:
            issues.append(
                self._issue(
                    "date_out_of_range",
                    Severity.WARNING,
                    column,
                    index,
                    value,
                    f"'{column.name}' 날짜가 예상 범위를 벗어남: {value}",
                )
            )
        return issues

    def _validate_number(
        self, value: Any, column: Column, index: int, sql_type: str
    ) -> list[ValidationIssue]:
        number = parse_numeric(value)
        if number is None:
            return [
                self._issue(
                    "invalid_number",
                    Severity.ERROR,
                    column,
                    index,
                    value,
                    f"'{column.name}'에 숫자가 아닌 값: {value}",
                )
            ]

        issues = []
        lowered = column.name.lower()
        if number < 0 and any(keyword in lowered for keyword in NON_NEGATIVE_KEYWORDS):
            issues.append(
                self._issue(
                    "negative_value",
                    Severity.WARNING,
                    column,
                    index,
                    number,
                    f"양수여야 할 것으로 보이는 '{column.name}'에 음수: {number}",
                )
            )
        if sql_type == "INT" and not INT32_MIN <= number <= INT32_MAX:
            issues.append(
                self._issue(
                    "int_overflow",
                    Severity.ERROR,
                    column,
                    index,
                    number,
                    f"'{column.name}' 값이 INT 범위를 벗어남: {number}",
                )
            )
        return issues

    def _issue(
        self,
        issue_type: str,
        severity: Severity,
        column: Column,
        index: int,
        value: Any,
        message: str,
    ) -> ValidationIssue:
        return ValidationIssue(
            type=issue_type,
            severity=severity,
            column=column.name,
            index=index,
            value=value,
            message=message,
        )

    def validate_referential_integrity(
        self,
        tables: list[InferredTable],
        edges: list[ForeignKeyEdge],
    ) -> list[ValidationIssue]:
        """외래 키 값이 참조 테이블에 존재하는지 검사.

        Args:
            tables: 배치의 모든 테이블
            edges: 추론된 외래 키

        Returns:
            ValidationIssue 리스트
        """
        by_name = {table.name: table for table in tables}
        issues = []

        for edge in edges:
            dependent = by_name.get(edge.table)
            referenced = by_name.get(edge.references_table)
            if dependent is None:
                continue
            if referenced is None:
                issues.append(
                    ValidationIssue(
                        type="missing_referenced_table",
                        severity=Severity.ERROR,
                        column=edge.column,
                        table=edge.table,
                        message=f"참조 테이블 '{edge.references_table}'을 찾을 수 없음",
                    )
                )
                continue

            valid_values = self._referenced_values(referenced, edge.references_column)
            dependent_column = dependent.schema.get_column(edge.column)
            raw_name = dependent_column.raw_name if dependent_column else edge.column

            for index, row in enumerate(dependent.rows):
                value = (row or {}).get(raw_name)
                if is_nullish(value):
                    continue
                if _value_key(value) not in valid_values:
                    issues.append(
                        ValidationIssue(
                            type="orphan_foreign_key",
                            severity=Severity.ERROR,
                            column=edge.column,
                            table=edge.table,
                            index=index,
                            value=value,
                            message=(
                                f"'{edge.table}.{edge.column}'이 "
                                f"'{edge.references_table}.{edge.references_column}'에 "
                                f"없는 값을 참조: {value}"
                            ),
                        )
                    )

        return issues

    def _referenced_values(self, table: InferredTable, column_name: str) -> set[str]:
        column = table.schema.get_column(column_name)
        if column is not None and column.auto_increment:
            # 빈 테이블에 새로 적재할 때 부여될 식별자
            return {str(number) for number in range(1, len(table.rows) + 1)}

        raw_name = column.raw_name if column is not None else column_name
        return {
            _value_key(row.get(raw_name))
            for row in table.rows
            if row and not is_nullish(row.get(raw_name))
        }


def build_validation_report(issues: list[ValidationIssue]) -> dict[str, Any]:
    """검증 리포트 딕셔너리를 만든다."""
    by_type = Counter(issue.type for issue in issues)
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "totalIssues": len(issues),
        "errorCount": sum(1 for issue in issues if issue.severity is Severity.ERROR),
        "warningCount": sum(1 for issue in issues if issue.severity is Severity.WARNING),
        "issuesByType": dict(by_type),
        "issues": [issue.to_dict() for issue in issues],
    }


def write_validation_report(
    issues: list[ValidationIssue], output_path: Union[str, Path]
) -> dict[str, Any]:
    """검증 리포트를 만들어 JSON으로 저장."""
    report = build_validation_report(issues)
    write_json(report, output_path)
    logger.info(
        "검증 리포트 저장: %s (error %d, warning %d)",
        output_path,
        report["errorCount"],
        report["warningCount"],
    )
    return report
