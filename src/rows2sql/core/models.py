"""Core 데이터 모델 정의."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


# 원본 행: 원본 컬럼명 -> 타입이 정해지지 않은 스칼라 값
Row = dict[str, Any]


class ValueKind(Enum):
    """값/컬럼의 의미적 종류."""

    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    TEXT = "text"


class Severity(Enum):
    """검증 이슈 심각도."""

    ERROR = "error"
    WARNING = "warning"


@dataclass
class Column:
    """추론된 컬럼 정의."""

    raw_name: str
    name: str
    inferred_kind: ValueKind
    sql_type: str
    nullable: bool = True
    unique: bool = False
    is_primary_key: bool = False
    auto_increment: bool = False
    max_length: int = 0


@dataclass
class Schema:
    """테이블 스키마.

    primary_keys는 비어 있지 않으며 auto_increment 컬럼은 최대 하나다.
    """

    columns: list[Column]
    primary_keys: list[str]

    def column_names(self) -> list[str]:
        """스키마 순서대로 컬럼명 목록을 반환."""
        return [column.name for column in self.columns]

    def insertable_columns(self) -> list[Column]:
        """INSERT 대상 컬럼 (합성 식별자 컬럼 제외)."""
        return [column for column in self.columns if not column.auto_increment]

    def primary_key_columns(self) -> list[Column]:
        """기본 키 컬럼을 primary_keys 순서대로 반환."""
        columns = [self.get_column(name) for name in self.primary_keys]
        return [column for column in columns if column is not None]

    def get_column(self, name: str) -> Optional[Column]:
        """정제된 이름으로 컬럼을 조회."""
        for column in self.columns:
            if column.name == name:
                return column
        return None


@dataclass
class ValidationIssue:
    """검증 이슈."""

    type: str
    severity: Severity
    column: Optional[str]
    message: str
    index: Optional[int] = None
    value: Any = None
    table: Optional[str] = None
    first_occurrence: Optional[int] = None

    @property
    def is_error(self) -> bool:
        """error 심각도 여부."""
        return self.severity is Severity.ERROR

    def to_dict(self) -> dict[str, Any]:
        """리포트용 딕셔너리로 변환."""
        data: dict[str, Any] = {
            "type": self.type,
            "severity": self.severity.value,
            "column": self.column,
            "index": self.index,
            "value": self.value,
            "message": self.message,
        }
        if self.table is not None:
            data["table"] = self.table
        if self.first_occurrence is not None:
            data["firstOccurrence"] = self.first_occurrence
        return data


@dataclass(frozen=True)
class ForeignKeyEdge:
    """이름 규칙으로 추론된 외래 키 관계."""

    table: str
    column: str
    references_table: str
    references_column: str

    def to_dict(self) -> dict[str, str]:
        """리포트용 딕셔너리로 변환."""
        return {
            "table": self.table,
            "column": self.column,
            "referencesTable": self.references_table,
            "referencesColumn": self.references_column,
        }


@dataclass
class LoadError:
    """격리 재시도에서도 실패한 행."""

    index: int
    message: str
    row: Row


@dataclass
class LoadResult:
    """테이블 적재 결과."""

    inserted: int = 0
    errors: list[LoadError] = field(default_factory=list)
    processed: int = 0
    dry_run: bool = False
    rolled_back: bool = False


@dataclass
class InferredTable:
    """스키마 추론이 끝난 테이블 (배치 모드 단위)."""

    name: str
    rows: list[Row]
    schema: Schema
    source: Optional["TableInput"] = None


@dataclass
class TableInput:
    """외부 리더가 디코딩한 테이블 입력."""

    name: str
    rows: list[Row]
    source_format: Optional[str] = None
    encoding: Optional[str] = None
    meta: dict[str, Any] = field(default_factory=dict)
