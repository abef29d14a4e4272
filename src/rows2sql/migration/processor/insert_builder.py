"""INSERT 스크립트 빌더 (dry-run 산출물)."""

from dataclasses import dataclass
from typing import Optional

from rows2sql.core.models import Row, Schema
from rows2sql.migration.processor.value_normalizer import ValueNormalizer, escape_sql_value
from rows2sql.migration.schema.ddl_generator import quote_identifier


@dataclass
class InsertScript:
    """렌더링된 INSERT 스크립트."""

    sql: str
    rows_written: int
    statement_count: int


class InsertScriptBuilder:
    """스키마와 행으로 INSERT 문 스크립트를 만드는 빌더."""

    def __init__(self, normalizer: Optional[ValueNormalizer] = None) -> None:
        """빌더 초기화.

        Args:
            normalizer: 값 정규화기
        """
        self._normalizer = normalizer or ValueNormalizer()

    def build(
        self,
        table_name: str,
        schema: Schema,
        rows: list[Row],
        bulk: bool = True,
        chunk_size: int = 250,
    ) -> InsertScript:
        """INSERT 스크립트를 렌더링.

        Args:
            table_name: 테이블 이름
            schema: 테이블 스키마
            rows: 적재할 행
            bulk: 다중 행 INSERT 사용 여부
            chunk_size: 다중 행 INSERT 하나에 담을 행 수

        Returns:
            InsertScript
        """
        columns = schema.insertable_columns()
        column_list = ", ".join(quote_identifier(column.name) for column in columns)
        prefix = f"INSERT INTO {quote_identifier(table_name)} ({column_list}) VALUES"
        step = max(chunk_size, 1) if bulk else 1

        statements = []
        for start in range(0, len(rows), step):
            tuples = [
                "("
                + ", ".join(
                    escape_sql_value(value)
                    for value in self._normalizer.normalize_row(row or {}, columns)
                )
                + ")"
                for row in rows[start:start + step]
            ]
            if bulk:
                statements.append(f"{prefix}\n" + ",\n".join(tuples) + ";")
            else:
                statements.append(f"{prefix} {tuples[0]};")

        return InsertScript(
            sql="\n\n".join(statements),
            rows_written=len(rows),
            statement_count=len(statements),
        )
