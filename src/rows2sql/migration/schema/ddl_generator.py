"""DDL 생성기 - 스키마를 CREATE TABLE 문으로 렌더링."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import sqlglot
from sqlglot import exp

from rows2sql.core.models import Column, ForeignKeyEdge, Schema
from rows2sql.core.naming import sanitize_name

DDL_HEADER = "-- Auto-generated by rows2sql"
TABLE_OPTIONS = "ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"


@dataclass
class DDLResult:
    """렌더링된 DDL."""

    table_name: str
    ddl: str


@dataclass
class ParsedDDL:
    """DDL에서 다시 추출한 구조."""

    table_name: str
    columns: list[str]
    primary_keys: list[str]


def quote_identifier(name: str) -> str:
    """MySQL 백틱 식별자."""
    return "`" + name.replace("`", "``") + "`"


class DDLGenerator:
    """결정적인 DDL 렌더러."""

    def render(self, table_name: str, schema: Schema) -> DDLResult:
        """스키마를 CREATE TABLE IF NOT EXISTS 문으로 렌더링.

        Args:
            table_name: 테이블 이름 (정제됨)
            schema: 테이블 스키마

        Returns:
            DDLResult
        """
        effective_table = sanitize_name(table_name, "table")
        lines = [self._column_definition(column) for column in schema.columns]
        lines.append(
            "  PRIMARY KEY ("
            + ", ".join(quote_identifier(name) for name in schema.primary_keys)
            + ")"
        )
        for column in schema.columns:
            if column.unique and not column.is_primary_key:
                lines.append(
                    f"  UNIQUE KEY {quote_identifier('uk_' + column.name)}"
                    f" ({quote_identifier(column.name)})"
                )

        ddl = "\n".join(
            [
                DDL_HEADER,
                f"CREATE TABLE IF NOT EXISTS {quote_identifier(effective_table)} (",
                ",\n".join(lines),
                f") {TABLE_OPTIONS};",
            ]
        )
        return DDLResult(table_name=effective_table, ddl=ddl)

    def _column_definition(self, column: Column) -> str:
        line = f"  {quote_identifier(column.name)} {column.sql_type}"
        if column.auto_increment:
            line += " AUTO_INCREMENT"
        if not column.nullable:
            line += " NOT NULL"
        return line

    def render_foreign_keys(self, edges: list[ForeignKeyEdge]) -> str:
        """외래 키 제약 조건 스크립트를 렌더링.

        Args:
            edges: 추론된 외래 키 목록

        Returns:
            ALTER TABLE 문들을 빈 줄로 이은 문자열
        """
        statements = []
        for index, edge in enumerate(edges):
            constraint = f"fk_{edge.table}_{edge.column}_{index}"
            statements.append(
                f"ALTER TABLE {quote_identifier(edge.table)}\n"
                f"  ADD CONSTRAINT {quote_identifier(constraint)}\n"
                f"  FOREIGN KEY ({quote_identifier(edge.column)})\n"
                f"  REFERENCES {quote_identifier(edge.references_table)}"
                f" ({quote_identifier(edge.references_column)})\n"
                "  ON DELETE RESTRICT\n"
                "  ON UPDATE CASCADE;"
            )
        return "\n\n".join(statements)

    def parse(self, ddl: str) -> ParsedDDL:
        """렌더링된 DDL에서 테이블명, 컬럼명, 기본 키를 다시 추출.

        Args:
            ddl: CREATE TABLE 문

        Returns:
            ParsedDDL
        """
        statement = "\n".join(
            line for line in ddl.splitlines() if not line.lstrip().startswith("--")
        ).strip().rstrip(";")
        create = sqlglot.parse_one(statement, read="mysql")
        table = create.find(exp.Table)
        columns = [column_def.name for column_def in create.find_all(exp.ColumnDef)]

        primary_keys: list[str] = []
        for primary_key in create.find_all(exp.PrimaryKey):
            for expression in primary_key.expressions:
                identifier = (
                    expression
                    if isinstance(expression, exp.Identifier)
                    else expression.find(exp.Identifier)
                )
                if identifier is not None:
                    primary_keys.append(identifier.name)

        return ParsedDDL(
            table_name=table.name if table is not None else "",
            columns=columns,
            primary_keys=primary_keys,
        )

    def write(self, content: str, output_path: Optional[Union[str, Path]]) -> Optional[Path]:
        """렌더링된 스크립트를 파일로 저장.

        Args:
            content: 저장할 SQL 텍스트
            output_path: 저장 경로 (None이면 저장하지 않음)

        Returns:
            저장된 경로 또는 None
        """
        if not output_path:
            return None
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
