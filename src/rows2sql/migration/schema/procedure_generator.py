"""저장 프로시저 생성기 - 테이블별 CRUD 프로시저 스크립트."""

from dataclasses import dataclass

from rows2sql.core.models import Column, Schema
from rows2sql.migration.schema.ddl_generator import quote_identifier


@dataclass
class StoredProcedure:
    """렌더링된 저장 프로시저."""

    name: str
    sql: str


def _parameter(column: Column) -> str:
    return f"  IN p_{column.name} {column.sql_type or 'VARCHAR(255)'}"


def _where_clause(columns: list[Column]) -> str:
    return " AND ".join(f"{quote_identifier(column.name)} = p_{column.name}" for column in columns)


def _wrap(name: str, comment: str, parameters: list[str], body: list[str]) -> str:
    return "\n".join(
        [
            f"-- {comment}",
            "DELIMITER $$",
            "",
            f"DROP PROCEDURE IF EXISTS {quote_identifier(name)}$$",
            "",
            f"CREATE PROCEDURE {quote_identifier(name)}(",
            ",\n".join(parameters),
            ")",
            "BEGIN",
            *body,
            "END$$",
            "",
            "DELIMITER ;",
        ]
    )


class ProcedureGenerator:
    """스키마에서 INSERT/SELECT/UPDATE/DELETE 프로시저를 만드는 생성기."""

    def generate_insert(self, table_name: str, schema: Schema) -> StoredProcedure:
        """auto-increment를 제외한 컬럼을 받는 INSERT 프로시저."""
        columns = schema.insertable_columns()
        name = f"sp_insert_{table_name}"
        column_list = ", ".join(quote_identifier(column.name) for column in columns)
        value_list = ", ".join(f"p_{column.name}" for column in columns)
        sql = _wrap(
            name,
            f"Insert procedure for {table_name}",
            [_parameter(column) for column in columns],
            [
                f"  INSERT INTO {quote_identifier(table_name)} ({column_list})",
                f"  VALUES ({value_list});",
                "  SELECT LAST_INSERT_ID() AS id;",
            ],
        )
        return StoredProcedure(name=name, sql=sql)

    def generate_select(self, table_name: str, schema: Schema) -> StoredProcedure:
        """기본 키로 조회하는 SELECT 프로시저. 기본 키가 없으면 전체 조회."""
        key_columns = schema.primary_key_columns()
        name = f"sp_select_{table_name}"
        body = [f"  SELECT * FROM {quote_identifier(table_name)}"]
        if key_columns:
            body.append(f"  WHERE {_where_clause(key_columns)};")
        else:
            body[-1] += ";"
        sql = _wrap(
            name,
            f"Select procedure for {table_name}",
            [_parameter(column) for column in key_columns],
            body,
        )
        return StoredProcedure(name=name, sql=sql)

    def generate_update(self, table_name: str, schema: Schema) -> StoredProcedure:
        """기본 키로 나머지 컬럼을 갱신하는 UPDATE 프로시저.

        Args:
            table_name: 테이블 이름
            schema: 테이블 스키마

        Returns:
            StoredProcedure

        Raises:
            ValueError: 기본 키나 갱신할 컬럼이 없는 경우
        """
        key_columns = schema.primary_key_columns()
        if not key_columns:
            raise ValueError(f"기본 키가 없어 UPDATE 프로시저를 만들 수 없습니다: {table_name}")
        value_columns = [
            column
            for column in schema.columns
            if not column.is_primary_key and not column.auto_increment
        ]
        if not value_columns:
            raise ValueError(f"갱신할 컬럼이 없어 UPDATE 프로시저를 만들 수 없습니다: {table_name}")

        name = f"sp_update_{table_name}"
        assignments = ",\n".join(
            f"    {quote_identifier(column.name)} = p_{column.name}" for column in value_columns
        )
        sql = _wrap(
            name,
            f"Update procedure for {table_name}",
            [_parameter(column) for column in key_columns + value_columns],
            [
                f"  UPDATE {quote_identifier(table_name)}",
                "  SET",
                assignments,
                f"  WHERE {_where_clause(key_columns)};",
                "  SELECT ROW_COUNT() AS affected_rows;",
            ],
        )
        return StoredProcedure(name=name, sql=sql)

    def generate_delete(self, table_name: str, schema: Schema) -> StoredProcedure:
        """기본 키로 행을 지우는 DELETE 프로시저.

        Raises:
            ValueError: 기본 키가 없는 경우
        """
        key_columns = schema.primary_key_columns()
        if not key_columns:
            raise ValueError(f"기본 키가 없어 DELETE 프로시저를 만들 수 없습니다: {table_name}")

        name = f"sp_delete_{table_name}"
        sql = _wrap(
            name,
            f"Delete procedure for {table_name}",
            [_parameter(column) for column in key_columns],
            [
                f"  DELETE FROM {quote_identifier(table_name)}",
                f"  WHERE {_where_clause(key_columns)};",
                "  SELECT ROW_COUNT() AS affected_rows;",
            ],
        )
        return StoredProcedure(name=name, sql=sql)

    def generate_crud(self, table_name: str, schema: Schema) -> list[StoredProcedure]:
        """테이블의 CRUD 프로시저 묶음을 만든다.

        INSERT와 SELECT는 항상 만들고, UPDATE는 기본 키와 갱신할 컬럼이
        있을 때, DELETE는 기본 키가 있을 때만 만든다.

        Args:
            table_name: 정제된 테이블 이름
            schema: 테이블 스키마

        Returns:
            StoredProcedure 리스트 (INSERT, SELECT, UPDATE, DELETE 순)
        """
        procedures = [
            self.generate_insert(table_name, schema),
            self.generate_select(table_name, schema),
        ]
        if schema.primary_key_columns():
            if any(
                not column.is_primary_key and not column.auto_increment
                for column in schema.columns
            ):
                procedures.append(self.generate_update(table_name, schema))
            procedures.append(self.generate_delete(table_name, schema))
        return procedures

    def render_script(self, procedures: list[StoredProcedure]) -> str:
        """프로시저들을 하나의 스크립트로 잇는다."""
        return "\n\n".join(procedure.sql for procedure in procedures) + "\n"
