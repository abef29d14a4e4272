"""벌크 로더 - 트랜잭션 단위 테이블 적재."""

import logging
from typing import Any, Callable, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from rows2sql.core.models import Column, LoadError, LoadResult, Row, Schema
from rows2sql.migration.processor.value_normalizer import ValueNormalizer
from rows2sql.migration.schema.ddl_generator import quote_identifier

logger = logging.getLogger(__name__)

# 적재된 행 수를 전달받는 진행 상황 콜백
LoadProgressCallback = Callable[[int], None]


class LoadAbortedError(Exception):
    """fail-fast 정책에서 테이블 적재가 롤백됨."""

    def __init__(self, table_name: str, message: str, result: LoadResult) -> None:
        super().__init__(message)
        self.table_name = table_name
        self.result = result


def _error_message(error: SQLAlchemyError) -> str:
    original = getattr(error, "orig", None)
    return str(original) if original is not None else str(error)


class BulkLoader:
    """DDL과 INSERT를 하나의 트랜잭션으로 실행하는 로더.

    continue_on_error=True이면 실패한 청크를 행 단위로 재시도하여
    실패 행만 건너뛰고, False이면 첫 실패에서 테이블 전체를 롤백한다.
    """

    def __init__(
        self,
        adapter: Any,
        chunk_size: int = 250,
        bulk: bool = True,
        continue_on_error: bool = True,
        dry_run: bool = False,
        normalizer: Optional[ValueNormalizer] = None,
    ) -> None:
        """로더 초기화.

        Args:
            adapter: connect()로 SQLAlchemy 연결을 제공하는 어댑터
            chunk_size: 다중 행 INSERT 하나에 담을 행 수
            bulk: 다중 행 INSERT 사용 여부 (False면 행마다 INSERT)
            continue_on_error: 격리 후 계속 진행 정책 여부
            dry_run: 대상 DB와 통신하지 않음
            normalizer: 값 정규화기
        """
        self._adapter = adapter
        self._chunk_size = max(chunk_size, 1)
        self._bulk = bulk
        self._continue_on_error = continue_on_error
        self._dry_run = dry_run
        self._normalizer = normalizer or ValueNormalizer()

    def load(
        self,
        table_name: str,
        ddl: str,
        schema: Schema,
        rows: list[Row],
        on_progress: Optional[LoadProgressCallback] = None,
    ) -> LoadResult:
        """테이블을 생성하고 행을 적재한다.

        Args:
            table_name: 테이블 이름
            ddl: CREATE TABLE 문
            schema: 테이블 스키마
            rows: 적재할 행
            on_progress: 청크/행 적재마다 호출되는 콜백

        Returns:
            LoadResult

        Raises:
            LoadAbortedError: fail-fast 정책에서 실패했거나 DDL 실행이 실패한 경우
        """
        if self._dry_run:
            logger.info("dry-run: '%s' 적재를 건너뜀 (%d행)", table_name, len(rows))
            self._notify(on_progress, len(rows))
            return LoadResult(processed=len(rows), dry_run=True)

        columns = schema.insertable_columns()
        errors: list[LoadError] = []
        connection = self._adapter.connect()
        try:
            transaction = connection.begin()
            try:
                connection.execute(text(ddl))
                inserted = self._insert_all(
                    connection, table_name, columns, rows, errors, on_progress
                )
            except SQLAlchemyError as e:
                transaction.rollback()
                logger.error("'%s' 적재 실패, 트랜잭션 롤백: %s", table_name, _error_message(e))
                result = LoadResult(
                    inserted=0, errors=errors, processed=len(rows), rolled_back=True
                )
                raise LoadAbortedError(
                    table_name, f"'{table_name}' 적재가 롤백되었습니다: {_error_message(e)}", result
                ) from e
            transaction.commit()
        finally:
            connection.close()

        logger.info(
            "'%s' 적재 완료: %d/%d행 (오류 %d)", table_name, inserted, len(rows), len(errors)
        )
        return LoadResult(inserted=inserted, errors=errors, processed=len(rows))

    def _insert_all(
        self,
        connection: Any,
        table_name: str,
        columns: list[Column],
        rows: list[Row],
        errors: list[LoadError],
        on_progress: Optional[LoadProgressCallback],
    ) -> int:
        step = self._chunk_size if self._bulk else 1
        inserted = 0
        for offset in range(0, len(rows), step):
            chunk = rows[offset:offset + step]
            inserted += self._insert_chunk(
                connection, table_name, columns, chunk, offset, errors, on_progress
            )
        return inserted

    def _insert_chunk(
        self,
        connection: Any,
        table_name: str,
        columns: list[Column],
        chunk: list[Row],
        offset: int,
        errors: list[LoadError],
        on_progress: Optional[LoadProgressCallback],
    ) -> int:
        statement, params = self.build_insert(table_name, columns, chunk)

        if not self._continue_on_error:
            try:
                connection.execute(statement, params)
            except SQLAlchemyError as e:
                errors.append(LoadError(index=offset, message=_error_message(e), row=chunk[0]))
                raise
            self._notify(on_progress, len(chunk))
            return len(chunk)

        savepoint = connection.begin_nested()
        try:
            connection.execute(statement, params)
        except SQLAlchemyError as e:
            savepoint.rollback()
            if len(chunk) == 1:
                errors.append(LoadError(index=offset, message=_error_message(e), row=chunk[0]))
                return 0
            logger.warning(
                "'%s' 청크(%d~%d) 실패, 행 단위로 재시도: %s",
                table_name,
                offset,
                offset + len(chunk) - 1,
                _error_message(e),
            )
            return self._insert_rows_individually(
                connection, table_name, columns, chunk, offset, errors, on_progress
            )
        savepoint.commit()
        self._notify(on_progress, len(chunk))
        return len(chunk)

    def _insert_rows_individually(
        self,
        connection: Any,
        table_name: str,
        columns: list[Column],
        chunk: list[Row],
        offset: int,
        errors: list[LoadError],
        on_progress: Optional[LoadProgressCallback],
    ) -> int:
        success = 0
        for idx, row in enumerate(chunk):
            statement, params = self.build_insert(table_name, columns, [row])
            savepoint = connection.begin_nested()
            try:
                connection.execute(statement, params)
            except SQLAlchemyError as e:
                savepoint.rollback()
                errors.append(LoadError(index=offset + idx, message=_error_message(e), row=row))
                continue
            savepoint.commit()
            success += 1
            self._notify(on_progress, 1)
        return success

    def build_insert(
        self, table_name: str, columns: list[Column], chunk: list[Row]
    ) -> tuple[Any, dict[str, Any]]:
        """다중 행 INSERT 문과 바인드 파라미터를 만든다.

        Args:
            table_name: 테이블 이름
            columns: INSERT 대상 컬럼
            chunk: 행 묶음

        Returns:
            (text() 문, 파라미터 딕셔너리)
        """
        column_list = ", ".join(quote_identifier(column.name) for column in columns)
        params: dict[str, Any] = {}
        tuples = []
        for row_idx, row in enumerate(chunk):
            values = self._normalizer.normalize_row(row or {}, columns)
            names = []
            for col_idx, value in enumerate(values):
                name = f"r{row_idx}_c{col_idx}"
                params[name] = value
                names.append(f":{name}")
            tuples.append("(" + ", ".join(names) + ")")

        sql = (
            f"INSERT INTO {quote_identifier(table_name)} ({column_list}) VALUES "
            + ", ".join(tuples)
        )
        return text(sql), params

    def _notify(self, on_progress: Optional[LoadProgressCallback], count: int) -> None:
        if on_progress and count:
            on_progress(count)
