"""스키마 빌더 - 분석된 컬럼으로 테이블 스키마를 구성."""

import logging
from typing import Optional

from rows2sql.core.models import Column, Row, Schema, ValueKind
from rows2sql.core.naming import ensure_unique_name
from rows2sql.migration.schema.type_analyzer import TypeAnalyzer

logger = logging.getLogger(__name__)

SYNTHETIC_KEY_NAME = "id"


class SchemaBuilder:
    """기본 키를 선정하거나 합성하여 스키마를 만드는 서비스."""

    def __init__(self, type_analyzer: Optional[TypeAnalyzer] = None) -> None:
        """스키마 빌더 초기화.

        Args:
            type_analyzer: 타입 분석기 (없으면 기본 분석기 사용)
        """
        self._type_analyzer = type_analyzer or TypeAnalyzer()

    def infer_schema(self, rows: list[Row]) -> Schema:
        """행 전체를 분석하여 스키마를 추론.

        Args:
            rows: 테이블의 모든 행

        Returns:
            Schema 객체
        """
        return self.build(self._type_analyzer.analyze(rows))

    def build(self, columns: list[Column]) -> Schema:
        """분석된 컬럼으로 스키마를 구성.

        원본 컬럼 순서에서 처음 나오는 고유/비-null 컬럼을 기본 키로 삼는다.
        후보가 없으면 auto-increment 정수 컬럼을 맨 앞에 추가한다.

        Args:
            columns: TypeAnalyzer가 만든 컬럼 리스트

        Returns:
            Schema 객체
        """
        columns = list(columns)
        candidate = next(
            (column for column in columns if column.unique and not column.nullable),
            None,
        )

        if candidate is not None:
            candidate.is_primary_key = True
            logger.debug("기본 키 선정: %s", candidate.name)
            return Schema(columns=columns, primary_keys=[candidate.name])

        used_names = {column.name for column in columns}
        synthetic_name = ensure_unique_name(SYNTHETIC_KEY_NAME, used_names)
        synthetic = Column(
            raw_name=synthetic_name,
            name=synthetic_name,
            inferred_kind=ValueKind.INTEGER,
            sql_type="INT",
            nullable=False,
            unique=True,
            is_primary_key=True,
            auto_increment=True,
        )
        logger.debug("기본 키 후보 없음, 합성 키 추가: %s", synthetic_name)
        return Schema(columns=[synthetic, *columns], primary_keys=[synthetic_name])
