"""스키마 빌더 테스트."""

from rows2sql.migration.processor.validator import Validator
from rows2sql.migration.schema.schema_builder import SchemaBuilder
from rows2sql.migration.schema.type_analyzer import MAX_UNIQUE_SAMPLE


class TestSchemaBuilder:
    """SchemaBuilder 테스트."""

    def test_first_unique_non_null_column_becomes_primary_key(self) -> None:
        """원본 순서에서 처음 나오는 고유/비-null 컬럼이 기본 키여야 함."""
        # Given
        rows = [
            {"status": "new", "code": "A1", "email": "a@x.com"},
            {"status": "new", "code": "B2", "email": "b@x.com"},
        ]

        # When
        schema = SchemaBuilder().infer_schema(rows)

        # Then
        assert schema.primary_keys == ["code"]
        assert schema.get_column("code").is_primary_key is True
        assert schema.get_column("email").is_primary_key is False
        assert all(not column.auto_increment for column in schema.columns)

    def test_synthetic_key_is_prepended_when_no_candidate(self) -> None:
        """후보가 없으면 auto-increment id 컬럼을 맨 앞에 추가해야 함."""
        # Given
        rows = [{"name": "Kim"}, {"name": "Kim"}]

        # When
        schema = SchemaBuilder().infer_schema(rows)

        # Then
        first = schema.columns[0]
        assert schema.primary_keys == ["id"]
        assert first.name == "id"
        assert first.auto_increment is True
        assert first.sql_type == "INT"
        assert first.nullable is False

    def test_synthetic_key_avoids_existing_name(self) -> None:
        """기존 컬럼 id와 겹치면 합성 키 이름을 바꿔야 함."""
        rows = [{"id": "1", "name": "a"}, {"id": "1", "name": "a"}]

        schema = SchemaBuilder().infer_schema(rows)

        assert schema.primary_keys == ["id_2"]
        assert schema.column_names() == ["id_2", "id", "name"]

    def test_schema_has_single_auto_increment(self) -> None:
        """auto-increment 컬럼은 최대 하나여야 함."""
        schema = SchemaBuilder().infer_schema([{"a": None}, {"a": None}])

        assert sum(1 for column in schema.columns if column.auto_increment) == 1

    def test_capped_uniqueness_column_is_not_primary_key(self) -> None:
        """고유 값 상한을 넘은 컬럼은 기본 키로 선택하지 않아야 함."""
        # Given
        rows = [{"code": f"c{idx}"} for idx in range(MAX_UNIQUE_SAMPLE + 1)]

        # When
        schema = SchemaBuilder().infer_schema(rows)

        # Then
        assert schema.primary_keys == ["id"]
        assert schema.get_column("code").unique is False

    def test_inferred_text_width_accepts_its_own_values(self) -> None:
        """혼합 텍스트 컬럼의 VARCHAR 폭은 원본 값 검증을 통과해야 함."""
        # Given
        rows = [{"v": "-12345"}, {"v": "yes"}, {"v": "00007"}, {"v": "ab"}]

        # When
        schema = SchemaBuilder().infer_schema(rows)
        issues = Validator().validate_values(rows, schema)

        # Then
        assert schema.get_column("v").sql_type == "VARCHAR(6)"
        assert [issue.type for issue in issues] == []
