"""입력 파일 디코더 테스트."""

import json

import pytest

from rows2sql.migration.pipeline import MigrationInputError
from rows2sql.migration.readers import detect_delimiter, read_csv, read_json, read_table_input


class TestDetectDelimiter:
    """구분자 판별 테스트."""

    def test_comma_is_default(self) -> None:
        """구분자가 없으면 쉼표여야 함."""
        assert detect_delimiter("name\nkim\n") == ","

    def test_semicolon_is_detected(self) -> None:
        """세미콜론이 가장 많으면 세미콜론이어야 함."""
        assert detect_delimiter("a;b;c\n1;2;3\n") == ";"

    def test_tab_is_detected(self) -> None:
        """탭이 가장 많으면 탭이어야 함."""
        assert detect_delimiter("a\tb\n1\t2\n") == "\t"


class TestReadCsv:
    """CSV/TSV 읽기 테스트."""

    def test_tsv_uses_tab_delimiter(self, tmp_path) -> None:
        """.tsv 파일은 값에 쉼표가 있어도 탭으로 나눠야 함."""
        # Given
        path = tmp_path / "people.tsv"
        path.write_text("name\tcity\nKim, Minsu\tSeoul, KR\n", encoding="utf-8")

        # When
        rows, encoding, delimiter = read_csv(path)

        # Then
        assert delimiter == "\t"
        assert encoding == "utf-8-sig"
        assert rows == [{"name": "Kim, Minsu", "city": "Seoul, KR"}]

    def test_quoted_newline_stays_in_one_row(self, tmp_path) -> None:
        """따옴표 안의 줄바꿈은 한 행으로 읽어야 함."""
        path = tmp_path / "notes.csv"
        path.write_text('id,note\n1,"line1\nline2"\n2,plain\n', encoding="utf-8")

        rows, _, _ = read_csv(path)

        assert rows == [{"id": "1", "note": "line1\nline2"}, {"id": "2", "note": "plain"}]

    def test_extra_values_are_dropped(self, tmp_path) -> None:
        """헤더보다 많은 값은 버려야 함."""
        path = tmp_path / "extra.csv"
        path.write_text("a,b\n1,2,3\n", encoding="utf-8")

        rows, _, _ = read_csv(path)

        assert rows == [{"a": "1", "b": "2"}]

    def test_cp949_fallback(self, tmp_path) -> None:
        """UTF-8이 아니면 cp949로 읽어야 함."""
        path = tmp_path / "korean.csv"
        path.write_bytes("이름,도시\n김민수,서울\n".encode("cp949"))

        rows, encoding, _ = read_csv(path)

        assert encoding == "cp949"
        assert rows == [{"이름": "김민수", "도시": "서울"}]


class TestReadJson:
    """JSON 읽기 테스트."""

    def test_single_object_is_wrapped_and_flattened(self, tmp_path) -> None:
        """단일 객체는 배열로 감싸고 중첩은 펼쳐야 함."""
        path = tmp_path / "user.json"
        path.write_text(json.dumps({"id": 1, "address": {"city": "Seoul"}}), encoding="utf-8")

        assert read_json(path) == [{"id": 1, "address_city": "Seoul"}]

    def test_non_record_array_raises(self, tmp_path) -> None:
        """객체 배열이 아니면 MigrationInputError여야 함."""
        path = tmp_path / "numbers.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        with pytest.raises(MigrationInputError):
            read_json(path)


class TestReadTableInput:
    """확장자별 디코딩 테스트."""

    def test_table_name_and_meta_from_tsv(self, tmp_path) -> None:
        """파일명에서 테이블명을 만들고 구분자를 메타에 남겨야 함."""
        path = tmp_path / "Order Items.tsv"
        path.write_text("sku\tqty\nA-1\t2\n", encoding="utf-8")

        table_input = read_table_input(path)

        assert table_input.name == "order_items"
        assert table_input.source_format == "csv"
        assert table_input.meta == {"path": str(path), "delimiter": "\t"}
        assert table_input.rows == [{"sku": "A-1", "qty": "2"}]

    def test_unsupported_extension_raises(self, tmp_path) -> None:
        """지원하지 않는 확장자는 MigrationInputError여야 함."""
        path = tmp_path / "data.xml"
        path.write_text("<rows/>", encoding="utf-8")

        with pytest.raises(MigrationInputError, match="지원하지 않는"):
            read_table_input(path)
