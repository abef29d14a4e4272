"""입력 파일 디코더 - CSV/TSV/JSON을 레코드 배열로 읽는다."""

import csv
import io
import json
import logging
from pathlib import Path
from typing import Optional

from rows2sql.core.models import Row, TableInput
from rows2sql.core.naming import derive_table_name, flatten_record
from rows2sql.migration.pipeline import MigrationInputError

logger = logging.getLogger(__name__)

CSV_ENCODINGS = ("utf-8-sig", "cp949", "latin-1")
DELIMITER_CANDIDATES = (",", ";", "\t")

# 구분자 판별에 사용할 앞부분 줄 수
DELIMITER_SAMPLE_LINES = 5


def detect_delimiter(sample: str) -> str:
    """앞부분 줄에서 가장 많이 등장하는 구분자를 고른다.

    Args:
        sample: 파일 앞부분 텍스트

    Returns:
        ',', ';', '\\t' 중 하나 (동률이면 앞선 후보)
    """
    lines = [line for line in sample.splitlines() if line][:DELIMITER_SAMPLE_LINES]
    best, best_score = ",", -1
    for candidate in DELIMITER_CANDIDATES:
        score = sum(line.count(candidate) for line in lines)
        if score > best_score:
            best, best_score = candidate, score
    return best


def _read_text(path: Path) -> tuple[str, str]:
    last_error: Optional[UnicodeDecodeError] = None
    for encoding in CSV_ENCODINGS:
        try:
            return path.read_text(encoding=encoding), encoding
        except UnicodeDecodeError as e:
            last_error = e
    raise MigrationInputError(f"인코딩을 판별할 수 없습니다: {path} ({last_error})")


def read_csv(path: Path, delimiter: Optional[str] = None) -> tuple[list[Row], str, str]:
    """CSV/TSV 파일을 레코드 배열로 읽는다.

    Args:
        path: 입력 파일 경로
        delimiter: 구분자 (None이면 .tsv는 탭, 그 외는 자동 판별)

    Returns:
        (행 리스트, 인코딩, 구분자)
    """
    content, encoding = _read_text(path)
    if delimiter is None:
        delimiter = "\t" if path.suffix.lower() == ".tsv" else detect_delimiter(content)

    rows = []
    for record in csv.DictReader(io.StringIO(content, newline=""), delimiter=delimiter):
        # 헤더보다 긴 행의 초과 값(None 키)은 버린다
        rows.append({key: value for key, value in record.items() if key is not None})

    logger.debug("%s: %d행 (인코딩 %s, 구분자 %r)", path, len(rows), encoding, delimiter)
    return rows, encoding, delimiter


def read_json(path: Path) -> list[Row]:
    """JSON 파일을 레코드 배열로 읽는다. 한 단계 중첩은 펼친다."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise MigrationInputError(f"JSON 입력은 객체 배열이어야 합니다: {path}")
    return [flatten_record(item) for item in data]


def read_table_input(path: Path, table_name: Optional[str] = None) -> TableInput:
    """확장자에 따라 입력 파일을 디코딩.

    Args:
        path: 입력 파일 경로
        table_name: 명시적 테이블 이름 (없으면 파일명에서 유도)

    Returns:
        TableInput
    """
    suffix = path.suffix.lower()
    meta = {"path": str(path)}
    if suffix in (".csv", ".tsv", ".txt"):
        rows, encoding, delimiter = read_csv(path)
        source_format = "csv"
        meta["delimiter"] = delimiter
    elif suffix == ".json":
        rows, encoding = read_json(path), "utf-8"
        source_format = "json"
    else:
        raise MigrationInputError(f"지원하지 않는 입력 형식입니다: {path.suffix}")

    return TableInput(
        name=derive_table_name(str(path), table_name),
        rows=rows,
        source_format=source_format,
        encoding=encoding,
        meta=meta,
    )
