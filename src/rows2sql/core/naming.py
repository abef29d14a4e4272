"""SQL 식별자 정제 유틸리티."""

import re
import unicodedata
from pathlib import Path
from typing import Any, Optional

NON_WORD_PATTERN = re.compile(r"[^A-Za-z0-9_]")
MULTI_UNDERSCORE_PATTERN = re.compile(r"_+")


def sanitize_name(name: Any, fallback_prefix: str = "col", suffix: Any = "") -> str:
    """임의의 문자열을 SQL 안전 식별자로 변환한다.

    악센트는 제거하고 영숫자/밑줄 외 문자는 밑줄로 치환한 뒤 소문자로 만든다.
    숫자로 시작하면 접두어를 붙인다.

    Args:
        name: 원본 이름
        fallback_prefix: 정제 결과가 비었을 때 사용할 접두어
        suffix: 대체 이름에 붙일 접미어 (예: 컬럼 순번)

    Returns:
        SQL 안전 식별자
    """
    raw = "" if name is None else str(name).strip()
    decomposed = unicodedata.normalize("NFKD", raw)
    ascii_only = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    base = NON_WORD_PATTERN.sub("_", ascii_only)
    base = MULTI_UNDERSCORE_PATTERN.sub("_", base).strip("_").lower()

    if not base:
        base = f"{fallback_prefix}_{suffix}" if suffix != "" else fallback_prefix
    if base[0].isdigit():
        base = f"{fallback_prefix}_{base}"
    return base


def ensure_unique_name(candidate: str, used: set[str]) -> str:
    """사용 중인 이름과 겹치지 않도록 _2, _3 ... 접미어를 붙인다.

    선택된 이름은 used에 추가된다.
    """
    name = candidate
    idx = 1
    while name in used:
        idx += 1
        name = f"{candidate}_{idx}"
    used.add(name)
    return name


def derive_table_name(source: Optional[str], override: Optional[str] = None) -> str:
    """파일 경로 또는 명시적 이름에서 테이블명을 만든다."""
    if override:
        return sanitize_name(override, "table")
    stem = Path(source).stem if source else ""
    return sanitize_name(stem or "table", "table")


def flatten_record(record: dict[str, Any]) -> dict[str, Any]:
    """한 단계 중첩된 매핑을 parent_child 키로 펼친다."""
    flat: dict[str, Any] = {}
    for key, value in record.items():
        if isinstance(value, dict):
            for child_key, child_value in value.items():
                flat[f"{key}_{child_key}"] = child_value
        else:
            flat[key] = value
    return flat
