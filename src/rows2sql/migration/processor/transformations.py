"""행 변환 모듈 - 컬럼 이름 변경, 텍스트 변환, 값 매핑."""

import re
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rows2sql.core.models import Row


class TransformConfigError(Exception):
    """변환 설정 로드 실패."""

    pass


class TextTransform(BaseModel):
    """텍스트 변환 단계 하나."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    regex: bool = False
    start: Optional[int] = None
    end: Optional[int] = None


class TransformConfig(BaseModel):
    """행 변환 설정."""

    model_config = ConfigDict(populate_by_name=True)

    column_renames: dict[str, str] = Field(default_factory=dict, alias="columnRenames")
    text_transformations: dict[str, list[TextTransform]] = Field(
        default_factory=dict, alias="textTransformations"
    )
    value_mappings: dict[str, dict[str, Any]] = Field(
        default_factory=dict, alias="valueMappings"
    )
    global_text_transformations: list[TextTransform] = Field(
        default_factory=list, alias="globalTextTransformations"
    )


def load_transform_config(config_path: Union[str, Path]) -> TransformConfig:
    """JSON 파일에서 변환 설정을 읽는다.

    Raises:
        TransformConfigError: 파일이 없거나 형식이 잘못된 경우
    """
    path = Path(config_path)
    try:
        return TransformConfig.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise TransformConfigError(f"변환 설정을 읽을 수 없습니다: {path}: {e}") from e
    except ValidationError as e:
        raise TransformConfigError(f"변환 설정 형식 오류: {path}: {e}") from e


def apply_text_transformations(value: Any, transformations: list[TextTransform]) -> Any:
    """텍스트 변환 단계를 순서대로 적용. 알 수 없는 타입은 무시한다."""
    if value is None:
        return value
    result = str(value)

    for transform in transformations:
        kind = transform.type.lower()
        if kind == "upper":
            result = result.upper()
        elif kind == "lower":
            result = result.lower()
        elif kind == "trim":
            result = result.strip()
        elif kind == "replace":
            if transform.from_ is not None and transform.to is not None:
                pattern = transform.from_ if transform.regex else re.escape(transform.from_)
                result = re.sub(pattern, transform.to, result)
        elif kind == "substring":
            if transform.start is not None:
                result = result[transform.start:transform.end]
        elif kind == "titlecase":
            result = " ".join(word[:1].upper() + word[1:] for word in result.lower().split(" "))

    return result


def apply_value_mapping(value: Any, mapping: dict[str, Any]) -> Any:
    """값 매핑 적용. 정확히 일치하는 키가 없으면 대소문자 무시로 찾는다."""
    if value is None:
        return value

    key = str(value).strip()
    if key in mapping:
        return mapping[key]

    lower_key = key.lower()
    for map_key, map_value in mapping.items():
        if map_key.lower() == lower_key:
            return map_value

    return value


def apply_column_renames(rows: list[Row], renames: dict[str, str]) -> list[Row]:
    """컬럼 이름 변경."""
    if not renames:
        return rows
    return [{renames.get(key, key): value for key, value in row.items()} for row in rows]


def apply_transformations(rows: list[Row], config: Optional[TransformConfig]) -> list[Row]:
    """설정된 모든 변환을 적용한 새 행 리스트를 반환.

    순서: 이름 변경 → 컬럼별 텍스트 변환 → 값 매핑 → 전역 텍스트 변환.

    Args:
        rows: 원본 행
        config: 변환 설정 (None이면 그대로 반환)

    Returns:
        변환된 행 리스트
    """
    if config is None:
        return rows

    transformed = apply_column_renames(rows, config.column_renames)
    result = []
    for row in transformed:
        new_row = dict(row)
        for column, steps in config.text_transformations.items():
            if column in new_row:
                new_row[column] = apply_text_transformations(new_row[column], steps)
        for column, mapping in config.value_mappings.items():
            if column in new_row:
                new_row[column] = apply_value_mapping(new_row[column], mapping)
        if config.global_text_transformations:
            for key, value in list(new_row.items()):
                if isinstance(value, str):
                    new_row[key] = apply_text_transformations(
                        value, config.global_text_transformations
                    )
        result.append(new_row)
    return result
