"""실행 리포트 조립 및 JSON 저장."""

import json
from pathlib import Path
from typing import Any, Optional, Union


def write_json(data: Any, output_path: Optional[Union[str, Path]]) -> Optional[Path]:
    """JSON 파일로 저장. 경로가 없으면 아무것도 하지 않는다.

    Args:
        data: 직렬화할 데이터
        output_path: 저장 경로

    Returns:
        저장된 경로 또는 None
    """
    if not output_path:
        return None
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(data, indent=2, ensure_ascii=False, default=str),
        encoding="utf-8",
    )
    return path


def build_run_report(
    table_name: str,
    row_count: int,
    inserted: int,
    error_count: int,
    primary_keys: list[str],
    source_format: Optional[str] = None,
    encoding: Optional[str] = None,
    ddl_path: Optional[str] = None,
    insert_script_path: Optional[str] = None,
    procedures_path: Optional[str] = None,
    execution_ms: Optional[int] = None,
    validation_issues: int = 0,
) -> dict[str, Any]:
    """단일 테이블 실행 리포트."""
    return {
        "table": table_name,
        "sourceFormat": source_format,
        "encoding": encoding,
        "rowCount": row_count,
        "inserted": inserted,
        "errors": error_count,
        "ddlPath": ddl_path,
        "insertScriptPath": insert_script_path,
        "proceduresPath": procedures_path,
        "executionMs": execution_ms,
        "primaryKeys": list(primary_keys),
        "validationIssues": validation_issues,
    }


def build_batch_report(
    tables: list[dict[str, Any]],
    total_rows: int,
    foreign_keys: int,
    validation_issues: int,
    execution_ms: Optional[int] = None,
    insertion_order: Optional[list[str]] = None,
) -> dict[str, Any]:
    """배치 실행 리포트."""
    return {
        "mode": "batch",
        "totalTables": len(tables),
        "totalRows": total_rows,
        "totalInserted": sum(table.get("inserted", 0) for table in tables),
        "totalErrors": sum(table.get("errors", 0) for table in tables),
        "tables": tables,
        "foreignKeys": foreign_keys,
        "validationIssues": validation_issues,
        "insertionOrder": list(insertion_order or []),
        "executionMs": execution_ms,
    }
