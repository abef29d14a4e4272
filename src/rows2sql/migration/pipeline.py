"""마이그레이션 파이프라인 오케스트레이터."""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from rows2sql.core.config import Settings
from rows2sql.core.models import (
    ForeignKeyEdge,
    InferredTable,
    LoadResult,
    Row,
    Schema,
    TableInput,
    ValidationIssue,
)
from rows2sql.core.naming import derive_table_name, ensure_unique_name
from rows2sql.migration.batch.dependency_resolver import DependencyResolver
from rows2sql.migration.loader.bulk_loader import BulkLoader, LoadAbortedError
from rows2sql.migration.processor.insert_builder import InsertScript, InsertScriptBuilder
from rows2sql.migration.processor.transformations import TransformConfig, apply_transformations
from rows2sql.migration.processor.validator import Validator, write_validation_report
from rows2sql.migration.reporting import build_batch_report, build_run_report, write_json
from rows2sql.migration.schema.ddl_generator import DDLGenerator
from rows2sql.migration.schema.procedure_generator import ProcedureGenerator, StoredProcedure
from rows2sql.migration.schema.schema_builder import SchemaBuilder

logger = logging.getLogger(__name__)

FOREIGN_KEYS_FILENAME = "foreign_keys.sql"
BATCH_REPORT_FILENAME = "batch_report.json"
VALIDATION_REPORT_FILENAME = "validation_report.json"


class MigrationInputError(Exception):
    """입력 행이 없거나 레코드 배열 형태가 아님."""

    pass


class ValidationGateError(Exception):
    """fail-fast 정책에서 error 심각도 검증 이슈가 발견됨."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        error_count = sum(1 for issue in issues if issue.is_error)
        super().__init__(f"검증 오류 {error_count}건으로 적재를 중단합니다")


class PipelineStage(Enum):
    """파이프라인 단계."""

    TRANSFORMING = "transforming"
    INFERRING = "inferring"
    RESOLVING_DEPENDENCIES = "resolving_dependencies"
    VALIDATING = "validating"
    GENERATING_DDL = "generating_ddl"
    GENERATING_PROCEDURES = "generating_procedures"
    RENDERING_INSERTS = "rendering_inserts"
    LOADING = "loading"
    COMPLETED = "completed"


@dataclass
class ProgressInfo:
    """진행 상황 정보."""

    stage: PipelineStage
    current: int = 0
    total: int = 0
    message: str = ""
    table: str = ""


# 진행 상황 콜백 타입
ProgressCallback = Callable[[ProgressInfo], None]


@dataclass
class MigrationOptions:
    """실행 단위 옵션과 산출물 경로."""

    chunk_size: int = 250
    bulk_insert: bool = True
    continue_on_error: bool = True
    dry_run: bool = False
    skip_load: bool = False
    enable_validation: bool = False
    check_duplicates: bool = True
    check_invalid_values: bool = True
    detect_foreign_keys: bool = False
    sort_by_dependencies: bool = False
    abort_batch_on_failure: bool = False
    generate_procedures: bool = False
    output_dir: Optional[str] = None
    ddl_output_path: Optional[str] = None
    insert_output_path: Optional[str] = None
    procedures_output_path: Optional[str] = None
    report_output_path: Optional[str] = None
    validation_report_path: Optional[str] = None
    transform_config: Optional[TransformConfig] = None

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "MigrationOptions":
        """Settings 값으로 기본 옵션을 채운다.

        Args:
            settings: 애플리케이션 설정
            **overrides: 덮어쓸 옵션 (CLI 인자 등)

        Returns:
            MigrationOptions
        """
        values: dict[str, Any] = {
            "chunk_size": settings.chunk_size,
            "bulk_insert": settings.bulk_insert,
            "continue_on_error": settings.effective_continue_on_error,
            "dry_run": settings.dry_run,
            "skip_load": settings.skip_load,
            "enable_validation": settings.enable_validation,
            "check_duplicates": settings.check_duplicates,
            "check_invalid_values": settings.check_invalid_values,
            "detect_foreign_keys": settings.detect_foreign_keys,
            "sort_by_dependencies": settings.sort_by_dependencies,
            "abort_batch_on_failure": settings.abort_batch_on_failure,
            "generate_procedures": settings.generate_procedures,
            "output_dir": settings.output_dir,
        }
        values.update(overrides)
        return cls(**values)


@dataclass
class MigrationResult:
    """단일 테이블 실행 결과."""

    table_name: str
    schema: Schema
    ddl: str
    row_count: int
    load: LoadResult = field(default_factory=LoadResult)
    status: str = "loaded"
    validation_issues: list[ValidationIssue] = field(default_factory=list)
    insert_script: Optional[InsertScript] = None
    procedures: list[StoredProcedure] = field(default_factory=list)
    source_format: Optional[str] = None
    encoding: Optional[str] = None
    ddl_path: Optional[str] = None
    insert_script_path: Optional[str] = None
    procedures_path: Optional[str] = None
    execution_ms: Optional[int] = None

    @property
    def inserted(self) -> int:
        """적재된 행 수."""
        return self.load.inserted

    @property
    def error_count(self) -> int:
        """적재 실패 행 수."""
        return len(self.load.errors)

    @property
    def success(self) -> bool:
        """롤백 없이 모든 행이 처리되었는지 여부."""
        return not self.load.rolled_back and self.error_count == 0

    def to_dict(self) -> dict[str, Any]:
        """JSON 실행 리포트 형태로 변환."""
        return build_run_report(
            table_name=self.table_name,
            row_count=self.row_count,
            inserted=self.inserted,
            error_count=self.error_count,
            primary_keys=self.schema.primary_keys,
            source_format=self.source_format,
            encoding=self.encoding,
            ddl_path=self.ddl_path,
            insert_script_path=self.insert_script_path,
            procedures_path=self.procedures_path,
            execution_ms=self.execution_ms,
            validation_issues=len(self.validation_issues),
        )

    def to_report(self) -> str:
        """실행 결과를 리포트 문자열로 변환.

        Returns:
            리포트 문자열
        """
        lines = [
            f"=== 테이블 '{self.table_name}' 실행 결과 ===",
            f"상태: {self.status}",
            f"전체 행: {self.row_count}건",
            f"적재된 행: {self.inserted}건",
            f"실패 행: {self.error_count}건",
            f"기본 키: {', '.join(self.schema.primary_keys)}",
            f"검증 이슈: {len(self.validation_issues)}건",
        ]
        if self.ddl_path:
            lines.append(f"DDL: {self.ddl_path}")
        if self.insert_script_path:
            lines.append(f"INSERT 스크립트: {self.insert_script_path}")
        if self.procedures:
            names = ", ".join(procedure.name for procedure in self.procedures)
            lines.append(f"저장 프로시저: {names}")

        if self.load.errors:
            lines.append("\n=== 실패 행 ===")
            for error in self.load.errors:
                lines.append(f"  - #{error.index}: {error.message}")

        return "\n".join(lines)


@dataclass
class BatchResult:
    """배치 실행 결과."""

    tables: list[MigrationResult] = field(default_factory=list)
    edges: list[ForeignKeyEdge] = field(default_factory=list)
    insertion_order: list[str] = field(default_factory=list)
    has_cycle: bool = False
    validation_issues: list[ValidationIssue] = field(default_factory=list)
    foreign_keys_path: Optional[str] = None
    execution_ms: Optional[int] = None

    @property
    def total_rows(self) -> int:
        """전체 입력 행 수."""
        return sum(table.row_count for table in self.tables)

    @property
    def total_inserted(self) -> int:
        """전체 적재 행 수."""
        return sum(table.inserted for table in self.tables)

    def to_dict(self) -> dict[str, Any]:
        """JSON 배치 리포트 형태로 변환."""
        tables = []
        for table in self.tables:
            entry = table.to_dict()
            entry["status"] = table.status
            tables.append(entry)

        report = build_batch_report(
            tables=tables,
            total_rows=self.total_rows,
            foreign_keys=len(self.edges),
            validation_issues=len(self.validation_issues),
            execution_ms=self.execution_ms,
            insertion_order=self.insertion_order,
        )
        report["foreignKeyEdges"] = [edge.to_dict() for edge in self.edges]
        report["hasCycle"] = self.has_cycle
        return report

    def to_report(self) -> str:
        """배치 결과를 리포트 문자열로 변환.

        Returns:
            리포트 문자열
        """
        lines = [
            "=== 배치 실행 결과 ===",
            f"테이블 수: {len(self.tables)}개",
            f"전체 행: {self.total_rows}건",
            f"적재된 행: {self.total_inserted}건",
            f"외래 키: {len(self.edges)}개",
            f"검증 이슈: {len(self.validation_issues)}건",
            f"적재 순서: {' -> '.join(self.insertion_order)}",
        ]
        if self.has_cycle:
            lines.append("의존성 순환 감지: 원래 순서로 적재")

        lines.append("\n=== 테이블별 결과 ===")
        for table in self.tables:
            lines.append(
                f"  - {table.table_name}: {table.status}, "
                f"{table.inserted}/{table.row_count}건 (실패 {table.error_count})"
            )
        return "\n".join(lines)


class MigrationPipeline:
    """스키마 추론부터 적재까지 실행하는 오케스트레이터."""

    def __init__(
        self,
        options: MigrationOptions,
        adapter: Any = None,
        loader: Optional[BulkLoader] = None,
        schema_builder: Optional[SchemaBuilder] = None,
        ddl_generator: Optional[DDLGenerator] = None,
        procedure_generator: Optional[ProcedureGenerator] = None,
        insert_builder: Optional[InsertScriptBuilder] = None,
        validator: Optional[Validator] = None,
        dependency_resolver: Optional[DependencyResolver] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """파이프라인 초기화.

        Args:
            options: 실행 옵션
            adapter: 대상 DB 어댑터 (dry-run/skip-load면 생략 가능)
            loader: 벌크 로더 (없으면 옵션으로 생성)
            schema_builder: 스키마 빌더
            ddl_generator: DDL 생성기
            procedure_generator: 저장 프로시저 생성기
            insert_builder: INSERT 스크립트 빌더
            validator: 검증기
            dependency_resolver: 의존성 해석기
            progress_callback: 진행 상황 콜백 함수
        """
        self._options = options
        self._adapter = adapter
        self._loader = loader
        self._schema_builder = schema_builder or SchemaBuilder()
        self._ddl_generator = ddl_generator or DDLGenerator()
        self._procedure_generator = procedure_generator or ProcedureGenerator()
        self._insert_builder = insert_builder or InsertScriptBuilder()
        self._validator = validator or Validator(
            check_duplicates=options.check_duplicates,
            check_invalid_values=options.check_invalid_values,
        )
        self._dependency_resolver = dependency_resolver or DependencyResolver()
        self._progress_callback = progress_callback

    def _notify_progress(self, info: ProgressInfo) -> None:
        """진행 상황을 알림."""
        if self._progress_callback:
            self._progress_callback(info)

    def _get_loader(self) -> BulkLoader:
        if self._loader is None:
            if self._adapter is None and not self._options.dry_run:
                raise RuntimeError("대상 DB 어댑터가 설정되지 않았습니다.")
            self._loader = BulkLoader(
                self._adapter,
                chunk_size=self._options.chunk_size,
                bulk=self._options.bulk_insert,
                continue_on_error=self._options.continue_on_error,
                dry_run=self._options.dry_run,
            )
        return self._loader

    def _output_path(self, explicit: Optional[str], filename: str) -> Optional[str]:
        if explicit:
            return explicit
        if self._options.output_dir:
            return str(Path(self._options.output_dir) / filename)
        return None

    def _prepare_rows(self, table_input: TableInput) -> list[Row]:
        """입력 형태를 검사하고 변환을 적용."""
        rows = table_input.rows
        if not rows:
            raise MigrationInputError(f"'{table_input.name}'에 적재할 행이 없습니다")
        if not all(isinstance(row, Mapping) for row in rows):
            raise MigrationInputError(f"'{table_input.name}' 입력이 레코드 배열 형태가 아닙니다")

        rows = [dict(row) for row in rows]
        if self._options.transform_config is not None:
            self._notify_progress(ProgressInfo(
                stage=PipelineStage.TRANSFORMING,
                total=len(rows),
                message="행 변환 적용 중...",
                table=table_input.name,
            ))
            rows = apply_transformations(rows, self._options.transform_config)
        return rows

    def _infer(self, table_name: str, rows: list[Row]) -> Schema:
        self._notify_progress(ProgressInfo(
            stage=PipelineStage.INFERRING,
            total=len(rows),
            message="스키마 추론 중...",
            table=table_name,
        ))
        schema = self._schema_builder.infer_schema(rows)
        logger.info(
            "'%s' 스키마 추론: 컬럼 %d개, 기본 키 %s",
            table_name,
            len(schema.columns),
            schema.primary_keys,
        )
        return schema

    def _check_validation_gate(self, issues: list[ValidationIssue]) -> None:
        if self._options.continue_on_error:
            return
        if any(issue.is_error for issue in issues):
            raise ValidationGateError(issues)

    def _render_inserts(
        self, table_name: str, schema: Schema, rows: list[Row], output_path: Optional[str]
    ) -> Optional[InsertScript]:
        if not (self._options.dry_run or output_path):
            return None
        self._notify_progress(ProgressInfo(
            stage=PipelineStage.RENDERING_INSERTS,
            total=len(rows),
            message="INSERT 스크립트 생성 중...",
            table=table_name,
        ))
        script = self._insert_builder.build(
            table_name,
            schema,
            rows,
            bulk=self._options.bulk_insert,
            chunk_size=self._options.chunk_size,
        )
        self._ddl_generator.write(script.sql, output_path)
        return script

    def _generate_procedures(
        self, table_name: str, schema: Schema, output_path: Optional[str]
    ) -> list[StoredProcedure]:
        if not self._options.generate_procedures:
            return []
        self._notify_progress(ProgressInfo(
            stage=PipelineStage.GENERATING_PROCEDURES,
            message="저장 프로시저 생성 중...",
            table=table_name,
        ))
        procedures = self._procedure_generator.generate_crud(table_name, schema)
        self._ddl_generator.write(self._procedure_generator.render_script(procedures), output_path)
        logger.info("'%s' 저장 프로시저 %d개 생성", table_name, len(procedures))
        return procedures

    def _load(self, table_name: str, ddl: str, schema: Schema, rows: list[Row]) -> LoadResult:
        if self._options.skip_load:
            logger.info("'%s' 적재 생략 (skip_load)", table_name)
            return LoadResult()

        total = len(rows)
        loaded = 0

        def on_progress(count: int) -> None:
            nonlocal loaded
            loaded += count
            self._notify_progress(ProgressInfo(
                stage=PipelineStage.LOADING,
                current=loaded,
                total=total,
                message="데이터 적재 중...",
                table=table_name,
            ))

        return self._get_loader().load(table_name, ddl, schema, rows, on_progress=on_progress)

    def _status(self, load: LoadResult) -> str:
        if self._options.skip_load:
            return "skipped"
        if load.dry_run:
            return "dry_run"
        if load.rolled_back:
            return "rolled_back"
        return "loaded"

    def run(self, table_input: TableInput) -> MigrationResult:
        """단일 테이블 모드 실행.

        Args:
            table_input: 디코딩된 테이블 입력

        Returns:
            MigrationResult

        Raises:
            MigrationInputError: 입력 행이 없거나 형태가 잘못된 경우
            ValidationGateError: fail-fast 정책에서 검증 오류가 있는 경우
            LoadAbortedError: fail-fast 정책에서 적재가 롤백된 경우
        """
        started = time.perf_counter()
        options = self._options
        rows = self._prepare_rows(table_input)
        table_name = derive_table_name(None, table_input.name)

        # 1. 스키마 추론
        schema = self._infer(table_name, rows)

        # 2. 사전 검증
        issues: list[ValidationIssue] = []
        if options.enable_validation:
            self._notify_progress(ProgressInfo(
                stage=PipelineStage.VALIDATING,
                total=len(rows),
                message="데이터 검증 중...",
                table=table_name,
            ))
            issues = self._validator.validate(rows, schema, table=table_name)
            validation_path = self._output_path(
                options.validation_report_path, VALIDATION_REPORT_FILENAME
            )
            if validation_path:
                write_validation_report(issues, validation_path)
            self._check_validation_gate(issues)

        # 3. DDL 생성
        self._notify_progress(ProgressInfo(
            stage=PipelineStage.GENERATING_DDL,
            message="DDL 생성 중...",
            table=table_name,
        ))
        ddl = self._ddl_generator.render(table_name, schema).ddl
        ddl_path = self._output_path(options.ddl_output_path, f"{table_name}_schema.sql")
        self._ddl_generator.write(ddl, ddl_path)

        # 4. CRUD 저장 프로시저 (선택)
        procedures_path = None
        if options.generate_procedures:
            procedures_path = self._output_path(
                options.procedures_output_path, f"{table_name}_procedures.sql"
            )
        procedures = self._generate_procedures(table_name, schema, procedures_path)

        # 5. INSERT 스크립트 (dry-run 또는 경로 지정 시)
        insert_path = options.insert_output_path
        if options.dry_run and not insert_path:
            insert_path = self._output_path(None, f"{table_name}_inserts.sql")
        insert_script = self._render_inserts(table_name, schema, rows, insert_path)

        # 6. 적재
        load = self._load(table_name, ddl, schema, rows)

        result = MigrationResult(
            table_name=table_name,
            schema=schema,
            ddl=ddl,
            row_count=len(rows),
            load=load,
            status=self._status(load),
            validation_issues=issues,
            insert_script=insert_script,
            procedures=procedures,
            source_format=table_input.source_format,
            encoding=table_input.encoding,
            ddl_path=ddl_path,
            insert_script_path=insert_path if insert_script is not None else None,
            procedures_path=procedures_path if procedures else None,
            execution_ms=int((time.perf_counter() - started) * 1000),
        )
        write_json(
            result.to_dict(),
            self._output_path(options.report_output_path, f"{table_name}_report.json"),
        )

        self._notify_progress(ProgressInfo(
            stage=PipelineStage.COMPLETED,
            current=result.inserted,
            total=result.row_count,
            message="마이그레이션 완료!",
            table=table_name,
        ))
        return result

    def run_batch(self, inputs: list[TableInput]) -> BatchResult:
        """배치 모드 실행.

        테이블마다 독립적으로 스키마를 추론하고, 설정에 따라 외래 키 추론과
        의존성 정렬을 거친 뒤 테이블별 트랜잭션으로 순차 적재한다.
        산출물은 output_dir 아래 테이블별 파일로만 저장하며, INSERT 스크립트는
        dry-run일 때만 만든다.

        Args:
            inputs: 디코딩된 테이블 입력 목록

        Returns:
            BatchResult

        Raises:
            MigrationInputError: 입력이 비었거나 형태가 잘못된 경우, 또는 단일 파일
                경로 옵션이 지정된 경우
            ValidationGateError: fail-fast 정책에서 검증 오류가 있는 경우
            LoadAbortedError: abort_batch_on_failure이고 적재가 롤백된 경우
        """
        started = time.perf_counter()
        options = self._options
        if not inputs:
            raise MigrationInputError("배치 입력이 비어 있습니다")
        single_paths = [
            name
            for name in ("ddl_output_path", "insert_output_path", "procedures_output_path")
            if getattr(options, name)
        ]
        if single_paths:
            raise MigrationInputError(
                f"배치 모드에서는 단일 파일 경로를 쓸 수 없습니다 (output_dir 사용): {single_paths}"
            )

        # 1. 테이블별 스키마 추론
        used_names: set[str] = set()
        tables: list[InferredTable] = []
        for table_input in inputs:
            rows = self._prepare_rows(table_input)
            table_name = ensure_unique_name(derive_table_name(None, table_input.name), used_names)
            schema = self._infer(table_name, rows)
            tables.append(InferredTable(name=table_name, rows=rows, schema=schema, source=table_input))

        # 2. 외래 키 추론과 적재 순서
        edges: list[ForeignKeyEdge] = []
        insertion_order = [table.name for table in tables]
        has_cycle = False
        if options.sort_by_dependencies:
            self._notify_progress(ProgressInfo(
                stage=PipelineStage.RESOLVING_DEPENDENCIES,
                total=len(tables),
                message="테이블 의존성 분석 중...",
            ))
            resolution = self._dependency_resolver.resolve(tables)
            tables = resolution.tables
            edges = resolution.edges
            insertion_order = resolution.insertion_order
            has_cycle = resolution.has_cycle
        elif options.detect_foreign_keys:
            self._notify_progress(ProgressInfo(
                stage=PipelineStage.RESOLVING_DEPENDENCIES,
                total=len(tables),
                message="외래 키 추론 중...",
            ))
            edges = self._dependency_resolver.detect_foreign_keys(tables)

        # 3. 검증
        issues_by_table: dict[str, list[ValidationIssue]] = {table.name: [] for table in tables}
        all_issues: list[ValidationIssue] = []
        if options.enable_validation:
            for idx, table in enumerate(tables):
                self._notify_progress(ProgressInfo(
                    stage=PipelineStage.VALIDATING,
                    current=idx + 1,
                    total=len(tables),
                    message="데이터 검증 중...",
                    table=table.name,
                ))
                table_issues = self._validator.validate(table.rows, table.schema, table=table.name)
                issues_by_table[table.name].extend(table_issues)
                all_issues.extend(table_issues)
            if edges:
                referential = self._validator.validate_referential_integrity(tables, edges)
                for issue in referential:
                    issues_by_table.setdefault(issue.table or "", []).append(issue)
                all_issues.extend(referential)

            validation_path = self._output_path(
                options.validation_report_path, VALIDATION_REPORT_FILENAME
            )
            if validation_path:
                write_validation_report(all_issues, validation_path)
            self._check_validation_gate(all_issues)

        # 4. 테이블별 DDL과 프로시저, 외래 키 스크립트
        ddl_by_table: dict[str, tuple[str, Optional[str]]] = {}
        procedures_by_table: dict[str, tuple[list[StoredProcedure], Optional[str]]] = {}
        for idx, table in enumerate(tables):
            self._notify_progress(ProgressInfo(
                stage=PipelineStage.GENERATING_DDL,
                current=idx + 1,
                total=len(tables),
                message="DDL 생성 중...",
                table=table.name,
            ))
            ddl = self._ddl_generator.render(table.name, table.schema).ddl
            ddl_path = self._output_path(None, f"{table.name}_schema.sql")
            self._ddl_generator.write(ddl, ddl_path)
            ddl_by_table[table.name] = (ddl, ddl_path)

            procedures_path = None
            if options.generate_procedures:
                procedures_path = self._output_path(None, f"{table.name}_procedures.sql")
            procedures_by_table[table.name] = (
                self._generate_procedures(table.name, table.schema, procedures_path),
                procedures_path,
            )

        foreign_keys_path = None
        if edges:
            foreign_keys_path = self._output_path(None, FOREIGN_KEYS_FILENAME)
            self._ddl_generator.write(
                self._ddl_generator.render_foreign_keys(edges), foreign_keys_path
            )

        # 5. 테이블별 순차 적재
        results = []
        for table in tables:
            table_started = time.perf_counter()
            ddl, ddl_path = ddl_by_table[table.name]
            procedures, procedures_path = procedures_by_table[table.name]
            insert_path = None
            if options.dry_run:
                insert_path = self._output_path(None, f"{table.name}_inserts.sql")
            insert_script = self._render_inserts(table.name, table.schema, table.rows, insert_path)

            try:
                load = self._load(table.name, ddl, table.schema, table.rows)
            except LoadAbortedError as e:
                if options.abort_batch_on_failure:
                    raise
                logger.warning("'%s' 롤백, 나머지 테이블은 계속 적재합니다", table.name)
                load = e.result

            source = table.source
            results.append(MigrationResult(
                table_name=table.name,
                schema=table.schema,
                ddl=ddl,
                row_count=len(table.rows),
                load=load,
                status=self._status(load),
                validation_issues=issues_by_table.get(table.name, []),
                insert_script=insert_script,
                procedures=procedures,
                source_format=source.source_format if source else None,
                encoding=source.encoding if source else None,
                ddl_path=ddl_path,
                insert_script_path=insert_path if insert_script is not None else None,
                procedures_path=procedures_path if procedures else None,
                execution_ms=int((time.perf_counter() - table_started) * 1000),
            ))

        batch = BatchResult(
            tables=results,
            edges=edges,
            insertion_order=insertion_order,
            has_cycle=has_cycle,
            validation_issues=all_issues,
            foreign_keys_path=foreign_keys_path,
            execution_ms=int((time.perf_counter() - started) * 1000),
        )
        write_json(
            batch.to_dict(),
            self._output_path(options.report_output_path, BATCH_REPORT_FILENAME),
        )

        self._notify_progress(ProgressInfo(
            stage=PipelineStage.COMPLETED,
            current=batch.total_inserted,
            total=batch.total_rows,
            message="배치 마이그레이션 완료!",
        ))
        return batch
