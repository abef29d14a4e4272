"""마이그레이션 파이프라인 테스트."""

import json
from unittest.mock import MagicMock

import pytest

from rows2sql.core.config import Settings
from rows2sql.core.models import LoadResult, Severity, TableInput, ValidationIssue
from rows2sql.migration.loader.bulk_loader import LoadAbortedError
from rows2sql.migration.pipeline import (
    MigrationInputError,
    MigrationOptions,
    MigrationPipeline,
    PipelineStage,
    ValidationGateError,
)
from rows2sql.migration.processor.transformations import TransformConfig


def _people() -> TableInput:
    return TableInput(
        name="People",
        rows=[
            {"email": "a@x.com", "age": "31", "joined": "2024-01-02"},
            {"email": "b@x.com", "age": "42", "joined": "2024-02-03"},
        ],
        source_format="csv",
        encoding="utf-8",
    )


def _customers_and_orders() -> list[TableInput]:
    return [
        TableInput(name="orders", rows=[
            {"order_id": 10, "customer_id": 1},
            {"order_id": 11, "customer_id": 2},
        ]),
        TableInput(name="customers", rows=[
            {"id": 1, "name": "Kim"},
            {"id": 2, "name": "Lee"},
        ]),
    ]


def _loader_returning_all() -> MagicMock:
    loader = MagicMock()
    loader.load.side_effect = lambda table_name, ddl, schema, rows, on_progress=None: LoadResult(
        inserted=len(rows), processed=len(rows)
    )
    return loader


class TestMigrationOptions:
    """MigrationOptions 테스트."""

    def test_from_settings_applies_error_precedence(self) -> None:
        """stop_on_error 설정이 continue_on_error보다 우선해야 함."""
        settings = Settings(_env_file=None, continue_on_error=True, stop_on_error=True)

        options = MigrationOptions.from_settings(settings)

        assert options.continue_on_error is False
        assert options.output_dir == "output"

    def test_from_settings_accepts_overrides(self) -> None:
        """명시적 옵션이 Settings 값을 덮어써야 함."""
        options = MigrationOptions.from_settings(
            Settings(_env_file=None), dry_run=True, chunk_size=10
        )

        assert options.dry_run is True
        assert options.chunk_size == 10


class TestMigrationPipelineRun:
    """단일 테이블 모드 테스트."""

    def test_run_loads_with_inferred_schema(self) -> None:
        """스키마를 추론하고 로더에 DDL과 행을 넘겨야 함."""
        # Given
        loader = _loader_returning_all()
        stages = []
        pipeline = MigrationPipeline(
            MigrationOptions(),
            loader=loader,
            progress_callback=lambda info: stages.append(info.stage),
        )

        # When
        result = pipeline.run(_people())

        # Then
        loader.load.assert_called_once()
        table_name, ddl, schema, rows = loader.load.call_args[0]
        assert table_name == "people"
        assert "CREATE TABLE IF NOT EXISTS `people`" in ddl
        assert schema.primary_keys == ["email"]
        assert len(rows) == 2
        assert result.status == "loaded"
        assert result.inserted == 2
        assert result.success is True
        assert PipelineStage.INFERRING in stages
        assert PipelineStage.GENERATING_DDL in stages
        assert stages[-1] is PipelineStage.COMPLETED

    def test_dry_run_writes_artifacts(self, tmp_path) -> None:
        """dry-run은 DDL, INSERT 스크립트, 리포트를 저장해야 함."""
        # Given
        options = MigrationOptions(dry_run=True, output_dir=str(tmp_path))
        pipeline = MigrationPipeline(options)

        # When
        result = pipeline.run(_people())

        # Then
        assert result.status == "dry_run"
        assert result.inserted == 0
        assert result.load.processed == 2
        assert (tmp_path / "people_schema.sql").exists()
        inserts = (tmp_path / "people_inserts.sql").read_text(encoding="utf-8")
        assert "INSERT INTO `people`" in inserts
        report = json.loads((tmp_path / "people_report.json").read_text(encoding="utf-8"))
        assert report["table"] == "people"
        assert report["rowCount"] == 2
        assert report["sourceFormat"] == "csv"
        assert report["primaryKeys"] == ["email"]
        assert report["insertScriptPath"] == str(tmp_path / "people_inserts.sql")

    def test_explicit_paths_override_output_dir(self, tmp_path) -> None:
        """명시한 산출물 경로를 사용해야 함."""
        ddl_path = tmp_path / "custom" / "ddl.sql"
        options = MigrationOptions(skip_load=True, ddl_output_path=str(ddl_path))

        result = MigrationPipeline(options).run(_people())

        assert ddl_path.exists()
        assert result.ddl_path == str(ddl_path)
        assert result.status == "skipped"
        assert result.insert_script is None

    def test_generate_procedures_writes_crud_script(self, tmp_path) -> None:
        """프로시저 생성 옵션이면 CRUD 프로시저 스크립트를 저장해야 함."""
        # Given
        options = MigrationOptions(
            skip_load=True, generate_procedures=True, output_dir=str(tmp_path)
        )
        stages = []
        pipeline = MigrationPipeline(
            options, progress_callback=lambda info: stages.append(info.stage)
        )

        # When
        result = pipeline.run(_people())

        # Then
        assert [procedure.name for procedure in result.procedures] == [
            "sp_insert_people",
            "sp_select_people",
            "sp_update_people",
            "sp_delete_people",
        ]
        script_path = tmp_path / "people_procedures.sql"
        assert result.procedures_path == str(script_path)
        assert "CREATE PROCEDURE `sp_delete_people`" in script_path.read_text(encoding="utf-8")
        assert PipelineStage.GENERATING_PROCEDURES in stages
        report = json.loads((tmp_path / "people_report.json").read_text(encoding="utf-8"))
        assert report["proceduresPath"] == str(script_path)

    def test_procedures_are_not_generated_by_default(self, tmp_path) -> None:
        """옵션이 없으면 프로시저를 만들지 않아야 함."""
        options = MigrationOptions(skip_load=True, output_dir=str(tmp_path))

        result = MigrationPipeline(options).run(_people())

        assert result.procedures == []
        assert result.procedures_path is None
        assert not (tmp_path / "people_procedures.sql").exists()

    def test_empty_rows_raise_input_error(self) -> None:
        """행이 없으면 MigrationInputError가 발생해야 함."""
        pipeline = MigrationPipeline(MigrationOptions(dry_run=True))

        with pytest.raises(MigrationInputError):
            pipeline.run(TableInput(name="empty", rows=[]))

    def test_non_record_rows_raise_input_error(self) -> None:
        """레코드 배열이 아니면 MigrationInputError가 발생해야 함."""
        pipeline = MigrationPipeline(MigrationOptions(dry_run=True))

        with pytest.raises(MigrationInputError):
            pipeline.run(TableInput(name="bad", rows=[1, 2, 3]))

    def test_missing_adapter_raises(self) -> None:
        """적재가 필요한데 어댑터가 없으면 RuntimeError가 발생해야 함."""
        pipeline = MigrationPipeline(MigrationOptions())

        with pytest.raises(RuntimeError, match="어댑터"):
            pipeline.run(_people())

    def test_transformations_are_applied_before_inference(self) -> None:
        """변환 설정은 스키마 추론 전에 적용되어야 함."""
        config = TransformConfig.model_validate({"columnRenames": {"email": "mail"}})
        options = MigrationOptions(skip_load=True, transform_config=config)

        result = MigrationPipeline(options).run(_people())

        assert result.schema.primary_keys == ["mail"]


class TestValidationGate:
    """검증 게이트 테스트."""

    def _error_validator(self) -> MagicMock:
        validator = MagicMock()
        validator.validate.return_value = [
            ValidationIssue(
                type="invalid_date",
                severity=Severity.ERROR,
                column="joined",
                message="존재하지 않는 날짜",
                index=0,
            )
        ]
        return validator

    def test_fail_fast_with_errors_stops_before_load(self, tmp_path) -> None:
        """fail-fast에서 error 이슈가 있으면 적재 전에 중단해야 함."""
        # Given
        loader = MagicMock()
        report_path = tmp_path / "validation.json"
        options = MigrationOptions(
            enable_validation=True,
            continue_on_error=False,
            validation_report_path=str(report_path),
        )
        pipeline = MigrationPipeline(options, loader=loader, validator=self._error_validator())

        # When
        with pytest.raises(ValidationGateError) as exc_info:
            pipeline.run(_people())

        # Then
        loader.load.assert_not_called()
        assert len(exc_info.value.issues) == 1
        assert json.loads(report_path.read_text(encoding="utf-8"))["errorCount"] == 1

    def test_continue_on_error_reports_but_loads(self) -> None:
        """계속 진행 정책에서는 이슈를 기록하고 적재해야 함."""
        loader = _loader_returning_all()
        options = MigrationOptions(enable_validation=True, continue_on_error=True)
        pipeline = MigrationPipeline(options, loader=loader, validator=self._error_validator())

        result = pipeline.run(_people())

        loader.load.assert_called_once()
        assert len(result.validation_issues) == 1
        assert result.to_dict()["validationIssues"] == 1


class TestMigrationPipelineBatch:
    """배치 모드 테스트."""

    def test_batch_orders_by_dependencies(self, tmp_path) -> None:
        """참조 테이블을 먼저 적재하고 외래 키 스크립트를 저장해야 함."""
        # Given
        loader = _loader_returning_all()
        options = MigrationOptions(sort_by_dependencies=True, output_dir=str(tmp_path))
        pipeline = MigrationPipeline(options, loader=loader)

        # When
        batch = pipeline.run_batch(_customers_and_orders())

        # Then
        loaded = [call.args[0] for call in loader.load.call_args_list]
        assert loaded == ["customers", "orders"]
        assert batch.insertion_order == ["customers", "orders"]
        assert len(batch.edges) == 1
        assert (tmp_path / "customers_schema.sql").exists()
        assert (tmp_path / "orders_schema.sql").exists()
        assert "fk_orders_customer_id_0" in (tmp_path / "foreign_keys.sql").read_text(encoding="utf-8")

        report = json.loads((tmp_path / "batch_report.json").read_text(encoding="utf-8"))
        assert report["mode"] == "batch"
        assert report["totalTables"] == 2
        assert report["totalRows"] == 4
        assert report["totalInserted"] == 4
        assert report["foreignKeys"] == 1
        assert report["insertionOrder"] == ["customers", "orders"]

    def test_detect_foreign_keys_without_sorting_keeps_order(self) -> None:
        """정렬 없이 외래 키만 추론하면 원래 순서를 유지해야 함."""
        options = MigrationOptions(detect_foreign_keys=True, dry_run=True)

        batch = MigrationPipeline(options).run_batch(_customers_and_orders())

        assert batch.insertion_order == ["orders", "customers"]
        assert len(batch.edges) == 1

    def test_rolled_back_table_does_not_stop_batch(self) -> None:
        """한 테이블이 롤백되어도 나머지 테이블은 적재해야 함."""
        # Given
        def fake_load(table_name, ddl, schema, rows, on_progress=None):
            if table_name == "orders":
                raise LoadAbortedError(
                    table_name, "rolled back", LoadResult(processed=len(rows), rolled_back=True)
                )
            return LoadResult(inserted=len(rows), processed=len(rows))

        loader = MagicMock()
        loader.load.side_effect = fake_load
        pipeline = MigrationPipeline(MigrationOptions(continue_on_error=False), loader=loader)

        # When
        batch = pipeline.run_batch(_customers_and_orders())

        # Then
        statuses = {table.table_name: table.status for table in batch.tables}
        assert statuses == {"orders": "rolled_back", "customers": "loaded"}
        assert batch.total_inserted == 2
        assert batch.to_dict()["tables"][0]["status"] == "rolled_back"

    def test_abort_batch_on_failure_reraises(self) -> None:
        """abort_batch_on_failure면 롤백 오류를 다시 발생시켜야 함."""
        loader = MagicMock()
        loader.load.side_effect = LoadAbortedError("orders", "rolled back", LoadResult(rolled_back=True))
        options = MigrationOptions(continue_on_error=False, abort_batch_on_failure=True)

        with pytest.raises(LoadAbortedError):
            MigrationPipeline(options, loader=loader).run_batch(_customers_and_orders())

        assert loader.load.call_count == 1

    def test_orphan_reference_gates_fail_fast_batch(self) -> None:
        """fail-fast 배치에서 고아 외래 키가 있으면 적재 전에 중단해야 함."""
        # Given
        inputs = _customers_and_orders()
        inputs[0].rows[1]["customer_id"] = 99
        loader = MagicMock()
        options = MigrationOptions(
            detect_foreign_keys=True, enable_validation=True, continue_on_error=False
        )

        # When
        with pytest.raises(ValidationGateError) as exc_info:
            MigrationPipeline(options, loader=loader).run_batch(inputs)

        # Then
        assert [issue.type for issue in exc_info.value.issues] == ["orphan_foreign_key"]
        loader.load.assert_not_called()

    def test_duplicate_table_names_are_made_unique(self) -> None:
        """같은 이름의 입력은 서로 다른 테이블명이 되어야 함."""
        inputs = [_people(), _people()]

        batch = MigrationPipeline(MigrationOptions(dry_run=True)).run_batch(inputs)

        assert [table.table_name for table in batch.tables] == ["people", "people_2"]

    def test_empty_batch_raises(self) -> None:
        """배치 입력이 없으면 MigrationInputError가 발생해야 함."""
        with pytest.raises(MigrationInputError):
            MigrationPipeline(MigrationOptions(dry_run=True)).run_batch([])

    def test_to_report_summarizes_tables(self) -> None:
        """리포트 문자열에 테이블별 결과가 포함되어야 함."""
        batch = MigrationPipeline(MigrationOptions(dry_run=True)).run_batch(
            _customers_and_orders()
        )

        report = batch.to_report()

        assert "=== 배치 실행 결과 ===" in report
        assert "orders: dry_run" in report
        assert "customers: dry_run" in report

    @pytest.mark.parametrize(
        "option", ["ddl_output_path", "insert_output_path", "procedures_output_path"]
    )
    def test_single_file_paths_are_rejected(self, option: str) -> None:
        """배치 모드에서 단일 파일 경로 옵션은 MigrationInputError여야 함."""
        options = MigrationOptions(dry_run=True, **{option: "out/file.sql"})

        with pytest.raises(MigrationInputError, match=option):
            MigrationPipeline(options).run_batch(_customers_and_orders())

    def test_batch_generates_procedures_per_table(self, tmp_path) -> None:
        """배치 모드의 프로시저는 테이블별 파일로 저장해야 함."""
        # Given
        options = MigrationOptions(
            dry_run=True, generate_procedures=True, output_dir=str(tmp_path)
        )

        # When
        batch = MigrationPipeline(options).run_batch(_customers_and_orders())

        # Then
        for table in batch.tables:
            assert table.procedures_path == str(tmp_path / f"{table.table_name}_procedures.sql")
            assert (tmp_path / f"{table.table_name}_procedures.sql").exists()
        assert {table.procedures[0].name for table in batch.tables} == {
            "sp_insert_orders",
            "sp_insert_customers",
        }
