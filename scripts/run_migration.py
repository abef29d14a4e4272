#!/usr/bin/env python
"""마이그레이션 실행 스크립트.

사용법:
    python scripts/run_migration.py data/customers.csv                   # 단일 테이블 적재
    python scripts/run_migration.py data/customers.csv --dry-run         # DB 없이 스크립트만 생성
    python scripts/run_migration.py data/*.csv --batch --sort-deps       # 의존성 순서로 배치 적재
    python scripts/run_migration.py data/users.json --validate --stop-on-error
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from rows2sql.adapters.database.mysql_adapter import MySQLAdapter
from rows2sql.core.config import Settings, resolve_continue_on_error
from rows2sql.migration.loader.bulk_loader import LoadAbortedError
from rows2sql.migration.pipeline import (
    BatchResult,
    MigrationInputError,
    MigrationOptions,
    MigrationPipeline,
    MigrationResult,
    PipelineStage,
    ProgressInfo,
    ValidationGateError,
)
from rows2sql.migration.processor.transformations import TransformConfigError, load_transform_config
from rows2sql.migration.readers import read_table_input

console = Console()


class MigrationProgressUI:
    """파이프라인 진행 상황 UI."""

    STAGE_NAMES = {
        PipelineStage.TRANSFORMING: "🔁 행 변환",
        PipelineStage.INFERRING: "🔍 스키마 추론",
        PipelineStage.RESOLVING_DEPENDENCIES: "🔗 의존성 분석",
        PipelineStage.VALIDATING: "🧪 데이터 검증",
        PipelineStage.GENERATING_DDL: "🧱 DDL 생성",
        PipelineStage.GENERATING_PROCEDURES: "🗂️  저장 프로시저",
        PipelineStage.RENDERING_INSERTS: "📝 INSERT 스크립트",
        PipelineStage.LOADING: "📦 데이터 적재",
        PipelineStage.COMPLETED: "✅ 완료",
    }

    def __init__(self, progress: Progress):
        self._progress = progress
        self._task_id = progress.add_task("준비 중...", total=None)

    def update(self, info: ProgressInfo) -> None:
        """진행 상황 업데이트."""
        name = self.STAGE_NAMES.get(info.stage, info.stage.value)
        label = f"{name} [yellow]{info.table}[/yellow]" if info.table else name
        self._progress.update(
            self._task_id,
            description=label,
            completed=info.current,
            total=info.total or None,
        )


def print_table_result(result: MigrationResult) -> None:
    """단일 테이블 결과를 패널로 출력."""
    result_table = Table(show_header=False, box=None)
    result_table.add_column("항목", style="cyan")
    result_table.add_column("값", style="yellow")

    result_table.add_row("📄 테이블", result.table_name)
    result_table.add_row("🔑 기본 키", ", ".join(result.schema.primary_keys))
    result_table.add_row("📊 전체 행", f"{result.row_count}건")
    result_table.add_row("📦 적재된 행", f"{result.inserted}건")
    result_table.add_row("❌ 실패 행", f"{result.error_count}건")
    result_table.add_row("🧪 검증 이슈", f"{len(result.validation_issues)}건")
    result_table.add_row("📌 상태", result.status)
    if result.ddl_path:
        result_table.add_row("🧱 DDL", result.ddl_path)
    if result.insert_script_path:
        result_table.add_row("📝 INSERT", result.insert_script_path)
    if result.procedures_path:
        result_table.add_row("🗂️  프로시저", result.procedures_path)

    console.print(Panel(
        result_table,
        title="[bold blue]마이그레이션 결과[/bold blue]",
        border_style="green" if result.success else "red",
    ))

    if result.load.errors:
        error_table = Table(show_header=True, header_style="bold red")
        error_table.add_column("행")
        error_table.add_column("에러")
        for error in result.load.errors:
            error_table.add_row(str(error.index), error.message)
        console.print(Panel(error_table, title="[bold red]실패 행 목록[/bold red]", border_style="red"))


def print_batch_result(batch: BatchResult) -> None:
    """배치 결과를 테이블로 출력."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("테이블")
    table.add_column("상태")
    table.add_column("적재", justify="right")
    table.add_column("실패", justify="right")
    for result in batch.tables:
        style = "red" if result.status == "rolled_back" else None
        table.add_row(
            result.table_name,
            result.status,
            f"{result.inserted}/{result.row_count}",
            str(result.error_count),
            style=style,
        )
    console.print(Panel(table, title="[bold blue]배치 마이그레이션 결과[/bold blue]", border_style="blue"))

    if batch.edges:
        fk_table = Table(show_header=True, header_style="bold cyan")
        fk_table.add_column("컬럼")
        fk_table.add_column("참조")
        for edge in batch.edges:
            fk_table.add_row(
                f"{edge.table}.{edge.column}",
                f"{edge.references_table}.{edge.references_column}",
            )
        console.print(Panel(fk_table, title="[bold cyan]추론된 외래 키[/bold cyan]", border_style="cyan"))

    console.print(f"적재 순서: [yellow]{' → '.join(batch.insertion_order)}[/yellow]")
    if batch.has_cycle:
        console.print("[yellow]⚠️  의존성 순환이 있어 원래 순서로 적재했습니다.[/yellow]")


def build_parser() -> argparse.ArgumentParser:
    """명령행 파서를 만든다."""
    parser = argparse.ArgumentParser(
        description="CSV/JSON 레코드를 MySQL로 마이그레이션",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
예시:
  python scripts/run_migration.py data/customers.csv --dry-run
  python scripts/run_migration.py data/customers.csv --skip-load --procedures
  python scripts/run_migration.py data/customers.csv data/orders.csv --batch --sort-deps --validate
        """,
    )
    parser.add_argument("inputs", nargs="+", type=Path, help="입력 파일 (CSV 또는 JSON)")
    parser.add_argument("--table", default=None, help="테이블 이름 (단일 모드)")
    parser.add_argument("--batch", action="store_true", help="여러 입력을 배치 모드로 처리")
    parser.add_argument("--dry-run", action="store_true", help="DB 적재 없이 스크립트만 생성")
    parser.add_argument("--skip-load", action="store_true", help="DDL만 생성하고 적재 생략")
    parser.add_argument("--continue-on-error", action="store_true", help="실패 행을 격리하고 계속 진행")
    parser.add_argument("--stop-on-error", action="store_true", help="첫 실패에서 테이블 전체 롤백 (우선 적용)")
    parser.add_argument("--no-bulk", action="store_true", help="행마다 INSERT 실행")
    parser.add_argument("--chunk-size", type=int, default=None, help="다중 행 INSERT 청크 크기")
    parser.add_argument("--validate", action="store_true", help="적재 전 데이터 검증")
    parser.add_argument("--detect-fk", action="store_true", help="암묵적 외래 키 추론 (배치 모드)")
    parser.add_argument("--sort-deps", action="store_true", help="의존성 순서로 적재 (배치 모드)")
    parser.add_argument("--transform", type=Path, default=None, help="행 변환 설정 JSON")
    parser.add_argument("--output-dir", default=None, help="산출물 디렉터리")
    parser.add_argument("--ddl-out", default=None, help="DDL 저장 경로 (단일 모드)")
    parser.add_argument("--insert-out", default=None, help="INSERT 스크립트 저장 경로 (단일 모드)")
    parser.add_argument("--procedures", action="store_true", help="CRUD 저장 프로시저 스크립트 생성")
    parser.add_argument("--procedures-out", default=None, help="저장 프로시저 저장 경로 (단일 모드)")
    parser.add_argument("--report", default=None, help="실행 리포트 저장 경로")
    parser.add_argument("--validation-report", default=None, help="검증 리포트 저장 경로")
    return parser


def build_options(args: argparse.Namespace, settings: Settings) -> MigrationOptions:
    """Settings와 명령행 인자를 합쳐 실행 옵션을 만든다."""
    overrides = {
        "continue_on_error": resolve_continue_on_error(
            args.continue_on_error or settings.continue_on_error,
            args.stop_on_error or settings.stop_on_error,
        ),
        "dry_run": args.dry_run or settings.dry_run,
        "skip_load": args.skip_load or settings.skip_load,
        "bulk_insert": settings.bulk_insert and not args.no_bulk,
        "enable_validation": args.validate or settings.enable_validation,
        "detect_foreign_keys": args.detect_fk or settings.detect_foreign_keys,
        "sort_by_dependencies": args.sort_deps or settings.sort_by_dependencies,
        "ddl_output_path": args.ddl_out,
        "insert_output_path": args.insert_out,
        "generate_procedures": args.procedures or settings.generate_procedures,
        "procedures_output_path": args.procedures_out,
        "report_output_path": args.report,
        "validation_report_path": args.validation_report,
    }
    if args.chunk_size:
        overrides["chunk_size"] = args.chunk_size
    if args.output_dir:
        overrides["output_dir"] = args.output_dir
    if args.transform:
        overrides["transform_config"] = load_transform_config(args.transform)
    return MigrationOptions.from_settings(settings, **overrides)


def main():
    """메인 함수."""
    args = build_parser().parse_args()
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )

    console.print("\n[bold cyan]" + "=" * 60 + "[/bold cyan]")
    console.print("[bold cyan]🚀 rows2sql 마이그레이션[/bold cyan]")
    console.print("[bold cyan]" + "=" * 60 + "[/bold cyan]")

    adapter = None
    try:
        options = build_options(args, settings)
        inputs = [
            read_table_input(path, None if args.batch else args.table)
            for path in args.inputs
        ]
        for table_input in inputs:
            console.print(
                f"[green]📂 입력:[/green] {table_input.meta['path']} "
                f"([yellow]{len(table_input.rows)}[/yellow]행, {table_input.encoding})"
            )

        if not (options.dry_run or options.skip_load):
            adapter = MySQLAdapter(settings)

        with Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            progress_ui = MigrationProgressUI(progress)
            pipeline = MigrationPipeline(
                options,
                adapter=adapter,
                progress_callback=progress_ui.update,
            )
            if args.batch or len(inputs) > 1:
                batch = pipeline.run_batch(inputs)
            else:
                result = pipeline.run(inputs[0])
                batch = None

        if batch is not None:
            print_batch_result(batch)
            success = all(table.status != "rolled_back" for table in batch.tables)
        else:
            print_table_result(result)
            success = result.status != "rolled_back"

    except (MigrationInputError, TransformConfigError) as e:
        console.print(f"\n[red]❌ 입력 오류: {e}[/red]")
        sys.exit(2)
    except ValidationGateError as e:
        console.print(f"\n[red]❌ {e}[/red]")
        for issue in e.issues[:20]:
            console.print(f"   [dim]{issue.type}[/dim] {issue.message}")
        sys.exit(1)
    except LoadAbortedError as e:
        console.print(f"\n[red]❌ {e}[/red]")
        sys.exit(1)
    finally:
        if adapter is not None:
            adapter.dispose()

    # 결과 코드 반환
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
