"""애플리케이션 설정 모듈."""

from typing import Optional

from pydantic_settings import BaseSettings


def resolve_continue_on_error(continue_on_error: bool, stop_on_error: bool) -> bool:
    """오류 정책 플래그를 하나로 결정한다.

    두 플래그가 동시에 주어지면 stop_on_error가 항상 우선한다.

    Args:
        continue_on_error: 오류 행을 격리하고 계속 진행할지 여부
        stop_on_error: 첫 오류에서 전체 테이블을 롤백할지 여부

    Returns:
        실제로 적용할 continue_on_error 값
    """
    if stop_on_error:
        return False
    return continue_on_error


class Settings(BaseSettings):
    """애플리케이션 설정."""

    # MySQL 대상 데이터베이스 설정
    mysql_host: str = "localhost"
    mysql_port: int = 3306
    mysql_user: str = "root"
    mysql_password: str = ""
    mysql_database: Optional[str] = None
    mysql_charset: str = "utf8mb4"

    # 적재 설정
    chunk_size: int = 250
    bulk_insert: bool = True
    continue_on_error: bool = True
    stop_on_error: bool = False
    dry_run: bool = False
    skip_load: bool = False
    abort_batch_on_failure: bool = False

    # 검증 설정
    enable_validation: bool = False
    check_duplicates: bool = True
    check_invalid_values: bool = True

    # 배치 모드 설정
    detect_foreign_keys: bool = False
    sort_by_dependencies: bool = False

    # 산출물 및 로깅
    generate_procedures: bool = False
    output_dir: str = "output"
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "ROWS2SQL_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @property
    def effective_continue_on_error(self) -> bool:
        """플래그 우선순위를 적용한 오류 정책."""
        return resolve_continue_on_error(self.continue_on_error, self.stop_on_error)
