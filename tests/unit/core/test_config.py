"""Core 설정 모듈 테스트."""

import pytest


class TestSettingsDefaults:
    """기본값 적용 테스트."""

    def test_mysql_defaults(self):
        """MySQL 연결 설정의 기본값이 올바르게 적용되어야 한다."""
        from rows2sql.core.config import Settings

        settings = Settings(_env_file=None)

        assert settings.mysql_host == "localhost"
        assert settings.mysql_port == 3306
        assert settings.mysql_user == "root"
        assert settings.mysql_database is None
        assert settings.mysql_charset == "utf8mb4"

    def test_run_defaults(self):
        """적재 설정의 기본값이 올바르게 적용되어야 한다."""
        from rows2sql.core.config import Settings

        settings = Settings(_env_file=None)

        assert settings.chunk_size == 250
        assert settings.bulk_insert is True
        assert settings.continue_on_error is True
        assert settings.stop_on_error is False
        assert settings.dry_run is False
        assert settings.enable_validation is False
        assert settings.sort_by_dependencies is False
        assert settings.generate_procedures is False
        assert settings.output_dir == "output"


class TestSettingsFromEnv:
    """환경변수에서 설정 로드 테스트."""

    def test_load_mysql_host_from_env(self, monkeypatch):
        """환경변수에서 MySQL 호스트를 로드할 수 있어야 한다."""
        monkeypatch.setenv("ROWS2SQL_MYSQL_HOST", "mysql.example.com")
        monkeypatch.setenv("ROWS2SQL_MYSQL_PORT", "3307")

        from rows2sql.core.config import Settings

        settings = Settings(_env_file=None)

        assert settings.mysql_host == "mysql.example.com"
        assert settings.mysql_port == 3307

    def test_load_chunk_size_from_env(self, monkeypatch):
        """환경변수에서 청크 크기를 로드할 수 있어야 한다."""
        monkeypatch.setenv("ROWS2SQL_CHUNK_SIZE", "50")

        from rows2sql.core.config import Settings

        settings = Settings(_env_file=None)

        assert settings.chunk_size == 50


class TestErrorPolicyPrecedence:
    """오류 정책 플래그 우선순위 테스트."""

    @pytest.mark.parametrize(
        "continue_on_error, stop_on_error, expected",
        [
            (True, False, True),
            (False, False, False),
            (False, True, False),
            (True, True, False),
        ],
    )
    def test_stop_on_error_always_wins(self, continue_on_error, stop_on_error, expected):
        """stop_on_error가 주어지면 continue_on_error보다 우선해야 한다."""
        from rows2sql.core.config import resolve_continue_on_error

        assert resolve_continue_on_error(continue_on_error, stop_on_error) is expected

    def test_effective_continue_on_error_property(self):
        """Settings의 effective_continue_on_error가 우선순위를 반영해야 한다."""
        from rows2sql.core.config import Settings

        settings = Settings(_env_file=None, continue_on_error=True, stop_on_error=True)

        assert settings.effective_continue_on_error is False
