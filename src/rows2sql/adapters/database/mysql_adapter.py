"""MySQL 데이터베이스 어댑터."""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Connection, Engine

from rows2sql.core.config import Settings


class MySQLAdapter:
    """SQLAlchemy 엔진 기반 MySQL 어댑터."""

    DRIVER_NAME = "mysql+pymysql"

    def __init__(self, settings: Settings) -> None:
        """어댑터 초기화.

        Args:
            settings: 애플리케이션 설정
        """
        self._settings = settings
        self._engine: Optional[Engine] = None

    def build_url(self) -> URL:
        """설정에서 연결 URL을 만든다.

        Returns:
            SQLAlchemy URL 객체
        """
        return URL.create(
            self.DRIVER_NAME,
            username=self._settings.mysql_user,
            password=self._settings.mysql_password,
            host=self._settings.mysql_host,
            port=self._settings.mysql_port,
            database=self._settings.mysql_database,
            query={"charset": self._settings.mysql_charset},
        )

    def create_engine(self) -> Engine:
        """엔진을 생성.

        Returns:
            SQLAlchemy 엔진
        """
        self._engine = create_engine(self.build_url(), pool_pre_ping=True)
        return self._engine

    @property
    def engine(self) -> Engine:
        """생성된 엔진. 없으면 새로 만든다."""
        if self._engine is None:
            return self.create_engine()
        return self._engine

    def connect(self) -> Connection:
        """테이블 적재 하나에 쓸 연결을 연다.

        Returns:
            SQLAlchemy 연결 객체
        """
        return self.engine.connect()

    def dispose(self) -> None:
        """엔진과 풀을 정리."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
