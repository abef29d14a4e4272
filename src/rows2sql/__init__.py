"""rows2sql - 스키마 추론 및 MySQL 적재 도구."""

__version__ = "0.1.0"
