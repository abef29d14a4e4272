"""의존성 해석기 - 암묵적 외래 키 추론과 적재 순서 계산."""

import logging
import re
from collections import deque
from dataclasses import dataclass
from typing import Optional

from rows2sql.core.models import Column, ForeignKeyEdge, InferredTable

logger = logging.getLogger(__name__)

# 외래 키 컬럼명 패턴 (캡처 그룹 = 참조 테이블 후보)
SNAKE_ID_PATTERN = re.compile(r"^(.+)_id$", re.IGNORECASE)
CAMEL_ID_PATTERN = re.compile(r"^(.+)Id$")
FK_PREFIX_PATTERN = re.compile(r"^fk_(.+)$", re.IGNORECASE)
ID_PREFIX_PATTERN = re.compile(r"^id_(.+)$", re.IGNORECASE)

FOREIGN_KEY_PATTERNS = (
    SNAKE_ID_PATTERN,
    CAMEL_ID_PATTERN,
    FK_PREFIX_PATTERN,
    ID_PREFIX_PATTERN,
)


@dataclass
class DependencyResolution:
    """의존성 해석 결과."""

    tables: list[InferredTable]
    edges: list[ForeignKeyEdge]
    insertion_order: list[str]
    has_cycle: bool = False
    reordered: bool = False


def _match_fragment(column: Column) -> Optional[str]:
    # camelCase는 정제 후 소문자가 되므로 원본 이름으로도 검사한다
    for pattern in FOREIGN_KEY_PATTERNS:
        for candidate in (column.name, column.raw_name.strip()):
            match = pattern.match(candidate)
            if match:
                return match.group(1).lower()
    return None


def _table_matches(table_name: str, fragment: str) -> bool:
    name = table_name.lower()
    return name == fragment or name == fragment + "s" or name == re.sub(r"s$", "", fragment)


class DependencyResolver:
    """테이블 간 암묵적 외래 키를 찾고 위상 정렬로 적재 순서를 정한다."""

    def detect_foreign_keys(self, tables: list[InferredTable]) -> list[ForeignKeyEdge]:
        """컬럼명 규칙(*_id, *Id, fk_*, id_*)으로 외래 키를 추론.

        캡처된 조각을 테이블명(그대로, 복수형, 단수형)과 비교하고,
        일치한 테이블에 기본 키가 있으면 간선을 기록한다.

        Args:
            tables: 스키마가 추론된 테이블 목록

        Returns:
            ForeignKeyEdge 리스트
        """
        edges = []
        for table in tables:
            for column in table.schema.columns:
                fragment = _match_fragment(column)
                if fragment is None:
                    continue

                referenced = next(
                    (candidate for candidate in tables if _table_matches(candidate.name, fragment)),
                    None,
                )
                if referenced is None:
                    continue
                if referenced is table and column.is_primary_key:
                    # 테이블 자신의 기본 키 (예: customers.customer_id)
                    continue

                primary_key = next(
                    (c for c in referenced.schema.columns if c.is_primary_key), None
                )
                if primary_key is None:
                    continue

                edges.append(
                    ForeignKeyEdge(
                        table=table.name,
                        column=column.name,
                        references_table=referenced.name,
                        references_column=primary_key.name,
                    )
                )
        logger.info("암묵적 외래 키 %d개 감지", len(edges))
        return edges

    def topological_sort(
        self, table_names: list[str], edges: list[ForeignKeyEdge]
    ) -> Optional[list[str]]:
        """Kahn 알고리즘으로 참조 테이블이 먼저 오도록 정렬.

        Args:
            table_names: 원래 순서의 테이블 이름
            edges: 외래 키 간선

        Returns:
            정렬된 이름 리스트. 순환이 있으면 None
        """
        graph: dict[str, list[str]] = {name: [] for name in table_names}
        in_degree: dict[str, int] = {name: 0 for name in table_names}

        for edge in edges:
            # 자기 참조는 순서 제약이 아니다
            if edge.table == edge.references_table:
                continue
            if edge.references_table in graph and edge.table in graph:
                graph[edge.references_table].append(edge.table)
                in_degree[edge.table] += 1

        queue = deque(name for name in table_names if in_degree[name] == 0)
        ordered = []
        while queue:
            current = queue.popleft()
            ordered.append(current)
            for neighbor in graph[current]:
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        if len(ordered) != len(table_names):
            return None
        return ordered

    def resolve(self, tables: list[InferredTable]) -> DependencyResolution:
        """외래 키를 추론하고 적재 순서대로 테이블을 재배열.

        순환이 있으면 원래 순서를 유지하지만 간선은 그대로 보고한다.

        Args:
            tables: 스키마가 추론된 테이블 목록

        Returns:
            DependencyResolution
        """
        edges = self.detect_foreign_keys(tables)
        original_order = [table.name for table in tables]
        ordered = self.topological_sort(original_order, edges)

        if ordered is None:
            logger.warning("테이블 의존성에 순환이 있어 원래 순서를 유지합니다")
            return DependencyResolution(
                tables=list(tables),
                edges=edges,
                insertion_order=original_order,
                has_cycle=True,
            )

        by_name = {table.name: table for table in tables}
        return DependencyResolution(
            tables=[by_name[name] for name in ordered],
            edges=edges,
            insertion_order=ordered,
            reordered=ordered != original_order,
        )
