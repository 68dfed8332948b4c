"""
roleman/selector/engine.py - 선택 엔진

카탈로그와 히스토리 원장을 받아 쿼리별 후보 목록을 만들고,
선택이 확정되면 이력 한 건을 추가합니다. 취소하면 아무것도 기록하지 않습니다.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from roleman.catalog.types import Catalog, CatalogEntry
from roleman.exceptions import NoMatchingRoleError
from roleman.history.ledger import HistoryLedger
from roleman.selector.ranking import SORT_DYNAMIC, RankedEntry, history_scores, rank

logger = logging.getLogger(__name__)


@dataclass
class SelectionQuery:
    """한 번의 검색 상태 (선택 또는 취소 후 폐기)"""

    text: str
    candidates: list[CatalogEntry] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)

    @classmethod
    def from_ranked(cls, text: str, ranked: list[RankedEntry]) -> SelectionQuery:
        return cls(text=text, candidates=[r.entry for r in ranked], scores=[r.score for r in ranked])

    @property
    def top(self) -> CatalogEntry | None:
        return self.candidates[0] if self.candidates else None


class SelectionEngine:
    """대화형 선택의 순위/기록 로직

    Args:
        catalog: 규칙이 적용된 카탈로그
        ledger: 히스토리 원장
        mode: "dynamic" 또는 "alphabetical"
        cwd: 현재 작업 디렉토리 (컨텍스트 가중치용)
        clock: 현재 시각 (epoch 초)

    Raises:
        NoMatchingRoleError: 카탈로그가 비어 있는 경우
    """

    def __init__(
        self,
        catalog: Catalog,
        ledger: HistoryLedger,
        mode: str = SORT_DYNAMIC,
        cwd: str | None = None,
        clock: Callable[[], float] | None = None,
    ):
        if not catalog.entries:
            raise NoMatchingRoleError(catalog.identity)

        self.catalog = catalog
        self.ledger = ledger
        self.mode = mode
        self.cwd = cwd
        self._clock = clock or time.time
        self.finished = False

        if mode == SORT_DYNAMIC:
            self._scores = history_scores(ledger.for_identity(catalog.identity), catalog.identity, self._clock(), cwd)
        else:
            self._scores = {}

    @property
    def identity(self) -> str:
        return self.catalog.identity

    def query(self, text: str = "") -> SelectionQuery:
        """쿼리에 매칭되는 후보를 순위대로"""
        ranked = rank(self.catalog.entries, text, self.mode, self._scores)
        return SelectionQuery.from_ranked(text, ranked)

    def auto_select(self, text: str) -> CatalogEntry | None:
        """초기 쿼리에 매칭되는 후보가 정확히 하나면 그 항목

        Raises:
            NoMatchingRoleError: 쿼리에 매칭되는 후보가 없는 경우
        """
        if not text.strip():
            return None
        result = self.query(text)
        if not result.candidates:
            raise NoMatchingRoleError(self.identity, text)
        if len(result.candidates) == 1:
            return result.candidates[0]
        return None

    def find(self, label: str) -> CatalogEntry | None:
        """레이블이 정확히 같은 항목"""
        for entry in self.catalog.entries:
            if entry.label == label:
                return entry
        return None

    def choose(self, entry: CatalogEntry) -> CatalogEntry:
        """선택 확정 (이력 한 건 추가)"""
        if self.finished:
            raise RuntimeError("selection already finished")
        self.ledger.append(
            identity=self.identity,
            account_id=entry.account_id,
            role_name=entry.role_name,
            account_name=entry.account_name,
            cwd=self.cwd,
        )
        self.finished = True
        logger.debug("선택: %s", entry.label)
        return entry

    def cancel(self) -> None:
        """선택 취소 (이력 기록 없음)"""
        self.finished = True
        logger.debug("선택 취소 [%s]", self.identity)
