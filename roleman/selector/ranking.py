"""
roleman/selector/ranking.py - 퍼지 매칭과 순위 계산 (I/O 없는 순수 함수)

매칭:
    쿼리를 공백으로 나눈 각 단어가 레이블의 부분 수열(대소문자 무시)이어야 후보로 남음

매칭 품질 (단어별 점수의 평균):
    1. 필드와 정확히 일치 (1.0)
    2. 필드 시작 (0.95)
    3. 레이블에 포함 (0.85)
    4. Fuzzy 매칭 (0.4~0.7)
    5. 부분 수열만 일치 (0.1~0.3, 글자가 가까이 모여 있을수록 높음)

히스토리 점수:
    recency   = exp(-경과일 / 14), 가장 최근 선택 기준
    frequency = ln(30일 내 선택 수 + 1) / ln(31), 최대 1.0
    context   = 현재 작업 디렉토리에서 선택한 적이 있으면 1.0
    score     = 0.60 * recency + 0.30 * frequency + 0.10 * context

정렬:
    항상 precedence 내림차순이 첫 번째 키 (None 은 가장 낮음)
    alphabetical: 매칭 품질 → 표시 이름 → 역할 이름 (히스토리 무시)
    dynamic: 쿼리가 없으면 히스토리 점수, 있으면 0.85 * 품질 + 0.15 * 히스토리
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from rapidfuzz import fuzz

from roleman.catalog.types import CatalogEntry
from roleman.history.ledger import HistoryRecord

SORT_DYNAMIC = "dynamic"
SORT_ALPHABETICAL = "alphabetical"

# Fuzzy 검색 상수
FUZZY_MIN_SCORE = 80  # 최소 유사도 (%)
FUZZY_SCORE_BASE = 0.4  # fuzzy 기본 점수
FUZZY_SCORE_MAX = 0.7  # fuzzy 최대 점수
SUBSEQUENCE_SCORE_BASE = 0.1
SUBSEQUENCE_SCORE_MAX = 0.3

# 히스토리 가중치
RECENCY_DECAY_DAYS = 14.0
FREQUENCY_WINDOW_DAYS = 30
RECENCY_WEIGHT = 0.60
FREQUENCY_WEIGHT = 0.30
CONTEXT_WEIGHT = 0.10

# 쿼리가 있을 때 매칭 품질 비중
QUALITY_WEIGHT = 0.85
HISTORY_WEIGHT = 0.15


def normalize_text(text: str) -> str:
    """검색용 텍스트 정규화

    - 소문자 변환
    - 구분자(_ - . / ( )) 를 공백으로
    - 공백 정규화
    """
    text = text.lower()
    text = re.sub(r"[_\-\./()]", " ", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def query_terms(query: str) -> list[str]:
    return normalize_text(query).split()


# =============================================================================
# 매칭 품질
# =============================================================================


def _subsequence_span(term: str, text: str) -> int | None:
    """term 이 text 의 부분 수열이면 첫 글자부터 마지막 글자까지의 길이"""
    start = -1
    pos = 0
    for char in term:
        found = text.find(char, pos)
        if found < 0:
            return None
        if start < 0:
            start = found
        pos = found + 1
    return pos - start


def _term_score(term: str, fields: Sequence[str], label: str) -> float | None:
    span = _subsequence_span(term, label)
    if span is None:
        return None

    if term in fields:
        return 1.0
    if any(f.startswith(term) for f in fields):
        return 0.95
    if term in label:
        return 0.85

    if len(term) >= 3:
        ratio = fuzz.partial_ratio(term, label)
        if ratio >= FUZZY_MIN_SCORE:
            normalized = (ratio - FUZZY_MIN_SCORE) / (100 - FUZZY_MIN_SCORE)
            return FUZZY_SCORE_BASE + (FUZZY_SCORE_MAX - FUZZY_SCORE_BASE) * normalized

    tightness = len(term) / span
    return SUBSEQUENCE_SCORE_BASE + (SUBSEQUENCE_SCORE_MAX - SUBSEQUENCE_SCORE_BASE) * tightness


def match_quality(query: str, entry: CatalogEntry) -> float | None:
    """쿼리와 항목의 매칭 품질

    Returns:
        0~1 사이 점수, 매칭되지 않으면 None (빈 쿼리는 0.0)
    """
    terms = query_terms(query)
    if not terms:
        return 0.0

    label = normalize_text(entry.label)
    fields = [
        normalize_text(entry.display_name),
        normalize_text(entry.account_name),
        normalize_text(entry.role_name),
        entry.account_id,
    ]
    # 여러 단어로 된 이름은 단어 단위로도 비교
    fields.extend(word for f in fields[:3] for word in f.split())

    scores: list[float] = []
    for term in terms:
        score = _term_score(term, fields, label)
        if score is None:
            return None
        scores.append(score)
    return sum(scores) / len(scores)


# =============================================================================
# 히스토리 점수
# =============================================================================


@dataclass
class HistoryStats:
    recency: float = 0.0
    frequency_30d: int = 0
    cwd_matches: bool = False

    @property
    def score(self) -> float:
        frequency = min(1.0, math.log(self.frequency_30d + 1) / math.log(FREQUENCY_WINDOW_DAYS + 1))
        context = 1.0 if self.cwd_matches else 0.0
        return self.recency * RECENCY_WEIGHT + frequency * FREQUENCY_WEIGHT + context * CONTEXT_WEIGHT


def history_stats(
    records: Iterable[HistoryRecord],
    identity: str,
    now: float,
    cwd: str | None = None,
) -> dict[tuple[str, str], HistoryStats]:
    """(account_id, role_name) 별 히스토리 통계"""
    stats: dict[tuple[str, str], HistoryStats] = {}
    for record in records:
        if record.identity != identity:
            continue
        item = stats.setdefault(record.key, HistoryStats())
        age_seconds = max(0.0, now - record.selected_at_unix)
        age_days = age_seconds / 86400.0
        item.recency = max(item.recency, math.exp(-age_days / RECENCY_DECAY_DAYS))
        if age_seconds <= FREQUENCY_WINDOW_DAYS * 86400:
            item.frequency_30d += 1
        if cwd is not None and record.cwd == cwd:
            item.cwd_matches = True
    return stats


def history_scores(
    records: Iterable[HistoryRecord],
    identity: str,
    now: float,
    cwd: str | None = None,
) -> dict[tuple[str, str], float]:
    """(account_id, role_name) 별 히스토리 점수 (기록 없는 항목은 포함 안 됨)"""
    return {key: item.score for key, item in history_stats(records, identity, now, cwd).items()}


# =============================================================================
# 정렬
# =============================================================================


@dataclass(frozen=True)
class RankedEntry:
    """순위 계산 결과"""

    entry: CatalogEntry
    quality: float
    history: float
    score: float


def _precedence_key(entry: CatalogEntry) -> tuple[int, int]:
    if entry.precedence is None:
        return (1, 0)
    return (0, -entry.precedence)


def _tiebreak_key(entry: CatalogEntry) -> tuple[str, str, str]:
    return (entry.display_name.lower(), entry.role_name.lower(), entry.account_id)


def rank(
    entries: Iterable[CatalogEntry],
    query: str = "",
    mode: str = SORT_DYNAMIC,
    scores: dict[tuple[str, str], float] | None = None,
) -> list[RankedEntry]:
    """매칭되는 항목을 순위대로 반환

    Args:
        entries: 후보 항목
        query: 검색어 (빈 문자열이면 전체)
        mode: "dynamic" 또는 "alphabetical"
        scores: history_scores() 결과 (alphabetical 에서는 무시)
    """
    if mode not in (SORT_DYNAMIC, SORT_ALPHABETICAL):
        raise ValueError(f"unknown sort mode: {mode}")

    has_query = bool(query_terms(query))
    scores = scores or {}

    ranked: list[RankedEntry] = []
    for entry in entries:
        quality = match_quality(query, entry)
        if quality is None:
            continue

        if mode == SORT_ALPHABETICAL:
            history = 0.0
            combined = quality
        else:
            history = scores.get(entry.key, 0.0)
            combined = QUALITY_WEIGHT * quality + HISTORY_WEIGHT * history if has_query else history

        ranked.append(RankedEntry(entry=entry, quality=quality, history=history, score=combined))

    ranked.sort(key=lambda r: (_precedence_key(r.entry), -r.score, _tiebreak_key(r.entry)))
    return ranked
