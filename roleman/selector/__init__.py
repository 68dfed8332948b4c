"""
roleman/selector - 퍼지 매칭 / 히스토리 기반 선택
"""

from .engine import SelectionEngine, SelectionQuery
from .ranking import (
    SORT_ALPHABETICAL,
    SORT_DYNAMIC,
    RankedEntry,
    history_scores,
    match_quality,
    rank,
)

__all__ = [
    "SelectionEngine",
    "SelectionQuery",
    "RankedEntry",
    "SORT_ALPHABETICAL",
    "SORT_DYNAMIC",
    "history_scores",
    "match_quality",
    "rank",
]
