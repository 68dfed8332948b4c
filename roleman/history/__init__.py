"""
roleman/history - 선택 이력 원장
"""

from .ledger import HistoryLedger, HistoryRecord, current_cwd

__all__ = [
    "HistoryLedger",
    "HistoryRecord",
    "current_cwd",
]
