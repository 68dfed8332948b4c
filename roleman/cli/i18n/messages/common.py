"""
roleman/cli/i18n/messages/common.py - Common Messages
"""

from __future__ import annotations

COMMON_MESSAGES = {
    "cancelled": {
        "ko": "취소됨",
        "en": "Cancelled",
    },
    "select_role": {
        "ko": "역할 선택",
        "en": "Select a role",
    },
    "select_hint": {
        "ko": "입력으로 검색, Tab: 후보 보기, Enter: 첫 번째 후보 선택, Ctrl+C: 취소",
        "en": "Type to search, Tab: show candidates, Enter: pick top match, Ctrl+C: cancel",
    },
    "yes_no_install": {
        "ko": "지금 설치하시겠습니까?",
        "en": "Would you like to install it?",
    },
    "dont_ask_again": {
        "ko": "훅 설치를 다시 묻지 않을까요?",
        "en": "Don't ask about the hook again?",
    },
    "add_alias": {
        "ko": "rl 별칭도 추가할까요?",
        "en": "Also add alias rl=roleman?",
    },
}
