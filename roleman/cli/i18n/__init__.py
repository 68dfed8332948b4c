"""
roleman/cli/i18n/__init__.py - 메시지 번역

사용자에게 보이는 문자열은 모두 t() 를 거칩니다.
기본 언어는 한국어(ko), --lang en 또는 ROLEMAN_LANG=en 으로 영어.

Usage:
    from roleman.cli.i18n import t, set_lang

    print(t("common.cancelled"))

    set_lang("en")
    print(t("cli.installed_hook", path="~/.zshrc"))
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

logger = logging.getLogger(__name__)

LANGS = ("ko", "en")
FALLBACK_LANG = "ko"

_lang: ContextVar[str] = ContextVar("roleman_lang", default=FALLBACK_LANG)


def get_lang() -> str:
    return _lang.get()


def set_lang(lang: str) -> None:
    """UI 언어 변경 (지원하지 않는 코드는 ko)"""
    _lang.set(lang if lang in LANGS else FALLBACK_LANG)


def t(key: str, **params: Any) -> str:
    """키에 해당하는 현재 언어 메시지

    번역이 없으면 ko 문구, 키 자체가 없으면 키를 그대로 돌려줍니다.
    자리표시자가 맞지 않으면 포맷하지 않은 문구를 돌려줍니다.
    """
    from roleman.cli.i18n.messages import lookup

    entry = lookup(key)
    if entry is None:
        logger.debug("번역 키 없음: %s", key)
        return key

    text = entry.get(get_lang()) or entry[FALLBACK_LANG]
    if not params:
        return text
    try:
        return text.format(**params)
    except (KeyError, IndexError, ValueError):
        logger.debug("메시지 포맷 실패: %s %r", key, params)
        return text


__all__ = ["LANGS", "get_lang", "set_lang", "t"]
