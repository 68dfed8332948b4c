"""
roleman/cli/i18n/messages/__init__.py - 메시지 카탈로그

키는 "<네임스페이스>.<이름>" 형식입니다.

    common.*  프롬프트, 공통 문구
    errors.*  에러 안내
    cli.*     명령어 결과
"""

from __future__ import annotations

from roleman.cli.i18n.messages.cli_commands import CLI_MESSAGES
from roleman.cli.i18n.messages.common import COMMON_MESSAGES
from roleman.cli.i18n.messages.errors import ERROR_MESSAGES

Translations = dict[str, str]

NAMESPACES: dict[str, dict[str, Translations]] = {
    "common": COMMON_MESSAGES,
    "errors": ERROR_MESSAGES,
    "cli": CLI_MESSAGES,
}


def lookup(key: str) -> Translations | None:
    namespace, _, name = key.partition(".")
    return NAMESPACES.get(namespace, {}).get(name)


def all_keys() -> list[str]:
    return [f"{ns}.{name}" for ns, messages in NAMESPACES.items() for name in messages]


__all__ = ["NAMESPACES", "Translations", "all_keys", "lookup"]
