"""
roleman/cli/i18n/messages/errors.py - Error Messages
"""

from __future__ import annotations

ERROR_MESSAGES = {
    "auth_denied": {
        "ko": "[{identity}] 인증 요청이 거부되었습니다. 다시 실행하여 새로 인증하세요.",
        "en": "[{identity}] Authorization was denied. Run again to start a new login.",
    },
    "device_code_expired": {
        "ko": "[{identity}] 승인 전에 디바이스 코드가 만료되었습니다. 다시 실행하세요.",
        "en": "[{identity}] The device code expired before approval. Run again.",
    },
    "network_failure": {
        "ko": "네트워크 오류 ({operation}): {cause}",
        "en": "Network failure ({operation}): {cause}",
    },
    "no_matching_role": {
        "ko": "[{identity}] 선택할 수 있는 역할이 없습니다.",
        "en": "[{identity}] No matching roles.",
    },
    "handoff_write": {
        "ko": "환경 파일을 쓸 수 없습니다 ({path}): {cause}",
        "en": "Failed to write env file ({path}): {cause}",
    },
    "config_invalid": {
        "ko": "설정 오류: {message}",
        "en": "Invalid configuration: {message}",
    },
    "unexpected": {
        "ko": "예상치 못한 오류: {message}",
        "en": "Unexpected error: {message}",
    },
}
