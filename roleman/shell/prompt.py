"""
roleman/shell/prompt.py - 훅 설치 안내 정책

hook_prompt 설정값:
    always   훅이 없으면 설치를 제안
    outdated 설치되었지만 활성화되지 않은 경우만 경고
    never    아무것도 하지 않음
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import Enum

from roleman.shell.hooks import HOOK_VERSION, Shell, detect_shell, has_active_hook


class HookStatus(Enum):
    ACTIVE = "active"
    OUTDATED = "outdated"  # 셸에 예전 버전 훅이 로드됨
    INACTIVE = "inactive"  # rc 에는 있지만 현재 셸에 로드 안 됨
    MISSING = "missing"  # 설치 제안 대상
    SKIP = "skip"


def hook_status(
    mode: str,
    environ: Mapping[str, str] | None = None,
    shell: Shell | None = None,
) -> HookStatus:
    """현재 셸의 훅 상태와 안내 필요 여부 판단"""
    if mode == "never":
        return HookStatus.SKIP

    environ = os.environ if environ is None else environ
    version = environ.get("_ROLEMAN_HOOK_VERSION")
    if version == str(HOOK_VERSION):
        return HookStatus.ACTIVE
    if version or environ.get("_ROLEMAN_HOOK_ENV"):
        return HookStatus.OUTDATED

    shell = shell or detect_shell(environ)
    if shell is None:
        return HookStatus.SKIP

    path = shell.rc_path(environ)
    try:
        contents = path.read_text(encoding="utf-8") if path.exists() else ""
    except OSError:
        contents = ""
    if has_active_hook(contents, shell.install_line):
        return HookStatus.INACTIVE

    if mode == "outdated":
        return HookStatus.SKIP
    return HookStatus.MISSING
