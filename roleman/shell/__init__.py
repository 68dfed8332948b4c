"""
roleman/shell - 셸 훅 생성/설치
"""

from .hooks import (
    HOOK_VERSION,
    SHELLS,
    HookAlreadyInstalledError,
    Shell,
    detect_shell,
    has_active_hook,
    install_hook,
    remove_hook_lines,
    shell_for_name,
)
from .prompt import HookStatus, hook_status

__all__ = [
    "HOOK_VERSION",
    "SHELLS",
    "HookAlreadyInstalledError",
    "HookStatus",
    "Shell",
    "detect_shell",
    "has_active_hook",
    "hook_status",
    "install_hook",
    "remove_hook_lines",
    "shell_for_name",
]
