"""
roleman/cli/i18n/messages/cli_commands.py - CLI Command Messages

Contains translations for command output, hook guidance and help text.
"""

from __future__ import annotations

CLI_MESSAGES = {
    # =========================================================================
    # Select / Hand-off
    # =========================================================================
    "sso_login": {
        "ko": "AWS SSO 로그인: 브라우저에서 아래 코드를 승인하세요",
        "en": "AWS SSO login: approve the code below in your browser",
    },
    "cached_roles": {
        "ko": "캐시된 역할 목록 사용 ({age} 전)",
        "en": "Using cached roles (age {age})",
    },
    "waiting_for_roles": {
        "ko": "표시할 역할이 없습니다. {seconds}초 후 다시 조회합니다 (Ctrl+C: 취소)",
        "en": "No roles to show yet. Retrying in {seconds}s (Ctrl+C: cancel)",
    },
    "exported": {
        "ko": "{label} 자격증명을 내보냈습니다 (만료: {expiration})",
        "en": "Exported credentials for {label} (expires {expiration})",
    },
    "opened_portal": {
        "ko": "AWS 액세스 포털에서 여는 중: {label}",
        "en": "Opening in the AWS access portal: {label}",
    },
    "unset_written": {
        "ko": "AWS 환경 변수 제거를 예약했습니다",
        "en": "Scheduled removal of AWS environment variables",
    },
    # =========================================================================
    # History
    # =========================================================================
    "history_empty": {
        "ko": "선택 이력이 없습니다",
        "en": "No history yet",
    },
    "history_cleared": {
        "ko": "선택 이력을 삭제했습니다",
        "en": "History cleared",
    },
    # =========================================================================
    # Shell Hook
    # =========================================================================
    "unsupported_shell": {
        "ko": "지원하지 않는 셸입니다: {name} (bash, zsh, fish)",
        "en": "Unsupported shell: {name} (bash, zsh, fish)",
    },
    "shell_detect_failed": {
        "ko": "셸을 감지할 수 없습니다. SHELL 을 bash/zsh/fish 로 설정하거나 `roleman hook <shell>` 을 사용하세요",
        "en": "Failed to detect shell. Set SHELL to bash, zsh or fish, or run `roleman hook <shell>`",
    },
    "hook_already_installed": {
        "ko": "{path} 에 훅이 이미 설치되어 있습니다 (--force 로 덮어쓰기)",
        "en": "Hook already installed in {path} (use --force to overwrite)",
    },
    "installed_hook": {
        "ko": "{path} 에 훅을 설치했습니다",
        "en": "Installed hook into {path}",
    },
    "reload_shell": {
        "ko": "셸을 다시 불러오세요: {command}",
        "en": "Reload your shell: {command}",
    },
    "hook_missing": {
        "ko": "셸 훅이 설치되어 있지 않습니다. {path} 에 다음 줄을 추가할까요?",
        "en": "Shell hook isn't installed. Add this line to {path}?",
    },
    "hook_inactive": {
        "ko": "셸 훅이 설치되었지만 활성화되지 않았습니다. 셸을 다시 불러오세요: {command}",
        "en": "Shell hook is installed but not active. Reload your shell: {command}",
    },
    "hook_outdated": {
        "ko": "셸 훅이 오래된 버전입니다. 셸을 다시 불러오세요: {command}",
        "en": "Shell hook looks outdated. Please reload your shell: {command}",
    },
}
