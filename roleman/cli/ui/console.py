"""
roleman/cli/ui/console.py - Rich 콘솔 유틸리티

stdout 은 셸 export 출력 전용이므로 모든 UI 출력은 stderr 로 보냅니다.
"""

from __future__ import annotations

import logging
import os
import platform

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

# botocore 노이즈 로그 제한
logging.getLogger("botocore").setLevel(logging.WARNING)
logging.getLogger("boto3").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)

LOG_LEVEL_ENV = "ROLEMAN_LOG"
LOG_FILE_ENV = "ROLEMAN_LOG_FILE"


def get_console() -> Console:
    """stderr 용 Rich Console 인스턴스를 생성하고 반환합니다."""
    is_windows = platform.system().lower() == "windows"

    return Console(
        stderr=True,
        highlight=False,
        soft_wrap=True,
        markup=True,
        emoji=not is_windows,
    )


# 전역 콘솔 인스턴스
console = get_console()


def _level_from_env() -> int | None:
    value = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if not value:
        return None
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else None


def setup_logging(verbose: int = 0) -> None:
    """roleman 로거에 Rich 핸들러 설정

    Args:
        verbose: 0 이면 WARNING, 1 이면 INFO, 2 이상이면 DEBUG
                 (ROLEMAN_LOG 환경 변수가 있으면 그 값이 우선)
    """
    level = _level_from_env()
    if level is None:
        level = logging.WARNING if verbose <= 0 else logging.INFO if verbose == 1 else logging.DEBUG

    logger = logging.getLogger("roleman")
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = False

    handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    handler.setLevel(level)
    logger.addHandler(handler)

    log_file = os.environ.get(LOG_FILE_ENV, "").strip()
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)


# =============================================================================
# 표준 출력 스타일 (이모지 없이 Rich 스타일만 사용)
# =============================================================================

# 상태 심볼
SYMBOL_SUCCESS = "✓"  # 완료
SYMBOL_ERROR = "✗"  # 에러
SYMBOL_WARNING = "!"  # 경고
SYMBOL_INFO = "•"  # 정보


def print_success(message: str) -> None:
    """성공 메시지 출력 (초록색 체크마크)"""
    console.print(f"[green]{SYMBOL_SUCCESS} {escape(message)}[/green]")


def print_error(message: str) -> None:
    """에러 메시지 출력 (빨간색 X)"""
    console.print(f"[red]{SYMBOL_ERROR} {escape(message)}[/red]")


def print_warning(message: str) -> None:
    """경고 메시지 출력 (노란색 경고)"""
    console.print(f"[yellow]{SYMBOL_WARNING} {escape(message)}[/yellow]")


def print_info(message: str) -> None:
    """정보 메시지 출력 (파란색 정보)"""
    console.print(f"[blue]{SYMBOL_INFO} {escape(message)}[/blue]")


def print_hint(message: str) -> None:
    console.print(f"[dim]{escape(message)}[/dim]")
