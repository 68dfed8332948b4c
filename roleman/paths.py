"""
roleman/paths.py - 사용자별 디렉토리 경로

XDG Base Directory 규칙을 따릅니다.
    - 설정: $XDG_CONFIG_HOME/roleman (기본 ~/.config/roleman)
    - 캐시: $XDG_CACHE_HOME/roleman (기본 ~/.cache/roleman)
    - 상태: $XDG_STATE_HOME/roleman (기본 ~/.local/state/roleman)
"""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "roleman"


def _xdg_dir(env_var: str, fallback: str) -> Path:
    value = os.environ.get(env_var, "").strip()
    if value and Path(value).is_absolute():
        return Path(value)
    return Path.home() / fallback


def config_dir() -> Path:
    """설정 디렉토리"""
    return _xdg_dir("XDG_CONFIG_HOME", ".config") / APP_NAME


def cache_dir() -> Path:
    """캐시 디렉토리 (토큰, 카탈로그, 자격증명)"""
    return _xdg_dir("XDG_CACHE_HOME", ".cache") / APP_NAME


def state_dir() -> Path:
    """상태 디렉토리 (히스토리, 핸드오프 파일, 관리 AWS config)"""
    return _xdg_dir("XDG_STATE_HOME", ".local/state") / APP_NAME


def config_file() -> Path:
    """기본 설정 파일 경로"""
    return config_dir() / "config.yaml"


def history_file() -> Path:
    """히스토리 원장 파일 경로"""
    return state_dir() / "history.jsonl"


def managed_aws_config_file() -> Path:
    """roleman 전용 AWS config 파일 경로 (~/.aws/config 는 건드리지 않음)"""
    return state_dir() / "aws-config"


def external_sso_cache_dir() -> Path:
    """AWS CLI 가 관리하는 SSO 토큰 캐시 (읽기 전용)"""
    return Path.home() / ".aws" / "sso" / "cache"
