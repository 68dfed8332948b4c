"""
roleman/handoff/aws_config.py - roleman 전용 AWS config 파일

AWS_PROFILE 이 설정된 셸에서는 roleman 이 관리하는 별도 config 파일
($XDG_STATE_HOME/roleman/aws-config) 에 최소한의 profile 블록을 쓰고
AWS_CONFIG_FILE 로 가리킵니다. ~/.aws/config 는 건드리지 않습니다.
"""

from __future__ import annotations

import configparser
import io
import os
import re
import tempfile
from pathlib import Path

from roleman.catalog.types import CatalogEntry
from roleman.paths import managed_aws_config_file

_PROFILE_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_profile_name(value: str) -> str:
    """[A-Za-z0-9_-] 만 남기고 연속된 '-' 를 하나로"""
    out = _PROFILE_UNSAFE.sub("-", value)
    out = re.sub(r"-{2,}", "-", out).strip("-")
    return out or "roleman"


def profile_name_for(entry: CatalogEntry) -> str:
    """선택 항목의 profile 이름 (roleman-<account>-<role>)"""
    return sanitize_profile_name(f"roleman-{entry.account_id}-{entry.role_name}")


class ManagedAwsConfig:
    """roleman 전용 AWS config 파일 관리"""

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path else managed_aws_config_file()

    def _load(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(interpolation=None)
        if self.path.exists():
            try:
                parser.read(self.path, encoding="utf-8")
            except configparser.Error:
                # 손상된 관리 파일은 새로 씀
                parser = configparser.ConfigParser(interpolation=None)
        return parser

    def upsert_profile(self, profile_name: str, region: str) -> Path:
        """profile 블록 추가/갱신 후 파일 경로 반환

        Raises:
            OSError: 쓰기 실패
        """
        parser = self._load()
        section = f"profile {profile_name}"
        if not parser.has_section(section):
            parser.add_section(section)
        parser.set(section, "region", region)

        buffer = io.StringIO()
        parser.write(buffer)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp", prefix=".aws-config_")
        try:
            os.fchmod(fd, 0o600)
            with open(fd, "w", encoding="utf-8") as f:
                f.write(buffer.getvalue())
            Path(tmp_path).replace(self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        return self.path

    def profile_region(self, profile_name: str) -> str | None:
        parser = self._load()
        section = f"profile {profile_name}"
        if not parser.has_section(section):
            return None
        return parser.get(section, "region", fallback=None)
