"""
roleman/history/ledger.py - 선택 이력 원장 (append-only JSONL)

$XDG_STATE_HOME/roleman/history.jsonl 에 선택 하나당 한 줄을 추가합니다.

    {"selected_at_unix": 1700000000, "identity": "work", "account_id": "111111111111",
     "account_name": "Dev", "role_name": "Admin", "cwd": "/home/me/project"}

- 추가는 O_APPEND 로 한 번의 write 호출 (여러 프로세스 동시 추가 안전)
- 읽을 때 형식이 잘못된 줄은 건너뜀
- clear() 는 파일을 비움 (선택 진행 중인 다른 프로세스와 동시에 실행하지 말 것)
"""

from __future__ import annotations

import json
import logging
import os
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from roleman.paths import history_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryRecord:
    """선택 이력 한 건 (기록 후 변경하지 않음)"""

    selected_at_unix: int
    identity: str
    account_id: str
    role_name: str
    account_name: str = ""
    cwd: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.account_id, self.role_name)

    def format_timestamp(self) -> str:
        """RFC 3339 (UTC) 문자열"""
        try:
            moment = datetime.fromtimestamp(self.selected_at_unix, timezone.utc)
        except (OverflowError, OSError, ValueError):
            return str(self.selected_at_unix)
        return moment.strftime("%Y-%m-%dT%H:%M:%SZ")

    def format_line(self) -> str:
        """history 명령 출력 형식 (탭 구분)"""
        return "\t".join(
            [self.format_timestamp(), self.identity, self.account_id, self.role_name, self.cwd or "-"]
        )


# _parse_line()에서 사용할 필드 이름 집합 (모듈 로드 시 1회 계산)
_RECORD_FIELDS = {f.name for f in fields(HistoryRecord)}


def _parse_line(line: str) -> HistoryRecord | None:
    raw = json.loads(line)
    if not isinstance(raw, dict):
        return None
    if "cwd" not in raw and "cwd_hash" in raw:
        raw["cwd"] = raw["cwd_hash"]

    filtered: dict[str, Any] = {k: v for k, v in raw.items() if k in _RECORD_FIELDS}
    record = HistoryRecord(**filtered)
    if not isinstance(record.selected_at_unix, int) or isinstance(record.selected_at_unix, bool):
        return None
    if not all(isinstance(v, str) for v in (record.identity, record.account_id, record.role_name)):
        return None
    return record


def current_cwd() -> str | None:
    """정규화된 현재 작업 디렉토리"""
    try:
        return str(Path.cwd().resolve())
    except OSError:
        return None


class HistoryLedger:
    """선택 이력 원장

    Args:
        path: 원장 파일 경로 (None 이면 XDG 상태 디렉토리)
        clock: 현재 시각 (epoch 초) 반환 함수
    """

    def __init__(self, path: Path | None = None, clock: Callable[[], float] | None = None):
        self.path = Path(path) if path else history_file()
        self._clock = clock or time.time

    def append(
        self,
        identity: str,
        account_id: str,
        role_name: str,
        account_name: str = "",
        cwd: str | None = None,
    ) -> HistoryRecord:
        """이력 한 건 추가

        Returns:
            기록된 HistoryRecord
        """
        record = HistoryRecord(
            selected_at_unix=int(self._clock()),
            identity=identity,
            account_id=account_id,
            role_name=role_name,
            account_name=account_name,
            cwd=cwd,
        )
        line = (json.dumps(asdict(record), ensure_ascii=False) + "\n").encode("utf-8")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o600)
        try:
            os.write(fd, line)
        finally:
            os.close(fd)
        return record

    def load(self) -> list[HistoryRecord]:
        """전체 이력 (삽입 순서)"""
        if not self.path.exists():
            return []

        records: list[HistoryRecord] = []
        with self.path.open(encoding="utf-8", errors="replace") as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    record = _parse_line(line)
                except (json.JSONDecodeError, TypeError) as e:
                    logger.debug("이력 %d번째 줄 건너뜀: %s", line_number, e)
                    continue
                if record is None:
                    logger.debug("이력 %d번째 줄 건너뜀: 형식 오류", line_number)
                    continue
                records.append(record)
        return records

    def for_identity(self, identity: str) -> list[HistoryRecord]:
        return [r for r in self.load() if r.identity == identity]

    def recent(self, limit: int = 20) -> list[HistoryRecord]:
        """최근 선택 순으로 최대 limit 건"""
        records = sorted(self.load(), key=lambda r: r.selected_at_unix, reverse=True)
        return records[:limit]

    def clear(self) -> None:
        """원장 비우기"""
        if not self.path.exists():
            return
        with self.path.open("w", encoding="utf-8"):
            pass
