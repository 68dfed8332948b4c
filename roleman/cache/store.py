"""
roleman/cache/store.py - TTL 기반 디스크 캐시

identity 별 네임스페이스 디렉토리에 키 하나당 JSON 파일 하나를 둡니다.

    $XDG_CACHE_HOME/roleman/<identity-ns>/<key>.json
    {"stored_at": 1700000000.0, "expires_at": 1700086400.0, "value": {...}}

- 만료된 항목은 읽을 때 없는 것으로 취급 (stale 값은 반환하지 않음)
- 쓰기는 임시 파일 후 rename (동시 reader 가 부분 쓰기를 보지 않음)
- 손상된 파일은 캐시 미스로 처리하고 debug 로그만 남김
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from roleman.exceptions import CacheCorruptedError
from roleman.paths import cache_dir

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def namespace_dir_name(identity: str) -> str:
    """identity 이름을 디렉토리 이름으로 변환

    사람이 읽을 수 있는 접두사 + 충돌 방지용 sha1 접미사
    """
    readable = _UNSAFE_CHARS.sub("_", identity).strip("._") or "identity"
    digest = hashlib.sha1(identity.encode("utf-8")).hexdigest()[:10]
    return f"{readable[:40]}-{digest}"


@dataclass
class StoredEntry:
    """캐시 파일 하나의 내용"""

    value: Any
    stored_at: float
    expires_at: float | None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    def age(self, now: float) -> float:
        """저장 후 경과 시간 (초)"""
        return max(0.0, now - self.stored_at)


class CacheStore:
    """identity 네임스페이스 단위 TTL 캐시

    Args:
        namespace: identity 이름
        root: 캐시 루트 (None 이면 XDG 캐시 디렉토리)
        clock: 현재 시각 (epoch 초) 반환 함수, 테스트에서 교체
    """

    def __init__(self, namespace: str, root: Path | None = None, clock: Clock | None = None):
        self.namespace = namespace
        self.root = Path(root) if root else cache_dir()
        self.directory = self.root / namespace_dir_name(namespace)
        self._clock = clock or time.time

    def now(self) -> float:
        return self._clock()

    def _path(self, key: str) -> Path:
        """키 → 파일 경로

        파일 이름에 쓸 수 없는 문자가 있으면 sha1 접미사를 붙여
        치환 후 같은 이름이 되는 키끼리 섞이지 않게 합니다.
        """
        if not key:
            raise ValueError("cache key must not be empty")
        safe = _UNSAFE_CHARS.sub("_", key)
        if safe != key:
            digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:12]
            safe = f"{safe[:80]}-{digest}"
        return self.directory / f"{safe}.json"

    # =========================================================================
    # 조회
    # =========================================================================

    def _read(self, path: Path) -> StoredEntry:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheCorruptedError(str(path), cause=e) from e

        if not isinstance(raw, dict) or "value" not in raw or "stored_at" not in raw:
            raise CacheCorruptedError(str(path))

        try:
            stored_at = float(raw["stored_at"])
            expires_raw = raw.get("expires_at")
            expires_at = float(expires_raw) if expires_raw is not None else None
        except (TypeError, ValueError) as e:
            raise CacheCorruptedError(str(path), cause=e) from e

        return StoredEntry(value=raw["value"], stored_at=stored_at, expires_at=expires_at)

    def get_entry(self, key: str, include_expired: bool = False) -> StoredEntry | None:
        """항목을 메타데이터와 함께 반환

        Args:
            key: 캐시 키
            include_expired: True 면 만료된 항목도 반환 (만료 감지용)
        """
        path = self._path(key)
        if not path.exists():
            return None

        try:
            entry = self._read(path)
        except CacheCorruptedError as e:
            logger.debug("캐시 로드 실패 (%s/%s): %s", self.namespace, key, e)
            return None

        if not include_expired and entry.is_expired(self.now()):
            logger.debug("캐시 만료 (%s/%s)", self.namespace, key)
            return None

        return entry

    def get(self, key: str) -> Any | None:
        """값 조회 (없거나 만료/손상이면 None)"""
        entry = self.get_entry(key)
        return entry.value if entry else None

    # =========================================================================
    # 저장 / 삭제
    # =========================================================================

    def put(self, key: str, value: Any, ttl: float | None) -> None:
        """값 저장

        Args:
            key: 캐시 키
            value: JSON 직렬화 가능한 값
            ttl: 유효 시간 (초), None 이면 만료 없음
        """
        now = self.now()
        payload = {
            "stored_at": now,
            "expires_at": now + ttl if ttl is not None else None,
            "value": value,
        }
        content = json.dumps(payload, ensure_ascii=False)

        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=f".{path.stem}_")
        try:
            os.fchmod(fd, 0o600)
            with open(fd, "w", encoding="utf-8") as f:
                f.write(content)
            Path(tmp_path).replace(path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def invalidate(self, key: str) -> None:
        """항목 삭제 (없으면 무시)"""
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug("캐시 삭제 실패 (%s/%s): %s", self.namespace, key, e)
