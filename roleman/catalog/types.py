"""
roleman/catalog/types.py - 카탈로그 데이터 구조
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class CatalogEntry:
    """(계정, 역할) 한 쌍

    Attributes:
        account_id: 계정 ID
        account_name: 계정 이름 (SSO 에서 받은 원본)
        role_name: 역할 이름
        alias: 규칙에서 지정한 표시 이름
        precedence: 규칙에서 지정한 우선순위 (None 이면 가장 낮음)
        ignored: 무시 규칙에 해당하는지 (show_all 에서만 True 가 보임)
    """

    account_id: str
    account_name: str
    role_name: str
    alias: str | None = None
    precedence: int | None = None
    ignored: bool = False

    @property
    def display_name(self) -> str:
        return self.alias or self.account_name or self.account_id

    @property
    def label(self) -> str:
        """검색 및 표시에 사용하는 합성 레이블"""
        return f"{self.display_name} ({self.account_id}) - {self.role_name}"

    @property
    def key(self) -> tuple[str, str]:
        return (self.account_id, self.role_name)

    def raw(self) -> CatalogEntry:
        """규칙 적용 전 상태로 되돌린 항목"""
        return replace(self, alias=None, precedence=None, ignored=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "account_name": self.account_name,
            "role_name": self.role_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CatalogEntry:
        return cls(
            account_id=str(data["account_id"]),
            account_name=str(data.get("account_name", "")),
            role_name=str(data["role_name"]),
        )


@dataclass(frozen=True)
class Catalog:
    """identity 하나의 전체 카탈로그 (캐시 단위)

    Attributes:
        identity: identity 이름
        fetched_at: 조회 시각 (epoch 초)
        entries: 항목 목록
        start_url: 조회한 AWS 액세스 포털 URL (캐시 재사용 판단용)
    """

    identity: str
    fetched_at: float
    entries: tuple[CatalogEntry, ...] = field(default_factory=tuple)
    start_url: str = ""

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def age(self, now: float) -> float:
        return max(0.0, now - self.fetched_at)

    def with_entries(self, entries: list[CatalogEntry] | tuple[CatalogEntry, ...]) -> Catalog:
        return replace(self, entries=tuple(entries))

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "start_url": self.start_url,
            "fetched_at": self.fetched_at,
            "entries": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Catalog:
        return cls(
            identity=str(data["identity"]),
            fetched_at=float(data["fetched_at"]),
            entries=tuple(CatalogEntry.from_dict(e) for e in data.get("entries", [])),
            start_url=str(data.get("start_url", "")),
        )


def format_age(seconds: float) -> str:
    """경과 시간을 짧은 문자열로 (예: '2h 5m', '3m 10s', '42s')"""
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
