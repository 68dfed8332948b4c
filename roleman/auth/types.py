"""
roleman/auth/types.py - 인증 데이터 구조

- AuthState: 디바이스 인증 상태
- SessionToken: SSO 액세스 토큰 (캐시 단위)
- ClientRegistration: OIDC 클라이언트 등록 정보 (identity + 리전 단위 캐시)
- DeviceAuthorization: StartDeviceAuthorization 응답
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_expiry(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(ISO_FORMAT)


def parse_expiry(value: str) -> datetime:
    """ISO 8601 만료 시각 파싱 (AWS CLI 는 소수점/오프셋 형식도 사용)

    Raises:
        ValueError: 파싱 불가
    """
    try:
        return datetime.strptime(value, ISO_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)


class AuthState(Enum):
    """디바이스 인증 상태 머신의 상태"""

    NO_TOKEN = "no_token"
    AWAITING_USER_ACTION = "awaiting_user_action"
    POLLING = "polling"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SessionToken:
    """SSO 세션 토큰

    만료 시각이 지나면 사용하지 않으며 갱신하지 않고 새로 발급받습니다.

    Attributes:
        access_token: SSO 액세스 토큰
        expires_at: 만료 시각 (UTC)
        identity: 소속 identity 이름
        region: SSO 리전
        start_url: SSO 시작 URL
        client_id: OIDC 클라이언트 ID
        client_secret: OIDC 클라이언트 시크릿
    """

    access_token: str
    expires_at: datetime
    identity: str
    region: str
    start_url: str
    client_id: str = ""
    client_secret: str = ""

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    def remaining_seconds(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        return max(0, int((self.expires_at - now).total_seconds()))

    def __repr__(self) -> str:
        return (
            f"SessionToken(identity={self.identity!r}, region={self.region!r}, "
            f"expires_at={format_expiry(self.expires_at)!r}, access_token=<redacted>)"
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (JSON 저장용, AWS CLI 캐시와 같은 키 이름)"""
        return {
            "accessToken": self.access_token,
            "expiresAt": format_expiry(self.expires_at),
            "identity": self.identity,
            "region": self.region,
            "startUrl": self.start_url,
            "clientId": self.client_id,
            "clientSecret": self.client_secret,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionToken:
        """딕셔너리에서 생성

        Raises:
            KeyError, ValueError: 필수 필드 누락 또는 형식 오류
        """
        return cls(
            access_token=data["accessToken"],
            expires_at=parse_expiry(data["expiresAt"]),
            identity=data.get("identity", ""),
            region=data.get("region", ""),
            start_url=data.get("startUrl", ""),
            client_id=data.get("clientId", ""),
            client_secret=data.get("clientSecret", ""),
        )


@dataclass(frozen=True)
class ClientRegistration:
    """OIDC 클라이언트 등록 (수명이 길고 rate limit 이 있어 캐시)"""

    client_id: str
    client_secret: str
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "clientId": self.client_id,
            "clientSecret": self.client_secret,
            "expiresAt": format_expiry(self.expires_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientRegistration:
        return cls(
            client_id=data["clientId"],
            client_secret=data["clientSecret"],
            expires_at=parse_expiry(data["expiresAt"]),
        )


@dataclass(frozen=True)
class DeviceAuthorization:
    """디바이스 인증 요청 결과"""

    device_code: str
    user_code: str
    verification_uri: str
    expires_in: int
    interval: int

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> DeviceAuthorization:
        return cls(
            device_code=response["deviceCode"],
            user_code=response.get("userCode", ""),
            verification_uri=response.get("verificationUriComplete") or response.get("verificationUri", ""),
            expires_in=int(response.get("expiresIn", 600)),
            interval=max(1, int(response.get("interval", 5))),
        )
