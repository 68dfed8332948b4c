"""
roleman/handoff/credentials.py - 역할 자격증명 교환

sso:GetRoleCredentials 로 임시 자격증명을 받고, 만료 60초 전까지
identity 네임스페이스 캐시에 보관합니다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from roleman.auth.client import SSOClients
from roleman.auth.types import SessionToken
from roleman.cache.store import CacheStore
from roleman.catalog.types import CatalogEntry
from roleman.exceptions import AuthError, NetworkFailureError, RolemanError, get_error_code, is_network_error

logger = logging.getLogger(__name__)

EXPIRY_SAFETY_SECONDS = 60


def credentials_key(account_id: str, role_name: str) -> str:
    return f"creds-{account_id}-{role_name}"


def format_expiration(expiration_ms: int) -> str:
    """밀리초 epoch 를 RFC 3339 (UTC) 로"""
    try:
        moment = datetime.fromtimestamp(expiration_ms / 1000, timezone.utc)
    except (OverflowError, OSError, ValueError):
        return str(expiration_ms)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class RoleCredentials:
    """임시 역할 자격증명"""

    access_key_id: str
    secret_access_key: str
    session_token: str
    expiration_ms: int

    def __repr__(self) -> str:
        return f"RoleCredentials(access_key_id={self.access_key_id!r}, expiration_ms={self.expiration_ms}, secrets=<redacted>)"

    @property
    def expiration(self) -> str:
        return format_expiration(self.expiration_ms)

    def expires_within(self, now: float, margin: float = EXPIRY_SAFETY_SECONDS) -> bool:
        return now + margin >= self.expiration_ms / 1000

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_key_id": self.access_key_id,
            "secret_access_key": self.secret_access_key,
            "session_token": self.session_token,
            "expiration_ms": self.expiration_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RoleCredentials:
        return cls(
            access_key_id=data["access_key_id"],
            secret_access_key=data["secret_access_key"],
            session_token=data["session_token"],
            expiration_ms=int(data["expiration_ms"]),
        )

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> RoleCredentials:
        creds = response["roleCredentials"]
        return cls(
            access_key_id=creds["accessKeyId"],
            secret_access_key=creds["secretAccessKey"],
            session_token=creds["sessionToken"],
            expiration_ms=int(creds["expiration"]),
        )


class CredentialBroker:
    """선택된 역할의 자격증명 발급/캐시

    Args:
        store: identity 네임스페이스 캐시
        clients: SSO 클라이언트
    """

    def __init__(self, store: CacheStore, clients: SSOClients):
        self.store = store
        self.clients = clients

    def cached(self, entry: CatalogEntry) -> RoleCredentials | None:
        """만료 여유가 남은 캐시 자격증명"""
        raw = self.store.get(credentials_key(entry.account_id, entry.role_name))
        if raw is None:
            return None
        try:
            creds = RoleCredentials.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.debug("자격증명 캐시 형식 오류: %s", e)
            return None
        if creds.expires_within(self.store.now()):
            return None
        return creds

    def get_credentials(self, token: SessionToken, entry: CatalogEntry, force: bool = False) -> RoleCredentials:
        """역할 자격증명 (캐시 우선)

        Raises:
            AuthError: 만료되었거나 거부된 토큰
            NetworkFailureError: 네트워크 오류
        """
        if not force:
            creds = self.cached(entry)
            if creds is not None:
                logger.debug("자격증명 캐시 사용: %s", entry.label)
                return creds

        if token.expires_at.timestamp() <= self.store.now():
            raise AuthError("만료된 토큰으로 자격증명을 요청할 수 없습니다")

        try:
            response = self.clients.sso.get_role_credentials(
                roleName=entry.role_name,
                accountId=entry.account_id,
                accessToken=token.access_token,
            )
        except ClientError as e:
            if get_error_code(e) in ("UnauthorizedException", "ForbiddenException"):
                raise AuthError("get_role_credentials: 토큰이 거부되었습니다", cause=e) from e
            raise RolemanError("get_role_credentials 실패", cause=e) from e
        except BotoCoreError as e:
            if is_network_error(e):
                raise NetworkFailureError("get_role_credentials", cause=e) from e
            raise RolemanError("get_role_credentials 실패", cause=e) from e

        creds = RoleCredentials.from_response(response)
        ttl = creds.expiration_ms / 1000 - self.store.now() - EXPIRY_SAFETY_SECONDS
        if ttl > 0:
            self.store.put(credentials_key(entry.account_id, entry.role_name), creds.to_dict(), ttl=ttl)
        return creds
