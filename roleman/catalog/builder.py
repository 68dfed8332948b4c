"""
roleman/catalog/builder.py - 계정/역할 카탈로그 조회 및 캐시

- fetch(): sso:ListAccounts → 계정별 sso:ListAccountRoles
- load(): 캐시가 유효하면 캐시, 아니면 fetch 후 저장 (원본 카탈로그)
- build(): load() + 규칙 적용, refresh_seconds 가 지나면 백그라운드 갱신
- wait_for_entries(): 보이는 역할이 없을 때 refresh_seconds 간격으로 재조회

캐시에는 규칙 적용 전 원본을 저장하므로 설정을 바꾸면 재조회 없이 반영됩니다.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from roleman.auth.client import SSOClients
from roleman.auth.types import SessionToken
from roleman.cache.store import CacheStore
from roleman.catalog.rules import apply_rules
from roleman.catalog.types import Catalog, CatalogEntry
from roleman.config import Identity, normalize_start_url
from roleman.exceptions import (
    AuthError,
    NetworkFailureError,
    RolemanError,
    UserCancelError,
    get_error_code,
    is_network_error,
)

logger = logging.getLogger(__name__)

CATALOG_KEY = "catalog"
DEFAULT_CATALOG_TTL = 24 * 3600


class CatalogBuilder:
    """identity 하나의 카탈로그 관리

    Args:
        identity: 대상 Identity
        store: identity 네임스페이스 캐시
        clients: SSO 클라이언트 (None 이면 identity 리전으로 생성)
        ttl: 카탈로그 캐시 TTL (초)
        refresh_seconds: 이 시간보다 오래된 캐시는 백그라운드로 갱신
    """

    def __init__(
        self,
        identity: Identity,
        store: CacheStore,
        clients: SSOClients | None = None,
        ttl: float = DEFAULT_CATALOG_TTL,
        refresh_seconds: int | None = None,
    ):
        self.identity = identity
        self.store = store
        self.clients = clients or SSOClients(identity.sso_region)
        self.ttl = ttl
        self.refresh_seconds = refresh_seconds
        self.refresh_thread: threading.Thread | None = None
        self.served_from_cache = False

    # =========================================================================
    # 조회
    # =========================================================================

    def _ensure_valid(self, token: SessionToken) -> None:
        now = self.store.now()
        if token.expires_at.timestamp() <= now:
            raise AuthError(f"만료된 토큰으로 카탈로그를 조회할 수 없습니다 [{self.identity.name}]")

    def _call(self, operation: str, func: Callable[[], Any]) -> Any:
        try:
            return func()
        except ClientError as e:
            if get_error_code(e) in ("UnauthorizedException", "ForbiddenException"):
                raise AuthError(f"{operation}: 토큰이 거부되었습니다", cause=e) from e
            raise RolemanError(f"{operation} 실패", cause=e) from e
        except BotoCoreError as e:
            if is_network_error(e):
                raise NetworkFailureError(operation, cause=e) from e
            raise RolemanError(f"{operation} 실패", cause=e) from e

    def _list_accounts(self, token: SessionToken) -> list[dict[str, Any]]:
        def _collect() -> list[dict[str, Any]]:
            accounts: list[dict[str, Any]] = []
            paginator = self.clients.sso.get_paginator("list_accounts")
            for page in paginator.paginate(accessToken=token.access_token):
                accounts.extend(page.get("accountList", []))
            return accounts

        result: list[dict[str, Any]] = self._call("list_accounts", _collect)
        return result

    def _list_roles(self, token: SessionToken, account_id: str) -> list[str]:
        def _collect() -> list[str]:
            roles: list[str] = []
            kwargs: dict[str, Any] = {"accessToken": token.access_token, "accountId": account_id}
            while True:
                response = self.clients.sso.list_account_roles(**kwargs)
                roles.extend(r["roleName"] for r in response.get("roleList", []))
                next_token = response.get("nextToken")
                if not next_token:
                    return roles
                kwargs["nextToken"] = next_token

        result: list[str] = self._call("list_account_roles", _collect)
        return result

    def fetch(self, token: SessionToken) -> Catalog:
        """SSO API 로 원본 카탈로그 조회 (캐시 사용 안 함)

        Raises:
            AuthError: 만료되었거나 거부된 토큰
            NetworkFailureError: 네트워크 오류
        """
        self._ensure_valid(token)

        entries: list[CatalogEntry] = []
        for account in self._list_accounts(token):
            account_id = str(account["accountId"])
            account_name = str(account.get("accountName", ""))
            for role_name in self._list_roles(token, account_id):
                entries.append(CatalogEntry(account_id=account_id, account_name=account_name, role_name=role_name))

        logger.info("카탈로그 조회 완료 [%s]: 역할 %d개", self.identity.name, len(entries))
        return Catalog(
            identity=self.identity.name,
            fetched_at=self.store.now(),
            entries=tuple(entries),
            start_url=normalize_start_url(self.identity.start_url),
        )

    def refresh(self, token: SessionToken) -> Catalog:
        """조회 후 캐시 교체"""
        catalog = self.fetch(token)
        self.store.put(CATALOG_KEY, catalog.to_dict(), ttl=self.ttl)
        return catalog

    def cached(self) -> Catalog | None:
        """TTL 이내의 캐시된 원본 카탈로그"""
        raw = self.store.get(CATALOG_KEY)
        if raw is None:
            return None
        try:
            catalog = Catalog.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.debug("카탈로그 캐시 형식 오류 [%s]: %s", self.identity.name, e)
            return None

        # 같은 identity 이름이라도 포털이 다르면 다른 조직의 카탈로그
        if catalog.start_url != normalize_start_url(self.identity.start_url):
            logger.debug("카탈로그 캐시의 start_url 불일치 [%s]: %s", self.identity.name, catalog.start_url)
            return None
        return catalog

    def load(self, token: SessionToken, *, force: bool = False) -> Catalog:
        """원본 카탈로그 (캐시 우선)

        Args:
            token: 유효한 SessionToken
            force: True 면 캐시를 무시하고 재조회
        """
        self._ensure_valid(token)

        if not force:
            catalog = self.cached()
            if catalog is not None:
                self.served_from_cache = True
                return catalog

        self.served_from_cache = False
        return self.refresh(token)

    # =========================================================================
    # 규칙 적용 / 갱신
    # =========================================================================

    def build(self, token: SessionToken, *, force: bool = False, show_all: bool = False) -> Catalog:
        """규칙이 적용된 카탈로그

        캐시가 refresh_seconds 보다 오래되었으면 백그라운드 갱신을 시작하고
        현재 스냅샷을 바로 반환합니다.
        """
        catalog = self.load(token, force=force)
        if self.served_from_cache and self._is_stale(catalog):
            self.schedule_refresh(token)
        return apply_rules(catalog, self.identity, show_all=show_all)

    def _is_stale(self, catalog: Catalog) -> bool:
        if not self.refresh_seconds:
            return False
        return catalog.age(self.store.now()) >= self.refresh_seconds

    def schedule_refresh(self, token: SessionToken) -> threading.Thread:
        """백그라운드 갱신 스레드 시작 (캐시 파일만 교체)"""

        def _run() -> None:
            try:
                self.refresh(token)
                logger.debug("백그라운드 카탈로그 갱신 완료 [%s]", self.identity.name)
            except RolemanError as e:
                logger.warning("백그라운드 카탈로그 갱신 실패 [%s]: %s", self.identity.name, e)

        thread = threading.Thread(target=_run, name=f"roleman-refresh-{self.identity.name}", daemon=True)
        thread.start()
        self.refresh_thread = thread
        return thread

    def join_refresh(self, timeout: float | None = None) -> None:
        if self.refresh_thread is not None:
            self.refresh_thread.join(timeout)

    def wait_for_entries(
        self,
        token: SessionToken,
        *,
        show_all: bool = False,
        cancel_event: threading.Event | None = None,
        on_wait: Callable[[int], None] | None = None,
    ) -> Catalog:
        """보이는 역할이 생길 때까지 refresh_seconds 간격으로 재조회

        Raises:
            UserCancelError: 대기 중 취소
            ValueError: refresh_seconds 가 설정되지 않은 경우
        """
        if not self.refresh_seconds:
            raise ValueError("refresh_seconds is required to wait for roles")

        cancel_event = cancel_event or threading.Event()
        while True:
            if on_wait is not None:
                on_wait(self.refresh_seconds)
            if cancel_event.wait(self.refresh_seconds):
                raise UserCancelError()
            catalog = apply_rules(self.refresh(token), self.identity, show_all=show_all)
            if catalog.entries:
                return catalog
