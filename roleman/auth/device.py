"""
roleman/auth/device.py - OAuth 디바이스 인증 상태 머신

상태 전이:
    NO_TOKEN → AWAITING_USER_ACTION → POLLING → AUTHENTICATED
    (캐시 토큰 만료 시) EXPIRED → NO_TOKEN

- 캐시에 유효한 토큰이 있으면 바로 AUTHENTICATED
- 캐시 토큰이 만료되었으면 EXPIRED 를 거쳐 NO_TOKEN 에서 다시 시작
- refresh token 으로 조용히 갱신하지 않음
- 폴링 사이에 cancel_event 를 확인하여 Ctrl-C 등으로 중단 가능

폴링 응답 처리:
    AuthorizationPendingException  → 계속 폴링
    SlowDownException              → 간격 5초 증가
    ExpiredTokenException          → NO_TOKEN 으로 되돌리고 DeviceCodeExpiredError
    AccessDeniedException          → AuthorizationDeniedError
    연결/타임아웃 오류              → 디바이스 코드 만료 시각까지 재시도
    그 외                          → AuthError
"""

from __future__ import annotations

import logging
import threading
import webbrowser
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from roleman.auth.client import SSOClients
from roleman.auth.sso_cache import SSOCacheReader
from roleman.auth.types import AuthState, ClientRegistration, DeviceAuthorization, SessionToken
from roleman.cache.store import CacheStore
from roleman.config import Identity, normalize_start_url
from roleman.exceptions import (
    AuthError,
    AuthorizationDeniedError,
    DeviceCodeExpiredError,
    NetworkFailureError,
    UserCancelError,
    get_error_code,
    is_network_error,
)

logger = logging.getLogger(__name__)

CLIENT_NAME = "roleman"
CLIENT_TYPE = "public"
DEVICE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
SLOW_DOWN_STEP = 5
TOKEN_KEY = "token"

Presenter = Callable[[DeviceAuthorization], None]


def _client_key(region: str) -> str:
    return f"client-{region}"


def _default_presenter(device: DeviceAuthorization) -> None:
    from rich.console import Console

    console = Console(stderr=True)
    console.print()
    console.print("[bold cyan]AWS SSO 로그인[/bold cyan]")
    console.print(f"  URL : {device.verification_uri}")
    console.print(f"  Code: [bold]{device.user_code}[/bold]")
    console.print()


class DeviceAuthFlow:
    """디바이스 인증 흐름

    Args:
        identity: 인증할 Identity
        store: identity 네임스페이스 캐시
        clients: SSO 클라이언트 (None 이면 identity 리전으로 생성)
        external_cache: AWS CLI SSO 캐시 리더 (None 이면 사용 안 함)
        presenter: 검증 URL/코드 표시 콜백
        open_browser: 검증 URL 을 브라우저로 열지 여부
        cancel_event: 설정되면 폴링 대기를 끊고 중단
        sleep_fn: 폴링 대기 함수 (테스트용)
    """

    def __init__(
        self,
        identity: Identity,
        store: CacheStore,
        clients: SSOClients | None = None,
        *,
        external_cache: SSOCacheReader | None = None,
        presenter: Presenter | None = None,
        open_browser: bool = True,
        cancel_event: threading.Event | None = None,
        sleep_fn: Callable[[float], None] | None = None,
    ):
        self.identity = identity
        self.store = store
        self.clients = clients or SSOClients(identity.sso_region)
        self.external_cache = external_cache
        self.presenter = presenter or _default_presenter
        self.open_browser = open_browser
        self.cancel_event = cancel_event or threading.Event()
        self._sleep_fn = sleep_fn

        self.state = AuthState.NO_TOKEN
        self.transitions: list[AuthState] = []
        self.poll_count = 0

    # =========================================================================
    # 공통
    # =========================================================================

    def now(self) -> datetime:
        return datetime.fromtimestamp(self.store.now(), timezone.utc)

    def _transition(self, state: AuthState) -> None:
        logger.debug("인증 상태: %s → %s", self.state, state)
        self.state = state
        self.transitions.append(state)

    def _wait(self, seconds: float) -> None:
        """폴링 간격 대기 (cancel_event 가 설정되면 즉시 반환)"""
        if self._sleep_fn is not None:
            self._sleep_fn(seconds)
        else:
            self.cancel_event.wait(seconds)

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise UserCancelError()

    # =========================================================================
    # 진입점
    # =========================================================================

    def authenticate(self, force: bool = False) -> SessionToken:
        """유효한 SessionToken 반환

        Args:
            force: True 면 토큰 캐시를 무시하고 디바이스 인증 수행 (--no-cache)

        Raises:
            AuthorizationDeniedError: 사용자가 거부
            DeviceCodeExpiredError: 승인 전 디바이스 코드 만료
            NetworkFailureError: 재시도 한도 내 네트워크 복구 실패
            UserCancelError: 폴링 중 취소
            AuthError: 그 외 인증 실패
        """
        if force:
            logger.info("캐시 무시: 디바이스 인증 강제 [%s]", self.identity.name)
        else:
            token = self._load_cached_token()
            if token is not None:
                self._transition(AuthState.AUTHENTICATED)
                return token

        if self.state is not AuthState.NO_TOKEN or not self.transitions:
            self._transition(AuthState.NO_TOKEN)

        device, registration = self._start_device_authorization()

        self._transition(AuthState.AWAITING_USER_ACTION)
        self._present(device)

        self._transition(AuthState.POLLING)
        token = self._poll(registration, device)

        ttl = token.remaining_seconds(self.now())
        self.store.put(TOKEN_KEY, token.to_dict(), ttl=ttl)
        self._transition(AuthState.AUTHENTICATED)
        logger.info("인증 완료 [%s], 만료: %s", self.identity.name, token.expires_at.isoformat())
        return token

    # =========================================================================
    # 캐시
    # =========================================================================

    def _matches_identity(self, token: SessionToken) -> bool:
        return normalize_start_url(token.start_url) == normalize_start_url(self.identity.start_url)

    def _load_cached_token(self) -> SessionToken | None:
        now = self.now()
        entry = self.store.get_entry(TOKEN_KEY, include_expired=True)

        if entry is not None:
            try:
                token = SessionToken.from_dict(entry.value)
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("토큰 캐시 형식 오류 [%s]: %s", self.identity.name, e)
                token = None

            if token is not None and self._matches_identity(token):
                if entry.is_expired(now.timestamp()) or token.is_expired(now):
                    self._transition(AuthState.EXPIRED)
                    self.store.invalidate(TOKEN_KEY)
                    self._transition(AuthState.NO_TOKEN)
                else:
                    logger.debug("토큰 캐시 사용 [%s]", self.identity.name)
                    return token

        if self.external_cache is not None:
            token = self.external_cache.find_token(
                self.identity.name,
                self.identity.start_url,
                self.identity.sso_region,
                now=now,
            )
            if token is not None:
                return token

        return None

    def _load_registration(self) -> ClientRegistration | None:
        raw = self.store.get(_client_key(self.identity.sso_region))
        if raw is None:
            return None
        try:
            registration = ClientRegistration.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.debug("클라이언트 등록 캐시 형식 오류: %s", e)
            return None
        return None if registration.is_expired(self.now()) else registration

    def _register_client(self) -> ClientRegistration:
        response = self._call("register_client", clientName=CLIENT_NAME, clientType=CLIENT_TYPE)

        expires_unix = response.get("clientSecretExpiresAt")
        if expires_unix:
            expires_at = datetime.fromtimestamp(int(expires_unix), timezone.utc)
        else:
            expires_at = self.now() + timedelta(days=90)

        registration = ClientRegistration(
            client_id=response["clientId"],
            client_secret=response["clientSecret"],
            expires_at=expires_at,
        )
        ttl = (expires_at - self.now()).total_seconds()
        self.store.put(_client_key(self.identity.sso_region), registration.to_dict(), ttl=ttl)
        logger.debug("OIDC 클라이언트 등록 완료 [%s]", self.identity.sso_region)
        return registration

    # =========================================================================
    # 디바이스 인증
    # =========================================================================

    def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response: dict[str, Any] = getattr(self.clients.oidc, operation)(**kwargs)
            return response
        except ClientError as e:
            if get_error_code(e) == "AccessDeniedException":
                raise AuthorizationDeniedError(self.identity.name, cause=e) from e
            raise AuthError(f"{operation} 실패", cause=e) from e
        except BotoCoreError as e:
            if is_network_error(e):
                raise NetworkFailureError(operation, cause=e) from e
            raise AuthError(f"{operation} 실패", cause=e) from e

    def _start_device_authorization(self) -> tuple[DeviceAuthorization, ClientRegistration]:
        registration = self._load_registration()
        cached = registration is not None
        if registration is None:
            registration = self._register_client()

        try:
            response = self.clients.oidc.start_device_authorization(
                clientId=registration.client_id,
                clientSecret=registration.client_secret,
                startUrl=self.identity.start_url,
            )
        except ClientError as e:
            if not (cached and get_error_code(e) == "InvalidClientException"):
                raise AuthError("start_device_authorization 실패", cause=e) from e
            logger.info("캐시된 클라이언트 등록이 거부되어 다시 등록합니다")
            self.store.invalidate(_client_key(self.identity.sso_region))
            registration = self._register_client()
            response = self._call(
                "start_device_authorization",
                clientId=registration.client_id,
                clientSecret=registration.client_secret,
                startUrl=self.identity.start_url,
            )
        except BotoCoreError as e:
            if is_network_error(e):
                raise NetworkFailureError("start_device_authorization", cause=e) from e
            raise AuthError("start_device_authorization 실패", cause=e) from e

        return DeviceAuthorization.from_response(response), registration

    def _present(self, device: DeviceAuthorization) -> None:
        self.presenter(device)
        if not self.open_browser or not device.verification_uri:
            return
        try:
            webbrowser.open(device.verification_uri)
        except webbrowser.Error as e:
            logger.debug("브라우저 열기 실패: %s", e)

    def _poll(self, registration: ClientRegistration, device: DeviceAuthorization) -> SessionToken:
        interval = device.interval
        deadline = self.now() + timedelta(seconds=device.expires_in)
        last_network_error: Exception | None = None

        while True:
            self._check_cancelled()
            if self.now() >= deadline:
                self._transition(AuthState.NO_TOKEN)
                if last_network_error is not None:
                    raise NetworkFailureError("create_token", cause=last_network_error)
                raise DeviceCodeExpiredError(self.identity.name)

            self.poll_count += 1
            try:
                response = self.clients.oidc.create_token(
                    clientId=registration.client_id,
                    clientSecret=registration.client_secret,
                    grantType=DEVICE_GRANT_TYPE,
                    deviceCode=device.device_code,
                )
            except ClientError as e:
                code = get_error_code(e)
                if code == "AuthorizationPendingException":
                    last_network_error = None
                elif code == "SlowDownException":
                    interval += SLOW_DOWN_STEP
                    logger.debug("SlowDown 수신, 폴링 간격 %d초", interval)
                elif code == "ExpiredTokenException":
                    self._transition(AuthState.NO_TOKEN)
                    raise DeviceCodeExpiredError(self.identity.name, cause=e) from e
                elif code == "AccessDeniedException":
                    raise AuthorizationDeniedError(self.identity.name, cause=e) from e
                else:
                    raise AuthError("create_token 실패", cause=e) from e
            except BotoCoreError as e:
                if not is_network_error(e):
                    raise AuthError("create_token 실패", cause=e) from e
                logger.warning("토큰 폴링 중 네트워크 오류, 재시도합니다: %s", e)
                last_network_error = e
            else:
                return self._token_from_response(response, registration)

            self._wait(interval)

    def _token_from_response(self, response: dict[str, Any], registration: ClientRegistration) -> SessionToken:
        expires_in = int(response.get("expiresIn", 3600))
        return SessionToken(
            access_token=response["accessToken"],
            expires_at=self.now() + timedelta(seconds=expires_in),
            identity=self.identity.name,
            region=self.identity.sso_region,
            start_url=self.identity.start_url,
            client_id=registration.client_id,
            client_secret=registration.client_secret,
        )
