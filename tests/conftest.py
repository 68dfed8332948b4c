"""
tests/conftest.py - pytest 공통 픽스처

사용자 디렉토리 격리, 가짜 시계, SSO 클라이언트 모킹 헬퍼를 제공합니다.

Usage:
    def test_something(store, clients, token):
        # store: 가짜 시계를 쓰는 CacheStore
        # clients: sso / oidc 가 MagicMock 인 SSOClients 대용
        # token: 1시간 유효한 SessionToken
        pass
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from roleman.auth.types import SessionToken
from roleman.cache.store import CacheStore
from roleman.catalog.types import Catalog, CatalogEntry
from roleman.config import AccountRule, Identity

START_URL = "https://acme.awsapps.com/start"
BASE_TIME = 1_700_000_000.0


# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """HOME 과 XDG 디렉토리를 tmp_path 아래로 격리"""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(home / ".cache"))
    monkeypatch.setenv("XDG_STATE_HOME", str(home / ".local" / "state"))

    for name in ("AWS_PROFILE", "AWS_CONFIG_FILE", "TTY", "SHELL"):
        monkeypatch.delenv(name, raising=False)
    for name in (
        "_ROLEMAN_HOOK_ENV",
        "_ROLEMAN_HOOK_VERSION",
        "_ROLEMAN_HOOK_SHELL",
        "ROLEMAN_LOG",
        "ROLEMAN_LOG_FILE",
        "ROLEMAN_LANG",
        "ROLEMAN_SSO_ENDPOINT",
        "ROLEMAN_OIDC_ENDPOINT",
    ):
        monkeypatch.delenv(name, raising=False)

    yield home


@pytest.fixture(autouse=True)
def reset_lang():
    """CLI 테스트가 바꾼 언어 설정 복원"""
    from roleman.cli.i18n import set_lang

    set_lang("ko")
    yield
    set_lang("ko")


# =============================================================================
# 헬퍼
# =============================================================================


class FakeClock:
    """수동으로 진행하는 시계 (epoch 초)"""

    def __init__(self, start: float = BASE_TIME):
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


def client_error(code: str, operation: str = "Operation") -> ClientError:
    """지정한 에러 코드의 ClientError 생성"""
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def make_token(clock: FakeClock, seconds: int = 3600, identity: str = "work") -> SessionToken:
    return SessionToken(
        access_token="access-token",
        expires_at=datetime.fromtimestamp(clock(), timezone.utc) + timedelta(seconds=seconds),
        identity=identity,
        region="us-east-1",
        start_url=START_URL,
        client_id="client-id",
        client_secret="client-secret",
    )


def make_catalog(
    *pairs, identity: str = "work", fetched_at: float = BASE_TIME, start_url: str = START_URL
) -> Catalog:
    """(account_id, account_name, role_name) 튜플로 Catalog 생성"""
    entries = tuple(CatalogEntry(account_id=a, account_name=n, role_name=r) for a, n, r in pairs)
    return Catalog(identity=identity, fetched_at=fetched_at, entries=entries, start_url=start_url)


# =============================================================================
# 픽스처
# =============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path, clock):
    """가짜 시계를 쓰는 work identity 캐시"""
    return CacheStore("work", root=tmp_path / "cache", clock=clock)


@pytest.fixture
def clients():
    """sso / oidc 클라이언트 모킹"""
    mock_clients = MagicMock()
    mock_clients.region = "us-east-1"
    return mock_clients


@pytest.fixture
def token(clock):
    return make_token(clock)


@pytest.fixture
def identity():
    return Identity(name="work", start_url=START_URL, sso_region="us-east-1")


@pytest.fixture
def rules_identity():
    """무시/별칭/우선순위 규칙이 있는 identity"""
    return Identity(
        name="work",
        start_url=START_URL,
        accounts=(
            AccountRule(id="111111111111", alias="Dev", precedence=5),
            AccountRule(id="222222222222", ignored=True),
        ),
        ignore_roles=("AWSReadOnlyAccess",),
    )
