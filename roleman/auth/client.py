"""
roleman/auth/client.py - SSO / SSO-OIDC boto3 클라이언트 생성

SSO API 는 SigV4 서명이 필요 없으므로 UNSIGNED 로 호출합니다.
ROLEMAN_SSO_ENDPOINT / ROLEMAN_OIDC_ENDPOINT 환경 변수로 엔드포인트를
바꿀 수 있습니다 (mock 서버 테스트용).
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import boto3
from botocore import UNSIGNED
from botocore.config import Config

if TYPE_CHECKING:
    # boto3-stubs 타입 사용 (개발 의존성으로 설치됨)
    from mypy_boto3_sso import SSOClient
    from mypy_boto3_sso_oidc import SSOOIDCClient

logger = logging.getLogger(__name__)

SSO_ENDPOINT_ENV = "ROLEMAN_SSO_ENDPOINT"
OIDC_ENDPOINT_ENV = "ROLEMAN_OIDC_ENDPOINT"

# Throttling 은 botocore standard retry 에 맡김
_CLIENT_CONFIG = Config(
    signature_version=UNSIGNED,
    retries={"max_attempts": 5, "mode": "standard"},
    connect_timeout=10,
    read_timeout=30,
)


def _endpoint_for(service: str) -> str | None:
    env_var = OIDC_ENDPOINT_ENV if service == "sso-oidc" else SSO_ENDPOINT_ENV
    value = os.environ.get(env_var, "").strip()
    return value or None


def create_client(service: str, region: str) -> Any:
    """서비스 클라이언트 생성

    Args:
        service: "sso" 또는 "sso-oidc"
        region: SSO 리전
    """
    session = boto3.Session(region_name=region)
    endpoint_url = _endpoint_for(service)
    if endpoint_url:
        logger.debug("%s 엔드포인트 재정의: %s", service, endpoint_url)
    return session.client(service, region_name=region, endpoint_url=endpoint_url, config=_CLIENT_CONFIG)


class SSOClients:
    """identity 리전에 묶인 클라이언트 쌍 (지연 생성)"""

    def __init__(self, region: str):
        self.region = region
        self._oidc: SSOOIDCClient | None = None
        self._sso: SSOClient | None = None

    @property
    def oidc(self) -> SSOOIDCClient:
        if self._oidc is None:
            self._oidc = create_client("sso-oidc", self.region)
        return self._oidc

    @property
    def sso(self) -> SSOClient:
        if self._sso is None:
            self._sso = create_client("sso", self.region)
        return self._sso
