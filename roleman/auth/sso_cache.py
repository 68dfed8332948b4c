"""
roleman/auth/sso_cache.py - AWS CLI SSO 토큰 캐시 읽기 (읽기 전용)

~/.aws/sso/cache/*.json 에서 같은 start URL 로 발급된 유효한 토큰을 찾아
디바이스 인증을 다시 하지 않도록 합니다. 이 디렉토리에는 절대 쓰지 않습니다.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from roleman.auth.types import SessionToken, parse_expiry
from roleman.config import normalize_start_url
from roleman.paths import external_sso_cache_dir

logger = logging.getLogger(__name__)


class SSOCacheReader:
    """AWS CLI 호환 SSO 토큰 캐시 리더"""

    def __init__(self, cache_dir: Path | None = None):
        self.cache_dir = Path(cache_dir) if cache_dir else external_sso_cache_dir()

    def find_token(
        self,
        identity: str,
        start_url: str,
        region: str,
        now: datetime | None = None,
    ) -> SessionToken | None:
        """start URL 이 일치하고 만료되지 않은 첫 번째 토큰 반환

        Args:
            identity: 반환할 토큰에 붙일 identity 이름
            start_url: SSO 시작 URL
            region: 캐시에 리전이 없을 때 사용할 SSO 리전
            now: 현재 시각 (테스트용)
        """
        if not self.cache_dir.is_dir():
            return None

        now = now or datetime.now(timezone.utc)
        wanted = normalize_start_url(start_url)

        for path in sorted(self.cache_dir.glob("*.json")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.debug("외부 SSO 캐시 읽기 실패 (%s): %s", path.name, e)
                continue

            if not isinstance(data, dict):
                continue
            if normalize_start_url(str(data.get("startUrl", ""))) != wanted:
                continue

            access_token = data.get("accessToken")
            expires_raw = data.get("expiresAt")
            if not access_token or not expires_raw:
                continue

            try:
                expires_at = parse_expiry(str(expires_raw))
            except ValueError:
                logger.debug("외부 SSO 캐시 만료 시각 형식 오류: %s", path.name)
                continue

            if now >= expires_at:
                continue

            logger.debug("외부 SSO 캐시 토큰 사용: %s", path.name)
            return SessionToken(
                access_token=access_token,
                expires_at=expires_at,
                identity=identity,
                region=str(data.get("region") or region),
                start_url=start_url,
                client_id=str(data.get("clientId", "")),
                client_secret=str(data.get("clientSecret", "")),
            )

        return None
