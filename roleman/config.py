"""
roleman/config.py - 설정 파일 로드 및 identity 해석

$XDG_CONFIG_HOME/roleman/config.yaml 을 읽어 Identity 목록과
전역 옵션(default_identity, refresh_seconds, sort, hook_prompt)을 구성합니다.

설정 예시:
    default_identity: work
    refresh_seconds: 300
    sort: dynamic
    hook_prompt: always
    identities:
      - name: work
        start_url: https://acme.awsapps.com/start
        sso_region: us-east-1
        ignore_roles: [AWSReadOnlyAccess]
        accounts:
          - {id: "111111111111", alias: Dev, precedence: 5}
          - {id: "222222222222", ignored: true}
          - {name: "sandbox-*", ignore_roles: [Billing]}

계정 규칙은 설정에 적힌 순서가 기준입니다.
같은 계정에 여러 규칙이 걸리면 구체적인 규칙(id > 정확한 이름 > glob)이
나중에 적용되고, 같은 수준에서는 뒤에 정의된 규칙이 이깁니다.
"""

from __future__ import annotations

import fnmatch
import logging
import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from roleman.exceptions import ConfigInvalidError
from roleman.paths import config_file

logger = logging.getLogger(__name__)

SORT_MODES = ("dynamic", "alphabetical")
HOOK_PROMPT_MODES = ("always", "outdated", "never")
DEFAULT_SSO_REGION = "us-east-1"

_GLOB_CHARS = set("*?[")


def normalize_start_url(url: str) -> str:
    """비교용 포털 URL (끝의 '/' 와 '#' 제거)"""
    return url.strip().rstrip("/#")


# =============================================================================
# 데이터 구조
# =============================================================================


@dataclass(frozen=True)
class AccountRule:
    """계정 단위 규칙

    Attributes:
        id: 정확한 계정 ID (name 과 둘 중 하나는 필수)
        name: 계정 이름 또는 glob 패턴
        ignored: 계정 전체 무시 여부 (None 이면 지정 안 함)
        ignore_roles: 이 계정에서 숨길 역할 이름
        alias: 표시 이름 재정의
        precedence: 정렬 우선순위 (클수록 위, None 이면 가장 낮음)
    """

    id: str | None = None
    name: str | None = None
    ignored: bool | None = None
    ignore_roles: tuple[str, ...] = ()
    alias: str | None = None
    precedence: int | None = None

    @property
    def specificity(self) -> int:
        """규칙 구체성 (2: id, 1: 정확한 이름, 0: glob)"""
        if self.id is not None:
            return 2
        if self.name is not None and not (_GLOB_CHARS & set(self.name)):
            return 1
        return 0

    def matches(self, account_id: str, account_name: str) -> bool:
        if self.id is not None:
            return self.id == account_id
        if self.name is None:
            return False
        if self.specificity == 1:
            return self.name == account_name
        return fnmatch.fnmatchcase(account_name, self.name)


@dataclass(frozen=True)
class Identity:
    """SSO 엔드포인트 설정과 필터 규칙"""

    name: str
    start_url: str
    sso_region: str = DEFAULT_SSO_REGION
    accounts: tuple[AccountRule, ...] = ()
    ignore_roles: tuple[str, ...] = ()


@dataclass(frozen=True)
class Config:
    """roleman 전체 설정"""

    identities: tuple[Identity, ...] = ()
    default_identity: str | None = None
    refresh_seconds: int | None = None
    sort: str = "dynamic"
    hook_prompt: str = "always"
    path: Path | None = field(default=None, compare=False)

    def get_identity(self, name: str) -> Identity | None:
        for identity in self.identities:
            if identity.name == name:
                return identity
        return None


# =============================================================================
# 파싱
# =============================================================================


def _str_list(value: Any, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigInvalidError(f"{where}: 문자열 목록이어야 합니다")
    return tuple(value)


def _parse_rule(raw: Any, where: str) -> AccountRule:
    if not isinstance(raw, dict):
        raise ConfigInvalidError(f"{where}: 매핑이어야 합니다")

    account_id = raw.get("id")
    name = raw.get("name")
    if account_id is None and name is None:
        raise ConfigInvalidError(f"{where}: id 또는 name 이 필요합니다")

    precedence = raw.get("precedence")
    if precedence is not None and (isinstance(precedence, bool) or not isinstance(precedence, int)):
        raise ConfigInvalidError(f"{where}.precedence: 정수여야 합니다")

    ignored = raw.get("ignored")
    if ignored is not None and not isinstance(ignored, bool):
        raise ConfigInvalidError(f"{where}.ignored: true/false 여야 합니다")

    alias = raw.get("alias")
    return AccountRule(
        # YAML 에서 따옴표 없는 계정 ID 는 int 로 읽힘
        id=str(account_id).zfill(12) if isinstance(account_id, int) else account_id,
        name=str(name) if name is not None else None,
        ignored=ignored,
        ignore_roles=_str_list(raw.get("ignore_roles"), f"{where}.ignore_roles"),
        alias=str(alias) if alias is not None else None,
        precedence=precedence,
    )


def _parse_identity(raw: Any, index: int) -> Identity:
    where = f"identities[{index}]"
    if not isinstance(raw, dict):
        raise ConfigInvalidError(f"{where}: 매핑이어야 합니다")

    name = raw.get("name")
    start_url = raw.get("start_url")
    if not name or not isinstance(name, str):
        raise ConfigInvalidError(f"{where}.name: 필수 항목입니다")
    if not start_url or not isinstance(start_url, str):
        raise ConfigInvalidError(f"{where}.start_url: 필수 항목입니다")

    accounts = raw.get("accounts") or []
    if not isinstance(accounts, list):
        raise ConfigInvalidError(f"{where}.accounts: 목록이어야 합니다")

    return Identity(
        name=name,
        start_url=normalize_start_url(start_url),
        sso_region=str(raw.get("sso_region") or DEFAULT_SSO_REGION),
        accounts=tuple(_parse_rule(r, f"{where}.accounts[{i}]") for i, r in enumerate(accounts)),
        ignore_roles=_str_list(raw.get("ignore_roles"), f"{where}.ignore_roles"),
    )


def parse_config(data: Any, path: Path | None = None) -> Config:
    """YAML 에서 읽은 딕셔너리를 Config 로 변환

    Raises:
        ConfigInvalidError: 형식 또는 값이 잘못된 경우
    """
    if data is None:
        return Config(path=path)
    if not isinstance(data, dict):
        raise ConfigInvalidError("최상위는 매핑이어야 합니다", source=str(path) if path else None)

    identities_raw = data.get("identities") or []
    if not isinstance(identities_raw, list):
        raise ConfigInvalidError("identities: 목록이어야 합니다")
    identities = tuple(_parse_identity(raw, i) for i, raw in enumerate(identities_raw))

    names = [i.name for i in identities]
    duplicates = {n for n in names if names.count(n) > 1}
    if duplicates:
        raise ConfigInvalidError(f"identity 이름 중복: {', '.join(sorted(duplicates))}")

    sort = data.get("sort", "dynamic")
    if sort not in SORT_MODES:
        raise ConfigInvalidError(f"sort: {'/'.join(SORT_MODES)} 중 하나여야 합니다")

    hook_prompt = data.get("hook_prompt", "always")
    if hook_prompt not in HOOK_PROMPT_MODES:
        raise ConfigInvalidError(f"hook_prompt: {'/'.join(HOOK_PROMPT_MODES)} 중 하나여야 합니다")

    refresh = data.get("refresh_seconds")
    if refresh is not None and (isinstance(refresh, bool) or not isinstance(refresh, int) or refresh < 0):
        raise ConfigInvalidError("refresh_seconds: 0 이상의 정수여야 합니다")

    default_identity = data.get("default_identity")
    if default_identity is not None and default_identity not in names:
        raise ConfigInvalidError(f"default_identity '{default_identity}' 가 identities 에 없습니다")

    return Config(
        identities=identities,
        default_identity=default_identity,
        refresh_seconds=refresh or None,
        sort=sort,
        hook_prompt=hook_prompt,
        path=path,
    )


def load_config(path: Path | None = None) -> Config:
    """설정 파일 로드

    파일이 없으면 빈 설정을 반환합니다.

    Args:
        path: 설정 파일 경로 (None 이면 기본 경로)

    Raises:
        ConfigInvalidError: YAML 파싱 실패 또는 값 검증 실패
    """
    path = Path(path) if path else config_file()
    if not path.exists():
        logger.debug("설정 파일 없음: %s", path)
        return Config(path=path)

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigInvalidError("설정 파일을 읽을 수 없습니다", source=str(path), cause=e) from e

    return parse_config(data, path)


def update_config_value(path: Path, key: str, value: Any) -> None:
    """설정 파일의 최상위 키 하나를 갱신 (원자적 쓰기)"""
    data: dict[str, Any] = {}
    if path.exists():
        with path.open(encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
        if isinstance(loaded, dict):
            data = loaded
    data[key] = value

    path.parent.mkdir(parents=True, exist_ok=True)
    content = yaml.safe_dump(data, allow_unicode=True, sort_keys=False)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=".config_")
    try:
        with open(fd, "w", encoding="utf-8") as f:
            f.write(content)
        Path(tmp_path).replace(path)
    except BaseException:
        Path(tmp_path).unlink(missing_ok=True)
        raise


# =============================================================================
# Identity 해석
# =============================================================================


def resolve_identity(
    config: Config,
    name: str | None = None,
    start_url: str | None = None,
    sso_region: str | None = None,
) -> Identity:
    """이번 실행에 사용할 Identity 결정

    우선순위: 명시된 name > default_identity > 유일한 identity.
    start_url/sso_region 을 넘기면 설정값을 덮어쓰며, 설정에 없는
    identity 도 즉석에서 만들 수 있습니다.

    Raises:
        ConfigInvalidError: identity 를 결정할 수 없는 경우
    """
    identity: Identity | None = None
    target = name or config.default_identity

    if target:
        identity = config.get_identity(target)
        if identity is None and not start_url:
            known = ", ".join(i.name for i in config.identities) or "-"
            raise ConfigInvalidError(f"identity '{target}' 를 찾을 수 없습니다 (설정된 identity: {known})")
    elif len(config.identities) == 1:
        identity = config.identities[0]
    elif not start_url:
        if not config.identities:
            raise ConfigInvalidError("설정된 identity 가 없습니다. --sso-start-url 을 지정하거나 설정 파일을 작성하세요")
        raise ConfigInvalidError("identity 가 여러 개입니다. --account 로 선택하거나 default_identity 를 지정하세요")

    if identity is None:
        identity = Identity(name=target or "default", start_url=normalize_start_url(str(start_url)))
    elif start_url:
        identity = replace(identity, start_url=normalize_start_url(start_url))

    if sso_region:
        identity = replace(identity, sso_region=sso_region)

    return identity
