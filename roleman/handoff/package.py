"""
roleman/handoff/package.py - 셸 환경 변수 핸드오프

선택된 역할의 자격증명을 환경 변수 지시문 목록(HandoffPackage)으로 만들고,
터미널별 파일에 원자적으로 씁니다. 셸 훅이 프롬프트마다 이 파일을
source 한 뒤 삭제합니다.

파일 경로 결정 순서:
    1. --env-file
    2. $_ROLEMAN_HOOK_ENV (훅이 설정)
    3. 훅이 활성화되어 있으면 $XDG_STATE_HOME/roleman/env-<tty 의 / 를 _ 로>
    4. 없으면 stdout 으로 출력

파일 형식 (POSIX):
    export AWS_ACCESS_KEY_ID='ASIA...'
    unset AWS_PROFILE
파일 형식 (fish):
    set -gx AWS_ACCESS_KEY_ID 'ASIA...'
    set -e AWS_PROFILE
"""

from __future__ import annotations

import logging
import os
import shlex
import sys
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from roleman.exceptions import HandoffWriteError
from roleman.handoff.aws_config import ManagedAwsConfig
from roleman.handoff.credentials import RoleCredentials
from roleman.paths import state_dir

logger = logging.getLogger(__name__)

HOOK_ENV_VAR = "_ROLEMAN_HOOK_ENV"
HOOK_VERSION_VAR = "_ROLEMAN_HOOK_VERSION"
HOOK_SHELL_VAR = "_ROLEMAN_HOOK_SHELL"

DIALECT_POSIX = "posix"
DIALECT_FISH = "fish"

CREDENTIAL_VARIABLES = (
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "AWS_CREDENTIAL_EXPIRATION",
    "AWS_DEFAULT_REGION",
    "AWS_REGION",
)
MANAGED_VARIABLES = (*CREDENTIAL_VARIABLES, "AWS_PROFILE")


@dataclass(frozen=True)
class EnvDirective:
    """환경 변수 지시문 하나 (value 가 None 이면 제거)"""

    name: str
    value: str | None = None

    @property
    def is_removal(self) -> bool:
        return self.value is None


@dataclass
class HandoffPackage:
    """셸로 전달할 지시문 목록"""

    directives: list[EnvDirective] = field(default_factory=list)

    def __iter__(self):
        return iter(self.directives)

    def __len__(self) -> int:
        return len(self.directives)

    @property
    def is_removal_only(self) -> bool:
        return all(d.is_removal for d in self.directives)

    def as_dict(self) -> dict[str, str | None]:
        return {d.name: d.value for d in self.directives}

    def render(self, dialect: str = DIALECT_POSIX) -> str:
        """셸 문법으로 직렬화 (마지막 줄 개행 포함)"""
        if dialect == DIALECT_FISH:
            lines = [
                f"set -e {d.name}" if d.is_removal else f"set -gx {d.name} {_fish_quote(d.value or '')}"
                for d in self.directives
            ]
        else:
            lines = [f"export {d.name}={shlex.quote(d.value)}" for d in self.directives if d.value is not None]
            removals = [d.name for d in self.directives if d.is_removal]
            if removals:
                lines.append("unset " + " ".join(removals))
        return "\n".join(lines) + "\n" if lines else ""


def _fish_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


# =============================================================================
# 패키지 생성
# =============================================================================


def build_set_package(
    credentials: RoleCredentials,
    region: str,
    profile_name: str,
    environ: Mapping[str, str] | None = None,
    aws_config: ManagedAwsConfig | None = None,
) -> HandoffPackage:
    """자격증명 설정 패키지

    호출한 셸에 AWS_PROFILE 이 있으면 관리 config 에 profile 블록을 쓰고
    AWS_PROFILE / AWS_CONFIG_FILE 도 내보냅니다.

    Raises:
        HandoffWriteError: 관리 config 쓰기 실패
    """
    environ = os.environ if environ is None else environ
    directives = [
        EnvDirective("AWS_ACCESS_KEY_ID", credentials.access_key_id),
        EnvDirective("AWS_SECRET_ACCESS_KEY", credentials.secret_access_key),
        EnvDirective("AWS_SESSION_TOKEN", credentials.session_token),
        EnvDirective("AWS_CREDENTIAL_EXPIRATION", credentials.expiration),
        EnvDirective("AWS_DEFAULT_REGION", region),
        EnvDirective("AWS_REGION", region),
    ]

    if environ.get("AWS_PROFILE"):
        aws_config = aws_config or ManagedAwsConfig()
        try:
            config_path = aws_config.upsert_profile(profile_name, region)
        except OSError as e:
            raise HandoffWriteError(str(aws_config.path), cause=e) from e
        directives.append(EnvDirective("AWS_PROFILE", profile_name))
        directives.append(EnvDirective("AWS_CONFIG_FILE", str(config_path)))

    return HandoffPackage(directives)


def build_unset_package(
    environ: Mapping[str, str] | None = None,
    aws_config: ManagedAwsConfig | None = None,
) -> HandoffPackage:
    """관리 변수 제거 패키지 (AWS_CONFIG_FILE 은 관리 파일을 가리킬 때만)"""
    environ = os.environ if environ is None else environ
    directives = [EnvDirective(name) for name in MANAGED_VARIABLES]

    managed_path = (aws_config or ManagedAwsConfig()).path
    current = environ.get("AWS_CONFIG_FILE")
    if current and Path(current) == managed_path:
        directives.append(EnvDirective("AWS_CONFIG_FILE"))

    return HandoffPackage(directives)


# =============================================================================
# 경로 / 쓰기
# =============================================================================


def handoff_path(terminal_id: str, base_dir: Path | None = None) -> Path:
    """터미널 식별자로 핸드오프 파일 경로 결정 (훅 스니펫과 같은 규칙)"""
    base_dir = base_dir or state_dir()
    return base_dir / f"env-{terminal_id.replace('/', '_')}"


def terminal_id(environ: Mapping[str, str] | None = None) -> str | None:
    """제어 터미널 식별자 ($TTY 또는 표준 스트림의 tty 이름)"""
    environ = os.environ if environ is None else environ
    tty = environ.get("TTY", "").strip()
    if tty:
        return tty
    for stream in (sys.stdin, sys.stderr, sys.stdout):
        try:
            return os.ttyname(stream.fileno())
        except (OSError, AttributeError, ValueError):
            continue
    return None


def resolve_target(env_file: str | Path | None = None, environ: Mapping[str, str] | None = None) -> Path | None:
    """핸드오프 파일 경로 (None 이면 stdout 으로 출력)"""
    environ = os.environ if environ is None else environ
    if env_file:
        return Path(env_file)

    hook_env = environ.get(HOOK_ENV_VAR, "").strip()
    if hook_env:
        return Path(hook_env)

    if environ.get(HOOK_VERSION_VAR):
        tty = terminal_id(environ)
        if tty:
            return handoff_path(tty)

    return None


def resolve_dialect(environ: Mapping[str, str] | None = None) -> str:
    """훅이 알려준 셸 또는 $SHELL 로 문법 결정"""
    environ = os.environ if environ is None else environ
    shell = environ.get(HOOK_SHELL_VAR) or Path(environ.get("SHELL", "")).name
    return DIALECT_FISH if shell == "fish" else DIALECT_POSIX


def write_package(package: HandoffPackage, path: Path, dialect: str = DIALECT_POSIX) -> Path:
    """패키지를 파일에 원자적으로 씀 (이전 파일은 교체됨, 권한 0600)

    Raises:
        HandoffWriteError: 디렉토리 생성 또는 쓰기 실패
    """
    content = package.render(dialect)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=f".{path.name}_")
        try:
            os.fchmod(fd, 0o600)
            with open(fd, "w", encoding="utf-8") as f:
                f.write(content)
            Path(tmp_path).replace(path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise HandoffWriteError(str(path), cause=e) from e

    logger.debug("핸드오프 파일 작성: %s (%d개 지시문)", path, len(package))
    return path
