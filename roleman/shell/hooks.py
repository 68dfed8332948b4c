"""
roleman/shell/hooks.py - 셸 훅 스니펫 생성과 rc 파일 설치

지원 셸: bash, zsh, fish

훅 동작:
    - _ROLEMAN_HOOK_ENV 에 터미널별 핸드오프 파일 경로 설정
    - roleman 함수로 감싸 --env-file 을 자동 전달
    - 프롬프트마다 파일이 있으면 source 후 삭제
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

HOOK_VERSION = 1

_BASH_HOOK = r"""_roleman_tty="${TTY:-$(tty 2>/dev/null)}"
export _ROLEMAN_HOOK_ENV="${XDG_STATE_HOME:-$HOME/.local/state}/roleman/env-${_roleman_tty//\//_}"
export _ROLEMAN_HOOK_VERSION=1
export _ROLEMAN_HOOK_SHELL=bash
roleman() {
  command roleman --env-file "$_ROLEMAN_HOOK_ENV" "$@"
}
_roleman_prompt_command() {
  if [[ -f "$_ROLEMAN_HOOK_ENV" ]]; then
    source "$_ROLEMAN_HOOK_ENV"
    rm -f "$_ROLEMAN_HOOK_ENV"
  fi
}
if [[ -n "${PROMPT_COMMAND:-}" ]]; then
  PROMPT_COMMAND="_roleman_prompt_command;${PROMPT_COMMAND}"
else
  PROMPT_COMMAND="_roleman_prompt_command"
fi"""

_ZSH_HOOK = r"""export _ROLEMAN_HOOK_ENV="${XDG_STATE_HOME:-$HOME/.local/state}/roleman/env-${TTY//\//_}"
export _ROLEMAN_HOOK_VERSION=1
export _ROLEMAN_HOOK_SHELL=zsh
roleman() {
  command roleman --env-file "$_ROLEMAN_HOOK_ENV" "$@"
}
_roleman_precmd() {
  if [[ -f "$_ROLEMAN_HOOK_ENV" ]]; then
    source "$_ROLEMAN_HOOK_ENV"
    rm -f "$_ROLEMAN_HOOK_ENV"
  fi
}
autoload -Uz add-zsh-hook
add-zsh-hook precmd _roleman_precmd"""

_FISH_HOOK = r"""if set -q XDG_STATE_HOME
  set -gx _ROLEMAN_HOOK_ENV "$XDG_STATE_HOME/roleman/env-(string replace -a '/' '_' (tty))"
else
  set -gx _ROLEMAN_HOOK_ENV "$HOME/.local/state/roleman/env-(string replace -a '/' '_' (tty))"
end
set -gx _ROLEMAN_HOOK_VERSION 1
set -gx _ROLEMAN_HOOK_SHELL fish
function roleman
  command roleman --env-file "$_ROLEMAN_HOOK_ENV" $argv
end
function __roleman_prompt --on-event fish_prompt
  if test -f "$_ROLEMAN_HOOK_ENV"
    source "$_ROLEMAN_HOOK_ENV"
    rm -f "$_ROLEMAN_HOOK_ENV"
  end
end"""


@dataclass(frozen=True)
class Shell:
    """지원 셸 정의"""

    name: str
    snippet: str
    rc_relative: str

    @property
    def install_line(self) -> str:
        if self.name == "fish":
            return "roleman hook fish | source"
        return f'eval "$(roleman hook {self.name})"'

    @property
    def alias_line(self) -> str:
        if self.name == "fish":
            return "alias rl roleman"
        return "alias rl='roleman'"

    def rc_path(self, environ: Mapping[str, str] | None = None) -> Path:
        environ = os.environ if environ is None else environ
        home = Path(environ.get("HOME") or Path.home())
        if self.name == "fish":
            config_home = environ.get("XDG_CONFIG_HOME", "").strip()
            base = Path(config_home) if config_home else home / ".config"
            return base / "fish" / "config.fish"
        return home / self.rc_relative

    def reload_command(self, rc_path: Path) -> str:
        return f"source {rc_path}"


SHELLS: dict[str, Shell] = {
    "bash": Shell("bash", _BASH_HOOK, ".bashrc"),
    "zsh": Shell("zsh", _ZSH_HOOK, ".zshrc"),
    "fish": Shell("fish", _FISH_HOOK, ".config/fish/config.fish"),
}


def shell_for_name(name: str) -> Shell | None:
    return SHELLS.get(name)


def detect_shell(environ: Mapping[str, str] | None = None) -> Shell | None:
    """$SHELL 로 셸 감지"""
    environ = os.environ if environ is None else environ
    value = environ.get("SHELL", "")
    if not value:
        return None
    return shell_for_name(Path(value).name)


# =============================================================================
# rc 파일 조작
# =============================================================================


def has_active_hook(contents: str, install_line: str) -> bool:
    """주석이 아닌 줄에 훅 설치 흔적이 있는지"""
    for line in contents.splitlines():
        trimmed = line.lstrip()
        if not trimmed or trimmed.startswith("#"):
            continue
        if "_ROLEMAN_HOOK_VERSION" in trimmed or "_ROLEMAN_HOOK_ENV" in trimmed or install_line in trimmed:
            return True
    return False


def remove_hook_lines(contents: str) -> str:
    """roleman 이 추가한 줄 제거"""
    kept: list[str] = []
    for line in contents.splitlines():
        trimmed = line.strip()
        if trimmed in ("alias rl='roleman'", "alias rl roleman"):
            continue
        if trimmed.startswith('eval "$(roleman hook ') or trimmed.startswith("roleman hook "):
            continue
        if "_ROLEMAN_HOOK_ENV" in trimmed or "_ROLEMAN_HOOK_VERSION" in trimmed:
            continue
        kept.append(line)
    return "\n".join(kept)


class HookAlreadyInstalledError(Exception):
    """rc 파일에 훅이 이미 있음 (--force 필요)"""

    def __init__(self, rc_path: Path):
        super().__init__(f"hook already installed in {rc_path}")
        self.rc_path = rc_path


def install_hook(shell: Shell, *, force: bool = False, alias: bool = False, environ: Mapping[str, str] | None = None) -> Path:
    """rc 파일 끝에 훅 설치 줄 추가

    Args:
        shell: 대상 셸
        force: 이미 설치된 경우 기존 줄을 지우고 다시 추가
        alias: rl 별칭도 추가

    Returns:
        수정한 rc 파일 경로

    Raises:
        HookAlreadyInstalledError: 이미 설치되어 있고 force 가 아닌 경우
        OSError: 파일 쓰기 실패
    """
    path = shell.rc_path(environ)
    path.parent.mkdir(parents=True, exist_ok=True)
    contents = path.read_text(encoding="utf-8") if path.exists() else ""

    if has_active_hook(contents, shell.install_line):
        if not force:
            raise HookAlreadyInstalledError(path)
        contents = remove_hook_lines(contents)

    block = "\n" + shell.install_line
    if alias:
        block += "\n" + shell.alias_line
    block += "\n"

    if contents and not contents.endswith("\n"):
        contents += "\n"
    path.write_text(contents + block, encoding="utf-8")
    logger.info("훅 설치: %s", path)
    return path
