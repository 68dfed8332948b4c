"""
roleman/cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 CLI 애플리케이션 진입점입니다.

명령어 구조:
    roleman [OPTIONS]                 # 역할 선택 후 자격증명 export (set 과 동일)
    roleman set|s [IDENTITY]          # 역할 선택 후 자격증명 export
    roleman open|o [IDENTITY]         # 역할 선택 후 AWS 액세스 포털 열기
    roleman unset|u                   # roleman 이 설정한 AWS 변수 제거
    roleman history [-n N]            # 최근 선택 이력
    roleman history clear             # 이력 삭제
    roleman hook [SHELL]              # 셸 훅 스니펫 출력
    roleman install-hook [--force] [--alias]

    예시:
    eval "$(roleman hook zsh)"        # .zshrc 에 추가
    roleman -q prod                   # 'prod' 에 매칭되는 역할이 하나면 바로 선택
    roleman open work --show-all      # 숨김 규칙 무시

Usage:
    $ roleman
    $ python -m roleman
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
from click import Command, Context

from roleman import __version__
from roleman.cli.i18n import t
from roleman.config import SORT_MODES
from roleman.exceptions import RolemanError, UserCancelError, format_error_for_user

logger = logging.getLogger(__name__)

# 짧은 별칭 → 명령어
COMMAND_ALIASES = {"s": "set", "o": "open", "u": "unset"}


class AliasedGroup(click.Group):
    """짧은 별칭(s, o, u)을 지원하는 Click 그룹"""

    def get_command(self, ctx: Context, cmd_name: str) -> Command | None:
        return super().get_command(ctx, COMMAND_ALIASES.get(cmd_name, cmd_name))

    def resolve_command(self, ctx: Context, args: list[str]) -> tuple[str | None, Command | None, list[str]]:
        _, cmd, rest = super().resolve_command(ctx, args)
        return (cmd.name if cmd else None), cmd, rest


# =============================================================================
# 공통 옵션
# =============================================================================

_PATH = click.Path(path_type=Path, dir_okay=False)

COMMON_OPTIONS = [
    click.option("--sso-start-url", "start_url", default=None, help="SSO 시작 URL (설정 파일 값 대신 사용)"),
    click.option("--sso-region", "sso_region", default=None, help="SSO 리전"),
    click.option("-a", "--account", "identity", default=None, help="사용할 identity 이름"),
    click.option("--no-cache", "no_cache", is_flag=True, default=False, help="토큰/역할/자격증명 캐시 무시"),
    click.option("--show-all", "show_all", is_flag=True, default=False, help="무시 규칙을 적용하지 않고 모두 표시"),
    click.option("--sort", "sort", type=click.Choice(SORT_MODES), default=None, help="정렬 방식"),
    click.option("-q", "--query", "query", default=None, help="초기 검색어 (후보가 하나면 바로 선택)"),
    click.option(
        "--refresh-seconds", "refresh_seconds", type=click.IntRange(min=1), default=None, help="역할 목록 갱신 간격 (초)"
    ),
    click.option("--env-file", "env_file", type=_PATH, default=None, help="핸드오프 파일 경로 (셸 훅이 지정)"),
    click.option("--print", "print_env", is_flag=True, default=False, help="파일 대신 stdout 으로 export 출력"),
    click.option("--config", "config_path", type=_PATH, default=None, help="설정 파일 경로"),
]


def common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    for option in reversed(COMMON_OPTIONS):
        func = option(func)
    return func


def _merge_options(ctx: Context, local: dict[str, Any]) -> dict[str, Any]:
    """그룹 옵션 위에 하위 명령 옵션을 덮어씀"""
    merged = dict((ctx.obj or {}).get("common", {}))
    for key, value in local.items():
        if value is None or value is False:
            merged.setdefault(key, value)
            continue
        merged[key] = value
    return merged


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """RolemanError 를 사용자 메시지와 종료 코드로 변환"""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        from roleman.cli.ui.console import print_error, print_warning

        try:
            return func(*args, **kwargs)
        except (UserCancelError, KeyboardInterrupt):
            print_warning(t("common.cancelled"))
            raise SystemExit(UserCancelError.exit_code) from None
        except RolemanError as e:
            logger.debug("실행 실패", exc_info=True)
            print_error(format_error_for_user(e))
            raise SystemExit(e.exit_code) from None

    return wrapper


def _run(ctx: Context, action: str, local: dict[str, Any]) -> None:
    from roleman.cli.runner import RunOptions, run_select

    options = _merge_options(ctx, local)
    run_select(RunOptions(**options), action=action)


# =============================================================================
# 메인 그룹
# =============================================================================


@click.group(cls=AliasedGroup, invoke_without_command=True)
@click.version_option(__version__, prog_name="roleman")
@click.option(
    "--lang",
    type=click.Choice(["ko", "en"]),
    default="ko",
    envvar="ROLEMAN_LANG",
    help="UI 언어 설정 / UI language (ko: 한국어, en: English)",
)
@click.option("-v", "--verbose", count=True, help="로그 상세도 (-v: INFO, -vv: DEBUG)")
@common_options
@click.pass_context
def cli(ctx: Context, lang: str, verbose: int, **common: Any) -> None:
    """roleman - AWS IAM Identity Center 역할 선택 및 자격증명 export"""
    from roleman.cli.i18n import set_lang
    from roleman.cli.ui.console import setup_logging

    set_lang(lang)
    setup_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["lang"] = lang
    ctx.obj["common"] = common

    if ctx.invoked_subcommand is None:
        handle_errors(_run)(ctx, "set", {})


@cli.command("set")
@click.argument("identity_arg", metavar="[IDENTITY]", required=False)
@common_options
@click.pass_context
@handle_errors
def set_command(ctx: Context, identity_arg: str | None, **local: Any) -> None:
    """역할을 선택하고 자격증명을 셸로 내보냅니다 (별칭: s)"""
    if identity_arg and not local.get("identity"):
        local["identity"] = identity_arg
    _run(ctx, "set", local)


@cli.command("open")
@click.argument("identity_arg", metavar="[IDENTITY]", required=False)
@common_options
@click.pass_context
@handle_errors
def open_command(ctx: Context, identity_arg: str | None, **local: Any) -> None:
    """역할을 선택하고 AWS 액세스 포털에서 엽니다 (별칭: o)"""
    if identity_arg and not local.get("identity"):
        local["identity"] = identity_arg
    _run(ctx, "open", local)


@cli.command("unset")
@click.option("--env-file", "env_file", type=_PATH, default=None, help="핸드오프 파일 경로")
@click.option("--print", "print_env", is_flag=True, default=False, help="stdout 으로 출력")
@click.pass_context
@handle_errors
def unset_command(ctx: Context, env_file: Path | None, print_env: bool) -> None:
    """roleman 이 설정한 AWS 환경 변수를 제거합니다 (별칭: u)

    셸 훅 아래에서 실행하면 현재 셸에 적용되도록 핸드오프 파일에 씁니다.
    """
    from roleman.cli.runner import run_unset

    common = (ctx.obj or {}).get("common", {})
    run_unset(env_file or common.get("env_file"), print_env or bool(common.get("print_env")))


# =============================================================================
# 이력
# =============================================================================


@cli.group("history", invoke_without_command=True)
@click.option("-n", "--limit", default=20, type=click.IntRange(min=1), help="표시할 최대 개수")
@click.pass_context
def history_group(ctx: Context, limit: int) -> None:
    """최근 선택 이력을 표시합니다 (시각, identity, 계정, 역할, 디렉토리)"""
    if ctx.invoked_subcommand is not None:
        return

    from roleman.cli.ui.console import print_info
    from roleman.history.ledger import HistoryLedger

    records = HistoryLedger().recent(limit)
    if not records:
        print_info(t("cli.history_empty"))
        return
    for record in records:
        click.echo(record.format_line())


@history_group.command("clear")
def history_clear() -> None:
    """선택 이력을 모두 삭제합니다

    \b
    다른 터미널에서 역할 선택이 진행 중일 때는 실행하지 마세요.
    """
    from roleman.cli.ui.console import print_success
    from roleman.history.ledger import HistoryLedger

    HistoryLedger().clear()
    print_success(t("cli.history_cleared"))


# =============================================================================
# 셸 훅
# =============================================================================


@cli.command("hook")
@click.argument("shell_name", metavar="[SHELL]", required=False)
def hook_command(shell_name: str | None) -> None:
    """셸 훅 스니펫을 출력합니다 (bash, zsh, fish)

    \b
    Examples:
        eval "$(roleman hook zsh)"
        roleman hook fish | source
    """
    from roleman.cli.ui.console import print_error
    from roleman.shell.hooks import detect_shell, shell_for_name

    shell = shell_for_name(shell_name) if shell_name else detect_shell()
    if shell is None:
        print_error(t("cli.unsupported_shell", name=shell_name) if shell_name else t("cli.shell_detect_failed"))
        raise SystemExit(1)
    click.echo(shell.snippet)


@cli.command("install-hook")
@click.option("--force", is_flag=True, default=False, help="이미 설치된 훅을 지우고 다시 설치")
@click.option("--alias", "alias", is_flag=True, default=False, help="rl 별칭도 추가")
def install_hook_command(force: bool, alias: bool) -> None:
    """현재 셸의 rc 파일에 훅을 설치합니다"""
    from roleman.cli.ui.console import print_error, print_hint, print_success
    from roleman.shell.hooks import HookAlreadyInstalledError, detect_shell, install_hook

    shell = detect_shell()
    if shell is None:
        print_error(t("cli.shell_detect_failed"))
        raise SystemExit(1)

    try:
        path = install_hook(shell, force=force, alias=alias)
    except HookAlreadyInstalledError as e:
        print_error(t("cli.hook_already_installed", path=e.rc_path))
        raise SystemExit(1) from None
    except OSError as e:
        print_error(str(e))
        raise SystemExit(1) from None

    print_success(t("cli.installed_hook", path=path))
    print_hint(t("cli.reload_shell", command=shell.reload_command(path)))


def main() -> None:
    cli(prog_name="roleman")


if __name__ == "__main__":
    main()
