"""
roleman/cli/runner.py - 선택/핸드오프 실행 흐름

인증 → 카탈로그 → 선택 → 핸드오프 (또는 포털 열기) 를 한 번 수행합니다.

Usage:
    roleman                          # 선택 후 자격증명 export
    roleman set work -q prod         # identity 지정, 쿼리로 자동 선택
    roleman open                     # 선택한 역할을 AWS 액세스 포털에서 열기
    roleman unset                    # 관리 변수 제거
"""

from __future__ import annotations

import logging
import os
import sys
import threading
import webbrowser
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote

import click
import questionary

from roleman.auth.client import SSOClients
from roleman.auth.device import DeviceAuthFlow
from roleman.auth.sso_cache import SSOCacheReader
from roleman.auth.types import DeviceAuthorization
from roleman.cache.store import CacheStore
from roleman.catalog.builder import CatalogBuilder
from roleman.catalog.types import CatalogEntry, format_age
from roleman.cli.i18n import t
from roleman.cli.ui.console import console, print_hint, print_info, print_success, print_warning
from roleman.cli.ui.selector import select_entry
from roleman.config import Config, Identity, load_config, resolve_identity, update_config_value
from roleman.exceptions import UserCancelError
from roleman.handoff.aws_config import profile_name_for
from roleman.handoff.credentials import CredentialBroker
from roleman.handoff.package import (
    HandoffPackage,
    build_set_package,
    build_unset_package,
    resolve_dialect,
    resolve_target,
    write_package,
)
from roleman.history.ledger import HistoryLedger, current_cwd
from roleman.paths import config_file
from roleman.selector.engine import SelectionEngine
from roleman.shell.hooks import HookAlreadyInstalledError, detect_shell, install_hook
from roleman.shell.prompt import HookStatus, hook_status

logger = logging.getLogger(__name__)

ACTION_SET = "set"
ACTION_OPEN = "open"

MARKER_ACTIVE = "* "
MARKER_STALE = "! "
MARKER_NONE = "  "


@dataclass
class RunOptions:
    """set/open 공통 옵션"""

    identity: str | None = None
    start_url: str | None = None
    sso_region: str | None = None
    no_cache: bool = False
    show_all: bool = False
    sort: str | None = None
    query: str | None = None
    refresh_seconds: int | None = None
    env_file: Path | None = None
    print_env: bool = False
    config_path: Path | None = None
    cancel_event: threading.Event = field(default_factory=threading.Event)


# =============================================================================
# 출력
# =============================================================================


def show_device_code(device: DeviceAuthorization) -> None:
    console.print()
    console.print(f"[bold cyan]{t('cli.sso_login')}[/bold cyan]")
    console.print(f"  URL : {device.verification_uri}", markup=False)
    console.print(f"  Code: {device.user_code}", markup=False)
    console.print()


def deliver(package: HandoffPackage, env_file: Path | None = None, print_env: bool = False) -> Path | None:
    """핸드오프 패키지 전달

    Returns:
        쓴 파일 경로 (stdout 으로 출력했으면 None)

    Raises:
        HandoffWriteError: 파일 쓰기 실패
    """
    dialect = resolve_dialect()
    if print_env:
        click.echo(package.render(dialect), nl=False)
        return None

    target = resolve_target(env_file)
    if target is None:
        click.echo(package.render(dialect), nl=False)
        return None

    return write_package(package, target, dialect)


def portal_url(identity: Identity, entry: CatalogEntry) -> str:
    """AWS 액세스 포털에서 역할 콘솔을 여는 URL"""
    return (
        f"{identity.start_url.rstrip('/')}/#/console"
        f"?account_id={quote(entry.account_id)}&role_name={quote(entry.role_name)}"
    )


def active_marker(broker: CredentialBroker, environ: dict[str, str] | None = None):
    """현재 AWS_PROFILE 에 해당하는 항목 표시 (* 유효, ! 만료)"""
    environ = dict(os.environ) if environ is None else environ
    current = environ.get("AWS_PROFILE")

    def _marker(entry: CatalogEntry) -> str:
        if not current or profile_name_for(entry) != current:
            return MARKER_NONE
        return MARKER_ACTIVE if broker.cached(entry) is not None else MARKER_STALE

    return _marker


# =============================================================================
# 훅 안내
# =============================================================================


def maybe_prompt_hook(config: Config) -> None:
    """훅 상태에 따라 설치 제안 또는 경고"""
    shell = detect_shell()
    status = hook_status(config.hook_prompt, shell=shell)

    if status is HookStatus.OUTDATED:
        rc = shell.rc_path() if shell else None
        print_warning(t("cli.hook_outdated", command=shell.reload_command(rc) if shell and rc else "exec $SHELL"))
        return
    if status is HookStatus.INACTIVE and shell is not None:
        print_warning(t("cli.hook_inactive", command=shell.reload_command(shell.rc_path())))
        return
    if status is not HookStatus.MISSING or shell is None or not sys.stdin.isatty():
        return

    print_hint(t("cli.hook_missing", path=shell.rc_path()))
    console.print(shell.install_line, markup=False)
    if questionary.confirm(t("common.yes_no_install"), default=False).ask():
        alias = bool(questionary.confirm(t("common.add_alias"), default=False).ask())
        try:
            path = install_hook(shell, alias=alias)
        except (HookAlreadyInstalledError, OSError) as e:
            print_warning(str(e))
            return
        print_success(t("cli.installed_hook", path=path))
        print_hint(t("cli.reload_shell", command=shell.reload_command(path)))
        return

    if questionary.confirm(t("common.dont_ask_again"), default=False).ask():
        try:
            update_config_value(config.path or config_file(), "hook_prompt", "never")
        except OSError as e:
            print_warning(str(e))


# =============================================================================
# 실행
# =============================================================================


def choose(engine: SelectionEngine, query: str | None, marker) -> CatalogEntry:
    """자동 선택 또는 대화형 선택 후 이력 기록

    Raises:
        UserCancelError: 선택 취소
        NoMatchingRoleError: 후보 없음
    """
    entry = engine.auto_select(query) if query else None
    if entry is None:
        try:
            entry = select_entry(engine, initial=query or "", marker=marker)
        except KeyboardInterrupt:
            entry = None
    if entry is None:
        engine.cancel()
        raise UserCancelError()
    return engine.choose(entry)


def run_select(options: RunOptions, action: str = ACTION_SET) -> CatalogEntry:
    """선택 후 핸드오프 (또는 포털 열기)

    Raises:
        RolemanError: 각 단계의 실패
    """
    config = load_config(options.config_path)
    identity = resolve_identity(config, options.identity, options.start_url, options.sso_region)
    logger.info("identity: %s (%s, %s)", identity.name, identity.start_url, identity.sso_region)

    if not options.print_env:
        maybe_prompt_hook(config)

    store = CacheStore(identity.name)
    clients = SSOClients(identity.sso_region)

    flow = DeviceAuthFlow(
        identity,
        store,
        clients,
        external_cache=SSOCacheReader(),
        presenter=show_device_code,
        cancel_event=options.cancel_event,
    )
    token = flow.authenticate(force=options.no_cache)

    refresh_seconds = options.refresh_seconds or config.refresh_seconds
    builder = CatalogBuilder(identity, store, clients, refresh_seconds=refresh_seconds)
    catalog = builder.build(token, force=options.no_cache, show_all=options.show_all)
    if builder.served_from_cache:
        print_info(t("cli.cached_roles", age=format_age(catalog.age(store.now()))))

    if not catalog.entries and refresh_seconds:
        catalog = builder.wait_for_entries(
            token,
            show_all=options.show_all,
            cancel_event=options.cancel_event,
            on_wait=lambda seconds: print_info(t("cli.waiting_for_roles", seconds=seconds)),
        )

    broker = CredentialBroker(store, clients)
    engine = SelectionEngine(catalog, HistoryLedger(), mode=options.sort or config.sort, cwd=current_cwd())
    entry = choose(engine, options.query, active_marker(broker))

    if action == ACTION_OPEN:
        url = portal_url(identity, entry)
        try:
            webbrowser.open(url)
        except webbrowser.Error as e:
            logger.debug("브라우저 열기 실패: %s", e)
        print_success(t("cli.opened_portal", label=entry.label))
        console.print(url, markup=False)
        builder.join_refresh(timeout=5)
        return entry

    creds = broker.get_credentials(token, entry, force=options.no_cache)
    package = build_set_package(creds, token.region or identity.sso_region, profile_name_for(entry))
    path = deliver(package, options.env_file, options.print_env)
    if path is not None:
        print_success(t("cli.exported", label=entry.label, expiration=creds.expiration))

    builder.join_refresh(timeout=5)
    return entry


def run_unset(env_file: Path | None = None, print_env: bool = False) -> Path | None:
    """관리 변수 제거 지시문 전달 (이전 set 이 없어도 파일을 씀)"""
    path = deliver(build_unset_package(), env_file, print_env)
    if path is not None:
        print_success(t("cli.unset_written"))
    return path
