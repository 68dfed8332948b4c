# tests/cli/test_cli_runner.py
"""
roleman/cli/runner.py 테스트

인증 → 카탈로그 → 선택 → 핸드오프 전체 흐름을 SSO 클라이언트 모킹으로 검증.
"""

import time
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from conftest import START_URL

from roleman.auth.types import SessionToken
from roleman.cache.store import CacheStore
from roleman.catalog.types import CatalogEntry
from roleman.cli.runner import ACTION_OPEN, RunOptions, active_marker, portal_url, run_select, run_unset
from roleman.config import Identity
from roleman.exceptions import NoMatchingRoleError, UserCancelError
from roleman.handoff.credentials import CredentialBroker
from roleman.history.ledger import HistoryLedger

CONFIG = f"""
hook_prompt: never
identities:
  - name: work
    start_url: {START_URL}
    accounts:
      - {{id: "222222222222", ignored: true}}
      - {{id: "111111111111", alias: Dev}}
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    return path


@pytest.fixture
def cached_token():
    """XDG 캐시에 유효한 토큰을 미리 저장 (디바이스 인증 생략)"""
    token = SessionToken(
        access_token="cached-token",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        identity="work",
        region="us-east-1",
        start_url=START_URL,
    )
    CacheStore("work").put("token", token.to_dict(), ttl=3600)
    return token


@pytest.fixture
def mock_clients():
    """SSOClients 대신 사용할 sso 클라이언트 모킹"""
    clients = MagicMock()
    clients.sso.get_paginator.return_value.paginate.return_value = [
        {
            "accountList": [
                {"accountId": "111111111111", "accountName": "dev"},
                {"accountId": "222222222222", "accountName": "prod"},
                {"accountId": "333333333333", "accountName": "sandbox"},
            ]
        }
    ]
    clients.sso.list_account_roles.side_effect = lambda **kw: {
        "roleList": [{"roleName": "Admin"}, {"roleName": "ReadOnly"}]
    }
    clients.sso.get_role_credentials.return_value = {
        "roleCredentials": {
            "accessKeyId": "ASIAEXAMPLE",
            "secretAccessKey": "secret",
            "sessionToken": "session",
            "expiration": int((time.time() + 3600) * 1000),
        }
    }
    with patch("roleman.cli.runner.SSOClients", return_value=clients):
        yield clients


class TestRunSelect:
    """run_select 흐름 테스트"""

    def test_set_with_unique_query(self, config_path, cached_token, mock_clients, tmp_path):
        """쿼리가 하나로 좁혀지면 프롬프트 없이 export 파일 작성"""
        env_file = tmp_path / "env"
        options = RunOptions(config_path=config_path, query="sandbox readonly", env_file=env_file)

        entry = run_select(options)

        assert entry.key == ("333333333333", "ReadOnly")
        content = env_file.read_text(encoding="utf-8")
        assert "export AWS_ACCESS_KEY_ID=ASIAEXAMPLE" in content
        assert "export AWS_REGION=us-east-1" in content
        mock_clients.sso.get_role_credentials.assert_called_once_with(
            roleName="ReadOnly", accountId="333333333333", accessToken="cached-token"
        )
        mock_clients.oidc.start_device_authorization.assert_not_called()

        records = HistoryLedger().load()
        assert [r.key for r in records] == [("333333333333", "ReadOnly")]

    def test_ignored_account_not_selectable(self, config_path, cached_token, mock_clients, tmp_path):
        with pytest.raises(NoMatchingRoleError):
            run_select(RunOptions(config_path=config_path, query="prod", env_file=tmp_path / "env"))

        assert HistoryLedger().load() == []

    def test_show_all(self, config_path, cached_token, mock_clients, tmp_path):
        options = RunOptions(config_path=config_path, query="prod readonly", show_all=True, env_file=tmp_path / "env")
        assert run_select(options).account_id == "222222222222"

    def test_interactive_selection(self, config_path, cached_token, mock_clients, tmp_path):
        """후보가 여럿이면 대화형 선택"""
        picked = CatalogEntry("111111111111", "dev", "Admin", alias="Dev")
        with patch("roleman.cli.runner.select_entry", return_value=picked) as mock_select:
            entry = run_select(RunOptions(config_path=config_path, query="admin", env_file=tmp_path / "env"))

        assert entry == picked
        assert mock_select.call_args.kwargs["initial"] == "admin"

    def test_cancel_writes_nothing(self, config_path, cached_token, mock_clients, tmp_path):
        """취소하면 이력도 export 파일도 남기지 않음"""
        env_file = tmp_path / "env"
        with patch("roleman.cli.runner.select_entry", return_value=None):
            with pytest.raises(UserCancelError):
                run_select(RunOptions(config_path=config_path, env_file=env_file))

        assert HistoryLedger().load() == []
        assert not env_file.exists()
        mock_clients.sso.get_role_credentials.assert_not_called()

    def test_print_env(self, config_path, cached_token, mock_clients, capsys):
        run_select(RunOptions(config_path=config_path, query="sandbox readonly", print_env=True))

        assert "export AWS_SESSION_TOKEN=session" in capsys.readouterr().out

    def test_open(self, config_path, cached_token, mock_clients, tmp_path):
        """open 은 포털 URL 을 열고 자격증명은 요청하지 않음"""
        env_file = tmp_path / "env"
        with patch("roleman.cli.runner.webbrowser") as mock_browser:
            run_select(RunOptions(config_path=config_path, query="sandbox readonly", env_file=env_file), ACTION_OPEN)

        mock_browser.open.assert_called_once_with(
            f"{START_URL}/#/console?account_id=333333333333&role_name=ReadOnly"
        )
        mock_clients.sso.get_role_credentials.assert_not_called()
        assert not env_file.exists()

    def test_catalog_served_from_cache(self, config_path, cached_token, mock_clients, tmp_path):
        options = RunOptions(config_path=config_path, query="sandbox readonly", env_file=tmp_path / "env")
        run_select(options)
        run_select(RunOptions(config_path=config_path, query="sandbox admin", env_file=tmp_path / "env"))

        assert mock_clients.sso.get_paginator.call_count == 1
        assert mock_clients.sso.get_role_credentials.call_count == 2


class TestHelpers:
    """runner 보조 함수 테스트"""

    def test_run_unset_writes_file(self, tmp_path):
        path = run_unset(tmp_path / "env")
        assert path.read_text(encoding="utf-8").startswith("unset ")

    def test_portal_url_quotes(self):
        identity = Identity(name="work", start_url=START_URL + "/")
        entry = CatalogEntry("111111111111", "dev", "Power User")
        assert portal_url(identity, entry) == f"{START_URL}/#/console?account_id=111111111111&role_name=Power%20User"

    def test_active_marker(self):
        broker = MagicMock(spec=CredentialBroker)
        entry = CatalogEntry("111111111111", "dev", "Admin")
        other = CatalogEntry("222222222222", "prod", "Admin")
        environ = {"AWS_PROFILE": "roleman-111111111111-Admin"}

        broker.cached.return_value = object()
        marker = active_marker(broker, environ)
        assert marker(entry) == "* "
        assert marker(other) == "  "

        broker.cached.return_value = None
        assert active_marker(broker, environ)(entry) == "! "
        assert active_marker(broker, {})(entry) == "  "
