# tests/handoff/test_handoff_package.py
"""
roleman/handoff/package.py, roleman/handoff/aws_config.py 단위 테스트

핸드오프 패키지 생성/직렬화, 파일 경로 결정, 원자적 쓰기 테스트.
"""

import stat
from unittest.mock import patch

import pytest

from roleman.catalog.types import CatalogEntry
from roleman.exceptions import HandoffWriteError
from roleman.handoff.aws_config import ManagedAwsConfig, profile_name_for, sanitize_profile_name
from roleman.handoff.credentials import RoleCredentials
from roleman.handoff.package import (
    DIALECT_FISH,
    MANAGED_VARIABLES,
    EnvDirective,
    HandoffPackage,
    build_set_package,
    build_unset_package,
    handoff_path,
    resolve_dialect,
    resolve_target,
    write_package,
)

CREDS = RoleCredentials(
    access_key_id="ASIAEXAMPLE",
    secret_access_key="se'cret",
    session_token="token",
    expiration_ms=1_700_003_600_000,
)


@pytest.fixture
def aws_config(tmp_path):
    return ManagedAwsConfig(tmp_path / "state" / "aws-config")


class TestBuildSetPackage:
    """build_set_package 테스트"""

    def test_credential_variables(self, aws_config):
        package = build_set_package(CREDS, "eu-west-1", "roleman-1-Admin", environ={}, aws_config=aws_config)
        values = package.as_dict()

        assert values["AWS_ACCESS_KEY_ID"] == "ASIAEXAMPLE"
        assert values["AWS_SECRET_ACCESS_KEY"] == "se'cret"
        assert values["AWS_SESSION_TOKEN"] == "token"
        assert values["AWS_CREDENTIAL_EXPIRATION"] == "2023-11-14T23:13:20Z"
        assert values["AWS_REGION"] == values["AWS_DEFAULT_REGION"] == "eu-west-1"
        assert "AWS_PROFILE" not in values
        assert not aws_config.path.exists()

    def test_profile_when_caller_uses_profile(self, aws_config):
        """호출한 셸에 AWS_PROFILE 이 있으면 관리 config 에 profile 작성"""
        package = build_set_package(
            CREDS, "eu-west-1", "roleman-1-Admin", environ={"AWS_PROFILE": "old"}, aws_config=aws_config
        )
        values = package.as_dict()

        assert values["AWS_PROFILE"] == "roleman-1-Admin"
        assert values["AWS_CONFIG_FILE"] == str(aws_config.path)
        assert aws_config.profile_region("roleman-1-Admin") == "eu-west-1"

    def test_profile_write_failure(self, aws_config):
        with patch.object(ManagedAwsConfig, "upsert_profile", side_effect=PermissionError("denied")):
            with pytest.raises(HandoffWriteError):
                build_set_package(CREDS, "eu-west-1", "p", environ={"AWS_PROFILE": "x"}, aws_config=aws_config)


class TestBuildUnsetPackage:
    """build_unset_package 테스트"""

    def test_removes_managed_variables(self, aws_config):
        package = build_unset_package(environ={}, aws_config=aws_config)

        assert package.is_removal_only
        assert [d.name for d in package] == list(MANAGED_VARIABLES)

    def test_config_file_only_when_managed(self, aws_config):
        """AWS_CONFIG_FILE 은 관리 파일을 가리킬 때만 제거"""
        mine = build_unset_package(environ={"AWS_CONFIG_FILE": str(aws_config.path)}, aws_config=aws_config)
        theirs = build_unset_package(environ={"AWS_CONFIG_FILE": "/etc/aws/config"}, aws_config=aws_config)

        assert "AWS_CONFIG_FILE" in mine.as_dict()
        assert "AWS_CONFIG_FILE" not in theirs.as_dict()


class TestRender:
    """셸 문법 직렬화 테스트"""

    def test_posix(self):
        package = HandoffPackage([EnvDirective("A", "x y"), EnvDirective("B", "it's"), EnvDirective("C"), EnvDirective("D")])

        assert package.render() == "export A='x y'\nexport B='it'\"'\"'s'\nunset C D\n"

    def test_fish(self):
        package = HandoffPackage([EnvDirective("A", "it's"), EnvDirective("C")])

        assert package.render(DIALECT_FISH) == "set -gx A 'it\\'s'\nset -e C\n"

    def test_empty(self):
        assert HandoffPackage().render() == ""


class TestTargets:
    """핸드오프 경로 결정 테스트"""

    def test_handoff_path(self, tmp_path):
        assert handoff_path("/dev/pts/3", tmp_path) == tmp_path / "env-_dev_pts_3"

    def test_explicit_env_file_wins(self, tmp_path):
        environ = {"_ROLEMAN_HOOK_ENV": str(tmp_path / "hook"), "_ROLEMAN_HOOK_VERSION": "1"}
        assert resolve_target(tmp_path / "explicit", environ) == tmp_path / "explicit"

    def test_hook_env(self, tmp_path):
        assert resolve_target(None, {"_ROLEMAN_HOOK_ENV": str(tmp_path / "hook")}) == tmp_path / "hook"

    def test_tty_path_when_hook_loaded(self, isolated_home):
        environ = {"_ROLEMAN_HOOK_VERSION": "1", "TTY": "/dev/ttys001"}
        expected = isolated_home / ".local" / "state" / "roleman" / "env-_dev_ttys001"
        assert resolve_target(None, environ) == expected

    def test_stdout_without_hook(self):
        assert resolve_target(None, {"TTY": "/dev/ttys001"}) is None

    def test_dialect(self):
        assert resolve_dialect({"_ROLEMAN_HOOK_SHELL": "fish", "SHELL": "/bin/zsh"}) == DIALECT_FISH
        assert resolve_dialect({"SHELL": "/usr/local/bin/fish"}) == DIALECT_FISH
        assert resolve_dialect({"SHELL": "/bin/bash"}) == "posix"
        assert resolve_dialect({}) == "posix"


class TestWritePackage:
    """write_package 테스트"""

    def test_unset_without_prior_set(self, tmp_path, aws_config):
        """이전 set 이 없어도 unset 파일을 씀"""
        path = tmp_path / "state" / "env-_dev_pts_1"

        write_package(build_unset_package(environ={}, aws_config=aws_config), path)

        assert path.read_text(encoding="utf-8").startswith("unset AWS_ACCESS_KEY_ID ")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_replaces_previous_file(self, tmp_path, aws_config):
        path = tmp_path / "out" / "env"
        write_package(build_set_package(CREDS, "us-east-1", "p", environ={}, aws_config=aws_config), path)
        write_package(build_unset_package(environ={}, aws_config=aws_config), path)

        content = path.read_text(encoding="utf-8")
        assert "export" not in content
        assert [p.name for p in path.parent.iterdir()] == ["env"]

    def test_write_failure(self, tmp_path):
        """쓸 수 없는 위치면 HandoffWriteError"""
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")

        with pytest.raises(HandoffWriteError) as exc_info:
            write_package(HandoffPackage([EnvDirective("A")]), blocker / "env")

        assert exc_info.value.path == str(blocker / "env")


class TestProfileName:
    def test_sanitize(self):
        assert sanitize_profile_name("roleman-1/2--Admin!") == "roleman-1-2-Admin"
        assert sanitize_profile_name("///") == "roleman"

    def test_profile_name_for(self):
        assert profile_name_for(CatalogEntry("111111111111", "dev", "Power.User")) == "roleman-111111111111-Power-User"

    def test_upsert_keeps_other_profiles(self, aws_config):
        aws_config.upsert_profile("a", "us-east-1")
        aws_config.upsert_profile("b", "eu-west-1")
        aws_config.upsert_profile("a", "ap-northeast-2")

        assert aws_config.profile_region("a") == "ap-northeast-2"
        assert aws_config.profile_region("b") == "eu-west-1"
        assert aws_config.profile_region("c") is None
