# tests/shell/test_shell_hooks.py
"""
roleman/shell/hooks.py, roleman/shell/prompt.py 단위 테스트

훅 스니펫, rc 파일 설치/재설치, 훅 상태 판단 테스트.
"""

import pytest

from roleman.shell.hooks import (
    SHELLS,
    HookAlreadyInstalledError,
    detect_shell,
    has_active_hook,
    install_hook,
    remove_hook_lines,
    shell_for_name,
)
from roleman.shell.prompt import HookStatus, hook_status


class TestSnippets:
    """셸별 훅 스니펫 테스트"""

    @pytest.mark.parametrize("name", ["bash", "zsh", "fish"])
    def test_snippet_contract(self, name):
        """모든 훅은 핸드오프 경로/버전/셸을 알리고 --env-file 을 전달"""
        snippet = SHELLS[name].snippet

        assert "_ROLEMAN_HOOK_ENV" in snippet
        assert "_ROLEMAN_HOOK_VERSION" in snippet
        assert "_ROLEMAN_HOOK_SHELL" in snippet
        assert "--env-file" in snippet
        assert "roleman/env-" in snippet

    def test_install_lines(self):
        assert SHELLS["zsh"].install_line == 'eval "$(roleman hook zsh)"'
        assert SHELLS["fish"].install_line == "roleman hook fish | source"

    def test_detect_shell(self):
        assert detect_shell({"SHELL": "/usr/bin/zsh"}).name == "zsh"
        assert detect_shell({"SHELL": "/bin/tcsh"}) is None
        assert detect_shell({}) is None
        assert shell_for_name("nu") is None

    def test_rc_paths(self, tmp_path):
        environ = {"HOME": str(tmp_path)}
        assert SHELLS["bash"].rc_path(environ) == tmp_path / ".bashrc"
        assert SHELLS["fish"].rc_path(environ) == tmp_path / ".config" / "fish" / "config.fish"
        assert SHELLS["fish"].rc_path({**environ, "XDG_CONFIG_HOME": "/xdg"}).as_posix() == "/xdg/fish/config.fish"


class TestRcEditing:
    """rc 파일 편집 테스트"""

    def test_commented_line_is_not_active(self):
        contents = '# eval "$(roleman hook zsh)"\nexport PATH=/bin\n'
        assert has_active_hook(contents, SHELLS["zsh"].install_line) is False

    def test_remove_hook_lines(self):
        contents = "\n".join(
            ["export PATH=/bin", 'eval "$(roleman hook zsh)"', "alias rl='roleman'", "alias ll='ls -l'"]
        )
        assert remove_hook_lines(contents) == "export PATH=/bin\nalias ll='ls -l'"

    def test_install(self, tmp_path):
        environ = {"HOME": str(tmp_path)}
        (tmp_path / ".zshrc").write_text("export PATH=/bin", encoding="utf-8")

        path = install_hook(SHELLS["zsh"], alias=True, environ=environ)

        assert path.read_text(encoding="utf-8") == "export PATH=/bin\n\neval \"$(roleman hook zsh)\"\nalias rl='roleman'\n"

    def test_install_creates_fish_config(self, tmp_path):
        path = install_hook(SHELLS["fish"], environ={"HOME": str(tmp_path)})
        assert "roleman hook fish | source" in path.read_text(encoding="utf-8")

    def test_already_installed(self, tmp_path):
        environ = {"HOME": str(tmp_path)}
        install_hook(SHELLS["bash"], environ=environ)

        with pytest.raises(HookAlreadyInstalledError) as exc_info:
            install_hook(SHELLS["bash"], environ=environ)
        assert exc_info.value.rc_path == tmp_path / ".bashrc"

    def test_force_reinstall(self, tmp_path):
        """--force 는 기존 줄을 지우고 한 번만 다시 추가"""
        environ = {"HOME": str(tmp_path)}
        install_hook(SHELLS["bash"], alias=True, environ=environ)

        path = install_hook(SHELLS["bash"], force=True, environ=environ)

        contents = path.read_text(encoding="utf-8")
        assert contents.count("roleman hook bash") == 1
        assert "alias rl" not in contents


class TestHookStatus:
    """hook_status 테스트"""

    def test_never(self):
        assert hook_status("never", {"SHELL": "/bin/zsh"}) is HookStatus.SKIP

    def test_active(self):
        assert hook_status("always", {"_ROLEMAN_HOOK_VERSION": "1"}) is HookStatus.ACTIVE

    def test_outdated_version(self):
        assert hook_status("outdated", {"_ROLEMAN_HOOK_VERSION": "0"}) is HookStatus.OUTDATED
        assert hook_status("always", {"_ROLEMAN_HOOK_ENV": "/tmp/x"}) is HookStatus.OUTDATED

    def test_missing(self, tmp_path):
        environ = {"SHELL": "/bin/zsh", "HOME": str(tmp_path)}
        assert hook_status("always", environ) is HookStatus.MISSING
        assert hook_status("outdated", environ) is HookStatus.SKIP

    def test_installed_but_not_loaded(self, tmp_path):
        environ = {"SHELL": "/bin/zsh", "HOME": str(tmp_path)}
        install_hook(SHELLS["zsh"], environ=environ)

        assert hook_status("always", environ) is HookStatus.INACTIVE
        assert hook_status("outdated", environ) is HookStatus.INACTIVE

    def test_unknown_shell(self):
        assert hook_status("always", {"SHELL": "/bin/tcsh"}) is HookStatus.SKIP
