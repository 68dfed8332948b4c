# tests/cli/test_cli_i18n.py
"""
roleman/cli/i18n 단위 테스트
"""

import string

import pytest

from roleman.cli.i18n import get_lang, set_lang, t
from roleman.cli.i18n.messages import all_keys, lookup


class TestCatalog:
    """메시지 카탈로그 일관성"""

    @pytest.mark.parametrize("key", all_keys())
    def test_both_languages(self, key):
        entry = lookup(key)
        assert entry["ko"]
        assert entry["en"]

    @pytest.mark.parametrize("key", all_keys())
    def test_same_placeholders(self, key):
        """ko / en 문구의 자리표시자가 같아야 함"""
        entry = lookup(key)

        def fields(text):
            return {name for _, name, _, _ in string.Formatter().parse(text) if name}

        assert fields(entry["ko"]) == fields(entry["en"])

    def test_unknown_namespace(self):
        assert lookup("nope.cancelled") is None
        assert lookup("cancelled") is None


class TestTranslate:
    """t() 테스트"""

    def test_default_korean(self):
        assert get_lang() == "ko"
        assert t("common.cancelled") == "취소됨"

    def test_english(self):
        set_lang("en")
        assert t("common.cancelled") == "Cancelled"

    def test_unsupported_lang_falls_back(self):
        set_lang("fr")
        assert get_lang() == "ko"

    def test_missing_key_returned_as_is(self):
        assert t("cli.does_not_exist") == "cli.does_not_exist"

    def test_format(self):
        set_lang("en")
        assert t("errors.config_invalid", message="bad") == "Invalid configuration: bad"

    def test_missing_param_keeps_template(self):
        set_lang("en")
        assert t("errors.config_invalid") == "Invalid configuration: {message}"
        assert t("errors.config_invalid", other="x") == "Invalid configuration: {message}"
