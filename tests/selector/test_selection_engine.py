# tests/selector/test_selection_engine.py
"""
roleman/selector/engine.py 단위 테스트

쿼리, 자동 선택, 선택 확정(이력 기록), 취소 테스트.
"""

import pytest
from conftest import BASE_TIME, FakeClock, make_catalog

from roleman.catalog.types import Catalog
from roleman.exceptions import NoMatchingRoleError
from roleman.history.ledger import HistoryLedger
from roleman.selector.engine import SelectionEngine

CATALOG = make_catalog(
    ("111111111111", "dev", "Admin"),
    ("111111111111", "dev", "ReadOnly"),
    ("333333333333", "sandbox", "Admin"),
)


@pytest.fixture
def ledger(tmp_path):
    return HistoryLedger(tmp_path / "history.jsonl", clock=FakeClock())


@pytest.fixture
def engine(ledger):
    return SelectionEngine(CATALOG, ledger, cwd="/work/repo", clock=FakeClock())


class TestSelectionEngine:
    """SelectionEngine 테스트"""

    def test_empty_catalog(self, ledger):
        with pytest.raises(NoMatchingRoleError):
            SelectionEngine(Catalog(identity="work", fetched_at=BASE_TIME), ledger)

    def test_query_all(self, engine):
        result = engine.query("")
        assert len(result.candidates) == 3
        assert len(result.scores) == 3
        assert result.top is not None

    def test_query_filters(self, engine):
        result = engine.query("sandbox")
        assert [e.account_id for e in result.candidates] == ["333333333333"]

    def test_query_no_match(self, engine):
        result = engine.query("zzz")
        assert result.candidates == []
        assert result.top is None

    def test_auto_select_single(self, engine):
        entry = engine.auto_select("readonly")
        assert entry.role_name == "ReadOnly"

    def test_auto_select_ambiguous(self, engine):
        assert engine.auto_select("admin") is None

    def test_auto_select_blank(self, engine):
        assert engine.auto_select("  ") is None

    def test_auto_select_no_match(self, engine):
        with pytest.raises(NoMatchingRoleError) as exc_info:
            engine.auto_select("zzz")
        assert exc_info.value.identity == "work"

    def test_find_by_label(self, engine):
        assert engine.find("dev (111111111111) - ReadOnly").role_name == "ReadOnly"
        assert engine.find("nope") is None

    def test_choose_appends_history(self, engine, ledger):
        """선택 확정 시 이력 한 건"""
        entry = engine.query("sandbox").top
        engine.choose(entry)

        records = ledger.load()
        assert len(records) == 1
        assert records[0].key == ("333333333333", "Admin")
        assert records[0].identity == "work"
        assert records[0].account_name == "sandbox"
        assert records[0].cwd == "/work/repo"

    def test_choose_once(self, engine):
        engine.choose(CATALOG.entries[0])
        with pytest.raises(RuntimeError):
            engine.choose(CATALOG.entries[0])

    def test_cancel_writes_nothing(self, engine, ledger):
        engine.query("dev")
        engine.cancel()

        assert ledger.load() == []
        assert engine.finished is True

    def test_history_affects_next_session(self, ledger):
        """이전 선택이 다음 세션의 첫 후보가 됨"""
        SelectionEngine(CATALOG, ledger, clock=FakeClock()).choose(CATALOG.entries[2])

        engine = SelectionEngine(CATALOG, ledger, clock=FakeClock())
        assert engine.query("").top.key == ("333333333333", "Admin")

    def test_alphabetical_ignores_history(self, ledger):
        SelectionEngine(CATALOG, ledger, clock=FakeClock()).choose(CATALOG.entries[2])

        engine = SelectionEngine(CATALOG, ledger, mode="alphabetical", clock=FakeClock())
        assert engine.query("").top.key == ("111111111111", "Admin")
