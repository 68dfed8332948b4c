"""
roleman/cli/ui/selector.py - 대화형 역할 선택 (questionary autocomplete)

입력할 때마다 SelectionEngine.query() 로 후보를 다시 순위 매겨 보여줍니다.
Enter 를 누르면 입력이 레이블과 정확히 같은 항목, 아니면 가장 위 후보를 선택합니다.
stdout 은 export 출력용이므로 프롬프트는 stderr 에 그립니다.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable

import questionary
from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.output import create_output

from roleman.catalog.types import CatalogEntry
from roleman.cli.i18n import t
from roleman.cli.ui.console import print_hint
from roleman.selector.engine import SelectionEngine

Marker = Callable[[CatalogEntry], str]

MAX_CANDIDATES = 50


def _no_marker(entry: CatalogEntry) -> str:
    return ""


class RankedCompleter(Completer):
    """SelectionEngine 순위를 그대로 보여주는 completer"""

    def __init__(self, engine: SelectionEngine, marker: Marker | None = None, limit: int = MAX_CANDIDATES):
        self.engine = engine
        self.marker = marker or _no_marker
        self.limit = limit

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterable[Completion]:
        text = document.text_before_cursor
        result = self.engine.query(text)
        for entry in result.candidates[: self.limit]:
            yield Completion(
                entry.label,
                start_position=-len(text),
                display=f"{self.marker(entry)}{entry.label}",
            )


def resolve_answer(engine: SelectionEngine, answer: str) -> CatalogEntry | None:
    """프롬프트 입력값을 카탈로그 항목으로 변환"""
    exact = engine.find(answer)
    if exact is not None:
        return exact
    return engine.query(answer).top


def select_entry(engine: SelectionEngine, initial: str = "", marker: Marker | None = None) -> CatalogEntry | None:
    """역할을 대화형으로 선택

    Returns:
        선택된 항목, 취소하면 None
    """
    marker = marker or _no_marker
    initial_result = engine.query(initial)
    print_hint(t("common.select_hint"))

    answer = questionary.autocomplete(
        t("common.select_role"),
        choices=[e.label for e in initial_result.candidates],
        default=initial,
        completer=RankedCompleter(engine, marker),
        output=create_output(stdout=sys.stderr),
    ).ask()

    if answer is None:
        return None
    return resolve_answer(engine, answer)
