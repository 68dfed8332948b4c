"""
roleman/catalog/rules.py - identity 규칙 적용 (순수 함수)

적용 순서:
    1. ignored 계정 제거
    2. 계정/identity 수준 ignore_roles 에 포함된 역할 제거
    3. alias, precedence 부착

규칙 병합:
    계정 하나에 해당하는 규칙들을 구체성 오름차순(glob → 정확한 이름 → id),
    같은 구체성 안에서는 설정 순서대로 왼쪽부터 접습니다.
    명시된 필드만 덮어쓰므로 마지막에 적용된 규칙이 이깁니다.
    ignore_roles 는 누적됩니다.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from roleman.catalog.types import Catalog, CatalogEntry
from roleman.config import AccountRule, Identity


@dataclass(frozen=True)
class EffectiveRule:
    """계정 하나에 대해 병합된 규칙"""

    ignored: bool = False
    ignore_roles: frozenset[str] = frozenset()
    alias: str | None = None
    precedence: int | None = None


NO_RULE = EffectiveRule()


def resolve_rules(rules: tuple[AccountRule, ...] | list[AccountRule], account_id: str, account_name: str) -> EffectiveRule:
    """계정에 해당하는 규칙을 하나로 병합"""
    matching = [(rule.specificity, index, rule) for index, rule in enumerate(rules) if rule.matches(account_id, account_name)]
    if not matching:
        return NO_RULE

    effective = NO_RULE
    for _, _, rule in sorted(matching, key=lambda item: (item[0], item[1])):
        effective = EffectiveRule(
            ignored=rule.ignored if rule.ignored is not None else effective.ignored,
            ignore_roles=effective.ignore_roles | frozenset(rule.ignore_roles),
            alias=rule.alias if rule.alias is not None else effective.alias,
            precedence=rule.precedence if rule.precedence is not None else effective.precedence,
        )
    return effective


def annotate(entry: CatalogEntry, identity: Identity) -> CatalogEntry:
    """규칙에서 파생된 필드를 채운 항목 반환 (제거하지 않음)"""
    rule = resolve_rules(identity.accounts, entry.account_id, entry.account_name)
    role_ignored = entry.role_name in rule.ignore_roles or entry.role_name in identity.ignore_roles
    return replace(
        entry,
        alias=rule.alias,
        precedence=rule.precedence,
        ignored=rule.ignored or role_ignored,
    )


def apply_rules(catalog: Catalog, identity: Identity, show_all: bool = False) -> Catalog:
    """카탈로그에 identity 규칙 적용

    Args:
        catalog: 원본 카탈로그 (캐시에서 읽은 그대로)
        identity: 규칙을 가진 Identity
        show_all: True 면 1, 2 단계를 건너뜀 (ignored 표시는 유지)

    Returns:
        새 Catalog (입력은 변경하지 않음)
    """
    annotated = [annotate(entry.raw(), identity) for entry in catalog.entries]
    if not show_all:
        annotated = [entry for entry in annotated if not entry.ignored]
    return catalog.with_entries(annotated)
