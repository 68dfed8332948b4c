"""
roleman/catalog - 계정/역할 카탈로그

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
"""

__all__ = [
    # Data classes
    "Catalog",
    "CatalogEntry",
    "EffectiveRule",
    # Classes
    "CatalogBuilder",
    # Functions
    "apply_rules",
    "resolve_rules",
    "format_age",
]

_IMPORT_MAPPING = {
    "Catalog": (".types", "Catalog"),
    "CatalogEntry": (".types", "CatalogEntry"),
    "format_age": (".types", "format_age"),
    "EffectiveRule": (".rules", "EffectiveRule"),
    "apply_rules": (".rules", "apply_rules"),
    "resolve_rules": (".rules", "resolve_rules"),
    "CatalogBuilder": (".builder", "CatalogBuilder"),
}


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _IMPORT_MAPPING:
        module_name, attr_name = _IMPORT_MAPPING[name]
        import importlib

        module = importlib.import_module(module_name, __name__)
        return getattr(module, attr_name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
