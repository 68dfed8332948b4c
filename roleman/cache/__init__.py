"""
roleman/cache - identity 네임스페이스 TTL 캐시

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
"""

__all__ = [
    "CacheStore",
    "StoredEntry",
    "namespace_dir_name",
]

_IMPORT_MAPPING = {
    "CacheStore": (".store", "CacheStore"),
    "StoredEntry": (".store", "StoredEntry"),
    "namespace_dir_name": (".store", "namespace_dir_name"),
}


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _IMPORT_MAPPING:
        module_name, attr_name = _IMPORT_MAPPING[name]
        import importlib

        module = importlib.import_module(module_name, __name__)
        return getattr(module, attr_name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
