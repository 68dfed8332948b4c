"""
roleman/auth - SSO 디바이스 인증

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
"""

__all__ = [
    # Types
    "AuthState",
    "SessionToken",
    "ClientRegistration",
    "DeviceAuthorization",
    # Classes
    "DeviceAuthFlow",
    "SSOCacheReader",
    "SSOClients",
    # Functions
    "create_client",
]

_IMPORT_MAPPING = {
    "AuthState": (".types", "AuthState"),
    "SessionToken": (".types", "SessionToken"),
    "ClientRegistration": (".types", "ClientRegistration"),
    "DeviceAuthorization": (".types", "DeviceAuthorization"),
    "DeviceAuthFlow": (".device", "DeviceAuthFlow"),
    "SSOCacheReader": (".sso_cache", "SSOCacheReader"),
    "SSOClients": (".client", "SSOClients"),
    "create_client": (".client", "create_client"),
}


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _IMPORT_MAPPING:
        module_name, attr_name = _IMPORT_MAPPING[name]
        import importlib

        module = importlib.import_module(module_name, __name__)
        return getattr(module, attr_name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
