"""
roleman/handoff - 자격증명 교환과 셸 핸드오프

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
"""

__all__ = [
    # Data classes
    "EnvDirective",
    "HandoffPackage",
    "RoleCredentials",
    # Classes
    "CredentialBroker",
    "ManagedAwsConfig",
    # Functions
    "build_set_package",
    "build_unset_package",
    "handoff_path",
    "profile_name_for",
    "resolve_dialect",
    "resolve_target",
    "write_package",
]

_IMPORT_MAPPING = {
    "EnvDirective": (".package", "EnvDirective"),
    "HandoffPackage": (".package", "HandoffPackage"),
    "build_set_package": (".package", "build_set_package"),
    "build_unset_package": (".package", "build_unset_package"),
    "handoff_path": (".package", "handoff_path"),
    "resolve_dialect": (".package", "resolve_dialect"),
    "resolve_target": (".package", "resolve_target"),
    "write_package": (".package", "write_package"),
    "RoleCredentials": (".credentials", "RoleCredentials"),
    "CredentialBroker": (".credentials", "CredentialBroker"),
    "ManagedAwsConfig": (".aws_config", "ManagedAwsConfig"),
    "profile_name_for": (".aws_config", "profile_name_for"),
}


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _IMPORT_MAPPING:
        module_name, attr_name = _IMPORT_MAPPING[name]
        import importlib

        module = importlib.import_module(module_name, __name__)
        return getattr(module, attr_name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
