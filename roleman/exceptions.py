"""
roleman/exceptions.py - 통합 예외 계층 구조

roleman 전체에서 사용되는 예외 클래스들을 정의합니다.

예외 계층 구조:
    RolemanError (베이스)
    ├── NetworkFailureError (네트워크 실패, 재시도 한도 초과)
    ├── AuthError (인증 관련)
    │   ├── AuthorizationDeniedError
    │   └── DeviceCodeExpiredError
    ├── CacheCorruptedError (내부 전용, 캐시 미스로 처리)
    ├── ConfigInvalidError (설정 오류, 네트워크 호출 전 중단)
    ├── NoMatchingRoleError (선택 후보 없음)
    ├── HandoffWriteError (핸드오프 파일 쓰기 실패)
    └── UserCancelError (사용자 취소)

Usage:
    from roleman.exceptions import AuthError

    try:
        token = flow.authenticate()
    except AuthError as e:
        print_error(format_error_for_user(e))
"""

from __future__ import annotations

from typing import Any

# =============================================================================
# 베이스 예외
# =============================================================================


class RolemanError(Exception):
    """roleman 기본 예외 클래스

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    exit_code = 1

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


class NetworkFailureError(RolemanError):
    """네트워크 실패 (프로토콜 허용 범위 내 재시도 후에도 실패)"""

    def __init__(self, operation: str, cause: Exception | None = None):
        super().__init__(f"네트워크 오류 [{operation}]", cause, {"operation": operation})
        self.operation = operation


# =============================================================================
# 인증 관련 예외
# =============================================================================


class AuthError(RolemanError):
    """인증 관련 기본 예외"""


class AuthorizationDeniedError(AuthError):
    """사용자가 디바이스 인증을 거부함"""

    def __init__(self, identity: str, cause: Exception | None = None):
        super().__init__(f"인증이 거부되었습니다 [{identity}]", cause, {"identity": identity})
        self.identity = identity


class DeviceCodeExpiredError(AuthError):
    """디바이스 코드가 승인 전에 만료됨"""

    def __init__(self, identity: str, cause: Exception | None = None):
        super().__init__(f"디바이스 코드가 만료되었습니다 [{identity}]", cause, {"identity": identity})
        self.identity = identity


# =============================================================================
# 저장소 / 설정 관련 예외
# =============================================================================


class CacheCorruptedError(RolemanError):
    """캐시 항목 손상 (CacheStore 내부에서만 사용)"""

    def __init__(self, path: str, cause: Exception | None = None):
        super().__init__(f"캐시 항목 손상: {path}", cause, {"path": path})
        self.path = path


class ConfigInvalidError(RolemanError):
    """설정 파일 또는 identity 해석 실패"""

    def __init__(self, message: str, source: str | None = None, cause: Exception | None = None):
        super().__init__(message, cause)
        self.source = source
        if source:
            self.details["source"] = source


class NoMatchingRoleError(RolemanError):
    """선택 가능한 역할이 없음"""

    def __init__(self, identity: str, query: str = ""):
        message = f"선택 가능한 역할이 없습니다 [{identity}]"
        if query:
            message = f"{message} (query: {query})"
        super().__init__(message, details={"identity": identity, "query": query})
        self.identity = identity
        self.query = query


class HandoffWriteError(RolemanError):
    """핸드오프 파일 쓰기 실패"""

    def __init__(self, path: str, cause: Exception | None = None):
        super().__init__(f"환경 파일 쓰기 실패: {path}", cause, {"path": path})
        self.path = path


class UserCancelError(RolemanError):
    """사용자 취소 (Ctrl-C 또는 선택 취소)"""

    exit_code = 130

    def __init__(self, message: str = "사용자가 취소했습니다"):
        super().__init__(message)


# =============================================================================
# 유틸리티 함수
# =============================================================================


def get_error_code(error: Exception) -> str | None:
    """botocore ClientError에서 에러 코드 추출"""
    response = getattr(error, "response", None)
    if not isinstance(response, dict):
        return None
    code = response.get("Error", {}).get("Code")
    return str(code) if code else None


def is_network_error(error: Exception) -> bool:
    """재시도 가능한 네트워크 계층 에러인지 확인"""
    from botocore.exceptions import (
        ConnectionClosedError,
        ConnectTimeoutError,
        EndpointConnectionError,
        ReadTimeoutError,
    )

    return isinstance(
        error,
        (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError, ConnectionClosedError),
    )


def format_error_for_user(error: Exception) -> str:
    """사용자에게 보여줄 에러 메시지 생성

    Args:
        error: 예외 객체

    Returns:
        현재 언어로 번역된 한 줄 메시지
    """
    from roleman.cli.i18n import t

    if isinstance(error, UserCancelError):
        return t("common.cancelled")
    if isinstance(error, AuthorizationDeniedError):
        return t("errors.auth_denied", identity=error.identity)
    if isinstance(error, DeviceCodeExpiredError):
        return t("errors.device_code_expired", identity=error.identity)
    if isinstance(error, NetworkFailureError):
        return t("errors.network_failure", operation=error.operation, cause=error.cause or "")
    if isinstance(error, NoMatchingRoleError):
        return t("errors.no_matching_role", identity=error.identity)
    if isinstance(error, HandoffWriteError):
        return t("errors.handoff_write", path=error.path, cause=error.cause or "")
    if isinstance(error, ConfigInvalidError):
        return t("errors.config_invalid", message=error.message)
    if isinstance(error, RolemanError):
        return str(error)
    return t("errors.unexpected", message=str(error))
