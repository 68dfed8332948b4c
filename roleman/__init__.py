# roleman/__init__.py
"""
roleman - AWS IAM Identity Center 역할 선택기

SSO 디바이스 인증으로 토큰을 받고, 접근 가능한 계정/역할 목록에서
하나를 골라 자격증명을 현재 셸로 내보냅니다.

아키텍처:
    roleman/
    ├── auth/           # 디바이스 인증 상태 머신, SSO 클라이언트
    ├── cache/          # identity 별 디스크 캐시 (TTL)
    ├── catalog/        # 계정/역할 카탈로그 + 무시/별칭/우선순위 규칙
    ├── history/        # 선택 이력 (JSONL)
    ├── selector/       # 퍼지 매칭 + 이력 기반 순위
    ├── handoff/        # 자격증명 핸드오프 파일
    ├── shell/          # bash/zsh/fish 훅
    ├── cli/            # Click CLI, i18n, UI
    ├── config.py       # 설정 파일 (YAML)
    └── exceptions.py   # 예외 계층
"""

__version__ = "0.1.0"
