"""서비스 레이어 패키지 초기화 모듈입니다."""

from content_engine.services import (
    slug_service,
    version_service,
    post_service,
)
