"""환경 변수 기반 엔진 설정을 중앙에서 관리합니다."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./content_engine.db"
    DEBUG: bool = False

    # 슬러그/버전 번호 경합 시 내부 재시도 횟수
    CONFLICT_RETRY_LIMIT: int = 3

    SLUG_MAX_LENGTH: int = 80
    SLUG_FALLBACK: str = "post"

    # 버전 이력 페이지네이션
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    class Config:
        env_file = str(Path(__file__).resolve().parents[1] / ".env")
        env_prefix = "CONTENT_ENGINE_"


settings = Settings()
