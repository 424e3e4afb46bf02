"""SQLAlchemy 엔진/세션 팩토리와 선언적 Base를 제공합니다."""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from content_engine.config import settings


def _connect_args(url: str) -> dict:
    # SQLite 연결은 요청 스레드 간에 공유될 수 있다.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL),
    echo=settings.DEBUG,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None) -> None:
    import content_engine.models  # noqa: F401 - 모델 import로 metadata 등록

    Base.metadata.create_all(bind=bind or engine)
