"""SQLAlchemy 모델 패키지 초기화 모듈입니다."""

from content_engine.models.post import Post
from content_engine.models.post_version import PostVersion

__all__ = [
    "Post",
    "PostVersion",
]
