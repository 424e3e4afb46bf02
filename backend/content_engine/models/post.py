"""Post 애그리거트 헤드의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from content_engine.database import Base

DRAFT = "draft"
PUBLISHED = "published"
ARCHIVED = "archived"
POST_STATUSES = (DRAFT, PUBLISHED, ARCHIVED)

TITLE_MAX_LENGTH = 200


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(120), nullable=False)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    author_id = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=DRAFT)  # draft/published/archived
    # 버전 테이블을 FK로 가리키지 않고 (post_id, version_number) 번호만 보관한다.
    current_version_number = Column(Integer, nullable=False)
    tags = Column(Text)  # JSON
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    published_at = Column(DateTime(timezone=True), nullable=True)

    versions = relationship(
        "PostVersion",
        back_populates="post",
        order_by="PostVersion.version_number",
    )

    __table_args__ = (
        UniqueConstraint("slug", name="uq_posts_slug"),
        Index("idx_posts_status", "status", "updated_at"),
        Index("idx_posts_author", "author_id"),
    )
