"""게시글 본문의 불변 버전 이력(append-only ledger) SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from content_engine.database import Base

CHANGE_CREATE = "create"
CHANGE_UPDATE = "update"
CHANGE_REVERT = "revert"

CHANGE_SUMMARY_MAX_LENGTH = 500


class PostVersion(Base):
    __tablename__ = "post_versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False)
    version_number = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    editor_id = Column(Integer, nullable=False)
    change_summary = Column(String(CHANGE_SUMMARY_MAX_LENGTH), nullable=True)
    change_type = Column(String(20), nullable=False, default=CHANGE_UPDATE)  # create/update/revert
    reverted_from = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    post = relationship("Post", back_populates="versions")

    __table_args__ = (
        UniqueConstraint("post_id", "version_number", name="uq_post_versions_post_version"),
    )
