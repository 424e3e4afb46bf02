"""게시글 본문 버전 이력(append-only ledger)의 저장/조회 기능을 제공하는 도메인 서비스입니다."""

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from content_engine.config import settings
from content_engine.exceptions import PostNotFound, ValidationError, VersionNotFound
from content_engine.models.post import Post
from content_engine.models.post_version import CHANGE_UPDATE, PostVersion

logger = logging.getLogger(__name__)


def latest_version_number(db: Session, post_id: int) -> int:
    current_max = (
        db.query(func.max(PostVersion.version_number))
        .filter(PostVersion.post_id == post_id)
        .scalar()
    )
    return int(current_max or 0)


def append_version(
    db: Session,
    post_id: int,
    *,
    content: str,
    editor_id: int,
    change_summary: str | None = None,
    change_type: str = CHANGE_UPDATE,
    reverted_from: int | None = None,
) -> int:
    """Append the next version for ``post_id`` and return its number.

    Runs inside the caller's transaction and only flushes: the head update and
    the commit belong to the same unit of work. Callers hold the post's
    critical section; a duplicate number still surfaces as ``IntegrityError``
    from the ``(post_id, version_number)`` unique constraint.
    """
    if db.get(Post, post_id) is None:
        raise PostNotFound(post_id)

    version_number = latest_version_number(db, post_id) + 1
    row = PostVersion(
        post_id=post_id,
        version_number=version_number,
        content=content,
        editor_id=editor_id,
        change_summary=change_summary,
        change_type=change_type,
        reverted_from=reverted_from,
        created_at=datetime.now(timezone.utc),
    )
    db.add(row)
    db.flush()
    logger.debug("[version] appended post_id=%s version=%s type=%s", post_id, version_number, change_type)
    return version_number


def get_version(db: Session, post_id: int, version_number: int) -> PostVersion:
    row = (
        db.query(PostVersion)
        .filter(
            PostVersion.post_id == post_id,
            PostVersion.version_number == version_number,
        )
        .first()
    )
    if not row:
        raise VersionNotFound(post_id, version_number)
    return row


def page_bounds(offset: int, limit: int | None) -> tuple[int, int]:
    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    if offset < 0:
        raise ValidationError("offset은 0 이상이어야 합니다.", field_name="offset")
    if limit < 1:
        raise ValidationError("limit은 1 이상이어야 합니다.", field_name="limit")
    return offset, min(limit, settings.MAX_PAGE_SIZE)


def list_versions(db: Session, post_id: int, offset: int = 0, limit: int | None = None) -> List[PostVersion]:
    offset, limit = page_bounds(offset, limit)
    return (
        db.query(PostVersion)
        .filter(PostVersion.post_id == post_id)
        .order_by(PostVersion.version_number.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def count_versions(db: Session, post_id: int) -> int:
    return int(
        db.query(func.count(PostVersion.id))
        .filter(PostVersion.post_id == post_id)
        .scalar()
        or 0
    )
