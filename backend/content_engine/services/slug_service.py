"""게시글 제목/희망 슬러그로부터 충돌 없는 슬러그를 할당하는 서비스입니다."""

import logging

from sqlalchemy.orm import Session

from content_engine.config import settings
from content_engine.models.post import Post
from content_engine.utils.slug import normalize_slug, with_suffix

logger = logging.getLogger(__name__)

# 접미사 "-NNNNNN"까지 여유를 둔 접두어로 후보를 한 번에 조회한다.
_SUFFIX_RESERVE = 7


def _taken_slugs(db: Session, base: str, exclude_post_id: int | None) -> set[str]:
    prefix = base[: max(settings.SLUG_MAX_LENGTH - _SUFFIX_RESERVE, 1)]
    query = db.query(Post.slug).filter(Post.slug.like(f"{prefix}%"))
    if exclude_post_id is not None:
        query = query.filter(Post.id != exclude_post_id)
    return {row[0] for row in query.all()}


def allocate_slug(
    db: Session,
    title: str,
    desired_slug: str | None = None,
    exclude_post_id: int | None = None,
) -> str:
    """Return the first free ``base``, ``base-2``, ``base-3`` ... slug.

    The check is advisory; the ``posts.slug`` unique constraint is the actual
    reservation and writers retry allocation on a unique violation.
    """
    source = desired_slug if desired_slug and desired_slug.strip() else title
    base = normalize_slug(source)
    taken = _taken_slugs(db, base, exclude_post_id)
    n = 1
    candidate = base
    while candidate in taken:
        n += 1
        candidate = with_suffix(base, n)
    if n > 1:
        logger.info("[slug] '%s' taken, allocated '%s'", base, candidate)
    return candidate
