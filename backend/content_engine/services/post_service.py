"""Post 애그리거트 서비스 레이어입니다. 권한 확인, 버전 추가, 헤드 갱신을 하나의 원자적 작업으로 묶습니다."""

import difflib
import json
import logging
from datetime import datetime, timezone
from typing import Callable, List, Tuple, TypeVar

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from content_engine.config import settings
from content_engine.exceptions import AuthorizationError, ConflictError, PostNotFound, ValidationError
from content_engine.models.post import ARCHIVED, DRAFT, POST_STATUSES, PUBLISHED, TITLE_MAX_LENGTH, Post
from content_engine.models.post_version import (
    CHANGE_CREATE,
    CHANGE_REVERT,
    CHANGE_SUMMARY_MAX_LENGTH,
    CHANGE_UPDATE,
    PostVersion,
)
from content_engine.schemas.post import PostCreate, PostUpdate
from content_engine.schemas.principal import Principal
from content_engine.schemas.version import PostVersionMeta, VersionDiff, VersionPage
from content_engine.services import slug_service, version_service
from content_engine.services.locks import post_locks
from content_engine.utils.permissions import DEFAULT_POLICY, Action, AuthorizationPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

# archived -> published 는 draft 를 거쳐야 한다.
ALLOWED_TRANSITIONS = {
    DRAFT: {PUBLISHED, ARCHIVED},
    PUBLISHED: {DRAFT, ARCHIVED},
    ARCHIVED: {DRAFT},
}

PostRef = int | str


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _check_length(value: str | None, field_name: str, label: str, max_length: int) -> None:
    if value is not None and len(value) > max_length:
        raise ValidationError(
            f"{label}은(는) {max_length}자를 넘을 수 없습니다.",
            field_name=field_name,
        )


def _require_text(value: str | None, field_name: str, label: str, max_length: int | None = None) -> None:
    if value is None or not str(value).strip():
        raise ValidationError(f"{label}은(는) 비어 있을 수 없습니다.", field_name=field_name)
    if max_length is not None:
        _check_length(value, field_name, label, max_length)


def _encode_tags(tags) -> str:
    return json.dumps(sorted({str(tag) for tag in tags or []}), ensure_ascii=False)


def _validate_status(value: str) -> str:
    status = str(value or "").strip().lower()
    if status not in POST_STATUSES:
        raise ValidationError(f"알 수 없는 상태값입니다: {value}", field_name="status")
    return status


def _validate_transition(current: str, target: str) -> None:
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValidationError(
            f"허용되지 않는 상태 전이입니다: {current} -> {target}",
            field_name="status",
        )


def _ensure(policy: AuthorizationPolicy, principal: Principal, action: Action, post: Post | None = None) -> None:
    owner_id = post.author_id if post is not None else principal.id
    status = post.status if post is not None else DRAFT
    try:
        policy.ensure(principal, action, owner_id, status)
    except AuthorizationError as exc:
        logger.warning(
            "[post] denied action=%s principal=%s post_id=%s reason=%s",
            action.value,
            principal.id,
            post.id if post is not None else None,
            exc.reason,
        )
        raise


def _run_atomic(db: Session, operation: Callable[[], T], *, label: str, post_id: int | None = None) -> T:
    """Run ``operation`` and commit, retrying unique-constraint races.

    Any failure rolls the whole unit back, so neither a dangling version nor a
    head pointing at a missing version is ever committed.
    """
    attempts = max(settings.CONFLICT_RETRY_LIMIT, 1)
    for attempt in range(1, attempts + 1):
        try:
            result = operation()
            db.commit()
            return result
        except IntegrityError as exc:
            db.rollback()
            logger.warning(
                "[post] %s conflict post_id=%s attempt=%s/%s: %s",
                label,
                post_id,
                attempt,
                attempts,
                exc.orig,
            )
        except Exception:
            db.rollback()
            raise
    raise ConflictError(
        f"동시 수정 충돌로 작업을 완료하지 못했습니다: {label}",
        attempts=attempts,
        post_id=post_id,
    )


def _lock_post(db: Session, post_id: int) -> Post:
    post = (
        db.query(Post)
        .filter(Post.id == post_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not post:
        raise PostNotFound(post_id)
    return post


def find_post(db: Session, post_ref: PostRef) -> Post:
    query = db.query(Post)
    if isinstance(post_ref, int):
        post = query.filter(Post.id == post_ref).first()
    else:
        post = query.filter(Post.slug == str(post_ref)).first()
    if not post:
        raise PostNotFound(post_ref)
    return post


def _ensure_can_view(policy: AuthorizationPolicy, principal: Principal, post: Post) -> None:
    if policy.can_view(principal, post.author_id, post.status):
        return
    # 거부 사유를 담아 기록하고 예외로 올린다.
    _ensure(policy, principal, Action.VIEW_DRAFT, post)


def create_post(
    db: Session,
    data: PostCreate,
    principal: Principal,
    policy: AuthorizationPolicy = DEFAULT_POLICY,
) -> Post:
    _ensure(policy, principal, Action.CREATE_POST)
    _require_text(data.title, "title", "제목", TITLE_MAX_LENGTH)
    _require_text(data.content, "content", "본문")
    _check_length(data.change_summary, "change_summary", "변경 요약", CHANGE_SUMMARY_MAX_LENGTH)

    def _insert() -> Post:
        now = _now()
        post = Post(
            slug=slug_service.allocate_slug(db, data.title, data.slug),
            title=data.title,
            author_id=principal.id,
            status=DRAFT,
            current_version_number=1,
            tags=_encode_tags(data.tags),
            created_at=now,
            updated_at=now,
        )
        db.add(post)
        db.flush()
        post.current_version_number = version_service.append_version(
            db,
            post.id,
            content=data.content,
            editor_id=principal.id,
            change_summary=data.change_summary,
            change_type=CHANGE_CREATE,
        )
        return post

    post = _run_atomic(db, _insert, label="create")
    # 커밋 직후 다른 작성자가 끼어들기 전에 방금 만든 상태를 읽는다.
    with post_locks.hold(post.id):
        db.refresh(post)
        logger.info("[post] created post_id=%s slug=%s author=%s", post.id, post.slug, post.author_id)
    return post


def _apply_update(
    db: Session,
    post_id: int,
    data: PostUpdate,
    principal: Principal,
    policy: AuthorizationPolicy,
) -> Post:
    post = _lock_post(db, post_id)
    _ensure(policy, principal, Action.UPDATE_POST, post)
    _check_length(data.change_summary, "change_summary", "변경 요약", CHANGE_SUMMARY_MAX_LENGTH)

    next_status = None
    if data.status is not None:
        requested = _validate_status(data.status)
        if requested != post.status:
            _ensure(policy, principal, Action.CHANGE_STATUS, post)
            _validate_transition(post.status, requested)
            next_status = requested

    if data.title is not None:
        _require_text(data.title, "title", "제목", TITLE_MAX_LENGTH)
        post.title = data.title

    now = _now()
    if data.content is not None:
        _require_text(data.content, "content", "본문")
        current = version_service.get_version(db, post.id, post.current_version_number)
        # 본문이 바뀐 경우에만 새 버전을 만든다. 메타데이터 수정은 이력을 늘리지 않는다.
        if data.content != current.content:
            post.current_version_number = version_service.append_version(
                db,
                post.id,
                content=data.content,
                editor_id=principal.id,
                change_summary=data.change_summary,
                change_type=CHANGE_UPDATE,
            )

    if data.slug is not None:
        post.slug = slug_service.allocate_slug(db, post.title, data.slug, exclude_post_id=post.id)

    if data.tags is not None:
        post.tags = _encode_tags(data.tags)

    if next_status is not None:
        post.status = next_status
        if next_status == PUBLISHED and post.published_at is None:
            post.published_at = now

    post.updated_at = now
    db.flush()
    return post


def update_post(
    db: Session,
    post_id: int,
    data: PostUpdate,
    principal: Principal,
    policy: AuthorizationPolicy = DEFAULT_POLICY,
) -> Post:
    with post_locks.hold(post_id):
        post = _run_atomic(
            db,
            lambda: _apply_update(db, post_id, data, principal, policy),
            label="update",
            post_id=post_id,
        )
        # 잠금을 놓기 전에 읽어야 다른 작성자의 헤드가 섞이지 않는다.
        db.refresh(post)
        logger.info(
            "[post] updated post_id=%s version=%s status=%s editor=%s",
            post.id,
            post.current_version_number,
            post.status,
            principal.id,
        )
    return post


def publish_post(
    db: Session,
    post_id: int,
    principal: Principal,
    policy: AuthorizationPolicy = DEFAULT_POLICY,
) -> Post:
    return update_post(db, post_id, PostUpdate(status=PUBLISHED), principal, policy)


def archive_post(
    db: Session,
    post_id: int,
    principal: Principal,
    policy: AuthorizationPolicy = DEFAULT_POLICY,
) -> Post:
    return update_post(db, post_id, PostUpdate(status=ARCHIVED), principal, policy)


def revert_post(
    db: Session,
    post_id: int,
    target_version_number: int,
    principal: Principal,
    policy: AuthorizationPolicy = DEFAULT_POLICY,
    change_summary: str | None = None,
) -> Post:
    def _apply() -> Post:
        post = _lock_post(db, post_id)
        target = version_service.get_version(db, post.id, target_version_number)
        _ensure(policy, principal, Action.REVERT_POST, post)
        _check_length(change_summary, "change_summary", "변경 요약", CHANGE_SUMMARY_MAX_LENGTH)
        # 되돌리기도 새 버전 번호로 기록한다. 이력은 되감지 않는다.
        post.current_version_number = version_service.append_version(
            db,
            post.id,
            content=target.content,
            editor_id=principal.id,
            change_summary=change_summary,
            change_type=CHANGE_REVERT,
            reverted_from=target.version_number,
        )
        post.status = DRAFT
        post.updated_at = _now()
        db.flush()
        return post

    with post_locks.hold(post_id):
        post = _run_atomic(db, _apply, label="revert", post_id=post_id)
        db.refresh(post)
        logger.info(
            "[post] reverted post_id=%s to=%s as version=%s editor=%s",
            post.id,
            target_version_number,
            post.current_version_number,
            principal.id,
        )
    return post


def get_post(
    db: Session,
    post_ref: PostRef,
    principal: Principal,
    policy: AuthorizationPolicy = DEFAULT_POLICY,
) -> Post:
    post = find_post(db, post_ref)
    _ensure_can_view(policy, principal, post)
    return post


def get_post_content(
    db: Session,
    post_ref: PostRef,
    principal: Principal,
    policy: AuthorizationPolicy = DEFAULT_POLICY,
) -> Tuple[Post, PostVersion]:
    post = get_post(db, post_ref, principal, policy)
    return post, version_service.get_version(db, post.id, post.current_version_number)


def get_post_version(
    db: Session,
    post_ref: PostRef,
    version_number: int,
    principal: Principal,
    policy: AuthorizationPolicy = DEFAULT_POLICY,
) -> PostVersion:
    post = get_post(db, post_ref, principal, policy)
    return version_service.get_version(db, post.id, version_number)


def list_post_versions(
    db: Session,
    post_ref: PostRef,
    principal: Principal,
    offset: int = 0,
    limit: int | None = None,
    policy: AuthorizationPolicy = DEFAULT_POLICY,
) -> VersionPage:
    post = get_post(db, post_ref, principal, policy)
    offset, limit = version_service.page_bounds(offset, limit)
    rows = version_service.list_versions(db, post.id, offset=offset, limit=limit)
    return VersionPage(
        post_id=post.id,
        items=[PostVersionMeta.model_validate(row) for row in rows],
        total=version_service.count_versions(db, post.id),
        offset=offset,
        limit=limit,
    )


def compare_versions(
    db: Session,
    post_ref: PostRef,
    from_version: int,
    to_version: int,
    principal: Principal,
    policy: AuthorizationPolicy = DEFAULT_POLICY,
) -> VersionDiff:
    post = get_post(db, post_ref, principal, policy)
    before = version_service.get_version(db, post.id, from_version)
    after = version_service.get_version(db, post.id, to_version)
    diff = "".join(
        difflib.unified_diff(
            before.content.splitlines(keepends=True),
            after.content.splitlines(keepends=True),
            fromfile=f"v{from_version}",
            tofile=f"v{to_version}",
        )
    )
    return VersionDiff(
        post_id=post.id,
        from_version=from_version,
        to_version=to_version,
        changed=before.content != after.content,
        diff=diff,
    )


def list_posts(
    db: Session,
    principal: Principal,
    status: str | None = None,
    offset: int = 0,
    limit: int | None = None,
    policy: AuthorizationPolicy = DEFAULT_POLICY,
) -> List[Post]:
    offset, limit = version_service.page_bounds(offset, limit)
    query = db.query(Post)
    if status is not None:
        query = query.filter(Post.status == _validate_status(status))
    # 소유자 한정 열람 권한이면 공개 글과 본인 글만 조회한다.
    if not policy.authorize(principal, Action.VIEW_DRAFT).allowed:
        query = query.filter(or_(Post.status == PUBLISHED, Post.author_id == principal.id))
    return (
        query.order_by(Post.updated_at.desc(), Post.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
