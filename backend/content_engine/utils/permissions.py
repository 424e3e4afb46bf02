"""게시글 작업 권한을 결정하는 순수 정책 함수입니다. I/O와 부수 효과가 없습니다."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional

from content_engine.exceptions import AuthorizationError
from content_engine.models.post import DRAFT, PUBLISHED
from content_engine.schemas.principal import Principal, Role


class Action(str, Enum):
    CREATE_POST = "create_post"
    UPDATE_POST = "update_post"
    CHANGE_STATUS = "change_status"
    REVERT_POST = "revert_post"
    VIEW_DRAFT = "view_draft"


class DenyReason(str, Enum):
    INSUFFICIENT_ROLE = "insufficient_role"
    NOT_OWNER = "not_owner"


ALL_ACTIONS: FrozenSet[Action] = frozenset(Action)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: DenyReason) -> Decision:
    return Decision(False, reason)


@dataclass(frozen=True)
class OwnerRule:
    """Action allowed only on the principal's own posts.

    ``statuses`` limits the rule to posts in those statuses; ``None`` means any.
    """

    statuses: Optional[FrozenSet[str]] = None


def _freeze(table: dict) -> Mapping:
    return MappingProxyType(dict(table))


@dataclass(frozen=True)
class AuthorizationPolicy:
    """Role/ownership rule table.

    Rules are evaluated in order: unconditional grants for the role, then
    owner-scoped grants, otherwise ``insufficient_role``. Extending roles means
    extending these tables.
    """

    unconditional: Mapping[Role, FrozenSet[Action]] = field(
        default_factory=lambda: _freeze({
            Role.ADMIN: ALL_ACTIONS,
            # 편집자는 본인 글 여부와 관계없이 모든 콘텐츠를 관리한다.
            Role.EDITOR: ALL_ACTIONS,
            Role.USER: frozenset({Action.CREATE_POST}),
        })
    )
    owner_scoped: Mapping[Role, Mapping[Action, OwnerRule]] = field(
        default_factory=lambda: _freeze({
            Role.USER: _freeze({
                Action.UPDATE_POST: OwnerRule(statuses=frozenset({DRAFT})),
                Action.VIEW_DRAFT: OwnerRule(),
            }),
        })
    )

    def authorize(
        self,
        principal: Principal,
        action: Action,
        resource_owner_id: Optional[int] = None,
        resource_status: Optional[str] = None,
    ) -> Decision:
        if action in self.unconditional.get(principal.role, frozenset()):
            return ALLOW

        rule = self.owner_scoped.get(principal.role, {}).get(action)
        if rule is None:
            return deny(DenyReason.INSUFFICIENT_ROLE)
        if resource_owner_id is None or resource_owner_id != principal.id:
            return deny(DenyReason.NOT_OWNER)
        if rule.statuses is not None and resource_status not in rule.statuses:
            return deny(DenyReason.INSUFFICIENT_ROLE)
        return ALLOW

    def ensure(
        self,
        principal: Principal,
        action: Action,
        resource_owner_id: Optional[int] = None,
        resource_status: Optional[str] = None,
    ) -> None:
        decision = self.authorize(principal, action, resource_owner_id, resource_status)
        if not decision.allowed:
            raise AuthorizationError(action.value, decision.reason.value, principal_id=principal.id)

    def can_view(self, principal: Principal, owner_id: int, status: str) -> bool:
        if status == PUBLISHED:
            return True
        return self.authorize(principal, Action.VIEW_DRAFT, owner_id, status).allowed


DEFAULT_POLICY = AuthorizationPolicy()


def authorize(
    principal: Principal,
    action: Action,
    resource_owner_id: Optional[int] = None,
    resource_status: Optional[str] = None,
) -> Decision:
    return DEFAULT_POLICY.authorize(principal, action, resource_owner_id, resource_status)
