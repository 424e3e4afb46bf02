"""게시글 버전 이력 조회 응답 계약을 위한 Pydantic 스키마입니다."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class PostVersionMeta(BaseModel):
    post_id: int
    version_number: int
    editor_id: int
    change_type: str
    change_summary: Optional[str] = None
    reverted_from: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PostVersionOut(PostVersionMeta):
    content: str


class VersionPage(BaseModel):
    post_id: int
    items: List[PostVersionMeta]
    total: int
    offset: int
    limit: int


class VersionDiff(BaseModel):
    post_id: int
    from_version: int
    to_version: int
    changed: bool
    diff: str
