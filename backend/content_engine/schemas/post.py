"""Post 요청/응답 계약을 위한 Pydantic 스키마입니다."""

import json
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator


class PostCreate(BaseModel):
    title: str
    content: str
    slug: Optional[str] = None  # 희망 슬러그, 충돌 시 -2, -3 ... 접미사
    tags: List[str] = []
    change_summary: Optional[str] = None


class PostUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    status: Optional[str] = None
    slug: Optional[str] = None
    tags: Optional[List[str]] = None
    change_summary: Optional[str] = None


class PostOut(BaseModel):
    id: int
    slug: str
    title: str
    author_id: int
    status: str
    current_version_number: int
    tags: List[str] = []
    created_at: datetime
    updated_at: datetime
    published_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("tags", mode="before")
    @classmethod
    def _decode_tags(cls, value):
        if value is None or value == "":
            return []
        if isinstance(value, str):
            return json.loads(value)
        return value
